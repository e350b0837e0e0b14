"""
Preflight checks run before anything touches the host.
"""
import psutil
from ..errors import PreflightError

SUPERUSER_UID = 0


class PreflightChecker:
    """
    Refuses to run as the superuser: packages and kernel modules are handled
    through sudo, while the container runtime has to stay rootless.
    """
    def __init__(self, process: psutil.Process = None):
        self.process = process or psutil.Process()

    def effective_uid(self) -> int:
        return self.process.uids().effective

    def check(self):
        """
        :raises PreflightError: If the process runs with UID 0.
        """
        if self.effective_uid() == SUPERUSER_UID:
            raise PreflightError(
                "This installer must NOT be run as root.",
                remediation=["Re-run podbox as your regular user; sudo is invoked where needed."],
            )
