"""
Exceptions for the fatal failure paths of the installer.
"""
from typing import List, Optional


class PodboxError(Exception):
    """
    Base class for errors that abort the current command.

    :param message: Human-readable diagnostic.
    :param remediation: Ordered steps the operator can take to fix the problem.
    """
    def __init__(self, message: str, remediation: Optional[List[str]] = None):
        super().__init__(message)
        self.remediation = list(remediation or [])


class ConfigError(PodboxError):
    """Raised when the sandbox configuration cannot be loaded or validated."""


class PreflightError(PodboxError):
    """Raised when the installer is started with superuser privileges."""


class DependencyInstallError(PodboxError):
    """Raised when a required OS package cannot be installed."""


class LockHeldError(PodboxError):
    """Raised when another podbox process already works on the workspace."""


class BuildFailedError(PodboxError):
    """
    Raised after every build tier has failed.

    :param attempts: The attempts that were executed, in order.
    """
    def __init__(self, message: str, attempts, remediation: Optional[List[str]] = None):
        super().__init__(message, remediation)
        self.attempts = list(attempts)
