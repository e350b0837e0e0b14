"""
Single-instance guard for the sandbox workspace.
"""
import os
from typing import Optional
import psutil
from ..errors import LockHeldError


class InstanceLock:
    """
    A pid file that keeps two installers from driving the same container.
    A lock whose owner is gone is taken over.
    """
    def __init__(self, path: str):
        self.path = path
        self.acquired = False

    def owner(self) -> Optional[int]:
        try:
            with open(self.path, 'r') as f:
                return int(f.read().strip())
        except (OSError, ValueError):
            return None

    def acquire(self):
        """
        :raises LockHeldError: If a live process other than this one holds the lock.
        """
        pid = self.owner()
        if pid is not None and pid != os.getpid() and psutil.pid_exists(pid):
            raise LockHeldError(
                f"Another podbox process (pid {pid}) is managing this sandbox.",
                remediation=[f"Wait for pid {pid} to finish, or remove {self.path} if it is stale."],
            )
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with open(self.path, 'w') as f:
            f.write(str(os.getpid()))
        self.acquired = True

    def release(self):
        if self.acquired and self.owner() == os.getpid():
            os.remove(self.path)
        self.acquired = False

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
