"""The shell process that owns a managed kubeconfig file."""

from __future__ import annotations

from dataclasses import dataclass, field

import psutil

from kubesel.errors import OwnerProcessNotExistError

__all__ = ["Owner", "owner_for_process"]


def _boot_time() -> int:
    return int(psutil.boot_time())


@dataclass(frozen=True)
class Owner:
    """Identifies the process that created a managed kubeconfig file.

    ``epoch`` is the system boot time, so a reused process id after a reboot
    is not mistaken for the original owner.
    """

    process: int = field(metadata={"json": "pid"})
    epoch: int = field(metadata={"json": "epoch"})

    def file_name(self) -> str:
        """Return the name of the owner's managed kubeconfig file."""
        return f"kubesel-{self.epoch:x}-{self.process:x}-kubeconfig.yaml"

    def is_alive(self) -> bool:
        """Return True if the system has not rebooted and the process exists."""
        if self.epoch != _boot_time():
            return False
        return psutil.pid_exists(self.process)


def owner_for_process(pid: int) -> Owner:
    """Create an Owner for a living process.

    Raises OwnerProcessNotExistError if the process does not exist.
    """
    boot_time = _boot_time()
    if not psutil.pid_exists(pid):
        raise OwnerProcessNotExistError(str(pid))
    return Owner(process=pid, epoch=boot_time)