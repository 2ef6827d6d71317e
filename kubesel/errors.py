"""Errors raised when working with kubesel-managed kubeconfig files."""

from __future__ import annotations

from typing import Optional

__all__ = [
    "KubeselError",
    "AlreadyManagedError",
    "ManagedKubeconfigCorruptError",
    "UnmanagedError",
    "OwnerProcessNotExistError",
]


class KubeselError(Exception):
    """Base class of kubesel errors."""

    message = "kubesel error"

    def __init__(self, detail: Optional[str] = None) -> None:
        self.detail = detail
        super().__init__(f"{self.message}: {detail}" if detail else self.message)


class AlreadyManagedError(KubeselError):
    """The owner already has a managed kubeconfig file."""

    message = "already managing a kubeconfig file"


class ManagedKubeconfigCorruptError(KubeselError):
    """A managed kubeconfig file cannot be loaded."""

    message = "managed kubeconfig file is invalid"


class UnmanagedError(KubeselError):
    """No managed kubeconfig file is in use."""

    message = "no kubesel-managed kubeconfig file"


class OwnerProcessNotExistError(KubeselError):
    """The owner of a new managed kubeconfig is not a living process."""

    message = "owner process does not exist"