"""Kubeconfig files created and managed by kubesel."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from kubesel.codec import config_to_yaml
from kubesel.errors import ManagedKubeconfigCorruptError
from kubesel.kcutils import (
    decode_extension,
    encode_extension,
    find_context,
    find_extension_from,
)
from kubesel.kubeconfig import (
    Config,
    Context,
    Extension,
    KubeconfigTypeError,
    NamedContext,
    NamedExtension,
)
from kubesel.loader import LoadedKubeconfig
from kubesel.owner import Owner

__all__ = [
    "MANAGED_CONTEXT_NAME",
    "MANAGED_EXTENSION_NAME",
    "ManagedKubeconfig",
    "is_managed_context",
    "is_managed_kubeconfig",
    "managed_kubeconfig_from_loaded",
    "new_managed_kubeconfig",
]

MANAGED_CONTEXT_NAME = "kubesel"
MANAGED_EXTENSION_NAME = "managed-by-kubesel"

_EXT_API_VERSION = "dev.kubesel/v1"
_EXT_KIND = "ManagedByKubesel"


@dataclass
class _ManagedByKubesel:
    owner: Owner = field(metadata={"json": "owner"})


class ManagedKubeconfig:
    """A kubeconfig file whose single context is controlled by kubesel."""

    def __init__(
        self, file: str, owner: Owner, config: Config, context: Context
    ) -> None:
        self._file = file
        self._owner = owner
        self._config = config
        self._context = context

    def __repr__(self) -> str:
        return f"ManagedKubeconfig(path={self._file!r}, owner={self._owner!r})"

    def save(self) -> None:
        """Write the kubeconfig to disk, atomically replacing the old file."""
        swap = self._file + ".swp"
        fd = os.open(swap, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(config_to_yaml(self._config))
        os.replace(swap, self._file)

    @property
    def path(self) -> str:
        """The path of the managed kubeconfig file."""
        return self._file

    @property
    def owner(self) -> Owner:
        """The owner of the managed kubeconfig file."""
        return self._owner

    @property
    def cluster_name(self) -> str:
        """The active cluster; call save() after changing it."""
        return self._context.cluster or ""

    @cluster_name.setter
    def cluster_name(self, name: str) -> None:
        self._context.cluster = name

    @property
    def auth_info_name(self) -> str:
        """The active user; call save() after changing it."""
        return self._context.user or ""

    @auth_info_name.setter
    def auth_info_name(self, name: str) -> None:
        self._context.user = name

    @property
    def namespace(self) -> str:
        """The active namespace; call save() after changing it."""
        return self._context.namespace or ""

    @namespace.setter
    def namespace(self, name: str) -> None:
        self._context.namespace = name


def is_managed_context(named_context: NamedContext) -> bool:
    """Return True if the named context is the one kubesel manages."""
    return named_context.name == MANAGED_CONTEXT_NAME


def is_managed_kubeconfig(config: Config) -> bool:
    """Return True if the config carries kubesel's ownership extension."""
    extension = find_extension_from(MANAGED_EXTENSION_NAME, config)
    return extension is not None and extension.matches(_EXT_API_VERSION, _EXT_KIND)


def managed_kubeconfig_from_loaded(loaded: LoadedKubeconfig) -> ManagedKubeconfig:
    """Wrap a loaded kubeconfig file that kubesel manages.

    Raises ManagedKubeconfigCorruptError if the file had load errors or does
    not have the shape of a managed kubeconfig.
    """
    if loaded.errors:
        details = "; ".join(str(error) for error in loaded.errors)
        raise ManagedKubeconfigCorruptError(
            f"{loaded.path}: {details}"
        ) from loaded.errors[0]

    config = loaded.config
    current = config.current_context or ""
    if not current:
        raise ManagedKubeconfigCorruptError("the current-context is unset")
    if current != MANAGED_CONTEXT_NAME:
        raise ManagedKubeconfigCorruptError(
            "the current-context is not managed by kubesel"
        )

    context = find_context(current, config)
    if context is None:
        raise ManagedKubeconfigCorruptError(f'the "{current}" context is missing')

    raw_extension = find_extension_from(MANAGED_EXTENSION_NAME, config)
    if raw_extension is None:
        raise ManagedKubeconfigCorruptError(
            f'the "{MANAGED_EXTENSION_NAME}" extension is missing'
        )
    if not raw_extension.matches(_EXT_API_VERSION, _EXT_KIND):
        raise ManagedKubeconfigCorruptError(
            f'the "{MANAGED_EXTENSION_NAME}" extension has the wrong apiVersion or kind'
        )

    try:
        data = decode_extension(raw_extension, _ManagedByKubesel)
    except (KubeconfigTypeError, TypeError, ValueError) as err:
        raise ManagedKubeconfigCorruptError(
            f"could not decode {_EXT_KIND}: {err}"
        ) from err

    return ManagedKubeconfig(loaded.path, data.owner, config, context)


def new_managed_kubeconfig(session_file: str, owner: Owner) -> ManagedKubeconfig:
    """Create a new, unsaved managed kubeconfig for the owner."""
    context = Context(cluster="", user="", namespace="")

    extension = Extension(api_version=_EXT_API_VERSION, kind=_EXT_KIND)
    encode_extension(_ManagedByKubesel(owner=owner), extension)

    config = Config(
        current_context=MANAGED_CONTEXT_NAME,
        contexts=[NamedContext(name=MANAGED_CONTEXT_NAME, context=context)],
        extensions=[NamedExtension(name=MANAGED_EXTENSION_NAME, extension=extension)],
    )

    return ManagedKubeconfig(session_file, owner, config, context)