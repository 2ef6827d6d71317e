"""The kubesel session manager: loaded kubeconfigs and managed session files."""

from __future__ import annotations

import os
import random
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import cached_property
from typing import Optional

import psutil

from kubesel.errors import (
    AlreadyManagedError,
    KubeselError,
    ManagedKubeconfigCorruptError,
    UnmanagedError,
)
from kubesel.kubeconfig import Config
from kubesel.loader import (
    LoadedKubeconfigCollection,
    ParseError,
    ReadError,
    find_kubeconfig_files,
    load_from_file,
    load_multiple_files,
)
from kubesel.managed import (
    ManagedKubeconfig,
    is_managed_context,
    managed_kubeconfig_from_loaded,
    new_managed_kubeconfig,
)
from kubesel.owner import Owner

__all__ = [
    "find_data_home_dir",
    "GarbageCollectOptions",
    "GarbageCollectResult",
    "Kubesel",
]

_SESSION_FILE_SUFFIX = ".yaml"


def find_data_home_dir(environ: Optional[Mapping[str, str]] = None) -> str:
    """Return the user's data directory.

    XDG_DATA_HOME is used when set. Otherwise this is ``~/.local/share``
    (on macOS too, as for other command-line tools), or the local
    application data directory on Windows.
    """
    env = os.environ if environ is None else environ
    if "XDG_DATA_HOME" in env:
        return env["XDG_DATA_HOME"]

    home = env.get("HOME") or os.path.expanduser("~")
    if sys.platform.startswith("win"):
        return env.get("LOCALAPPDATA") or os.path.join(home, "AppData", "Local")
    return os.path.join(home, ".local", "share")


@dataclass
class GarbageCollectOptions:
    """Limits for a garbage collection run; zero means unlimited."""

    max_files_to_check: int = 0
    max_files_to_delete: int = 0


@dataclass
class GarbageCollectResult:
    """What a garbage collection run checked, deleted and failed on."""

    files_deleted: list[str] = field(default_factory=list)
    files_checked: list[str] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)


class Kubesel:
    """The loaded kubeconfig files and kubesel's session directory."""

    def __init__(self, kubeconfigs: LoadedKubeconfigCollection, data_dir: str) -> None:
        self._kubeconfigs = kubeconfigs
        self._data_dir = data_dir
        self._session_dir = os.path.join(data_dir, "sessions")
        self._managed: Optional[
            tuple[Optional[ManagedKubeconfig], Optional[KubeselError]]
        ] = None

    @classmethod
    def load(cls) -> Kubesel:
        """Read the kubeconfig files named by KUBECONFIG (or the default one)."""
        data_dir = os.path.join(find_data_home_dir(), "kubesel")
        files = find_kubeconfig_files()
        return cls(load_multiple_files(files), data_dir)

    @property
    def data_dir(self) -> str:
        """kubesel's data directory."""
        return self._data_dir

    @property
    def session_dir(self) -> str:
        """The directory holding managed kubeconfig files."""
        return self._session_dir

    @property
    def merged_kubeconfig(self) -> Config:
        """The merged contents of every loaded kubeconfig file."""
        return self._kubeconfigs.merged

    @property
    def kubeconfig_file_paths(self) -> list[str]:
        """The paths of the loaded kubeconfig files, in order."""
        return [loaded.path for loaded in self._kubeconfigs.configs]

    def managed_kubeconfig(self) -> ManagedKubeconfig:
        """Return the first loaded kubeconfig inside the session directory.

        Raises UnmanagedError if there is none, and
        ManagedKubeconfigCorruptError if it cannot be used. The outcome is
        computed once.
        """
        if self._managed is None:
            try:
                self._managed = (self._find_managed_kubeconfig(), None)
            except KubeselError as err:
                self._managed = (None, err)
        value, error = self._managed
        if error is not None:
            raise error
        assert value is not None
        return value

    @cached_property
    def cluster_names(self) -> list[str]:
        """The names of the clusters in the merged kubeconfig."""
        return [
            item.name
            for item in self.merged_kubeconfig.clusters or ()
            if item.name is not None
        ]

    @cached_property
    def auth_info_names(self) -> list[str]:
        """The names of the users in the merged kubeconfig."""
        return [
            item.name
            for item in self.merged_kubeconfig.auth_infos or ()
            if item.name is not None
        ]

    @cached_property
    def context_names(self) -> list[str]:
        """The names of the contexts in the merged kubeconfig, except kubesel's."""
        return [
            item.name
            for item in self.merged_kubeconfig.contexts or ()
            if item.name is not None and not is_managed_context(item)
        ]

    def create_managed_kubeconfig(self, owner: Owner) -> ManagedKubeconfig:
        """Create and save a new managed kubeconfig for the owner.

        Raises AlreadyManagedError if the owner already has one.
        """
        self._ensure_session_dir_exists()

        managed_file = self.managed_kubeconfig_path_for_owner(owner)
        try:
            os.stat(managed_file)
        except FileNotFoundError:
            pass
        except OSError as err:
            raise AlreadyManagedError(f"owner pid {owner.process}") from err
        else:
            raise AlreadyManagedError(f"owner pid {owner.process}")

        managed = new_managed_kubeconfig(managed_file, owner)
        managed.save()
        return managed

    def is_managed_kubeconfig_path(self, path: str) -> bool:
        """Return True if the path lies inside kubesel's session directory."""
        if os.path.isabs(self._session_dir) != os.path.isabs(path):
            return False
        try:
            rel = os.path.relpath(path, self._session_dir)
        except ValueError:
            return False
        return not rel.startswith("..")

    def managed_kubeconfig_path_for_owner(self, owner: Owner) -> str:
        """Return the path of the owner's managed kubeconfig file."""
        return os.path.join(self._session_dir, owner.file_name())

    def garbage_collect(
        self, options: Optional[GarbageCollectOptions] = None
    ) -> GarbageCollectResult:
        """Delete managed files whose owners are no longer alive.

        Files are checked in a random order. Files that cannot be parsed as a
        kubeconfig are left alone and reported as errors; files that parse but
        are not valid managed kubeconfigs are deleted.
        """
        opts = options if options is not None else GarbageCollectOptions()
        self._ensure_session_dir_exists()

        entries = [
            name
            for name in os.listdir(self._session_dir)
            if os.path.splitext(name)[1] == _SESSION_FILE_SUFFIX
        ]

        max_checks = opts.max_files_to_check or sys.maxsize
        max_deletes = opts.max_files_to_delete or sys.maxsize
        result = GarbageCollectResult()

        for name in random.sample(entries, len(entries)):
            path = os.path.join(self._session_dir, name)
            try:
                can_delete = self._can_garbage_collect(path)
                if can_delete:
                    os.remove(path)
            except (OSError, KubeselError, ReadError, ParseError, psutil.Error) as err:
                error = KubeselError(f"gc error: {path}: {err}")
                error.__cause__ = err
                result.errors.append(error)
                continue

            result.files_checked.append(path)
            if len(result.files_checked) > max_checks:
                break

            if can_delete:
                result.files_deleted.append(path)
                if len(result.files_deleted) > max_deletes:
                    break

        return result

    def _can_garbage_collect(self, path: str) -> bool:
        loaded = load_from_file(path)
        if loaded.errors:
            raise loaded.errors[0]

        try:
            managed = managed_kubeconfig_from_loaded(loaded)
        except ManagedKubeconfigCorruptError:
            return True

        return not managed.owner.is_alive()

    def _find_managed_kubeconfig(self) -> ManagedKubeconfig:
        for loaded in self._kubeconfigs.configs:
            if self.is_managed_kubeconfig_path(loaded.path):
                return managed_kubeconfig_from_loaded(loaded)
        raise UnmanagedError()

    def _ensure_session_dir_exists(self) -> None:
        os.makedirs(self._session_dir, mode=0o700, exist_ok=True)