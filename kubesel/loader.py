"""Finding and loading kubeconfig files."""

from __future__ import annotations

import os
import stat as stat_module
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import IO, Any, Callable, Optional

import yaml

from kubesel.codec import config_from_yaml
from kubesel.kubeconfig import Config, KubeconfigTypeError
from kubesel.merge import merge_config

__all__ = [
    "DEFAULT_KUBE_DIR_NAME",
    "DEFAULT_KUBECONFIG_FILE_NAME",
    "NoKubeDirError",
    "ReadError",
    "ParseError",
    "LoadedKubeconfig",
    "LoadedKubeconfigCollection",
    "load_multiple_files",
    "load_from_file",
    "load_from_stream",
    "find_kubeconfig_files",
    "find_default_kubeconfig_file",
    "find_default_kube_dir",
    "find_default_kube_dir_posix",
    "find_default_kube_dir_windows",
]

DEFAULT_KUBE_DIR_NAME = ".kube"
DEFAULT_KUBECONFIG_FILE_NAME = "config"

_PERM_OWNER_WRITE = 0o200


class NoKubeDirError(Exception):
    """The default .kube directory cannot be found."""

    def __init__(self, detail: Optional[str] = None) -> None:
        message = "cannot find .kube directory"
        super().__init__(f"{message}: {detail}" if detail else message)


class ReadError(Exception):
    """A kubeconfig file could not be read."""


class ParseError(Exception):
    """A kubeconfig file could not be parsed."""


def _wrap(cls: type[Exception], prefix: str, cause: BaseException) -> Exception:
    error = cls(f"{prefix}: {cause}")
    error.__cause__ = cause
    return error


@dataclass
class LoadedKubeconfig:
    """A loaded kubeconfig file, with any errors met while loading it."""

    path: str = ""
    config: Config = field(default_factory=Config)
    errors: list[Exception] = field(default_factory=list)


@dataclass
class LoadedKubeconfigCollection:
    """Several loaded kubeconfig files and their merged contents."""

    configs: list[LoadedKubeconfig] = field(default_factory=list)
    merged: Config = field(default_factory=Config)


def load_multiple_files(files: Iterable[str]) -> LoadedKubeconfigCollection:
    """Load the files concurrently and merge them in the order given."""
    paths = list(files)
    with ThreadPoolExecutor() as pool:
        loaded = list(pool.map(load_from_file, paths))

    merged = Config()
    for kubeconfig in loaded:
        merged = merge_config(merged, kubeconfig.config)

    return LoadedKubeconfigCollection(configs=loaded, merged=merged)


def load_from_file(file: str) -> LoadedKubeconfig:
    """Read and parse a kubeconfig file from the filesystem.

    Errors are recorded in the result rather than raised. A file that cannot
    be opened gives a result without a path.
    """
    try:
        handle = open(file, "rb")
    except OSError as err:
        return LoadedKubeconfig(errors=[_wrap(ReadError, "read error", err)])

    with handle:
        result = load_from_stream(handle)
    result.path = file
    return result


def load_from_stream(stream: IO[Any]) -> LoadedKubeconfig:
    """Read and parse a kubeconfig document from a readable stream."""
    try:
        data = stream.read()
    except OSError as err:
        return LoadedKubeconfig(errors=[_wrap(ReadError, "read error", err)])

    try:
        config = config_from_yaml(data)
    except (yaml.YAMLError, KubeconfigTypeError) as err:
        return LoadedKubeconfig(errors=[_wrap(ParseError, "parse error", err)])

    return LoadedKubeconfig(config=config)


def find_kubeconfig_files(environ: Optional[Mapping[str, str]] = None) -> list[str]:
    """Return the kubeconfig files to load.

    The KUBECONFIG variable is split into a list of paths, skipping empty
    entries. Without it, the default ``.kube/config`` file is used.
    """
    env = os.environ if environ is None else environ
    if "KUBECONFIG" in env:
        return [path for path in env["KUBECONFIG"].split(os.pathsep) if path]

    kube_dir = _find_default_kube_dir(env)
    return [os.path.join(kube_dir, DEFAULT_KUBECONFIG_FILE_NAME)]


def find_default_kubeconfig_file() -> str:
    """Return the path of the default ``.kube/config`` file."""
    return os.path.join(find_default_kube_dir(), DEFAULT_KUBECONFIG_FILE_NAME)


def find_default_kube_dir() -> str:
    """Return the path of the default ``.kube`` directory for this platform."""
    return _find_default_kube_dir(os.environ)


def _find_default_kube_dir(environ: Mapping[str, str]) -> str:
    if os.name == "nt":
        return find_default_kube_dir_windows(environ)
    return find_default_kube_dir_posix(environ)


def find_default_kube_dir_posix(environ: Optional[Mapping[str, str]] = None) -> str:
    """Return ``$HOME/.kube``; raise NoKubeDirError if HOME is undefined."""
    env = os.environ if environ is None else environ
    if "HOME" not in env:
        raise NoKubeDirError("$HOME environment variable undefined")
    return os.path.join(env["HOME"], DEFAULT_KUBE_DIR_NAME)


@dataclass
class _Candidate:
    path: str = ""
    has_kube_config: bool = False
    exists: bool = False
    writeable: bool = False

    def probe(self, stat: Callable[[str], Any]) -> None:
        if not self.path:
            return
        try:
            stat(
                os.path.join(
                    self.path, DEFAULT_KUBE_DIR_NAME, DEFAULT_KUBECONFIG_FILE_NAME
                )
            )
        except OSError:
            pass
        else:
            self.has_kube_config = True
            return

        try:
            info = stat(self.path)
        except OSError:
            return
        self.exists = True
        self.writeable = bool(stat_module.S_IMODE(info.st_mode) & _PERM_OWNER_WRITE)


def find_default_kube_dir_windows(
    environ: Optional[Mapping[str, str]] = None,
    stat: Optional[Callable[[str], Any]] = None,
) -> str:
    """Return the ``.kube`` directory under the Windows home candidates.

    The candidates are %HOME%, %HOMEDRIVE%%HOMEPATH% and %USERPROFILE%. The
    first holding a ``.kube/config`` file wins; otherwise the first writeable
    one, then the first existing one, checking HOME, USERPROFILE and
    HOMEDRIVE/HOMEPATH in that order.
    """
    env = os.environ if environ is None else environ
    stat_fn = os.stat if stat is None else stat

    from_home = _Candidate(path=env.get("HOME") or "")
    from_drive_home = _Candidate()
    home_drive = env.get("HOMEDRIVE") or ""
    home_path = env.get("HOMEPATH") or ""
    if home_drive and home_path:
        from_drive_home.path = os.path.join(home_drive, home_path)
    from_user_profile = _Candidate(path=env.get("USERPROFILE") or "")

    config_order = [from_home, from_drive_home, from_user_profile]
    for candidate in config_order:
        candidate.probe(stat_fn)

    for candidate in config_order:
        if candidate.has_kube_config:
            return os.path.join(candidate.path, DEFAULT_KUBE_DIR_NAME)

    dir_order = [from_home, from_user_profile, from_drive_home]
    for candidate in dir_order:
        if candidate.writeable:
            return os.path.join(candidate.path, DEFAULT_KUBE_DIR_NAME)

    for candidate in dir_order:
        if candidate.exists:
            return os.path.join(candidate.path, DEFAULT_KUBE_DIR_NAME)

    raise NoKubeDirError()