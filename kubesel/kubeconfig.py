"""Data model for the kubeconfig file format.

The types follow the published kubeconfig schema and use the same YAML/JSON
key names. Every field is optional so that an absent value can be told apart
from an empty one. Keys that the model does not know about are kept in each
object's ``remaining`` mapping, so nothing is lost when a file is read and
written back.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Optional, TypeVar

__all__ = [
    "KubeconfigTypeError",
    "KubeconfigObject",
    "Config",
    "NamedCluster",
    "Cluster",
    "NamedContext",
    "Context",
    "NamedAuthInfo",
    "AuthInfo",
    "AuthProviderConfig",
    "ExecConfig",
    "ExecEnvVar",
    "NamedExtension",
    "Preferences",
    "Extension",
]

_T = TypeVar("_T", bound="KubeconfigObject")


class KubeconfigTypeError(TypeError):
    """A value in a kubeconfig document has the wrong type for its field."""

    def __init__(self, struct: str, key: str, value: Any, expected: str) -> None:
        self.struct = struct
        self.key = key
        self.value = value
        self.expected = expected
        super().__init__(
            f"cannot decode {value!r} into {struct}.{key}: expected {expected}"
        )


class _Kind(Enum):
    STRING = "string"
    BOOL = "boolean"
    OBJECT = "mapping"
    OBJECT_LIST = "sequence of mappings"
    STRING_LIST = "sequence of strings"
    STRING_MAP = "mapping of strings"
    STRING_LIST_MAP = "mapping of string sequences"


_COLLECTION_KINDS = frozenset(
    {
        _Kind.OBJECT_LIST,
        _Kind.STRING_LIST,
        _Kind.STRING_MAP,
        _Kind.STRING_LIST_MAP,
    }
)


def _field(key: str, kind: _Kind, item_type: Optional[type] = None) -> Any:
    return field(
        default=None,
        metadata={"key": key, "kind": kind, "item_type": item_type},
    )


def _decode(struct: str, key: str, kind: _Kind, item_type: Any, value: Any) -> Any:
    def fail() -> KubeconfigTypeError:
        return KubeconfigTypeError(struct, key, value, kind.value)

    if kind is _Kind.STRING:
        if not isinstance(value, str):
            raise fail()
        return value

    if kind is _Kind.BOOL:
        if not isinstance(value, bool):
            raise fail()
        return value

    if kind is _Kind.OBJECT:
        if not isinstance(value, Mapping):
            raise fail()
        return item_type.from_dict(value)

    if kind is _Kind.OBJECT_LIST:
        if not isinstance(value, list):
            raise fail()
        decoded = []
        for item in value:
            if item is None:
                decoded.append(item_type())
            elif isinstance(item, Mapping):
                decoded.append(item_type.from_dict(item))
            else:
                raise fail()
        return decoded

    if kind is _Kind.STRING_LIST:
        if not isinstance(value, list) or not all(isinstance(i, str) for i in value):
            raise fail()
        return list(value)

    if kind is _Kind.STRING_MAP:
        if not isinstance(value, Mapping) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in value.items()
        ):
            raise fail()
        return dict(value)

    # _Kind.STRING_LIST_MAP
    if not isinstance(value, Mapping):
        raise fail()
    decoded_map: dict[str, list[str]] = {}
    for map_key, items in value.items():
        if not isinstance(map_key, str):
            raise fail()
        if items is None:
            decoded_map[map_key] = []
            continue
        if not isinstance(items, list) or not all(isinstance(i, str) for i in items):
            raise fail()
        decoded_map[map_key] = list(items)
    return decoded_map


def _encode(kind: _Kind, value: Any) -> Any:
    if kind is _Kind.OBJECT:
        return value.to_dict()
    if kind is _Kind.OBJECT_LIST:
        return [item.to_dict() for item in value]
    if kind is _Kind.STRING_LIST:
        return list(value)
    if kind is _Kind.STRING_MAP:
        return dict(value)
    if kind is _Kind.STRING_LIST_MAP:
        return {k: list(v) for k, v in value.items()}
    return value


def _copy(kind: _Kind, value: Any) -> Any:
    if value is None:
        return None
    if kind is _Kind.OBJECT:
        return value.clone()
    if kind is _Kind.OBJECT_LIST:
        return [item.clone() for item in value]
    if kind is _Kind.STRING_LIST:
        return list(value)
    if kind is _Kind.STRING_MAP:
        return dict(value)
    if kind is _Kind.STRING_LIST_MAP:
        return {k: list(v) for k, v in value.items()}
    return value


@dataclass
class KubeconfigObject:
    """Common behaviour of every kubeconfig object."""

    remaining: dict[str, Any] = field(default_factory=dict, kw_only=True)

    @classmethod
    def _schema(cls):
        return [f for f in fields(cls) if "key" in f.metadata]

    def clone(self: _T) -> _T:
        """Return a deep copy of this object."""
        target = type(self)()
        self.clone_into(target)
        return target

    def clone_into(self, target: KubeconfigObject) -> None:
        """Replace every value of ``target`` with a deep copy of this object's."""
        if type(target) is not type(self):
            raise TypeError(
                f"cannot clone {type(self).__name__} into {type(target).__name__}"
            )
        for f in self._schema():
            setattr(target, f.name, _copy(f.metadata["kind"], getattr(self, f.name)))
        target.remaining = copy.deepcopy(self.remaining) if self.remaining else {}

    def to_dict(self) -> dict[str, Any]:
        """Return the object as plain data, using the kubeconfig key names."""
        result: dict[str, Any] = {}
        for f in self._schema():
            value = getattr(self, f.name)
            kind = f.metadata["kind"]
            if value is None:
                continue
            if kind in _COLLECTION_KINDS and not value:
                continue
            result[f.metadata["key"]] = _encode(kind, value)
        for key, value in (self.remaining or {}).items():
            result.setdefault(key, copy.deepcopy(value))
        return result

    @classmethod
    def from_dict(cls: type[_T], data: Any) -> _T:
        """Build the object from plain data read from a kubeconfig document."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise KubeconfigTypeError(cls.__name__, "", data, "mapping")

        values: dict[str, Any] = {}
        known: set[Any] = set()
        for f in cls._schema():
            key = f.metadata["key"]
            known.add(key)
            if key not in data or data[key] is None:
                continue
            values[f.name] = _decode(
                cls.__name__,
                key,
                f.metadata["kind"],
                f.metadata["item_type"],
                data[key],
            )

        remaining = {k: v for k, v in data.items() if k not in known}
        return cls(**values, remaining=remaining)


@dataclass
class Extension(KubeconfigObject):
    """An extension object: an apiVersion and kind with unstructured data."""

    api_version: Optional[str] = _field("apiVersion", _Kind.STRING)
    kind: Optional[str] = _field("kind", _Kind.STRING)

    def matches(self, api_version: str, kind: str) -> bool:
        """Return True if the extension has the given apiVersion and kind."""
        return (
            self.api_version is not None
            and self.api_version == api_version
            and self.kind is not None
            and self.kind == kind
        )


@dataclass
class NamedExtension(KubeconfigObject):
    """Provides a name for an Extension."""

    name: Optional[str] = _field("name", _Kind.STRING)
    extension: Optional[Extension] = _field("extension", _Kind.OBJECT, Extension)


@dataclass
class ExecEnvVar(KubeconfigObject):
    """An environment variable given to an external authentication command."""

    name: Optional[str] = _field("name", _Kind.STRING)
    value: Optional[str] = _field("value", _Kind.STRING)


@dataclass
class ExecConfig(KubeconfigObject):
    """An external command used for authentication."""

    command: Optional[str] = _field("command", _Kind.STRING)
    args: Optional[list[str]] = _field("args", _Kind.STRING_LIST)
    env: Optional[list[ExecEnvVar]] = _field("env", _Kind.OBJECT_LIST, ExecEnvVar)
    api_version: Optional[str] = _field("apiVersion", _Kind.STRING)
    install_hint: Optional[str] = _field("installHint", _Kind.STRING)
    provide_cluster_info: Optional[bool] = _field("providerClusterInfo", _Kind.BOOL)
    interactive_mode: Optional[str] = _field("interactiveMode", _Kind.STRING)


@dataclass
class AuthProviderConfig(KubeconfigObject):
    """An authentication provider and its configuration."""

    name: Optional[str] = _field("name", _Kind.STRING)
    config: Optional[dict[str, str]] = _field("config", _Kind.STRING_MAP)


@dataclass
class AuthInfo(KubeconfigObject):
    """The authentication method for a user."""

    client_certificate_file: Optional[str] = _field("client-certificate", _Kind.STRING)
    client_certificate_data: Optional[str] = _field(
        "client-certificate-data", _Kind.STRING
    )
    client_key_file: Optional[str] = _field("client-key", _Kind.STRING)
    client_key_data: Optional[str] = _field("client-key-data", _Kind.STRING)
    token_file: Optional[str] = _field("tokenFile", _Kind.STRING)
    token: Optional[str] = _field("token", _Kind.STRING)
    as_user: Optional[str] = _field("as", _Kind.STRING)
    as_uid: Optional[str] = _field("as-uid", _Kind.STRING)
    as_groups: Optional[list[str]] = _field("as-groups", _Kind.STRING_LIST)
    as_user_extra: Optional[dict[str, list[str]]] = _field(
        "as-user-extra", _Kind.STRING_LIST_MAP
    )
    username: Optional[str] = _field("username", _Kind.STRING)
    password: Optional[str] = _field("password", _Kind.STRING)
    auth_provider: Optional[AuthProviderConfig] = _field(
        "auth-provider", _Kind.OBJECT, AuthProviderConfig
    )
    exec_config: Optional[ExecConfig] = _field("exec", _Kind.OBJECT, ExecConfig)
    extensions: Optional[list[NamedExtension]] = _field(
        "extensions", _Kind.OBJECT_LIST, NamedExtension
    )


@dataclass
class NamedAuthInfo(KubeconfigObject):
    """Provides a name for an AuthInfo."""

    name: Optional[str] = _field("name", _Kind.STRING)
    user: Optional[AuthInfo] = _field("user", _Kind.OBJECT, AuthInfo)


@dataclass
class Context(KubeconfigObject):
    """A cluster, a user to authenticate with, and a namespace to work in."""

    cluster: Optional[str] = _field("cluster", _Kind.STRING)
    user: Optional[str] = _field("user", _Kind.STRING)
    namespace: Optional[str] = _field("namespace", _Kind.STRING)
    extensions: Optional[list[NamedExtension]] = _field(
        "extensions", _Kind.OBJECT_LIST, NamedExtension
    )


@dataclass
class NamedContext(KubeconfigObject):
    """Provides a name for a Context."""

    name: Optional[str] = _field("name", _Kind.STRING)
    context: Optional[Context] = _field("context", _Kind.OBJECT, Context)


@dataclass
class Cluster(KubeconfigObject):
    """How to communicate with a Kubernetes cluster."""

    server: Optional[str] = _field("server", _Kind.STRING)
    tls_server_name: Optional[str] = _field("tls-server-name", _Kind.STRING)
    insecure_skip_tls_verify: Optional[bool] = _field(
        "insecure-skip-tls-verify", _Kind.BOOL
    )
    certificate_authority_file: Optional[str] = _field(
        "certificate-authority", _Kind.STRING
    )
    certificate_authority_data: Optional[str] = _field(
        "certificate-authority-data", _Kind.STRING
    )
    proxy_url: Optional[str] = _field("proxy-url", _Kind.STRING)
    disable_compression: Optional[bool] = _field("disable-compression", _Kind.BOOL)
    extensions: Optional[list[NamedExtension]] = _field(
        "extensions", _Kind.OBJECT_LIST, NamedExtension
    )


@dataclass
class NamedCluster(KubeconfigObject):
    """Provides a name for a Cluster."""

    name: Optional[str] = _field("name", _Kind.STRING)
    cluster: Optional[Cluster] = _field("cluster", _Kind.OBJECT, Cluster)


@dataclass
class Preferences(KubeconfigObject):
    """Client preferences (deprecated in favour of kuberc)."""

    colors: Optional[bool] = _field("colors", _Kind.BOOL)
    extensions: Optional[list[NamedExtension]] = _field(
        "extensions", _Kind.OBJECT_LIST, NamedExtension
    )


@dataclass
class Config(KubeconfigObject):
    """The root of a kubeconfig file."""

    api_version: Optional[str] = _field("apiVersion", _Kind.STRING)
    kind: Optional[str] = _field("kind", _Kind.STRING)
    current_context: Optional[str] = _field("current-context", _Kind.STRING)
    preferences: Optional[Preferences] = _field(
        "preferences", _Kind.OBJECT, Preferences
    )
    clusters: Optional[list[NamedCluster]] = _field(
        "clusters", _Kind.OBJECT_LIST, NamedCluster
    )
    contexts: Optional[list[NamedContext]] = _field(
        "contexts", _Kind.OBJECT_LIST, NamedContext
    )
    auth_infos: Optional[list[NamedAuthInfo]] = _field(
        "users", _Kind.OBJECT_LIST, NamedAuthInfo
    )
    extensions: Optional[list[NamedExtension]] = _field(
        "extensions", _Kind.OBJECT_LIST, NamedExtension
    )