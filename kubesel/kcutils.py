"""Helpers for finding and decoding items inside kubeconfig objects."""

from __future__ import annotations

import inspect
import types
from collections.abc import Iterable, Mapping
from dataclasses import MISSING, fields, is_dataclass
from typing import Any, Optional, TypeVar, Union, get_args, get_origin

from kubesel.kubeconfig import (
    AuthInfo,
    Cluster,
    Config,
    Context,
    Extension,
    KubeconfigTypeError,
    NamedExtension,
    Preferences,
)

__all__ = [
    "extensions_from",
    "decode_extension",
    "encode_extension",
    "find_context",
    "find_cluster",
    "find_auth_info",
    "find_extension",
    "find_extensions_by_kind",
    "find_extension_from",
    "find_extensions_by_kind_from",
]

_T = TypeVar("_T")

_EXTENSIBLE = (Config, Cluster, AuthInfo, Context, Preferences)


def extensions_from(extensible: Any) -> list[NamedExtension]:
    """Return the named extensions attached to a kubeconfig object."""
    if not isinstance(extensible, _EXTENSIBLE):
        raise TypeError(f"unsupported type: {type(extensible).__name__}")
    return extensible.extensions or []


# --- extension decoding -----------------------------------------------------

_SIMPLE_NAMES: dict[str, Any] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "list": list,
    "List": list,
    "dict": dict,
    "Dict": dict,
    "Any": Any,
    "object": object,
    "None": type(None),
    "NoneType": type(None),
}


def _tag(f: Any) -> tuple[str, bool, bool]:
    """Return (key, inline, skip) from a field's ``json`` metadata tag."""
    tag = f.metadata.get("json", "")
    if tag == "-":
        return f.name, False, True
    name, *options = tag.split(",")
    return name or f.name, "inline" in options, False


def _split_top(text: str, sep: str) -> list[str]:
    """Split ``text`` on ``sep`` where it is not inside brackets."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
        if char == sep and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    parts.append("".join(current).strip())
    return parts


def _strip_typing(name: str) -> str:
    name = name.strip()
    return name[len("typing."):] if name.startswith("typing.") else name


def _resolve(annotation: Any, owner: type) -> Any:
    """Turn a string annotation into a type, as far as it can be known."""
    if not isinstance(annotation, str):
        return annotation

    text = annotation.strip().strip("'\"")

    alternatives = _split_top(text, "|")
    if len(alternatives) > 1:
        return Union[tuple(_resolve(part, owner) for part in alternatives)]

    if text.endswith("]") and "[" in text:
        head, inner = text.split("[", 1)
        head = _strip_typing(head)
        args = tuple(_resolve(part, owner) for part in _split_top(inner[:-1], ","))
        if head == "Optional" and len(args) == 1:
            return Optional[args[0]]
        if head == "Union" and args:
            return Union[args]
        if head in ("list", "List") and len(args) == 1:
            return list[args[0]]
        if head in ("dict", "Dict") and len(args) == 2:
            return dict[args[0], args[1]]
        return Any

    name = _strip_typing(text)
    if name in _SIMPLE_NAMES:
        return _SIMPLE_NAMES[name]

    module = inspect.getmodule(owner)
    found = getattr(module, name, None) if module is not None else None
    return found if isinstance(found, type) else Any


def _type_hints(cls: type) -> dict[str, Any]:
    return {f.name: _resolve(f.type, cls) for f in fields(cls)}


def _is_dataclass_type(tp: Any) -> bool:
    return isinstance(tp, type) and is_dataclass(tp)


def _is_union(origin: Any) -> bool:
    return origin is Union or origin is types.UnionType


def _lookup(data: Mapping[Any, Any], name: str) -> tuple[bool, Any]:
    if name in data:
        return True, data[name]
    folded = name.casefold()
    for key, value in data.items():
        if isinstance(key, str) and key.casefold() == folded:
            return True, value
    return False, None


def _zero(tp: Any) -> Any:
    origin = get_origin(tp)
    if _is_union(origin):
        return None
    if tp is list or origin is list:
        return []
    if tp is dict or origin is dict:
        return {}
    if _is_dataclass_type(tp):
        return _decode_struct(tp, {})
    if tp in (bool, int, float, str):
        return tp()
    return None


def _convert(tp: Any, value: Any, struct: str, key: str) -> Any:
    if tp is Any or tp is object:
        return value

    origin = get_origin(tp)
    if _is_union(origin):
        if value is None:
            return None
        options = [arg for arg in get_args(tp) if arg is not type(None)]
        if len(options) == 1:
            return _convert(options[0], value, struct, key)
        return value

    if value is None:
        return _zero(tp)

    def fail() -> KubeconfigTypeError:
        return KubeconfigTypeError(struct, key, value, getattr(tp, "__name__", str(tp)))

    if _is_dataclass_type(tp):
        if not isinstance(value, Mapping):
            raise fail()
        return _decode_struct(tp, value)

    if tp is list or origin is list:
        if not isinstance(value, (list, tuple)):
            raise fail()
        (item_type,) = get_args(tp) or (Any,)
        return [_convert(item_type, item, struct, key) for item in value]

    if tp is dict or origin is dict:
        if not isinstance(value, Mapping):
            raise fail()
        args = get_args(tp)
        value_type = args[1] if args else Any
        return {k: _convert(value_type, v, struct, key) for k, v in value.items()}

    if tp is bool:
        if not isinstance(value, bool):
            raise fail()
        return value

    if tp is int:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise fail()
        return int(value)

    if tp is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise fail()
        return float(value)

    if isinstance(tp, type) and not isinstance(value, tp):
        raise fail()
    return value


def _decode_struct(cls: type, data: Mapping[Any, Any]) -> Any:
    hints = _type_hints(cls)
    values: dict[str, Any] = {}

    for f in fields(cls):
        if not f.init:
            continue
        name, inline, skip = _tag(f)
        if skip:
            continue
        tp = hints.get(f.name, Any)

        if inline and _is_dataclass_type(tp):
            values[f.name] = _decode_struct(tp, data)
            continue

        found, raw = _lookup(data, name)
        if found:
            values[f.name] = _convert(tp, raw, cls.__name__, name)
        elif f.default is MISSING and f.default_factory is MISSING:
            values[f.name] = _zero(tp)

    return cls(**values)


def _encode_value(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return _encode_struct(value)
    if isinstance(value, (list, tuple)):
        return [_encode_value(item) for item in value]
    if isinstance(value, Mapping):
        return {k: _encode_value(v) for k, v in value.items()}
    return value


def _encode_struct(obj: Any) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for f in fields(obj):
        name, inline, skip = _tag(f)
        if skip:
            continue
        value = getattr(obj, f.name)
        if inline and is_dataclass(value) and not isinstance(value, type):
            result.update(_encode_struct(value))
        else:
            result[name] = _encode_value(value)
    return result


def decode_extension(extension: Extension, target_type: type[_T]) -> _T:
    """Decode an extension's unstructured data into a dataclass.

    Keys are matched by the field's ``json`` metadata tag, or by the field
    name, falling back to a case-insensitive match. A ``json`` tag with the
    ``inline`` option decodes a nested dataclass from the same mapping.
    Missing fields take their default, or the zero value of their type.
    """
    if not _is_dataclass_type(target_type):
        raise TypeError(f"cannot decode into {target_type!r}: not a dataclass")
    return _decode_struct(target_type, extension.remaining or {})


def encode_extension(value: Any, target: Extension) -> None:
    """Replace the unstructured data of ``target`` with the fields of ``value``.

    The apiVersion and kind of the extension are left untouched.
    """
    if not is_dataclass(value) or isinstance(value, type):
        raise TypeError(f"cannot encode {type(value).__name__}: not a dataclass")
    target.remaining = _encode_struct(value)


# --- finding named items ----------------------------------------------------


def find_context(name: str, config: Config) -> Optional[Context]:
    """Return the first context with the given name, or None."""
    return next(
        (item.context for item in config.contexts or () if item.name == name), None
    )


def find_cluster(name: str, config: Config) -> Optional[Cluster]:
    """Return the first cluster with the given name, or None."""
    return next(
        (item.cluster for item in config.clusters or () if item.name == name), None
    )


def find_auth_info(name: str, config: Config) -> Optional[AuthInfo]:
    """Return the first user with the given name, or None."""
    return next(
        (item.user for item in config.auth_infos or () if item.name == name), None
    )


def find_extension(
    name: str, extensions: Optional[Iterable[NamedExtension]]
) -> Optional[Extension]:
    """Return the first extension with the given name, or None."""
    return next(
        (item.extension for item in extensions or () if item.name == name), None
    )


def find_extensions_by_kind(
    api_version: str, kind: str, extensions: Optional[Iterable[NamedExtension]]
) -> list[Extension]:
    """Return every named extension with the given apiVersion and kind."""
    return [
        item.extension
        for item in extensions or ()
        if item.name is not None
        and item.extension is not None
        and item.extension.matches(api_version, kind)
    ]


def find_extension_from(name: str, extensible: Any) -> Optional[Extension]:
    """Return the first extension with the given name on a kubeconfig object."""
    return find_extension(name, extensions_from(extensible))


def find_extensions_by_kind_from(
    api_version: str, kind: str, extensible: Any
) -> list[Extension]:
    """Return the extensions with the given apiVersion and kind on an object."""
    return find_extensions_by_kind(api_version, kind, extensions_from(extensible))