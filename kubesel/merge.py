"""Merging kubeconfig documents the way kubectl does."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Optional, TypeVar

from kubesel.kubeconfig import Config, Preferences

__all__ = ["merge_config"]

_T = TypeVar("_T")


def merge_config(first: Config, other: Config) -> Config:
    """Merge two configs: the first definition wins and values are never merged.

    Named lists (clusters, contexts, users, extensions) keep every named entry
    of ``first`` and add the entries of ``other`` whose names are new. Entries
    without a name are dropped.
    """
    return Config(
        api_version=_first_set(first.api_version, other.api_version),
        kind=_first_set(first.kind, other.kind),
        current_context=_first_set(first.current_context, other.current_context),
        preferences=_merge_preferences(first.preferences, other.preferences),
        clusters=_merge_named(first.clusters, other.clusters),
        contexts=_merge_named(first.contexts, other.contexts),
        auth_infos=_merge_named(first.auth_infos, other.auth_infos),
        extensions=_merge_named(first.extensions, other.extensions),
        remaining=_merge_remaining(first.remaining, other.remaining),
    )


def _first_set(first: Optional[_T], other: Optional[_T]) -> Optional[_T]:
    return first if first is not None else other


def _merge_preferences(
    first: Optional[Preferences], other: Optional[Preferences]
) -> Optional[Preferences]:
    if other is None:
        return first
    if first is None:
        return other
    return Preferences(
        colors=_first_set(first.colors, other.colors),
        extensions=_merge_named(first.extensions, other.extensions),
        remaining=_merge_remaining(first.remaining, other.remaining),
    )


def _merge_named(first: Optional[Iterable[Any]], other: Optional[Iterable[Any]]) -> list:
    merged = []
    seen: set[str] = set()

    for item in first or ():
        if item.name is not None:
            merged.append(item)
            seen.add(item.name)

    for item in other or ():
        if item.name is not None and item.name not in seen:
            merged.append(item)
            seen.add(item.name)

    return merged


def _merge_remaining(
    first: Optional[Mapping[str, Any]], other: Optional[Mapping[str, Any]]
) -> dict[str, Any]:
    # A shallow merge; keys present in both take the first map's value.
    return {**(other or {}), **(first or {})}