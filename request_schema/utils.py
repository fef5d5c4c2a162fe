"""
utils.py – shared, low-level helpers for the request-schema package.

This module consolidates common helpers for:
- Path expressions (``a/b/c``, root-escaping ``/a/b``, collection ``items[]``)
- Reserved mapping keys
- Schema-option key conversion (snake_case → camelCase)
- JSON pointers
- Read-only views over declaration data
"""

from __future__ import annotations

import copy
from types import MappingProxyType
from typing import Any, Iterable, Mapping

# --------------------------------------------------------------------------- #
# Path expressions                                                            #
# --------------------------------------------------------------------------- #

SEPARATOR = "/"
ITEM_SUFFIX = "[]"

RESERVED_KEYS = frozenset({
    "_oneOfs",
    "_discriminator",
    "_variant_schemas",
    "_variant_path",
    "_nullable",
    "_nullable_path",
    "_nullable_target_path",
    "_target_path",
})


def is_absolute(path: str | None) -> bool:
    """True iff *path* starts with the root-escaping marker."""
    return bool(path) and path.startswith(SEPARATOR)


def split_path(path: str | None) -> list[str]:
    """Split a path expression into its non-empty segments."""
    if not path:
        return []
    return [part for part in path.split(SEPARATOR) if part]


def join_path(segments: Iterable[str]) -> str:
    return SEPARATOR.join(segments)


def item_key(name: str) -> str:
    """Key used for the items of collection *name*."""
    return f"{name}{ITEM_SUFFIX}"


def is_item_key(key: str) -> bool:
    return key.endswith(ITEM_SUFFIX)


def strip_item(key: str) -> str:
    return key[: -len(ITEM_SUFFIX)] if is_item_key(key) else key


def json_pointer(tokens: Iterable[Any]) -> str:
    """Return a URI-fragment JSON pointer (``#/properties/a``) for *tokens*."""
    escaped = [str(t).replace("~", "~0").replace("/", "~1") for t in tokens]
    return "#" + "".join(f"/{t}" for t in escaped)


def data_pointer(tokens: Iterable[Any]) -> str:
    """Return a plain JSON pointer (``/a/0/b``) into a payload."""
    escaped = [str(t).replace("~", "~0").replace("/", "~1") for t in tokens]
    return "".join(f"/{t}" for t in escaped)

# --------------------------------------------------------------------------- #
# Schema options                                                              #
# --------------------------------------------------------------------------- #

def snake_to_camel(name: str) -> str:
    """``max_length`` → ``maxLength``; already-camel names pass through."""
    head, *rest = name.split("_")
    return head + "".join(word[:1].upper() + word[1:] for word in rest)


def camelize(options: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of *options* with camelCase keys."""
    return {snake_to_camel(str(k)): v for k, v in options.items()}


def freeze(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    """Return a read-only shallow copy of *mapping*."""
    return MappingProxyType(dict(mapping or {}))


def thaw(value: Any) -> Any:
    """Deep-copy *value* into plain, mutable dicts and lists."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(v) for v in value]
    return copy.deepcopy(value)
