"""
processor.py - apply a mapping artifact to an external payload.

The walk follows the payload and the artifact in lock-step.  Leaves copy the
value to their internal target; collections pre-create their target list and
walk each item with its index pushed on the index stack (every ``[]`` in a
target consumes one index); one-of entries resolve their variant first and
then walk that variant's sub-node.  A null at a nullable node is written once
at the node's target without descending.

Public API
----------
Processor(mapping, validator_cls)
    ``transform(payload) -> (result, errors)``.
insert_defaults(root, payload, ctx) -> dict
    Fill in ``default`` schema options for missing object keys.
"""

from __future__ import annotations

import copy
from typing import Any, Mapping, Sequence

from jsonschema import Draft202012Validator

from . import utils
from .errors import ResolutionError
from .one_of import OneOfResolver
from .properties import Kind, Property
from .registry import BuildContext

__all__ = ["Processor", "insert_defaults"]

# --------------------------------------------------------------------------- #
# Writing                                                                     #
# --------------------------------------------------------------------------- #

def _assign(out: dict[str, Any], target: str, indexes: Sequence[int], value: Any) -> None:
    segments = utils.split_path(target)
    if not segments:
        return
    positions = iter(indexes)
    container: Any = out
    for seg in segments[:-1]:
        if utils.is_item_key(seg):
            container = container[utils.strip_item(seg)][next(positions)]
        else:
            container = container.setdefault(seg, {})
    last = segments[-1]
    if utils.is_item_key(last):
        container[utils.strip_item(last)][next(positions)] = value
    else:
        container[last] = value


# --------------------------------------------------------------------------- #
# Processor                                                                   #
# --------------------------------------------------------------------------- #

class Processor:
    """Transforms external payloads with one prebuilt mapping artifact."""

    def __init__(self, mapping: Mapping[str, Any], validator_cls: type = Draft202012Validator):
        self.mapping = mapping
        self._resolvers: dict[int, OneOfResolver] = {}
        self._compile(mapping, validator_cls)

    def _compile(self, node: Mapping[str, Any], validator_cls: type) -> None:
        for key, value in node.items():
            if key == "_oneOfs":
                for entry in value:
                    self._resolvers[id(entry)] = OneOfResolver(entry, validator_cls)
                    for name in self._resolvers[id(entry)].variants:
                        self._compile(entry[name], validator_cls)
            elif key not in utils.RESERVED_KEYS and isinstance(value, Mapping):
                self._compile(value, validator_cls)

    def transform(self, payload: Mapping[str, Any]) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        """Return ``(internal_payload, errors)``; errors come from one-of resolution."""
        out: dict[str, Any] = {}
        errors: list[dict[str, Any]] = []
        self._walk(self.mapping, payload, out, (), (), errors)
        return out, errors

    # walk ----------------------------------------------------------------
    def _walk(self, node, value, out, indexes, pointer, errors) -> None:
        if isinstance(value, Mapping):
            for key, sub in node.items():
                if key in utils.RESERVED_KEYS:
                    continue
                if utils.is_item_key(key):
                    self._walk_collection(sub, value, utils.strip_item(key), out, indexes, pointer, errors)
                elif key in value:
                    self._walk_value(sub, value[key], out, indexes, (*pointer, key), errors)
        for entry in node.get("_oneOfs", ()):
            self._walk_one_of(entry, value, out, indexes, pointer, errors)

    def _walk_value(self, sub, value, out, indexes, pointer, errors) -> None:
        if isinstance(sub, str):
            _assign(out, sub, indexes, copy.deepcopy(value))
        elif value is None:
            if sub.get("_nullable"):
                _assign(out, sub.get("_nullable_target_path", sub["_nullable_path"]), indexes, None)
        else:
            self._walk(sub, value, out, indexes, pointer, errors)

    def _walk_collection(self, sub, parent, name, out, indexes, pointer, errors) -> None:
        if name not in parent:
            return
        items = parent[name]
        if items is None:
            _assign(out, sub["_target_path"], indexes, None)
            return
        if not isinstance(items, list):
            return
        _assign(out, sub["_target_path"], indexes, [{} for _ in items])
        for position, item in enumerate(items):
            self._walk(sub, item, out, (*indexes, position), (*pointer, name, position), errors)

    def _walk_one_of(self, entry, parent, out, indexes, pointer, errors) -> None:
        if "_variant_path" in entry:
            key = utils.split_path(entry["_variant_path"])[-1]
            if not isinstance(parent, Mapping) or key not in parent:
                return
            value, pointer = parent[key], (*pointer, key)
        else:
            value = parent

        try:
            variant = self._resolvers[id(entry)].select_variant(value, pointer=utils.data_pointer(pointer))
        except ResolutionError as exc:
            errors.append(exc.as_error())
            return

        if variant is None:
            _assign(out, entry.get("_nullable_target_path", entry.get("_nullable_path", "")), indexes, None)
            return
        self._walk(entry[variant], value, out, indexes, pointer, errors)


# --------------------------------------------------------------------------- #
# Defaults                                                                    #
# --------------------------------------------------------------------------- #

def insert_defaults(root: Property, payload: Mapping[str, Any], ctx: BuildContext) -> dict[str, Any]:
    """Return a copy of *payload* with ``default`` values for missing keys."""
    out = copy.deepcopy(dict(payload))
    _fill(root, out, ctx)
    return out


def _object_of(prop: Property, ctx: BuildContext) -> tuple[Property | None, BuildContext]:
    if prop.kind is Kind.OBJECT:
        return prop, ctx
    if prop.kind is Kind.REFERENCE:
        _, _, node, sub = ctx.dereference(prop.payload)
        return (node, sub) if node.kind is Kind.OBJECT else (None, sub)
    return None, ctx


def _fill(prop: Property, value: Any, ctx: BuildContext) -> None:
    obj, ctx = _object_of(prop, ctx)
    if obj is None or not isinstance(value, dict):
        return
    for name, child in obj.children.items():
        if name not in value:
            if child.has_default:
                value[name] = copy.deepcopy(child.default)
            continue
        if child.kind is Kind.COLLECTION and isinstance(value[name], list):
            for item in value[name]:
                _fill(child.item, item, ctx)
        else:
            _fill(child, value[name], ctx)
