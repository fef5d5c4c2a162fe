"""
mapper.py - external → internal path mapping artifacts
======================================================

The artifact mirrors the external payload:

* a string value is a leaf; the string is the absolute internal target path
  (``"extra/assigned_to"``);
* a dict value is a structural sub-node (object or reference);
* collections live under ``"<name>[]"`` and carry ``_target_path``; inside
  them every ``[]`` segment stands for "the current item";
* one-of properties are entries of the ``_oneOfs`` list of the node that
  holds them.  An entry maps each variant name to that variant's own
  sub-node (rooted at the one-of value) and records ``_discriminator`` or
  ``_variant_schemas`` and, when named, ``_variant_path``;
* nullable one-ofs and structural nodes carry ``_nullable``,
  ``_nullable_path`` and, when it differs, ``_nullable_target_path``.

Target rules: a property without ``map`` lands at ``<parent target>/<name>``;
a relative ``map`` replaces the name (``<parent target>/<map>``); an
absolute ``map`` (leading ``/``) starts from the current map scope, which is
the schema root, the current collection item or the current reference splice.

Public API
----------
build_mapping(version, *, ctx) -> dict
check_unique(artifact)
select(artifact, path) -> dict
flatten(artifact) -> list[dict]
invert(artifact) -> dict
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Optional, Sequence

from . import builder, utils
from .errors import MappingError, PropertyNotFound
from .properties import Kind, Property
from .registry import BuildContext

__all__ = ["build_mapping", "check_unique", "select", "flatten", "invert"]

logger = logging.getLogger(__name__)

Segments = list[str]

# --------------------------------------------------------------------------- #
# Targets                                                                     #
# --------------------------------------------------------------------------- #

def _target(prop: Property, prefix: Segments, scope: Segments) -> Segments:
    if prop.map is None:
        return [*prefix, prop.name]
    segments = utils.split_path(prop.map)
    return [*scope, *segments] if utils.is_absolute(prop.map) else [*prefix, *segments]


def _item_path(target: Segments) -> Segments:
    return [*target[:-1], utils.item_key(target[-1])]


def _mark_nullable(node: dict[str, Any], prop: Property, ext: Segments, target: Segments) -> None:
    if not prop.nullable:
        return
    node["_nullable"] = True
    node["_nullable_path"] = utils.join_path(ext)
    if ext != target:
        node["_nullable_target_path"] = utils.join_path(target)

# --------------------------------------------------------------------------- #
# Tree walk                                                                   #
# --------------------------------------------------------------------------- #

def _map_children(node: dict[str, Any], children, ext: Segments, prefix: Segments, scope: Segments, ctx: BuildContext) -> None:
    for name, prop in children.items():
        _map_property(node, name, prop, ext, prefix, scope, ctx)


def _map_property(node: dict[str, Any], name: str, prop: Property, ext: Segments, prefix: Segments, scope: Segments,
                  ctx: BuildContext, *, target: Optional[Segments] = None, splice: bool = False) -> None:
    if target is None:
        target = _target(prop, prefix, scope)
    own_ext = [*ext, name]
    inner_scope = target if splice else scope

    if prop.kind.is_leaf:
        if not target:
            raise MappingError(f"'{utils.join_path(own_ext)}' cannot be mapped to the root")
        node[name] = utils.join_path(target)

    elif prop.kind is Kind.OBJECT:
        sub: dict[str, Any] = {}
        _map_children(sub, prop.children, own_ext, target, inner_scope, ctx)
        _mark_nullable(sub, prop, own_ext, target)
        node[name] = sub

    elif prop.kind is Kind.REFERENCE:
        _map_reference(node, name, prop, ext, target, ctx)

    elif prop.kind is Kind.COLLECTION:
        item_ext = [*ext, utils.item_key(name)]
        sub = _map_item(prop.item, item_ext, _item_path(target), ctx)
        sub["_target_path"] = utils.join_path(target)
        _mark_nullable(sub, prop, own_ext, target)
        node[utils.item_key(name)] = sub

    else:
        node.setdefault("_oneOfs", []).append(_one_of_entry(prop, own_ext, target, inner_scope, ctx))


def _map_reference(node: dict[str, Any], name: str, prop: Property, ext: Segments, target: Segments, ctx: BuildContext) -> None:
    _, version, referenced, sub_ctx = ctx.dereference(prop.payload)
    if prop.payload.property_name is not None:
        # a narrowed reference behaves like the narrowed property, renamed
        renamed = referenced.replace(name=name, nullable=prop.nullable or referenced.nullable, required=prop.required)
        _map_property(node, name, renamed, ext, [], [], sub_ctx, target=target, splice=True)
        return
    sub = _map_root(version.root, [*ext, name], target, sub_ctx)
    _mark_nullable(sub, prop, [*ext, name], target)
    node[name] = sub


def _map_root(root: Property, ext: Segments, target: Segments, ctx: BuildContext) -> dict[str, Any]:
    """Map a whole referenced root; *target* becomes its map scope."""
    sub: dict[str, Any] = {}
    if root.kind is Kind.ONE_OF:
        sub["_oneOfs"] = [_one_of_entry(root, ext, target, target, ctx)]
    else:
        _map_children(sub, root.children, ext, target, target, ctx)
    return sub


def _splice(ref_prop: Property, ext: Segments, target: Segments, ctx: BuildContext) -> dict[str, Any]:
    """Map the object or one-of a reference points at, rooted at *target*."""
    _, _, referenced, sub_ctx = ctx.dereference(ref_prop.payload)
    if referenced.kind not in (Kind.OBJECT, Kind.ONE_OF):
        raise MappingError(f"'{utils.join_path(ext) or '/'}' must reference an object or a one-of, not a {referenced.kind.value}")
    return _map_root(referenced.replace(name=None, map=None), ext, target, sub_ctx)


def _map_item(item: Property, ext: Segments, target: Segments, ctx: BuildContext) -> dict[str, Any]:
    """Map a collection item; the item is its own map scope."""
    if item.kind is Kind.REFERENCE:
        return _splice(item, ext, target, ctx)
    if item.kind is Kind.ONE_OF:
        return {"_oneOfs": [_one_of_entry(item, ext, target, target, ctx)]}
    sub: dict[str, Any] = {}
    _map_children(sub, item.children, ext, target, target, ctx)
    return sub


def _one_of_entry(prop: Property, ext: Segments, target: Segments, scope: Segments, ctx: BuildContext) -> dict[str, Any]:
    entry: dict[str, Any] = {}
    for name, variant in prop.variants.items():
        vtarget = target if variant.map is None else _target(variant, target, scope)
        if variant.kind is Kind.REFERENCE:
            entry[name] = _splice(variant, ext, vtarget, ctx)
        else:
            vnode: dict[str, Any] = {}
            _map_children(vnode, variant.children, ext, vtarget, scope, ctx)
            entry[name] = vnode

    if prop.discriminator:
        entry["_discriminator"] = utils.join_path([*ext, prop.discriminator])
    else:
        entry["_variant_schemas"] = {
            name: builder.render_property(variant, ctx=ctx) for name, variant in prop.variants.items()
        }
    if prop.name is not None:
        entry["_variant_path"] = utils.join_path(ext)
    _mark_nullable(entry, prop, ext, target)
    return entry

# --------------------------------------------------------------------------- #
# Collision check                                                             #
# --------------------------------------------------------------------------- #

def _collect(node: dict[str, Any], ext: Segments) -> tuple[list[tuple[str, str]], list[tuple[dict, Segments]]]:
    """Return ``(leaves, one_of_entries)`` of *node*, not descending into entries."""
    leaves: list[tuple[str, str]] = []
    entries: list[tuple[dict, Segments]] = []
    for key, value in node.items():
        if key == "_oneOfs":
            entries.extend((entry, ext) for entry in value)
        elif key in utils.RESERVED_KEYS:
            continue
        elif isinstance(value, str):
            leaves.append((utils.join_path([*ext, key]), value))
        else:
            if "_target_path" in value:
                leaves.append((utils.join_path([*ext, key]), value["_target_path"]))
            sub_leaves, sub_entries = _collect(value, [*ext, key])
            leaves.extend(sub_leaves)
            entries.extend(sub_entries)
    return leaves, entries


def _variants(entry: dict[str, Any]) -> Iterator[tuple[str, dict[str, Any]]]:
    for key, value in entry.items():
        if key not in utils.RESERVED_KEYS:
            yield key, value


def _claim(seen: dict[str, str], target: str, source: str) -> None:
    if target in seen:
        raise MappingError(f"Mapping target '{target}' is used by both '{seen[target]}' and '{source}'")
    segments = utils.split_path(target)
    for i in range(1, len(segments)):
        parent = utils.join_path(segments[:i])
        if parent in seen:
            raise MappingError(f"Mapping target '{parent}' (from '{seen[parent]}') is also the parent of '{target}'")
    prefix = f"{target}/"
    for other in seen:
        if other.startswith(prefix):
            raise MappingError(f"Mapping target '{target}' (from '{source}') is also the parent of '{other}'")
    seen[target] = source


def _check(node: dict[str, Any], ext: Segments, seen: dict[str, str], tag: str = "") -> dict[str, str]:
    """Check *node* against *seen*; return *seen* plus every target *node* claims.

    Variants of one entry are checked against what precedes the entry, never
    against each other; the union of their targets is claimed for the rest.
    """
    leaves, entries = _collect(node, ext)
    seen = dict(seen)
    for source, target in leaves:
        _claim(seen, target, f"{source}{tag}")

    for entry, entry_ext in entries:
        base = utils.split_path(entry.get("_variant_path")) or entry_ext
        claimed = dict(seen)
        for name, variant in _variants(entry):
            claimed.update(_check(variant, base, seen, f"{tag} ({name})"))
        seen = claimed
    return seen


def check_unique(artifact: dict[str, Any]) -> None:
    """Raise :class:`MappingError` when two properties share a target path."""
    _check(artifact, [], {})

# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #

def build_mapping(version, *, ctx: BuildContext) -> dict[str, Any]:
    """Build and check the mapping artifact of a resolved *version*."""
    artifact = _map_root(version.root, [], [], ctx)
    check_unique(artifact)
    logger.debug("Built mapping for version %s", version.identifier)
    return artifact


def select(artifact: dict[str, Any], path: str) -> dict[str, Any]:
    """Return the part of *artifact* produced by the property at *path*."""
    node = artifact
    segments = utils.split_path(path)
    if not segments:
        raise PropertyNotFound(f"Empty property path: {path!r}")
    for i, seg in enumerate(segments):
        last = i == len(segments) - 1
        if seg in node and seg not in utils.RESERVED_KEYS:
            if last:
                return {seg: node[seg]}
            node = node[seg]
        elif utils.item_key(seg) in node:
            if last:
                return {utils.item_key(seg): node[utils.item_key(seg)]}
            node = node[utils.item_key(seg)]
        else:
            entry = _find_entry(node, seg)
            if entry is None:
                raise PropertyNotFound(f"Property '{path}' not found in mapping (no '{seg}')")
            if last:
                return {"_oneOfs": [entry]}
            raise PropertyNotFound(f"Property '{path}': cannot select inside one-of '{seg}'")
        if isinstance(node, str):
            raise PropertyNotFound(f"Property '{path}': '{seg}' is a leaf")
    return node


def _find_entry(node: dict[str, Any], name: str) -> Optional[dict[str, Any]]:
    for entry in node.get("_oneOfs", ()):
        path = utils.split_path(entry.get("_variant_path"))
        if path and path[-1] == name:
            return entry
    return None


def flatten(artifact: dict[str, Any]) -> list[dict[str, Any]]:
    """Every leaf as ``{"external", "internal", "variant"}``, in artifact order.

    ``variant`` is ``None`` outside one-ofs, otherwise ``"<one-of path>:<name>"``
    (nested one-ofs join with ``>``).
    """
    rows: list[dict[str, Any]] = []
    _flatten(artifact, [], None, rows)
    return rows


def _flatten(node: dict[str, Any], ext: Sequence[str], variant: Optional[str], rows: list) -> None:
    for key, value in node.items():
        if key == "_oneOfs":
            for entry in value:
                base = utils.split_path(entry.get("_variant_path")) or list(ext)
                for name, sub in _variants(entry):
                    tag = f"{utils.join_path(base) or '/'}:{name}"
                    _flatten(sub, base, f"{variant}>{tag}" if variant else tag, rows)
        elif key in utils.RESERVED_KEYS:
            continue
        elif isinstance(value, str):
            rows.append({"external": utils.join_path([*ext, key]), "internal": value, "variant": variant})
        else:
            _flatten(value, [*ext, key], variant, rows)


def invert(artifact: dict[str, Any]) -> dict[str, str]:
    """Internal → external path pairs (the first external path wins)."""
    out: dict[str, str] = {}
    for row in flatten(artifact):
        out.setdefault(row["internal"], row["external"])
    return out
