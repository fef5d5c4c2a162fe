"""
builder.py - render a resolved property tree as a JSON Schema document.

Public API
----------
build_schema(version, *, ctx, refs=False) -> dict
    The whole version.  With ``refs=True`` references render as
    ``{"$ref": "#/components/schemas/<Name>"}`` (OpenAPI components) instead
    of being inlined.
render_property(prop, *, ctx, refs=False) -> dict
    One property (used for narrowed schemas and one-of variant schemas).
component_ref(name, property=None) -> str
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from . import utils
from .properties import DependentOn, Kind, Property, Unconditional
from .registry import BuildContext

__all__ = ["build_schema", "render_property", "render_root", "component_ref", "COMPONENTS_PREFIX"]

logger = logging.getLogger(__name__)

COMPONENTS_PREFIX = "#/components/schemas/"

# --------------------------------------------------------------------------- #
# Helpers                                                                     #
# --------------------------------------------------------------------------- #

def component_ref(name: str, property: str | None = None) -> str:
    ref = COMPONENTS_PREFIX + name
    for seg in utils.split_path(property):
        ref += f"/properties/{seg}"
    return ref


def _nullable_type(type_name: Any, nullable: bool) -> Any:
    if not nullable:
        return type_name
    types = list(type_name) if isinstance(type_name, (list, tuple)) else [type_name]
    if "null" not in types:
        types.append("null")
    return types


def _allow_null(schema: dict[str, Any]) -> dict[str, Any]:
    """Accept ``null`` on an already rendered schema."""
    if "type" in schema:
        schema["type"] = _nullable_type(schema["type"], True)
        if "enum" in schema and None not in schema["enum"]:
            schema["enum"] = list(schema["enum"]) + [None]
        return schema
    return {"anyOf": [schema, {"type": "null"}]}


def _with_options(schema: dict[str, Any], prop: Property) -> dict[str, Any]:
    schema.update(utils.thaw(prop.schema_options))
    return schema

# --------------------------------------------------------------------------- #
# Kind renderers                                                              #
# --------------------------------------------------------------------------- #

def _field(prop: Property, ctx: BuildContext) -> dict[str, Any]:
    json_type, options = ctx.config.field_type(prop.payload.type)
    schema = {"type": _nullable_type(json_type, prop.nullable), **options}
    return _with_options(schema, prop)


def _array(prop: Property, ctx: BuildContext) -> dict[str, Any]:
    json_type, options = ctx.config.field_type(prop.payload.type)
    items = {"type": json_type, **options, **utils.thaw(prop.payload.item_schema_options)}
    return _with_options({"type": _nullable_type("array", prop.nullable), "items": items}, prop)


def _const(prop: Property, ctx: BuildContext) -> dict[str, Any]:
    return _with_options({"const": prop.payload.value}, prop)


def _enum(prop: Property, ctx: BuildContext) -> dict[str, Any]:
    values = list(prop.payload.values)
    if prop.nullable and None not in values:
        values.append(None)
    return _with_options({"enum": values}, prop)


def _object(prop: Property, ctx: BuildContext, refs: bool, pointer: Sequence[Any]) -> dict[str, Any]:
    properties: dict[str, Any] = {}
    required: list[str] = []
    dependent: dict[str, list[str]] = {}
    for name, child in prop.children.items():
        properties[name] = _render(child, ctx, refs, [*pointer, "properties", name])
        if isinstance(child.required, Unconditional) and child.required.value:
            required.append(name)
        elif isinstance(child.required, DependentOn):
            dependent[name] = list(child.required.names)

    schema: dict[str, Any] = {
        "type": _nullable_type("object", prop.nullable),
        "required": required,
        "properties": properties,
    }
    if ctx.config.default_additional_properties is not None:
        schema["additionalProperties"] = ctx.config.default_additional_properties
    if dependent:
        # draft 7 spells dependentRequired as array-valued "dependencies"
        keyword = "dependencies" if ctx.config.json_schema_version == "draft7" else "dependentRequired"
        schema[keyword] = dependent
    return _with_options(schema, prop)


def _collection(prop: Property, ctx: BuildContext, refs: bool, pointer: Sequence[Any]) -> dict[str, Any]:
    schema = {
        "type": _nullable_type("array", prop.nullable),
        "items": _render(prop.item, ctx, refs, [*pointer, "items"]),
    }
    return _with_options(schema, prop)


def _reference(prop: Property, ctx: BuildContext, refs: bool, pointer: Sequence[Any]) -> dict[str, Any]:
    ref = prop.payload
    if refs:
        schema = ctx.schema_for(ref)
        rendered: dict[str, Any] = {"$ref": component_ref(schema.component_name, ref.property_name)}
    else:
        _, version, node, sub = ctx.dereference(ref)
        if ref.property_name is None:
            rendered = render_root(version, sub, False, pointer)
        else:
            rendered = _render(node, sub, False, pointer)
    return _allow_null(rendered) if prop.nullable else rendered


def _one_of(prop: Property, ctx: BuildContext, refs: bool, pointer: Sequence[Any]) -> dict[str, Any]:
    branches: list[dict[str, Any]] = []
    mapping: dict[str, str] = {}
    for index, (name, variant) in enumerate(prop.variants.items()):
        branch = _render(variant, ctx, refs, [*pointer, "oneOf", index])
        branches.append(branch)
        mapping[name] = branch.get("$ref") or utils.json_pointer([*pointer, "oneOf", index])
    if prop.nullable:
        branches.append({"type": "null"})

    schema: dict[str, Any] = {"oneOf": branches}
    if prop.discriminator:
        schema["discriminator"] = {"propertyName": prop.discriminator, "mapping": mapping}
    return _with_options(schema, prop)


def _render(prop: Property, ctx: BuildContext, refs: bool, pointer: Sequence[Any]) -> dict[str, Any]:
    kind = prop.kind
    if kind is Kind.FIELD:
        return _field(prop, ctx)
    if kind is Kind.ARRAY:
        return _array(prop, ctx)
    if kind is Kind.CONST:
        return _const(prop, ctx)
    if kind is Kind.ENUM:
        return _enum(prop, ctx)
    if kind is Kind.OBJECT:
        return _object(prop, ctx, refs, pointer)
    if kind is Kind.COLLECTION:
        return _collection(prop, ctx, refs, pointer)
    if kind is Kind.REFERENCE:
        return _reference(prop, ctx, refs, pointer)
    return _one_of(prop, ctx, refs, pointer)

# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #

def render_root(version, ctx: BuildContext, refs: bool = False, pointer: Sequence[Any] = ()) -> dict[str, Any]:
    schema = _render(version.root, ctx, refs, list(pointer))
    if version.description:
        schema["description"] = version.description
    schema.update(utils.thaw(version.schema_options))
    return schema


def build_schema(version, *, ctx: BuildContext, refs: bool = False) -> dict[str, Any]:
    """Render *version* as a JSON Schema document."""
    schema = render_root(version, ctx, refs)
    logger.debug("Built %s schema for version %s", "component" if refs else "validation", version.identifier)
    return schema


def render_property(prop: Property, *, ctx: BuildContext, refs: bool = False) -> dict[str, Any]:
    """Render a single property as a standalone schema."""
    return _render(prop, ctx, refs, [])
