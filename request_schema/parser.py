"""
parser.py - declaration and payload input handling
==================================================

Declarations arrive as plain mappings (the shape of a JSON contract file).
They are handled in two steps:

1. :func:`normalize_properties` / :func:`normalize_spec` expand
   ``with_options`` groups, apply batched defaults, infer the kind where a key
   determines it and recurse into children.  The result is still a plain
   dict, so successive versions can be merged key-wise
   (:func:`merge_spec`) and pruned (:func:`exclude`).
2. :func:`build_property` / :func:`build_root` turn a fully merged spec into
   an immutable :class:`~request_schema.properties.Property` tree, running
   every kind-specific definition check on the way.

Public API
----------
`parse_input(source) -> dict`
    Convert a Mapping / Path / JSON string (or path string) into a ``dict``.

`normalize_properties(specs, defaults=None) -> dict`
`normalize_spec(name, spec, defaults=None) -> dict`
`root_spec(entry) -> dict`
`merge_spec(base, override) -> dict`
`exclude(spec, path) -> dict`
`build_property(name, spec) -> Property`
`build_root(spec) -> Property`
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Mapping, Optional

from . import utils
from .configuration import config
from .errors import DefinitionError, PropertyNotFound
from .properties import (
    ConstValue,
    DependentOn,
    Choice,
    EnumValues,
    Items,
    Kind,
    Property,
    Ref,
    Scalar,
    coerce_required,
)

__all__ = [
    "parse_input",
    "normalize_properties",
    "normalize_spec",
    "root_spec",
    "merge_spec",
    "exclude",
    "build_property",
    "build_root",
]

WITH_OPTIONS = "with_options"

COMMON_KEYS = frozenset({"kind", "required", "nullable", "map"})

KIND_KEYS = {
    Kind.FIELD: frozenset({"type"}),
    Kind.ARRAY: frozenset({"type", "item_schema_options"}),
    Kind.CONST: frozenset({"value"}),
    Kind.ENUM: frozenset({"values"}),
    Kind.OBJECT: frozenset({"properties"}),
    Kind.REFERENCE: frozenset({"from", "property", "version"}),
    Kind.ONE_OF: frozenset({"variants", "discriminator"}),
    Kind.COLLECTION: frozenset({"item"}),
}

# Keys that determine the kind of an undeclared spec, in priority order.
_INFERENCE = (
    ("properties", Kind.OBJECT),
    ("variants", Kind.ONE_OF),
    ("from", Kind.REFERENCE),
    ("value", Kind.CONST),
    ("values", Kind.ENUM),
    ("item", Kind.COLLECTION),
    ("one_of", Kind.COLLECTION),
    ("item_schema_options", Kind.ARRAY),
)

# --------------------------------------------------------------------------- #
# Input parsing utility                                                       #
# --------------------------------------------------------------------------- #

def parse_input(source: str | bytes | Path | Mapping[str, Any]) -> dict[str, Any]:
    """Convert *source* to a plain ``dict`` (no validation).

    Parameters
    ----------
    source
        Supported variants:
        * ``Mapping`` - copied directly.
        * ``Path`` - JSON file on disk.
        * ``str`` / ``bytes`` - existing file path → load; else JSON literal.
    """

    # Mapping - already dict-like ------------------------------------------
    if isinstance(source, Mapping):
        return dict(source)

    # Path - read JSON file -------------------------------------------------
    if isinstance(source, Path):
        return _as_object(json.loads(source.read_text(encoding="utf-8")), source)

    if isinstance(source, bytes):
        source = source.decode("utf-8")
    if isinstance(source, str):
        p = Path(source)
        try:
            if p.is_file():
                return _as_object(json.loads(p.read_text(encoding="utf-8")), p)
        except OSError:
            pass  # too long / invalid to be a path; treat as JSON
        try:
            return _as_object(json.loads(source), "input")
        except json.JSONDecodeError as exc:
            raise ValueError(f"Input is neither a JSON file nor a JSON object: {exc}") from exc

    raise TypeError(f"Unsupported type for parse_input: {type(source)}")


def _as_object(value: Any, origin: Any) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{origin}: expected a JSON object, got {type(value).__name__}")
    return value

# --------------------------------------------------------------------------- #
# Normalization                                                               #
# --------------------------------------------------------------------------- #

def _check_name(name: Any) -> str:
    if not isinstance(name, str) or not name:
        raise DefinitionError(f"Property names must be non-empty strings, got {name!r}")
    if utils.SEPARATOR in name or utils.ITEM_SUFFIX in name:
        raise DefinitionError(f"Property name '{name}' must not contain '/' or '[]'")
    if name in utils.RESERVED_KEYS:
        raise DefinitionError(f"Property name '{name}' collides with a reserved mapping key")
    return name


def _infer(spec: Mapping[str, Any]) -> Optional[Kind]:
    if "kind" in spec:
        try:
            return Kind(spec["kind"])
        except ValueError:
            raise DefinitionError(f"Unknown property kind {spec['kind']!r}") from None
    for key, kind in _INFERENCE:
        if key in spec:
            return kind
    return None


def _effective_kind(spec: Mapping[str, Any]) -> Kind:
    return Kind(spec.get("kind", Kind.FIELD.value))


def _with_defaults(spec: Mapping[str, Any], defaults: Mapping[str, Any], kind: Kind) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in defaults.items():
        if key == "map":
            continue
        if kind in (Kind.REFERENCE, Kind.ONE_OF) and key not in ("required", "nullable"):
            continue
        if key == "type" and kind not in (Kind.FIELD, Kind.ARRAY):
            continue
        out[key] = copy.deepcopy(value)
    out.update(spec)
    return out


def normalize_properties(specs: Mapping[str, Any] | None, defaults: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Expand ``with_options`` groups and normalize every property spec."""
    if specs is None:
        return {}
    if not isinstance(specs, Mapping):
        raise DefinitionError(f"'properties' must be a mapping, got {type(specs).__name__}")
    defaults = defaults or {}
    out: dict[str, Any] = {}

    for key, spec in specs.items():
        if isinstance(spec, Mapping) and spec.get("kind") == WITH_OPTIONS:
            options = spec.get("options") or {}
            if "map" in options:
                raise DefinitionError(f"with_options group '{key}': 'map' cannot be batched")
            nested = normalize_properties(spec.get("properties"), {**defaults, **options})
            items = nested.items()
        else:
            items = [(_check_name(key), normalize_spec(key, spec, defaults))]
        for name, child in items:
            if name in out:
                raise DefinitionError(f"Property '{name}' is declared twice")
            out[name] = child
    return out


def normalize_spec(name: Optional[str], spec: Any, defaults: Mapping[str, Any] | None = None, *, apply: bool = True) -> dict[str, Any]:
    """Normalize one property spec.

    A bare string is shorthand for a field type (``"name": "string"``).
    With ``apply=False`` the defaults skip this node and only reach its
    children (collection items, one-of variants).
    """
    if isinstance(spec, str):
        spec = {"type": spec}
    if not isinstance(spec, Mapping):
        raise DefinitionError(f"Property '{name}': spec must be a mapping, got {type(spec).__name__}")

    defaults = defaults or {}
    kind = _infer(spec)
    effective = kind or Kind.FIELD
    out = _with_defaults(spec, defaults, effective) if apply else dict(spec)
    if kind is not None:
        out["kind"] = kind.value

    child_defaults = {k: v for k, v in defaults.items() if k != "map"}
    if effective is Kind.OBJECT:
        out["properties"] = normalize_properties(spec.get("properties"), child_defaults)
    elif effective is Kind.ONE_OF:
        out["variants"] = _normalize_variants(name, spec.get("variants"), child_defaults)
    elif effective is Kind.COLLECTION:
        out["item"] = _normalize_item(name, spec, out, child_defaults)
    return out


def _normalize_variants(name: Optional[str], variants: Any, defaults: Mapping[str, Any]) -> dict[str, Any]:
    if variants is None:
        return {}
    if not isinstance(variants, Mapping):
        raise DefinitionError(f"One-of '{name}': 'variants' must be a mapping")
    out = {}
    for variant, spec in variants.items():
        if isinstance(spec, str):
            spec = {"kind": Kind.REFERENCE.value, "from": spec}
        out[_check_name(variant)] = normalize_spec(variant, spec, defaults, apply=False)
    return out


def _normalize_item(name: Optional[str], spec: Mapping[str, Any], out: dict[str, Any], defaults: Mapping[str, Any]) -> dict[str, Any]:
    if "item" in spec:
        item = spec["item"]
        if isinstance(item, str):
            item = {"kind": Kind.REFERENCE.value, "from": item}
    elif "one_of" in spec:
        if not isinstance(spec["one_of"], Mapping):
            raise DefinitionError(f"Collection '{name}': 'one_of' must be a mapping")
        item = {"kind": Kind.ONE_OF.value, **spec["one_of"]}
    elif "from" in spec:
        item = {k: spec[k] for k in ("from", "property", "version") if k in spec}
    elif "properties" in spec:
        item = {"properties": spec["properties"]}
    else:
        return {}
    for key in ("one_of", "from", "property", "version", "properties"):
        out.pop(key, None)
    return normalize_spec(name, item, defaults, apply=False)


def root_spec(entry: Mapping[str, Any], defaults: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Return the normalized root spec declared by a version entry.

    A root one-of (``"one_of": {...}``) declares a combination request.  An
    entry without either key declares nothing and inherits its root as is.
    """
    if "one_of" in entry and "properties" in entry:
        raise DefinitionError("A version declares either 'properties' or 'one_of', not both")
    if "one_of" in entry:
        if not isinstance(entry["one_of"], Mapping):
            raise DefinitionError("'one_of' must be a mapping")
        return normalize_spec(None, {"kind": Kind.ONE_OF.value, **entry["one_of"]}, defaults, apply=False)
    if "properties" in entry:
        return {"kind": Kind.OBJECT.value, "properties": normalize_properties(entry["properties"], defaults)}
    return {}

# --------------------------------------------------------------------------- #
# Diff and apply                                                              #
# --------------------------------------------------------------------------- #

def merge_spec(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge *override* into a copy of *base*.

    A different declared kind replaces the property.  Otherwise declared keys
    replace, children and variants merge by name and unmentioned ones survive.
    """
    base_kind = _effective_kind(base)
    if "kind" in override and override["kind"] != base_kind.value:
        return copy.deepcopy(dict(override))
    if "kind" not in override and "type" in override and base_kind not in (Kind.FIELD, Kind.ARRAY):
        return copy.deepcopy(dict(override))
    out = copy.deepcopy(dict(base))
    for key, value in override.items():
        if key in ("properties", "variants") and isinstance(out.get(key), Mapping):
            out[key] = _merge_children(out[key], value)
        elif key == "item" and isinstance(out.get(key), Mapping):
            out[key] = merge_spec(out[key], value)
        else:
            out[key] = copy.deepcopy(value)
    return out


def _merge_children(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for name, spec in override.items():
        out[name] = merge_spec(out[name], spec) if name in out else copy.deepcopy(spec)
    return out


def _members(spec: dict[str, Any]) -> Optional[dict[str, Any]]:
    kind = _effective_kind(spec)
    if kind is Kind.OBJECT:
        return spec.setdefault("properties", {})
    if kind is Kind.ONE_OF:
        return spec.setdefault("variants", {})
    if kind is Kind.COLLECTION and isinstance(spec.get("item"), dict):
        return _members(spec["item"])
    return None


def exclude(spec: Mapping[str, Any], path: str) -> dict[str, Any]:
    """Return a copy of *spec* without the property at *path*."""
    out = copy.deepcopy(dict(spec))
    segments = utils.split_path(path)
    if not segments:
        raise PropertyNotFound(f"Cannot exclude an empty path: {path!r}")
    node = out
    for i, seg in enumerate(segments):
        members = _members(node)
        if members is None or seg not in members:
            raise PropertyNotFound(f"Cannot exclude '{path}': no property '{seg}'")
        if i == len(segments) - 1:
            del members[seg]
        else:
            node = members[seg]
    return out

# --------------------------------------------------------------------------- #
# Property construction                                                       #
# --------------------------------------------------------------------------- #

def _options(spec: Mapping[str, Any], kind: Kind) -> Mapping[str, Any]:
    extra = {k: v for k, v in spec.items() if k not in COMMON_KEYS and k not in KIND_KEYS[kind]}
    return utils.freeze(utils.camelize(extra))


def _check_map(name: Optional[str], kind: Kind, spec: Mapping[str, Any]) -> Optional[str]:
    target = spec.get("map")
    if target is None:
        return None
    if not isinstance(target, str) or not target:
        raise DefinitionError(f"Property '{name}': 'map' must be a non-empty string")
    if not utils.split_path(target):
        if kind.is_leaf or kind is Kind.COLLECTION:
            raise DefinitionError(f"Property '{name}': a {kind.value} cannot be mapped to the root")
        if spec.get("nullable"):
            raise DefinitionError(f"Property '{name}': a nullable property cannot be mapped to the root")
    if any(utils.ITEM_SUFFIX in seg for seg in utils.split_path(target)):
        raise DefinitionError(f"Property '{name}': 'map' must not contain '[]'")
    return target


def _check_type(name: Optional[str], type_name: Any) -> str:
    if not isinstance(type_name, str):
        raise DefinitionError(f"Property '{name}': 'type' is required")
    if not config.knows_type(type_name):
        raise DefinitionError(f"Property '{name}': unknown field type '{type_name}'")
    return type_name


def _check_enum(name: Optional[str], values: Any) -> tuple:
    if not isinstance(values, (list, tuple)) or not values:
        raise DefinitionError(f"Enum '{name}': 'values' must be a non-empty list")
    if len(values) < 2:
        raise DefinitionError(f"Enum '{name}': needs more than one value (use a const instead)")
    seen: list[Any] = []
    for v in values:
        if any(v == s and type(v) is type(s) for s in seen):
            raise DefinitionError(f"Enum '{name}': duplicate value {v!r}")
        seen.append(v)
    return tuple(values)


def _check_reference(name: Optional[str], spec: Mapping[str, Any]) -> Ref:
    source = spec.get("from")
    if not (isinstance(source, str) and source) and not hasattr(source, "resolve"):
        raise DefinitionError(f"Reference '{name}': 'from' must name a schema")
    for key in ("property", "version"):
        if spec.get(key) is not None and not isinstance(spec[key], str):
            raise DefinitionError(f"Reference '{name}': '{key}' must be a string")
    unknown = set(spec) - COMMON_KEYS - KIND_KEYS[Kind.REFERENCE]
    if unknown:
        raise DefinitionError(f"Reference '{name}': unsupported keys {sorted(unknown)}")
    return Ref(source, spec.get("property"), spec.get("version"))


def _build_children(name: Optional[str], specs: Mapping[str, Any]) -> Mapping[str, Property]:
    children = {child: build_property(child, spec) for child, spec in specs.items()}
    for child in children.values():
        if isinstance(child.required, DependentOn):
            missing = [n for n in child.required.names if n not in children]
            if missing:
                raise DefinitionError(f"Property '{child.name}' depends on unknown sibling(s) {missing}")
    return utils.freeze(children)


def build_property(name: Optional[str], spec: Mapping[str, Any]) -> Property:
    """Build an immutable property from a fully merged, normalized spec."""
    kind = _effective_kind(spec)
    nullable = spec.get("nullable", False)
    if not isinstance(nullable, bool):
        raise DefinitionError(f"Property '{name}': 'nullable' must be a boolean")

    base = dict(
        name=name,
        kind=kind,
        required=coerce_required(spec.get("required")),
        nullable=nullable,
        map=_check_map(name, kind, spec),
        schema_options=_options(spec, kind),
    )

    if kind is Kind.FIELD:
        return Property(payload=Scalar(_check_type(name, spec.get("type"))), **base)
    if kind is Kind.ARRAY:
        item_options = spec.get("item_schema_options") or {}
        if not isinstance(item_options, Mapping):
            raise DefinitionError(f"Array '{name}': 'item_schema_options' must be a mapping")
        payload = Items(_check_type(name, spec.get("type")), utils.freeze(utils.camelize(item_options)))
        return Property(payload=payload, **base)
    if kind is Kind.CONST:
        if "value" not in spec:
            raise DefinitionError(f"Const '{name}': 'value' is required")
        if nullable:
            raise DefinitionError(f"Const '{name}' cannot be nullable")
        return Property(payload=ConstValue(spec["value"]), **base)
    if kind is Kind.ENUM:
        return Property(payload=EnumValues(_check_enum(name, spec.get("values"))), **base)
    if kind is Kind.OBJECT:
        return Property(children=_build_children(name, spec.get("properties") or {}), **base)
    if kind is Kind.REFERENCE:
        return Property(payload=_check_reference(name, spec), **base)
    if kind is Kind.ONE_OF:
        return _build_one_of(name, spec, base)

    # collection
    item_spec = spec.get("item")
    if not item_spec:
        raise DefinitionError(f"Collection '{name}': an 'item' (object, reference or one-of) is required")
    item = build_property(None, item_spec)
    if item.kind not in (Kind.OBJECT, Kind.REFERENCE, Kind.ONE_OF):
        raise DefinitionError(f"Collection '{name}': items must be objects, references or one-ofs, not {item.kind.value}")
    return Property(payload=item, **base)


def _build_one_of(name: Optional[str], spec: Mapping[str, Any], base: dict[str, Any]) -> Property:
    variants = spec.get("variants") or {}
    if not variants:
        raise DefinitionError(f"One-of '{name}': at least one variant is required")
    discriminator = spec.get("discriminator")
    if discriminator is not None and not (isinstance(discriminator, str) and discriminator):
        raise DefinitionError(f"One-of '{name}': 'discriminator' must be a property name")
    children = {}
    for variant, vspec in variants.items():
        prop = build_property(variant, vspec)
        if prop.kind not in (Kind.OBJECT, Kind.REFERENCE):
            raise DefinitionError(f"One-of '{name}': variant '{variant}' must be an object or a reference")
        children[variant] = prop
    return Property(children=utils.freeze(children), payload=Choice(discriminator), **base)


def build_root(spec: Mapping[str, Any]) -> Property:
    """Build the nameless root of a version (object, or one-of combination)."""
    spec = spec or {"kind": Kind.OBJECT.value, "properties": {}}
    root = build_property(None, spec)
    if root.kind not in (Kind.OBJECT, Kind.ONE_OF):
        raise DefinitionError(f"A version root must be an object or a one-of, not {root.kind.value}")
    if root.nullable or root.map is not None:
        raise DefinitionError("A version root cannot be nullable or mapped")
    return root
