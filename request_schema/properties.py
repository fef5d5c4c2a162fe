"""
properties.py - immutable property-tree model.

Every declared property is a :class:`Property` tagged with a :class:`Kind`.
Kind-specific data lives in a small frozen payload object, so the builder and
the mapper dispatch over ``prop.kind`` instead of over a class hierarchy.

Public API
----------
Kind
    Closed set of property kinds.
Unconditional / DependentOn
    The two cases of a property's ``required`` flag (absent is ``None``).
Property
    One node of a resolved tree.
Scalar, Items, ConstValue, EnumValues, Ref, Choice
    Kind payloads.
find_property(root, path)
    Look up a named descendant (``"address/street"``).
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

from . import utils
from .errors import DefinitionError, PropertyNotFound

__all__ = [
    "FIELD_TYPES",
    "Kind",
    "Unconditional",
    "DependentOn",
    "Required",
    "coerce_required",
    "Scalar",
    "Items",
    "ConstValue",
    "EnumValues",
    "Ref",
    "Choice",
    "Property",
    "find_property",
]

FIELD_TYPES = ("string", "number", "integer", "boolean")

# --------------------------------------------------------------------------- #
# Kinds                                                                       #
# --------------------------------------------------------------------------- #

class Kind(str, Enum):
    FIELD = "field"
    OBJECT = "object"
    ARRAY = "array"
    COLLECTION = "collection"
    CONST = "const"
    ENUM = "enum"
    REFERENCE = "reference"
    ONE_OF = "one_of"

    @property
    def is_leaf(self) -> bool:
        return self in (Kind.FIELD, Kind.ARRAY, Kind.CONST, Kind.ENUM)


# --------------------------------------------------------------------------- #
# Required                                                                    #
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class Unconditional:
    """The property is always required."""
    value: bool = True


@dataclass(frozen=True)
class DependentOn:
    """The property requires the listed siblings whenever it is present."""
    names: tuple[str, ...]


Required = Optional[Union[Unconditional, DependentOn]]


def coerce_required(value: Any) -> Required:
    """Turn a declared ``required`` value into the two-case union.

    ``True`` → :class:`Unconditional`, ``False``/``None`` → ``None`` and a
    list of sibling names → :class:`DependentOn`.  Anything else is rejected
    instead of being guessed at.
    """
    if value is None or value is False:
        return None
    if value is True:
        return Unconditional()
    if isinstance(value, (Unconditional, DependentOn)):
        return value
    if isinstance(value, (list, tuple)):
        if not value or not all(isinstance(n, str) and n for n in value):
            raise DefinitionError(f"'required' dependencies must be a non-empty list of names, got {value!r}")
        return DependentOn(tuple(value))
    raise DefinitionError(f"'required' must be a boolean or a list of names, got {value!r}")


# --------------------------------------------------------------------------- #
# Payloads                                                                    #
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class Scalar:
    type: str


@dataclass(frozen=True)
class Items:
    type: str
    item_schema_options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class ConstValue:
    value: Any


@dataclass(frozen=True)
class EnumValues:
    values: tuple


@dataclass(frozen=True)
class Ref:
    """Points at another schema, by registry name or by object."""
    source: Any
    property_name: Optional[str] = None
    version: Optional[str] = None

    @property
    def source_name(self) -> str:
        return self.source if isinstance(self.source, str) else self.source.title


@dataclass(frozen=True)
class Choice:
    discriminator: Optional[str] = None


# --------------------------------------------------------------------------- #
# Property                                                                    #
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class Property:
    """One node of a property tree.

    ``children`` holds object properties and one-of variants.  A collection
    keeps its item node (a nameless object, reference or one-of) in
    ``payload``.  The root of a version is a nameless object, or a nameless
    one-of for combination requests.
    """

    name: Optional[str]
    kind: Kind
    required: Required = None
    nullable: bool = False
    map: Optional[str] = None
    schema_options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    children: Mapping[str, "Property"] = field(default_factory=lambda: MappingProxyType({}))
    payload: Any = None

    def replace(self, **changes: Any) -> "Property":
        return dataclasses.replace(self, **changes)

    @property
    def item(self) -> "Property":
        if self.kind is not Kind.COLLECTION:
            raise AttributeError(f"{self.kind.value} property has no item")
        return self.payload

    @property
    def variants(self) -> Mapping[str, "Property"]:
        return self.children if self.kind is Kind.ONE_OF else MappingProxyType({})

    @property
    def discriminator(self) -> Optional[str]:
        return self.payload.discriminator if self.kind is Kind.ONE_OF else None

    @property
    def default(self) -> Any:
        return self.schema_options.get("default")

    @property
    def has_default(self) -> bool:
        return "default" in self.schema_options


def find_property(root: Property, path: str) -> Property:
    """Return the descendant of *root* named by *path*.

    Segments walk object children; a collection segment continues inside its
    inline item.  Raises :class:`PropertyNotFound` for unknown names.
    """
    node = root
    segments = utils.split_path(path)
    if not segments:
        raise PropertyNotFound(f"Empty property path: {path!r}")
    for seg in segments:
        if node.kind is Kind.COLLECTION:
            node = node.payload
        if seg not in node.children:
            raise PropertyNotFound(f"Property '{path}' not found (no '{seg}')")
        node = node.children[seg]
    return node
