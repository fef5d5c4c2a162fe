"""
versions.py - per-version property trees.

Versions of one schema are kept in declaration order.  Resolving version *k*
starts from the resolved spec of its predecessor (or of the version named by
``inherit``), removes the excluded properties, deep-merges the version's own
declarations and builds a fresh immutable tree.  Nothing is mutated in place:
every version owns its own spec and tree.

Public API
----------
VersionDeclaration
    One declared version, as written.
Version
    One resolved version: identifier, root tree, exclusions, description,
    schema options.
Versions
    Ordered, memoized container of declarations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Union

from . import parser, utils
from .cache import OnceCache
from .configuration import config
from .errors import DefinitionError, VersionNotFound
from .properties import Kind, Property

__all__ = ["VersionDeclaration", "Version", "Versions"]

logger = logging.getLogger(__name__)

_EMPTY_ROOT = MappingProxyType({"kind": Kind.OBJECT.value, "properties": {}})

# --------------------------------------------------------------------------- #
# Declarations                                                                #
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class VersionDeclaration:
    identifier: str
    root_spec: Mapping[str, Any] = field(default_factory=dict)
    exclude: tuple[str, ...] = ()
    inherit: Union[bool, str] = True
    description: Optional[str] = None
    schema_options: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, entry: Mapping[str, Any]) -> "VersionDeclaration":
        """Build a declaration from a contract's ``versions[]`` entry."""
        if not isinstance(entry, Mapping):
            raise DefinitionError(f"Version entries must be mappings, got {type(entry).__name__}")
        identifier = entry.get("version")
        if not isinstance(identifier, str) or not identifier:
            raise DefinitionError("Every version entry needs a non-empty 'version' identifier")

        exclude = entry.get("exclude") or ()
        if isinstance(exclude, str):
            exclude = (exclude,)
        if not all(isinstance(e, str) and e for e in exclude):
            raise DefinitionError(f"Version '{identifier}': 'exclude' must list property names")

        inherit = entry.get("inherit", True)
        if not isinstance(inherit, (bool, str)):
            raise DefinitionError(f"Version '{identifier}': 'inherit' must be a boolean or a version identifier")

        options = entry.get("schema_options") or {}
        if not isinstance(options, Mapping):
            raise DefinitionError(f"Version '{identifier}': 'schema_options' must be a mapping")

        return cls(
            identifier=identifier,
            root_spec=parser.root_spec(entry),
            exclude=tuple(exclude),
            inherit=inherit,
            description=entry.get("description"),
            schema_options=dict(options),
        )


@dataclass(frozen=True)
class Version:
    identifier: str
    root: Property
    spec: Mapping[str, Any]
    excluded: frozenset = frozenset()
    description: Optional[str] = None
    schema_options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def properties(self) -> Mapping[str, Property]:
        """Top-level properties (empty for a combination version)."""
        return self.root.children if self.root.kind is Kind.OBJECT else MappingProxyType({})

    @property
    def is_combination(self) -> bool:
        return self.root.kind is Kind.ONE_OF


# --------------------------------------------------------------------------- #
# Container                                                                   #
# --------------------------------------------------------------------------- #

def _merge_options(*layers: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for layer in layers:
        for key, value in utils.camelize(layer).items():
            if value is None:
                out.pop(key, None)
            else:
                out[key] = value
    return out


class Versions:
    """Ordered declarations of one schema, resolved on demand."""

    def __init__(self, owner: str = "schema", description: Optional[str] = None, schema_options: Mapping[str, Any] | None = None):
        self.owner = owner
        self.description = description
        self.schema_options = dict(schema_options or {})
        self._declarations: list[VersionDeclaration] = []
        self._index: dict[str, int] = {}
        self._cache = OnceCache(f"{owner} versions")

    # container protocol --------------------------------------------------
    def __len__(self) -> int:
        return len(self._declarations)

    def __iter__(self) -> Iterator[VersionDeclaration]:
        return iter(self._declarations)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._index

    @property
    def identifiers(self) -> tuple[str, ...]:
        return tuple(d.identifier for d in self._declarations)

    # declaration ---------------------------------------------------------
    def add(self, declaration: VersionDeclaration) -> VersionDeclaration:
        if declaration.identifier in self._index:
            raise DefinitionError(f"{self.owner}: version '{declaration.identifier}' is declared twice")
        inherit = declaration.inherit
        if isinstance(inherit, str) and inherit not in self._index:
            raise VersionNotFound(f"{self.owner}: version '{declaration.identifier}' inherits from undeclared version '{inherit}'")
        self._index[declaration.identifier] = len(self._declarations)
        self._declarations.append(declaration)
        self._cache.clear()
        return declaration

    # resolution ----------------------------------------------------------
    def resolve(self, identifier: str) -> Version:
        """Return the resolved :class:`Version` for an exact identifier."""
        if identifier not in self._index:
            raise VersionNotFound(f"{self.owner}: version '{identifier}' is not declared")
        generation = config.generation
        return self._cache.get((identifier, generation), lambda: self._build(identifier), generation=generation)

    def _base(self, position: int) -> Mapping[str, Any]:
        inherit = self._declarations[position].inherit
        if inherit is False:
            return _EMPTY_ROOT
        if inherit is True:
            if position == 0:
                return _EMPTY_ROOT
            return self.resolve(self._declarations[position - 1].identifier).spec
        return self.resolve(inherit).spec

    def _build(self, identifier: str) -> Version:
        position = self._index[identifier]
        declaration = self._declarations[position]

        spec = utils.thaw(self._base(position))
        for path in declaration.exclude:
            spec = parser.exclude(spec, path)
        spec = parser.merge_spec(spec, declaration.root_spec)

        root = parser.build_root(spec)
        description = declaration.description if declaration.description is not None else self.description
        logger.debug("Resolved %s@%s (%d top-level properties)", self.owner, identifier, len(root.children))
        return Version(
            identifier=identifier,
            root=root,
            spec=MappingProxyType(spec),
            excluded=frozenset(declaration.exclude),
            description=description,
            schema_options=utils.freeze(_merge_options(self.schema_options, declaration.schema_options)),
        )
