"""
contract.py - High-level API for versioned request schemas.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from . import builder, loader, mapper, parser, validator
from .cache import OnceCache
from .configuration import config
from .errors import DefinitionError, InvalidParamsError, VersionNotFound
from .processor import Processor, insert_defaults
from .properties import Kind, find_property
from .registry import BuildContext, Registry, default_registry
from .result import Result
from .versions import Version, VersionDeclaration, Versions

__all__ = ["RequestSchema"]

logger = logging.getLogger(__name__)


class RequestSchema:
    """A named request schema with one property tree per declared version."""

    def __init__(
        self,
        title: str,
        description: str | None = None,
        schema_options: Mapping[str, Any] | None = None,
        *,
        registry: Registry | None = None,
        register: bool = True,
    ):
        if not isinstance(title, str) or not title:
            raise DefinitionError("A request schema needs a non-empty title")
        self.title = title
        self.description = description
        self.registry = registry if registry is not None else default_registry
        self.versions = Versions(title, description, schema_options)
        self._cache = OnceCache(title)
        if register:
            self.registry.register(self)

    def __repr__(self) -> str:
        return f"<RequestSchema {self.title} versions={list(self.versions.identifiers)}>"

    def __deepcopy__(self, memo: dict) -> "RequestSchema":
        # referenced from declarations; always shared, never copied
        return self

    # --------------------------------------------------------------------- #
    # Construction                                                          #
    # --------------------------------------------------------------------- #

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, registry: Registry | None = None, register: bool = True) -> "RequestSchema":
        """Build a schema from a parsed contract (``title``, ``versions`` ...)."""
        if not isinstance(data, Mapping) or not all(key in data for key in ("title", "versions")):
            raise DefinitionError("A request schema contract needs 'title' and 'versions'")
        versions = data["versions"]
        if not isinstance(versions, list) or not versions:
            raise DefinitionError(f"{data['title']}: 'versions' must be a non-empty list")

        schema = cls(
            title=data["title"],
            description=data.get("description"),
            schema_options=data.get("schema_options"),
            registry=registry,
            register=register,
        )
        for entry in versions:
            schema.version(entry)
        return schema

    @classmethod
    def load(cls, path: str | Path, **kwargs: Any) -> "RequestSchema":
        """Loads a contract from a JSON file and returns a RequestSchema."""
        return cls.from_dict(loader.load_schema(path), **kwargs)

    def version(self, identifier: str | Mapping[str, Any], **entry: Any) -> "RequestSchema":
        """Declare the next version.

        Accepts either a complete ``versions[]`` entry or an identifier plus
        the entry keys as keywords::

            schema.version("2025-08", exclude=["name"], properties={...})
        """
        data = identifier if isinstance(identifier, Mapping) else {"version": identifier, **entry}
        self.versions.add(VersionDeclaration.from_dict(data))
        self._cache.clear()
        config.touch()
        return self

    # --------------------------------------------------------------------- #
    # Versions                                                              #
    # --------------------------------------------------------------------- #

    @property
    def component_name(self) -> str:
        return self.title

    def _identifier(self, requested: Optional[str]) -> str:
        if requested is None:
            requested = config.resolve_current_version()
            if requested is None:
                raise ValueError(f"{self.title}: no version given and no current_version configured")
        found = config.version_resolver(requested, self.versions.identifiers)
        if found is None or found not in self.versions:
            raise VersionNotFound(f"{self.title}: version '{requested}' is not declared")
        return found

    def resolve(self, version: Optional[str] = None) -> Version:
        """Return the resolved tree for *version* (through the version resolver)."""
        return self.versions.resolve(self._identifier(version))

    def _context(self, version: Version) -> BuildContext:
        link = f"{self.title}@{version.identifier}"
        return BuildContext(version.identifier, self.registry, config, (link,))

    def _artifact(self, name: str, version: Version, factory: Callable[[], Any], *extra: Any) -> Any:
        generation = config.generation
        return self._cache.get((name, version.identifier, *extra, generation), factory, generation=generation)

    # --------------------------------------------------------------------- #
    # Schemas                                                               #
    # --------------------------------------------------------------------- #

    def _validation_schema(self, version: Version, property: Optional[str] = None) -> dict[str, Any]:
        ctx = self._context(version)
        if property is None:
            return self._artifact("schema", version, lambda: builder.build_schema(version, ctx=ctx))
        return self._artifact(
            "schema", version,
            lambda: builder.render_property(find_property(version.root, property), ctx=ctx),
            property,
        )

    def to_validation_schema(self, version: Optional[str] = None, *, property: Optional[str] = None) -> dict[str, Any]:
        """Inline JSON Schema for *version*, optionally narrowed to one property."""
        return copy.deepcopy(self._validation_schema(self.resolve(version), property))

    to_schema = to_validation_schema

    def to_component_schema(self, version: Optional[str] = None) -> dict[str, Any]:
        """JSON Schema with references rendered as OpenAPI component ``$ref`` s."""
        resolved = self.resolve(version)
        ctx = self._context(resolved)
        return copy.deepcopy(self._artifact("component", resolved, lambda: builder.build_schema(resolved, ctx=ctx, refs=True)))

    def to_ref(self, property: Optional[str] = None) -> str:
        return builder.component_ref(self.component_name, property)

    def validate_schema(self, version: Optional[str] = None) -> list[dict[str, Any]]:
        """Meta-schema errors of the rendered validation schema (empty when valid)."""
        schema = self._validation_schema(self.resolve(version))
        return validator.check_schema(schema, validator_cls=validator.validator_class(config.json_schema_version))

    def valid_schema(self, version: Optional[str] = None) -> bool:
        return not self.validate_schema(version)

    # --------------------------------------------------------------------- #
    # Mapping                                                               #
    # --------------------------------------------------------------------- #

    def _mapping(self, version: Version) -> dict[str, Any]:
        ctx = self._context(version)
        return self._artifact("mapping", version, lambda: mapper.build_mapping(version, ctx=ctx))

    def mapping(self, version: Optional[str] = None, *, property: Optional[str] = None) -> dict[str, Any]:
        """The mapping artifact, or the part produced by one property."""
        artifact = self._mapping(self.resolve(version))
        if property is not None:
            artifact = mapper.select(artifact, property)
        return copy.deepcopy(artifact)

    def external_mapping(self, version: Optional[str] = None) -> dict[str, str]:
        """Internal → external path pairs."""
        return mapper.invert(self._mapping(self.resolve(version)))

    def _processor(self, version: Version) -> Processor:
        vcls = validator.validator_class(config.json_schema_version)
        return self._artifact("processor", version, lambda: Processor(self._mapping(version), vcls))

    # --------------------------------------------------------------------- #
    # Processing                                                            #
    # --------------------------------------------------------------------- #

    def validate(self, params: Any, version: Optional[str] = None) -> list[dict[str, Any]]:
        """Validation errors of *params* against *version* (empty when valid)."""
        return self._validate(self.resolve(version), parser.parse_input(params))

    def _validate(self, version: Version, payload: Mapping[str, Any]) -> list[dict[str, Any]]:
        return validator.validate(
            payload,
            schema=self._validation_schema(version),
            validator_cls=validator.validator_class(config.json_schema_version),
        )

    def _root_keys(self, version: Version) -> Optional[set[str]]:
        """Names accepted at the payload root, ``None`` when unknown."""
        if not version.is_combination:
            return set(version.properties)
        ctx = self._context(version)
        keys: set[str] = set()
        for variant in version.root.variants.values():
            node = variant
            if variant.kind is Kind.REFERENCE:
                _, _, node, _ = ctx.dereference(variant.payload)
            if node.kind is not Kind.OBJECT:
                return None
            keys.update(node.children)
        return keys

    def _failure(self, errors: list[dict[str, Any]]) -> Result:
        logger.info("Rejected %s payload with %d error(s)", self.title, len(errors))
        if config.raises:
            raise InvalidParamsError(errors=errors)
        return Result.fail(errors)

    def process(
        self,
        params: Any,
        version: Optional[str] = None,
        *,
        validate: Optional[bool] = None,
        remove_extra_root_keys: Optional[bool] = None,
    ) -> dict[str, Any] | Result:
        """
        Turn an external request payload into the internal parameter shape.
        1. Parse *params* (Mapping / JSON string / JSON file) into a dict.
        2. Drop unknown root keys.
        3. Insert declared defaults.
        4. Validate against the rendered schema.
        5. Transform through the mapping artifact.
        Returns the internal payload (``raise`` mode) or a :class:`Result`.
        """
        resolved = self.resolve(version)
        if validate is None:
            validate = config.validate_params
        if remove_extra_root_keys is None:
            remove_extra_root_keys = config.remove_extra_root_keys

        # (1) ───────────────────────────────────────────────────────────────
        payload = parser.parse_input(params)
        # (2) ───────────────────────────────────────────────────────────────
        if remove_extra_root_keys:
            allowed = self._root_keys(resolved)
            if allowed is not None:
                payload = {k: v for k, v in payload.items() if k in allowed}
        # (3) ───────────────────────────────────────────────────────────────
        if config.insert_property_defaults:
            payload = insert_defaults(resolved.root, payload, self._context(resolved))
        # (4) ───────────────────────────────────────────────────────────────
        if validate:
            errors = self._validate(resolved, payload)
            if errors:
                return self._failure(errors)
        # (5) ───────────────────────────────────────────────────────────────
        result, errors = self._processor(resolved).transform(payload)
        if errors:
            return self._failure(errors)
        logger.debug("Processed %s@%s payload", self.title, resolved.identifier)
        return result if config.raises else Result.ok(result)
