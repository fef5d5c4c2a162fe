"""
registry.py - named schemas and reference resolution.

References name the schema they point at (``"from": "Address"``); a
:class:`Registry` turns that name back into a
:class:`~request_schema.contract.RequestSchema`.  :class:`BuildContext`
carries the registry and settings through one artifact build and refuses
circular references.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterator, Optional

from .configuration import Configuration, config
from .errors import DefinitionError
from .properties import Property, Ref, find_property

if TYPE_CHECKING:  # pragma: no cover
    from .contract import RequestSchema
    from .versions import Version

__all__ = ["Registry", "default_registry", "BuildContext"]

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------- #
# Registry                                                                    #
# --------------------------------------------------------------------------- #

class Registry:
    """Thread-safe ``name → RequestSchema`` table."""

    def __init__(self):
        self._schemas: dict[str, "RequestSchema"] = {}
        self._lock = threading.Lock()

    def register(self, schema: "RequestSchema", name: str | None = None) -> "RequestSchema":
        name = name or schema.title
        with self._lock:
            previous = self._schemas.get(name)
            if previous is not None and previous is not schema:
                logger.warning("Replacing registered schema '%s'", name)
            self._schemas[name] = schema
        config.touch()
        return schema

    def unregister(self, name: str) -> None:
        with self._lock:
            self._schemas.pop(name, None)
        config.touch()

    def get(self, name: str) -> "RequestSchema":
        try:
            return self._schemas[name]
        except KeyError:
            raise DefinitionError(f"Unknown schema referenced: '{name}'") from None

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._schemas))

    def __len__(self) -> int:
        return len(self._schemas)

    def clear(self) -> None:
        with self._lock:
            self._schemas.clear()
        config.touch()


default_registry = Registry()

# --------------------------------------------------------------------------- #
# Build context                                                               #
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class BuildContext:
    """Settings and reference chain for one artifact build."""

    version_id: str
    registry: Registry = field(default_factory=lambda: default_registry)
    config: Configuration = field(default_factory=lambda: config)
    chain: tuple[str, ...] = ()

    def schema_for(self, ref: Ref) -> "RequestSchema":
        return ref.source if not isinstance(ref.source, str) else self.registry.get(ref.source)

    def dereference(self, ref: Ref) -> tuple["RequestSchema", "Version", Property, "BuildContext"]:
        """Resolve *ref* to ``(schema, version, node, context)``.

        *node* is the referenced version's root, or the narrowed property.
        The returned context is the one to build the referenced subtree with.
        """
        schema = self.schema_for(ref)
        version = schema.resolve(ref.version or self.version_id)
        link = f"{schema.title}@{version.identifier}"
        if link in self.chain:
            raise DefinitionError("Circular reference: " + " → ".join(self.chain + (link,)))
        node = version.root if ref.property_name is None else find_property(version.root, ref.property_name)
        sub = BuildContext(version.identifier, self.registry, self.config, self.chain + (link,))
        return schema, version, node, sub
