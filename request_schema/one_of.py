"""
one_of.py - request-time variant selection for one-of properties.

A :class:`OneOfResolver` wraps one ``_oneOfs`` entry of a mapping artifact.
With a discriminator the variant is looked up by the discriminator field's
value; without one every variant schema is tried and exactly one must match.
Failures raise :class:`~request_schema.errors.ResolutionError`; no variant is
ever chosen by default.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from jsonschema import Draft202012Validator

from . import utils
from .errors import ResolutionError

__all__ = ["OneOfResolver"]


def _discriminator_key(value: Any) -> str:
    return value if isinstance(value, str) else json.dumps(value)


class OneOfResolver:
    def __init__(self, entry: Mapping[str, Any], validator_cls: type = Draft202012Validator):
        self.entry = entry
        self.variants = tuple(k for k in entry if k not in utils.RESERVED_KEYS)
        path = utils.split_path(entry.get("_discriminator"))
        self.discriminator: Optional[str] = path[-1] if path else None
        self.nullable = bool(entry.get("_nullable", False))
        self._validators = {
            name: validator_cls(schema)
            for name, schema in (entry.get("_variant_schemas") or {}).items()
        }

    @property
    def name(self) -> str:
        return entry_name(self.entry)

    def select_variant(self, value: Any, *, pointer: str = "") -> Optional[str]:
        """Return the variant name for *value*, or ``None`` for an allowed null."""
        if value is None:
            if self.nullable:
                return None
            raise ResolutionError(f"{self.name}: null is not allowed", pointer=pointer)
        if not isinstance(value, Mapping):
            raise ResolutionError(
                f"{self.name}: expected an object, got {type(value).__name__}",
                pointer=pointer,
            )
        if self.discriminator is not None:
            return self._by_discriminator(value, pointer)
        return self._by_inference(value, pointer)

    def _by_discriminator(self, value: Mapping[str, Any], pointer: str) -> str:
        field = self.discriminator
        if field not in value:
            raise ResolutionError(
                f"{self.name}: discriminator '{field}' is missing",
                pointer=pointer,
                details={"discriminator": field, "variants": list(self.variants)},
            )
        key = _discriminator_key(value[field])
        if key not in self.variants:
            raise ResolutionError(
                f"{self.name}: unknown {field} {value[field]!r}; expected one of {list(self.variants)}",
                pointer=f"{pointer}/{field}",
                details={"discriminator": field, "value": value[field], "variants": list(self.variants)},
            )
        return key

    def _by_inference(self, value: Mapping[str, Any], pointer: str) -> str:
        matches = [name for name, check in self._validators.items() if check.is_valid(value)]
        if not matches:
            raise ResolutionError(
                f"{self.name}: value does not match any variant of {list(self.variants)}",
                pointer=pointer,
                details={"variants": list(self.variants)},
            )
        if len(matches) > 1:
            raise ResolutionError(
                f"{self.name}: value is ambiguous, it matches variants {matches}",
                pointer=pointer,
                details={"matches": matches},
            )
        return matches[0]


def entry_name(entry: Mapping[str, Any]) -> str:
    return entry.get("_variant_path") or "one-of"
