"""
validator.py - thin wrapper around the ``jsonschema`` engine
============================================================

Validation itself is delegated; this module only picks the draft, runs the
engine and reshapes its findings into plain error dicts that can travel in a
:class:`~request_schema.result.Result` or an
:class:`~request_schema.errors.InvalidParamsError`.

Public API
----------
VALIDATORS
    ``json_schema_version`` name → ``jsonschema`` validator class.

validator_class(name) -> type
    Look up a validator class, raising ``ValueError`` for unknown drafts.

validate(value, *, schema, validator_cls=Draft202012Validator) -> list[dict]
    Every violation of *schema* by *value* as
    ``{"pointer", "type", "message", "details"}``; empty when valid.

check_schema(schema, *, validator_cls=Draft202012Validator) -> list[dict]
    Same shape, for *schema* checked against the draft's meta-schema.
"""

from __future__ import annotations

from typing import Any, Mapping

from jsonschema import Draft7Validator, Draft201909Validator, Draft202012Validator
from jsonschema.exceptions import ValidationError

from . import utils

__all__ = [
    "VALIDATORS",
    "validator_class",
    "validate",
    "check_schema",
]

VALIDATORS = {
    "draft7": Draft7Validator,
    "draft2019_09": Draft201909Validator,
    "draft2020_12": Draft202012Validator,
}

# --------------------------------------------------------------------------- #
# Helpers                                                                     #
# --------------------------------------------------------------------------- #

def validator_class(name: str) -> type:
    try:
        return VALIDATORS[name]
    except KeyError:
        raise ValueError(f"Unsupported JSON Schema version '{name}'; choose from {sorted(VALIDATORS)}") from None


def _as_error(error: ValidationError) -> dict[str, Any]:
    details: dict[str, Any] = {"schema_path": utils.data_pointer(error.absolute_schema_path)}
    if error.validator in ("required", "dependentRequired", "dependencies", "enum", "const", "type"):
        details["expected"] = error.validator_value
    if error.context:
        details["context"] = [
            {"pointer": utils.data_pointer(sub.absolute_path), "message": sub.message}
            for sub in error.context
        ]
    return {
        "pointer": utils.data_pointer(error.absolute_path),
        "type": error.validator,
        "message": error.message,
        "details": details,
    }


def _sort_key(error: ValidationError) -> tuple:
    return tuple(str(p) for p in error.absolute_path), str(error.validator)


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #

def validate(value: Any, *, schema: Mapping[str, Any], validator_cls: type = Draft202012Validator) -> list[dict[str, Any]]:
    """Return every violation of *schema* by *value* (empty list when valid)."""
    engine = validator_cls(schema)
    return [_as_error(e) for e in sorted(engine.iter_errors(value), key=_sort_key)]


def check_schema(schema: Mapping[str, Any], *, validator_cls: type = Draft202012Validator) -> list[dict[str, Any]]:
    """Validate a rendered document against its draft's meta-schema."""
    meta = validator_cls(validator_cls.META_SCHEMA)
    return [_as_error(e) for e in sorted(meta.iter_errors(schema), key=_sort_key)]
