"""
errors.py - exception taxonomy for request-schema.

Definition-time defects (bad declarations, unknown versions or properties,
duplicate mapping targets) are raised as soon as an artifact is built.
Request-time problems (validation failures, undeterminable one-of variants)
are collected as error dicts and surfaced through :class:`InvalidParamsError`
or a failed :class:`~request_schema.result.Result`.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

__all__ = [
    "RequestSchemaError",
    "DefinitionError",
    "MappingError",
    "VersionNotFound",
    "PropertyNotFound",
    "ResolutionError",
    "InvalidParamsError",
]

# --------------------------------------------------------------------------- #
# Definition-time defects                                                     #
# --------------------------------------------------------------------------- #

class RequestSchemaError(Exception):
    """Base class for every error raised by this package."""


class DefinitionError(RequestSchemaError, ValueError):
    """Raised when a schema declaration is malformed."""


class MappingError(DefinitionError):
    """Raised when two properties resolve to the same internal target path."""


class VersionNotFound(RequestSchemaError, LookupError):
    """Raised when a version identifier was never declared for a schema."""


class PropertyNotFound(RequestSchemaError, LookupError):
    """Raised when a property name or path does not exist in a resolved tree."""


# --------------------------------------------------------------------------- #
# Request-time failures                                                       #
# --------------------------------------------------------------------------- #

class ResolutionError(RequestSchemaError):
    """Raised when the variant of a one-of value cannot be determined."""

    def __init__(self, message: str, *, pointer: str = "", details: Mapping[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.pointer = pointer
        self.details = dict(details or {})

    def as_error(self) -> dict[str, Any]:
        """Return the failure in the same shape as a validator error."""
        return {
            "pointer": self.pointer,
            "type": "oneOf",
            "message": self.message,
            "details": self.details,
        }


class InvalidParamsError(RequestSchemaError):
    """Raised in ``raise`` mode when a payload fails validation."""

    def __init__(self, message: str = "Validation failed", *, errors: Sequence[Mapping[str, Any]] = ()):
        super().__init__(message)
        self.errors = list(errors)

    def __str__(self) -> str:
        base = super().__str__()
        if not self.errors:
            return base
        return f"{base}: " + "; ".join(
            f"{e.get('pointer') or '/'}: {e.get('message')}" for e in self.errors
        )
