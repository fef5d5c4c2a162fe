"""
configuration.py - process-wide settings.

There is a single :data:`config` instance.  Change it through
:func:`configure` (or :func:`reset`), never by assigning attributes: both
validate the options and bump :attr:`Configuration.generation`, which every
cached artifact is keyed on, so schemas and mappings built under older
settings are rebuilt on next use.

Public API
----------
config : Configuration
configure(**options) -> Configuration
reset() -> Configuration
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Mapping, Optional

from . import resolvers
from .properties import FIELD_TYPES
from .validator import VALIDATORS

__all__ = ["Configuration", "config", "configure", "reset", "ERROR_HANDLING_MODES"]

logger = logging.getLogger(__name__)

ERROR_HANDLING_MODES = ("raise", "result")

# --------------------------------------------------------------------------- #
# Settings                                                                    #
# --------------------------------------------------------------------------- #

@dataclass
class Configuration:
    validate_params: bool = True
    validation_error_handling: str = "raise"
    remove_extra_root_keys: bool = True
    insert_property_defaults: bool = True
    default_additional_properties: Optional[bool] = False
    json_schema_version: str = "draft2020_12"
    custom_field_types: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    current_version: Optional[Callable[[], str]] = None
    version_resolver: Callable[..., Optional[str]] = resolvers.exact
    generation: int = 0

    @property
    def raises(self) -> bool:
        return self.validation_error_handling == "raise"

    def resolve_current_version(self) -> Optional[str]:
        return self.current_version() if self.current_version is not None else None

    def field_type(self, name: str) -> tuple[str, dict[str, Any]]:
        """Return ``(json_type, schema_options)`` for a field type name."""
        custom = self.custom_field_types.get(name)
        if custom is not None:
            return custom["type"], dict(custom.get("schema_options") or {})
        if name in FIELD_TYPES:
            return name, {}
        raise KeyError(name)

    def knows_type(self, name: str) -> bool:
        return name in FIELD_TYPES or name in self.custom_field_types

    def touch(self) -> int:
        """Invalidate every cached artifact."""
        with _lock:
            self.generation += 1
            return self.generation


# --------------------------------------------------------------------------- #
# Option checks                                                               #
# --------------------------------------------------------------------------- #

def _check_bool(name: str, value: Any) -> None:
    if not isinstance(value, bool):
        raise ValueError(f"'{name}' must be a boolean, got {value!r}")


def _check_custom_types(value: Any) -> None:
    if not isinstance(value, Mapping):
        raise ValueError("'custom_field_types' must be a mapping of name → {type, schema_options}")
    for name, spec in value.items():
        if name in FIELD_TYPES:
            raise ValueError(f"Custom field type '{name}' shadows a built-in type")
        if not isinstance(spec, Mapping) or spec.get("type") not in FIELD_TYPES:
            raise ValueError(f"Custom field type '{name}' must declare one of {list(FIELD_TYPES)} as 'type'")
        if not isinstance(spec.get("schema_options", {}), Mapping):
            raise ValueError(f"Custom field type '{name}': 'schema_options' must be a mapping")


def _validate(name: str, value: Any) -> None:
    if name in ("validate_params", "remove_extra_root_keys", "insert_property_defaults"):
        _check_bool(name, value)
    elif name == "validation_error_handling":
        if value not in ERROR_HANDLING_MODES:
            raise ValueError(f"'validation_error_handling' must be one of {list(ERROR_HANDLING_MODES)}, got {value!r}")
    elif name == "default_additional_properties":
        if value not in (True, False, None):
            raise ValueError(f"'default_additional_properties' must be true, false or null, got {value!r}")
    elif name == "json_schema_version":
        if value not in VALIDATORS:
            raise ValueError(f"'json_schema_version' must be one of {sorted(VALIDATORS)}, got {value!r}")
    elif name == "custom_field_types":
        _check_custom_types(value)
    elif name in ("current_version", "version_resolver"):
        if value is None and name == "current_version":
            return
        if not callable(value):
            raise ValueError(f"'{name}' must be callable")
    else:
        raise ValueError(f"Unknown configuration option: '{name}'")


# --------------------------------------------------------------------------- #
# Public helpers                                                              #
# --------------------------------------------------------------------------- #

_lock = threading.RLock()
config = Configuration()


def configure(**options: Any) -> Configuration:
    """Validate and apply *options* to the process-wide configuration."""
    for name, value in options.items():
        _validate(name, value)
    with _lock:
        for name, value in options.items():
            setattr(config, name, dict(value) if name == "custom_field_types" else value)
        config.touch()
    logger.debug("Configuration updated: %s", sorted(options))
    return config


def reset() -> Configuration:
    """Restore every option to its default."""
    defaults = Configuration()
    with _lock:
        for f in fields(Configuration):
            if f.name != "generation":
                setattr(config, f.name, getattr(defaults, f.name))
        config.touch()
    return config
