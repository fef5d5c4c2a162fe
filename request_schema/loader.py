"""
loader.py - read JSON request-schema contracts from disk.

Public API
----------
load_schema(path) -> dict
    Parsed contract, raising crisp errors on failure.
load_directory(directory, registry=None) -> dict[str, RequestSchema]
    Every ``*.json`` contract of *directory*, registered by title.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    from .contract import RequestSchema
    from .registry import Registry

__all__ = ["load_schema", "load_directory"]

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------- #
# Helpers                                                                     #
# --------------------------------------------------------------------------- #

def _read(path: Path) -> dict[str, Any]:
    """Read & parse a JSON contract, raising crisp errors on failure."""
    try:
        with path.open(encoding="utf-8") as fd:
            data = json.load(fd)
    except FileNotFoundError as exc:
        raise FileNotFoundError(f"Contract not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"{path}: a contract must be a JSON object")
    return data


# --------------------------------------------------------------------------- #
# Public utilities                                                            #
# --------------------------------------------------------------------------- #

def load_schema(path: str | Path) -> dict[str, Any]:
    return copy.deepcopy(_read(Path(path)))


def load_directory(directory: str | Path, registry: "Registry | None" = None) -> dict[str, "RequestSchema"]:
    """Load every contract in *directory* (sorted by file name).

    All files are registered before any version is resolved, so contracts
    may reference each other regardless of file order.
    """
    from .contract import RequestSchema

    root = Path(directory)
    if not root.is_dir():
        raise FileNotFoundError(f"Contract directory not found: {root}")
    loaded: dict[str, RequestSchema] = {}
    for path in sorted(root.glob("*.json")):
        schema = RequestSchema.from_dict(_read(path), registry=registry)
        loaded[schema.title] = schema
        logger.debug("Loaded %s from %s", schema.title, path.name)
    return loaded
