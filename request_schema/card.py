"""
card.py - human-readable views of a request schema.

Public API
----------
schema_card(schema, version=None) -> dict
    Plain summary of one version (properties, exclusions, path mapping).
to_markdown_card(data, *, heading_level=2) -> str
    Render such a summary (or any flat mapping) as Markdown.
mapping_frame(artifact) -> pandas.DataFrame
    One row per leaf: ``external``, ``internal``, ``variant``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence

import pandas as pd

from . import mapper
from .properties import DependentOn, Kind, Property, Unconditional

if TYPE_CHECKING:  # pragma: no cover
    from .contract import RequestSchema

__all__ = ["schema_card", "to_markdown_card", "mapping_frame"]

# --------------------------------------------------------------------------- #
# Summaries                                                                   #
# --------------------------------------------------------------------------- #

def _describe(prop: Property) -> str:
    kind = prop.kind
    if kind is Kind.FIELD:
        text = prop.payload.type
    elif kind is Kind.ARRAY:
        text = f"array of {prop.payload.type}"
    elif kind is Kind.CONST:
        text = f"const {prop.payload.value!r}"
    elif kind is Kind.ENUM:
        text = "enum " + " | ".join(repr(v) for v in prop.payload.values)
    elif kind is Kind.REFERENCE:
        text = f"reference to {prop.payload.source_name}"
        if prop.payload.property_name:
            text += f".{prop.payload.property_name}"
    elif kind is Kind.COLLECTION:
        text = f"collection of {_describe(prop.item)}"
    elif kind is Kind.ONE_OF:
        text = "one of " + " | ".join(prop.variants)
        if prop.discriminator:
            text += f" (by {prop.discriminator})"
    else:
        text = f"object with {len(prop.children)} properties"

    flags = []
    if isinstance(prop.required, Unconditional):
        flags.append("required")
    elif isinstance(prop.required, DependentOn):
        flags.append("requires " + ", ".join(prop.required.names))
    if prop.nullable:
        flags.append("nullable")
    if prop.map:
        flags.append(f"mapped to {prop.map}")
    return text + (f" ({'; '.join(flags)})" if flags else "")


def schema_card(schema: "RequestSchema", version: Optional[str] = None) -> dict[str, Any]:
    resolved = schema.resolve(version)
    return {
        "title": schema.title,
        "version": resolved.identifier,
        "description": resolved.description,
        "properties": {name: _describe(prop) for name, prop in resolved.properties.items()}
        if not resolved.is_combination else {"(root)": _describe(resolved.root)},
        "excluded": sorted(resolved.excluded),
        "mapping": [
            f"{row['external']} → {row['internal']}" + (f" [{row['variant']}]" if row["variant"] else "")
            for row in mapper.flatten(schema.mapping(resolved.identifier))
        ],
    }

# --------------------------------------------------------------------------- #
# Markdown                                                                    #
# --------------------------------------------------------------------------- #

def _scalar(v: Any) -> str:
    """Return a Markdown-safe scalar string."""
    if v is True:
        return "true"
    if v is False:
        return "false"
    if v is None:
        return "null"
    return str(v)


def _bullets(items: Sequence[Any]) -> str:
    return "\n".join(f"- {_scalar(item)}" for item in items)


def to_markdown_card(data: Mapping[str, Any], *, heading_level: int = 2) -> str:
    """
    Convert *data* into a Markdown card.

    Parameters
    ----------
    data : Mapping[str, Any]
        Usually :func:`schema_card` output.  Mappings become
        ``- **key**: value`` bullets, sequences plain bullets.
    heading_level : int, default 2
        Markdown heading level for top-level keys (##, ###, …).
    """
    h = "#" * heading_level
    parts: list[str] = []
    for key, value in data.items():
        parts.append(f"{h} {key.replace('_', ' ').title()}")
        if isinstance(value, Mapping):
            parts.append(_bullets([f"**{k}**: {_scalar(v)}" for k, v in value.items()]))
        elif isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            parts.append(_bullets(value) if value else "_none_")
        else:
            parts.append(_scalar(value))
        parts.append("")
    return "\n".join(parts).rstrip()

# --------------------------------------------------------------------------- #
# Tabular view                                                                #
# --------------------------------------------------------------------------- #

def mapping_frame(artifact: Mapping[str, Any]) -> pd.DataFrame:
    """Leaves of a mapping artifact as a DataFrame."""
    rows = mapper.flatten(dict(artifact))
    return pd.DataFrame(rows, columns=["external", "internal", "variant"])
