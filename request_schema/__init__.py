"""
request_schema – versioned request schemas with JSON Schema rendering and
external → internal parameter mapping.
"""
from .configuration import config, configure, reset
from .contract import RequestSchema
from .errors import (
    DefinitionError,
    InvalidParamsError,
    MappingError,
    PropertyNotFound,
    RequestSchemaError,
    ResolutionError,
    VersionNotFound,
)
from .registry import Registry, default_registry
from .result import Result
from .parser import parse_input
from .card import mapping_frame, schema_card, to_markdown_card
from . import resolvers

__all__ = [
    "RequestSchema",
    "Registry",
    "default_registry",
    "Result",
    "config",
    "configure",
    "reset",
    "resolvers",
    "RequestSchemaError",
    "DefinitionError",
    "MappingError",
    "VersionNotFound",
    "PropertyNotFound",
    "ResolutionError",
    "InvalidParamsError",
    "parse_input",
    "schema_card",
    "to_markdown_card",
    "mapping_frame",
]
