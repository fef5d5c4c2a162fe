"""
cli.py - ``request-schema`` console command.

Examples
--------
    request-schema orders.json --version 2025-06 --schema
    request-schema OrderRequest --registry contracts/ --mapping
    request-schema orders.json --version 2025-06 --process payload.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from . import loader
from .card import mapping_frame, schema_card, to_markdown_card
from .contract import RequestSchema
from .errors import InvalidParamsError, RequestSchemaError
from .registry import default_registry
from .result import Result

log = logging.getLogger("request_schema.cli")

# --------------------------------------------------------------------------- #
# Parser builder                                                              #
# --------------------------------------------------------------------------- #

def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="request-schema",
        description="Inspect versioned request schemas and run payloads through them.",
        fromfile_prefix_chars="@",
        add_help=False,
    )
    p.add_argument("-h", "--help", action="help", help="Show this help message and exit.")
    p.add_argument("contract", help="Contract JSON file, or a schema title loaded with --registry.")
    p.add_argument("--registry", metavar="DIR", help="Directory of contracts to register first (for references).")
    p.add_argument("--version", dest="version", help="Schema version (default: the configured current version).")
    p.add_argument("--property", help="Narrow --schema / --mapping to one property path.")
    p.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level.")

    action = p.add_mutually_exclusive_group(required=True)
    action.add_argument("--schema", action="store_true", help="Print the inline validation schema.")
    action.add_argument("--component", action="store_true", help="Print the schema with component $refs.")
    action.add_argument("--mapping", action="store_true", help="Print the mapping artifact.")
    action.add_argument("--external-mapping", action="store_true", help="Print internal → external paths.")
    action.add_argument("--table", action="store_true", help="Print the mapping as a table.")
    action.add_argument("--card", action="store_true", help="Print a Markdown summary of the version.")
    action.add_argument("--check", action="store_true", help="Check the rendered schema against its meta-schema.")
    action.add_argument("--process", metavar="PAYLOAD", help="JSON literal or file to transform.")
    return p

# --------------------------------------------------------------------------- #
# Commands                                                                    #
# --------------------------------------------------------------------------- #

def _open(args: argparse.Namespace) -> RequestSchema:
    if args.registry:
        loader.load_directory(args.registry, default_registry)
        if args.contract in default_registry:
            return default_registry.get(args.contract)
    return RequestSchema.load(Path(args.contract))


def _dump(obj: Any) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def _run(args: argparse.Namespace) -> int:
    schema = _open(args)
    version = args.version

    if args.schema:
        _dump(schema.to_validation_schema(version, property=args.property))
    elif args.component:
        _dump(schema.to_component_schema(version))
    elif args.mapping:
        _dump(schema.mapping(version, property=args.property))
    elif args.external_mapping:
        _dump(schema.external_mapping(version))
    elif args.table:
        print(mapping_frame(schema.mapping(version)).to_string(index=False))
    elif args.card:
        print(to_markdown_card(schema_card(schema, version)))
    elif args.check:
        errors = schema.validate_schema(version)
        if errors:
            _dump(errors)
            return 1
        log.info("%s: schema is valid", schema.title)
    else:
        try:
            result = schema.process(args.process, version)
        except InvalidParamsError as exc:
            _dump(exc.errors)
            return 2
        if isinstance(result, Result):
            _dump(result.value if result.success else result.errors)
            return 0 if result.success else 2
        _dump(result)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level="DEBUG" if args.verbose else "INFO",
        format="%(asctime)s %(levelname)s %(message)s",
    )
    try:
        return _run(args)
    except (RequestSchemaError, FileNotFoundError, ValueError) as exc:
        log.error("%s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
