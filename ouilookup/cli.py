from __future__ import annotations

import argparse
import json
import logging
import sys

import uvicorn

from ouilookup.config import apply_config, load_config, registry_source
from ouilookup.errors import OuiLookupError
from ouilookup.export import FORMATS, export_table, write_properties
from ouilookup.log import LEVEL_NAMES, get_logger, setup_logging
from ouilookup.models import LookupResult
from ouilookup.resolver import Oui, normalize_oui

logger = get_logger("cli")


def _load(args: argparse.Namespace) -> Oui:
    source = args.source or registry_source()
    try:
        return Oui.load(source, timeout=args.timeout)
    except OuiLookupError as exc:
        raise SystemExit(f"error: {exc}") from exc


def cmd_lookup(args: argparse.Namespace) -> int:
    oui = _load(args)
    results = [
        LookupResult(address=address, oui=normalize_oui(address), organization=oui.get_name(address))
        for address in args.address
    ]
    if args.json:
        print(json.dumps([result.model_dump() for result in results], indent=2, ensure_ascii=False))
    else:
        for result in results:
            print(f"{result.address:<20} {result.organization or '(not found)'}")
    return 0 if all(result.found for result in results) else 1


def cmd_convert(args: argparse.Namespace) -> int:
    oui = _load(args)
    table = dict(oui.entries())
    if args.output == "-":
        if args.format != "properties":
            raise SystemExit("error: only the properties format can be written to stdout")
        write_properties(table, sys.stdout)
        return 0
    for path in export_table(table, args.format, args.output):
        print(f"wrote {len(table)} entries -> {path}")
    return 0


def cmd_web(args: argparse.Namespace) -> int:
    # Imported here: the API module reads its config at import time.
    from ouilookup.web import api

    api.configure(source=args.source, timeout=args.timeout)
    logger.info("starting lookup service on %s:%d", args.host, args.port)
    uvicorn.run(api.app, host=args.host, port=args.port, reload=False)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ouilookup",
        description="Look up the organization an IEEE OUI is registered to.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-level", choices=LEVEL_NAMES, default="warning", help="Log level when not verbose")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_source(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument("--source", help="Registry CSV path or URL, or a .properties cache")
        subparser.add_argument("--timeout", type=float, default=30.0, help="Download timeout in seconds")

    lookup_parser = subparsers.add_parser("lookup", help="Resolve one or more addresses")
    lookup_parser.add_argument("address", nargs="+", help="OUI or MAC address, e.g. 48:50:73 or F0-D2-F1-00-11-22")
    lookup_parser.add_argument("--json", action="store_true", help="Print results as JSON")
    add_source(lookup_parser)
    lookup_parser.set_defaults(func=cmd_lookup)

    convert_parser = subparsers.add_parser("convert", help="Convert the registry to another format")
    convert_parser.add_argument("--output", required=True, help="Output file, '-' for stdout")
    convert_parser.add_argument("--format", choices=FORMATS, default="properties", help="Output format")
    add_source(convert_parser)
    convert_parser.set_defaults(func=cmd_convert)

    web_parser = subparsers.add_parser("web", help="Serve lookups over HTTP")
    web_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    web_parser.add_argument("--port", type=int, default=8000, help="Bind port")
    add_source(web_parser)
    web_parser.set_defaults(func=cmd_web)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    config = load_config()
    apply_config(parser, config)
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else args.log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
