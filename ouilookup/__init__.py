"""Resolve IEEE OUIs (the first 24 bits of a MAC address) to organization names."""
from __future__ import annotations

from ouilookup.csv_parser import extract_record, parse_file, parse_lines, parse_stream, parse_url
from ouilookup.errors import ContractViolation, OuiLookupError, RegistryUnavailableError
from ouilookup.resolver import Oui, resolve_bytes, resolve_text

__version__ = "1.1.0"

__all__ = [
    "ContractViolation",
    "Oui",
    "OuiLookupError",
    "RegistryUnavailableError",
    "extract_record",
    "parse_file",
    "parse_lines",
    "parse_stream",
    "parse_url",
    "resolve_bytes",
    "resolve_text",
]
