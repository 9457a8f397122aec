from __future__ import annotations

import csv
import hashlib
import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Iterable, Mapping, Optional, Union

import yaml

from ouilookup.errors import RegistryUnavailableError, check_not_none
from ouilookup.log import get_logger

logger = get_logger("export")

FORMATS = ("properties", "json", "yaml", "csv")

_ESCAPE_PATTERN = re.compile(r"\\(u[0-9A-Fa-f]{4}|.)")
_CONTROL_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def table_digest(table: Mapping[str, str]) -> str:
    """SHA-1 over every key followed by its organization, in key order."""
    digest = hashlib.sha1()
    for oui, organization in sorted(table.items()):
        digest.update(oui.encode("utf-8"))
        digest.update(organization.encode("utf-8"))
    return digest.hexdigest()


def escape_value(value: str) -> str:
    """Escape ``value`` for an ISO-8859-1 safe ``.properties`` file.

    Code points outside ASCII become ``\\uXXXX``; those beyond the BMP are
    written as a UTF-16 surrogate pair.
    """
    parts = []
    for ch in value:
        codepoint = ord(ch)
        if ch == "\\":
            parts.append("\\\\")
        elif codepoint <= 0x7F:
            parts.append(ch)
        elif codepoint <= 0xFFFF:
            parts.append(f"\\u{codepoint:04X}")
        else:
            offset = codepoint - 0x10000
            upper = 0xD800 + (offset >> 10)
            lower = 0xDC00 + (offset & 0x3FF)
            parts.append(f"\\u{upper:04X}\\u{lower:04X}")
    return "".join(parts)


def unescape_value(value: str) -> str:
    def _replace(match: re.Match) -> str:
        token = match.group(1)
        if len(token) == 5 and token[0] == "u":
            return chr(int(token[1:], 16))
        return _CONTROL_ESCAPES.get(token, token)

    text = _ESCAPE_PATTERN.sub(_replace, value)
    # Join surrogate pairs back into single code points.
    return text.encode("utf-16", "surrogatepass").decode("utf-16", "replace")


def write_properties(
    table: Mapping[str, str],
    handle: IO[str],
    generated_on: Optional[datetime] = None,
) -> None:
    check_not_none("table", table)
    if generated_on is None:
        generated_on = datetime.now(timezone.utc)
    entries = sorted(table.items())
    handle.write(f"# Generated on: {generated_on.strftime('%Y-%m-%d %H:%M:%S UTC')}\n")
    handle.write(f"# Entry count:  {len(entries)}\n")
    handle.write(f"# Data digest:  {table_digest(table)}\n")
    handle.write("\n")
    for oui, organization in entries:
        handle.write(f"{oui} = {escape_value(organization).strip()}\n")


def read_properties(lines: Iterable[str]) -> dict[str, str]:
    """Read a table written by :func:`write_properties`."""
    check_not_none("lines", lines)
    data: dict[str, str] = {}
    for line in lines:
        line = line.strip()
        if not line or line.startswith(("#", "!")):
            continue
        match = re.match(r"([^=:\s]+)\s*[=:]\s*(.*)", line)
        if not match:
            continue
        data[match.group(1)] = unescape_value(match.group(2))
    return dict(sorted(data.items()))


def load_properties(path: Union[str, Path]) -> dict[str, str]:
    check_not_none("path", path)
    try:
        with open(path, "r", encoding="latin-1") as handle:
            data = read_properties(handle)
    except OSError as exc:
        raise RegistryUnavailableError(str(path), str(exc)) from exc
    logger.info("loaded %d cached entries from %s", len(data), path)
    return data


def _write_csv(path: Path, table: Mapping[str, str]) -> None:
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=["oui", "organization"])
        writer.writeheader()
        for oui, organization in sorted(table.items()):
            writer.writerow({"oui": oui, "organization": organization})


def export_table(table: Mapping[str, str], fmt: str, output_path: Union[str, Path]) -> list[str]:
    """Write ``table`` to ``output_path`` in one of :data:`FORMATS`."""
    output_file = Path(output_path)
    fmt = fmt.lower()
    if fmt not in FORMATS:
        raise ValueError(f"unknown export format: {fmt}")
    output_file.parent.mkdir(parents=True, exist_ok=True)

    entries = dict(sorted(table.items()))
    if fmt == "properties":
        with output_file.open("w", encoding="latin-1", newline="\n") as handle:
            write_properties(entries, handle)
    elif fmt == "json":
        output_file.write_text(json.dumps(entries, indent=2, ensure_ascii=False), encoding="utf-8")
    elif fmt == "yaml":
        output_file.write_text(
            yaml.safe_dump(entries, allow_unicode=True, sort_keys=True, default_flow_style=False),
            encoding="utf-8",
        )
    else:
        _write_csv(output_file, entries)

    logger.info("wrote %d entries to %s (%s)", len(entries), output_file, fmt)
    return [str(output_file)]
