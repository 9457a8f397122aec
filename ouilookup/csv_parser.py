"""Parser for the IEEE MA-L registry (``oui.csv``).

Only data records of the shape ``MA-L,XXXXXX,<organization>`` matter; the
header and anything else that does not fit are skipped.  The organization
field may be CSV-quoted and contain commas and doubled quotes.
"""
from __future__ import annotations

import http.client
import io
import re
from pathlib import Path
from typing import IO, Iterable, Optional, Tuple, Union
from urllib import error, request

from ouilookup.errors import RegistryUnavailableError, check_not_none
from ouilookup.log import get_logger

logger = get_logger("csv_parser")

DOUBLE_QUOTE = '"'
COMMA = ","
DATA_LINE_PATTERN = re.compile(r"MA-L,([0-9A-F]{6}),(.+)")
USER_AGENT = "ouilookup/1.1"


def _count_leading(text: str, char: str) -> int:
    return len(text) - len(text.lstrip(char))


def extract_field(raw: str) -> str:
    """Un-escape the organization field of a data record.

    An odd run of leading quotes marks a quoted field.  ``""`` collapses to
    one literal quote and a lone quote ends the field.  In an unquoted
    field quotes are ordinary characters and a comma ends the field.  A
    bare ``""`` is an empty quoted value.
    """
    leading = _count_leading(raw, DOUBLE_QUOTE)
    quoted = leading % 2 == 1
    if leading == 2 and raw[2:].lstrip()[:1] in ("", COMMA):
        return ""

    index = 1 if quoted else 0
    length = len(raw)
    output = []
    while index < length:
        ch = raw[index]
        if ch == DOUBLE_QUOTE and quoted:
            if index + 1 < length and raw[index + 1] == DOUBLE_QUOTE:
                output.append(DOUBLE_QUOTE)
                index += 2
                continue
            break
        if ch == COMMA and not quoted:
            break
        output.append(ch)
        index += 1
    return "".join(output)


def extract_record(line: str) -> Optional[Tuple[str, str]]:
    """Return ``(oui, organization)`` for a data record, ``None`` otherwise."""
    check_not_none("line", line)
    match = DATA_LINE_PATTERN.fullmatch(line.rstrip("\r\n"))
    if not match:
        return None
    return match.group(1), extract_field(match.group(2)).strip()


def parse_lines(lines: Iterable[str]) -> dict[str, str]:
    """Build the registry table from ``lines``.

    Later records overwrite earlier ones with the same key.  The returned
    dict iterates in ascending key order.
    """
    check_not_none("lines", lines)
    data: dict[str, str] = {}
    for line_number, line in enumerate(lines, start=1):
        record = extract_record(line)
        if record is None:
            if line_number != 1:
                logger.debug("line %d does not match the record pattern: %r", line_number, line)
            continue
        oui, organization = record
        if oui in data:
            logger.debug("line %d overrides %s (%r -> %r)", line_number, oui, data[oui], organization)
        data[oui] = organization
    logger.info("parsed %d registry entries", len(data))
    return dict(sorted(data.items()))


def _is_binary(handle: IO) -> bool:
    if isinstance(handle, io.TextIOBase):
        return False
    if isinstance(handle, (io.RawIOBase, io.BufferedIOBase)):
        return True
    return "b" in getattr(handle, "mode", "")


def parse_stream(handle: IO) -> dict[str, str]:
    """Parse an already-opened text or binary handle; binary input is UTF-8."""
    check_not_none("handle", handle)
    if not _is_binary(handle):
        return parse_lines(handle)
    text = io.TextIOWrapper(handle, encoding="utf-8", errors="replace", newline=None)
    try:
        return parse_lines(text)
    finally:
        # Leave closing the underlying handle to its owner.
        text.detach()


def parse_file(path: Union[str, Path]) -> dict[str, str]:
    check_not_none("path", path)
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as handle:
            return parse_lines(handle)
    except OSError as exc:
        raise RegistryUnavailableError(str(path), str(exc)) from exc


def parse_url(url: str, timeout: float = 30.0) -> dict[str, str]:
    """Download and parse a registry file.  No retry is attempted."""
    check_not_none("url", url)
    logger.info("fetching registry from %s", url)
    req = request.Request(url, headers={"User-Agent": USER_AGENT})
    try:
        with request.urlopen(req, timeout=timeout) as resp:
            content = resp.read().decode("utf-8", errors="replace")
    except (error.URLError, http.client.HTTPException, OSError) as exc:
        raise RegistryUnavailableError(url, str(exc)) from exc
    return parse_lines(io.StringIO(content, newline=None))
