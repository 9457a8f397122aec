"""Resolve OUIs in text or binary form against a registry table."""
from __future__ import annotations

import re
from bisect import bisect_left
from collections.abc import Sequence
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Tuple, Union

from ouilookup.csv_parser import parse_file, parse_url
from ouilookup.errors import check_not_none
from ouilookup.export import load_properties
from ouilookup.log import get_logger

logger = get_logger("resolver")

# Two hex digits, optional separator, twice more; whatever follows is ignored.
OUI_PATTERN = re.compile(r"([0-9a-fA-F]{2})[:-]?([0-9a-fA-F]{2})[:-]?([0-9a-fA-F]{2})")

URL_SCHEMES = ("http://", "https://", "file://")

Address = Union[str, bytes, bytearray, memoryview, Sequence]


def normalize_oui(address: Optional[str]) -> Optional[str]:
    """Return the canonical 6-digit upper-case key for a text address.

    >>> normalize_oui("48:57:dd:01:02:03")
    '4857DD'
    """
    if not isinstance(address, str):
        return None
    match = OUI_PATTERN.match(address)
    if not match:
        return None
    return "".join(match.groups()).upper()


def oui_from_bytes(address) -> Optional[str]:
    """Return the key for the first three bytes of a binary address."""
    if address is None or isinstance(address, str):
        return None
    if isinstance(address, (bytes, bytearray, memoryview)):
        prefix = list(bytes(address[:3]))
    elif isinstance(address, Sequence):
        prefix = list(address[:3])
    else:
        return None
    if len(prefix) < 3:
        return None
    if not all(isinstance(value, int) and not isinstance(value, bool) for value in prefix):
        return None
    return "".join(f"{value & 0xFF:02X}" for value in prefix)


def resolve_text(mapping: Optional[Mapping[str, str]], address: Optional[str]) -> Optional[str]:
    if mapping is None:
        return None
    key = normalize_oui(address)
    if key is None:
        return None
    return mapping.get(key)


def resolve_bytes(mapping: Optional[Mapping[str, str]], address) -> Optional[str]:
    if mapping is None:
        return None
    key = oui_from_bytes(address)
    if key is None:
        return None
    return mapping.get(key)


class Oui:
    """Read-only view over a registry table.

    Accepted text addresses include ``"00CDFE"``, ``"3c5ab4"``,
    ``"48:50:73"``, ``"48:57:dd:01:02:03"``, ``"F0-D2-F1"``,
    ``"0010e0#XYZ"`` and ``"00:03-47@XYZ"``: only the first six hex
    digits matter.  Binary addresses need at least three bytes.
    """

    def __init__(self, data: Optional[Mapping[str, str]]):
        self._data: Optional[Mapping[str, str]] = None if data is None else MappingProxyType(data)
        # The table is never written after parsing, so the key order is computed once.
        self._keys: list[str] = [] if data is None else sorted(data)

    @classmethod
    def load(cls, source: Union[str, Path], timeout: float = 30.0) -> "Oui":
        """Build an instance from a CSV path, a registry URL or a ``.properties`` cache."""
        check_not_none("source", source)
        text = str(source)
        if text.startswith(URL_SCHEMES):
            return cls(parse_url(text, timeout=timeout))
        if text.endswith(".properties"):
            return cls(load_properties(text))
        return cls(parse_file(text))

    def get_name(self, address: Optional[Address]) -> Optional[str]:
        """Return the organization the OUI is registered to, or ``None``."""
        if address is None or self._data is None:
            return None
        if isinstance(address, str):
            return resolve_text(self._data, address)
        return resolve_bytes(self._data, address)

    def keys(self, prefix: str = "") -> list[str]:
        """Return the registered OUIs starting with ``prefix``, in ascending order."""
        if not prefix:
            return list(self._keys)
        start = bisect_left(self._keys, prefix)
        end = bisect_left(self._keys, prefix + chr(0x10FFFF))
        return self._keys[start:end]

    def entries(self) -> Iterator[Tuple[str, str]]:
        if self._data is None:
            return iter(())
        data = self._data
        return ((key, data[key]) for key in self._keys)

    def organization(self, oui: str) -> Optional[str]:
        """Exact lookup by canonical key, without address normalization."""
        return None if self._data is None else self._data.get(oui)

    def __len__(self) -> int:
        return 0 if self._data is None else len(self._data)

    def __contains__(self, address: object) -> bool:
        return self.get_name(address) is not None  # type: ignore[arg-type]

    def __repr__(self) -> str:
        return f"Oui(entries={len(self)})"
