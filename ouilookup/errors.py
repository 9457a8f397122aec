"""Exceptions raised by ouilookup."""
from __future__ import annotations

from typing import Optional


class OuiLookupError(Exception):
    """Base exception for all ouilookup errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ContractViolation(OuiLookupError, ValueError):
    """A required argument was missing."""

    def __init__(self, name: str):
        super().__init__(f"'{name}' is None")
        self.name = name


class RegistryUnavailableError(OuiLookupError):
    """The registry source could not be opened or read."""

    def __init__(self, source: str, details: Optional[str] = None):
        super().__init__(f"cannot read registry from {source}", details)
        self.source = source


def check_not_none(name: str, value: object) -> None:
    if value is None:
        raise ContractViolation(name)
