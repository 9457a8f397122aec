from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class OuiEntry(BaseModel):
    oui: str = Field(pattern=r"^[0-9A-F]{6}$")
    organization: str


class LookupResult(BaseModel):
    address: str
    oui: Optional[str] = None  # canonical key, None when the address is unparseable
    organization: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.organization is not None
