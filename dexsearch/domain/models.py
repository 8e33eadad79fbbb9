"""Pydantic models shared across service/bot layers."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CatalogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    url: str

    @property
    def numeric_id(self) -> str:
        """Second-to-last path segment of the detail url, e.g. ``25`` for ``.../pokemon/25/``."""

        segments = self.url.split("/")
        if len(segments) < 2:
            return ""
        return segments[-2]


class DetailRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    display_name: str
    artwork_url: str | None = None
    types: str
    height_m: float
    weight_kg: float
    description: str


__all__ = [
    "CatalogEntry",
    "DetailRecord",
]
