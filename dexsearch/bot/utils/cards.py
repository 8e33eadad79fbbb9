"""Plain-text card layout for search results."""

from __future__ import annotations

from dexsearch.domain.models import DetailRecord
from dexsearch.i18n import I18nService

# Telegram photo captions are limited to 1024 characters.
CAPTION_LIMIT = 1024


def format_measure(value: float) -> str:
    """Render ``6.0`` as ``6`` and ``0.4`` as ``0.4``."""

    return f"{value:g}"


def format_card(record: DetailRecord, i18n: I18nService, *, locale: str | None = None) -> str:
    def label(key: str) -> str:
        return i18n.gettext(key, locale=locale)

    lines = [
        record.display_name,
        f"{label('card.id')}: {record.id}",
        f"{label('card.types')}: {record.types}",
        f"{label('card.height')}: {format_measure(record.height_m)} m",
        f"{label('card.weight')}: {format_measure(record.weight_kg)} kg",
        "",
        record.description,
    ]
    return _truncate("\n".join(lines), CAPTION_LIMIT)


def _truncate(value: str, limit: int) -> str:
    if len(value) <= limit:
        return value
    return f"{value[: limit - 3].rstrip()}..."


__all__ = ["CAPTION_LIMIT", "format_card", "format_measure"]
