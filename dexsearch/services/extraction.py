"""Turn raw PokeAPI detail/species payloads into display records."""

from __future__ import annotations

import re
from typing import Any, Iterable

from dexsearch.domain.models import DetailRecord
from dexsearch.services.exceptions import PokeApiError

FLAVOR_BREAKS_RE = re.compile(r"[\n\f]")


def build_detail_record(
    detail: dict[str, Any],
    species: dict[str, Any],
    *,
    locale: str,
    fallback_description: str,
) -> DetailRecord:
    """Combine the ``/pokemon/{id}`` and ``/pokemon-species/{id}`` payloads.

    Raises :class:`PokeApiError` when a required detail field is missing or
    has the wrong type.
    """

    try:
        pokemon_id = int(detail["id"])
        canonical_name = str(detail["name"])
        height = detail["height"] / 10
        weight = detail["weight"] / 10
        types = join_type_names(detail["types"])
    except (KeyError, TypeError, ValueError) as exc:
        raise PokeApiError(f"Detail payload is malformed: {exc!r}") from exc

    return DetailRecord(
        id=pokemon_id,
        display_name=localized_name(species, locale) or canonical_name,
        artwork_url=official_artwork_url(detail),
        types=types,
        height_m=height,
        weight_kg=weight,
        description=localized_description(species, locale) or fallback_description,
    )


def localized_name(species: dict[str, Any], locale: str) -> str | None:
    entry = _first_in_language(species.get("names"), locale)
    if entry is None:
        return None
    name = entry.get("name")
    return name if isinstance(name, str) and name else None


def localized_description(species: dict[str, Any], locale: str) -> str | None:
    entry = _first_in_language(species.get("flavor_text_entries"), locale)
    if entry is None:
        return None
    text = entry.get("flavor_text")
    if not isinstance(text, str) or not text:
        return None
    return FLAVOR_BREAKS_RE.sub(" ", text)


def official_artwork_url(detail: dict[str, Any]) -> str | None:
    sprites = detail.get("sprites")
    if not isinstance(sprites, dict):
        return None
    other = sprites.get("other")
    if not isinstance(other, dict):
        return None
    artwork = other.get("official-artwork")
    if not isinstance(artwork, dict):
        return None
    url = artwork.get("front_default")
    return url if isinstance(url, str) and url else None


def join_type_names(types: Iterable[dict[str, Any]]) -> str:
    return ", ".join(item["type"]["name"] for item in types)


def _first_in_language(entries: Any, locale: str) -> dict[str, Any] | None:
    if not isinstance(entries, list):
        return None
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        language = entry.get("language") or {}
        if isinstance(language, dict) and language.get("name") == locale:
            return entry
    return None


__all__ = [
    "build_detail_record",
    "join_type_names",
    "localized_description",
    "localized_name",
    "official_artwork_url",
]
