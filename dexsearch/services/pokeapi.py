"""HTTP access to the PokeAPI catalog, detail and species resources."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from dexsearch.config import PokeApiSettings
from dexsearch.domain.models import CatalogEntry
from dexsearch.services.exceptions import PokeApiError


class PokeApiClient:
    """Thin async wrapper over the three endpoints the search needs.

    Transport errors, HTTP error statuses and unreadable JSON all surface as
    :class:`PokeApiError`; callers never need to tell them apart.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: PokeApiSettings | None = None,
    ) -> None:
        self._client = http_client
        self._settings = settings or PokeApiSettings()

    @property
    def base_url(self) -> str:
        return str(self._settings.base_url).rstrip("/")

    async def fetch_catalog(self) -> tuple[CatalogEntry, ...]:
        payload = await self._get_json(
            f"{self.base_url}/pokemon",
            params={"limit": self._settings.catalog_limit},
        )
        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list):
            raise PokeApiError("Catalog response has no results list.")
        try:
            return tuple(CatalogEntry.model_validate(item) for item in results)
        except ValidationError as exc:
            raise PokeApiError(f"Catalog entry is malformed: {exc}") from exc

    async def fetch_detail(self, url: str) -> dict[str, Any]:
        return await self._get_object(url)

    async def fetch_species(self, pokemon_id: int) -> dict[str, Any]:
        return await self._get_object(f"{self.base_url}/pokemon-species/{pokemon_id}")

    async def _get_object(self, url: str) -> dict[str, Any]:
        payload = await self._get_json(url)
        if not isinstance(payload, dict):
            raise PokeApiError(f"Unexpected payload type from {url}.")
        return payload

    async def _get_json(self, url: str, *, params: dict[str, Any] | None = None) -> Any:
        try:
            response = await self._client.get(
                url,
                params=params,
                timeout=self._settings.request_timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            detail = exc.response.text[:200] if exc.response is not None else str(exc)
            status_code = exc.response.status_code if exc.response is not None else "unknown"
            raise PokeApiError(f"PokeAPI request failed ({status_code}): {detail}") from exc
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise PokeApiError(f"PokeAPI request failed: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise PokeApiError(f"PokeAPI response from {url} is not valid JSON.") from exc


__all__ = ["PokeApiClient"]
