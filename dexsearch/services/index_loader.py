"""One-shot loader for the name/reference catalog."""

from __future__ import annotations

import asyncio
from typing import Callable

from dexsearch.domain.models import CatalogEntry
from dexsearch.logging import logger
from dexsearch.services.exceptions import ServiceError
from dexsearch.services.pokeapi import PokeApiClient

CatalogSubscriber = Callable[[tuple[CatalogEntry, ...]], None]


class IndexLoader:
    """Fetch the full catalog once and hand it to subscribers.

    A failed load is logged and leaves the catalog empty. The request is never
    repeated, successful or not. Concurrent callers share the one in-flight
    request and all receive its outcome.
    """

    def __init__(self, client: PokeApiClient) -> None:
        self._client = client
        self._entries: tuple[CatalogEntry, ...] = ()
        self._task: asyncio.Task[tuple[CatalogEntry, ...]] | None = None
        self._loaded = False
        self._subscribers: list[CatalogSubscriber] = []

    @property
    def entries(self) -> tuple[CatalogEntry, ...]:
        return self._entries

    @property
    def loaded(self) -> bool:
        return self._loaded

    def subscribe(self, callback: CatalogSubscriber) -> None:
        self._subscribers.append(callback)

    async def load(self) -> tuple[CatalogEntry, ...]:
        if self._task is None:
            self._task = asyncio.create_task(self._load())
        return await self._task

    async def _load(self) -> tuple[CatalogEntry, ...]:
        try:
            self._entries = await self._client.fetch_catalog()
        except ServiceError as exc:
            logger.error("catalog_load_failed", error=str(exc))
            self._entries = ()
        else:
            logger.info("catalog_loaded", entries=len(self._entries))
        self._loaded = True

        for callback in self._subscribers:
            callback(self._entries)
        return self._entries


__all__ = ["CatalogSubscriber", "IndexLoader"]
