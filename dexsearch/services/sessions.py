"""Per-chat search sessions sharing one loaded catalog."""

from __future__ import annotations

from typing import Callable, Sequence

from dexsearch.config import SearchSettings
from dexsearch.domain.models import CatalogEntry
from dexsearch.logging import logger
from dexsearch.services.index_loader import IndexLoader
from dexsearch.services.pokeapi import PokeApiClient
from dexsearch.services.search import SearchCoordinator, SearchObserver

ObserverFactory = Callable[[int, str | None], SearchObserver]


class SearchSessionRegistry:
    def __init__(
        self,
        client: PokeApiClient,
        loader: IndexLoader,
        *,
        settings: SearchSettings | None = None,
        observer_factory: ObserverFactory | None = None,
    ) -> None:
        self._client = client
        self._loader = loader
        self._settings = settings or SearchSettings()
        self._observer_factory = observer_factory
        self._sessions: dict[int, SearchCoordinator] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, chat_id: int, *, locale: str | None = None) -> SearchCoordinator:
        coordinator = self._sessions.get(chat_id)
        if coordinator is not None:
            return coordinator

        observer = self._observer_factory(chat_id, locale) if self._observer_factory else None
        coordinator = SearchCoordinator(
            self._client,
            settings=self._settings,
            catalog=self._loader.entries if self._loader.loaded else None,
            observer=observer,
        )
        self._sessions[chat_id] = coordinator
        logger.info("search_session_created", chat_id=chat_id, catalog_size=len(coordinator.catalog))
        return coordinator

    def publish_catalog(self, entries: Sequence[CatalogEntry]) -> None:
        for coordinator in self._sessions.values():
            coordinator.attach_catalog(entries)

    async def shutdown(self) -> None:
        for coordinator in self._sessions.values():
            await coordinator.close()
        self._sessions.clear()


__all__ = ["ObserverFactory", "SearchSessionRegistry"]
