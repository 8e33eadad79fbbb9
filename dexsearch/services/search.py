"""Incremental search over the loaded catalog.

Every triggered search mints a new generation id. A fetch loop keeps working
only while its generation is the latest one; once a newer search starts, the
old loop stops before its next request and never touches the visible results
or the loading flag again.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Awaitable, Callable, Literal, Sequence

from dexsearch.config import SearchSettings
from dexsearch.domain.models import CatalogEntry, DetailRecord
from dexsearch.logging import logger
from dexsearch.services.exceptions import PokeApiError, ServiceError
from dexsearch.services.extraction import build_detail_record
from dexsearch.services.pokeapi import PokeApiClient
from dexsearch.utils.debounce import Debouncer


class SearchPhase(str, enum.Enum):
    IDLE = "idle"
    MATCHING = "matching"
    FETCHING = "fetching"
    SETTLED = "settled"


UpdateKind = Literal["started", "result", "settled", "cleared"]


@dataclass(frozen=True, slots=True)
class SearchSnapshot:
    query: str
    generation: int
    phase: SearchPhase
    loading: bool
    results: tuple[DetailRecord, ...] = ()
    no_results: bool = False


@dataclass(frozen=True, slots=True)
class SearchUpdate:
    kind: UpdateKind
    snapshot: SearchSnapshot
    record: DetailRecord | None = None


SearchObserver = Callable[[SearchUpdate], Awaitable[None]]


def normalize_query(text: str | None) -> str:
    return (text or "").strip().lower()


def match_candidates(catalog: Sequence[CatalogEntry], query: str) -> list[CatalogEntry]:
    """Filter the catalog for an already normalized query.

    All-digit queries match the reference id by string equality, so ``025``
    does not match ``25``. Anything else is a substring test on the name.
    """

    if query.isdigit() and query.isascii():
        return [entry for entry in catalog if entry.numeric_id == query]
    return [entry for entry in catalog if query in entry.name]


class SearchCoordinator:
    def __init__(
        self,
        client: PokeApiClient,
        *,
        settings: SearchSettings | None = None,
        catalog: Sequence[CatalogEntry] | None = (),
        observer: SearchObserver | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or SearchSettings()
        # None means the catalog has not arrived yet; searches wait for it.
        self._catalog_ready = catalog is not None
        self._catalog: tuple[CatalogEntry, ...] = tuple(catalog or ())
        self._observer = observer
        self._debouncer = Debouncer(self._settings.debounce_seconds)

        self._query = ""
        self._latest_generation = 0
        self._phase = SearchPhase.IDLE
        self._loading = False
        self._results: list[DetailRecord] = []

    @property
    def catalog(self) -> tuple[CatalogEntry, ...]:
        return self._catalog

    @property
    def catalog_ready(self) -> bool:
        return self._catalog_ready

    @property
    def query(self) -> str:
        return self._query

    @property
    def latest_generation(self) -> int:
        return self._latest_generation

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def phase(self) -> SearchPhase:
        return self._phase

    @property
    def results(self) -> tuple[DetailRecord, ...]:
        return tuple(self._results)

    def snapshot(self) -> SearchSnapshot:
        return SearchSnapshot(
            query=self._query,
            generation=self._latest_generation,
            phase=self._phase,
            loading=self._loading,
            results=tuple(self._results),
            no_results=(
                not self._loading
                and len(self._query) >= self._settings.min_query_length
                and not self._results
            ),
        )

    def submit(self, text: str) -> None:
        """Debounced entry point for a changed query text."""

        self._debouncer.schedule(lambda: self.search(text))

    def attach_catalog(self, entries: Sequence[CatalogEntry]) -> None:
        """Install the loaded catalog and rerun the current query against it."""

        self._catalog = tuple(entries)
        self._catalog_ready = True
        if len(self._query) >= self._settings.min_query_length:
            self.submit(self._query)

    async def drain(self) -> None:
        await self._debouncer.drain()

    async def close(self) -> None:
        await self._debouncer.cancel()

    async def search(self, text: str) -> tuple[DetailRecord, ...]:
        """Run one search generation to completion or until superseded.

        Returns the records this generation produced, which equal the visible
        results only when the generation was never superseded.
        """

        query = normalize_query(text)
        self._latest_generation += 1
        generation = self._latest_generation
        self._query = query
        self._results = []

        if len(query) < self._settings.min_query_length:
            self._loading = False
            self._phase = SearchPhase.SETTLED
            await self._notify("cleared")
            return ()

        self._loading = True
        self._phase = SearchPhase.MATCHING
        if not self._catalog_ready:
            logger.info("search_deferred", generation=generation, query=query)
            await self._notify("started")
            return ()

        candidates = match_candidates(self._catalog, query)
        self._phase = SearchPhase.FETCHING
        logger.info(
            "search_started",
            generation=generation,
            query=query,
            candidates=len(candidates),
        )
        await self._notify("started")

        produced: list[DetailRecord] = []
        for entry in candidates:
            if not self._is_current(generation):
                logger.info("search_superseded", generation=generation, query=query)
                return tuple(produced)
            record = await self._fetch_record(entry, generation)
            if record is None:
                continue
            produced.append(record)
            if self._is_current(generation):
                self._results.append(record)
                await self._notify("result", record)

        if not self._is_current(generation):
            logger.info("search_superseded", generation=generation, query=query)
            return tuple(produced)

        self._loading = False
        self._phase = SearchPhase.SETTLED
        logger.info(
            "search_settled",
            generation=generation,
            query=query,
            results=len(self._results),
        )
        await self._notify("settled")
        return tuple(produced)

    def _is_current(self, generation: int) -> bool:
        return generation == self._latest_generation

    async def _fetch_record(self, entry: CatalogEntry, generation: int) -> DetailRecord | None:
        try:
            detail = await self._client.fetch_detail(entry.url)
            if not self._is_current(generation):
                return None
            pokemon_id = detail.get("id")
            if pokemon_id is None:
                raise PokeApiError("Detail payload has no id.")
            species = await self._client.fetch_species(pokemon_id)
            return build_detail_record(
                detail,
                species,
                locale=self._settings.target_locale,
                fallback_description=self._settings.fallback_description,
            )
        except ServiceError as exc:
            logger.warning(
                "candidate_fetch_failed",
                generation=generation,
                name=entry.name,
                error=str(exc),
            )
            return None

    async def _notify(self, kind: UpdateKind, record: DetailRecord | None = None) -> None:
        if self._observer is None:
            return
        update = SearchUpdate(kind=kind, snapshot=self.snapshot(), record=record)
        try:
            await self._observer(update)
        except Exception:
            logger.warning(
                "search_observer_failed",
                kind=kind,
                generation=update.snapshot.generation,
                exc_info=True,
            )


__all__ = [
    "SearchCoordinator",
    "SearchObserver",
    "SearchPhase",
    "SearchSnapshot",
    "SearchUpdate",
    "match_candidates",
    "normalize_query",
]
