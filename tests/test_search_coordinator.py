"""Behaviour of the incremental search coordinator."""

from __future__ import annotations

import asyncio

import pytest

from dexsearch.config import SearchSettings
from dexsearch.domain.models import CatalogEntry
from dexsearch.services.search import (
    SearchCoordinator,
    SearchPhase,
    match_candidates,
    normalize_query,
)

from tests.fakes import detail_url


def _seed(fake_api) -> None:
    fake_api.add(25, "pikachu", localized="Pikachu", flavor="Ratón\neléctrico.", types=("electric",), height=4, weight=60)
    fake_api.add(26, "raichu", types=("electric",))
    fake_api.add(172, "pichu", types=("electric",))
    fake_api.add(731, "pikipek", types=("normal", "flying"))
    fake_api.add(250, "ho-oh", types=("fire", "flying"))
    fake_api.add(2, "ivysaur", types=("grass", "poison"))


async def _coordinator(fake_api, api_client, settings, **kwargs) -> SearchCoordinator:
    _seed(fake_api)
    catalog = await api_client.fetch_catalog()
    return SearchCoordinator(api_client, settings=settings, catalog=catalog, **kwargs)


class UpdateRecorder:
    def __init__(self) -> None:
        self.updates = []

    async def __call__(self, update) -> None:
        self.updates.append(update)

    @property
    def kinds(self) -> list[tuple[str, int]]:
        return [(update.kind, update.snapshot.generation) for update in self.updates]


def test_normalize_query_lowercases_and_trims():
    assert normalize_query("  PiKa \n") == "pika"
    assert normalize_query(None) == ""


def test_numeric_match_is_exact_string_equality():
    catalog = [
        CatalogEntry(name="ivysaur", url=detail_url(2)),
        CatalogEntry(name="pikachu", url=detail_url(25)),
        CatalogEntry(name="ho-oh", url=detail_url(250)),
    ]

    assert [entry.name for entry in match_candidates(catalog, "25")] == ["pikachu"]
    assert match_candidates(catalog, "025") == []
    assert [entry.name for entry in match_candidates(catalog, "2")] == ["ivysaur"]


def test_name_match_is_substring_in_catalog_order():
    catalog = [
        CatalogEntry(name="pikachu", url=detail_url(25)),
        CatalogEntry(name="raichu", url=detail_url(26)),
        CatalogEntry(name="pichu", url=detail_url(172)),
    ]

    assert [entry.name for entry in match_candidates(catalog, "chu")] == ["pikachu", "raichu", "pichu"]
    assert [entry.name for entry in match_candidates(catalog, "ich")] == ["raichu", "pichu"]


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", " ", "p", " P ", "2"])
async def test_short_queries_settle_empty(fake_api, api_client, search_settings, text):
    coordinator = await _coordinator(fake_api, api_client, search_settings)
    requests_before = len(fake_api.requests)

    results = await coordinator.search(text)

    assert results == ()
    assert coordinator.results == ()
    assert coordinator.loading is False
    assert coordinator.phase is SearchPhase.SETTLED
    assert coordinator.snapshot().no_results is False
    assert len(fake_api.requests) == requests_before


@pytest.mark.asyncio
async def test_short_query_clears_previous_results(fake_api, api_client, search_settings):
    coordinator = await _coordinator(fake_api, api_client, search_settings)

    await coordinator.search("pika")
    assert len(coordinator.results) == 1

    await coordinator.search("p")
    assert coordinator.results == ()
    assert coordinator.loading is False


@pytest.mark.asyncio
async def test_name_query_returns_detail_record(fake_api, api_client, search_settings):
    coordinator = await _coordinator(fake_api, api_client, search_settings)

    results = await coordinator.search("pika")

    assert [record.id for record in results] == [25]
    record = coordinator.results[0]
    assert record.display_name == "Pikachu"
    assert record.types == "electric"
    assert record.height_m == pytest.approx(0.4)
    assert record.weight_kg == pytest.approx(6.0)
    assert record.description == "Ratón eléctrico."
    assert coordinator.loading is False
    assert coordinator.phase is SearchPhase.SETTLED


@pytest.mark.asyncio
async def test_numeric_query_returns_same_record(fake_api, api_client, search_settings):
    coordinator = await _coordinator(fake_api, api_client, search_settings)

    results = await coordinator.search("25")

    assert [record.id for record in results] == [25]
    assert fake_api.count("/api/v2/pokemon/250/") == 0


@pytest.mark.asyncio
async def test_numeric_query_with_leading_zero_has_no_results(fake_api, api_client, search_settings):
    coordinator = await _coordinator(fake_api, api_client, search_settings)

    results = await coordinator.search("025")

    assert results == ()
    snapshot = coordinator.snapshot()
    assert snapshot.no_results is True
    assert snapshot.loading is False


@pytest.mark.asyncio
async def test_every_result_name_contains_query(fake_api, api_client, search_settings):
    coordinator = await _coordinator(fake_api, api_client, search_settings)

    results = await coordinator.search("  CHU ")

    assert [record.id for record in results] == [25, 26, 172]
    assert all("chu" in fake_api.details[record.id]["name"] for record in results)


@pytest.mark.asyncio
async def test_newer_generation_suppresses_older_one(fake_api, api_client, search_settings):
    recorder = UpdateRecorder()
    coordinator = await _coordinator(fake_api, api_client, search_settings, observer=recorder)
    arrived, release = fake_api.hold("/api/v2/pokemon/25/")

    first = asyncio.create_task(coordinator.search("pik"))
    await arrived.wait()
    second_results = await coordinator.search("pika")
    release.set()
    first_results = await first

    assert first_results == ()
    assert [record.id for record in second_results] == [25]
    assert [record.id for record in coordinator.results] == [25]
    assert coordinator.latest_generation == 2
    assert coordinator.loading is False
    # pik also matched pikipek, which must never be fetched once superseded.
    assert fake_api.count("/api/v2/pokemon/731/") == 0
    assert fake_api.count("/api/v2/pokemon-species/25") == 1
    assert recorder.kinds == [
        ("started", 1),
        ("started", 2),
        ("result", 2),
        ("settled", 2),
    ]


@pytest.mark.asyncio
async def test_superseded_generation_never_clears_loading(fake_api, api_client, search_settings):
    coordinator = await _coordinator(fake_api, api_client, search_settings)
    arrived_old, release_old = fake_api.hold("/api/v2/pokemon/25/")

    first = asyncio.create_task(coordinator.search("pik"))
    await arrived_old.wait()

    arrived_new, release_new = fake_api.hold("/api/v2/pokemon-species/25")
    second = asyncio.create_task(coordinator.search("pika"))
    await arrived_new.wait()

    release_old.set()
    await first
    assert coordinator.loading is True
    assert coordinator.results == ()
    assert coordinator.phase is SearchPhase.FETCHING

    release_new.set()
    await second
    assert coordinator.loading is False
    assert [record.id for record in coordinator.results] == [25]


@pytest.mark.asyncio
async def test_results_are_visible_progressively(fake_api, api_client, search_settings):
    coordinator = await _coordinator(fake_api, api_client, search_settings)
    arrived, release = fake_api.hold("/api/v2/pokemon/26/")

    task = asyncio.create_task(coordinator.search("chu"))
    await arrived.wait()

    assert [record.id for record in coordinator.results] == [25]
    assert coordinator.loading is True

    release.set()
    await task
    assert [record.id for record in coordinator.results] == [25, 26, 172]


@pytest.mark.asyncio
async def test_failed_candidate_is_skipped(fake_api, api_client, search_settings):
    coordinator = await _coordinator(fake_api, api_client, search_settings)
    fake_api.fail("/api/v2/pokemon/26/")
    fake_api.fail("/api/v2/pokemon-species/172", status_code=404)

    results = await coordinator.search("chu")

    assert [record.id for record in results] == [25]
    assert coordinator.loading is False
    assert coordinator.phase is SearchPhase.SETTLED


@pytest.mark.asyncio
async def test_malformed_detail_is_skipped(fake_api, api_client, search_settings):
    coordinator = await _coordinator(fake_api, api_client, search_settings)
    del fake_api.details[26]["types"]

    results = await coordinator.search("chu")

    assert [record.id for record in results] == [25, 172]


@pytest.mark.asyncio
async def test_all_candidates_failing_settles_with_no_results(fake_api, api_client, search_settings):
    coordinator = await _coordinator(fake_api, api_client, search_settings)
    fake_api.fail("/api/v2/pokemon/25/")

    results = await coordinator.search("pika")

    assert results == ()
    assert coordinator.snapshot().no_results is True


@pytest.mark.asyncio
async def test_same_query_twice_is_idempotent(fake_api, api_client, search_settings):
    coordinator = await _coordinator(fake_api, api_client, search_settings)

    first = await coordinator.search("chu")
    second = await coordinator.search("chu")

    assert first == second
    assert coordinator.results == second
    assert coordinator.latest_generation == 2


@pytest.mark.asyncio
async def test_observer_sees_each_update_kind(fake_api, api_client, search_settings):
    recorder = UpdateRecorder()
    coordinator = await _coordinator(fake_api, api_client, search_settings, observer=recorder)

    await coordinator.search("chu")
    await coordinator.search("x")

    assert [kind for kind, _ in recorder.kinds] == [
        "started",
        "result",
        "result",
        "result",
        "settled",
        "cleared",
    ]
    started = recorder.updates[0].snapshot
    assert started.loading is True and started.results == ()
    assert [update.record.id for update in recorder.updates[1:4]] == [25, 26, 172]
    assert len(recorder.updates[3].snapshot.results) == 3
    assert recorder.updates[4].snapshot.loading is False


@pytest.mark.asyncio
async def test_observer_failure_does_not_abort_generation(fake_api, api_client, search_settings):
    async def broken(update) -> None:
        raise RuntimeError("renderer down")

    coordinator = await _coordinator(fake_api, api_client, search_settings, observer=broken)

    results = await coordinator.search("chu")

    assert len(results) == 3
    assert coordinator.loading is False


@pytest.mark.asyncio
async def test_empty_catalog_yields_no_matches(api_client, search_settings):
    coordinator = SearchCoordinator(api_client, settings=search_settings)

    results = await coordinator.search("pika")

    assert results == ()
    assert coordinator.loading is False
    assert coordinator.snapshot().no_results is True


@pytest.mark.asyncio
async def test_submit_debounces_rapid_input(fake_api, api_client):
    settings = SearchSettings(debounce_seconds=0.05)
    coordinator = await _coordinator(fake_api, api_client, settings)

    for text in ("p", "pi", "pik", "pika"):
        coordinator.submit(text)
    await coordinator.drain()

    assert coordinator.latest_generation == 1
    assert coordinator.query == "pika"
    assert [record.id for record in coordinator.results] == [25]


@pytest.mark.asyncio
async def test_attach_catalog_reruns_current_query(fake_api, api_client, search_settings):
    _seed(fake_api)
    catalog = await api_client.fetch_catalog()
    coordinator = SearchCoordinator(api_client, settings=search_settings)

    await coordinator.search("pika")
    assert coordinator.results == ()

    coordinator.attach_catalog(catalog)
    await coordinator.drain()

    assert coordinator.catalog == catalog
    assert [record.id for record in coordinator.results] == [25]


@pytest.mark.asyncio
async def test_attach_catalog_without_query_does_not_search(fake_api, api_client, search_settings):
    _seed(fake_api)
    catalog = await api_client.fetch_catalog()
    coordinator = SearchCoordinator(api_client, settings=search_settings)

    coordinator.attach_catalog(catalog)
    await coordinator.drain()

    assert coordinator.latest_generation == 0
    assert coordinator.phase is SearchPhase.IDLE


@pytest.mark.asyncio
async def test_close_cancels_pending_search(fake_api, api_client):
    coordinator = await _coordinator(fake_api, api_client, SearchSettings(debounce_seconds=5))

    coordinator.submit("pika")
    await coordinator.close()

    assert coordinator.latest_generation == 0


@pytest.mark.asyncio
async def test_search_waits_for_catalog_before_matching(fake_api, api_client, search_settings):
    _seed(fake_api)
    catalog = await api_client.fetch_catalog()
    recorder = UpdateRecorder()
    coordinator = SearchCoordinator(api_client, settings=search_settings, catalog=None, observer=recorder)
    requests_before = len(fake_api.requests)

    results = await coordinator.search("pika")

    assert results == ()
    assert coordinator.catalog_ready is False
    assert coordinator.loading is True
    assert coordinator.snapshot().no_results is False
    assert len(fake_api.requests) == requests_before
    assert recorder.kinds == [("started", 1)]

    coordinator.attach_catalog(catalog)
    await coordinator.drain()

    assert coordinator.loading is False
    assert [record.id for record in coordinator.results] == [25]
    assert [kind for kind, _ in recorder.kinds] == ["started", "started", "result", "settled"]


@pytest.mark.asyncio
async def test_attach_catalog_does_not_rerun_short_query(fake_api, api_client, search_settings):
    _seed(fake_api)
    catalog = await api_client.fetch_catalog()
    recorder = UpdateRecorder()
    coordinator = SearchCoordinator(api_client, settings=search_settings, catalog=None, observer=recorder)

    await coordinator.search("p")
    coordinator.attach_catalog(catalog)
    await coordinator.drain()

    assert recorder.kinds == [("cleared", 1)]
