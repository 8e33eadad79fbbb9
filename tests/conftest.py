"""Shared fixtures: an in-memory PokeAPI served through httpx.MockTransport."""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

from dexsearch.config import PokeApiSettings, SearchSettings
from dexsearch.services.pokeapi import PokeApiClient

from tests.fakes import BASE_URL, FakePokeApi


@pytest.fixture
def fake_api() -> FakePokeApi:
    return FakePokeApi()


@pytest.fixture
def search_settings() -> SearchSettings:
    return SearchSettings(debounce_seconds=0)


@pytest_asyncio.fixture
async def api_client(fake_api: FakePokeApi):
    transport = httpx.MockTransport(fake_api.handler)
    async with httpx.AsyncClient(transport=transport) as http_client:
        yield PokeApiClient(http_client, settings=PokeApiSettings(base_url=BASE_URL))
