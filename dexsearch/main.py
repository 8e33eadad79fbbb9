"""Application entrypoint."""

from __future__ import annotations

import asyncio
import contextlib
from functools import partial

import httpx
from aiogram import Bot, Dispatcher
from aiogram.client.session.aiohttp import AiohttpSession

from dexsearch.bot.middlewares import SearchSessionMiddleware
from dexsearch.bot.renderer import ChatRenderer
from dexsearch.bot.routers import setup_routers
from dexsearch.config import get_settings
from dexsearch.i18n import I18nService
from dexsearch.logging import configure_logging, logger
from dexsearch.services.error_monitor import ErrorMonitor
from dexsearch.services.index_loader import IndexLoader
from dexsearch.services.pokeapi import PokeApiClient
from dexsearch.services.sessions import SearchSessionRegistry


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)

    session = (
        AiohttpSession(proxy=settings.telegram_proxy) if settings.telegram_proxy else None
    )
    bot = Bot(token=settings.telegram_token.get_secret_value(), session=session)
    dp = Dispatcher()
    dp.include_router(setup_routers())
    dp.errors.register(ErrorMonitor(settings=settings))

    i18n = I18nService(default_locale=settings.default_language)

    async with httpx.AsyncClient(timeout=settings.pokeapi.request_timeout_seconds) as http_client:
        client = PokeApiClient(http_client, settings=settings.pokeapi)
        loader = IndexLoader(client)
        registry = SearchSessionRegistry(
            client,
            loader,
            settings=settings.search,
            observer_factory=partial(
                ChatRenderer,
                bot,
                i18n=i18n,
                min_query_length=settings.search.min_query_length,
            ),
        )
        loader.subscribe(registry.publish_catalog)

        search_middleware = SearchSessionMiddleware(registry)
        dp.message.middleware(search_middleware)
        dp.edited_message.middleware(search_middleware)

        # The catalog loads in the background; sessions pick it up when it lands.
        load_task = asyncio.create_task(loader.load())

        logger.info("bot_starting", environment=settings.environment)
        try:
            await dp.start_polling(bot, i18n=i18n, search_settings=settings.search)
        finally:
            load_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await load_task
            await registry.shutdown()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
