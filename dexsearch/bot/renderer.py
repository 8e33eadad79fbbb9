"""Render search session updates into a Telegram chat."""

from __future__ import annotations

import asyncio

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError

from dexsearch.bot.utils.cards import format_card
from dexsearch.i18n import I18nService
from dexsearch.logging import logger
from dexsearch.services.search import SearchUpdate


class ChatRenderer:
    """Async observer for one chat's :class:`SearchCoordinator`.

    A "loading" message stands in for the loading indicator: it is sent when a
    generation starts and removed when that generation settles. Cards are sent
    one by one as records arrive.

    Updates are rendered one at a time. An update whose generation is older
    than the newest one seen is dropped, so a superseded search can neither
    leave its loading message behind nor post cards after a newer search began.
    """

    def __init__(
        self,
        bot: Bot,
        chat_id: int,
        locale: str | None = None,
        *,
        i18n: I18nService,
        min_query_length: int = 2,
    ) -> None:
        self._bot = bot
        self._chat_id = chat_id
        self._i18n = i18n
        self._locale = i18n.resolve_locale(locale)
        self._min_query_length = min_query_length
        self._status_message_id: int | None = None
        self._latest_generation = 0
        self._lock = asyncio.Lock()

    @property
    def locale(self) -> str:
        return self._locale

    async def __call__(self, update: SearchUpdate) -> None:
        generation = update.snapshot.generation
        if generation < self._latest_generation:
            return
        # Recorded before waiting, so queued updates of older generations see it.
        self._latest_generation = generation

        async with self._lock:
            if generation < self._latest_generation:
                logger.debug(
                    "search_update_dropped",
                    chat_id=self._chat_id,
                    kind=update.kind,
                    generation=generation,
                )
                return
            await self._render(update)

    async def _render(self, update: SearchUpdate) -> None:
        if update.kind == "started":
            await self._clear_status()
            status = await self._bot.send_message(
                chat_id=self._chat_id,
                text=self._text("search.loading"),
                parse_mode=None,
            )
            self._status_message_id = status.message_id
        elif update.kind == "result" and update.record is not None:
            await self._send_card(update)
        elif update.kind == "settled":
            await self._clear_status()
            if update.snapshot.no_results:
                await self._bot.send_message(
                    chat_id=self._chat_id,
                    text=self._text("search.no_results", query=update.snapshot.query),
                    parse_mode=None,
                )
        elif update.kind == "cleared":
            await self._clear_status()
            if update.snapshot.query:
                await self._bot.send_message(
                    chat_id=self._chat_id,
                    text=self._text("search.too_short", min_length=self._min_query_length),
                    parse_mode=None,
                )

    async def _send_card(self, update: SearchUpdate) -> None:
        record = update.record
        caption = format_card(record, self._i18n, locale=self._locale)
        if record.artwork_url:
            try:
                await self._bot.send_photo(
                    chat_id=self._chat_id,
                    photo=record.artwork_url,
                    caption=caption,
                    parse_mode=None,
                )
                return
            except TelegramAPIError as exc:
                logger.warning(
                    "card_photo_failed",
                    chat_id=self._chat_id,
                    pokemon_id=record.id,
                    error=str(exc),
                )
        await self._bot.send_message(chat_id=self._chat_id, text=caption, parse_mode=None)

    async def _clear_status(self) -> None:
        message_id = self._status_message_id
        if message_id is None:
            return
        self._status_message_id = None
        try:
            await self._bot.delete_message(chat_id=self._chat_id, message_id=message_id)
        except TelegramAPIError as exc:
            logger.warning("status_message_delete_failed", chat_id=self._chat_id, error=str(exc))

    def _text(self, key: str, **kwargs) -> str:
        return self._i18n.gettext(key, locale=self._locale, **kwargs)


__all__ = ["ChatRenderer"]
