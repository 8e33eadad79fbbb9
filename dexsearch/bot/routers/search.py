"""Telegram handlers: every text message is a new query text."""

from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from dexsearch.config import SearchSettings
from dexsearch.i18n import I18nService
from dexsearch.logging import logger
from dexsearch.services.search import SearchCoordinator

router = Router()

QUERY_FILTER = F.text & ~F.text.startswith("/")


@router.message(CommandStart())
async def handle_start(message: Message, i18n: I18nService) -> None:
    locale = getattr(message.from_user, "language_code", None)
    name = message.from_user.full_name if message.from_user else ""
    greeting = i18n.gettext("start.greeting", locale=locale, name=name)
    await message.answer(greeting, parse_mode=None)


@router.message(Command("help"))
async def handle_help(
    message: Message,
    i18n: I18nService,
    search_settings: SearchSettings | None = None,
) -> None:
    locale = getattr(message.from_user, "language_code", None)
    min_length = (search_settings or SearchSettings()).min_query_length
    await message.answer(
        i18n.gettext("help.text", locale=locale, min_length=min_length),
        parse_mode=None,
    )


@router.message(QUERY_FILTER)
@router.edited_message(QUERY_FILTER)
async def handle_query(message: Message, search: SearchCoordinator | None = None) -> None:
    if search is None:
        return
    logger.debug("query_submitted", chat_id=message.chat.id, text=message.text)
    search.submit(message.text)
