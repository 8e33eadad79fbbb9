"""Middleware that injects the chat's search session per update."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from dexsearch.logging import bind_chat
from dexsearch.services.sessions import SearchSessionRegistry


class SearchSessionMiddleware(BaseMiddleware):
    def __init__(self, registry: SearchSessionRegistry) -> None:
        super().__init__()
        self.registry = registry

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        chat = getattr(event, "chat", None)
        if chat is None:
            return await handler(event, data)

        from_user = getattr(event, "from_user", None)
        locale = getattr(from_user, "language_code", None)
        data["search"] = self.registry.get(chat.id, locale=locale)
        with bind_chat(chat.id):
            return await handler(event, data)
