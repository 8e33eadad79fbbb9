"""Log unhandled bot errors and optionally notify the administrator."""

from __future__ import annotations

import traceback

from aiogram import Bot
from aiogram.dispatcher.event.bases import UNHANDLED
from aiogram.exceptions import TelegramAPIError
from aiogram.types import ErrorEvent, Update

from dexsearch.config import BotSettings
from dexsearch.logging import logger

# Telegram messages are limited to 4096 characters.
TELEGRAM_MESSAGE_LIMIT = 3900
TRACEBACK_CHAR_LIMIT = 1800


class ErrorMonitor:
    """Async callable plugged into aiogram error observer."""

    def __init__(self, settings: BotSettings) -> None:
        self._settings = settings

    async def __call__(self, event: ErrorEvent, bot: Bot):
        return await self.handle_error(event, bot)

    async def handle_error(self, event: ErrorEvent, bot: Bot):
        update_id = getattr(event.update, "update_id", None)
        logger.error(
            "bot_error_captured",
            exception_type=event.exception.__class__.__name__,
            exception=str(event.exception),
            update_id=update_id,
        )

        admin_id = self._settings.admin_telegram_id
        if admin_id is None:
            return UNHANDLED

        try:
            await bot.send_message(chat_id=admin_id, text=self._build_message(event), parse_mode=None)
        except TelegramAPIError:
            logger.exception("error_monitor_notification_failed", update_id=update_id)
        return UNHANDLED

    def _build_message(self, event: ErrorEvent) -> str:
        exception = event.exception
        lines = [
            "BOT ERROR DETECTED",
            f"Environment: {self._settings.environment}",
            f"Exception: {exception.__class__.__name__}: {exception}",
            f"Update ID: {getattr(event.update, 'update_id', 'unknown')}",
            f"Chat: {self._describe_chat(event.update)}",
        ]
        traceback_text = self._format_traceback(exception)
        if traceback_text:
            lines.extend(["", "Traceback:", traceback_text])

        text = "\n".join(lines).strip()
        if len(text) > TELEGRAM_MESSAGE_LIMIT:
            text = f"{text[:TELEGRAM_MESSAGE_LIMIT - 15].rstrip()}\n...[truncated]"
        return text

    @staticmethod
    def _describe_chat(update: Update | None) -> str:
        message = None
        if update is not None:
            message = update.message or update.edited_message
        chat = getattr(message, "chat", None)
        if chat is None:
            return "unknown"
        return " | ".join(str(part) for part in (chat.id, chat.type) if part)

    @staticmethod
    def _format_traceback(exception: Exception) -> str:
        trace = "".join(
            traceback.format_exception(exception.__class__, exception, exception.__traceback__)
        ).strip()
        if len(trace) <= TRACEBACK_CHAR_LIMIT:
            return trace
        return f"{trace[: TRACEBACK_CHAR_LIMIT - 15].rstrip()}\n...[truncated]"


__all__ = ["ErrorMonitor"]
