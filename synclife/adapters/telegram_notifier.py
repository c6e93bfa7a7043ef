"""Telegram notification adapter — implements NotificationSink.

Wraps a telegram.Bot instance. "Permission" maps to whether a target chat
is configured and reachable by the bot:

- no chat id configured            → denied
- chat id configured, not checked  → undetermined
- get_chat() succeeded             → granted
- get_chat() raised                → denied
"""

from __future__ import annotations

import logging

from telegram import Bot
from telegram.constants import ParseMode
from telegram.error import TelegramError
from telegram.helpers import escape_markdown

from synclife.ports.notification_port import PermissionState

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Telegram implementation of NotificationSink."""

    def __init__(self, bot: Bot, chat_id: int | None) -> None:
        self._bot = bot
        self._chat_id = chat_id
        self._state = (
            PermissionState.DENIED if chat_id is None else PermissionState.UNDETERMINED
        )

    def permission_state(self) -> PermissionState:
        return self._state

    async def request_permission(self) -> PermissionState:
        if self._chat_id is None:
            return self._state
        try:
            await self._bot.get_chat(chat_id=self._chat_id)
        except TelegramError as exc:
            logger.warning("Telegram chat %d is not reachable: %s", self._chat_id, exc)
            self._state = PermissionState.DENIED
        else:
            self._state = PermissionState.GRANTED
        return self._state

    async def notify(self, title: str, body: str) -> None:
        if self._chat_id is None:
            return
        text = f"*{escape_markdown(title, version=2)}*\n{escape_markdown(body, version=2)}"
        await self._bot.send_message(
            chat_id=self._chat_id, text=text, parse_mode=ParseMode.MARKDOWN_V2,
        )


def create_telegram_notifier(token: str, chat_id: int | None) -> TelegramNotifier | None:
    """Build the sink from settings, or None when no bot token is configured."""
    if not token:
        logger.info("TELEGRAM_BOT_TOKEN not set; reminders stay in-app only")
        return None
    return TelegramNotifier(Bot(token=token), chat_id)
