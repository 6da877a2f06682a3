#!/usr/bin/env python3
"""Posts the outcome of each trading pass to a Telegram chat."""
from __future__ import annotations

import html
import logging
from typing import Optional

from telegram import Bot
from telegram.constants import ParseMode
from telegram.error import TelegramError

from analysis.models import OutcomeStatus, RunSummary

logger = logging.getLogger(__name__)

_STATUS_ICONS = {
    OutcomeStatus.EXECUTED: "✅",
    OutcomeStatus.SKIPPED: "⏭️",
    OutcomeStatus.FAILED: "❌",
}


def format_summary(summary: Optional[RunSummary], error: Optional[str] = None) -> str:
    if summary is None:
        return f"<b>🤖 Trading pass aborted</b>\n<pre>{html.escape(error or 'unknown error')}</pre>"

    lines = ["<b>🤖 Trading pass finished</b>", html.escape(summary.message)]
    for outcome in summary.outcomes:
        lines.append(f"{_STATUS_ICONS[outcome.status]} {html.escape(outcome.describe())}")
    return "\n".join(lines)


class TelegramNotifier:
    def __init__(self, bot_token: str, chat_id: str, bot: Optional[Bot] = None) -> None:
        self.chat_id = chat_id
        self.bot = bot or Bot(bot_token)

    async def notify(self, summary: Optional[RunSummary], error: Optional[str] = None) -> bool:
        """Sends the summary; failures are logged and reported as ``False``."""
        try:
            async with self.bot:
                await self.bot.send_message(
                    chat_id=self.chat_id,
                    text=format_summary(summary, error),
                    parse_mode=ParseMode.HTML,
                )
        except TelegramError as exc:
            logger.warning("Failed to send Telegram run summary: %s", exc)
            return False
        return True
