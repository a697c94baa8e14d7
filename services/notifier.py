"""Delivery of new-listing notifications to Telegram chats."""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from html import escape, unescape
from typing import Protocol

from aiogram import Bot
from aiogram.exceptions import (
    TelegramBadRequest,
    TelegramForbiddenError,
    TelegramRetryAfter,
)

from models import ListingRecord

logger = logging.getLogger(__name__)

MAX_SEND_ATTEMPTS = 5


@dataclass(slots=True)
class DeliveryResult:
    """Outcome of one send; failures carry a short reason."""

    delivered: bool
    error: str | None = None


class NotificationSink(Protocol):
    async def notify(self, channel_id: str, text: str) -> DeliveryResult:
        ...


def build_notification_text(
    category: str,
    listing: ListingRecord,
    ping_role: str | None = None,
) -> str:
    link = escape(listing.link, quote=True)
    lines = [
        f"🔥 <b>New deal in {escape(category)}!</b>",
        "",
        f"📌 <b>{escape(listing.title)}</b>",
        f"💰 <b>€{listing.price}</b>",
        f"🔗 <a href=\"{link}\">Check advertisement</a>",
    ]
    if ping_role:
        lines.append(escape(ping_role))
    return "\n".join(lines)


class TelegramNotifier:
    """Sends plain messages through an aiogram bot, never raising."""

    def __init__(self, bot: Bot) -> None:
        self.bot = bot

    async def notify(self, channel_id: str, text: str) -> DeliveryResult:
        parse_mode: str | None = "HTML"
        fallback_applied = False
        attempts = 0
        while attempts < MAX_SEND_ATTEMPTS:
            attempts += 1
            try:
                await self.bot.send_message(chat_id=channel_id, text=text, parse_mode=parse_mode)
                return DeliveryResult(True)
            except TelegramRetryAfter as exc:
                logger.info("Rate limited by Telegram, retrying in %ss", exc.retry_after)
                await asyncio.sleep(exc.retry_after + 1)
            except TelegramForbiddenError:
                logger.warning("Skipping chat %s: bot blocked or chat inaccessible", channel_id)
                return DeliveryResult(False, "forbidden")
            except TelegramBadRequest as exc:
                message = exc.message.lower() if exc.message else ""
                if "chat not found" in message:
                    logger.warning("Skipping chat %s: chat not found", channel_id)
                    return DeliveryResult(False, "chat not found")
                if "can't parse entities" in message and not fallback_applied:
                    text = _strip_html(text)
                    parse_mode = None
                    fallback_applied = True
                    continue
                logger.warning("Bad request when sending to %s: %s", channel_id, exc)
                return DeliveryResult(False, f"bad request: {exc.message}")
            except Exception as exc:
                logger.exception("Error sending notification to %s", channel_id)
                return DeliveryResult(False, repr(exc))
        logger.error("Failed to send notification to %s after %s attempts", channel_id, attempts)
        return DeliveryResult(False, "retries exhausted")


def _strip_html(value: str) -> str:
    without_tags = re.sub(r"<[^>]+>", "", value)
    return unescape(without_tags)
