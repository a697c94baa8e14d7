"""Telegram command handlers for the bot."""
from __future__ import annotations

import html
import logging
from typing import Sequence

from aiogram import Router
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.types import Message

from bot.filters import CanManageChat
from models import TrackedSource
from services.monitor import Monitor

logger = logging.getLogger(__name__)
router = Router()

CLEAR_PING_WORDS = {"off", "none", "clear", "-"}

HELP_TEXT = (
    "📢 <b>Listing tracker help</b>\n\n"
    "<b>Available commands:</b>\n"
    "/track &lt;url&gt; [budget] - Follow a category page in this chat\n"
    "/untrack &lt;category&gt; - Stop following a category\n"
    "/list - Show all followed categories\n"
    "/pingrole &lt;@mention|off&gt; - Mention someone on every new listing\n"
    "/help - Show this help"
)


def _error_text(exc: Exception) -> str:
    return f"❌ <b>Error:</b> {html.escape(str(exc))}"


def _parse_track_args(payload: str | None) -> tuple[str, int | None]:
    parts = (payload or "").split()
    if not parts:
        raise ValueError("Usage: /track <url> [budget]")
    if len(parts) > 2:
        raise ValueError("Too many arguments. Usage: /track <url> [budget]")

    url = parts[0]
    if len(parts) == 1:
        return url, None

    raw_budget = parts[1].lstrip("€")
    try:
        budget = int(raw_budget)
    except ValueError as exc:
        raise ValueError("Budget must be a whole number of euros") from exc
    return url, budget


def _format_budget(budget: int | None) -> str:
    return f" (Max: €{budget})" if budget else ""


def _format_source_list(sources: Sequence[TrackedSource]) -> str:
    if not sources:
        return "❌ No categories are followed, use /track."
    lines = [
        f"- <b>{html.escape(source.category)}</b>{_format_budget(source.budget)}"
        for source in sources
    ]
    return "📌 <b>Tracked categories:</b>\n" + "\n".join(lines)


@router.message(CommandStart())
async def cmd_start(message: Message) -> None:
    user_id = message.from_user.id if message.from_user else None
    logger.info("User %s started the bot in chat %s", user_id, message.chat.id)
    await message.answer(
        "✅ <b>Bot is online!</b>\n\nUse /track in the chat that should receive new listings.\n\n" + HELP_TEXT,
        parse_mode='HTML',
    )


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT, parse_mode='HTML')


@router.message(Command("track"))
async def cmd_track(message: Message, command: CommandObject, monitor: Monitor) -> None:
    """Track a category page; notifications go to the chat the command came from."""
    try:
        url, budget = _parse_track_args(command.args)
        category = await monitor.track(url, message.chat.id, budget)
    except ValueError as exc:
        await message.answer(_error_text(exc), parse_mode='HTML')
        return
    except OSError as exc:
        logger.exception("Could not save tracking data")
        await message.answer(_error_text(exc), parse_mode='HTML')
        return

    budget_note = f" with a budget of €{budget}" if budget else ""
    await message.answer(
        f"✅ <b>{html.escape(category)}</b> is now being tracked{budget_note}",
        parse_mode='HTML',
    )


@router.message(Command("untrack"))
async def cmd_untrack(message: Message, command: CommandObject, monitor: Monitor) -> None:
    label = (command.args or "").strip()
    if not label:
        await message.answer("Usage: /untrack &lt;category&gt;", parse_mode='HTML')
        return

    try:
        removed = monitor.untrack(label)
    except OSError as exc:
        logger.exception("Could not save tracking data")
        await message.answer(_error_text(exc), parse_mode='HTML')
        return

    if removed is None:
        await message.answer(
            f"❌ No tracked category named <b>{html.escape(label)}</b>. See /list.",
            parse_mode='HTML',
        )
        return

    await message.answer(
        f"🛑 <b>{html.escape(removed.category)}</b> is no longer being tracked",
        parse_mode='HTML',
    )


@router.message(Command("list"))
async def cmd_list(message: Message, monitor: Monitor) -> None:
    await message.answer(_format_source_list(monitor.list_sources()), parse_mode='HTML')


@router.message(Command("pingrole"), CanManageChat())
async def cmd_pingrole(message: Message, command: CommandObject, monitor: Monitor) -> None:
    value = (command.args or "").strip()
    if not value:
        current = html.escape(monitor.ping_role) if monitor.ping_role else "nobody"
        await message.answer(
            f"Messages currently ping: {current}\nUsage: /pingrole &lt;@mention|off&gt;",
            parse_mode='HTML',
        )
        return

    if value.lower() in CLEAR_PING_WORDS:
        monitor.set_ping_role(None)
        await message.answer("✅ Messages no longer ping anyone", parse_mode='HTML')
        return

    monitor.set_ping_role(value)
    await message.answer(f"✅ Messages now ping: {html.escape(value)}", parse_mode='HTML')


@router.message(Command("pingrole"))
async def cmd_pingrole_denied(message: Message) -> None:
    await message.answer("⛔ Only chat administrators can change the ping role.")
