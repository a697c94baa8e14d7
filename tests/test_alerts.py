import asyncio
import logging
from typing import List, Tuple, cast

import pytest

from aiogram import Bot

from services.alerts import MAX_ALERT_LENGTH, AdminAlertHandler, send_critical_alert


class DummyBot:
    def __init__(self, failing: Tuple[int, ...] = ()) -> None:
        self.sent: List[Tuple[int, str]] = []
        self._failing = failing

    async def send_message(self, chat_id: int, text: str, parse_mode: str | None = None) -> None:
        if chat_id in self._failing:
            raise RuntimeError("chat unavailable")
        self.sent.append((chat_id, text))


@pytest.mark.asyncio
async def test_admin_alert_handler_forwards_errors() -> None:
    bot = DummyBot()
    handler = AdminAlertHandler(cast(Bot, bot), (1, 2), loop=asyncio.get_running_loop())

    logger = logging.getLogger("test.alerts.errors")
    logger.setLevel(logging.DEBUG)
    logger.addHandler(handler)
    logger.propagate = False

    logger.error("Source returned no listings")
    await asyncio.sleep(0.01)

    assert [chat_id for chat_id, _ in bot.sent] == [1, 2]
    assert "Source returned no listings" in bot.sent[0][1]
    assert "ERROR in test.alerts.errors" in bot.sent[0][1]

    logger.removeHandler(handler)


@pytest.mark.asyncio
async def test_admin_alert_handler_ignores_warnings() -> None:
    bot = DummyBot()
    handler = AdminAlertHandler(cast(Bot, bot), (1,), loop=asyncio.get_running_loop())

    logger = logging.getLogger("test.alerts.warnings")
    logger.setLevel(logging.DEBUG)
    logger.addHandler(handler)
    logger.propagate = False

    logger.warning("Just a warning")
    await asyncio.sleep(0.01)

    assert bot.sent == []

    logger.removeHandler(handler)


@pytest.mark.asyncio
async def test_admin_alert_handler_includes_traceback() -> None:
    bot = DummyBot()
    handler = AdminAlertHandler(cast(Bot, bot), (1,), loop=asyncio.get_running_loop())

    logger = logging.getLogger("test.alerts.traceback")
    logger.addHandler(handler)
    logger.propagate = False

    try:
        raise KeyError("missing")
    except KeyError:
        logger.exception("Error checking source")
    await asyncio.sleep(0.01)

    assert "Traceback" in bot.sent[0][1]
    assert "KeyError" in bot.sent[0][1]

    logger.removeHandler(handler)


@pytest.mark.asyncio
async def test_send_critical_alert_basic() -> None:
    bot = DummyBot()

    await send_critical_alert(cast(Bot, bot), (1, 2), "Check of Fietsen failed")

    assert len(bot.sent) == 2
    assert "CRITICAL ALERT" in bot.sent[0][1]
    assert "Check of Fietsen failed" in bot.sent[0][1]
    assert bot.sent[1][0] == 2


@pytest.mark.asyncio
async def test_send_critical_alert_truncates_and_survives_failures() -> None:
    bot = DummyBot(failing=(1,))

    await send_critical_alert(cast(Bot, bot), (1, 2), "x" * (MAX_ALERT_LENGTH * 2))

    assert len(bot.sent) == 1
    assert bot.sent[0][0] == 2
    assert bot.sent[0][1].count("x") == MAX_ALERT_LENGTH


@pytest.mark.asyncio
async def test_send_critical_alert_empty_admins() -> None:
    bot = DummyBot()

    await send_critical_alert(cast(Bot, bot), [], "Should not send")

    assert len(bot.sent) == 0
