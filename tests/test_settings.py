from __future__ import annotations

from pathlib import Path

import pytest

from config import Settings, settings


def test_settings_read_from_environment(tmp_path):
    assert settings.BOT_TOKEN == "test_token_123456"
    assert settings.ADMIN_CHAT_IDS == (123456789, 987654321)
    assert settings.CHECK_INTERVAL_SECONDS == 60
    assert settings.TRACKING_FILE == tmp_path / "tracking_data.json"
    assert settings.SPAM_BLOCKLIST == ("winkel", "factuur", "nieuw")
    assert settings.REQUEST_TIMEOUT == 30.0


def test_defaults(monkeypatch):
    for name in ("CHECK_INTERVAL_SECONDS", "TRACKING_FILE", "SITE_ROOT", "SPAM_BLOCKLIST", "REQUEST_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)

    defaults = Settings()

    assert defaults.CHECK_INTERVAL_SECONDS == 60
    assert defaults.TRACKING_FILE == Path.cwd() / "tracking_data.json"
    assert defaults.SITE_ROOT == "https://www.marktplaats.nl"
    assert defaults.SPAM_BLOCKLIST == ("winkel", "factuur", "nieuw")


def test_blocklist_is_lowercased(monkeypatch):
    monkeypatch.setenv("SPAM_BLOCKLIST", " Shop , INVOICE,,")

    assert Settings().SPAM_BLOCKLIST == ("shop", "invoice")


def test_site_root_trailing_slash_is_stripped(monkeypatch):
    monkeypatch.setenv("SITE_ROOT", "https://www.2dehands.be/")

    assert Settings().SITE_ROOT == "https://www.2dehands.be"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("CHECK_INTERVAL_SECONDS", "0"),
        ("CHECK_INTERVAL_SECONDS", "soon"),
        ("REQUEST_TIMEOUT", "-1"),
        ("EMPTY_RESULT_ALERT_THRESHOLD", "0"),
        ("ADMIN_CHAT_IDS", "12,abc"),
        ("SITE_ROOT", "marktplaats.nl"),
    ],
)
def test_invalid_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError):
        Settings()


def test_validate_requires_token_and_admins(monkeypatch):
    monkeypatch.setenv("BOT_TOKEN", "")
    with pytest.raises(ValueError, match="BOT_TOKEN"):
        Settings().validate()

    monkeypatch.setenv("BOT_TOKEN", "token")
    monkeypatch.setenv("ADMIN_CHAT_IDS", "")
    with pytest.raises(ValueError, match="ADMIN_CHAT_IDS"):
        Settings().validate()
