"""Configuration helpers for environment-driven settings."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

if os.getenv("PYTEST_CURRENT_TEST") is None:
    load_dotenv()

DEFAULT_BLOCKLIST = "winkel,factuur,nieuw"


def _split_csv(value: str) -> Tuple[str, ...]:
    return tuple(entry.strip() for entry in value.split(",") if entry.strip())


@dataclass(slots=True)
class Settings:
    """Runtime application settings sourced from environment variables."""

    BOT_TOKEN: str = field(init=False)
    ADMIN_CHAT_IDS: Tuple[int, ...] = field(init=False)
    CHECK_INTERVAL_SECONDS: int = field(init=False)
    TRACKING_FILE: Path = field(init=False)
    SITE_ROOT: str = field(init=False)
    SPAM_BLOCKLIST: Tuple[str, ...] = field(init=False)
    HEADERS: dict[str, str] = field(init=False)
    REQUEST_TIMEOUT: float = field(init=False)
    EMPTY_RESULT_ALERT_THRESHOLD: int = field(init=False)

    def __post_init__(self) -> None:
        self.reload()

    def reload(self) -> None:
        self.BOT_TOKEN = os.getenv("BOT_TOKEN", "").strip()
        try:
            self.ADMIN_CHAT_IDS = tuple(
                int(chat_id)
                for chat_id in _split_csv(os.getenv("ADMIN_CHAT_IDS", ""))
            )
        except ValueError as exc:
            raise ValueError("ADMIN_CHAT_IDS must be a comma separated list of integers") from exc

        try:
            interval = int(os.getenv("CHECK_INTERVAL_SECONDS", "60"))
        except ValueError as exc:
            raise ValueError("CHECK_INTERVAL_SECONDS must be an integer") from exc
        if interval <= 0:
            raise ValueError("CHECK_INTERVAL_SECONDS must be positive")
        self.CHECK_INTERVAL_SECONDS = interval

        tracking_value = os.getenv("TRACKING_FILE", "tracking_data.json").strip()
        tracking_file = Path(tracking_value or "tracking_data.json")
        if not tracking_file.is_absolute():
            tracking_file = Path.cwd() / tracking_file
        self.TRACKING_FILE = tracking_file

        site_root = os.getenv("SITE_ROOT", "https://www.marktplaats.nl").strip().rstrip("/")
        if not site_root.startswith(("http://", "https://")):
            raise ValueError("SITE_ROOT must start with http:// or https://")
        self.SITE_ROOT = site_root

        self.SPAM_BLOCKLIST = tuple(
            term.lower() for term in _split_csv(os.getenv("SPAM_BLOCKLIST", DEFAULT_BLOCKLIST))
        )

        self.HEADERS = {
            "User-Agent": (
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
                "AppleWebKit/537.36 (KHTML, like Gecko) "
                "Chrome/124.0.0.0 Safari/537.36"
            )
        }

        try:
            timeout = float(os.getenv("REQUEST_TIMEOUT", "30"))
        except ValueError as exc:
            raise ValueError("REQUEST_TIMEOUT must be a number") from exc
        if timeout <= 0:
            raise ValueError("REQUEST_TIMEOUT must be positive")
        self.REQUEST_TIMEOUT = timeout

        try:
            threshold = int(os.getenv("EMPTY_RESULT_ALERT_THRESHOLD", "5"))
        except ValueError as exc:
            raise ValueError("EMPTY_RESULT_ALERT_THRESHOLD must be an integer") from exc
        if threshold <= 0:
            raise ValueError("EMPTY_RESULT_ALERT_THRESHOLD must be positive")
        self.EMPTY_RESULT_ALERT_THRESHOLD = threshold

    def validate(self) -> None:
        if not self.BOT_TOKEN:
            raise ValueError("BOT_TOKEN is required in .env file")
        if not self.ADMIN_CHAT_IDS:
            raise ValueError("ADMIN_CHAT_IDS is required in .env file")

settings = Settings()
