"""Monitoring service for tracked category pages."""
from __future__ import annotations

import asyncio
import logging
from html import escape

from aiogram import Bot

from config import settings
from models import ListingRecord, TrackedSource
from services.alerts import send_critical_alert
from services.diff import DiffEngine
from services.filters import ListingFilter
from services.notifier import NotificationSink, TelegramNotifier, build_notification_text
from services.parser import UNKNOWN_CATEGORY, PageFetcher, PageResult, Parser
from services.storage import TrackingStore

logger = logging.getLogger(__name__)


class Monitor:
    """Owns the tracking state and runs sweeps over every tracked source.

    Command handlers and the scheduler job share one instance on one event
    loop, so tracked sources, seen links and the ping role need no locking.
    """

    def __init__(
        self,
        bot: Bot,
        fetcher: PageFetcher | None = None,
        store: TrackingStore | None = None,
        notifier: NotificationSink | None = None,
        listing_filter: ListingFilter | None = None,
    ) -> None:
        self.bot = bot
        self.fetcher = fetcher or Parser()
        self.store = store or TrackingStore()
        self.notifier = notifier or TelegramNotifier(bot)
        self.diff = DiffEngine(listing_filter or ListingFilter())
        self.ping_role: str | None = None
        self.fetch_timeout = settings.REQUEST_TIMEOUT
        self._running = False
        self._empty_streaks: dict[str, int] = {}

    async def check_new_items(self) -> None:
        """Sweep all tracked sources once, one after another."""
        if self._running:
            logger.warning("Previous check is still running; skipping this tick")
            return

        self._running = True
        try:
            await self._check_all()
        finally:
            self._running = False

    async def _check_all(self) -> None:
        sources = self.store.list()
        logger.info("Starting monitoring check for %s sources…", len(sources))

        notified = 0
        failed = 0
        for source in sources:
            try:
                notified += await self._check_source(source)
            except asyncio.CancelledError:
                logger.info("Monitoring task cancelled for %s (bot shutdown)", source.url)
                raise
            except Exception as exc:
                failed += 1
                # below ERROR so AdminAlertHandler does not repeat the alert
                logger.warning("Error checking source %s", source.url, exc_info=True)
                await send_critical_alert(
                    self.bot,
                    settings.ADMIN_CHAT_IDS,
                    f"Check of <b>{escape(source.category)}</b> failed.\n\n"
                    f"URL: {escape(source.url)}\nError: {escape(repr(exc))}",
                )

        logger.info(
            "Monitoring check completed: %d sources, %d notifications, %d failed",
            len(sources), notified, failed,
        )

    async def _check_source(self, source: TrackedSource) -> int:
        """Sweep one source. Returns the number of notifications sent."""
        logger.info("Checking %s (%s)", source.category, source.url)
        page = await self._fetch(source.url)

        if source.url not in self.store:
            logger.info("Source %s was untracked during the check; skipping", source.url)
            return 0

        if not page.listings:
            self._track_empty(source.url)
            return 0

        if self._empty_streaks.pop(source.url, 0):
            logger.info("✅ Source %s returned listings again", source.url)

        new_listings = self.diff.sweep(source.url, page.listings, source.budget)
        for listing in new_listings:
            await self._send_notification(source, listing)

        logger.info("Found %s new listings at %s", len(new_listings), source.url)
        return len(new_listings)

    async def _fetch(self, url: str) -> PageResult:
        try:
            return await asyncio.wait_for(self.fetcher.fetch_listings(url), timeout=self.fetch_timeout)
        except asyncio.TimeoutError:
            logger.warning("Fetching %s took longer than %.0fs; treating as empty", url, self.fetch_timeout)
            return PageResult([], UNKNOWN_CATEGORY)

    async def _send_notification(self, source: TrackedSource, listing: ListingRecord) -> None:
        text = build_notification_text(source.category, listing, self.ping_role)
        result = await self.notifier.notify(source.channel_id, text)
        if result.delivered:
            logger.info("Notification sent to %s for: %s", source.channel_id, listing.title)
        else:
            logger.warning(
                "Notification for %s to %s was not delivered: %s",
                listing.link, source.channel_id, result.error,
            )

    def _track_empty(self, url: str) -> None:
        streak = self._empty_streaks.get(url, 0) + 1
        self._empty_streaks[url] = streak
        logger.warning("No listings found at %s", url)
        if streak == settings.EMPTY_RESULT_ALERT_THRESHOLD:
            logger.error(
                "❌ Source %s returned no listings %d times in a row - may need attention!",
                url, streak,
            )

    async def track(self, url: str, channel_id: int | str, budget: int | None = None) -> str:
        """Start (or re-configure) tracking of a category URL.

        Fetches the page once to learn its category label; the listings are
        not recorded as seen.
        """
        normalized_url = url.strip()
        if not normalized_url.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        if budget is not None and budget <= 0:
            raise ValueError("Budget must be a positive whole number")

        page = await self._fetch(normalized_url)
        source = TrackedSource(
            url=normalized_url,
            channel_id=str(channel_id),
            budget=budget,
            category=page.category,
        )
        self.store.upsert(source)
        logger.info("Tracking %s as %r (budget %s)", normalized_url, source.category, budget)
        return source.category

    def untrack(self, label: str) -> TrackedSource | None:
        removed = self.store.remove_by_label(label.strip())
        if removed is None:
            return None
        self.diff.forget(removed.url)
        self._empty_streaks.pop(removed.url, None)
        logger.info("Stopped tracking %s (%s)", removed.category, removed.url)
        return removed

    def list_sources(self) -> list[TrackedSource]:
        return self.store.list()

    def set_ping_role(self, role: str | None) -> None:
        self.ping_role = role.strip() if role and role.strip() else None
        logger.info("Ping role set to %r", self.ping_role)

    async def close(self) -> None:
        close = getattr(self.fetcher, "close", None)
        if close is not None:
            await close()
