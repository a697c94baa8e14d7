"""Per-source memory of seen listing links."""
from __future__ import annotations

import logging
from typing import Sequence

from models import ListingRecord
from services.filters import ListingFilter

logger = logging.getLogger(__name__)


class DiffEngine:
    """Decides which listings of a sweep are new and notifiable.

    The seen set of a source is the link set of its latest non-empty sweep.
    It is replaced on every such sweep, including links that failed the
    filter, so a filtered-out listing is never reconsidered later (for
    example after the budget is raised). Nothing is persisted: after a
    restart the first sweep of every source treats all listings as new.
    """

    def __init__(self, listing_filter: ListingFilter | None = None) -> None:
        self.listing_filter = listing_filter or ListingFilter()
        self._seen: dict[str, frozenset[str]] = {}

    def sweep(
        self,
        source: str,
        listings: Sequence[ListingRecord],
        budget: int | None = None,
    ) -> list[ListingRecord]:
        if not listings:
            logger.debug("Empty sweep for %s; seen links kept", source)
            return []

        seen = self._seen.get(source, frozenset())
        notifiable = [
            listing
            for listing in listings
            if listing.link not in seen and self.listing_filter.is_eligible(listing, budget)
        ]

        self._seen[source] = frozenset(listing.link for listing in listings if listing.link)
        return notifiable

    def seen_links(self, source: str) -> frozenset[str]:
        return self._seen.get(source, frozenset())

    def is_primed(self, source: str) -> bool:
        return source in self._seen

    def forget(self, source: str) -> None:
        self._seen.pop(source, None)
