"""Listing filters for spam/ad placements and budget caps."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from config import settings
from models import ListingRecord

logger = logging.getLogger(__name__)


@dataclass
class FilterResult:
    """Result of filtering a listing."""

    passed: bool
    reason: Optional[str] = None


class ListingFilter:
    """Spam and budget predicates; a listing must pass both."""

    def __init__(self, blocklist: Iterable[str] | None = None) -> None:
        terms = settings.SPAM_BLOCKLIST if blocklist is None else blocklist
        self.blocklist = tuple(term.lower() for term in terms if term)

    def check_spam(self, listing: ListingRecord) -> FilterResult:
        if not listing.title:
            return FilterResult(False, "Missing title")
        if not listing.link:
            return FilterResult(False, "Missing link")
        if listing.is_featured:
            return FilterResult(False, "Featured placement")

        description = listing.description.lower()
        matched = [term for term in self.blocklist if term in description]
        if matched:
            return FilterResult(False, f"Blocklisted term(s): {', '.join(matched)}")

        return FilterResult(True)

    @staticmethod
    def check_budget(listing: ListingRecord, budget: int | None) -> FilterResult:
        if budget is None or listing.price <= budget:
            return FilterResult(True)
        return FilterResult(False, f"Price {listing.price} above budget {budget}")

    def check(self, listing: ListingRecord, budget: int | None = None) -> FilterResult:
        """Apply the spam predicate, then the budget predicate.

        Returns the first failing result, or a passing one.
        """
        result = self.check_spam(listing)
        if not result.passed:
            return result
        return self.check_budget(listing, budget)

    def is_eligible(self, listing: ListingRecord, budget: int | None = None) -> bool:
        result = self.check(listing, budget)
        if not result.passed:
            logger.debug("Filtered out '%s' (%s): %s", listing.title, listing.link, result.reason)
        return result.passed
