"""Data model for tracked category pages."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class TrackedSource:
    """A category URL tracked by the monitoring service."""

    url: str
    channel_id: str
    budget: int | None = None
    category: str = "Unknown"

    def to_dict(self) -> dict[str, Any]:
        return {
            "channelId": self.channel_id,
            "budget": self.budget,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, url: str, data: Mapping[str, Any]) -> "TrackedSource":
        """Build a source from its persisted JSON value.

        Raises ``ValueError`` when the value does not have the expected shape.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Entry for {url!r} must be an object")

        channel_id = data.get("channelId")
        if channel_id is None or isinstance(channel_id, (bool, dict, list)):
            raise ValueError(f"Entry for {url!r} has no valid channelId")

        budget = data.get("budget")
        if budget is not None and (isinstance(budget, bool) or not isinstance(budget, int)):
            raise ValueError(f"Entry for {url!r} has a non-integer budget")

        category = data.get("category")
        if not isinstance(category, str):
            raise ValueError(f"Entry for {url!r} has no category")

        return cls(url=url, channel_id=str(channel_id), budget=budget, category=category)
