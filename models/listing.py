"""
Data models for scraped listings
"""
from dataclasses import dataclass


@dataclass(slots=True)
class ListingRecord:
    """Represents a single listing block from a category page"""
    title: str
    price: int
    link: str
    is_featured: bool = False
    description: str = ""

    def __post_init__(self) -> None:
        if self.price < 0:
            object.__setattr__(self, "price", 0)
        if self.description:
            object.__setattr__(self, "description", self.description.lower())

    def __hash__(self):
        """Make ListingRecord hashable by link"""
        return hash(self.link)

    def __eq__(self, other):
        """Listings are equal if they have the same link"""
        if not isinstance(other, ListingRecord):
            return False
        return self.link == other.link
