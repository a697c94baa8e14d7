"""Models package initialization"""
from .listing import ListingRecord
from .tracked_source import TrackedSource

__all__ = ['ListingRecord', 'TrackedSource']
