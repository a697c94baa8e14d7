"""Services package initialization"""
from .alerts import AdminAlertHandler
from .diff import DiffEngine
from .filters import ListingFilter
from .monitor import Monitor
from .notifier import TelegramNotifier
from .parser import Parser
from .storage import TrackingStore

__all__ = [
    "AdminAlertHandler",
    "DiffEngine",
    "ListingFilter",
    "Monitor",
    "Parser",
    "TelegramNotifier",
    "TrackingStore",
]
