"""Bot package initialization"""
from .handlers import router
from .filters import CanManageChat

__all__ = ['router', 'CanManageChat']
