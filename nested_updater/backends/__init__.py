"""
Persistence backends for nested-updater.
"""

from .django import DjangoPersistence

__all__ = ["DjangoPersistence"]
