"""
Core configuration for nested-updater.
"""

from .settings import NestingSettings

__all__ = ["NestingSettings"]
