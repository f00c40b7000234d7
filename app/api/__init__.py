"""
API package initialization
"""

from . import health, sync

__all__ = ["health", "sync"]
