"""
Library package initialization
"""

from .config_loader import ConfigLoader, load_config
from .logger import get_logger

__all__ = [
    "ConfigLoader",
    "load_config",
    "get_logger",
]
