"""
Season module - Default cast and season setup.
"""

from .cast import SURVIVOR_DATABASE, CastEntry, get_cast_entry
from .setup import setup_season

__all__ = [
    "SURVIVOR_DATABASE",
    "CastEntry",
    "get_cast_entry",
    "setup_season",
]
