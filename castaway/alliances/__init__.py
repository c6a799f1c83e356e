"""
Alliances module - Group formation and bloc voting.
"""

from .registry import Alliance, AllianceRegistry, JOIN_THRESHOLD, ADMIT_THRESHOLD

__all__ = [
    "Alliance",
    "AllianceRegistry",
    "JOIN_THRESHOLD",
    "ADMIT_THRESHOLD",
]
