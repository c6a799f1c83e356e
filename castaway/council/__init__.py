"""
Council module - Tribal Council vote resolution.
"""

from .round import CouncilPhase, CouncilRoundState, VoteRecord
from .engine import VoteResolutionEngine

__all__ = [
    "CouncilPhase",
    "CouncilRoundState",
    "VoteRecord",
    "VoteResolutionEngine",
]
