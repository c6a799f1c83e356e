"""
Bots module - NPC vote decisions.

Provides:
- VotePolicy: Interface for NPC vote decisions
- LowestAffinityPolicy: Default fallback when no alliance bloc applies
- PersonalityPolicy: Trait-driven variation on the default
- Personality: Survivor traits
"""

from .personality import Personality, PERSONALITIES, get_personality
from .policy import (
    VotePolicy,
    VoteDecision,
    LowestAffinityPolicy,
    RandomPolicy,
    FirstEligiblePolicy,
    PersonalityPolicy,
)

__all__ = [
    "Personality",
    "PERSONALITIES",
    "get_personality",
    "VotePolicy",
    "VoteDecision",
    "LowestAffinityPolicy",
    "RandomPolicy",
    "FirstEligiblePolicy",
    "PersonalityPolicy",
]
