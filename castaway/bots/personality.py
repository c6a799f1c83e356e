"""
NPC Personalities - Traits that shape how a survivor votes.

A personality adjusts:
- How often the NPC casts an unexpected (random) vote
- Which default personality stat a generated survivor gets

Every NPC otherwise votes for the tribe mate they like least.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
import random


@dataclass
class Personality:
    """A survivor trait."""
    name: str
    description: str = ""

    # Probability of ignoring relationships and voting at random
    randomness: float = 0.0

    metadata: dict[str, Any] = field(default_factory=dict)


# ============================================================================
# Predefined Personalities
# ============================================================================

BALANCED = Personality(
    name="Balanced",
    description="Votes with their relationships",
)

LOYAL = Personality(
    name="Loyal",
    description="Values loyalty and keeps their word",
)

DECEPTIVE = Personality(
    name="Deceptive",
    description="Will say one thing but do another",
    randomness=0.1,
)

STRATEGIC = Personality(
    name="Strategic",
    description="Always thinking several steps ahead",
)

EMOTIONAL = Personality(
    name="Emotional",
    description="Makes decisions based on feelings",
    randomness=0.05,
)

PHYSICAL = Personality(
    name="Physical",
    description="Focuses on challenges and camp life",
)

SOCIAL = Personality(
    name="Social",
    description="Builds relationships with everyone",
)

UNPREDICTABLE = Personality(
    name="Unpredictable",
    description="Hard to anticipate their moves",
    randomness=0.25,
)

OBSERVANT = Personality(
    name="Observant",
    description="Notices details others miss",
)


PERSONALITIES: dict[str, Personality] = {
    "balanced": BALANCED,
    "loyal": LOYAL,
    "deceptive": DECEPTIVE,
    "strategic": STRATEGIC,
    "emotional": EMOTIONAL,
    "physical": PHYSICAL,
    "social": SOCIAL,
    "unpredictable": UNPREDICTABLE,
    "observant": OBSERVANT,
}


def get_personality(trait: str | None) -> Personality:
    """Look up a trait by name, falling back to BALANCED."""
    if not trait:
        return BALANCED
    return PERSONALITIES.get(trait.lower(), BALANCED)


def random_trait(rng: random.Random) -> str:
    """Pick a trait name for a generated survivor (never 'balanced')."""
    return rng.choice([name for name in PERSONALITIES if name != "balanced"])
