"""
Engine Core - Season data model and the host interface.

The core is what every other module agrees on:
1. Survivors and tribes
2. The GameState container
3. The GameHost interface the vote engine reports to
4. Result objects for counting, revoting and elimination
"""

from .host import GameHost
from .results import (
    VoteReveal,
    VoteCountResult,
    RevoteResult,
    EliminationResult,
    CouncilSummary,
)
from .state import (
    GamePhase,
    GameState,
    Survivor,
    Tribe,
    TRIBE_NAMES,
    TRIBE_COLORS,
)

__all__ = [
    "GameHost",
    "VoteReveal",
    "VoteCountResult",
    "RevoteResult",
    "EliminationResult",
    "CouncilSummary",
    "GamePhase",
    "GameState",
    "Survivor",
    "Tribe",
    "TRIBE_NAMES",
    "TRIBE_COLORS",
]
