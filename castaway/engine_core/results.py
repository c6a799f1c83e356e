"""
Council Results - Outcomes of counting, revoting, and eliminating.

Each engine step returns one of these instead of mutating UI state:
1. VoteCountResult after the first count
2. RevoteResult after a revote pass
3. EliminationResult after the eliminated survivor leaves the game

VoteReveal is one line of the raw ledger, shown one by one at the reveal.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .state import Survivor


@dataclass
class VoteReveal:
    """A single recorded vote, as read out at council."""
    voter_id: int
    target_id: int
    negated: bool = False  # Cast against an idol-protected survivor


@dataclass
class VoteCountResult:
    """
    Result of counting the current round.

    vote_count excludes negated votes; negated keeps them (voter -> target)
    so the reveal can say "does not count".
    """
    vote_count: dict[int, int] = field(default_factory=dict)
    is_tied: bool = False
    tied_agent_ids: list[int] = field(default_factory=list)
    eliminated_candidate: Survivor | None = None
    negated: dict[int, int] = field(default_factory=dict)

    @property
    def total_counted(self) -> int:
        return sum(self.vote_count.values())


@dataclass
class RevoteResult:
    """
    Result of one revote pass.

    waiting_for_human means an eligible human has not voted yet; the caller
    records their vote and calls finish_revote().
    """
    still_tied: bool = False
    revote_count: dict[int, int] = field(default_factory=dict)
    tied_agent_ids: list[int] = field(default_factory=list)
    eliminated_candidate: Survivor | None = None
    waiting_for_human: bool = False


@dataclass
class EliminationResult:
    """Result of removing a survivor from play."""
    eliminated: Survivor | None
    tribe_name: str | None = None
    game_over: bool = False
    joined_jury: bool = False
    by_rocks: bool = False

    @classmethod
    def nobody(cls) -> EliminationResult:
        """Nobody left (e.g. every vote was negated)."""
        return cls(eliminated=None)


@dataclass
class CouncilSummary:
    """History entry for one completed council."""
    tribe_name: str
    votes: list[VoteReveal] = field(default_factory=list)
    revotes: list[VoteReveal] = field(default_factory=list)
    idol_players: list[int] = field(default_factory=list)
    rock_draw: bool = False
    eliminated_id: int | None = None
