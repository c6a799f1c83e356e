"""
Council Round - Transient state of one Tribal Council.

A round lives from prepare() until process_elimination() and is then
discarded. It holds:
- The tribe at council and who is immune
- Idol protection for this round
- The vote ledger (reset for a revote)
- Where the round is in its state machine
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..engine_core.results import VoteReveal
    from ..engine_core.state import Survivor, Tribe


class CouncilPhase(Enum):
    """
    Round state machine.

    COLLECTING -> RESOLVED
    COLLECTING -> TIED -> REVOTING -> RESOLVED
    COLLECTING -> TIED -> REVOTING -> STILL_TIED -> RESOLVED (rocks)
    RESOLVED -> CLOSED
    """
    IDLE = "idle"
    COLLECTING = "collecting"
    TIED = "tied"
    REVOTING = "revoting"
    STILL_TIED = "still_tied"
    RESOLVED = "resolved"
    CLOSED = "closed"


@dataclass
class VoteRecord:
    """
    Voter id -> target id for the current pass.

    allowed_targets is set during a revote to the tied survivors.
    Insertion order is the order votes were cast.
    """
    votes: dict[int, int] = field(default_factory=dict)
    allowed_targets: frozenset[int] | None = None

    def __len__(self) -> int:
        return len(self.votes)

    def has_voted(self, voter_id: int) -> bool:
        return voter_id in self.votes

    def cast(self, voter_id: int, target_id: int):
        self.votes[voter_id] = target_id

    def clear(self, allowed_targets: frozenset[int] | None = None):
        self.votes = {}
        self.allowed_targets = allowed_targets

    def items(self):
        return self.votes.items()


@dataclass
class CouncilRoundState:
    """Everything the engine knows about the council in progress."""
    tribe: Tribe
    challenge_immune: set[int] = field(default_factory=set)
    post_merge: bool = False

    idol_protected: set[int] = field(default_factory=set)
    idol_played: bool = False

    votes: VoteRecord = field(default_factory=VoteRecord)
    phase: CouncilPhase = CouncilPhase.COLLECTING

    tied_ids: list[int] = field(default_factory=list)
    revote_count: int = 0

    eliminated: Survivor | None = None
    by_rocks: bool = False

    # Ledgers kept for the council history
    first_ledger: list[VoteReveal] = field(default_factory=list)
    revote_ledger: list[VoteReveal] = field(default_factory=list)

    @property
    def is_revote(self) -> bool:
        return self.phase == CouncilPhase.REVOTING

    @property
    def is_open(self) -> bool:
        return self.phase not in {CouncilPhase.IDLE, CouncilPhase.CLOSED}

    @property
    def immune_ids(self) -> set[int]:
        """Challenge immunity plus idol protection."""
        return self.challenge_immune | self.idol_protected

    def is_negated(self, target_id: int) -> bool:
        return self.idol_played and target_id in self.idol_protected
