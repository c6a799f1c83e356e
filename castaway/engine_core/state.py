"""
Game State - Survivors, tribes, and the season-level container.

Design principles:
- Identity by id: survivors are compared and hashed by their stable integer id
- Membership, not ownership: tribes hold references, survivors outlive reshuffles
- Single writer: during a council only the vote engine mutates immunity, idols
  and tribe membership
- GameState is the in-memory host the engine reports to (see host.py)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .host import GameHost
from .results import EliminationResult


# Tribe cosmetics, in the order tribes are created. The merged tribe takes
# the third entry.
TRIBE_NAMES = ["Moto", "Tagi", "Fang", "Kota", "Ravu", "Dabu"]
TRIBE_COLORS = ["#e74c3c", "#3498db", "#f1c40f", "#2ecc71", "#9b59b6", "#e67e22"]

DEFAULT_MERGE_DAY = 12
FINAL_TRIBAL_SIZE = 3


class GamePhase(Enum):
    """High-level season phases."""
    PRE_MERGE = "pre_merge"
    POST_MERGE = "post_merge"
    FINAL = "final"
    GAME_OVER = "game_over"


@dataclass
class Survivor:
    """
    A contestant, human or NPC.

    Stats are 0-100. personality_stat drives the base affinity between
    two survivors; trait selects the NPC's vote personality.
    """
    agent_id: int
    name: str
    description: str = ""
    is_human: bool = False
    has_idol: bool = False
    has_immunity: bool = False
    is_eliminated: bool = False

    physical_stat: int = 50
    mental_stat: int = 50
    personality_stat: int = 50
    trait: str | None = None

    def __hash__(self):
        return hash(self.agent_id)

    def __eq__(self, other):
        if not isinstance(other, Survivor):
            return False
        return self.agent_id == other.agent_id


@dataclass
class Tribe:
    """
    An ordered voting unit.

    Iteration order of members is significant: every "first encountered"
    tie-break in the engine follows it.
    """
    name: str
    color: str = ""
    members: list[Survivor] = field(default_factory=list)
    is_immune: bool = False

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def member_ids(self) -> list[int]:
        return [m.agent_id for m in self.members]

    def contains(self, agent_id: int) -> bool:
        return any(m.agent_id == agent_id for m in self.members)

    def get_member(self, agent_id: int) -> Survivor | None:
        for m in self.members:
            if m.agent_id == agent_id:
                return m
        return None

    def add(self, survivor: Survivor):
        if not self.contains(survivor.agent_id):
            self.members.append(survivor)

    def remove(self, survivor: Survivor) -> bool:
        """Remove a member. Returns False if they were not in the tribe."""
        before = len(self.members)
        self.members = [m for m in self.members if m.agent_id != survivor.agent_id]
        return len(self.members) < before


@dataclass
class GameState(GameHost):
    """
    Complete season state.

    Acts as the GameHost for the vote engine: it answers tribe/player
    queries, keeps the jury, and advances the phase when someone leaves.
    """
    game_id: str
    phase: GamePhase = GamePhase.PRE_MERGE
    day: int = 1
    merge_day: int = DEFAULT_MERGE_DAY

    tribes: list[Tribe] = field(default_factory=list)
    jury: list[Survivor] = field(default_factory=list)
    player_id: int | None = None

    last_voted_out: Survivor | None = None
    eliminations: list[EliminationResult] = field(default_factory=list)

    random_seed: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    # =========================================================================
    # GameHost
    # =========================================================================

    def get_tribes(self) -> list[Tribe]:
        return list(self.tribes)

    def get_player_tribe(self) -> Tribe | None:
        if self.player_id is None:
            return None
        return self.find_tribe_of(self.player_id)

    def get_player_agent(self) -> Survivor | None:
        if self.player_id is None:
            return None
        return self.get_survivor(self.player_id)

    def is_post_merge(self) -> bool:
        return self.phase in {GamePhase.POST_MERGE, GamePhase.FINAL}

    def add_to_jury(self, survivor: Survivor):
        if survivor not in self.jury:
            self.jury.append(survivor)

    def on_eliminated(self, result: EliminationResult):
        """Advance the season after a council has voted someone out."""
        self.eliminations.append(result)
        if result.eliminated is None:
            return

        if result.game_over:
            self.phase = GamePhase.GAME_OVER
            return

        self.last_voted_out = result.eliminated
        if self.phase == GamePhase.POST_MERGE and self.remaining_count <= FINAL_TRIBAL_SIZE:
            self.phase = GamePhase.FINAL

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def remaining_count(self) -> int:
        return sum(t.size for t in self.tribes)

    @property
    def is_over(self) -> bool:
        return self.phase in {GamePhase.FINAL, GamePhase.GAME_OVER}

    def all_survivors(self) -> list[Survivor]:
        """Every survivor still in play, in tribe order."""
        return [m for t in self.tribes for m in t.members]

    def get_survivor(self, agent_id: int) -> Survivor | None:
        for tribe in self.tribes:
            member = tribe.get_member(agent_id)
            if member:
                return member
        for juror in self.jury:
            if juror.agent_id == agent_id:
                return juror
        return None

    def find_tribe_of(self, agent_id: int) -> Tribe | None:
        for tribe in self.tribes:
            if tribe.contains(agent_id):
                return tribe
        return None

    def get_tribe(self, name: str) -> Tribe | None:
        for tribe in self.tribes:
            if tribe.name == name:
                return tribe
        return None

    def council_tribe(self) -> Tribe | None:
        """
        The tribe that attends the next Tribal Council.

        Pre-merge: the player's tribe unless it won immunity, otherwise the
        first tribe without immunity. Post-merge: the merged tribe.
        """
        if self.is_post_merge():
            return self.tribes[0] if self.tribes else None

        player_tribe = self.get_player_tribe()
        if player_tribe and not player_tribe.is_immune:
            return player_tribe

        for tribe in self.tribes:
            if not tribe.is_immune:
                return tribe
        return None

    # =========================================================================
    # Upstream signals (challenge results, day progression)
    # =========================================================================

    def award_tribe_immunity(self, tribe_name: str) -> bool:
        tribe = self.get_tribe(tribe_name)
        if not tribe:
            return False
        tribe.is_immune = True
        return True

    def award_individual_immunity(self, agent_id: int) -> bool:
        survivor = self.get_survivor(agent_id)
        if not survivor or survivor.is_eliminated:
            return False
        survivor.has_immunity = True
        return True

    def clear_immunity(self):
        for tribe in self.tribes:
            tribe.is_immune = False
            for member in tribe.members:
                member.has_immunity = False

    def should_merge(self) -> bool:
        return (
            self.phase == GamePhase.PRE_MERGE
            and self.day >= self.merge_day
            and len(self.tribes) > 1
        )

    def merge_tribes(self) -> Tribe | None:
        """Combine all tribes into one. Returns the merged tribe."""
        if len(self.tribes) <= 1:
            return self.tribes[0] if self.tribes else None

        merged = Tribe(name=TRIBE_NAMES[2], color=TRIBE_COLORS[2])
        for tribe in self.tribes:
            for member in tribe.members:
                merged.add(member)

        self.tribes = [merged]
        self.phase = GamePhase.POST_MERGE
        return merged
