"""
Vote Policy - Interface for NPC vote decisions.

A VotePolicy takes a voter and the survivors they may vote for and returns
a decision. It is only consulted for NPCs that did not receive a bloc vote
from an alliance.

Decisions include:
- Which survivor to write down
- Explanation (for logs and the reveal)
- The affinity that drove the choice
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING
import random

from .personality import Personality, BALANCED

if TYPE_CHECKING:
    from ..engine_core.state import Survivor
    from ..relationships.graph import RelationshipGraph


@dataclass
class VoteDecision:
    """A vote chosen by a policy."""
    target: Survivor
    explanation: str = ""
    affinity: int | None = None


class VotePolicy(ABC):
    """
    Abstract base class for NPC vote policies.

    candidates are already filtered: no self, no challenge-immune
    survivors, and only the tied survivors during a revote. They arrive in
    tribe order.
    """

    @abstractmethod
    def select_target(
        self,
        voter: Survivor,
        candidates: list[Survivor],
        graph: RelationshipGraph,
    ) -> VoteDecision | None:
        """
        Pick a survivor to vote for.

        Returns None only when there is nobody to vote for.
        """
        pass

    def get_name(self) -> str:
        """Get the policy's name/identifier."""
        return self.__class__.__name__


class LowestAffinityPolicy(VotePolicy):
    """
    Vote for the survivor the voter likes least.

    Ties go to the first candidate in tribe order. This is the default NPC
    behaviour.
    """

    def select_target(
        self,
        voter: Survivor,
        candidates: list[Survivor],
        graph: RelationshipGraph,
    ) -> VoteDecision | None:
        target = None
        lowest = None
        for candidate in candidates:
            affinity = graph.get_affinity(voter.agent_id, candidate.agent_id)
            if lowest is None or affinity < lowest:
                lowest = affinity
                target = candidate

        if target is None:
            return None
        return VoteDecision(
            target=target,
            explanation=f"{voter.name} trusts {target.name} least",
            affinity=lowest,
        )


class RandomPolicy(VotePolicy):
    """
    Random policy - votes uniformly at random.

    Used for:
    - Testing
    - Unpredictable personalities
    """

    def __init__(self, seed: int | None = None, rng: random.Random | None = None):
        self.rng = rng or random.Random(seed)

    def select_target(
        self,
        voter: Survivor,
        candidates: list[Survivor],
        graph: RelationshipGraph,
    ) -> VoteDecision | None:
        if not candidates:
            return None
        target = self.rng.choice(candidates)
        return VoteDecision(target=target, explanation=f"{voter.name} voted on a whim")


class FirstEligiblePolicy(VotePolicy):
    """
    First-eligible policy - always votes for the first candidate.

    Used for deterministic testing.
    """

    def select_target(
        self,
        voter: Survivor,
        candidates: list[Survivor],
        graph: RelationshipGraph,
    ) -> VoteDecision | None:
        if not candidates:
            return None
        return VoteDecision(target=candidates[0], explanation="First eligible survivor")


class PersonalityPolicy(VotePolicy):
    """
    Lowest-affinity voting, with a personality-driven chance of a random vote.

    Usage:
        policy = PersonalityPolicy(PERSONALITIES["unpredictable"], rng=rng)
        decision = policy.select_target(voter, candidates, graph)
    """

    def __init__(
        self,
        personality: Personality | None,
        rng: random.Random,
    ):
        self.personality = personality or BALANCED
        self.rng = rng
        self._reasoned = LowestAffinityPolicy()

    def select_target(
        self,
        voter: Survivor,
        candidates: list[Survivor],
        graph: RelationshipGraph,
    ) -> VoteDecision | None:
        if not candidates:
            return None

        if self.personality.randomness > 0 and self.rng.random() < self.personality.randomness:
            target = self.rng.choice(candidates)
            return VoteDecision(
                target=target,
                explanation=f"Unexpected vote ({self.personality.name})",
            )

        return self._reasoned.select_target(voter, candidates, graph)

    def get_name(self) -> str:
        return f"{self.__class__.__name__}({self.personality.name})"
