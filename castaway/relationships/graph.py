"""
Relationship Graph - Single source of truth for pairwise affinity.

Every pair of known survivors has one edge record, keyed by the ordered
pair (low_id, high_id). The two directions live side by side on that record
so they can never drift apart structurally, only numerically.

Design principles:
- Lazy: the first query of a pair materializes both directions
- Clamped: stored values always stay in [0, 100]
- No side effects: changing an affinity never touches alliances; the caller
  decides when to re-evaluate them
- Seeded: all noise comes from the injected random.Random
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Iterator
import logging
import math
import random

if TYPE_CHECKING:
    from ..engine_core.state import Survivor, Tribe


logger = logging.getLogger(__name__)

MIN_AFFINITY = 0
MAX_AFFINITY = 100
NEUTRAL_AFFINITY = 50

# Base values are kept away from the extremes
BASE_FLOOR = 20
BASE_CEILING = 80
BASE_NOISE = 5

CLOSE_PERSONALITY_DIFF = 20
DIVERGENT_PERSONALITY_DIFF = 40

DRIFT_RANGE = 2


class UnknownSurvivorError(LookupError):
    """A survivor id was queried before being registered with the graph."""

    def __init__(self, agent_id: int):
        super().__init__(f"Survivor {agent_id} is not known to the relationship graph")
        self.agent_id = agent_id


class RelationshipTier(Enum):
    """Descriptive buckets for an affinity value."""
    HOSTILE = "Hostile"
    DISTRUSTFUL = "Distrustful"
    NEUTRAL = "Neutral"
    FRIENDLY = "Friendly"
    CLOSE_ALLY = "Close Ally"

    @classmethod
    def for_value(cls, value: int) -> RelationshipTier:
        if value < 20:
            return cls.HOSTILE
        if value < 40:
            return cls.DISTRUSTFUL
        if value < 60:
            return cls.NEUTRAL
        if value < 80:
            return cls.FRIENDLY
        return cls.CLOSE_ALLY


def clamp(value: int, low: int = MIN_AFFINITY, high: int = MAX_AFFINITY) -> int:
    return max(low, min(high, value))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass
class RelationshipEdge:
    """
    Both directions of one pair.

    forward is low_id -> high_id, backward is high_id -> low_id.
    A direction is None until the pair is first queried.
    """
    low_id: int
    high_id: int
    forward: int | None = None
    backward: int | None = None

    @staticmethod
    def key(a: int, b: int) -> tuple[int, int]:
        return (a, b) if a < b else (b, a)

    @property
    def is_initialized(self) -> bool:
        return self.forward is not None and self.backward is not None

    def get(self, source: int) -> int | None:
        """Affinity from source toward the other end."""
        return self.forward if source == self.low_id else self.backward

    def set(self, source: int, value: int):
        if source == self.low_id:
            self.forward = clamp(value)
        else:
            self.backward = clamp(value)


class RelationshipGraph:
    """
    Canonical affinity store.

    Usage:
        graph = RelationshipGraph(rng=random.Random(7))
        graph.register_all(tribe.members)
        graph.get_affinity(alex.agent_id, jordan.agent_id)   # lazily created
        graph.change_affinity(alex.agent_id, jordan.agent_id, 5)
        graph.describe(alex.agent_id, jordan.agent_id)       # RelationshipTier
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        survivors: Iterable[Survivor] = (),
    ):
        self.rng = rng or random.Random()
        self._survivors: dict[int, Survivor] = {}
        self._edges: dict[tuple[int, int], RelationshipEdge] = {}
        self.register_all(survivors)

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, survivor: Survivor):
        self._survivors[survivor.agent_id] = survivor

    def register_all(self, survivors: Iterable[Survivor]):
        for survivor in survivors:
            self.register(survivor)

    def _require(self, agent_id: int) -> Survivor:
        survivor = self._survivors.get(agent_id)
        if survivor is None:
            raise UnknownSurvivorError(agent_id)
        return survivor

    def _edge(self, a: int, b: int) -> RelationshipEdge:
        if a == b:
            raise ValueError(f"Survivor {a} has no relationship with themselves")
        self._require(a)
        self._require(b)

        key = RelationshipEdge.key(a, b)
        edge = self._edges.get(key)
        if edge is None:
            edge = RelationshipEdge(low_id=key[0], high_id=key[1])
            self._edges[key] = edge
        return edge

    # =========================================================================
    # Affinity
    # =========================================================================

    def get_affinity(self, a: int, b: int) -> int:
        """
        Affinity of a toward b, in [0, 100].

        Never undefined: an unseen pair gets base values in both directions.
        """
        edge = self._edge(a, b)
        if not edge.is_initialized:
            self._initialize_edge(edge)
        return edge.get(a)

    def change_affinity(self, a: int, b: int, delta: int):
        """
        Apply delta to a -> b, and delta plus a small independent wobble
        to b -> a. Both directions exist afterwards.
        """
        edge = self._edge(a, b)
        if not edge.is_initialized:
            self._initialize_edge(edge)

        edge.set(a, edge.get(a) + delta)
        variation = self.rng.randint(-1, 1)
        edge.set(b, edge.get(b) + delta + variation)

        logger.debug(
            "affinity %s->%s now %s, %s->%s now %s",
            a, b, edge.get(a), b, a, edge.get(b),
        )

    def set_affinity(self, a: int, b: int, value: int):
        """Set a -> b directly. The other direction is materialized if missing."""
        edge = self._edge(a, b)
        if not edge.is_initialized:
            self._initialize_edge(edge)
        edge.set(a, value)

    def describe(self, a: int, b: int) -> RelationshipTier:
        return RelationshipTier.for_value(self.get_affinity(a, b))

    def base_affinity(self, a: int, b: int) -> int:
        """
        Starting affinity of a toward b.

        Similar personalities get along (up to +15), very different ones
        clash, then +/-5 noise, kept within [20, 80].
        """
        first = self._require(a)
        second = self._require(b)

        value = NEUTRAL_AFFINITY
        personality_diff = abs(first.personality_stat - second.personality_stat)

        if personality_diff < CLOSE_PERSONALITY_DIFF:
            value += _round_half_up(15 - personality_diff * 0.75)
        elif personality_diff > DIVERGENT_PERSONALITY_DIFF:
            value -= _round_half_up((personality_diff - DIVERGENT_PERSONALITY_DIFF) * 0.5)

        value += self.rng.randint(-BASE_NOISE, BASE_NOISE)
        return clamp(value, BASE_FLOOR, BASE_CEILING)

    def _initialize_edge(self, edge: RelationshipEdge):
        if edge.forward is None:
            edge.forward = self.base_affinity(edge.low_id, edge.high_id)
        if edge.backward is None:
            edge.backward = self.base_affinity(edge.high_id, edge.low_id)

    # =========================================================================
    # Bulk operations
    # =========================================================================

    def initialize_tribe(self, tribe: Tribe):
        """Materialize every pair within a tribe."""
        self.register_all(tribe.members)
        members = tribe.members
        for i in range(len(members)):
            for j in range(i + 1, len(members)):
                self.get_affinity(members[i].agent_id, members[j].agent_id)

    def drift(self, tribes: Iterable[Tribe]) -> list[tuple[int, int]]:
        """
        Small random relationship changes, one pair per tribe.

        Returns the pairs that changed so the caller can re-evaluate
        alliances for them.
        """
        changed = []
        for tribe in tribes:
            if tribe.size < 2:
                continue
            first, second = self.rng.sample(tribe.members, 2)
            delta = self.rng.randint(-DRIFT_RANGE, DRIFT_RANGE)
            self.change_affinity(first.agent_id, second.agent_id, delta)
            changed.append((first.agent_id, second.agent_id))
        return changed

    def relationships_of(self, agent_id: int) -> dict[int, int]:
        """Stored outgoing affinities of one survivor."""
        self._require(agent_id)
        result = {}
        for (low, high), edge in self._edges.items():
            if not edge.is_initialized:
                continue
            if low == agent_id:
                result[high] = edge.forward
            elif high == agent_id:
                result[low] = edge.backward
        return result

    def edges(self) -> Iterator[RelationshipEdge]:
        return iter(self._edges.values())
