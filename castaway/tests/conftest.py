"""
Pytest fixtures for Castaway tests.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import random

import pytest

from ..alliances.registry import AllianceRegistry
from ..council.engine import VoteResolutionEngine
from ..engine_core.state import GamePhase, GameState, Survivor, Tribe
from ..relationships.graph import RelationshipGraph


class FixedRandom(random.Random):
    """Random whose random() always returns the same value."""
    value = 0.0

    def random(self):
        return self.value


def fixed_random(value: float) -> FixedRandom:
    rng = FixedRandom(0)
    rng.value = value
    return rng


def make_survivor(agent_id: int, name: str | None = None, **kwargs) -> Survivor:
    return Survivor(agent_id=agent_id, name=name or f"S{agent_id}", **kwargs)


def set_all_affinities(graph: RelationshipGraph, survivors: list[Survivor], value: int = 50):
    """Pin every directed pair to value so tests are independent of base noise."""
    for a in survivors:
        for b in survivors:
            if a.agent_id != b.agent_id:
                graph.set_affinity(a.agent_id, b.agent_id, value)


@dataclass
class Council:
    """One tribe wired to a graph, registry, host and engine."""
    game_state: GameState
    tribe: Tribe
    graph: RelationshipGraph
    registry: AllianceRegistry
    engine: VoteResolutionEngine
    by_name: dict[str, Survivor] = field(default_factory=dict)

    def __getitem__(self, name: str) -> Survivor:
        return self.by_name[name]

    def id(self, name: str) -> int:
        return self.by_name[name].agent_id


def build_council(
    names: list[str],
    humans: tuple[str, ...] = (),
    post_merge: bool = False,
    rng: random.Random | None = None,
    affinity: int = 50,
) -> Council:
    """
    Build a council-ready tribe. Survivors get ids 1..n in the order given
    and every affinity starts at `affinity`.
    """
    rng = rng or random.Random(1234)
    survivors = [
        make_survivor(i, name, is_human=name in humans)
        for i, name in enumerate(names, start=1)
    ]
    tribe = Tribe(name="Moto", members=survivors)
    game_state = GameState(
        game_id="test_game",
        phase=GamePhase.POST_MERGE if post_merge else GamePhase.PRE_MERGE,
        tribes=[tribe],
        player_id=next((s.agent_id for s in survivors if s.is_human), None),
    )

    graph = RelationshipGraph(rng=rng, survivors=survivors)
    set_all_affinities(graph, survivors, affinity)
    registry = AllianceRegistry(graph, rng=rng)
    engine = VoteResolutionEngine(graph, registry, host=game_state, rng=rng)

    return Council(
        game_state=game_state,
        tribe=tribe,
        graph=graph,
        registry=registry,
        engine=engine,
        by_name={s.name: s for s in survivors},
    )


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def five_npcs() -> Council:
    """Tribe A..E (ids 1..5), all NPCs, all affinities 50."""
    return build_council(["A", "B", "C", "D", "E"])


@pytest.fixture
def e2e_council() -> Council:
    """
    P (human) and N1..N4.

    N2 and N3 are a 70/70 alliance that dislikes N4; N1 likes P least;
    N4 likes N1 least. The first vote ties N1 and N4.
    """
    council = build_council(["P", "N1", "N2", "N3", "N4"], humans=("P",))
    g = council.graph
    p, n1, n2, n3, n4 = (council.id(n) for n in ["P", "N1", "N2", "N3", "N4"])

    g.set_affinity(n2, n3, 70)
    g.set_affinity(n3, n2, 70)
    g.set_affinity(n2, n4, 20)
    g.set_affinity(n3, n4, 20)

    g.set_affinity(n1, p, 40)
    for other in (n2, n3, n4):
        g.set_affinity(n1, other, 60)

    g.set_affinity(n4, n1, 25)
    g.set_affinity(n4, p, 60)
    g.set_affinity(n4, n2, 40)
    g.set_affinity(n4, n3, 40)

    council.registry.try_form(council["N2"], council["N3"])
    return council
