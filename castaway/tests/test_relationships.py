"""
Tests for the relationship graph.

Tests:
- Lazy initialization of both directions
- Base affinity from personality
- Clamping and the reverse-direction wobble
- Seeded determinism
"""

import random

import pytest

from ..engine_core.state import Tribe
from ..relationships.graph import (
    RelationshipGraph,
    RelationshipTier,
    UnknownSurvivorError,
    clamp,
)
from .conftest import make_survivor


@pytest.fixture
def pair():
    return make_survivor(1, "Alex", personality_stat=70), make_survivor(2, "Jordan", personality_stat=70)


class TestLazyInitialization:
    """Unseen pairs are created on first query."""

    def test_first_query_creates_both_directions(self, pair):
        alex, jordan = pair
        graph = RelationshipGraph(rng=random.Random(3), survivors=pair)

        assert graph.relationships_of(alex.agent_id) == {}
        graph.get_affinity(alex.agent_id, jordan.agent_id)

        assert jordan.agent_id in graph.relationships_of(alex.agent_id)
        assert alex.agent_id in graph.relationships_of(jordan.agent_id)

    def test_repeated_query_is_stable(self, pair):
        alex, jordan = pair
        graph = RelationshipGraph(rng=random.Random(3), survivors=pair)

        first = graph.get_affinity(alex.agent_id, jordan.agent_id)
        assert graph.get_affinity(alex.agent_id, jordan.agent_id) == first

    def test_unknown_survivor_raises(self, pair):
        graph = RelationshipGraph(survivors=pair)
        with pytest.raises(UnknownSurvivorError):
            graph.get_affinity(1, 99)

    def test_self_relationship_raises(self, pair):
        graph = RelationshipGraph(survivors=pair)
        with pytest.raises(ValueError):
            graph.get_affinity(1, 1)

    def test_initialize_tribe_materializes_every_pair(self):
        members = [make_survivor(i) for i in range(1, 6)]
        graph = RelationshipGraph(rng=random.Random(5))
        graph.initialize_tribe(Tribe(name="Moto", members=members))

        edges = list(graph.edges())
        assert len(edges) == 10
        assert all(edge.is_initialized for edge in edges)


class TestBaseAffinity:
    """Starting values come from personality similarity plus noise."""

    def test_similar_personalities_start_friendly(self):
        a = make_survivor(1, personality_stat=70)
        b = make_survivor(2, personality_stat=70)
        for seed in range(20):
            graph = RelationshipGraph(rng=random.Random(seed), survivors=[a, b])
            assert 60 <= graph.base_affinity(1, 2) <= 70

    def test_opposite_personalities_start_at_floor(self):
        a = make_survivor(1, personality_stat=0)
        b = make_survivor(2, personality_stat=100)
        for seed in range(20):
            graph = RelationshipGraph(rng=random.Random(seed), survivors=[a, b])
            assert 20 <= graph.base_affinity(1, 2) <= 25

    def test_moderate_difference_is_neutral(self):
        a = make_survivor(1, personality_stat=50)
        b = make_survivor(2, personality_stat=80)
        for seed in range(20):
            graph = RelationshipGraph(rng=random.Random(seed), survivors=[a, b])
            assert 45 <= graph.base_affinity(1, 2) <= 55

    def test_base_values_stay_within_bounds(self):
        survivors = [make_survivor(i, personality_stat=(i * 37) % 101) for i in range(1, 13)]
        graph = RelationshipGraph(rng=random.Random(11), survivors=survivors)
        for a in survivors:
            for b in survivors:
                if a.agent_id != b.agent_id:
                    assert 20 <= graph.get_affinity(a.agent_id, b.agent_id) <= 80

    def test_same_seed_same_values(self):
        survivors = [make_survivor(i, personality_stat=40 + i * 5) for i in range(1, 6)]
        values = []
        for _ in range(2):
            graph = RelationshipGraph(rng=random.Random(42), survivors=survivors)
            graph.initialize_tribe(Tribe(name="Moto", members=survivors))
            values.append([(e.key(e.low_id, e.high_id), e.forward, e.backward) for e in graph.edges()])
        assert values[0] == values[1]


class TestChangingAffinity:
    """Explicit changes, clamping and drift."""

    def test_change_moves_reverse_direction_within_one(self, pair):
        alex, jordan = pair
        graph = RelationshipGraph(rng=random.Random(9), survivors=pair)
        graph.set_affinity(1, 2, 50)
        graph.set_affinity(2, 1, 50)

        graph.change_affinity(1, 2, 10)

        assert graph.get_affinity(1, 2) == 60
        assert 59 <= graph.get_affinity(2, 1) <= 61

    def test_values_are_clamped(self, pair):
        graph = RelationshipGraph(rng=random.Random(9), survivors=pair)

        graph.set_affinity(1, 2, 150)
        assert graph.get_affinity(1, 2) == 100

        graph.change_affinity(1, 2, -500)
        assert graph.get_affinity(1, 2) == 0
        assert graph.get_affinity(2, 1) == 0

    def test_clamp_helper(self):
        assert clamp(-3) == 0
        assert clamp(104) == 100
        assert clamp(42) == 42

    def test_describe_tiers(self, pair):
        graph = RelationshipGraph(survivors=pair)

        graph.set_affinity(1, 2, 10)
        assert graph.describe(1, 2) == RelationshipTier.HOSTILE
        graph.set_affinity(1, 2, 45)
        assert graph.describe(1, 2) == RelationshipTier.NEUTRAL
        graph.set_affinity(1, 2, 85)
        assert graph.describe(1, 2) == RelationshipTier.CLOSE_ALLY

    def test_drift_changes_one_pair_per_tribe(self):
        moto = Tribe(name="Moto", members=[make_survivor(i) for i in range(1, 5)])
        tagi = Tribe(name="Tagi", members=[make_survivor(i) for i in range(5, 9)])
        loner = Tribe(name="Fang", members=[make_survivor(9)])
        graph = RelationshipGraph(rng=random.Random(2))
        for tribe in (moto, tagi, loner):
            graph.initialize_tribe(tribe)

        changed = graph.drift([moto, tagi, loner])

        assert len(changed) == 2
        a, b = changed[0]
        assert moto.contains(a) and moto.contains(b)
        a, b = changed[1]
        assert tagi.contains(a) and tagi.contains(b)
