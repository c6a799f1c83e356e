"""
Tests for the alliance registry.

Tests:
- Formation and admission thresholds
- Strength as mean pairwise affinity
- Bloc voting precedence and targeting
- Re-evaluation after relationship changes
"""

import pytest

from ..alliances.registry import AllianceRegistry
from ..engine_core.state import Tribe
from .conftest import build_council, fixed_random


class TestFormation:
    """Joining and leaving alliances."""

    def test_join_threshold(self, five_npcs):
        g = five_npcs.graph
        g.set_affinity(five_npcs.id("A"), five_npcs.id("B"), 59)
        g.set_affinity(five_npcs.id("A"), five_npcs.id("C"), 60)

        assert five_npcs.registry.try_form(five_npcs["A"], five_npcs["B"]) is None
        alliance = five_npcs.registry.try_form(five_npcs["A"], five_npcs["C"])
        assert alliance is not None
        assert alliance.member_ids == [five_npcs.id("A"), five_npcs.id("C")]

    def test_cannot_form_twice(self, five_npcs):
        g = five_npcs.graph
        g.set_affinity(five_npcs.id("A"), five_npcs.id("B"), 70)
        g.set_affinity(five_npcs.id("B"), five_npcs.id("A"), 70)

        assert five_npcs.registry.try_form(five_npcs["A"], five_npcs["B"]) is not None
        assert five_npcs.registry.try_form(five_npcs["B"], five_npcs["A"]) is None
        assert len(five_npcs.registry.alliances) == 1

    def test_default_names(self):
        council = build_council(["P", "N"], humans=("P",), affinity=70)
        alliance = council.registry.try_form(council["P"], council["N"])
        assert alliance.name == "P's Alliance with N"

    def test_admission_needs_every_member(self, five_npcs):
        c = five_npcs
        c.graph.set_affinity(c.id("A"), c.id("B"), 70)
        alliance = c.registry.try_form(c["A"], c["B"])

        c.graph.set_affinity(c.id("B"), c.id("C"), 49)
        assert not c.registry.add_member(alliance, c["C"])

        c.graph.set_affinity(c.id("B"), c.id("C"), 50)
        assert c.registry.add_member(alliance, c["C"])
        assert alliance.size == 3

    def test_dissolves_below_two_members(self, five_npcs):
        c = five_npcs
        c.graph.set_affinity(c.id("A"), c.id("B"), 70)
        alliance = c.registry.try_form(c["A"], c["B"])

        c.registry.remove_member(alliance, c["A"])

        assert c.registry.alliances == []
        assert c.registry.get(alliance.alliance_id) is None

    def test_remove_survivor_leaves_every_alliance(self, five_npcs):
        c = five_npcs
        for other in ("B", "C"):
            c.graph.set_affinity(c.id("A"), c.id(other), 70)
        c.graph.set_affinity(c.id("B"), c.id("D"), 70)
        first = c.registry.try_form(c["A"], c["B"])
        second = c.registry.try_form(c["A"], c["C"])
        c.registry.add_member(first, c["D"])

        assert c.registry.remove_survivor(c["A"]) == 2
        assert c.registry.alliances_of(c["A"]) == []
        assert first.member_ids == [c.id("B"), c.id("D")]
        assert c.registry.get(second.alliance_id) is None

    def test_suggest_allies(self, five_npcs):
        c = five_npcs
        c.graph.set_affinity(c.id("A"), c.id("B"), 59)
        c.graph.set_affinity(c.id("A"), c.id("C"), 80)
        c.graph.set_affinity(c.id("A"), c.id("D"), 65)

        suggested = c.registry.suggest_allies(c["A"], c.tribe)

        assert suggested == [c["C"], c["D"]]


class TestStrength:
    """Strength is the mean pairwise affinity among members."""

    def test_mean_pairwise_affinity(self, five_npcs):
        c = five_npcs
        c.graph.set_affinity(c.id("A"), c.id("B"), 70)
        c.graph.set_affinity(c.id("A"), c.id("C"), 40)
        c.graph.set_affinity(c.id("B"), c.id("C"), 70)

        alliance = c.registry.try_form(c["A"], c["B"])
        assert alliance.strength == 70

        c.graph.set_affinity(c.id("A"), c.id("C"), 50)
        c.registry.add_member(alliance, c["C"])
        c.graph.set_affinity(c.id("A"), c.id("C"), 40)
        c.registry.update_strengths()

        assert alliance.strength == pytest.approx(60.0)


class TestBlocVotes:
    """Alliances vote together against the survivor they like least."""

    def test_stronger_alliance_wins_shared_member(self, five_npcs):
        c = five_npcs
        g = c.graph
        a, b, cc, d, e = (c.id(n) for n in "ABCDE")

        g.set_affinity(a, b, 80)
        g.set_affinity(b, a, 80)
        g.set_affinity(b, cc, 65)
        g.set_affinity(cc, b, 65)
        g.set_affinity(a, d, 10)
        g.set_affinity(b, d, 10)
        g.set_affinity(b, e, 10)
        g.set_affinity(cc, e, 10)

        strong = c.registry.try_form(c["A"], c["B"])
        weak = c.registry.try_form(c["B"], c["C"])
        assert strong.strength > weak.strength

        votes = c.registry.compute_bloc_votes(c.tribe, immune_ids=set())

        assert votes == {a: d, b: d, cc: e}

    def test_precedence_follows_current_affinities(self, five_npcs):
        c = five_npcs
        g = c.graph
        a, b, cc, d, e = (c.id(n) for n in "ABCDE")

        g.set_affinity(a, b, 80)
        g.set_affinity(b, a, 80)
        g.set_affinity(b, cc, 65)
        g.set_affinity(cc, b, 65)
        g.set_affinity(a, d, 10)
        g.set_affinity(b, d, 10)
        g.set_affinity(b, e, 10)
        g.set_affinity(cc, e, 10)

        former = c.registry.try_form(c["A"], c["B"])
        current = c.registry.try_form(c["B"], c["C"])

        # A and B fall out after both alliances exist
        g.set_affinity(a, b, 10)
        g.set_affinity(b, a, 10)

        votes = c.registry.compute_bloc_votes(c.tribe, immune_ids=set())

        assert former.strength == 10
        assert current.strength == 65
        assert votes == {a: d, b: e, cc: e}

    def test_immune_survivors_are_not_targeted(self, five_npcs):
        c = five_npcs
        a, b, d, e = (c.id(n) for n in "ABDE")
        c.graph.set_affinity(a, b, 70)
        c.graph.set_affinity(a, d, 10)
        c.graph.set_affinity(b, d, 10)
        c.graph.set_affinity(a, e, 30)
        c.graph.set_affinity(b, e, 30)
        c.registry.try_form(c["A"], c["B"])

        votes = c.registry.compute_bloc_votes(c.tribe, immune_ids={d})

        assert votes == {a: e, b: e}

    def test_target_ties_go_to_first_in_tribe_order(self, five_npcs):
        c = five_npcs
        c.graph.set_affinity(c.id("D"), c.id("E"), 70)
        c.registry.try_form(c["D"], c["E"])

        votes = c.registry.compute_bloc_votes(c.tribe, immune_ids=set())

        assert votes == {c.id("D"): c.id("A"), c.id("E"): c.id("A")}

    def test_single_npc_member_does_not_bloc(self):
        council = build_council(["P", "N1", "N2"], humans=("P",), affinity=70)
        council.registry.try_form(council["P"], council["N1"])

        assert council.registry.compute_bloc_votes(council.tribe, immune_ids=set()) == {}

    def test_candidates_restrict_targets(self, five_npcs):
        c = five_npcs
        a, b, cc, d = (c.id(n) for n in "ABCD")
        c.graph.set_affinity(a, b, 70)
        c.graph.set_affinity(a, cc, 10)
        c.graph.set_affinity(b, cc, 10)
        c.registry.try_form(c["A"], c["B"])

        votes = c.registry.compute_bloc_votes(
            c.tribe, immune_ids=set(), voters={a, b}, candidates={d, c.id("E")},
        )

        assert votes == {a: d, b: d}

    def test_members_outside_voters_sit_out(self, five_npcs):
        c = five_npcs
        a, b = c.id("A"), c.id("B")
        c.graph.set_affinity(a, b, 70)
        c.registry.try_form(c["A"], c["B"])

        assert c.registry.compute_bloc_votes(c.tribe, immune_ids=set(), voters={a}) == {}


class TestReevaluation:
    """Alliances react to relationship changes."""

    def test_strong_bond_may_form_alliance(self, five_npcs):
        c = five_npcs
        registry = AllianceRegistry(c.graph, rng=fixed_random(0.0))
        c.graph.set_affinity(c.id("A"), c.id("B"), 80)

        changes = registry.reevaluate_alliances(c["A"], c["B"], [c.tribe])

        assert len(changes) == 1
        assert registry.share_alliance(c["A"], c["B"])

    def test_bond_needs_same_tribe(self, five_npcs):
        c = five_npcs
        registry = AllianceRegistry(c.graph, rng=fixed_random(0.0))
        c.graph.set_affinity(c.id("A"), c.id("B"), 80)
        split = [
            Tribe(name="Moto", members=[c["A"]]),
            Tribe(name="Tagi", members=[c["B"]]),
        ]

        assert registry.reevaluate_alliances(c["A"], c["B"], split) == []

    def test_rift_pushes_out_less_liked(self, five_npcs):
        c = five_npcs
        registry = AllianceRegistry(c.graph, rng=fixed_random(0.0))
        a, b, cc = c.id("A"), c.id("B"), c.id("C")
        c.graph.set_affinity(a, b, 70)
        alliance = registry.try_form(c["A"], c["B"])
        registry.add_member(alliance, c["C"])

        c.graph.set_affinity(a, b, 20)
        c.graph.set_affinity(a, cc, 40)
        c.graph.set_affinity(b, cc, 70)
        changes = registry.reevaluate_alliances(c["A"], c["B"], [c.tribe])

        assert changes == [f"A left {alliance.name}"]
        assert alliance.member_ids == [b, cc]

    def test_rift_can_be_survived(self, five_npcs):
        c = five_npcs
        registry = AllianceRegistry(c.graph, rng=fixed_random(0.99))
        c.graph.set_affinity(c.id("A"), c.id("B"), 70)
        alliance = registry.try_form(c["A"], c["B"])

        c.graph.set_affinity(c.id("A"), c.id("B"), 10)

        assert registry.reevaluate_alliances(c["A"], c["B"], [c.tribe]) == []
        assert alliance.size == 2

    def test_npc_alliances_form_on_lucky_day(self):
        council = build_council(["N1", "N2", "N3"], affinity=70)
        registry = AllianceRegistry(council.graph, rng=fixed_random(0.0))

        formed = registry.form_npc_alliances([council.tribe])

        assert len(formed) == 1
        assert formed[0].name.startswith("The ")
        assert formed[0].size in (2, 3)

    def test_npc_alliances_skip_unlucky_day(self):
        council = build_council(["N1", "N2", "N3"], affinity=70)
        registry = AllianceRegistry(council.graph, rng=fixed_random(0.99))

        assert registry.form_npc_alliances([council.tribe]) == []
