"""
End-to-end Tribal Council scenarios.

The e2e_council tribe is P (human) and N1..N4:
- P votes N1
- N2 and N3 (allied at 70) bloc N4
- N1 votes P, N4 votes N1
First count ties N1 and N4; the revote is among P, N2 and N3.
"""

from ..council import CouncilPhase


class TestTieThenRevote:
    """A full council from the first vote to the torch."""

    def _first_round(self, council):
        engine = council.engine
        engine.prepare(council.tribe)
        assert engine.cast_vote(council.id("P"), council.id("N1"))
        engine.generate_npc_votes()
        return engine.count_votes()

    def test_first_count_ties(self, e2e_council):
        c = e2e_council

        result = self._first_round(c)

        assert c.engine.get_current_votes() == {
            c.id("P"): c.id("N1"),
            c.id("N1"): c.id("P"),
            c.id("N2"): c.id("N4"),
            c.id("N3"): c.id("N4"),
            c.id("N4"): c.id("N1"),
        }
        assert result.vote_count == {c.id("N1"): 2, c.id("N4"): 2, c.id("P"): 1}
        assert result.is_tied
        assert result.tied_agent_ids == [c.id("N1"), c.id("N4")]

    def test_revote_with_human_vote_up_front(self, e2e_council):
        c = e2e_council
        result = self._first_round(c)

        revote = c.engine.handle_tie_vote(
            result.tied_agent_ids, human_votes={c.id("P"): c.id("N4")},
        )

        assert not revote.still_tied
        assert revote.revote_count == {c.id("N1"): 0, c.id("N4"): 3}
        assert revote.eliminated_candidate == c["N4"]

        elimination = c.engine.process_elimination()
        assert elimination.eliminated == c["N4"]
        assert not elimination.game_over
        assert c.tribe.member_ids == [c.id(n) for n in ["P", "N1", "N2", "N3"]]

    def test_revote_waiting_for_human(self, e2e_council):
        c = e2e_council
        result = self._first_round(c)

        revote = c.engine.handle_tie_vote(result.tied_agent_ids)
        assert revote.waiting_for_human
        assert revote.tied_agent_ids == [c.id("N1"), c.id("N4")]

        # Tied survivors sit out; non-tied targets are refused
        assert not c.engine.cast_vote(c.id("N1"), c.id("N4"))
        assert not c.engine.cast_vote(c.id("P"), c.id("N2"))
        assert c.engine.cast_vote(c.id("P"), c.id("N1"))

        revote = c.engine.finish_revote()
        assert revote.revote_count == {c.id("N1"): 1, c.id("N4"): 2}
        assert revote.eliminated_candidate == c["N4"]
        assert c.engine.phase == CouncilPhase.RESOLVED

    def test_history_keeps_both_ledgers(self, e2e_council):
        c = e2e_council
        result = self._first_round(c)
        c.engine.handle_tie_vote(result.tied_agent_ids, human_votes={c.id("P"): c.id("N4")})
        c.engine.process_elimination()

        summary = c.engine.history[-1]
        assert len(summary.votes) == 5
        assert len(summary.revotes) == 3
        assert summary.eliminated_id == c.id("N4")
        assert summary.tribe_name == "Moto"


class TestIdolFlipsCouncil:
    """An idol played on the bloc's target sends their votes nowhere."""

    def test_idol_saves_bloc_target(self, e2e_council):
        c = e2e_council
        c["N4"].has_idol = True
        c.engine.prepare(c.tribe)
        c.engine.cast_vote(c.id("P"), c.id("N1"))
        c.engine.play_idol(c.id("N4"))
        c.engine.generate_npc_votes()

        result = c.engine.count_votes()

        assert result.negated == {c.id("N2"): c.id("N4"), c.id("N3"): c.id("N4")}
        assert result.eliminated_candidate == c["N1"]

        elimination = c.engine.process_elimination()
        assert elimination.eliminated == c["N1"]
        assert c["N4"] in c.tribe.members
