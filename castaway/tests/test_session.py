"""
Tests for season setup, sessions and the council loop.
"""

import pytest

from ..engine_core.state import GamePhase
from ..relationships.graph import RelationshipGraph, UnknownSurvivorError
from ..season import SURVIVOR_DATABASE, setup_season
from ..session import LoopState, SessionManager, SessionState


class TestSeasonSetup:
    """Initial tribes and relationships."""

    def test_default_season(self):
        graph = RelationshipGraph()
        state = setup_season(human_name="Sam", random_seed=3, graph=graph)

        moto, tagi = state.tribes
        assert moto.size == 6
        assert tagi.size == 4
        assert state.remaining_count == 10
        assert state.phase == GamePhase.PRE_MERGE
        assert state.day == 1

        player = state.get_player_agent()
        assert player.name == "Sam"
        assert player.is_human
        assert moto.members[0] is player

        npcs = [s for s in state.all_survivors() if not s.is_human]
        assert all(s.trait for s in npcs)
        assert len({s.agent_id for s in state.all_survivors()}) == 10

        # Every pair within a tribe is materialized, none across tribes
        assert len(list(graph.edges())) == 15 + 6

    def test_playing_as_cast_member(self):
        state = setup_season(human_name="Avery", random_seed=3)

        player = state.get_player_agent()
        assert player.mental_stat == 95
        assert [s.name for s in state.all_survivors()].count("Avery") == 1

    def test_same_seed_same_tribes(self):
        first = setup_season(random_seed=21)
        second = setup_season(random_seed=21)

        assert [t.member_ids for t in first.tribes] == [t.member_ids for t in second.tribes]
        assert [s.name for s in first.all_survivors()] == [s.name for s in second.all_survivors()]

    def test_cast_too_small(self):
        with pytest.raises(ValueError):
            setup_season(num_npcs=len(SURVIVOR_DATABASE) + 1)


class TestSessionManager:
    """Session lifecycle."""

    def test_create_and_get(self):
        manager = SessionManager()
        session = manager.create_session(human_name="Sam", random_seed=1)

        assert manager.get_session(session.session_id) is session
        assert session.state == SessionState.ACTIVE
        assert session.engine.host is session.game_state
        assert session.graph.rng is session.rng
        assert set(session.policies) == {
            s.agent_id for s in session.game_state.all_survivors() if not s.is_human
        }
        assert all(p.rng is session.rng for p in session.policies.values())

    def test_end_session(self):
        manager = SessionManager()
        session = manager.create_session(random_seed=1)

        assert manager.end_session(session.session_id)
        assert manager.get_session(session.session_id) is None
        assert session.state == SessionState.GAME_OVER
        assert not manager.end_session(session.session_id)

    def test_cleanup_only_finished_sessions(self):
        manager = SessionManager()
        active = manager.create_session(random_seed=1)
        finished = manager.create_session(random_seed=2)
        finished.state = SessionState.GAME_OVER
        for session in (active, finished):
            session.created_at -= 10

        removed = manager.cleanup_stale_sessions(max_age_seconds=5)

        assert removed == 1
        assert manager.list_active_sessions() == [active.session_id]


class TestBetweenCouncils:
    """Relationship changes, days and the merge."""

    def test_change_affinity_unknown_survivor(self):
        session = SessionManager().create_session(random_seed=4)
        with pytest.raises(UnknownSurvivorError):
            session.change_affinity(1, 99, 5)

    def test_voted_out_survivor_is_out_of_play(self):
        session = SessionManager().create_session(random_seed=3, merge_day=2)
        gs = session.game_state
        session.advance_day()
        gs.award_individual_immunity(gs.player_id)
        result = session.start_council().run_npc_council()
        gone = result.eliminated
        other = next(s for s in gs.all_survivors() if not s.is_human)

        assert gone in gs.jury
        with pytest.raises(UnknownSurvivorError):
            session.form_alliance(gone.agent_id, other.agent_id)
        with pytest.raises(UnknownSurvivorError):
            session.change_affinity(other.agent_id, gone.agent_id, 10)
        assert session.registry.alliances_of(gone) == []

    def test_change_affinity(self):
        session = SessionManager().create_session(random_seed=4)
        before = session.graph.get_affinity(1, 2)

        session.change_affinity(1, 2, 5)

        assert session.graph.get_affinity(1, 2) == min(100, before + 5)

    def test_advance_day_clears_immunity(self):
        session = SessionManager().create_session(random_seed=4)
        gs = session.game_state
        gs.award_tribe_immunity(gs.tribes[1].name)

        events = session.advance_day()

        assert gs.day == 2
        assert events[0] == "Day 2"
        assert not any(t.is_immune for t in gs.tribes)

    def test_merge_on_merge_day(self):
        session = SessionManager().create_session(random_seed=4, merge_day=2)

        events = session.advance_day()

        gs = session.game_state
        assert gs.phase == GamePhase.POST_MERGE
        assert len(gs.tribes) == 1
        assert gs.tribes[0].name == "Fang"
        assert gs.tribes[0].size == 10
        assert "The tribes have merged into Fang" in events
        assert len(list(session.graph.edges())) == 45


class TestCouncilLoop:
    """Council driven through a session."""

    def _npc_council(self, seed):
        session = SessionManager().create_session(random_seed=seed)
        gs = session.game_state
        gs.award_tribe_immunity(gs.get_player_tribe().name)
        loop = session.start_council()
        return session, loop.start()

    def test_npc_only_council_resolves(self):
        session, result = self._npc_council(seed=11)

        assert result.success
        assert result.loop_state == LoopState.RESOLVED
        assert result.eliminated is not None
        assert not result.eliminated.is_human
        assert result.eliminated.is_eliminated
        assert session.game_state.remaining_count == 9
        assert session.state == SessionState.ACTIVE
        assert result.messages[-1] == f"{result.eliminated.name}, the tribe has spoken."

    def test_run_npc_council_for_named_tribe(self):
        session = SessionManager().create_session(random_seed=12)
        gs = session.game_state
        other = next(t for t in gs.tribes if not t.contains(gs.player_id))

        result = session.start_council().run_npc_council(other)

        assert result.loop_state == LoopState.RESOLVED
        assert result.eliminated is not None
        assert other.size == 3
        assert gs.get_player_tribe().size == 6

    def test_same_seed_same_outcome(self):
        _, first = self._npc_council(seed=77)
        _, second = self._npc_council(seed=77)

        assert first.eliminated.name == second.eliminated.name
        assert first.vote_counts == second.vote_counts

    def test_human_votes(self):
        session = SessionManager().create_session(random_seed=5)
        gs = session.game_state
        loop = session.start_council()

        result = loop.start()
        assert result.loop_state == LoopState.WAITING_VOTE
        assert session.state == SessionState.AT_COUNCIL

        bad = loop.submit_vote(gs.player_id)
        assert not bad.success
        assert loop.state == LoopState.WAITING_VOTE

        target = next(m for m in gs.get_player_tribe().members if not m.is_human)
        result = loop.submit_vote(target.agent_id)
        if result.loop_state == LoopState.WAITING_REVOTE:
            result = loop.submit_revote(result.tied_ids[0])

        assert result.success
        assert result.loop_state in {LoopState.RESOLVED, LoopState.GAME_OVER}
        assert result.eliminated is not None
        assert gs.remaining_count == 9

    def test_revote_outside_revote_is_refused(self):
        session = SessionManager().create_session(random_seed=5)
        loop = session.start_council()
        loop.start()

        result = loop.submit_revote(2)

        assert not result.success
        assert result.errors == ["Not waiting for a revote"]

    def test_one_council_at_a_time(self):
        session = SessionManager().create_session(random_seed=5)
        session.start_council().start()

        with pytest.raises(RuntimeError):
            session.start_council()
