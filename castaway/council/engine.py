"""
Vote Resolution Engine - Runs one Tribal Council from first vote to torch snuff.

Sequence (driven strictly in order by the caller):
1. prepare(tribe)                 snapshot immunity, open voting
2. cast_vote / play_idol          human input
3. generate_npc_votes()           alliance blocs, then individual NPC votes
4. count_votes()                  tally, idol negation, tie detection
5. handle_tie_vote(tied)          one revote pass among non-tied voters
6. draw_rocks(tied)               last resort
7. process_elimination()          remove from play, jury, notify the host

Immunity rules:
- Challenge immunity: cannot be voted for at all
- Idol protection: can be voted for, but those votes are negated at the count
- Rock draw: tied survivors and idol players never draw; challenge immunity
  only protects after the merge

All randomness goes through the injected random.Random so a seed replays a
council exactly.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Iterable, Mapping
import logging
import random

from ..engine_core.results import (
    CouncilSummary,
    EliminationResult,
    RevoteResult,
    VoteCountResult,
    VoteReveal,
)
from ..bots.policy import LowestAffinityPolicy, VotePolicy
from .round import CouncilPhase, CouncilRoundState

if TYPE_CHECKING:
    from ..alliances.registry import AllianceRegistry
    from ..engine_core.host import GameHost
    from ..engine_core.state import Survivor, Tribe
    from ..relationships.graph import RelationshipGraph


logger = logging.getLogger(__name__)


class VoteResolutionEngine:
    """
    Orchestrates Tribal Council rounds.

    Usage:
        engine = VoteResolutionEngine(graph, registry, host=game_state, rng=rng)
        engine.prepare(tribe)
        engine.cast_vote(player.agent_id, target.agent_id)
        engine.generate_npc_votes()
        result = engine.count_votes()
        if result.is_tied:
            revote = engine.handle_tie_vote(result.tied_agent_ids)
            if revote.still_tied:
                engine.draw_rocks(revote.tied_agent_ids)
        engine.process_elimination()
    """

    def __init__(
        self,
        graph: RelationshipGraph,
        registry: AllianceRegistry,
        host: GameHost,
        rng: random.Random | None = None,
        policies: Mapping[int, VotePolicy] | None = None,
        default_policy: VotePolicy | None = None,
    ):
        self.graph = graph
        self.registry = registry
        self.host = host
        self.rng = rng or graph.rng
        self.policies: dict[int, VotePolicy] = dict(policies or {})
        self.default_policy = default_policy or LowestAffinityPolicy()

        self.history: list[CouncilSummary] = []
        self._round: CouncilRoundState | None = None
        self._last_eliminated: Survivor | None = None

    # =========================================================================
    # Round lifecycle
    # =========================================================================

    @property
    def phase(self) -> CouncilPhase:
        return self._round.phase if self._round else CouncilPhase.IDLE

    def _require_round(self) -> CouncilRoundState:
        if self._round is None:
            raise RuntimeError("No Tribal Council in progress")
        return self._round

    def prepare(self, tribe: Tribe) -> CouncilRoundState:
        """Open a new council for tribe."""
        if tribe.is_immune:
            raise ValueError(f"Tribe {tribe.name} won immunity and does not attend council")
        if self._round is not None and self._round.is_open:
            raise RuntimeError(
                f"Council for {self._round.tribe.name} is unfinished; reset() to abandon it"
            )

        immune = {m.agent_id for m in tribe.members if m.has_immunity}
        self.graph.register_all(tribe.members)
        self._round = CouncilRoundState(
            tribe=tribe,
            challenge_immune=immune,
            post_merge=self.host.is_post_merge(),
        )

        logger.info(
            "Tribal Council for %s (%d members, immune: %s)",
            tribe.name, tribe.size, sorted(immune) or "none",
        )
        return self._round

    def reset(self):
        """Hard reset for a new game. Abandons any council in progress."""
        self._round = None
        self._last_eliminated = None
        self.history = []

    # =========================================================================
    # Collecting votes
    # =========================================================================

    def cast_vote(self, voter_id: int, target_id: int) -> bool:
        """
        Record one vote.

        Returns False (and records nothing) if the vote is not allowed:
        voting closed, unknown voter or target, self-vote, challenge-immune
        target, voter already voted, or a revote rule broken.
        """
        r = self._round
        if r is None or r.phase not in {CouncilPhase.COLLECTING, CouncilPhase.REVOTING}:
            return False
        if not r.tribe.contains(voter_id) or not r.tribe.contains(target_id):
            return False
        if voter_id == target_id:
            return False
        if target_id in r.challenge_immune:
            return False
        if r.votes.has_voted(voter_id):
            return False
        if r.is_revote:
            if voter_id in r.tied_ids:
                return False
            if r.votes.allowed_targets is not None and target_id not in r.votes.allowed_targets:
                return False

        r.votes.cast(voter_id, target_id)
        return True

    def play_idol(self, agent_id: int) -> bool:
        """
        Play a Hidden Immunity Idol before the votes are read.

        Votes already cast against the holder stay in the ledger but are not
        counted. Returns False if the survivor holds no idol.
        """
        r = self._round
        if r is None or r.phase != CouncilPhase.COLLECTING:
            return False
        agent = r.tribe.get_member(agent_id)
        if agent is None or not agent.has_idol:
            return False

        agent.has_idol = False
        r.idol_protected.add(agent_id)
        r.idol_played = True
        logger.info("%s played a Hidden Immunity Idol", agent.name)
        return True

    def eligible_voters(self) -> list[Survivor]:
        """Who votes this pass: everyone, or the non-tied during a revote."""
        r = self._require_round()
        if r.is_revote:
            return [m for m in r.tribe.members if m.agent_id not in r.tied_ids]
        return list(r.tribe.members)

    def eligible_targets(self, voter: Survivor) -> list[Survivor]:
        """Who voter may write down, in tribe order."""
        r = self._require_round()
        targets = []
        for member in r.tribe.members:
            if member.agent_id == voter.agent_id or member.agent_id in r.challenge_immune:
                continue
            if r.is_revote and member.agent_id not in r.tied_ids:
                continue
            targets.append(member)
        return targets

    def policy_for(self, voter: Survivor) -> VotePolicy:
        return self.policies.get(voter.agent_id, self.default_policy)

    def generate_npc_votes(self) -> dict[int, int]:
        """
        Cast a vote for every NPC voter who has not voted yet.

        Alliance blocs decide first; any NPC left over votes through its
        policy. Returns the votes cast by this call.
        """
        r = self._require_round()
        if r.phase not in {CouncilPhase.COLLECTING, CouncilPhase.REVOTING}:
            return {}

        voters = self.eligible_voters()
        bloc = self.registry.compute_bloc_votes(
            r.tribe,
            r.challenge_immune,
            voters={v.agent_id for v in voters},
            candidates=set(r.tied_ids) if r.is_revote else None,
        )

        cast = {}
        for voter in voters:
            if voter.is_human or r.votes.has_voted(voter.agent_id):
                continue

            target_id = bloc.get(voter.agent_id)
            if target_id is None:
                decision = self.policy_for(voter).select_target(
                    voter, self.eligible_targets(voter), self.graph
                )
                if decision is None:
                    logger.info("%s has nobody to vote for", voter.name)
                    continue
                target_id = decision.target.agent_id

            if self.cast_vote(voter.agent_id, target_id):
                cast[voter.agent_id] = target_id
        return cast

    def _waiting_humans(self) -> list[Survivor]:
        r = self._require_round()
        return [
            v for v in self.eligible_voters()
            if v.is_human and not r.votes.has_voted(v.agent_id) and self.eligible_targets(v)
        ]

    # =========================================================================
    # Counting
    # =========================================================================

    def _tally(
        self,
        r: CouncilRoundState,
        seed_ids: Iterable[int] = (),
    ) -> tuple[dict[int, int], dict[int, int]]:
        tally = {agent_id: 0 for agent_id in seed_ids}
        negated = {}
        for voter_id, target_id in r.votes.items():
            if r.is_negated(target_id):
                negated[voter_id] = target_id
                continue
            tally[target_id] = tally.get(target_id, 0) + 1
        return tally, negated

    def _leaders(self, tally: dict[int, int], tribe: Tribe) -> list[int]:
        """Ids with the most votes, in tribe order."""
        if not tally:
            return []
        top = max(tally.values())
        return [m.agent_id for m in tribe.members if tally.get(m.agent_id) == top]

    def count_votes(self) -> VoteCountResult:
        """
        Count the first round of votes.

        A single leader becomes the eliminated candidate (not yet removed);
        two or more leaders move the round to TIED.
        """
        r = self._require_round()
        if r.phase != CouncilPhase.COLLECTING:
            raise RuntimeError(f"Cannot count votes while {r.phase.value}")

        tally, negated = self._tally(r)
        leaders = self._leaders(tally, r.tribe)
        r.first_ledger = self.reveal()

        result = VoteCountResult(vote_count=tally, negated=negated)
        if len(leaders) > 1:
            r.tied_ids = leaders
            r.phase = CouncilPhase.TIED
            result.is_tied = True
            result.tied_agent_ids = list(leaders)
            logger.info("Tie between %s", leaders)
        elif leaders:
            r.eliminated = r.tribe.get_member(leaders[0])
            r.phase = CouncilPhase.RESOLVED
            result.eliminated_candidate = r.eliminated
        else:
            # Every vote negated or nobody voted
            r.phase = CouncilPhase.RESOLVED
            logger.info("No votes counted at %s council", r.tribe.name)

        if negated:
            logger.info("%d vote(s) negated by idol", len(negated))
        return result

    # =========================================================================
    # Tie-breaks
    # =========================================================================

    def handle_tie_vote(
        self,
        tied_agent_ids: Iterable[int],
        human_votes: Mapping[int, int] | None = None,
    ) -> RevoteResult:
        """
        Run exactly one revote pass.

        Tied survivors cannot vote and are the only valid targets. Human
        revotes come from human_votes; if an eligible human has not voted,
        the result says waiting_for_human and the caller finishes with
        cast_vote() + finish_revote().
        """
        r = self._require_round()
        if r.phase not in {CouncilPhase.TIED, CouncilPhase.STILL_TIED}:
            raise RuntimeError(f"Cannot revote while {r.phase.value}")

        requested = set(tied_agent_ids)
        tied = [m.agent_id for m in r.tribe.members if m.agent_id in requested]
        if len(tied) < 2:
            raise ValueError("A revote needs at least two tied survivors")

        r.tied_ids = tied
        r.votes.clear(allowed_targets=frozenset(tied))
        r.phase = CouncilPhase.REVOTING
        r.revote_count += 1
        logger.info("Revote %d between %s", r.revote_count, tied)

        for voter_id, target_id in (human_votes or {}).items():
            voter = r.tribe.get_member(voter_id)
            if voter is not None and voter.is_human:
                self.cast_vote(voter_id, target_id)

        self.generate_npc_votes()

        if self._waiting_humans():
            return RevoteResult(tied_agent_ids=list(tied), waiting_for_human=True)
        return self.finish_revote()

    def finish_revote(self) -> RevoteResult:
        """Count the revote in progress."""
        r = self._require_round()
        if r.phase != CouncilPhase.REVOTING:
            raise RuntimeError(f"No revote to finish while {r.phase.value}")

        tally, _ = self._tally(r, seed_ids=r.tied_ids)
        r.revote_ledger = self.reveal()
        leaders = self._leaders(tally, r.tribe)

        if len(leaders) > 1:
            r.tied_ids = leaders
            r.phase = CouncilPhase.STILL_TIED
            logger.info("Still tied after revote: %s", leaders)
            return RevoteResult(still_tied=True, revote_count=tally, tied_agent_ids=list(leaders))

        r.eliminated = r.tribe.get_member(leaders[0])
        r.phase = CouncilPhase.RESOLVED
        return RevoteResult(revote_count=tally, eliminated_candidate=r.eliminated)

    def rock_draw_pool(self, tied_agent_ids: Iterable[int]) -> list[Survivor]:
        """
        Survivors who must draw rocks.

        Safe: the tied survivors, anyone who played an idol this round, and
        challenge-immune survivors once the game has merged.
        """
        r = self._require_round()
        tied = set(tied_agent_ids)
        pool = []
        for member in r.tribe.members:
            if member.agent_id in tied or member.agent_id in r.idol_protected:
                continue
            if r.post_merge and member.agent_id in r.challenge_immune:
                continue
            pool.append(member)
        return pool

    def draw_rocks(self, tied_agent_ids: Iterable[int]) -> Survivor | None:
        """
        Break a deadlock by drawing rocks.

        One eligible drawer goes home without a draw. With no eligible
        drawers, one of the tied survivors is picked at random instead.
        """
        r = self._require_round()
        if r.phase not in {CouncilPhase.TIED, CouncilPhase.STILL_TIED}:
            raise RuntimeError(f"Cannot draw rocks while {r.phase.value}")

        tied_ids = set(tied_agent_ids)
        tied = [m for m in r.tribe.members if m.agent_id in tied_ids]
        pool = self.rock_draw_pool(tied_ids)

        if not pool:
            logger.warning(
                "No eligible rock drawers at %s council, eliminating a tied survivor",
                r.tribe.name,
            )
            eliminated = self.rng.choice(tied) if tied else None
        elif len(pool) == 1:
            eliminated = pool[0]
        else:
            eliminated = self.rng.choice(pool)

        r.eliminated = eliminated
        r.by_rocks = True
        r.phase = CouncilPhase.RESOLVED
        if eliminated:
            logger.info("%s drew the white rock", eliminated.name)
        return eliminated

    # =========================================================================
    # Elimination
    # =========================================================================

    def process_elimination(self, agent: Survivor | None = None) -> EliminationResult:
        """
        Remove the eliminated survivor from play and close the round.

        A human elimination ends the game; an NPC voted out after the merge
        joins the jury.
        """
        r = self._require_round()
        if r.phase != CouncilPhase.RESOLVED:
            raise RuntimeError(f"Cannot eliminate while {r.phase.value}")

        agent = agent or r.eliminated
        if agent is None:
            result = EliminationResult.nobody()
        else:
            tribe = self._tribe_of(agent) or r.tribe
            tribe.remove(agent)
            agent.is_eliminated = True
            agent.has_immunity = False
            self.registry.remove_survivor(agent)

            game_over = agent.is_human
            joined_jury = False
            if not game_over and r.post_merge:
                self.host.add_to_jury(agent)
                joined_jury = True

            result = EliminationResult(
                eliminated=agent,
                tribe_name=tribe.name,
                game_over=game_over,
                joined_jury=joined_jury,
                by_rocks=r.by_rocks,
            )
            self._last_eliminated = agent
            logger.info(
                "%s eliminated from %s%s",
                agent.name, tribe.name, " (game over)" if game_over else "",
            )

        self.history.append(
            CouncilSummary(
                tribe_name=r.tribe.name,
                votes=r.first_ledger,
                revotes=r.revote_ledger,
                idol_players=sorted(r.idol_protected),
                rock_draw=r.by_rocks,
                eliminated_id=agent.agent_id if agent else None,
            )
        )
        r.phase = CouncilPhase.CLOSED
        self.host.on_eliminated(result)
        return result

    def _tribe_of(self, agent: Survivor) -> Tribe | None:
        for tribe in self.host.get_tribes():
            if tribe.contains(agent.agent_id):
                return tribe
        return None

    # =========================================================================
    # Read-only accessors
    # =========================================================================

    def get_current_votes(self) -> dict[int, int]:
        if self._round is None:
            return {}
        return dict(self._round.votes.votes)

    def get_immune_agents(self) -> list[Survivor]:
        """Challenge-immune and idol-protected survivors, in tribe order."""
        if self._round is None:
            return []
        immune = self._round.immune_ids
        return [m for m in self._round.tribe.members if m.agent_id in immune]

    def get_last_eliminated(self) -> Survivor | None:
        return self._last_eliminated

    def reveal(self) -> list[VoteReveal]:
        """The raw ledger for the current pass, including negated votes."""
        if self._round is None:
            return []
        r = self._round
        return [
            VoteReveal(voter_id=voter_id, target_id=target_id, negated=r.is_negated(target_id))
            for voter_id, target_id in r.votes.items()
        ]
