"""
Council Loop - Drives one Tribal Council for a session.

The loop:
1. Council tribe is chosen and the engine prepared
2. Human casts a vote (optionally playing an idol)
3. NPCs vote, votes are read
4. On a tie, a revote among the non-tied survivors (human included)
5. Still tied, rocks are drawn
6. The torch is snuffed and the season advances

A council without the human in it runs straight through.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING
import logging

from ..engine_core.results import RevoteResult, VoteReveal

if TYPE_CHECKING:
    from ..engine_core.state import Survivor, Tribe
    from .manager import Session


logger = logging.getLogger(__name__)


class LoopState(Enum):
    """State of the council loop."""
    IDLE = "idle"
    WAITING_VOTE = "waiting_vote"
    WAITING_REVOTE = "waiting_revote"
    RESOLVED = "resolved"
    GAME_OVER = "game_over"


@dataclass
class CouncilResult:
    """
    Result of a council step.

    Carries what to show the human: the read votes, any tie, and who
    left the game.
    """
    success: bool
    loop_state: LoopState

    messages: list[str] = field(default_factory=list)

    vote_counts: dict[int, int] = field(default_factory=dict)
    revote_counts: dict[int, int] = field(default_factory=dict)
    reveal: list[VoteReveal] = field(default_factory=list)
    tied_ids: list[int] = field(default_factory=list)

    eliminated: Survivor | None = None
    by_rocks: bool = False
    game_over: bool = False

    errors: list[str] = field(default_factory=list)


class CouncilLoop:
    """
    Tribal Council driver.

    Usage:
        loop = session.start_council()
        result = loop.start()

        if result.loop_state == LoopState.WAITING_VOTE:
            result = loop.submit_vote(target_id, play_idol=False)

        if result.loop_state == LoopState.WAITING_REVOTE:
            result = loop.submit_revote(target_id)
    """

    def __init__(self, session: Session):
        self.session = session
        self.engine = session.engine
        self.state = LoopState.IDLE
        self.tribe: Tribe | None = None
        self._result: CouncilResult | None = None

    @property
    def is_open(self) -> bool:
        return self.state in {LoopState.WAITING_VOTE, LoopState.WAITING_REVOTE}

    @property
    def result(self) -> CouncilResult | None:
        """The latest step's result."""
        return self._result

    def _name(self, agent_id: int) -> str:
        survivor = self.session.game_state.get_survivor(agent_id)
        return survivor.name if survivor else str(agent_id)

    def _error(self, message: str) -> CouncilResult:
        return CouncilResult(success=False, loop_state=self.state, errors=[message])

    def _player(self) -> Survivor | None:
        return self.session.game_state.get_player_agent()

    # =========================================================================
    # Steps
    # =========================================================================

    def start(self, tribe: Tribe | None = None) -> CouncilResult:
        """
        Open council for tribe (default: the tribe the game sends).

        Waits for the human's vote when they attend, otherwise resolves
        the whole council.
        """
        if self.state != LoopState.IDLE:
            return self._error("Council already started")

        tribe = tribe or self.session.game_state.council_tribe()
        if tribe is None:
            return self._error("No tribe is attending Tribal Council")

        self.engine.prepare(tribe)
        self.tribe = tribe

        player = self._player()
        if player and tribe.contains(player.agent_id) and self.engine.eligible_targets(player):
            self.state = LoopState.WAITING_VOTE
            self._result = CouncilResult(
                success=True,
                loop_state=self.state,
                messages=[f"{tribe.name} attends Tribal Council. Cast your vote."],
            )
            return self._result

        return self._resolve_npc_only()

    def submit_vote(self, target_id: int, play_idol: bool = False) -> CouncilResult:
        """Cast the human's vote, optionally play their idol, then read the votes."""
        if self.state != LoopState.WAITING_VOTE:
            return self._error("Not waiting for a vote")

        player = self._player()
        if not self.engine.cast_vote(player.agent_id, target_id):
            return self._error(f"You cannot vote for {self._name(target_id)}")

        messages = []
        if play_idol:
            if self.engine.play_idol(player.agent_id):
                messages.append(f"{player.name} plays a Hidden Immunity Idol!")
            else:
                messages.append("You do not have a Hidden Immunity Idol")

        self.engine.generate_npc_votes()
        return self._read_votes(messages)

    def submit_revote(self, target_id: int) -> CouncilResult:
        """Cast the human's revote and finish the revote."""
        if self.state != LoopState.WAITING_REVOTE:
            return self._error("Not waiting for a revote")

        player = self._player()
        if not self.engine.cast_vote(player.agent_id, target_id):
            return self._error(f"You can only revote for {self._tied_names()}")

        revote = self.engine.finish_revote()
        return self._after_revote(revote, list(self._result.messages), self._result)

    def run_npc_council(self, tribe: Tribe | None = None) -> CouncilResult:
        """Run a full council without human input."""
        if self.state != LoopState.IDLE:
            return self._error("Council already started")

        tribe = tribe or self.session.game_state.council_tribe()
        if tribe is None:
            return self._error("No tribe is attending Tribal Council")

        self.engine.prepare(tribe)
        self.tribe = tribe
        return self._resolve_npc_only()

    # =========================================================================
    # Internals
    # =========================================================================

    def _tied_names(self) -> str:
        ids = self._result.tied_ids if self._result else []
        return " or ".join(self._name(i) for i in ids)

    def _resolve_npc_only(self) -> CouncilResult:
        self.engine.generate_npc_votes()
        return self._read_votes([f"{self.tribe.name} attends Tribal Council."])

    def _read_votes(self, messages: list[str]) -> CouncilResult:
        count = self.engine.count_votes()
        reveal = self.engine.reveal()

        for vote in reveal:
            suffix = " (does not count)" if vote.negated else ""
            messages.append(f"{self._name(vote.target_id)}{suffix}")

        result = CouncilResult(
            success=True,
            loop_state=self.state,
            messages=messages,
            vote_counts=count.vote_count,
            reveal=reveal,
        )

        if not count.is_tied:
            return self._finish(result)

        result.tied_ids = list(count.tied_agent_ids)
        names = " and ".join(self._name(i) for i in count.tied_agent_ids)
        messages.append(f"We have a tie between {names}. We will revote.")

        revote = self.engine.handle_tie_vote(count.tied_agent_ids)
        if revote.waiting_for_human:
            self.state = LoopState.WAITING_REVOTE
            result.loop_state = self.state
            self._result = result
            return result
        return self._after_revote(revote, messages, result)

    def _after_revote(
        self,
        revote: RevoteResult,
        messages: list[str],
        result: CouncilResult,
    ) -> CouncilResult:
        result.messages = messages
        result.revote_counts = revote.revote_count

        if revote.still_tied:
            result.tied_ids = list(revote.tied_agent_ids)
            messages.append("Still deadlocked. We will draw rocks.")
            self.engine.draw_rocks(revote.tied_agent_ids)
        return self._finish(result)

    def _finish(self, result: CouncilResult) -> CouncilResult:
        elimination = self.engine.process_elimination()

        result.eliminated = elimination.eliminated
        result.by_rocks = elimination.by_rocks
        result.game_over = elimination.game_over or self.session.game_state.is_over

        if elimination.eliminated:
            result.messages.append(
                f"{elimination.eliminated.name}, the tribe has spoken."
            )
            if elimination.joined_jury:
                result.messages.append(f"{elimination.eliminated.name} joins the jury.")
        else:
            result.messages.append("Nobody leaves tonight.")

        self.state = LoopState.GAME_OVER if result.game_over else LoopState.RESOLVED
        result.loop_state = self.state
        self._result = result
        self.session.on_council_closed()

        logger.info(
            "Council for %s closed: %s out",
            self.tribe.name,
            elimination.eliminated.name if elimination.eliminated else "nobody",
        )
        return result
