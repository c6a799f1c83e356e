"""
Session Manager - Creates and manages seasons in progress.

LIFECYCLE:
1. Client creates a session -> season set up, tribes divided
2. Between councils:
   - Relationships change (explicit changes and daily drift)
   - Alliances form and break in response
   - Challenges award immunity
3. Tribal Council runs through a CouncilLoop
4. Season ends (human voted out or final three reached) -> session ended

PERSISTENCE RULES:
- NO database: sessions are in-memory only
- One random.Random per session, shared by graph, registry and engine,
  so a seed replays a whole season
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import logging
import random
import time
import uuid

from ..alliances.registry import Alliance, AllianceRegistry
from ..bots.personality import get_personality
from ..bots.policy import PersonalityPolicy, VotePolicy
from ..council.engine import VoteResolutionEngine
from ..engine_core.state import DEFAULT_MERGE_DAY, GamePhase, GameState, Survivor
from ..relationships.graph import RelationshipGraph, UnknownSurvivorError
from ..season.setup import DEFAULT_NPC_COUNT, setup_season
from .council_loop import CouncilLoop


logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a session."""
    ACTIVE = "active"  # Between councils
    AT_COUNCIL = "at_council"  # Council loop in progress
    GAME_OVER = "game_over"  # Season completed
    ABANDONED = "abandoned"  # Ended before completion


@dataclass
class Session:
    """
    An in-memory season.

    Contains:
    - The game state (also the host the vote engine reports to)
    - The relationship graph and alliance registry
    - The vote engine and per-NPC vote policies
    - The council loop in progress, if any
    """
    session_id: str
    created_at: float

    game_state: GameState
    graph: RelationshipGraph
    registry: AllianceRegistry
    engine: VoteResolutionEngine
    rng: random.Random

    state: SessionState = SessionState.ACTIVE
    policies: dict[int, VotePolicy] = field(default_factory=dict)
    loop: CouncilLoop | None = None

    # Day-by-day narration (drift, alliance churn, merge)
    events: list[str] = field(default_factory=list)

    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        return self.state in {SessionState.ACTIVE, SessionState.AT_COUNCIL}

    def require_survivor(self, agent_id: int) -> Survivor:
        survivor = self.game_state.get_survivor(agent_id)
        if survivor is None or survivor.is_eliminated:
            raise UnknownSurvivorError(agent_id)
        return survivor

    # =========================================================================
    # Between councils
    # =========================================================================

    def change_affinity(self, a_id: int, b_id: int, delta: int) -> list[str]:
        """Change a relationship and let alliances react to it."""
        a = self.require_survivor(a_id)
        b = self.require_survivor(b_id)
        self.graph.change_affinity(a_id, b_id, delta)
        changes = self.registry.reevaluate_alliances(a, b, self.game_state.tribes)
        self.events.extend(changes)
        return changes

    def form_alliance(self, a_id: int, b_id: int, name: str | None = None) -> Alliance | None:
        """Propose an alliance between two survivors (usually the human's)."""
        a = self.require_survivor(a_id)
        b = self.require_survivor(b_id)
        alliance = self.registry.try_form(a, b, name=name)
        if alliance:
            self.events.append(f"{a.name} and {b.name} formed {alliance.name}")
        return alliance

    def advance_day(self) -> list[str]:
        """
        Move to the next day.

        Immunity from the previous challenge expires, relationships drift,
        alliances react and NPCs may form new ones, and the tribes merge on
        the merge day.
        """
        gs = self.game_state
        if gs.is_over:
            return []

        gs.day += 1
        gs.clear_immunity()
        events = [f"Day {gs.day}"]

        for a_id, b_id in self.graph.drift(gs.tribes):
            a = gs.get_survivor(a_id)
            b = gs.get_survivor(b_id)
            events.extend(self.registry.reevaluate_alliances(a, b, gs.tribes))

        for alliance in self.registry.form_npc_alliances(gs.tribes):
            names = ", ".join(m.name for m in alliance.members)
            events.append(f"{names} formed {alliance.name}")

        self.registry.update_strengths()

        if gs.should_merge():
            merged = gs.merge_tribes()
            self.graph.initialize_tribe(merged)
            events.append(f"The tribes have merged into {merged.name}")
            logger.info("Session %s merged on day %d", self.session_id, gs.day)

        self.events.extend(events)
        return events

    # =========================================================================
    # Council
    # =========================================================================

    def start_council(self) -> CouncilLoop:
        """Create the council loop for the next Tribal Council."""
        if self.loop is not None and self.loop.is_open:
            raise RuntimeError("A Tribal Council is already in progress")

        self.loop = CouncilLoop(self)
        self.state = SessionState.AT_COUNCIL
        return self.loop

    def on_council_closed(self):
        """Called by the council loop once someone has been voted out."""
        if self.game_state.phase in {GamePhase.FINAL, GamePhase.GAME_OVER}:
            self.state = SessionState.GAME_OVER
        else:
            self.state = SessionState.ACTIVE


class SessionManager:
    """
    Manages sessions.

    Responsibilities:
    - Create sessions (season setup, shared rng, engine wiring)
    - Track active sessions
    - Clean up completed sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self):
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        human_name: str = "Player",
        random_seed: int | None = None,
        num_npcs: int = DEFAULT_NPC_COUNT,
        merge_day: int = DEFAULT_MERGE_DAY,
    ) -> Session:
        """
        Create a new season.

        Args:
            human_name: Name of the human survivor
            random_seed: Seed for the season (random if omitted)
            num_npcs: Number of NPC survivors
            merge_day: Day the tribes merge

        Returns:
            New Session between councils on day 1
        """
        session_id = str(uuid.uuid4())
        rng = random.Random(random_seed)

        graph = RelationshipGraph(rng=rng)
        registry = AllianceRegistry(graph, rng=rng)
        game_state = setup_season(
            human_name=human_name,
            random_seed=random_seed,
            num_npcs=num_npcs,
            merge_day=merge_day,
            rng=rng,
            graph=graph,
        )

        policies: dict[int, VotePolicy] = {
            s.agent_id: PersonalityPolicy(get_personality(s.trait), rng=rng)
            for s in game_state.all_survivors()
            if not s.is_human
        }
        engine = VoteResolutionEngine(graph, registry, host=game_state, rng=rng, policies=policies)

        session = Session(
            session_id=session_id,
            created_at=time.time(),
            game_state=game_state,
            graph=graph,
            registry=registry,
            engine=engine,
            rng=rng,
            policies=policies,
        )

        self._sessions[session_id] = session
        logger.info("Created session %s (seed %s)", session_id, game_state.random_seed)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and drop it from memory.

        Returns False if the session did not exist.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False

        if reason == "completed":
            session.state = SessionState.GAME_OVER
        else:
            session.state = SessionState.ABANDONED
        session.engine.reset()
        session.loop = None
        logger.info("Ended session %s (%s)", session_id, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Remove finished sessions older than max_age_seconds.

        Returns the number removed.
        """
        current_time = time.time()
        to_remove = [
            session_id for session_id, session in self._sessions.items()
            if current_time - session.created_at > max_age_seconds and not session.is_active()
        ]

        for session_id in to_remove:
            self.end_session(session_id, reason="stale")
        return len(to_remove)
