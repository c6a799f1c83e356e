"""
API Service - Business logic layer between the API and the game.

The service:
1. Translates API requests to session/engine calls
2. Manages sessions and their council loops
3. Turns programmer errors from the core into structured ErrorResponses

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .schemas import (
    # Requests
    CreateSessionRequest,
    ChangeAffinityRequest,
    FormAllianceRequest,
    ImmunityRequest,
    StartCouncilRequest,
    VoteRequest,
    RevoteRequest,
    # Responses
    ErrorResponse,
    SessionResponse,
    GameStateResponse,
    RelationshipResponse,
    AffinityChangeResponse,
    AllianceListResponse,
    AllianceResponse,
    ImmunityResponse,
    DayResponse,
    CouncilResponse,
    # Shared
    SurvivorInfo,
    TribeInfo,
    AllianceInfo,
    VoteRevealInfo,
    # Enums
    ErrorCode,
    SessionStatus,
    CouncilStatus,
)
from ..relationships.graph import UnknownSurvivorError
from ..session import CouncilResult, LoopState, Session, SessionManager


logger = logging.getLogger(__name__)


def _error(code: ErrorCode, message: str, **details) -> ErrorResponse:
    return ErrorResponse(error=message, error_code=code, details=details or None)


def _session_not_found(session_id: str) -> ErrorResponse:
    return _error(ErrorCode.SESSION_NOT_FOUND, f"Session {session_id} not found")


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        session = service.create_session(CreateSessionRequest(human_name="Sam"))
        service.award_immunity(session.session_id, ImmunityRequest(tribe_name="Tagi"))
        council = service.start_council(session.session_id, StartCouncilRequest())
        council = service.submit_vote(session.session_id, VoteRequest(target_id=3))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        session = self.session_manager.create_session(
            human_name=request.human_name,
            random_seed=request.random_seed,
            num_npcs=request.num_npcs,
            merge_day=request.merge_day,
        )
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        return self._session_to_response(session)

    def end_session(self, session_id: str, reason: str = "user_ended") -> bool:
        return self.session_manager.end_session(session_id, reason)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    def get_state(self, session_id: str) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)

        gs = session.game_state
        return GameStateResponse(
            session_id=session_id,
            day=gs.day,
            merge_day=gs.merge_day,
            phase=gs.phase.value,
            player_id=gs.player_id,
            tribes=[TribeInfo.model_validate(t) for t in gs.tribes],
            jury=[SurvivorInfo.model_validate(s) for s in gs.jury],
            last_voted_out=(
                SurvivorInfo.model_validate(gs.last_voted_out) if gs.last_voted_out else None
            ),
            alliances=[AllianceInfo.model_validate(a) for a in session.registry.alliances],
        )

    # =========================================================================
    # Relationships and alliances
    # =========================================================================

    def get_relationship(
        self,
        session_id: str,
        source_id: int,
        target_id: int,
    ) -> RelationshipResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)

        try:
            affinity = session.graph.get_affinity(source_id, target_id)
        except UnknownSurvivorError as e:
            return _error(ErrorCode.SURVIVOR_NOT_FOUND, str(e), agent_id=e.agent_id)
        except ValueError as e:
            return _error(ErrorCode.VALIDATION_ERROR, str(e))

        return RelationshipResponse(
            source_id=source_id,
            target_id=target_id,
            affinity=affinity,
            tier=session.graph.describe(source_id, target_id).value,
        )

    def change_affinity(
        self,
        session_id: str,
        request: ChangeAffinityRequest,
    ) -> AffinityChangeResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)

        try:
            changes = session.change_affinity(request.source_id, request.target_id, request.delta)
        except UnknownSurvivorError as e:
            return _error(ErrorCode.SURVIVOR_NOT_FOUND, str(e), agent_id=e.agent_id)
        except ValueError as e:
            return _error(ErrorCode.VALIDATION_ERROR, str(e))

        return AffinityChangeResponse(
            source_id=request.source_id,
            target_id=request.target_id,
            affinity=session.graph.get_affinity(request.source_id, request.target_id),
            reverse_affinity=session.graph.get_affinity(request.target_id, request.source_id),
            alliance_changes=changes,
        )

    def list_alliances(self, session_id: str) -> AllianceListResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)

        alliances = [AllianceInfo.model_validate(a) for a in session.registry.alliances]
        return AllianceListResponse(alliances=alliances, count=len(alliances))

    def form_alliance(
        self,
        session_id: str,
        request: FormAllianceRequest,
    ) -> AllianceResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)

        try:
            alliance = session.form_alliance(request.source_id, request.target_id, request.name)
        except UnknownSurvivorError as e:
            return _error(ErrorCode.SURVIVOR_NOT_FOUND, str(e), agent_id=e.agent_id)
        except ValueError as e:
            return _error(ErrorCode.VALIDATION_ERROR, str(e))

        if alliance is None:
            return AllianceResponse(success=False, message="They are not interested in an alliance")
        return AllianceResponse(
            success=True,
            alliance=AllianceInfo.model_validate(alliance),
            message=f"{alliance.name} formed",
        )

    # =========================================================================
    # Challenges and days
    # =========================================================================

    def award_immunity(
        self,
        session_id: str,
        request: ImmunityRequest,
    ) -> ImmunityResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        if session.loop is not None and session.loop.is_open:
            return _error(ErrorCode.VALIDATION_ERROR, "Immunity cannot change during Tribal Council")

        gs = session.game_state
        if request.tribe_name is None and request.agent_id is None:
            return _error(ErrorCode.VALIDATION_ERROR, "Name a tribe or a survivor")
        if request.tribe_name is not None and not gs.award_tribe_immunity(request.tribe_name):
            return _error(ErrorCode.VALIDATION_ERROR, f"No tribe named {request.tribe_name}")
        if request.agent_id is not None and not gs.award_individual_immunity(request.agent_id):
            return _error(
                ErrorCode.SURVIVOR_NOT_FOUND,
                f"Survivor {request.agent_id} not in play",
                agent_id=request.agent_id,
            )

        return ImmunityResponse(
            success=True,
            immune_tribes=[t.name for t in gs.tribes if t.is_immune],
            immune_survivors=[s.agent_id for s in gs.all_survivors() if s.has_immunity],
        )

    def advance_day(self, session_id: str) -> DayResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        if session.loop is not None and session.loop.is_open:
            return _error(ErrorCode.VALIDATION_ERROR, "Finish Tribal Council first")
        if not session.is_active():
            return _error(ErrorCode.VALIDATION_ERROR, "The season is over")

        events = session.advance_day()
        gs = session.game_state
        return DayResponse(day=gs.day, phase=gs.phase.value, events=events)

    # =========================================================================
    # Tribal Council
    # =========================================================================

    def start_council(
        self,
        session_id: str,
        request: StartCouncilRequest,
    ) -> CouncilResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        if not session.is_active() or session.game_state.is_over:
            return _error(ErrorCode.VALIDATION_ERROR, "The season is over")
        if session.loop is not None and session.loop.is_open:
            return _error(ErrorCode.VALIDATION_ERROR, "Tribal Council is already in progress")

        tribe = None
        if request.tribe_name is not None:
            tribe = session.game_state.get_tribe(request.tribe_name)
            if tribe is None:
                return _error(ErrorCode.VALIDATION_ERROR, f"No tribe named {request.tribe_name}")

        loop = session.start_council()
        try:
            result = loop.start(tribe)
        except (ValueError, RuntimeError) as e:
            logger.warning("Could not open council for session %s: %s", session_id, e)
            session.on_council_closed()
            return _error(ErrorCode.VALIDATION_ERROR, str(e))

        if not result.success:
            session.on_council_closed()
            return _error(ErrorCode.VALIDATION_ERROR, "; ".join(result.errors))
        return self._council_to_response(session, result)

    def get_council(self, session_id: str) -> CouncilResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        if session.loop is None or session.loop.result is None:
            return _error(ErrorCode.COUNCIL_NOT_ACTIVE, "No Tribal Council has been held")
        return self._council_to_response(session, session.loop.result)

    def submit_vote(
        self,
        session_id: str,
        request: VoteRequest,
    ) -> CouncilResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        if session.loop is None or session.loop.state != LoopState.WAITING_VOTE:
            return _error(ErrorCode.COUNCIL_NOT_ACTIVE, "Tribal Council is not waiting for a vote")

        result = session.loop.submit_vote(request.target_id, play_idol=request.play_idol)
        if not result.success:
            return _error(ErrorCode.INVALID_VOTE, "; ".join(result.errors), target_id=request.target_id)
        return self._council_to_response(session, result)

    def submit_revote(
        self,
        session_id: str,
        request: RevoteRequest,
    ) -> CouncilResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _session_not_found(session_id)
        if session.loop is None or session.loop.state != LoopState.WAITING_REVOTE:
            return _error(ErrorCode.COUNCIL_NOT_ACTIVE, "Tribal Council is not waiting for a revote")

        result = session.loop.submit_revote(request.target_id)
        if not result.success:
            return _error(ErrorCode.INVALID_VOTE, "; ".join(result.errors), target_id=request.target_id)
        return self._council_to_response(session, result)

    # =========================================================================
    # Conversion Helpers
    # =========================================================================

    def _session_to_response(self, session: Session) -> SessionResponse:
        gs = session.game_state
        return SessionResponse(
            session_id=session.session_id,
            status=SessionStatus(session.state.value),
            game_id=gs.game_id,
            day=gs.day,
            phase=gs.phase.value,
            player_id=gs.player_id,
            remaining=gs.remaining_count,
            created_at=session.created_at,
        )

    def _council_to_response(self, session: Session, result: CouncilResult) -> CouncilResponse:
        loop = session.loop
        return CouncilResponse(
            session_id=session.session_id,
            success=result.success,
            status=CouncilStatus(result.loop_state.value),
            tribe_name=loop.tribe.name if loop and loop.tribe else None,
            immune_ids=[s.agent_id for s in session.engine.get_immune_agents()],
            messages=result.messages,
            vote_counts=result.vote_counts,
            revote_counts=result.revote_counts,
            reveal=[VoteRevealInfo.model_validate(v) for v in result.reveal],
            tied_ids=result.tied_ids,
            eliminated=(
                SurvivorInfo.model_validate(result.eliminated) if result.eliminated else None
            ),
            by_rocks=result.by_rocks,
            game_over=result.game_over,
        )
