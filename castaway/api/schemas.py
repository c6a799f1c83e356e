"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between a client and the game.
All responses include explicit types for OpenAPI schema generation.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has ended
- SURVIVOR_NOT_FOUND: No survivor with that id in the session
- INVALID_VOTE: Vote target not allowed (immune, self, not tied, ...)
- COUNCIL_NOT_ACTIVE: No Tribal Council waiting for input
- VALIDATION_ERROR: Request is well-formed but not allowed right now
- INTERNAL_ERROR: Unexpected server error
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    ACTIVE = "active"
    AT_COUNCIL = "at_council"
    GAME_OVER = "game_over"
    ABANDONED = "abandoned"


class CouncilStatus(str, Enum):
    """Council loop status values."""
    IDLE = "idle"
    WAITING_VOTE = "waiting_vote"
    WAITING_REVOTE = "waiting_revote"
    RESOLVED = "resolved"
    GAME_OVER = "game_over"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SURVIVOR_NOT_FOUND = "SURVIVOR_NOT_FOUND"
    INVALID_VOTE = "INVALID_VOTE"
    COUNCIL_NOT_ACTIVE = "COUNCIL_NOT_ACTIVE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class SurvivorInfo(BaseModel):
    """Survivor information for display."""
    agent_id: int
    name: str
    description: str = ""
    is_human: bool = False
    has_idol: bool = False
    has_immunity: bool = False
    is_eliminated: bool = False
    physical_stat: int = 50
    mental_stat: int = 50
    personality_stat: int = 50
    trait: Optional[str] = None

    model_config = {"from_attributes": True}


class TribeInfo(BaseModel):
    """Tribe and its members, in council order."""
    name: str
    color: str = ""
    is_immune: bool = False
    members: list[SurvivorInfo] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class AllianceInfo(BaseModel):
    """An alliance and its cohesion."""
    alliance_id: int
    name: str
    member_ids: list[int]
    strength: float = Field(description="Mean pairwise affinity between members")

    model_config = {"from_attributes": True}


class VoteRevealInfo(BaseModel):
    """One vote as read at council."""
    voter_id: int
    target_id: int
    negated: bool = Field(False, description="Cast against an idol holder; not counted")

    model_config = {"from_attributes": True}


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to start a new season."""
    human_name: str = Field("Player", description="Name of the human survivor")
    random_seed: Optional[int] = Field(None, description="Seed for a reproducible season")
    num_npcs: int = Field(9, ge=2, le=11, description="Number of NPC survivors")
    merge_day: int = Field(12, ge=1, description="Day the tribes merge")


class ChangeAffinityRequest(BaseModel):
    """Request to change how one survivor feels about another."""
    source_id: int
    target_id: int
    delta: int = Field(..., ge=-100, le=100, description="Change applied to source -> target")


class FormAllianceRequest(BaseModel):
    """Request to form a two-person alliance."""
    source_id: int = Field(..., description="Survivor proposing the alliance")
    target_id: int = Field(..., description="Survivor being asked")
    name: Optional[str] = Field(None, description="Alliance name (random if omitted)")


class ImmunityRequest(BaseModel):
    """Challenge result: a tribe or an individual wins immunity."""
    tribe_name: Optional[str] = Field(None, description="Winning tribe (pre-merge)")
    agent_id: Optional[int] = Field(None, description="Winning survivor (post-merge)")


class StartCouncilRequest(BaseModel):
    """Request to open Tribal Council."""
    tribe_name: Optional[str] = Field(None, description="Tribe attending (default: chosen by the game)")


class VoteRequest(BaseModel):
    """The human's vote."""
    target_id: int
    play_idol: bool = Field(False, description="Play a Hidden Immunity Idol before the read")


class RevoteRequest(BaseModel):
    """The human's revote; must name a tied survivor."""
    target_id: int


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class SessionResponse(BaseModel):
    """Session status."""
    session_id: str
    status: SessionStatus
    game_id: str
    day: int
    phase: str
    player_id: Optional[int] = None
    remaining: int
    created_at: float


class GameStateResponse(BaseModel):
    """Full visible season state."""
    session_id: str
    day: int
    merge_day: int
    phase: str
    player_id: Optional[int] = None
    tribes: list[TribeInfo] = Field(default_factory=list)
    jury: list[SurvivorInfo] = Field(default_factory=list)
    last_voted_out: Optional[SurvivorInfo] = None
    alliances: list[AllianceInfo] = Field(default_factory=list)


class RelationshipResponse(BaseModel):
    """Affinity of one survivor toward another."""
    source_id: int
    target_id: int
    affinity: int = Field(..., ge=0, le=100)
    tier: str = Field(..., description="Hostile, Distrustful, Neutral, Friendly or Close Ally")


class AffinityChangeResponse(BaseModel):
    """Both directions after a change, plus any alliance churn it caused."""
    source_id: int
    target_id: int
    affinity: int
    reverse_affinity: int
    alliance_changes: list[str] = Field(default_factory=list)


class AllianceListResponse(BaseModel):
    """Alliances in the session."""
    alliances: list[AllianceInfo]
    count: int


class AllianceResponse(BaseModel):
    """Result of proposing an alliance."""
    success: bool
    alliance: Optional[AllianceInfo] = None
    message: str = ""


class ImmunityResponse(BaseModel):
    """Who is immune after a challenge result."""
    success: bool
    immune_tribes: list[str] = Field(default_factory=list)
    immune_survivors: list[int] = Field(default_factory=list)


class DayResponse(BaseModel):
    """Result of advancing to the next day."""
    day: int
    phase: str
    events: list[str] = Field(default_factory=list)


class CouncilResponse(BaseModel):
    """State of the Tribal Council in progress (or the last one)."""
    session_id: str
    success: bool = True
    status: CouncilStatus
    tribe_name: Optional[str] = None
    immune_ids: list[int] = Field(default_factory=list)
    messages: list[str] = Field(default_factory=list)
    vote_counts: dict[int, int] = Field(default_factory=dict)
    revote_counts: dict[int, int] = Field(default_factory=dict)
    reveal: list[VoteRevealInfo] = Field(default_factory=list)
    tied_ids: list[int] = Field(default_factory=list)
    eliminated: Optional[SurvivorInfo] = None
    by_rocks: bool = False
    game_over: bool = False


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
