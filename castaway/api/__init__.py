"""
API Module - HTTP interface to a season.

A client:
1. Creates a session (season set up, tribes divided)
2. Shapes relationships and alliances between councils
3. Records challenge results and advances days
4. Runs Tribal Council, voting (and revoting) for the human

All state is session-scoped and in memory.
"""

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
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "ChangeAffinityRequest",
    "FormAllianceRequest",
    "ImmunityRequest",
    "StartCouncilRequest",
    "VoteRequest",
    "RevoteRequest",
    # Responses
    "ErrorResponse",
    "SessionResponse",
    "GameStateResponse",
    "RelationshipResponse",
    "AffinityChangeResponse",
    "AllianceListResponse",
    "AllianceResponse",
    "ImmunityResponse",
    "DayResponse",
    "CouncilResponse",
    # Shared
    "SurvivorInfo",
    "TribeInfo",
    "AllianceInfo",
    "VoteRevealInfo",
    # Enums
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
