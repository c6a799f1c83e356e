"""
FastAPI Application - REST API for a Survivor-style season.

Endpoints:
    POST   /api/v1/sessions                              Start a season
    GET    /api/v1/sessions                              List active sessions
    GET    /api/v1/sessions/{id}                         Get session status
    DELETE /api/v1/sessions/{id}                         End session
    GET    /api/v1/sessions/{id}/state                   Tribes, jury, alliances
    GET    /api/v1/sessions/{id}/relationships/{a}/{b}   Affinity of a toward b
    POST   /api/v1/sessions/{id}/relationships           Change an affinity
    GET    /api/v1/sessions/{id}/alliances               List alliances
    POST   /api/v1/sessions/{id}/alliances               Propose an alliance
    POST   /api/v1/sessions/{id}/immunity                Record a challenge win
    POST   /api/v1/sessions/{id}/days                    Advance to the next day
    POST   /api/v1/sessions/{id}/council                 Open Tribal Council
    GET    /api/v1/sessions/{id}/council                 Current/last council
    POST   /api/v1/sessions/{id}/council/vote            Human vote (+ idol)
    POST   /api/v1/sessions/{id}/council/revote          Human revote

Council Flow:
    1. POST /council opens it; NPC-only councils resolve immediately
    2. status=waiting_vote: POST /council/vote
    3. status=waiting_revote (tie): POST /council/revote
    4. status=resolved or game_over: eliminated is set

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Union
import logging
import os

# Environment configuration
CASTAWAY_ENV = os.getenv("CASTAWAY_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Query, Request
        from fastapi.exceptions import RequestValidationError
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import APIService
    from .schemas import (
        # Request models
        CreateSessionRequest,
        ChangeAffinityRequest,
        FormAllianceRequest,
        ImmunityRequest,
        StartCouncilRequest,
        VoteRequest,
        RevoteRequest,
        # Response models
        ErrorResponse,
        SessionResponse,
        SessionListResponse,
        EndSessionResponse,
        GameStateResponse,
        RelationshipResponse,
        AffinityChangeResponse,
        AllianceListResponse,
        AllianceResponse,
        ImmunityResponse,
        DayResponse,
        CouncilResponse,
        HealthResponse,
        # Enums
        ErrorCode,
    )

    app = FastAPI(
        title="Castaway API",
        description="""
Survivor-style season engine: relationships, alliances and Tribal Council.

## Council Flow

1. `POST /council` opens Tribal Council for the tribe that lost immunity
2. `status=waiting_vote`: submit the human vote with `POST /council/vote`
3. `status=waiting_revote`: the votes tied, submit `POST /council/revote`
4. `status=resolved`: someone was voted out (or drew the wrong rock)

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `SURVIVOR_NOT_FOUND` | No survivor with that id |
| `INVALID_VOTE` | Vote target not allowed |
| `COUNCIL_NOT_ACTIVE` | No council waiting for input |
| `VALIDATION_ERROR` | Request not allowed right now |
| `INTERNAL_ERROR` | Unexpected server error |
        """,
        version=API_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService()

    # =========================================================================
    # Error helpers
    # =========================================================================

    status_codes = {
        ErrorCode.SESSION_NOT_FOUND: 404,
        ErrorCode.SURVIVOR_NOT_FOUND: 404,
        ErrorCode.INVALID_VOTE: 400,
        ErrorCode.COUNCIL_NOT_ACTIVE: 409,
        ErrorCode.VALIDATION_ERROR: 400,
        ErrorCode.INTERNAL_ERROR: 500,
    }

    def make_error_response(error: ErrorResponse, status_code: int | None = None) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code or status_codes[error.error_code],
            content=error.model_dump(mode="json"),
        )

    def respond(response):
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return make_error_response(
            ErrorResponse(
                error="Invalid request",
                error_code=ErrorCode.VALIDATION_ERROR,
                details={"errors": [e.get("msg", "") for e in exc.errors()]},
            ),
            status_code=422,
        )

    @app.exception_handler(Exception)
    async def internal_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return make_error_response(
            ErrorResponse(error="Internal server error", error_code=ErrorCode.INTERNAL_ERROR)
        )

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        tags=["Sessions"],
        summary="Start a new season",
    )
    async def create_session(body: CreateSessionRequest) -> SessionResponse:
        """Set up a season: cast, two tribes, first-day relationships."""
        return api_service.create_session(body)

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.get_session(session_id))

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a session",
    )
    async def end_session(
        session_id: str,
        reason: str = Query("user_ended", description="Reason for ending"),
    ) -> EndSessionResponse:
        """End a session and release its state."""
        success = api_service.end_session(session_id, reason)
        return EndSessionResponse(success=success, session_id=session_id)

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get the visible season state",
    )
    async def get_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.get_state(session_id))

    # =========================================================================
    # Relationship and Alliance Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/sessions/{session_id}/relationships/{source_id}/{target_id}",
        response_model=RelationshipResponse,
        responses={404: {"model": ErrorResponse}, 400: {"model": ErrorResponse}},
        tags=["Relationships"],
        summary="Affinity of one survivor toward another",
    )
    async def get_relationship(
        session_id: str,
        source_id: int,
        target_id: int,
    ) -> Union[RelationshipResponse, JSONResponse]:
        return respond(api_service.get_relationship(session_id, source_id, target_id))

    @app.post(
        "/api/v1/sessions/{session_id}/relationships",
        response_model=AffinityChangeResponse,
        responses={404: {"model": ErrorResponse}, 400: {"model": ErrorResponse}},
        tags=["Relationships"],
        summary="Change an affinity",
    )
    async def change_affinity(
        session_id: str,
        body: ChangeAffinityRequest,
    ) -> Union[AffinityChangeResponse, JSONResponse]:
        """
        Apply `delta` to source -> target (target -> source moves by roughly
        the same amount). Alliances between the two are re-evaluated.
        """
        return respond(api_service.change_affinity(session_id, body))

    @app.get(
        "/api/v1/sessions/{session_id}/alliances",
        response_model=AllianceListResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Alliances"],
        summary="List alliances",
    )
    async def list_alliances(session_id: str) -> Union[AllianceListResponse, JSONResponse]:
        return respond(api_service.list_alliances(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/alliances",
        response_model=AllianceResponse,
        responses={404: {"model": ErrorResponse}, 400: {"model": ErrorResponse}},
        tags=["Alliances"],
        summary="Propose an alliance",
    )
    async def form_alliance(
        session_id: str,
        body: FormAllianceRequest,
    ) -> Union[AllianceResponse, JSONResponse]:
        """The target accepts if they like the proposer enough."""
        return respond(api_service.form_alliance(session_id, body))

    # =========================================================================
    # Day and Challenge Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/immunity",
        response_model=ImmunityResponse,
        responses={404: {"model": ErrorResponse}, 400: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Record a challenge win",
    )
    async def award_immunity(
        session_id: str,
        body: ImmunityRequest,
    ) -> Union[ImmunityResponse, JSONResponse]:
        return respond(api_service.award_immunity(session_id, body))

    @app.post(
        "/api/v1/sessions/{session_id}/days",
        response_model=DayResponse,
        responses={404: {"model": ErrorResponse}, 400: {"model": ErrorResponse}},
        tags=["Game Loop"],
        summary="Advance to the next day",
    )
    async def advance_day(session_id: str) -> Union[DayResponse, JSONResponse]:
        """Relationships drift, alliances shift, and the tribes merge on the merge day."""
        return respond(api_service.advance_day(session_id))

    # =========================================================================
    # Tribal Council Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/council",
        response_model=CouncilResponse,
        responses={404: {"model": ErrorResponse}, 400: {"model": ErrorResponse}},
        tags=["Tribal Council"],
        summary="Open Tribal Council",
    )
    async def start_council(
        session_id: str,
        body: StartCouncilRequest | None = None,
    ) -> Union[CouncilResponse, JSONResponse]:
        return respond(api_service.start_council(session_id, body or StartCouncilRequest()))

    @app.get(
        "/api/v1/sessions/{session_id}/council",
        response_model=CouncilResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Tribal Council"],
        summary="Current or last Tribal Council",
    )
    async def get_council(session_id: str) -> Union[CouncilResponse, JSONResponse]:
        return respond(api_service.get_council(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/council/vote",
        response_model=CouncilResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid vote"},
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse, "description": "Council not waiting for a vote"},
        },
        tags=["Tribal Council"],
        summary="Cast the human vote",
    )
    async def submit_vote(
        session_id: str,
        body: VoteRequest,
    ) -> Union[CouncilResponse, JSONResponse]:
        """
        Cast the human's vote, optionally playing a Hidden Immunity Idol.
        NPCs then vote and the votes are read.
        """
        return respond(api_service.submit_vote(session_id, body))

    @app.post(
        "/api/v1/sessions/{session_id}/council/revote",
        response_model=CouncilResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid revote"},
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse, "description": "Council not waiting for a revote"},
        },
        tags=["Tribal Council"],
        summary="Cast the human revote",
    )
    async def submit_revote(
        session_id: str,
        body: RevoteRequest,
    ) -> Union[CouncilResponse, JSONResponse]:
        return respond(api_service.submit_revote(session_id, body))

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="castaway",
            version=API_VERSION,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Castaway API",
            "version": API_VERSION,
            "environment": CASTAWAY_ENV,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn castaway.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
