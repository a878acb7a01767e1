"""
Mock Interview Service

Runs practice interviews for signed-in candidates: joins the LiveKit room,
brings in the AI interviewer and its Tavus avatar, streams session state to
the UI, and stores the finished interview with a score in Supabase.

Endpoints:
    GET    /health                    - Health check
    POST   /session/start             - Start an interview
    GET    /session/status            - Current session state
    GET    /session/events            - Server-sent stream of session state
    POST   /session/toggle-microphone - Toggle the microphone
    POST   /session/toggle-camera     - Toggle the camera
    POST   /session/end               - End, score and store the interview
    DELETE /session                   - Abandon the interview without storing it
    GET    /interviews                - List the candidate's interviews
    POST   /interviews                - Add an interview record
    PATCH  /interviews/{id}           - Update an interview record
    DELETE /interviews/{id}           - Delete an interview record
    GET    /interviews/stats          - Aggregate interview statistics
    POST   /scoring/score             - Score a transcript
    POST   /scoring/questions         - Generate practice questions
    POST   /agent/configure           - Interviewer agent configuration

Every endpoint except /health requires `Authorization: Bearer <supabase token>`.
Binding: configured by SERVER_HOST/SERVER_PORT (default 0.0.0.0:8000)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from functools import lru_cache
from typing import Annotated, Any, AsyncIterator, Optional, TypedDict

import uvicorn
from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field
from supabase import Client, create_client

from interview_platform import (
    AgentConfig,
    AuthenticatedUser,
    InvalidCredentialsError,
    RuntimeConfig,
    build_agent_config,
    create_user_client,
    load_env_file,
    load_runtime_config,
    resolve_user,
)
from mock_interview import (
    AIInterviewScorer,
    END_FAILURE_FEEDBACK,
    END_FAILURE_SCORE,
    Interview,
    InterviewCreate,
    InterviewDataError,
    InterviewDataStore,
    InterviewFeedback,
    InterviewSession,
    InterviewSetup,
    InterviewStats,
    InterviewStatus,
    InterviewUpdate,
    InvalidSessionTransition,
    LiveKitService,
    SessionPhase,
    SessionState,
    SupabaseTokenProvider,
    TavusService,
    TranscriptEntry,
    TransportError,
    __version__,
    completion_feedback,
    score_from_duration,
)

# =============================================================================
# Logging Configuration
# =============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

SERVICE_NAME = "Mock Interview Service"

load_env_file()
RUNTIME_CONFIG = load_runtime_config()

SessionFactory = Callable[[], InterviewSession]


# =============================================================================
# Request Models
# =============================================================================


class SessionStartRequest(BaseModel):
    """Request to start an interview."""

    interview: InterviewSetup = Field(..., description="Interview setup from the setup form")


class ScoreRequest(BaseModel):
    """Transcript and setup to score."""

    transcript: list[TranscriptEntry] = Field(default_factory=list)
    interview: InterviewSetup


class AgentConfigureRequest(BaseModel):
    """Room the agent is joining and the interview it runs."""

    room: str = Field(..., min_length=1, description="LiveKit room name")
    interview: InterviewSetup


# =============================================================================
# Response Models
# =============================================================================


class BaseResponse(BaseModel):
    """Base response model with common fields."""

    ok: bool = Field(..., description="Whether the operation succeeded")
    message: Optional[str] = Field(default=None, description="Optional status message")


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = Field(default=False)
    error: str = Field(..., description="Error description")
    error_code: Optional[str] = Field(default=None, description="Machine-readable error code")


class SessionStateResponse(BaseResponse):
    """Response carrying the session state."""

    state: SessionState


class SessionEndResponse(BaseResponse):
    """Response for interview end."""

    interview: Optional[Interview] = Field(
        default=None, description="Stored interview record, None when saving failed"
    )
    score: int = Field(..., description="Overall score given to the interview")
    feedback: str = Field(..., description="Feedback stored with the interview")
    error: Optional[str] = Field(default=None, description="Why the interview could not be saved")
    summary: str = Field(..., description="Post-interview summary")
    transcript: Optional[str] = Field(default=None, description="Avatar transcript, when available")
    duration_seconds: int = Field(..., description="Elapsed session time")


class InterviewListResponse(BaseResponse):
    interviews: list[Interview] = Field(default_factory=list)
    stats: InterviewStats


class InterviewResponse(BaseResponse):
    interview: Interview


class QuestionsResponse(BaseModel):
    questions: list[str] = Field(..., description="Practice questions")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    timestamp: str = Field(..., description="Current server timestamp")
    active_sessions: int = Field(..., description="Interviews currently running")


# =============================================================================
# Application State (Type-safe Lifespan State)
# =============================================================================


class AppState(TypedDict):
    """Type-safe application state managed by lifespan."""

    config: RuntimeConfig
    sessions: dict[str, InterviewSession]
    started_at: str


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# =============================================================================
# Custom Exceptions
# =============================================================================


class InterviewServiceError(Exception):
    """Base exception for interview service errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: Optional[str] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class SessionNotActiveError(InterviewServiceError):
    """Raised when an operation requires a running interview."""

    def __init__(self, message: str = "No active interview. Start an interview first.") -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="SESSION_NOT_ACTIVE",
        )


class SessionAlreadyActiveError(InterviewServiceError):
    """Raised when starting an interview while one is running."""

    def __init__(
        self, message: str = "Interview already active. End the current interview first."
    ) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            error_code="SESSION_ALREADY_ACTIVE",
        )


class SessionNotConnectedError(InterviewServiceError):
    """Raised when a media toggle is attempted outside a connected room."""

    def __init__(self, message: str) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            error_code="SESSION_NOT_CONNECTED",
        )


class SessionStartError(InterviewServiceError):
    """Raised when the room connection could not be established."""

    def __init__(self, message: str) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_502_BAD_GATEWAY,
            error_code="SESSION_START_FAILED",
        )


class InterviewStoreError(InterviewServiceError):
    """Raised when the interviews table could not be read or written."""

    def __init__(self, message: str) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_502_BAD_GATEWAY,
            error_code="INTERVIEW_STORE_FAILED",
        )


class AuthenticationFailedError(InterviewServiceError):
    """Raised when the bearer token does not resolve to a user."""

    def __init__(self, message: str = "Invalid authentication") -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="UNAUTHORIZED",
        )


# =============================================================================
# Dependencies
# =============================================================================


def get_app_state(request: Request) -> AppState:
    """
    Dependency to retrieve application state from request.

    Raises:
        RuntimeError: If state is not properly initialized.
    """
    state = getattr(request, "state", None)
    if state is None:
        raise RuntimeError("Application state not initialized")
    return AppState(
        config=state.config,
        sessions=state.sessions,
        started_at=state.started_at,
    )


AppStateDep = Annotated[AppState, Depends(get_app_state)]

security = HTTPBearer()


@lru_cache(maxsize=1)
def _auth_client() -> Client:
    return create_client(RUNTIME_CONFIG.supabase_url, RUNTIME_CONFIG.supabase_anon_key)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> AuthenticatedUser:
    """Resolve the bearer token to a Supabase user."""
    try:
        return resolve_user(_auth_client(), credentials.credentials)
    except InvalidCredentialsError as e:
        raise AuthenticationFailedError(str(e)) from e


CurrentUserDep = Annotated[AuthenticatedUser, Depends(get_current_user)]


def get_interview_store(user: CurrentUserDep, state: AppStateDep) -> InterviewDataStore:
    """Interview store acting as the signed-in user."""
    config = state["config"]
    client = create_user_client(config.supabase_url, config.supabase_anon_key, user.access_token)
    return InterviewDataStore(client, user.id)


InterviewStoreDep = Annotated[InterviewDataStore, Depends(get_interview_store)]


def get_session_factory(state: AppStateDep) -> SessionFactory:
    """Factory for a fresh session with its own transport and avatar clients."""
    config = state["config"]

    def factory() -> InterviewSession:
        tokens = SupabaseTokenProvider(config.supabase_url, config.supabase_anon_key)
        return InterviewSession(
            LiveKitService(config.livekit_url, tokens),
            TavusService(
                config.tavus_api_key,
                default_replica_id=config.tavus_default_replica_id,
                base_url=config.tavus_api_base,
                settle_delay_seconds=config.tavus_settle_delay_seconds,
            ),
            agent_join_timeout=config.agent_join_timeout_seconds,
        )

    return factory


SessionFactoryDep = Annotated[SessionFactory, Depends(get_session_factory)]


def get_scorer(state: AppStateDep) -> AIInterviewScorer:
    return AIInterviewScorer(state["config"].scoring_api_url)


ScorerDep = Annotated[AIInterviewScorer, Depends(get_scorer)]


def _require_session(state: AppState, user: AuthenticatedUser) -> InterviewSession:
    session = state["sessions"].get(user.id)
    if session is None:
        raise SessionNotActiveError()
    return session


# =============================================================================
# Exception Handlers
# =============================================================================


async def interview_service_error_handler(
    request: Request, exc: InterviewServiceError
) -> JSONResponse:
    """Render an InterviewServiceError as an ErrorResponse."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            ok=False,
            error=exc.message,
            error_code=exc.error_code,
        ).model_dump(),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            ok=False,
            error="Internal server error",
            error_code="INTERNAL_ERROR",
        ).model_dump(),
    )


# =============================================================================
# FastAPI App Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[dict[str, Any]]:
    """
    Hold the per-user session registry for the lifetime of the app.

    Running sessions are closed on shutdown without being stored.
    """
    logger.info("Starting %s %s", SERVICE_NAME, __version__)
    logger.info(
        "Runtime: livekit=%s scoring=%s host=%s port=%d",
        RUNTIME_CONFIG.livekit_url,
        RUNTIME_CONFIG.scoring_api_url,
        RUNTIME_CONFIG.server_host,
        RUNTIME_CONFIG.server_port,
    )

    sessions: dict[str, InterviewSession] = {}
    state = {
        "config": RUNTIME_CONFIG,
        "sessions": sessions,
        "started_at": _utc_now(),
    }

    yield state

    logger.info("Shutting down...")
    for user_id, session in list(sessions.items()):
        try:
            await session.close()
        except Exception as e:
            logger.error("Error closing session for %s: %s", user_id, e, exc_info=True)
    sessions.clear()


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title=SERVICE_NAME,
    version=__version__,
    description="Runs AI mock interviews over LiveKit and stores scored results in Supabase",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(RUNTIME_CONFIG.cors_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
    max_age=3600,
)

app.add_exception_handler(InterviewServiceError, interview_service_error_handler)
app.add_exception_handler(Exception, generic_exception_handler)


# =============================================================================
# Session Endpoints
# =============================================================================


@app.post("/session/start", response_model=SessionStateResponse)
async def start_session(
    request: SessionStartRequest,
    user: CurrentUserDep,
    state: AppStateDep,
    session_factory: SessionFactoryDep,
) -> SessionStateResponse:
    """
    Start an interview for the signed-in candidate.

    Raises:
        SessionAlreadyActiveError: If the candidate already has a running interview.
        SessionStartError: If the room could not be joined.
    """
    sessions = state["sessions"]
    existing = sessions.get(user.id)
    if existing is not None and existing.phase not in (SessionPhase.ENDED, SessionPhase.FAILED):
        raise SessionAlreadyActiveError()

    session = session_factory()
    sessions[user.id] = session
    try:
        snapshot = await session.start_interview(
            request.interview, user_id=user.id, access_token=user.access_token
        )
    except Exception as e:
        sessions.pop(user.id, None)
        raise SessionStartError(session.error or str(e)) from e

    logger.info(
        "Interview started for %s: %s at %s (%s, %s)",
        user.id,
        request.interview.position,
        request.interview.company,
        request.interview.type.value,
        request.interview.difficulty.value,
    )
    return SessionStateResponse(ok=True, message="Interview started", state=snapshot)


@app.get("/session/status", response_model=SessionStateResponse)
async def get_session_status(user: CurrentUserDep, state: AppStateDep) -> SessionStateResponse:
    """Current session state. An idle state is returned when nothing is running."""
    session = state["sessions"].get(user.id)
    if session is None:
        return SessionStateResponse(
            ok=True,
            state=SessionState(
                phase=SessionPhase.IDLE,
                is_connected=False,
                agent_connected=False,
                is_recording=False,
                is_video_enabled=False,
            ),
        )
    return SessionStateResponse(ok=True, state=session.snapshot())


@app.get("/session/events")
async def stream_session_events(user: CurrentUserDep, state: AppStateDep) -> StreamingResponse:
    """
    Server-sent events with every session update.

    Retained history is replayed first. The stream closes once the session
    reaches a terminal phase.
    """
    session = _require_session(state, user)
    publisher = session.publisher
    queue = await publisher.subscribe()

    async def event_stream() -> AsyncIterator[str]:
        try:
            while True:
                update = await queue.get()
                yield f"event: {update.update_type.value}\ndata: {update.to_json()}\n\n"
                if update.is_terminal:
                    break
        finally:
            await publisher.unsubscribe(queue)

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )


@app.post("/session/toggle-microphone", response_model=SessionStateResponse)
async def toggle_microphone(user: CurrentUserDep, state: AppStateDep) -> SessionStateResponse:
    """Flip the microphone. 409 when the room is not connected."""
    session = state["sessions"].get(user.id)
    if session is None:
        raise SessionNotConnectedError("Not connected to room")
    try:
        enabled = await session.toggle_recording()
    except TransportError as e:
        raise SessionNotConnectedError(session.error or str(e)) from e
    return SessionStateResponse(
        ok=True,
        message="Microphone on" if enabled else "Microphone off",
        state=session.snapshot(),
    )


@app.post("/session/toggle-camera", response_model=SessionStateResponse)
async def toggle_camera(user: CurrentUserDep, state: AppStateDep) -> SessionStateResponse:
    """Flip the camera. 409 when the room is not connected."""
    session = state["sessions"].get(user.id)
    if session is None:
        raise SessionNotConnectedError("Not connected to room")
    try:
        enabled = await session.toggle_video()
    except TransportError as e:
        raise SessionNotConnectedError(session.error or str(e)) from e
    return SessionStateResponse(
        ok=True,
        message="Camera on" if enabled else "Camera off",
        state=session.snapshot(),
    )


@app.post("/session/end", response_model=SessionEndResponse)
async def end_session(
    user: CurrentUserDep,
    state: AppStateDep,
    store: InterviewStoreDep,
) -> SessionEndResponse:
    """
    End the interview, score it and store it.

    When the session cannot be ended cleanly it is still stored, with a
    fixed score and a generic feedback line. A failed save is logged and
    reported with ok=False; score, feedback and summary are still returned.

    Raises:
        SessionNotActiveError: If no interview is running.
    """
    session = state["sessions"].pop(user.id, None)
    if session is None or session.setup is None:
        raise SessionNotActiveError()
    setup = session.setup

    try:
        outcome = await session.end_interview()
    except InvalidSessionTransition as e:
        logger.error("Error ending interview for %s: %s", user.id, e)
        await session.close()
        summary, transcript, duration_seconds = "", None, session.session_duration
        score, feedback = END_FAILURE_SCORE, END_FAILURE_FEEDBACK
    else:
        summary = outcome.summary
        transcript = outcome.transcript
        duration_seconds = outcome.duration_seconds
        score = score_from_duration(setup.duration, duration_seconds)
        feedback = summary or completion_feedback(setup)

    interview: Optional[Interview] = None
    save_error: Optional[str] = None
    try:
        interview = store.add_interview(
            InterviewCreate(
                position=setup.position,
                company=setup.company,
                difficulty=setup.difficulty,
                type=setup.type,
                duration=setup.duration,
                score=score,
                feedback=feedback,
                status=InterviewStatus.COMPLETED,
            )
        )
    except InterviewDataError as e:
        logger.error("Error saving interview for %s: %s", user.id, e)
        save_error = str(e)

    return SessionEndResponse(
        ok=save_error is None,
        message="Interview completed" if save_error is None else "Interview completed but not saved",
        interview=interview,
        score=score,
        feedback=feedback,
        error=save_error,
        summary=summary or feedback,
        transcript=transcript,
        duration_seconds=duration_seconds,
    )


@app.delete("/session", response_model=BaseResponse)
async def abandon_session(user: CurrentUserDep, state: AppStateDep) -> BaseResponse:
    """Tear down the running interview without storing anything."""
    session = state["sessions"].pop(user.id, None)
    if session is None:
        raise SessionNotActiveError()
    await session.close()
    logger.info("Interview abandoned for %s", user.id)
    return BaseResponse(ok=True, message="Interview abandoned")


# =============================================================================
# Interview Record Endpoints
# =============================================================================


@app.get("/interviews", response_model=InterviewListResponse)
def list_interviews(store: InterviewStoreDep) -> InterviewListResponse:
    """All interviews of the candidate, newest first, with their stats."""
    try:
        interviews = store.refresh()
    except InterviewDataError as e:
        raise InterviewStoreError(str(e)) from e
    return InterviewListResponse(ok=True, interviews=interviews, stats=store.stats)


@app.post("/interviews", response_model=InterviewResponse, status_code=status.HTTP_201_CREATED)
def create_interview(request: InterviewCreate, store: InterviewStoreDep) -> InterviewResponse:
    try:
        interview = store.add_interview(request)
    except InterviewDataError as e:
        raise InterviewStoreError(str(e)) from e
    return InterviewResponse(ok=True, interview=interview)


@app.get("/interviews/stats", response_model=InterviewStats)
def get_interview_stats(store: InterviewStoreDep) -> InterviewStats:
    try:
        store.refresh()
    except InterviewDataError as e:
        raise InterviewStoreError(str(e)) from e
    return store.stats


@app.patch("/interviews/{interview_id}", response_model=InterviewResponse)
def update_interview(
    interview_id: str,
    request: InterviewUpdate,
    store: InterviewStoreDep,
) -> InterviewResponse:
    try:
        interview = store.update_interview(interview_id, request)
    except InterviewDataError as e:
        raise InterviewStoreError(str(e)) from e
    return InterviewResponse(ok=True, interview=interview)


@app.delete("/interviews/{interview_id}", response_model=BaseResponse)
def delete_interview(interview_id: str, store: InterviewStoreDep) -> BaseResponse:
    try:
        store.delete_interview(interview_id)
    except InterviewDataError as e:
        raise InterviewStoreError(str(e)) from e
    return BaseResponse(ok=True, message=f"Deleted interview {interview_id}")


# =============================================================================
# Scoring and Agent Endpoints
# =============================================================================


@app.post("/scoring/score", response_model=InterviewFeedback)
async def score_interview(
    request: ScoreRequest,
    user: CurrentUserDep,
    scorer: ScorerDep,
) -> InterviewFeedback:
    """Score a transcript. Falls back to fixed feedback when scoring is unavailable."""
    return await scorer.score_interview(request.transcript, request.interview)


@app.post("/scoring/questions", response_model=QuestionsResponse)
async def generate_questions(
    request: InterviewSetup,
    user: CurrentUserDep,
    scorer: ScorerDep,
) -> QuestionsResponse:
    return QuestionsResponse(questions=await scorer.generate_questions(request))


@app.post("/agent/configure", response_model=AgentConfig)
async def configure_agent(request: AgentConfigureRequest, user: CurrentUserDep) -> AgentConfig:
    """Configuration the interviewer agent loads for a room."""
    config = build_agent_config(request.room, request.interview.agent_payload())
    logger.info("Agent configured for room %s (voice=%s)", request.room, config.voice_settings.voice)
    return config


# =============================================================================
# Health
# =============================================================================


@app.get("/health", response_model=HealthResponse)
async def health(state: AppStateDep) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        version=__version__,
        timestamp=_utc_now(),
        active_sessions=sum(
            1
            for session in state["sessions"].values()
            if session.phase not in (SessionPhase.ENDED, SessionPhase.FAILED)
        ),
    )


# =============================================================================
# Main Entry Point
# =============================================================================


if __name__ == "__main__":
    logger.info("=" * 60)
    logger.info("%s %s", SERVICE_NAME, __version__)
    logger.info("=" * 60)
    logger.info(
        "Binding to: http://%s:%d",
        RUNTIME_CONFIG.server_host,
        RUNTIME_CONFIG.server_port,
    )
    logger.info("LiveKit: %s", RUNTIME_CONFIG.livekit_url)
    logger.info("Avatar: %s", "enabled" if RUNTIME_CONFIG.tavus_api_key else "disabled")
    logger.info("=" * 60)

    uvicorn.run(
        app,
        host=RUNTIME_CONFIG.server_host,
        port=RUNTIME_CONFIG.server_port,
        log_level="info",
    )
