"""
Mock Interview Package.

Runs practice interviews against a remote AI interviewer and keeps the
candidate's interview history.

Components:
    - InterviewSession: Orchestrates one interview attempt (room, agent, avatar, timer)
    - LiveKitService: Real-time room transport and local media
    - TavusService: Conversational avatar client and post-interview summaries
    - InterviewDataStore: Supabase-backed CRUD over the interviews table
    - calculate_stats: Aggregate statistics over a user's interviews
    - AIInterviewScorer: Scoring API client with fixed fallbacks
    - SessionStatePublisher: Real-time pub/sub for streaming session state to UI
    - Models: Pydantic models for setups, records, session state and feedback

Example:
    >>> from mock_interview import InterviewSession, InterviewSetup
    >>>
    >>> session = InterviewSession(livekit, tavus)
    >>> await session.start_interview(
    ...     InterviewSetup(position="Backend Engineer", company="Acme",
    ...                    difficulty="Medium", type="Technical", duration=30),
    ...     user_id="u1",
    ...     access_token=token,
    ... )
    >>> outcome = await session.end_interview()

Last Grunted: 10/18/2026
"""

from .models import (
    Difficulty,
    InterviewType,
    InterviewStatus,
    InterviewSetup,
    InterviewCreate,
    InterviewUpdate,
    Interview,
    SessionPhase,
    SessionState,
    TranscriptEntry,
    InterviewScore,
    InterviewFeedback,
)

from .stats import InterviewStats, calculate_stats, empty_stats

from .data import InterviewDataStore, InterviewDataError

from .livekit_service import (
    AuthenticationError,
    LiveKitConfig,
    LiveKitService,
    LocalMediaTracks,
    NotConnectedError,
    SupabaseTokenProvider,
    TransportError,
)

from .tavus import (
    CreateConversationRequest,
    TavusAPIError,
    TavusConfigurationError,
    TavusConversation,
    TavusService,
)

from .scoring import (
    AIInterviewScorer,
    END_FAILURE_FEEDBACK,
    END_FAILURE_SCORE,
    FALLBACK_FEEDBACK,
    FALLBACK_QUESTIONS,
    completion_feedback,
    score_from_duration,
)

from .pubsub import SessionStatePublisher, SessionUpdate, UpdateType

from .session import (
    InterviewSession,
    InvalidSessionTransition,
    SessionOutcome,
)


__all__ = [
    # Models
    "Difficulty",
    "InterviewType",
    "InterviewStatus",
    "InterviewSetup",
    "InterviewCreate",
    "InterviewUpdate",
    "Interview",
    "SessionPhase",
    "SessionState",
    "TranscriptEntry",
    "InterviewScore",
    "InterviewFeedback",
    # Stats
    "InterviewStats",
    "calculate_stats",
    "empty_stats",
    # Data
    "InterviewDataStore",
    "InterviewDataError",
    # Transport
    "AuthenticationError",
    "LiveKitConfig",
    "LiveKitService",
    "LocalMediaTracks",
    "NotConnectedError",
    "SupabaseTokenProvider",
    "TransportError",
    # Avatar
    "CreateConversationRequest",
    "TavusAPIError",
    "TavusConfigurationError",
    "TavusConversation",
    "TavusService",
    # Scoring
    "AIInterviewScorer",
    "END_FAILURE_FEEDBACK",
    "END_FAILURE_SCORE",
    "FALLBACK_FEEDBACK",
    "FALLBACK_QUESTIONS",
    "completion_feedback",
    "score_from_duration",
    # Pub/Sub
    "SessionStatePublisher",
    "SessionUpdate",
    "UpdateType",
    # Session
    "InterviewSession",
    "InvalidSessionTransition",
    "SessionOutcome",
]

__version__ = "0.1.0"
