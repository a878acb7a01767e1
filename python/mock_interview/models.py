"""
Pydantic models for the Mock Interview service.

Defines the persisted interview record, the ephemeral interview setup
submitted by the candidate, and the transient session state exposed
to the UI while an interview is running.

Last Grunted: 10/18/2026
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Difficulty(str, Enum):
    """Interview difficulty levels."""

    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class InterviewType(str, Enum):
    """Supported interview formats."""

    TECHNICAL = "Technical"
    BEHAVIORAL = "Behavioral"
    SYSTEM_DESIGN = "System Design"
    HR = "HR"


class InterviewStatus(str, Enum):
    """Lifecycle status of a persisted interview record."""

    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    SCHEDULED = "scheduled"


class InterviewSetup(BaseModel):
    """
    Interview configuration submitted from the setup form.

    Never persisted directly. It seeds the agent configuration when the
    session starts and the Interview record when the session ends.

    Example:
        >>> setup = InterviewSetup(
        ...     position="Backend Engineer",
        ...     company="Acme",
        ...     difficulty="Medium",
        ...     type="Technical",
        ...     duration=30,
        ... )
    """

    position: str = Field(..., min_length=1, description="Role being interviewed for")
    company: str = Field(..., min_length=1, description="Target company")
    difficulty: Difficulty = Field(..., description="Easy, Medium or Hard")
    type: InterviewType = Field(..., description="Interview format")
    duration: int = Field(..., gt=0, description="Planned length in minutes")
    job_description: str = Field(default="", description="Job description text")
    resume: str = Field(default="", description="Candidate resume text")
    additional_info: Optional[str] = Field(default=None, description="Optional notes")

    def agent_payload(self) -> dict[str, str]:
        """Interview data in the shape the remote interview agent consumes."""
        return {
            "position": self.position,
            "company": self.company,
            "type": self.type.value,
            "difficulty": self.difficulty.value,
            "jobDescription": self.job_description,
            "resume": self.resume,
        }


class InterviewCreate(BaseModel):
    """Fields supplied when inserting a new interview record."""

    position: str = Field(..., min_length=1)
    company: str = Field(..., min_length=1)
    difficulty: Difficulty
    type: InterviewType
    duration: int = Field(..., ge=0, description="Length in minutes")
    score: Optional[int] = Field(default=None, description="Overall score, nominally 0-100")
    feedback: Optional[str] = Field(default=None)
    status: InterviewStatus = Field(default=InterviewStatus.COMPLETED)


class InterviewUpdate(BaseModel):
    """Partial update for an interview record. Unset fields are left alone."""

    position: Optional[str] = Field(default=None, min_length=1)
    company: Optional[str] = Field(default=None, min_length=1)
    difficulty: Optional[Difficulty] = None
    type: Optional[InterviewType] = None
    duration: Optional[int] = Field(default=None, ge=0)
    score: Optional[int] = None
    feedback: Optional[str] = None
    status: Optional[InterviewStatus] = None


class Interview(BaseModel):
    """
    Persisted interview record owned by a single user.

    Rows come back from the `interviews` table as plain dicts and are
    validated into this model.
    """

    id: str = Field(..., description="Row identifier")
    user_id: str = Field(..., description="Owning user id")
    position: str
    company: str
    difficulty: Difficulty
    type: InterviewType
    duration: int = Field(..., description="Length in minutes")
    score: Optional[int] = Field(default=None)
    feedback: Optional[str] = Field(default=None)
    created_at: str = Field(..., description="ISO 8601 creation timestamp")
    status: InterviewStatus


class SessionPhase(str, Enum):
    """
    Phases of one interview attempt.

    IDLE -> CONNECTING -> AWAITING_AGENT -> CONNECTED -> ENDED.
    CONNECTING may fail into FAILED. A dropped room moves AWAITING_AGENT
    or CONNECTED into DISCONNECTED, which can still be ended.
    """

    IDLE = "idle"
    CONNECTING = "connecting"
    AWAITING_AGENT = "awaiting_agent"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ENDED = "ended"
    FAILED = "failed"


class SessionState(BaseModel):
    """Snapshot of a running session as shown to the UI."""

    phase: SessionPhase
    is_connected: bool = Field(..., description="Room joined and still up")
    agent_connected: bool = Field(..., description="Interviewer agent present")
    is_recording: bool = Field(..., description="Microphone enabled")
    is_video_enabled: bool = Field(..., description="Camera enabled")
    session_duration: int = Field(default=0, description="Elapsed seconds")
    error: Optional[str] = Field(default=None)
    avatar_url: Optional[str] = Field(default=None)
    conversation_id: Optional[str] = Field(default=None)


class TranscriptEntry(BaseModel):
    """One utterance sent to the scoring API."""

    speaker: str
    text: str
    timestamp: float


class InterviewScore(BaseModel):
    """Sub-scores returned by the scoring API."""

    overall: int
    technical: int
    communication: int
    problem_solving: int = Field(..., alias="problemSolving")
    cultural_fit: int = Field(..., alias="culturalFit")

    model_config = {"populate_by_name": True}


class InterviewFeedback(BaseModel):
    """Structured feedback returned by the scoring API."""

    score: InterviewScore
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    detailed_feedback: str = Field(default="", alias="detailedFeedback")
    recommendations: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}
