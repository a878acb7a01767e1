"""
Interview scoring.

Two sources of scores exist. The external scoring API evaluates a transcript
and generates practice questions; when it is unreachable or fails, fixed
fallbacks are returned so callers always get a result. The local
duration-based score is what a finished session is stored with.

The local score is a placeholder: a random base plus a completion bonus,
with no measurement of answer quality.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from .models import InterviewFeedback, InterviewScore, InterviewSetup, TranscriptEntry


__all__ = [
    "AIInterviewScorer",
    "COMPLETION_BONUS",
    "END_FAILURE_FEEDBACK",
    "END_FAILURE_SCORE",
    "FALLBACK_FEEDBACK",
    "FALLBACK_QUESTIONS",
    "completion_feedback",
    "score_from_duration",
]


logger = logging.getLogger(__name__)


BASE_SCORE_MIN = 70
BASE_SCORE_MAX = 99
COMPLETION_BONUS = 5
COMPLETION_RATIO = 0.8

END_FAILURE_SCORE = 75
END_FAILURE_FEEDBACK = "Interview completed successfully. Thank you for your participation!"


FALLBACK_FEEDBACK = InterviewFeedback(
    score=InterviewScore(
        overall=75,
        technical=75,
        communication=75,
        problem_solving=75,
        cultural_fit=75,
    ),
    strengths=[
        "Demonstrated good communication skills",
        "Showed enthusiasm for the role",
        "Provided relevant examples",
    ],
    improvements=[
        "Could provide more specific examples",
        "Consider asking more clarifying questions",
        "Practice explaining technical concepts more clearly",
    ],
    detailed_feedback=(
        "The candidate showed good potential with solid communication skills and "
        "relevant experience. There are opportunities to improve in providing more "
        "specific examples and demonstrating deeper technical knowledge."
    ),
    recommendations=[
        "Practice mock interviews to improve confidence",
        "Prepare more detailed STAR method examples",
        "Research the company culture more thoroughly",
    ],
)


FALLBACK_QUESTIONS: tuple[str, ...] = (
    "Tell me about yourself and your background.",
    "Why are you interested in this position?",
    "What do you know about our company?",
    "Describe a challenging project you worked on.",
    "How do you handle working under pressure?",
    "What are your greatest strengths?",
    "Where do you see yourself in 5 years?",
    "Do you have any questions for me?",
)


class ScoringAPIError(Exception):
    """Raised internally when the scoring API call fails."""


def _interview_payload(setup: InterviewSetup) -> dict[str, Any]:
    payload: dict[str, Any] = dict(setup.agent_payload())
    payload["duration"] = setup.duration
    return payload


class AIInterviewScorer:
    """
    Client for the external scoring API.

    Both operations resolve with fallbacks instead of raising.

    Example:
        >>> scorer = AIInterviewScorer("http://localhost:3001")
        >>> feedback = await scorer.score_interview(transcript, setup)
        >>> feedback.score.overall
        75
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def _post(self, endpoint: str, payload: dict[str, Any]) -> Any:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(f"{self.base_url}/api/ai{endpoint}", json=payload)
        except httpx.HTTPError as e:
            raise ScoringAPIError(
                "Network error: Unable to connect to backend API. Please check your connection."
            ) from e

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = None
            detail = body.get("error") if isinstance(body, dict) else None
            raise ScoringAPIError(detail or f"HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise ScoringAPIError(f"Invalid JSON from scoring API: {e}") from e

    async def score_interview(
        self,
        transcript: Sequence[TranscriptEntry],
        setup: InterviewSetup,
    ) -> InterviewFeedback:
        """Score a transcript. Returns FALLBACK_FEEDBACK on any failure."""
        payload = {
            "transcript": [entry.model_dump() for entry in transcript],
            "interviewData": _interview_payload(setup),
        }
        try:
            data = await self._post("/score-interview", payload)
            return InterviewFeedback.model_validate(data)
        except (ScoringAPIError, ValidationError) as e:
            logger.error("Error scoring interview: %s", e)
            return FALLBACK_FEEDBACK.model_copy(deep=True)

    async def generate_questions(self, setup: InterviewSetup) -> list[str]:
        """Practice questions for a setup. Returns FALLBACK_QUESTIONS on any failure."""
        try:
            data = await self._post("/generate-questions", {"interviewData": _interview_payload(setup)})
        except ScoringAPIError as e:
            logger.error("Error generating questions: %s", e)
            return list(FALLBACK_QUESTIONS)

        if not isinstance(data, list) or not all(isinstance(q, str) for q in data):
            logger.error("Error generating questions: unexpected response shape")
            return list(FALLBACK_QUESTIONS)
        return data


def score_from_duration(
    expected_minutes: int,
    actual_seconds: int,
    rng: Optional[random.Random] = None,
) -> int:
    """
    Score a finished session from how much of its planned time it used.

    Base score is uniform in [70, 99]. Sessions that ran more than 80% of
    the planned duration get a 5 point bonus.
    """
    score = (rng or random).randint(BASE_SCORE_MIN, BASE_SCORE_MAX)

    expected_seconds = expected_minutes * 60
    ratio = actual_seconds / expected_seconds if expected_seconds > 0 else 0.0
    if ratio > COMPLETION_RATIO:
        score += COMPLETION_BONUS
    return score


def completion_feedback(setup: InterviewSetup) -> str:
    """Feedback stored when the session produced no summary."""
    return (
        f"Great job completing your {setup.type.value.lower()} interview for the "
        f"{setup.position} position at {setup.company}. You demonstrated good "
        "communication skills and relevant experience. Continue practicing to "
        "build confidence for your actual interview."
    )
