"""
Behavioral interview profile.
"""

from __future__ import annotations

from interview_types.base import InterviewTypeProfile


BEHAVIORAL = InterviewTypeProfile(
    type_id="Behavioral",
    focus=(
        "Focus on past experiences, leadership skills, teamwork, and cultural fit. "
        "Use the STAR method to evaluate responses. "
        "Ask about challenges, conflicts, and achievements."
    ),
    topic_keywords=("teamwork", "leadership", "conflict", "challenge", "achievement", "communication"),
    insights=(
        "The conversation explored past experiences and situational responses.",
        "Focus was on leadership examples and team collaboration scenarios.",
        "Discussion covered conflict resolution and decision-making processes.",
        "The session emphasized storytelling and the STAR method for responses.",
    ),
    voice="warm-hr-professional",
)
