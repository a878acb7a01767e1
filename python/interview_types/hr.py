"""
HR screening profile.
"""

from __future__ import annotations

from interview_types.base import InterviewTypeProfile


HR = InterviewTypeProfile(
    type_id="HR",
    focus=(
        "Focus on cultural fit, motivation, career goals, and company alignment. "
        "Ask about work style, values, and long-term aspirations."
    ),
    topic_keywords=("culture", "values", "motivation", "goals", "experience", "background", "fit"),
    insights=(
        "The conversation explored cultural fit and career motivations.",
        "Discussion covered company values alignment and personal goals.",
        "Focus was on communication style and professional background.",
        "The session emphasized authenticity and clear self-presentation.",
    ),
    voice="friendly-hr-representative",
)
