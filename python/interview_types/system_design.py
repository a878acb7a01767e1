"""
System design interview profile.
"""

from __future__ import annotations

from interview_types.base import InterviewTypeProfile


SYSTEM_DESIGN = InterviewTypeProfile(
    type_id="System Design",
    focus=(
        "Focus on architectural thinking, scalability, and system trade-offs. "
        "Ask about designing large-scale systems, database choices, and performance considerations."
    ),
    topic_keywords=("scalability", "architecture", "database", "microservices", "load", "performance"),
    insights=(
        "The interview covered scalability and architectural decision-making.",
        "Discussion included database design and system optimization strategies.",
        "Focus was on trade-offs and real-world system constraints.",
        "The session emphasized both high-level design and implementation details.",
    ),
    voice="senior-architect-voice",
)
