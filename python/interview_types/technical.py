"""
Technical interview profile.
"""

from __future__ import annotations

from interview_types.base import InterviewTypeProfile


TECHNICAL = InterviewTypeProfile(
    type_id="Technical",
    focus=(
        "Focus on technical skills, problem-solving abilities, and coding knowledge. "
        "Ask about algorithms, system design, and technical challenges. "
        "Be thorough but fair in your assessment."
    ),
    topic_keywords=("algorithm", "coding", "system", "design", "architecture", "database", "api"),
    insights=(
        "The session focused on problem-solving approaches and technical communication skills.",
        "Practice included coding challenges and system design discussions.",
        "The interview covered technical concepts and implementation strategies.",
        "Discussion emphasized both technical depth and clear explanation abilities.",
    ),
    voice="professional-tech-interviewer",
)
