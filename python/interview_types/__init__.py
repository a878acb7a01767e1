"""
Interview type profiles and interviewer instruction builders.
"""

from interview_types.base import InterviewTypeProfile
from interview_types.instructions import build_interview_instructions, build_interview_prompt
from interview_types.registry import (
    available_interview_types,
    find_interview_type,
    load_interview_type,
)

__all__ = [
    "InterviewTypeProfile",
    "available_interview_types",
    "build_interview_instructions",
    "build_interview_prompt",
    "find_interview_type",
    "load_interview_type",
]
