"""
Interviewer instruction builders.

Two variants exist: the compact instructions pushed over the room data
channel when the candidate joins, and the fuller system prompt returned by
the agent configuration endpoint.
"""

from __future__ import annotations

from collections.abc import Mapping

from interview_types.registry import find_interview_type
from interview_types.shared_content import (
    AGENT_GUIDELINES,
    CONVERSATION_FLOW,
    DIFFICULTY_INSTRUCTIONS,
    INTERVIEW_GUIDELINES,
    PERSONA_REMINDER,
    PRACTICE_REMINDER,
)


def _header(data: Mapping[str, str]) -> str:
    interview_type = data.get("type", "")
    profile = find_interview_type(interview_type)
    difficulty = data.get("difficulty", "")

    return (
        f"You are an experienced interviewer conducting a {interview_type.lower()} "
        f"interview for the {data.get('position', '')} position at {data.get('company', '')}.\n"
        "\n"
        f"INTERVIEW TYPE: {interview_type}\n"
        f"{profile.focus if profile else ''}\n"
        "\n"
        f"DIFFICULTY LEVEL: {difficulty}\n"
        f"{DIFFICULTY_INSTRUCTIONS.get(difficulty, '')}\n"
        "\n"
        "CANDIDATE BACKGROUND:\n"
        f"{data.get('resume', '')}\n"
        "\n"
        "JOB REQUIREMENTS:\n"
        f"{data.get('jobDescription', '')}"
    )


def build_interview_instructions(data: Mapping[str, str]) -> str:
    """
    Instructions sent to the in-room agent over the data channel.

    Args:
        data: Interview data in agent payload shape (camelCase keys).
    """
    guidelines = "\n".join(f"- {line}" for line in INTERVIEW_GUIDELINES)
    return (
        f"{_header(data)}\n"
        "\n"
        "INTERVIEW GUIDELINES:\n"
        f"{guidelines}\n"
        "\n"
        f"{PRACTICE_REMINDER}"
    )


def build_interview_prompt(data: Mapping[str, str]) -> str:
    """System prompt for the hosted interview agent, including conversation flow."""
    guidelines = "\n".join(
        f"- {line}" for line in (*INTERVIEW_GUIDELINES, *AGENT_GUIDELINES)
    )
    flow = "\n".join(f"{index}. {step}" for index, step in enumerate(CONVERSATION_FLOW, 1))
    return (
        f"{_header(data)}\n"
        "\n"
        "INTERVIEW GUIDELINES:\n"
        f"{guidelines}\n"
        "\n"
        "CONVERSATION FLOW:\n"
        f"{flow}\n"
        "\n"
        f"{PRACTICE_REMINDER} {PERSONA_REMINDER}"
    )
