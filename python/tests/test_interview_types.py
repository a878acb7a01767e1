"""
Tests for interview type profiles and instruction builders.
"""

from __future__ import annotations

import random

import pytest

from interview_types import (
    available_interview_types,
    build_interview_instructions,
    build_interview_prompt,
    find_interview_type,
    load_interview_type,
)
from tests.mock_data import generate_setup


def test_available_types_match_interview_formats() -> None:
    assert available_interview_types() == ("Technical", "Behavioral", "System Design", "HR")


def test_load_unknown_type_fails_fast() -> None:
    with pytest.raises(ValueError, match="Unknown interview type"):
        load_interview_type("Panel")


def test_load_empty_type_fails_fast() -> None:
    with pytest.raises(ValueError, match="empty"):
        load_interview_type("  ")


def test_find_unknown_type_is_none() -> None:
    assert find_interview_type("Panel") is None


@pytest.mark.parametrize("type_id", ["Technical", "Behavioral", "System Design", "HR"])
def test_every_profile_has_four_insights(type_id: str) -> None:
    profile = load_interview_type(type_id)

    assert len(profile.insights) == 4
    assert profile.pick_insight(random.Random(0)) in profile.insights
    assert profile.voice


def test_topics_follow_keyword_order_and_cap() -> None:
    technical = load_interview_type("Technical")
    words = "we discussed the api then database design and an algorithm".split()

    assert technical.extract_topics(words) == ["algorithm", "design", "database"]


def test_instructions_carry_setup() -> None:
    instructions = build_interview_instructions(generate_setup(difficulty="Hard").agent_payload())

    assert instructions.startswith(
        "You are an experienced interviewer conducting a technical interview "
        "for the Backend Engineer position at Acme."
    )
    assert "DIFFICULTY LEVEL: Hard" in instructions
    assert "Ask complex, challenging questions" in instructions
    assert "Five years of backend development." in instructions
    assert "Build and operate Python services." in instructions
    assert "CONVERSATION FLOW" not in instructions


def test_prompt_adds_conversation_flow() -> None:
    prompt = build_interview_prompt(generate_setup(type="Behavioral").agent_payload())

    assert "INTERVIEW TYPE: Behavioral" in prompt
    assert "1. Start with a warm greeting and brief introduction" in prompt
    assert "6. End with next steps and thank them for their time" in prompt
    assert prompt.endswith(
        "Maintain the persona of a professional interviewer throughout the session."
    )
