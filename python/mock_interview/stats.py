"""
Aggregate statistics over a user's interview history.

Stats are never stored. They are recomputed from the full interview list
every time the list changes.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, Field

from .models import Interview, InterviewStatus


__all__ = ["InterviewStats", "calculate_stats", "empty_stats"]


IMPROVEMENT_WINDOW = 5

# PostgREST trims trailing zeros from fractional seconds.
_FRACTION = re.compile(r"\.(\d+)")


class InterviewStats(BaseModel):
    """Dashboard aggregates derived from the interview list."""

    total_interviews: int = Field(default=0, description="Completed interviews")
    average_score: int = Field(default=0, description="Rounded mean of defined scores")
    total_time: int = Field(default=0, description="Total practice time in hours")
    this_week_interviews: int = Field(default=0, description="Completed in the last 7 days")
    improvement_rate: int = Field(default=0, description="Percent change, last 5 vs previous 5")
    top_companies: list[str] = Field(default_factory=list)
    strongest_skills: list[str] = Field(default_factory=list)
    improvement_areas: list[str] = Field(default_factory=list)


def empty_stats() -> InterviewStats:
    """Stats for a user with no interviews."""
    return InterviewStats()


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _parse_timestamp(raw: str) -> datetime:
    normalized = _FRACTION.sub(
        lambda m: "." + m.group(1)[:6].ljust(6, "0"), raw.replace("Z", "+00:00"), count=1
    )
    parsed = datetime.fromisoformat(normalized)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def calculate_stats(
    interviews: Sequence[Interview],
    now: datetime | None = None,
) -> InterviewStats:
    """
    Derive dashboard statistics from an interview list.

    The list is expected newest first, which is how the data store keeps it.
    Only completed interviews contribute.

    Args:
        interviews: Interview records, newest first.
        now: Reference time for the weekly count (defaults to current UTC).

    Returns:
        InterviewStats for the list.
    """
    if not interviews:
        return empty_stats()

    now = now or datetime.now(timezone.utc)
    completed = [i for i in interviews if i.status == InterviewStatus.COMPLETED]
    scored = [i for i in completed if i.score is not None]

    average_score = (
        _round_half_up(_mean([i.score for i in scored])) if scored else 0
    )

    total_minutes = sum(i.duration for i in completed)

    one_week_ago = now - timedelta(days=7)
    this_week = sum(
        1 for i in completed if _parse_timestamp(i.created_at) >= one_week_ago
    )

    improvement_rate = 0
    if len(scored) >= IMPROVEMENT_WINDOW * 2:
        recent_avg = _mean([i.score for i in scored[:IMPROVEMENT_WINDOW]])
        previous_avg = _mean(
            [i.score for i in scored[IMPROVEMENT_WINDOW:IMPROVEMENT_WINDOW * 2]]
        )
        if previous_avg:
            improvement_rate = _round_half_up(
                (recent_avg - previous_avg) / previous_avg * 100
            )

    company_counts: dict[str, int] = {}
    for interview in completed:
        company_counts[interview.company] = company_counts.get(interview.company, 0) + 1
    top_companies = [
        company
        for company, _ in sorted(company_counts.items(), key=lambda kv: -kv[1])[:3]
    ]

    type_scores: dict[str, list[int]] = {}
    for interview in scored:
        type_scores.setdefault(interview.type.value, []).append(interview.score)
    type_averages = [(name, _mean(scores)) for name, scores in type_scores.items()]

    strongest_skills = [
        name for name, _ in sorted(type_averages, key=lambda item: -item[1])[:2]
    ]
    improvement_areas = [
        name for name, _ in sorted(type_averages, key=lambda item: item[1])[:2]
    ]

    return InterviewStats(
        total_interviews=len(completed),
        average_score=average_score,
        total_time=_round_half_up(total_minutes / 60),
        this_week_interviews=this_week,
        improvement_rate=improvement_rate,
        top_companies=top_companies,
        strongest_skills=strongest_skills,
        improvement_areas=improvement_areas,
    )
