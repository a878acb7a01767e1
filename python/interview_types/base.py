"""
Interview type profile contracts.
"""

from __future__ import annotations

import random
from dataclasses import dataclass


@dataclass(frozen=True)
class InterviewTypeProfile:
    """
    Everything that varies by interview type.

    Attributes:
        type_id: Interview type as stored on records ("Technical", "HR", ...).
        focus: Agent instruction paragraph for this type.
        topic_keywords: Words scanned for in transcripts when summarising.
        insights: Interchangeable summary sentences for this type.
        voice: Voice id requested from the speech pipeline.
    """

    type_id: str
    focus: str
    topic_keywords: tuple[str, ...]
    insights: tuple[str, ...]
    voice: str

    def pick_insight(self, rng: random.Random | None = None) -> str:
        return (rng or random).choice(self.insights)

    def extract_topics(self, words: list[str], limit: int = 3) -> list[str]:
        """Keywords present in `words`, in keyword-list order, capped at `limit`."""
        present = set(words)
        return [keyword for keyword in self.topic_keywords if keyword in present][:limit]
