"""
Interview type registry.
"""

from __future__ import annotations

from typing import Optional

from interview_types.base import InterviewTypeProfile
from interview_types.behavioral import BEHAVIORAL
from interview_types.hr import HR
from interview_types.system_design import SYSTEM_DESIGN
from interview_types.technical import TECHNICAL


def _build_registry() -> dict[str, InterviewTypeProfile]:
    profiles: tuple[InterviewTypeProfile, ...] = (
        TECHNICAL,
        BEHAVIORAL,
        SYSTEM_DESIGN,
        HR,
    )
    return {profile.type_id: profile for profile in profiles}


_REGISTRY = _build_registry()


def available_interview_types() -> tuple[str, ...]:
    """Return all supported interview type ids."""
    return tuple(_REGISTRY.keys())


def find_interview_type(type_id: str) -> Optional[InterviewTypeProfile]:
    """Look up a profile, returning None for unknown types."""
    return _REGISTRY.get((type_id or "").strip())


def load_interview_type(type_id: str) -> InterviewTypeProfile:
    """Load an interview type profile by id."""
    normalized = (type_id or "").strip()
    if not normalized:
        raise ValueError("Interview type is empty.")

    profile = _REGISTRY.get(normalized)
    if profile is None:
        supported = ", ".join(available_interview_types())
        raise ValueError(
            f"Unknown interview type '{type_id}'. Supported types: {supported}."
        )
    return profile
