"""
Interviewer agent configuration.

Builds the configuration the voice agent loads when it is dispatched into
an interview room: system prompt, voice and language-model settings.
"""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

from interview_types import build_interview_prompt, find_interview_type
from interview_types.shared_content import DEFAULT_VOICE


__all__ = ["AgentConfig", "LLMSettings", "VoiceSettings", "build_agent_config"]


class VoiceSettings(BaseModel):
    voice: str = Field(..., description="Voice preset id")
    speed: float = Field(default=1.0)
    pitch: float = Field(default=1.0)


class LLMSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model: str = Field(default="gpt-4")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=200, gt=0, alias="maxTokens")


class AgentConfig(BaseModel):
    """Serialised with camelCase keys (`model_dump(by_alias=True)`)."""

    model_config = ConfigDict(populate_by_name=True)

    room: str = Field(..., min_length=1)
    interview_data: dict[str, str] = Field(..., alias="interviewData")
    system_prompt: str = Field(..., alias="systemPrompt")
    voice_settings: VoiceSettings = Field(..., alias="voiceSettings")
    llm_settings: LLMSettings = Field(default_factory=LLMSettings, alias="llmSettings")


def voice_for_interview_type(interview_type: str) -> str:
    profile = find_interview_type(interview_type)
    return profile.voice if profile else DEFAULT_VOICE


def build_agent_config(room: str, interview_data: Mapping[str, str]) -> AgentConfig:
    """
    Configuration for the agent joining `room`.

    Example:
        >>> config = build_agent_config("interview-u1-1700000000000", setup.agent_payload())
        >>> config.voice_settings.voice
        'professional-tech-interviewer'
    """
    data = dict(interview_data)
    return AgentConfig(
        room=room,
        interview_data=data,
        system_prompt=build_interview_prompt(data),
        voice_settings=VoiceSettings(voice=voice_for_interview_type(data.get("type", ""))),
    )
