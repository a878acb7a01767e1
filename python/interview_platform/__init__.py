"""Mock interview platform wiring: configuration, authentication, agent setup."""

from interview_platform.agent_config import (
    AgentConfig,
    LLMSettings,
    VoiceSettings,
    build_agent_config,
)
from interview_platform.auth import (
    AuthenticatedUser,
    InvalidCredentialsError,
    create_user_client,
    resolve_user,
)
from interview_platform.settings import RuntimeConfig, load_env_file, load_runtime_config

__all__ = [
    "AgentConfig",
    "AuthenticatedUser",
    "InvalidCredentialsError",
    "LLMSettings",
    "RuntimeConfig",
    "VoiceSettings",
    "build_agent_config",
    "create_user_client",
    "load_env_file",
    "load_runtime_config",
    "resolve_user",
]
