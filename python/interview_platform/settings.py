"""
Runtime configuration for the mock interview service.

Values come from the process environment, optionally seeded from a `.env`
file next to the `python/` directory. Every value is validated up front so
a misconfigured deployment fails at startup rather than mid-interview.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv


__all__ = ["RuntimeConfig", "load_runtime_config", "load_env_file"]


logger = logging.getLogger(__name__)


_ENV_PATH = Path(__file__).resolve().parent.parent.parent / ".env"

DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173",
    "http://localhost:3000",
)


@dataclass(frozen=True)
class RuntimeConfig:
    """Validated service configuration."""

    livekit_url: str
    tavus_api_key: str
    tavus_default_replica_id: str
    tavus_api_base: str
    scoring_api_url: str
    supabase_url: str
    supabase_anon_key: str
    server_host: str
    server_port: int
    cors_origins: tuple[str, ...]
    agent_join_timeout_seconds: float
    tavus_settle_delay_seconds: float


def load_env_file(path: Optional[Path] = None) -> bool:
    """Load a `.env` file without overriding variables already set."""
    return load_dotenv(path or _ENV_PATH, override=False)


def _required(env: Mapping[str, str], name: str) -> str:
    value = (env.get(name) or "").strip()
    if not value:
        raise RuntimeError(f"{name} is required. Set it in the environment or .env file.")
    return value


def _optional(env: Mapping[str, str], name: str, default: str = "") -> str:
    return (env.get(name, default) or "").strip()


def _non_negative_float(env: Mapping[str, str], name: str, default: str) -> float:
    raw = (env.get(name, default) or "").strip()
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number. Got: {raw}") from exc
    if value < 0:
        raise RuntimeError(f"{name} must not be negative. Got: {value}.")
    return value


def load_runtime_config(env: Optional[Mapping[str, str]] = None) -> RuntimeConfig:
    """
    Load runtime config from the environment with strict validation.

    Args:
        env: Mapping to read instead of `os.environ`.

    Raises:
        RuntimeError: If a required value is missing or malformed.
    """
    if env is None:
        env = os.environ

    livekit_url = _required(env, "LIVEKIT_URL")
    if not livekit_url.startswith(("ws://", "wss://")):
        raise RuntimeError(f"LIVEKIT_URL must be a ws:// or wss:// URL. Got: {livekit_url}")

    supabase_url = _required(env, "SUPABASE_URL")
    supabase_anon_key = _required(env, "SUPABASE_ANON_KEY")

    # Avatar features degrade to a warning when the key is missing.
    tavus_api_key = _optional(env, "TAVUS_API_KEY")
    tavus_default_replica_id = _optional(env, "TAVUS_DEFAULT_REPLICA_ID")
    tavus_api_base = _optional(env, "TAVUS_API_BASE", "https://tavusapi.com")
    if not tavus_api_base:
        raise RuntimeError("TAVUS_API_BASE resolved to empty value.")

    scoring_api_url = _optional(env, "API_URL", "http://localhost:3001")
    if not scoring_api_url:
        raise RuntimeError("API_URL resolved to empty value.")

    server_host = _optional(env, "SERVER_HOST", "0.0.0.0")
    if not server_host:
        raise RuntimeError("SERVER_HOST resolved to empty value.")

    server_port_raw = _optional(env, "SERVER_PORT", "8000")
    try:
        server_port = int(server_port_raw)
    except ValueError as exc:
        raise RuntimeError(f"SERVER_PORT must be an integer. Got: {server_port_raw}") from exc
    if server_port < 1 or server_port > 65535:
        raise RuntimeError(f"SERVER_PORT must be in range 1-65535. Got: {server_port}.")

    cors_raw = _optional(env, "CORS_ORIGINS")
    if cors_raw:
        cors_origins = tuple(origin.strip() for origin in cors_raw.split(",") if origin.strip())
    else:
        cors_origins = DEFAULT_CORS_ORIGINS

    config = RuntimeConfig(
        livekit_url=livekit_url,
        tavus_api_key=tavus_api_key,
        tavus_default_replica_id=tavus_default_replica_id,
        tavus_api_base=tavus_api_base,
        scoring_api_url=scoring_api_url,
        supabase_url=supabase_url,
        supabase_anon_key=supabase_anon_key,
        server_host=server_host,
        server_port=server_port,
        cors_origins=cors_origins,
        agent_join_timeout_seconds=_non_negative_float(env, "AGENT_JOIN_TIMEOUT_SECONDS", "3"),
        tavus_settle_delay_seconds=_non_negative_float(env, "TAVUS_SETTLE_DELAY_SECONDS", "1"),
    )
    logger.debug("Loaded runtime config for %s:%d", config.server_host, config.server_port)
    return config
