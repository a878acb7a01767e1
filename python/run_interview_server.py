#!/usr/bin/env python3
"""
Launch the mock interview service with command-line overrides.
"""

from __future__ import annotations

import argparse
import os

import uvicorn


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the mock interview service.",
    )
    parser.add_argument("--host", default=None, help="Bind host. Default: SERVER_HOST or 0.0.0.0.")
    parser.add_argument("--port", type=int, default=None, help="Bind port. Default: SERVER_PORT or 8000.")
    parser.add_argument(
        "--livekit-url",
        default=None,
        help="LiveKit server URL (wss://...). Overrides LIVEKIT_URL.",
    )
    parser.add_argument(
        "--agent-join-timeout",
        type=float,
        default=None,
        help="Seconds to wait for the interviewer agent before simulating one.",
    )
    parser.add_argument("--log-level", default="info", help="Uvicorn log level.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    if args.host:
        os.environ["SERVER_HOST"] = args.host
    if args.port is not None:
        os.environ["SERVER_PORT"] = str(args.port)
    if args.livekit_url:
        os.environ["LIVEKIT_URL"] = args.livekit_url
    if args.agent_join_timeout is not None:
        os.environ["AGENT_JOIN_TIMEOUT_SECONDS"] = str(args.agent_join_timeout)

    from interview_server import RUNTIME_CONFIG, app  # Import after env config

    print(
        f"Starting mock interview service "
        f"bind=http://{RUNTIME_CONFIG.server_host}:{RUNTIME_CONFIG.server_port} "
        f"livekit={RUNTIME_CONFIG.livekit_url}"
    )
    uvicorn.run(
        app,
        host=RUNTIME_CONFIG.server_host,
        port=RUNTIME_CONFIG.server_port,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
