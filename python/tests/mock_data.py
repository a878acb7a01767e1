"""
Mock data and in-memory fakes for mock interview testing.

Generates interview setups and stored interview rows, and provides fakes
for the vendor clients the service talks to: the Supabase table API, the
LiveKit room, and the Tavus REST API (as an httpx.MockTransport).

Last Grunted: 10/18/2026
"""

from __future__ import annotations

import asyncio
import json
import random
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import httpx

from mock_interview.models import Interview, InterviewSetup


# =============================================================================
# Interview Content
# =============================================================================

POSITIONS = [
    "Backend Engineer",
    "Frontend Engineer",
    "Data Scientist",
    "Product Manager",
    "Site Reliability Engineer",
]

COMPANIES = ["Acme", "Globex", "Initech", "Umbrella", "Hooli"]

INTERVIEW_TYPES = ["Technical", "Behavioral", "System Design", "HR"]

DIFFICULTIES = ["Easy", "Medium", "Hard"]

SAMPLE_TRANSCRIPT = (
    "Interviewer: Tell me about a recent project.\n"
    "Candidate: I built a Python service with a REST API on top of a Postgres database, "
    "and we spent a lot of time on the algorithm for ranking results and on testing."
)


def _iso_timestamp(offset: timedelta = timedelta()) -> str:
    return (datetime.now(timezone.utc) + offset).isoformat().replace("+00:00", "Z")


# =============================================================================
# Model Generators
# =============================================================================


def generate_setup(**overrides: Any) -> InterviewSetup:
    """Interview setup for a 30 minute medium technical interview at Acme."""
    fields: dict[str, Any] = {
        "position": "Backend Engineer",
        "company": "Acme",
        "difficulty": "Medium",
        "type": "Technical",
        "duration": 30,
        "job_description": "Build and operate Python services.",
        "resume": "Five years of backend development.",
    }
    fields.update(overrides)
    return InterviewSetup(**fields)


def generate_interview_row(
    user_id: str = "user-123",
    *,
    score: Optional[int] = 80,
    company: str = "Acme",
    interview_type: str = "Technical",
    duration: int = 30,
    status: str = "completed",
    created_at: Optional[str] = None,
    interview_id: Optional[str] = None,
) -> dict[str, Any]:
    """A row as the interviews table returns it."""
    return {
        "id": interview_id or str(uuid.uuid4()),
        "user_id": user_id,
        "position": "Backend Engineer",
        "company": company,
        "difficulty": "Medium",
        "type": interview_type,
        "duration": duration,
        "score": score,
        "feedback": "Solid answers.",
        "created_at": created_at or _iso_timestamp(),
        "status": status,
    }


def generate_interview(**kwargs: Any) -> Interview:
    return Interview.model_validate(generate_interview_row(**kwargs))


def generate_interview_history(
    scores: list[Optional[int]],
    *,
    start: Optional[datetime] = None,
    spacing: timedelta = timedelta(days=1),
) -> list[Interview]:
    """
    Interviews newest first, one per score, `spacing` apart going back from `start`.
    """
    start = start or datetime.now(timezone.utc)
    history = []
    for index, score in enumerate(scores):
        created = (start - spacing * index).isoformat().replace("+00:00", "Z")
        history.append(generate_interview(score=score, created_at=created))
    return history


def generate_random_history(count: int, seed: int = 7) -> list[Interview]:
    rng = random.Random(seed)
    return [
        generate_interview(
            score=rng.randint(50, 100),
            company=rng.choice(COMPANIES),
            interview_type=rng.choice(INTERVIEW_TYPES),
            duration=rng.choice([15, 30, 45, 60]),
            created_at=_iso_timestamp(-timedelta(days=index)),
        )
        for index in range(count)
    ]


# =============================================================================
# Supabase Fakes
# =============================================================================


class FakeAPIResponse:
    def __init__(self, data: Optional[list[dict[str, Any]]]) -> None:
        self.data = data


class FakeQuery:
    """Fluent query builder that records the chain and answers from the fake table."""

    def __init__(self, client: "FakeSupabaseClient", table: str) -> None:
        self._client = client
        self.table = table
        self.operation = "select"
        self.payload: Any = None
        self.filters: list[tuple[str, Any]] = []
        self.order_by: Optional[tuple[str, bool]] = None

    def select(self, columns: str = "*") -> "FakeQuery":
        self.operation = "select"
        return self

    def insert(self, payload: dict[str, Any]) -> "FakeQuery":
        self.operation = "insert"
        self.payload = payload
        return self

    def update(self, payload: dict[str, Any]) -> "FakeQuery":
        self.operation = "update"
        self.payload = payload
        return self

    def delete(self) -> "FakeQuery":
        self.operation = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.order_by = (column, desc)
        return self

    def _matches(self, row: dict[str, Any]) -> bool:
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self) -> FakeAPIResponse:
        self._client.executed.append(self)
        if self._client.error is not None:
            raise self._client.error

        rows = self._client.rows
        if self.operation == "select":
            result = [dict(row) for row in rows if self._matches(row)]
            if self.order_by:
                column, desc = self.order_by
                result.sort(key=lambda row: row[column], reverse=desc)
            return FakeAPIResponse(result)

        if self.operation == "insert":
            row = {
                "id": str(uuid.uuid4()),
                "created_at": _iso_timestamp(),
                **self.payload,
            }
            rows.append(row)
            return FakeAPIResponse([dict(row)])

        if self.operation == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    updated.append(dict(row))
            return FakeAPIResponse(updated)

        removed = [row for row in rows if self._matches(row)]
        self._client.rows = [row for row in rows if not self._matches(row)]
        return FakeAPIResponse(removed)


class FakeSupabaseClient:
    """
    In-memory stand-in for `supabase.Client` table access.

    Set `error` to an exception instance to make every query raise it.
    """

    def __init__(self, rows: Optional[list[dict[str, Any]]] = None) -> None:
        self.rows: list[dict[str, Any]] = list(rows or [])
        self.executed: list[FakeQuery] = []
        self.error: Optional[Exception] = None
        self.tables: list[str] = []

    def table(self, name: str) -> FakeQuery:
        self.tables.append(name)
        return FakeQuery(self, name)


# =============================================================================
# LiveKit Fakes
# =============================================================================


class FakeParticipant:
    def __init__(self, identity: str) -> None:
        self.identity = identity


class FakeTrack:
    def __init__(self, kind: str = "audio") -> None:
        self.kind = kind


class FakeLocalParticipant:
    def __init__(self) -> None:
        self.published_data: list[tuple[str, bool]] = []

    async def publish_data(self, payload: str, *, reliable: bool = True, **kwargs: Any) -> None:
        self.published_data.append((payload, reliable))

    def decoded_messages(self) -> list[dict[str, Any]]:
        return [json.loads(payload) for payload, _ in self.published_data]


class FakeRoom:
    """Records connect/disconnect calls and lets tests fire room events."""

    def __init__(self, connect_error: Optional[Exception] = None) -> None:
        self.handlers: dict[str, Callable[..., None]] = {}
        self.local_participant = FakeLocalParticipant()
        self.connect_error = connect_error
        self.connected_with: Optional[tuple[str, str]] = None
        self.connect_options: Any = None
        self.disconnect_calls = 0

    def on(self, event: str, callback: Callable[..., None]) -> Callable[..., None]:
        self.handlers[event] = callback
        return callback

    def emit(self, event: str, *args: Any) -> None:
        self.handlers[event](*args)

    async def connect(self, url: str, token: str, options: Any = None) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.connected_with = (url, token)
        self.connect_options = options

    async def disconnect(self) -> None:
        self.disconnect_calls += 1


class FakeMedia:
    """Local media stand-in. Set `fail` to make every toggle raise."""

    def __init__(self) -> None:
        self.microphone_enabled = False
        self.camera_enabled = False
        self.fail = False
        self.calls: list[tuple[str, bool]] = []

    async def set_microphone_enabled(self, participant: Any, enabled: bool) -> None:
        self.calls.append(("microphone", enabled))
        if self.fail:
            raise RuntimeError("device unavailable")
        self.microphone_enabled = enabled

    async def set_camera_enabled(self, participant: Any, enabled: bool) -> None:
        self.calls.append(("camera", enabled))
        if self.fail:
            raise RuntimeError("device unavailable")
        self.camera_enabled = enabled


class FakeTokenProvider:
    def __init__(self, token: str = "room-token") -> None:
        self.token = token
        self.requests: list[tuple[str, str, Optional[str]]] = []

    async def generate_token(
        self, room_name: str, participant_name: str, access_token: Optional[str]
    ) -> str:
        self.requests.append((room_name, participant_name, access_token))
        return self.token


# =============================================================================
# Tavus Fake
# =============================================================================


class FakeTavusAPI:
    """
    In-memory Tavus REST API behind an httpx.MockTransport.

    Every request is recorded as (method, path) in `requests`.
    """

    def __init__(
        self,
        conversations: Optional[list[dict[str, Any]]] = None,
        transcript: Optional[Any] = None,
        create_status: int = 200,
        create_delay: float = 0.0,
    ) -> None:
        self.conversations: list[dict[str, Any]] = list(conversations or [])
        self.transcript = transcript
        self.create_status = create_status
        self.create_delay = create_delay
        self.requests: list[tuple[str, str]] = []
        self.created_bodies: list[dict[str, Any]] = []
        self.transport = httpx.MockTransport(self._handle)

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path))

        if request.method == "GET" and path == "/v2/conversations":
            return httpx.Response(200, json={"data": self.conversations})

        if request.method == "POST" and path == "/v2/conversations":
            if self.create_status >= 400:
                return httpx.Response(self.create_status, text="concurrency limit reached")
            body = json.loads(request.content)
            self.created_bodies.append(body)
            conversation = {
                "conversation_id": f"c{len(self.created_bodies)}",
                "conversation_url": f"https://tavus.daily.co/c{len(self.created_bodies)}",
                "status": "active",
            }
            self.conversations.append(dict(conversation))
            if self.create_delay:
                # Created server side before the response arrives.
                await asyncio.sleep(self.create_delay)
            return httpx.Response(200, json=conversation)

        if path.endswith("/transcript"):
            if self.transcript is None:
                return httpx.Response(404, text="not found")
            return httpx.Response(200, json={"transcript": self.transcript})

        if path.startswith("/v2/conversations/"):
            conversation_id = path.rsplit("/", 1)[-1]
            if request.method == "DELETE":
                for conversation in self.conversations:
                    if conversation.get("conversation_id") == conversation_id:
                        conversation["status"] = "ended"
                return httpx.Response(204)
            for conversation in self.conversations:
                if conversation.get("conversation_id") == conversation_id:
                    return httpx.Response(200, json=conversation)
            return httpx.Response(404, text="not found")

        if path == "/v2/avatars":
            return httpx.Response(
                200,
                json={"data": [{"avatar_id": "a1", "avatar_name": "Anna"}]},
            )

        return httpx.Response(404, text="not found")

    def paths(self, method: str) -> list[str]:
        return [path for m, path in self.requests if m == method]
