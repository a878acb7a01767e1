"""
FastAPI endpoint tests for the Mock Interview Service.

Tests the API endpoints using httpx AsyncClient with lifespan management
via asgi-lifespan. Authentication, the Supabase store, the session factory
and the scoring client are swapped through dependency overrides.

Last Grunted: 10/18/2026
"""

from __future__ import annotations

import os
import random
from typing import AsyncIterator

import httpx
import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient

from mock_interview import (
    AIInterviewScorer,
    InterviewDataStore,
    InterviewSession,
    LiveKitService,
    TavusService,
)
from interview_platform import AuthenticatedUser
from tests.mock_data import (
    FakeMedia,
    FakeRoom,
    FakeSupabaseClient,
    FakeTavusAPI,
    FakeTokenProvider,
    generate_interview_row,
)


os.environ.setdefault("LIVEKIT_URL", "wss://livekit.test")
os.environ.setdefault("SUPABASE_URL", "https://proj.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")


USER_ID = "user-123"

SETUP_PAYLOAD = {
    "position": "Backend Engineer",
    "company": "Acme",
    "difficulty": "Medium",
    "type": "Technical",
    "duration": 30,
}


class ServiceFakes:
    """Vendor fakes shared by one test's requests."""

    def __init__(self) -> None:
        self.supabase = FakeSupabaseClient()
        self.tavus = FakeTavusAPI()
        self.room_connect_error: Exception | None = None
        self.sessions: list[InterviewSession] = []
        self.rooms: list[FakeRoom] = []
        self.scoring_transport = httpx.MockTransport(
            lambda request: httpx.Response(500, json={"error": "scoring offline"})
        )

    def make_session(self) -> InterviewSession:
        room = FakeRoom(connect_error=self.room_connect_error)
        self.rooms.append(room)
        session = InterviewSession(
            LiveKitService(
                "wss://livekit.test",
                FakeTokenProvider(),
                room_factory=lambda: room,
                media_factory=FakeMedia,
            ),
            TavusService(
                "tavus-key",
                default_replica_id="r-default",
                base_url="https://tavus.test",
                settle_delay_seconds=0,
                transport=self.tavus.transport,
                rng=random.Random(1),
            ),
            agent_join_timeout=60.0,
            tick_interval=60.0,
        )
        self.sessions.append(session)
        return session


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def fakes() -> ServiceFakes:
    return ServiceFakes()


@pytest_asyncio.fixture
async def client(fakes: ServiceFakes) -> AsyncIterator[AsyncClient]:
    """
    Async test client with lifespan management and vendor fakes injected.
    """
    from interview_server import (
        app,
        get_current_user,
        get_interview_store,
        get_scorer,
        get_session_factory,
    )

    app.dependency_overrides[get_current_user] = lambda: AuthenticatedUser(
        id=USER_ID, access_token="session-token"
    )
    app.dependency_overrides[get_interview_store] = lambda: InterviewDataStore(
        fakes.supabase, USER_ID
    )
    app.dependency_overrides[get_session_factory] = lambda: fakes.make_session
    app.dependency_overrides[get_scorer] = lambda: AIInterviewScorer(
        "http://scoring.test", transport=fakes.scoring_transport
    )

    async with LifespanManager(app) as manager:
        transport = ASGITransport(app=manager.app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac

    app.dependency_overrides.clear()


# =============================================================================
# Health and Auth Tests
# =============================================================================


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health_returns_healthy(self, client: AsyncClient) -> None:
        """Health check needs no authentication."""
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "Mock Interview Service"
        assert data["active_sessions"] == 0

    @pytest.mark.asyncio
    async def test_missing_bearer_token_is_rejected(self, client: AsyncClient) -> None:
        from interview_server import app, get_current_user

        app.dependency_overrides.pop(get_current_user)

        response = await client.get("/session/status")

        assert response.status_code in (401, 403)


# =============================================================================
# Session Tests
# =============================================================================


class TestSessionLifecycle:
    @pytest.mark.asyncio
    async def test_status_is_idle_without_session(self, client: AsyncClient) -> None:
        response = await client.get("/session/status")

        assert response.status_code == 200
        state = response.json()["state"]
        assert state["phase"] == "idle"
        assert state["is_connected"] is False

    @pytest.mark.asyncio
    async def test_start_joins_room(self, client: AsyncClient, fakes: ServiceFakes) -> None:
        response = await client.post("/session/start", json={"interview": SETUP_PAYLOAD})

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["state"]["phase"] == "awaiting_agent"
        assert data["state"]["is_recording"] is True
        assert len(fakes.sessions) == 1

        health = await client.get("/health")
        assert health.json()["active_sessions"] == 1

    @pytest.mark.asyncio
    async def test_second_start_conflicts(self, client: AsyncClient) -> None:
        await client.post("/session/start", json={"interview": SETUP_PAYLOAD})

        response = await client.post("/session/start", json={"interview": SETUP_PAYLOAD})

        assert response.status_code == 409
        data = response.json()
        assert data["ok"] is False
        assert data["error_code"] == "SESSION_ALREADY_ACTIVE"

    @pytest.mark.asyncio
    async def test_start_failure_reports_error(
        self, client: AsyncClient, fakes: ServiceFakes
    ) -> None:
        fakes.room_connect_error = ConnectionError("livekit unreachable")

        response = await client.post("/session/start", json={"interview": SETUP_PAYLOAD})

        assert response.status_code == 502
        data = response.json()
        assert data["error_code"] == "SESSION_START_FAILED"
        assert "livekit unreachable" in data["error"]
        status = await client.get("/session/status")
        assert status.json()["state"]["phase"] == "idle"

    @pytest.mark.asyncio
    async def test_invalid_setup_rejected(self, client: AsyncClient) -> None:
        response = await client.post(
            "/session/start", json={"interview": {**SETUP_PAYLOAD, "duration": 0}}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_toggles_without_session_conflict(self, client: AsyncClient) -> None:
        microphone = await client.post("/session/toggle-microphone")
        camera = await client.post("/session/toggle-camera")

        assert microphone.status_code == 409
        assert camera.status_code == 409
        assert camera.json()["error_code"] == "SESSION_NOT_CONNECTED"

    @pytest.mark.asyncio
    async def test_toggles_during_session(self, client: AsyncClient) -> None:
        await client.post("/session/start", json={"interview": SETUP_PAYLOAD})

        camera = await client.post("/session/toggle-camera")
        microphone = await client.post("/session/toggle-microphone")

        assert camera.status_code == 200
        assert camera.json()["state"]["is_video_enabled"] is True
        assert microphone.json()["state"]["is_recording"] is False

    @pytest.mark.asyncio
    async def test_abandon_does_not_store(
        self, client: AsyncClient, fakes: ServiceFakes
    ) -> None:
        await client.post("/session/start", json={"interview": SETUP_PAYLOAD})

        response = await client.delete("/session")

        assert response.status_code == 200
        assert fakes.supabase.rows == []
        assert fakes.rooms[0].disconnect_calls == 1
        status = await client.get("/session/status")
        assert status.json()["state"]["phase"] == "idle"

    @pytest.mark.asyncio
    async def test_end_without_session(self, client: AsyncClient) -> None:
        response = await client.post("/session/end")

        assert response.status_code == 404
        assert response.json()["error_code"] == "SESSION_NOT_ACTIVE"


class TestEndToEnd:
    """Start then end an interview and check the stored record."""

    @pytest.mark.asyncio
    async def test_backend_engineer_at_acme(
        self, client: AsyncClient, fakes: ServiceFakes
    ) -> None:
        start = await client.post("/session/start", json={"interview": SETUP_PAYLOAD})
        assert start.status_code == 200

        response = await client.post("/session/end")

        assert response.status_code == 200
        data = response.json()
        interview = data["interview"]
        assert interview["status"] == "completed"
        assert interview["duration"] == 30
        assert interview["position"] == "Backend Engineer"
        assert interview["company"] == "Acme"
        assert interview["user_id"] == USER_ID
        assert 70 <= interview["score"] <= 105
        assert interview["feedback"].startswith("Completed a 0 minute technical interview")
        assert data["summary"] == interview["feedback"]
        assert len(fakes.supabase.rows) == 1

        status = await client.get("/session/status")
        assert status.json()["state"]["phase"] == "idle"

    @pytest.mark.asyncio
    async def test_store_failure_still_returns_outcome(
        self, client: AsyncClient, fakes: ServiceFakes
    ) -> None:
        from supabase import PostgrestAPIError

        await client.post("/session/start", json={"interview": SETUP_PAYLOAD})
        fakes.supabase.error = PostgrestAPIError({"message": "insert denied"})

        response = await client.post("/session/end")

        body = response.json()
        assert response.status_code == 200
        assert body["ok"] is False
        assert body["error"] == "Failed to save interview"
        assert body["interview"] is None
        assert 70 <= body["score"] <= 104
        assert body["feedback"]
        assert body["summary"].startswith("Completed a ")
        status = await client.get("/session/status")
        assert status.json()["state"]["phase"] == "idle"

    @pytest.mark.asyncio
    async def test_event_stream_replays_until_ended(
        self, client: AsyncClient, fakes: ServiceFakes
    ) -> None:
        await client.post("/session/start", json={"interview": SETUP_PAYLOAD})
        await fakes.sessions[0].close()

        response = await client.get("/session/events")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert "event: state" in response.text
        assert '"phase": "awaiting_agent"' in response.text
        assert response.text.rstrip().endswith("}")
        assert '"phase": "ended"' in response.text


# =============================================================================
# Interview Record Tests
# =============================================================================


class TestInterviewRecords:
    @pytest.mark.asyncio
    async def test_create_list_update_delete(
        self, client: AsyncClient, fakes: ServiceFakes
    ) -> None:
        created = await client.post(
            "/interviews", json={**SETUP_PAYLOAD, "score": 82, "feedback": "Nice"}
        )
        assert created.status_code == 201
        interview_id = created.json()["interview"]["id"]

        listing = await client.get("/interviews")
        assert listing.status_code == 200
        data = listing.json()
        assert [i["id"] for i in data["interviews"]] == [interview_id]
        assert data["stats"]["average_score"] == 82

        updated = await client.patch(f"/interviews/{interview_id}", json={"score": 90})
        assert updated.json()["interview"]["score"] == 90

        deleted = await client.delete(f"/interviews/{interview_id}")
        assert deleted.status_code == 200
        assert fakes.supabase.rows == []

    @pytest.mark.asyncio
    async def test_stats_endpoint(self, client: AsyncClient, fakes: ServiceFakes) -> None:
        fakes.supabase.rows.extend([
            generate_interview_row(USER_ID, score=90, duration=45, company="Acme"),
            generate_interview_row(USER_ID, score=70, duration=45, company="Globex"),
        ])

        response = await client.get("/interviews/stats")

        assert response.status_code == 200
        stats = response.json()
        assert stats["total_interviews"] == 2
        assert stats["average_score"] == 80
        assert stats["total_time"] == 2
        assert stats["this_week_interviews"] == 2

    @pytest.mark.asyncio
    async def test_load_failure(self, client: AsyncClient, fakes: ServiceFakes) -> None:
        from supabase import PostgrestAPIError

        fakes.supabase.error = PostgrestAPIError({"message": "timeout"})

        response = await client.get("/interviews")

        assert response.status_code == 502
        assert response.json()["error_code"] == "INTERVIEW_STORE_FAILED"

    @pytest.mark.asyncio
    async def test_update_unknown_interview(self, client: AsyncClient) -> None:
        response = await client.patch("/interviews/missing", json={"score": 10})

        assert response.status_code == 502
        assert response.json()["error"] == "Failed to update interview"


# =============================================================================
# Scoring and Agent Tests
# =============================================================================


class TestScoringEndpoints:
    @pytest.mark.asyncio
    async def test_score_falls_back_when_scoring_fails(self, client: AsyncClient) -> None:
        response = await client.post(
            "/scoring/score",
            json={
                "transcript": [{"speaker": "candidate", "text": "Hello", "timestamp": 1.0}],
                "interview": SETUP_PAYLOAD,
            },
        )

        assert response.status_code == 200
        assert response.json()["score"] == {
            "overall": 75,
            "technical": 75,
            "communication": 75,
            "problemSolving": 75,
            "culturalFit": 75,
        }

    @pytest.mark.asyncio
    async def test_questions_fall_back(self, client: AsyncClient) -> None:
        response = await client.post("/scoring/questions", json=SETUP_PAYLOAD)

        assert response.status_code == 200
        assert len(response.json()["questions"]) == 8

    @pytest.mark.asyncio
    async def test_agent_configuration(self, client: AsyncClient) -> None:
        response = await client.post(
            "/agent/configure",
            json={"room": "interview-user-123-1", "interview": {**SETUP_PAYLOAD, "type": "HR"}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["room"] == "interview-user-123-1"
        assert data["voiceSettings"]["voice"] == "friendly-hr-representative"
        assert data["llmSettings"]["maxTokens"] == 200
        assert "INTERVIEW TYPE: HR" in data["systemPrompt"]
