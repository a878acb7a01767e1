"""
Tests for the session state publisher.
"""

from __future__ import annotations

import json

import pytest

from mock_interview.models import SessionPhase, SessionState
from mock_interview.pubsub import SessionStatePublisher, SessionUpdate, UpdateType


def _state(phase: SessionPhase = SessionPhase.CONNECTED) -> SessionState:
    return SessionState(
        phase=phase,
        is_connected=phase == SessionPhase.CONNECTED,
        agent_connected=phase == SessionPhase.CONNECTED,
        is_recording=True,
        is_video_enabled=False,
        session_duration=42,
    )


class TestSessionStatePublisher:
    @pytest.mark.asyncio
    async def test_broadcasts_to_every_subscriber(self) -> None:
        publisher = SessionStatePublisher()
        first = await publisher.subscribe()
        second = await publisher.subscribe()

        await publisher.publish_state(_state())

        assert first.get_nowait().state.session_duration == 42
        assert second.get_nowait().update_type == UpdateType.STATE
        assert publisher.subscriber_count == 2

    @pytest.mark.asyncio
    async def test_late_subscriber_receives_history(self) -> None:
        publisher = SessionStatePublisher()
        await publisher.publish_system(_state(), "Interviewer connected")
        await publisher.publish_error(_state(), "Failed to toggle camera")

        queue = await publisher.subscribe()

        assert queue.get_nowait().message == "Interviewer connected"
        assert queue.get_nowait().update_type == UpdateType.ERROR

    @pytest.mark.asyncio
    async def test_history_is_bounded(self) -> None:
        publisher = SessionStatePublisher(max_history=3)
        for _ in range(5):
            await publisher.publish_state(_state())

        assert len(await publisher.get_history()) == 3

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_delivery(self) -> None:
        publisher = SessionStatePublisher()
        queue = await publisher.subscribe()
        await publisher.unsubscribe(queue)

        await publisher.publish_state(_state())

        assert queue.empty()
        assert publisher.subscriber_count == 0


def test_terminal_phases() -> None:
    assert SessionUpdate(UpdateType.STATE, _state(SessionPhase.ENDED)).is_terminal
    assert SessionUpdate(UpdateType.STATE, _state(SessionPhase.FAILED)).is_terminal
    assert not SessionUpdate(UpdateType.STATE, _state(SessionPhase.DISCONNECTED)).is_terminal


def test_update_serialises_to_json() -> None:
    payload = json.loads(SessionUpdate(UpdateType.SYSTEM, _state(), "hello").to_json())

    assert payload["update_type"] == "system"
    assert payload["state"]["phase"] == "connected"
    assert payload["message"] == "hello"
    assert payload["timestamp"].endswith("Z")
