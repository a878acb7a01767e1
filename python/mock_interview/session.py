"""
Interview Session Orchestrator.

Drives one interview attempt: joins the LiveKit room, waits for the
interviewer agent (or falls back to a simulated one), starts the avatar
conversation, keeps the elapsed-time counter, and tears everything down
when the candidate ends the interview.

Phases move through an explicit transition table:

    IDLE -> CONNECTING -> AWAITING_AGENT -> CONNECTED -> ENDED
                     \\-> FAILED       \\-> DISCONNECTED -/

Room callbacks never touch state directly. They are pushed onto one inbound
queue that a single consumer task drains in order.

Thread Safety:
    Not thread-safe. All calls must come from the event loop that
    started the session.

Last Grunted: 10/18/2026
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import httpx

from .livekit_service import LiveKitConfig, LiveKitService, TransportError
from .models import InterviewSetup, SessionPhase, SessionState
from .pubsub import SessionStatePublisher
from .tavus import (
    CreateConversationRequest,
    TavusAPIError,
    TavusConfigurationError,
    TavusConversation,
    TavusService,
)


__all__ = [
    "AVATAR_FAILURE_MESSAGE",
    "InterviewSession",
    "InvalidSessionTransition",
    "SessionEvent",
    "SessionEventType",
    "SessionOutcome",
]


logger = logging.getLogger(__name__)


AVATAR_FAILURE_MESSAGE = "Avatar connection failed, but interview can continue"
MICROPHONE_FAILURE_MESSAGE = "Failed to toggle microphone"
CAMERA_FAILURE_MESSAGE = "Failed to toggle camera"

DEFAULT_AGENT_JOIN_TIMEOUT = 3.0

_TRANSITIONS: dict[SessionPhase, frozenset[SessionPhase]] = {
    SessionPhase.IDLE: frozenset({SessionPhase.CONNECTING}),
    SessionPhase.CONNECTING: frozenset({
        SessionPhase.AWAITING_AGENT,
        SessionPhase.FAILED,
        SessionPhase.ENDED,
    }),
    SessionPhase.AWAITING_AGENT: frozenset({
        SessionPhase.CONNECTED,
        SessionPhase.DISCONNECTED,
        SessionPhase.ENDED,
    }),
    SessionPhase.CONNECTED: frozenset({SessionPhase.DISCONNECTED, SessionPhase.ENDED}),
    SessionPhase.DISCONNECTED: frozenset({SessionPhase.ENDED}),
    SessionPhase.ENDED: frozenset(),
    SessionPhase.FAILED: frozenset(),
}

# Room joined and not yet dropped.
_LIVE_PHASES = frozenset({SessionPhase.AWAITING_AGENT, SessionPhase.CONNECTED})
_ENDABLE_PHASES = _LIVE_PHASES | {SessionPhase.DISCONNECTED}


class InvalidSessionTransition(Exception):
    """Raised when an operation is not allowed in the current phase."""

    def __init__(self, current: SessionPhase, target: SessionPhase) -> None:
        self.current = current
        self.target = target
        super().__init__(
            f"Cannot move interview session from '{current.value}' to '{target.value}'"
        )


class SessionEventType(str, Enum):
    """Inbound events consumed by the session state machine."""

    PARTICIPANT_CONNECTED = "participant_connected"
    TRACK_SUBSCRIBED = "track_subscribed"
    DISCONNECTED = "disconnected"
    AGENT_TIMEOUT = "agent_timeout"


@dataclass
class SessionEvent:
    event_type: SessionEventType
    payload: Any = None


@dataclass
class SessionOutcome:
    """What a finished session leaves behind for scoring and persistence."""

    summary: str
    transcript: Optional[str]
    duration_seconds: int


class InterviewSession:
    """
    One interview attempt for one candidate.

    The transport and avatar clients are owned by the session and must not
    be shared with another one.

    Example:
        >>> session = InterviewSession(LiveKitService(url, tokens), TavusService(api_key))
        >>> await session.start_interview(setup, user_id="u1", access_token=token)
        >>> await session.toggle_video()
        >>> outcome = await session.end_interview()
        >>> outcome.duration_seconds
        1800
    """

    def __init__(
        self,
        transport: LiveKitService,
        avatars: TavusService,
        *,
        agent_join_timeout: float = DEFAULT_AGENT_JOIN_TIMEOUT,
        tick_interval: float = 1.0,
        publisher: Optional[SessionStatePublisher] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._transport = transport
        self._avatars = avatars
        self._agent_join_timeout = agent_join_timeout
        self._tick_interval = tick_interval
        self.publisher = publisher or SessionStatePublisher()
        self._clock = clock

        self._phase = SessionPhase.IDLE
        self._setup: Optional[InterviewSetup] = None
        self._conversation: Optional[TavusConversation] = None
        self._is_recording = False
        self._is_video_enabled = False
        self._error: Optional[str] = None
        self._started_at: Optional[float] = None
        self._stopped_at: Optional[float] = None

        self._events: asyncio.Queue[SessionEvent] = asyncio.Queue()
        self._consumer_task: Optional[asyncio.Task[None]] = None
        self._ticker_task: Optional[asyncio.Task[None]] = None
        self._fallback_task: Optional[asyncio.Task[None]] = None
        self._avatar_task: Optional[asyncio.Task[None]] = None

    # -- state ---------------------------------------------------------------

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def setup(self) -> Optional[InterviewSetup]:
        return self._setup

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def conversation(self) -> Optional[TavusConversation]:
        return self._conversation

    @property
    def session_duration(self) -> int:
        """Elapsed whole seconds since the room was joined."""
        if self._started_at is None:
            return 0
        end = self._stopped_at if self._stopped_at is not None else self._clock()
        return max(0, int(end - self._started_at))

    def snapshot(self) -> SessionState:
        """Current state with the connection flags derived from the phase."""
        return SessionState(
            phase=self._phase,
            is_connected=self._phase in _LIVE_PHASES,
            agent_connected=self._phase == SessionPhase.CONNECTED,
            is_recording=self._is_recording,
            is_video_enabled=self._is_video_enabled,
            session_duration=self.session_duration,
            error=self._error,
            avatar_url=self._conversation.conversation_url if self._conversation else None,
            conversation_id=self._conversation.conversation_id if self._conversation else None,
        )

    def _transition(self, target: SessionPhase) -> None:
        if target not in _TRANSITIONS[self._phase]:
            raise InvalidSessionTransition(self._phase, target)
        logger.debug("Session phase %s -> %s", self._phase.value, target.value)
        self._phase = target

    async def _publish(self, message: Optional[str] = None) -> None:
        await self.publisher.publish_state(self.snapshot(), message)

    # -- lifecycle -----------------------------------------------------------

    async def start_interview(
        self,
        setup: InterviewSetup,
        user_id: str,
        access_token: Optional[str] = None,
    ) -> SessionState:
        """
        Join the interview room and start waiting for the interviewer.

        Args:
            setup: Interview configuration from the setup form.
            user_id: Candidate user id, used for the room name and identity.
            access_token: Supabase session token used to obtain a room token.

        Returns:
            The session snapshot after the room was joined.

        Raises:
            InvalidSessionTransition: If the session was already started.
            Exception: Whatever the transport raised. The session is then
                FAILED with `error` set to the exception message.
        """
        self._transition(SessionPhase.CONNECTING)
        self._setup = setup
        self._error = None
        await self._publish()

        config = LiveKitConfig(
            room=f"interview-{user_id}-{int(time.time() * 1000)}",
            identity=f"user-{user_id}",
            interview_data=setup.agent_payload(),
            access_token=access_token,
        )
        self._transport.set_event_handlers(
            on_participant_connected=lambda participant: self._post_event(
                SessionEventType.PARTICIPANT_CONNECTED, participant
            ),
            on_track_subscribed=lambda track, publication, participant: self._post_event(
                SessionEventType.TRACK_SUBSCRIBED, track
            ),
            on_disconnected=lambda: self._post_event(SessionEventType.DISCONNECTED),
        )

        try:
            await self._transport.connect_to_room(config)
            await self._transport.enable_microphone()
        except Exception as e:
            logger.error("Failed to start interview: %s", e)
            self._error = str(e)
            self._transition(SessionPhase.FAILED)
            await self._disconnect_transport()
            await self.publisher.publish_error(self.snapshot(), self._error)
            raise

        self._is_recording = True
        self._started_at = self._clock()
        self._transition(SessionPhase.AWAITING_AGENT)

        self._consumer_task = asyncio.create_task(self._consume_events())
        self._ticker_task = asyncio.create_task(self._tick())
        self._fallback_task = asyncio.create_task(self._agent_fallback())

        logger.info("Interview started in room %s", config.room)
        await self._publish()
        return self.snapshot()

    async def end_interview(self) -> SessionOutcome:
        """
        Finish the interview and collect what it produced.

        Summary, transcript and vendor teardown are best effort. The session
        always ends in ENDED.

        Raises:
            InvalidSessionTransition: If the session is not running.
        """
        if self._phase not in _ENDABLE_PHASES:
            raise InvalidSessionTransition(self._phase, SessionPhase.ENDED)

        self._freeze_clock()
        await self._stop_tasks()
        duration = self.session_duration

        transcript: Optional[str] = None
        if self._conversation is not None:
            transcript = await self._avatars.get_conversation_transcript(
                self._conversation.conversation_id
            )
        summary = self._summarize(transcript)

        await self._end_conversation()
        await self._disconnect_transport()

        self._is_recording = False
        self._is_video_enabled = False
        self._transition(SessionPhase.ENDED)
        logger.info("Interview ended after %d seconds", duration)
        await self._publish()
        return SessionOutcome(summary=summary, transcript=transcript, duration_seconds=duration)

    async def close(self) -> None:
        """Tear the session down without producing an outcome."""
        self._freeze_clock()
        await self._stop_tasks()
        await self._end_conversation()
        await self._disconnect_transport()
        self._is_recording = False
        self._is_video_enabled = False
        if SessionPhase.ENDED in _TRANSITIONS[self._phase]:
            self._transition(SessionPhase.ENDED)
            await self._publish()

    async def generate_interview_summary(self) -> str:
        """Summary for the current session, using the avatar transcript when there is one."""
        if self._conversation is None:
            return self._summarize(None)
        return await self._avatars.generate_interview_summary(
            self._conversation.conversation_id,
            self._interview_data(),
            self.session_duration,
        )

    def _summarize(self, transcript: Optional[str]) -> str:
        setup = self._setup
        if setup is None:
            return ""
        if self._conversation is None:
            minutes = self.session_duration // 60
            return (
                f"Completed a {minutes} minute {setup.type.value.lower()} interview for the "
                f"{setup.position} position at {setup.company}. The AI interviewer provided "
                "realistic questions and scenarios that helped practice for the actual "
                "interview process. This mock interview session enhanced interview skills "
                "through realistic questioning and provided valuable preparation experience."
            )
        if transcript and len(transcript) > 50:
            return self._avatars.create_summary_from_transcript(
                transcript, self._interview_data(), self.session_duration
            )
        return self._avatars.create_personalized_summary(
            self._interview_data(), self.session_duration
        )

    def _interview_data(self) -> dict[str, str]:
        return self._setup.agent_payload() if self._setup else {}

    # -- media ---------------------------------------------------------------

    async def toggle_recording(self) -> bool:
        """
        Flip the microphone.

        Returns:
            The new recording flag.

        Raises:
            TransportError: If not connected or the toggle failed. `error`
                is set and the flag is left unchanged.
        """
        try:
            self._require_live()
            if self._is_recording:
                await self._transport.disable_microphone()
            else:
                await self._transport.enable_microphone()
        except TransportError:
            self._error = MICROPHONE_FAILURE_MESSAGE
            await self.publisher.publish_error(self.snapshot(), self._error)
            raise

        self._is_recording = not self._is_recording
        await self._publish()
        return self._is_recording

    async def toggle_video(self) -> bool:
        """Flip the camera. Same contract as toggle_recording."""
        try:
            self._require_live()
            if self._is_video_enabled:
                await self._transport.disable_camera()
            else:
                await self._transport.enable_camera()
        except TransportError:
            self._error = CAMERA_FAILURE_MESSAGE
            await self.publisher.publish_error(self.snapshot(), self._error)
            raise

        self._is_video_enabled = not self._is_video_enabled
        await self._publish()
        return self._is_video_enabled

    def _require_live(self) -> None:
        if self._phase not in _LIVE_PHASES:
            raise TransportError("Not connected to room")

    # -- inbound events ------------------------------------------------------

    def _post_event(self, event_type: SessionEventType, payload: Any = None) -> None:
        self._events.put_nowait(SessionEvent(event_type, payload))

    async def wait_for_events(self) -> None:
        """Block until every queued event has been handled."""
        await self._events.join()

    async def _consume_events(self) -> None:
        while True:
            event = await self._events.get()
            try:
                await self._handle_event(event)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Error handling session event %s: %s", event.event_type.value, e, exc_info=True)
            finally:
                self._events.task_done()

    async def _handle_event(self, event: SessionEvent) -> None:
        if event.event_type in (SessionEventType.PARTICIPANT_CONNECTED, SessionEventType.AGENT_TIMEOUT):
            if self._phase != SessionPhase.AWAITING_AGENT:
                logger.debug("Ignoring %s in phase %s", event.event_type.value, self._phase.value)
                return
            await self._on_agent_joined(simulated=event.event_type == SessionEventType.AGENT_TIMEOUT)

        elif event.event_type == SessionEventType.DISCONNECTED:
            if self._phase not in _LIVE_PHASES:
                return
            self._transition(SessionPhase.DISCONNECTED)
            self._is_recording = False
            self._freeze_clock()
            self._cancel_timers()
            await self._publish("Disconnected from room")

        elif event.event_type == SessionEventType.TRACK_SUBSCRIBED:
            logger.debug("Remote track subscribed: %s", getattr(event.payload, "kind", None))

    async def _on_agent_joined(self, simulated: bool) -> None:
        if self._fallback_task is not None and not simulated:
            self._fallback_task.cancel()
        self._transition(SessionPhase.CONNECTED)
        if simulated:
            logger.info("No interviewer agent joined; continuing with a simulated agent")
            await self.publisher.publish_system(self.snapshot(), "Simulated interviewer connected")
        else:
            logger.info("Interviewer agent joined")
            await self.publisher.publish_system(self.snapshot(), "Interviewer connected")
        await self._start_avatar()

    async def _start_avatar(self) -> None:
        # Shielded so teardown can collect a conversation Tavus already created.
        self._avatar_task = asyncio.create_task(self._create_avatar())
        await asyncio.shield(self._avatar_task)

    async def _create_avatar(self) -> None:
        setup = self._setup
        if setup is None:
            return
        try:
            replica_id = self._avatars.get_avatar_for_interview_type(setup.type.value)
            conversation = await self._avatars.create_conversation(
                CreateConversationRequest(
                    replica_id=replica_id,
                    conversation_name=f"Interview: {setup.position} at {setup.company}",
                    custom_greeting=(
                        f"Hello! I'm excited to interview you for the {setup.position} "
                        f"position at {setup.company}. This will be a "
                        f"{setup.type.value.lower()} interview. Are you ready to begin?"
                    ),
                )
            )
        except (TavusAPIError, TavusConfigurationError, httpx.HTTPError, KeyError) as e:
            logger.warning("Failed to create avatar conversation: %s", e)
            self._error = AVATAR_FAILURE_MESSAGE
            await self.publisher.publish_error(self.snapshot(), self._error)
            return

        self._conversation = conversation
        await self._publish("Avatar ready")

    async def _agent_fallback(self) -> None:
        await asyncio.sleep(self._agent_join_timeout)
        self._post_event(SessionEventType.AGENT_TIMEOUT)

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self._tick_interval)
            await self._publish()

    # -- teardown ------------------------------------------------------------

    def _freeze_clock(self) -> None:
        if self._started_at is not None and self._stopped_at is None:
            self._stopped_at = self._clock()

    def _cancel_timers(self) -> None:
        for task in (self._ticker_task, self._fallback_task):
            if task is not None:
                task.cancel()

    async def _stop_tasks(self) -> None:
        tasks = [
            task
            for task in (self._ticker_task, self._fallback_task, self._consumer_task)
            if task is not None
        ]
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._ticker_task = self._fallback_task = self._consumer_task = None
        await self._collect_avatar()

    async def _collect_avatar(self) -> None:
        task, self._avatar_task = self._avatar_task, None
        if task is None:
            return
        try:
            await task
        except Exception as e:
            logger.error("Avatar creation failed during teardown: %s", e, exc_info=True)

    async def _end_conversation(self) -> None:
        if self._conversation is None:
            return
        try:
            await self._avatars.end_conversation(self._conversation.conversation_id)
        except (TavusAPIError, httpx.HTTPError) as e:
            logger.warning("Failed to end avatar conversation: %s", e)

    async def _disconnect_transport(self) -> None:
        try:
            await self._transport.disconnect()
        except TransportError as e:
            logger.warning("Failed to disconnect from room: %s", e)
