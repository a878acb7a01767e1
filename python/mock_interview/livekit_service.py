"""
LiveKit transport wrapper.

Opens a room connection for one interview attempt, toggles local media, and
hands the interview configuration to the remote interviewer agent over the
room's reliable data channel.

The access token is issued by the `livekit-token` Supabase edge function,
authenticated with the candidate's Supabase session token.

Last Grunted: 10/18/2026
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
from livekit import rtc

from interview_types import build_interview_instructions


__all__ = [
    "AuthenticationError",
    "CaptureDefaults",
    "LiveKitConfig",
    "LiveKitService",
    "LocalMediaTracks",
    "NotConnectedError",
    "SupabaseTokenProvider",
    "TransportError",
]


logger = logging.getLogger(__name__)


AGENT_CONFIG_MESSAGE_TYPE = "interview_agent_config"
TOKEN_FUNCTION_NAME = "livekit-token"


class TransportError(Exception):
    """Raised when the real-time transport fails."""


class NotConnectedError(TransportError):
    """Raised when a media operation is attempted without a room."""

    def __init__(self, message: str = "Not connected to room") -> None:
        super().__init__(message)


class AuthenticationError(Exception):
    """Raised when no authenticated session is available for a token request."""

    def __init__(self, message: str = "User not authenticated") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class CaptureDefaults:
    """Local capture settings for published tracks."""

    video_width: int = 1280
    video_height: int = 720
    sample_rate: int = 48000
    num_channels: int = 1
    echo_cancellation: bool = True
    noise_suppression: bool = True
    auto_gain_control: bool = True


@dataclass
class LiveKitConfig:
    """Room connection parameters for one interview attempt."""

    room: str
    identity: str
    interview_data: dict[str, str] = field(default_factory=dict)
    access_token: Optional[str] = None


class SupabaseTokenProvider:
    """
    Fetches room access tokens from the `livekit-token` edge function.

    Example:
        >>> provider = SupabaseTokenProvider("https://xyz.supabase.co", anon_key)
        >>> token = await provider.generate_token("interview-u1-1700000000000", "user-u1", session_token)
    """

    def __init__(
        self,
        supabase_url: str,
        anon_key: str,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.function_url = f"{supabase_url.rstrip('/')}/functions/v1/{TOKEN_FUNCTION_NAME}"
        self._anon_key = anon_key
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def generate_token(
        self,
        room_name: str,
        participant_name: str,
        access_token: Optional[str],
    ) -> str:
        """
        Request a room token for `participant_name` in `room_name`.

        Raises:
            AuthenticationError: If there is no session token.
            TransportError: If the function call fails or returns no token.
        """
        if not access_token:
            raise AuthenticationError()

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.function_url,
                    headers={
                        "Authorization": f"Bearer {access_token}",
                        "apikey": self._anon_key,
                    },
                    json={"roomName": room_name, "participantName": participant_name},
                )
            response.raise_for_status()
            token = response.json().get("token")
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error generating LiveKit token: %s", e)
            raise TransportError(f"Failed to obtain room token: {e}") from e

        if not token:
            raise TransportError("Token function returned no token")
        return token


class LocalMediaTracks:
    """
    Local microphone and camera tracks for one room.

    Tracks are created and published the first time they are enabled, and
    muted or unmuted afterwards. Whatever owns the capture device feeds
    microphone frames through `capture_audio_frame` (echo cancellation,
    noise suppression and gain control per `capture`) and camera frames
    straight into `video_source`.
    """

    def __init__(self, capture: CaptureDefaults = CaptureDefaults()) -> None:
        self.capture = capture
        self.audio_source: Optional[rtc.AudioSource] = None
        self.video_source: Optional[rtc.VideoSource] = None
        self.audio_processor: Optional[rtc.AudioProcessingModule] = None
        self._microphone: Optional[rtc.LocalAudioTrack] = None
        self._camera: Optional[rtc.LocalVideoTrack] = None
        self.microphone_enabled = False
        self.camera_enabled = False

    async def set_microphone_enabled(
        self, participant: rtc.LocalParticipant, enabled: bool
    ) -> None:
        if self._microphone is None:
            if not enabled:
                return
            self.audio_source = rtc.AudioSource(
                self.capture.sample_rate, self.capture.num_channels
            )
            self.audio_processor = rtc.AudioProcessingModule(
                echo_cancellation=self.capture.echo_cancellation,
                noise_suppression=self.capture.noise_suppression,
                auto_gain_control=self.capture.auto_gain_control,
            )
            self._microphone = rtc.LocalAudioTrack.create_audio_track(
                "microphone", self.audio_source
            )
            await participant.publish_track(
                self._microphone,
                rtc.TrackPublishOptions(source=rtc.TrackSource.SOURCE_MICROPHONE),
            )
        elif enabled:
            self._microphone.unmute()
        else:
            self._microphone.mute()
        self.microphone_enabled = enabled

    async def capture_audio_frame(self, frame: rtc.AudioFrame) -> None:
        """Process one 10 ms microphone frame and publish it. Dropped while muted."""
        if self.audio_source is None or not self.microphone_enabled:
            return
        if self.audio_processor is not None:
            self.audio_processor.process_stream(frame)
        await self.audio_source.capture_frame(frame)

    async def set_camera_enabled(
        self, participant: rtc.LocalParticipant, enabled: bool
    ) -> None:
        if self._camera is None:
            if not enabled:
                self.camera_enabled = False
                return
            self.video_source = rtc.VideoSource(
                self.capture.video_width, self.capture.video_height
            )
            self._camera = rtc.LocalVideoTrack.create_video_track(
                "camera", self.video_source
            )
            await participant.publish_track(
                self._camera,
                rtc.TrackPublishOptions(source=rtc.TrackSource.SOURCE_CAMERA),
            )
        elif enabled:
            self._camera.unmute()
        else:
            self._camera.mute()
        self.camera_enabled = enabled


ParticipantHandler = Callable[[Any], None]
TrackHandler = Callable[[Any, Any, Any], None]
DisconnectHandler = Callable[[], None]


class LiveKitService:
    """
    One room connection for one interview attempt.

    Not reusable across sessions: construct a new instance per session.

    Example:
        >>> service = LiveKitService(url, token_provider)
        >>> service.set_event_handlers(on_participant_connected=handle_join)
        >>> await service.connect_to_room(config)
        >>> await service.enable_microphone()
        >>> await service.disconnect()
    """

    def __init__(
        self,
        url: str,
        token_provider: SupabaseTokenProvider,
        room_factory: Callable[[], rtc.Room] = rtc.Room,
        media_factory: Callable[[], LocalMediaTracks] = LocalMediaTracks,
    ) -> None:
        self.url = url
        self._token_provider = token_provider
        self._room_factory = room_factory
        self._media_factory = media_factory
        self._room: Optional[rtc.Room] = None
        self._media: Optional[LocalMediaTracks] = None
        self._on_participant_connected: Optional[ParticipantHandler] = None
        self._on_track_subscribed: Optional[TrackHandler] = None
        self._on_disconnected: Optional[DisconnectHandler] = None

    @property
    def room(self) -> Optional[rtc.Room]:
        return self._room

    @property
    def is_connected(self) -> bool:
        return self._room is not None

    def set_event_handlers(
        self,
        on_participant_connected: Optional[ParticipantHandler] = None,
        on_track_subscribed: Optional[TrackHandler] = None,
        on_disconnected: Optional[DisconnectHandler] = None,
    ) -> None:
        """Register the three room callbacks. Replaces any earlier handlers."""
        self._on_participant_connected = on_participant_connected
        self._on_track_subscribed = on_track_subscribed
        self._on_disconnected = on_disconnected

    async def generate_token(
        self,
        room_name: str,
        participant_name: str,
        access_token: Optional[str],
    ) -> str:
        return await self._token_provider.generate_token(
            room_name, participant_name, access_token
        )

    async def connect_to_room(self, config: LiveKitConfig) -> rtc.Room:
        """
        Join the room and send the interview configuration to the agent.

        Args:
            config: Room name, identity, interview data and session token.

        Returns:
            The connected room.

        Raises:
            AuthenticationError: If no session token is available.
            TransportError: If token issuance or the connection fails.
        """
        room = self._room_factory()
        room.on("participant_connected", self._handle_participant_connected)
        room.on("track_subscribed", self._handle_track_subscribed)
        room.on("disconnected", self._handle_disconnected)

        token = await self.generate_token(config.room, config.identity, config.access_token)

        try:
            await room.connect(
                self.url,
                token,
                options=rtc.RoomOptions(auto_subscribe=True, dynacast=True),
            )
        except Exception as e:  # noqa: BLE001 - SDK raises its own ConnectError types
            logger.error("Error connecting to LiveKit room %s: %s", config.room, e)
            raise TransportError(f"Failed to connect to room: {e}") from e

        self._room = room
        self._media = self._media_factory()
        logger.info("Connected to LiveKit room %s as %s", config.room, config.identity)

        await self._configure_interview_agent(config)
        return room

    async def _configure_interview_agent(self, config: LiveKitConfig) -> None:
        if self._room is None:
            return

        agent_config = {
            "type": AGENT_CONFIG_MESSAGE_TYPE,
            "interviewData": config.interview_data,
            "instructions": build_interview_instructions(config.interview_data),
        }
        await self._room.local_participant.publish_data(
            json.dumps(agent_config),
            reliable=True,
        )
        logger.debug("Published interview agent config to room %s", config.room)

    def _require_room(self) -> rtc.Room:
        if self._room is None or self._media is None:
            raise NotConnectedError()
        return self._room

    async def _set_microphone(self, enabled: bool) -> None:
        room = self._require_room()
        try:
            await self._media.set_microphone_enabled(room.local_participant, enabled)
        except Exception as e:  # noqa: BLE001
            logger.error("Error %s microphone: %s", "enabling" if enabled else "disabling", e)
            raise TransportError(f"Failed to toggle microphone: {e}") from e

    async def _set_camera(self, enabled: bool) -> None:
        room = self._require_room()
        try:
            await self._media.set_camera_enabled(room.local_participant, enabled)
        except Exception as e:  # noqa: BLE001
            logger.error("Error %s camera: %s", "enabling" if enabled else "disabling", e)
            raise TransportError(f"Failed to toggle camera: {e}") from e

    async def enable_microphone(self) -> None:
        await self._set_microphone(True)

    async def disable_microphone(self) -> None:
        await self._set_microphone(False)

    async def enable_camera(self) -> None:
        await self._set_camera(True)

    async def disable_camera(self) -> None:
        await self._set_camera(False)

    def is_microphone_enabled(self) -> bool:
        return self._media.microphone_enabled if self._media else False

    def is_camera_enabled(self) -> bool:
        return self._media.camera_enabled if self._media else False

    async def disconnect(self) -> None:
        """
        Leave the room. Safe to call when not connected.

        Raises:
            TransportError: If the SDK fails while leaving. Local state is
                cleared either way.
        """
        if self._room is None:
            return
        room = self._room
        self._room = None
        self._media = None
        try:
            await room.disconnect()
        except Exception as e:  # noqa: BLE001
            logger.error("Error disconnecting from LiveKit room: %s", e)
            raise TransportError(f"Failed to disconnect: {e}") from e
        logger.info("Disconnected from LiveKit room")

    def _handle_participant_connected(self, participant: rtc.RemoteParticipant) -> None:
        logger.info("Participant connected: %s", participant.identity)
        if self._on_participant_connected:
            self._on_participant_connected(participant)

    def _handle_track_subscribed(
        self,
        track: rtc.Track,
        publication: rtc.RemoteTrackPublication,
        participant: rtc.RemoteParticipant,
    ) -> None:
        logger.info("Track subscribed: %s from %s", track.kind, participant.identity)
        if self._on_track_subscribed:
            self._on_track_subscribed(track, publication, participant)

    def _handle_disconnected(self, *args: Any) -> None:
        logger.info("Disconnected from room")
        if self._on_disconnected:
            self._on_disconnected()
