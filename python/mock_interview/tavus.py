"""
Tavus conversational avatar wrapper.

Creates and ends avatar conversations through the Tavus REST API, fetches
transcripts, and writes the short interview summary shown after a session.

The summary is template text, not an evaluation: topic keywords found in the
transcript are named, and the rest is filled from per-type sentence tables.

Last Grunted: 10/18/2026
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Mapping
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field

from interview_types import find_interview_type
from interview_types.shared_content import (
    GENERIC_INSIGHT,
    SUMMARY_CLOSINGS,
    SUMMARY_OPENINGS,
    TRANSCRIPT_SUMMARY_CLOSING,
)


__all__ = [
    "CreateConversationRequest",
    "TavusAPIError",
    "TavusAvatar",
    "TavusConfigurationError",
    "TavusConversation",
    "TavusService",
]


logger = logging.getLogger(__name__)


TAVUS_API_BASE = "https://tavusapi.com"
ACTIVE_CONVERSATION_STATUSES = frozenset({"active", "starting"})
MIN_TRANSCRIPT_LENGTH = 50


class TavusAPIError(Exception):
    """Raised when the Tavus API answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Tavus API error: {status_code} - {body}")


class TavusConfigurationError(Exception):
    """Raised when a required Tavus setting is missing."""


class TavusAvatar(BaseModel):
    avatar_id: str
    avatar_name: str
    avatar_url: Optional[str] = None


class TavusConversation(BaseModel):
    """An avatar conversation as returned by Tavus."""

    conversation_id: str
    conversation_url: str
    status: str = Field(default="active", description="active, ended or error")


class CreateConversationRequest(BaseModel):
    """Body for POST /v2/conversations. Unset fields are not sent."""

    replica_id: str
    persona_id: Optional[str] = None
    callback_url: Optional[str] = None
    conversation_name: Optional[str] = None
    custom_greeting: Optional[str] = None
    max_call_duration: Optional[int] = None


class TavusService:
    """
    Tavus REST client scoped to one interview session.

    Example:
        >>> tavus = TavusService(api_key, default_replica_id="r123")
        >>> conversation = await tavus.create_conversation(
        ...     CreateConversationRequest(replica_id=tavus.get_avatar_for_interview_type("Technical"))
        ... )
        >>> await tavus.end_conversation(conversation.conversation_id)
    """

    def __init__(
        self,
        api_key: str,
        default_replica_id: str = "",
        base_url: str = TAVUS_API_BASE,
        settle_delay_seconds: float = 1.0,
        timeout_seconds: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._api_key = api_key
        self._default_replica_id = default_replica_id
        self.base_url = base_url.rstrip("/")
        self.settle_delay_seconds = settle_delay_seconds
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._rng = rng or random.Random()
        if not self._api_key:
            logger.warning("Tavus API key not found. Avatar features will be disabled.")

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_body: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Perform one API call.

        Returns:
            Decoded JSON, or None for empty bodies.

        Raises:
            TavusAPIError: On non-2xx responses.
            httpx.HTTPError: On transport failures.
        """
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self._timeout_seconds,
            transport=self._transport,
        ) as client:
            response = await client.request(
                method,
                endpoint,
                headers={"x-api-key": self._api_key, "Content-Type": "application/json"},
                json=json_body,
            )

        if response.is_error:
            raise TavusAPIError(response.status_code, response.text)

        if response.status_code == 204 or response.headers.get("content-length") == "0":
            return None
        if not response.content:
            return None
        return response.json()

    async def get_available_avatars(self) -> list[TavusAvatar]:
        try:
            response = await self._request("GET", "/v2/avatars")
        except (TavusAPIError, httpx.HTTPError) as e:
            logger.error("Error fetching Tavus avatars: %s", e)
            return []
        return [TavusAvatar.model_validate(item) for item in (response or {}).get("data") or []]

    async def get_all_conversations(self) -> list[dict[str, Any]]:
        try:
            response = await self._request("GET", "/v2/conversations")
        except (TavusAPIError, httpx.HTTPError, ValueError) as e:
            logger.error("Error fetching conversations: %s", e)
            return []
        data = response.get("data") if isinstance(response, dict) else None
        if not isinstance(data, list):
            logger.warning("Unexpected conversation list body from Tavus")
            return []
        return [conv for conv in data if isinstance(conv, dict)]

    async def end_all_active_conversations(self) -> int:
        """
        End every active or starting conversation on the account.

        Best effort: failures are logged and never raised.

        Returns:
            Number of conversations a termination was attempted for.
        """
        conversations = await self.get_all_conversations()
        active = [
            conv["conversation_id"] for conv in conversations
            if conv.get("status") in ACTIVE_CONVERSATION_STATUSES and conv.get("conversation_id")
        ]

        async def _end(conversation_id: str) -> None:
            try:
                await self.end_conversation(conversation_id)
            except (TavusAPIError, httpx.HTTPError) as e:
                logger.warning("Failed to end conversation %s: %s", conversation_id, e)

        await asyncio.gather(*(_end(conversation_id) for conversation_id in active))

        if active:
            logger.info("Ended %d active conversations", len(active))
        return len(active)

    async def create_conversation(
        self, request: CreateConversationRequest
    ) -> TavusConversation:
        """
        Start a new avatar conversation.

        Every active conversation on the account is ended first, then the
        call waits `settle_delay_seconds` so Tavus registers the terminations
        before the concurrency check on create.

        Raises:
            TavusAPIError: If the create call fails.
        """
        await self.end_all_active_conversations()
        await asyncio.sleep(self.settle_delay_seconds)

        try:
            response = await self._request(
                "POST",
                "/v2/conversations",
                json_body=request.model_dump(exclude_none=True),
            )
        except (TavusAPIError, httpx.HTTPError) as e:
            logger.error("Error creating Tavus conversation: %s", e)
            raise

        conversation = TavusConversation(
            conversation_id=response["conversation_id"],
            conversation_url=response["conversation_url"],
            status=response.get("status") or "active",
        )
        logger.info("Created Tavus conversation %s", conversation.conversation_id)
        return conversation

    async def end_conversation(self, conversation_id: str) -> None:
        try:
            await self._request("DELETE", f"/v2/conversations/{conversation_id}")
        except (TavusAPIError, httpx.HTTPError) as e:
            logger.error("Error ending Tavus conversation %s: %s", conversation_id, e)
            raise

    async def get_conversation_status(self, conversation_id: str) -> TavusConversation:
        try:
            response = await self._request("GET", f"/v2/conversations/{conversation_id}")
        except (TavusAPIError, httpx.HTTPError) as e:
            logger.error("Error getting conversation status: %s", e)
            raise
        return TavusConversation(
            conversation_id=response["conversation_id"],
            conversation_url=response["conversation_url"],
            status=response.get("status") or "active",
        )

    async def get_conversation_transcript(self, conversation_id: str) -> Optional[str]:
        """
        Fetch the conversation transcript as plain text.

        Tries the transcript endpoint first, then the conversation detail.
        Returns None when neither has a transcript or the calls fail.
        """
        try:
            response = await self._request(
                "GET", f"/v2/conversations/{conversation_id}/transcript"
            )
            transcript = _transcript_text(response)
            if transcript:
                return transcript

            details = await self._request("GET", f"/v2/conversations/{conversation_id}")
            return _transcript_text(details)
        except (TavusAPIError, httpx.HTTPError, ValueError) as e:
            logger.warning("Could not fetch conversation transcript: %s", e)
            return None

    async def generate_interview_summary(
        self,
        conversation_id: str,
        interview_data: Mapping[str, Any],
        duration_seconds: int,
    ) -> str:
        """
        Short prose summary of a finished interview.

        Args:
            conversation_id: Tavus conversation to pull a transcript from.
            interview_data: Mapping with position, company and type.
            duration_seconds: Elapsed session time.
        """
        transcript = await self.get_conversation_transcript(conversation_id)
        if transcript and len(transcript) > MIN_TRANSCRIPT_LENGTH:
            return self.create_summary_from_transcript(transcript, interview_data, duration_seconds)
        return self.create_personalized_summary(interview_data, duration_seconds)

    def create_summary_from_transcript(
        self,
        transcript: str,
        interview_data: Mapping[str, Any],
        duration_seconds: int,
    ) -> str:
        interview_type = str(interview_data.get("type", ""))
        minutes = duration_seconds // 60
        words = transcript.lower().split()
        profile = find_interview_type(interview_type)
        topics = profile.extract_topics(words) if profile else []

        summary = (
            f"Completed a {minutes} minute {interview_type.lower()} interview for the "
            f"{interview_data.get('position', '')} position at {interview_data.get('company', '')}. "
        )
        if topics:
            summary += f"The discussion covered {', '.join(topics)}. "
        summary += self._insight_for(interview_type)
        summary += f" {TRANSCRIPT_SUMMARY_CLOSING}"
        return summary

    def create_personalized_summary(
        self,
        interview_data: Mapping[str, Any],
        duration_seconds: int,
    ) -> str:
        minutes = duration_seconds // 60
        opening = self._rng.choice(SUMMARY_OPENINGS).format(minutes=minutes)

        summary = (
            f"{opening} for the {interview_data.get('position', '')} role at "
            f"{interview_data.get('company', '')}. "
        )
        summary += self._insight_for(str(interview_data.get("type", "")))
        summary += f" {self._rng.choice(SUMMARY_CLOSINGS)}"
        return summary

    def _insight_for(self, interview_type: str) -> str:
        profile = find_interview_type(interview_type)
        if profile is None:
            return GENERIC_INSIGHT
        return profile.pick_insight(self._rng)

    def get_avatar_for_interview_type(self, interview_type: str) -> str:
        """
        Replica id to use for an interview type.

        Every type currently shares the configured default replica.

        Raises:
            TavusConfigurationError: If no default replica id is configured.
        """
        if not self._default_replica_id:
            raise TavusConfigurationError(
                "Tavus replica ID not configured. "
                "Please set TAVUS_DEFAULT_REPLICA_ID in your environment variables."
            )
        return self._default_replica_id


def _transcript_text(payload: Any) -> Optional[str]:
    """Normalise a transcript payload (string or list of turns) to text."""
    if not payload:
        return None
    transcript = payload.get("transcript") if isinstance(payload, dict) else None
    if not transcript:
        return None
    if isinstance(transcript, str):
        return transcript
    if isinstance(transcript, list):
        lines = []
        for turn in transcript:
            if isinstance(turn, dict):
                content = turn.get("content") or turn.get("text") or ""
                role = turn.get("role")
                lines.append(f"{role}: {content}" if role else content)
            else:
                lines.append(str(turn))
        return "\n".join(line for line in lines if line) or None
    return None
