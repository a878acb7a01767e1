"""
Interview Data Store.

CRUD access to the `interviews` table for the signed-in user, with a local
cached list and aggregate statistics recomputed after every change.

Thread Safety:
    Not thread-safe. Create one store per request or per user task.

Last Grunted: 10/18/2026
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError
from supabase import Client, PostgrestAPIError

from .models import Interview, InterviewCreate, InterviewUpdate
from .stats import InterviewStats, calculate_stats, empty_stats


__all__ = ["InterviewDataStore", "InterviewDataError", "INTERVIEWS_TABLE"]


logger = logging.getLogger(__name__)


INTERVIEWS_TABLE = "interviews"


class InterviewDataError(Exception):
    """Raised when a backend call against the interviews table fails."""


class InterviewDataStore:
    """
    Interview records for one user, backed by Supabase.

    The cached list is kept newest first. Every mutation updates the cache
    from the row the backend returns and recomputes `stats`.

    Example:
        >>> store = InterviewDataStore(client, user_id="user-123")
        >>> store.refresh()
        >>> store.add_interview(InterviewCreate(...))
        >>> store.stats.average_score
        82
    """

    def __init__(self, client: Client, user_id: Optional[str]) -> None:
        self._client = client
        self._user_id = user_id
        self._interviews: list[Interview] = []
        self._stats: InterviewStats = empty_stats()
        self.error: Optional[str] = None

    @property
    def interviews(self) -> list[Interview]:
        """Cached interviews, newest first."""
        return list(self._interviews)

    @property
    def stats(self) -> InterviewStats:
        return self._stats

    def _set_interviews(self, interviews: list[Interview]) -> None:
        self._interviews = interviews
        self._stats = calculate_stats(interviews)

    def _table(self):
        return self._client.table(INTERVIEWS_TABLE)

    def refresh(self) -> list[Interview]:
        """
        Reload every interview owned by the user.

        Returns:
            The refreshed list, newest first.

        Raises:
            InterviewDataError: If the query fails. The message is also
                stored in `error`.
        """
        if self._user_id is None:
            self._set_interviews([])
            return []

        self.error = None
        try:
            response = (
                self._table()
                .select("*")
                .eq("user_id", self._user_id)
                .order("created_at", desc=True)
                .execute()
            )
            interviews = [Interview.model_validate(row) for row in response.data or []]
        except (PostgrestAPIError, httpx.HTTPError, ValidationError) as e:
            logger.error("Error fetching interviews: %s", e)
            self.error = "Failed to load interview data"
            raise InterviewDataError(self.error) from e

        self._set_interviews(interviews)
        logger.debug("Loaded %d interviews for user %s", len(interviews), self._user_id)
        return self.interviews

    def add_interview(self, data: InterviewCreate) -> Interview:
        """
        Insert a new interview for the user and prepend it to the cache.

        Raises:
            InterviewDataError: If no user is signed in or the insert fails.
        """
        if self._user_id is None:
            raise InterviewDataError("User not authenticated")

        row: dict[str, Any] = data.model_dump(mode="json")
        row["user_id"] = self._user_id

        try:
            response = self._table().insert(row).execute()
            created = Interview.model_validate(_single_row(response.data))
        except (PostgrestAPIError, httpx.HTTPError, ValidationError, LookupError) as e:
            logger.error("Error adding interview: %s", e)
            raise InterviewDataError("Failed to save interview") from e

        self._set_interviews([created, *self._interviews])
        logger.info(
            "Saved interview %s (%s at %s, score=%s)",
            created.id,
            created.position,
            created.company,
            created.score,
        )
        return created

    def update_interview(self, interview_id: str, updates: InterviewUpdate) -> Interview:
        """
        Apply a partial update and merge the returned row into the cache.

        Raises:
            InterviewDataError: If the update fails or matches no row.
        """
        changes = updates.model_dump(mode="json", exclude_unset=True)

        try:
            response = (
                self._table()
                .update(changes)
                .eq("id", interview_id)
                .eq("user_id", self._user_id)
                .execute()
            )
            updated = Interview.model_validate(_single_row(response.data))
        except (PostgrestAPIError, httpx.HTTPError, ValidationError, LookupError) as e:
            logger.error("Error updating interview %s: %s", interview_id, e)
            raise InterviewDataError("Failed to update interview") from e

        self._set_interviews([
            updated if interview.id == interview_id else interview
            for interview in self._interviews
        ])
        return updated

    def delete_interview(self, interview_id: str) -> None:
        """
        Delete an interview and drop it from the cache.

        Raises:
            InterviewDataError: If the delete fails.
        """
        try:
            (
                self._table()
                .delete()
                .eq("id", interview_id)
                .eq("user_id", self._user_id)
                .execute()
            )
        except (PostgrestAPIError, httpx.HTTPError) as e:
            logger.error("Error deleting interview %s: %s", interview_id, e)
            raise InterviewDataError("Failed to delete interview") from e

        self._set_interviews([i for i in self._interviews if i.id != interview_id])
        logger.info("Deleted interview %s", interview_id)


def _single_row(rows: Optional[list[dict[str, Any]]]) -> dict[str, Any]:
    if not rows:
        raise LookupError("Backend returned no rows")
    return rows[0]
