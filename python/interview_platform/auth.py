"""
Supabase authentication helpers.

Resolves a bearer token to the signed-in user and builds a Supabase client
that acts as that user, so row-level security applies to table access.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from supabase import AuthError, Client, ClientOptions, create_client


__all__ = ["AuthenticatedUser", "InvalidCredentialsError", "resolve_user", "create_user_client"]


logger = logging.getLogger(__name__)


class InvalidCredentialsError(Exception):
    """Raised when a bearer token does not resolve to a user."""

    def __init__(self, message: str = "Invalid authentication") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class AuthenticatedUser:
    """The candidate behind a request."""

    id: str
    access_token: str
    email: Optional[str] = None


def resolve_user(client: Client, access_token: str) -> AuthenticatedUser:
    """
    Verify a Supabase access token.

    Raises:
        InvalidCredentialsError: If the token is rejected or no user comes back.
    """
    try:
        response = client.auth.get_user(access_token)
    except (AuthError, httpx.HTTPError) as e:
        logger.warning("Rejected access token: %s", e)
        raise InvalidCredentialsError() from e

    user = response.user if response else None
    if user is None:
        raise InvalidCredentialsError()
    return AuthenticatedUser(id=user.id, access_token=access_token, email=user.email)


def create_user_client(supabase_url: str, anon_key: str, access_token: str) -> Client:
    """Supabase client whose table requests carry the user's token."""
    return create_client(
        supabase_url,
        anon_key,
        options=ClientOptions(headers={"Authorization": f"Bearer {access_token}"}),
    )
