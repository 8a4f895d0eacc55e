"""Profile lookups for messaging participants."""

import logging
from typing import Any
from uuid import UUID

from postgrest.exceptions import APIError

from src.api.middleware.error_handler import InvalidStateError
from src.core.supabase import get_supabase_client, is_unique_violation

logger = logging.getLogger(__name__)


class ProfileService:
    """Service for reading user profiles.

    Profile editing belongs to the profile pages; messaging only needs to
    map an auth user to a profile and to look up display fields.
    """

    def __init__(self) -> None:
        """Initialize profile service with Supabase client."""
        self.client = get_supabase_client()

    async def get_or_create_profile(
        self,
        user_id: UUID,
        email: str | None = None,
        display_name: str | None = None,
    ) -> dict[str, Any]:
        """Get existing profile or create a new one.

        Two first requests from the same user can both miss the lookup;
        the loser of the insert hits the unique user_id constraint and
        returns the winner's row.

        Args:
            user_id: The auth user ID.
            email: User's email address.
            display_name: User's display name.

        Returns:
            dict: The profile data.

        Raises:
            InvalidStateError: If the insert reports a duplicate but the
                profile cannot be read back.
        """
        existing = await self.get_profile_by_user_id(user_id)
        if existing:
            return existing

        profile_data = {
            "user_id": str(user_id),
            "email": email,
            "display_name": display_name or email,
        }

        try:
            response = (
                self.client.table("profiles")
                .insert(profile_data)
                .execute()
            )
        except APIError as e:
            if not is_unique_violation(e):
                raise
            logger.info("Profile for user %s created concurrently, reusing it", user_id)
            existing = await self.get_profile_by_user_id(user_id)
            if not existing:
                raise InvalidStateError(
                    f"Profile for user {user_id} reported as duplicate but not found"
                ) from e
            return existing

        return response.data[0]

    async def get_profile_by_user_id(self, user_id: UUID) -> dict[str, Any] | None:
        """Get the profile owned by an auth user."""
        response = (
            self.client.table("profiles")
            .select("*")
            .eq("user_id", str(user_id))
            .execute()
        )

        return response.data[0] if response.data else None

    async def get_profile_by_id(self, profile_id: UUID) -> dict[str, Any] | None:
        """Get a profile by profile ID.

        Args:
            profile_id: The profile's UUID.

        Returns:
            dict | None: The profile data or None if not found.
        """
        response = (
            self.client.table("profiles")
            .select("*")
            .eq("id", str(profile_id))
            .maybe_single()
            .execute()
        )

        return response.data if response and response.data else None

    async def get_profiles_by_ids(self, profile_ids: list[UUID]) -> dict[str, dict[str, Any]]:
        """Get several profiles in one query.

        Args:
            profile_ids: Profile UUIDs to look up.

        Returns:
            dict: Profile rows keyed by their string ID. Unknown IDs are absent.
        """
        if not profile_ids:
            return {}

        response = (
            self.client.table("profiles")
            .select("id, display_name, avatar_url, headline")
            .in_("id", sorted({str(pid) for pid in profile_ids}))
            .execute()
        )

        return {row["id"]: row for row in response.data or []}
