"""Profile API routes."""

from uuid import UUID

from fastapi import APIRouter

from src.api.deps import CurrentProfile, CurrentUser
from src.api.middleware.error_handler import NotFoundError
from src.schemas.profile import ParticipantProfile, ProfileResponse
from src.services.profile_service import ProfileService

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get(
    "/me",
    response_model=ProfileResponse,
    summary="Get current user's profile",
    description="Returns the authenticated user's profile, creating it on first use.",
)
async def get_my_profile(profile: CurrentProfile) -> ProfileResponse:
    """Get the authenticated user's profile."""
    return ProfileResponse(**profile)


@router.get(
    "/{profile_id}",
    response_model=ParticipantProfile,
    summary="Look up a user",
    description="Returns the public display fields of a user.",
)
async def get_profile(profile_id: UUID, user: CurrentUser) -> ParticipantProfile:
    """Get another user's public display fields.

    Args:
        profile_id: The profile to look up.
        user: The authenticated user context.

    Returns:
        ParticipantProfile: Display name, avatar and headline.

    Raises:
        NotFoundError: If the profile does not exist.
    """
    service = ProfileService()
    profile = await service.get_profile_by_id(profile_id)
    if not profile:
        raise NotFoundError("User not found")

    return ParticipantProfile.from_row(profile)
