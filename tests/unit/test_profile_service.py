"""Unit tests for ProfileService."""

from unittest.mock import MagicMock, patch
from uuid import UUID

import pytest
from postgrest.exceptions import APIError

from src.api.middleware.error_handler import InvalidStateError
from src.services.profile_service import ProfileService


@pytest.fixture
def mock_supabase() -> MagicMock:
    """Create a mock Supabase client."""
    return MagicMock()


@pytest.fixture
def profile_service(mock_supabase: MagicMock) -> ProfileService:
    """Create ProfileService with mocked client."""
    with patch("src.services.profile_service.get_supabase_client", return_value=mock_supabase):
        return ProfileService()


class TestGetOrCreateProfile:
    """Tests for get_or_create_profile method."""

    @pytest.mark.asyncio
    async def test_returns_existing_profile(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that existing profile is returned."""
        existing_profile = {
            "id": "550e8400-e29b-41d4-a716-446655440000",
            "user_id": "660e8400-e29b-41d4-a716-446655440000",
            "display_name": "Test User",
            "email": "test@example.com",
        }

        mock_response = MagicMock()
        mock_response.data = [existing_profile]
        mock_supabase.table.return_value.select.return_value.eq.return_value.execute.return_value = (
            mock_response
        )

        result = await profile_service.get_or_create_profile(
            user_id=UUID("660e8400-e29b-41d4-a716-446655440000"),
            email="test@example.com",
        )

        assert result == existing_profile
        mock_supabase.table.assert_called_with("profiles")

    @pytest.mark.asyncio
    async def test_creates_new_profile_when_not_exists(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that new profile is created when none exists."""
        new_profile = {
            "id": "550e8400-e29b-41d4-a716-446655440000",
            "user_id": "660e8400-e29b-41d4-a716-446655440000",
            "display_name": "new@example.com",
            "email": "new@example.com",
        }

        # First call returns empty (no existing profile)
        empty_response = MagicMock()
        empty_response.data = []

        # Second call returns created profile
        create_response = MagicMock()
        create_response.data = [new_profile]

        mock_supabase.table.return_value.select.return_value.eq.return_value.execute.return_value = (
            empty_response
        )
        mock_supabase.table.return_value.insert.return_value.execute.return_value = (
            create_response
        )

        result = await profile_service.get_or_create_profile(
            user_id=UUID("660e8400-e29b-41d4-a716-446655440000"),
            email="new@example.com",
        )

        assert result == new_profile
        mock_supabase.table.return_value.insert.assert_called_once_with(
            {
                "user_id": "660e8400-e29b-41d4-a716-446655440000",
                "email": "new@example.com",
                "display_name": "new@example.com",
            }
        )

    @pytest.mark.asyncio
    async def test_concurrent_first_request_reuses_winner(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that losing the insert race on user_id returns the existing profile."""
        winner = {
            "id": "550e8400-e29b-41d4-a716-446655440000",
            "user_id": "660e8400-e29b-41d4-a716-446655440000",
            "display_name": "Test User",
            "email": "test@example.com",
        }
        empty_response = MagicMock()
        empty_response.data = []
        found_response = MagicMock()
        found_response.data = [winner]

        mock_supabase.table.return_value.select.return_value.eq.return_value.execute.side_effect = [
            empty_response,
            found_response,
        ]
        mock_supabase.table.return_value.insert.return_value.execute.side_effect = APIError(
            {
                "code": "23505",
                "message": 'duplicate key value violates unique constraint "profiles_user_id_key"',
                "details": None,
                "hint": None,
            }
        )

        result = await profile_service.get_or_create_profile(
            user_id=UUID("660e8400-e29b-41d4-a716-446655440000"),
            email="test@example.com",
        )

        assert result == winner

    @pytest.mark.asyncio
    async def test_duplicate_without_row_is_invalid_state(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that a duplicate with no readable profile is an integrity fault."""
        empty_response = MagicMock()
        empty_response.data = []
        mock_supabase.table.return_value.select.return_value.eq.return_value.execute.return_value = (
            empty_response
        )
        mock_supabase.table.return_value.insert.return_value.execute.side_effect = APIError(
            {"code": "23505", "message": "duplicate key", "details": None, "hint": None}
        )

        with pytest.raises(InvalidStateError):
            await profile_service.get_or_create_profile(
                user_id=UUID("660e8400-e29b-41d4-a716-446655440000"),
            )

    @pytest.mark.asyncio
    async def test_other_insert_errors_propagate(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that non-duplicate insert failures are not swallowed."""
        empty_response = MagicMock()
        empty_response.data = []
        mock_supabase.table.return_value.select.return_value.eq.return_value.execute.return_value = (
            empty_response
        )
        mock_supabase.table.return_value.insert.return_value.execute.side_effect = APIError(
            {"code": "42501", "message": "permission denied", "details": None, "hint": None}
        )

        with pytest.raises(APIError):
            await profile_service.get_or_create_profile(
                user_id=UUID("660e8400-e29b-41d4-a716-446655440000"),
            )


class TestGetProfileById:
    """Tests for get_profile_by_id method."""

    @pytest.mark.asyncio
    async def test_returns_profile(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that a known profile is returned."""
        profile = {"id": "550e8400-e29b-41d4-a716-446655440000", "display_name": "Test User"}
        mock_response = MagicMock()
        mock_response.data = profile
        mock_supabase.table.return_value.select.return_value.eq.return_value.maybe_single.return_value.execute.return_value = (
            mock_response
        )

        result = await profile_service.get_profile_by_id(UUID("550e8400-e29b-41d4-a716-446655440000"))

        assert result == profile

    @pytest.mark.asyncio
    async def test_returns_none_when_missing(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that an unknown profile yields None."""
        mock_supabase.table.return_value.select.return_value.eq.return_value.maybe_single.return_value.execute.return_value = (
            None
        )

        result = await profile_service.get_profile_by_id(UUID("550e8400-e29b-41d4-a716-446655440000"))

        assert result is None


class TestGetProfilesByIds:
    """Tests for get_profiles_by_ids method."""

    @pytest.mark.asyncio
    async def test_empty_input_skips_query(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that no query runs for an empty ID list."""
        assert await profile_service.get_profiles_by_ids([]) == {}
        mock_supabase.table.assert_not_called()

    @pytest.mark.asyncio
    async def test_keys_rows_by_id_and_dedupes(
        self, profile_service: ProfileService, mock_supabase: MagicMock
    ) -> None:
        """Test that rows are keyed by ID and duplicate IDs are queried once."""
        a = UUID("550e8400-e29b-41d4-a716-446655440000")
        b = UUID("660e8400-e29b-41d4-a716-446655440000")
        mock_response = MagicMock()
        mock_response.data = [{"id": str(a), "display_name": "A"}, {"id": str(b), "display_name": "B"}]
        in_query = mock_supabase.table.return_value.select.return_value.in_
        in_query.return_value.execute.return_value = mock_response

        result = await profile_service.get_profiles_by_ids([b, a, a])

        assert set(result) == {str(a), str(b)}
        assert result[str(b)]["display_name"] == "B"
        in_query.assert_called_once_with("id", [str(a), str(b)])
