"""FastAPI dependency injection functions."""

from typing import Annotated, Any

from fastapi import Depends, Header, HTTPException, status

from src.api.middleware.auth import AuthError, AuthErrorCode, decode_jwt
from src.schemas.auth import UserContext
from src.services.profile_service import ProfileService


async def get_current_user(
    authorization: Annotated[str, Header(description="Bearer token")] = "",
) -> UserContext:
    """Extract and validate the current user from the Authorization header.

    Args:
        authorization: The Authorization header value (Bearer token).

    Returns:
        UserContext: The authenticated user's context.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired.
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Expected: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_jwt(parts[1])
        return payload.to_user_context()

    except AuthError as e:
        if e.code == AuthErrorCode.TOKEN_EXPIRED:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
                headers={"WWW-Authenticate": "Bearer"},
            ) from e

        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    except ValueError as e:
        # sub claim is not a UUID
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


CurrentUser = Annotated[UserContext, Depends(get_current_user)]


async def get_current_profile(user: CurrentUser) -> dict[str, Any]:
    """Resolve the messaging identity (profile) of the authenticated user.

    Args:
        user: The authenticated user context.

    Returns:
        dict: The user's profile row, created on first use.
    """
    service = ProfileService()
    return await service.get_or_create_profile(user.user_id, user.email)


CurrentProfile = Annotated[dict[str, Any], Depends(get_current_profile)]
