"""JWT authentication middleware and utilities."""

from enum import Enum
from typing import Any

import jwt

from src.core.config import get_settings
from src.schemas.auth import TokenPayload

JWT_ALGORITHM = "HS256"


class AuthErrorCode(str, Enum):
    """Authentication error codes."""

    UNAUTHORIZED = "UNAUTHORIZED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"


class AuthError(Exception):
    """Authentication error with specific error code.

    Raised when JWT validation fails for any reason.
    The error code indicates the specific failure reason.
    """

    def __init__(self, message: str, code: AuthErrorCode) -> None:
        """Initialize authentication error.

        Args:
            message: Human-readable error description.
            code: Specific error code for programmatic handling.
        """
        self.message = message
        self.code = code
        super().__init__(message)


def decode_jwt(token: str) -> TokenPayload:
    """Decode and validate a Supabase access token.

    Validates the token signature, expiration, and structure using the
    project's JWT secret.

    Args:
        token: The JWT token string to decode.

    Returns:
        TokenPayload: Validated token payload.

    Raises:
        AuthError: If token is invalid, expired, or has wrong signature.
    """
    secret = get_settings().supabase_jwt_secret
    if not secret:
        raise AuthError("JWT secret not configured", AuthErrorCode.INVALID_TOKEN)

    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            options={
                "verify_signature": True,
                "verify_exp": True,
                "verify_iat": True,
                "verify_aud": False,
                "require": ["exp", "iat", "sub"],
            },
        )
    except jwt.ExpiredSignatureError as e:
        raise AuthError("Token has expired", AuthErrorCode.TOKEN_EXPIRED) from e
    except jwt.InvalidSignatureError as e:
        raise AuthError("Invalid token signature", AuthErrorCode.INVALID_SIGNATURE) from e
    except jwt.MissingRequiredClaimError as e:
        raise AuthError(f"Token missing required claim: {e}", AuthErrorCode.INVALID_TOKEN) from e
    except jwt.InvalidTokenError as e:
        raise AuthError(f"Invalid token: {e}", AuthErrorCode.INVALID_TOKEN) from e

    try:
        return TokenPayload(
            sub=payload["sub"],
            email=payload.get("email"),
            role=payload.get("role"),
            exp=payload["exp"],
            iat=payload["iat"],
            aud=payload.get("aud"),
            iss=payload.get("iss"),
        )
    except ValueError as e:
        raise AuthError(f"Malformed token claims: {e}", AuthErrorCode.INVALID_TOKEN) from e
