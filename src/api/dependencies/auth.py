"""Authentication dependencies for FastAPI."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.exceptions import AuthenticationError, ErrorCode
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import IAuthProvider, TokenUser

# Security scheme for OpenAPI docs
bearer_scheme = HTTPBearer(auto_error=False)

Credentials = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


@lru_cache
def get_auth_provider() -> JWTAuthProvider:
    """Shared auth provider (keeps the JWKS cache across requests)."""
    return JWTAuthProvider()


async def get_current_user(
    credentials: Credentials,
    auth_provider: IAuthProvider = Depends(get_auth_provider),
) -> TokenUser:
    """
    Resolve the bearer token to the calling user.

    Raises:
        AuthenticationError: If no token is provided or the token is invalid
    """
    if not credentials:
        raise AuthenticationError(
            message="Authorization header required",
            error_code=ErrorCode.UNAUTHORIZED,
        )

    user = await auth_provider.validate_token(credentials.credentials)
    if not user:
        raise AuthenticationError(
            message="Invalid or expired token",
            error_code=ErrorCode.INVALID_TOKEN,
        )
    return user


async def get_optional_user(
    credentials: Credentials,
    auth_provider: IAuthProvider = Depends(get_auth_provider),
) -> TokenUser | None:
    """Like get_current_user, but anonymous callers get None instead of a 401."""
    if not credentials:
        return None
    return await auth_provider.validate_token(credentials.credentials)


CurrentUser = Annotated[TokenUser, Depends(get_current_user)]
OptionalUser = Annotated[TokenUser | None, Depends(get_optional_user)]
