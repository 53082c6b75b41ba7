"""JWT authentication provider.

Accepts Supabase-issued tokens (ES256, verified against the project's JWKS)
and locally signed tokens (HS256 shared secret, used in development and
tests).

Supabase JWT payload structure:
    {
        "sub": "user-uuid",
        "email": "user@example.com",
        "role": "authenticated",
        "aud": "authenticated",
        "user_metadata": { "full_name": "Jane Doe" },
        "exp": 1234567890
    }
"""

from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import UUID

import httpx
import structlog
from jose import JWTError, jwt

from core.config import settings
from infrastructure.auth.provider import TokenUser

logger = structlog.get_logger()


class JWKSCache:
    """kid -> JWK map fetched from Supabase and kept until a kid misses."""

    def __init__(self, url: str) -> None:
        self._url = url
        self._keys: dict[str, dict[str, Any]] | None = None

    async def get(self, kid: str) -> dict[str, Any] | None:
        keys = await self._load()
        if kid not in keys:
            # Unknown kid: the signing key may have rotated.
            self._keys = None
            keys = await self._load()
        return keys.get(kid)

    async def _load(self) -> dict[str, dict[str, Any]]:
        if self._keys is not None:
            return self._keys
        if not self._url:
            return {}

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(self._url, timeout=10.0)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("jwks_fetch_failed", url=self._url, error=str(e))
            return {}

        self._keys = {key["kid"]: key for key in payload.get("keys", []) if key.get("kid")}
        logger.info("jwks_fetched", key_count=len(self._keys))
        return self._keys


class JWTAuthProvider:
    """JWT-based authentication provider."""

    def __init__(
        self,
        secret_key: str = settings.jwt_secret_key,
        algorithm: str = settings.jwt_algorithm,
        expire_minutes: int = settings.jwt_expire_minutes,
        jwks: JWKSCache | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes
        self._jwks = jwks or JWKSCache(settings.supabase_jwks_url)

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """
        Validate a JWT and extract the caller.

        The signing algorithm is read from the token header: ES256 tokens
        are checked against the JWKS, anything else against the shared
        secret with the configured algorithm.

        Returns:
            TokenUser if valid, None if invalid or expired
        """
        try:
            header = jwt.get_unverified_header(token)
            if header.get("alg") == "ES256":
                payload = await self._decode_es256(token, header.get("kid"))
            else:
                payload = jwt.decode(
                    token,
                    self._secret_key,
                    algorithms=[self._algorithm],
                    options={"verify_aud": False},
                )
        except JWTError as e:
            logger.debug("token_rejected", error=str(e))
            return None

        return self._to_user(payload) if payload else None

    async def _decode_es256(self, token: str, kid: str | None) -> Optional[dict[str, Any]]:
        if not kid:
            return None
        key = await self._jwks.get(kid)
        if key is None:
            logger.warning("jwks_key_not_found", kid=kid)
            return None
        return jwt.decode(token, key, algorithms=["ES256"], options={"verify_aud": False})

    @staticmethod
    def _to_user(payload: dict[str, Any]) -> Optional[TokenUser]:
        user_id = payload.get("sub")
        email = payload.get("email")
        if not user_id or not email:
            return None

        try:
            parsed_id = UUID(str(user_id))
        except ValueError:
            return None

        # Supabase keeps the profile name in user_metadata
        user_metadata = payload.get("user_metadata") or {}
        full_name = (
            user_metadata.get("full_name")
            or user_metadata.get("name")
            or payload.get("name")
        )

        return TokenUser(
            id=parsed_id,
            email=email,
            full_name=full_name,
            role=payload.get("role"),
        )

    def create_token(self, user: TokenUser) -> str:
        """Create an HS256 token for ``user`` (local development and tests)."""
        expire = datetime.utcnow() + timedelta(minutes=self._expire_minutes)

        payload: dict[str, Any] = {
            "sub": str(user.id),
            "email": user.email,
            "aud": "authenticated",
            "role": user.role or "authenticated",
            "exp": expire,
            "user_metadata": {"full_name": user.full_name},
        }

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
