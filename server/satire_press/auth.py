# ─────────────────────────────────────────────────────────────────────────────
# Identity Verification — Supabase bearer tokens
# ─────────────────────────────────────────────────────────────────────────────
# Only the publishing endpoint needs a verified user. The token is sent to
# Supabase's /auth/v1/user; a 200 with a user id means the token is valid.
#
# Design decisions:
#   - Verified identities are cached in a short-lived cachetools.TTLCache so
#     a burst of publishes does not re-verify on every call.
#   - Cache keys are SHA-256 digests; raw tokens are never stored or logged.
#   - Rejections surface as AuthenticationError (401) with a fixed message.
# ─────────────────────────────────────────────────────────────────────────────


import hashlib
from dataclasses import dataclass

import httpx
import structlog
from cachetools import TTLCache

from satire_press.exceptions import AuthenticationError, UpstreamServiceError

logger = structlog.get_logger(__name__)

_BEARER_SCHEME = "bearer"


@dataclass(frozen=True)
class UserIdentity:
    user_id: str
    email: str | None = None


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        raise AuthenticationError("No authorization header")
    parts = authorization.split(None, 1)
    if parts and parts[0].lower() == _BEARER_SCHEME:
        parts = parts[1:]
    value = parts[0].strip() if parts else ""
    if not value:
        raise AuthenticationError("No authorization header")
    return value


class SupabaseIdentityVerifier:
    """Verify bearer tokens against a Supabase project's auth API."""

    def __init__(
        self,
        supabase_url: str,
        anon_key: str,
        cache_ttl_seconds: int = 60,
        cache_size: int = 1024,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._anon_key = anon_key
        self._configured = bool(supabase_url and anon_key)
        self._cache: TTLCache = TTLCache(maxsize=cache_size, ttl=cache_ttl_seconds)
        self._client = httpx.AsyncClient(
            base_url=supabase_url.rstrip("/") if supabase_url else "http://localhost",
            timeout=timeout_seconds,
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return self._configured

    async def aclose(self) -> None:
        await self._client.aclose()

    async def verify(self, authorization: str | None) -> UserIdentity:
        token = extract_bearer_token(authorization)
        cache_key = hashlib.sha256(token.encode()).hexdigest()

        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        if not self._configured:
            logger.error("identity_provider_not_configured")
            raise AuthenticationError()

        try:
            response = await self._client.get(
                "/auth/v1/user",
                headers={"Authorization": f"Bearer {token}", "apikey": self._anon_key},
            )
        except httpx.HTTPError as exc:
            logger.warning("identity_provider_unreachable", error_type=type(exc).__name__)
            raise UpstreamServiceError("Identity API request failed") from exc

        if response.status_code in (401, 403):
            logger.info("auth_rejected", status=response.status_code)
            raise AuthenticationError()
        if response.is_error:
            logger.error("identity_provider_error", status=response.status_code)
            raise UpstreamServiceError(f"Identity API error: {response.status_code}")

        try:
            data = response.json()
            identity = UserIdentity(user_id=str(data["id"]), email=data.get("email"))
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("identity_response_invalid")
            raise AuthenticationError() from exc

        self._cache[cache_key] = identity
        return identity
