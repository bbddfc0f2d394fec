# ─────────────────────────────────────────────────────────────────────────────
# WordPress Publisher — create draft posts through the REST API
# ─────────────────────────────────────────────────────────────────────────────
# Authenticates with a WordPress application password (HTTP basic auth).
# Posts are always created as drafts; an editor publishes them by hand.
# ─────────────────────────────────────────────────────────────────────────────


from dataclasses import dataclass
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from satire_press.auth import SupabaseIdentityVerifier
from satire_press.exceptions import (
    ServiceError,
    ServiceNotConfiguredError,
    UpstreamServiceError,
    ValidationFailedError,
)
from satire_press.schemas import PublishRequest
from satire_press.services.error_sanitizer import sanitize_error

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DraftPost:
    title: str
    content: str
    excerpt: str


@dataclass(frozen=True)
class PublishedPost:
    post_id: int
    edit_url: str


class WordPressPublisher:
    """POST /wp-json/wp/v2/posts with status=draft."""

    def __init__(
        self,
        base_url: str,
        username: str,
        app_password: str,
        author_id: int = 1,
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._author_id = author_id
        self._configured = bool(username and app_password)
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            auth=httpx.BasicAuth(username, app_password) if self._configured else None,
            timeout=timeout_seconds,
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return self._configured

    async def aclose(self) -> None:
        await self._client.aclose()

    def edit_url(self, post_id: int) -> str:
        return f"{self._base_url}/wp-admin/post.php?post={post_id}&action=edit"

    async def publish(self, draft: DraftPost) -> PublishedPost:
        if not self._configured:
            logger.error("wordpress_credentials_missing")
            raise ServiceNotConfiguredError("wordpress")

        body = {
            "title": draft.title,
            "content": draft.content,
            "excerpt": draft.excerpt,
            "status": "draft",
            "author": self._author_id,
        }
        try:
            response = await self._client.post("/wp-json/wp/v2/posts", json=body)
        except httpx.HTTPError as exc:
            logger.warning("wordpress_unreachable", error_type=type(exc).__name__)
            raise UpstreamServiceError("WordPress API request failed") from exc

        logger.info("wordpress_response", status=response.status_code)
        if response.is_error:
            logger.debug("wordpress_error_body", body=response.text[:500])
            raise UpstreamServiceError(f"WordPress API error: {response.status_code}")

        try:
            post_id = int(response.json()["id"])
        except (ValueError, KeyError, TypeError) as exc:
            raise UpstreamServiceError("WordPress API returned an unexpected response") from exc

        return PublishedPost(post_id=post_id, edit_url=self.edit_url(post_id))


class PublishingService:
    """Verify the caller, check the draft, create it in WordPress.

    Upstream failures are classified here so the route stays wiring-only.
    """

    def __init__(self, verifier: SupabaseIdentityVerifier, publisher: WordPressPublisher) -> None:
        self._verifier = verifier
        self._publisher = publisher

    @property
    def verifier(self) -> SupabaseIdentityVerifier:
        return self._verifier

    @property
    def publisher(self) -> WordPressPublisher:
        return self._publisher

    @property
    def publisher_configured(self) -> bool:
        return self._publisher.is_configured

    async def publish(self, authorization: str | None, payload: Any) -> PublishedPost:
        """Publish ``payload`` (the decoded JSON body) as a draft.

        The caller is verified before the payload is looked at, so an
        unauthenticated request is always a 401 whatever its body.
        """
        try:
            user = await self._verifier.verify(authorization)
        except UpstreamServiceError as exc:
            raise ServiceError(sanitize_error(exc)) from exc

        if not isinstance(payload, dict):
            raise ValidationFailedError(["Request body must be a JSON object"])
        try:
            request = PublishRequest.model_validate(payload)
        except ValidationError as exc:
            logger.info("publish_validation_failed", user_id=user.user_id)
            raise ValidationFailedError(
                [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]
            ) from exc

        missing = [
            name
            for name in ("headline", "article", "excerpt")
            if not (getattr(request, name) or "").strip()
        ]
        if missing:
            logger.info("publish_validation_failed", user_id=user.user_id, missing=missing)
            raise ValidationFailedError(
                [f"{name} is required" for name in missing],
                message="Missing required fields: headline, article, or excerpt",
            )

        draft = DraftPost(title=request.headline, content=request.article, excerpt=request.excerpt)
        try:
            post = await self._publisher.publish(draft)
        except UpstreamServiceError as exc:
            logger.error("wordpress_publish_failed", user_id=user.user_id)
            raise ServiceError(sanitize_error(exc)) from exc

        logger.info("wordpress_post_created", user_id=user.user_id, post_id=post.post_id)
        return post
