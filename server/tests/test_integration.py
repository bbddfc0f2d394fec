# ─────────────────────────────────────────────────────────────────────────────
# Integration tests — full request flow with a fake text generator
# ─────────────────────────────────────────────────────────────────────────────
# app.state is filled by the conftest client fixture (ASGITransport doesn't
# run lifespan). No network: the generator is a FakeGenerator and the
# publishing clients use httpx.MockTransport where a call is expected.
# ─────────────────────────────────────────────────────────────────────────────

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from satire_press.auth import SupabaseIdentityVerifier
from satire_press.services.publisher import PublishingService, WordPressPublisher

EXPECTED_CORS = "*"


def _verified_user() -> SupabaseIdentityVerifier:
    return SupabaseIdentityVerifier(
        supabase_url="https://project.supabase.test",
        anon_key="anon-key",
        transport=httpx.MockTransport(
            lambda request: httpx.Response(200, json={"id": "user-1", "email": "e@x.test"})
        ),
    )


def _wordpress(post_id: int) -> WordPressPublisher:
    return WordPressPublisher(
        base_url="https://blog.example.test",
        username="editor",
        app_password="app-pass",
        transport=httpx.MockTransport(lambda request: httpx.Response(201, json={"id": post_id})),
    )


class TestGenerateArticleEndpoint:
    """Tests for POST /generate-article."""

    @pytest.mark.asyncio
    async def test_hundred_char_idea_returns_article(
        self, client: AsyncClient, hospitality_idea, generated_article
    ) -> None:
        idea = hospitality_idea[:100]
        assert len(idea) == 100

        response = await client.post(
            "/generate-article",
            json={"idea": idea, "articleType": "breaking-news"},
            headers={"Origin": "https://app.example.test"},
        )

        assert response.status_code == 200
        assert response.json() == generated_article
        assert response.headers["access-control-allow-origin"] == EXPECTED_CORS

    @pytest.mark.asyncio
    async def test_fifty_char_idea_returns_validation_error(self, client: AsyncClient, fake_generator) -> None:
        response = await client.post(
            "/generate-article",
            json={"idea": "x" * 50, "articleType": "breaking-news"},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "VALIDATION_ERROR"
        assert data["error"] == "Invalid input data"
        assert any("between 100 and 5000 characters" in d for d in data["details"])
        assert fake_generator.prompts == []

    @pytest.mark.asyncio
    async def test_unknown_article_type(self, client: AsyncClient, hospitality_idea) -> None:
        response = await client.post(
            "/generate-article",
            json={"idea": hospitality_idea, "articleType": "opinion"},
        )
        assert response.status_code == 400
        assert response.json()["details"] == ["Invalid article type"]

    @pytest.mark.asyncio
    async def test_non_json_body(self, client: AsyncClient) -> None:
        response = await client.post(
            "/generate-article",
            content=b"idea=hello",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_oversized_payload(self, client: AsyncClient, fake_generator) -> None:
        response = await client.post(
            "/generate-article",
            json={"idea": "x" * 11000, "articleType": "breaking-news"},
        )
        assert response.status_code == 413
        assert response.json() == {"error": "Request payload too large", "code": "PAYLOAD_TOO_LARGE"}
        assert fake_generator.prompts == []

    @pytest.mark.asyncio
    async def test_oversized_payload_without_content_length(self, client: AsyncClient, fake_generator) -> None:
        async def chunks():
            for _ in range(20):
                yield b"x" * 1024

        response = await client.post("/generate-article", content=chunks())
        assert response.status_code == 413
        assert response.json()["code"] == "PAYLOAD_TOO_LARGE"
        assert fake_generator.prompts == []

    @pytest.mark.asyncio
    async def test_rate_limit(self, client: AsyncClient, hospitality_idea) -> None:
        body = {"idea": hospitality_idea, "articleType": "guest-relations"}
        headers = {"X-Forwarded-For": "203.0.113.5, 10.0.0.1"}
        for _ in range(5):
            assert (await client.post("/generate-article", json=body, headers=headers)).status_code == 200

        response = await client.post("/generate-article", json=body, headers=headers)

        assert response.status_code == 429
        assert response.headers["retry-after"] == "60"
        data = response.json()
        assert data["code"] == "RATE_LIMIT_EXCEEDED"
        assert isinstance(data["resetTime"], int)

        other = await client.post(
            "/generate-article", json=body, headers={"X-Forwarded-For": "198.51.100.7"}
        )
        assert other.status_code == 200

    @pytest.mark.asyncio
    async def test_content_violation(self, client: AsyncClient, hospitality_idea) -> None:
        response = await client.post(
            "/generate-article",
            json={"idea": hospitality_idea + " I will kill the guests.", "articleType": "breaking-news"},
        )
        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "CONTENT_VIOLATION"
        assert data["error"] == "Content does not meet community guidelines"

    @pytest.mark.asyncio
    async def test_missing_credential(self, client: AsyncClient, fake_generator, hospitality_idea) -> None:
        fake_generator.configured = False
        response = await client.post(
            "/generate-article",
            json={"idea": hospitality_idea, "articleType": "breaking-news"},
        )
        assert response.status_code == 500
        assert response.json() == {"error": "Service configuration error", "code": "SERVICE_ERROR"}

    @pytest.mark.asyncio
    async def test_malformed_generation(self, client: AsyncClient, fake_generator, hospitality_idea) -> None:
        fake_generator.response = "not json at all"
        response = await client.post(
            "/generate-article",
            json={"idea": hospitality_idea, "articleType": "breaking-news"},
        )
        assert response.status_code == 500
        assert response.json() == {"error": "Content generation failed", "code": "GENERATION_ERROR"}

    @pytest.mark.asyncio
    async def test_bare_options_preflight(self, client: AsyncClient) -> None:
        response = await client.options("/generate-article")
        assert response.status_code == 204
        assert response.headers["access-control-allow-origin"] == EXPECTED_CORS

    @pytest.mark.asyncio
    async def test_browser_preflight(self, client: AsyncClient) -> None:
        response = await client.options(
            "/generate-article",
            headers={
                "Origin": "https://app.example.test",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == EXPECTED_CORS

    @pytest.mark.asyncio
    async def test_request_id_header(self, client: AsyncClient) -> None:
        response = await client.get("/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["x-request-id"] == "abc123"


class TestUploadToWordPressEndpoint:
    """Tests for POST /upload-to-wordpress."""

    @pytest.mark.asyncio
    async def test_requires_authorization(self, client: AsyncClient) -> None:
        response = await client.post(
            "/upload-to-wordpress",
            json={"headline": "H", "article": "A", "excerpt": "E"},
        )
        assert response.status_code == 401
        assert response.json()["code"] == "AUTHENTICATION_ERROR"

    @pytest.mark.asyncio
    async def test_invalid_body(self, app, client: AsyncClient) -> None:
        app.state.publishing_service = PublishingService(_verified_user(), _wordpress(99))
        response = await client.post(
            "/upload-to-wordpress",
            content=b"not json",
            headers={"Content-Type": "application/json", "Authorization": "Bearer t"},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_unauthenticated_bad_body_is_401(self, client: AsyncClient) -> None:
        response = await client.post(
            "/upload-to-wordpress",
            content=b'{"headline": 12',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 401
        assert response.json()["code"] == "AUTHENTICATION_ERROR"

    @pytest.mark.asyncio
    async def test_publishes_draft(self, app, client: AsyncClient) -> None:
        app.state.publishing_service = PublishingService(_verified_user(), _wordpress(99))

        response = await client.post(
            "/upload-to-wordpress",
            json={"headline": "H", "article": "A", "excerpt": "E"},
            headers={"Authorization": "Bearer token-1"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "postId": 99,
            "editUrl": "https://blog.example.test/wp-admin/post.php?post=99&action=edit",
        }

    @pytest.mark.asyncio
    async def test_options_preflight(self, client: AsyncClient) -> None:
        response = await client.options("/upload-to-wordpress")
        assert response.status_code == 204


class TestHealthEndpoints:
    @pytest.mark.asyncio
    async def test_liveness_returns_200(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    @pytest.mark.asyncio
    async def test_readiness_returns_200(self, client: AsyncClient) -> None:
        response = await client.get("/health/ready")
        assert response.status_code == 200
        data = response.json()
        assert data["generator_configured"] is True
        assert data["publisher_configured"] is True

    @pytest.mark.asyncio
    async def test_readiness_without_key_returns_503(self, client: AsyncClient, fake_generator) -> None:
        fake_generator.configured = False
        response = await client.get("/health/ready")
        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"


class TestUnhandledErrors:
    @pytest.mark.asyncio
    async def test_unhandled_error_is_sanitized_with_cors_header(self, app) -> None:
        async def explode() -> None:
            raise RuntimeError("/srv/secret/path exploded")

        app.add_api_route("/explode", explode, methods=["GET"])
        async with AsyncClient(
            transport=ASGITransport(app=app, raise_app_exceptions=False),
            base_url="http://test",
        ) as ac:
            response = await ac.get("/explode", headers={"Origin": "https://editor.example.test"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "An error occurred while processing your request",
            "code": "GENERATION_ERROR",
        }
        assert response.headers["access-control-allow-origin"] == EXPECTED_CORS
