# ─────────────────────────────────────────────────────────────────────────────
# Test Fixtures — shared across all tests
# ─────────────────────────────────────────────────────────────────────────────


import json

import pytest
from httpx import ASGITransport, AsyncClient

from satire_press.config import Settings
from satire_press.pipeline.content_moderator import ContentModerator
from satire_press.services.pipeline import ArticleOrchestrator
from satire_press.services.rate_limiter import ArticleRateLimiter, InMemoryCounterStore

HOSPITALITY_IDEA = (
    "Hotel guests now demand a pillow menu, a towel sommelier and a concierge "
    "who speaks fluent cat at every resort in town. Front desk teams are "
    "quietly training for the towel tasting exam."
)

GENERATED_ARTICLE = {
    "headline": "Resort Hires Towel Sommelier To Pair Linens With Guest Moods",
    "article": (
        "In a move industry analysts are calling bold, a seaside resort has "
        "appointed its first towel sommelier. Guests are now greeted with a "
        "tasting flight of bath sheets, each described in loving detail."
    ),
    "excerpt": "A seaside resort now pairs towels with guest moods, because why not.",
    "socialCaption": "Your towel has notes of lavender and regret. #HotelLife #Satire",
}


class FakeGenerator:
    """Stands in for GeminiClient. Returns ``response`` or raises it."""

    def __init__(self) -> None:
        self.configured = True
        self.response: str | BaseException = json.dumps(GENERATED_ARTICLE)
        self.prompts: list[str] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if isinstance(self.response, BaseException):
            raise self.response
        return self.response


class FakeClock:
    def __init__(self, now: float = 1_700_006_410.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def test_settings() -> Settings:
    """Settings configured for testing — no real credentials, console logs."""
    return Settings(
        gemini_api_key="test-key",
        supabase_url="https://project.supabase.test",
        supabase_anon_key="anon-key",
        wordpress_base_url="https://blog.example.test",
        wordpress_username="editor",
        wordpress_app_password="app-pass",
        generation_timeout_seconds=2.0,
        log_json=False,
        log_level="DEBUG",
    )


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter(test_settings: Settings, fake_clock: FakeClock) -> ArticleRateLimiter:
    return ArticleRateLimiter(
        InMemoryCounterStore(),
        per_minute=test_settings.rate_limit_per_minute,
        per_day=test_settings.rate_limit_per_day,
        clock=fake_clock,
    )


@pytest.fixture
def orchestrator(
    test_settings: Settings,
    fake_generator: FakeGenerator,
    rate_limiter: ArticleRateLimiter,
) -> ArticleOrchestrator:
    return ArticleOrchestrator(
        generator=fake_generator,
        limiter=rate_limiter,
        moderator=ContentModerator("contextual"),
        settings=test_settings,
    )


@pytest.fixture
def publishing_service(test_settings: Settings):
    """PublishingService wired to clients that are never called."""
    from satire_press.main import build_services

    _, publishing = build_services(test_settings)
    return publishing


@pytest.fixture
def app(test_settings: Settings, orchestrator: ArticleOrchestrator, publishing_service):
    """App with manually-initialized state.

    ASGITransport doesn't run the lifespan, so app.state is filled here.
    """
    from satire_press.main import create_app

    app = create_app()
    app.state.settings = test_settings
    app.state.article_orchestrator = orchestrator
    app.state.publishing_service = publishing_service
    return app


@pytest.fixture
async def client(app):
    """httpx AsyncClient bound to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


@pytest.fixture
def hospitality_idea() -> str:
    return HOSPITALITY_IDEA


@pytest.fixture
def generated_article() -> dict[str, str]:
    return dict(GENERATED_ARTICLE)
