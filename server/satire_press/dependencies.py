# ─────────────────────────────────────────────────────────────────────────────
# Dependency Injection — FastAPI Depends() providers
# ─────────────────────────────────────────────────────────────────────────────
# State flows: lifespan creates → app.state stores → Depends() injects.
# No global variables. Every dependency is explicit in endpoint signatures.
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import Request

from satire_press.config import Settings
from satire_press.services.pipeline import ArticleOrchestrator
from satire_press.services.publisher import PublishingService


def get_orchestrator(request: Request) -> ArticleOrchestrator:
    """Inject ArticleOrchestrator into endpoints via Depends()."""
    return request.app.state.article_orchestrator


def get_publishing_service(request: Request) -> PublishingService:
    """Inject PublishingService into endpoints via Depends()."""
    return request.app.state.publishing_service


def get_settings_dep(request: Request) -> Settings:
    """Inject Settings into endpoints via Depends()."""
    return request.app.state.settings
