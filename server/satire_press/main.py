# ─────────────────────────────────────────────────────────────────────────────
# FastAPI Application Factory + Lifespan
# ─────────────────────────────────────────────────────────────────────────────
# Entrypoint: uvicorn satire_press.main:create_app --factory --host 0.0.0.0 --port 8080
# The --factory flag tells uvicorn to call create_app() for the app instance.
# ─────────────────────────────────────────────────────────────────────────────

import os
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request
from starlette.responses import JSONResponse

from satire_press.auth import SupabaseIdentityVerifier
from satire_press.config import Settings, get_settings
from satire_press.exceptions import ErrorCode, register_exception_handlers
from satire_press.logging_config import configure_logging
from satire_press.middleware import RequestContextMiddleware
from satire_press.pipeline.content_moderator import ContentModerator
from satire_press.rate_limit import limiter
from satire_press.routes import generate, health, publish
from satire_press.services.gemini import GeminiClient
from satire_press.services.pipeline import ArticleOrchestrator
from satire_press.services.publisher import PublishingService, WordPressPublisher
from satire_press.services.rate_limiter import ArticleRateLimiter, InMemoryCounterStore

logger = structlog.get_logger(__name__)


async def _rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Return a structured JSON 429 consistent with ArticleError responses."""
    logger.warning(
        "rate_limit_exceeded",
        path=request.url.path,
        method=request.method,
        detail=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content={"error": "Rate limit exceeded", "code": ErrorCode.RATE_LIMIT_EXCEEDED.value},
        headers={"Retry-After": "60"},
    )


def _configure_otel(exporter_type: str) -> None:
    """Configure OpenTelemetry tracing.

    Supports "console" for dev and "gcp" for Cloud Trace.
    No-op if the exporter type is unknown.
    """
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    provider = TracerProvider()

    if exporter_type == "console":
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter

        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    elif exporter_type == "gcp":
        try:
            from opentelemetry.exporter.cloud_trace import CloudTraceSpanExporter

            provider.add_span_processor(
                BatchSpanProcessor(CloudTraceSpanExporter())
            )
        except ImportError:
            logger.warning("gcp_trace_exporter_not_available")
            return
    else:
        logger.warning("unknown_otel_exporter", exporter=exporter_type)
        return

    from opentelemetry import trace

    trace.set_tracer_provider(provider)
    logger.info("otel_configured", exporter=exporter_type)


def build_services(settings: Settings) -> tuple[ArticleOrchestrator, PublishingService]:
    """Create the request-independent service graph from settings.

    The rate-limit counter store is created here, so its lifetime is the
    process lifetime and every request on this process shares it.
    """
    generator = GeminiClient(
        api_key=settings.gemini_api_key.get_secret_value(),
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
        timeout_seconds=settings.generation_timeout_seconds,
    )
    limiter_ = ArticleRateLimiter(
        InMemoryCounterStore(),
        per_minute=settings.rate_limit_per_minute,
        per_day=settings.rate_limit_per_day,
    )
    orchestrator = ArticleOrchestrator(
        generator=generator,
        limiter=limiter_,
        moderator=ContentModerator(settings.moderation_policy),
        settings=settings,
    )

    verifier = SupabaseIdentityVerifier(
        supabase_url=settings.supabase_url,
        anon_key=settings.supabase_anon_key.get_secret_value(),
        cache_ttl_seconds=settings.identity_cache_ttl_seconds,
    )
    publisher = WordPressPublisher(
        base_url=settings.wordpress_base_url,
        username=settings.wordpress_username,
        app_password=settings.wordpress_app_password.get_secret_value(),
        author_id=settings.wordpress_author_id,
        timeout_seconds=settings.publish_timeout_seconds,
    )
    return orchestrator, PublishingService(verifier, publisher)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup and shutdown lifecycle.

    All stateful objects (HTTP clients, rate-limit store) are created here
    and stored in app.state for injection via Depends().
    """
    settings = get_settings()

    otel_exporter = os.environ.get("OTEL_EXPORTER", "")
    if otel_exporter:
        _configure_otel(otel_exporter)

    orchestrator, publishing = build_services(settings)
    app.state.settings = settings
    app.state.article_orchestrator = orchestrator
    app.state.publishing_service = publishing

    if not orchestrator.generator_configured:
        logger.warning("gemini_api_key_missing")
    logger.info("startup_complete", moderation_policy=settings.moderation_policy)

    yield  # App is running, serving requests

    # Shutdown
    for client in (orchestrator.generator, publishing.verifier, publishing.publisher):
        close = getattr(client, "aclose", None)
        if close is not None:
            await close()


def _parse_origins(allowed_origins: str) -> list[str]:
    """Parse comma-separated origin string into a list.

    Returns ``["*"]`` if the input is empty.
    Strips whitespace from each origin.
    """
    if not allowed_origins.strip():
        return ["*"]
    return [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]


def create_app() -> FastAPI:
    """Application factory. Invoked by: uvicorn satire_press.main:create_app --factory

    The --factory flag tells uvicorn to call this function to get the app,
    rather than importing a module-level variable. This avoids side effects
    at import time and makes testing cleaner.
    """
    settings = get_settings()
    configure_logging(log_level=settings.log_level, json_output=settings.log_json)

    app = FastAPI(
        title="Satire Press",
        description="Satirical hospitality article generation and publishing",
        version="0.1.0",
        lifespan=lifespan,
    )

    # ── Attach rate limiter to app state (required by slowapi) ───────────────
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # ── Middleware stack ─────────────────────────────────────────────────────
    # Starlette applies middleware in reverse order of add_middleware calls.
    # Execution order for an incoming request:
    #   CORS → RequestContext → route handler

    app.add_middleware(RequestContextMiddleware)

    origins = _parse_origins(settings.allowed_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    # ── Exception handlers ───────────────────────────────────────────────────
    register_exception_handlers(app, cors_origins=origins)

    # ── Routes ───────────────────────────────────────────────────────────────
    app.include_router(health.router, tags=["health"])
    app.include_router(generate.router, tags=["generate"])
    app.include_router(publish.router, tags=["publish"])

    return app
