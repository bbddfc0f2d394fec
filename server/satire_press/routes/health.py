# ─────────────────────────────────────────────────────────────────────────────
# Health Check Routes — liveness and readiness
# ─────────────────────────────────────────────────────────────────────────────
#   /health        → Liveness probe. "Is the process alive?" Near-zero cost.
#   /health/ready  → Readiness probe. "Can it serve traffic?"
#                    503 until the text generation credential is configured.
# ─────────────────────────────────────────────────────────────────────────────

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from satire_press.dependencies import get_orchestrator, get_publishing_service
from satire_press.schemas import LivenessResponse, ReadinessResponse
from satire_press.services.pipeline import ArticleOrchestrator
from satire_press.services.publisher import PublishingService

router = APIRouter()


@router.get("/health", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe — no deps, no I/O."""
    return LivenessResponse(status="ok")


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness(
    orchestrator: ArticleOrchestrator = Depends(get_orchestrator),
    publishing: PublishingService = Depends(get_publishing_service),
) -> JSONResponse:
    """Readiness probe — can this instance generate articles?

    Publishing credentials are reported but do not gate readiness.
    """
    ready = orchestrator.generator_configured
    response = ReadinessResponse(
        status="ready" if ready else "not_ready",
        generator_configured=ready,
        publisher_configured=publishing.publisher_configured,
    )
    return JSONResponse(
        status_code=200 if ready else 503,
        content=response.model_dump(),
    )
