# ─────────────────────────────────────────────────────────────────────────────
# POST /generate-article — satirical article generation endpoint (THIN)
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import APIRouter, Depends, Request
from starlette.responses import Response

from satire_press.config import Settings
from satire_press.dependencies import get_orchestrator, get_settings_dep
from satire_press.middleware import preflight_response
from satire_press.schemas import ErrorResponse, GeneratedArticle
from satire_press.services.pipeline import ArticleOrchestrator, IncomingRequest
from satire_press.services.rate_limiter import client_id_from_request

router = APIRouter()


def _declared_length(request: Request) -> int | None:
    try:
        return int(request.headers.get("content-length", ""))
    except ValueError:
        return None


async def _read_body(request: Request, limit: int) -> bytes:
    """Read the body, stopping once it is known to exceed ``limit`` bytes."""
    received = bytearray()
    async for chunk in request.stream():
        received.extend(chunk)
        if len(received) > limit:
            break
    return bytes(received)


@router.post(
    "/generate-article",
    response_model=GeneratedArticle,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def generate_article(
    request: Request,
    orchestrator: ArticleOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_settings_dep),
) -> GeneratedArticle:
    """Generate a satirical article from ``{idea, articleType}``.

    The body is read raw so that size, rate and validation failures all come
    back in the ``{error, code}`` shape instead of FastAPI's 422.
    An oversized declared length skips reading the body entirely, and an
    undeclared one is read only until it passes the ceiling.
    Logic is in the orchestrator. This endpoint is just wiring.
    """
    declared = _declared_length(request)
    if declared is not None and declared > settings.max_payload_bytes:
        body = b""
    else:
        body = await _read_body(request, settings.max_payload_bytes)

    incoming = IncomingRequest(
        client_id=client_id_from_request(request),
        body=body,
        content_length=declared,
    )
    return await orchestrator.generate(incoming)


@router.options("/generate-article", include_in_schema=False)
async def generate_article_preflight() -> Response:
    return preflight_response()
