# ─────────────────────────────────────────────────────────────────────────────
# POST /upload-to-wordpress — publish a generated article as a draft (THIN)
# ─────────────────────────────────────────────────────────────────────────────


import json

from fastapi import APIRouter, Depends, Header, Request
from starlette.responses import Response

from satire_press.dependencies import get_publishing_service
from satire_press.middleware import preflight_response
from satire_press.rate_limit import limiter, publish_limit
from satire_press.schemas import ErrorResponse, PublishRequest, PublishResponse
from satire_press.services.publisher import PublishingService

router = APIRouter()


@router.post(
    "/upload-to-wordpress",
    response_model=PublishResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": PublishRequest.model_json_schema()}},
        }
    },
)
@limiter.limit(publish_limit)
async def upload_to_wordpress(
    request: Request,
    authorization: str | None = Header(default=None),
    service: PublishingService = Depends(get_publishing_service),
) -> PublishResponse:
    """Create a WordPress draft for the authenticated user.

    Requires ``Authorization: Bearer <supabase access token>``. The body is
    decoded here but only validated after the caller is verified.
    """
    try:
        payload = json.loads(await request.body())
    except ValueError:
        payload = None
    post = await service.publish(authorization, payload)
    return PublishResponse(post_id=post.post_id, edit_url=post.edit_url)


@router.options("/upload-to-wordpress", include_in_schema=False)
async def upload_to_wordpress_preflight() -> Response:
    return preflight_response()
