# ─────────────────────────────────────────────────────────────────────────────
# Classified Errors + FastAPI Exception Handlers
# ─────────────────────────────────────────────────────────────────────────────
# Every failure is classified at its origin into one ErrorCode. The handlers
# below are the only place an error becomes an HTTP response.
# ─────────────────────────────────────────────────────────────────────────────


from enum import Enum

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from satire_press.services.error_sanitizer import sanitize_error

logger = structlog.get_logger(__name__)


class ErrorCode(str, Enum):
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONTENT_VIOLATION = "CONTENT_VIOLATION"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    SERVICE_ERROR = "SERVICE_ERROR"
    GENERATION_ERROR = "GENERATION_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"


# ── Exception hierarchy ──────────────────────────────────────────────────────


class ArticleError(Exception):
    """Base exception for all classified service errors.

    ``message`` is outward-facing and must already be safe to show a caller.
    """

    code: ErrorCode = ErrorCode.GENERATION_ERROR
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        details: list[str] | None = None,
        reset_time: int | None = None,
        headers: dict[str, str] | None = None,
        status_code: int | None = None,
    ):
        self.message = message
        self.details = details
        self.reset_time = reset_time
        self.headers = headers or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_body(self) -> dict:
        body: dict = {"error": self.message, "code": self.code.value}
        if self.details:
            body["details"] = list(self.details)
        if self.reset_time is not None:
            body["resetTime"] = self.reset_time
        return body


class PayloadTooLargeError(ArticleError):
    """Raised when the declared or actual body size exceeds the ceiling."""

    code = ErrorCode.PAYLOAD_TOO_LARGE
    status_code = 413

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__("Request payload too large")


class RateLimitExceededError(ArticleError):
    """Raised when a client exceeds its minute or day allowance."""

    code = ErrorCode.RATE_LIMIT_EXCEEDED
    status_code = 429

    def __init__(self, reset_time: int | None, retry_after: int = 60):
        super().__init__(
            "Rate limit exceeded",
            reset_time=reset_time,
            headers={"Retry-After": str(retry_after)},
        )


class ValidationFailedError(ArticleError):
    """Raised when the request payload fails schema or bounds checks."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400

    def __init__(self, errors: list[str], message: str = "Invalid input data"):
        super().__init__(message, details=errors)


class ContentViolationError(ArticleError):
    """Raised when submitted text trips the content moderator."""

    code = ErrorCode.CONTENT_VIOLATION
    status_code = 400

    def __init__(self, violations: list[str]):
        super().__init__("Content does not meet community guidelines", details=violations)


class ServiceError(ArticleError):
    """Raised when configuration or an upstream service prevents progress."""

    code = ErrorCode.SERVICE_ERROR
    status_code = 500


class ServiceNotConfiguredError(ServiceError):
    """Raised when a required credential is missing."""

    def __init__(self, service: str):
        self.service = service
        super().__init__("Service configuration error")


class GenerationError(ArticleError):
    """Raised when generated content cannot be parsed or is rejected."""

    code = ErrorCode.GENERATION_ERROR
    status_code = 500


class AuthenticationError(ArticleError):
    """Raised when the caller's identity cannot be verified."""

    code = ErrorCode.AUTHENTICATION_ERROR
    status_code = 401

    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


# ── Upstream failures (internal, never reach a caller unclassified) ─────────


class UpstreamServiceError(Exception):
    """Raised by outbound clients when a third-party call fails."""


class UpstreamTimeoutError(UpstreamServiceError):
    """Raised by outbound clients when a third-party call times out."""


# ── Handler registration ────────────────────────────────────────────────────


def _cors_headers(request: Request, origins: list[str]) -> dict[str, str]:
    if "*" in origins:
        return {"Access-Control-Allow-Origin": "*"}
    origin = request.headers.get("origin")
    if origin in origins:
        return {"Access-Control-Allow-Origin": origin, "Vary": "Origin"}
    return {}


def register_exception_handlers(app: FastAPI, cors_origins: list[str] | None = None) -> None:
    """Register all custom exception handlers on the FastAPI app.

    Endpoints raise ArticleError subclasses; these handlers catch them
    and return structured JSON. No inline try/except in endpoints.

    The catch-all handler runs outside CORSMiddleware, so it adds the
    allow-origin header itself from ``cors_origins``.
    """
    origins = cors_origins if cors_origins is not None else ["*"]

    @app.exception_handler(ArticleError)
    async def article_error_handler(request: Request, exc: ArticleError) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "request_rejected",
            code=exc.code.value,
            status=exc.status_code,
            path=request.url.path,
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_body(),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = [
            f"{'.'.join(str(part) for part in err['loc'] if part != 'body') or 'body'}: {err['msg']}"
            for err in exc.errors()
        ]
        logger.info("request_rejected", code=ErrorCode.VALIDATION_ERROR.value, path=request.url.path)
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid input data",
                "code": ErrorCode.VALIDATION_ERROR.value,
                "details": details,
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_error", error_type=type(exc).__name__, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": sanitize_error(exc), "code": ErrorCode.GENERATION_ERROR.value},
            headers=_cors_headers(request, origins),
        )
