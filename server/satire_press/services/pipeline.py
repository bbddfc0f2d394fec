# ─────────────────────────────────────────────────────────────────────────────
# Article Orchestrator — core generation business logic
# ─────────────────────────────────────────────────────────────────────────────
# Endpoints delegate here. This owns, in order:
#   - Payload size check
#   - Rate limit admission
#   - Schema / bounds validation
#   - Moderation of the submitted idea
#   - Prompt build → text generation call (single attempt, timeout)
#   - Fence stripping + JSON parse + field validation
#   - Moderation of the generated article
#
# Every exit is either a GeneratedArticle or an ArticleError with a code.
# Raw exception text never leaves this module; it goes through
# sanitize_error() first.
# ─────────────────────────────────────────────────────────────────────────────


import asyncio
import json
import re
import time
from dataclasses import dataclass

import structlog
from opentelemetry import trace
from pydantic import ValidationError

from satire_press.config import Settings
from satire_press.exceptions import (
    ArticleError,
    ContentViolationError,
    GenerationError,
    PayloadTooLargeError,
    RateLimitExceededError,
    ServiceError,
    ServiceNotConfiguredError,
    UpstreamServiceError,
    ValidationFailedError,
)
from satire_press.pipeline.content_moderator import ContentModerator
from satire_press.pipeline.input_validator import validate_request
from satire_press.pipeline.prompt_templates import build_article_prompt
from satire_press.schemas import GeneratedArticle, GenerationRequest
from satire_press.services.error_sanitizer import sanitize_error
from satire_press.services.gemini import TextGenerator
from satire_press.services.rate_limiter import ArticleRateLimiter

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\n?|\n?```", re.IGNORECASE)


class GeneratedContentError(Exception):
    """Internal: the model's output could not be turned into an article."""


@dataclass(frozen=True)
class IncomingRequest:
    """Transport-independent view of one generation call."""

    client_id: str
    body: bytes
    content_length: int | None = None


def strip_code_fences(text: str) -> str:
    """Remove markdown ``` / ```json fences around model output."""
    return _FENCE_RE.sub("", text).strip()


def parse_generated_article(raw_text: str) -> GeneratedArticle:
    """Parse model output into a GeneratedArticle, all-or-nothing."""
    cleaned = strip_code_fences(raw_text)
    try:
        data = json.loads(cleaned)
    except ValueError as exc:
        raise GeneratedContentError("Failed to parse JSON from generated content") from exc

    if not isinstance(data, dict):
        raise GeneratedContentError("Generated JSON is not an object")

    try:
        return GeneratedArticle.model_validate(data)
    except ValidationError as exc:
        missing = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
        raise GeneratedContentError(
            f"Generated JSON missing required fields: {', '.join(missing)}"
        ) from exc


class ArticleOrchestrator:
    """Orchestrates: size → rate → validate → moderate → generate → moderate.

    The text generator is injected so tests can substitute a fake; the only
    suspension point is the generator call.
    """

    def __init__(
        self,
        generator: TextGenerator,
        limiter: ArticleRateLimiter,
        moderator: ContentModerator,
        settings: Settings,
    ) -> None:
        self._generator = generator
        self._limiter = limiter
        self._moderator = moderator
        self._settings = settings

    @property
    def generator(self) -> TextGenerator:
        return self._generator

    @property
    def generator_configured(self) -> bool:
        return self._generator.is_configured

    async def generate(self, incoming: IncomingRequest) -> GeneratedArticle:
        """Full pipeline for one request."""
        with tracer.start_as_current_span("generate_article") as span:
            span.set_attribute("client_id", incoming.client_id)
            try:
                return await self._generate_traced(incoming, span)
            except ArticleError as exc:
                span.set_attribute("error_code", exc.code.value)
                raise
            except Exception as exc:
                logger.exception("generation_unexpected_error", client_id=incoming.client_id)
                span.set_attribute("error_code", GenerationError.code.value)
                raise GenerationError(sanitize_error(exc)) from exc

    async def _generate_traced(
        self, incoming: IncomingRequest, span: trace.Span
    ) -> GeneratedArticle:
        start = time.perf_counter()
        client_id = incoming.client_id

        # 1. Size check, before the body is parsed
        size = max(incoming.content_length or 0, len(incoming.body))
        if size > self._settings.max_payload_bytes:
            logger.info("payload_too_large", client_id=client_id, size=size)
            raise PayloadTooLargeError(size, self._settings.max_payload_bytes)

        # 2. Rate limit
        decision = self._limiter.admit(client_id)
        if not decision.allowed:
            logger.info(
                "rate_limit_exceeded",
                client_id=client_id,
                window=decision.limit,
                reset_time=decision.reset_time,
            )
            raise RateLimitExceededError(decision.reset_time)

        # 3. Validation
        try:
            payload = json.loads(incoming.body)
        except ValueError:
            payload = None
        validation = validate_request(
            payload,
            min_length=self._settings.idea_min_length,
            max_length=self._settings.idea_max_length,
        )
        if not validation.valid:
            logger.info("validation_failed", client_id=client_id, errors=validation.errors)
            raise ValidationFailedError(validation.errors)
        request = GenerationRequest.model_validate(payload)
        span.set_attribute("article_type", request.article_type)

        # 4. Input moderation: any violation rejects
        input_check = self._moderator.check(request.idea)
        if not input_check.appropriate:
            logger.info(
                "input_content_rejected",
                client_id=client_id,
                categories=[v.category for v in input_check.findings],
            )
            raise ContentViolationError(input_check.violations)

        # 5. Credential check
        if not self._generator.is_configured:
            logger.error("generator_not_configured")
            raise ServiceNotConfiguredError("gemini")

        # 6. Prompt + external call
        prompt = build_article_prompt(
            request.idea,
            request.article_type,
            max_idea_chars=self._settings.prompt_idea_chars,
        )
        logger.info("generating", client_id=client_id, article_type=request.article_type)
        raw_text = await self._call_generator(prompt)

        # 7. Parse
        try:
            article = parse_generated_article(raw_text)
        except GeneratedContentError as exc:
            logger.warning("generated_content_invalid", client_id=client_id, reason=str(exc))
            raise GenerationError(sanitize_error(exc)) from exc

        # 8. Output moderation
        # Decoded field values, one per line.
        output_text = "\n".join(article.model_dump(by_alias=True).values())
        output_check = self._moderator.check(output_text)
        fatal = self._moderator.fatal_for_output(output_check)
        if fatal:
            logger.warning(
                "generated_content_rejected",
                client_id=client_id,
                categories=[v.category for v in fatal],
            )
            raise GenerationError(sanitize_error("Generated content failed moderation"))
        if output_check.borderline:
            logger.info(
                "generated_content_borderline",
                client_id=client_id,
                categories=[v.category for v in output_check.borderline],
            )

        elapsed = int((time.perf_counter() - start) * 1000)
        span.set_attribute("latency_ms", elapsed)
        logger.info(
            "article_generated",
            client_id=client_id,
            article_type=request.article_type,
            time_ms=elapsed,
        )
        return article

    async def _call_generator(self, prompt: str) -> str:
        timeout = self._settings.generation_timeout_seconds
        with tracer.start_as_current_span("text_generation"):
            try:
                return await asyncio.wait_for(self._generator.complete(prompt), timeout=timeout)
            except TimeoutError as exc:
                logger.warning("text_generation_timeout", timeout_s=timeout)
                raise ServiceError(sanitize_error("External API timeout")) from exc
            except UpstreamServiceError as exc:
                raise ServiceError(sanitize_error(exc)) from exc
