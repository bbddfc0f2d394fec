# ─────────────────────────────────────────────────────────────────────────────
# HTTP-layer Rate Limiter (slowapi)
# ─────────────────────────────────────────────────────────────────────────────
# Coarse per-client protection for endpoints outside the generation
# pipeline. /generate-article is NOT decorated: its minute/day allowance is
# enforced inside the orchestrator by ArticleRateLimiter so the 429 body
# carries a resetTime.
# ─────────────────────────────────────────────────────────────────────────────


from slowapi import Limiter

from satire_press.config import get_settings
from satire_press.services.rate_limiter import client_id_from_request

limiter = Limiter(key_func=client_id_from_request)


def publish_limit() -> str:
    """Limit string for /upload-to-wordpress, read from settings."""
    return get_settings().publish_rate_limit
