# ─────────────────────────────────────────────────────────────────────────────
# Article Rate Limiter — per-client fixed windows (minute + day)
# ─────────────────────────────────────────────────────────────────────────────
# The counter store is created in the app lifespan and injected, so its
# lifetime is the process lifetime. Nothing is persisted: a restart resets
# every counter.
#
# Keys are (client_id, window_size_ms, window_index) where
# window_index = now_ms // window_size_ms. Keys whose window started more
# than 24h ago are pruned on every check.
# ─────────────────────────────────────────────────────────────────────────────


import threading
import time
from dataclasses import dataclass
from typing import Callable

import structlog
from starlette.requests import Request

logger = structlog.get_logger(__name__)

MINUTE_MS = 60_000
DAY_MS = 86_400_000
RETENTION_MS = DAY_MS

UNKNOWN_CLIENT = "unknown"

CounterKey = tuple[str, int, int]


def client_id_from_request(request: Request) -> str:
    """Derive the rate-limit client id from forwarded-IP headers.

    First entry of X-Forwarded-For, then CF-Connecting-IP, else "unknown".
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    return request.headers.get("cf-connecting-ip", "").strip() or UNKNOWN_CLIENT


class InMemoryCounterStore:
    """Process-local counter table. Not thread-safe on its own.

    Callers serialize access; ArticleRateLimiter holds its lock around
    every read-modify-write.
    """

    def __init__(self) -> None:
        self._counts: dict[CounterKey, int] = {}

    def get(self, key: CounterKey) -> int:
        return self._counts.get(key, 0)

    def increment(self, key: CounterKey) -> int:
        self._counts[key] = self._counts.get(key, 0) + 1
        return self._counts[key]

    def prune(self, older_than_ms: int) -> int:
        """Drop keys whose window started before ``older_than_ms``."""
        stale = [
            key for key in self._counts if key[1] * key[2] < older_than_ms
        ]
        for key in stale:
            del self._counts[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._counts)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    reset_time: int | None = None  # epoch ms of the next window start
    limit: str | None = None  # "minute" | "day" when rejected


class ArticleRateLimiter:
    """Admits at most ``per_minute`` requests per minute window and
    ``per_day`` per day window for each client."""

    def __init__(
        self,
        store: InMemoryCounterStore,
        per_minute: int = 5,
        per_day: int = 20,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._per_minute = per_minute
        self._per_day = per_day
        self._clock = clock
        self._lock = threading.Lock()

    def admit(self, client_id: str) -> RateLimitDecision:
        now_ms = int(self._clock() * 1000)
        minute_key: CounterKey = (client_id, MINUTE_MS, now_ms // MINUTE_MS)
        day_key: CounterKey = (client_id, DAY_MS, now_ms // DAY_MS)

        with self._lock:
            pruned = self._store.prune(now_ms - RETENTION_MS)
            if pruned:
                logger.debug("rate_limit_pruned", keys=pruned)

            if self._store.get(minute_key) >= self._per_minute:
                return RateLimitDecision(
                    allowed=False,
                    reset_time=(minute_key[2] + 1) * MINUTE_MS,
                    limit="minute",
                )
            if self._store.get(day_key) >= self._per_day:
                return RateLimitDecision(
                    allowed=False,
                    reset_time=(day_key[2] + 1) * DAY_MS,
                    limit="day",
                )

            self._store.increment(minute_key)
            self._store.increment(day_key)

        return RateLimitDecision(allowed=True)
