# ─────────────────────────────────────────────────────────────────────────────
# Input Validator — schema and bounds checks on the generation payload
# ─────────────────────────────────────────────────────────────────────────────
# Errors are data, not control flow: validate_request never raises.
# The checks are independent, so one payload can collect several errors.
# ─────────────────────────────────────────────────────────────────────────────


from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ArticleType(str, Enum):
    BREAKING_NEWS = "breaking-news"
    GUEST_RELATIONS = "guest-relations"
    INDUSTRY_DEEP_DIVES = "industry-deep-dives"
    TRAVEL_TOURISM = "travel-tourism"


ALLOWED_ARTICLE_TYPES: frozenset[str] = frozenset(t.value for t in ArticleType)

IDEA_MIN_LENGTH = 100
IDEA_MAX_LENGTH = 5000


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def validate_request(
    payload: Any,
    min_length: int = IDEA_MIN_LENGTH,
    max_length: int = IDEA_MAX_LENGTH,
) -> ValidationResult:
    """Check a decoded ``{idea, articleType}`` payload."""
    result = ValidationResult()

    if not isinstance(payload, dict):
        result.errors.append("Request body must be a JSON object")
        return result

    idea = payload.get("idea")
    article_type = payload.get("articleType")

    if not idea or not isinstance(idea, str):
        result.errors.append("Idea is required and must be a string")

    if not article_type or not isinstance(article_type, str):
        result.errors.append("Article type is required and must be a string")

    if isinstance(idea, str) and idea and not min_length <= len(idea) <= max_length:
        result.errors.append(
            f"Idea must be between {min_length} and {max_length} characters"
        )

    if isinstance(article_type, str) and article_type and article_type not in ALLOWED_ARTICLE_TYPES:
        result.errors.append("Invalid article type")

    return result
