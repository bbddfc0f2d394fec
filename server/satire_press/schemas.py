# ─────────────────────────────────────────────────────────────────────────────
# Pydantic Schemas — request / response bodies
# ─────────────────────────────────────────────────────────────────────────────
# Wire format is camelCase (socialCaption, articleType, postId); Python
# attributes are snake_case. populate_by_name lets both spellings in.
# ─────────────────────────────────────────────────────────────────────────────


from pydantic import BaseModel, ConfigDict, Field, field_validator


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class GenerationRequest(_CamelModel):
    """A payload that already passed validate_request()."""

    idea: str
    article_type: str = Field(alias="articleType")


class GeneratedArticle(_CamelModel):
    """Structured article returned by the generation model.

    All four fields must be non-blank strings; the 250–350 word target for
    ``article`` is requested in the prompt, not enforced here.
    """

    headline: str
    article: str
    excerpt: str
    social_caption: str = Field(alias="socialCaption")

    @field_validator("headline", "article", "excerpt", "social_caption", mode="before")
    @classmethod
    def _non_blank_string(cls, value: object) -> object:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("must be a non-empty string")
        return value


class PublishRequest(_CamelModel):
    headline: str | None = None
    article: str | None = None
    excerpt: str | None = None


class PublishResponse(_CamelModel):
    success: bool = True
    post_id: int = Field(alias="postId")
    edit_url: str = Field(alias="editUrl")


class ErrorResponse(BaseModel):
    error: str
    code: str
    details: list[str] | None = None
    resetTime: int | None = None


class LivenessResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    status: str
    generator_configured: bool
    publisher_configured: bool
