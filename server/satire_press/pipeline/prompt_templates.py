# ─────────────────────────────────────────────────────────────────────────────
# Prompt Templates — article-type briefs for the text generation model
# ─────────────────────────────────────────────────────────────────────────────


from satire_press.pipeline.input_validator import ArticleType

PUBLICATION_NAME = "Hospitality FN"

# ── Category-specific briefs ─────────────────────────────────────────────────
# Selected by articleType and placed after the user's idea.

_ARTICLE_TYPE_BRIEFS: dict[str, str] = {
    ArticleType.BREAKING_NEWS.value: (
        "Create a satirical breaking news article about the hospitality industry. "
        "Focus on fake industry announcements, satirical trends, or parody press releases."
    ),
    ArticleType.GUEST_RELATIONS.value: (
        "Create a satirical guest relations article about the hospitality industry. "
        "Focus on fictional customer complaints, satirical reviews, or "
        '"overheard at the front desk" scenarios.'
    ),
    ArticleType.INDUSTRY_DEEP_DIVES.value: (
        "Create a satirical industry deep dive article about the hospitality industry. "
        "Focus on fake investigations, satirical profiles, or parody trend analyses."
    ),
    ArticleType.TRAVEL_TOURISM.value: (
        "Create a satirical travel & tourism article. "
        "Focus on fake destination guides, satirical travel advisories, or parody announcements."
    ),
}

_INSTRUCTIONS = """Create a satirical article that:
- Uses the user's idea as the foundation for all content
- Is professional satire suitable for a public publication
- Contains NO profanity, violence, illegal content, or discriminatory language
- Does NOT reference real companies or people
- Uses hospitality industry terminology and SEO-friendly keywords
- Is at least 250 words, but no more than 350 words

Respond with a single JSON object and nothing else:
{
  "headline": "A catchy, satirical headline based on the user's idea",
  "article": "The full article (350 words max) based on the user's idea",
  "excerpt": "A 50-word excerpt summarizing the article",
  "socialCaption": "A social media caption with relevant hashtags"
}

Keep the tone satirical but professional. Make it obviously fake/satirical while being entertaining."""


def get_article_brief(article_type: str) -> str:
    """Return the fixed brief for an article type. Raises KeyError if unknown."""
    return _ARTICLE_TYPE_BRIEFS[article_type]


def build_article_prompt(idea: str, article_type: str, max_idea_chars: int = 1000) -> str:
    """Build the generation prompt for a validated request.

    Only the first ``max_idea_chars`` characters of the idea are embedded,
    which bounds the prompt size regardless of input length.

    Args:
        idea: The user's idea, already validated and moderated.
        article_type: One of the ArticleType values.
        max_idea_chars: Truncation limit for the embedded idea.

    Returns:
        The complete prompt string.
    """
    brief = get_article_brief(article_type)
    excerpt = idea[:max_idea_chars]
    return (
        f'You are a professional satirical writer for "{PUBLICATION_NAME}," '
        f"a humor publication about the hospitality industry.\n\n"
        f'Based on this user idea: "{excerpt}"\n\n'
        f"{brief}\n\n"
        f"{_INSTRUCTIONS}"
    )
