# ─────────────────────────────────────────────────────────────────────────────
# Error Sanitizer — maps internal failure detail to a fixed outward message
# ─────────────────────────────────────────────────────────────────────────────
# Nothing from an exception's text is ever returned: only one of three
# constant messages. Upstream bodies, credentials and tracebacks stay in logs.
# ─────────────────────────────────────────────────────────────────────────────


SERVICE_UNAVAILABLE_MESSAGE = "External service temporarily unavailable"
GENERATION_FAILED_MESSAGE = "Content generation failed"
GENERIC_ERROR_MESSAGE = "An error occurred while processing your request"


def sanitize_error(error: BaseException | str | None) -> str:
    """Return the outward message for an internal error.

    Matching is on the internal message text:
    ``API`` → service unavailable, ``parse``/``JSON`` → generation failed,
    anything else → generic.
    """
    message = error if isinstance(error, str) else str(error or "")

    if "API" in message:
        return SERVICE_UNAVAILABLE_MESSAGE
    if "parse" in message or "JSON" in message:
        return GENERATION_FAILED_MESSAGE
    return GENERIC_ERROR_MESSAGE
