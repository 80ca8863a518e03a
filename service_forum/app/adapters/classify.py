"""
Boundary classification of failed GitHub responses.
"""

from typing import Any, Dict, Iterable, Optional

from shared.errors import RATE_LIMIT_MARKER, RateLimitError

RATE_LIMIT_STATUS_CODES = (403, 429)
RATE_LIMITED_ERROR_TYPE = "RATE_LIMITED"
NOT_FOUND_ERROR_TYPE = "NOT_FOUND"


def _mentions_rate_limit(*texts: Optional[str]) -> bool:
    return any(text and RATE_LIMIT_MARKER in text.lower() for text in texts)


def classify_github_failure(
    status_code: Optional[int],
    body_text: str = "",
    errors: Optional[Iterable[Dict[str, Any]]] = None,
) -> Optional[RateLimitError]:
    """Decide whether a failed GitHub response is a rate-limit failure.

    GitHub reports primary and secondary limits either as a 403/429 with a
    "rate limit" message or, on GraphQL, as a 200 carrying
    ``errors[].type == RATE_LIMITED``. Returns the tagged error, or None for
    any other failure.
    """
    if status_code in RATE_LIMIT_STATUS_CODES and _mentions_rate_limit(body_text):
        return RateLimitError(details={"status_code": status_code})

    for error in errors or []:
        if error.get("type") == RATE_LIMITED_ERROR_TYPE or _mentions_rate_limit(error.get("message")):
            return RateLimitError(
                error.get("message") or "GitHub API rate limit exceeded",
                details={"status_code": status_code},
            )
    return None
