"""Translation of OpenAI SDK exceptions into ServiceError."""

from typing import Any

import openai

from exceptions import ServiceError


def error_detail(exc: openai.APIError) -> str:
    """Prefer the structured ``error.message`` over the HTTP status line."""
    body: Any = getattr(exc, "body", None)
    if isinstance(body, dict):
        nested = body.get("error")
        if isinstance(nested, dict) and nested.get("message"):
            return str(nested["message"])
        if body.get("message"):
            return str(body["message"])

    if isinstance(exc, openai.APIStatusError):
        reason = exc.response.reason_phrase
        if reason:
            return reason
    return exc.message or type(exc).__name__


def status_text(exc: openai.APIError) -> str:
    """HTTP status line of the response, falling back to the error detail."""
    if isinstance(exc, openai.APIStatusError) and exc.response.reason_phrase:
        return exc.response.reason_phrase
    return error_detail(exc)


def to_service_error(exc: openai.APIError, prefix: str, prefer_structured: bool = True) -> ServiceError:
    detail = error_detail(exc) if prefer_structured else status_text(exc)
    status_code = exc.status_code if isinstance(exc, openai.APIStatusError) else None
    return ServiceError(f"{prefix}: {detail}", status_code=status_code, cause=exc)
