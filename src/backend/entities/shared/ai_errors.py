"""Error kinds raised at the model boundary.

Callers map each kind to its own user-facing message, so the classes
must stay distinguishable: unparsable output, timeout, content filter,
network failure and empty output are separate types.
"""

from __future__ import annotations

import asyncio

from azure.core.exceptions import ServiceRequestError, ServiceResponseError


class AiServiceError(Exception):
    """Base class for failures while calling the model."""

    kind = "ai_error"
    user_message = "Error while calling the AI service."


class AiNetworkError(AiServiceError):
    """The model endpoint could not be reached."""

    kind = "ai_network"
    user_message = "Network error while calling the AI service. Please try again."


class AiTimeoutError(AiServiceError):
    """The model call did not finish in time."""

    kind = "ai_timeout"
    user_message = "Timeout while calling the AI service. The model might be overloaded."


class AiContentFilterError(AiServiceError):
    """The request was blocked by the provider's content filter."""

    kind = "ai_content_filter"
    user_message = (
        "The request was blocked by the content filter. "
        "Change the question (avoid overly detailed or sensitive data) and try again."
    )


class AiEmptyResponseError(AiServiceError):
    """The model returned no text."""

    kind = "ai_empty_response"
    user_message = "The AI service returned an empty response."


class AiResponseFormatError(AiServiceError):
    """The model output was not the expected JSON object."""

    kind = "ai_invalid_json"
    user_message = "The AI service returned a response that could not be understood."

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


def _is_content_filter_message(message: str) -> bool:
    lowered = message.lower()
    return "content" in lowered and "filter" in lowered


def translate_ai_error(exc: BaseException) -> AiServiceError:
    """Map an exception raised by the chat client to an error kind.

    Args:
        exc: The exception raised while calling the model.

    Returns:
        The matching ``AiServiceError`` subclass instance (``exc`` itself
        when it already is one).
    """
    if isinstance(exc, AiServiceError):
        return exc
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError)):
        return AiTimeoutError(AiTimeoutError.user_message)
    if isinstance(exc, (ServiceRequestError, ServiceResponseError, ConnectionError)):
        return AiNetworkError(f"{AiNetworkError.user_message} ({exc})")
    if _is_content_filter_message(str(exc)):
        return AiContentFilterError(AiContentFilterError.user_message)
    return AiServiceError(f"Error while calling the AI service: {exc}")
