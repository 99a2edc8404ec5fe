"""Validation of untrusted chat completion request bodies.

Rules are checked in a fixed order and the first failure wins; errors are
never aggregated so clients always get a single, specific cause.
"""

from typing import Any
from urllib.parse import urlsplit

from pydantic import ValidationError

from gcproxy.core.errors import RequestValidationError
from gcproxy.models.openai import ChatCompletionRequest
from gcproxy.models.types import VALID_MESSAGE_ROLES


def is_valid_url(value: str) -> bool:
    """Check that ``value`` is a syntactically valid absolute URL.

    Any scheme is accepted (``data:`` URLs included); http(s) URLs must also
    name a host.
    """
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    if not parts.scheme:
        return False
    if parts.scheme in ("http", "https"):
        return bool(parts.hostname)
    return bool(value[len(parts.scheme) + 1 :])


def _validate_content_item(item: Any, path: str) -> None:
    if not isinstance(item, dict) or not isinstance(item.get("type"), str):
        raise RequestValidationError(
            f"{path}.type is required", "missing_required_parameter"
        )

    if item["type"] == "text" and not isinstance(item.get("text"), str):
        raise RequestValidationError(
            f'{path}.text must be a string for type "text"', "invalid_type"
        )

    if item["type"] == "image_url":
        image_url = item.get("image_url")
        url = image_url.get("url") if isinstance(image_url, dict) else None
        if not isinstance(url, str):
            raise RequestValidationError(
                f'{path}.image_url.url is required for type "image_url"',
                "missing_required_parameter",
            )
        if not is_valid_url(url):
            raise RequestValidationError(
                f"{path}.image_url.url is not a valid URL", "invalid_value"
            )


def _validate_messages(messages: Any) -> None:
    if not isinstance(messages, list):
        raise RequestValidationError(
            "messages is required and must be an array",
            "missing_required_parameter",
        )

    if not messages:
        raise RequestValidationError(
            "messages must contain at least one message", "invalid_value"
        )

    for i, msg in enumerate(messages):
        path = f"messages[{i}]"
        role = msg.get("role") if isinstance(msg, dict) else None
        if not isinstance(role, str):
            raise RequestValidationError(
                f"{path}.role is required and must be a string", "invalid_type"
            )

        if role not in VALID_MESSAGE_ROLES:
            raise RequestValidationError(
                f"{path}.role must be one of: {', '.join(VALID_MESSAGE_ROLES)}",
                "invalid_value",
            )

        content = msg.get("content")
        if content is None:
            raise RequestValidationError(
                f"{path}.content is required", "missing_required_parameter"
            )

        if not isinstance(content, str | list):
            raise RequestValidationError(
                f"{path}.content must be a string or array", "invalid_type"
            )

        if isinstance(content, list):
            for j, item in enumerate(content):
                _validate_content_item(item, f"{path}.content[{j}]")


def _format_location(loc: tuple[int | str, ...]) -> str:
    path = ""
    for segment in loc:
        if isinstance(segment, int):
            path += f"[{segment}]"
        else:
            path += f".{segment}" if path else str(segment)
    return path


def validate_chat_request(body: Any) -> ChatCompletionRequest:
    """Validate a parsed request body against the chat completion shape.

    Args:
        body: Result of JSON-decoding the request body

    Returns:
        The typed request

    Raises:
        RequestValidationError: On the first rule the body violates
    """
    if not isinstance(body, dict):
        raise RequestValidationError("Request body must be a JSON object")

    _validate_messages(body.get("messages"))

    try:
        return ChatCompletionRequest.model_validate(body)
    except ValidationError as e:
        first = e.errors()[0]
        location = _format_location(tuple(first["loc"]))
        raise RequestValidationError(
            f"{location}: {first['msg']}", "invalid_type"
        ) from e
