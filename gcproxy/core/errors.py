"""Exception hierarchy for the gcproxy API server.

Every error raised along the request path carries enough information to be
rendered as an OpenAI error object: ``{"error": {message, type, code}}``.
"""

from typing import Any


class ProxyError(Exception):
    """Base exception for gcproxy errors."""

    def __init__(
        self,
        message: str,
        error_type: str = "api_error",
        status_code: int = 500,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.status_code = status_code
        self.code = code
        self.details = details or {}

    def to_error_response(self) -> dict[str, Any]:
        """Render the error as an OpenAI error object."""
        error: dict[str, Any] = {"message": self.message, "type": self.error_type}
        if self.code is not None:
            error["code"] = self.code
        return {"error": error}


# === Malformed input ===


class InvalidJSONError(ProxyError):
    """Request body is not parseable JSON (400)."""

    def __init__(self, message: str = "Invalid JSON in request body") -> None:
        super().__init__(
            message=message,
            error_type="invalid_request_error",
            status_code=400,
            code="invalid_json",
        )


class RequestValidationError(ProxyError):
    """Request body does not conform to the chat completion shape (400)."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(
            message=message,
            error_type="invalid_request_error",
            status_code=400,
            code=code,
        )


# === Remote image resolution ===


class ImageFetchError(ProxyError):
    """Base class for failures while resolving an image content item."""

    def __init__(
        self,
        message: str,
        url: str,
        error_type: str = "api_error",
        status_code: int = 502,
        code: str = "image_fetch_failed",
    ) -> None:
        super().__init__(
            message=message,
            error_type=error_type,
            status_code=status_code,
            code=code,
            details={"url": url},
        )
        self.url = url


class InvalidDataUrlError(ImageFetchError):
    """Inline ``data:`` URL could not be decoded (400)."""

    def __init__(self, url: str, reason: str) -> None:
        preview = url if len(url) <= 64 else f"{url[:64]}..."
        super().__init__(
            message=f"Invalid data URL: {preview} ({reason})",
            url=url,
            error_type="invalid_request_error",
            status_code=400,
            code="invalid_image_url",
        )


class ImageFetchStatusError(ImageFetchError):
    """Image server answered with a non-success status."""

    def __init__(self, url: str, http_status: int) -> None:
        super().__init__(
            message=f"Failed to fetch image: {url} (HTTP {http_status})",
            url=url,
        )
        self.http_status = http_status


class ImageTooLargeError(ImageFetchError):
    """Image exceeds the configured byte ceiling (413).

    ``during_download`` distinguishes a rejection based on the declared
    ``Content-Length`` from one raised while the body was being read.
    """

    def __init__(
        self,
        url: str,
        limit: int,
        size: int | None = None,
        during_download: bool = False,
    ) -> None:
        if during_download:
            message = (
                f"Image too large: {url} "
                f"(exceeds {limit} byte limit during download)"
            )
        else:
            message = (
                f"Image too large: {url} ({size} bytes exceeds {limit} byte limit)"
            )
        super().__init__(
            message=message,
            url=url,
            error_type="invalid_request_error",
            status_code=413,
            code="image_too_large",
        )
        self.limit = limit
        self.size = size
        self.during_download = during_download


class ImageFetchTimeoutError(ImageFetchError):
    """Image fetch did not finish within the configured timeout (504)."""

    def __init__(self, url: str, timeout_seconds: float) -> None:
        super().__init__(
            message=f"Image fetch timed out after {timeout_seconds:g}s: {url}",
            url=url,
            status_code=504,
            code="image_fetch_timeout",
        )
        self.timeout_seconds = timeout_seconds


class ImageFetchTransportError(ImageFetchError):
    """Lower-level network failure while fetching an image."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(message=f"Failed to fetch image: {url} ({reason})", url=url)


# === Upstream ===


class ContentBlockedError(ProxyError):
    """Upstream returned no candidates, usually a safety block (400)."""

    def __init__(self, message: str = "No candidates returned.") -> None:
        super().__init__(
            message=message,
            error_type="invalid_request_error",
            status_code=400,
            code="content_filter",
        )


class UpstreamError(ProxyError):
    """Upstream model API answered with an error status (502)."""

    def __init__(self, message: str, upstream_status: int | None = None) -> None:
        super().__init__(
            message=message,
            error_type="api_error",
            status_code=502,
            code="upstream_error",
            details={"upstream_status": upstream_status},
        )
        self.upstream_status = upstream_status


__all__ = [
    "ProxyError",
    "InvalidJSONError",
    "RequestValidationError",
    "ImageFetchError",
    "InvalidDataUrlError",
    "ImageFetchStatusError",
    "ImageTooLargeError",
    "ImageFetchTimeoutError",
    "ImageFetchTransportError",
    "ContentBlockedError",
    "UpstreamError",
]
