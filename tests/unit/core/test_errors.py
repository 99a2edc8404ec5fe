"""Tests for the error hierarchy and its OpenAI rendering."""

import pytest

from gcproxy.core.errors import (
    ContentBlockedError,
    ImageFetchError,
    ImageFetchTimeoutError,
    ImageTooLargeError,
    InvalidJSONError,
    ProxyError,
    RequestValidationError,
    UpstreamError,
)


@pytest.mark.unit
class TestProxyErrors:
    def test_code_is_omitted_when_absent(self) -> None:
        error = RequestValidationError("Request body must be a JSON object")
        assert error.to_error_response() == {
            "error": {
                "message": "Request body must be a JSON object",
                "type": "invalid_request_error",
            }
        }

    @pytest.mark.parametrize(
        ("error", "status", "error_type", "code"),
        [
            (InvalidJSONError(), 400, "invalid_request_error", "invalid_json"),
            (
                ImageTooLargeError("https://a.test/x", 10, size=20),
                413,
                "invalid_request_error",
                "image_too_large",
            ),
            (
                ImageFetchTimeoutError("https://a.test/x", 120.0),
                504,
                "api_error",
                "image_fetch_timeout",
            ),
            (ContentBlockedError(), 400, "invalid_request_error", "content_filter"),
            (UpstreamError("boom", 500), 502, "api_error", "upstream_error"),
        ],
    )
    def test_classification(
        self, error: ProxyError, status: int, error_type: str, code: str
    ) -> None:
        assert error.status_code == status
        assert error.to_error_response()["error"]["type"] == error_type
        assert error.to_error_response()["error"]["code"] == code

    def test_image_errors_keep_the_url(self) -> None:
        error = ImageFetchTimeoutError("https://a.test/x", 1.5)
        assert isinstance(error, ImageFetchError)
        assert error.url == "https://a.test/x"
        assert error.message == "Image fetch timed out after 1.5s: https://a.test/x"
