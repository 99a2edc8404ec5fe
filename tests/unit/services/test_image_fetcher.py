"""Tests for remote and inline image resolution."""

import asyncio
import base64
from collections.abc import AsyncIterator

import httpx
import pytest
from structlog.testing import capture_logs
from tests.helpers.fakes import mock_transport_client

from gcproxy.config.gemini import ImageFetchSettings
from gcproxy.core.errors import (
    ImageFetchStatusError,
    ImageFetchTimeoutError,
    ImageFetchTransportError,
    ImageTooLargeError,
    InvalidDataUrlError,
)
from gcproxy.services.image_fetcher import ImageFetcher, decode_data_url


LIMIT = 1024
IMAGE_URL = "https://images.example.com/cat.png"


class TrackingStream(httpx.AsyncByteStream):
    """Response body that records whether anything consumed it."""

    def __init__(self, chunks: list[bytes]) -> None:
        self.chunks = chunks
        self.consumed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        self.consumed = True
        for piece in self.chunks:
            yield piece


def _fetcher(client: httpx.AsyncClient, timeout: float = 2.0) -> ImageFetcher:
    return ImageFetcher(
        client, ImageFetchSettings(timeout_seconds=timeout, max_size_bytes=LIMIT)
    )


@pytest.mark.unit
class TestDataUrls:
    async def test_data_url_never_touches_the_network(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, content=b"")

        async with mock_transport_client(handler) as client:
            inline = await _fetcher(client).fetch("data:image/jpeg;base64,/9j/4AAQ")

        assert calls == []
        assert inline.mime_type == "image/jpeg"
        assert inline.data == "/9j/4AAQ"

    def test_data_url_is_not_size_limited(self) -> None:
        payload = base64.b64encode(b"x" * (LIMIT * 4)).decode()
        inline = decode_data_url(f"data:image/png;base64,{payload}")
        assert base64.b64decode(inline.data) == b"x" * (LIMIT * 4)

    def test_percent_encoded_payload_is_reencoded(self) -> None:
        inline = decode_data_url("data:text/plain,hello%20world")
        assert inline.mime_type == "text/plain"
        assert base64.b64decode(inline.data) == b"hello world"

    def test_missing_mime_type_uses_data_url_default(self) -> None:
        inline = decode_data_url("data:;base64,aGk=")
        assert inline.mime_type == "text/plain;charset=US-ASCII"

    def test_invalid_base64_payload(self) -> None:
        with pytest.raises(InvalidDataUrlError) as exc_info:
            decode_data_url("data:image/png;base64,@@not-base64@@")
        assert exc_info.value.status_code == 400
        assert exc_info.value.code == "invalid_image_url"

    def test_missing_separator(self) -> None:
        with pytest.raises(InvalidDataUrlError):
            decode_data_url("data:image/png;base64")


@pytest.mark.unit
class TestRemoteFetch:
    async def test_fetches_and_encodes_image(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(
                200, headers={"content-type": "image/webp"}, content=b"RIFFdata"
            )

        async with mock_transport_client(handler) as client:
            inline = await _fetcher(client).fetch(IMAGE_URL)

        assert len(calls) == 1
        assert str(calls[0].url) == IMAGE_URL
        assert inline.mime_type == "image/webp"
        assert base64.b64decode(inline.data) == b"RIFFdata"

    async def test_missing_content_type_defaults_to_png(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, stream=TrackingStream([b"\x89PNG"]))

        async with mock_transport_client(handler) as client:
            inline = await _fetcher(client).fetch(IMAGE_URL)

        assert inline.mime_type == "image/png"

    async def test_unexpected_content_type_is_logged_and_accepted(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                headers={"content-type": "application/octet-stream"},
                content=b"bytes",
            )

        async with mock_transport_client(handler) as client:
            with capture_logs() as logs:
                inline = await _fetcher(client).fetch(IMAGE_URL)

        assert inline.mime_type == "application/octet-stream"
        assert any(
            entry["event"] == "image_unexpected_content_type"
            and entry["content_type"] == "application/octet-stream"
            for entry in logs
        )

    async def test_declared_length_over_limit_fails_before_reading_body(self) -> None:
        stream = TrackingStream([b"x" * 100])

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                headers={"content-type": "image/png", "content-length": str(LIMIT * 4)},
                stream=stream,
            )

        async with mock_transport_client(handler) as client:
            with pytest.raises(ImageTooLargeError) as exc_info:
                await _fetcher(client).fetch(IMAGE_URL)

        error = exc_info.value
        assert stream.consumed is False
        assert error.during_download is False
        assert error.size == LIMIT * 4
        assert error.status_code == 413
        assert error.code == "image_too_large"
        assert "bytes exceeds 1024 byte limit" in error.message

    async def test_undeclared_length_over_limit_fails_during_download(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                headers={"content-type": "image/png"},
                stream=TrackingStream([b"x" * 600, b"x" * 600, b"x" * 600]),
            )

        async with mock_transport_client(handler) as client:
            with pytest.raises(ImageTooLargeError) as exc_info:
                await _fetcher(client).fetch(IMAGE_URL)

        assert exc_info.value.during_download is True
        assert "during download" in exc_info.value.message

    async def test_exactly_at_limit_is_accepted(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, headers={"content-type": "image/png"}, content=b"x" * LIMIT
            )

        async with mock_transport_client(handler) as client:
            inline = await _fetcher(client).fetch(IMAGE_URL)

        assert len(base64.b64decode(inline.data)) == LIMIT

    async def test_non_success_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, content=b"missing")

        async with mock_transport_client(handler) as client:
            with pytest.raises(ImageFetchStatusError) as exc_info:
                await _fetcher(client).fetch(IMAGE_URL)

        error = exc_info.value
        assert error.http_status == 404
        assert error.status_code == 502
        assert error.code == "image_fetch_failed"
        assert error.url == IMAGE_URL
        assert "HTTP 404" in error.message

    async def test_transport_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        async with mock_transport_client(handler) as client:
            with pytest.raises(ImageFetchTimeoutError) as exc_info:
                await _fetcher(client).fetch(IMAGE_URL)

        assert exc_info.value.status_code == 504
        assert exc_info.value.code == "image_fetch_timeout"

    async def test_overall_deadline(self) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, content=b"late")

        async with mock_transport_client(handler) as client:
            with pytest.raises(ImageFetchTimeoutError) as exc_info:
                await _fetcher(client, timeout=0.05).fetch(IMAGE_URL)

        assert exc_info.value.message == (
            f"Image fetch timed out after 0.05s: {IMAGE_URL}"
        )

    async def test_connection_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with mock_transport_client(handler) as client:
            with pytest.raises(ImageFetchTransportError) as exc_info:
                await _fetcher(client).fetch(IMAGE_URL)

        assert exc_info.value.status_code == 502
        assert "connection refused" in exc_info.value.message
