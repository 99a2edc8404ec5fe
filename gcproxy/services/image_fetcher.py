"""Resolution of image references into base64 inline data.

Two input forms are supported:

- ``data:`` URLs are decoded locally; they never touch the network and are
  not size limited (the caller already holds the bytes).
- Network URLs are downloaded with a hard timeout and a hard byte ceiling.
  The ceiling is enforced against ``Content-Length`` before the body is read
  and against the running total while streaming, so a server that omits or
  lies about the length is cut off as soon as the limit is crossed.
"""

import asyncio
import base64
import binascii
from urllib.parse import unquote_to_bytes

import httpx

from gcproxy.config.gemini import ImageFetchSettings
from gcproxy.core.errors import (
    ImageFetchStatusError,
    ImageFetchTimeoutError,
    ImageFetchTransportError,
    ImageTooLargeError,
    InvalidDataUrlError,
)
from gcproxy.core.logging import get_logger
from gcproxy.models.gemini import InlineData


logger = get_logger(__name__)

# Content types accepted without a warning. Anything else is still accepted:
# image hosts routinely serve valid images under unlisted or generic types.
ALLOWED_CONTENT_TYPES: tuple[str, ...] = (
    "image/png",
    "image/jpeg",
    "image/gif",
    "image/webp",
    "image/svg+xml",
)

DEFAULT_IMAGE_MIME_TYPE = "image/png"
DEFAULT_DATA_URL_MIME_TYPE = "text/plain;charset=US-ASCII"


def is_data_url(url: str) -> bool:
    return url[:5].lower() == "data:"


def decode_data_url(url: str) -> InlineData:
    """Decode a ``data:<mime>[;base64],<payload>`` URL without network access.

    Non-base64 payloads are percent-decoded and re-encoded to base64.

    Raises:
        InvalidDataUrlError: If the URL is malformed or the payload is not valid base64
    """
    header, sep, payload = url[5:].partition(",")
    if not sep:
        raise InvalidDataUrlError(url, "missing ',' separator")

    params = [param.strip() for param in header.split(";")]
    is_base64 = len(params) > 1 and params[-1].lower() == "base64"
    mime_type = params[0] or DEFAULT_DATA_URL_MIME_TYPE

    if is_base64:
        compact = "".join(unquote_to_bytes(payload).decode("ascii", "replace").split())
        try:
            raw = base64.b64decode(compact, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidDataUrlError(url, f"invalid base64 payload: {e}") from e
    else:
        raw = unquote_to_bytes(payload)

    return InlineData(mime_type=mime_type, data=base64.b64encode(raw).decode("ascii"))


class ImageFetcher:
    """Fetches image references and returns them as base64 inline data."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: ImageFetchSettings | None = None,
    ) -> None:
        self._client = client
        self.settings = settings or ImageFetchSettings()

    @property
    def timeout_seconds(self) -> float:
        return self.settings.timeout_seconds

    @property
    def max_size_bytes(self) -> int:
        return self.settings.max_size_bytes

    async def fetch(self, url: str) -> InlineData:
        """Resolve ``url`` to inline data.

        Raises:
            ImageFetchError: Subclass describing why the image could not be resolved
        """
        if is_data_url(url):
            return decode_data_url(url)
        return await self._fetch_remote(url)

    async def _fetch_remote(self, url: str) -> InlineData:
        logger.debug("image_fetch_started", url=url, category="image")
        try:
            async with asyncio.timeout(self.timeout_seconds):
                async with self._client.stream(
                    "GET",
                    url,
                    timeout=self.timeout_seconds,
                    follow_redirects=True,
                ) as response:
                    return await self._read_response(url, response)
        except (TimeoutError, httpx.TimeoutException) as e:
            logger.warning(
                "image_fetch_timeout",
                url=url,
                timeout_seconds=self.timeout_seconds,
                category="image",
            )
            raise ImageFetchTimeoutError(url, self.timeout_seconds) from e
        except httpx.HTTPError as e:
            logger.warning(
                "image_fetch_transport_error", url=url, error=str(e), category="image"
            )
            raise ImageFetchTransportError(url, str(e) or type(e).__name__) from e

    async def _read_response(self, url: str, response: httpx.Response) -> InlineData:
        if not response.is_success:
            raise ImageFetchStatusError(url, response.status_code)

        limit = self.max_size_bytes
        declared = _declared_length(response)
        if declared is not None and declared > limit:
            raise ImageTooLargeError(url, limit, size=declared)

        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        if content_type and not content_type.lower().startswith(ALLOWED_CONTENT_TYPES):
            logger.warning(
                "image_unexpected_content_type",
                url=url,
                content_type=content_type,
                category="image",
            )

        chunks: list[bytes] = []
        total = 0
        async for chunk in response.aiter_bytes():
            total += len(chunk)
            if total > limit:
                # Leaving the stream context closes the connection mid-transfer
                raise ImageTooLargeError(url, limit, during_download=True)
            chunks.append(chunk)

        logger.debug(
            "image_fetch_completed",
            url=url,
            size=total,
            content_type=content_type or None,
            category="image",
        )
        return InlineData(
            mime_type=content_type or DEFAULT_IMAGE_MIME_TYPE,
            data=base64.b64encode(b"".join(chunks)).decode("ascii"),
        )


def _declared_length(response: httpx.Response) -> int | None:
    value = response.headers.get("content-length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
