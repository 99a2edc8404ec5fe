"""Tests for chat completion orchestration."""

import json
from typing import Any

import pytest
from tests.helpers.fakes import FakeImageResolver, FakeModelClient, chunk, text, thought

from gcproxy.core.errors import ImageFetchStatusError, UpstreamError
from gcproxy.formatters.validation import validate_chat_request
from gcproxy.models.gemini import InlineData
from gcproxy.services.chat_service import ChatService


def _request(**fields: Any) -> Any:
    return validate_chat_request(
        {"messages": [{"role": "user", "content": "Hi"}], **fields}
    )


async def _collect(service: ChatService, **fields: Any) -> list[str]:
    events = await service.stream_chat(_request(stream=True, **fields))
    return [event async for event in events]


def _payloads(events: list[str]) -> list[Any]:
    payloads = []
    for event in events:
        assert event.startswith("data: ") and event.endswith("\n\n")
        data = event[len("data: ") : -2]
        payloads.append(data if data == "[DONE]" else json.loads(data))
    return payloads


@pytest.mark.unit
class TestComplete:
    async def test_maps_request_and_response(
        self, image_resolver: FakeImageResolver
    ) -> None:
        client = FakeModelClient()
        service = ChatService(client, image_resolver)

        result = await service.complete(_request(temperature=0.3))

        assert result.model == "gemini-test"
        assert result.choices[0].message.content == "Hello from Gemini"
        assert result.usage.total_tokens == 8
        assert client.requests[0].generation_config.temperature == 0.3


@pytest.mark.unit
class TestStreamChat:
    async def test_events_end_with_done(self, image_resolver: FakeImageResolver) -> None:
        client = FakeModelClient(chunks=[chunk(text("Hel")), chunk(text("lo"))])
        service = ChatService(client, image_resolver)

        payloads = _payloads(await _collect(service))

        assert [p["choices"][0]["delta"]["content"] for p in payloads[:-1]] == [
            "Hel",
            "lo",
        ]
        assert payloads[-1] == "[DONE]"
        assert len({p["id"] for p in payloads[:-1]}) == 1

    async def test_open_reasoning_is_closed_at_end_of_stream(
        self, image_resolver: FakeImageResolver
    ) -> None:
        client = FakeModelClient(chunks=[chunk(thought("a")), chunk(thought("b"))])
        service = ChatService(client, image_resolver)

        payloads = _payloads(await _collect(service))

        contents = [p["choices"][0]["delta"].get("content") for p in payloads[:-1]]
        assert contents == ["<think>a", "b", "</think>"]
        assert payloads[-1] == "[DONE]"

    async def test_closed_reasoning_adds_no_extra_chunk(
        self, image_resolver: FakeImageResolver
    ) -> None:
        client = FakeModelClient(chunks=[chunk(thought("a"), text("b"))])
        service = ChatService(client, image_resolver)

        payloads = _payloads(await _collect(service))

        assert len(payloads) == 2
        assert payloads[0]["choices"][0]["delta"]["content"] == "<think>a</think>b"

    async def test_upstream_failure_mid_stream(
        self, image_resolver: FakeImageResolver
    ) -> None:
        client = FakeModelClient(
            chunks=[chunk(text("partial"))],
            stream_error=UpstreamError("Gemini API error (HTTP 503): overloaded", 503),
        )
        service = ChatService(client, image_resolver)

        payloads = _payloads(await _collect(service))

        assert payloads[0]["choices"][0]["delta"]["content"] == "partial"
        assert payloads[1] == {
            "error": {
                "message": "Gemini API error (HTTP 503): overloaded",
                "type": "api_error",
                "code": "upstream_error",
            }
        }
        assert payloads[2] == "[DONE]"

    async def test_unexpected_failure_mid_stream(
        self, image_resolver: FakeImageResolver
    ) -> None:
        client = FakeModelClient(stream_error=RuntimeError("socket closed"))
        service = ChatService(client, image_resolver)

        payloads = _payloads(await _collect(service))

        assert payloads == [
            {"error": {"message": "socket closed", "type": "api_error"}},
            "[DONE]",
        ]

    async def test_image_errors_raise_before_streaming(self) -> None:
        class FailingResolver:
            async def fetch(self, url: str) -> InlineData:
                raise ImageFetchStatusError(url, 404)

        client = FakeModelClient(chunks=[chunk(text("never"))])
        service = ChatService(client, FailingResolver())
        request = validate_chat_request(
            {
                "stream": True,
                "messages": [
                    {
                        "role": "user",
                        "content": [
                            {"type": "image_url", "image_url": {"url": "https://x.test/a"}}
                        ],
                    }
                ],
            }
        )

        with pytest.raises(ImageFetchStatusError):
            await service.stream_chat(request)
        assert client.requests == []
