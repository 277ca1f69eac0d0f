"""Shared fixtures for atelier tests."""

from collections import defaultdict
from typing import Union
from unittest.mock import AsyncMock

import httpx
import pytest

from atelier.config.settings import AtelierSettings

Scripted = Union[httpx.Response, Exception]


class ScriptedTransport:
    """
    Serves queued responses per endpoint path and records every request.

    Responses for a path are consumed in order; the last one repeats once
    the queue is down to a single entry. Queued exceptions are raised.
    """

    def __init__(self):
        self.queues: dict[str, list[Scripted]] = defaultdict(list)
        self.requests: list[httpx.Request] = []

    def queue(self, path_suffix: str, *responses: Scripted) -> None:
        self.queues[path_suffix].extend(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for suffix, queue in self.queues.items():
            if request.url.path.endswith(suffix) and queue:
                item = queue.pop(0) if len(queue) > 1 else queue[0]
                if isinstance(item, Exception):
                    raise item
                return item
        return httpx.Response(404, json={"error": "not scripted"})

    def requests_to(self, path_suffix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(path_suffix)]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def transport():
    return ScriptedTransport()


@pytest.fixture
def no_sleep():
    """Stand-in for asyncio.sleep that records delays without waiting."""
    return AsyncMock(return_value=None)


@pytest.fixture
def settings(tmp_path):
    return AtelierSettings(
        api_key="test-key",
        chat_api_key="chat-key",
        google_api_key=None,
        base_url="https://inference.test/v1",
        image_backend="together",
        max_attempts=4,
        base_delay_ms=1000,
        chat_greeting=None,
        leaderboard_path=str(tmp_path / "leaderboard.json"),
    )


def image_response(url: str = "https://img.test/1.png") -> httpx.Response:
    return httpx.Response(200, json={"data": [{"url": url}]})


def completion_response(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def rate_limited() -> httpx.Response:
    return httpx.Response(429, json={"error": "rate limited"})


@pytest.fixture
def responses():
    """Builders for common inference responses."""

    class _Responses:
        image = staticmethod(image_response)
        completion = staticmethod(completion_response)
        rate_limited = staticmethod(rate_limited)

    return _Responses
