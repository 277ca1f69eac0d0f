import json

import httpx
import pytest

from atelier.core.domain.backoff import BackoffPolicy
from atelier.core.domain.errors import ErrorKind
from atelier.core.domain.models import ImageReference
from atelier.infrastructure.http.executor import RequestExecutor
from atelier.infrastructure.inference.client import DEMO_REPLY, InferenceClient


def make_client(transport, settings, no_sleep):
    executor = RequestExecutor(transport.client(), BackoffPolicy(settings.max_attempts, settings.base_delay_ms), sleep=no_sleep)
    return InferenceClient(executor, settings, sleep=no_sleep)


@pytest.mark.asyncio
async def test_generate_image_posts_generation_body(transport, settings, no_sleep, responses):
    transport.queue("/images/generations", responses.image("https://img.test/cube.png"))
    client = make_client(transport, settings, no_sleep)

    outcome = await client.generate_image("a red cube")

    assert outcome.value == "https://img.test/cube.png"
    request = transport.requests_to("/images/generations")[0]
    assert str(request.url) == "https://inference.test/v1/images/generations"
    body = json.loads(request.content)
    assert body["prompt"] == "a red cube"
    assert body["model"] == settings.image_model
    assert body["n"] == 1
    assert body["size"] == "1024x1024"


@pytest.mark.asyncio
async def test_imagen_backend_uses_query_key_and_returns_data_url(transport, settings, no_sleep):
    settings = settings.model_copy(update={"image_backend": "imagen", "google_api_key": "g-key"})
    transport.queue(
        ":predict",
        httpx.Response(200, json={"predictions": [{"bytesBase64Encoded": "QUJD"}]}),
    )
    client = make_client(transport, settings, no_sleep)

    outcome = await client.generate_image("a red cube")

    assert outcome.value == "data:image/png;base64,QUJD"
    request = transport.requests[0]
    assert request.url.path.endswith(f"/models/{settings.imagen_model}:predict")
    assert request.url.params["key"] == "g-key"
    assert json.loads(request.content) == {"instances": {"prompt": "a red cube"}, "parameters": {"sampleCount": 1}}


@pytest.mark.asyncio
async def test_imagen_backend_without_google_key_is_missing_credential(transport, settings, no_sleep):
    settings = settings.model_copy(update={"image_backend": "imagen"})
    client = make_client(transport, settings, no_sleep)

    outcome = await client.generate_image("a red cube")

    assert outcome.error.kind == ErrorKind.MISSING_CREDENTIAL
    assert transport.requests == []


@pytest.mark.asyncio
async def test_describe_image_sends_instruction_and_image(transport, settings, no_sleep, responses):
    transport.queue("/chat/completions", responses.completion("A red cube on a table."))
    client = make_client(transport, settings, no_sleep)

    outcome = await client.describe_image(ImageReference.from_url("https://img.test/cube.png"))

    assert outcome.value == "A red cube on a table."
    body = json.loads(transport.requests[0].content)
    assert body["model"] == settings.vision_model
    content = body["messages"][0]["content"]
    assert content[0] == {"type": "text", "text": settings.describe_prompt}
    assert content[1] == {"type": "image_url", "image_url": {"url": "https://img.test/cube.png"}}


@pytest.mark.asyncio
async def test_chat_sends_full_transcript_with_chat_key(transport, settings, no_sleep, responses):
    transport.queue("/chat/completions", responses.completion("a2"))
    client = make_client(transport, settings, no_sleep)
    messages = [
        {"role": "user", "content": "u1"},
        {"role": "assistant", "content": "a1"},
        {"role": "user", "content": "u2"},
    ]

    outcome = await client.chat(messages)

    assert outcome.value == "a2"
    request = transport.requests[0]
    assert request.headers["Authorization"] == "Bearer chat-key"
    body = json.loads(request.content)
    assert body["messages"] == messages
    assert body["temperature"] == 0.7


@pytest.mark.asyncio
async def test_chat_without_key_returns_demo_reply(transport, settings, no_sleep):
    settings = settings.model_copy(update={"chat_api_key": None})
    client = make_client(transport, settings, no_sleep)

    outcome = await client.chat([{"role": "user", "content": "hi"}])

    assert client.chat_demo_mode
    assert outcome.ok
    assert outcome.value == DEMO_REPLY
    assert transport.requests == []
    no_sleep.assert_awaited_once_with(settings.demo_delay_seconds)
