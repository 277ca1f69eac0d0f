"""
Unit tests for RequestExecutor.

Uses httpx.MockTransport so no network access is needed, and a recording
sleep so backoff waits return immediately.
"""

import json

import httpx
import pytest

from atelier.core.domain.backoff import BackoffPolicy
from atelier.core.domain.errors import ErrorKind
from atelier.core.domain.models import RequestSpec
from atelier.infrastructure.http.executor import RequestExecutor
from atelier.infrastructure.inference.payloads import extract_image_url

URL = "https://inference.test/v1/images/generations"


def image_spec(credential="test-key", **kwargs):
    return RequestSpec(
        url=URL,
        body={"model": "m", "prompt": "a red cube"},
        credential=credential,
        extract=extract_image_url,
        name="image_generation",
        **kwargs,
    )


@pytest.fixture
def executor(transport, no_sleep):
    return RequestExecutor(transport.client(), BackoffPolicy(max_attempts=4, base_delay_ms=1000), sleep=no_sleep)


@pytest.mark.asyncio
async def test_success_extracts_payload_and_sends_bearer(executor, transport, responses):
    transport.queue("/images/generations", responses.image("https://img.test/cube.png"))

    outcome = await executor.execute(image_spec())

    assert outcome.ok
    assert outcome.value == "https://img.test/cube.png"
    assert outcome.attempts == 1
    request = transport.requests[0]
    assert request.method == "POST"
    assert request.headers["Authorization"] == "Bearer test-key"
    assert json.loads(request.content) == {"model": "m", "prompt": "a red cube"}


@pytest.mark.asyncio
async def test_query_auth_sends_key_param(executor, transport, responses):
    transport.queue("/images/generations", responses.image())

    await executor.execute(image_spec(auth="query"))

    request = transport.requests[0]
    assert request.url.params["key"] == "test-key"
    assert "Authorization" not in request.headers


@pytest.mark.asyncio
@pytest.mark.parametrize("credential", [None, ""])
async def test_missing_credential_sends_nothing(executor, transport, credential):
    outcome = await executor.execute(image_spec(credential=credential))

    assert outcome.error.kind == ErrorKind.MISSING_CREDENTIAL
    assert outcome.error.message == "API key missing."
    assert outcome.attempts == 0
    assert transport.requests == []


@pytest.mark.asyncio
async def test_rate_limit_then_success_retries_with_backoff(executor, transport, responses, no_sleep):
    transport.queue(
        "/images/generations",
        responses.rate_limited(),
        responses.rate_limited(),
        responses.rate_limited(),
        responses.image(),
    )
    seen = []

    outcome = await executor.execute(image_spec(), on_attempt=seen.append)

    assert outcome.ok
    assert outcome.attempts == 4
    assert seen == [1, 2, 3, 4]
    assert [call.args[0] for call in no_sleep.await_args_list] == [2.0, 4.0, 8.0]


@pytest.mark.asyncio
async def test_persistent_rate_limit_gives_up_after_max_attempts(executor, transport, responses, no_sleep):
    transport.queue("/images/generations", *[responses.rate_limited() for _ in range(5)])

    outcome = await executor.execute(image_spec())

    assert not outcome.ok
    assert outcome.error.kind == ErrorKind.RATE_LIMITED
    assert outcome.error.status == 429
    assert outcome.attempts == 4
    assert len(transport.requests) == 4
    assert no_sleep.await_count == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 401, 500, 503])
async def test_other_errors_are_not_retried(executor, transport, no_sleep, status):
    transport.queue("/images/generations", httpx.Response(status, json={"error": "nope"}))

    outcome = await executor.execute(image_spec())

    assert outcome.error.kind == ErrorKind.SERVICE_ERROR
    assert outcome.error.status == status
    assert outcome.error.detail == f"image_generation: {status}"
    assert outcome.attempts == 1
    no_sleep.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [{"data": []}, {"data": [{}]}, {"data": [{"url": 123}]}, {"unexpected": True}, ["not", "a", "dict"]],
)
async def test_missing_payload_is_malformed(executor, transport, body):
    transport.queue("/images/generations", httpx.Response(200, json=body))

    outcome = await executor.execute(image_spec())

    assert outcome.error.kind == ErrorKind.MALFORMED_RESPONSE
    assert outcome.attempts == 1


@pytest.mark.asyncio
async def test_non_json_body_is_malformed(executor, transport):
    transport.queue("/images/generations", httpx.Response(200, text="<html>oops</html>"))

    outcome = await executor.execute(image_spec())

    assert outcome.error.kind == ErrorKind.MALFORMED_RESPONSE


@pytest.mark.asyncio
async def test_transport_failure_is_reported_not_raised(executor, transport):
    transport.queue("/images/generations", httpx.ConnectError("connection refused"))

    outcome = await executor.execute(image_spec())

    assert outcome.error.kind == ErrorKind.TRANSPORT_ERROR
    assert "ConnectError" in outcome.error.detail
    assert outcome.attempts == 1


@pytest.mark.asyncio
async def test_invocations_are_independent(executor, transport, responses):
    transport.queue("/images/generations", responses.rate_limited(), responses.image())
    first = await executor.execute(image_spec())
    second = await executor.execute(image_spec())

    assert first.attempts == 2
    assert second.attempts == 1
