"""
Request Executor

Sends one HTTP request to the inference service under the BackoffPolicy and
turns whatever happens into a terminal Outcome:

1. No credential configured -> MISSING_CREDENTIAL, nothing is sent
2. HTTP 429 -> wait (non-blocking) and resend until the policy gives up,
   then RATE_LIMITED
3. Any other non-2xx -> SERVICE_ERROR with the status, no retry
4. 2xx whose body lacks the expected payload -> MALFORMED_RESPONSE
5. Otherwise success with the extracted payload

Network failures surface as TRANSPORT_ERROR and are not retried. The
executor never raises for request failures and keeps no state between
invocations, so concurrent calls are independent.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import httpx
import structlog

from atelier.core.domain.backoff import BackoffPolicy, RATE_LIMIT_STATUS, Retry, RetryContext
from atelier.core.domain.errors import ErrorKind
from atelier.core.domain.models import Outcome, RequestSpec

logger = structlog.get_logger()

Sleep = Callable[[float], Awaitable[Any]]


class RequestExecutor:
    """Executes RequestSpecs with exponential backoff on rate limiting."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        policy: Optional[BackoffPolicy] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        """
        Args:
            client: Shared async HTTP client
            policy: Retry policy (defaults to BackoffPolicy())
            sleep: Awaitable used for backoff waits, in seconds
        """
        self.client = client
        self.policy = policy or BackoffPolicy()
        self._sleep = sleep
        self.logger = logger.bind(component="request_executor")

    async def execute(
        self,
        spec: RequestSpec,
        on_attempt: Optional[Callable[[int], None]] = None,
    ) -> Outcome:
        """
        Run `spec` to a terminal outcome.

        Args:
            spec: Request to send
            on_attempt: Called with the running attempt count after each send

        Returns:
            Outcome with the extracted payload or an OperationError
        """
        if not spec.credential:
            self.logger.warning("request.credential.missing", request=spec.name)
            return Outcome.failure(
                ErrorKind.MISSING_CREDENTIAL,
                detail=f"No credential configured for {spec.name}",
            )

        context = RetryContext(max_attempts=self.policy.max_attempts)

        while True:
            self.logger.debug("request.attempt.started", request=spec.name, attempt=context.attempt + 1)
            try:
                response = await self._send(spec)
            except httpx.RequestError as e:
                context.attempt += 1
                if on_attempt:
                    on_attempt(context.attempt)
                self.logger.error(
                    "request.transport.failed",
                    request=spec.name,
                    attempt=context.attempt,
                    error=str(e)[:200],
                    error_type=type(e).__name__,
                )
                return Outcome.failure(
                    ErrorKind.TRANSPORT_ERROR,
                    detail=f"{type(e).__name__}: {e}",
                    attempts=context.attempt,
                )

            context.attempt += 1
            if on_attempt:
                on_attempt(context.attempt)
            status = response.status_code

            if status == RATE_LIMIT_STATUS:
                decision = self.policy.decide(context.attempt, status)
                if isinstance(decision, Retry):
                    context.delay_ms = decision.delay_ms
                    self.logger.warning(
                        "request.rate_limited",
                        request=spec.name,
                        attempt=context.attempt,
                        backoff_ms=decision.delay_ms,
                    )
                    await self._sleep(decision.delay_ms / 1000)
                    continue

                self.logger.error("request.rate_limited.exhausted", request=spec.name, attempts=context.attempt)
                return Outcome.failure(
                    ErrorKind.RATE_LIMITED,
                    detail=f"Still rate limited after {context.attempt} attempts",
                    status=status,
                    attempts=context.attempt,
                )

            if not response.is_success:
                self.logger.error(
                    "request.service_error",
                    request=spec.name,
                    status=status,
                    attempts=context.attempt,
                )
                return Outcome.failure(
                    ErrorKind.SERVICE_ERROR,
                    detail=f"{spec.name}: {status}",
                    status=status,
                    attempts=context.attempt,
                )

            return self._parse(spec, response, context.attempt)

    async def _send(self, spec: RequestSpec) -> httpx.Response:
        headers = {"Content-Type": "application/json", **spec.headers}
        params = None
        if spec.auth == "query":
            params = {"key": spec.credential}
        else:
            headers["Authorization"] = f"Bearer {spec.credential}"
        return await self.client.request(spec.method, spec.url, json=spec.body, headers=headers, params=params)

    def _parse(self, spec: RequestSpec, response: httpx.Response, attempts: int) -> Outcome:
        try:
            body = response.json()
        except ValueError as e:
            self.logger.error("request.body.invalid_json", request=spec.name, error=str(e)[:200])
            return Outcome.failure(ErrorKind.MALFORMED_RESPONSE, detail="Response is not JSON", attempts=attempts)

        try:
            value = spec.extract(body)
        except (KeyError, IndexError, TypeError, AttributeError):
            value = None

        if value is None:
            self.logger.error("request.body.malformed", request=spec.name, status=response.status_code)
            return Outcome.failure(
                ErrorKind.MALFORMED_RESPONSE,
                detail=f"{spec.name}: expected payload not found",
                attempts=attempts,
            )

        self.logger.info("request.succeeded", request=spec.name, attempts=attempts)
        return Outcome.success(value, body=body, attempts=attempts)
