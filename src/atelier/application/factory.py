"""
Application Layer - Factory

Wires settings into the infrastructure adapters (HTTP client, executor,
inference client) and the application owners (pipeline, chat).

Use as an async context manager so the shared HTTP client is closed:

    >>> async with AtelierFactory(settings) as factory:
    ...     pipeline = factory.create_pipeline()
    ...     operation = await pipeline.generate("a red cube")
"""

import asyncio
from typing import Optional

import httpx
import structlog

from atelier.application.chat import ChatSession
from atelier.application.pipeline import GenerationPipeline
from atelier.config.settings import AtelierSettings, get_settings
from atelier.core.domain.backoff import BackoffPolicy
from atelier.core.domain.operation import Observer
from atelier.infrastructure.http.executor import RequestExecutor, Sleep
from atelier.infrastructure.inference.client import InferenceClient


class AtelierFactory:
    """Dependency wiring for CLI and HTTP entrypoints."""

    def __init__(
        self,
        settings: Optional[AtelierSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        """
        Args:
            settings: Settings to use (defaults to the process-wide settings)
            http_client: Pre-built client, e.g. with a mock transport
            sleep: Awaitable used for backoff and demo waits
        """
        self.settings = settings or get_settings()
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.request_timeout_seconds)
        )
        self.policy = BackoffPolicy(
            max_attempts=self.settings.max_attempts,
            base_delay_ms=self.settings.base_delay_ms,
        )
        self.executor = RequestExecutor(self.http_client, self.policy, sleep=sleep)
        self.client = InferenceClient(self.executor, self.settings, sleep=sleep)
        self.logger = structlog.get_logger().bind(component="atelier_factory")

        self.logger.info(
            "factory.initialized",
            base_url=self.settings.base_url,
            image_backend=self.settings.image_backend,
            credential_set=bool(self.settings.api_key),
            chat_demo_mode=self.settings.chat_demo_mode,
            max_attempts=self.policy.max_attempts,
        )

    def create_pipeline(self, observers: Optional[list[Observer]] = None) -> GenerationPipeline:
        return GenerationPipeline(self.client, observers=observers)

    def create_chat_session(
        self,
        observers: Optional[list[Observer]] = None,
        greeting: Optional[str] = None,
    ) -> ChatSession:
        """Chat session seeded with `greeting` or the configured greeting."""
        return ChatSession(
            self.client,
            greeting=greeting if greeting is not None else self.settings.chat_greeting,
            observers=observers,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> "AtelierFactory":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
