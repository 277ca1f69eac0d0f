"""
Inference Client

One entry point per inference endpoint (image generation, vision
description, chat). Each method builds a RequestSpec and runs it through the
shared RequestExecutor, so all three share the same credential handling and
retry contract.

Chat degrades to a labeled demo reply when no chat credential is configured.
"""

import asyncio
from typing import Callable, Optional

import structlog

from atelier.config.settings import AtelierSettings
from atelier.core.domain.models import ImageReference, Outcome, RequestSpec
from atelier.infrastructure.http.executor import RequestExecutor, Sleep
from atelier.infrastructure.inference import payloads

logger = structlog.get_logger()

DEMO_REPLY = "🤖 (demo) Set ATELIER_CHAT_API_KEY to enable real replies."

AttemptReporter = Optional[Callable[[int], None]]


class InferenceClient:
    """Typed access to the inference endpoints."""

    def __init__(
        self,
        executor: RequestExecutor,
        settings: AtelierSettings,
        sleep: Sleep = asyncio.sleep,
    ):
        self.executor = executor
        self.settings = settings
        self._sleep = sleep
        self.logger = logger.bind(component="inference_client")

    @property
    def chat_demo_mode(self) -> bool:
        return self.settings.chat_demo_mode

    async def generate_image(self, prompt: str, on_attempt: AttemptReporter = None) -> Outcome:
        """Generate one image; success value is the image reference (URL or data URL)."""
        return await self.executor.execute(self._image_spec(prompt), on_attempt=on_attempt)

    async def describe_image(self, image: ImageReference, on_attempt: AttemptReporter = None) -> Outcome:
        """Describe an image with the vision model; success value is the description."""
        s = self.settings
        spec = RequestSpec(
            name="vision",
            url=f"{s.base_url.rstrip('/')}/chat/completions",
            body=payloads.vision_body(s.vision_model, image, s.describe_prompt),
            credential=s.api_key,
            extract=payloads.extract_completion,
        )
        return await self.executor.execute(spec, on_attempt=on_attempt)

    async def chat(self, messages: list[dict[str, str]], on_attempt: AttemptReporter = None) -> Outcome:
        """Send the full transcript; success value is the assistant reply."""
        s = self.settings
        if self.chat_demo_mode:
            self.logger.info("chat.demo_reply", message_count=len(messages))
            await self._sleep(s.demo_delay_seconds)
            return Outcome.success(DEMO_REPLY, attempts=0)

        spec = RequestSpec(
            name="chat",
            url=f"{s.base_url.rstrip('/')}/chat/completions",
            body=payloads.chat_body(s.chat_model, messages, s.chat_temperature),
            credential=s.chat_api_key,
            extract=payloads.extract_completion,
        )
        return await self.executor.execute(spec, on_attempt=on_attempt)

    def _image_spec(self, prompt: str) -> RequestSpec:
        s = self.settings
        if s.image_backend == "imagen":
            return RequestSpec(
                name="imagen",
                url=f"{s.imagen_base_url.rstrip('/')}/models/{s.imagen_model}:predict",
                body=payloads.imagen_body(prompt, s.image_count),
                credential=s.google_api_key,
                extract=payloads.extract_imagen_image,
                auth="query",
            )
        return RequestSpec(
            name="image_generation",
            url=f"{s.base_url.rstrip('/')}/images/generations",
            body=payloads.image_generation_body(s.image_model, prompt, s.image_count, s.image_size),
            credential=s.api_key,
            extract=payloads.extract_image_url,
        )
