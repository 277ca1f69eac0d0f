"""
Application Layer - Generation Pipeline

Chains image generation and vision description:

1. A Generate operation produces a GeneratedArtifact
2. On success, a dependent Describe operation starts in the background and
   fills in `artifact.description` when it succeeds

The Generate operation settles without waiting for the description. A failed
Describe leaves `description` as None; it never fails the artifact.

A new generate() supersedes the current artifact. The previous artifact's
Describe request is not aborted, but its result is discarded: completions are
applied only if their artifact is still the current one.
"""

import asyncio
from typing import Optional

import structlog

from atelier.core.domain.errors import ErrorKind
from atelier.core.domain.models import GeneratedArtifact, ImageReference, Operation, OperationKind, Outcome
from atelier.core.domain.operation import AttemptReporter, Observer, OperationStateMachine
from atelier.infrastructure.inference.client import InferenceClient

logger = structlog.get_logger()


class GenerationPipeline:
    """Owns the current generated artifact and the operations that produce it."""

    def __init__(self, client: InferenceClient, observers: Optional[list[Observer]] = None):
        """
        Args:
            client: Inference client used for both calls
            observers: Notified on every transition of every operation
        """
        self.client = client
        self._observers = list(observers or [])
        self.generation = OperationStateMachine(OperationKind.GENERATE, self._observers)
        self.upload = OperationStateMachine(OperationKind.DESCRIBE, self._observers)
        self._artifact: Optional[GeneratedArtifact] = None
        self._describe_tasks: set[asyncio.Task] = set()
        self.logger = logger.bind(component="generation_pipeline")

    @property
    def artifact(self) -> Optional[GeneratedArtifact]:
        """The current artifact, or None before the first success or after a supersede."""
        return self._artifact

    async def generate(self, prompt: str) -> Operation:
        """
        Generate an image for `prompt` and start describing it.

        Returns:
            The terminal Generate operation; on success `result` is the
            GeneratedArtifact (its description may still be pending)

        Raises:
            ValueError: If the prompt is blank
            InvalidStateError: If a generation is already pending
        """
        prompt = prompt.strip()
        if not prompt:
            raise ValueError("Prompt is required")

        async def work(report: AttemptReporter) -> Outcome:
            outcome = await self.client.generate_image(prompt, on_attempt=report)
            if not outcome.ok:
                return outcome
            artifact = GeneratedArtifact(image_ref=outcome.value, prompt=prompt)
            return Outcome.success(artifact, body=outcome.body, attempts=outcome.attempts)

        pending = self.generation.start(work)
        self._supersede()

        operation = await pending
        if operation.succeeded:
            self._artifact = operation.result
            self._start_describe(operation.result)
        else:
            self.logger.warning(
                "pipeline.generate.failed",
                operation_id=operation.id,
                error_kind=operation.error.kind.value,
            )
        return operation

    async def describe_uploaded(self, image: ImageReference) -> Operation:
        """
        Describe a user-supplied image without generating one.

        Raises:
            InvalidStateError: If an upload description is already pending
        """
        return await self.upload.start(lambda report: self.client.describe_image(image, on_attempt=report))

    async def drain(self) -> None:
        """Wait for every in-flight Describe operation to settle."""
        while self._describe_tasks:
            await asyncio.gather(*list(self._describe_tasks))

    def _supersede(self) -> None:
        previous = self._artifact
        self._artifact = None
        if previous is not None and previous.describe_operation is not None:
            if not previous.describe_operation.state.is_terminal:
                self.logger.info(
                    "pipeline.describe.abandoned",
                    operation_id=previous.describe_operation.id,
                )

    def _start_describe(self, artifact: GeneratedArtifact) -> None:
        machine = OperationStateMachine(OperationKind.DESCRIBE, self._observers)

        async def work(report: AttemptReporter) -> Outcome:
            try:
                image = _as_image_reference(artifact.image_ref)
            except ValueError as e:
                return Outcome.failure(ErrorKind.MALFORMED_RESPONSE, detail=f"Unusable image reference: {e}")
            return await self.client.describe_image(image, on_attempt=report)

        pending = machine.start(work)
        artifact.describe_operation = machine.operation

        task = asyncio.create_task(self._attach_description(artifact, pending))
        self._describe_tasks.add(task)
        task.add_done_callback(self._describe_tasks.discard)

    async def _attach_description(self, artifact: GeneratedArtifact, pending: "asyncio.Task[Operation]") -> None:
        operation = await pending
        if artifact is not self._artifact:
            self.logger.info(
                "pipeline.describe.discarded",
                operation_id=operation.id,
                state=operation.state.value,
            )
            return

        if operation.succeeded:
            artifact.description = operation.result
        else:
            self.logger.warning(
                "pipeline.describe.degraded",
                operation_id=operation.id,
                error_kind=operation.error.kind.value,
            )


def _as_image_reference(image_ref: str) -> ImageReference:
    if not isinstance(image_ref, str) or not image_ref:
        raise ValueError(f"expected a URL or data URL, got {type(image_ref).__name__}")
    if image_ref.startswith("data:"):
        return ImageReference.from_data_url(image_ref)
    return ImageReference.from_url(image_ref)
