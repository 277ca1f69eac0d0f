"""
Application Layer - Chat Session

Keeps the conversation transcript and sends it, in full, as context on every
call. The user message is appended before dispatch; the reply (or a warning
entry describing the failure) is appended once the operation settles, so the
transcript always alternates cleanly.
"""

from typing import Optional

import structlog

from atelier.core.domain.models import ChatRole, ChatTranscript, Operation, OperationKind, OperationState
from atelier.core.domain.operation import Observer, OperationStateMachine
from atelier.infrastructure.inference.client import InferenceClient

logger = structlog.get_logger()


class ChatSession:
    """One conversation with the chat model."""

    def __init__(
        self,
        client: InferenceClient,
        greeting: Optional[str] = None,
        observers: Optional[list[Observer]] = None,
    ):
        self.client = client
        self.transcript = ChatTranscript()
        if greeting:
            self.transcript.append(ChatRole.ASSISTANT, greeting)
        self.machine = OperationStateMachine(OperationKind.CHAT, observers)
        self.logger = logger.bind(component="chat_session")

    @property
    def pending(self) -> bool:
        return self.machine.state == OperationState.PENDING

    async def send(self, text: str) -> Optional[Operation]:
        """
        Send a user message.

        Blank messages and sends while another is pending are ignored.

        Returns:
            The terminal Chat operation, or None if the message was ignored
        """
        text = text.strip()
        if not text or self.pending:
            self.logger.debug("chat.send.ignored", blank=not text, pending=self.pending)
            return None

        self.transcript.append(ChatRole.USER, text)
        messages = self.transcript.to_messages()

        operation = await self.machine.start(lambda report: self.client.chat(messages, on_attempt=report))

        if operation.succeeded:
            self.transcript.append(ChatRole.ASSISTANT, operation.result)
        else:
            self.transcript.append(ChatRole.ASSISTANT, f"⚠️ {operation.error.message}")
            self.logger.warning(
                "chat.send.failed",
                operation_id=operation.id,
                error_kind=operation.error.kind.value,
                detail=operation.error.detail[:200],
            )
        return operation
