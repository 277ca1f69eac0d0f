"""
Operation State Machine

Tracks the lifecycle of one user-facing action (generate an image, describe
an image, send a chat message):

    Idle -> Pending -> Succeeded | Failed

Each call to start() drives one Operation. Terminal operations are never
modified again; starting the machine after a terminal state creates a fresh
Operation. Starting while an operation is Pending raises InvalidStateError,
which rejects duplicate submissions of the same action.

Observers are plain callables receiving the Operation on every transition.
"""

import asyncio
from typing import Awaitable, Callable, Optional

import structlog

from atelier.core.domain.errors import ErrorKind, InvalidStateError
from atelier.core.domain.models import Operation, OperationKind, OperationState, Outcome

logger = structlog.get_logger()

Observer = Callable[[Operation], None]
AttemptReporter = Callable[[int], None]
Work = Callable[[AttemptReporter], Awaitable[Outcome]]


class OperationStateMachine:
    """Lifecycle driver for the operations of one kind on one owner."""

    def __init__(self, kind: OperationKind, observers: Optional[list[Observer]] = None):
        self.kind = kind
        self._operation = Operation(kind=kind)
        self._observers: list[Observer] = list(observers or [])
        self.logger = logger.bind(component="operation_state_machine", kind=kind.value)

    @property
    def operation(self) -> Operation:
        """The current (most recent) operation."""
        return self._operation

    @property
    def state(self) -> OperationState:
        return self._operation.state

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer; returns a callable that unregisters it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def start(self, work: Work) -> "asyncio.Task[Operation]":
        """
        Move to Pending and schedule `work`.

        `work` receives an attempt reporter and must return an Outcome. The
        returned task resolves to the terminal Operation. Must be called
        from inside a running event loop.

        Raises:
            InvalidStateError: If an operation is already pending
            RuntimeError: If no event loop is running; the machine is left unchanged
        """
        if self.state == OperationState.PENDING:
            self.logger.warning("operation.start.rejected", operation_id=self._operation.id)
            raise InvalidStateError(f"{self.kind.value} operation {self._operation.id} is already pending")

        operation = Operation(kind=self.kind) if self.state.is_terminal else self._operation

        # the task body only runs once control returns to the loop
        drive = self._drive(operation, work)
        try:
            task = asyncio.create_task(drive)
        except RuntimeError:
            drive.close()
            raise

        self._operation = operation
        operation.state = OperationState.PENDING
        self._transitioned(operation)
        return task

    def record_attempt(self, attempt: int) -> None:
        """Update the attempt counter of the pending operation."""
        if self.state == OperationState.PENDING:
            self._operation.attempt = attempt

    def on_outcome(self, outcome: Outcome) -> Operation:
        """
        Settle the pending operation with `outcome`.

        Raises:
            InvalidStateError: If no operation is pending
        """
        operation = self._operation
        if operation.state != OperationState.PENDING:
            raise InvalidStateError(
                f"{self.kind.value} operation {operation.id} is {operation.state.value}, not pending"
            )

        operation.attempt = max(operation.attempt, outcome.attempts)
        if outcome.ok:
            operation.result = outcome.value
            operation.state = OperationState.SUCCEEDED
        else:
            operation.error = outcome.error
            operation.state = OperationState.FAILED
        self._transitioned(operation)
        return operation

    async def _drive(self, operation: Operation, work: Work) -> Operation:
        try:
            outcome = await work(self.record_attempt)
        except Exception as e:
            self.logger.exception(
                "operation.work.crashed",
                operation_id=operation.id,
                error_type=type(e).__name__,
            )
            outcome = Outcome.failure(ErrorKind.UNEXPECTED, detail=str(e), attempts=operation.attempt)
        return self.on_outcome(outcome)

    def _transitioned(self, operation: Operation) -> None:
        self.logger.debug(
            "operation.transition",
            operation_id=operation.id,
            state=operation.state.value,
            attempt=operation.attempt,
            error_kind=operation.error.kind.value if operation.error else None,
        )
        for observer in list(self._observers):
            try:
                observer(operation)
            except Exception as e:
                self.logger.error(
                    "operation.observer.failed",
                    operation_id=operation.id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
