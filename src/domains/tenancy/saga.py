# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Compensating actions for multi-step workflows.

A Saga collects one undo action per completed step. If the workflow
fails or is cancelled, the undo actions run in reverse order and the
original error (or cancellation) is re-raised. Failed undo actions are logged and recorded on the error as
notes; they never replace it.

Example:
    >>> async with Saga("create tenant ataturk") as saga:
    ...     record = await registry.create(...)
    ...     saga.add_compensation("delete tenant record", partial(registry.delete, record.id))
    ...     await provisioner.provision(record.id)
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from types import TracebackType

logger = logging.getLogger(__name__)

Compensation = Callable[[], Awaitable[object]]


@dataclass(frozen=True)
class CompensationFailure:
    """An undo action that raised."""

    name: str
    error: Exception


class Saga:
    """Async context manager running compensations on failure.

    Attributes:
        name: Workflow name used in log messages.
        failures: Compensations that failed during the last unwind.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.failures: list[CompensationFailure] = []
        self._compensations: list[tuple[str, Compensation]] = []

    def add_compensation(self, name: str, action: Compensation) -> None:
        """Register the undo action for a completed step.

        Args:
            name: Description of the undo, for logging.
            action: Zero-argument coroutine function.
        """
        self._compensations.append((name, action))

    @property
    def pending(self) -> list[str]:
        """Names of registered compensations, in registration order."""
        return [name for name, _ in self._compensations]

    async def compensate(self) -> list[CompensationFailure]:
        """Run all registered compensations in reverse order.

        Every compensation is attempted even if an earlier one fails.

        Returns:
            The compensations that failed.
        """
        failures: list[CompensationFailure] = []

        while self._compensations:
            name, action = self._compensations.pop()
            logger.warning("Saga %s: compensating with %s", self.name, name)
            try:
                await action()
            except Exception as e:
                logger.error("Saga %s: compensation %s failed: %s", self.name, name, str(e))
                failures.append(CompensationFailure(name=name, error=e))

        self.failures = failures
        return failures

    async def __aenter__(self) -> "Saga":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc is None or not isinstance(exc, (Exception, asyncio.CancelledError)):
            self._compensations.clear()
            return False

        if isinstance(exc, asyncio.CancelledError):
            logger.error("Saga %s cancelled", self.name)
        else:
            logger.error("Saga %s failed: %s", self.name, str(exc))

        # Runs to completion even if the caller is cancelled again
        for failure in await asyncio.shield(self.compensate()):
            exc.add_note(f"compensation {failure.name!r} failed: {failure.error}")
        return False
