"""Data structures for the upload pipeline."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import StrEnum

from ..exceptions import UploadFailureReason


class UploadState(StrEnum):
    """Lifecycle of a single upload task."""

    QUEUED = "queued"
    IN_FLIGHT = "in-flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset(
    {UploadState.SUCCEEDED, UploadState.FAILED, UploadState.CANCELLED}
)


@dataclass(slots=True, frozen=True)
class UploadOutcome:
    item_id: str
    state: UploadState
    reason: UploadFailureReason | None = None
    detail: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is UploadState.SUCCEEDED


@dataclass(slots=True, eq=False)
class TaskHandle:
    """Caller-visible reference to one upload of one item.

    The handle never holds file bytes; ``item_id`` is a lookup key into the
    media index, which may no longer contain the item by the time the task
    finishes.
    """

    item_id: str
    state: UploadState = UploadState.QUEUED
    reason: UploadFailureReason | None = None
    attempts: int = 0
    _task: asyncio.Task[UploadOutcome] | None = field(default=None, repr=False)
    _cancelled: bool = field(default=False, repr=False)

    def bind(self, task: asyncio.Task[UploadOutcome]) -> None:
        self._task = task

    @property
    def task(self) -> asyncio.Task[UploadOutcome] | None:
        return self._task

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        return self.state not in TERMINAL_STATES

    def cancel(self) -> bool:
        """Mark the task cancelled and stop it; return ``False`` if already finished."""
        if not self.active:
            return False
        self._cancelled = True
        self.state = UploadState.CANCELLED
        self.reason = None
        if self._task is not None:
            self._task.cancel()
        return True

    async def wait(self) -> UploadOutcome:
        if self._task is None:
            raise RuntimeError("upload task was never started")
        try:
            outcome = await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise
            return self.outcome()
        if self._cancelled:
            return self.outcome()
        return outcome

    def outcome(self) -> UploadOutcome:
        return UploadOutcome(item_id=self.item_id, state=self.state, reason=self.reason)
