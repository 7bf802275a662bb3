"""Upload pipeline pushing managed media to the remote endpoint."""

from __future__ import annotations

import asyncio
import inspect
import logging
import mimetypes
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from ..exceptions import FileReadError, UploadError, UploadFailureReason
from ..media.file_mover import FileMover
from ..media.media_models import MediaItem
from .upload_models import TaskHandle, UploadOutcome, UploadState

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class UploadQueue:
    """Runs one HTTP request per task with bounded concurrency.

    Transport failures are retried with exponential backoff; server verdicts
    and unparsable responses are final. Tasks live in memory only.
    """

    def __init__(
        self,
        *,
        endpoint: str,
        file_mover: FileMover,
        timeout_seconds: float = 30.0,
        retry_attempts: int = 3,
        retry_backoff_seconds: float = 1.0,
        max_in_flight: int = 4,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Any] | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.file_mover = file_mover
        self._timeout_seconds = max(0.1, timeout_seconds)
        self._retry_attempts = max(1, retry_attempts)
        self._retry_backoff_seconds = max(0.0, retry_backoff_seconds)
        self._max_in_flight = max(1, max_in_flight)
        self._semaphore: asyncio.Semaphore | None = None
        self._transport = transport
        self._sleep = self._wrap_sleep(sleep)
        self._handles: set[TaskHandle] = set()
        self._logger = logging.getLogger(__name__)

    @staticmethod
    def _wrap_sleep(
        sleep: Callable[[float], Any] | None,
    ) -> Callable[[float], Awaitable[None]]:
        if sleep is None:
            return asyncio.sleep

        async def _async_sleep(seconds: float) -> None:
            result = sleep(seconds)
            if inspect.isawaitable(result):
                await result

        return _async_sleep

    @property
    def active_handles(self) -> list[TaskHandle]:
        return [handle for handle in self._handles if handle.active]

    def enqueue(self, item: MediaItem) -> TaskHandle:
        """Schedule an upload of ``item``; must be called from a running event loop."""
        handle = TaskHandle(item_id=item.id)
        task = asyncio.get_running_loop().create_task(
            self._run(handle, item), name=f"upload:{item.id}"
        )
        handle.bind(task)
        self._handles.add(handle)
        task.add_done_callback(lambda _: self._handles.discard(handle))
        self._logger.info("upload.task.queued", extra={"item_id": item.id})
        return handle

    async def aclose(self) -> None:
        handles = self.active_handles
        for handle in handles:
            handle.cancel()
        tasks = [handle.task for handle in handles if handle.task is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Task body
    # ------------------------------------------------------------------
    async def _run(self, handle: TaskHandle, item: MediaItem) -> UploadOutcome:
        async with self._slots():
            handle.state = UploadState.IN_FLIGHT
            self._logger.info("upload.task.in_flight", extra={"item_id": item.id})
            try:
                payload = await asyncio.to_thread(self.file_mover.read_bytes, item.stored_path)
                await self._post_with_retries(handle, item, payload)
            except FileReadError as exc:
                return self._finish_failed(handle, UploadError(UploadFailureReason.UNREADABLE, str(exc)))
            except UploadError as exc:
                return self._finish_failed(handle, exc)

        handle.state = UploadState.SUCCEEDED
        self._logger.info(
            "upload.task.succeeded",
            extra={"item_id": item.id, "attempts": handle.attempts},
        )
        return handle.outcome()

    def _slots(self) -> asyncio.Semaphore:
        # Created lazily so the semaphore binds to the loop running the tasks.
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self._max_in_flight)
        return self._semaphore

    def _finish_failed(self, handle: TaskHandle, exc: UploadError) -> UploadOutcome:
        handle.state = UploadState.FAILED
        handle.reason = exc.reason
        self._logger.warning(
            "upload.task.failed",
            extra={
                "item_id": handle.item_id,
                "reason": exc.reason.value,
                "attempts": handle.attempts,
                "error": str(exc),
            },
        )
        return UploadOutcome(
            item_id=handle.item_id,
            state=UploadState.FAILED,
            reason=exc.reason,
            detail=str(exc),
        )

    async def _post_with_retries(
        self, handle: TaskHandle, item: MediaItem, payload: bytes
    ) -> None:
        for attempt in range(1, self._retry_attempts + 1):
            handle.attempts = attempt
            try:
                response = await self._post(item, payload)
            except httpx.TransportError as exc:
                if attempt >= self._retry_attempts:
                    raise UploadError(
                        UploadFailureReason.TRANSPORT,
                        f"upload transport failed after {attempt} attempts: {exc!r}",
                    ) from exc
                delay = self._retry_backoff_seconds * 2 ** (attempt - 1)
                self._logger.info(
                    "upload.task.retry",
                    extra={"item_id": item.id, "attempt": attempt, "delay_seconds": delay},
                )
                await self._sleep(delay)
                continue
            interpret_response(response)
            return

    async def _post(self, item: MediaItem, payload: bytes) -> httpx.Response:
        content_type = mimetypes.guess_type(item.id)[0] or DEFAULT_CONTENT_TYPE
        files = {"file": (item.id, payload, content_type)}
        async with httpx.AsyncClient(
            timeout=self._timeout_seconds, transport=self._transport
        ) as client:
            return await client.post(self.endpoint, files=files)


def interpret_response(response: httpx.Response) -> None:
    """Raise :class:`UploadError` unless the endpoint reported ``success: true``."""
    try:
        body = response.json()
    except ValueError as exc:
        if response.is_error:
            raise UploadError(
                UploadFailureReason.SERVER_REJECTED,
                f"endpoint returned status {response.status_code}",
            ) from exc
        raise UploadError(
            UploadFailureReason.MALFORMED_RESPONSE, "response body is not JSON"
        ) from exc

    success = body.get("success") if isinstance(body, dict) else None
    if response.is_error:
        raise UploadError(
            UploadFailureReason.SERVER_REJECTED,
            f"endpoint returned status {response.status_code}",
        )
    if not isinstance(success, bool):
        raise UploadError(
            UploadFailureReason.MALFORMED_RESPONSE,
            "response has no boolean 'success' field",
        )
    if not success:
        message = body.get("error") or body.get("message") or "upload rejected"
        raise UploadError(UploadFailureReason.SERVER_REJECTED, str(message))
