"""Async event stream for push/pull streaming pattern.

Uses asyncio.Queue internally for producer/consumer coordination.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

from askcii.llm.types import CompletionEvent, CompletionSummary

_SENTINEL = object()

T = TypeVar("T")
R = TypeVar("R")


class CompletionError(RuntimeError):
    """The completion stream ended with an error event."""

    def __init__(self, summary: CompletionSummary) -> None:
        super().__init__(summary.error_message or "Completion failed")
        self.summary = summary


class EventStream(Generic[T, R]):
    """Generic async event stream supporting push from producers and async iteration by consumers.

    Events come out in the order they were pushed. The first event accepted by
    ``is_complete`` is terminal: it resolves ``result()`` and later pushes are
    ignored, so consumers see exactly one terminal event.

    Type parameters:
        T: The event type pushed into the stream.
        R: The final result type extracted from the terminal event.
    """

    def __init__(
        self,
        is_complete: Callable[[T], bool],
        extract_result: Callable[[T], R],
    ) -> None:
        self._is_complete = is_complete
        self._extract_result = extract_result
        self._queue: asyncio.Queue[T | object] = asyncio.Queue()
        self._done = False
        self._result_future: asyncio.Future[R] = asyncio.get_running_loop().create_future()
        self._background_task: asyncio.Future[None] | None = None

    @property
    def done(self) -> bool:
        return self._done

    def push(self, event: T) -> None:
        """Push an event into the stream. No-op if stream is already done."""
        if self._done:
            return

        if self._is_complete(event):
            self._done = True
            if not self._result_future.done():
                self._result_future.set_result(self._extract_result(event))

        self._queue.put_nowait(event)

    def end(self) -> None:
        """Signal that no more events will be pushed."""
        self._done = True
        self._queue.put_nowait(_SENTINEL)

    async def __aiter__(self) -> AsyncIterator[T]:
        while True:
            item = await self._queue.get()
            if item is _SENTINEL:
                return
            yield item  # type: ignore[misc]
            if self._is_complete(item):  # type: ignore[arg-type]
                return

    async def result(self) -> R:
        """Await the final result from the terminal event."""
        return await self._result_future

    def set_background_task(self, task: asyncio.Future[None]) -> None:
        """Keep a reference to the producer task for the lifetime of the stream."""
        self._background_task = task


class CompletionEventStream(EventStream[CompletionEvent, CompletionSummary]):
    """Specialized event stream for completion events."""

    def __init__(self) -> None:
        super().__init__(
            is_complete=lambda event: event.type in ("done", "error"),
            extract_result=self._extract,
        )

    @staticmethod
    def _extract(event: CompletionEvent) -> CompletionSummary:
        if event.type == "done":
            return event.message
        if event.type == "error":
            return event.error
        raise ValueError(f"Unexpected event type for final result: {event.type}")
