"""Tests for EventStream and CompletionEventStream."""

from __future__ import annotations

import asyncio

import pytest

from askcii.llm.events import CompletionError, CompletionEventStream, EventStream
from askcii.llm.types import CompletionSummary, DoneEvent, ErrorEvent, StartEvent, TextDeltaEvent


async def test_events_come_out_in_push_order():
    stream: EventStream[int, int] = EventStream(is_complete=lambda e: e < 0, extract_result=lambda e: e)
    for value in (1, 2, 3, -1):
        stream.push(value)

    assert [e async for e in stream] == [1, 2, 3, -1]
    assert await stream.result() == -1


async def test_pushes_after_terminal_event_are_ignored():
    stream: EventStream[int, int] = EventStream(is_complete=lambda e: e < 0, extract_result=lambda e: e)
    stream.push(1)
    stream.push(-1)
    stream.push(-2)
    stream.push(5)

    assert stream.done
    assert [e async for e in stream] == [1, -1]
    assert await stream.result() == -1


async def test_end_without_terminal_event_stops_iteration():
    stream: EventStream[int, int] = EventStream(is_complete=lambda e: e < 0, extract_result=lambda e: e)
    stream.push(1)
    stream.end()
    assert [e async for e in stream] == [1]


async def test_consumer_waits_for_producer():
    stream = CompletionEventStream()

    async def produce():
        partial = CompletionSummary()
        for chunk in ("a", "b"):
            await asyncio.sleep(0)
            partial.content += chunk
            stream.push(TextDeltaEvent(delta=chunk, partial=partial))
        stream.push(DoneEvent(reason="stop", message=partial))
        stream.end()

    stream.set_background_task(asyncio.ensure_future(produce()))
    deltas = [e.delta async for e in stream if isinstance(e, TextDeltaEvent)]

    assert deltas == ["a", "b"]
    assert (await stream.result()).content == "ab"


async def test_completion_stream_single_terminal_event():
    stream = CompletionEventStream()
    summary = CompletionSummary(content="partial", stop_reason="error", error_message="boom")
    stream.push(StartEvent(partial=CompletionSummary()))
    stream.push(ErrorEvent(reason="error", error=summary))
    stream.push(DoneEvent(reason="stop", message=CompletionSummary(content="late")))
    stream.end()

    types = [e.type async for e in stream]
    assert types == ["start", "error"]
    result = await stream.result()
    assert result.error_message == "boom"


def test_completion_error_carries_summary():
    summary = CompletionSummary(stop_reason="error", error_message="rate limited")
    error = CompletionError(summary)
    assert str(error) == "rate limited"
    assert error.summary is summary

    with pytest.raises(CompletionError, match="Completion failed"):
        raise CompletionError(CompletionSummary(stop_reason="error"))
