"""Anthropic Messages API provider implementation."""

from __future__ import annotations

import asyncio
from typing import Any

import anthropic

from askcii.llm.events import CompletionEventStream
from askcii.llm.types import (
    CompletionSummary,
    Context,
    DoneEvent,
    ErrorEvent,
    Model,
    StartEvent,
    StopReason,
    StreamOptions,
    TextDeltaEvent,
)

DEFAULT_MAX_TOKENS = 4096


def _map_stop_reason(reason: str | None) -> StopReason:
    mapping: dict[str, StopReason] = {
        "end_turn": "stop",
        "max_tokens": "length",
        "stop_sequence": "stop",
        "pause_turn": "stop",
        "refusal": "error",
    }
    return mapping.get(reason or "end_turn", "stop")


def stream_anthropic(
    model: Model,
    context: Context,
    options: StreamOptions | None = None,
) -> CompletionEventStream:
    """Stream a response from the Anthropic Messages API."""
    event_stream = CompletionEventStream()

    async def _run() -> None:
        output = CompletionSummary(model_id=model.id)

        try:
            client = anthropic.AsyncAnthropic(
                api_key=(options and options.api_key) or "",
                base_url=model.base_url,
            )
            params = _build_params(model, context)

            event_stream.push(StartEvent(partial=output))

            async with client.messages.stream(**params) as stream:
                async for event in stream:
                    if event.type == "message_start":
                        output.model_id = event.message.model or model.id
                        output.input_tokens = event.message.usage.input_tokens
                        output.output_tokens = event.message.usage.output_tokens

                    elif event.type == "content_block_delta":
                        if event.delta.type == "text_delta" and event.delta.text:
                            output.content += event.delta.text
                            event_stream.push(TextDeltaEvent(delta=event.delta.text, partial=output))

                    elif event.type == "message_delta":
                        output.stop_reason = _map_stop_reason(event.delta.stop_reason)
                        if event.usage.output_tokens is not None:
                            output.output_tokens = event.usage.output_tokens

            if output.stop_reason in ("aborted", "error"):
                raise RuntimeError("An unknown error occurred")

            event_stream.push(DoneEvent(reason=output.stop_reason, message=output))

        except Exception as e:
            output.stop_reason = "error"
            output.error_message = str(e) or type(e).__name__
            event_stream.push(ErrorEvent(reason="error", error=output))

        event_stream.end()

    event_stream.set_background_task(asyncio.ensure_future(_run()))
    return event_stream


def _build_params(model: Model, context: Context) -> dict[str, Any]:
    system_parts = [context.system_prompt] if context.system_prompt else []
    messages: list[dict[str, Any]] = []

    for msg in context.messages:
        if msg.role == "system":
            if msg.content:
                system_parts.append(msg.content)
            continue
        if not msg.content:
            continue
        # The Messages API rejects consecutive turns with the same role.
        if messages and messages[-1]["role"] == msg.role:
            messages[-1]["content"] += "\n\n" + msg.content
        else:
            messages.append({"role": msg.role, "content": msg.content})

    params: dict[str, Any] = {
        "model": model.id,
        "messages": messages,
        "max_tokens": DEFAULT_MAX_TOKENS,
    }
    if system_parts:
        params["system"] = "\n\n".join(system_parts)
    return params
