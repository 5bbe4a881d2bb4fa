"""OpenAI Chat Completions API provider implementation.

Also serves OpenAI-compatible backends (Gemini, DeepSeek, OpenRouter,
Ollama) through their ``/v1``-style endpoints.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any

import openai

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

_SURROGATE_RE = re.compile(r"[\ud800-\udfff]")


def _sanitize(text: str) -> str:
    return _SURROGATE_RE.sub("\ufffd", text)


def stream_openai_completions(
    model: Model,
    context: Context,
    options: StreamOptions | None = None,
) -> CompletionEventStream:
    """Stream a response from the OpenAI Chat Completions API."""
    event_stream = CompletionEventStream()

    async def _run() -> None:
        output = CompletionSummary(model_id=model.id)

        try:
            client = openai.AsyncOpenAI(
                api_key=(options and options.api_key) or "",
                base_url=model.base_url,
            )
            params = _build_params(model, context)

            openai_stream = await client.chat.completions.create(**params)
            event_stream.push(StartEvent(partial=output))

            async for chunk in openai_stream:
                chunk_model = getattr(chunk, "model", None)
                if chunk_model:
                    output.model_id = chunk_model

                usage_data = getattr(chunk, "usage", None)
                if usage_data:
                    output.input_tokens = getattr(usage_data, "prompt_tokens", None)
                    output.output_tokens = getattr(usage_data, "completion_tokens", None)

                choices = getattr(chunk, "choices", None)
                if not choices:
                    continue
                choice = choices[0]

                finish_reason = getattr(choice, "finish_reason", None)
                if finish_reason:
                    output.stop_reason = _map_stop_reason(finish_reason)

                delta = getattr(choice, "delta", None)
                content_text = getattr(delta, "content", None) if delta else None
                if content_text:
                    output.content += content_text
                    event_stream.push(TextDeltaEvent(delta=content_text, partial=output))

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
    return {
        "model": model.id,
        "messages": _convert_messages(context),
        "stream": True,
        "stream_options": {"include_usage": True},
    }


def _convert_messages(context: Context) -> list[dict[str, Any]]:
    params: list[dict[str, Any]] = []
    if context.system_prompt:
        params.append({"role": "system", "content": _sanitize(context.system_prompt)})

    for msg in context.messages:
        # Interrupted streams leave empty assistant rows behind.
        if msg.role == "assistant" and not msg.content:
            continue
        params.append({"role": msg.role, "content": _sanitize(msg.content)})
    return params


def _map_stop_reason(reason: str) -> StopReason:
    if reason == "length":
        return "length"
    if reason == "content_filter":
        return "error"
    return "stop"
