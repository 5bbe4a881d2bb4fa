"""Types for the completion stream.

All types use Pydantic models for validation and serialization.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Role = Literal["user", "assistant", "system"]

StopReason = Literal["stop", "length", "error", "aborted"]


class ChatMessage(BaseModel):
    role: Role
    content: str = ""


class Context(BaseModel):
    """Everything sent to the backend: system prompt and conversation so far."""

    system_prompt: str | None = None
    messages: list[ChatMessage] = Field(default_factory=list)


class Model(BaseModel):
    """Where and how to reach a backend model."""

    id: str
    provider: str
    api: str
    base_url: str


class CompletionSummary(BaseModel):
    """The assistant message produced by a stream, with token accounting.

    While streaming, ``content`` holds the text received so far.
    """

    role: Role = "assistant"
    content: str = ""
    model_id: str | None = None
    input_tokens: int | None = None
    output_tokens: int | None = None
    stop_reason: StopReason = "stop"
    error_message: str | None = None


class StreamOptions(BaseModel):
    api_key: str | None = None


# --- Streaming events ---


class StartEvent(BaseModel):
    type: Literal["start"] = "start"
    partial: CompletionSummary


class TextDeltaEvent(BaseModel):
    type: Literal["text_delta"] = "text_delta"
    delta: str
    partial: CompletionSummary


class DoneEvent(BaseModel):
    type: Literal["done"] = "done"
    reason: Literal["stop", "length"]
    message: CompletionSummary


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    reason: Literal["aborted", "error"]
    error: CompletionSummary


CompletionEvent = StartEvent | TextDeltaEvent | DoneEvent | ErrorEvent
