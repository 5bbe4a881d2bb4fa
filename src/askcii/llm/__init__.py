"""Streaming completions from LLM backends."""

from askcii.llm.completion import Completion, stream
from askcii.llm.events import CompletionError, CompletionEventStream, EventStream
from askcii.llm.types import (
    ChatMessage,
    CompletionEvent,
    CompletionSummary,
    Context,
    DoneEvent,
    ErrorEvent,
    Model,
    StartEvent,
    StreamOptions,
    TextDeltaEvent,
)

__all__ = [
    "ChatMessage",
    "Completion",
    "CompletionError",
    "CompletionEvent",
    "CompletionEventStream",
    "CompletionSummary",
    "Context",
    "DoneEvent",
    "ErrorEvent",
    "EventStream",
    "Model",
    "StartEvent",
    "StreamOptions",
    "TextDeltaEvent",
    "stream",
]
