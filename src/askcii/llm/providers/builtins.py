"""Register all built-in API providers."""

from __future__ import annotations

from askcii.llm.providers.anthropic import stream_anthropic
from askcii.llm.providers.openai_completions import stream_openai_completions
from askcii.llm.registry import ApiProvider, register_api_provider


def register_builtin_providers() -> None:
    """Register the built-in completion stream implementations."""
    register_api_provider(ApiProvider(api="openai-completions", stream=stream_openai_completions))
    register_api_provider(ApiProvider(api="anthropic-messages", stream=stream_anthropic))
