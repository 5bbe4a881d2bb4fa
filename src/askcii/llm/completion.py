"""Completion facade used by chat sessions.

A ``Completion`` holds the conversation context for one backend model and
turns a prompt into a ``CompletionEventStream``.
"""

from __future__ import annotations

import logging

from askcii.llm.events import CompletionEventStream
from askcii.llm.registry import get_api_provider
from askcii.llm.types import ChatMessage, Context, Model, Role, StreamOptions
from askcii.providers import BaseConfigEntry

logger = logging.getLogger(__name__)

# Keyless local backends still need a non-empty key for the SDK clients.
PLACEHOLDER_API_KEY = "blank"


def stream(
    model: Model,
    context: Context,
    options: StreamOptions | None = None,
) -> CompletionEventStream:
    """Stream a response using the registered provider for the model's API."""
    provider = get_api_provider(model.api)
    if provider is None:
        raise ValueError(f"No API provider registered for api: {model.api}")
    return provider.stream(model, context, options)


class Completion:
    """Conversation context plus the backend it is sent to."""

    def __init__(self, model: Model, api_key: str | None = None) -> None:
        self.model = model
        self.api_key = api_key
        self.context = Context()

    @classmethod
    def from_config(cls, config: BaseConfigEntry) -> Completion:
        """Build a completion for a configuration entry.

        Missing fields fall back to the provider defaults; credentials are not
        checked here, the backend rejects them.
        """
        model = Model(
            id=config.model_id or config.default_model,
            provider=config.provider,
            api=config.api,
            base_url=config.endpoint,
        )
        return cls(model, api_key=config.api_key)

    def with_instructions(self, instructions: str) -> Completion:
        """Set the system instruction, replacing any previous one."""
        self.context.system_prompt = instructions
        return self

    def add_message(self, role: Role, content: str | None) -> Completion:
        """Add a prior message to the context."""
        self.context.messages.append(ChatMessage(role=role, content=content or ""))
        return self

    def ask(self, prompt: str) -> CompletionEventStream:
        """Submit ``prompt`` and stream the assistant's answer."""
        self.add_message("user", prompt)
        logger.debug(
            "Streaming %s/%s with %d messages", self.model.provider, self.model.id, len(self.context.messages)
        )
        options = StreamOptions(api_key=self.api_key or PLACEHOLDER_API_KEY)
        return stream(self.model, self.context, options)
