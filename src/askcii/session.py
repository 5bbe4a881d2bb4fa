"""One assistant invocation: configuration resolution, streaming and persistence.

Lifecycle of a ``ChatSession``::

    IDLE -> RESOLVING -> STREAMING -> FINALIZED
    IDLE -> LAST_RESPONSE_LOOKUP -> TERMINAL

While streaming in persistent mode, the assistant reply is stored as an empty
placeholder as soon as the first chunk arrives, grows with every chunk and is
finalized from the stream's summary. Readers of the last assistant message
therefore see a partial record mid-stream, never a missing one.
"""

from __future__ import annotations

import logging
import secrets
import sys
from collections.abc import Callable
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, TextIO

from askcii.llm import Completion, CompletionError, CompletionEventStream, CompletionSummary
from askcii.llm.types import DoneEvent, ErrorEvent, TextDeltaEvent
from askcii.providers import ConfigEntry, build_config_entry
from askcii.storage.configs import ConfigRegistry
from askcii.storage.conversations import Chat, ConversationStore, Message

if TYPE_CHECKING:
    from askcii.config import Config
    from askcii.storage.database import Database

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTIONS = (
    "You are a command line application. Your responses should be suitable to be read in a terminal. "
    "Your responses should only include the necessary text. Do not include any explanations unless prompted for it."
)

NO_PREVIOUS_RESPONSE = "No previous response found."


class SessionState(StrEnum):
    IDLE = "idle"
    RESOLVING = "resolving"
    STREAMING = "streaming"
    FINALIZED = "finalized"
    LAST_RESPONSE_LOOKUP = "last_response_lookup"
    TERMINAL = "terminal"


class CompletionLike(Protocol):
    """What a session needs from a completion backend."""

    def with_instructions(self, instructions: str) -> object: ...

    def add_message(self, role: str, content: str | None) -> object: ...

    def ask(self, prompt: str) -> CompletionEventStream: ...


CompletionFactory = Callable[[ConfigEntry], CompletionLike]


def build_prompt(prompt: str, input: str | None = None) -> str:
    """Frame piped input as context for the prompt."""
    if input:
        return f"With the following text:\n\n{input}\n\n{prompt}"
    return prompt


async def resolve_configuration(
    registry: ConfigRegistry,
    settings: Config,
    config_id: str | None = None,
) -> ConfigEntry:
    """Choose the configuration for this invocation. Never fails.

    Order: the explicitly requested id, then the registry's current
    configuration, then the environment. Fields of a legacy entry that are not
    stored are taken from the environment too. The result may hold None fields.
    """
    if config_id:
        entry = await registry.get_configuration(config_id)
        if entry is not None:
            return entry
        logger.warning("Configuration %s not found, using the default", config_id)

    entry = await registry.current_configuration()
    if entry is not None:
        if entry.id is None:
            entry = entry.model_copy(
                update={
                    "api_key": entry.api_key or settings.api_key,
                    "api_endpoint": entry.api_endpoint or settings.api_endpoint,
                    "model_id": entry.model_id or settings.model_id,
                }
            )
        return entry

    logger.info("No stored configuration usable, falling back to environment")
    return build_config_entry(
        api_key=settings.api_key,
        api_endpoint=settings.api_endpoint,
        model_id=settings.model_id,
    )


class ChatSession:
    """Drives a single prompt (or last-response lookup) against one configuration."""

    def __init__(
        self,
        db: Database,
        selected_config: ConfigEntry,
        settings: Config,
        *,
        private: bool = False,
        completion_factory: CompletionFactory = Completion.from_config,
        out: TextIO | None = None,
    ) -> None:
        self.selected_config = selected_config
        self.private = private
        self.state = SessionState.IDLE
        self.chat: Chat | None = None
        self.placeholder: Message | None = None
        self._settings = settings
        self._conversations = ConversationStore(db)
        self._completion_factory = completion_factory
        self._out = out
        self._context: str | None = None

    @classmethod
    async def create(
        cls,
        db: Database,
        settings: Config,
        *,
        config_id: str | None = None,
        private: bool = False,
        completion_factory: CompletionFactory = Completion.from_config,
        out: TextIO | None = None,
    ) -> ChatSession:
        """Resolve the configuration and build a session for it."""
        selected = await resolve_configuration(ConfigRegistry(db), settings, config_id)
        return cls(
            db,
            selected,
            settings,
            private=private,
            completion_factory=completion_factory,
            out=out,
        )

    @property
    def context(self) -> str:
        """Session context: ``ASKCII_SESSION`` or a random token fixed for this session."""
        if self._context is None:
            self._context = self._settings.session or secrets.token_hex(8)
        return self._context

    @property
    def model_id(self) -> str | None:
        return self.selected_config.model_id

    # --- Last response ---

    async def handle_last_response(self) -> int:
        """Print the last assistant reply of this context. Returns the exit status."""
        self.state = SessionState.LAST_RESPONSE_LOOKUP
        chat = await self._conversations.find_or_create_chat(self.context, self.model_id)
        last_message = await self._conversations.last_assistant_message(chat)
        self.state = SessionState.TERMINAL

        if last_message is None:
            self._write(NO_PREVIOUS_RESPONSE + "\n")
            return 1
        self._write(last_message.content + "\n")
        return 0

    # --- Chat ---

    async def execute_chat(self, prompt: str, input: str | None = None) -> CompletionSummary:
        """Send the prompt, stream the answer to the terminal and persist it.

        Raises CompletionError when the stream ends with an error event; the
        partial reply stays stored.
        """
        self.state = SessionState.RESOLVING
        completion = await self._create_completion()
        completion.with_instructions(SYSTEM_INSTRUCTIONS)

        full_prompt = build_prompt(prompt, input)
        if self.chat is not None:
            await self._conversations.add_message(self.chat, "user", full_prompt, self.model_id)

        self.state = SessionState.STREAMING
        events = completion.ask(full_prompt)
        async for event in events:
            if isinstance(event, TextDeltaEvent):
                await self._on_chunk(event.delta)
            elif isinstance(event, DoneEvent):
                await self._finalize(event.message)
            elif isinstance(event, ErrorEvent):
                self._write("\n")
                logger.error("Completion failed: %s", event.error.error_message)
                raise CompletionError(event.error)

        self._write("\n")
        self.state = SessionState.FINALIZED
        return await events.result()

    async def _create_completion(self) -> CompletionLike:
        completion = self._completion_factory(self.selected_config)
        if self.private:
            return completion

        self.chat = await self._conversations.find_or_create_chat(self.context, self.model_id)
        for message in await self._conversations.messages(self.chat):
            completion.add_message(message.role or "user", message.content)
        return completion

    async def _on_chunk(self, delta: str) -> None:
        if self.chat is not None and self.placeholder is None:
            self.placeholder = await self._conversations.add_message(self.chat, "assistant", "", None)

        self._write(delta)

        if self.placeholder is not None:
            await self._conversations.append_content(self.placeholder, delta)

    async def _finalize(self, summary: CompletionSummary) -> None:
        if self.placeholder is None:
            return
        await self._conversations.update_message(
            self.placeholder,
            role=summary.role,
            content=summary.content,
            model_id=summary.model_id,
            input_tokens=summary.input_tokens,
            output_tokens=summary.output_tokens,
        )

    def _write(self, text: str) -> None:
        out = self._out or sys.stdout
        out.write(text)
        out.flush()
