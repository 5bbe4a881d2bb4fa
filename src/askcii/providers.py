"""Provider-tagged configuration entries.

A stored configuration is a JSON object with ``name``, ``api_key``,
``api_endpoint``, ``model_id`` and ``provider``. It decodes into one of the
variants below, selected by ``provider``. Each variant knows its provider's
default endpoint, its recommended models and the streaming API it speaks.
"""

from __future__ import annotations

import json
from typing import Annotated, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

DEFAULT_PROVIDER = "openai"

Api = Literal["openai-completions", "anthropic-messages"]


class BaseConfigEntry(BaseModel):
    """Fields shared by every provider configuration.

    ``id`` is not part of the stored JSON; it is recovered from the storage key.
    Legacy and environment-derived entries have no id.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = Field(default=None, exclude=True)
    provider: str = DEFAULT_PROVIDER
    name: str | None = None
    api_key: str | None = None
    api_endpoint: str | None = None
    model_id: str | None = None

    label: ClassVar[str]
    api: ClassVar[Api] = "openai-completions"
    default_endpoint: ClassVar[str]
    default_model: ClassVar[str]
    models: ClassVar[tuple[str, ...]]
    requires_api_key: ClassVar[bool] = True

    @property
    def endpoint(self) -> str:
        """The configured endpoint, or the provider default."""
        return self.api_endpoint or self.default_endpoint


class OpenAIConfig(BaseConfigEntry):
    provider: Literal["openai"] = "openai"

    label = "OpenAI"
    default_endpoint = "https://api.openai.com/v1"
    default_model = "gpt-4o"
    models = ("gpt-4o", "gpt-4o-mini", "gpt-4-turbo", "gpt-4", "gpt-3.5-turbo")


class AnthropicConfig(BaseConfigEntry):
    provider: Literal["anthropic"] = "anthropic"

    label = "Anthropic"
    api = "anthropic-messages"
    default_endpoint = "https://api.anthropic.com"
    default_model = "claude-3-5-sonnet-20241022"
    models = (
        "claude-3-5-sonnet-20241022",
        "claude-3-5-haiku-20241022",
        "claude-3-opus-20240229",
        "claude-3-sonnet-20240229",
        "claude-3-haiku-20240307",
    )


class GeminiConfig(BaseConfigEntry):
    provider: Literal["gemini"] = "gemini"

    label = "Gemini"
    # OpenAI-compatible surface of the Gemini API.
    default_endpoint = "https://generativelanguage.googleapis.com/v1beta/openai/"
    default_model = "gemini-1.5-flash"
    models = ("gemini-1.5-flash", "gemini-1.5-pro", "gemini-pro")


class DeepSeekConfig(BaseConfigEntry):
    provider: Literal["deepseek"] = "deepseek"

    label = "DeepSeek"
    default_endpoint = "https://api.deepseek.com/v1"
    default_model = "deepseek-chat"
    models = ("deepseek-chat", "deepseek-coder")


class OpenRouterConfig(BaseConfigEntry):
    provider: Literal["openrouter"] = "openrouter"

    label = "OpenRouter"
    default_endpoint = "https://openrouter.ai/api/v1"
    default_model = "anthropic/claude-3.5-sonnet"
    models = (
        "anthropic/claude-3.5-sonnet",
        "openai/gpt-4o",
        "google/gemini-pro",
        "meta-llama/llama-3.1-405b-instruct",
        "anthropic/claude-3-opus",
        "openai/gpt-4-turbo",
    )


class OllamaConfig(BaseConfigEntry):
    provider: Literal["ollama"] = "ollama"

    label = "Ollama"
    default_endpoint = "http://localhost:11434/v1"
    default_model = "llama3.2"
    models = ("llama3.2", "llama3.1", "mistral", "codellama", "phi3", "gemma2")
    requires_api_key = False


ConfigEntry = Annotated[
    OpenAIConfig | AnthropicConfig | GeminiConfig | DeepSeekConfig | OpenRouterConfig | OllamaConfig,
    Field(discriminator="provider"),
]

_config_adapter: TypeAdapter[ConfigEntry] = TypeAdapter(ConfigEntry)

# Menu order used by the interactive configuration manager.
PROVIDERS: dict[str, type[BaseConfigEntry]] = {
    "openai": OpenAIConfig,
    "anthropic": AnthropicConfig,
    "gemini": GeminiConfig,
    "deepseek": DeepSeekConfig,
    "openrouter": OpenRouterConfig,
    "ollama": OllamaConfig,
}


class InvalidConfigEntry(ValueError):
    """A stored configuration could not be decoded."""


def build_config_entry(
    *,
    provider: str | None = None,
    id: str | None = None,
    name: str | None = None,
    api_key: str | None = None,
    api_endpoint: str | None = None,
    model_id: str | None = None,
) -> ConfigEntry:
    """Build the variant for ``provider`` (``openai`` when None)."""
    data = {
        "provider": provider or DEFAULT_PROVIDER,
        "id": id,
        "name": name,
        "api_key": api_key,
        "api_endpoint": api_endpoint,
        "model_id": model_id,
    }
    try:
        return _config_adapter.validate_python(data)
    except ValidationError as e:
        raise InvalidConfigEntry(str(e)) from e


def decode_config_entry(raw: str | None, id: str | None = None) -> ConfigEntry:
    """Decode a stored JSON blob. Raises InvalidConfigEntry on any problem."""
    if raw is None:
        raise InvalidConfigEntry("empty configuration value")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidConfigEntry(f"malformed JSON: {e}") from e
    if not isinstance(data, dict):
        raise InvalidConfigEntry("configuration value is not a JSON object")

    known = ("name", "api_key", "api_endpoint", "model_id")
    fields = {k: data.get(k) for k in known}
    return build_config_entry(provider=data.get("provider"), id=id, **fields)


def encode_config_entry(entry: BaseConfigEntry) -> str:
    """Serialize the five stored fields of an entry as JSON."""
    return json.dumps(
        {
            "name": entry.name,
            "api_key": entry.api_key,
            "api_endpoint": entry.api_endpoint,
            "model_id": entry.model_id,
            "provider": entry.provider,
        }
    )
