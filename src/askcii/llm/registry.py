"""API provider registry for completion stream implementations."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from askcii.llm.events import CompletionEventStream
from askcii.llm.types import Context, Model, StreamOptions

StreamFunction = Callable[[Model, Context, StreamOptions | None], CompletionEventStream]


@dataclass
class ApiProvider:
    """A streaming implementation for one backend API."""

    api: str
    stream: StreamFunction


_registry: dict[str, ApiProvider] = {}


def register_api_provider(provider: ApiProvider) -> None:
    """Register an API provider implementation, replacing any previous one."""
    _registry[provider.api] = provider


def get_api_provider(api: str) -> ApiProvider | None:
    """Get a registered API provider by API name."""
    return _registry.get(api)


def get_api_providers() -> list[ApiProvider]:
    return list(_registry.values())


def clear_api_providers() -> None:
    """Remove all registered providers."""
    _registry.clear()
