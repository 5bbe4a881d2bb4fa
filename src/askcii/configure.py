"""Interactive management of stored configurations (``askcii --configure``)."""

from __future__ import annotations

import click

from askcii.providers import PROVIDERS, BaseConfigEntry
from askcii.storage.configs import ConfigRegistry


def _ask(text: str) -> str:
    return click.prompt(text, default="", show_default=False, prompt_suffix=" ").strip()


class ConfigurationManager:
    """Menu driven add / set default / delete of configurations."""

    def __init__(self, registry: ConfigRegistry) -> None:
        self._registry = registry

    async def run(self) -> None:
        await self.show_current_configurations()
        self.show_menu()
        await self.handle_choice(_ask("Select option (1-4):"))

    async def show_current_configurations(self) -> None:
        click.echo("Configuration Management")
        click.echo("======================")

        configs = await self._registry.list_configurations()
        default_id = await self._registry.default_configuration_id()

        if not configs:
            click.echo("No configurations found.")
            return

        click.echo("Current configurations:")
        for config in configs:
            marker = " (default)" if config.id == default_id else ""
            click.echo(f"  {config.id}. {config.name} [{config.provider}]{marker}")
        click.echo()

    def show_menu(self) -> None:
        click.echo("Options:")
        click.echo("  1. Add new configuration")
        click.echo("  2. Set default configuration")
        click.echo("  3. Delete configuration")
        click.echo("  4. Exit")

    async def handle_choice(self, choice: str) -> None:
        if choice == "1":
            await self.add_new_configuration()
        elif choice == "2":
            await self.set_default_configuration()
        elif choice == "3":
            await self.delete_configuration()
        elif choice == "4":
            click.echo("Exiting.")
        else:
            click.echo("Invalid option.")

    # --- Add ---

    async def add_new_configuration(self) -> str | None:
        """Prompt for a configuration and store it. Returns the new id."""
        name = _ask("Enter configuration name:")

        provider_name = self.select_provider()
        if provider_name is None:
            return None
        provider = PROVIDERS[provider_name]

        api_key = self.get_api_key(provider)
        if api_key is None:
            return None

        endpoint = self.get_api_endpoint(provider)
        model_id = self.get_model_id(provider)
        if model_id is None:
            return None

        config_id = await self._registry.add_configuration(
            name or model_id, api_key, endpoint, model_id, provider_name
        )
        click.echo("Configuration added successfully!")
        return config_id

    def select_provider(self) -> str | None:
        """Returns the chosen provider name."""
        click.echo("Select provider:")
        names = list(PROVIDERS)
        for index, variant in enumerate(PROVIDERS.values(), start=1):
            suffix = "" if variant.requires_api_key else " (no API key needed)"
            click.echo(f"  {index}. {variant.label}{suffix}")

        choice = _ask(f"Provider (1-{len(names)}):")
        if not choice.isdigit() or not 1 <= int(choice) <= len(names):
            click.echo("Invalid provider selection.")
            return None
        return names[int(choice) - 1]

    def get_api_key(self, provider: type[BaseConfigEntry]) -> str | None:
        if not provider.requires_api_key:
            return ""

        api_key = _ask(f"Enter {provider.label} API key:")
        if not api_key:
            click.echo("API key is required for this provider.")
            return None
        return api_key

    def get_api_endpoint(self, provider: type[BaseConfigEntry]) -> str:
        endpoint = _ask(f"Enter API endpoint (default: {provider.default_endpoint}):")
        return endpoint or provider.default_endpoint

    def get_model_id(self, provider: type[BaseConfigEntry]) -> str | None:
        models = provider.models
        click.echo(f"\nAvailable models for {provider.label}:")
        for index, model in enumerate(models, start=1):
            marker = " (recommended)" if model == provider.default_model else ""
            click.echo(f"  {index}. {model}{marker}")
        custom_index = len(models) + 1
        click.echo(f"  {custom_index}. Enter custom model ID")

        choice = _ask(f"\nSelect model (1-{custom_index}) or press Enter for default [{provider.default_model}]:")
        if not choice:
            return provider.default_model
        if choice.isdigit() and 1 <= int(choice) <= len(models):
            return models[int(choice) - 1]
        if choice == str(custom_index):
            return _ask("Enter custom model ID:") or None

        click.echo("Invalid selection.")
        return None

    # --- Default / delete ---

    async def set_default_configuration(self) -> None:
        configs = await self._registry.list_configurations()
        if not configs:
            click.echo("No configurations available to set as default.")
            return

        new_default = _ask("Enter configuration ID to set as default:")
        if any(c.id == new_default for c in configs):
            await self._registry.set_default_configuration(new_default)
            click.echo(f"Configuration {new_default} set as default.")
        else:
            click.echo("Invalid configuration ID.")

    async def delete_configuration(self) -> None:
        configs = await self._registry.list_configurations()
        if not configs:
            click.echo("No configurations available to delete.")
            return

        delete_id = _ask("Enter configuration ID to delete:")
        if not any(c.id == delete_id for c in configs):
            click.echo("Invalid configuration ID.")
            return

        if await self._registry.delete_configuration(delete_id):
            click.echo(f"Configuration {delete_id} deleted successfully.")
        else:
            click.echo("Failed to delete configuration.")
