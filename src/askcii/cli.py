"""CLI entry point for askcii. Uses Click for argument parsing."""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from askcii.config import Config
from askcii.llm import CompletionError
from askcii.storage.database import Database, StorageError

LOG_LEVELS = ["debug", "info", "warning", "error"]

USAGE = """\
Usage:
  askcii [options] 'Your prompt here'
  echo 'Your prompt here' | askcii                    # Use piped text as prompt
  echo 'Context text' | askcii 'Your prompt here'     # Use piped text as context
  askcii 'Your prompt here' < prompt.txt              # Use file content as context
  cat prompt.txt | askcii                             # Use file content as prompt
  askcii -p (start a private session)
  askcii -r (to get the last response)
  askcii -c (manage configurations)
  askcii -m 2 (use configuration ID 2)

Options:
  -p, --private         Start a private session and do not record
  -r, --last-response   Output the last response
  -c, --configure       Manage configurations
  -m, --model ID        Use specific configuration ID
  -h, --help            Show help"""


def _run(coro):
    """Run an async function synchronously."""
    return asyncio.run(coro)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def read_stdin_input() -> str | None:
    """Piped stdin, or None when stdin is a terminal or empty."""
    if sys.stdin is None or sys.stdin.isatty():
        return None
    data = sys.stdin.read()
    return data if data.strip() else None


def determine_prompt_and_input(prompt: str, input: str | None) -> tuple[str, str | None]:
    """Piped text is the prompt when no prompt was given, otherwise context."""
    if not prompt and input:
        return input.strip(), None
    return prompt, input


async def _configure(settings: Config) -> None:
    from askcii.configure import ConfigurationManager
    from askcii.storage.configs import ConfigRegistry

    async with Database(settings.db_path) as db:
        await ConfigurationManager(ConfigRegistry(db)).run()


async def _last_response(settings: Config, config_id: str | None) -> int:
    from askcii.session import ChatSession

    async with Database(settings.db_path) as db:
        session = await ChatSession.create(db, settings, config_id=config_id)
        return await session.handle_last_response()


async def _chat(settings: Config, prompt: str, input: str | None, *, config_id: str | None, private: bool) -> None:
    from askcii.llm.providers.builtins import register_builtin_providers
    from askcii.session import ChatSession

    register_builtin_providers()
    async with Database(settings.db_path) as db:
        session = await ChatSession.create(db, settings, config_id=config_id, private=private)
        await session.execute_chat(prompt, input)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-p", "--private", is_flag=True, help="Start a private session and do not record")
@click.option("-r", "--last-response", is_flag=True, help="Output the last response")
@click.option("-c", "--configure", is_flag=True, help="Manage configurations")
@click.option("-m", "--model", "config_id", metavar="ID", default=None, help="Use specific configuration ID")
@click.option("--log-level", type=click.Choice(LOG_LEVELS), default=None, help="Logging level (default: warning)")
@click.argument("prompt", nargs=-1)
def main(private, last_response, configure, config_id, log_level, prompt):
    """Ask a language model from the command line and stream the answer."""
    settings = Config.from_env()
    setup_logging(log_level or settings.log_level)

    try:
        if configure:
            _run(_configure(settings))
            sys.exit(0)

        if last_response:
            sys.exit(_run(_last_response(settings, config_id)))

        prompt_text, input = determine_prompt_and_input(" ".join(prompt), read_stdin_input())
        if not prompt_text:
            click.echo(USAGE)
            sys.exit(1)

        _run(_chat(settings, prompt_text, input, config_id=config_id, private=private))
    except (StorageError, CompletionError) as e:
        raise click.ClickException(str(e)) from e


if __name__ == "__main__":
    main()
