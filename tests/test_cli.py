"""Tests for the askcii command line."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from askcii import cli
from askcii.llm.events import CompletionEventStream
from askcii.llm.registry import ApiProvider, register_api_provider
from askcii.llm.types import CompletionSummary, DoneEvent, ErrorEvent, TextDeltaEvent


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def env(tmp_path, monkeypatch):
    for name in ("ASKCII_API_KEY", "ASKCII_API_ENDPOINT", "ASKCII_MODEL_ID", "ASKCII_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return {"ASKCII_DB_PATH": str(tmp_path / "askcii.db"), "ASKCII_SESSION": "cli-test"}


@pytest.fixture
def prompts(monkeypatch):
    """Replace the built-in backends with one that echoes the prompt back."""
    seen: list[str] = []

    def _stream(model, context, options):
        prompt = context.messages[-1].content
        seen.append(prompt)
        events = CompletionEventStream()
        output = CompletionSummary(model_id=model.id)
        if prompt == "fail":
            output.stop_reason = "error"
            output.error_message = "backend unavailable"
            events.push(ErrorEvent(reason="error", error=output))
        else:
            for word in ("echo: ", prompt):
                output.content += word
                events.push(TextDeltaEvent(delta=word, partial=output))
            events.push(DoneEvent(reason="stop", message=output))
        events.end()
        return events

    def _register():
        register_api_provider(ApiProvider(api="openai-completions", stream=_stream))

    monkeypatch.setattr("askcii.llm.providers.builtins.register_builtin_providers", _register)
    return seen


# ===========================================================================
# Argument handling
# ===========================================================================


def test_determine_prompt_and_input():
    assert cli.determine_prompt_and_input("", "  piped prompt\n") == ("piped prompt", None)
    assert cli.determine_prompt_and_input("Summarize", "text") == ("Summarize", "text")
    assert cli.determine_prompt_and_input("Summarize", None) == ("Summarize", None)
    assert cli.determine_prompt_and_input("", None) == ("", None)


def test_help(runner, env):
    result = runner.invoke(cli.main, ["-h"], env=env)
    assert result.exit_code == 0
    assert "--last-response" in result.output
    assert "--configure" in result.output


def test_no_prompt_prints_usage(runner, env):
    result = runner.invoke(cli.main, [], env=env)
    assert result.exit_code == 1
    assert result.output.startswith("Usage:")


def test_whitespace_stdin_is_no_prompt(runner, env):
    result = runner.invoke(cli.main, [], input="   \n", env=env)
    assert result.exit_code == 1
    assert "Usage:" in result.output


# ===========================================================================
# Chat
# ===========================================================================


def test_chat_streams_reply(runner, env, prompts):
    result = runner.invoke(cli.main, ["What", "is", "up"], env=env)
    assert result.exit_code == 0, result.output
    assert result.output == "echo: What is up\n"
    assert prompts == ["What is up"]


def test_piped_text_is_prompt(runner, env, prompts):
    result = runner.invoke(cli.main, [], input="piped question\n", env=env)
    assert result.exit_code == 0, result.output
    assert prompts == ["piped question"]


def test_piped_text_with_prompt_is_context(runner, env, prompts):
    result = runner.invoke(cli.main, ["Summarize"], input="some text\n", env=env)
    assert result.exit_code == 0, result.output
    assert prompts == ["With the following text:\n\nsome text\n\n\nSummarize"]


def test_backend_error_exits_with_one(runner, env, prompts):
    result = runner.invoke(cli.main, ["fail"], env=env)
    assert result.exit_code == 1
    assert "Error: backend unavailable" in result.output


def test_unusable_database_exits_with_one(runner, env, tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    env["ASKCII_DB_PATH"] = str(blocker / "askcii.db")
    result = runner.invoke(cli.main, ["hello"], env=env)
    assert result.exit_code == 1
    assert "Error:" in result.output


# ===========================================================================
# Last response
# ===========================================================================


def test_last_response_without_history(runner, env):
    result = runner.invoke(cli.main, ["-r"], env=env)
    assert result.exit_code == 1
    assert result.output == "No previous response found.\n"


def test_last_response_after_chat(runner, env, prompts):
    runner.invoke(cli.main, ["first"], env=env)
    runner.invoke(cli.main, ["second"], env=env)

    result = runner.invoke(cli.main, ["-r"], env=env)
    assert result.exit_code == 0
    assert result.output == "echo: second\n"


def test_private_chat_is_not_recorded(runner, env, prompts):
    runner.invoke(cli.main, ["-p", "secret"], env=env)
    result = runner.invoke(cli.main, ["-r"], env=env)
    assert result.exit_code == 1


def test_last_response_is_per_session(runner, env, prompts):
    runner.invoke(cli.main, ["mine"], env=env)
    result = runner.invoke(cli.main, ["-r"], env={**env, "ASKCII_SESSION": "other"})
    assert result.exit_code == 1


# ===========================================================================
# Configuration management
# ===========================================================================


def test_configure_empty(runner, env):
    result = runner.invoke(cli.main, ["-c"], input="4\n", env=env)
    assert result.exit_code == 0
    assert "Configuration Management" in result.output
    assert "No configurations found." in result.output
    assert "Exiting." in result.output


def test_configure_invalid_option(runner, env):
    result = runner.invoke(cli.main, ["-c"], input="9\n", env=env)
    assert result.exit_code == 0
    assert "Invalid option." in result.output


def test_configure_add_with_defaults(runner, env):
    result = runner.invoke(cli.main, ["-c"], input="1\nWork\n1\nsk-1\n\n\n", env=env)
    assert result.exit_code == 0, result.output
    assert "Configuration added successfully!" in result.output

    listing = runner.invoke(cli.main, ["-c"], input="4\n", env=env)
    assert "  1. Work [openai] (default)" in listing.output


def test_configure_add_keyless_provider_names_after_model(runner, env):
    result = runner.invoke(cli.main, ["-c"], input="1\n\n6\n\n\n", env=env)
    assert result.exit_code == 0, result.output
    assert "Enter Ollama API key" not in result.output

    listing = runner.invoke(cli.main, ["-c"], input="4\n", env=env)
    assert "  1. llama3.2 [ollama] (default)" in listing.output


def test_configure_add_requires_key(runner, env):
    result = runner.invoke(cli.main, ["-c"], input="1\nWork\n1\n\n", env=env)
    assert result.exit_code == 0
    assert "API key is required for this provider." in result.output
    assert "Configuration added successfully!" not in result.output


def test_configure_add_custom_model(runner, env):
    runner.invoke(cli.main, ["-c"], input="1\nLocal\n6\n\n7\nqwen2\n", env=env)
    listing = runner.invoke(cli.main, ["-c"], input="4\n", env=env)
    assert "  1. Local [ollama] (default)" in listing.output


def test_configure_set_default_and_delete(runner, env):
    runner.invoke(cli.main, ["-c"], input="1\nA\n1\nk\n\n\n", env=env)
    runner.invoke(cli.main, ["-c"], input="1\nB\n2\nk\n\n\n", env=env)

    result = runner.invoke(cli.main, ["-c"], input="2\n2\n", env=env)
    assert "Configuration 2 set as default." in result.output

    result = runner.invoke(cli.main, ["-c"], input="2\n5\n", env=env)
    assert "Invalid configuration ID." in result.output

    result = runner.invoke(cli.main, ["-c"], input="3\n2\n", env=env)
    assert "Configuration 2 deleted successfully." in result.output

    listing = runner.invoke(cli.main, ["-c"], input="4\n", env=env)
    assert "  1. A [openai] (default)" in listing.output
    assert "B [anthropic]" not in listing.output


def test_chat_uses_selected_configuration(runner, env, prompts):
    runner.invoke(cli.main, ["-c"], input="1\nLocal\n6\n\n2\n", env=env)
    result = runner.invoke(cli.main, ["-m", "1", "hi"], env=env)
    assert result.exit_code == 0, result.output
    assert prompts == ["hi"]
