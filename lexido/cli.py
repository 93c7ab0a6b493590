"""Command-line interface streaming an answer from the selected backend."""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from lexido import __version__
from lexido.config_validation import require_positive_int, validate_backend_mode
from lexido.conversation import read_conversation, save_conversation
from lexido.errors import ConfigError, LexidoError, SetupRequiredError
from lexido.logging_utils import configure_logging, get_logger
from lexido.providers import create_backend
from lexido.providers.base import GenerationBackend
from lexido.providers.ollama_provider import OllamaProvider
from lexido.system_context import SystemContext, wrap_prompt

BACKEND_ENV = "LEXIDO_BACKEND"
MODEL_ENV = "LEXIDO_MODEL"
EMPTY_PROMPT = "The user did not provide a prompt."
PIPE_HEADER = "\n\nUser also attached via pipe the following input:\n"

app = typer.Typer(add_completion=False)
console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)
logger = get_logger()


def _version_callback(value: bool) -> None:
    """Print package version and exit when requested."""
    if value:
        console.print(f"lexido version {__version__}")
        raise typer.Exit()


def _resolve_backend_name(backend: str | None, *, local: bool, remote: bool) -> str:
    """Pick exactly one backend from flags, option, or environment."""
    if local and remote:
        raise typer.BadParameter("Use either --local or --remote, not both.")
    if remote:
        return "bridge"
    if local:
        return "ollama"
    raw = backend or os.environ.get(BACKEND_ENV) or "openai"
    try:
        return validate_backend_mode(raw)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _load_mock_responses(mock_responses_file: Path) -> list[list[str]]:
    """Load and validate queued chunk lists for the mock backend."""
    raw = json.loads(mock_responses_file.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise typer.BadParameter("--mock-responses-file must contain a JSON list.")
    for index, item in enumerate(raw):
        if not isinstance(item, list) or not all(isinstance(chunk, str) for chunk in item):
            raise typer.BadParameter(f"Mock response index {index} is not a list of strings.")
    return raw


def _read_piped_input() -> str:
    """Return text piped on stdin, or an empty string for interactive sessions."""
    stream = sys.stdin
    if stream is None or stream.isatty():
        return ""
    return stream.read()


def compose_prompt(words: list[str], piped_input: str = "", previous: str = "") -> str:
    """Join prompt words after any previous conversation and append piped input."""
    prompt = " ".join(words).strip() or EMPTY_PROMPT
    if previous:
        prompt = f"{previous}\n{prompt}"
    if piped_input.strip():
        prompt += PIPE_HEADER + piped_input
    return prompt


def _render_stream(chunks: Iterator[str]) -> str:
    """Print chunks as they arrive and return the full response text."""
    parts: list[str] = []
    try:
        for chunk in chunks:
            parts.append(chunk)
            console.out(chunk, end="")
    finally:
        close = getattr(chunks, "close", None)
        if close is not None:
            close()
    # Generation finished.
    console.out("")
    return "".join(parts)


@app.command()
def main(
    prompt: Annotated[
        list[str] | None,
        typer.Argument(help="Prompt text; all words are joined with spaces."),
    ] = None,
    local: Annotated[
        bool,
        typer.Option("--local", "-l", help="Use a local LLM via Ollama."),
    ] = False,
    continue_conversation: Annotated[
        bool,
        typer.Option("--continue", "-c", help="Continue the previous conversation."),
    ] = False,
    remote: Annotated[
        bool,
        typer.Option("--remote", "-r", help="Use the REST API bridge from the config file."),
    ] = False,
    backend: Annotated[
        str | None,
        typer.Option(help="Backend to use: openai, ollama, bridge, or mock."),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", envvar=MODEL_ENV, help="Model name for the backend."),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option(help="Bridge configuration file (default: ~/.lexido/remoteConfig.json)."),
    ] = None,
    mock_responses_file: Annotated[
        Path | None,
        typer.Option(help="JSON list of chunk lists when backend=mock."),
    ] = None,
    queue_size: Annotated[
        int,
        typer.Option(help="Chunks buffered between the network reader and the display."),
    ] = 16,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable debug logging."),
    ] = False,
    log_file: Annotated[
        Path | None,
        typer.Option(help="Write logs to this file instead of stderr."),
    ] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=_version_callback,
            is_eager=True,
            help="Display version information.",
        ),
    ] = False,
) -> None:
    """Ask a question and stream the answer to the terminal."""
    _ = version
    configure_logging(log_file=log_file, verbose=verbose)
    name = _resolve_backend_name(backend, local=local, remote=remote)
    try:
        queue_size = require_positive_int(queue_size, "queue-size")
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    mock_responses = None
    if name == "mock":
        if mock_responses_file is None:
            raise typer.BadParameter("--mock-responses-file is required when backend=mock.")
        mock_responses = _load_mock_responses(mock_responses_file)

    previous = ""
    if continue_conversation:
        try:
            previous = read_conversation()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read conversation cache, starting a new one: %s", exc)
    text_prompt = compose_prompt(prompt or [], _read_piped_input(), previous)
    logger.debug("Selected backend %s", name)

    try:
        selected: GenerationBackend = create_backend(
            name,
            model=model,
            queue_size=queue_size,
            config_path=config_file,
            mock_responses=mock_responses,
        )
        if isinstance(selected, OllamaProvider):
            selected.ensure_model()
        response = _render_stream(
            selected.stream_generate(wrap_prompt(text_prompt, SystemContext.collect()))
        )
    except SetupRequiredError as exc:
        err_console.print(f"[yellow]{escape(str(exc))}[/yellow]")
        err_console.print(
            "Set [bold]url[/bold], [bold]headers[/bold], [bold]data_template[/bold] "
            "(with a \"<PROMPT>\" value) and [bold]field_to_extract[/bold], then run again."
        )
        raise typer.Exit(code=2) from exc
    except ConfigError as exc:
        err_console.print(f"[red]Configuration error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc
    except LexidoError as exc:
        logger.error("Generation with %s failed: %s", name, exc)
        err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    try:
        save_conversation(text_prompt, response)
    except OSError as exc:
        logger.warning("Failed to cache conversation: %s", exc)


if __name__ == "__main__":
    app()
