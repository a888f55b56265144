"""
codex-exec CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer
from pydantic import ValidationError

from codex_exec import __version__
from codex_exec.cli import chat, doctor, run
from codex_exec.cli.errors import ExitCode, console, print_error
from codex_exec.core.config import load_config, load_layered_env

app = typer.Typer(
    name="codex-exec",
    help="Run the Codex CLI non-interactively from the terminal",
    no_args_is_help=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for all commands.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"codex-exec version {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging (command lines, every output line)",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    codex-exec - drive `codex exec` from scripts and the terminal.

    Examples:
        codex-exec run "Explain this repository"
        codex-exec chat
        codex-exec doctor
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()
    setup_logging(debug)

    try:
        config = load_config()
    except ValidationError as e:
        print_error(
            "Invalid codex-exec configuration",
            reason=str(e),
            solution="Check ~/.config/codex-exec/config.json and .codex-exec.json",
        )
        raise typer.Exit(ExitCode.USER_ERROR)

    if debug:
        config = config.model_copy(
            update={"process": config.process.model_copy(update={"debug_logging": True})}
        )
    ctx.obj = {"debug": debug, "config": config}


app.command(name="run")(run.run)
app.command(name="chat")(chat.chat)
app.command(name="doctor")(doctor.doctor)


def cli_main() -> None:
    """Console script entry point."""
    app()


__all__ = ["app", "cli_main"]
