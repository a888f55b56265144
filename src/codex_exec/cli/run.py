"""
codex-exec CLI - run command.

Run a single `codex exec` turn and print the agent's answer.
"""

import asyncio
import os
import sys
from pathlib import Path
from typing import Any

import typer

from codex_exec.cli.errors import ExitCode, console, exit_code_for, print_error, print_exec_error
from codex_exec.cli.render import TranscriptBuffer
from codex_exec.core.binary import resolve_binary
from codex_exec.core.config import AppConfig, load_config
from codex_exec.core.errors import ExecError, InvalidConfigurationError
from codex_exec.core.exec import (
    ApprovalMode,
    ExecClient,
    ExecConfiguration,
    ExecOptions,
    SandboxPolicy,
)
from codex_exec.core.mcp import validate_mcp_config_path, write_inline_mcp_config


def get_app_config(ctx: typer.Context) -> AppConfig:
    """Config loaded by the app callback, or a fresh load when run standalone."""
    if ctx.obj and isinstance(ctx.obj.get("config"), AppConfig):
        return ctx.obj["config"]
    return load_config()


def process_config(config: AppConfig) -> ExecConfiguration:
    """
    Process configuration used to launch codex.

    nvm's node bin directory is added to PATH, and a bare command name is
    replaced by the newest detected binary so installs outside the shell's
    PATH still run. Without a detected binary the shell's PATH lookup is used.
    """
    process = config.process.with_nvm_support()
    if os.sep in process.command:
        return process
    resolved, _ = resolve_binary(process)
    return resolved


def parse_config_overrides(values: list[str] | None) -> dict[str, str]:
    """
    Parse repeated `-c key=value` flags.

    Raises:
        InvalidConfigurationError: If an entry has no "=" or an empty key
    """
    overrides: dict[str, str] = {}
    for entry in values or []:
        key, sep, value = entry.partition("=")
        if not sep or not key.strip():
            raise InvalidConfigurationError(f"Config override must be key=value, got '{entry}'")
        overrides[key.strip()] = value
    return overrides


def build_options(
    config: AppConfig,
    *,
    model: str | None = None,
    profile: str | None = None,
    sandbox: SandboxPolicy | None = None,
    approval: ApprovalMode | None = None,
    json_events: bool | None = None,
    timeout: float | None = None,
    full_auto: bool = False,
    skip_git_repo_check: bool = False,
    change_directory: str | None = None,
    add_dirs: list[str] | None = None,
    images: list[str] | None = None,
    config_overrides: list[str] | None = None,
    mcp_config: str | None = None,
    mcp_inline: str | None = None,
    search: bool = False,
    oss: bool = False,
    output_file: str | None = None,
    output_schema: str | None = None,
    prompt_as_argument: bool = False,
    **extra: Any,
) -> ExecOptions:
    """
    Merge config defaults with command-line flags into ExecOptions.

    Flags that are left unset keep the configured default.

    Raises:
        InvalidConfigurationError: For bad MCP input or config overrides
    """
    overrides = parse_config_overrides(config_overrides)
    mcp_config_path = validate_mcp_config_path(mcp_config) if mcp_config is not None else None
    if mcp_config_path is None and mcp_inline is not None:
        mcp_config_path = str(write_inline_mcp_config(mcp_inline))

    return config.defaults.to_options(
        model=model,
        profile=profile,
        sandbox=sandbox,
        approval=approval,
        json_events=json_events,
        timeout=timeout,
        full_auto=full_auto or None,
        skip_git_repo_check=skip_git_repo_check or None,
        change_directory=change_directory,
        additional_write_directories=add_dirs or None,
        image_paths=images or None,
        config_overrides=overrides or None,
        mcp_config_path=mcp_config_path,
        enable_search=search or None,
        use_oss_backend=oss or None,
        output_file=output_file,
        output_schema=output_schema,
        prompt_via_stdin=False if prompt_as_argument else None,
        **extra,
    )


def read_prompt(prompt: str | None) -> str:
    """Prompt from the argument, or stdin for `-` / piped input."""
    if prompt == "-":
        if sys.stdin.isatty():
            print_error("'-' requires piped input", solution="echo 'your prompt' | codex-exec run -")
            raise typer.Exit(ExitCode.USER_ERROR)
        return sys.stdin.read().strip()
    if prompt is None:
        if sys.stdin.isatty():
            # Empty prompt is valid only for a resume; the client enforces that
            return ""
        return sys.stdin.read().strip()
    return prompt


def run(
    ctx: typer.Context,
    prompt: str | None = typer.Argument(
        None,
        help="Prompt text ('-' or omit to read piped stdin)",
    ),
    model: str | None = typer.Option(None, "--model", "-m", help="Model to use"),
    profile: str | None = typer.Option(None, "--profile", "-p", help="Codex config profile"),
    sandbox: SandboxPolicy | None = typer.Option(None, "--sandbox", "-s", help="Sandbox policy"),
    approval: ApprovalMode | None = typer.Option(None, "--approval", help="Approval policy"),
    json_events: bool | None = typer.Option(
        None,
        "--json/--no-json",
        help="Request JSON events from codex (default from config)",
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", "-t", min=0.001, help="Timeout in seconds"
    ),
    full_auto: bool = typer.Option(False, "--full-auto", help="Pass --full-auto"),
    skip_git_repo_check: bool = typer.Option(
        False, "--skip-git-repo-check", help="Allow running outside a git repository"
    ),
    change_directory: str | None = typer.Option(
        None, "--cd", "-C", help="Working directory for the agent"
    ),
    add_dirs: list[str] | None = typer.Option(
        None, "--add-dir", help="Additional writable directory (repeatable)"
    ),
    images: list[str] | None = typer.Option(
        None, "--image", "-i", help="Image to attach (repeatable)"
    ),
    config_overrides: list[str] | None = typer.Option(
        None, "--config", "-c", help="Codex config override key=value (repeatable)"
    ),
    mcp_config: str | None = typer.Option(None, "--mcp-config", help="MCP config file"),
    mcp_inline: str | None = typer.Option(
        None, "--mcp-json", help='Inline MCP config JSON ({"mcpServers": {...}})'
    ),
    search: bool = typer.Option(False, "--search", help="Enable web search"),
    oss: bool = typer.Option(False, "--oss", help="Use the local OSS provider"),
    output_file: str | None = typer.Option(
        None, "--output-last-message", "-o", help="Write the final message to a file"
    ),
    output_schema: str | None = typer.Option(
        None, "--output-schema", help="JSON schema file for the final message"
    ),
    resume_last: bool = typer.Option(False, "--last", help="Resume the most recent session"),
    resume_id: str | None = typer.Option(None, "--resume", help="Resume the given session id"),
    prompt_as_argument: bool = typer.Option(
        False, "--no-stdin", help="Pass the prompt as an argument instead of stdin"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show logs and progress"),
) -> None:
    """
    Run one prompt through `codex exec` and print the answer.

    Examples:
        codex-exec run "Explain this repository"
        git diff | codex-exec run --sandbox read-only
        codex-exec run --last "Now add tests"
    """
    if resume_last and resume_id:
        print_error("Cannot use --last with --resume", solution="Remove one of the flags")
        raise typer.Exit(ExitCode.USER_ERROR)

    config = get_app_config(ctx)
    text = read_prompt(prompt)
    transcript = TranscriptBuffer(console, verbose=verbose)

    options: ExecOptions | None = None
    try:
        options = build_options(
            config,
            model=model,
            profile=profile,
            sandbox=sandbox,
            approval=approval,
            json_events=json_events,
            timeout=timeout,
            full_auto=full_auto,
            skip_git_repo_check=skip_git_repo_check,
            change_directory=change_directory,
            add_dirs=add_dirs,
            images=images,
            config_overrides=config_overrides,
            mcp_config=mcp_config,
            mcp_inline=mcp_inline,
            search=search,
            oss=oss,
            output_file=output_file,
            output_schema=output_schema,
            prompt_as_argument=prompt_as_argument,
            resume_last_session=resume_last or None,
            resume_session_id=resume_id,
        )
        client = ExecClient(process_config(config))
        result = asyncio.run(client.run(text, options, on_event=transcript))
    except ExecError as e:
        print_exec_error(e)
        transcript.print_partial_output()
        raise typer.Exit(exit_code_for(e))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        transcript.print_partial_output()
        raise typer.Exit(ExitCode.SIGINT)
    finally:
        # --mcp-json was written to a temp file for this call only
        if mcp_inline is not None and mcp_config is None and options is not None:
            Path(options.mcp_config_path).unlink(missing_ok=True)

    transcript.print_answer(result)
