"""
codex-exec CLI - chat command.

Interactive multi-turn conversation. The first message starts a codex
session; every later message resumes it.
"""

import asyncio

import typer

from codex_exec.cli.errors import ExitCode, console, exit_code_for, print_exec_error
from codex_exec.cli.render import TranscriptBuffer
from codex_exec.cli.run import build_options, get_app_config, process_config
from codex_exec.core.errors import ExecError
from codex_exec.core.exec import ApprovalMode, ExecClient, ExecSession, SandboxPolicy

NEW_COMMAND = "/new"
EXIT_COMMANDS = ("/exit", "/quit")


def chat(
    ctx: typer.Context,
    model: str | None = typer.Option(None, "--model", "-m", help="Model for the first turn"),
    profile: str | None = typer.Option(None, "--profile", "-p", help="Codex config profile"),
    sandbox: SandboxPolicy | None = typer.Option(
        None, "--sandbox", "-s", help="Sandbox policy for the first turn"
    ),
    approval: ApprovalMode | None = typer.Option(None, "--approval", help="Approval policy"),
    timeout: float | None = typer.Option(
        None, "--timeout", "-t", min=0.001, help="Per-turn timeout in seconds"
    ),
    full_auto: bool = typer.Option(False, "--full-auto", help="Pass --full-auto"),
    skip_git_repo_check: bool = typer.Option(
        False, "--skip-git-repo-check", help="Allow running outside a git repository"
    ),
    change_directory: str | None = typer.Option(
        None, "--cd", "-C", help="Working directory for the agent"
    ),
    mcp_config: str | None = typer.Option(None, "--mcp-config", help="MCP config file"),
    pin_thread: bool = typer.Option(
        False,
        "--pin-thread",
        help="Resume by thread id instead of the most recent session",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show logs and progress"),
) -> None:
    """
    Chat with codex across several turns.

    Type /new to start a fresh session and /exit to quit.
    """
    config = get_app_config(ctx)
    try:
        options = build_options(
            config,
            model=model,
            profile=profile,
            sandbox=sandbox,
            approval=approval,
            timeout=timeout,
            full_auto=full_auto,
            skip_git_repo_check=skip_git_repo_check,
            change_directory=change_directory,
            mcp_config=mcp_config,
        )
    except ExecError as e:
        print_exec_error(e)
        raise typer.Exit(exit_code_for(e))

    session = ExecSession(ExecClient(process_config(config)), options, pin_thread=pin_thread)
    console.print("[dim]Type /new for a fresh session, /exit to quit.[/dim]")

    while True:
        try:
            line = console.input("[bold cyan]you>[/bold cyan] ")
        except EOFError:
            break
        except KeyboardInterrupt:
            console.print()
            raise typer.Exit(ExitCode.SIGINT)

        text = line.strip()
        if not text:
            continue
        if text in EXIT_COMMANDS:
            break
        if text == NEW_COMMAND:
            session.reset()
            console.print("[dim]Started a new session.[/dim]")
            continue

        transcript = TranscriptBuffer(console, verbose=verbose)
        try:
            result = asyncio.run(session.send(text, on_event=transcript))
        except ExecError as e:
            print_exec_error(e)
            transcript.print_partial_output()
            continue
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted[/yellow]")
            transcript.print_partial_output()
            continue

        console.print("[bold green]codex>[/bold green]")
        transcript.print_answer(result)
