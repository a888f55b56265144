"""
codex-exec CLI - doctor command.

Show which codex binary would be used and how it would be launched.
"""

import os

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from codex_exec.cli.errors import ExitCode, console
from codex_exec.cli.run import get_app_config
from codex_exec.core.binary import candidate_paths, resolve_binary


def doctor(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="List every candidate binary that was found",
    ),
) -> None:
    """
    Diagnose codex CLI discovery and process configuration.

    Exits non-zero when no usable codex binary is found.
    """
    config = get_app_config(ctx)
    process = config.process.with_nvm_support()

    console.print(Panel("[bold]codex-exec doctor[/bold]", expand=False))

    resolved, version = resolve_binary(process)
    found = os.sep in resolved.command and os.access(resolved.command, os.X_OK)

    console.print("\n[bold]Codex CLI:[/bold]")
    if found:
        console.print(f"[green]✓[/green] {escape(resolved.command)}")
        console.print(f"  {escape(version) if version else 'version unknown'}")
    else:
        console.print(f"[red]✗[/red] '{escape(process.command)}' not found")
        console.print("[dim]→ Install with: npm install -g @openai/codex[/dim]")

    if verbose:
        name = os.path.basename(process.command)
        for path in candidate_paths(name):
            console.print(f"[dim]  candidate: {escape(path)}[/dim]")

    table = Table(title="Process configuration", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("shell", process.shell)
    table.add_row("login shell", "yes" if process.use_login_shell else "no")
    table.add_row("working directory", process.working_directory or "(current)")
    table.add_row("extra PATH", os.pathsep.join(process.additional_paths) or "(none)")
    table.add_row("debug logging", "on" if process.debug_logging else "off")
    console.print()
    console.print(table)

    raise typer.Exit(ExitCode.SUCCESS if found else ExitCode.GENERAL_ERROR)
