"""Main CLI command: start the interactive stager."""

from pathlib import Path
from typing import Optional

import typer

from linestage import __version__
from linestage.app import run


def main_command(
    path: Path = typer.Argument(
        Path("."),
        help="Directory inside the repository to open",
        show_default=False,
    ),
    staged: bool = typer.Option(
        False,
        "--staged",
        "-s",
        help="Start in the staged pane (unstage mode)",
    ),
    context: Optional[int] = typer.Option(
        None,
        "--context",
        "-U",
        min=0,
        help="Number of context lines around each change",
    ),
    no_untracked: bool = typer.Option(
        False,
        "--no-untracked",
        help="Leave untracked files out of the working pane",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Append a structured log of git operations to this file",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        "-d",
        help="Log at DEBUG level (use with --log-file)",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
) -> None:
    """Review the working tree diff and stage or unstage it line by line."""
    if version:
        typer.echo(f"linestage {__version__}")
        raise typer.Exit(0)

    overrides = {
        "start_pane": "staged" if staged else None,
        "context_lines": context,
        "show_untracked": False if no_untracked else None,
        "log_file": log_file,
        "log_level": "DEBUG" if debug else None,
    }

    raise typer.Exit(run(path, overrides))
