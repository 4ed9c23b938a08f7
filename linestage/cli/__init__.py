"""CLI entry point for linestage."""

import typer

from linestage.cli.main import main_command


app = typer.Typer(
    name="linestage",
    help="linestage: stage and unstage git changes line by line",
    add_completion=False,
)

app.command()(main_command)


__all__ = [
    "app",
    "main_command",
]
