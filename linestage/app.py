"""Application entry point used by the CLI.

Contains:
- run: Start the interactive stager in a directory and return an exit code
- EXIT_OK, EXIT_STARTUP_FAILED, EXIT_NO_CHANGES: Exit codes returned by run
"""

from pathlib import Path
from typing import Any, Optional

import structlog
import typer

from linestage.config import ConfigError, load_config
from linestage.git import GitError, GitGateway, NotARepositoryError
from linestage.logging import configure_logging
from linestage.session import Pane, Session
from linestage.terminal import run_terminal
from linestage.view.controller import Controller
from linestage.view.intents import build_keymap


log = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_STARTUP_FAILED = 1
EXIT_NO_CHANGES = 2


def _choose_pane(gateway: GitGateway, preferred: Pane) -> Optional[Pane]:
    """Pick the starting pane, falling back to the other one when it is empty.

    Returns:
        The pane to open, or None if neither has changes.
    """
    other = Pane.STAGED if preferred is Pane.WORKING else Pane.WORKING
    for pane in (preferred, other):
        if pane is Pane.WORKING:
            if gateway.get_working_diff().strip() or gateway.get_untracked_files():
                return pane
        elif gateway.get_staged_diff().strip():
            return pane
    return None


def run(initial_working_directory: Path, overrides: Optional[dict[str, Any]] = None) -> int:
    """Run the interactive stager.

    Args:
        initial_working_directory: Any directory inside the repository.
        overrides: Config values taking precedence over the config files.

    Returns:
        EXIT_OK on normal quit, EXIT_STARTUP_FAILED when the repository or
        the configuration cannot be used, EXIT_NO_CHANGES when there is
        nothing to stage or unstage.
    """
    # Silence logging until the configured destination is known
    configure_logging()
    try:
        gateway = GitGateway.discover(Path(initial_working_directory))
        config = load_config(gateway.repo_root, overrides)
        keymap = build_keymap(config.keys)
    except NotARepositoryError as e:
        typer.echo(f"Error: {e}", err=True)
        return EXIT_STARTUP_FAILED
    except (ConfigError, ValueError) as e:
        typer.echo(f"Config error: {e}", err=True)
        return EXIT_STARTUP_FAILED

    configure_logging(config.log_level, config.log_file)
    gateway.context_lines = config.context_lines
    gateway.detect_renames = config.detect_renames
    gateway.show_untracked = config.show_untracked

    try:
        pane = _choose_pane(gateway, Pane(config.start_pane))
    except GitError as e:
        typer.echo(f"Git error: {e}", err=True)
        return EXIT_STARTUP_FAILED
    if pane is None:
        typer.echo("No changes to stage or unstage.", err=True)
        return EXIT_NO_CHANGES

    log.info("session_started", repo=str(gateway.repo_root), pane=pane.value)
    session = Session(gateway, pane)
    controller = Controller(session, keymap, confirm_discard=config.confirm_discard)
    controller.refresh()
    exit_code = run_terminal(controller)
    log.info("session_finished", exit_code=exit_code)
    return exit_code
