"""
Shared CLI state: Typer apps, console, options, and utilities.
"""

from typing import Annotated, NoReturn

import typer
from rich import print as rprint
from rich.console import Console

# Main app
app = typer.Typer(
    name="agentdash",
    help="Browse agent sessions, worktrees and their diffs",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Config subcommand group
config_app = typer.Typer(
    name="config",
    help="Manage configuration",
    no_args_is_help=False,
    invoke_without_command=True,
)
app.add_typer(config_app, name="config")

# Console for rich output
console = Console()

VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Log requests and cache activity"),
]


def fail(message: str) -> NoReturn:
    """Print an error in red and exit with status 1."""
    rprint(f"[red]Error: {message}[/red]")
    raise typer.Exit(code=1)


def make_client():
    """Build an ApiClient from the user's configuration."""
    from ..api_client import ApiClient
    from ..config import get_api_base, get_api_key, get_timeout

    return ApiClient(
        base_url=get_api_base(),
        timeout=get_timeout(),
        api_key=get_api_key() or "",
    )


def _print_version(value: bool):
    if value:
        from .. import __version__

        rprint(f"agentdash {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    verbose: VerboseOption = False,
    version: Annotated[
        bool,
        typer.Option("--version", callback=_print_version, is_eager=True, help="Show the version and exit"),
    ] = False,
):
    """Agent dashboard command line."""
    from ..config import get_log_file, get_log_level
    from ..logging_config import setup_cli_logging, setup_logging

    if verbose:
        setup_cli_logging(verbose=True, log_file=get_log_file())
    else:
        setup_logging(level=get_log_level(), log_file=get_log_file(), console=True)
