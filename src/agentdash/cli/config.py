"""
Config commands: init, show, path, set-mode.
"""

from typing import Annotated

import typer
from rich import print as rprint

from ._shared import config_app


CONFIG_TEMPLATE = """\
# agentdash configuration
# Location: ~/.agentdash/config.yaml

# Backend base URL (AGENTDASH_API_BASE overrides this)
# api_base: http://localhost:3000

# Sent as X-API-Key when set
# api_key: your-secret-key

# HTTP timeout in seconds
# timeout: 10

# Default transcript mode for 'agentdash show': user_only, conversation, full
# detail_mode: user_only

# Console log level: DEBUG, INFO, WARNING, ERROR
# log_level: WARNING

# Append log records to this file as well
# log_file: ~/.agentdash/logs/agentdash.log
"""


@config_app.callback(invoke_without_command=True)
def config_default(ctx: typer.Context):
    """Show the effective configuration when no subcommand is given."""
    if ctx.invoked_subcommand is None:
        _config_show()


@config_app.command("init")
def config_init(
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Replace an existing config file")
    ] = False,
):
    """Create a config file with documented defaults."""
    from ..config import CONFIG_PATH

    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)

    if CONFIG_PATH.exists() and not force:
        rprint(f"[yellow]{CONFIG_PATH} already exists[/yellow] [dim](pass --force to replace it)[/dim]")
        raise typer.Exit(1)

    CONFIG_PATH.write_text(CONFIG_TEMPLATE)
    rprint(f"[green]✓[/green] Wrote {CONFIG_PATH}")


@config_app.command("show")
def config_show():
    """Show the effective configuration."""
    _config_show()


def _config_show():
    from ..config import (
        CONFIG_PATH,
        get_api_base,
        get_api_key,
        get_detail_mode,
        get_log_file,
        get_log_level,
        get_timeout,
    )

    if CONFIG_PATH.exists():
        rprint(f"[bold]Configuration[/bold] ({CONFIG_PATH}):\n")
    else:
        rprint(f"[dim]No config file found at {CONFIG_PATH}, using defaults[/dim]\n")

    api_key = get_api_key()
    masked = (api_key[:4] + "..." if len(api_key) > 4 else "****") if api_key else "(not set)"
    rprint(f"  api_base: {get_api_base()}")
    rprint(f"  api_key: {masked}")
    rprint(f"  timeout: {get_timeout():g}s")
    rprint(f"  detail_mode: {get_detail_mode().value}")
    rprint(f"  log_level: {get_log_level()}")
    rprint(f"  log_file: {get_log_file() or '(not set)'}")


@config_app.command("path")
def config_path():
    """Print the config file location."""
    from ..config import CONFIG_PATH

    print(CONFIG_PATH)


@config_app.command("set-mode")
def config_set_mode(
    mode: Annotated[str, typer.Argument(help="user_only, conversation or full")],
):
    """Save the default transcript mode used by 'agentdash show'."""
    from ..config import set_detail_mode
    from ..models import DetailMode

    try:
        saved = set_detail_mode(mode)
    except ValueError:
        choices = ", ".join(m.value for m in DetailMode)
        rprint(f"[red]Error: '{mode}' is not one of {choices}[/red]")
        raise typer.Exit(code=1)
    rprint(f"[green]✓ Detail mode set to {saved.value}[/green]")
