"""
Session commands: sessions, groups, show.
"""

from typing import Annotated, List, Optional

import typer
from rich import print as rprint

from ._shared import app, console, fail, make_client


def _load_sessions(provider: str = "all"):
    """Fetch sessions and apply the provider filter.

    Returns (sessions, provider_options, resolved_provider).
    """
    from ..api_client import ApiError
    from ..session_index import (
        filter_by_provider,
        provider_options,
        provider_summaries,
        resolve_provider,
    )

    try:
        response = make_client().list_sessions()
    except ApiError as e:
        fail(e.message)

    summaries = provider_summaries(response.sessions, response.providers)
    resolved = resolve_provider(provider, summaries)
    options = provider_options(summaries, len(response.sessions))
    return filter_by_provider(response.sessions, resolved), options, resolved


def _render_provider_line(options, selected: str) -> str:
    parts: List[str] = []
    for option in options:
        text = f"{option.label} ({option.count})"
        parts.append(f"[bold]{text}[/bold]" if option.value == selected else text)
    return "[dim]Providers:[/dim] " + " · ".join(parts)


@app.command("sessions")
def sessions(
    group: Annotated[
        Optional[str], typer.Option("--group", "-g", help="Group id (see 'agentdash groups')")
    ] = None,
    search: Annotated[
        str, typer.Option("--search", "-s", help="Filter by message, id, repo or directory")
    ] = "",
    provider: Annotated[
        str, typer.Option("--provider", "-p", help="Only show sessions from this provider")
    ] = "all",
):
    """List captured sessions of one group.

    Examples:
        agentdash sessions
        agentdash sessions --group worktree:wt-1 --search "fix tests"
    """
    from ..render import render_session_rows
    from ..row_model import build_session_rows
    from ..session_index import build_index, resolve_group_id

    visible, options, resolved = _load_sessions(provider)
    if provider != resolved:
        rprint(f"[yellow]No sessions for provider '{provider}', showing all providers[/yellow]")

    index = build_index(visible)
    group_id = resolve_group_id(index, group)
    if group and group != group_id:
        rprint(f"[yellow]Unknown group '{group}', showing '{group_id}'[/yellow]")

    rprint(_render_provider_line(options, resolved))
    console.print(render_session_rows(build_session_rows(index, group_id, search)))


@app.command("groups")
def groups(
    provider: Annotated[
        str, typer.Option("--provider", "-p", help="Only count sessions from this provider")
    ] = "all",
):
    """List session groups: overview, worktrees, directories, unassigned."""
    from ..render import render_group_table
    from ..session_index import build_index, group_sections

    visible, _, _ = _load_sessions(provider)
    if not visible:
        rprint("[dim]No sessions found.[/dim]")
        return
    console.print(render_group_table(group_sections(build_index(visible).groups)))


@app.command("show")
def show(
    provider: Annotated[str, typer.Argument(help="Session provider, e.g. claude or codex")],
    session_id: Annotated[str, typer.Argument(help="Session id")],
    mode: Annotated[
        Optional[str],
        typer.Option("--mode", "-m", help="user_only, conversation or full (default from config)"),
    ] = None,
    refresh: Annotated[
        bool, typer.Option("--refresh", "-r", help="Refetch even if the preview is complete")
    ] = False,
):
    """Show the transcript of one session.

    Examples:
        agentdash show claude 7f3c2a
        agentdash show codex 1234 --mode full
    """
    from ..api_client import ApiError
    from ..config import get_detail_mode
    from ..detail_cache import DetailCache, FetchScope
    from ..models import DetailMode, SessionSummary
    from ..render import render_session_item
    from ..session_index import session_key
    from ..session_items import build_session_item

    try:
        detail_mode = DetailMode(mode) if mode else get_detail_mode()
    except ValueError:
        choices = ", ".join(m.value for m in DetailMode)
        raise typer.BadParameter(f"'{mode}' is not one of {choices}", param_hint="--mode")

    client = make_client()
    try:
        listed = client.list_sessions().sessions
    except ApiError as e:
        fail(e.message)

    session = next(
        (s for s in listed if s.provider == provider and s.session_id == session_id),
        None,
    )

    with DetailCache(client.get_session_detail) as cache:
        if session is None:
            # Not in the listing: there is no preview to fall back on.
            session = SessionSummary(provider=provider, session_id=session_id)
            future = cache.request_detail(provider, session_id, detail_mode, forced=refresh)
        else:
            scope = FetchScope(session_key(session))
            future = cache.ensure_detail(session, detail_mode, forced=refresh, scope=scope)
        if future is not None:
            future.result()

        if detail_mode is DetailMode.USER_ONLY:
            detail = cache.user_only_detail(session)
        else:
            detail = cache.get_detail(provider, session_id, detail_mode)
        error = cache.get_error(provider, session_id, detail_mode)

    item = build_session_item(session, detail_mode, detail=detail, error=error)
    console.print(render_session_item(item))
    if error:
        fail(error)
