"""
Worktree commands: worktrees, commits, diff, diff-file.
"""

import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich import print as rprint

from ._shared import app, console, fail, make_client


def _print_rows(entries, query: str, expand: bool, empty_message: Optional[str] = None) -> None:
    from ..diff_engine import total_stats
    from ..render import render_diff_rows, render_diff_totals
    from ..row_model import DEFAULT_EMPTY_MESSAGE, RowModel

    model = RowModel(empty_message=empty_message or DEFAULT_EMPTY_MESSAGE)
    model.update(entries, query)
    if expand:
        for entry in model.visible_entries:
            if not model.is_open(entry.key):
                model.toggle(entry.key)

    console.print(render_diff_rows(model.rows))
    if model.visible_entries:
        rprint("")
        console.print(render_diff_totals(total_stats(model.visible_entries), model.visible_file_count))


@app.command("worktrees")
def worktrees():
    """List worktrees known to the backend."""
    from ..api_client import ApiError
    from ..render import render_worktree_table

    try:
        items = make_client().list_worktrees()
    except ApiError as e:
        fail(e.message)

    if not items:
        rprint("[dim]No worktrees found.[/dim]")
        return
    console.print(render_worktree_table(items))


@app.command("commits")
def commits(
    worktree_id: Annotated[str, typer.Argument(help="Worktree id (see 'agentdash worktrees')")],
):
    """Show a worktree's head commit and the commits ahead of its base."""
    from ..api_client import ApiError
    from ..render import render_commit_stack

    try:
        items = make_client().list_worktrees()
    except ApiError as e:
        fail(e.message)

    worktree = next((w for w in items if w.id == worktree_id), None)
    if worktree is None:
        fail(f"Worktree '{worktree_id}' not found")
    console.print(render_commit_stack(worktree))


@app.command("diff")
def diff(
    worktree_id: Annotated[str, typer.Argument(help="Worktree id (see 'agentdash worktrees')")],
    query: Annotated[
        str, typer.Option("--filter", "-f", help="Only files whose path, group or status match")
    ] = "",
    expand: Annotated[
        bool, typer.Option("--expand", "-e", help="Print every file's diff, not just the first")
    ] = False,
):
    """Show divergence, staged, unstaged and untracked changes of a worktree.

    Examples:
        agentdash diff wt-1
        agentdash diff wt-1 --filter src/ --expand
    """
    from ..api_client import ApiError
    from ..diff_engine import build_entries

    try:
        details = make_client().get_worktree_git(worktree_id)
    except ApiError as e:
        fail(e.message)

    _print_rows(build_entries(details), query, expand)


@app.command("diff-file")
def diff_file(
    path: Annotated[
        str, typer.Argument(help="Unified diff file, or '-' for stdin")
    ] = "-",
    query: Annotated[
        str, typer.Option("--filter", "-f", help="Only files whose path matches")
    ] = "",
    expand: Annotated[
        bool, typer.Option("--expand", "-e", help="Print every file's diff, not just the first")
    ] = False,
):
    """Split a local unified diff into files and count changed lines.

    Examples:
        git diff main | agentdash diff-file
        agentdash diff-file changes.patch --expand
    """
    from ..diff_engine import section_entries

    if path == "-":
        text = sys.stdin.read()
        label = "stdin"
    else:
        source = Path(path)
        try:
            text = source.read_text()
        except (IOError, UnicodeDecodeError) as e:
            fail(f"Cannot read {path}: {e}")
        label = source.name

    entries = section_entries(text, "file", label, fallback_title="Section")
    _print_rows(entries, query, expand, empty_message="Diff is empty.")
