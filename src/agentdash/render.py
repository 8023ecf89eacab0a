"""
Pure render functions for CLI output.

All functions take view-model data and return Rich Text or Table objects.
No side effects and no I/O, so they can be tested without a console.
"""

from datetime import datetime
from typing import Callable, List, Optional, Sequence

from rich.table import Table
from rich.text import Text

from .diff_engine import DiffEntry, DiffStats
from .formatters import format_age, format_commit_id, format_line_stats, format_timestamp, pluralize, truncate
from .models import SessionEvent, SessionSummary, WorktreeSummary
from .row_model import EmptyRow, GroupHeaderRow, ItemRow, Row
from .session_index import GroupSection, session_preview
from .session_items import SessionItem

PREVIEW_WIDTH = 80

STATUS_STYLES = {
    "A": "green",
    "M": "yellow",
    "D": "red",
    "R": "cyan",
    "C": "magenta",
    "U": "bold red",
    "?": "dim",
}

ACTOR_STYLES = {
    "user": "bold cyan",
    "assistant": "bold green",
    "system": "dim",
}


def get_status_style(status: Optional[str]) -> str:
    if not status:
        return "dim"
    return STATUS_STYLES.get(status[0].upper(), "white")


# =============================================================================
# Generic rows
# =============================================================================

def render_header_row(row: GroupHeaderRow) -> Text:
    content = Text()
    content.append(row.label, style="bold")
    content.append(f" ({row.count})", style="dim")
    return content


def render_empty_row(row: EmptyRow) -> Text:
    return Text(row.message, style="dim italic")


def render_rows(rows: Sequence[Row], render_item: Callable[[ItemRow], Text]) -> Text:
    """Render a flattened row list, one line per row."""
    lines: List[Text] = []
    for row in rows:
        if isinstance(row, GroupHeaderRow):
            lines.append(render_header_row(row))
        elif isinstance(row, ItemRow):
            lines.append(render_item(row))
        else:
            lines.append(render_empty_row(row))
    return Text("\n").join(lines)


# =============================================================================
# Sessions
# =============================================================================

def render_session_line(session: SessionSummary, now: Optional[datetime] = None) -> Text:
    """One-line session summary: provider, id, age, message count, preview."""
    content = Text()
    content.append(f"{session.provider:<8} ", style="magenta")
    content.append(session.session_id, style="cyan")
    content.append(f"  {format_timestamp(session.last_timestamp, now)}", style="dim")
    content.append(f"  {pluralize(session.user_message_count, 'msg')}", style="dim")
    content.append(f"  {truncate(session_preview(session), PREVIEW_WIDTH)}")
    return content


def render_session_rows(rows: Sequence[Row], now: Optional[datetime] = None) -> Text:
    def item(row: ItemRow) -> Text:
        line = Text("  ")
        line.append_text(render_session_line(row.ref, now))
        return line

    return render_rows(rows, item)


def render_group_table(sections: Sequence[GroupSection], now: Optional[datetime] = None) -> Table:
    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("Section", style="dim")
    table.add_column("Group")
    table.add_column("Id", style="dim")
    table.add_column("Sessions", justify="right")
    table.add_column("Last activity", style="dim")
    table.add_column("Description", style="dim")

    for section in sections:
        for i, group in enumerate(section.groups):
            table.add_row(
                section.title if i == 0 else "",
                group.label,
                group.id,
                str(group.count),
                format_age(group.latest_activity, now),
                group.description or "",
            )
    return table


def render_event(event: SessionEvent) -> Text:
    """Render a transcript entry with its actor label and text."""
    actor = event.actor or event.category
    label = event.label or actor
    content = Text()
    content.append(f"[{label}]", style=ACTOR_STYLES.get(actor, "yellow"))
    if event.timestamp:
        content.append(f" {event.timestamp}", style="dim")
    body = event.text or event.summary_text or ""
    if body:
        content.append("\n")
        content.append(body)
    if event.tool is not None:
        content.append("\n  ")
        content.append_text(render_event(event.tool))
    return content


def render_session_item(item: SessionItem, now: Optional[datetime] = None) -> Text:
    content = Text()
    content.append(f"{item.provider} ", style="magenta")
    content.append(item.session_id, style="bold cyan")
    content.append(f"  {format_timestamp(item.last_timestamp, now)}", style="dim")
    for part in item.metadata:
        content.append(f"\n{part}", style="dim")
    content.append("\n")

    if not item.messages:
        content.append("\n")
        content.append(item.empty_state or "", style="dim italic")
        return content

    for message in item.messages:
        content.append("\n")
        content.append_text(render_event(message.detail))
        content.append("\n")
    return content


# =============================================================================
# Diffs
# =============================================================================

def render_entry_line(entry: DiffEntry, is_open: bool = False) -> Text:
    content = Text()
    content.append("▾ " if is_open else "▸ ", style="dim")
    if entry.status:
        content.append(f"{entry.status} ", style=get_status_style(entry.status))
    content.append(entry.title)
    content.append(f"  +{entry.additions}", style="green")
    content.append(f" -{entry.deletions}", style="red")
    if entry.files and len(entry.files) > 1:
        content.append(f"  {pluralize(len(entry.files), 'file')}", style="dim")
    return content


def render_diff_text(diff_text: str) -> Text:
    """Colour a unified diff by line prefix."""
    content = Text()
    lines = [line.rstrip("\r") for line in diff_text.rstrip("\n").split("\n")]
    for i, line in enumerate(lines):
        if line.startswith(("diff --git", "index ", "+++", "---")):
            style = "bold"
        elif line.startswith("@@"):
            style = "cyan"
        elif line.startswith("+"):
            style = "green"
        elif line.startswith("-"):
            style = "red"
        else:
            style = ""
        content.append(line, style=style)
        if i < len(lines) - 1:
            content.append("\n")
    return content


def render_diff_rows(rows: Sequence[Row]) -> Text:
    """Render diff rows; open items are followed by their coloured diff."""
    def item(row: ItemRow) -> Text:
        line = Text("  ")
        line.append_text(render_entry_line(row.ref, row.open))
        if row.open and row.ref.diff_text.strip():
            line.append("\n")
            line.append_text(render_diff_text(row.ref.diff_text))
        return line

    return render_rows(rows, item)


def render_diff_totals(stats: DiffStats, file_count: int) -> Text:
    content = Text()
    content.append(pluralize(file_count, "file"), style="bold")
    content.append(f"  {format_line_stats(stats.additions, stats.deletions)}", style="dim")
    return content


# =============================================================================
# Worktrees
# =============================================================================

def render_worktree_table(worktrees: Sequence[WorktreeSummary], now: Optional[datetime] = None) -> Table:
    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("Id", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Repo")
    table.add_column("Branch", style="magenta")
    table.add_column("Sessions", justify="right")
    table.add_column("Last activity", style="dim")

    for worktree in worktrees:
        table.add_row(
            worktree.id,
            worktree.name,
            worktree.repo_name,
            worktree.branch,
            str(len(worktree.sessions)),
            format_timestamp(worktree.last_activity_at or worktree.created_at, now),
        )
    return table


def render_commit_stack(worktree: WorktreeSummary, now: Optional[datetime] = None) -> Text:
    """Head commit plus the commits the branch has over its base."""
    ahead = worktree.commits_ahead
    content = Text()
    content.append(f"Commits vs {ahead.base_branch if ahead else 'default branch'}", style="bold")
    if ahead is not None:
        content.append(f"  {pluralize(len(ahead.commits), 'commit')}", style="dim")
        merge_base = format_commit_id(ahead.merge_base) or "unknown"
        content.append(f"\nMerge base: {merge_base}", style="dim")

    head = worktree.head_commit
    if head is not None:
        content.append("\nHead: ", style="dim")
        content.append(format_commit_id(head.commit_id), style="yellow")
        content.append(f" {head.summary}")

    if ahead is None:
        return content
    if not ahead.commits:
        content.append(f"\nBranch is up to date with {ahead.base_branch}.", style="dim italic")
        return content
    for commit in ahead.commits:
        content.append("\n  ")
        content.append(format_commit_id(commit.commit_id), style="yellow")
        content.append(f"  {format_timestamp(commit.timestamp, now)}", style="dim")
        content.append(f"  {commit.summary or '(no summary provided)'}")
    return content
