"""
Unit tests for Rich render functions.

These assert on Text.plain and span styles, so no console is needed.
"""

from datetime import datetime, timezone

from rich.table import Table
from rich.text import Text

from agentdash.diff_engine import DiffEntry, DiffStats
from agentdash.models import CommitInfo, CommitsAhead, SessionEvent, WorktreeSummary
from agentdash.render import (
    get_status_style,
    render_commit_stack,
    render_diff_rows,
    render_diff_text,
    render_diff_totals,
    render_entry_line,
    render_event,
    render_group_table,
    render_rows,
    render_session_item,
    render_session_line,
    render_worktree_table,
)
from agentdash.row_model import EmptyRow, GroupHeaderRow, ItemRow, build_rows
from agentdash.session_index import GroupSection, SessionGroup
from agentdash.session_items import build_session_item
from agentdash.models import DetailMode
from tests.fixtures import file_diff_text, make_session

NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def styles_of(text: Text) -> set:
    return {str(span.style) for span in text.spans}


class TestStatusStyle:
    def test_known_codes(self):
        assert get_status_style("A") == "green"
        assert get_status_style("D") == "red"
        assert get_status_style("R100") == "cyan"

    def test_unknown_and_missing(self):
        assert get_status_style("X") == "white"
        assert get_status_style(None) == "dim"
        assert get_status_style("") == "dim"


class TestRenderRows:
    def test_dispatches_by_row_type(self):
        rows = [
            GroupHeaderRow(key="group:a", label="Staged", count=2),
            ItemRow(key="k", ref="payload"),
            EmptyRow(message="Nothing here"),
        ]

        result = render_rows(rows, lambda row: Text(f"item {row.ref}"))

        assert result.plain == "Staged (2)\nitem payload\nNothing here"


class TestSessionRendering:
    def test_session_line(self):
        session = make_session(
            session_id="abc",
            last_timestamp="2025-01-01T09:00:00Z",
            user_messages_preview=["fix   the\nbuild"],
        )

        plain = render_session_line(session, NOW).plain

        assert plain.startswith("claude   abc")
        assert "3h ago" in plain
        assert "1 msg" in plain
        assert plain.endswith("fix the build")

    def test_group_table(self):
        sections = [
            GroupSection(title="Worktrees", groups=[
                SessionGroup(id="wt-1", label="feature", kind="worktree", count=2),
                SessionGroup(id="wt-2", label="bugfix", kind="worktree", count=1),
            ]),
            GroupSection(title="Directories", groups=[
                SessionGroup(id="dir:x", label="x", kind="directory", count=1, description="/x"),
            ]),
        ]

        table = render_group_table(sections, NOW)

        assert isinstance(table, Table)
        assert table.row_count == 3
        assert [c.header for c in table.columns][:2] == ["Section", "Group"]
        assert list(table.columns[0].cells) == ["Worktrees", "", "Directories"]
        assert list(table.columns[4].cells) == ["unknown", "unknown", "unknown"]

    def test_event_with_tool(self):
        event = SessionEvent(
            category="tool_use",
            actor="assistant",
            label="Tool",
            text="running ls",
            tool=SessionEvent(category="tool_result", actor="system", label="Result", text="a.py"),
        )

        plain = render_event(event).plain

        assert plain == "[Tool]\nrunning ls\n  [Result]\na.py"

    def test_event_falls_back_to_summary_text(self):
        event = SessionEvent(category="message", actor="user", summary_text="short")
        assert render_event(event).plain == "[user]\nshort"

    def test_session_item_empty_state(self):
        session = make_session(user_messages_preview=[])
        item = build_session_item(session, DetailMode.USER_ONLY)

        plain = render_session_item(item, NOW).plain

        assert "claude s1" in plain
        assert plain.endswith("No user messages recorded.")

    def test_session_item_messages(self):
        session = make_session(user_messages_preview=["hello"])
        item = build_session_item(session, DetailMode.USER_ONLY)

        plain = render_session_item(item, NOW).plain

        assert "[User]\nhello" in plain


class TestDiffRendering:
    def entry(self, path="a.py", added=2, removed=1, status="M"):
        return DiffEntry.create(
            key=f"staged:{path}",
            title=path,
            group_key="staged",
            group_label="Staged",
            diff_text=file_diff_text(path, added=added, removed=removed),
            status=status,
        )

    def test_entry_line(self):
        line = render_entry_line(self.entry())
        assert line.plain == "▸ M a.py  +2 -1"

    def test_open_entry_line(self):
        assert render_entry_line(self.entry(), is_open=True).plain.startswith("▾ ")

    def test_multi_file_entry_shows_file_count(self):
        entry = DiffEntry.create(
            key="commit:0",
            title="Commit diff",
            group_key="commit",
            group_label="Commit vs main",
            diff_text=file_diff_text("a.py") + file_diff_text("b.py"),
        )
        assert render_entry_line(entry).plain.endswith("2 files")

    def test_diff_text_styles(self):
        text = render_diff_text(file_diff_text("a.py", added=1, removed=1))

        assert text.plain == file_diff_text("a.py", added=1, removed=1).rstrip("\n")
        assert {"bold", "cyan", "green", "red"} <= styles_of(text)

    def test_open_rows_include_diff(self):
        entry = self.entry()
        rows = build_rows([entry], {entry.key: True})

        plain = render_diff_rows(rows).plain

        assert plain.startswith("Staged (1)\n  ▾ M a.py")
        assert "+new 0" in plain

    def test_closed_rows_hide_diff(self):
        rows = build_rows([self.entry()], {})
        assert "+new 0" not in render_diff_rows(rows).plain

    def test_totals(self):
        assert render_diff_totals(DiffStats(additions=5, deletions=2), 3).plain == "3 files  +5 -2"


class TestWorktreeRendering:
    def test_worktree_table(self):
        worktree = WorktreeSummary(
            id="wt-1",
            name="feature",
            repo_name="repo",
            branch="feature/x",
            last_activity_at="2025-01-01T11:00:00Z",
            sessions=[make_session()],
        )

        table = render_worktree_table([worktree], NOW)

        assert table.row_count == 1
        assert list(table.columns[4].cells) == ["1"]
        assert list(table.columns[5].cells) == ["1h ago"]

    def test_commit_stack(self):
        worktree = WorktreeSummary(
            id="wt-1",
            name="feature",
            head_commit=CommitInfo(commit_id="abcdef123456", summary="Add parser"),
            commits_ahead=CommitsAhead(
                base_branch="main",
                merge_base="0123456789",
                commits=[
                    CommitInfo(commit_id="abcdef123456", summary="Add parser", timestamp="2025-01-01T10:00:00Z"),
                    CommitInfo(commit_id="fedcba654321", summary=""),
                ],
            ),
        )

        plain = render_commit_stack(worktree, NOW).plain

        assert plain.splitlines() == [
            "Commits vs main  2 commits",
            "Merge base: 0123456",
            "Head: abcdef1 Add parser",
            "  abcdef1  2h ago  Add parser",
            "  fedcba6  unknown  (no summary provided)",
        ]

    def test_commit_stack_up_to_date(self):
        worktree = WorktreeSummary(
            id="wt-1",
            name="feature",
            commits_ahead=CommitsAhead(base_branch="main"),
        )

        plain = render_commit_stack(worktree, NOW).plain

        assert "Merge base: unknown" in plain
        assert plain.endswith("Branch is up to date with main.")

    def test_commit_stack_without_data(self):
        worktree = WorktreeSummary(id="wt-1", name="feature")
        assert render_commit_stack(worktree, NOW).plain == "Commits vs default branch"
