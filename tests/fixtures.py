"""
Test fixtures and factories for agentdash unit tests.

Factory functions build model objects with sensible defaults so each test
only spells out the fields it cares about.
"""

from concurrent.futures import Future
from typing import List, Optional

from agentdash.models import (
    DetailMode,
    FileDiff,
    GitDetails,
    CommitDiff,
    SessionDetailResponse,
    SessionEvent,
    SessionSummary,
)


def make_session(
    session_id: str = "s1",
    provider: str = "claude",
    last_timestamp: Optional[str] = "2025-01-01T10:00:00Z",
    last_user_message: Optional[str] = None,
    user_messages_preview: Optional[List[str]] = None,
    user_message_count: Optional[int] = None,
    worktree_id: Optional[str] = None,
    worktree_name: Optional[str] = None,
    repo_name: Optional[str] = None,
    branch: Optional[str] = None,
    working_dir: Optional[str] = None,
) -> SessionSummary:
    preview = list(user_messages_preview or [])
    return SessionSummary(
        provider=provider,
        session_id=session_id,
        last_user_message=last_user_message,
        last_timestamp=last_timestamp,
        user_message_count=len(preview) if user_message_count is None else user_message_count,
        user_messages_preview=preview,
        worktree_id=worktree_id,
        worktree_name=worktree_name,
        repo_name=repo_name,
        branch=branch,
        working_dir=working_dir,
    )


def make_detail(
    events: Optional[List[SessionEvent]] = None,
    provider: str = "claude",
    session_id: str = "s1",
    mode: DetailMode = DetailMode.FULL,
) -> SessionDetailResponse:
    return SessionDetailResponse(
        provider=provider,
        session_id=session_id,
        mode=mode,
        events=list(events or []),
    )


def assistant_event(text: str) -> SessionEvent:
    return SessionEvent(category="message", actor="assistant", label="Assistant", text=text)


def make_file(path: str, status: str = "M", diff: str = "", display_path: str = "") -> FileDiff:
    return FileDiff(path=path, display_path=display_path, status=status, diff=diff)


def make_git_details(
    commit_diff: Optional[str] = None,
    reference: str = "main",
    staged: Optional[List[FileDiff]] = None,
    unstaged: Optional[List[FileDiff]] = None,
    untracked: Optional[List[FileDiff]] = None,
) -> GitDetails:
    return GitDetails(
        commit_diff=CommitDiff(reference=reference, diff=commit_diff) if commit_diff is not None else None,
        staged=list(staged or []),
        unstaged=list(unstaged or []),
        untracked=list(untracked or []),
    )


def file_diff_text(path: str, added: int = 1, removed: int = 0) -> str:
    """A minimal single-file unified diff with the given line counts."""
    lines = [
        f"diff --git a/{path} b/{path}",
        "index 1111111..2222222 100644",
        f"--- a/{path}",
        f"+++ b/{path}",
        f"@@ -1,{removed} +1,{added} @@",
    ]
    lines += [f"-old {i}" for i in range(removed)]
    lines += [f"+new {i}" for i in range(added)]
    return "\n".join(lines) + "\n"


class InlineExecutor:
    """Executor that runs submitted work synchronously on submit()."""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn, *args, **kwargs) -> Future:
        self.submitted += 1
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as e:  # pragma: no cover - _run catches fetch errors
            future.set_exception(e)
        return future

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        pass


class ManualExecutor:
    """Executor that queues work until run_all() is called."""

    def __init__(self):
        self.pending = []

    def submit(self, fn, *args, **kwargs) -> Future:
        future: Future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run_all(self) -> None:
        while self.pending:
            future, fn, args, kwargs = self.pending.pop(0)
            future.set_result(fn(*args, **kwargs))

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        pass
