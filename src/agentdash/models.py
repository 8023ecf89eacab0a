"""
Payload models for the dashboard backend.

Each model mirrors one JSON shape returned by the backend API and offers a
``from_dict`` constructor that tolerates missing keys, so a partially
populated payload never fails to load.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional


class DetailMode(str, Enum):
    """Verbosity levels for a session transcript fetch."""

    USER_ONLY = "user_only"
    CONVERSATION = "conversation"
    FULL = "full"

    def __str__(self) -> str:
        return self.value


def _str_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


@dataclass(frozen=True)
class SessionSummary:
    """A captured agent conversation as listed by ``GET /api/sessions``."""

    provider: str
    session_id: str
    last_user_message: Optional[str] = None
    last_timestamp: Optional[str] = None  # ISO-8601
    user_message_count: int = 0
    user_messages_preview: List[str] = field(default_factory=list)
    worktree_id: Optional[str] = None
    worktree_name: Optional[str] = None
    repo_name: Optional[str] = None
    branch: Optional[str] = None
    working_dir: Optional[str] = None

    @property
    def preview_truncated(self) -> bool:
        """True when the preview holds fewer messages than the declared total."""
        return len(self.user_messages_preview) < self.user_message_count

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionSummary":
        preview = _str_list(data.get("user_messages_preview", data.get("user_messages")))
        count = data.get("user_message_count")
        if not isinstance(count, int) or count < 0:
            count = len(preview)
        return cls(
            provider=str(data.get("provider", "")),
            session_id=str(data.get("session_id", "")),
            last_user_message=_str_or_none(data.get("last_user_message")),
            last_timestamp=_str_or_none(data.get("last_timestamp")),
            user_message_count=count,
            user_messages_preview=preview,
            worktree_id=_str_or_none(data.get("worktree_id")),
            worktree_name=_str_or_none(data.get("worktree_name")),
            repo_name=_str_or_none(data.get("repo_name")),
            branch=_str_or_none(data.get("branch")),
            working_dir=_str_or_none(data.get("working_dir")),
        )


@dataclass(frozen=True)
class ProviderSummary:
    """Per-provider session totals."""

    provider: str
    session_count: int = 0
    session_ids: List[str] = field(default_factory=list)
    latest_timestamp: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProviderSummary":
        return cls(
            provider=str(data.get("provider", "")),
            session_count=int(data.get("session_count", 0) or 0),
            session_ids=_str_list(data.get("session_ids")),
            latest_timestamp=_str_or_none(data.get("latest_timestamp")),
        )


@dataclass(frozen=True)
class SessionListResponse:
    sessions: List[SessionSummary] = field(default_factory=list)
    providers: List[ProviderSummary] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionListResponse":
        return cls(
            sessions=[SessionSummary.from_dict(s) for s in data.get("sessions") or []],
            providers=[ProviderSummary.from_dict(p) for p in data.get("providers") or []],
        )


@dataclass(frozen=True)
class SessionEvent:
    """One transcript entry of a session detail payload."""

    category: str
    actor: Optional[str] = None
    label: Optional[str] = None
    text: Optional[str] = None
    summary_text: Optional[str] = None
    data: Optional[Any] = None
    timestamp: Optional[str] = None
    tool: Optional["SessionEvent"] = None

    @property
    def is_user(self) -> bool:
        return (self.actor or "").lower() == "user"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionEvent":
        tool = data.get("tool")
        return cls(
            category=str(data.get("category", "")),
            actor=_str_or_none(data.get("actor")),
            label=_str_or_none(data.get("label")),
            text=_str_or_none(data.get("text")),
            summary_text=_str_or_none(data.get("summary_text")),
            data=data.get("data"),
            timestamp=_str_or_none(data.get("timestamp")),
            tool=cls.from_dict(tool) if isinstance(tool, dict) else None,
        )

    @classmethod
    def user(cls, text: str) -> "SessionEvent":
        """Build a user-authored event from a bare message string."""
        return cls(
            category="user",
            actor="user",
            label="User",
            text=text,
            summary_text=text,
        )

    @classmethod
    def system_note(cls, label: str, text: str, summary_text: Optional[str] = None) -> "SessionEvent":
        return cls(
            category="session_meta",
            actor="system",
            label=label,
            text=text,
            summary_text=summary_text if summary_text is not None else text,
        )


@dataclass(frozen=True)
class SessionDetailResponse:
    """Payload of ``GET /api/sessions/{provider}/{id}?mode=...``."""

    provider: str
    session_id: str
    mode: DetailMode
    events: List[SessionEvent] = field(default_factory=list)
    last_timestamp: Optional[str] = None
    working_dir: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], mode: Optional[DetailMode] = None) -> "SessionDetailResponse":
        raw_mode = data.get("mode")
        try:
            parsed_mode = DetailMode(raw_mode) if raw_mode else (mode or DetailMode.FULL)
        except ValueError:
            parsed_mode = mode or DetailMode.FULL
        return cls(
            provider=str(data.get("provider", "")),
            session_id=str(data.get("session_id", "")),
            mode=parsed_mode,
            events=[
                SessionEvent.from_dict(e) for e in data.get("events") or [] if isinstance(e, dict)
            ],
            last_timestamp=_str_or_none(data.get("last_timestamp")),
            working_dir=_str_or_none(data.get("working_dir")),
        )


@dataclass(frozen=True)
class FileDiff:
    """Per-file status record from the worktree git endpoint."""

    path: str
    display_path: str = ""
    status: Optional[str] = None
    diff: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileDiff":
        return cls(
            path=str(data.get("path", "")),
            display_path=str(data.get("display_path") or ""),
            status=_str_or_none(data.get("status")),
            diff=str(data.get("diff") or ""),
        )


@dataclass(frozen=True)
class CommitDiff:
    reference: str
    diff: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CommitDiff":
        return cls(reference=str(data.get("reference") or ""), diff=str(data.get("diff") or ""))


@dataclass(frozen=True)
class GitDetails:
    """Payload of ``GET /api/worktrees/{id}/git``."""

    commit_diff: Optional[CommitDiff] = None
    staged: List[FileDiff] = field(default_factory=list)
    unstaged: List[FileDiff] = field(default_factory=list)
    untracked: List[FileDiff] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GitDetails":
        commit = data.get("commit_diff")
        return cls(
            commit_diff=CommitDiff.from_dict(commit) if isinstance(commit, dict) else None,
            staged=[FileDiff.from_dict(f) for f in data.get("staged") or []],
            unstaged=[FileDiff.from_dict(f) for f in data.get("unstaged") or []],
            untracked=[FileDiff.from_dict(f) for f in data.get("untracked") or []],
        )


@dataclass(frozen=True)
class CommitInfo:
    commit_id: str
    summary: str = ""
    timestamp: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CommitInfo":
        return cls(
            commit_id=str(data.get("commit_id") or ""),
            summary=str(data.get("summary") or ""),
            timestamp=_str_or_none(data.get("timestamp")),
        )


@dataclass(frozen=True)
class CommitsAhead:
    """Commits on a worktree branch that its base branch lacks."""

    base_branch: str
    merge_base: Optional[str] = None
    commits: List[CommitInfo] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CommitsAhead":
        return cls(
            base_branch=str(data.get("base_branch") or ""),
            merge_base=_str_or_none(data.get("merge_base")),
            commits=[CommitInfo.from_dict(c) for c in data.get("commits") or [] if isinstance(c, dict)],
        )


@dataclass(frozen=True)
class WorktreeSummary:
    """A backend-managed worktree with its embedded sessions."""

    id: str
    name: str
    branch: str = ""
    repo_name: str = ""
    path: str = ""
    created_at: Optional[str] = None
    last_activity_at: Optional[str] = None
    task_name: Optional[str] = None
    head_commit: Optional[CommitInfo] = None
    commits_ahead: Optional[CommitsAhead] = None
    sessions: List[SessionSummary] = field(default_factory=list)

    def worktree_sessions(self) -> List[SessionSummary]:
        """Embedded sessions stamped with this worktree's identity."""
        return [
            replace(
                s,
                worktree_id=self.id,
                worktree_name=self.name,
                repo_name=s.repo_name or self.repo_name or None,
                branch=s.branch or self.branch or None,
                working_dir=s.working_dir or self.path or None,
            )
            for s in self.sessions
        ]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorktreeSummary":
        head = data.get("head_commit")
        ahead = data.get("commits_ahead")
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            branch=str(data.get("branch") or ""),
            repo_name=str(data.get("repo_name") or ""),
            path=str(data.get("path") or ""),
            created_at=_str_or_none(data.get("created_at")),
            last_activity_at=_str_or_none(data.get("last_activity_at")),
            task_name=_str_or_none(data.get("task_name")),
            head_commit=CommitInfo.from_dict(head) if isinstance(head, dict) else None,
            commits_ahead=CommitsAhead.from_dict(ahead) if isinstance(ahead, dict) else None,
            sessions=[SessionSummary.from_dict(s) for s in data.get("sessions") or []],
        )
