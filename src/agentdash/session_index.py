"""
Session grouping and indexing.

Turns the flat session list from the backend into named groups (all,
per-worktree, per-directory, unassigned) with stable ordering, plus the
lookups the session browser needs. Everything here is a pure function:
inputs are never mutated and every call returns fresh objects.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from .models import ProviderSummary, SessionSummary


KIND_ALL = "all"
KIND_WORKTREE = "worktree"
KIND_DIRECTORY = "directory"
KIND_UNASSIGNED = "unassigned"

# Group ordering: all first, unassigned last
KIND_ORDER = {
    KIND_ALL: 0,
    KIND_WORKTREE: 1,
    KIND_DIRECTORY: 2,
    KIND_UNASSIGNED: 3,
}

SECTION_TITLES = {
    KIND_ALL: "Overview",
    KIND_WORKTREE: "Worktrees",
    KIND_DIRECTORY: "Directories",
    KIND_UNASSIGNED: "Unassigned",
}

ALL_GROUP_ID = "all"
UNASSIGNED_GROUP_ID = "unassigned"
ROOT_DIR_KEY = "__root__"
ALL_PROVIDERS = "all"
NO_USER_MESSAGES = "No user messages yet"

SPECIAL_MESSAGE_TAGS = frozenset({
    "user_instructions",
    "environment_context",
    "user_action",
})

_TAGGED_MESSAGE_RE = re.compile(r"^<([a-z_]+)>([\s\S]*?)</\1>\s*$", re.IGNORECASE)
# Seconds fraction of an ISO-8601 time; may carry up to nanoseconds
_FRACTION_RE = re.compile(r"(\d{2}:\d{2}:\d{2})[.,](\d+)")


@dataclass(frozen=True)
class SessionGroup:
    """A named bucket of sessions shown in the sidebar."""

    id: str
    label: str
    kind: str
    count: int = 0
    latest_activity: int = 0  # epoch ms
    description: Optional[str] = None
    worktree_id: Optional[str] = None
    working_dir: Optional[str] = None
    working_dir_key: Optional[str] = None


@dataclass(frozen=True)
class GroupSection:
    title: str
    groups: List[SessionGroup]


@dataclass(frozen=True)
class SessionIndex:
    """Result of build_index()."""

    groups: List[SessionGroup]
    groups_by_id: Dict[str, SessionGroup]
    sessions_by_group: Dict[str, List[SessionSummary]]
    session_by_key: Dict[str, SessionSummary]
    default_group_id: str = ALL_GROUP_ID

    def members(self, group_id: str) -> List[SessionSummary]:
        return list(self.sessions_by_group.get(group_id, []))


@dataclass
class _GroupBuilder:
    group: SessionGroup
    sessions: List[SessionSummary] = field(default_factory=list)
    latest_activity: int = 0

    def add(self, session: SessionSummary, timestamp: int) -> None:
        self.sessions.append(session)
        if timestamp > self.latest_activity:
            self.latest_activity = timestamp


def session_key(session: SessionSummary) -> str:
    """Identity key of a session: ``<provider>-<session_id>``."""
    return f"{session.provider}-{session.session_id}"


def _microsecond_fraction(match: "re.Match") -> str:
    digits = match.group(2)[:6].ljust(6, "0")
    return f"{match.group(1)}.{digits}"


def parse_timestamp(value: Optional[str]) -> int:
    """Parse an ISO-8601 timestamp into epoch milliseconds.

    Naive timestamps are read as UTC. Fractions of any precision are
    cut or padded to microseconds. Returns 0 for absent or
    unparseable values so callers can sort without special cases.
    """
    if not value or not isinstance(value, str):
        return 0
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(_microsecond_fraction, text, count=1)
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return 0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def normalize_working_dir_key(path: str) -> str:
    """Normalize a working directory into a stable group key.

    Trims whitespace, converts backslashes to forward slashes and strips
    trailing slashes. Case is preserved. Empty results map to ROOT_DIR_KEY.
    """
    trimmed = (path or "").strip()
    if not trimmed:
        return ROOT_DIR_KEY
    normalized = trimmed.replace("\\", "/").rstrip("/")
    return normalized or ROOT_DIR_KEY


def describe_repo(session: SessionSummary) -> Optional[str]:
    if session.repo_name and session.branch:
        return f"{session.repo_name}/{session.branch}"
    if session.repo_name:
        return session.repo_name
    return None


def dedupe_sessions(sessions: Iterable[SessionSummary]) -> List[SessionSummary]:
    """Drop repeated identities; the first occurrence wins."""
    seen = set()
    result = []
    for session in sessions:
        key = session_key(session)
        if key in seen:
            continue
        seen.add(key)
        result.append(session)
    return result


def build_index(sessions: Sequence[SessionSummary]) -> SessionIndex:
    """Deduplicate, classify and sort sessions into groups.

    Every retained session lands in the "all" group and in exactly one
    of: its worktree group, its working-directory group, or "unassigned".
    Worktree membership takes precedence over directory membership.
    Malformed timestamps count as epoch 0; this never raises.
    """
    builders: Dict[str, _GroupBuilder] = {}
    session_by_key: Dict[str, SessionSummary] = {}

    builders[ALL_GROUP_ID] = _GroupBuilder(SessionGroup(
        id=ALL_GROUP_ID,
        label="All Sessions",
        kind=KIND_ALL,
        description="Every captured conversation",
    ))

    for session in dedupe_sessions(sessions):
        timestamp = parse_timestamp(session.last_timestamp)
        session_by_key[session_key(session)] = session
        builders[ALL_GROUP_ID].add(session, timestamp)

        if session.worktree_id:
            group_id = f"worktree:{session.worktree_id}"
            builder = builders.get(group_id)
            if builder is None:
                builder = builders[group_id] = _GroupBuilder(SessionGroup(
                    id=group_id,
                    label=session.worktree_name or session.worktree_id,
                    kind=KIND_WORKTREE,
                    description=session.working_dir or describe_repo(session),
                    worktree_id=session.worktree_id,
                    working_dir=session.working_dir,
                ))
            elif not builder.group.description:
                description = session.working_dir or describe_repo(session)
                if description:
                    builder.group = replace(builder.group, description=description)
            builder.add(session, timestamp)
        elif session.working_dir:
            dir_key = normalize_working_dir_key(session.working_dir)
            group_id = f"directory:{dir_key}"
            builder = builders.get(group_id)
            if builder is None:
                builder = builders[group_id] = _GroupBuilder(SessionGroup(
                    id=group_id,
                    label=session.working_dir,
                    kind=KIND_DIRECTORY,
                    working_dir=session.working_dir,
                    working_dir_key=dir_key,
                ))
            builder.add(session, timestamp)
        else:
            builder = builders.get(UNASSIGNED_GROUP_ID)
            if builder is None:
                builder = builders[UNASSIGNED_GROUP_ID] = _GroupBuilder(SessionGroup(
                    id=UNASSIGNED_GROUP_ID,
                    label="Unassigned",
                    kind=KIND_UNASSIGNED,
                    description="Sessions without a working directory",
                ))
            builder.add(session, timestamp)

    groups = []
    sessions_by_group: Dict[str, List[SessionSummary]] = {}
    for group_id, builder in builders.items():
        members = sorted(
            builder.sessions,
            key=lambda s: -parse_timestamp(s.last_timestamp),
        )
        sessions_by_group[group_id] = members
        groups.append(_finalize(builder.group, len(members), builder.latest_activity))

    groups.sort(key=lambda g: (KIND_ORDER[g.kind], -g.latest_activity, g.label))

    return SessionIndex(
        groups=groups,
        groups_by_id={g.id: g for g in groups},
        sessions_by_group=sessions_by_group,
        session_by_key=session_by_key,
        default_group_id=groups[0].id if groups else ALL_GROUP_ID,
    )


def _finalize(group: SessionGroup, count: int, latest_activity: int) -> SessionGroup:
    return replace(group, count=count, latest_activity=latest_activity)


def search_haystack(session: SessionSummary) -> str:
    parts = [
        session.session_id,
        session.provider,
        session.last_user_message or "",
        session.worktree_name or "",
        session.worktree_id or "",
        session.repo_name or "",
        session.branch or "",
        session.working_dir or "",
    ]
    return " ".join(parts).lower()


def filter_sessions(sessions: Sequence[SessionSummary], search_term: Optional[str]) -> List[SessionSummary]:
    """Case-insensitive substring filter over the session's identifying fields.

    A blank term returns the input unchanged (as a new list, same order).
    """
    term = (search_term or "").strip().lower()
    if not term:
        return list(sessions)
    return [s for s in sessions if term in search_haystack(s)]


def group_sections(groups: Sequence[SessionGroup]) -> List[GroupSection]:
    """Bucket sorted groups into titled sidebar sections, skipping empty ones."""
    buckets: Dict[str, List[SessionGroup]] = {kind: [] for kind in KIND_ORDER}
    for group in groups:
        buckets.setdefault(group.kind, []).append(group)
    return [
        GroupSection(title=SECTION_TITLES[kind], groups=buckets[kind])
        for kind in sorted(KIND_ORDER, key=KIND_ORDER.get)
        if buckets[kind]
    ]


def resolve_group_id(index: SessionIndex, selected: Optional[str]) -> str:
    """Keep the selected group while it exists, else fall back to the default."""
    if not index.groups:
        return ALL_GROUP_ID
    if selected and selected in index.groups_by_id:
        return selected
    return index.default_group_id


def resolve_session_key(visible: Sequence[SessionSummary], selected: Optional[str]) -> Optional[str]:
    """Keep the selected session while it is visible, else select the first one."""
    if not visible:
        return None
    if selected is not None and any(session_key(s) == selected for s in visible):
        return selected
    return session_key(visible[0])


# =============================================================================
# Provider filter
# =============================================================================

@dataclass(frozen=True)
class ProviderOption:
    value: str
    label: str
    count: int
    latest_timestamp: Optional[str] = None


def provider_summaries(
    sessions: Sequence[SessionSummary],
    declared: Optional[Sequence[ProviderSummary]] = None,
) -> List[ProviderSummary]:
    """Use the backend's provider list, or derive one from the sessions."""
    if declared:
        return list(declared)

    order: List[str] = []
    counts: Dict[str, int] = {}
    ids: Dict[str, List[str]] = {}
    latest: Dict[str, Optional[str]] = {}
    for session in sessions:
        provider = session.provider
        if provider not in counts:
            order.append(provider)
            counts[provider] = 0
            ids[provider] = []
            latest[provider] = None
        counts[provider] += 1
        ids[provider].append(session.session_id)
        ts = session.last_timestamp
        if ts and (latest[provider] is None or ts > latest[provider]):
            latest[provider] = ts

    return [
        ProviderSummary(
            provider=p,
            session_count=counts[p],
            session_ids=ids[p],
            latest_timestamp=latest[p],
        )
        for p in order
    ]


def provider_options(summaries: Sequence[ProviderSummary], total_count: int) -> List[ProviderOption]:
    ordered = sorted(summaries, key=lambda s: (-s.session_count, s.provider))
    options = [ProviderOption(value=ALL_PROVIDERS, label="All providers", count=total_count)]
    for summary in ordered:
        options.append(ProviderOption(
            value=summary.provider,
            label=summary.provider,
            count=summary.session_count,
            latest_timestamp=summary.latest_timestamp,
        ))
    return options


def resolve_provider(selected: str, summaries: Sequence[ProviderSummary]) -> str:
    if selected == ALL_PROVIDERS:
        return selected
    if any(s.provider == selected and s.session_count > 0 for s in summaries):
        return selected
    return ALL_PROVIDERS


def filter_by_provider(sessions: Sequence[SessionSummary], provider: str) -> List[SessionSummary]:
    if not provider or provider == ALL_PROVIDERS:
        return list(sessions)
    return [s for s in sessions if s.provider == provider]


# =============================================================================
# Preview helpers
# =============================================================================

def is_special_tagged_message(message: str) -> bool:
    """True for blank messages and messages wholly wrapped in a harness tag."""
    trimmed = message.strip()
    if not trimmed:
        return True
    match = _TAGGED_MESSAGE_RE.match(trimmed)
    if not match:
        return False
    return match.group(1).lower() in SPECIAL_MESSAGE_TAGS


def plain_user_messages(session: SessionSummary) -> List[str]:
    trimmed = (m.strip() for m in session.user_messages_preview)
    return [m for m in trimmed if m and not is_special_tagged_message(m)]


def session_preview(session: SessionSummary) -> str:
    """Best single-line description of what the user last asked."""
    if session.last_user_message and session.last_user_message.strip():
        return session.last_user_message.strip()
    for candidate in reversed(session.user_messages_preview):
        if candidate and candidate.strip():
            return candidate.strip()
    return NO_USER_MESSAGES


def metadata_parts(session: SessionSummary) -> List[str]:
    parts = []
    if session.worktree_name:
        parts.append(f"Worktree: {session.worktree_name}")
    repo = describe_repo(session)
    if repo:
        parts.append(f"Repo: {repo}")
    if session.working_dir:
        parts.append(f"Directory: {session.working_dir}")
    return parts
