"""
Unified diff splitting, labeling and statistics.

Pure functions that turn the raw diff text returned by the worktree git
endpoint into per-file DiffEntry view models. The engine only looks at
line prefixes; it never interprets diff content. Malformed input degrades
to a single unlabeled section rather than raising.
"""

import re
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Tuple

from .models import FileDiff, GitDetails


DIFF_HEADER_PREFIX = "diff --git "

# Header lines that also start with +/- and must not be counted as content
_HEADER_PREFIXES = ("diff --git", "index ", "@@", "+++", "---")

_DIFF_HEADER_RE = re.compile(r"^diff --git a/(.+?) b/(.+)$", re.MULTILINE)
# Diff text is line-oriented on "\n" only; other Unicode breaks are content
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+")

STATUS_LABELS = {
    "A": "Added",
    "M": "Modified",
    "D": "Deleted",
    "R": "Renamed",
    "C": "Copied",
    "T": "Type change",
    "U": "Unmerged",
    "?": "Untracked",
}

FILE_TYPE_ADD = "add"
FILE_TYPE_DELETE = "delete"
FILE_TYPE_MODIFY = "modify"
FILE_TYPE_RENAME = "rename"
FILE_TYPE_COPY = "copy"

FILE_TYPE_LABELS = {
    FILE_TYPE_ADD: "Added",
    FILE_TYPE_DELETE: "Deleted",
    FILE_TYPE_MODIFY: "Modified",
    FILE_TYPE_RENAME: "Renamed",
    FILE_TYPE_COPY: "Copied",
}

# Groups in the order build_entries() emits them
GROUP_COMMIT = "commit"
GROUP_STAGED = "staged"
GROUP_UNSTAGED = "unstaged"
GROUP_UNTRACKED = "untracked"

FILE_GROUPS: Tuple[Tuple[str, str], ...] = (
    (GROUP_STAGED, "Staged"),
    (GROUP_UNSTAGED, "Unstaged"),
    (GROUP_UNTRACKED, "Untracked"),
)

COMMIT_STATUS = "C"
COMMIT_STATUS_LABEL = "Commit"


@dataclass(frozen=True)
class DiffStats:
    additions: int = 0
    deletions: int = 0


@dataclass(frozen=True)
class DiffSection:
    """Contiguous text of one file's diff, header included."""

    diff: str
    key: str


@dataclass(frozen=True)
class DiffFile:
    """Structured view of one file inside a diff section."""

    old_path: Optional[str]
    new_path: Optional[str]
    type: str = FILE_TYPE_MODIFY
    hunks: int = 0
    additions: int = 0
    deletions: int = 0

    @property
    def type_label(self) -> str:
        return FILE_TYPE_LABELS.get(self.type, self.type)


@dataclass(frozen=True)
class DiffEntry:
    """One file-scoped (or commit-section-scoped) row of the diff list.

    additions/deletions/files are derived from diff_text; build instances
    through create() or with_diff_text() so they never go stale.
    """

    key: str
    title: str
    group_key: str
    group_label: str
    diff_text: str
    status: Optional[str] = None
    status_label: Optional[str] = None
    additions: int = 0
    deletions: int = 0
    files: List[DiffFile] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        key: str,
        title: str,
        group_key: str,
        group_label: str,
        diff_text: str,
        status: Optional[str] = None,
        status_label: Optional[str] = None,
    ) -> "DiffEntry":
        stats = compute_stats(diff_text)
        return cls(
            key=key,
            title=title,
            group_key=group_key,
            group_label=group_label,
            diff_text=diff_text,
            status=status,
            status_label=status_label,
            additions=stats.additions,
            deletions=stats.deletions,
            files=parse_files(diff_text),
        )

    def with_diff_text(self, diff_text: str) -> "DiffEntry":
        stats = compute_stats(diff_text)
        return replace(
            self,
            diff_text=diff_text,
            additions=stats.additions,
            deletions=stats.deletions,
            files=parse_files(diff_text),
        )

    @property
    def weight(self) -> int:
        """Number of files this entry contributes to a group header count."""
        if self.files:
            return len(self.files)
        return 1 if self.diff_text.strip() else 0


def _lines(diff_text: Optional[str]) -> List[str]:
    """Split on newlines only, dropping a trailing carriage return."""
    if not diff_text:
        return []
    return [line[:-1] if line.endswith("\r") else line for line in diff_text.split("\n")]


def compute_stats(diff_text: str) -> DiffStats:
    """Count added and removed content lines.

    Header lines (diff --git, index, @@, +++, ---) are skipped before the
    +/- prefix check so they are never counted.
    """
    additions = 0
    deletions = 0
    for line in _lines(diff_text):
        if not line:
            continue
        if line.startswith(_HEADER_PREFIXES):
            continue
        if line.startswith("+"):
            additions += 1
        elif line.startswith("-"):
            deletions += 1
    return DiffStats(additions=additions, deletions=deletions)


def split_by_file(diff_text: str) -> List[DiffSection]:
    """Split combined diff text into one section per ``diff --git`` header.

    Line endings are kept, so joining the section texts reproduces the
    input exactly. Blank lines before the first header stay attached to
    the first section. Blank input yields no sections.
    """
    if not diff_text or not diff_text.strip():
        return []

    sections: List[DiffSection] = []
    current: List[str] = []
    has_content = False

    def flush() -> None:
        if not current:
            return
        first_line = next((ln for ln in current if ln.strip()), current[0]).rstrip("\r\n")
        sections.append(DiffSection(diff="".join(current), key=f"{first_line}|{len(sections)}"))
        current.clear()

    for line in _LINE_RE.findall(diff_text):
        if line.startswith(DIFF_HEADER_PREFIX) and has_content:
            flush()
            has_content = False
        current.append(line)
        if line.strip():
            has_content = True

    flush()
    return sections


def _strip_path_prefix(value: Optional[str]) -> Optional[str]:
    if not value or value == "/dev/null":
        return None
    if value.startswith(("a/", "b/")):
        value = value[2:]
    return value or None


def extract_label(diff_section: str, fallback: str) -> str:
    """Display label for a diff section taken from its ``diff --git`` header.

    Renames render as ``old → new``. Falls back when no header matches or
    neither path resolves.
    """
    match = _DIFF_HEADER_RE.search(diff_section or "")
    if not match:
        return fallback
    old_path = _strip_path_prefix(match.group(1).rstrip("\r"))
    new_path = _strip_path_prefix(match.group(2).rstrip("\r"))
    if old_path and new_path and old_path != new_path:
        return f"{old_path} → {new_path}"
    return new_path or old_path or fallback


def normalize_status(code: Optional[str]) -> Optional[str]:
    """Map a git status code (``M``, ``R100``, ``?``...) to a label.

    Unknown codes pass through trimmed; blank codes have no label.
    """
    if not code:
        return None
    trimmed = code.strip()
    if not trimmed:
        return None
    return STATUS_LABELS.get(trimmed[0], trimmed)


def _strip_header_path(value: str) -> Optional[str]:
    # "--- a/foo.py\t2024-01-01" -> "foo.py"
    path = value.split("\t", 1)[0].strip()
    return _strip_path_prefix(path)


def parse_files(diff_text: str) -> List[DiffFile]:
    """Parse diff text into a list of DiffFile records.

    Headers are only recognised before a file's first hunk; inside a hunk
    every +/- line is content.
    """
    files: List[DiffFile] = []
    current: Optional[dict] = None
    in_hunk = False

    def finish() -> None:
        if current is not None:
            files.append(DiffFile(**current))

    for line in _lines(diff_text):
        if line.startswith(DIFF_HEADER_PREFIX):
            finish()
            match = _DIFF_HEADER_RE.match(line)
            current = {
                "old_path": _strip_path_prefix(match.group(1)) if match else None,
                "new_path": _strip_path_prefix(match.group(2)) if match else None,
                "type": FILE_TYPE_MODIFY,
                "hunks": 0,
                "additions": 0,
                "deletions": 0,
            }
            in_hunk = False
            continue

        if current is None:
            if line.startswith("--- "):
                current = {
                    "old_path": _strip_header_path(line[4:]),
                    "new_path": None,
                    "type": FILE_TYPE_MODIFY,
                    "hunks": 0,
                    "additions": 0,
                    "deletions": 0,
                }
                if current["old_path"] is None:
                    current["type"] = FILE_TYPE_ADD
            continue

        if line.startswith("@@"):
            current["hunks"] += 1
            in_hunk = True
            continue

        if in_hunk:
            if line.startswith("+"):
                current["additions"] += 1
            elif line.startswith("-"):
                current["deletions"] += 1
            continue

        if line.startswith("new file mode"):
            current["type"] = FILE_TYPE_ADD
        elif line.startswith("deleted file mode"):
            current["type"] = FILE_TYPE_DELETE
        elif line.startswith("rename from "):
            current["type"] = FILE_TYPE_RENAME
            current["old_path"] = line[len("rename from "):].strip()
        elif line.startswith("rename to "):
            current["type"] = FILE_TYPE_RENAME
            current["new_path"] = line[len("rename to "):].strip()
        elif line.startswith("copy from "):
            current["type"] = FILE_TYPE_COPY
            current["old_path"] = line[len("copy from "):].strip()
        elif line.startswith("copy to "):
            current["type"] = FILE_TYPE_COPY
            current["new_path"] = line[len("copy to "):].strip()
        elif line.startswith("--- "):
            path = _strip_header_path(line[4:])
            if path is None:
                current["type"] = FILE_TYPE_ADD
                current["old_path"] = None
            else:
                current["old_path"] = path
        elif line.startswith("+++ "):
            path = _strip_header_path(line[4:])
            if path is None:
                current["type"] = FILE_TYPE_DELETE
                current["new_path"] = None
            else:
                current["new_path"] = path

    finish()
    return files


def _file_entries(items: Sequence[FileDiff], group_key: str, group_label: str) -> List[DiffEntry]:
    entries = []
    for index, item in enumerate(items):
        label = item.display_path or item.path or f"File {index + 1}"
        entries.append(DiffEntry.create(
            key=f"{group_key}:{index}:{label}",
            title=label,
            group_key=group_key,
            group_label=group_label,
            diff_text=item.diff or "",
            status=item.status,
            status_label=normalize_status(item.status),
        ))
    return entries


def section_entries(
    diff_text: str,
    group_key: str,
    group_label: str,
    fallback_title: str = "Commit diff",
    status: Optional[str] = None,
    status_label: Optional[str] = None,
) -> List[DiffEntry]:
    """One entry per file section of a multi-file diff."""
    entries = []
    for index, section in enumerate(split_by_file(diff_text)):
        title = extract_label(section.diff, f"{fallback_title} {index + 1}")
        entries.append(DiffEntry.create(
            key=f"{group_key}:{index}:{title}",
            title=title,
            group_key=group_key,
            group_label=group_label,
            diff_text=section.diff,
            status=status,
            status_label=status_label,
        ))
    return entries


def commit_group_label(reference: Optional[str]) -> str:
    return f"Divergence vs {reference}" if reference else "Divergence vs base"


def build_entries(details: Optional[GitDetails]) -> List[DiffEntry]:
    """Flatten worktree git details into ordered diff entries.

    Order: divergence commit sections, then staged, unstaged and untracked
    files, each group preserving the source order. Empty groups contribute
    nothing.
    """
    if details is None:
        return []

    entries: List[DiffEntry] = []

    commit = details.commit_diff
    if commit is not None and commit.diff and commit.diff.strip():
        entries.extend(section_entries(
            commit.diff,
            GROUP_COMMIT,
            commit_group_label(commit.reference),
            status=COMMIT_STATUS,
            status_label=COMMIT_STATUS_LABEL,
        ))

    for group_key, group_label in FILE_GROUPS:
        entries.extend(_file_entries(getattr(details, group_key), group_key, group_label))

    return entries


def entry_haystack(entry: DiffEntry) -> str:
    file_names = " ".join(f"{f.new_path or ''} {f.old_path or ''}" for f in entry.files)
    return " ".join([
        entry.title,
        entry.group_label,
        entry.status or "",
        entry.status_label or "",
        file_names,
    ]).lower()


def filter_entries(entries: Sequence[DiffEntry], query: Optional[str]) -> List[DiffEntry]:
    """Case-insensitive filter over titles, groups, statuses and file paths."""
    term = (query or "").strip().lower()
    if not term:
        return list(entries)
    return [e for e in entries if term in entry_haystack(e)]


def total_stats(entries: Sequence[DiffEntry]) -> DiffStats:
    return DiffStats(
        additions=sum(e.additions for e in entries),
        deletions=sum(e.deletions for e in entries),
    )
