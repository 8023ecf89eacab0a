"""
Flat row models for virtualized list display.

Grouped diff entries (or sessions) become a single heterogeneous row
sequence: group headers interleaved with items, or one placeholder row
when there is nothing to show. Expand/collapse state is a plain
key -> bool mapping updated only through the pure functions below, so
it survives recomputation without any UI framework.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from .diff_engine import DiffEntry, filter_entries
from .session_index import SessionIndex, filter_sessions, session_key


ROW_GROUP_HEADER = "group-header"
ROW_ITEM = "item"
ROW_EMPTY = "empty"

DEFAULT_EMPTY_MESSAGE = "No diff output available."
NO_MATCH_MESSAGE = "No files match your filter."
NO_SESSIONS_MESSAGE = "No sessions found."
NO_SESSION_MATCH_MESSAGE = "No sessions match your filters."


@dataclass(frozen=True)
class GroupHeaderRow:
    key: str
    label: str
    count: int
    kind: str = ROW_GROUP_HEADER


@dataclass(frozen=True)
class ItemRow:
    key: str
    ref: Any
    open: bool = False
    kind: str = ROW_ITEM


@dataclass(frozen=True)
class EmptyRow:
    message: str
    key: str = "empty"
    kind: str = ROW_EMPTY


Row = Union[GroupHeaderRow, ItemRow, EmptyRow]


# =============================================================================
# Open/closed state
# =============================================================================

def reconcile_open_state(previous: Mapping[str, bool], keys: Sequence[str]) -> Dict[str, bool]:
    """Carry open items over to a new key list.

    Keys that were open and still exist stay open; everything else is
    dropped. When nothing survives and the list is non-empty, the first
    key opens by default.
    """
    result = {key: True for key in keys if previous.get(key)}
    if not result and keys:
        result[keys[0]] = True
    return result


def toggle_open(state: Mapping[str, bool], key: str) -> Dict[str, bool]:
    result = dict(state)
    result[key] = not state.get(key, False)
    return result


def evict_missing(state: Mapping[str, bool], keys: Sequence[str]) -> Dict[str, bool]:
    present = set(keys)
    return {k: v for k, v in state.items() if k in present}


def open_count(state: Mapping[str, bool]) -> int:
    return sum(1 for v in state.values() if v)


# =============================================================================
# Row builders
# =============================================================================

def build_rows(
    entries: Sequence[DiffEntry],
    open_state: Optional[Mapping[str, bool]] = None,
    query: str = "",
    empty_message: str = DEFAULT_EMPTY_MESSAGE,
) -> List[Row]:
    """Flatten already-filtered entries into header/item rows.

    Groups appear in first-seen order and keep their entries' order. A
    header's count is the number of files its entries cover.
    """
    if not entries:
        message = NO_MATCH_MESSAGE if (query or "").strip() else empty_message
        return [EmptyRow(message=message)]

    open_state = open_state or {}
    labels: Dict[str, str] = {}
    members: Dict[str, List[DiffEntry]] = {}
    for entry in entries:
        if entry.group_key not in members:
            labels[entry.group_key] = entry.group_label
            members[entry.group_key] = []
        members[entry.group_key].append(entry)

    rows: List[Row] = []
    for group_key, items in members.items():
        rows.append(GroupHeaderRow(
            key=f"group:{labels[group_key]}",
            label=labels[group_key],
            count=sum(e.weight for e in items),
        ))
        rows.extend(
            ItemRow(key=e.key, ref=e, open=bool(open_state.get(e.key))) for e in items
        )
    return rows


def build_session_rows(
    index: SessionIndex,
    group_id: str,
    search_term: str = "",
    open_state: Optional[Mapping[str, bool]] = None,
) -> List[Row]:
    """Rows for the session browser: the selected group's filtered members."""
    group = index.groups_by_id.get(group_id)
    visible = filter_sessions(index.members(group_id), search_term)
    if group is None or not visible:
        message = NO_SESSION_MATCH_MESSAGE if (search_term or "").strip() else NO_SESSIONS_MESSAGE
        return [EmptyRow(message=message)]

    open_state = open_state or {}
    rows: List[Row] = [GroupHeaderRow(key=f"group:{group.id}", label=group.label, count=len(visible))]
    for session in visible:
        key = session_key(session)
        rows.append(ItemRow(key=key, ref=session, open=bool(open_state.get(key))))
    return rows


class RowModel:
    """Keeps diff rows and their open state in step with new input.

    update() is called whenever the entries or the filter query change;
    toggle() is the only way an item opens or closes otherwise.
    """

    def __init__(
        self,
        empty_message: str = DEFAULT_EMPTY_MESSAGE,
        filter_fn: Callable[[Sequence[DiffEntry], str], List[DiffEntry]] = filter_entries,
    ) -> None:
        self.empty_message = empty_message
        self._filter_fn = filter_fn
        self._entries: List[DiffEntry] = []
        self._visible: List[DiffEntry] = []
        self._query = ""
        self._open: Dict[str, bool] = {}
        self._rows: List[Row] = [EmptyRow(message=empty_message)]
        self._listeners: List[Callable[[List[Row]], None]] = []

    @property
    def rows(self) -> List[Row]:
        return list(self._rows)

    @property
    def visible_entries(self) -> List[DiffEntry]:
        return list(self._visible)

    @property
    def open_state(self) -> Dict[str, bool]:
        return dict(self._open)

    @property
    def open_count(self) -> int:
        return open_count(self._open)

    @property
    def visible_file_count(self) -> int:
        return sum(e.weight for e in self._visible)

    def subscribe(self, listener: Callable[[List[Row]], None]) -> None:
        self._listeners.append(listener)

    def update(self, entries: Sequence[DiffEntry], query: str = "") -> List[Row]:
        self._entries = list(entries)
        self._query = query or ""
        self._visible = self._filter_fn(self._entries, self._query)
        self._open = reconcile_open_state(self._open, [e.key for e in self._visible])
        return self._rebuild()

    def toggle(self, key: str) -> List[Row]:
        if not any(e.key == key for e in self._visible):
            return self.rows
        self._open = toggle_open(self._open, key)
        return self._rebuild()

    def is_open(self, key: str) -> bool:
        return bool(self._open.get(key))

    def _rebuild(self) -> List[Row]:
        self._rows = build_rows(self._visible, self._open, self._query, self.empty_message)
        for listener in list(self._listeners):
            listener(self.rows)
        return self.rows
