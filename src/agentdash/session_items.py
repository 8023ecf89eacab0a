"""
Detail panel view model for a single session.

Combines a session summary with whatever the DetailCache currently holds
for it into a list of keyed messages plus an optional empty-state text.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from .models import DetailMode, SessionDetailResponse, SessionEvent, SessionSummary
from .session_index import metadata_parts, session_key


@dataclass(frozen=True)
class SessionMessage:
    key: str
    detail: SessionEvent


@dataclass(frozen=True)
class SessionItem:
    session_key: str
    provider: str
    session_id: str
    last_timestamp: Optional[str]
    messages: List[SessionMessage] = field(default_factory=list)
    metadata: List[str] = field(default_factory=list)
    empty_state: Optional[str] = None

    @property
    def user_message_count(self) -> int:
        return sum(1 for m in self.messages if m.detail.is_user)


def to_messages(events: Sequence[SessionEvent], key: str, scope: str) -> List[SessionMessage]:
    return [SessionMessage(key=f"{key}-{scope}-{i}", detail=e) for i, e in enumerate(events)]


def user_only_messages(
    session: SessionSummary,
    detail: Optional[SessionDetailResponse] = None,
) -> List[SessionMessage]:
    """User turns from a loaded transcript, or from the summary preview."""
    key = session_key(session)
    if detail is not None:
        return to_messages([e for e in detail.events if e.is_user], key, "user")
    return to_messages([SessionEvent.user(t) for t in session.user_messages_preview], key, "user")


def _note(key: str, suffix: str, event: SessionEvent) -> SessionMessage:
    return SessionMessage(key=f"{key}-{suffix}", detail=event)


def build_session_item(
    session: SessionSummary,
    mode: Union[DetailMode, str],
    detail: Optional[SessionDetailResponse] = None,
    error: Optional[str] = None,
    loading: bool = False,
    preview_truncated: Optional[bool] = None,
) -> SessionItem:
    """Assemble the messages and empty state shown for a session.

    Args:
        session: The session summary
        mode: Active detail mode
        detail: Payload from the cache for this mode (user_only may pass a full one)
        error: Cached error for the key, if any
        loading: Whether a fetch is in flight
        preview_truncated: Override for session.preview_truncated
    """
    mode = DetailMode(mode)
    key = session_key(session)
    if preview_truncated is None:
        preview_truncated = session.preview_truncated

    empty_state: Optional[str] = None

    if mode is DetailMode.USER_ONLY:
        messages = user_only_messages(session, detail)
        shown = sum(1 for m in messages if m.detail.is_user)
        if preview_truncated and shown < session.user_message_count:
            messages.append(_note(key, "preview-note", SessionEvent.system_note(
                "Preview",
                f"Showing {shown} of {session.user_message_count} user messages.",
                "Showing limited user messages",
            )))
        if error:
            text = f"Failed to load transcript: {error}"
            messages.append(_note(key, "error", SessionEvent.system_note("Error", text)))
        elif loading:
            messages.append(_note(key, "loading", SessionEvent.system_note(
                "Loading", "Loading full user transcript…", "Loading full transcript…",
            )))
        elif shown == 0:
            empty_state = "No user messages recorded."
    else:
        events = detail.events if detail is not None else []
        messages = to_messages(events, key, mode.value)
        if error:
            empty_state = f"Failed to load transcript: {error}"
        elif loading:
            empty_state = "Loading transcript…"
        elif not messages:
            empty_state = (
                "No conversation messages found."
                if mode is DetailMode.CONVERSATION
                else "No transcript entries found."
            )

    return SessionItem(
        session_key=key,
        provider=session.provider,
        session_id=session.session_id,
        last_timestamp=session.last_timestamp,
        messages=messages,
        metadata=metadata_parts(session),
        empty_state=empty_state,
    )
