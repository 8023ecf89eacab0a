"""
Unit tests for the session detail view model.
"""

from agentdash.models import DetailMode, SessionEvent
from agentdash.session_items import build_session_item, to_messages, user_only_messages
from tests.fixtures import assistant_event, make_detail, make_session


class TestUserOnly:
    """Test the user_only transcript view."""

    def test_complete_preview(self):
        session = make_session(user_messages_preview=["hi", "fix it"])
        item = build_session_item(session, DetailMode.USER_ONLY)
        assert [m.detail.text for m in item.messages] == ["hi", "fix it"]
        assert [m.key for m in item.messages] == ["claude-s1-user-0", "claude-s1-user-1"]
        assert item.empty_state is None

    def test_truncated_preview_adds_note(self):
        session = make_session(user_messages_preview=["a", "b"], user_message_count=5)
        item = build_session_item(session, "user_only")
        note = item.messages[-1]
        assert note.key == "claude-s1-preview-note"
        assert note.detail.label == "Preview"
        assert note.detail.text == "Showing 2 of 5 user messages."
        assert note.detail.actor == "system"

    def test_loaded_detail_replaces_preview(self):
        session = make_session(user_messages_preview=["a"], user_message_count=3)
        detail = make_detail([
            SessionEvent.user("one"),
            assistant_event("reply"),
            SessionEvent.user("two"),
            SessionEvent.user("three"),
        ])
        item = build_session_item(session, "user_only", detail=detail)
        assert [m.detail.text for m in item.messages] == ["one", "two", "three"]
        assert item.user_message_count == 3

    def test_loading_note(self):
        session = make_session(user_messages_preview=["a"], user_message_count=3)
        item = build_session_item(session, "user_only", loading=True)
        assert item.messages[-1].key == "claude-s1-loading"
        assert item.messages[-1].detail.text == "Loading full user transcript…"

    def test_error_note_wins_over_loading(self):
        session = make_session(user_messages_preview=["a"], user_message_count=3)
        item = build_session_item(session, "user_only", error="timeout", loading=True)
        texts = [m.detail.text for m in item.messages]
        assert "Failed to load transcript: timeout" in texts
        assert "Loading full user transcript…" not in texts

    def test_no_user_messages(self):
        item = build_session_item(make_session(), "user_only")
        assert item.messages == []
        assert item.empty_state == "No user messages recorded."

    def test_preview_truncated_override(self):
        session = make_session(user_messages_preview=["a"], user_message_count=3)
        item = build_session_item(session, "user_only", preview_truncated=False)
        assert [m.detail.label for m in item.messages] == ["User"]

    def test_metadata(self):
        session = make_session(repo_name="app", branch="main", user_messages_preview=["a"])
        item = build_session_item(session, "user_only")
        assert item.metadata == ["Repo: app/main"]
        assert item.session_key == "claude-s1"


class TestTranscriptModes:
    """Test the conversation and full transcript views."""

    def test_full_events_are_keyed_by_mode(self):
        detail = make_detail([SessionEvent.user("q"), assistant_event("a")])
        item = build_session_item(make_session(), DetailMode.FULL, detail=detail)
        assert [m.key for m in item.messages] == ["claude-s1-full-0", "claude-s1-full-1"]
        assert item.empty_state is None

    def test_loading(self):
        item = build_session_item(make_session(), "conversation", loading=True)
        assert item.empty_state == "Loading transcript…"

    def test_error(self):
        item = build_session_item(make_session(), "full", error="Session not found")
        assert item.empty_state == "Failed to load transcript: Session not found"

    def test_empty_conversation(self):
        item = build_session_item(make_session(), "conversation", detail=make_detail([]))
        assert item.empty_state == "No conversation messages found."

    def test_empty_full(self):
        item = build_session_item(make_session(), "full", detail=make_detail([]))
        assert item.empty_state == "No transcript entries found."


class TestHelpers:
    """Test message helpers."""

    def test_to_messages(self):
        messages = to_messages([SessionEvent.user("x")], "k", "scope")
        assert messages[0].key == "k-scope-0"

    def test_user_only_messages_from_preview(self):
        messages = user_only_messages(make_session(user_messages_preview=["p"]))
        assert messages[0].detail.is_user
        assert messages[0].detail.text == "p"
