"""
Tests for the in-memory session state and its registry.
"""

import pytest
from pydantic import ValidationError as SchemaError

from models import Message, PendingFile
from session_store import SessionRegistry, SessionState


class TestSessionState:
    """Tests for SessionState mutators."""

    def test_starts_empty(self):
        state = SessionState()
        assert state.invoice_text == ""
        assert state.file is None
        assert state.processing is False
        assert state.messages == []
        assert state.api_key == ""
        assert state.awaiting_credential is False

    def test_setters_are_immediately_visible(self, pdf_file):
        state = SessionState()
        state.set_input("Invoice #1")
        state.set_file(pdf_file)
        state.set_processing(True)
        assert state.invoice_text == "Invoice #1"
        assert state.file is pdf_file
        assert state.processing is True

    def test_append_keeps_order_and_duplicates(self):
        state = SessionState()
        first = Message(role="user", content="same")
        second = Message(role="assistant", content="same")
        state.append_message(first)
        state.append_message(second)
        state.append_message(first)
        assert state.messages == [first, second, first]

    def test_clear_resets_input_and_transcript(self, pdf_file):
        state = SessionState()
        state.set_input("text")
        state.set_file(pdf_file)
        state.append_message(Message(role="user", content="hi"))
        state.set_api_key("key")

        state.clear()

        assert state.invoice_text == ""
        assert state.file is None
        assert state.messages == []
        assert state.api_key == "key"

    def test_clear_on_fresh_state(self):
        state = SessionState()
        state.clear()
        assert state.messages == []

    def test_api_key_is_trimmed(self):
        state = SessionState()
        state.set_api_key("  abc  ")
        assert state.api_key == "abc"

    def test_credential_request_flag(self):
        state = SessionState()
        state.request_credential()
        assert state.awaiting_credential is True
        state.cancel_credential_request()
        assert state.awaiting_credential is False

    def test_snapshot_hides_api_key(self, pdf_file):
        state = SessionState()
        state.set_api_key("secret-key")
        state.set_file(pdf_file)
        state.append_message(Message(role="user", content="hello"))

        snap = state.snapshot()

        assert "secret-key" not in repr(snap)
        assert snap["has_api_key"] is True
        assert snap["file"] == {"name": "invoice.pdf", "size": 9, "mime_type": "application/pdf"}
        assert snap["messages"] == [{"role": "user", "content": "hello"}]


class TestMessage:
    """Messages are immutable and role-checked."""

    def test_message_is_frozen(self):
        message = Message(role="user", content="hi")
        with pytest.raises(SchemaError):
            message.content = "changed"

    def test_unknown_role_rejected(self):
        with pytest.raises(SchemaError):
            Message(role="system", content="hi")

    def test_pending_file_size_kb(self):
        assert PendingFile(name="a.txt", size=2048).size_kb == 2.0


class TestSessionRegistry:
    """Tests for SessionRegistry."""

    def test_same_id_returns_same_state(self):
        registry = SessionRegistry()
        sid = registry.new_id()
        assert registry.get(sid) is registry.get(sid)

    def test_ids_are_isolated(self):
        registry = SessionRegistry()
        a = registry.get(registry.new_id())
        b = registry.get(registry.new_id())
        a.set_input("only in a")
        assert b.invoice_text == ""
        assert len(registry) == 2

    def test_find_does_not_create(self):
        registry = SessionRegistry()
        assert registry.find("unknown") is None
        assert len(registry) == 0


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestSessionEviction:
    """Idle and overflow eviction keep the registry bounded."""

    def test_idle_sessions_expire(self):
        clock = FakeClock()
        registry = SessionRegistry(max_idle_seconds=60, clock=clock)
        registry.get("old").set_input("stale")

        clock.now = 61
        registry.get("new")

        assert registry.find("old") is None
        assert len(registry) == 1

    def test_activity_keeps_session_alive(self):
        clock = FakeClock()
        registry = SessionRegistry(max_idle_seconds=60, clock=clock)
        registry.get("a").set_input("kept")
        clock.now = 50
        registry.find("a")
        clock.now = 100
        assert registry.find("a").invoice_text == "kept"

    def test_processing_session_is_not_expired(self):
        clock = FakeClock()
        registry = SessionRegistry(max_idle_seconds=60, clock=clock)
        registry.get("busy").set_processing(True)
        clock.now = 1000
        assert registry.find("busy") is not None

    def test_least_recently_used_evicted_at_capacity(self):
        registry = SessionRegistry(max_sessions=2)
        registry.get("a")
        registry.get("b")
        registry.find("a")
        registry.get("c")

        assert registry.find("b") is None
        assert registry.find("a") is not None
        assert registry.find("c") is not None
        assert len(registry) == 2

    def test_busy_sessions_skipped_at_capacity(self):
        registry = SessionRegistry(max_sessions=2)
        registry.get("a").set_processing(True)
        registry.get("b")
        registry.get("c")

        assert registry.find("a") is not None
        assert registry.find("b") is None
