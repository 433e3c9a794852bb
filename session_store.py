import logging
import threading
import time
import uuid
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from models import Message, PendingFile

logger = logging.getLogger(__name__)


class SessionState:
    """
    In-memory state for one browser session: pending input, busy flag,
    transcript and the transiently held API key.
    """

    def __init__(self):
        self.invoice_text: str = ""
        self.file: Optional[PendingFile] = None
        self.processing: bool = False
        self.messages: List[Message] = []
        self.api_key: str = ""
        self.awaiting_credential: bool = False

    def set_input(self, text: str) -> None:
        self.invoice_text = text

    def set_file(self, file: Optional[PendingFile]) -> None:
        self.file = file

    def set_processing(self, processing: bool) -> None:
        self.processing = processing

    def append_message(self, message: Message) -> None:
        self.messages = [*self.messages, message]

    def clear(self) -> None:
        # API key survives a clear
        self.invoice_text, self.file, self.messages = "", None, []

    def set_api_key(self, api_key: str) -> None:
        self.api_key = api_key.strip()

    def request_credential(self) -> None:
        self.awaiting_credential = True

    def cancel_credential_request(self) -> None:
        self.awaiting_credential = False

    def snapshot(self) -> Dict[str, Any]:
        """JSON-safe view of the session. The API key itself is never included."""
        file_info = None
        if self.file is not None:
            file_info = {
                'name': self.file.name,
                'size': self.file.size,
                'mime_type': self.file.mime_type,
            }
        return {
            'invoice_text': self.invoice_text,
            'file': file_info,
            'processing': self.processing,
            'messages': [m.model_dump() for m in self.messages],
            'has_api_key': bool(self.api_key),
            'awaiting_credential': self.awaiting_credential,
        }


class SessionRegistry:
    """
    Maps per-browser session ids to their SessionState.

    Sessions idle longer than `max_idle_seconds` are evicted, and once
    `max_sessions` is reached the least recently used one goes first.
    A session that is still processing is never evicted.
    """

    def __init__(self, max_idle_seconds: float = 3600, max_sessions: int = 500, clock=time.monotonic):
        self._sessions: "OrderedDict[str, SessionState]" = OrderedDict()
        self._last_seen: Dict[str, float] = {}
        self._lock = threading.Lock()
        self.max_idle_seconds = max_idle_seconds
        self.max_sessions = max_sessions
        self._clock = clock

    def new_id(self) -> str:
        return uuid.uuid4().hex

    def find(self, session_id: str) -> Optional[SessionState]:
        """Existing state for the id, or None. Never creates one."""
        with self._lock:
            self._evict_expired()
            state = self._sessions.get(session_id)
            if state is not None:
                self._touch(session_id)
            return state

    def get(self, session_id: str) -> SessionState:
        with self._lock:
            self._evict_expired()
            state = self._sessions.get(session_id)
            if state is None:
                self._evict_overflow()
                state = SessionState()
                self._sessions[session_id] = state
            self._touch(session_id)
            return state

    def _touch(self, session_id: str) -> None:
        self._sessions.move_to_end(session_id)
        self._last_seen[session_id] = self._clock()

    def _drop(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._last_seen.pop(session_id, None)

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [
            sid for sid, state in self._sessions.items()
            if not state.processing and now - self._last_seen[sid] > self.max_idle_seconds
        ]
        for sid in expired:
            self._drop(sid)
        if expired:
            logger.info(f"Evicted {len(expired)} idle session(s)")

    def _evict_overflow(self) -> None:
        # Oldest first; busy sessions are skipped
        for sid in [sid for sid, state in self._sessions.items() if not state.processing]:
            if len(self._sessions) < self.max_sessions:
                break
            self._drop(sid)
            logger.info("Evicted least recently used session")

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
