"""In-memory store of live-chat sessions.

Sessions are created lazily on first reference and removed only by the
idle sweep. Every mutation completes synchronously, so a handler never
leaves a half-updated session behind when it awaits I/O afterwards.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from sitechat.services.clock import Clock, SystemClock, to_millis

MAX_HISTORY = 20
SESSION_IDLE_TTL = timedelta(hours=24)


@dataclass
class HistoryEntry:
    role: str  # user|assistant
    text: str
    ts: int  # epoch millis

    def to_dict(self) -> dict:
        return {"role": self.role, "text": self.text, "ts": self.ts}


@dataclass
class OutboundMessage:
    text: str
    timestamp: int  # epoch millis

    def to_dict(self) -> dict:
        return {"text": self.text, "timestamp": self.timestamp}


@dataclass
class ChatSession:
    session_id: str
    last_activity: int
    history: list[HistoryEntry] = field(default_factory=list)
    pending_outbound: list[OutboundMessage] = field(default_factory=list)

    def push_history(self, role: str, text: str, ts: int) -> None:
        self.history.append(HistoryEntry(role=role, text=text, ts=ts))
        if len(self.history) > MAX_HISTORY:
            del self.history[: len(self.history) - MAX_HISTORY]
        self.last_activity = ts


class SessionStore:
    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()
        self._sessions: dict[str, ChatSession] = {}

    def _now(self) -> int:
        return to_millis(self.clock.now())

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> Optional[ChatSession]:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> ChatSession:
        session = self._sessions.get(session_id)
        if session is None:
            session = ChatSession(session_id=session_id, last_activity=self._now())
            self._sessions[session_id] = session
        return session

    def record_inbound(self, session_id: str, text: str) -> ChatSession:
        """Append a visitor message to the session history."""
        session = self.get_or_create(session_id)
        session.push_history("user", text, self._now())
        return session

    def enqueue_outbound(self, session_id: str, text: str) -> ChatSession:
        """Queue a reply for the site and record it as an assistant turn."""
        session = self.get_or_create(session_id)
        now = self._now()
        session.pending_outbound.append(OutboundMessage(text=text, timestamp=now))
        session.push_history("assistant", text, now)
        return session

    def drain_outbound(self, session_id: str) -> list[OutboundMessage]:
        """Hand over and clear the pending replies. Drained replies are never redelivered."""
        session = self._sessions.get(session_id)
        if session is None or not session.pending_outbound:
            return []
        messages, session.pending_outbound = session.pending_outbound, []
        return messages

    def sweep_idle(self, max_idle: timedelta = SESSION_IDLE_TTL) -> list[str]:
        """Drop sessions idle for longer than max_idle. Returns removed ids."""
        now = self._now()
        limit_ms = int(max_idle.total_seconds() * 1000)
        expired = [sid for sid, s in self._sessions.items() if now - s.last_activity > limit_ms]
        for sid in expired:
            del self._sessions[sid]
        return expired
