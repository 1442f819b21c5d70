# Role: In-memory session store. Owns lifecycle of Session objects:
# load/save the ConversationContext by session_id, append history, and expire inactive sessions.

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

import alumni_bot.config as config
from alumni_bot.models.context import ConversationContext
from alumni_bot.models.session import Message, Role, Session, utc_now


def is_session_expired(now: datetime, last_activity: datetime, ttl: timedelta) -> bool:
    # Key line: sliding window. Every turn refreshes last_activity.
    return (now - last_activity) > ttl


class SessionStore:
    def __init__(
        self,
        session_ttl_hours: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._sessions: Dict[str, Session] = {}
        self._ttl = timedelta(hours=session_ttl_hours or config.SESSION_TTL_HOURS)
        self._clock = clock or utc_now

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def get_session(self, session_id: str) -> Optional[Session]:
        # Role: read path shared by every accessor. Expired sessions are purged here,
        # so nothing older than the TTL is ever handed out.
        session = self._sessions.get(session_id)
        if session is None:
            return None

        if is_session_expired(self._clock(), session.last_activity, self._ttl):
            del self._sessions[session_id]
            if config.DEBUG:
                print(f"SESSION STORE: expired session purged ({session_id})")
            return None

        return session

    def load(self, session_id: str) -> Optional[ConversationContext]:
        session = self.get_session(session_id)
        if session is None:
            return None
        return session.context.model_copy(deep=True)

    def load_or_default(self, session_id: str) -> ConversationContext:
        # Key line: absent and expired look the same to callers.
        return self.load(session_id) or ConversationContext()

    def get_or_create(self, session_id: str, whatsapp_number: Optional[str] = None) -> Session:
        session = self.get_session(session_id)
        if session is None:
            now = self._clock()
            session = Session(
                session_id=session_id,
                whatsapp_number=whatsapp_number,
                created_at=now,
                last_activity=now,
            )
            self._sessions[session_id] = session
        elif whatsapp_number and not session.whatsapp_number:
            session.whatsapp_number = whatsapp_number
        return session

    def save(
        self,
        session_id: str,
        context: ConversationContext,
        whatsapp_number: Optional[str] = None,
    ) -> Session:
        # 1) Create the session on first write
        # 2) Overwrite the context (last write wins)
        # 3) Refresh last activity
        session = self.get_or_create(session_id, whatsapp_number)
        session.context = context.model_copy(deep=True)
        session.last_activity = self._clock()
        return session

    def append_message(self, session_id: str, role: Role, content: str) -> Session:
        # Key line: history is append-only (never trimmed, reordered or rewritten).
        session = self.get_or_create(session_id)
        now = self._clock()
        session.messages.append(Message(role=role, content=content, timestamp=now))
        session.last_activity = now
        return session

    def update_session(self, session: Session) -> None:
        # Role: persist handler bookkeeping (completion queue, accepted values, attempts).
        session.last_activity = self._clock()
        self._sessions[session.session_id] = session

    def clear(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def cleanup_expired(self) -> int:
        # Role: active sweep for long-running servers (load() already hides expired sessions).
        now = self._clock()
        to_delete = [
            sid for sid, s in self._sessions.items() if is_session_expired(now, s.last_activity, self._ttl)
        ]
        for sid in to_delete:
            del self._sessions[sid]
        return len(to_delete)

    def __len__(self) -> int:
        return len(self._sessions)
