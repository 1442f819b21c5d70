# Role: Persisted per-conversation record. Holds the ConversationContext the classifier reads, the append-only
# message history, activity timestamps for expiry, and the handler's profile-completion bookkeeping.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from alumni_bot.models.context import ConversationContext
from alumni_bot.models.profile_field import ProfileField

Role = Literal["user", "assistant", "system"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Message(BaseModel):
    role: Role
    content: str
    timestamp: datetime = Field(default_factory=utc_now)


class Session(BaseModel):
    session_id: str
    whatsapp_number: Optional[str] = None
    user_id: Optional[str] = None

    context: ConversationContext = Field(default_factory=ConversationContext)
    messages: List[Message] = Field(default_factory=list)

    # Key line: fields still to ask after the one currently pending (front = next).
    remaining_fields: List[ProfileField] = Field(default_factory=list)

    # Canonical values accepted this session, keyed by field value ("linkedin", ...).
    profile_updates: Dict[str, Optional[str]] = Field(default_factory=dict)

    # Consecutive rejected answers for the field currently being asked.
    field_attempts: int = 0

    last_activity: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)
