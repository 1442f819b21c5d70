# Role: Transparency endpoints for clients and the dev console. Exposes the session snapshot and recent search
# log; the PUT endpoint stands in for the identity-verification layer that owns auth/profile flags.

from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from alumni_bot.api.deps import query_log, session_store
from alumni_bot.models.context import WaitState
from alumni_bot.models.query_log import QueryLogEntry

router = APIRouter(tags=["session"])


class SessionSnapshot(BaseModel):
    session_id: str
    waiting_for: str
    authenticated: bool
    enhanced_profile_completed: bool
    remaining_fields: List[str]
    profile_updates: Dict[str, Optional[str]]
    message_count: int
    last_activity: datetime
    created_at: datetime


class ContextUpdate(BaseModel):
    authenticated: Optional[bool] = None
    enhanced_profile_completed: Optional[bool] = None
    waiting_for: Optional[str] = None


def _snapshot(session_id: str) -> SessionSnapshot:
    session = session_store.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found or expired")
    return SessionSnapshot(
        session_id=session.session_id,
        waiting_for=session.context.waiting_for.tag,
        authenticated=session.context.authenticated,
        enhanced_profile_completed=session.context.profile.enhanced_profile_completed,
        remaining_fields=[f.value for f in session.remaining_fields],
        profile_updates=session.profile_updates,
        message_count=len(session.messages),
        last_activity=session.last_activity,
        created_at=session.created_at,
    )


@router.get("/session/{session_id}", response_model=SessionSnapshot)
def get_session(session_id: str) -> SessionSnapshot:
    return _snapshot(session_id)


@router.put("/session/{session_id}/context", response_model=SessionSnapshot)
def update_context(session_id: str, update: ContextUpdate) -> SessionSnapshot:
    # 1) Start from the stored context (or the default one)
    # 2) Apply only the provided flags; bad wait-state tags -> 422
    context = session_store.load_or_default(session_id)

    if update.authenticated is not None:
        context.authenticated = update.authenticated
    if update.enhanced_profile_completed is not None:
        context.profile.enhanced_profile_completed = update.enhanced_profile_completed
    if update.waiting_for is not None:
        try:
            context.waiting_for = WaitState.parse(update.waiting_for)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e

    session_store.save(session_id, context)
    return _snapshot(session_id)


@router.get("/queries", response_model=List[QueryLogEntry])
def recent_queries(limit: int = 20) -> List[QueryLogEntry]:
    return query_log.recent(limit)
