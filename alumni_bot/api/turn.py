# Role: Thin HTTP adapter for one conversation turn. Validates request/response shapes and delegates the whole
# turn to TurnController (business logic lives in core, not in the API layer).

from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from alumni_bot.api.deps import turn_controller
from alumni_bot.core.validators import ValidationResult
from alumni_bot.models.intent import Intent

router = APIRouter(tags=["turn"])


class TurnRequest(BaseModel):
    session_id: str
    user_message: str
    whatsapp_number: Optional[str] = None


class TurnReply(BaseModel):
    session_id: str
    reply: str
    intent: Intent
    waiting_for: str
    validation: Optional[ValidationResult] = None


@router.post("/turn", response_model=TurnReply)
def turn(req: TurnRequest) -> TurnReply:
    # 1) Forward (session_id, user_message) to the orchestrator
    # 2) Return reply + classification in a stable schema for clients
    result = turn_controller.handle_turn(req.session_id, req.user_message, req.whatsapp_number)
    return TurnReply(
        session_id=result.session_id,
        reply=result.reply,
        intent=result.intent,
        waiting_for=result.waiting_for,
        validation=result.validation,
    )
