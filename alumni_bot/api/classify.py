# Role: Stateless access to the two core contracts: classify(message, context) and validate_field(field, value).
# Neither endpoint touches the session store.

from fastapi import APIRouter
from pydantic import BaseModel, Field

from alumni_bot.core.intent_classifier import classify
from alumni_bot.core.validators import ValidationResult, validate_field
from alumni_bot.models.context import ConversationContext
from alumni_bot.models.intent import Intent

router = APIRouter(tags=["core"])


class ClassifyRequest(BaseModel):
    message: str
    context: ConversationContext = Field(default_factory=ConversationContext)


class ValidateRequest(BaseModel):
    value: str = ""


@router.post("/classify", response_model=Intent)
def classify_message(req: ClassifyRequest) -> Intent:
    return classify(req.message, req.context)


@router.post("/validate/{field_name}", response_model=ValidationResult)
def validate(field_name: str, req: ValidateRequest) -> ValidationResult:
    # Key line: unknown field names come back as an invalid result, not an HTTP error.
    return validate_field(field_name, req.value)
