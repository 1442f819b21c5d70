# Role: Typed classifier output. Intent is what the transport layer dispatches on:
# (answer a profile field / run a search / execute a command / fall back). The validator enforces that
# each payload field travels only with its own intent type.

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, model_validator

from alumni_bot.models.profile_field import ProfileField


class IntentType(str, Enum):
    PROFILE_INPUT = "profile_input"
    SEARCH = "search"
    COMMAND = "command"
    UNKNOWN = "unknown"


class Command(str, Enum):
    HELP = "help"
    UPDATE_PROFILE = "update_profile"
    SKIP = "skip"
    RESET = "reset"


class BlockReason(str, Enum):
    NOT_AUTHENTICATED = "not_authenticated"
    PROFILE_INCOMPLETE = "profile_incomplete"


class Intent(BaseModel):
    type: IntentType
    field: Optional[ProfileField] = None
    value: Optional[str] = None
    command: Optional[Command] = None
    query: Optional[str] = None
    blocked: bool = False
    block_reason: Optional[BlockReason] = None

    @model_validator(mode="after")
    def _check_payload(self):
        is_profile = self.type == IntentType.PROFILE_INPUT

        # field/value iff PROFILE_INPUT
        if is_profile and (self.field is None or self.value is None):
            raise ValueError("field and value are required when type=PROFILE_INPUT")
        if not is_profile and (self.field is not None or self.value is not None):
            raise ValueError("field/value must be None unless type=PROFILE_INPUT")

        # command iff COMMAND
        if (self.type == IntentType.COMMAND) != (self.command is not None):
            raise ValueError("command is required for type=COMMAND and forbidden otherwise")

        # query iff SEARCH
        if (self.type == IntentType.SEARCH) != (self.query is not None):
            raise ValueError("query is required for type=SEARCH and forbidden otherwise")

        # block_reason iff blocked
        if self.blocked != (self.block_reason is not None):
            raise ValueError("block_reason is required when blocked and forbidden otherwise")

        return self

    @classmethod
    def profile_input(cls, field: ProfileField, value: str) -> "Intent":
        return cls(type=IntentType.PROFILE_INPUT, field=field, value=value)

    @classmethod
    def search(cls, query: str) -> "Intent":
        return cls(type=IntentType.SEARCH, query=query)

    @classmethod
    def for_command(cls, command: Command) -> "Intent":
        return cls(type=IntentType.COMMAND, command=command)

    @classmethod
    def unknown(cls) -> "Intent":
        return cls(type=IntentType.UNKNOWN)

    def block(self, reason: BlockReason) -> "Intent":
        return self.model_copy(update={"blocked": True, "block_reason": reason})
