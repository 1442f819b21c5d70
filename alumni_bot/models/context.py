# Role: What the classifier is allowed to read about a conversation. WaitState is a closed tagged variant
# ("what are we waiting for?"), ConversationContext bundles it with auth + a minimal profile snapshot.

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

from alumni_bot.models.profile_field import ProfileField

_UPDATING_PREFIX = "updating_"


class WaitKind(str, Enum):
    NONE = "none"
    READY = "ready"
    UPDATING = "updating"


class WaitState(BaseModel):
    kind: WaitKind = WaitKind.NONE
    field: Optional[ProfileField] = None

    @model_validator(mode="after")
    def _check_field(self):
        # UPDATING requires a field; the other kinds must not carry one.
        if self.kind == WaitKind.UPDATING and self.field is None:
            raise ValueError("field is required when kind=UPDATING")
        if self.kind != WaitKind.UPDATING and self.field is not None:
            raise ValueError("field must be None unless kind=UPDATING")
        return self

    @classmethod
    def none(cls) -> "WaitState":
        return cls(kind=WaitKind.NONE)

    @classmethod
    def ready(cls) -> "WaitState":
        return cls(kind=WaitKind.READY)

    @classmethod
    def updating(cls, field: ProfileField) -> "WaitState":
        return cls(kind=WaitKind.UPDATING, field=ProfileField(field))

    @classmethod
    def parse(cls, tag: Optional[str]) -> "WaitState":
        """
        Parse the string tag form: "none", "ready" or "updating_<field>".
        None / empty means "none". Unknown tags and unknown fields raise ValueError.
        """
        t = (tag or "").strip()
        if not t or t == WaitKind.NONE.value:
            return cls.none()
        if t == WaitKind.READY.value:
            return cls.ready()
        if t.startswith(_UPDATING_PREFIX):
            name = t[len(_UPDATING_PREFIX):]
            try:
                field = ProfileField(name)
            except ValueError:
                raise ValueError(f"Unknown profile field in wait-state: {name!r}") from None
            return cls.updating(field)
        raise ValueError(f"Unknown wait-state tag: {t!r}")

    @property
    def tag(self) -> str:
        if self.kind == WaitKind.UPDATING:
            return f"{_UPDATING_PREFIX}{self.field.value}"
        return self.kind.value

    @property
    def is_updating(self) -> bool:
        return self.kind == WaitKind.UPDATING


class ProfileSnapshot(BaseModel):
    # Key line: only what gating reads. The full profile lives in the external user store.
    enhanced_profile_completed: bool = False


class ConversationContext(BaseModel):
    waiting_for: WaitState = Field(default_factory=WaitState.none)
    authenticated: bool = False
    profile: ProfileSnapshot = Field(default_factory=ProfileSnapshot)

    @field_validator("waiting_for", mode="before")
    @classmethod
    def _coerce_wait_state(cls, value: Any) -> Any:
        # Accept the tag form ("updating_linkedin") as well as a WaitState / dict.
        if value is None or isinstance(value, str):
            return WaitState.parse(value)
        return value

    @field_serializer("waiting_for")
    def _serialize_wait_state(self, value: WaitState) -> str:
        return value.tag
