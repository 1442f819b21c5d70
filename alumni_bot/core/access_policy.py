# Role: Precondition gatekeeper per intent. Checks whether the current ConversationContext allows the
# resolved action and reports the first unmet precondition (auth before profile completeness).

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from alumni_bot.models.context import ConversationContext
from alumni_bot.models.intent import BlockReason, Command, Intent, IntentType

_AUTH_ONLY_COMMANDS = {Command.UPDATE_PROFILE, Command.SKIP}


@dataclass(frozen=True)
class GateResult:
    allowed: bool
    reason: Optional[BlockReason] = None


class AccessPolicy:
    def check(self, intent: Intent, context: ConversationContext) -> GateResult:
        # 1) Work out what this intent needs (auth? completed profile?)
        # 2) Report the first unmet precondition, auth first

        needs_auth, needs_profile = self._requirements(intent)

        if needs_auth and not context.authenticated:
            return GateResult(allowed=False, reason=BlockReason.NOT_AUTHENTICATED)

        if needs_profile and not context.profile.enhanced_profile_completed:
            return GateResult(allowed=False, reason=BlockReason.PROFILE_INCOMPLETE)

        return GateResult(allowed=True)

    def apply(self, intent: Intent, context: ConversationContext) -> Intent:
        gate = self.check(intent, context)
        if gate.allowed:
            return intent
        return intent.block(gate.reason)

    def _requirements(self, intent: Intent) -> tuple[bool, bool]:
        if intent.type == IntentType.SEARCH:
            return True, True
        if intent.type == IntentType.PROFILE_INPUT:
            return True, False
        if intent.type == IntentType.COMMAND and intent.command in _AUTH_ONLY_COMMANDS:
            return True, False
        # help / reset / unknown are always allowed
        return False, False
