# Role: Deterministic intent classification for one inbound message. Pending wait-state wins over content;
# with nothing pending we look for commands, labelled field updates and casual chatter, and default to search.
# Gating (auth / profile completeness) is applied to whatever intent was resolved.

from __future__ import annotations

import re
from typing import Dict, Optional, Tuple

import alumni_bot.config as config
from alumni_bot.core.access_policy import AccessPolicy
from alumni_bot.core.validators import matches_field_shape, sanitize_input
from alumni_bot.models.context import ConversationContext
from alumni_bot.models.intent import Command, Intent
from alumni_bot.models.profile_field import ProfileField

_COMMAND_PATTERNS: Tuple[Tuple[Command, "re.Pattern[str]"], ...] = (
    (Command.HELP, re.compile(r"/?(?:help|menu|start)")),
    (
        Command.UPDATE_PROFILE,
        re.compile(r"/profile|(?:update|edit|complete|change|finish)\s+(?:my\s+)?profile"),
    ),
    (Command.SKIP, re.compile(r"/?(?:skip|later|maybe later|not now|stop|cancel|pause)")),
    (Command.RESET, re.compile(r"/?(?:reset|restart|start over)")),
)

_FIELD_LABELS: Dict[str, ProfileField] = {
    "address": ProfileField.ADDRESS,
    "city": ProfileField.ADDRESS,
    "town": ProfileField.ADDRESS,
    "location": ProfileField.ADDRESS,
    "hometown": ProfileField.ADDRESS,
    "linkedin": ProfileField.LINKEDIN,
    "linked in": ProfileField.LINKEDIN,
    "linkedin profile": ProfileField.LINKEDIN,
    "linkedin url": ProfileField.LINKEDIN,
    "instagram": ProfileField.INSTAGRAM,
    "instagram handle": ProfileField.INSTAGRAM,
    "insta": ProfileField.INSTAGRAM,
    "ig": ProfileField.INSTAGRAM,
    "name": ProfileField.FULL_NAME,
    "full name": ProfileField.FULL_NAME,
    "phone": ProfileField.PHONE,
    "phone number": ProfileField.PHONE,
    "mobile": ProfileField.PHONE,
    "mobile number": ProfileField.PHONE,
    "number": ProfileField.PHONE,
    "email": ProfileField.EMAIL,
    "e-mail": ProfileField.EMAIL,
    "email address": ProfileField.EMAIL,
    "mail": ProfileField.EMAIL,
}

# Longest labels first so "phone number" wins over "phone".
_LABELS = "|".join(re.escape(label) for label in sorted(_FIELD_LABELS, key=len, reverse=True))

_COLON_FORM = re.compile(rf"(?P<label>{_LABELS})\s*[:=]\s*(?P<value>.+)", re.IGNORECASE | re.DOTALL)
_NEEDS_MY_FIELDS = {ProfileField.ADDRESS, ProfileField.PHONE}

_LABELLED_UPDATE_PATTERNS = (
    re.compile(rf"my\s+(?P<label>{_LABELS})(?:\s+is|\s*[:=])\s*(?P<value>.+)", re.IGNORECASE | re.DOTALL),
    _COLON_FORM,
    re.compile(
        rf"(?:update|set|change)\s+my\s+(?P<label>{_LABELS})\s+(?:to|as|:)\s*(?P<value>.+)",
        re.IGNORECASE | re.DOTALL,
    ),
)

# "<label> <value>" with no separator only counts when the value has a field-specific shape.
_LABEL_THEN_VALUE = re.compile(rf"(?P<label>{_LABELS})\s+(?P<value>\S+)", re.IGNORECASE)
_SHAPE_ONLY_FIELDS = {ProfileField.LINKEDIN, ProfileField.INSTAGRAM, ProfileField.EMAIL, ProfileField.PHONE}

_CASUAL_PHRASES = {
    "hi", "hii", "hey", "hello", "helo", "namaste", "yo",
    "good morning", "good afternoon", "good evening", "good night",
    "thanks", "thank you", "thankyou", "thx", "ty",
    "ok", "okay", "k", "cool", "nice", "great", "awesome", "fine", "alright",
    "bye", "goodbye", "see you", "take care",
    "yes", "no", "y", "n", "yep", "yeah", "nope", "nah",
}
_GREETING_WITH_ADDRESSEE = re.compile(r"(?:hi|hey|hello|namaste)\s+(?:there|bot|team|all|everyone)")
_TRAILING_PUNCTUATION = re.compile(r"[\s!.?,]+$")


class IntentClassifier:
    """
    Rule-based intent classification.

    Contract:
    - Pure and total: same (message, context) -> same Intent, and it never raises.
    - A pending "updating_<field>" wait-state always wins: the message is that field's answer,
      whatever it looks like. Whether the answer is acceptable is the field validator's call.
    - Unrecognized or shapeless input is UNKNOWN; plain free text defaults to SEARCH.
    """

    def __init__(self, access_policy: Optional[AccessPolicy] = None) -> None:
        self.access_policy = access_policy if access_policy is not None else AccessPolicy()

    def classify(self, message: str, context: Optional[ConversationContext] = None) -> Intent:
        # 1) Sanitize; pending field -> that field's answer; empty input -> UNKNOWN
        # 2) Resolve: wait-state first, then free-state heuristics
        # 3) Apply gating to the resolved intent

        context = context if context is not None else ConversationContext()
        text = sanitize_input(message)

        # Key line: a pending field takes any non-empty raw message, even whitespace (validated as "").
        if context.waiting_for.is_updating and isinstance(message, str) and message:
            intent = Intent.profile_input(context.waiting_for.field, text)
        elif not text:
            intent = Intent.unknown()
        else:
            intent = self._resolve(text)

        gated = self.access_policy.apply(intent, context)

        if config.DEBUG:
            print("\n--- INTENT CLASSIFIER ---")
            print("USER MESSAGE:", text)
            print("WAITING FOR:", context.waiting_for.tag)
            print("AUTHENTICATED:", context.authenticated)
            print("PROFILE COMPLETE:", context.profile.enhanced_profile_completed)
            print("INTENT:", gated.type.value, gated.field or gated.command or "")
            if gated.blocked:
                print("BLOCKED:", gated.block_reason.value)
            print("-------------------------\n")

        return gated

    def _resolve(self, text: str) -> Intent:
        # Free state only: a pending field was already handled by classify().
        if self._is_shapeless(text):
            return Intent.unknown()

        command = match_command(text)
        if command is not None:
            return Intent.for_command(command)

        labelled = self._match_labelled_update(text)
        if labelled is not None:
            field, value = labelled
            return Intent.profile_input(field, value)

        if self._looks_like_casual(text):
            return Intent.unknown()

        # Default: free text is a people-search query (the bot's main job).
        return Intent.search(text)

    def _is_shapeless(self, text: str) -> bool:
        # Role: nothing to act on (empty, emoji-only, punctuation-only).
        return not any(ch.isalnum() for ch in text)

    def _match_labelled_update(self, text: str) -> Optional[Tuple[ProfileField, str]]:
        # 1) Explicit "my X is ...", "X: ...", "update my X to ..." forms
        #    ("city: Pune" / "number: 5" read as search filters, so address/phone need "my")
        # 2) "X <value>" only when the value clearly has X's shape (URL, @handle, email, phone)
        for pattern in _LABELLED_UPDATE_PATTERNS:
            match = pattern.fullmatch(text)
            if not match:
                continue
            field = _FIELD_LABELS[match.group("label").lower()]
            value = match.group("value").strip()
            if pattern is _COLON_FORM and field in _NEEDS_MY_FIELDS:
                continue
            if value:
                return field, value

        match = _LABEL_THEN_VALUE.fullmatch(text)
        if match:
            field = _FIELD_LABELS[match.group("label").lower()]
            value = match.group("value")
            if field in _SHAPE_ONLY_FIELDS and self._has_distinct_shape(field, value):
                return field, value

        return None

    def _has_distinct_shape(self, field: ProfileField, value: str) -> bool:
        low = value.lower()
        if field == ProfileField.LINKEDIN:
            return "linkedin.com" in low and matches_field_shape(field, value)
        if field == ProfileField.INSTAGRAM:
            marked = value.startswith("@") or "instagram.com" in low or "instagr.am" in low
            return marked and matches_field_shape(field, value)
        return matches_field_shape(field, value)

    def _looks_like_casual(self, text: str) -> bool:
        t = normalize_text(text)
        return t in _CASUAL_PHRASES or bool(_GREETING_WITH_ADDRESSEE.fullmatch(t))


def normalize_text(text: str) -> str:
    # Lowercase, trailing punctuation dropped ("Skip!" -> "skip").
    return _TRAILING_PUNCTUATION.sub("", text.lower()).strip()


def match_command(text: str) -> Optional[Command]:
    t = normalize_text(text)
    for command, pattern in _COMMAND_PATTERNS:
        if pattern.fullmatch(t):
            return command
    return None


_DEFAULT_CLASSIFIER = IntentClassifier()


def classify(message: str, context: Optional[ConversationContext] = None) -> Intent:
    return _DEFAULT_CLASSIFIER.classify(message, context)
