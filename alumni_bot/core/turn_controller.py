# Role: Orchestrator for one conversation turn (the transport-side loop around the core). It glues together:
# session load, intent classification, field validation, the profile-completion queue, search logging, and persistence.

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import alumni_bot.config as config
from alumni_bot.core.intent_classifier import IntentClassifier, match_command, normalize_text
from alumni_bot.core.query_log import QueryLog
from alumni_bot.core.session_store import SessionStore
from alumni_bot.core.validators import ValidationResult, validate_field
from alumni_bot.models.context import ConversationContext, WaitState
from alumni_bot.models.intent import BlockReason, Command, Intent, IntentType
from alumni_bot.models.profile_field import ProfileField
from alumni_bot.models.query_log import QueryMetadata, SearchResult
from alumni_bot.models.session import Role, Session
from alumni_bot.utils.replies import (
    HELP_TEXT,
    build_block_message,
    build_field_prompt,
    build_saved_message,
    build_search_ack,
)

Searcher = Callable[[str], Sequence[SearchResult]]

# "No Instagram" answers to the optional Instagram question.
_DECLINE_PHRASES = {
    "no", "none", "nope", "nah", "na", "n/a", "nil", "-",
    "no instagram", "not on instagram", "dont have", "don't have", "i dont have one", "i don't have one",
}


@dataclass(frozen=True)
class TurnResponse:
    session_id: str
    reply: str
    intent: Intent
    waiting_for: str
    validation: Optional[ValidationResult] = None


class TurnController:
    def __init__(
        self,
        session_store: Optional[SessionStore] = None,
        intent_classifier: Optional[IntentClassifier] = None,
        query_log: Optional[QueryLog] = None,
        searcher: Optional[Searcher] = None,
    ) -> None:
        # Key line: dependencies are injectable for testing/mocking. Compare with None: an empty store or log is
        # falsy (both define __len__). Search ranking lives outside this repo.
        self.session_store = session_store if session_store is not None else SessionStore()
        self.intent_classifier = intent_classifier if intent_classifier is not None else IntentClassifier()
        self.query_log = query_log if query_log is not None else QueryLog()
        self.searcher = searcher

    def handle_turn(
        self,
        session_id: str,
        user_message: str,
        whatsapp_number: Optional[str] = None,
    ) -> TurnResponse:
        # 1) Load context (store trouble -> default context) and classify
        # 2) Persist user message
        # 3) Dispatch on intent: blocked / profile input / command / search / unknown
        # 4) Save context + bookkeeping, persist assistant message and return

        context = self._load_context(session_id)
        intent = self.intent_classifier.classify(user_message, context)

        self._append(session_id, "user", user_message)
        session = self._load_session(session_id, whatsapp_number)

        validation: Optional[ValidationResult] = None

        if intent.blocked:
            reply = self._handle_blocked(intent, context, session)
        elif intent.type == IntentType.PROFILE_INPUT:
            reply, validation = self._handle_profile_input(intent, context, session)
        elif intent.type == IntentType.COMMAND:
            reply = self._handle_command(intent.command, context, session)
        elif intent.type == IntentType.SEARCH:
            reply = self._handle_search(intent, context, whatsapp_number)
        else:
            reply = f"Hello! {HELP_TEXT}"

        if config.DEBUG:
            print("\n--- TURN DEBUG ---")
            print("SESSION:", session_id)
            print("USER MESSAGE:", user_message)
            print("INTENT:", intent.model_dump())
            if validation is not None:
                print("VALIDATION:", validation.model_dump())
            print("WAITING FOR (after):", context.waiting_for.tag)
            print("REMAINING FIELDS:", [f.value for f in session.remaining_fields])
            print("FIELD ATTEMPTS:", session.field_attempts)
            print("------------------\n")

        self._persist(session_id, context, session, whatsapp_number)
        self._append(session_id, "assistant", reply)

        return TurnResponse(
            session_id=session_id,
            reply=reply,
            intent=intent,
            waiting_for=context.waiting_for.tag,
            validation=validation,
        )

    def _handle_blocked(self, intent: Intent, context: ConversationContext, session: Session) -> str:
        message = build_block_message(intent.block_reason)

        # Key line: a search blocked on an incomplete profile turns into profile completion.
        if intent.type == IntentType.SEARCH and intent.block_reason == BlockReason.PROFILE_INCOMPLETE:
            first = self._start_completion(context, session)
            if first is not None:
                return f"{message}\n\n{build_field_prompt(first)}"
            # Every field already answered (e.g. via labelled updates): the flag was stale.
            self._mark_completed(context)
            return build_field_prompt(None)

        return message

    def _handle_profile_input(
        self, intent: Intent, context: ConversationContext, session: Session
    ) -> Tuple[str, Optional[ValidationResult]]:
        # 1) Pending field: pause/reset/help words escape the flow; Instagram can be declined
        # 2) Validate the answer for the field the intent names
        # 3) Valid -> store canonical value, advance the queue, complete the profile when nothing is left
        # 4) Invalid -> re-ask; give up on the pending field after MAX_FIELD_ATTEMPTS

        field = intent.field
        answer = intent.value
        answering_pending = context.waiting_for.is_updating

        if answering_pending:
            command = match_command(answer)
            if command == Command.HELP:
                return f"{HELP_TEXT}\n\n{build_field_prompt(field)}", None
            if command in (Command.SKIP, Command.RESET):
                return self._handle_command(command, context, session), None
            if field == ProfileField.INSTAGRAM and normalize_text(answer) in _DECLINE_PHRASES:
                answer = ""

        validation = validate_field(field, answer)

        if validation.valid:
            session.profile_updates[field.value] = validation.value
            session.field_attempts = 0
            if field in session.remaining_fields:
                session.remaining_fields.remove(field)

            saved = build_saved_message(field, validation.value)
            if not self._unanswered_fields(session):
                self._mark_completed(context)

            if not answering_pending:
                # Unsolicited single-field update: nothing queued changes.
                return saved, validation

            next_field = session.remaining_fields.pop(0) if session.remaining_fields else None
            if next_field is not None:
                context.waiting_for = WaitState.updating(next_field)
                return f"{saved}\n\n{build_field_prompt(next_field)}", validation

            context.waiting_for = WaitState.ready()
            return f"{saved}\n\n{build_field_prompt(None)}", validation

        if not answering_pending:
            return validation.message, validation

        session.field_attempts += 1
        if session.field_attempts >= config.MAX_FIELD_ATTEMPTS:
            self._stop_completion(context, session)
            return (
                f"{validation.message}\n\nLet's move on for now. Type \"update profile\" to try again later.",
                validation,
            )

        return validation.message, validation

    def _handle_command(self, command: Command, context: ConversationContext, session: Session) -> str:
        if command == Command.HELP:
            return HELP_TEXT

        if command == Command.UPDATE_PROFILE:
            first = self._start_completion(context, session)
            if first is None:
                self._mark_completed(context)
                return build_field_prompt(None)
            return f"Let's complete your profile.\n\n{build_field_prompt(first)}"

        if command == Command.SKIP:
            self._stop_completion(context, session)
            return "Profile update paused. Type \"update profile\" whenever you want to continue."

        if command == Command.RESET:
            self._stop_completion(context, session)
            context.waiting_for = WaitState.none()
            return f"Starting over.\n\n{HELP_TEXT}"

        return HELP_TEXT

    def _handle_search(
        self, intent: Intent, context: ConversationContext, whatsapp_number: Optional[str]
    ) -> str:
        # 1) Run the injected searcher (none -> no results)
        # 2) Record the turn in the query log, including failures
        query = intent.query
        started = time.perf_counter()
        results: List[SearchResult] = []
        success = True

        if self.searcher is not None:
            try:
                results = list(self.searcher(query))
            except Exception as e:
                success = False
                if config.DEBUG:
                    print("\n!!! SEARCH ERROR !!!")
                    print(repr(e))
                    print("!!! END ERROR !!!\n")

        elapsed_ms = (time.perf_counter() - started) * 1000
        reply = build_search_ack(query, len(results), success)
        context.waiting_for = WaitState.ready()

        # Key line: the audit trail is fire-and-forget; a logging failure never fails the turn.
        try:
            self.query_log.record(
                query=query,
                intent=intent,
                results=results,
                response=reply,
                success=success,
                processing_time_ms=elapsed_ms,
                metadata=QueryMetadata(search_type="people"),
                whatsapp_number=whatsapp_number,
            )
        except Exception as e:
            if config.DEBUG:
                print("QUERY LOG record failed:", repr(e))
        return reply

    def _unanswered_fields(self, session: Session) -> List[ProfileField]:
        return [f for f in ProfileField if f.value not in session.profile_updates]

    def _start_completion(self, context: ConversationContext, session: Session) -> Optional[ProfileField]:
        pending = self._unanswered_fields(session)
        if not pending:
            return None
        first, rest = pending[0], pending[1:]
        session.remaining_fields = rest
        session.field_attempts = 0
        context.waiting_for = WaitState.updating(first)
        return first

    def _stop_completion(self, context: ConversationContext, session: Session) -> None:
        session.remaining_fields = []
        session.field_attempts = 0
        context.waiting_for = WaitState.ready()

    def _mark_completed(self, context: ConversationContext) -> None:
        context.profile.enhanced_profile_completed = True
        if not context.waiting_for.is_updating:
            context.waiting_for = WaitState.ready()

    def _load_context(self, session_id: str) -> ConversationContext:
        # Key line: an unreachable store must not break the turn.
        try:
            return self.session_store.load_or_default(session_id)
        except Exception as e:
            if config.DEBUG:
                print("SESSION STORE load failed, using default context:", repr(e))
            return ConversationContext()

    def _load_session(self, session_id: str, whatsapp_number: Optional[str]) -> Session:
        try:
            return self.session_store.get_or_create(session_id, whatsapp_number)
        except Exception as e:
            if config.DEBUG:
                print("SESSION STORE get_or_create failed, using detached session:", repr(e))
            return Session(session_id=session_id, whatsapp_number=whatsapp_number)

    def _append(self, session_id: str, role: Role, content: str) -> None:
        try:
            self.session_store.append_message(session_id, role, content)
        except Exception as e:
            if config.DEBUG:
                print(f"SESSION STORE append ({role}) failed:", repr(e))

    def _persist(
        self,
        session_id: str,
        context: ConversationContext,
        session: Session,
        whatsapp_number: Optional[str],
    ) -> None:
        try:
            stored = self.session_store.save(session_id, context, whatsapp_number)
            stored.remaining_fields = list(session.remaining_fields)
            stored.profile_updates = dict(session.profile_updates)
            stored.field_attempts = session.field_attempts
            self.session_store.update_session(stored)
        except Exception as e:
            if config.DEBUG:
                print("SESSION STORE save failed:", repr(e))
