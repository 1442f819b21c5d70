"""Integration tests for TurnController: one user message in, one reply out, with the
session store, query log and search hook wired in.
"""

import pytest

import alumni_bot.config as config
from alumni_bot.core.query_log import QueryLog
from alumni_bot.core.session_store import SessionStore
from alumni_bot.core.turn_controller import TurnController
from alumni_bot.models.context import ConversationContext, ProfileSnapshot
from alumni_bot.models.intent import BlockReason, Command, IntentType
from alumni_bot.models.profile_field import ProfileField
from alumni_bot.models.query_log import SearchResult
from alumni_bot.utils.replies import HELP_TEXT, build_block_message, build_search_ack

SID = "session-1"


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def log():
    return QueryLog()


@pytest.fixture
def controller(store, log):
    return TurnController(session_store=store, query_log=log)


def _login(store, completed=False):
    store.save(
        SID,
        ConversationContext(
            authenticated=True,
            profile=ProfileSnapshot(enhanced_profile_completed=completed),
        ),
    )


class TestGatedTurns:
    """Blocked intents get a block message instead of running."""

    def test_unauthenticated_search(self, controller, log):
        result = controller.handle_turn(SID, "React developers in Pune")
        assert result.intent.blocked is True
        assert result.intent.block_reason == BlockReason.NOT_AUTHENTICATED
        assert result.reply == build_block_message(BlockReason.NOT_AUTHENTICATED)
        assert result.waiting_for == "none"
        assert len(log) == 0

    def test_incomplete_profile_search_starts_completion(self, controller, store, log):
        _login(store)
        result = controller.handle_turn(SID, "React developers in Pune")

        assert result.intent.block_reason == BlockReason.PROFILE_INCOMPLETE
        assert result.reply.startswith(build_block_message(BlockReason.PROFILE_INCOMPLETE))
        assert result.waiting_for == "updating_address"
        assert store.get_session(SID).remaining_fields == [
            ProfileField.LINKEDIN,
            ProfileField.INSTAGRAM,
            ProfileField.FULL_NAME,
            ProfileField.PHONE,
            ProfileField.EMAIL,
        ]
        assert len(log) == 0


class TestProfileCompletion:
    """Walk through the completion queue one field per turn."""

    def test_full_flow_completes_profile(self, controller, store):
        _login(store)
        assert controller.handle_turn(SID, "update profile").waiting_for == "updating_address"

        answers = [
            ("मुंबई", "updating_linkedin"),
            ("https://www.linkedin.com/in/classictechak/", "updating_instagram"),
            ("@john.doe", "updating_full_name"),
            ("John Doe", "updating_phone"),
            ("+91 98765 43210", "updating_email"),
            ("John@Example.com", "ready"),
        ]
        for message, expected_state in answers:
            result = controller.handle_turn(SID, message)
            assert result.validation is not None and result.validation.valid is True
            assert result.waiting_for == expected_state

        context = store.load(SID)
        assert context.profile.enhanced_profile_completed is True
        assert store.get_session(SID).profile_updates == {
            "address": "मुंबई",
            "linkedin": "https://www.linkedin.com/in/classictechak",
            "instagram": "john.doe",
            "full_name": "John Doe",
            "phone": "+919876543210",
            "email": "john@example.com",
        }

    def test_search_allowed_after_completion(self, controller, store, log):
        _login(store, completed=True)
        result = controller.handle_turn(SID, "React developers in Pune")
        assert result.intent.type == IntentType.SEARCH
        assert result.intent.blocked is False
        assert len(log) == 1

    def test_invalid_answer_is_reasked(self, controller, store):
        _login(store)
        controller.handle_turn(SID, "update profile")
        controller.handle_turn(SID, "Pune")

        result = controller.handle_turn(SID, "in..valid but not a linkedin")
        assert result.validation.valid is False
        assert result.reply == result.validation.message
        assert result.waiting_for == "updating_linkedin"
        assert store.get_session(SID).field_attempts == 1

    def test_gives_up_after_max_attempts(self, controller, store, monkeypatch):
        monkeypatch.setattr(config, "MAX_FIELD_ATTEMPTS", 3)
        _login(store)
        controller.handle_turn(SID, "update profile")

        controller.handle_turn(SID, "x")
        assert controller.handle_turn(SID, "x").waiting_for == "updating_address"
        result = controller.handle_turn(SID, "x")

        assert result.waiting_for == "ready"
        assert "Let's move on for now" in result.reply
        session = store.get_session(SID)
        assert session.remaining_fields == []
        assert session.field_attempts == 0

    def test_empty_message_keeps_field_pending(self, controller, store):
        _login(store)
        store.save(SID, ConversationContext(waiting_for="updating_instagram", authenticated=True))
        result = controller.handle_turn(SID, "")
        # An empty message has nothing to answer with; the field is still pending.
        assert result.intent.type == IntentType.UNKNOWN
        assert result.waiting_for == "updating_instagram"

    def test_update_profile_with_nothing_left(self, controller, store):
        _login(store)
        session = store.get_or_create(SID)
        session.profile_updates = {f.value: "x" for f in ProfileField}
        store.update_session(session)

        result = controller.handle_turn(SID, "update profile")
        assert result.waiting_for == "ready"
        assert result.reply == "Your profile is up to date. Who would you like to connect with?"
        assert store.load(SID).profile.enhanced_profile_completed is True


class TestUnsolicitedUpdates:
    """Labelled single-field updates outside the completion flow."""

    def test_valid_update_saved_without_changing_state(self, controller, store):
        _login(store)
        result = controller.handle_turn(SID, "my linkedin is johndoe")
        assert result.validation.value == "https://www.linkedin.com/in/johndoe"
        assert result.waiting_for == "none"
        assert store.get_session(SID).profile_updates["linkedin"] == "https://www.linkedin.com/in/johndoe"

    def test_invalid_update_does_not_count_attempts(self, controller, store):
        _login(store)
        result = controller.handle_turn(SID, "my email is nope")
        assert result.validation.valid is False
        assert result.reply == result.validation.message
        assert store.get_session(SID).field_attempts == 0


class TestCommands:
    """Test command handling."""

    def test_help(self, controller):
        result = controller.handle_turn(SID, "help")
        assert result.intent.command == Command.HELP
        assert result.reply == HELP_TEXT

    def test_skip_pauses_completion(self, controller, store):
        _login(store)
        result = controller.handle_turn(SID, "skip")
        assert result.waiting_for == "ready"
        assert result.reply.startswith("Profile update paused.")

    def test_reset_allowed_for_anyone(self, controller):
        result = controller.handle_turn(SID, "start over")
        assert result.intent.blocked is False
        assert result.waiting_for == "none"
        assert result.reply.startswith("Starting over.")

    def test_unknown_gets_help(self, controller):
        result = controller.handle_turn(SID, "hello")
        assert result.intent.type == IntentType.UNKNOWN
        assert result.reply == f"Hello! {HELP_TEXT}"


class TestSearchLogging:
    """Every executed search lands in the query log."""

    def test_search_results_logged(self, store, log):
        def searcher(query):
            return [SearchResult(user_id="u1", score=0.9, matched=True)]

        controller = TurnController(session_store=store, query_log=log, searcher=searcher)
        _login(store, completed=True)
        result = controller.handle_turn(SID, "React developers in Pune", whatsapp_number="+919876543210")

        assert result.reply == 'Found 1 match for "React developers in Pune".'
        assert result.waiting_for == "ready"
        entry = log.entries()[0]
        assert entry.query == "React developers in Pune"
        assert entry.intent == "search"
        assert entry.success is True
        assert entry.results[0].user_id == "u1"
        assert entry.whatsapp_number == "+919876543210"
        assert entry.processing_time_ms >= 0

    def test_search_without_searcher_has_no_results(self, controller, store, log):
        _login(store, completed=True)
        result = controller.handle_turn(SID, "fintech mentors")
        assert result.reply == build_search_ack("fintech mentors", 0, True)
        assert log.entries()[0].results == []

    def test_searcher_failure_logged(self, store, log):
        def searcher(query):
            raise RuntimeError("search backend down")

        controller = TurnController(session_store=store, query_log=log, searcher=searcher)
        _login(store, completed=True)
        result = controller.handle_turn(SID, "fintech mentors")

        assert result.reply == build_search_ack("fintech mentors", 0, False)
        assert log.entries()[0].success is False

    def test_query_log_failure_does_not_fail_turn(self, store):
        class BrokenLog(QueryLog):
            def record(self, **kwargs):
                raise RuntimeError("log down")

        controller = TurnController(session_store=store, query_log=BrokenLog())
        _login(store, completed=True)
        result = controller.handle_turn(SID, "fintech mentors")
        assert result.reply == build_search_ack("fintech mentors", 0, True)
        assert result.waiting_for == "ready"


class TestHistoryAndResilience:
    """History bookkeeping and store failures."""

    def test_both_sides_of_turn_recorded(self, controller, store):
        controller.handle_turn(SID, "help")
        messages = store.get_session(SID).messages
        assert [m.role for m in messages] == ["user", "assistant"]
        assert messages[0].content == "help"
        assert messages[1].content == HELP_TEXT

    def test_whatsapp_number_stored(self, controller, store):
        controller.handle_turn(SID, "hi", whatsapp_number="+919876543210")
        assert store.get_session(SID).whatsapp_number == "+919876543210"

    def test_broken_store_falls_back_to_default_context(self, log):
        class BrokenStore(SessionStore):
            def load(self, session_id):
                raise RuntimeError("store down")

            def get_or_create(self, session_id, whatsapp_number=None):
                raise RuntimeError("store down")

        controller = TurnController(session_store=BrokenStore(), query_log=log)
        result = controller.handle_turn(SID, "React developers in Pune")

        assert result.intent.type == IntentType.SEARCH
        assert result.intent.block_reason == BlockReason.NOT_AUTHENTICATED
        assert result.waiting_for == "none"


class TestCompletionUnlocksSearch:
    """The completed-profile flag follows the answered fields, however they were given."""

    LABELLED_UPDATES = [
        "my city is Pune",
        "my linkedin is johndoe",
        "my instagram is @john.doe",
        "my name is John Doe",
        "my phone is +91 98765 43210",
        "my email is john@example.com",
    ]

    def test_labelled_updates_complete_profile(self, controller, store, log):
        _login(store)
        for message in self.LABELLED_UPDATES:
            result = controller.handle_turn(SID, message)
            assert result.validation.valid is True

        assert store.load(SID).profile.enhanced_profile_completed is True
        result = controller.handle_turn(SID, "React developers in Pune")
        assert result.intent.type == IntentType.SEARCH
        assert result.intent.blocked is False
        assert len(log) == 1

    def test_blocked_search_with_every_field_answered_unlocks(self, controller, store, log):
        _login(store)
        session = store.get_or_create(SID)
        session.profile_updates = {f.value: "x" for f in ProfileField}
        store.update_session(session)

        first = controller.handle_turn(SID, "React developers in Pune")
        assert first.intent.block_reason == BlockReason.PROFILE_INCOMPLETE
        assert first.waiting_for == "ready"
        assert first.reply == "Your profile is up to date. Who would you like to connect with?"

        second = controller.handle_turn(SID, "React developers in Pune")
        assert second.intent.blocked is False
        assert len(log) == 1

    def test_finish_by_labelled_update_after_giving_up(self, controller, store, monkeypatch):
        monkeypatch.setattr(config, "MAX_FIELD_ATTEMPTS", 1)
        _login(store)
        controller.handle_turn(SID, "update profile")
        assert controller.handle_turn(SID, "x").waiting_for == "ready"

        for message in self.LABELLED_UPDATES:
            controller.handle_turn(SID, message)

        assert store.load(SID).profile.enhanced_profile_completed is True


class TestEscapeWordsWhilePending:
    """Pause / reset / help words and Instagram refusals during the completion flow."""

    def test_skip_pauses_instead_of_saving(self, controller, store):
        _login(store)
        controller.handle_turn(SID, "update profile")
        result = controller.handle_turn(SID, "skip")

        assert result.waiting_for == "ready"
        assert result.reply.startswith("Profile update paused.")
        assert result.validation is None
        session = store.get_session(SID)
        assert session.profile_updates == {}
        assert session.remaining_fields == []

    def test_reset_while_pending(self, controller, store):
        _login(store)
        controller.handle_turn(SID, "update profile")
        result = controller.handle_turn(SID, "Start over")
        assert result.waiting_for == "none"
        assert store.get_session(SID).profile_updates == {}

    def test_help_keeps_field_pending(self, controller, store):
        _login(store)
        controller.handle_turn(SID, "update profile")
        result = controller.handle_turn(SID, "help")
        assert result.reply.startswith(HELP_TEXT)
        assert result.waiting_for == "updating_address"
        assert store.get_session(SID).profile_updates == {}

    @pytest.mark.parametrize("answer", ["no", "None", "nope!", "I don't have one", "   "])
    def test_instagram_can_be_declined(self, controller, store, answer):
        store.save(SID, ConversationContext(waiting_for="updating_instagram", authenticated=True))
        result = controller.handle_turn(SID, answer)

        assert result.validation.valid is True
        assert result.validation.value is None
        assert store.get_session(SID).profile_updates == {"instagram": None}

    def test_instagram_handle_still_accepted(self, controller, store):
        store.save(SID, ConversationContext(waiting_for="updating_instagram", authenticated=True))
        result = controller.handle_turn(SID, "@nobody")
        assert result.validation.value == "nobody"

    def test_whitespace_answer_counts_as_attempt(self, controller, store):
        _login(store)
        controller.handle_turn(SID, "update profile")
        result = controller.handle_turn(SID, "   ")
        assert result.validation.valid is False
        assert result.waiting_for == "updating_address"
        assert store.get_session(SID).field_attempts == 1
