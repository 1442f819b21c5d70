# Role: Local developer CLI to drive TurnController without WhatsApp or the HTTP layer.
# Useful for deterministic testing and seeing debug output in the terminal.

from __future__ import annotations
import uuid

import alumni_bot.config
alumni_bot.config.load_env()

from alumni_bot.core.turn_controller import TurnController


def _new_session_id() -> str:
    return str(uuid.uuid4())


def _set_flags(flow: TurnController, session_id: str, **flags: bool) -> None:
    # Stand-in for the identity layer: flip auth / profile flags on the stored context.
    context = flow.session_store.load_or_default(session_id)
    if "authenticated" in flags:
        context.authenticated = flags["authenticated"]
    if "completed" in flags:
        context.profile.enhanced_profile_completed = flags["completed"]
    flow.session_store.save(session_id, context)


def main() -> None:
    # 1) Create TurnController
    # 2) Maintain a session_id across turns
    # 3) Route user input -> TurnController -> print reply + intent
    print("Alumni Bot CLI")
    print("Commands: /new, /session, /login, /complete, /state, /exit")
    print("-" * 50)

    flow = TurnController()
    session_id = _new_session_id()
    print(f"session_id: {session_id}")

    while True:
        try:
            user_message = input("\nYou: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            return

        if not user_message:
            continue

        cmd = user_message.lower()

        if cmd in {"/exit", "exit", "quit", "/quit"}:
            print("Bye!")
            return

        if cmd == "/new":
            session_id = _new_session_id()
            print(f"New session_id: {session_id}")
            continue

        if cmd == "/session":
            print(f"session_id: {session_id}")
            continue

        if cmd == "/login":
            _set_flags(flow, session_id, authenticated=True)
            print("Marked as authenticated.")
            continue

        if cmd == "/complete":
            _set_flags(flow, session_id, authenticated=True, completed=True)
            print("Marked as authenticated with a completed profile.")
            continue

        if cmd == "/state":
            context = flow.session_store.load_or_default(session_id)
            print(context.model_dump())
            continue

        result = flow.handle_turn(session_id, user_message)
        label = result.intent.type.value
        if result.intent.blocked:
            label += f" (blocked: {result.intent.block_reason.value})"
        print(f"[intent: {label} | waiting_for: {result.waiting_for}]")
        print(f"\nBot: {result.reply}")


if __name__ == "__main__":
    main()
