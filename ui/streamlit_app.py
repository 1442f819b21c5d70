# Role: Streamlit developer console for the bot core.
# - Backend is authoritative (turn + session snapshot).
# - Sidebar shows the conversation context and lets you flip auth/profile flags.

from __future__ import annotations

import uuid
from typing import Any, Dict, Optional

import requests
import streamlit as st

BACKEND_URL = "http://127.0.0.1:8000"


# ----------------------------
# Session helpers
# ----------------------------
def _fresh_state() -> Dict[str, Any]:
    return {"session_id": str(uuid.uuid4()), "messages": [], "busy": False, "snapshot": None}


def ensure_session() -> None:
    for key, value in _fresh_state().items():
        st.session_state.setdefault(key, value)


# ----------------------------
# Backend calls
# ----------------------------
def send_turn(session_id: str, user_message: str) -> Dict[str, Any]:
    resp = requests.post(
        f"{BACKEND_URL}/turn",
        json={"session_id": session_id, "user_message": user_message},
        timeout=30,
    )
    resp.raise_for_status()
    return resp.json()


def fetch_snapshot(session_id: str) -> Optional[Dict[str, Any]]:
    try:
        r = requests.get(f"{BACKEND_URL}/session/{session_id}", timeout=10)
        if r.status_code != 200:
            return None
        return r.json()
    except requests.RequestException:
        return None


def update_flags(session_id: str, **flags: Any) -> Optional[Dict[str, Any]]:
    try:
        r = requests.put(f"{BACKEND_URL}/session/{session_id}/context", json=flags, timeout=10)
        if r.status_code != 200:
            return None
        return r.json()
    except requests.RequestException:
        return None


# ----------------------------
# Formatting helpers
# ----------------------------
def _fmt_intent(turn: Dict[str, Any]) -> str:
    intent = turn.get("intent") or {}
    label = intent.get("type", "unknown")
    detail = intent.get("field") or intent.get("command")
    if detail:
        label = f"{label} · {detail}"
    if intent.get("blocked"):
        label = f"{label} · blocked ({intent.get('block_reason')})"
    return label


def _yes_no(v: Any) -> str:
    return "yes" if v else "no"


# ----------------------------
# Sidebar: context snapshot
# ----------------------------
def render_context(snapshot: Dict[str, Any]) -> None:
    st.sidebar.markdown(f"**Waiting for:** `{snapshot.get('waiting_for', 'none')}`")
    st.sidebar.markdown(f"**Authenticated:** {_yes_no(snapshot.get('authenticated'))}")
    st.sidebar.markdown(f"**Profile complete:** {_yes_no(snapshot.get('enhanced_profile_completed'))}")

    remaining = snapshot.get("remaining_fields") or []
    if remaining:
        st.sidebar.markdown("**Queued fields:** " + ", ".join(remaining))

    updates = snapshot.get("profile_updates") or {}
    if updates:
        st.sidebar.markdown("**Saved this session**")
        for field, value in updates.items():
            st.sidebar.markdown(f"- {field}: {value if value else '(none)'}")


def render_sidebar() -> None:
    st.sidebar.title("Conversation")
    session_id = st.session_state["session_id"]
    busy = st.session_state["busy"]

    col1, col2 = st.sidebar.columns(2)
    with col1:
        if st.button("New chat", use_container_width=True, disabled=busy):
            st.session_state.update(_fresh_state())
            st.rerun()

    with col2:
        if st.button("Refresh", use_container_width=True, disabled=busy):
            st.session_state["snapshot"] = fetch_snapshot(session_id)
            st.rerun()

    col3, col4 = st.sidebar.columns(2)
    with col3:
        if st.button("Verify me", use_container_width=True, disabled=busy):
            st.session_state["snapshot"] = update_flags(session_id, authenticated=True)
            st.rerun()

    with col4:
        if st.button("Profile done", use_container_width=True, disabled=busy):
            st.session_state["snapshot"] = update_flags(
                session_id, authenticated=True, enhanced_profile_completed=True
            )
            st.rerun()

    st.sidebar.divider()

    snap = st.session_state.get("snapshot")
    if not snap:
        st.sidebar.info("Send a message to start a session.")
        return

    render_context(snap)


# ----------------------------
# Chat
# ----------------------------
def render_chat() -> None:
    for msg in st.session_state["messages"]:
        with st.chat_message(msg["role"]):
            st.write(msg["content"])
            if msg.get("intent"):
                st.caption(msg["intent"])


# ----------------------------
# Main
# ----------------------------
def main() -> None:
    st.set_page_config(page_title="Alumni Bot Console", layout="wide")

    st.title("Alumni Bot Console")
    st.caption("Type what a WhatsApp user would send. Each reply shows how the message was classified.")

    ensure_session()
    render_sidebar()
    render_chat()

    user_input = st.chat_input("Message…", disabled=st.session_state["busy"])
    if not user_input:
        return

    # Echo user message immediately
    st.session_state["messages"].append({"role": "user", "content": user_input})
    with st.chat_message("user"):
        st.write(user_input)

    st.session_state["busy"] = True
    try:
        with st.spinner("Classifying..."):
            turn = send_turn(st.session_state["session_id"], user_input)

        entry = {"role": "assistant", "content": turn["reply"], "intent": _fmt_intent(turn)}
        st.session_state["messages"].append(entry)
        with st.chat_message("assistant"):
            st.write(entry["content"])
            st.caption(entry["intent"])

        # Refresh snapshot after each turn
        st.session_state["snapshot"] = fetch_snapshot(st.session_state["session_id"])

    except requests.RequestException:
        msg = "I couldn't reach the backend. Make sure the API is running on http://127.0.0.1:8000."
        st.session_state["messages"].append({"role": "assistant", "content": msg})
        with st.chat_message("assistant"):
            st.error(msg)
    finally:
        st.session_state["busy"] = False


if __name__ == "__main__":
    main()
