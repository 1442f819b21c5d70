# Role: Deterministic reply builder. Turns internal keys (field being asked, block reason, command outcome)
# into one short user-facing message so each turn asks or answers exactly one thing.

from __future__ import annotations

from typing import Optional

import alumni_bot.config as config
from alumni_bot.models.intent import BlockReason
from alumni_bot.models.profile_field import ProfileField

_FIELD_LABELS = {
    ProfileField.ADDRESS: "City / address",
    ProfileField.LINKEDIN: "LinkedIn",
    ProfileField.INSTAGRAM: "Instagram",
    ProfileField.FULL_NAME: "Full name",
    ProfileField.PHONE: "Phone",
    ProfileField.EMAIL: "Email",
}

HELP_TEXT = (
    "I can connect you with fellow community members.\n\n"
    "• Describe who you're looking for, e.g. \"React developers in Pune\"\n"
    "• \"update profile\" to complete your profile\n"
    "• \"my linkedin is <url>\" to change a single field\n"
    "• \"skip\" to pause profile completion, \"reset\" to start over"
)


def field_label(field: ProfileField) -> str:
    return _FIELD_LABELS.get(field, field.value)


def build_field_prompt(field: Optional[ProfileField]) -> str:
    if config.DEBUG:
        print("REPLY_BUILDER field prompt:", field)

    if field is None:
        return "Your profile is up to date. Who would you like to connect with?"

    if field == ProfileField.ADDRESS:
        return "Which city/town do you live in? (any language is fine)"

    if field == ProfileField.LINKEDIN:
        return "What's your LinkedIn profile? Send the URL or your username.\n\nExample: https://linkedin.com/in/yourname"

    if field == ProfileField.INSTAGRAM:
        return "What's your Instagram username? (e.g. @yourname, or \"no\" if you don't use Instagram)"

    if field == ProfileField.FULL_NAME:
        return "What's your full name?"

    if field == ProfileField.PHONE:
        return "What's your phone number, with country code? (e.g. +91 9876543210)"

    if field == ProfileField.EMAIL:
        return "What's your email address?"

    return f"Please send your {field_label(field)}."


def build_block_message(reason: BlockReason) -> str:
    if reason == BlockReason.NOT_AUTHENTICATED:
        return "Please verify your email first so I know it's you. Then I can update your profile and run searches."

    if reason == BlockReason.PROFILE_INCOMPLETE:
        return "Search unlocks once your profile is complete. Let's finish it first."

    return "That action isn't available right now."


def build_saved_message(field: ProfileField, value: Optional[str]) -> str:
    if value is None:
        return f"Got it, no {field_label(field)} saved."
    return f"Saved your {field_label(field)}: {value}"


def build_search_ack(query: str, result_count: int, success: bool) -> str:
    if not success:
        return "I'm having trouble with the search right now. Please try again in a moment."
    if result_count == 0:
        return f"I couldn't find anyone for \"{query}\" yet. Try different keywords or a nearby city."
    noun = "match" if result_count == 1 else "matches"
    return f"Found {result_count} {noun} for \"{query}\"."
