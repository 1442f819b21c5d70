# Role: Field gatekeeper. One pure validator per editable profile field: checks the raw answer and
# returns its canonical form (or a user-facing rejection message). validate_field() dispatches by field name.

from __future__ import annotations

import re
import unicodedata
from typing import Any, Callable, Dict, Optional, Union

from pydantic import BaseModel, model_validator

import alumni_bot.config as config
from alumni_bot.models.profile_field import ProfileField

_MAX_INPUT_LENGTH = 1000

_LINKEDIN_BASE = "https://www.linkedin.com"
_LINKEDIN_URL = re.compile(
    r"(?:https?://)?(?:[a-z]{2,3}\.)?linkedin\.com/(in|company)/([A-Za-z0-9_%-]{1,100})/?(?:[?#]\S*)?",
    re.IGNORECASE,
)
_LINKEDIN_HANDLE = re.compile(r"[A-Za-z0-9-]{2,100}")

_INSTAGRAM_URL = re.compile(
    r"(?:https?://)?(?:www\.)?(?:instagram\.com|instagr\.am)/([^/?#\s]+)/?(?:[?#]\S*)?",
    re.IGNORECASE,
)
# 1-30 of [A-Za-z0-9._], no leading/trailing dot, no "..".
_INSTAGRAM_HANDLE = re.compile(r"(?!\.)(?!.*\.\.)(?!.*\.$)[A-Za-z0-9._]{1,30}")

_EMAIL = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_NAME_PUNCTUATION = frozenset(" -.'’")


class ValidationResult(BaseModel):
    valid: bool
    value: Optional[str] = None
    message: Optional[str] = None

    @model_validator(mode="after")
    def _check_outcome(self):
        # message iff rejected; a rejected result never carries a value
        if self.valid and self.message is not None:
            raise ValueError("message must be None when valid")
        if not self.valid and not self.message:
            raise ValueError("message is required when not valid")
        if not self.valid and self.value is not None:
            raise ValueError("value must be None when not valid")
        return self

    @classmethod
    def ok(cls, value: Optional[str]) -> "ValidationResult":
        return cls(valid=True, value=value)

    @classmethod
    def reject(cls, message: str) -> "ValidationResult":
        return cls(valid=False, message=message)


def sanitize_input(raw: Any) -> str:
    # Role: shared first step (non-strings become "", trim, cap length). Content is otherwise untouched.
    if not isinstance(raw, str):
        return ""
    return raw.strip()[:_MAX_INPUT_LENGTH].strip()


def validate_address(raw: Any) -> ValidationResult:
    clean = sanitize_input(raw)
    if not clean:
        return ValidationResult.reject("Please enter your city/town or address.")

    visible = "".join(clean.split())
    if len(visible) < 2:
        return ValidationResult.reject("That looks too short. Please enter your city/town or address.")

    if len(clean) > config.ADDRESS_MAX_LENGTH:
        return ValidationResult.reject(
            f"Please keep your address under {config.ADDRESS_MAX_LENGTH} characters."
        )

    # Key line: any script is accepted as typed (no transliteration / geocoding).
    return ValidationResult.ok(clean)


def validate_linkedin(raw: Any) -> ValidationResult:
    clean = sanitize_input(raw)
    if not clean:
        return ValidationResult.reject("Please enter your LinkedIn profile (URL or username).")

    if "@" in clean:
        return ValidationResult.reject(
            "That looks like an email or a handle, not a LinkedIn profile.\n\n"
            "Example: https://linkedin.com/in/yourname"
        )

    if "linkedin.com" in clean.lower():
        match = _LINKEDIN_URL.fullmatch(clean)
        if not match:
            return ValidationResult.reject(
                "LinkedIn links must point to a profile (/in/...) or a company page (/company/...)."
            )
        kind, handle = match.group(1).lower(), match.group(2)
        return ValidationResult.ok(f"{_LINKEDIN_BASE}/{kind}/{handle}")

    if any(ch.isspace() for ch in clean) or not _LINKEDIN_HANDLE.fullmatch(clean):
        return ValidationResult.reject(
            "Please send your LinkedIn URL or username (letters, numbers and hyphens only).\n\n"
            "Example: https://linkedin.com/in/yourname"
        )

    # Key line: bare handles are personal profiles.
    return ValidationResult.ok(f"{_LINKEDIN_BASE}/in/{clean}")


def validate_instagram(raw: Any) -> ValidationResult:
    clean = sanitize_input(raw)
    if not clean:
        # Optional field: an empty answer is accepted and stores nothing.
        return ValidationResult.ok(None)

    low = clean.lower()
    if "instagram.com" in low or "instagr.am" in low:
        match = _INSTAGRAM_URL.fullmatch(clean)
        if not match:
            return ValidationResult.reject(
                "Please send a profile link like https://instagram.com/yourname"
            )
        handle = match.group(1)
    else:
        handle = clean[1:] if clean.startswith("@") else clean

    if not _INSTAGRAM_HANDLE.fullmatch(handle):
        return ValidationResult.reject(
            "Instagram usernames are 1-30 letters, numbers, periods or underscores, "
            "and can't start or end with a period or contain '..'."
        )

    return ValidationResult.ok(handle)


def validate_full_name(raw: Any) -> ValidationResult:
    clean = " ".join(sanitize_input(raw).split())
    if len(clean) < 2 or len(clean) > 100:
        return ValidationResult.reject("Name should be 2-100 characters long.\n\nExample: Rajesh Kumar Singh")

    for ch in clean:
        # Letters and combining marks of any script, plus a few separators.
        if ch.isalpha() or unicodedata.category(ch).startswith("M") or ch in _NAME_PUNCTUATION:
            continue
        return ValidationResult.reject("Name should only contain letters, spaces, hyphens, and apostrophes.")

    if not any(ch.isalpha() for ch in clean):
        return ValidationResult.reject("Please enter your full name.")

    return ValidationResult.ok(clean)


def validate_phone(raw: Any) -> ValidationResult:
    digits = re.sub(r"\D", "", sanitize_input(raw))
    if len(digits) < 10 or len(digits) > 15:
        return ValidationResult.reject("Phone number must be 10-15 digits\n\nExample: +91 9876543210")
    return ValidationResult.ok(f"+{digits}")


def validate_email(raw: Any) -> ValidationResult:
    clean = sanitize_input(raw)
    if not _EMAIL.fullmatch(clean):
        return ValidationResult.reject(
            "Invalid email format. Please enter a valid email address:\n\nExample: yourname@gmail.com"
        )
    return ValidationResult.ok(clean.lower())


_VALIDATORS: Dict[ProfileField, Callable[[Any], ValidationResult]] = {
    ProfileField.ADDRESS: validate_address,
    ProfileField.LINKEDIN: validate_linkedin,
    ProfileField.INSTAGRAM: validate_instagram,
    ProfileField.FULL_NAME: validate_full_name,
    ProfileField.PHONE: validate_phone,
    ProfileField.EMAIL: validate_email,
}


def validate_field(field_name: Union[ProfileField, str], raw: Any) -> ValidationResult:
    # 1) Resolve the field (unknown names are a rejection, not an exception)
    # 2) Run that field's validator
    try:
        field = ProfileField(field_name)
    except ValueError:
        return ValidationResult.reject(f"Unknown profile field: {field_name}")

    result = _VALIDATORS[field](raw)

    if config.DEBUG:
        print("\n--- FIELD VALIDATION ---")
        print("FIELD:", field.value)
        print("VALID:", result.valid)
        print("VALUE:", result.value)
        print("MESSAGE:", result.message)
        print("------------------------\n")

    return result


def matches_field_shape(field: ProfileField, text: str) -> bool:
    # Role: shape check for the classifier ("does this text look like a <field> answer?").
    # Empty text never counts, even for optional fields.
    if not sanitize_input(text):
        return False
    return _VALIDATORS[field](text).valid
