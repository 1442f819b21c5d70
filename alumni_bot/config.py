# Role: Central configuration module. Loads .env into environment variables and computes runtime settings
# (DEBUG, session TTL, validation limits). Importers read alumni_bot.config.<NAME> at call time.

from __future__ import annotations

import os
from dotenv import load_dotenv

DEBUG: bool = False
SESSION_TTL_HOURS: int = 24
MAX_FIELD_ATTEMPTS: int = 3
ADDRESS_MAX_LENGTH: int = 200


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def load_env() -> None:
    """
    Load .env into os.environ, then recompute the module settings.
    This keeps them correct even if load_env() is called after import.
    """
    global DEBUG, SESSION_TTL_HOURS, MAX_FIELD_ATTEMPTS, ADDRESS_MAX_LENGTH
    load_dotenv()
    # Key line: accept common truthy values.
    DEBUG = os.getenv("DEBUG", "0").lower() in {"1", "true", "yes"}
    SESSION_TTL_HOURS = _env_int("SESSION_TTL_HOURS", 24)
    MAX_FIELD_ATTEMPTS = _env_int("MAX_FIELD_ATTEMPTS", 3)
    ADDRESS_MAX_LENGTH = _env_int("ADDRESS_MAX_LENGTH", 200)
