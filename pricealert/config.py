from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

DEFAULT_DB_URL: Final[str] = "sqlite:///./dev.db"
DEFAULT_COOLDOWN_MINUTES: Final[int] = 60
DEFAULT_INTERVAL_SECONDS: Final[int] = 900
DEFAULT_EMAIL_FROM: Final[str] = "alerts@dontlookatthechart.app"


def flag(env_var: str, default: bool = False) -> bool:
    """Return True when an env var is explicitly set to a truthy value."""
    value = os.getenv(env_var)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def database_url() -> str:
    # Default to a local SQLite database for dev/tests when DATABASE_URL is unset.
    return os.getenv("DATABASE_URL", DEFAULT_DB_URL)


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the evaluation worker.

    Read from the environment on demand rather than at import so tests can
    override variables with ``monkeypatch.setenv``.
    """

    cooldown_minutes: int = DEFAULT_COOLDOWN_MINUTES
    evaluation_interval_seconds: int = DEFAULT_INTERVAL_SECONDS
    resend_api_key: str | None = None
    email_from: str = DEFAULT_EMAIL_FROM

    @classmethod
    def from_env(cls) -> "Settings":
        cooldown = int(os.getenv("RULE_COOLDOWN_MINUTES", str(DEFAULT_COOLDOWN_MINUTES)))
        if cooldown < 0:
            raise ValueError("RULE_COOLDOWN_MINUTES must be >= 0")
        interval = int(
            os.getenv("EVALUATION_INTERVAL_SECONDS", str(DEFAULT_INTERVAL_SECONDS))
        )
        return cls(
            cooldown_minutes=cooldown,
            evaluation_interval_seconds=max(1, interval),
            resend_api_key=os.getenv("RESEND_API_KEY") or None,
            email_from=os.getenv("EMAIL_FROM", DEFAULT_EMAIL_FROM),
        )
