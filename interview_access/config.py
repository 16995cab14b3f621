"""Environment-driven settings for verification codes, private links and mail."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _env_bool(name: str, default: bool = False) -> bool:
    return os.getenv(name, str(default)).lower() == "true"


@dataclass(frozen=True)
class VerificationPolicy:
    """Timing and attempt limits shared by the code and token managers (seconds)."""

    code_ttl: int = 10 * 60
    max_attempts: int = 5
    resend_cooldown: int = 60
    status_grace: int = 5 * 60
    token_ttl: int = 72 * 60 * 60
    token_retention: int = 24 * 60 * 60
    reap_interval: int = 60
    frontend_url: str = "http://localhost:3000"

    @classmethod
    def from_env(cls) -> "VerificationPolicy":
        return cls(
            code_ttl=_env_int("CODE_TTL_SECONDS", cls.code_ttl),
            max_attempts=_env_int("CODE_MAX_ATTEMPTS", cls.max_attempts),
            resend_cooldown=_env_int("RESEND_COOLDOWN_SECONDS", cls.resend_cooldown),
            status_grace=_env_int("STATUS_GRACE_SECONDS", cls.status_grace),
            token_ttl=_env_int("PRIVATE_TOKEN_TTL_HOURS", cls.token_ttl // 3600) * 3600,
            token_retention=_env_int("TOKEN_RETENTION_HOURS", cls.token_retention // 3600) * 3600,
            reap_interval=_env_int("REAP_INTERVAL_SECONDS", cls.reap_interval),
            frontend_url=os.getenv("FRONTEND_URL", cls.frontend_url).rstrip("/"),
        )


def mail_settings() -> Dict[str, Any]:
    """Flask-Mail configuration keys read from the environment."""
    return {
        "MAIL_SERVER": os.getenv("MAIL_SERVER"),
        "MAIL_PORT": _env_int("MAIL_PORT", 587),
        "MAIL_USE_TLS": _env_bool("MAIL_USE_TLS", True),
        "MAIL_USE_SSL": _env_bool("MAIL_USE_SSL", False),
        "MAIL_USERNAME": os.getenv("MAIL_USERNAME"),
        "MAIL_PASSWORD": os.getenv("MAIL_PASSWORD"),
        "MAIL_DEFAULT_SENDER": os.getenv("MAIL_DEFAULT_SENDER", "Interview Portal <no-reply@localhost>"),
    }
