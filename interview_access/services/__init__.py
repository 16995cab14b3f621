"""Service layer modules for the interview access API."""

from . import (
    application_service,
    email_service,
    private_tokens,
    stats,
    verification_codes,
    verification_service,
)

__all__ = [
    "application_service",
    "email_service",
    "private_tokens",
    "stats",
    "verification_codes",
    "verification_service",
]
