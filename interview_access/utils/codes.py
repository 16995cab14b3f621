"""Helpers for generating one-time codes and private access tokens."""

from __future__ import annotations

import hashlib
import hmac
import secrets

CODE_LENGTH = 6


def generate_code(length: int = CODE_LENGTH) -> str:
    """Return a numeric one-time code drawn from the OS CSPRNG."""
    return "".join(secrets.choice("0123456789") for _ in range(length))


def generate_token() -> str:
    """Return a 64-character hex token (256 bits) for private interview links."""
    return secrets.token_hex(32)


def hash_code(code: str) -> str:
    return hashlib.sha256(str(code).strip().encode("utf-8")).hexdigest()


def code_matches(submitted: str, stored_digest: str) -> bool:
    """Constant-time comparison of a submitted code against its stored digest."""
    return hmac.compare_digest(hash_code(submitted), stored_digest)


def mask_token(token: str) -> str:
    """Shorten a token for log lines."""
    return f"{token[:8]}..." if len(token) > 8 else token
