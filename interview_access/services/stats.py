"""Point-in-time counts over verification sessions and private tokens."""

from __future__ import annotations

from typing import Any, Dict

from interview_access.services.private_tokens import PrivateTokenManager
from interview_access.services.verification_codes import VerificationCodeManager


def _rate(part: int, whole: int) -> float:
    return round(part / whole, 4) if whole else 0.0


class StatsAggregator:
    """Derive counts from the live store contents on every call."""

    def __init__(self, codes: VerificationCodeManager, tokens: PrivateTokenManager) -> None:
        self.codes = codes
        self.tokens = tokens

    def verification_stats(self) -> Dict[str, Any]:
        now = self.codes.store.now()
        counts = {"pending": 0, "verified": 0, "locked": 0, "expired": 0}
        sessions = self.codes.sessions()
        for session in sessions:
            if session.verified:
                counts["verified"] += 1
            elif session.expires_at <= now:
                counts["expired"] += 1
            elif session.attempts_used >= session.max_attempts:
                counts["locked"] += 1
            else:
                counts["pending"] += 1

        total = len(sessions)
        return {
            "total": total,
            "active": counts["pending"] + counts["locked"],
            **counts,
            "verificationRate": _rate(counts["verified"], total),
        }

    def token_stats(self) -> Dict[str, Any]:
        now = self.tokens.store.now()
        counts = {"active": 0, "used": 0, "expired": 0}
        tokens = self.tokens.tokens()
        for token in tokens:
            if token.used:
                counts["used"] += 1
            elif token.expires_at <= now:
                counts["expired"] += 1
            else:
                counts["active"] += 1

        total = len(tokens)
        return {"total": total, **counts, "usageRate": _rate(counts["used"], total)}

    def snapshot(self) -> Dict[str, Any]:
        return {"verifications": self.verification_stats(), "privateTokens": self.token_stats()}
