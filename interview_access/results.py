"""Tagged outcomes returned by the verification and token managers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union


class FailureCode(str, Enum):
    """Closed set of expected, caller-recoverable outcomes."""

    APPLICATION_MISMATCH = "APPLICATION_MISMATCH"
    CODE_NOT_FOUND = "NOT_FOUND"
    CODE_EXPIRED = "EXPIRED"
    ATTEMPTS_EXCEEDED = "MAX_ATTEMPTS_EXCEEDED"
    CODE_MISMATCH = "INVALID_CODE"
    ALREADY_VERIFIED = "ALREADY_VERIFIED"
    RESEND_TOO_SOON = "RATE_LIMITED"
    TOKEN_NOT_FOUND = "TOKEN_NOT_FOUND"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_ALREADY_USED = "TOKEN_ALREADY_USED"


DEFAULT_MESSAGES = {
    FailureCode.APPLICATION_MISMATCH: "Application not found or email mismatch.",
    FailureCode.CODE_NOT_FOUND: "Verification code not found. Please request a new one.",
    FailureCode.CODE_EXPIRED: "Verification code has expired. Please request a new one.",
    FailureCode.ATTEMPTS_EXCEEDED: "Maximum verification attempts exceeded. Please request a new code.",
    FailureCode.CODE_MISMATCH: "Invalid verification code.",
    FailureCode.ALREADY_VERIFIED: "Email has already been verified.",
    FailureCode.RESEND_TOO_SOON: "Please wait before requesting a new verification code.",
    FailureCode.TOKEN_NOT_FOUND: "Private interview link not found.",
    FailureCode.TOKEN_EXPIRED: "Private interview link has expired.",
    FailureCode.TOKEN_ALREADY_USED: "Private interview link has already been used.",
}


@dataclass(frozen=True)
class Success:
    payload: Dict[str, Any] = field(default_factory=dict)

    ok = True


@dataclass(frozen=True)
class Failure:
    code: FailureCode
    message: str = ""
    remaining_attempts: Optional[int] = None
    retry_after: Optional[int] = None

    ok = False

    def __post_init__(self) -> None:
        if not self.message:
            object.__setattr__(self, "message", DEFAULT_MESSAGES[self.code])

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "success": False,
            "code": self.code.value,
            "message": self.message,
        }
        if self.remaining_attempts is not None:
            body["remainingAttempts"] = self.remaining_attempts
        if self.retry_after is not None:
            body["retryAfter"] = self.retry_after
        return body


Result = Union[Success, Failure]
