"""Email one-time-code issuance and verification for candidate applications."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from interview_access.results import Failure, FailureCode, Result, Success
from interview_access.services.email_service import EmailDispatchError, verification_code_email
from interview_access.store import ExpiringRecordStore
from interview_access.utils.codes import code_matches, generate_code, hash_code

_LOGGER = logging.getLogger(__name__)


@dataclass
class VerificationSession:
    application_id: str
    email: str
    code_digest: str
    max_attempts: int
    last_sent_at: float
    candidate_name: str = ""
    job_title: str = ""
    company_name: str = ""
    interview_link_id: Optional[str] = None
    attempts_used: int = 0
    verified: bool = False
    verified_at: Optional[float] = None
    expires_at: float = 0.0

    @property
    def remaining_attempts(self) -> int:
        return max(self.max_attempts - self.attempts_used, 0)

    def candidate_data(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "candidateName": self.candidate_name,
            "applicationId": self.application_id,
            "interviewLinkId": self.interview_link_id,
            "jobTitle": self.job_title,
            "companyName": self.company_name,
        }


def session_key(application_id: str, email: str) -> str:
    return f"{application_id}_{email.strip().lower()}"


def to_datetime(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


class VerificationCodeManager:
    """Issue, resend and check one-time email codes."""

    def __init__(
        self,
        store: ExpiringRecordStore[VerificationSession],
        dispatcher,
        *,
        code_ttl: int = 10 * 60,
        max_attempts: int = 5,
        resend_cooldown: int = 60,
        code_generator: Callable[[], str] = generate_code,
    ) -> None:
        self.store = store
        self.dispatcher = dispatcher
        self.code_ttl = code_ttl
        self.max_attempts = max_attempts
        self.resend_cooldown = resend_cooldown
        self._generate_code = code_generator

    def _new_session(
        self,
        application_id: str,
        email: str,
        code: str,
        candidate_name: str,
        job_title: str,
        company_name: str,
        interview_link_id: Optional[str],
    ) -> VerificationSession:
        return VerificationSession(
            application_id=application_id,
            email=email,
            code_digest=hash_code(code),
            max_attempts=self.max_attempts,
            last_sent_at=self.store.now(),
            candidate_name=candidate_name,
            job_title=job_title,
            company_name=company_name or "",
            interview_link_id=interview_link_id,
        )

    def _dispatch(self, session: VerificationSession, code: str) -> Dict[str, Any]:
        subject, html, text = verification_code_email(
            candidate_name=session.candidate_name,
            code=code,
            job_title=session.job_title,
            company_name=session.company_name,
            expiry_minutes=max(self.code_ttl // 60, 1),
        )
        try:
            self.dispatcher.send(session.email, subject, html, text)
        except EmailDispatchError as exc:
            _LOGGER.error(
                "Verification email to %s for application %s failed: %s",
                session.email,
                session.application_id,
                exc,
            )
            return {"emailSent": False, "emailError": str(exc)}
        return {"emailSent": True}

    def send(
        self,
        application_id: str,
        email: str,
        candidate_name: str,
        job_title: str,
        company_name: str = "",
        interview_link_id: Optional[str] = None,
    ) -> Result:
        """Issue a fresh code for the pair, invalidating any previous one."""
        code = self._generate_code()
        session = self._new_session(
            application_id, email, code, candidate_name, job_title, company_name, interview_link_id
        )
        expires_at = self.store.put(session_key(application_id, email), session, self.code_ttl)
        _LOGGER.info("Issued verification code for application %s", application_id)

        delivery = self._dispatch(session, code)
        return Success({"applicationId": application_id, "expiresAt": to_datetime(expires_at), **delivery})

    def resend(
        self,
        application_id: str,
        email: str,
        candidate_name: str,
        job_title: str,
        company_name: str = "",
        interview_link_id: Optional[str] = None,
    ) -> Result:
        """Issue a replacement code unless the previous one was sent too recently."""
        code = self._generate_code()
        session = self._new_session(
            application_id, email, code, candidate_name, job_title, company_name, interview_link_id
        )
        now = self.store.now()

        def keep(existing: VerificationSession) -> bool:
            return existing.verified or now - existing.last_sent_at < self.resend_cooldown

        stored, previous = self.store.put_unless(
            session_key(application_id, email), session, self.code_ttl, keep
        )
        if not stored:
            if previous.verified:
                return Failure(FailureCode.ALREADY_VERIFIED)
            wait = int(previous.last_sent_at + self.resend_cooldown - now) + 1
            return Failure(
                FailureCode.RESEND_TOO_SOON,
                f"Please wait {wait} seconds before requesting a new verification code.",
                retry_after=wait,
            )

        _LOGGER.info("Re-issued verification code for application %s", application_id)
        delivery = self._dispatch(session, code)
        return Success(
            {"applicationId": application_id, "expiresAt": to_datetime(session.expires_at), **delivery}
        )

    def verify(self, application_id: str, email: str, submitted_code: str) -> Result:
        """Check ``submitted_code``; a mismatch consumes one attempt."""
        key = session_key(application_id, email)

        def is_open(session: VerificationSession) -> bool:
            return not session.verified and session.attempts_used < session.max_attempts

        def check(session: VerificationSession) -> None:
            if code_matches(submitted_code, session.code_digest):
                session.verified = True
                session.verified_at = self.store.now()
            else:
                session.attempts_used += 1

        applied, session = self.store.compare_and_update(key, is_open, check)

        if session is None:
            return Failure(FailureCode.CODE_NOT_FOUND)
        if not applied:
            if session.verified:
                return Failure(FailureCode.ALREADY_VERIFIED)
            if session.expires_at <= self.store.now():
                return Failure(FailureCode.CODE_EXPIRED)
            return Failure(FailureCode.ATTEMPTS_EXCEEDED, remaining_attempts=0)

        if session.verified:
            _LOGGER.info("Email verified for application %s", application_id)
            return Success({"verified": True, "candidateData": session.candidate_data()})

        remaining = session.remaining_attempts
        if remaining == 0:
            _LOGGER.warning("Verification attempts exhausted for application %s", application_id)
            return Failure(FailureCode.ATTEMPTS_EXCEEDED, remaining_attempts=0)

        _LOGGER.info(
            "Verification code mismatch for application %s (%d attempt(s) left)",
            application_id,
            remaining,
        )
        return Failure(
            FailureCode.CODE_MISMATCH,
            f"Invalid verification code. {remaining} attempts remaining.",
            remaining_attempts=remaining,
        )

    def status(self, application_id: str, email: str) -> Dict[str, Any]:
        session = self.store.peek(session_key(application_id, email))
        if session is None:
            return {"status": "not_found"}
        if session.verified:
            return {"status": "verified", "verifiedAt": to_datetime(session.verified_at)}
        if session.expires_at <= self.store.now():
            return {"status": "expired", "expiresAt": to_datetime(session.expires_at)}
        if session.attempts_used >= session.max_attempts:
            return {"status": "locked", "attempts": session.attempts_used, "maxAttempts": session.max_attempts}
        return {
            "status": "pending",
            "expiresAt": to_datetime(session.expires_at),
            "attempts": session.attempts_used,
            "maxAttempts": session.max_attempts,
            "remainingAttempts": session.remaining_attempts,
        }

    def discard(self, application_id: str, email: str) -> bool:
        """Drop the session once the caller has persisted the verification."""
        return self.store.delete(session_key(application_id, email))

    def pending(self) -> List[Dict[str, Any]]:
        now = self.store.now()
        entries = []
        for key, session in self.store.items():
            if session.verified or session.expires_at <= now:
                continue
            entries.append(
                {
                    "key": key,
                    "email": session.email,
                    "candidateName": session.candidate_name,
                    "applicationId": session.application_id,
                    "attempts": session.attempts_used,
                    "expiresAt": to_datetime(session.expires_at),
                    "timeRemaining": f"{round(session.expires_at - now)}s",
                }
            )
        return entries

    def sessions(self) -> List[VerificationSession]:
        return self.store.values()
