"""Single entry point the web layer uses for candidate verification and private links."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from interview_access.config import VerificationPolicy
from interview_access.results import Failure, FailureCode, Result, Success
from interview_access.services.email_service import EmailDispatchError, configuration_test_email
from interview_access.services.private_tokens import PrivateInterviewToken, PrivateTokenManager
from interview_access.services.stats import StatsAggregator
from interview_access.services.verification_codes import VerificationCodeManager, VerificationSession
from interview_access.store import ExpiringRecordStore
from interview_access.utils.codes import generate_code, generate_token

_LOGGER = logging.getLogger(__name__)


class VerificationService:
    """Owns the in-process stores and the managers built on them.

    Create one per process (``create_app`` does this), call ``start`` to begin
    background reaping and ``shutdown`` to stop it.
    """

    def __init__(
        self,
        dispatcher,
        lookup=None,
        policy: Optional[VerificationPolicy] = None,
        *,
        clock: Callable[[], float] = time.time,
        code_generator: Callable[[], str] = generate_code,
        token_generator: Callable[[], str] = generate_token,
    ) -> None:
        self.policy = policy or VerificationPolicy()
        self.dispatcher = dispatcher
        self.lookup = lookup

        self.session_store: ExpiringRecordStore[VerificationSession] = ExpiringRecordStore(
            "verification-sessions", retention=self.policy.status_grace, clock=clock
        )
        self.token_store: ExpiringRecordStore[PrivateInterviewToken] = ExpiringRecordStore(
            "private-tokens", retention=self.policy.token_retention, clock=clock
        )

        self.codes = VerificationCodeManager(
            self.session_store,
            dispatcher,
            code_ttl=self.policy.code_ttl,
            max_attempts=self.policy.max_attempts,
            resend_cooldown=self.policy.resend_cooldown,
            code_generator=code_generator,
        )
        self.tokens = PrivateTokenManager(
            self.token_store,
            dispatcher,
            token_ttl=self.policy.token_ttl,
            frontend_url=self.policy.frontend_url,
            token_generator=token_generator,
        )
        self.stats = StatsAggregator(self.codes, self.tokens)

    # Lifecycle

    def start(self) -> None:
        self.session_store.start_reaper(self.policy.reap_interval)
        self.token_store.start_reaper(self.policy.reap_interval)
        _LOGGER.info("Verification service started (reap interval %ss)", self.policy.reap_interval)

    def shutdown(self) -> None:
        self.session_store.stop_reaper()
        self.token_store.stop_reaper()
        _LOGGER.info("Verification service cleanup stopped")

    def reap_expired(self) -> Dict[str, int]:
        return {
            "sessions": self.session_store.reap_expired(),
            "tokens": self.token_store.reap_expired(),
        }

    def _application_matches(self, application_id: str, email: str) -> bool:
        if self.lookup is None:
            return True
        return self.lookup.confirm(application_id, email)

    # Email verification

    def send_verification(
        self,
        application_id: str,
        email: str,
        candidate_name: str,
        job_title: str,
        company_name: str = "",
        interview_link_id: Optional[str] = None,
    ) -> Result:
        if not self._application_matches(application_id, email):
            return Failure(FailureCode.APPLICATION_MISMATCH)
        return self.codes.send(
            application_id, email, candidate_name, job_title, company_name, interview_link_id
        )

    def resend_verification(
        self,
        application_id: str,
        email: str,
        candidate_name: str,
        job_title: str,
        company_name: str = "",
        interview_link_id: Optional[str] = None,
    ) -> Result:
        if not self._application_matches(application_id, email):
            return Failure(FailureCode.APPLICATION_MISMATCH)
        return self.codes.resend(
            application_id, email, candidate_name, job_title, company_name, interview_link_id
        )

    def verify_email(self, application_id: str, email: str, code: str) -> Result:
        return self.codes.verify(application_id, email, code)

    def verification_status(self, application_id: str, email: str) -> Dict[str, Any]:
        return self.codes.status(application_id, email)

    def discard_verification(self, application_id: str, email: str) -> bool:
        """Forget a session after the caller has persisted its outcome."""
        discarded = self.codes.discard(application_id, email)
        if discarded:
            _LOGGER.info("Discarded verification session for application %s", application_id)
        return discarded

    def get_stats(self) -> Dict[str, Any]:
        return self.stats.snapshot()

    # Private interview links

    def issue_private_link(
        self,
        application_id: str,
        candidate_id: str,
        email: str,
        job_id: str,
        candidate_name: str = "",
        job_title: str = "",
        company_name: str = "",
        public_link_id: Optional[str] = None,
        recruiter_message: str = "",
    ) -> Result:
        if not self._application_matches(application_id, email):
            return Failure(FailureCode.APPLICATION_MISMATCH)
        return self.tokens.issue(
            application_id,
            candidate_id,
            job_id,
            email,
            candidate_name,
            job_title=job_title,
            company_name=company_name,
            public_link_id=public_link_id,
            recruiter_message=recruiter_message,
        )

    def issue_private_link_for_application(self, application_id: str, recruiter_message: str = "") -> Result:
        """Recruiter-initiated issuance; candidate and job details come from the lookup."""
        details = self.lookup.resolve(application_id) if self.lookup is not None else None
        if not details or not details.get("email"):
            return Failure(FailureCode.APPLICATION_MISMATCH, "Application not found.")
        return self.tokens.issue(
            details["applicationId"],
            details["candidateId"],
            details["jobId"],
            details["email"],
            details["candidateName"],
            job_title=details["jobTitle"],
            company_name=details["companyName"],
            public_link_id=details.get("publicLinkId"),
            recruiter_message=recruiter_message,
        )

    def validate_private_token(self, token: str) -> Result:
        return self.tokens.validate(token)

    def use_private_token(self, token: str) -> Result:
        return self.tokens.use(token)

    # Admin helpers

    def pending_verifications(self) -> List[Dict[str, Any]]:
        return self.codes.pending()

    def clear_all(self) -> Dict[str, int]:
        cleared = {"sessions": self.session_store.clear(), "tokens": self.token_store.clear()}
        _LOGGER.warning("Cleared %(sessions)d verification session(s) and %(tokens)d token(s)", cleared)
        return cleared

    def send_test_email(self, to: str) -> Result:
        subject, html, text = configuration_test_email()
        try:
            self.dispatcher.send(to, subject, html, text)
        except EmailDispatchError as exc:
            _LOGGER.error("Test email failed: %s", exc)
            return Success({"emailSent": False, "emailError": str(exc)})
        return Success({"emailSent": True})
