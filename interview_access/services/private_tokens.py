"""Single-use private interview links."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from interview_access.results import Failure, FailureCode, Result, Success
from interview_access.services.email_service import EmailDispatchError, private_link_email
from interview_access.services.verification_codes import to_datetime
from interview_access.store import ExpiringRecordStore
from interview_access.utils.codes import generate_token, mask_token

_LOGGER = logging.getLogger(__name__)


@dataclass
class PrivateInterviewToken:
    application_id: str
    candidate_id: str
    job_id: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    issued_at: float = 0.0
    used: bool = False
    used_at: Optional[float] = None
    expires_at: float = 0.0

    def access_payload(self) -> Dict[str, Any]:
        return {
            "applicationId": self.application_id,
            "candidateId": self.candidate_id,
            "jobId": self.job_id,
            "expiresAt": to_datetime(self.expires_at),
            **self.metadata,
        }


class PrivateTokenManager:
    """Issue, validate and consume private interview tokens."""

    def __init__(
        self,
        store: ExpiringRecordStore[PrivateInterviewToken],
        dispatcher,
        *,
        token_ttl: int = 72 * 60 * 60,
        frontend_url: str = "http://localhost:3000",
        token_generator: Callable[[], str] = generate_token,
    ) -> None:
        self.store = store
        self.dispatcher = dispatcher
        self.token_ttl = token_ttl
        self.frontend_url = frontend_url.rstrip("/")
        self._generate_token = token_generator

    def link_for(self, token: str) -> str:
        return f"{self.frontend_url}/private-interview/{token}"

    def issue(
        self,
        application_id: str,
        candidate_id: str,
        job_id: str,
        email: str,
        candidate_name: str,
        job_title: str = "",
        company_name: str = "",
        public_link_id: Optional[str] = None,
        recruiter_message: str = "",
    ) -> Result:
        """Create a token, then email the link to the candidate."""
        token = self._generate_token()
        record = PrivateInterviewToken(
            application_id=application_id,
            candidate_id=candidate_id,
            job_id=job_id,
            metadata={
                "email": email,
                "candidateName": candidate_name,
                "jobTitle": job_title,
                "companyName": company_name,
                "publicLinkId": public_link_id,
            },
            issued_at=self.store.now(),
        )
        expires_at = to_datetime(self.store.put(token, record, self.token_ttl))
        url = self.link_for(token)
        _LOGGER.info("Issued private interview token %s for application %s", mask_token(token), application_id)

        subject, html, text = private_link_email(
            candidate_name=candidate_name,
            url=url,
            job_title=job_title or "Position",
            company_name=company_name,
            expires_at=expires_at,
            recruiter_message=recruiter_message,
        )
        payload = {"token": token, "url": url, "expiresAt": expires_at, "applicationId": application_id}
        try:
            self.dispatcher.send(email, subject, html, text)
        except EmailDispatchError as exc:
            _LOGGER.error("Private link email for application %s failed: %s", application_id, exc)
            payload.update(emailSent=False, emailError=str(exc))
        else:
            payload["emailSent"] = True
        return Success(payload)

    def _classify(self, record: Optional[PrivateInterviewToken]) -> Failure:
        if record is None:
            return Failure(FailureCode.TOKEN_NOT_FOUND)
        if record.used:
            return Failure(FailureCode.TOKEN_ALREADY_USED)
        return Failure(FailureCode.TOKEN_EXPIRED)

    def validate(self, token: str) -> Result:
        """Pre-flight check that never consumes the token."""
        record = self.store.peek(token)
        if record is None or record.used or record.expires_at <= self.store.now():
            return self._classify(record)
        return Success(record.access_payload())

    def use(self, token: str) -> Result:
        """Consume the token; only one concurrent caller can succeed."""

        def mark_used(record: PrivateInterviewToken) -> None:
            record.used = True
            record.used_at = self.store.now()

        applied, record = self.store.compare_and_update(token, lambda r: not r.used, mark_used)
        if not applied:
            _LOGGER.info("Rejected private token %s", mask_token(token))
            return self._classify(record)

        _LOGGER.info("Private token %s used for application %s", mask_token(token), record.application_id)
        return Success({**record.access_payload(), "usedAt": to_datetime(record.used_at)})

    def tokens(self) -> List[PrivateInterviewToken]:
        return self.store.values()
