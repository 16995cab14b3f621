"""/api/v1/candidate routes for email verification and private interview links."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from interview_access.routes.responses import (
    bad_request,
    failure,
    json_payload,
    read_fields,
    success,
    verification_service,
)
from interview_access.services import application_service
from interview_access.utils.codes import CODE_LENGTH

bp = Blueprint("candidate_verification", __name__, url_prefix="/api/v1/candidate")

SEND_FIELDS = ("applicationId", "email", "candidateName", "jobTitle")
SEND_OPTIONAL = ("companyName", "interviewLinkId")


def _send_args(fields):
    return dict(
        application_id=str(fields["applicationId"]),
        email=fields["email"],
        candidate_name=fields["candidateName"],
        job_title=fields["jobTitle"],
        company_name=fields["companyName"] or "",
        interview_link_id=fields["interviewLinkId"],
    )


@bp.post("/send-verification")
def send_verification():
    """Email a one-time code to the candidate on an application."""
    fields, missing = read_fields(json_payload(), SEND_FIELDS, SEND_OPTIONAL)
    if missing:
        return bad_request(f"Missing required fields: {', '.join(missing)}")

    result = verification_service().send_verification(**_send_args(fields))
    if not result.ok:
        return failure(result)

    return success("Verification email sent to candidate successfully", result.payload)


@bp.post("/verify-email")
def verify_email():
    """Check a submitted code and mark the application's email as verified."""
    fields, missing = read_fields(json_payload(), ("applicationId", "email", "verificationCode"))
    if missing:
        return bad_request(f"Missing required fields: {', '.join(missing)}")

    submitted = fields["verificationCode"]
    if isinstance(submitted, bool) or not isinstance(submitted, (int, str)):
        return bad_request("verificationCode must be a string or integer")
    if isinstance(submitted, int):
        # JSON numbers drop leading zeros.
        submitted = str(submitted).zfill(CODE_LENGTH)

    application_id = str(fields["applicationId"])
    result = verification_service().verify_email(application_id, fields["email"], submitted)
    if not result.ok:
        return failure(result)

    updated = application_service.mark_email_verified(application_id)
    if not updated:
        current_app.logger.warning("Verified email for %s but application was not updated", application_id)

    return success(
        "Candidate email verified successfully",
        {**result.payload, "applicationUpdated": updated},
    )


@bp.post("/resend-verification")
def resend_verification():
    """Issue a replacement code, subject to the resend cooldown."""
    fields, missing = read_fields(json_payload(), SEND_FIELDS, SEND_OPTIONAL)
    if missing:
        return bad_request(f"Missing required fields: {', '.join(missing)}")

    result = verification_service().resend_verification(**_send_args(fields))
    if not result.ok:
        return failure(result)

    return success("New verification code sent to candidate successfully", result.payload)


@bp.get("/verification-status")
def verification_status():
    """Return the state of the candidate's verification session."""
    fields, missing = read_fields(request.args, ("applicationId", "email"))
    if missing:
        return bad_request(f"Missing required parameters: {', '.join(missing)}")

    status = verification_service().verification_status(fields["applicationId"], fields["email"])
    return success("Verification status retrieved", status)


@bp.get("/stats")
def stats():
    """Return counts for verification sessions and private tokens."""
    return success("Verification statistics retrieved", verification_service().get_stats())


@bp.post("/private-link")
def send_private_link():
    """Issue a single-use private interview link and email it to the candidate."""
    fields, missing = read_fields(
        json_payload(),
        ("applicationId", "candidateId", "email", "candidateName", "jobId"),
        ("jobTitle", "companyName", "publicLinkId"),
    )
    if missing:
        return bad_request(f"Missing required fields: {', '.join(missing)}")

    result = verification_service().issue_private_link(
        application_id=str(fields["applicationId"]),
        candidate_id=str(fields["candidateId"]),
        email=fields["email"],
        job_id=str(fields["jobId"]),
        candidate_name=fields["candidateName"],
        job_title=fields["jobTitle"] or "",
        company_name=fields["companyName"] or "",
        public_link_id=fields["publicLinkId"],
    )
    if not result.ok:
        return failure(result)

    application_service.mark_private_link_sent(result.payload["applicationId"], result.payload["expiresAt"])
    return success("Private interview link sent successfully", result.payload)


@bp.post("/private-link/recruiter")
def send_private_link_to_candidate():
    """Recruiter-initiated private link; details are resolved from the application."""
    payload = json_payload()
    fields, missing = read_fields(payload, ("applicationId",), ("recruiterMessage",))
    if missing:
        return bad_request("Application ID is required")

    result = verification_service().issue_private_link_for_application(
        str(fields["applicationId"]), fields["recruiterMessage"] or ""
    )
    if not result.ok:
        return failure(result)

    application_service.mark_private_link_sent(result.payload["applicationId"], result.payload["expiresAt"])
    return success("Private interview link sent to candidate", result.payload)


@bp.post("/private-token/validate")
def validate_private_token():
    """Check a private token without consuming it."""
    fields, missing = read_fields(json_payload(), ("token",))
    if missing:
        return bad_request("Token is required")

    result = verification_service().validate_private_token(str(fields["token"]))
    if not result.ok:
        return failure(result)

    return success("Private interview link is valid", result.payload)


@bp.post("/private-token/use")
def use_private_token():
    """Consume a private token; a second use is rejected."""
    fields, missing = read_fields(json_payload(), ("token",))
    if missing:
        return bad_request("Token is required")

    result = verification_service().use_private_token(str(fields["token"]))
    if not result.ok:
        return failure(result)

    application_service.mark_private_link_used(
        result.payload["applicationId"],
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )
    return success("Private interview access granted", result.payload)
