"""Admin utilities for inspecting and resetting verification state."""

from __future__ import annotations

import os

from flask import Blueprint, current_app

from interview_access.routes.responses import (
    bad_request,
    json_payload,
    read_fields,
    success,
    verification_service,
)

bp = Blueprint("verification_admin", __name__, url_prefix="/api/v1/admin/verification")


@bp.get("/pending")
def list_pending():
    """List live, unverified sessions without exposing their codes."""
    pending = verification_service().pending_verifications()
    return success("Pending verifications retrieved", {"pending": pending, "total_count": len(pending)})


@bp.post("/discard")
def discard_session():
    """Remove one candidate's verification session, e.g. once it has been persisted."""
    fields, missing = read_fields(json_payload(), ("applicationId", "email"))
    if missing:
        return bad_request(f"Missing required fields: {', '.join(missing)}")

    discarded = verification_service().discard_verification(str(fields["applicationId"]), fields["email"])
    message = "Verification session discarded" if discarded else "No verification session found"
    return success(message, {"discarded": discarded})


@bp.post("/clear")
def clear_all():
    """Drop every verification session and private token held in memory."""
    cleared = verification_service().clear_all()
    current_app.logger.warning("Admin cleared verification state: %s", cleared)
    return success("Verification state cleared", {"cleared": cleared})


@bp.post("/test-email")
def send_test_email():
    """Send a test message to check the mail configuration."""
    to = json_payload().get("to") or os.getenv("MAIL_USERNAME")
    if not to:
        return bad_request("Recipient address is required")

    result = verification_service().send_test_email(to)
    return success("Test email processed", result.payload)
