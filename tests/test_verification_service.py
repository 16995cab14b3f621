"""Tests for the verification facade, statistics and the MongoDB application lookup."""

from __future__ import annotations

from interview_access.results import FailureCode
from interview_access.services import application_service


def test_send_requires_matching_application(service, application):
    mismatch = service.send_verification(
        application["applicationId"], "someone@else.com", "Ada", "Backend Engineer"
    )
    assert mismatch.code is FailureCode.APPLICATION_MISMATCH

    sent = service.send_verification(
        application["applicationId"], application["email"], "Ada", "Backend Engineer"
    )
    assert sent.ok


def test_resend_requires_matching_application(service, application):
    result = service.resend_verification("64b7f0c2a1b2c3d4e5f60718", application["email"], "Ada", "Engineer")
    assert result.code is FailureCode.APPLICATION_MISMATCH


def test_issue_private_link_checks_application(service, application):
    mismatch = service.issue_private_link(
        application["applicationId"], application["candidateId"], "wrong@example.com", application["jobId"]
    )
    assert mismatch.code is FailureCode.APPLICATION_MISMATCH

    issued = service.issue_private_link(
        application["applicationId"],
        application["candidateId"],
        application["email"],
        application["jobId"],
        candidate_name="Ada Lovelace",
    )
    assert issued.ok
    assert issued.payload["url"].startswith("https://interviews.example.com/private-interview/")


def test_recruiter_initiated_link_resolves_details(service, application, dispatcher):
    result = service.issue_private_link_for_application(
        application["applicationId"], recruiter_message="Looking forward to it!"
    )

    assert result.ok
    token = result.payload["token"]
    validated = service.validate_private_token(token)
    assert validated.payload["candidateName"] == "Ada Lovelace"
    assert validated.payload["jobTitle"] == "Backend Engineer"
    assert validated.payload["companyName"] == "Acme Corp"
    assert validated.payload["publicLinkId"] == "public-123"

    _, _, html, text = dispatcher.sent[-1]
    assert "Looking forward to it!" in html
    assert "Looking forward to it!" in text


def test_recruiter_initiated_link_for_unknown_application(service):
    result = service.issue_private_link_for_application("64b7f0c2a1b2c3d4e5f60718")
    assert result.code is FailureCode.APPLICATION_MISMATCH


def test_stats_reflect_store_contents(service, application, clock):
    app_id, email = application["applicationId"], application["email"]

    empty = service.get_stats()
    assert empty["verifications"]["total"] == 0
    assert empty["verifications"]["verificationRate"] == 0.0

    service.send_verification(app_id, email, "Ada", "Backend Engineer")
    service.verify_email(app_id, email, "482913")
    service.codes.send("other-app", "bob@example.com", "Bob", "Designer")

    first = service.issue_private_link(app_id, application["candidateId"], email, application["jobId"])
    service.issue_private_link(app_id, application["candidateId"], email, application["jobId"])
    service.use_private_token(first.payload["token"])

    stats = service.get_stats()
    assert stats["verifications"]["total"] == 2
    assert stats["verifications"]["verified"] == 1
    assert stats["verifications"]["pending"] == 1
    assert stats["verifications"]["verificationRate"] == 0.5
    assert stats["privateTokens"] == {
        "total": 2,
        "active": 1,
        "used": 1,
        "expired": 0,
        "usageRate": 0.5,
    }

    clock.advance(service.policy.code_ttl)
    assert service.get_stats()["verifications"]["expired"] == 1


def test_reap_and_clear(service, application, clock):
    service.codes.send("app-x", "x@example.com", "X", "Role")
    service.tokens.issue("app-x", "cand-x", "job-x", "x@example.com", "X")

    clock.advance(service.policy.code_ttl + service.policy.status_grace)
    assert service.reap_expired() == {"sessions": 1, "tokens": 0}
    assert service.verification_status("app-x", "x@example.com") == {"status": "not_found"}

    assert service.clear_all() == {"sessions": 0, "tokens": 1}


def test_pending_verifications_hide_codes(service):
    service.codes.send("app-x", "x@example.com", "X", "Role")

    pending = service.pending_verifications()
    assert len(pending) == 1
    assert pending[0]["applicationId"] == "app-x"
    assert pending[0]["timeRemaining"] == "600s"
    assert "482913" not in repr(pending)


def test_discarded_session_reads_not_found(service):
    service.codes.send("app-x", "x@example.com", "X", "Role")

    assert service.discard_verification("app-x", "X@example.com") is True
    assert service.verification_status("app-x", "x@example.com") == {"status": "not_found"}
    assert service.verify_email("app-x", "x@example.com", "482913").code is FailureCode.CODE_NOT_FOUND
    assert service.discard_verification("app-x", "x@example.com") is False


def test_send_test_email(service, dispatcher):
    result = service.send_test_email("ops@example.com")
    assert result.payload == {"emailSent": True}
    assert dispatcher.sent[0][1] == "Candidate Verification Service Test"


def test_application_updates(mongo_db, application):
    app_id = application["applicationId"]

    assert application_service.mark_email_verified(app_id) is True
    doc = mongo_db.applications.find_one()
    assert doc["email_verified"] is True
    assert doc["status"] == "email_verified"

    assert application_service.mark_private_link_used(app_id, ip_address="10.0.0.1") is True
    doc = mongo_db.applications.find_one()
    assert doc["privateInterviewLink"]["used"] is True
    assert doc["privateInterviewLink"]["ipAddress"] == "10.0.0.1"

    assert application_service.mark_email_verified("64b7f0c2a1b2c3d4e5f60718") is False
