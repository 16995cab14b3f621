"""End-to-end tests for the candidate verification HTTP routes."""

from __future__ import annotations


def send_body(application, **overrides):
    body = {
        "applicationId": application["applicationId"],
        "email": application["email"],
        "candidateName": "Ada Lovelace",
        "jobTitle": "Backend Engineer",
        "companyName": "Acme Corp",
    }
    body.update(overrides)
    return body


def test_send_verification_requires_fields(client):
    response = client.post("/api/v1/candidate/send-verification", json={"email": "ada@example.com"})

    assert response.status_code == 400
    assert "applicationId" in response.get_json()["message"]


def test_send_verification_rejects_unknown_application(client, application):
    response = client.post(
        "/api/v1/candidate/send-verification",
        json=send_body(application, email="mallory@example.com"),
    )

    assert response.status_code == 404
    assert response.get_json()["code"] == "APPLICATION_MISMATCH"


def test_verify_flow_marks_application(client, application, mongo_db):
    sent = client.post("/api/v1/candidate/send-verification", json=send_body(application))
    assert sent.status_code == 200
    assert sent.get_json()["data"]["applicationId"] == application["applicationId"]

    wrong = client.post(
        "/api/v1/candidate/verify-email",
        json={**send_body(application), "verificationCode": "111111"},
    )
    assert wrong.status_code == 400
    assert wrong.get_json()["code"] == "INVALID_CODE"
    assert wrong.get_json()["remainingAttempts"] == 4

    ok = client.post(
        "/api/v1/candidate/verify-email",
        json={**send_body(application), "verificationCode": 482913},
    )
    assert ok.status_code == 200
    data = ok.get_json()["data"]
    assert data["verified"] is True
    assert data["candidateData"]["candidateName"] == "Ada Lovelace"
    assert data["applicationUpdated"] is True
    assert mongo_db.applications.find_one()["email_verified"] is True

    repeat = client.post(
        "/api/v1/candidate/verify-email",
        json={**send_body(application), "verificationCode": "482913"},
    )
    assert repeat.status_code == 409
    assert repeat.get_json()["code"] == "ALREADY_VERIFIED"


def test_resend_is_rate_limited(client, application, clock):
    client.post("/api/v1/candidate/send-verification", json=send_body(application))

    response = client.post("/api/v1/candidate/resend-verification", json=send_body(application))
    assert response.status_code == 429
    assert response.get_json()["code"] == "RATE_LIMITED"

    clock.advance(60)
    response = client.post("/api/v1/candidate/resend-verification", json=send_body(application))
    assert response.status_code == 200
    assert "expiresAt" in response.get_json()["data"]


def test_status_and_stats(client, application):
    params = {"applicationId": application["applicationId"], "email": application["email"]}

    missing = client.get("/api/v1/candidate/verification-status")
    assert missing.status_code == 400

    none = client.get("/api/v1/candidate/verification-status", query_string=params)
    assert none.get_json()["data"] == {"status": "not_found"}

    client.post("/api/v1/candidate/send-verification", json=send_body(application))
    pending = client.get("/api/v1/candidate/verification-status", query_string=params).get_json()["data"]
    assert pending["status"] == "pending"
    assert pending["remainingAttempts"] == 5

    stats = client.get("/api/v1/candidate/stats").get_json()["data"]
    assert stats["verifications"]["pending"] == 1
    assert stats["privateTokens"]["total"] == 0


def test_private_link_lifecycle(client, application, mongo_db):
    issued = client.post(
        "/api/v1/candidate/private-link",
        json={
            "applicationId": application["applicationId"],
            "candidateId": application["candidateId"],
            "email": application["email"],
            "candidateName": "Ada Lovelace",
            "jobId": application["jobId"],
            "jobTitle": "Backend Engineer",
        },
    )
    assert issued.status_code == 200
    token = issued.get_json()["data"]["token"]
    assert mongo_db.applications.find_one()["privateInterviewLink"]["sent"] is True

    valid = client.post("/api/v1/candidate/private-token/validate", json={"token": token})
    assert valid.status_code == 200
    assert valid.get_json()["data"]["jobTitle"] == "Backend Engineer"

    used = client.post(
        "/api/v1/candidate/private-token/use",
        json={"token": token},
        headers={"User-Agent": "pytest"},
    )
    assert used.status_code == 200
    link = mongo_db.applications.find_one()["privateInterviewLink"]
    assert link["used"] is True
    assert link["userAgent"] == "pytest"

    replay = client.post("/api/v1/candidate/private-token/use", json={"token": token})
    assert replay.status_code == 409
    assert replay.get_json()["code"] == "TOKEN_ALREADY_USED"

    unknown = client.post("/api/v1/candidate/private-token/validate", json={"token": "missing"})
    assert unknown.status_code == 404

    no_token = client.post("/api/v1/candidate/private-token/use", json={})
    assert no_token.status_code == 400


def test_recruiter_private_link(client, application, dispatcher):
    response = client.post(
        "/api/v1/candidate/private-link/recruiter",
        json={"applicationId": application["applicationId"], "recruiterMessage": "See you soon"},
    )

    assert response.status_code == 200
    assert response.get_json()["data"]["url"].startswith("https://interviews.example.com/private-interview/")
    assert dispatcher.sent[-1][0] == "ada@example.com"


def test_admin_routes(client, application):
    client.post("/api/v1/candidate/send-verification", json=send_body(application))

    pending = client.get("/api/v1/admin/verification/pending").get_json()["data"]
    assert pending["total_count"] == 1

    test_mail = client.post("/api/v1/admin/verification/test-email", json={"to": "ops@example.com"})
    assert test_mail.get_json()["data"]["emailSent"] is True

    cleared = client.post("/api/v1/admin/verification/clear").get_json()["data"]
    assert cleared["cleared"] == {"sessions": 1, "tokens": 0}


def test_admin_discard_route(client, application):
    client.post("/api/v1/candidate/send-verification", json=send_body(application))
    body = {"applicationId": application["applicationId"], "email": application["email"]}

    first = client.post("/api/v1/admin/verification/discard", json=body)
    assert first.status_code == 200
    assert first.get_json()["data"] == {"discarded": True}

    status = client.get("/api/v1/candidate/verification-status", query_string=body).get_json()["data"]
    assert status == {"status": "not_found"}

    second = client.post("/api/v1/admin/verification/discard", json=body)
    assert second.get_json()["data"] == {"discarded": False}

    missing = client.post("/api/v1/admin/verification/discard", json={"email": application["email"]})
    assert missing.status_code == 400


def test_numeric_code_keeps_leading_zeros(client, application, service):
    service.codes._generate_code = lambda: "012345"
    client.post("/api/v1/candidate/send-verification", json=send_body(application))

    response = client.post(
        "/api/v1/candidate/verify-email",
        json={**send_body(application), "verificationCode": 12345},
    )
    assert response.status_code == 200
    assert response.get_json()["data"]["verified"] is True


def test_verify_rejects_non_scalar_code(client, application):
    client.post("/api/v1/candidate/send-verification", json=send_body(application))

    response = client.post(
        "/api/v1/candidate/verify-email",
        json={**send_body(application), "verificationCode": True},
    )
    assert response.status_code == 400
