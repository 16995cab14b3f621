"""Shared pytest fixtures for the verification service and its MongoDB lookup."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Tuple

import mongomock
import pytest

# Ensure the application package is importable during tests.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from interview_access import database  # noqa: E402
from interview_access.config import VerificationPolicy  # noqa: E402
from interview_access.main import create_app  # noqa: E402
from interview_access.services.application_service import MongoApplicationLookup  # noqa: E402
from interview_access.services.email_service import EmailDispatchError  # noqa: E402
from interview_access.services.verification_service import VerificationService  # noqa: E402

START_TIME = 1_700_000_000.0


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, start: float = START_TIME) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class RecordingDispatcher:
    """Collects outgoing emails instead of sending them."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str, str, str]] = []

    def send(self, to: str, subject: str, html: str, text: str = "") -> None:
        self.sent.append((to, subject, html, text))


class FailingDispatcher:
    def send(self, to: str, subject: str, html: str, text: str = "") -> None:
        raise EmailDispatchError(f"Failed to send email to {to}: connection refused")


class SequenceCodes:
    """Returns the given codes in order, repeating the last one."""

    def __init__(self, *codes: str) -> None:
        self.codes = list(codes)

    def __call__(self) -> str:
        if len(self.codes) > 1:
            return self.codes.pop(0)
        return self.codes[0]


@pytest.fixture(autouse=True)
def mongo_db(monkeypatch: pytest.MonkeyPatch):
    """Provide an isolated in-memory MongoDB database for each test."""
    test_db_name = "test_interview_portal"
    monkeypatch.setenv("MONGODB_DATABASE", test_db_name)

    client = mongomock.MongoClient()
    db = client[test_db_name]

    monkeypatch.setattr(database, "get_mongo_client", lambda: client)
    monkeypatch.setattr(database, "get_database", lambda: db)
    monkeypatch.setattr("interview_access.services.application_service.get_database", lambda: db)

    yield db

    client.drop_database(test_db_name)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def policy() -> VerificationPolicy:
    return VerificationPolicy(frontend_url="https://interviews.example.com")


@pytest.fixture
def service(dispatcher, policy, clock) -> VerificationService:
    return VerificationService(
        dispatcher,
        MongoApplicationLookup(),
        policy,
        clock=clock,
        code_generator=SequenceCodes("482913", "735102", "190244"),
    )


@pytest.fixture
def application(mongo_db):
    """Insert an application with its candidate, job and workspace."""
    workspace_id = mongo_db.workspaces.insert_one({"name": "Acme Corp"}).inserted_id
    job_id = mongo_db.jobs.insert_one({"title": "Backend Engineer", "workspace": workspace_id}).inserted_id
    candidate_id = mongo_db.users.insert_one(
        {"email": "ada@example.com", "full_name": "Ada Lovelace"}
    ).inserted_id
    application_id = mongo_db.applications.insert_one(
        {
            "candidate": candidate_id,
            "job": job_id,
            "candidate_info": {"email": "ada@example.com", "name": "Ada Lovelace"},
            "status": "interview_link_not_sent",
            "interview_link_id": "public-123",
        }
    ).inserted_id
    return {
        "applicationId": str(application_id),
        "candidateId": str(candidate_id),
        "jobId": str(job_id),
        "email": "ada@example.com",
    }


@pytest.fixture
def app(service):
    flask_app = create_app({"TESTING": True}, service=service)
    yield flask_app


@pytest.fixture
def client(app):
    return app.test_client()
