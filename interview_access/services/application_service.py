"""Application lookups and status updates against MongoDB."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from bson import ObjectId
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from interview_access.database import get_database

_LOGGER = logging.getLogger(__name__)


def _document_id(value: Any) -> Any:
    """Use an ObjectId when the value looks like one, else the raw value."""
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def _applications() -> Collection:
    return get_database()["applications"]


class MongoApplicationLookup:
    """Confirms applications and resolves display names for emails."""

    def confirm(self, application_id: str, email: str) -> bool:
        """
        Check that an application exists for the given candidate email.

        Args:
            application_id: The application document id
            email: The candidate email submitted with the request

        Returns:
            True if an application with that id and candidate email exists
        """
        document = _applications().find_one(
            {"_id": _document_id(application_id), "candidate_info.email": email},
            {"_id": 1},
        )
        return document is not None

    def resolve(self, application_id: str) -> Optional[Dict[str, Any]]:
        """
        Resolve candidate, job and workspace details for an application.

        Args:
            application_id: The application document id

        Returns:
            A dictionary of ids and display names, or None if the application
            does not exist
        """
        db = get_database()
        application = db.applications.find_one({"_id": _document_id(application_id)})
        if not application:
            return None

        candidate_info = application.get("candidate_info") or {}
        candidate = db.users.find_one({"_id": application.get("candidate")}) or {}
        job = db.jobs.find_one({"_id": application.get("job")}) or {}
        workspace = {}
        if job.get("workspace") is not None:
            workspace = db.workspaces.find_one({"_id": job["workspace"]}) or {}

        return {
            "applicationId": str(application["_id"]),
            "candidateId": str(application.get("candidate") or ""),
            "jobId": str(application.get("job") or ""),
            "email": candidate.get("email") or candidate_info.get("email"),
            "candidateName": (
                candidate.get("full_name")
                or candidate.get("name")
                or candidate_info.get("name")
                or ""
            ),
            "jobTitle": job.get("title", ""),
            "companyName": workspace.get("name", ""),
            "publicLinkId": application.get("interview_link_id"),
        }


def _update_application(application_id: str, fields: Dict[str, Any]) -> bool:
    try:
        result = _applications().update_one({"_id": _document_id(application_id)}, {"$set": fields})
    except PyMongoError as e:
        _LOGGER.error("Failed to update application %s: %s", application_id, e)
        return False
    return result.matched_count > 0


def mark_email_verified(application_id: str) -> bool:
    """
    Record a successful email verification on the application.

    Args:
        application_id: The application document id

    Returns:
        True if the application was found and updated
    """
    return _update_application(
        application_id,
        {
            "email_verified": True,
            "email_verified_at": datetime.utcnow(),
            "status": "email_verified",
        },
    )


def mark_private_link_sent(application_id: str, expires_at: datetime) -> bool:
    """Record that a private interview link was emailed to the candidate."""
    return _update_application(
        application_id,
        {
            "privateInterviewLink.sent": True,
            "privateInterviewLink.sentAt": datetime.utcnow(),
            "privateInterviewLink.expiresAt": expires_at,
            "privateInterviewLink.accessed": False,
            "privateInterviewLink.used": False,
            "status": "interview_link_sent",
        },
    )


def mark_private_link_used(
    application_id: str,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> bool:
    """Record that the candidate opened their private interview link."""
    now = datetime.utcnow()
    return _update_application(
        application_id,
        {
            "privateInterviewLink.accessed": True,
            "privateInterviewLink.accessedAt": now,
            "privateInterviewLink.used": True,
            "privateInterviewLink.ipAddress": ip_address,
            "privateInterviewLink.userAgent": user_agent,
        },
    )
