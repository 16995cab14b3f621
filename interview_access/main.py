"""Flask application setup and service wiring."""

from __future__ import annotations

import atexit
from typing import Any, Dict, Optional

from flask import Flask, jsonify
from flask_cors import CORS
from pymongo.errors import PyMongoError
from werkzeug.exceptions import InternalServerError

from interview_access.config import VerificationPolicy, mail_settings
from interview_access.database import close_mongo_connection
from interview_access.routes import register_routes
from interview_access.services.application_service import MongoApplicationLookup
from interview_access.services.email_service import MailDispatcher
from interview_access.services.verification_service import VerificationService


def create_app(
    config: Optional[Dict[str, Any]] = None,
    service: Optional[VerificationService] = None,
) -> Flask:
    """Configure and return the Flask application instance.

    A ``VerificationService`` is built from the environment unless one is
    passed in; a service built here starts its reapers and is shut down at
    interpreter exit.
    """
    app = Flask(__name__)
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    app.config.update(mail_settings())
    app.config.update(config or {})

    if service is None:
        dispatcher = MailDispatcher(app)
        service = VerificationService(dispatcher, MongoApplicationLookup(), VerificationPolicy.from_env())
        service.start()
        atexit.register(service.shutdown)
        atexit.register(close_mongo_connection)

    app.extensions["verification_service"] = service

    register_routes(app)
    register_error_handlers(app)

    app.logger.info(
        "Verification service ready (code TTL %ss, token TTL %ss)",
        service.policy.code_ttl,
        service.policy.token_ttl,
    )
    return app


def register_error_handlers(app: Flask) -> None:
    """Render store and database faults as JSON 500 responses."""

    @app.errorhandler(PyMongoError)
    def _database_error(error: PyMongoError):
        app.logger.error("Database error: %s", error)
        return jsonify(success=False, message="Database unavailable"), 500

    @app.errorhandler(InternalServerError)
    def _internal_error(error: InternalServerError):
        original = getattr(error, "original_exception", None) or error
        app.logger.error("Unhandled error: %s", original)
        return jsonify(success=False, message="Internal server error"), 500
