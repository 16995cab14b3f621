"""MongoDB connection used to look up candidate applications."""

from __future__ import annotations

import os
from typing import Optional

from pymongo import MongoClient
from pymongo.database import Database


# Process-wide client; pymongo pools connections internally.
_client: Optional[MongoClient] = None
_database: Optional[Database] = None


def get_mongo_client() -> MongoClient:
    """Get or create the MongoDB client from ``MONGODB_URI``."""
    global _client
    if _client is None:
        mongo_uri = os.getenv("MONGODB_URI", "mongodb://localhost:27017/")
        _client = MongoClient(mongo_uri, serverSelectionTimeoutMS=5000)
    return _client


def get_database() -> Database:
    """Get the application database named by ``MONGODB_DATABASE``."""
    global _database
    if _database is None:
        client = get_mongo_client()
        _database = client[os.getenv("MONGODB_DATABASE", "interview_portal")]
    return _database


def close_mongo_connection() -> None:
    """Close the MongoDB connection, if one was opened."""
    global _client, _database
    if _client is not None:
        _client.close()
        _client = None
        _database = None
