"""
Database helpers for the dental clinic API.

A single MongoClient is opened at startup and its Database handle is passed to
the repositories; nothing here holds a module-level connection.
"""
import logging
from datetime import datetime

from bson import ObjectId
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import OperationFailure

logger = logging.getLogger(__name__)

PATIENTS = "patients"
DENTISTS = "dentists"
USERS = "users"


def connect(url: str, name: str) -> tuple[MongoClient, Database]:
    client = MongoClient(url)
    logger.info("Connected to MongoDB database %s", name)
    return client, client[name]


def ensure_indexes(db: Database) -> None:
    """Create the indexes the repositories rely on (idempotent).

    Accounts already stored with duplicate emails block the unique index; the
    service then runs with only the check in AccountRepository.create.
    """
    try:
        db[USERS].create_index([("email", ASCENDING)], unique=True)
    except OperationFailure:
        logger.error("Could not build unique index on %s.email; duplicate accounts exist", USERS, exc_info=True)
    db[DENTISTS].create_index([("name", ASCENDING)])


def to_str_id(doc):
    """Render a document (or list of documents) JSON-safe: ObjectIds become strings."""
    if not doc:
        return doc
    if isinstance(doc, list):
        return [to_str_id(d) for d in doc]
    d = dict(doc)
    for k, v in list(d.items()):
        if isinstance(v, ObjectId):
            d[k] = str(v)
        elif isinstance(v, datetime):
            d[k] = v.isoformat()
        elif isinstance(v, dict):
            d[k] = to_str_id(v)
    return d


def insert_result(result) -> dict:
    return {"acknowledged": result.acknowledged, "inserted_id": str(result.inserted_id)}


def update_result(result) -> dict:
    return {
        "acknowledged": result.acknowledged,
        "matched_count": result.matched_count,
        "modified_count": result.modified_count,
    }
