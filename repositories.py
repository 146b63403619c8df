"""
Collection access for patients, dentists and user accounts.

Each repository wraps one collection of the Database handle it is given.
"""
import logging
from typing import Optional

from bson import ObjectId
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import DENTISTS, PATIENTS, USERS

logger = logging.getLogger(__name__)


class DuplicateAccountError(Exception):
    """An account with this email already exists."""


class DentistDirectory:
    """Read-only view of the dentists collection."""

    def __init__(self, db: Database):
        self.coll = db[DENTISTS]

    def find_by_name(self, name: Optional[str]) -> Optional[dict]:
        # Exact match only; a missing name would otherwise match unnamed documents
        if not name:
            return None
        return self.coll.find_one({"name": name})


class PatientRepository:
    def __init__(self, db: Database):
        self.coll = db[PATIENTS]

    def list_all(self) -> list:
        return list(self.coll.find({}))

    def create(self, document: dict):
        result = self.coll.insert_one(document)
        logger.info("Created patient %s", result.inserted_id)
        return result

    def update(self, patient_id: ObjectId, document: dict):
        """Replace every patient field. An unknown id matches nothing and is not an error."""
        result = self.coll.update_one({"_id": patient_id}, {"$set": document})
        logger.info("Updated patient %s (matched=%d)", patient_id, result.matched_count)
        return result

    def delete(self, patient_id: ObjectId):
        result = self.coll.delete_one({"_id": patient_id})
        logger.info("Deleted patient %s (deleted=%d)", patient_id, result.deleted_count)
        return result


class AccountRepository:
    def __init__(self, db: Database):
        self.coll = db[USERS]

    def find_by_email(self, email: str) -> Optional[dict]:
        return self.coll.find_one({"email": email})

    def create(self, email: str, password_hash: str):
        if self.find_by_email(email) is not None:
            raise DuplicateAccountError(email)
        try:
            result = self.coll.insert_one({"email": email, "password": password_hash})
        except DuplicateKeyError as e:
            # Lost a race with a concurrent registration; the unique index caught it
            raise DuplicateAccountError(email) from e
        logger.info("Created user account %s", result.inserted_id)
        return result
