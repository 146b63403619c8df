import mongomock
import pytest
from fastapi.testclient import TestClient

from database import DENTISTS, ensure_indexes
from deps import get_credentials, get_db
from main import app
from security import CredentialService, PasswordHasher, TokenService

TEST_SECRET = "test-secret-key-with-enough-length-for-hs256"


@pytest.fixture
def db():
    client = mongomock.MongoClient()
    database = client["dental_clinic"]
    ensure_indexes(database)
    yield database
    client.close()


@pytest.fixture
def dentist(db):
    db[DENTISTS].insert_one({"name": "Dr. Smith"})
    return db[DENTISTS].find_one({"name": "Dr. Smith"})


@pytest.fixture
def credentials() -> CredentialService:
    # Lowest bcrypt work factor keeps the suite fast
    return CredentialService(PasswordHasher(rounds=4), TokenService(TEST_SECRET))


@pytest.fixture
def client(db, credentials):
    # Not used as a context manager, so the startup hook never opens a real connection
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_credentials] = lambda: credentials
    yield TestClient(app)
    app.dependency_overrides.clear()
