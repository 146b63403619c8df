from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from database import PATIENTS
from deps import get_patients
from main import app

JANE = {
    "name": "Jane Doe",
    "dob": "1990-01-01",
    "gender": "F",
    "address": {
        "street_name": "Main St",
        "block_number": "12",
        "unit_number": "05",
        "postal_code": "123456",
    },
    "appointment_date_time": "2024-05-01T10:00:00",
    "dentist_id": "Dr. Smith",
}


def _create(client, body=JANE):
    r = client.post("/patient", json=body)
    assert r.status_code == 200, r.text
    return r.json()["result"]["inserted_id"]


def test_list_patients_empty(client):
    r = client.get("/patients")
    assert r.status_code == 200
    assert r.json() == {"patients": []}


def test_create_patient_is_listed_with_dentist_reference(client, dentist):
    r = client.post("/patient", json=JANE)
    assert r.status_code == 200
    result = r.json()["result"]
    assert result["acknowledged"] is True
    assert ObjectId.is_valid(result["inserted_id"])

    patients = client.get("/patients").json()["patients"]
    assert len(patients) == 1
    p = patients[0]
    assert p["_id"] == result["inserted_id"]
    assert p["name"] == "Jane Doe"
    assert p["dob"] == "1990-01-01"
    assert p["gender"] == "F"
    assert p["address"] == JANE["address"]
    assert p["appointment_date_time"] == "2024-05-01T10:00:00"
    assert p["dentist_id"] == str(dentist["_id"])


def test_dentist_reference_is_stored_as_object_id(client, db, dentist):
    inserted_id = _create(client)
    doc = db[PATIENTS].find_one({"_id": ObjectId(inserted_id)})
    assert doc["dentist_id"] == dentist["_id"]


def test_create_with_unknown_dentist_is_rejected(client, db, dentist):
    r = client.post("/patient", json={**JANE, "dentist_id": "Dr. Unknown"})
    assert r.status_code == 400
    assert r.json() == {"error": "A valid dentist name must be provided"}
    assert db[PATIENTS].count_documents({}) == 0


def test_dentist_lookup_is_exact_match(client, db, dentist):
    r = client.post("/patient", json={**JANE, "dentist_id": "dr. smith"})
    assert r.status_code == 400
    assert db[PATIENTS].count_documents({}) == 0


def test_create_without_dentist_is_rejected(client, db):
    db["dentists"].insert_one({"specialty": "ortho"})  # unnamed dentist must not match
    body = {k: v for k, v in JANE.items() if k != "dentist_id"}
    r = client.post("/patient", json=body)
    assert r.status_code == 400
    assert db[PATIENTS].count_documents({}) == 0


def test_missing_fields_are_stored_as_null(client, db, dentist):
    inserted_id = _create(client, {"name": "Sam", "dentist_id": "Dr. Smith"})
    doc = db[PATIENTS].find_one({"_id": ObjectId(inserted_id)})
    assert doc["dob"] is None
    assert doc["gender"] is None
    assert doc["appointment_date_time"] is None
    assert doc["address"] == {
        "street_name": None,
        "block_number": None,
        "unit_number": None,
        "postal_code": None,
    }


def test_update_replaces_all_fields(client, db, dentist):
    inserted_id = _create(client)
    db["dentists"].insert_one({"name": "Dr. Lee"})
    lee = db["dentists"].find_one({"name": "Dr. Lee"})

    r = client.put(f"/patient/{inserted_id}", json={"name": "Jane Roe", "dentist_id": "Dr. Lee"})
    assert r.status_code == 200
    assert r.json()["result"]["matched_count"] == 1
    assert r.json()["result"]["modified_count"] == 1

    doc = db[PATIENTS].find_one({"_id": ObjectId(inserted_id)})
    assert doc["name"] == "Jane Roe"
    assert doc["dob"] is None
    assert doc["address"]["street_name"] is None
    assert doc["dentist_id"] == lee["_id"]


def test_update_with_unknown_dentist_leaves_patient_unchanged(client, db, dentist):
    inserted_id = _create(client)
    before = db[PATIENTS].find_one({"_id": ObjectId(inserted_id)})

    r = client.put(f"/patient/{inserted_id}", json={**JANE, "name": "Changed", "dentist_id": "Dr. Unknown"})
    assert r.status_code == 400
    assert r.json() == {"error": "A valid dentist name must be provided"}
    assert db[PATIENTS].find_one({"_id": ObjectId(inserted_id)}) == before


def test_update_unknown_id_is_a_no_op(client, db, dentist):
    r = client.put(f"/patient/{ObjectId()}", json=JANE)
    assert r.status_code == 200
    assert r.json()["result"]["matched_count"] == 0
    assert db[PATIENTS].count_documents({}) == 0


def test_delete_twice(client, db, dentist):
    inserted_id = _create(client)

    first = client.delete(f"/patient/{inserted_id}")
    assert first.status_code == 200
    assert first.json() == {"message": "Patient deleted.", "deleted_count": 1}

    second = client.delete(f"/patient/{inserted_id}")
    assert second.status_code == 200
    assert second.json() == {"message": "Patient deleted.", "deleted_count": 0}
    assert db[PATIENTS].count_documents({}) == 0


def test_malformed_patient_id(client, dentist):
    assert client.delete("/patient/not-an-id").status_code == 400
    r = client.put("/patient/not-an-id", json=JANE)
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid patient id"}


def test_invalid_body_uses_error_shape(client, dentist):
    r = client.post("/patient", json={**JANE, "address": "Main St"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid request body"


def test_store_failure_returns_500(client):
    class BrokenPatients:
        def list_all(self):
            raise ServerSelectionTimeoutError("no servers available")

    app.dependency_overrides[get_patients] = lambda: BrokenPatients()
    r = client.get("/patients")
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}
