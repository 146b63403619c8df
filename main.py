import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from bson import ObjectId
from pymongo.database import Database
from pymongo.errors import PyMongoError

from config import load_config
from database import connect, ensure_indexes, to_str_id, insert_result, update_result
from deps import get_db, get_credentials, get_patients, get_dentists, get_accounts, require_token
from repositories import AccountRepository, DentistDirectory, DuplicateAccountError, PatientRepository
from schemas import PatientIn, UserCreate, LoginRequest
from security import CredentialService, PasswordHasher, TokenService

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(name)s - %(message)s')
logger = logging.getLogger(__name__)


def startup(app: FastAPI):
    """Open the shared MongoDB client and build the credential service."""
    config = load_config()
    # Fails fast when TOKEN_SECRET is missing
    tokens = TokenService(config["TOKEN_SECRET"])
    app.state.credentials = CredentialService(PasswordHasher(), tokens)
    app.state.client, app.state.db = connect(config["DATABASE_URL"], config["DATABASE_NAME"])
    ensure_indexes(app.state.db)


def shutdown(app: FastAPI):
    client = getattr(app.state, "client", None)
    if client is not None:
        client.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    startup(app)
    yield
    shutdown(app)


app = FastAPI(title="Dental Clinic API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Every error leaves the API as {"error": ...}

@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(
        {"error": "Invalid request body", "details": jsonable_encoder(exc.errors())},
        status_code=400,
    )


@app.exception_handler(PyMongoError)
async def store_error(request: Request, exc: PyMongoError):
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


# Utilities

def parse_patient_id(patient_id: str) -> ObjectId:
    if not ObjectId.is_valid(patient_id):
        raise HTTPException(status_code=400, detail="Invalid patient id")
    return ObjectId(patient_id)


def resolve_dentist(dentists: DentistDirectory, name) -> dict:
    dentist = dentists.find_by_name(name)
    if not dentist:
        raise HTTPException(status_code=400, detail="A valid dentist name must be provided")
    return dentist


@app.get("/")
def root():
    return {"service": "Dental Clinic API", "status": "ok"}


@app.get("/test")
def test_database(db: Database = Depends(get_db)):
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    if db is None:
        return response
    response["database_name"] = db.name
    try:
        response["collections"] = db.list_collection_names()
        response["database"] = "✅ Connected & Working"
        response["connection_status"] = "Connected"
    except PyMongoError as e:
        response["database"] = f"⚠️ Connected but Error: {str(e)[:80]}"
    return response

# Patient endpoints

@app.get("/patients")
def list_patients(patients: PatientRepository = Depends(get_patients)):
    return {"patients": to_str_id(patients.list_all())}


@app.post("/patient")
def create_patient(
    payload: PatientIn,
    patients: PatientRepository = Depends(get_patients),
    dentists: DentistDirectory = Depends(get_dentists),
):
    dentist = resolve_dentist(dentists, payload.dentist_id)
    result = patients.create(payload.to_document(dentist))
    return {"result": insert_result(result)}


@app.put("/patient/{patient_id}")
def update_patient(
    patient_id: str,
    payload: PatientIn,
    patients: PatientRepository = Depends(get_patients),
    dentists: DentistDirectory = Depends(get_dentists),
):
    oid = parse_patient_id(patient_id)
    dentist = resolve_dentist(dentists, payload.dentist_id)
    result = patients.update(oid, payload.to_document(dentist))
    return {"result": update_result(result)}


@app.delete("/patient/{patient_id}")
def delete_patient(patient_id: str, patients: PatientRepository = Depends(get_patients)):
    result = patients.delete(parse_patient_id(patient_id))
    return {"message": "Patient deleted.", "deleted_count": result.deleted_count}

# Account endpoints

@app.post("/user", status_code=201)
def create_user(
    payload: UserCreate,
    accounts: AccountRepository = Depends(get_accounts),
    credentials: CredentialService = Depends(get_credentials),
):
    hashed = credentials.hash_password(payload.password)
    try:
        result = accounts.create(payload.email, hashed)
    except DuplicateAccountError:
        raise HTTPException(status_code=409, detail="An account with this email already exists")
    return {"result": insert_result(result), "message": "New user account"}


@app.post("/login")
def login(
    payload: LoginRequest,
    accounts: AccountRepository = Depends(get_accounts),
    credentials: CredentialService = Depends(get_credentials),
):
    user = accounts.find_by_email(payload.email)
    if not user:
        logger.info("Login failed: unknown account")
        raise HTTPException(status_code=404, detail="Invalid login credentials")
    if not credentials.verify_password(payload.password, user.get("password")):
        logger.info("Login failed: wrong password for %s", user["_id"])
        raise HTTPException(status_code=401, detail="Invalid login credentials")
    logger.info("Login succeeded for %s", user["_id"])
    return {"token": credentials.issue_token(user["_id"], user["email"])}

# Protected endpoints

@app.get("/profile")
def profile(payload: dict = Depends(require_token)):
    return {"message": "success in accessing protected route", "payload": payload}


@app.get("/payment")
def payment(payload: dict = Depends(require_token)):
    return {"message": "accessing protected payment route"}


if __name__ == "__main__":
    import uvicorn
    port = load_config()["PORT"]
    uvicorn.run(app, host="0.0.0.0", port=port)
