"""
API dependencies: database handle, repositories and bearer-token verification.

Protected routes depend on require_token, which expects:
    Authorization: Bearer <token>
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pymongo.database import Database

from repositories import AccountRepository, DentistDirectory, PatientRepository
from security import CredentialService, TokenError

logger = logging.getLogger(__name__)

# auto_error=False so a missing header gets our own message and status
bearer_scheme = HTTPBearer(auto_error=False)


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_credentials(request: Request) -> CredentialService:
    return request.app.state.credentials


def get_patients(db: Database = Depends(get_db)) -> PatientRepository:
    return PatientRepository(db)


def get_dentists(db: Database = Depends(get_db)) -> DentistDirectory:
    return DentistDirectory(db)


def get_accounts(db: Database = Depends(get_db)) -> AccountRepository:
    return AccountRepository(db)


def require_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    service: CredentialService = Depends(get_credentials),
) -> dict:
    """Return the verified token payload or reject the request before the handler runs."""
    if credentials is None:
        raise HTTPException(status_code=400, detail="Login required to access this route")
    try:
        return service.verify_token(credentials.credentials)
    except TokenError as exc:
        logger.warning("Rejected token: %s", exc)
        raise HTTPException(status_code=400, detail="Invalid or expired token") from exc
