"""
security.py
-----------
Password hashing and session tokens.

Routes only talk to CredentialService; the hasher and token service behind it
can be replaced (e.g. a cheaper bcrypt work factor in tests).
"""

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

logger = logging.getLogger(__name__)

TOKEN_LIFETIME = timedelta(days=3)


class TokenError(Exception):
    """Raised when a session token is malformed, expired or badly signed."""


class PasswordHasher:
    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            # Unusable stored hash, or a password bcrypt refuses
            return False


class TokenService:
    def __init__(self, secret: str, expires_in: timedelta = TOKEN_LIFETIME, algorithm: str = "HS256"):
        if not secret:
            raise RuntimeError("TOKEN_SECRET is not set; refusing to issue unsigned tokens")
        self._secret = secret
        self.expires_in = expires_in
        self.algorithm = algorithm

    def issue(self, user_id, email: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "user_id": str(user_id),
            "email": email,
            "iat": now,
            "exp": now + self.expires_in,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> dict:
        try:
            return jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except jwt.InvalidTokenError as e:
            raise TokenError(str(e)) from e


class CredentialService:
    """Facade over password hashing and token issuance used by the routes."""

    def __init__(self, hasher: PasswordHasher, tokens: TokenService):
        self.hasher = hasher
        self.tokens = tokens

    def hash_password(self, password: str) -> str:
        return self.hasher.hash(password)

    def verify_password(self, password: str, hashed: str) -> bool:
        return self.hasher.verify(password, hashed)

    def issue_token(self, user_id, email: str) -> str:
        return self.tokens.issue(user_id, email)

    def verify_token(self, token: str) -> dict:
        return self.tokens.verify(token)
