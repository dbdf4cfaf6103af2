"""
Authentication Provider

Password hashing (bcrypt) and bearer token issuance (python-jose, HS256).

The rest of the system only ever sees a verified CurrentUser. Nothing
outside this module looks inside a password hash or a token.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from budget_tracker.config import AuthSettings, get_settings


class InvalidTokenError(Exception):
    """Token is missing, malformed, expired or signed with another key."""
    pass


class TokenPayload(BaseModel):
    """Claims carried by a bearer token."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: UUID = Field(..., alias="userId")
    email: str
    exp: Optional[datetime] = None


class CurrentUser(BaseModel):
    """Verified caller identity resolved from a token."""

    id: UUID
    email: str


class AuthProvider:
    """
    Hashes passwords and issues/verifies tokens.

    bcrypt only looks at the first 72 bytes of a password, so longer
    passwords are truncated consistently on hash and verify.
    """

    MAX_PASSWORD_BYTES = 72

    def __init__(self, settings: Optional[AuthSettings] = None):
        self._settings = settings or get_settings().auth

    # -------------------------------------------------------------------------
    # Passwords
    # -------------------------------------------------------------------------

    def _password_bytes(self, password: str) -> bytes:
        return password.encode("utf-8")[:self.MAX_PASSWORD_BYTES]

    def hash_password(self, password: str) -> str:
        hashed = bcrypt.hashpw(self._password_bytes(password), bcrypt.gensalt())
        return hashed.decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Check a password against a stored hash. Malformed hashes never match."""
        try:
            return bcrypt.checkpw(self._password_bytes(password), password_hash.encode("utf-8"))
        except ValueError:
            return False

    # -------------------------------------------------------------------------
    # Tokens
    # -------------------------------------------------------------------------

    def issue_token(
        self,
        user_id: UUID,
        email: str,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """Sign a token carrying {userId, email, exp}."""
        expires_delta = expires_delta or timedelta(minutes=self._settings.expires_minutes)
        claims = {
            "userId": str(user_id),
            "email": email,
            "exp": datetime.now(timezone.utc) + expires_delta,
        }
        return jwt.encode(claims, self._settings.secret, algorithm=self._settings.algorithm)

    def verify_token(self, token: str) -> TokenPayload:
        """
        Decode and check a token.

        Raises:
            InvalidTokenError: If the token can't be trusted
        """
        if not token:
            raise InvalidTokenError("Missing token")
        try:
            claims = jwt.decode(
                token,
                self._settings.secret,
                algorithms=[self._settings.algorithm],
            )
        except ExpiredSignatureError as e:
            raise InvalidTokenError("Token expired") from e
        except JWTError as e:
            raise InvalidTokenError("Invalid token") from e

        try:
            return TokenPayload.model_validate(claims)
        except PydanticValidationError as e:
            raise InvalidTokenError("Invalid token payload") from e
