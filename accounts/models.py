"""
Pydantic models for users, sessions and issued credentials.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USERNAME_MIN_LEN = 2
PASSWORD_MIN_LEN = 6
# bcrypt only looks at the first 72 bytes
PASSWORD_MAX_BYTES = 72


def normalize_email(email: str) -> str:
    """Lowercase and trim an email. Every read and write path goes through here."""
    return email.strip().lower()


class StrategyName(str, Enum):
    """Available session strategies."""
    TOKEN = "token"
    SESSION = "session"


class User(BaseModel):
    """Stored user identity."""
    id: str = Field(..., description="Opaque user identifier")
    username: str = Field(..., description="Display name")
    email: str = Field(..., description="Normalized email, unique")
    password_hash: str = Field(..., description="bcrypt hash of the password")
    created_at: Optional[datetime] = Field(None, description="Registration time")

    def public_view(self) -> dict:
        """Fields safe to return to the client."""
        return {"id": self.id, "username": self.username, "email": self.email}


class SessionRecord(BaseModel):
    """Server-side session record."""
    session_id: str = Field(..., description="Opaque session identifier")
    user_id: str = Field(..., description="Owning user id")
    created_at: datetime = Field(..., description="When the session was created")
    expires_at: datetime = Field(..., description="When the session stops being valid")

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


class IssuedCredential(BaseModel):
    """What login hands back to the HTTP layer."""
    strategy: StrategyName = Field(..., description="Strategy that issued the credential")
    value: str = Field(..., description="Signed token or session identifier")
    user_id: str = Field(..., description="Authenticated user id")
    expires_at: datetime = Field(..., description="Credential expiry")
    max_age: int = Field(..., ge=1, description="Lifetime in seconds, used for cookie max_age")
