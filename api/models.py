"""
API models and schemas for the FastAPI application.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, validator


class RegisterRequest(BaseModel):
    """Registration body. Presence and format are checked by the Authenticator."""
    username: Optional[str] = Field(None, description="Display name")
    email: Optional[str] = Field(None, description="Email address")
    password: Optional[str] = Field(None, description="Plaintext password")


class LoginRequest(BaseModel):
    """Login body."""
    email: Optional[str] = Field(None, description="Email address")
    password: Optional[str] = Field(None, description="Plaintext password")


class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    message: str = Field(..., description="Human-readable message")


class TokenResponse(BaseModel):
    """Login answer under the token strategy."""
    token: str = Field(..., description="Signed bearer token")


class PublicUser(BaseModel):
    """User fields safe to expose."""
    id: str
    username: str
    email: str


class MeResponse(BaseModel):
    """Who-am-I answer; user is null for anonymous callers."""
    user: Optional[PublicUser] = None


class BookCreate(BaseModel):
    """Book to save in the caller's list."""
    title: str = Field(..., min_length=1, max_length=300, description="Book title")
    authors: List[str] = Field(..., min_length=1, description="Authors, first is primary")
    description: str = Field("", max_length=5000)
    rating: Optional[float] = Field(None, ge=0, le=5)
    page_count: Optional[int] = Field(None, ge=1, alias="pageCount")
    isbn: str = Field("", max_length=20)
    notes: str = Field("", max_length=2000)
    thumbnail: str = ""
    info_link: str = Field("", alias="infoLink")

    model_config = {"populate_by_name": True}

    @validator('title', 'description', 'isbn', 'notes', 'thumbnail', 'info_link')
    def strip_text(cls, v):
        """Trim surrounding whitespace."""
        return v.strip() if isinstance(v, str) else v

    @validator('title')
    def validate_title(cls, v):
        if not v:
            raise ValueError('Title is required')
        return v

    @validator('authors')
    def validate_authors(cls, v):
        """Trim authors and drop duplicates, keeping the first occurrence's order."""
        cleaned = list(dict.fromkeys(a.strip() for a in v if a and a.strip()))
        if not cleaned:
            raise ValueError('At least one author is required')
        return cleaned


class BookResponse(BaseModel):
    """Saved book as returned to the owner."""
    id: str = Field(..., description="Unique book identifier")
    title: str
    authors: List[str]
    description: str = ""
    rating: Optional[float] = None
    page_count: Optional[int] = Field(None, alias="pageCount")
    isbn: str = ""
    notes: str = ""
    thumbnail: str = ""
    info_link: str = Field("", alias="infoLink")
    user: str = Field(..., description="Owner's user id")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    field: Optional[str] = Field(None, description="Offending input field, for validation errors")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
