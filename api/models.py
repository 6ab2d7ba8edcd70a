"""
API request and response models for the Library API REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
books/models.py, which own the internal domain representation. Route handlers
map between the two.

Separation of concerns: auth/ and books/ models = domain truth; api/ models =
API contract. Password digests and salts have no field in any response model.
"""

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

# Account identifiers are trimmed on the way in; passwords are hashed exactly as sent.
Identifier = Annotated[str, StringConstraints(strip_whitespace=True, max_length=255)]

# ---------------------------------------------------------------------------
# Errors / health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET / and GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    message: str = "Library API is running"
    version: str


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register.

    Fields default to "" rather than being required so a missing field reaches
    the service and comes back as the same 400 validation_error as a blank one.
    """

    username: Identifier = ""
    email: Identifier = ""
    password: str = Field(default="", max_length=255)


class RegisterResponse(BaseModel):
    """Serialized with the "userId" key, the same name the token claim uses."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    message: str = "User registered successfully"
    user_id: str = Field(alias="userId")


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    username: Identifier = ""
    password: str = Field(default="", max_length=255)


class UserInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    email: str
    role: str
    created_at: Optional[str] = None


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str = "Login successful"
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserInfo


class ProfileResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: UserInfo


# ---------------------------------------------------------------------------
# Books
# ---------------------------------------------------------------------------


class BookCreate(BaseModel):
    """Request body for POST /api/v1/books and PUT /api/v1/books/{id}.

    PUT is a full replacement: optional fields left out are cleared.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=255)
    author: str = Field(min_length=1, max_length=255)
    genre: Optional[str] = Field(default=None, max_length=100)
    publication_year: Optional[int] = Field(default=None, ge=0, le=9999)
    description: Optional[str] = Field(default=None, max_length=5000)
    status: Optional[str] = Field(default=None, max_length=30)


class BookResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    author: str
    genre: Optional[str] = None
    publication_year: Optional[int] = None
    description: Optional[str] = None
    status: Optional[str] = None
    created_at: str


class BookCreatedResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str = "Book created successfully"
    id: str


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class Pagination(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int
    page: int
    limit: int
    pages: int


class BookListResponse(BaseModel):
    """Response for GET /api/v1/books and GET /api/v1/books/search."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: Optional[str] = None
    data: list[BookResponse]
    pagination: Pagination
