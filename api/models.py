"""
API request and response models for the booking portal auth endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. Route handlers map between the two.

Request models are lenient on purpose: missing or empty fields reach the
credential service, which applies the registration rules itself and answers
400 with the message of the first rule that failed. Bodies that fail schema
validation (over-long or non-string fields) are also answered with 400.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import IssuedCredential, PublicIdentity, Registration
from auth.roles import to_wire_string

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register."""

    email: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=255)
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)
    phone: Optional[str] = Field(default=None, max_length=30)
    role: Optional[str] = Field(default=None, max_length=50)

    def to_registration(self) -> Registration:
        return Registration(
            email=self.email,
            password=self.password,
            first_name=self.first_name,
            last_name=self.last_name,
            phone=self.phone,
            role=self.role,
        )


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    email: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserInfo(BaseModel):
    """Public identity fields. There is no password or hash field on purpose."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    first_name: str
    last_name: str
    phone: Optional[str]
    role: str

    @classmethod
    def from_public(cls, view: PublicIdentity) -> "UserInfo":
        return cls(
            id=view.id,
            email=view.email,
            first_name=view.first_name,
            last_name=view.last_name,
            phone=view.phone,
            role=to_wire_string(view.role),
        )


class AuthResponse(BaseModel):
    """Response for a successful register (201) or login (200)."""

    model_config = ConfigDict(frozen=True)

    token: str
    user: UserInfo

    @classmethod
    def from_issued(cls, issued: IssuedCredential) -> "AuthResponse":
        return cls(token=issued.token, user=UserInfo.from_public(issued.user))


class MeResponse(BaseModel):
    """Response for GET /api/auth/me."""

    model_config = ConfigDict(frozen=True)

    user: UserInfo
    message: str = "User information retrieved successfully."


class ErrorResponse(BaseModel):
    """Error body returned on 4xx/5xx responses.

    `error` is the human-readable text a client can show as-is; `code` is the
    machine-readable reason.
    """

    model_config = ConfigDict(frozen=True)

    error: str
    code: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
