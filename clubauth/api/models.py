"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator

# bcrypt rejects passwords longer than 72 bytes
_PASSWORD_MAX_BYTES = 72


def _check_password_bytes(value: str) -> str:
    if len(value.encode()) > _PASSWORD_MAX_BYTES:
        raise ValueError(f"must be at most {_PASSWORD_MAX_BYTES} bytes when UTF-8 encoded")
    return value


class SignupRequest(BaseModel):
    """Request model for club signup."""

    name: str = Field(..., description="Club name, unique across clubs")
    description: str = Field(..., description="Club description")
    email: EmailStr
    password: str = Field(
        ...,
        min_length=6,
        max_length=_PASSWORD_MAX_BYTES,
        description="Password (min 6 characters, max 72 bytes)",
    )

    @field_validator("name", "description")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class SignupResponse(BaseModel):
    """Response model for successful signup."""

    message: str
    email: str
    expires_in_seconds: int


class VerifyOtpRequest(BaseModel):
    """Request model for email verification."""

    email: EmailStr
    otp: str = Field(..., pattern=r"^[0-9]{6}$", description="6-digit one-time code")


class EmailRequest(BaseModel):
    """Request model for endpoints that only take an email (resend, forgot password)."""

    email: EmailStr


class LoginRequest(BaseModel):
    """Request model for login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=_PASSWORD_MAX_BYTES)


class ResetPasswordRequest(BaseModel):
    """Request model for password reset."""

    email: EmailStr
    otp: str = Field(..., pattern=r"^[0-9]{6}$", description="6-digit one-time code")
    new_password: str = Field(
        ...,
        alias="newPassword",
        min_length=6,
        max_length=_PASSWORD_MAX_BYTES,
        description="New password (min 6 characters, max 72 bytes)",
    )

    @field_validator("new_password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class AccountView(BaseModel):
    """Public view of a club account."""

    id: str
    name: str
    email: str
    description: str


class AuthResponse(BaseModel):
    """Response model for verification and login."""

    message: str
    token: str
    account: AccountView


class MessageResponse(BaseModel):
    """Response model carrying only a message."""

    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str


class FieldError(BaseModel):
    """One field-level validation failure."""

    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    """Bulk validation error response model."""

    detail: str
    errors: list[FieldError]
