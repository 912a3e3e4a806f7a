from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, field_validator

from typing import Optional

# passlib refuses to hash anything longer
MAX_PASSWORD_LENGTH = 4096


class EmailCredentials(BaseModel):
    """Email is checked for shape only and kept exactly as sent."""
    email: str

    @field_validator("email")
    @classmethod
    def email_must_be_valid(cls, v: str) -> str:
        try:
            validate_email(v, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email format: {e}") from e
        return v


class SignupRequest(EmailCredentials):
    password: str = Field(
        ...,
        min_length=8,
        max_length=MAX_PASSWORD_LENGTH,
        description="Password must be between 8 and 4096 characters long",
    )


class LoginRequest(EmailCredentials):
    password: str


class SignupResponse(BaseModel):
    id: str
    email: str


class TokenResponse(BaseModel):
    accessToken: str
    expiresIn: int


class SessionClaim(BaseModel):
    userId: str
    email: str


class HealthResponse(BaseModel):
    status: str


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
