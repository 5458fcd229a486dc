"""Authentication schemas."""

from typing import Optional

from pydantic import BaseModel, field_validator

from app.utils.validators import MIN_PASSWORD_LENGTH


class LoginRequest(BaseModel):
    """Login request schema."""

    username: str
    password: str

    @field_validator("username", "password")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Username and password are required")
        return v


class SessionResponse(BaseModel):
    """The signed-in principal, including the CSRF token the client must echo."""

    username: str
    role: str
    displayName: str
    csrfToken: str


class UserSummary(BaseModel):
    username: str
    displayName: str
    role: str


class PasswordUpdateRequest(BaseModel):
    """
    Password change request.

    Non-admin sessions must include an admin's credentials in the override
    fields to authorize the change.
    """

    newPassword: str
    overrideUsername: Optional[str] = None
    overridePassword: Optional[str] = None

    @field_validator("newPassword")
    @classmethod
    def password_length(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v


class MessageResponse(BaseModel):
    message: str
