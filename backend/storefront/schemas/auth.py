"""Authentication-related schemas."""
from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field

from storefront.models.enums import Role

PASSWORD_MIN_LENGTH = 6


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=128)
    role: Role | None = None


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)


class ResetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=128)


class TokenResponse(BaseModel):
    token: str


class MessageResponse(BaseModel):
    message: str
