"""
Auth domain request/response schemas.

Request models are strict (extra="forbid"); response models never expose
password hashes, codes or stored refresh tokens.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models import InstructorStatus
from shared.constants import Role


class _Base(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


# ── One-time codes ────────────────────────────────────────────────────────────


class EmailRequest(_Base):
    """Body for code request / resend endpoints."""

    # Plain str: format is checked by the OTP workflow so the error kind is stable
    email: str = Field(min_length=3, max_length=255)


class VerifyCodeRequest(_Base):
    email: str = Field(min_length=3, max_length=255)
    code: str = Field(min_length=4, max_length=10, pattern=r"^\d+$")


class RegisterRequest(VerifyCodeRequest):
    """Completes registration: proves the mailbox and sets credentials."""

    password: str = Field(min_length=8, max_length=128)
    full_name: str = Field(min_length=2, max_length=150)
    role: Role = Role.LEARNER


# ── Sign in ───────────────────────────────────────────────────────────────────


class LoginRequest(_Base):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)
    role: Role = Role.LEARNER


class FederatedLoginRequest(_Base):
    """Identity asserted by an external provider (already verified upstream)."""

    email: EmailStr
    full_name: str = Field(min_length=1, max_length=150)


class RefreshRequest(_Base):
    refresh_token: str = Field(min_length=1)


# ── Passwords ─────────────────────────────────────────────────────────────────


class ResetPasswordRequest(_Base):
    email: EmailStr
    new_password: str = Field(min_length=8, max_length=128)
    confirm_password: str = Field(min_length=8, max_length=128)


class ChangePasswordRequest(_Base):
    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=8, max_length=128)


# ── Responses ─────────────────────────────────────────────────────────────────


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    full_name: str
    role: Role
    is_blocked: bool
    is_verified: bool
    account_status: InstructorStatus | None
    created_at: datetime


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthResponse(TokenResponse):
    account: AccountResponse


class MessageResponse(BaseModel):
    message: str
