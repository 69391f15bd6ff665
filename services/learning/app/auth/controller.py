"""
Auth controller (request orchestration layer).

Receives validated input from the router, calls the account, OTP and token
components, and composes the response model. No business logic here.
"""
from __future__ import annotations

import uuid

from app.auth.otp import OTPWorkflow
from app.auth.schemas import (
    AccountResponse,
    AuthResponse,
    ChangePasswordRequest,
    EmailRequest,
    FederatedLoginRequest,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    VerifyCodeRequest,
)
from app.auth.service import AccountService
from app.auth.tokens import TokenPair, TokenService
from app.models import Account, OTPPurpose


def _auth_response(account: Account, pair: TokenPair) -> AuthResponse:
    return AuthResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        account=AccountResponse.model_validate(account),
    )


# ── Registration ──────────────────────────────────────────────────────────────


async def request_registration_code(otp: OTPWorkflow, body: EmailRequest) -> MessageResponse:
    await otp.request_code(body.email, OTPPurpose.REGISTRATION)
    return MessageResponse(message="Verification code sent")


async def resend_registration_code(otp: OTPWorkflow, body: EmailRequest) -> MessageResponse:
    await otp.resend(body.email, OTPPurpose.REGISTRATION)
    return MessageResponse(message="Verification code resent")


async def register(accounts: AccountService, body: RegisterRequest) -> AuthResponse:
    account, pair = await accounts.register(
        body.email, body.code, body.password, body.full_name, body.role
    )
    return _auth_response(account, pair)


# ── Sign in ───────────────────────────────────────────────────────────────────


async def login(accounts: AccountService, body: LoginRequest) -> AuthResponse:
    account, pair = await accounts.login(body.email, body.password, body.role)
    return _auth_response(account, pair)


async def federated_login(accounts: AccountService, body: FederatedLoginRequest) -> AuthResponse:
    account, pair, _created = await accounts.federated_login(body.email, body.full_name)
    return _auth_response(account, pair)


async def refresh(tokens: TokenService, body: RefreshRequest) -> TokenResponse:
    pair = await tokens.rotate(body.refresh_token)
    return TokenResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


async def logout(accounts: AccountService, account_id: uuid.UUID) -> MessageResponse:
    await accounts.logout(account_id)
    return MessageResponse(message="Signed out")


async def me(accounts: AccountService, account_id: uuid.UUID) -> AccountResponse:
    return AccountResponse.model_validate(await accounts.get(account_id))


# ── Passwords ─────────────────────────────────────────────────────────────────


async def forgot_password(otp: OTPWorkflow, body: EmailRequest) -> MessageResponse:
    await otp.request_code(body.email, OTPPurpose.PASSWORD_RESET)
    return MessageResponse(message="Reset code sent")


async def resend_reset_code(otp: OTPWorkflow, body: EmailRequest) -> MessageResponse:
    await otp.resend(body.email, OTPPurpose.PASSWORD_RESET)
    return MessageResponse(message="Reset code resent")


async def verify_reset_code(otp: OTPWorkflow, body: VerifyCodeRequest) -> MessageResponse:
    await otp.verify_code(body.email, body.code, OTPPurpose.PASSWORD_RESET)
    return MessageResponse(message="Code verified. You can now set a new password.")


async def reset_password(accounts: AccountService, body: ResetPasswordRequest) -> MessageResponse:
    await accounts.reset_password(body.email, body.new_password, body.confirm_password)
    return MessageResponse(message="Password updated. Sign in again.")


async def change_password(
    accounts: AccountService, account_id: uuid.UUID, body: ChangePasswordRequest
) -> MessageResponse:
    await accounts.change_password(account_id, body.current_password, body.new_password)
    return MessageResponse(message="Password changed. Sign in again.")
