"""
Auth router.

Only HTTP concerns live here: routes, status codes, rate limits and
dependency injection. Everything else is forwarded to the controller.
"""
from fastapi import APIRouter, Depends, Request, status

from app.auth import controller
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
from app.auth.tokens import TokenService
from app.dependencies import (
    get_account_service,
    get_current_user,
    get_otp_workflow,
    get_token_service,
)
from app.rate_limit import limiter
from shared.models.user import CurrentUser

router = APIRouter(prefix="/auth", tags=["Auth"])


# ── Registration ──────────────────────────────────────────────────────────────


@router.post(
    "/register/request-code",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Send a registration code to an email address",
)
@limiter.limit("5/minute")
async def request_registration_code(
    request: Request,
    body: EmailRequest,
    otp: OTPWorkflow = Depends(get_otp_workflow),
) -> MessageResponse:
    return await controller.request_registration_code(otp, body)


@router.post(
    "/register/resend",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Issue a fresh registration code",
)
@limiter.limit("5/minute")
async def resend_registration_code(
    request: Request,
    body: EmailRequest,
    otp: OTPWorkflow = Depends(get_otp_workflow),
) -> MessageResponse:
    return await controller.resend_registration_code(otp, body)


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Verify the registration code and create the account",
)
@limiter.limit("10/minute")
async def register(
    request: Request,
    body: RegisterRequest,
    accounts: AccountService = Depends(get_account_service),
) -> AuthResponse:
    return await controller.register(accounts, body)


# ── Sign in / tokens ──────────────────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse, summary="Email + password sign in")
@limiter.limit("10/minute")
async def login(
    request: Request,
    body: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
) -> AuthResponse:
    return await controller.login(accounts, body)


@router.post(
    "/federated",
    response_model=AuthResponse,
    summary="Sign in with an identity asserted by an external provider",
)
@limiter.limit("10/minute")
async def federated_login(
    request: Request,
    body: FederatedLoginRequest,
    accounts: AccountService = Depends(get_account_service),
) -> AuthResponse:
    return await controller.federated_login(accounts, body)


@router.post("/refresh", response_model=TokenResponse, summary="Rotate the refresh token")
async def refresh(
    body: RefreshRequest,
    tokens: TokenService = Depends(get_token_service),
) -> TokenResponse:
    return await controller.refresh(tokens, body)


@router.post("/logout", response_model=MessageResponse, summary="Revoke the refresh token")
async def logout(
    current_user: CurrentUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
) -> MessageResponse:
    return await controller.logout(accounts, current_user.id)


@router.get("/me", response_model=AccountResponse, summary="Current account")
async def me(
    current_user: CurrentUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
) -> AccountResponse:
    return await controller.me(accounts, current_user.id)


# ── Passwords ─────────────────────────────────────────────────────────────────


@router.post(
    "/password/forgot",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Send a password reset code",
)
@limiter.limit("5/minute")
async def forgot_password(
    request: Request,
    body: EmailRequest,
    otp: OTPWorkflow = Depends(get_otp_workflow),
) -> MessageResponse:
    return await controller.forgot_password(otp, body)


@router.post(
    "/password/resend",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Issue a fresh password reset code",
)
@limiter.limit("5/minute")
async def resend_reset_code(
    request: Request,
    body: EmailRequest,
    otp: OTPWorkflow = Depends(get_otp_workflow),
) -> MessageResponse:
    return await controller.resend_reset_code(otp, body)


@router.post(
    "/password/verify",
    response_model=MessageResponse,
    summary="Verify a password reset code",
)
@limiter.limit("10/minute")
async def verify_reset_code(
    request: Request,
    body: VerifyCodeRequest,
    otp: OTPWorkflow = Depends(get_otp_workflow),
) -> MessageResponse:
    return await controller.verify_reset_code(otp, body)


@router.post("/password/reset", response_model=MessageResponse, summary="Set a new password")
async def reset_password(
    body: ResetPasswordRequest,
    accounts: AccountService = Depends(get_account_service),
) -> MessageResponse:
    return await controller.reset_password(accounts, body)


@router.post(
    "/password/change",
    response_model=MessageResponse,
    summary="Change password (signed in)",
)
async def change_password(
    body: ChangePasswordRequest,
    current_user: CurrentUser = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
) -> MessageResponse:
    return await controller.change_password(accounts, current_user.id, body)
