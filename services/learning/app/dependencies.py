"""
FastAPI dependency providers.

Each domain component is built per request from its collaborators; nothing
is held in module-level state. Tests swap collaborators through
``app.dependency_overrides`` (get_db, get_clock, get_mailer,
get_payment_provider, get_settings).
"""
from __future__ import annotations

from collections.abc import Callable
from typing import assert_never

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.otp import OTPWorkflow
from app.auth.service import AccountService
from app.auth.tokens import TokenService
from app.clock import Clock, SystemClock
from app.config import Settings, get_settings
from app.database import get_db
from app.email import Mailer, build_mailer
from app.exceptions import AccountBlocked, InsufficientRole, NotAuthenticated
from app.instructors.service import InstructorLifecycle
from app.lms.service import ContentHierarchy
from app.models import Account
from app.payments.razorpay import PaymentProvider, RazorpayClient
from app.payments.service import PaymentGateway
from app.progress.service import ProgressionEngine
from shared.constants import Role
from shared.models.user import CurrentUser

http_bearer = HTTPBearer(auto_error=False)


# ── Collaborators ─────────────────────────────────────────────────────────────


def get_clock() -> Clock:
    return SystemClock()


def get_mailer(settings: Settings = Depends(get_settings)) -> Mailer:
    return build_mailer(settings)


def get_payment_provider(settings: Settings = Depends(get_settings)) -> PaymentProvider:
    return RazorpayClient(
        settings.razorpay_key_id,
        settings.razorpay_key_secret,
        base_url=settings.razorpay_base_url,
        timeout=settings.razorpay_timeout_seconds,
    )


# ── Components ────────────────────────────────────────────────────────────────


def get_token_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> TokenService:
    return TokenService(db, settings, clock)


def get_otp_workflow(
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> OTPWorkflow:
    return OTPWorkflow(db, mailer, clock, settings)


def get_account_service(
    db: AsyncSession = Depends(get_db),
    otp: OTPWorkflow = Depends(get_otp_workflow),
    tokens: TokenService = Depends(get_token_service),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(db, otp, tokens, clock, settings)


def get_instructor_lifecycle(db: AsyncSession = Depends(get_db)) -> InstructorLifecycle:
    return InstructorLifecycle(db)


def get_content_hierarchy(
    db: AsyncSession = Depends(get_db),
    lifecycle: InstructorLifecycle = Depends(get_instructor_lifecycle),
) -> ContentHierarchy:
    return ContentHierarchy(db, lifecycle)


def get_payment_gateway(
    db: AsyncSession = Depends(get_db),
    provider: PaymentProvider = Depends(get_payment_provider),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> PaymentGateway:
    return PaymentGateway(db, provider, settings.razorpay_key_secret, clock)


def get_progression_engine(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    hierarchy: ContentHierarchy = Depends(get_content_hierarchy),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    settings: Settings = Depends(get_settings),
) -> ProgressionEngine:
    return ProgressionEngine(
        db,
        clock,
        hierarchy,
        gateway,
        enforce_unlock_on_complete=settings.enforce_unlock_on_complete,
    )


# ── Authentication ────────────────────────────────────────────────────────────


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    tokens: TokenService = Depends(get_token_service),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise NotAuthenticated()
    claims = tokens.verify(credentials.credentials)
    account = await db.get(Account, claims.account_id)
    if account is None:
        raise NotAuthenticated()
    if account.is_blocked:
        raise AccountBlocked()
    return CurrentUser(id=account.id, role=account.role)


def _allows(role: Role, allowed: frozenset[Role]) -> bool:
    match role:
        case Role.ADMIN | Role.INSTRUCTOR | Role.LEARNER:
            return role in allowed
        case _:
            assert_never(role)


def require_role(*roles: Role) -> Callable[..., CurrentUser]:
    """Dependency factory: 403 unless the caller holds one of ``roles``."""
    allowed = frozenset(roles)

    def _guard(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not _allows(current_user.role, allowed):
            raise InsufficientRole()
        return current_user

    return _guard


require_admin = require_role(Role.ADMIN)
require_instructor = require_role(Role.INSTRUCTOR)
require_learner = require_role(Role.LEARNER)
