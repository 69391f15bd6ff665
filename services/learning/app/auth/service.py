"""
Account service: registration, sign-in, password management, blocking.

Rules:
  - Zero FastAPI imports. Raises domain exceptions from app.exceptions.
  - Token issuance goes through TokenService, code handling through OTPWorkflow.
"""
from __future__ import annotations

import logging
import uuid
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.constants import SELF_REGISTER_ROLES
from app.auth.otp import OTPWorkflow, normalize_email
from app.auth.security import hash_secret, verify_secret
from app.auth.tokens import TokenPair, TokenService
from app.clock import Clock, as_utc
from app.config import Settings
from app.exceptions import (
    AccountAlreadyExists,
    AccountBlocked,
    AccountNotFound,
    InstructorNotApproved,
    InsufficientRole,
    InvalidCredentials,
    PasswordMismatch,
    PasswordNotSet,
    ResetNotAuthorized,
)
from app.models import Account, InstructorStatus, OTPPurpose
from shared.constants import Role

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(
        self,
        db: AsyncSession,
        otp: OTPWorkflow,
        tokens: TokenService,
        clock: Clock,
        settings: Settings,
    ) -> None:
        self._db = db
        self._otp = otp
        self._tokens = tokens
        self._clock = clock
        self._settings = settings

    # ── Lookups ───────────────────────────────────────────────────────────────

    async def get_by_email(self, email: str) -> Account | None:
        return await self._db.scalar(select(Account).where(Account.email == email.strip().lower()))

    async def get(self, account_id: uuid.UUID) -> Account:
        account = await self._db.get(Account, account_id)
        if account is None:
            raise AccountNotFound()
        return account

    # ── Registration ──────────────────────────────────────────────────────────

    async def register(
        self,
        email: str,
        code: str,
        password: str,
        full_name: str,
        role: Role = Role.LEARNER,
    ) -> tuple[Account, TokenPair]:
        """Consume a registration code and create the account it proves."""
        if role not in SELF_REGISTER_ROLES:
            raise InsufficientRole("This role cannot be self-registered")
        email = normalize_email(email)
        await self._otp.verify_code(email, code, OTPPurpose.REGISTRATION)

        account = Account(
            email=email,
            full_name=full_name,
            password_hash=hash_secret(password),
            role=role,
            # Owning the mailbox is what "verified" means here
            is_verified=True,
            account_status=InstructorStatus.PENDING if role is Role.INSTRUCTOR else None,
        )
        self._db.add(account)
        try:
            await self._db.flush()
        except IntegrityError:
            await self._db.rollback()
            raise AccountAlreadyExists() from None

        logger.info("Registered %s account %s", role.value, account.id)
        return account, await self._tokens.issue_pair(account)

    async def federated_login(self, email: str, full_name: str) -> tuple[Account, TokenPair, bool]:
        """Find or create a password-less learner for an external identity.

        Returns (account, tokens, created).
        """
        email = normalize_email(email)
        account = await self.get_by_email(email)
        created = False
        if account is None:
            account = Account(email=email, full_name=full_name, role=Role.LEARNER, is_verified=True)
            self._db.add(account)
            await self._db.flush()
            created = True
        self._ensure_can_sign_in(account)
        return account, await self._tokens.issue_pair(account), created

    # ── Sign in / out ─────────────────────────────────────────────────────────

    async def login(
        self, email: str, password: str, role: Role = Role.LEARNER
    ) -> tuple[Account, TokenPair]:
        account = await self.get_by_email(email)
        # Same error for unknown email, wrong password and wrong portal
        if account is None or account.role is not role:
            raise InvalidCredentials()
        if not verify_secret(password, account.password_hash):
            raise InvalidCredentials()
        self._ensure_can_sign_in(account)
        return account, await self._tokens.issue_pair(account)

    @staticmethod
    def _ensure_can_sign_in(account: Account) -> None:
        if account.is_blocked:
            raise AccountBlocked()
        match account.role:
            case Role.INSTRUCTOR:
                if account.account_status is InstructorStatus.REJECTED:
                    raise InstructorNotApproved("Instructor application was rejected")
                if account.account_status is InstructorStatus.BLOCKED:
                    raise AccountBlocked()
            case Role.LEARNER | Role.ADMIN:
                pass

    async def logout(self, account_id: uuid.UUID) -> None:
        await self._tokens.revoke(await self.get(account_id))

    # ── Passwords ─────────────────────────────────────────────────────────────

    async def reset_password(self, email: str, new_password: str, confirm_password: str) -> None:
        """Set a new password using the grant left by a verified reset code."""
        if new_password != confirm_password:
            raise PasswordMismatch()
        account = await self.get_by_email(email)
        if account is None:
            raise AccountNotFound()
        granted_at = account.reset_authorized_at
        if granted_at is None:
            raise ResetNotAuthorized()
        window = timedelta(seconds=self._settings.reset_grant_expire_seconds)
        if self._clock.now() >= as_utc(granted_at) + window:
            raise ResetNotAuthorized("Reset authorization expired. Request a new code.")

        account.password_hash = hash_secret(new_password)
        account.reset_authorized_at = None
        await self._tokens.revoke(account)

    async def change_password(
        self, account_id: uuid.UUID, current_password: str, new_password: str
    ) -> None:
        account = await self.get(account_id)
        if account.password_hash is None:
            raise PasswordNotSet()
        if not verify_secret(current_password, account.password_hash):
            raise InvalidCredentials("Current password is incorrect")
        account.password_hash = hash_secret(new_password)
        await self._tokens.revoke(account)

    # ── Admin ─────────────────────────────────────────────────────────────────

    async def set_blocked(self, account_id: uuid.UUID, blocked: bool) -> Account:
        """Block or unblock a learner. Instructors go through InstructorLifecycle."""
        account = await self.get(account_id)
        if account.role is not Role.LEARNER:
            raise InsufficientRole("Only learner accounts can be blocked here")
        account.is_blocked = blocked
        if blocked:
            account.refresh_token = None
        await self._db.flush()
        logger.info("Learner %s blocked=%s", account.id, blocked)
        return account
