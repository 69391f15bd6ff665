"""
One-time code workflow for registration and password reset.

Per email: NoPendingCode → CodeIssued → Consumed | Expired.

One row per email (unique constraint); issuing a code is an upsert so the
newest request always wins. The code row is committed before the mailer is
called, so a delivery failure leaves a live code that ``resend`` can replace.
"""
from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.constants import EMAIL_PATTERN
from app.auth.security import generate_numeric_code, hash_secret, verify_secret
from app.clock import Clock, as_utc
from app.config import Settings
from app.email import DeliveryError, Mailer
from app.exceptions import (
    AccountAlreadyExists,
    AccountNotFound,
    CodeExpired,
    CodeMismatch,
    CodeNotFound,
    InvalidEmailFormat,
    NotificationDeliveryFailed,
)
from app.models import Account, OneTimeCode, OTPPurpose
from shared.database import upsert_insert

logger = logging.getLogger(__name__)

_SUBJECTS = {
    OTPPurpose.REGISTRATION: "Verify your email",
    OTPPurpose.PASSWORD_RESET: "Your password reset code",
}


def normalize_email(email: str) -> str:
    """Lower-case and validate; raises InvalidEmailFormat."""
    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise InvalidEmailFormat()
    return email


class OTPWorkflow:
    def __init__(
        self, db: AsyncSession, mailer: Mailer, clock: Clock, settings: Settings
    ) -> None:
        self._db = db
        self._mailer = mailer
        self._clock = clock
        self._settings = settings

    async def request_code(self, email: str, purpose: OTPPurpose) -> None:
        email = normalize_email(email)
        exists = await self._account_exists(email)
        if purpose is OTPPurpose.REGISTRATION and exists:
            raise AccountAlreadyExists()
        if purpose is OTPPurpose.PASSWORD_RESET and not exists:
            raise AccountNotFound()
        await self._issue(email, purpose)

    async def resend(self, email: str, purpose: OTPPurpose) -> None:
        """Regenerate without re-checking whether the account exists."""
        await self._issue(normalize_email(email), purpose)

    async def verify_code(self, email: str, code: str, purpose: OTPPurpose) -> None:
        """Consume the pending code. On a reset code, grant one password reset."""
        email = normalize_email(email)
        pending = await self._db.scalar(select(OneTimeCode).where(OneTimeCode.email == email))
        if pending is None or pending.purpose != purpose:
            raise CodeNotFound()
        if not verify_secret(code, pending.code_hash):
            raise CodeMismatch()
        now = self._clock.now()
        if now >= as_utc(pending.expires_at):
            raise CodeExpired()

        # Conditional on the hash read above: a concurrent verify or resend makes this a no-op
        result = await self._db.execute(
            delete(OneTimeCode).where(
                OneTimeCode.id == pending.id, OneTimeCode.code_hash == pending.code_hash
            )
        )
        if result.rowcount != 1:
            raise CodeNotFound()
        if purpose is OTPPurpose.PASSWORD_RESET:
            account = await self._db.scalar(select(Account).where(Account.email == email))
            if account is None:
                raise AccountNotFound()
            account.reset_authorized_at = now
        await self._db.flush()

    # ── internals ─────────────────────────────────────────────────────────────

    async def _account_exists(self, email: str) -> bool:
        found = await self._db.scalar(select(Account.id).where(Account.email == email))
        return found is not None

    async def _issue(self, email: str, purpose: OTPPurpose) -> None:
        code = generate_numeric_code(self._settings.otp_length)
        now = self._clock.now()
        expires_at = now + timedelta(seconds=self._settings.otp_expire_seconds)

        stmt = upsert_insert(self._db, OneTimeCode).values(
            email=email,
            purpose=purpose,
            code_hash=hash_secret(code),
            created_at=now,
            expires_at=expires_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[OneTimeCode.email],
            set_={
                "purpose": stmt.excluded.purpose,
                "code_hash": stmt.excluded.code_hash,
                "created_at": stmt.excluded.created_at,
                "expires_at": stmt.excluded.expires_at,
            },
        )
        await self._db.execute(stmt)
        # Committed before dispatch so a failed send leaves the code live
        await self._db.commit()

        minutes = self._settings.otp_expire_seconds // 60
        body = (
            f"Your verification code is {code}.\n"
            f"It expires in {minutes} minutes. If you did not request it, ignore this email."
        )
        try:
            await self._mailer.send(email, _SUBJECTS[purpose], body)
        except DeliveryError as exc:
            logger.warning("OTP delivery failed for %s (%s): %s", email, purpose.value, exc)
            raise NotificationDeliveryFailed() from exc
