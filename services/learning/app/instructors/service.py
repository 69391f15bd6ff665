"""
Instructor approval lifecycle.

    pending ──approve──▶ approved ◀──unblock── blocked
       │                    └────────block──────▶┘
       └──reject──▶ rejected

Authoring requires verified ∧ approved ∧ ¬blocked. ``assert_can_author``
checks in a fixed order so callers get the most specific reason, and it
runs before any write.
"""
from __future__ import annotations

import logging
import uuid
from typing import assert_never

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    InstructorNotApproved,
    InstructorNotFound,
    InstructorNotVerified,
    InsufficientRole,
    InvalidStatusTransition,
)
from app.models import Account, InstructorStatus
from shared.constants import Role

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[str, tuple[frozenset[InstructorStatus], InstructorStatus]] = {
    "approve": (frozenset({InstructorStatus.PENDING}), InstructorStatus.APPROVED),
    "reject": (frozenset({InstructorStatus.PENDING}), InstructorStatus.REJECTED),
    "block": (frozenset({InstructorStatus.APPROVED}), InstructorStatus.BLOCKED),
    "unblock": (frozenset({InstructorStatus.BLOCKED}), InstructorStatus.APPROVED),
}


class InstructorLifecycle:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_instructor(self, instructor_id: uuid.UUID) -> Account:
        account = await self._db.get(Account, instructor_id)
        if account is None or account.role is not Role.INSTRUCTOR:
            raise InstructorNotFound()
        return account

    async def list_instructors(self, status: InstructorStatus | None = None) -> list[Account]:
        stmt = select(Account).where(Account.role == Role.INSTRUCTOR)
        if status is not None:
            stmt = stmt.where(Account.account_status == status)
        result = await self._db.execute(stmt.order_by(Account.created_at))
        return list(result.scalars().all())

    # ── Authoring gate ────────────────────────────────────────────────────────

    async def assert_can_author(self, account_id: uuid.UUID) -> Account:
        account = await self._db.get(Account, account_id)
        if account is None:
            raise InstructorNotFound()
        match account.role:
            case Role.INSTRUCTOR:
                pass
            case Role.LEARNER | Role.ADMIN:
                raise InsufficientRole("Only instructors can author courses")
            case _:
                assert_never(account.role)
        if not account.is_verified:
            raise InstructorNotVerified()
        if account.account_status is not InstructorStatus.APPROVED or account.is_blocked:
            raise InstructorNotApproved()
        return account

    # ── Admin transitions ─────────────────────────────────────────────────────

    async def approve(self, instructor_id: uuid.UUID) -> Account:
        return await self._transition(instructor_id, "approve")

    async def reject(self, instructor_id: uuid.UUID) -> Account:
        return await self._transition(instructor_id, "reject")

    async def block(self, instructor_id: uuid.UUID) -> Account:
        return await self._transition(instructor_id, "block")

    async def unblock(self, instructor_id: uuid.UUID) -> Account:
        return await self._transition(instructor_id, "unblock")

    async def _transition(self, instructor_id: uuid.UUID, action: str) -> Account:
        allowed_from, target = _TRANSITIONS[action]
        account = await self.get_instructor(instructor_id)
        current = account.account_status
        if current not in allowed_from:
            raise InvalidStatusTransition(
                f"Cannot {action} an instructor in status "
                f"{current.value if current else 'none'}"
            )
        account.account_status = target
        account.is_blocked = target is InstructorStatus.BLOCKED
        if account.is_blocked:
            account.refresh_token = None
        await self._db.flush()
        logger.info("Instructor %s %s: %s → %s", account.id, action, current.value, target.value)
        return account
