import uuid
from datetime import datetime, timezone

from sqlalchemy import TIMESTAMP, Boolean, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from shared.constants import Role
from shared.database.postgres import Base

from .enums import InstructorStatus, instructor_status_enum, role_enum


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(Base):
    """Learner, instructor or admin identity.

    Instructor-only columns (``is_verified`` gating, ``account_status``) are
    nullable or defaulted for other roles.
    """

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    full_name: Mapped[str] = mapped_column(String(150), nullable=False, default="")
    # NULL for accounts created through federated sign-in
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[Role] = mapped_column(role_enum, nullable=False, default=Role.LEARNER)
    is_blocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    account_status: Mapped[InstructorStatus | None] = mapped_column(
        instructor_status_enum, nullable=True
    )
    # Single slot: issuing a new refresh token overwrites the previous one
    refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Set by a verified password-reset code, consumed by the next reset
    reset_authorized_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        Index("ix_accounts_role_status", "role", "account_status"),
    )
