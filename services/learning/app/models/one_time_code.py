import uuid
from datetime import datetime

from sqlalchemy import TIMESTAMP, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base

from .enums import OTPPurpose, otp_purpose_enum


class OneTimeCode(Base):
    __tablename__ = "one_time_codes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # At most one live code per email; a new request overwrites the row
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    purpose: Mapped[OTPPurpose] = mapped_column(otp_purpose_enum, nullable=False)
    code_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
