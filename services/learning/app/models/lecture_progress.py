import uuid
from datetime import datetime

from sqlalchemy import TIMESTAMP, ForeignKey, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base


class LectureProgress(Base):
    """A row means the lecture is completed; re-completion refreshes ``completed_at``."""

    __tablename__ = "lecture_progress"

    progress_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    course_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("courses.course_id", ondelete="CASCADE"), nullable=False
    )
    module_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("course_modules.module_id", ondelete="CASCADE"), nullable=False
    )
    lecture_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("lectures.lecture_id", ondelete="CASCADE"), nullable=False
    )
    completed_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "user_id", "module_id", "lecture_id", name="uq_lecture_progress_user_lecture"
        ),
        Index("ix_lecture_progress_user_course", "user_id", "course_id"),
    )
