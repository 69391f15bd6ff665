"""Learning schema: accounts, one-time codes, course hierarchy, enrollment, progress

Revision ID: 001
Revises:
Create Date: 2026-10-19

Tables created:
  - accounts          Learners, instructors (approval status) and admins
  - one_time_codes    One live OTP per email (registration / password reset)
  - courses           Owned by an instructor account
  - course_modules    Ordered per course, UNIQUE (course_id, sort_order)
  - lectures          Ordered per module, UNIQUE (module_id, sort_order)
  - enrollments       UNIQUE (user_id, course_id)
  - lecture_progress  UNIQUE (user_id, module_id, lecture_id)

PostgreSQL-native ENUM types created:
  - account_role       learner / instructor / admin
  - instructor_status  pending / approved / rejected / blocked
  - otp_purpose        registration / password_reset
  - enrollment_status  pending / completed / failed

Downgrade: drops all tables and ENUM types in reverse dependency order.
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_ENUMS = {
    "account_role": ("learner", "instructor", "admin"),
    "instructor_status": ("pending", "approved", "rejected", "blocked"),
    "otp_purpose": ("registration", "password_reset"),
    "enrollment_status": ("pending", "completed", "failed"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*_ENUMS[name], name=name, create_type=False)


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.TIMESTAMP(timezone=True),
        nullable=nullable,
        server_default=None if nullable else sa.text("now()"),
    )


# ─────────────────────────────────────────────────────────────────────────────
#  UPGRADE
# ─────────────────────────────────────────────────────────────────────────────

def upgrade() -> None:
    # ── 1. ENUM types ─────────────────────────────────────────────────────────
    bind = op.get_bind()
    for name, values in _ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    # ── 2. accounts ───────────────────────────────────────────────────────────
    op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(), nullable=False, server_default=sa.text("gen_random_uuid()")),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(150), nullable=False, server_default=""),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("role", _enum("account_role"), nullable=False),
        sa.Column("is_blocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("account_status", _enum("instructor_status"), nullable=True),
        sa.Column("refresh_token", sa.Text(), nullable=True),
        _timestamp("reset_authorized_at", nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id", name="pk_accounts"),
        sa.UniqueConstraint("email", name="uq_accounts_email"),
    )
    op.create_index("ix_accounts_role_status", "accounts", ["role", "account_status"])

    # ── 3. one_time_codes ─────────────────────────────────────────────────────
    op.create_table(
        "one_time_codes",
        sa.Column("id", sa.Uuid(), nullable=False, server_default=sa.text("gen_random_uuid()")),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("purpose", _enum("otp_purpose"), nullable=False),
        sa.Column("code_hash", sa.String(255), nullable=False),
        _timestamp("created_at"),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_one_time_codes"),
        sa.UniqueConstraint("email", name="uq_one_time_codes_email"),
    )

    # ── 4. courses ────────────────────────────────────────────────────────────
    op.create_table(
        "courses",
        sa.Column(
            "course_id", sa.Uuid(), nullable=False, server_default=sa.text("gen_random_uuid()")
        ),
        sa.Column("instructor_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="INR"),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("course_id", name="pk_courses"),
        sa.ForeignKeyConstraint(
            ["instructor_id"], ["accounts.id"], name="fk_courses_instructor", ondelete="CASCADE"
        ),
    )
    op.create_index("ix_courses_instructor_id", "courses", ["instructor_id"])
    op.create_index("ix_courses_is_published", "courses", ["is_published"])

    # ── 5. course_modules ─────────────────────────────────────────────────────
    op.create_table(
        "course_modules",
        sa.Column(
            "module_id", sa.Uuid(), nullable=False, server_default=sa.text("gen_random_uuid()")
        ),
        sa.Column("course_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("module_id", name="pk_course_modules"),
        sa.ForeignKeyConstraint(
            ["course_id"], ["courses.course_id"], name="fk_course_modules_course",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("course_id", "sort_order", name="uq_course_modules_course_order"),
    )

    # ── 6. lectures ───────────────────────────────────────────────────────────
    op.create_table(
        "lectures",
        sa.Column(
            "lecture_id", sa.Uuid(), nullable=False, server_default=sa.text("gen_random_uuid()")
        ),
        sa.Column("module_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("video_url", sa.String(1000), nullable=False),
        sa.Column("duration_secs", sa.Integer(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("lecture_id", name="pk_lectures"),
        sa.ForeignKeyConstraint(
            ["module_id"], ["course_modules.module_id"], name="fk_lectures_module",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("module_id", "sort_order", name="uq_lectures_module_order"),
    )

    # ── 7. enrollments ────────────────────────────────────────────────────────
    op.create_table(
        "enrollments",
        sa.Column(
            "enrollment_id", sa.Uuid(), nullable=False,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("course_id", sa.Uuid(), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="INR"),
        sa.Column(
            "status", _enum("enrollment_status"), nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column("order_id", sa.String(64), nullable=True),
        sa.Column("payment_id", sa.String(64), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("enrollment_id", name="pk_enrollments"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["accounts.id"], name="fk_enrollments_user", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["course_id"], ["courses.course_id"], name="fk_enrollments_course",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("user_id", "course_id", name="uq_enrollments_user_course"),
    )
    op.create_index("ix_enrollments_course_id", "enrollments", ["course_id"])

    # ── 8. lecture_progress ───────────────────────────────────────────────────
    op.create_table(
        "lecture_progress",
        sa.Column(
            "progress_id", sa.Uuid(), nullable=False, server_default=sa.text("gen_random_uuid()")
        ),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("course_id", sa.Uuid(), nullable=False),
        sa.Column("module_id", sa.Uuid(), nullable=False),
        sa.Column("lecture_id", sa.Uuid(), nullable=False),
        sa.Column("completed_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("progress_id", name="pk_lecture_progress"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["accounts.id"], name="fk_lecture_progress_user", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["course_id"], ["courses.course_id"], name="fk_lecture_progress_course",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["module_id"], ["course_modules.module_id"], name="fk_lecture_progress_module",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["lecture_id"], ["lectures.lecture_id"], name="fk_lecture_progress_lecture",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint(
            "user_id", "module_id", "lecture_id", name="uq_lecture_progress_user_lecture"
        ),
    )
    op.create_index(
        "ix_lecture_progress_user_course", "lecture_progress", ["user_id", "course_id"]
    )


# ─────────────────────────────────────────────────────────────────────────────
#  DOWNGRADE
# ─────────────────────────────────────────────────────────────────────────────

def downgrade() -> None:
    op.drop_index("ix_lecture_progress_user_course", table_name="lecture_progress")
    op.drop_table("lecture_progress")
    op.drop_index("ix_enrollments_course_id", table_name="enrollments")
    op.drop_table("enrollments")
    op.drop_table("lectures")
    op.drop_table("course_modules")
    op.drop_index("ix_courses_is_published", table_name="courses")
    op.drop_index("ix_courses_instructor_id", table_name="courses")
    op.drop_table("courses")
    op.drop_table("one_time_codes")
    op.drop_index("ix_accounts_role_status", table_name="accounts")
    op.drop_table("accounts")

    bind = op.get_bind()
    for name in reversed(list(_ENUMS)):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
