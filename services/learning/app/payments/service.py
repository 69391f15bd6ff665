"""
Enrollment & payment gateway.

Checkout flow:
  1. create_order       → provider-side order, nothing stored locally
  2. client pays through the provider widget
  3. complete_checkout  → HMAC signature check, then confirm_enrollment

confirm_enrollment is idempotent on (user, course). The unique constraint
is the only lock: concurrent callbacks race into the same upsert and the
loser observes ``already_enrolled``.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.clock import Clock, now_millis
from app.exceptions import CourseNotFound, InvalidAmount, InvalidPaymentSignature
from app.models import Course, Enrollment, EnrollmentStatus
from app.payments.razorpay import PaymentProvider
from shared.database import upsert_insert

logger = logging.getLogger(__name__)

RECEIPT_MAX_LENGTH = 40


@dataclass(frozen=True)
class PaymentOrder:
    order_id: str
    amount: int
    currency: str
    receipt: str


@dataclass(frozen=True)
class EnrollmentResult:
    enrollment: Enrollment
    already_enrolled: bool


def build_receipt(course_id: uuid.UUID | str, millis: int) -> str:
    """``rcpt_<course id prefix>_<epoch millis>``, capped at the provider's limit."""
    return f"rcpt_{str(course_id)[:20]}_{millis}"[:RECEIPT_MAX_LENGTH]


def payment_signature(secret: str, order_id: str, payment_id: str) -> str:
    return hmac.new(
        secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256
    ).hexdigest()


class PaymentGateway:
    def __init__(
        self,
        db: AsyncSession,
        provider: PaymentProvider,
        key_secret: str,
        clock: Clock,
    ) -> None:
        self._db = db
        self._provider = provider
        self._key_secret = key_secret
        self._clock = clock

    async def _course(self, course_id: uuid.UUID) -> Course:
        course = await self._db.get(Course, course_id)
        if course is None:
            raise CourseNotFound()
        return course

    # ── Orders ────────────────────────────────────────────────────────────────

    async def create_order(self, amount: int, course_id: uuid.UUID) -> PaymentOrder:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidAmount()
        course = await self._course(course_id)
        if amount != course.price:
            raise InvalidAmount()
        receipt = build_receipt(course_id, now_millis(self._clock))
        order = await self._provider.create_order(amount, course.currency, receipt)
        logger.info("Payment order %s created for course %s", order.id, course_id)
        return PaymentOrder(
            order_id=order.id, amount=order.amount, currency=order.currency, receipt=receipt
        )

    def verify_payment(self, order_id: str, payment_id: str, signature: str) -> bool:
        expected = payment_signature(self._key_secret, order_id, payment_id)
        return hmac.compare_digest(expected.encode(), signature.encode())

    # ── Enrollment ────────────────────────────────────────────────────────────

    async def complete_checkout(
        self,
        student_id: uuid.UUID,
        course_id: uuid.UUID,
        amount: int,
        *,
        order_id: str,
        payment_id: str,
        signature: str,
    ) -> EnrollmentResult:
        if not self.verify_payment(order_id, payment_id, signature):
            logger.warning(
                "Rejected payment signature order=%s payment=%s user=%s",
                order_id, payment_id, student_id,
            )
            raise InvalidPaymentSignature()
        course = await self._course(course_id)
        if amount != course.price:
            raise InvalidAmount()
        return await self.confirm_enrollment(
            student_id, course_id, amount, order_id=order_id, payment_id=payment_id
        )

    async def confirm_enrollment(
        self,
        student_id: uuid.UUID,
        course_id: uuid.UUID,
        amount: int,
        *,
        order_id: str | None = None,
        payment_id: str | None = None,
    ) -> EnrollmentResult:
        """Upsert a completed enrollment; an existing completed one is returned as is."""
        if amount < 0:
            raise InvalidAmount()
        course = await self._course(course_id)
        now = self._clock.now()

        stmt = upsert_insert(self._db, Enrollment).values(
            enrollment_id=uuid.uuid4(),
            user_id=student_id,
            course_id=course_id,
            amount=amount,
            currency=course.currency,
            status=EnrollmentStatus.COMPLETED,
            order_id=order_id,
            payment_id=payment_id,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Enrollment.user_id, Enrollment.course_id],
            set_={
                "amount": stmt.excluded.amount,
                "status": stmt.excluded.status,
                "order_id": stmt.excluded.order_id,
                "payment_id": stmt.excluded.payment_id,
                "updated_at": stmt.excluded.updated_at,
            },
            # A pending/failed attempt is promoted; a completed one is left alone
            where=Enrollment.status != EnrollmentStatus.COMPLETED,
        )
        try:
            result = await self._db.execute(stmt)
            already_enrolled = result.rowcount == 0
        except IntegrityError:
            await self._db.rollback()
            already_enrolled = True

        enrollment = await self._db.scalar(
            select(Enrollment)
            .where(Enrollment.user_id == student_id, Enrollment.course_id == course_id)
            .execution_options(populate_existing=True)
        )
        if already_enrolled:
            logger.info("User %s already enrolled in course %s", student_id, course_id)
        else:
            logger.info("Enrollment confirmed user=%s course=%s", student_id, course_id)
        return EnrollmentResult(enrollment=enrollment, already_enrolled=already_enrolled)

    async def is_enrolled(self, student_id: uuid.UUID, course_id: uuid.UUID) -> bool:
        found = await self._db.scalar(
            select(Enrollment.enrollment_id).where(
                Enrollment.user_id == student_id,
                Enrollment.course_id == course_id,
                Enrollment.status == EnrollmentStatus.COMPLETED,
            )
        )
        return found is not None

    async def list_enrollments(self, student_id: uuid.UUID) -> list[Enrollment]:
        """Payment history for one learner, newest first."""
        result = await self._db.execute(
            select(Enrollment)
            .where(Enrollment.user_id == student_id)
            .order_by(Enrollment.created_at.desc())
        )
        return list(result.scalars().all())
