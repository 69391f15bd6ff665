"""
Payments controller: checkout orchestration and enrollment reads.
"""
from __future__ import annotations

import uuid

from app.payments.schemas import (
    CreateOrderRequest,
    EnrollmentCheckResponse,
    EnrollmentResponse,
    EnrollmentResultResponse,
    OrderResponse,
    VerifyPaymentRequest,
)
from app.payments.service import PaymentGateway


async def create_order(gateway: PaymentGateway, body: CreateOrderRequest) -> OrderResponse:
    order = await gateway.create_order(body.amount, body.course_id)
    return OrderResponse(
        order_id=order.order_id,
        amount=order.amount,
        currency=order.currency,
        receipt=order.receipt,
    )


async def verify_and_enroll(
    gateway: PaymentGateway, student_id: uuid.UUID, body: VerifyPaymentRequest
) -> EnrollmentResultResponse:
    result = await gateway.complete_checkout(
        student_id,
        body.course_id,
        body.amount,
        order_id=body.order_id,
        payment_id=body.payment_id,
        signature=body.signature,
    )
    return EnrollmentResultResponse(
        enrollment=EnrollmentResponse.model_validate(result.enrollment),
        already_enrolled=result.already_enrolled,
    )


async def check_enrollment(
    gateway: PaymentGateway, student_id: uuid.UUID, course_id: uuid.UUID
) -> EnrollmentCheckResponse:
    enrolled = await gateway.is_enrolled(student_id, course_id)
    return EnrollmentCheckResponse(course_id=course_id, enrolled=enrolled)


async def payment_history(
    gateway: PaymentGateway, student_id: uuid.UUID
) -> list[EnrollmentResponse]:
    return [
        EnrollmentResponse.model_validate(e) for e in await gateway.list_enrollments(student_id)
    ]
