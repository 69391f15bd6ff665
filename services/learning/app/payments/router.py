"""
Payments router: Razorpay checkout and the learner's enrollments.
"""
import uuid

from fastapi import APIRouter, Depends, Request, status

from app.dependencies import get_payment_gateway, require_learner
from app.payments import controller
from app.payments.schemas import (
    CreateOrderRequest,
    EnrollmentCheckResponse,
    EnrollmentResponse,
    EnrollmentResultResponse,
    OrderResponse,
    VerifyPaymentRequest,
)
from app.payments.service import PaymentGateway
from app.rate_limit import limiter
from shared.models.user import CurrentUser

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post(
    "/orders",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a provider order for a course purchase",
)
@limiter.limit("20/minute")
async def create_order(
    request: Request,
    body: CreateOrderRequest,
    current_user: CurrentUser = Depends(require_learner),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> OrderResponse:
    return await controller.create_order(gateway, body)


@router.post(
    "/verify",
    response_model=EnrollmentResultResponse,
    summary="Verify the payment signature and enroll the caller",
)
@limiter.limit("20/minute")
async def verify_payment(
    request: Request,
    body: VerifyPaymentRequest,
    current_user: CurrentUser = Depends(require_learner),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> EnrollmentResultResponse:
    return await controller.verify_and_enroll(gateway, current_user.id, body)


@router.get(
    "/courses/{course_id}/enrollment",
    response_model=EnrollmentCheckResponse,
    summary="Whether the caller already holds a completed enrollment",
)
async def check_enrollment(
    course_id: uuid.UUID,
    current_user: CurrentUser = Depends(require_learner),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> EnrollmentCheckResponse:
    return await controller.check_enrollment(gateway, current_user.id, course_id)


@router.get(
    "/history",
    response_model=list[EnrollmentResponse],
    summary="The caller's enrollments and payments",
)
async def payment_history(
    current_user: CurrentUser = Depends(require_learner),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> list[EnrollmentResponse]:
    return await controller.payment_history(gateway, current_user.id)
