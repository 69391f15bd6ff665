from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models import EnrollmentStatus


class _Request(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class CreateOrderRequest(_Request):
    amount: int = Field(gt=0, description="Amount in the course currency.")
    course_id: uuid.UUID


class VerifyPaymentRequest(_Request):
    """Fields returned by the provider checkout widget, plus what was bought."""

    order_id: str = Field(min_length=1, max_length=64)
    payment_id: str = Field(min_length=1, max_length=64)
    signature: str = Field(min_length=1, max_length=128)
    course_id: uuid.UUID
    amount: int = Field(ge=0)


class OrderResponse(BaseModel):
    order_id: str
    amount: int
    currency: str
    receipt: str


class EnrollmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    enrollment_id: uuid.UUID
    user_id: uuid.UUID
    course_id: uuid.UUID
    amount: int
    currency: str
    status: EnrollmentStatus
    order_id: str | None
    payment_id: str | None
    created_at: datetime


class EnrollmentResultResponse(BaseModel):
    enrollment: EnrollmentResponse
    already_enrolled: bool


class EnrollmentCheckResponse(BaseModel):
    course_id: uuid.UUID
    enrolled: bool
