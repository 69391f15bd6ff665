from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from app.models import InstructorStatus


class InstructorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    full_name: str
    is_verified: bool
    is_blocked: bool
    account_status: InstructorStatus | None
    created_at: datetime


class InstructorListResponse(BaseModel):
    items: list[InstructorResponse]
    total: int
