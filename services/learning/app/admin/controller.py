"""
Admin controller: instructor review queue and account blocking.
"""
from __future__ import annotations

import uuid

from app.auth.schemas import AccountResponse
from app.auth.service import AccountService
from app.instructors.schemas import InstructorListResponse, InstructorResponse
from app.instructors.service import InstructorLifecycle
from app.models import InstructorStatus


async def list_instructors(
    lifecycle: InstructorLifecycle, status: InstructorStatus | None
) -> InstructorListResponse:
    items = [InstructorResponse.model_validate(a) for a in await lifecycle.list_instructors(status)]
    return InstructorListResponse(items=items, total=len(items))


async def transition_instructor(
    lifecycle: InstructorLifecycle, instructor_id: uuid.UUID, action: str
) -> InstructorResponse:
    transitions = {
        "approve": lifecycle.approve,
        "reject": lifecycle.reject,
        "block": lifecycle.block,
        "unblock": lifecycle.unblock,
    }
    account = await transitions[action](instructor_id)
    return InstructorResponse.model_validate(account)


async def set_learner_blocked(
    accounts: AccountService, account_id: uuid.UUID, blocked: bool
) -> AccountResponse:
    return AccountResponse.model_validate(await accounts.set_blocked(account_id, blocked))
