"""
Admin router. Every route requires the admin role.
"""
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Query

from app.admin import controller
from app.auth.schemas import AccountResponse
from app.auth.service import AccountService
from app.dependencies import get_account_service, get_instructor_lifecycle, require_admin
from app.instructors.schemas import InstructorListResponse, InstructorResponse
from app.instructors.service import InstructorLifecycle
from app.models import InstructorStatus

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get("/instructors", response_model=InstructorListResponse, summary="Instructor review queue")
async def list_instructors(
    status: InstructorStatus | None = Query(default=None),
    lifecycle: InstructorLifecycle = Depends(get_instructor_lifecycle),
) -> InstructorListResponse:
    return await controller.list_instructors(lifecycle, status)


@router.post(
    "/instructors/{instructor_id}/{action}",
    response_model=InstructorResponse,
    summary="Approve, reject, block or unblock an instructor",
)
async def transition_instructor(
    instructor_id: uuid.UUID,
    action: Literal["approve", "reject", "block", "unblock"],
    lifecycle: InstructorLifecycle = Depends(get_instructor_lifecycle),
) -> InstructorResponse:
    return await controller.transition_instructor(lifecycle, instructor_id, action)


@router.post("/learners/{account_id}/block", response_model=AccountResponse)
async def block_learner(
    account_id: uuid.UUID,
    accounts: AccountService = Depends(get_account_service),
) -> AccountResponse:
    return await controller.set_learner_blocked(accounts, account_id, True)


@router.post("/learners/{account_id}/unblock", response_model=AccountResponse)
async def unblock_learner(
    account_id: uuid.UUID,
    accounts: AccountService = Depends(get_account_service),
) -> AccountResponse:
    return await controller.set_learner_blocked(accounts, account_id, False)
