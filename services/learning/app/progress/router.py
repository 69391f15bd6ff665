"""
Progress router: what a signed-in learner may open next and what they finished.
"""
import uuid

from fastapi import APIRouter, Depends

from app.dependencies import get_current_user, get_progression_engine
from app.progress import controller
from app.progress.schemas import (
    LectureProgressionResponse,
    LectureProgressResponse,
    ModuleProgressionResponse,
)
from app.progress.service import ProgressionEngine
from shared.models.user import CurrentUser

router = APIRouter(prefix="/learning", tags=["Progress"])


@router.get(
    "/courses/{course_id}/modules",
    response_model=ModuleProgressionResponse,
    summary="Modules with unlock and completion flags",
)
async def modules_for_course(
    course_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> ModuleProgressionResponse:
    return await controller.modules_for_course(engine, course_id, current_user.id)


@router.get(
    "/modules/{module_id}/lectures",
    response_model=LectureProgressionResponse,
    summary="Lectures of an unlocked module with completion flags",
)
async def lectures_for_module(
    module_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> LectureProgressionResponse:
    return await controller.lectures_for_module(engine, module_id, current_user.id)


@router.post(
    "/modules/{module_id}/lectures/{lecture_id}/complete",
    response_model=LectureProgressResponse,
    summary="Mark a lecture completed (idempotent)",
)
async def complete_lecture(
    module_id: uuid.UUID,
    lecture_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> LectureProgressResponse:
    return await controller.complete_lecture(engine, current_user.id, module_id, lecture_id)
