"""
Progress controller: learner-facing unlock and completion state.
"""
from __future__ import annotations

import uuid

from app.lms.schemas import LectureResponse, ModuleResponse
from app.progress.schemas import (
    LectureProgressionResponse,
    LectureProgressResponse,
    ModuleProgressionResponse,
)
from app.progress.service import ProgressionEngine


async def modules_for_course(
    engine: ProgressionEngine, course_id: uuid.UUID, user_id: uuid.UUID
) -> ModuleProgressionResponse:
    progression = await engine.get_modules_for_course(course_id, user_id)
    return ModuleProgressionResponse(
        course_id=course_id,
        modules=[ModuleResponse.model_validate(m) for m in progression.modules],
        unlocked=progression.unlocked,
        completed=progression.completed,
    )


async def lectures_for_module(
    engine: ProgressionEngine, module_id: uuid.UUID, user_id: uuid.UUID
) -> LectureProgressionResponse:
    # Visibility follows the course-level unlock chain
    await engine.assert_module_unlocked(module_id, user_id)
    progression = await engine.get_lectures_for_module(module_id, user_id)
    return LectureProgressionResponse(
        module_id=module_id,
        lectures=[LectureResponse.model_validate(lecture) for lecture in progression.lectures],
        completed=progression.completed,
    )


async def complete_lecture(
    engine: ProgressionEngine, user_id: uuid.UUID, module_id: uuid.UUID, lecture_id: uuid.UUID
) -> LectureProgressResponse:
    progress = await engine.complete_lecture(user_id, module_id, lecture_id)
    return LectureProgressResponse.model_validate(progress)
