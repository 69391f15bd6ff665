from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from app.lms.schemas import LectureResponse, ModuleResponse


class ModuleProgressionResponse(BaseModel):
    """Parallel arrays: ``unlocked[i]`` and ``completed[i]`` describe ``modules[i]``."""

    course_id: uuid.UUID
    modules: list[ModuleResponse]
    unlocked: list[bool]
    completed: list[bool]


class LectureProgressionResponse(BaseModel):
    module_id: uuid.UUID
    lectures: list[LectureResponse]
    completed: list[bool]


class LectureProgressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: uuid.UUID
    course_id: uuid.UUID
    module_id: uuid.UUID
    lecture_id: uuid.UUID
    completed_at: datetime
