"""
LMS schemas: courses, modules, lectures.

Request models are separate from response models.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Request(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


# ── Requests ──────────────────────────────────────────────────────────────────


class CreateCourseRequest(_Request):
    title: str = Field(min_length=1, max_length=300)
    description: str | None = None
    price: int = Field(default=0, ge=0, description="Whole currency units; 0 makes the course free.")
    currency: str = Field(default="INR", min_length=3, max_length=3)

    @field_validator("currency")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.upper()


class UpdateCourseRequest(_Request):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = None
    price: int | None = Field(default=None, ge=0)


class PublishRequest(_Request):
    is_published: bool


class CreateModuleRequest(_Request):
    title: str = Field(min_length=1, max_length=300)


class UpdateModuleRequest(CreateModuleRequest):
    pass


class CreateLectureRequest(_Request):
    title: str = Field(min_length=1, max_length=300)
    video_url: str = Field(min_length=1, max_length=1000)
    duration_secs: int | None = Field(default=None, ge=0)


class UpdateLectureRequest(_Request):
    title: str | None = Field(default=None, min_length=1, max_length=300)
    video_url: str | None = Field(default=None, min_length=1, max_length=1000)
    duration_secs: int | None = Field(default=None, ge=0)


class ReorderRequest(_Request):
    """The full target order of every sibling, first to last."""

    ordered_ids: list[uuid.UUID] = Field(min_length=1)


# ── Responses ─────────────────────────────────────────────────────────────────


class LectureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    lecture_id: uuid.UUID
    module_id: uuid.UUID
    title: str
    video_url: str
    duration_secs: int | None
    sort_order: int


class ModuleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    module_id: uuid.UUID
    course_id: uuid.UUID
    title: str
    sort_order: int


class CourseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    course_id: uuid.UUID
    instructor_id: uuid.UUID
    title: str
    description: str | None
    price: int
    currency: str
    is_published: bool
    created_at: datetime


class ModuleOutline(ModuleResponse):
    lectures: list[LectureResponse]


class CourseOutlineResponse(CourseResponse):
    modules: list[ModuleOutline]
