"""
LMS controller: maps requests onto ContentHierarchy and shapes responses.
"""
from __future__ import annotations

import uuid

from app.lms.schemas import (
    CourseOutlineResponse,
    CourseResponse,
    CreateCourseRequest,
    CreateLectureRequest,
    CreateModuleRequest,
    LectureResponse,
    ModuleOutline,
    ModuleResponse,
    ReorderRequest,
    UpdateCourseRequest,
    UpdateLectureRequest,
    UpdateModuleRequest,
)
from app.lms.service import ContentHierarchy
from shared.models.pagination import OffsetPage, OffsetParams


# ── Courses ───────────────────────────────────────────────────────────────────


async def create_course(
    hierarchy: ContentHierarchy, instructor_id: uuid.UUID, body: CreateCourseRequest
) -> CourseResponse:
    course = await hierarchy.create_course(instructor_id, **body.model_dump())
    return CourseResponse.model_validate(course)


async def update_course(
    hierarchy: ContentHierarchy,
    instructor_id: uuid.UUID,
    course_id: uuid.UUID,
    body: UpdateCourseRequest,
) -> CourseResponse:
    course = await hierarchy.update_course(
        instructor_id, course_id, **body.model_dump(exclude_unset=True)
    )
    return CourseResponse.model_validate(course)


async def set_published(
    hierarchy: ContentHierarchy, instructor_id: uuid.UUID, course_id: uuid.UUID, published: bool
) -> CourseResponse:
    course = await hierarchy.set_published(instructor_id, course_id, published)
    return CourseResponse.model_validate(course)


async def list_catalog(
    hierarchy: ContentHierarchy, params: OffsetParams
) -> OffsetPage[CourseResponse]:
    courses, total = await hierarchy.list_courses(limit=params.limit, offset=params.offset)
    return OffsetPage[CourseResponse](
        items=[CourseResponse.model_validate(c) for c in courses],
        total=total,
        limit=params.limit,
        offset=params.offset,
    )


async def list_own_courses(
    hierarchy: ContentHierarchy, instructor_id: uuid.UUID, params: OffsetParams
) -> OffsetPage[CourseResponse]:
    courses, total = await hierarchy.list_courses(
        instructor_id=instructor_id,
        published_only=False,
        limit=params.limit,
        offset=params.offset,
    )
    return OffsetPage[CourseResponse](
        items=[CourseResponse.model_validate(c) for c in courses],
        total=total,
        limit=params.limit,
        offset=params.offset,
    )


async def get_outline(hierarchy: ContentHierarchy, course_id: uuid.UUID) -> CourseOutlineResponse:
    course, outline = await hierarchy.get_course_outline(course_id)
    modules = [
        ModuleOutline(
            **ModuleResponse.model_validate(module).model_dump(),
            lectures=[LectureResponse.model_validate(lecture) for lecture in lectures],
        )
        for module, lectures in outline
    ]
    return CourseOutlineResponse(
        **CourseResponse.model_validate(course).model_dump(), modules=modules
    )


# ── Modules ───────────────────────────────────────────────────────────────────


async def create_module(
    hierarchy: ContentHierarchy,
    instructor_id: uuid.UUID,
    course_id: uuid.UUID,
    body: CreateModuleRequest,
) -> ModuleResponse:
    module = await hierarchy.create_module(instructor_id, course_id, title=body.title)
    return ModuleResponse.model_validate(module)


async def update_module(
    hierarchy: ContentHierarchy,
    instructor_id: uuid.UUID,
    module_id: uuid.UUID,
    body: UpdateModuleRequest,
) -> ModuleResponse:
    module = await hierarchy.update_module(instructor_id, module_id, title=body.title)
    return ModuleResponse.model_validate(module)


async def reorder_modules(
    hierarchy: ContentHierarchy,
    instructor_id: uuid.UUID,
    course_id: uuid.UUID,
    body: ReorderRequest,
) -> list[ModuleResponse]:
    modules = await hierarchy.reorder_modules(instructor_id, course_id, body.ordered_ids)
    return [ModuleResponse.model_validate(m) for m in modules]


# ── Lectures ──────────────────────────────────────────────────────────────────


async def create_lecture(
    hierarchy: ContentHierarchy,
    instructor_id: uuid.UUID,
    module_id: uuid.UUID,
    body: CreateLectureRequest,
) -> LectureResponse:
    lecture = await hierarchy.create_lecture(instructor_id, module_id, **body.model_dump())
    return LectureResponse.model_validate(lecture)


async def update_lecture(
    hierarchy: ContentHierarchy,
    instructor_id: uuid.UUID,
    lecture_id: uuid.UUID,
    body: UpdateLectureRequest,
) -> LectureResponse:
    lecture = await hierarchy.update_lecture(
        instructor_id, lecture_id, **body.model_dump(exclude_unset=True)
    )
    return LectureResponse.model_validate(lecture)


async def reorder_lectures(
    hierarchy: ContentHierarchy,
    instructor_id: uuid.UUID,
    module_id: uuid.UUID,
    body: ReorderRequest,
) -> list[LectureResponse]:
    lectures = await hierarchy.reorder_lectures(instructor_id, module_id, body.ordered_ids)
    return [LectureResponse.model_validate(lecture) for lecture in lectures]
