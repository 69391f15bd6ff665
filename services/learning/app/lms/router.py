"""
LMS router: course catalog and authoring.

Authoring routes only require a signed-in caller; the instructor gate
(verified → approved → owner) is applied by ContentHierarchy so its error
kinds reach the client unchanged.
"""
import uuid

from fastapi import APIRouter, Depends, Response, status

from app.dependencies import get_content_hierarchy, get_current_user, require_instructor
from app.lms import controller
from app.lms.schemas import (
    CourseOutlineResponse,
    CourseResponse,
    CreateCourseRequest,
    CreateLectureRequest,
    CreateModuleRequest,
    LectureResponse,
    ModuleResponse,
    PublishRequest,
    ReorderRequest,
    UpdateCourseRequest,
    UpdateLectureRequest,
    UpdateModuleRequest,
)
from app.lms.service import ContentHierarchy
from shared.models.pagination import OffsetPage, OffsetParams
from shared.models.user import CurrentUser

router = APIRouter(prefix="/lms", tags=["LMS"])


# ── Catalog ───────────────────────────────────────────────────────────────────


@router.get("/courses", response_model=OffsetPage[CourseResponse], summary="Published courses")
async def list_courses(
    params: OffsetParams = Depends(),
    hierarchy: ContentHierarchy = Depends(get_content_hierarchy),
) -> OffsetPage[CourseResponse]:
    return await controller.list_catalog(hierarchy, params)


@router.get(
    "/instructor/courses",
    response_model=OffsetPage[CourseResponse],
    summary="Courses owned by the calling instructor",
)
async def list_own_courses(
    params: OffsetParams = Depends(),
    current_user: CurrentUser = Depends(require_instructor),
    hierarchy: ContentHierarchy = Depends(get_content_hierarchy),
) -> OffsetPage[CourseResponse]:
    return await controller.list_own_courses(hierarchy, current_user.id, params)


@router.get(
    "/courses/{course_id}",
    response_model=CourseOutlineResponse,
    summary="Course with its ordered modules and lectures",
)
async def get_course(
    course_id: uuid.UUID,
    hierarchy: ContentHierarchy = Depends(get_content_hierarchy),
) -> CourseOutlineResponse:
    return await controller.get_outline(hierarchy, course_id)


# ── Courses ───────────────────────────────────────────────────────────────────


@router.post("/courses", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
async def create_course(
    body: CreateCourseRequest,
    current_user: CurrentUser = Depends(get_current_user),
    hierarchy: ContentHierarchy = Depends(get_content_hierarchy),
) -> CourseResponse:
    return await controller.create_course(hierarchy, current_user.id, body)


@router.patch("/courses/{course_id}", response_model=CourseResponse)
async def update_course(
    course_id: uuid.UUID,
    body: UpdateCourseRequest,
    current_user: CurrentUser = Depends(get_current_user),
    hierarchy: ContentHierarchy = Depends(get_content_hierarchy),
) -> CourseResponse:
    return await controller.update_course(hierarchy, current_user.id, course_id, body)


@router.put("/courses/{course_id}/publish", response_model=CourseResponse)
async def publish_course(
    course_id: uuid.UUID,
    body: PublishRequest,
    current_user: CurrentUser = Depends(get_current_user),
    hierarchy: ContentHierarchy = Depends(get_content_hierarchy),
) -> CourseResponse:
    return await controller.set_published(hierarchy, current_user.id, course_id, body.is_published)


# ── Modules ───────────────────────────────────────────────────────────────────


@router.post(
    "/courses/{course_id}/modules",
    response_model=ModuleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_module(
    course_id: uuid.UUID,
    body: CreateModuleRequest,
    current_user: CurrentUser = Depends(get_current_user),
    hierarchy: ContentHierarchy = Depends(get_content_hierarchy),
) -> ModuleResponse:
    return await controller.create_module(hierarchy, current_user.id, course_id, body)


@router.put(
    "/courses/{course_id}/modules/order",
    response_model=list[ModuleResponse],
    summary="Reorder all modules of a course",
)
async def reorder_modules(
    course_id: uuid.UUID,
    body: ReorderRequest,
    current_user: CurrentUser = Depends(get_current_user),
    hierarchy: ContentHierarchy = Depends(get_content_hierarchy),
) -> list[ModuleResponse]:
    return await controller.reorder_modules(hierarchy, current_user.id, course_id, body)


@router.patch("/modules/{module_id}", response_model=ModuleResponse)
async def update_module(
    module_id: uuid.UUID,
    body: UpdateModuleRequest,
    current_user: CurrentUser = Depends(get_current_user),
    hierarchy: ContentHierarchy = Depends(get_content_hierarchy),
) -> ModuleResponse:
    return await controller.update_module(hierarchy, current_user.id, module_id, body)


@router.delete("/modules/{module_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_module(
    module_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    hierarchy: ContentHierarchy = Depends(get_content_hierarchy),
) -> Response:
    await hierarchy.delete_module(current_user.id, module_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Lectures ──────────────────────────────────────────────────────────────────


@router.post(
    "/modules/{module_id}/lectures",
    response_model=LectureResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_lecture(
    module_id: uuid.UUID,
    body: CreateLectureRequest,
    current_user: CurrentUser = Depends(get_current_user),
    hierarchy: ContentHierarchy = Depends(get_content_hierarchy),
) -> LectureResponse:
    return await controller.create_lecture(hierarchy, current_user.id, module_id, body)


@router.put(
    "/modules/{module_id}/lectures/order",
    response_model=list[LectureResponse],
    summary="Reorder all lectures of a module",
)
async def reorder_lectures(
    module_id: uuid.UUID,
    body: ReorderRequest,
    current_user: CurrentUser = Depends(get_current_user),
    hierarchy: ContentHierarchy = Depends(get_content_hierarchy),
) -> list[LectureResponse]:
    return await controller.reorder_lectures(hierarchy, current_user.id, module_id, body)


@router.patch("/lectures/{lecture_id}", response_model=LectureResponse)
async def update_lecture(
    lecture_id: uuid.UUID,
    body: UpdateLectureRequest,
    current_user: CurrentUser = Depends(get_current_user),
    hierarchy: ContentHierarchy = Depends(get_content_hierarchy),
) -> LectureResponse:
    return await controller.update_lecture(hierarchy, current_user.id, lecture_id, body)


@router.delete("/lectures/{lecture_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lecture(
    lecture_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    hierarchy: ContentHierarchy = Depends(get_content_hierarchy),
) -> Response:
    await hierarchy.delete_lecture(current_user.id, lecture_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
