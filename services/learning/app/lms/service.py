"""
Course → module → lecture hierarchy.

Order invariant: within one parent, ``sort_order`` values are unique and only
their relative order matters. New children go to max + 1, deletes leave gaps,
and a reorder rewrites the whole sibling set to 1..n.

Every mutation first passes InstructorLifecycle.assert_can_author, then the
parent lookup, then the ownership check, and only then writes.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from typing import Any, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    CourseNotFound,
    InvalidReorderSet,
    LectureNotFound,
    ModuleNotFound,
    NotCourseOwner,
    OrderConflict,
    ParentNotFound,
)
from app.instructors.service import InstructorLifecycle
from app.models import Course, CourseModule, Lecture

logger = logging.getLogger(__name__)

_Child = TypeVar("_Child", CourseModule, Lecture)

_COURSE_FIELDS = frozenset({"title", "description", "price", "currency"})
_LECTURE_FIELDS = frozenset({"title", "video_url", "duration_secs"})


def _apply_permutation(
    siblings: Sequence[_Child], ordered_ids: Sequence[uuid.UUID], id_attr: str
) -> dict[uuid.UUID, _Child]:
    """Validate ``ordered_ids`` as an exact permutation of ``siblings``.

    Raises InvalidReorderSet on a missing, foreign or duplicated id.
    """
    by_id = {getattr(child, id_attr): child for child in siblings}
    if len(ordered_ids) != len(set(ordered_ids)):
        raise InvalidReorderSet("Reorder list contains duplicate ids")
    if set(ordered_ids) != set(by_id):
        missing = len(set(by_id) - set(ordered_ids))
        foreign = len(set(ordered_ids) - set(by_id))
        raise InvalidReorderSet(
            f"Reorder list must contain every sibling exactly once "
            f"({missing} missing, {foreign} unknown)"
        )
    return by_id


class ContentHierarchy:
    def __init__(self, db: AsyncSession, lifecycle: InstructorLifecycle) -> None:
        self._db = db
        self._lifecycle = lifecycle

    # ── Reads ─────────────────────────────────────────────────────────────────

    async def get_course(self, course_id: uuid.UUID) -> Course:
        course = await self._db.get(Course, course_id)
        if course is None:
            raise CourseNotFound()
        return course

    async def get_module(self, module_id: uuid.UUID) -> CourseModule:
        module = await self._db.get(CourseModule, module_id)
        if module is None:
            raise ModuleNotFound()
        return module

    async def get_lecture(self, lecture_id: uuid.UUID) -> Lecture:
        lecture = await self._db.get(Lecture, lecture_id)
        if lecture is None:
            raise LectureNotFound()
        return lecture

    async def list_courses(
        self,
        *,
        instructor_id: uuid.UUID | None = None,
        published_only: bool = True,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Course], int]:
        stmt = select(Course)
        if published_only:
            stmt = stmt.where(Course.is_published.is_(True))
        if instructor_id is not None:
            stmt = stmt.where(Course.instructor_id == instructor_id)
        total = await self._db.scalar(select(func.count()).select_from(stmt.subquery()))
        result = await self._db.execute(
            stmt.order_by(Course.created_at.desc()).limit(limit).offset(offset)
        )
        return list(result.scalars().all()), total or 0

    async def list_modules(self, course_id: uuid.UUID) -> list[CourseModule]:
        result = await self._db.execute(
            select(CourseModule)
            .where(CourseModule.course_id == course_id)
            .order_by(CourseModule.sort_order)
        )
        return list(result.scalars().all())

    async def list_lectures(self, module_id: uuid.UUID) -> list[Lecture]:
        result = await self._db.execute(
            select(Lecture).where(Lecture.module_id == module_id).order_by(Lecture.sort_order)
        )
        return list(result.scalars().all())

    async def get_course_outline(
        self, course_id: uuid.UUID
    ) -> tuple[Course, list[tuple[CourseModule, list[Lecture]]]]:
        course = await self.get_course(course_id)
        modules = await self.list_modules(course_id)
        lectures: dict[uuid.UUID, list[Lecture]] = {m.module_id: [] for m in modules}
        if modules:
            result = await self._db.execute(
                select(Lecture)
                .where(Lecture.module_id.in_(lectures.keys()))
                .order_by(Lecture.sort_order)
            )
            for lecture in result.scalars():
                lectures[lecture.module_id].append(lecture)
        return course, [(m, lectures[m.module_id]) for m in modules]

    # ── Courses ───────────────────────────────────────────────────────────────

    async def create_course(
        self,
        instructor_id: uuid.UUID,
        *,
        title: str,
        description: str | None = None,
        price: int = 0,
        currency: str = "INR",
    ) -> Course:
        await self._lifecycle.assert_can_author(instructor_id)
        course = Course(
            instructor_id=instructor_id,
            title=title,
            description=description,
            price=price,
            currency=currency,
        )
        self._db.add(course)
        await self._db.flush()
        logger.info("Course %s created by %s", course.course_id, instructor_id)
        return course

    async def update_course(
        self, instructor_id: uuid.UUID, course_id: uuid.UUID, **fields: Any
    ) -> Course:
        await self._lifecycle.assert_can_author(instructor_id)
        course = await self._owned_course(instructor_id, course_id)
        for key, value in fields.items():
            if key in _COURSE_FIELDS and value is not None:
                setattr(course, key, value)
        await self._db.flush()
        return course

    async def set_published(
        self, instructor_id: uuid.UUID, course_id: uuid.UUID, published: bool
    ) -> Course:
        await self._lifecycle.assert_can_author(instructor_id)
        course = await self._owned_course(instructor_id, course_id)
        course.is_published = published
        await self._db.flush()
        return course

    # ── Modules ───────────────────────────────────────────────────────────────

    async def create_module(
        self, instructor_id: uuid.UUID, course_id: uuid.UUID, *, title: str
    ) -> CourseModule:
        await self._lifecycle.assert_can_author(instructor_id)
        course = await self._db.get(Course, course_id)
        if course is None:
            raise ParentNotFound("Course not found")
        self._ensure_owner(course, instructor_id)

        next_order = await self._next_order(
            select(func.max(CourseModule.sort_order)).where(CourseModule.course_id == course_id)
        )
        module = CourseModule(course_id=course_id, title=title, sort_order=next_order)
        await self._insert_child(module)
        return module

    async def update_module(
        self, instructor_id: uuid.UUID, module_id: uuid.UUID, *, title: str
    ) -> CourseModule:
        await self._lifecycle.assert_can_author(instructor_id)
        module = await self.get_module(module_id)
        await self._owned_course(instructor_id, module.course_id)
        module.title = title
        await self._db.flush()
        return module

    async def delete_module(self, instructor_id: uuid.UUID, module_id: uuid.UUID) -> None:
        """Remove a module and its lectures. Siblings keep their order values."""
        await self._lifecycle.assert_can_author(instructor_id)
        module = await self.get_module(module_id)
        await self._owned_course(instructor_id, module.course_id)
        for lecture in await self.list_lectures(module_id):
            await self._db.delete(lecture)
        await self._db.delete(module)
        await self._db.flush()

    async def reorder_modules(
        self, instructor_id: uuid.UUID, course_id: uuid.UUID, ordered_ids: Sequence[uuid.UUID]
    ) -> list[CourseModule]:
        await self._lifecycle.assert_can_author(instructor_id)
        course = await self._db.get(Course, course_id)
        if course is None:
            raise ParentNotFound("Course not found")
        self._ensure_owner(course, instructor_id)
        siblings = await self.list_modules(course_id)
        return await self._reorder(siblings, ordered_ids, "module_id")

    # ── Lectures ──────────────────────────────────────────────────────────────

    async def create_lecture(
        self,
        instructor_id: uuid.UUID,
        module_id: uuid.UUID,
        *,
        title: str,
        video_url: str,
        duration_secs: int | None = None,
    ) -> Lecture:
        await self._lifecycle.assert_can_author(instructor_id)
        module = await self._db.get(CourseModule, module_id)
        if module is None:
            raise ParentNotFound("Module not found")
        await self._owned_course(instructor_id, module.course_id)

        next_order = await self._next_order(
            select(func.max(Lecture.sort_order)).where(Lecture.module_id == module_id)
        )
        lecture = Lecture(
            module_id=module_id,
            title=title,
            video_url=video_url,
            duration_secs=duration_secs,
            sort_order=next_order,
        )
        await self._insert_child(lecture)
        return lecture

    async def update_lecture(
        self, instructor_id: uuid.UUID, lecture_id: uuid.UUID, **fields: Any
    ) -> Lecture:
        await self._lifecycle.assert_can_author(instructor_id)
        lecture = await self.get_lecture(lecture_id)
        module = await self.get_module(lecture.module_id)
        await self._owned_course(instructor_id, module.course_id)
        for key, value in fields.items():
            if key in _LECTURE_FIELDS and value is not None:
                setattr(lecture, key, value)
        await self._db.flush()
        return lecture

    async def delete_lecture(self, instructor_id: uuid.UUID, lecture_id: uuid.UUID) -> None:
        await self._lifecycle.assert_can_author(instructor_id)
        lecture = await self.get_lecture(lecture_id)
        module = await self.get_module(lecture.module_id)
        await self._owned_course(instructor_id, module.course_id)
        await self._db.delete(lecture)
        await self._db.flush()

    async def reorder_lectures(
        self, instructor_id: uuid.UUID, module_id: uuid.UUID, ordered_ids: Sequence[uuid.UUID]
    ) -> list[Lecture]:
        await self._lifecycle.assert_can_author(instructor_id)
        module = await self._db.get(CourseModule, module_id)
        if module is None:
            raise ParentNotFound("Module not found")
        await self._owned_course(instructor_id, module.course_id)
        siblings = await self.list_lectures(module_id)
        return await self._reorder(siblings, ordered_ids, "lecture_id")

    # ── internals ─────────────────────────────────────────────────────────────

    @staticmethod
    def _ensure_owner(course: Course, instructor_id: uuid.UUID) -> None:
        if course.instructor_id != instructor_id:
            raise NotCourseOwner()

    async def _owned_course(self, instructor_id: uuid.UUID, course_id: uuid.UUID) -> Course:
        course = await self.get_course(course_id)
        self._ensure_owner(course, instructor_id)
        return course

    async def _next_order(self, max_stmt) -> int:
        current = await self._db.scalar(max_stmt)
        return (current or 0) + 1

    async def _insert_child(self, child: CourseModule | Lecture) -> None:
        self._db.add(child)
        try:
            await self._db.flush()
        except IntegrityError:
            # A concurrent create took the same max + 1 slot
            await self._db.rollback()
            raise OrderConflict() from None

    async def _reorder(
        self, siblings: list[_Child], ordered_ids: Sequence[uuid.UUID], id_attr: str
    ) -> list[_Child]:
        """Assign order = index + 1 following ``ordered_ids``.

        Runs inside the request transaction. Rows are first parked on negative
        values so the (parent, sort_order) unique constraint holds at every
        flush; a retry with the same permutation converges to the same state.
        """
        by_id = _apply_permutation(siblings, ordered_ids, id_attr)
        for index, child_id in enumerate(ordered_ids, start=1):
            by_id[child_id].sort_order = -index
        await self._db.flush()
        for index, child_id in enumerate(ordered_ids, start=1):
            by_id[child_id].sort_order = index
        await self._db.flush()
        return [by_id[child_id] for child_id in ordered_ids]
