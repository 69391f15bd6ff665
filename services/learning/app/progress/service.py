"""
Progression engine: per-learner unlock and completion state.

Unlock policy is strictly sequential:

    unlocked[0] = True
    unlocked[i] = unlocked[i-1] and completed[i-1]

A module is completed when every one of its lectures has a progress row.
A module without lectures counts as completed so it never blocks the chain.

Access to any of this requires the course to be free or a completed
enrollment for the learner.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.clock import Clock
from app.exceptions import LectureNotFound, ModuleLocked, ModuleNotFound, NotEnrolled
from app.lms.service import ContentHierarchy
from app.models import Course, CourseModule, Lecture, LectureProgress
from app.payments.service import PaymentGateway
from shared.database import upsert_insert

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModuleProgression:
    course: Course
    modules: list[CourseModule]
    unlocked: list[bool]
    completed: list[bool]


@dataclass(frozen=True)
class LectureProgression:
    module: CourseModule
    lectures: list[Lecture]
    completed: list[bool]


def compute_unlocked(completed: Sequence[bool]) -> list[bool]:
    unlocked: list[bool] = []
    for index in range(len(completed)):
        unlocked.append(True if index == 0 else unlocked[index - 1] and completed[index - 1])
    return unlocked


class ProgressionEngine:
    def __init__(
        self,
        db: AsyncSession,
        clock: Clock,
        hierarchy: ContentHierarchy,
        enrollments: PaymentGateway,
        *,
        enforce_unlock_on_complete: bool = True,
    ) -> None:
        self._db = db
        self._clock = clock
        self._hierarchy = hierarchy
        self._enrollments = enrollments
        self._enforce_unlock_on_complete = enforce_unlock_on_complete

    # ── Access ────────────────────────────────────────────────────────────────

    async def ensure_course_access(self, course: Course, user_id: uuid.UUID) -> None:
        if course.is_free:
            return
        if not await self._enrollments.is_enrolled(user_id, course.course_id):
            raise NotEnrolled()

    async def _completed_lecture_ids(
        self, user_id: uuid.UUID, course_id: uuid.UUID
    ) -> set[uuid.UUID]:
        result = await self._db.execute(
            select(LectureProgress.lecture_id).where(
                LectureProgress.user_id == user_id,
                LectureProgress.course_id == course_id,
            )
        )
        return set(result.scalars().all())

    # ── Queries ───────────────────────────────────────────────────────────────

    async def get_modules_for_course(
        self, course_id: uuid.UUID, user_id: uuid.UUID
    ) -> ModuleProgression:
        course, outline = await self._hierarchy.get_course_outline(course_id)
        await self.ensure_course_access(course, user_id)

        done = await self._completed_lecture_ids(user_id, course_id)
        modules = [module for module, _ in outline]
        completed = [
            all(lecture.lecture_id in done for lecture in lectures) for _, lectures in outline
        ]
        return ModuleProgression(
            course=course,
            modules=modules,
            unlocked=compute_unlocked(completed),
            completed=completed,
        )

    async def get_lectures_for_module(
        self, module_id: uuid.UUID, user_id: uuid.UUID
    ) -> LectureProgression:
        """Lectures with completion flags. Module unlock is the caller's check."""
        module = await self._hierarchy.get_module(module_id)
        lectures = await self._hierarchy.list_lectures(module_id)
        done = await self._completed_lecture_ids(user_id, module.course_id)
        return LectureProgression(
            module=module,
            lectures=lectures,
            completed=[lecture.lecture_id in done for lecture in lectures],
        )

    async def assert_module_unlocked(self, module_id: uuid.UUID, user_id: uuid.UUID) -> None:
        module = await self._hierarchy.get_module(module_id)
        progression = await self.get_modules_for_course(module.course_id, user_id)
        for candidate, unlocked in zip(progression.modules, progression.unlocked):
            if candidate.module_id == module_id:
                if not unlocked:
                    raise ModuleLocked()
                return
        raise ModuleNotFound()

    # ── Mutations ─────────────────────────────────────────────────────────────

    async def complete_lecture(
        self, user_id: uuid.UUID, module_id: uuid.UUID, lecture_id: uuid.UUID
    ) -> LectureProgress:
        """Record completion; repeating it only refreshes ``completed_at``."""
        lecture = await self._db.get(Lecture, lecture_id)
        if lecture is None or lecture.module_id != module_id:
            raise LectureNotFound()
        module = await self._hierarchy.get_module(module_id)
        if self._enforce_unlock_on_complete:
            await self.assert_module_unlocked(module_id, user_id)
        else:
            await self.ensure_course_access(
                await self._hierarchy.get_course(module.course_id), user_id
            )

        now = self._clock.now()
        stmt = upsert_insert(self._db, LectureProgress).values(
            progress_id=uuid.uuid4(),
            user_id=user_id,
            course_id=module.course_id,
            module_id=module_id,
            lecture_id=lecture_id,
            completed_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[
                LectureProgress.user_id,
                LectureProgress.module_id,
                LectureProgress.lecture_id,
            ],
            set_={"completed_at": stmt.excluded.completed_at},
        )
        await self._db.execute(stmt)

        progress = await self._db.scalar(
            select(LectureProgress)
            .where(
                LectureProgress.user_id == user_id,
                LectureProgress.module_id == module_id,
                LectureProgress.lecture_id == lecture_id,
            )
            .execution_options(populate_existing=True)
        )
        logger.debug("Lecture %s completed by %s", lecture_id, user_id)
        return progress
