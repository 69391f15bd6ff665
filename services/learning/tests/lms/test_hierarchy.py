import uuid

import pytest
import pytest_asyncio

from app.exceptions import (
    CourseNotFound,
    InvalidReorderSet,
    ModuleNotFound,
    NotCourseOwner,
    ParentNotFound,
)
from shared.constants import Role


def _orders(children) -> list[int]:
    return [child.sort_order for child in children]


@pytest_asyncio.fixture
async def other_instructor(make_account):
    return await make_account("other.teacher@example.com", Role.INSTRUCTOR)


# ── Creation order ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_modules_get_max_plus_one(make_course) -> None:
    built = await make_course((1, 1, 1))
    assert _orders(built.modules) == [1, 2, 3]
    assert [_orders(lectures) for lectures in built.lectures] == [[1], [1], [1]]


@pytest.mark.asyncio
async def test_lectures_ordered_within_their_module(make_course, hierarchy) -> None:
    built = await make_course((3,))
    lectures = await hierarchy.list_lectures(built.modules[0].module_id)
    assert [lec.lecture_id for lec in lectures] == [lec.lecture_id for lec in built.lectures[0]]
    assert _orders(lectures) == [1, 2, 3]


@pytest.mark.asyncio
async def test_create_module_under_missing_course(hierarchy, instructor) -> None:
    with pytest.raises(ParentNotFound):
        await hierarchy.create_module(instructor.id, uuid.uuid4(), title="Orphan")


@pytest.mark.asyncio
async def test_create_lecture_under_missing_module(hierarchy, instructor) -> None:
    with pytest.raises(ParentNotFound):
        await hierarchy.create_lecture(
            instructor.id, uuid.uuid4(), title="Orphan", video_url="https://cdn.example.com/x.mp4"
        )


@pytest.mark.asyncio
async def test_delete_leaves_gap_and_next_goes_after_max(make_course, hierarchy, instructor) -> None:
    built = await make_course((0, 0, 0))
    await hierarchy.delete_module(instructor.id, built.modules[1].module_id)

    remaining = await hierarchy.list_modules(built.course.course_id)
    assert _orders(remaining) == [1, 3]

    added = await hierarchy.create_module(instructor.id, built.course.course_id, title="Module 4")
    assert added.sort_order == 4


@pytest.mark.asyncio
async def test_delete_last_module_reuses_its_slot(make_course, hierarchy, instructor) -> None:
    built = await make_course((0, 0))
    await hierarchy.delete_module(instructor.id, built.modules[1].module_id)
    added = await hierarchy.create_module(instructor.id, built.course.course_id, title="Again")
    assert added.sort_order == 2


@pytest.mark.asyncio
async def test_delete_module_removes_its_lectures(make_course, hierarchy, instructor) -> None:
    built = await make_course((2,))
    module_id = built.modules[0].module_id
    await hierarchy.delete_module(instructor.id, module_id)

    with pytest.raises(ModuleNotFound):
        await hierarchy.get_module(module_id)
    assert await hierarchy.list_lectures(module_id) == []


# ── Reorder ───────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_reorder_modules_follows_permutation(make_course, hierarchy, instructor) -> None:
    built = await make_course((0, 0, 0))
    a, b, c = (m.module_id for m in built.modules)

    result = await hierarchy.reorder_modules(instructor.id, built.course.course_id, [c, a, b])

    assert [m.module_id for m in result] == [c, a, b]
    listed = await hierarchy.list_modules(built.course.course_id)
    assert [m.module_id for m in listed] == [c, a, b]
    assert _orders(listed) == [1, 2, 3]


@pytest.mark.asyncio
async def test_reorder_closes_gaps(make_course, hierarchy, instructor) -> None:
    built = await make_course((0, 0, 0))
    await hierarchy.delete_module(instructor.id, built.modules[0].module_id)
    b, c = built.modules[1].module_id, built.modules[2].module_id

    await hierarchy.reorder_modules(instructor.id, built.course.course_id, [c, b])
    listed = await hierarchy.list_modules(built.course.course_id)
    assert [(m.module_id, m.sort_order) for m in listed] == [(c, 1), (b, 2)]


@pytest.mark.asyncio
async def test_reorder_is_repeatable(make_course, hierarchy, instructor) -> None:
    built = await make_course((4,))
    module_id = built.modules[0].module_id
    ids = [lec.lecture_id for lec in reversed(built.lectures[0])]

    await hierarchy.reorder_lectures(instructor.id, module_id, ids)
    await hierarchy.reorder_lectures(instructor.id, module_id, ids)

    listed = await hierarchy.list_lectures(module_id)
    assert [lec.lecture_id for lec in listed] == ids
    assert _orders(listed) == [1, 2, 3, 4]


@pytest.mark.asyncio
@pytest.mark.parametrize("mutation", ["missing", "duplicate", "foreign"])
async def test_reorder_rejects_non_permutations(make_course, hierarchy, instructor, mutation) -> None:
    built = await make_course((0, 0, 0))
    ids = [m.module_id for m in built.modules]
    if mutation == "missing":
        ordered = ids[:2]
    elif mutation == "duplicate":
        ordered = [ids[0], ids[0], ids[1]]
    else:
        ordered = [ids[0], ids[1], uuid.uuid4()]

    with pytest.raises(InvalidReorderSet):
        await hierarchy.reorder_modules(instructor.id, built.course.course_id, ordered)

    listed = await hierarchy.list_modules(built.course.course_id)
    assert [m.module_id for m in listed] == ids
    assert _orders(listed) == [1, 2, 3]


@pytest.mark.asyncio
async def test_reorder_rejects_module_from_another_course(make_course, hierarchy, instructor) -> None:
    first = await make_course((0, 0))
    second = await make_course((0,), title="Other Course")
    ids = [first.modules[0].module_id, second.modules[0].module_id]

    with pytest.raises(InvalidReorderSet):
        await hierarchy.reorder_modules(instructor.id, first.course.course_id, ids)


# ── Ownership & updates ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_other_instructor_cannot_touch_course(make_course, hierarchy, other_instructor) -> None:
    built = await make_course((1,))
    course_id = built.course.course_id

    with pytest.raises(NotCourseOwner):
        await hierarchy.create_module(other_instructor.id, course_id, title="Intrusion")
    with pytest.raises(NotCourseOwner):
        await hierarchy.reorder_modules(other_instructor.id, course_id, [built.modules[0].module_id])
    with pytest.raises(NotCourseOwner):
        await hierarchy.delete_lecture(other_instructor.id, built.lectures[0][0].lecture_id)


@pytest.mark.asyncio
async def test_update_course_ignores_unknown_fields(make_course, hierarchy, instructor) -> None:
    built = await make_course((0,))
    course = await hierarchy.update_course(
        instructor.id, built.course.course_id, title="Renamed", price=999, is_published=True
    )
    assert course.title == "Renamed"
    assert course.price == 999
    assert course.is_published is False


@pytest.mark.asyncio
async def test_publish_controls_catalogue(make_course, hierarchy, instructor) -> None:
    built = await make_course((0,))
    courses, total = await hierarchy.list_courses()
    assert (courses, total) == ([], 0)

    await hierarchy.set_published(instructor.id, built.course.course_id, True)
    courses, total = await hierarchy.list_courses()
    assert [c.course_id for c in courses] == [built.course.course_id]
    assert total == 1


@pytest.mark.asyncio
async def test_outline_groups_lectures_by_module(make_course, hierarchy) -> None:
    built = await make_course((2, 0))
    course, outline = await hierarchy.get_course_outline(built.course.course_id)

    assert course.course_id == built.course.course_id
    assert [m.module_id for m, _ in outline] == [m.module_id for m in built.modules]
    assert [len(lectures) for _, lectures in outline] == [2, 0]


@pytest.mark.asyncio
async def test_outline_of_missing_course(hierarchy) -> None:
    with pytest.raises(CourseNotFound):
        await hierarchy.get_course_outline(uuid.uuid4())
