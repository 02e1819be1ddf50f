"""
Course structure mutations: courses, modules and lessons.

Sibling ``order_index`` values stay contiguous from 0. Every mutation that
changes a sibling set first touches the parent row (course for modules,
module for lessons), whose version column turns a concurrent mutation of the
same parent into ``StaleDataError``; ``run_atomic`` retries those and
eventually reports ``Conflict``. Renumbering moves the affected rows above the
current range before writing final positions, so the unique order constraint
holds at every flush.
"""

import logging
from datetime import datetime, timezone
from typing import List, Sequence
from sqlalchemy import func
from sqlalchemy.orm import Session

from academy_backend.database import run_atomic, supports_row_locks
from academy_backend.errors import InvalidOrder, InvalidRequest, NotFound
from academy_backend.interface.course_lessons import CourseLessonCreate, CourseLessonUpdate
from academy_backend.interface.course_modules import CourseModuleCreate, CourseModuleUpdate
from academy_backend.interface.courses import CourseCreate, CourseUpdate
from academy_backend.model.course import Course, CourseLesson, CourseModule
from academy_backend.permissions.principal import Capability, Principal
from academy_backend.services.progress import recompute_course_progress

logger = logging.getLogger(__name__)


def _load(db: Session, model, entity_id: str, name: str, lock: bool = False):
    query = db.query(model).filter(model.id == entity_id)

    if lock and supports_row_locks(db):
        query = query.with_for_update()

    entity = query.first()

    if entity is None:
        raise NotFound(name, entity_id)

    return entity


def _apply_update(entity, payload):
    """Copy the fields set on ``payload``; an explicit None clears nullable columns only."""
    columns = entity.__table__.columns

    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is None and not columns[key].nullable:
            raise InvalidRequest(f"{key} cannot be cleared")
        if key == "content_type":
            value = value.value
        setattr(entity, key, value)


def _touch(db: Session, parent):
    """Bump the parent's version so concurrent sibling mutations collide."""
    parent.updated_at = datetime.now(timezone.utc)
    db.flush()


def _renumber(db: Session, siblings: Sequence):
    """Write positions 0..n-1 to ``siblings`` in list order."""
    if not siblings:
        return

    offset = max(s.order_index for s in siblings) + 1

    for position, sibling in enumerate(siblings):
        sibling.order_index = offset + position
    db.flush()

    for position, sibling in enumerate(siblings):
        sibling.order_index = position
    db.flush()


def _moved(siblings: List, item, new_index: int) -> List:
    """Sibling order after moving ``item`` to ``new_index``; validates the index."""
    if not 0 <= new_index < len(siblings):
        raise InvalidOrder(f"Index {new_index} outside 0..{len(siblings) - 1}")

    ordered = [s for s in siblings if s.id != item.id]
    ordered.insert(new_index, item)
    return ordered


def _next_index(db: Session, column, parent_column, parent_id: str) -> int:
    current = db.query(func.max(column)).filter(parent_column == parent_id).scalar()
    return 0 if current is None else current + 1


def _module_siblings(db: Session, course_id: str) -> List[CourseModule]:
    return db.query(CourseModule).filter(
        CourseModule.course_id == course_id
    ).order_by(CourseModule.order_index).all()


def _lesson_siblings(db: Session, module_id: str) -> List[CourseLesson]:
    return db.query(CourseLesson).filter(
        CourseLesson.module_id == module_id
    ).order_by(CourseLesson.order_index).all()


# Courses

def create_course(db: Session, principal: Principal, payload: CourseCreate) -> Course:
    principal.require(Capability.manage_courses)

    def operation() -> Course:
        course = Course(**payload.model_dump())
        db.add(course)
        db.flush()
        return course

    course = run_atomic(db, operation, "create-course")
    logger.info(f"Course {course.id} created by {principal.user_id}")
    return course


def update_course(db: Session, principal: Principal, course_id: str, payload: CourseUpdate) -> Course:
    principal.require(Capability.manage_courses)

    def operation() -> Course:
        course = _load(db, Course, course_id, "Course", lock=True)

        _apply_update(course, payload)

        db.flush()
        return course

    return run_atomic(db, operation, "update-course")


def delete_course(db: Session, principal: Principal, course_id: str):
    principal.require(Capability.manage_courses)

    def operation():
        course = _load(db, Course, course_id, "Course", lock=True)
        db.delete(course)
        db.flush()

    run_atomic(db, operation, "delete-course")
    logger.info(f"Course {course_id} deleted by {principal.user_id}")


# Modules

def create_module(db: Session, principal: Principal, payload: CourseModuleCreate) -> CourseModule:
    principal.require(Capability.manage_courses)

    def operation() -> CourseModule:
        course = _load(db, Course, payload.course_id, "Course", lock=True)
        _touch(db, course)

        module = CourseModule(
            course_id=course.id,
            title=payload.title,
            description=payload.description,
            is_published=payload.is_published,
            order_index=_next_index(db, CourseModule.order_index, CourseModule.course_id, course.id),
        )
        db.add(module)
        db.flush()

        if module.is_published:
            recompute_course_progress(db, course.id)

        return module

    return run_atomic(db, operation, "create-module")


def update_module(db: Session, principal: Principal, module_id: str, payload: CourseModuleUpdate) -> CourseModule:
    principal.require(Capability.manage_courses)

    def operation() -> CourseModule:
        module = _load(db, CourseModule, module_id, "Module", lock=True)
        was_published = module.is_published

        _apply_update(module, payload)
        db.flush()

        if module.is_published != was_published:
            logger.info(f"Module {module.id} {'published' if module.is_published else 'unpublished'}")
            recompute_course_progress(db, module.course_id)

        return module

    return run_atomic(db, operation, "update-module")


def reorder_module(db: Session, principal: Principal, module_id: str, new_index: int) -> CourseModule:
    principal.require(Capability.manage_courses)

    def operation() -> CourseModule:
        module = _load(db, CourseModule, module_id, "Module")
        course = _load(db, Course, module.course_id, "Course", lock=True)

        siblings = _module_siblings(db, course.id)
        ordered = _moved(siblings, module, new_index)

        if [s.id for s in ordered] != [s.id for s in siblings]:
            _touch(db, course)
            _renumber(db, ordered)

        return module

    return run_atomic(db, operation, "reorder-module")


def delete_module(db: Session, principal: Principal, module_id: str):
    """Delete a module with its lessons and their completions, then close the gap."""
    principal.require(Capability.manage_courses)

    def operation():
        module = _load(db, CourseModule, module_id, "Module")
        course = _load(db, Course, module.course_id, "Course", lock=True)
        _touch(db, course)

        db.delete(module)
        db.flush()

        _renumber(db, _module_siblings(db, course.id))
        recompute_course_progress(db, course.id)

    run_atomic(db, operation, "delete-module")
    logger.info(f"Module {module_id} deleted by {principal.user_id}")


# Lessons

def create_lesson(db: Session, principal: Principal, payload: CourseLessonCreate) -> CourseLesson:
    principal.require(Capability.manage_courses)

    def operation() -> CourseLesson:
        module = _load(db, CourseModule, payload.module_id, "Module", lock=True)
        _touch(db, module)

        lesson = CourseLesson(
            module_id=module.id,
            title=payload.title,
            content_type=payload.content_type.value,
            description=payload.description,
            content=payload.content,
            video_url=payload.video_url,
            duration=payload.duration,
            is_published=payload.is_published,
            order_index=_next_index(db, CourseLesson.order_index, CourseLesson.module_id, module.id),
        )
        db.add(lesson)
        db.flush()

        if lesson.is_published and module.is_published:
            recompute_course_progress(db, module.course_id)

        return lesson

    return run_atomic(db, operation, "create-lesson")


def update_lesson(db: Session, principal: Principal, lesson_id: str, payload: CourseLessonUpdate) -> CourseLesson:
    principal.require(Capability.manage_courses)

    def operation() -> CourseLesson:
        lesson = _load(db, CourseLesson, lesson_id, "Lesson")
        module = _load(db, CourseModule, lesson.module_id, "Module", lock=True)
        was_published = lesson.is_published

        _apply_update(lesson, payload)
        db.flush()

        if lesson.is_published != was_published:
            _touch(db, module)
            logger.info(f"Lesson {lesson.id} {'published' if lesson.is_published else 'unpublished'}")
            recompute_course_progress(db, module.course_id)

        return lesson

    return run_atomic(db, operation, "update-lesson")


def reorder_lesson(db: Session, principal: Principal, lesson_id: str, new_index: int) -> CourseLesson:
    principal.require(Capability.manage_courses)

    def operation() -> CourseLesson:
        lesson = _load(db, CourseLesson, lesson_id, "Lesson")
        module = _load(db, CourseModule, lesson.module_id, "Module", lock=True)

        siblings = _lesson_siblings(db, module.id)
        ordered = _moved(siblings, lesson, new_index)

        if [s.id for s in ordered] != [s.id for s in siblings]:
            _touch(db, module)
            _renumber(db, ordered)

        return lesson

    return run_atomic(db, operation, "reorder-lesson")


def delete_lesson(db: Session, principal: Principal, lesson_id: str):
    principal.require(Capability.manage_courses)

    def operation():
        lesson = _load(db, CourseLesson, lesson_id, "Lesson")
        module = _load(db, CourseModule, lesson.module_id, "Module", lock=True)
        _touch(db, module)

        db.delete(lesson)
        db.flush()

        _renumber(db, _lesson_siblings(db, module.id))
        recompute_course_progress(db, module.course_id)

    run_atomic(db, operation, "delete-lesson")
    logger.info(f"Lesson {lesson_id} deleted by {principal.user_id}")
