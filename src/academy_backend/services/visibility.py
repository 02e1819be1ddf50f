"""
Course tree assembly and publish-state filtering.
"""

import logging
from typing import Iterable, Set
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from academy_backend.errors import NotFound
from academy_backend.interface.course_tree import CourseTree, FilteredCourseTree, LessonNode, ModuleNode
from academy_backend.interface.courses import CourseGet
from academy_backend.interface.entitlements import AccessTier
from academy_backend.model.course import Course, CourseLesson, CourseModule, LessonCompletion
from academy_backend.permissions.principal import Principal
from academy_backend.services.entitlements import entitlement_for_course, get_course_or_throw

logger = logging.getLogger(__name__)


def published_lesson_ids_select(course_id: str):
    """Lessons counted by progress: published lessons inside published modules."""
    return (
        select(CourseLesson.id)
        .join(CourseModule, CourseLesson.module_id == CourseModule.id)
        .where(
            CourseModule.course_id == course_id,
            CourseModule.is_published == True,
            CourseLesson.is_published == True,
        )
    )


def build_course_tree(db: Session, course_id: str) -> CourseTree:
    """Unfiltered tree, drafts included and tagged."""

    course = (
        db.query(Course)
        .options(selectinload(Course.modules).selectinload(CourseModule.lessons))
        .filter(Course.id == course_id)
        .first()
    )

    if course is None:
        raise NotFound("Course", course_id)

    modules = []
    for module in course.modules:
        lessons = [
            LessonNode.model_validate(lesson).model_copy(
                update={"is_draft": not (lesson.is_published and module.is_published)}
            )
            for lesson in module.lessons
        ]
        node = ModuleNode(
            id=module.id,
            course_id=module.course_id,
            title=module.title,
            description=module.description,
            order_index=module.order_index,
            is_published=module.is_published,
            is_draft=not module.is_published,
            lessons=lessons,
        )
        modules.append(node)

    return CourseTree(course=CourseGet.model_validate(course), modules=modules)


def filter_tree(tree: CourseTree, tier: AccessTier) -> FilteredCourseTree:
    """Restrict ``tree`` to what ``tier`` may see. Does not touch the database.

    AdminPreview keeps everything, NoAccess keeps nothing, every other tier
    keeps published modules and their published lessons in order. A published
    module without published lessons is kept as an empty module.
    """
    if tier == AccessTier.admin_preview:
        return FilteredCourseTree(course=tree.course, modules=list(tree.modules), access_tier=tier)

    if tier == AccessTier.no_access:
        return FilteredCourseTree(course=tree.course, modules=[], access_tier=tier)

    modules = []
    for module in tree.modules:
        if not module.is_published:
            continue
        lessons = [lesson for lesson in module.lessons if lesson.is_published]
        modules.append(module.model_copy(update={"lessons": lessons}))

    return FilteredCourseTree(course=tree.course, modules=modules, access_tier=tier)


def completed_lesson_ids(db: Session, user_id: str, lesson_ids: Iterable[str]) -> Set[str]:
    lesson_ids = list(lesson_ids)

    if not lesson_ids:
        return set()

    return set(db.scalars(
        select(LessonCompletion.lesson_id).where(
            LessonCompletion.user_id == user_id,
            LessonCompletion.lesson_id.in_(lesson_ids),
        )
    ).all())


def mark_completed(tree: FilteredCourseTree, completed: Set[str]) -> FilteredCourseTree:
    modules = [
        module.model_copy(update={
            "lessons": [
                lesson.model_copy(update={"is_completed": lesson.id in completed})
                for lesson in module.lessons
            ]
        })
        for module in tree.modules
    ]
    return tree.model_copy(update={"modules": modules})


def get_course_tree(db: Session, principal: Principal, course_id: str) -> FilteredCourseTree:
    course = get_course_or_throw(db, course_id)
    tier = entitlement_for_course(db, principal, course)

    tree = filter_tree(build_course_tree(db, course_id), tier)
    logger.debug(f"Course tree {course_id} as {tier.value}: {len(tree.modules)} module(s)")

    if principal.is_anonymous or tier == AccessTier.no_access:
        return tree

    return mark_completed(tree, completed_lesson_ids(db, principal.user_id, tree.lesson_ids()))
