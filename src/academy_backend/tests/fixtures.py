"""
Row factories for tests. Every helper commits, like a finished request would.
"""

import uuid
from decimal import Decimal
from typing import List, Sequence, Tuple

from academy_backend.model import Course, CourseLesson, CourseModule, Enrollment, Purchase, User


def make_user(db, level="member", premium=False, is_admin=False, email=None) -> User:
    user = User(
        email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
        given_name="Test",
        family_name="User",
        is_premium=premium,
        is_admin=is_admin,
        permission_level=level,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_course(db, title="Course", is_free=False, price="49.00", is_published=True, is_premium=False) -> Course:
    course = Course(
        title=title,
        description=f"{title} description",
        is_free=is_free,
        price=Decimal(price) if price is not None else None,
        is_published=is_published,
        is_premium=is_premium,
    )
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def make_module(db, course, published=True, title=None) -> CourseModule:
    index = db.query(CourseModule).filter(CourseModule.course_id == course.id).count()
    module = CourseModule(
        course_id=course.id,
        title=title or f"Module {index}",
        order_index=index,
        is_published=published,
    )
    db.add(module)
    db.commit()
    db.refresh(module)
    return module


def make_lesson(db, module, published=True, title=None, content_type="text") -> CourseLesson:
    index = db.query(CourseLesson).filter(CourseLesson.module_id == module.id).count()
    lesson = CourseLesson(
        module_id=module.id,
        title=title or f"Lesson {index}",
        content_type=content_type,
        content="Lorem ipsum",
        order_index=index,
        is_published=published,
    )
    db.add(lesson)
    db.commit()
    db.refresh(lesson)
    return lesson


def make_purchase(db, user, course, amount="49.00") -> Purchase:
    purchase = Purchase(user_id=user.id, course_id=course.id, amount=Decimal(amount))
    db.add(purchase)
    db.commit()
    db.refresh(purchase)
    return purchase


def make_enrollment(db, user, course) -> Enrollment:
    enrollment = Enrollment(user_id=user.id, course_id=course.id, progress=0, completed=False)
    db.add(enrollment)
    db.commit()
    db.refresh(enrollment)
    return enrollment


def build_course(db, layout: Sequence[Tuple[bool, Sequence[bool]]], **course_kwargs) -> Tuple[Course, List[CourseModule], List[CourseLesson]]:
    """Create a course from ``[(module_published, [lesson_published, ...]), ...]``."""
    course = make_course(db, **course_kwargs)
    modules, lessons = [], []

    for module_published, lesson_flags in layout:
        module = make_module(db, course, published=module_published)
        modules.append(module)
        for lesson_published in lesson_flags:
            lessons.append(make_lesson(db, module, published=lesson_published))

    return course, modules, lessons
