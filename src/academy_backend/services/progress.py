"""
Progress tracking over the course -> module -> lesson tree.

Progress is always recomputed from the current published lesson set:

    progress = round_half_up(100 * completed_published / total_published)

and is 0 for a course without published lessons. ``completed`` is derived
from ``progress == 100`` and never written independently.
"""

import logging
from datetime import datetime, timezone
from typing import List, Tuple
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from academy_backend.database import run_atomic, supports_row_locks
from academy_backend.errors import AccessDenied, EnrollmentRequired, InvariantViolation, NotFound
from academy_backend.interface.enrollments import EnrollmentProgressGet, ModuleProgress
from academy_backend.interface.entitlements import AccessTier
from academy_backend.model.course import Course, CourseLesson, CourseModule, Enrollment, LessonCompletion
from academy_backend.permissions.principal import Principal
from academy_backend.services.entitlements import entitlement_for_course, get_course_or_throw
from academy_backend.services.visibility import published_lesson_ids_select
from academy_backend.settings import settings

logger = logging.getLogger(__name__)


def compute_progress(completed: int, total: int) -> int:
    if total == 0:
        return 0

    if completed < 0 or total < 0 or completed > total:
        logger.error(f"Refusing progress for {completed} completed of {total} lessons")
        raise InvariantViolation(f"completed lessons ({completed}) outside 0..{total}")

    # integer half-up rounding, 1/3 -> 33, 1/2 -> 50, 2/3 -> 67
    progress = (200 * completed + total) // (2 * total)

    if not 0 <= progress <= 100:
        logger.error(f"Computed progress {progress} out of range")
        raise InvariantViolation(f"progress {progress} outside 0..100")

    return progress


def count_lessons(db: Session, user_id: str, course_id: str) -> Tuple[int, int]:
    """Return (completed_published, total_published) for one user and course."""

    published = published_lesson_ids_select(course_id)

    total = db.scalar(select(func.count()).select_from(published.subquery()))
    completed = db.scalar(
        select(func.count(LessonCompletion.id)).where(
            LessonCompletion.user_id == user_id,
            LessonCompletion.lesson_id.in_(published),
        )
    )

    return completed or 0, total or 0


def apply_progress(enrollment: Enrollment, progress: int) -> Enrollment:
    if not 0 <= progress <= 100:
        raise InvariantViolation(f"progress {progress} outside 0..100")

    if enrollment.progress != progress:
        enrollment.progress = progress

    completed = progress == 100

    if completed and not enrollment.completed:
        enrollment.completed = True
        enrollment.completed_at = datetime.now(timezone.utc)
    elif not completed and enrollment.completed:
        enrollment.completed = False
        enrollment.completed_at = None

    return enrollment


def recompute_enrollment(db: Session, enrollment: Enrollment) -> Enrollment:
    completed, total = count_lessons(db, enrollment.user_id, enrollment.course_id)
    apply_progress(enrollment, compute_progress(completed, total))
    db.flush()
    return enrollment


def recompute_course_progress(db: Session, course_id: str) -> int:
    """Recompute every enrollment of a course. Must run inside the caller's transaction."""

    enrollments = db.query(Enrollment).filter(Enrollment.course_id == course_id).all()

    for enrollment in enrollments:
        recompute_enrollment(db, enrollment)

    if enrollments:
        logger.debug(f"Recomputed progress of {len(enrollments)} enrollment(s) in course {course_id}")

    return len(enrollments)


def find_enrollment(db: Session, user_id: str, course_id: str, lock: bool = False) -> Enrollment | None:
    query = db.query(Enrollment).filter(
        Enrollment.user_id == user_id,
        Enrollment.course_id == course_id
    )

    if lock and supports_row_locks(db):
        query = query.with_for_update()

    return query.first()


def create_enrollment(db: Session, user_id: str, course: Course) -> Enrollment:
    """Insert an enrollment and bump the course's student count.

    A concurrent insert for the same pair surfaces as IntegrityError at flush
    and is retried by ``run_atomic``, whose next attempt finds the winner's row.
    """
    enrollment = Enrollment(
        user_id=user_id,
        course_id=course.id,
        progress=0,
        completed=False,
        enrolled_at=datetime.now(timezone.utc),
    )
    db.add(enrollment)
    db.flush()

    db.query(Course).filter(Course.id == course.id).update(
        {Course.student_count: Course.student_count + 1},
        synchronize_session=False
    )

    logger.info(f"User {user_id} enrolled in course {course.id}")
    return recompute_enrollment(db, enrollment)


def _bump_version(enrollment: Enrollment):
    """Force an UPDATE so concurrent writers of one enrollment collide on its version."""
    flag_modified(enrollment, "progress")


def _ensure_completion(db: Session, user_id: str, lesson_id: str) -> bool:
    exists = db.query(LessonCompletion.id).filter(
        LessonCompletion.user_id == user_id,
        LessonCompletion.lesson_id == lesson_id
    ).first()

    if exists is not None:
        return False

    db.add(LessonCompletion(
        user_id=user_id,
        lesson_id=lesson_id,
        completed_at=datetime.now(timezone.utc),
    ))
    db.flush()
    return True


def record_completion(db: Session, principal: Principal, lesson_id: str) -> Enrollment:
    """Mark a lesson complete for the caller and return the recomputed enrollment.

    Re-marking a completed lesson is a no-op. The enrollment is created on the
    first completion when the caller is entitled to the course and
    ``AUTO_ENROLL_ON_COMPLETION`` is enabled.
    """
    user_id = principal.get_user_id_or_throw()

    def operation() -> Enrollment:
        lesson = db.query(CourseLesson).filter(CourseLesson.id == lesson_id).first()

        if lesson is None:
            raise NotFound("Lesson", lesson_id)

        module = lesson.module
        course = module.course

        tier = entitlement_for_course(db, principal, course)

        if tier == AccessTier.no_access:
            raise AccessDenied(f"No access to course {course.id}")

        if not (lesson.is_published and module.is_published):
            raise AccessDenied(f"Lesson {lesson.id} is not published")

        enrollment = find_enrollment(db, user_id, course.id, lock=True)

        if enrollment is None:
            if not settings.AUTO_ENROLL_ON_COMPLETION:
                raise EnrollmentRequired(f"Enroll in course {course.id} before completing lessons")
            enrollment = create_enrollment(db, user_id, course)

        if _ensure_completion(db, user_id, lesson.id):
            logger.info(f"User {user_id} completed lesson {lesson.id}")

        _bump_version(enrollment)
        return recompute_enrollment(db, enrollment)

    return run_atomic(db, operation, "complete-lesson")


def remove_completion(db: Session, principal: Principal, lesson_id: str) -> Enrollment:
    """Unmark a completed lesson and return the recomputed enrollment."""
    user_id = principal.get_user_id_or_throw()

    def operation() -> Enrollment:
        lesson = db.query(CourseLesson).filter(CourseLesson.id == lesson_id).first()

        if lesson is None:
            raise NotFound("Lesson", lesson_id)

        module = lesson.module
        course = module.course

        if entitlement_for_course(db, principal, course) == AccessTier.no_access:
            raise AccessDenied(f"No access to course {course.id}")

        if not (lesson.is_published and module.is_published):
            raise AccessDenied(f"Lesson {lesson.id} is not published")

        enrollment = find_enrollment(db, user_id, course.id, lock=True)

        if enrollment is None:
            raise EnrollmentRequired(f"Not enrolled in course {course.id}")

        removed = db.query(LessonCompletion).filter(
            LessonCompletion.user_id == user_id,
            LessonCompletion.lesson_id == lesson.id
        ).delete(synchronize_session=False)

        if removed:
            logger.info(f"User {user_id} unmarked lesson {lesson.id}")

        _bump_version(enrollment)
        return recompute_enrollment(db, enrollment)

    return run_atomic(db, operation, "uncomplete-lesson")


def module_progress(db: Session, user_id: str, course_id: str) -> List[ModuleProgress]:
    modules = db.query(CourseModule).filter(
        CourseModule.course_id == course_id,
        CourseModule.is_published == True
    ).order_by(CourseModule.order_index).all()

    result = []
    for module in modules:
        lesson_ids = [l.id for l in module.lessons if l.is_published]

        completed = 0
        if lesson_ids:
            completed = db.scalar(
                select(func.count(LessonCompletion.id)).where(
                    LessonCompletion.user_id == user_id,
                    LessonCompletion.lesson_id.in_(lesson_ids),
                )
            ) or 0

        result.append(ModuleProgress(
            module_id=module.id,
            title=module.title,
            completed=completed,
            total=len(lesson_ids),
            progress=compute_progress(completed, len(lesson_ids)),
        ))

    return result


def get_enrollment_progress(db: Session, principal: Principal, course_id: str) -> EnrollmentProgressGet:
    user_id = principal.get_user_id_or_throw()

    def operation() -> Enrollment:
        get_course_or_throw(db, course_id)

        enrollment = find_enrollment(db, user_id, course_id)

        if enrollment is None:
            raise EnrollmentRequired(f"Not enrolled in course {course_id}")

        return recompute_enrollment(db, enrollment)

    enrollment = run_atomic(db, operation, "read-progress")

    published = published_lesson_ids_select(course_id)
    completed_ids = list(db.scalars(
        select(LessonCompletion.lesson_id).where(
            LessonCompletion.user_id == user_id,
            LessonCompletion.lesson_id.in_(published),
        )
    ).all())
    modules = module_progress(db, user_id, course_id)

    return EnrollmentProgressGet(
        id=enrollment.id,
        user_id=enrollment.user_id,
        course_id=enrollment.course_id,
        progress=enrollment.progress,
        completed=enrollment.completed,
        enrolled_at=enrollment.enrolled_at,
        completed_at=enrollment.completed_at,
        completed_lessons=len(completed_ids),
        total_lessons=sum(m.total for m in modules),
        completed_lesson_ids=completed_ids,
        modules=modules,
    )


def list_enrollments(db: Session, principal: Principal) -> List[Enrollment]:
    user_id = principal.get_user_id_or_throw()

    def operation() -> List[Enrollment]:
        enrollments = db.query(Enrollment).filter(
            Enrollment.user_id == user_id
        ).order_by(Enrollment.enrolled_at.desc()).all()

        for enrollment in enrollments:
            recompute_enrollment(db, enrollment)

        return enrollments

    return run_atomic(db, operation, "list-enrollments")
