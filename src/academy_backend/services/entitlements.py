"""
Entitlement resolution: which access tier a caller holds for a course.

Every content read and every progress write goes through
``entitlement_for_course``; no other module inspects premium, purchase or
admin flags on its own.
"""

import logging
from sqlalchemy.orm import Session

from academy_backend.errors import NotFound
from academy_backend.interface.entitlements import AccessTier, CourseAccessGet
from academy_backend.model.course import Course, Enrollment, Purchase
from academy_backend.permissions.principal import Capability, Principal

logger = logging.getLogger(__name__)


def get_course_or_throw(db: Session, course_id: str) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()

    if course is None:
        raise NotFound("Course", course_id)

    return course


def has_enrollment(db: Session, user_id: str, course_id: str) -> bool:
    return db.query(Enrollment.id).filter(
        Enrollment.user_id == user_id,
        Enrollment.course_id == course_id
    ).first() is not None


def has_purchase(db: Session, user_id: str, course_id: str) -> bool:
    return db.query(Purchase.id).filter(
        Purchase.user_id == user_id,
        Purchase.course_id == course_id
    ).first() is not None


def entitlement_for_course(db: Session, principal: Principal, course: Course) -> AccessTier:
    """First match wins: admin, enrollment, purchase, premium, free, none."""

    if principal.has(Capability.manage_courses):
        tier = AccessTier.admin_preview
    elif not principal.is_anonymous and has_enrollment(db, principal.user_id, course.id):
        tier = AccessTier.enrolled_access
    elif not principal.is_anonymous and has_purchase(db, principal.user_id, course.id):
        tier = AccessTier.purchased_access
    elif principal.is_premium:
        tier = AccessTier.premium_access
    elif course.is_free:
        # is_free wins over a price that may also be set
        tier = AccessTier.free_preview
    else:
        tier = AccessTier.no_access

    logger.debug(f"Entitlement of {principal.user_id or 'anonymous'} for course {course.id}: {tier.value}")
    return tier


def resolve_entitlement(db: Session, principal: Principal, course_id: str) -> AccessTier:
    return entitlement_for_course(db, principal, get_course_or_throw(db, course_id))


def get_course_access(db: Session, principal: Principal, course_id: str) -> CourseAccessGet:
    tier = resolve_entitlement(db, principal, course_id)
    return CourseAccessGet(course_id=course_id, access_tier=tier, has_access=tier.has_access)
