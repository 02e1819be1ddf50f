"""
Explicit enrollment, purchase recording and admin course grants.
"""

import logging
from datetime import datetime, timezone
from typing import Tuple
from sqlalchemy.orm import Session

from academy_backend.database import run_atomic
from academy_backend.errors import Forbidden, InvalidRequest, NotFound
from academy_backend.interface.enrollments import PurchaseCompletedEvent
from academy_backend.interface.entitlements import AccessTier
from academy_backend.model.auth import User
from academy_backend.model.course import Enrollment, Purchase
from academy_backend.permissions.principal import Capability, Principal
from academy_backend.services.entitlements import entitlement_for_course, get_course_or_throw
from academy_backend.services.progress import create_enrollment, find_enrollment

logger = logging.getLogger(__name__)


def enroll(db: Session, principal: Principal, course_id: str) -> Enrollment:
    """Enroll the caller. Allowed for every tier except NoAccess; repeated calls return the existing row."""
    user_id = principal.get_user_id_or_throw()

    def operation() -> Enrollment:
        course = get_course_or_throw(db, course_id)

        tier = entitlement_for_course(db, principal, course)

        if tier == AccessTier.no_access:
            raise Forbidden(f"Course {course_id} requires a purchase or premium membership")

        enrollment = find_enrollment(db, user_id, course_id)

        if enrollment is not None:
            return enrollment

        return create_enrollment(db, user_id, course)

    return run_atomic(db, operation, "enroll")


def record_purchase(db: Session, event: PurchaseCompletedEvent) -> Tuple[Purchase, bool]:
    """Convert a purchase-completed event into a Purchase row.

    Returns ``(purchase, created)``. A repeated event for the same user and
    course returns the stored purchase unchanged. No enrollment is created.
    """
    if event.amount <= 0:
        raise InvalidRequest(f"Purchase amount must be positive, got {event.amount}")

    def operation() -> Tuple[Purchase, bool]:
        user = db.query(User).filter(User.id == event.user_id).first()

        if user is None:
            raise NotFound("User", event.user_id)

        course = get_course_or_throw(db, event.course_id)

        existing = db.query(Purchase).filter(
            Purchase.user_id == user.id,
            Purchase.course_id == course.id
        ).first()

        if existing is not None:
            logger.info(f"Purchase of course {course.id} by user {user.id} already recorded")
            return existing, False

        if course.is_free:
            logger.warning(f"Recording purchase of free course {course.id} by user {user.id}")

        purchase = Purchase(
            user_id=user.id,
            course_id=course.id,
            amount=event.amount,
            purchased_at=datetime.now(timezone.utc),
        )
        db.add(purchase)
        db.flush()

        logger.info(f"User {user.id} purchased course {course.id} for {event.amount}")
        return purchase, True

    return run_atomic(db, operation, "record-purchase")


def grant_course_access(db: Session, principal: Principal, user_id: str, course_id: str) -> Enrollment:
    """Enroll another user directly, bypassing entitlement. Requires ManageAccounts."""

    principal.require(Capability.manage_accounts)

    def operation() -> Enrollment:
        user = db.query(User).filter(User.id == user_id).first()

        if user is None:
            raise NotFound("User", user_id)

        course = get_course_or_throw(db, course_id)

        enrollment = find_enrollment(db, user.id, course.id)

        if enrollment is not None:
            return enrollment

        logger.info(f"{principal.user_id} granted course {course.id} to user {user.id}")
        return create_enrollment(db, user.id, course)

    return run_atomic(db, operation, "grant-course")
