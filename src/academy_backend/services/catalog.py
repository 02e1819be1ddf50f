"""
Course catalog reads. Unpublished courses are listed for course admins only.
"""

from typing import List, Tuple
from sqlalchemy.orm import Session

from academy_backend.errors import NotFound
from academy_backend.interface.base import paginate
from academy_backend.interface.courses import CourseInterface, CourseQuery
from academy_backend.model.course import Course
from academy_backend.permissions.principal import Capability, Principal
from academy_backend.services.entitlements import get_course_or_throw


def list_courses(db: Session, principal: Principal, params: CourseQuery) -> Tuple[List[Course], int]:
    if not principal.has(Capability.manage_courses):
        params = params.model_copy(update={"is_published": True})

    query = CourseInterface.search(db, db.query(Course), params)
    return paginate(query, params)


def get_catalog_course(db: Session, principal: Principal, course_id: str) -> Course:
    course = get_course_or_throw(db, course_id)

    if not course.is_published and not principal.has(Capability.manage_courses):
        raise NotFound("Course", course_id)

    return course
