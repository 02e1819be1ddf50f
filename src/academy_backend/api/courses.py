from typing import Annotated, List
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from academy_backend.database import get_db
from academy_backend.interface.course_tree import FilteredCourseTree
from academy_backend.interface.courses import CourseGet, CourseList, CourseQuery
from academy_backend.interface.enrollments import EnrollmentGet
from academy_backend.permissions.auth import get_authenticated_principal, get_current_principal
from academy_backend.permissions.principal import Principal
from academy_backend.services.catalog import get_catalog_course, list_courses
from academy_backend.services.enrollment import enroll
from academy_backend.services.visibility import get_course_tree

course_router = APIRouter()

def _list(principal: Principal, response: Response, params: CourseQuery, db: Session):
    courses, total = list_courses(db, principal, params)
    response.headers["X-Total-Count"] = str(total)
    return courses

@course_router.get("", response_model=List[CourseList])
def list_courses_route(
    principal: Annotated[Principal, Depends(get_current_principal)],
    response: Response,
    params: CourseQuery = Depends(),
    db: Session = Depends(get_db)
):
    return _list(principal, response, params, db)

@course_router.get("/free", response_model=List[CourseList])
def list_free_courses(
    principal: Annotated[Principal, Depends(get_current_principal)],
    response: Response,
    params: CourseQuery = Depends(),
    db: Session = Depends(get_db)
):
    return _list(principal, response, params.model_copy(update={"is_free": True}), db)

@course_router.get("/premium", response_model=List[CourseList])
def list_premium_courses(
    principal: Annotated[Principal, Depends(get_current_principal)],
    response: Response,
    params: CourseQuery = Depends(),
    db: Session = Depends(get_db)
):
    return _list(principal, response, params.model_copy(update={"is_premium": True}), db)

@course_router.get("/{course_id}", response_model=CourseGet)
def get_course(
    principal: Annotated[Principal, Depends(get_current_principal)],
    course_id: str,
    db: Session = Depends(get_db)
):
    return get_catalog_course(db, principal, course_id)

@course_router.get("/{course_id}/tree", response_model=FilteredCourseTree)
def get_course_tree_route(
    principal: Annotated[Principal, Depends(get_current_principal)],
    course_id: str,
    db: Session = Depends(get_db)
):
    """Modules and lessons of a course as visible to the caller."""
    return get_course_tree(db, principal, course_id)

@course_router.post("/{course_id}/enroll", response_model=EnrollmentGet)
def enroll_route(
    principal: Annotated[Principal, Depends(get_authenticated_principal)],
    course_id: str,
    db: Session = Depends(get_db)
):
    return enroll(db, principal, course_id)
