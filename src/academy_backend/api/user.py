from typing import Annotated, List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from academy_backend.database import get_db
from academy_backend.interface.enrollments import EnrollmentList, EnrollmentProgressGet
from academy_backend.interface.entitlements import CourseAccessGet
from academy_backend.interface.users import CurrentUserGet, UserGet
from academy_backend.permissions.auth import get_authenticated_principal, get_current_principal
from academy_backend.permissions.principal import Principal
from academy_backend.services.accounts import get_user_or_throw
from academy_backend.services.entitlements import get_course_access
from academy_backend.services.progress import get_enrollment_progress, list_enrollments

user_router = APIRouter()
auth_router = APIRouter()

@auth_router.get("/user", response_model=CurrentUserGet)
def get_current_user(
    principal: Annotated[Principal, Depends(get_authenticated_principal)],
    db: Session = Depends(get_db)
):
    """Get the current authenticated user and the capabilities resolved for it"""
    user = get_user_or_throw(db, principal.user_id)
    return CurrentUserGet(
        user=UserGet.model_validate(user),
        capabilities=sorted(principal.capabilities, key=lambda c: c.value)
    )

@user_router.get("/enrollments", response_model=List[EnrollmentList])
def get_enrollments(
    principal: Annotated[Principal, Depends(get_authenticated_principal)],
    db: Session = Depends(get_db)
):
    return list_enrollments(db, principal)

@user_router.get("/enrollments/{course_id}", response_model=EnrollmentProgressGet)
def get_enrollment(
    principal: Annotated[Principal, Depends(get_authenticated_principal)],
    course_id: str,
    db: Session = Depends(get_db)
):
    return get_enrollment_progress(db, principal, course_id)

@user_router.get("/course-access/{course_id}", response_model=CourseAccessGet)
def get_access(
    principal: Annotated[Principal, Depends(get_current_principal)],
    course_id: str,
    db: Session = Depends(get_db)
):
    return get_course_access(db, principal, course_id)
