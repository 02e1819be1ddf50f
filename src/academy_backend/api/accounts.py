"""
Account administration routes, gated by ManageAccounts.
"""

from typing import Annotated, List
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from academy_backend.database import get_db
from academy_backend.interface.enrollments import EnrollmentGet
from academy_backend.interface.users import GrantCourseAccess, UserGet, UserList, UserPermissionsUpdate, UserQuery
from academy_backend.permissions.auth import get_authenticated_principal
from academy_backend.permissions.principal import Principal
from academy_backend.services.accounts import list_users, update_permissions
from academy_backend.services.enrollment import grant_course_access

accounts_router = APIRouter()

@accounts_router.get("", response_model=List[UserList])
def list_users_route(
    principal: Annotated[Principal, Depends(get_authenticated_principal)],
    response: Response,
    params: UserQuery = Depends(),
    db: Session = Depends(get_db)
):
    users, total = list_users(db, principal, params)
    response.headers["X-Total-Count"] = str(total)
    return users

@accounts_router.put("/{user_id}/permissions", response_model=UserGet)
def update_permissions_route(
    principal: Annotated[Principal, Depends(get_authenticated_principal)],
    user_id: str,
    payload: UserPermissionsUpdate,
    db: Session = Depends(get_db)
):
    return update_permissions(db, principal, user_id, payload)

@accounts_router.post("/{user_id}/grant-course", response_model=EnrollmentGet)
def grant_course_route(
    principal: Annotated[Principal, Depends(get_authenticated_principal)],
    user_id: str,
    payload: GrantCourseAccess,
    db: Session = Depends(get_db)
):
    return grant_course_access(db, principal, user_id, payload.course_id)
