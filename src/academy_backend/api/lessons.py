from typing import Annotated
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from academy_backend.database import get_db
from academy_backend.interface.enrollments import EnrollmentGet
from academy_backend.permissions.auth import get_authenticated_principal
from academy_backend.permissions.principal import Principal
from academy_backend.services.progress import record_completion, remove_completion


lesson_router = APIRouter()

@lesson_router.post("/{lesson_id}/complete", response_model=EnrollmentGet)
def complete_lesson(
    principal: Annotated[Principal, Depends(get_authenticated_principal)],
    lesson_id: str,
    db: Session = Depends(get_db)
):
    """Mark a lesson complete and return the caller's recomputed enrollment."""
    return record_completion(db, principal, lesson_id)

@lesson_router.delete("/{lesson_id}/complete", response_model=EnrollmentGet)
def uncomplete_lesson(
    principal: Annotated[Principal, Depends(get_authenticated_principal)],
    lesson_id: str,
    db: Session = Depends(get_db)
):
    return remove_completion(db, principal, lesson_id)
