"""
Course structure administration. Every route requires ManageCourses.
"""

from typing import Annotated, List
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from academy_backend.database import get_db
from academy_backend.interface.course_lessons import CourseLessonCreate, CourseLessonGet, CourseLessonUpdate
from academy_backend.interface.course_modules import CourseModuleCreate, CourseModuleGet, CourseModuleUpdate, ReorderRequest
from academy_backend.interface.courses import CourseCreate, CourseGet, CourseList, CourseQuery, CourseUpdate
from academy_backend.permissions.auth import get_authenticated_principal
from academy_backend.permissions.principal import Capability, Principal
from academy_backend.services import structure
from academy_backend.services.catalog import list_courses

admin_router = APIRouter()

# Courses

@admin_router.get("/courses", response_model=List[CourseList])
def admin_list_courses(
    principal: Annotated[Principal, Depends(get_authenticated_principal)],
    response: Response,
    params: CourseQuery = Depends(),
    db: Session = Depends(get_db)
):
    """All courses, unpublished ones included."""
    principal.require(Capability.manage_courses)

    courses, total = list_courses(db, principal, params)
    response.headers["X-Total-Count"] = str(total)
    return courses

@admin_router.post("/courses", response_model=CourseGet, status_code=201)
def create_course(principal: Annotated[Principal, Depends(get_authenticated_principal)], payload: CourseCreate, db: Session = Depends(get_db)):
    return structure.create_course(db, principal, payload)

@admin_router.patch("/courses/{course_id}", response_model=CourseGet)
def update_course(principal: Annotated[Principal, Depends(get_authenticated_principal)], course_id: str, payload: CourseUpdate, db: Session = Depends(get_db)):
    return structure.update_course(db, principal, course_id, payload)

@admin_router.delete("/courses/{course_id}", response_model=dict)
def delete_course(principal: Annotated[Principal, Depends(get_authenticated_principal)], course_id: str, db: Session = Depends(get_db)):
    structure.delete_course(db, principal, course_id)
    return {"ok": True}

# Modules

@admin_router.post("/modules", response_model=CourseModuleGet, status_code=201)
def create_module(principal: Annotated[Principal, Depends(get_authenticated_principal)], payload: CourseModuleCreate, db: Session = Depends(get_db)):
    return structure.create_module(db, principal, payload)

@admin_router.patch("/modules/{module_id}", response_model=CourseModuleGet)
def update_module(principal: Annotated[Principal, Depends(get_authenticated_principal)], module_id: str, payload: CourseModuleUpdate, db: Session = Depends(get_db)):
    return structure.update_module(db, principal, module_id, payload)

@admin_router.put("/modules/{module_id}/reorder", response_model=CourseModuleGet)
def reorder_module(principal: Annotated[Principal, Depends(get_authenticated_principal)], module_id: str, payload: ReorderRequest, db: Session = Depends(get_db)):
    return structure.reorder_module(db, principal, module_id, payload.new_index)

@admin_router.delete("/modules/{module_id}", response_model=dict)
def delete_module(principal: Annotated[Principal, Depends(get_authenticated_principal)], module_id: str, db: Session = Depends(get_db)):
    structure.delete_module(db, principal, module_id)
    return {"ok": True}

# Lessons

@admin_router.post("/lessons", response_model=CourseLessonGet, status_code=201)
def create_lesson(principal: Annotated[Principal, Depends(get_authenticated_principal)], payload: CourseLessonCreate, db: Session = Depends(get_db)):
    return structure.create_lesson(db, principal, payload)

@admin_router.patch("/lessons/{lesson_id}", response_model=CourseLessonGet)
def update_lesson(principal: Annotated[Principal, Depends(get_authenticated_principal)], lesson_id: str, payload: CourseLessonUpdate, db: Session = Depends(get_db)):
    return structure.update_lesson(db, principal, lesson_id, payload)

@admin_router.put("/lessons/{lesson_id}/reorder", response_model=CourseLessonGet)
def reorder_lesson(principal: Annotated[Principal, Depends(get_authenticated_principal)], lesson_id: str, payload: ReorderRequest, db: Session = Depends(get_db)):
    return structure.reorder_lesson(db, principal, lesson_id, payload.new_index)

@admin_router.delete("/lessons/{lesson_id}", response_model=dict)
def delete_lesson(principal: Annotated[Principal, Depends(get_authenticated_principal)], lesson_id: str, db: Session = Depends(get_db)):
    structure.delete_lesson(db, principal, lesson_id)
    return {"ok": True}
