from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from academy_backend.interface.courses import CourseList

class EnrollmentGet(BaseModel):
    id: str
    user_id: str
    course_id: str
    progress: int = Field(ge=0, le=100)
    completed: bool
    enrolled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class EnrollmentList(EnrollmentGet):
    course: Optional[CourseList] = None

class ModuleProgress(BaseModel):
    module_id: str
    title: str
    completed: int
    total: int
    progress: int = Field(ge=0, le=100)

class EnrollmentProgressGet(EnrollmentGet):
    completed_lessons: int = 0
    total_lessons: int = 0
    completed_lesson_ids: List[str] = Field(default_factory=list)
    modules: List[ModuleProgress] = Field(default_factory=list)

class PurchaseGet(BaseModel):
    id: str
    user_id: str
    course_id: str
    amount: Decimal
    purchased_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class PurchaseCompletedEvent(BaseModel):
    """Event reported by the payment collaborator once a payment is captured."""
    user_id: str = Field(min_length=1)
    course_id: str = Field(min_length=1)
    amount: Decimal = Field(max_digits=10, decimal_places=2)
