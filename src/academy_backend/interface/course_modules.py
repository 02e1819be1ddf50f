from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from academy_backend.interface.base import BaseEntityGet

class CourseModuleCreate(BaseModel):
    course_id: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    is_published: bool = False

    @field_validator('title')
    @classmethod
    def validate_title(cls, value):
        if not value.strip():
            raise ValueError('Title cannot be empty or only whitespace')
        return value.strip()

class CourseModuleGet(BaseEntityGet):
    id: str
    course_id: str
    title: str
    description: Optional[str] = None
    order_index: int
    is_published: bool

    model_config = ConfigDict(from_attributes=True)

class CourseModuleUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_published: Optional[bool] = None

class ReorderRequest(BaseModel):
    # Range is checked against the current sibling count by the structure service
    new_index: int
