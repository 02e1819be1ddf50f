from enum import Enum
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from academy_backend.interface.base import BaseEntityGet

class ContentType(str, Enum):
    text = "text"
    video = "video"
    quiz = "quiz"

class CourseLessonCreate(BaseModel):
    module_id: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=255)
    content_type: ContentType = ContentType.text
    description: Optional[str] = None
    content: Optional[str] = None
    video_url: Optional[str] = Field(None, max_length=500)
    duration: Optional[int] = Field(None, ge=0, description="Duration in minutes")
    is_published: bool = False

    @field_validator('title')
    @classmethod
    def validate_title(cls, value):
        if not value.strip():
            raise ValueError('Title cannot be empty or only whitespace')
        return value.strip()

class CourseLessonGet(BaseEntityGet):
    id: str
    module_id: str
    title: str
    description: Optional[str] = None
    content: Optional[str] = None
    content_type: ContentType
    order_index: int
    is_published: bool
    video_url: Optional[str] = None
    duration: Optional[int] = None
    content_blocks: Optional[List[Any]] = None

    model_config = ConfigDict(from_attributes=True)

class CourseLessonUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    content: Optional[str] = None
    content_type: Optional[ContentType] = None
    video_url: Optional[str] = Field(None, max_length=500)
    duration: Optional[int] = Field(None, ge=0)
    is_published: Optional[bool] = None
    content_blocks: Optional[List[Any]] = None
