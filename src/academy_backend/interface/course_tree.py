"""
Course tree DTOs.

The raw tree carries every module and lesson regardless of publish state.
Filtering by access tier returns a copy; ``is_draft`` marks content that only
admin preview can see.
"""

from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from academy_backend.interface.course_lessons import ContentType
from academy_backend.interface.courses import CourseGet
from academy_backend.interface.entitlements import AccessTier

class LessonNode(BaseModel):
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
    is_draft: bool = False
    is_completed: Optional[bool] = None

    model_config = ConfigDict(from_attributes=True)

class ModuleNode(BaseModel):
    id: str
    course_id: str
    title: str
    description: Optional[str] = None
    order_index: int
    is_published: bool
    is_draft: bool = False
    lessons: List[LessonNode] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

class CourseTree(BaseModel):
    course: CourseGet
    modules: List[ModuleNode] = Field(default_factory=list)

    def module_ids(self) -> List[str]:
        return [m.id for m in self.modules]

    def lesson_ids(self) -> List[str]:
        return [l.id for m in self.modules for l in m.lessons]

class FilteredCourseTree(CourseTree):
    access_tier: AccessTier
