from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.orm import Session
from academy_backend.interface.base import BaseEntityGet, EntityInterface, ListQuery
from academy_backend.model.course import Course

class CourseCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    short_description: Optional[str] = Field(None, max_length=500)
    category: str = Field("General", max_length=100)
    level: str = Field("Beginner", max_length=50)
    duration: Optional[str] = Field(None, max_length=50)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    is_free: bool = False
    is_premium: bool = False
    is_published: bool = False
    video_url: Optional[str] = Field(None, max_length=500)
    thumbnail_url: Optional[str] = Field(None, max_length=500)

    @field_validator('title')
    @classmethod
    def validate_title(cls, value):
        if not value.strip():
            raise ValueError('Title cannot be empty or only whitespace')
        return value.strip()

class CourseGet(BaseEntityGet):
    id: str
    title: str
    description: str = ""
    short_description: Optional[str] = None
    category: str
    level: str
    duration: Optional[str] = None
    price: Optional[Decimal] = None
    is_free: bool
    is_premium: bool
    is_published: bool
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    student_count: int = 0

    @property
    def requires_payment(self) -> bool:
        # is_free wins whenever both pricing fields are set
        return not self.is_free

    model_config = ConfigDict(from_attributes=True)

class CourseList(BaseModel):
    id: str
    title: str
    short_description: Optional[str] = None
    category: str
    level: str
    price: Optional[Decimal] = None
    is_free: bool
    is_premium: bool
    is_published: bool
    thumbnail_url: Optional[str] = None
    student_count: int = 0

    model_config = ConfigDict(from_attributes=True)

class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    short_description: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = Field(None, max_length=100)
    level: Optional[str] = Field(None, max_length=50)
    duration: Optional[str] = Field(None, max_length=50)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    is_free: Optional[bool] = None
    is_premium: Optional[bool] = None
    is_published: Optional[bool] = None
    video_url: Optional[str] = Field(None, max_length=500)
    thumbnail_url: Optional[str] = Field(None, max_length=500)

class CourseQuery(ListQuery):
    title: Optional[str] = None
    category: Optional[str] = None
    level: Optional[str] = None
    is_free: Optional[bool] = None
    is_premium: Optional[bool] = None
    is_published: Optional[bool] = None

def course_search(db: Session, query, params: Optional[CourseQuery]):
    if params.title != None:
        query = query.filter(Course.title.ilike(f"%{params.title}%"))
    if params.category != None:
        query = query.filter(Course.category == params.category)
    if params.level != None:
        query = query.filter(Course.level == params.level)
    if params.is_free != None:
        query = query.filter(Course.is_free == params.is_free)
    if params.is_premium != None:
        query = query.filter(Course.is_premium == params.is_premium)
    if params.is_published != None:
        query = query.filter(Course.is_published == params.is_published)
    return query.order_by(Course.created_at.desc(), Course.id)

class CourseInterface(EntityInterface):
    create = CourseCreate
    get = CourseGet
    list = CourseList
    update = CourseUpdate
    query = CourseQuery
    search = course_search
    endpoint = "courses"
    model = Course
