from .base import Base, metadata
from .auth import User, PERMISSION_LEVELS
from .course import (
    CONTENT_TYPES,
    Course,
    CourseModule,
    CourseLesson,
    Enrollment,
    Purchase,
    LessonCompletion,
)

# Import all models to ensure relationships are properly set up
from . import auth, course

__all__ = [
    'Base',
    'metadata',
    # Auth models
    'User',
    'PERMISSION_LEVELS',
    # Course structure
    'CONTENT_TYPES',
    'Course',
    'CourseModule',
    'CourseLesson',
    # Entitlement & progress
    'Enrollment',
    'Purchase',
    'LessonCompletion',
]
