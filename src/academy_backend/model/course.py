import uuid
from sqlalchemy import (
    BigInteger, Boolean, CheckConstraint, Column, DateTime, Enum,
    ForeignKey, Integer, JSON, Numeric, String, Text, UniqueConstraint, func
)
from sqlalchemy.orm import relationship

from .base import Base

CONTENT_TYPES = ('text', 'video', 'quiz')


def _uuid() -> str:
    return str(uuid.uuid4())


class Course(Base):
    __tablename__ = 'course'

    id = Column(String(36), primary_key=True, default=_uuid)
    version = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    short_description = Column(String(500))
    category = Column(String(100), nullable=False, default="General")
    level = Column(String(50), nullable=False, default="Beginner")
    duration = Column(String(50))
    price = Column(Numeric(10, 2))
    is_free = Column(Boolean, nullable=False, default=False)
    # Catalog flag only; premium members are entitled to every course
    is_premium = Column(Boolean, nullable=False, default=False)
    is_published = Column(Boolean, nullable=False, default=False)
    video_url = Column(String(500))
    thumbnail_url = Column(String(500))
    student_count = Column(Integer, nullable=False, default=0)

    # Relationships
    modules = relationship('CourseModule', back_populates='course', order_by='CourseModule.order_index', cascade='all, delete-orphan')
    enrollments = relationship('Enrollment', back_populates='course', cascade='all, delete-orphan')
    purchases = relationship('Purchase', back_populates='course', cascade='all, delete-orphan')

    __mapper_args__ = {"version_id_col": version}


class CourseModule(Base):
    __tablename__ = 'course_module'
    __table_args__ = (
        UniqueConstraint('course_id', 'order_index', name='course_module_order_key'),
        CheckConstraint('order_index >= 0', name='ck_course_module_order_index'),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    version = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    course_id = Column(ForeignKey('course.id', ondelete='CASCADE'), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    order_index = Column(Integer, nullable=False)
    is_published = Column(Boolean, nullable=False, default=False)

    # Relationships
    course = relationship('Course', back_populates='modules')
    lessons = relationship('CourseLesson', back_populates='module', order_by='CourseLesson.order_index', cascade='all, delete-orphan')

    __mapper_args__ = {"version_id_col": version}


class CourseLesson(Base):
    __tablename__ = 'course_lesson'
    __table_args__ = (
        UniqueConstraint('module_id', 'order_index', name='course_lesson_order_key'),
        CheckConstraint('order_index >= 0', name='ck_course_lesson_order_index'),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    module_id = Column(ForeignKey('course_module.id', ondelete='CASCADE'), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    content = Column(Text)
    content_type = Column(Enum(*CONTENT_TYPES, name='lesson_content_type', native_enum=False), nullable=False, default='text')
    order_index = Column(Integer, nullable=False)
    is_published = Column(Boolean, nullable=False, default=False)
    video_url = Column(String(500))
    duration = Column(Integer)  # minutes
    content_blocks = Column(JSON)

    # Relationships
    module = relationship('CourseModule', back_populates='lessons')
    completions = relationship('LessonCompletion', back_populates='lesson', cascade='all, delete-orphan')


class Enrollment(Base):
    __tablename__ = 'enrollment'
    __table_args__ = (
        UniqueConstraint('user_id', 'course_id', name='enrollment_user_course_key'),
        CheckConstraint('progress >= 0 AND progress <= 100', name='ck_enrollment_progress_range'),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    version = Column(BigInteger, nullable=False, default=0)
    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    course_id = Column(ForeignKey('course.id', ondelete='CASCADE'), nullable=False, index=True)
    progress = Column(Integer, nullable=False, default=0)
    completed = Column(Boolean, nullable=False, default=False)
    enrolled_at = Column(DateTime(True), nullable=False, server_default=func.now())
    completed_at = Column(DateTime(True))

    # Relationships
    user = relationship('User', back_populates='enrollments')
    course = relationship('Course', back_populates='enrollments')

    __mapper_args__ = {"version_id_col": version}


class Purchase(Base):
    __tablename__ = 'purchase'
    __table_args__ = (
        UniqueConstraint('user_id', 'course_id', name='purchase_user_course_key'),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    course_id = Column(ForeignKey('course.id', ondelete='CASCADE'), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    purchased_at = Column(DateTime(True), nullable=False, server_default=func.now())

    # Relationships
    user = relationship('User', back_populates='purchases')
    course = relationship('Course', back_populates='purchases')


class LessonCompletion(Base):
    __tablename__ = 'lesson_completion'
    __table_args__ = (
        UniqueConstraint('user_id', 'lesson_id', name='lesson_completion_user_lesson_key'),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    lesson_id = Column(ForeignKey('course_lesson.id', ondelete='CASCADE'), nullable=False, index=True)
    completed_at = Column(DateTime(True), nullable=False, server_default=func.now())

    # Relationships
    user = relationship('User', back_populates='lesson_completions')
    lesson = relationship('CourseLesson', back_populates='completions')
