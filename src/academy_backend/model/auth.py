import uuid
from sqlalchemy import Boolean, Column, DateTime, Enum, String, func
from sqlalchemy.orm import relationship

from .base import Base

PERMISSION_LEVELS = ('member', 'blog_admin', 'course_admin', 'forum_moderator', 'super_admin')


class User(Base):
    __tablename__ = 'user'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    email = Column(String(320), unique=True)
    given_name = Column(String(255))
    family_name = Column(String(255))

    is_premium = Column(Boolean, nullable=False, default=False, server_default='0')
    # Legacy admin flag, kept for compatibility with rows written before permission levels existed
    is_admin = Column(Boolean, nullable=False, default=False, server_default='0')
    # Null on legacy rows; resolved together with is_admin by the permission resolver
    permission_level = Column(Enum(*PERMISSION_LEVELS, name='permission_level', native_enum=False))

    # Relationships
    enrollments = relationship("Enrollment", back_populates="user", uselist=True, lazy="select", passive_deletes=True)
    purchases = relationship("Purchase", back_populates="user", uselist=True, lazy="select", passive_deletes=True)
    lesson_completions = relationship("LessonCompletion", back_populates="user", uselist=True, lazy="select", passive_deletes=True)
