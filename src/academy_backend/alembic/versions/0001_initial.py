"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PERMISSION_LEVELS = ('member', 'blog_admin', 'course_admin', 'forum_moderator', 'super_admin')
CONTENT_TYPES = ('text', 'video', 'quiz')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'user',
        sa.Column('id', sa.String(36), primary_key=True),
        *_timestamps(),
        sa.Column('email', sa.String(320), unique=True),
        sa.Column('given_name', sa.String(255)),
        sa.Column('family_name', sa.String(255)),
        sa.Column('is_premium', sa.Boolean(), server_default='0', nullable=False),
        sa.Column('is_admin', sa.Boolean(), server_default='0', nullable=False),
        sa.Column('permission_level', sa.Enum(*PERMISSION_LEVELS, name='permission_level', native_enum=False)),
    )

    op.create_table(
        'course',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('version', sa.BigInteger(), nullable=False),
        *_timestamps(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('short_description', sa.String(500)),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('level', sa.String(50), nullable=False),
        sa.Column('duration', sa.String(50)),
        sa.Column('price', sa.Numeric(10, 2)),
        sa.Column('is_free', sa.Boolean(), nullable=False),
        sa.Column('is_premium', sa.Boolean(), nullable=False),
        sa.Column('is_published', sa.Boolean(), nullable=False),
        sa.Column('video_url', sa.String(500)),
        sa.Column('thumbnail_url', sa.String(500)),
        sa.Column('student_count', sa.Integer(), nullable=False),
    )

    op.create_table(
        'course_module',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('version', sa.BigInteger(), nullable=False),
        *_timestamps(),
        sa.Column('course_id', sa.String(36), sa.ForeignKey('course.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('is_published', sa.Boolean(), nullable=False),
        sa.UniqueConstraint('course_id', 'order_index', name='course_module_order_key'),
        sa.CheckConstraint('order_index >= 0', name='ck_course_module_order_index'),
    )
    op.create_index('ix_course_module_course_id', 'course_module', ['course_id'])

    op.create_table(
        'course_lesson',
        sa.Column('id', sa.String(36), primary_key=True),
        *_timestamps(),
        sa.Column('module_id', sa.String(36), sa.ForeignKey('course_module.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('content', sa.Text()),
        sa.Column('content_type', sa.Enum(*CONTENT_TYPES, name='lesson_content_type', native_enum=False), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('is_published', sa.Boolean(), nullable=False),
        sa.Column('video_url', sa.String(500)),
        sa.Column('duration', sa.Integer()),
        sa.Column('content_blocks', sa.JSON()),
        sa.UniqueConstraint('module_id', 'order_index', name='course_lesson_order_key'),
        sa.CheckConstraint('order_index >= 0', name='ck_course_lesson_order_index'),
    )
    op.create_index('ix_course_lesson_module_id', 'course_lesson', ['module_id'])

    op.create_table(
        'enrollment',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('version', sa.BigInteger(), nullable=False),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('course_id', sa.String(36), sa.ForeignKey('course.id', ondelete='CASCADE'), nullable=False),
        sa.Column('progress', sa.Integer(), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('enrolled_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True)),
        sa.UniqueConstraint('user_id', 'course_id', name='enrollment_user_course_key'),
        sa.CheckConstraint('progress >= 0 AND progress <= 100', name='ck_enrollment_progress_range'),
    )
    op.create_index('ix_enrollment_user_id', 'enrollment', ['user_id'])
    op.create_index('ix_enrollment_course_id', 'enrollment', ['course_id'])

    op.create_table(
        'purchase',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('course_id', sa.String(36), sa.ForeignKey('course.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('purchased_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('user_id', 'course_id', name='purchase_user_course_key'),
    )
    op.create_index('ix_purchase_user_id', 'purchase', ['user_id'])
    op.create_index('ix_purchase_course_id', 'purchase', ['course_id'])

    op.create_table(
        'lesson_completion',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lesson_id', sa.String(36), sa.ForeignKey('course_lesson.id', ondelete='CASCADE'), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('user_id', 'lesson_id', name='lesson_completion_user_lesson_key'),
    )
    op.create_index('ix_lesson_completion_user_id', 'lesson_completion', ['user_id'])
    op.create_index('ix_lesson_completion_lesson_id', 'lesson_completion', ['lesson_id'])


def downgrade() -> None:
    op.drop_table('lesson_completion')
    op.drop_table('purchase')
    op.drop_table('enrollment')
    op.drop_table('course_lesson')
    op.drop_table('course_module')
    op.drop_table('course')
    op.drop_table('user')
