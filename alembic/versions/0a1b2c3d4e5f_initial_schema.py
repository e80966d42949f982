"""initial_schema

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-09-14 10:00:00.000000

초기 스키마 — 부서/역할/직원(읽기 전용 디렉토리), 업무/증빙/검토 이력,
징계 경고, 성과 점수 스냅샷 테이블 생성.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '0a1b2c3d4e5f'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # departments / roles / users — 직원 디렉토리
    op.create_table(
        'departments',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'roles',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('level', sa.Integer(), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('role_id', UUID(as_uuid=True), sa.ForeignKey('roles.id'), nullable=False),
        sa.Column('department_id', UUID(as_uuid=True), sa.ForeignKey('departments.id', ondelete='SET NULL'), nullable=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('job_title', sa.String(255), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_users_department_id', 'users', ['department_id'])

    # tasks — 업무 (상태 머신 + 최신 검토 필드)
    op.create_table(
        'tasks',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('priority', sa.String(20), nullable=False, server_default='MEDIUM'),
        sa.Column('status', sa.String(30), nullable=False, server_default='OPEN'),
        sa.Column('assignee_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('review_rating', sa.Integer(), nullable=True),
        sa.Column('review_comment', sa.Text(), nullable=True),
        sa.Column('reviewed_by', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            'review_rating IS NULL OR (review_rating >= 1 AND review_rating <= 5)',
            name='ck_task_review_rating_range',
        ),
    )
    op.create_index('ix_tasks_status', 'tasks', ['status'])
    op.create_index('ix_tasks_assignee_id', 'tasks', ['assignee_id'])
    op.create_index('ix_tasks_created_by', 'tasks', ['created_by'])
    op.create_index('ix_tasks_due_date', 'tasks', ['due_date'])
    op.create_index('ix_tasks_reviewed_at', 'tasks', ['reviewed_at'])

    # task_proofs — 증빙 (추가 전용)
    op.create_table(
        'task_proofs',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('task_id', UUID(as_uuid=True), sa.ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('file_url', sa.String(1000), nullable=False),
        sa.Column('file_name', sa.String(500), nullable=False),
        sa.Column('mime_type', sa.String(100), nullable=True),
        sa.Column('file_size', sa.Integer(), nullable=True),
        sa.Column('media_kind', sa.String(20), nullable=False, server_default='image'),
        sa.Column('uploaded_by', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_task_proofs_task_id', 'task_proofs', ['task_id'])

    # task_reviews — 검토 이력 (추가 전용)
    op.create_table(
        'task_reviews',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('task_id', UUID(as_uuid=True), sa.ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('reviewer_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('decision', sa.String(10), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_task_reviews_rating_range'),
    )
    op.create_index('ix_task_reviews_task_id', 'task_reviews', ['task_id'])

    # disciplinary_warnings — 징계 경고
    op.create_table(
        'disciplinary_warnings',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('employee_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('issued_by', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('severity', sa.String(20), nullable=False, server_default='minor'),
        sa.Column('issued_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_disciplinary_warnings_employee_id', 'disciplinary_warnings', ['employee_id'])
    op.create_index('ix_disciplinary_warnings_issued_at', 'disciplinary_warnings', ['issued_at'])

    # employee_scores — 점수 스냅샷 (추가 전용)
    op.create_table(
        'employee_scores',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('employee_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('period_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('period_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('task_rating_score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('completion_score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('consistency_score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('disciplinary_score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('grade', sa.String(2), nullable=False),
        sa.Column('total_tasks', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('approved_tasks', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('rejected_tasks', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('avg_rating', sa.Float(), nullable=False, server_default='0'),
        sa.Column('on_time_rate', sa.Float(), nullable=False, server_default='0'),
        sa.Column('warning_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('calculated_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('calculated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('total_score >= 0 AND total_score <= 100', name='ck_employee_score_total_range'),
    )
    op.create_index(
        'ix_employee_scores_employee_calculated',
        'employee_scores',
        ['employee_id', 'calculated_at'],
    )


def downgrade() -> None:
    op.drop_index('ix_employee_scores_employee_calculated', table_name='employee_scores')
    op.drop_table('employee_scores')
    op.drop_index('ix_disciplinary_warnings_issued_at', table_name='disciplinary_warnings')
    op.drop_index('ix_disciplinary_warnings_employee_id', table_name='disciplinary_warnings')
    op.drop_table('disciplinary_warnings')
    op.drop_index('ix_task_reviews_task_id', table_name='task_reviews')
    op.drop_table('task_reviews')
    op.drop_index('ix_task_proofs_task_id', table_name='task_proofs')
    op.drop_table('task_proofs')
    for index in ('ix_tasks_reviewed_at', 'ix_tasks_due_date', 'ix_tasks_created_by', 'ix_tasks_assignee_id', 'ix_tasks_status'):
        op.drop_index(index, table_name='tasks')
    op.drop_table('tasks')
    op.drop_index('ix_users_department_id', table_name='users')
    op.drop_table('users')
    op.drop_table('roles')
    op.drop_table('departments')
