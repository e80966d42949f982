"""add_task_status_changes

Revision ID: 1b2c3d4e5f6a
Revises: 0a1b2c3d4e5f
Create Date: 2026-10-18 09:00:00.000000

상태 변경 이력 테이블 추가, 점수 스냅샷/징계 경고의 직원 FK를
CASCADE에서 RESTRICT로 변경 (직원 삭제로 이력이 사라지지 않도록).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '1b2c3d4e5f6a'
down_revision: Union[str, None] = '0a1b2c3d4e5f'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# PostgreSQL 기본 FK 이름 (default names of the unnamed FKs from the initial schema)
_EMPLOYEE_FKS: tuple[tuple[str, str], ...] = (
    ('employee_scores', 'employee_scores_employee_id_fkey'),
    ('disciplinary_warnings', 'disciplinary_warnings_employee_id_fkey'),
)


def _replace_employee_fks(ondelete: str) -> None:
    for table, name in _EMPLOYEE_FKS:
        op.drop_constraint(name, table, type_='foreignkey')
        op.create_foreign_key(name, table, 'users', ['employee_id'], ['id'], ondelete=ondelete)


def upgrade() -> None:
    # task_status_changes — 상태 변경 이력 (추가 전용)
    op.create_table(
        'task_status_changes',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('task_id', UUID(as_uuid=True), sa.ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('actor_id', UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('from_status', sa.String(30), nullable=False),
        sa.Column('to_status', sa.String(30), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_task_status_changes_task_id', 'task_status_changes', ['task_id'])

    _replace_employee_fks('RESTRICT')


def downgrade() -> None:
    _replace_employee_fks('CASCADE')
    op.drop_index('ix_task_status_changes_task_id', table_name='task_status_changes')
    op.drop_table('task_status_changes')
