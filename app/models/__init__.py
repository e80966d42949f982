"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package ensures all models are registered with the
SQLAlchemy metadata, which is required for Alembic migrations and
relationship resolution.

Modules:
    organization: 부서 (Department)
    user: 역할 및 직원 (Role and User)
    task: 업무, 증빙, 검토 이력, 상태 변경 이력 (Task, TaskProof, TaskReview, TaskStatusChange)
    score: 성과 점수 스냅샷 (EmployeeScore)
    discipline: 징계 경고 (DisciplinaryWarning)
"""

from app.models.organization import Department
from app.models.user import Role, User
from app.models.task import Task, TaskProof, TaskReview, TaskStatusChange, TaskStatus, TaskPriority, ReviewDecision, MediaKind
from app.models.score import EmployeeScore
from app.models.discipline import DisciplinaryWarning

__all__ = [
    "Department",
    "Role", "User",
    "Task", "TaskProof", "TaskReview", "TaskStatusChange", "TaskStatus", "TaskPriority", "ReviewDecision", "MediaKind",
    "EmployeeScore",
    "DisciplinaryWarning",
]
