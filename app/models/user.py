"""사용자(직원) 및 역할 관련 SQLAlchemy ORM 모델 정의.

User (employee) and Role SQLAlchemy ORM model definitions.
Implements the hierarchical role levels the capability resolver reads.
Records are managed by the employee directory; this service reads them only.

Tables:
    - roles: 역할 (Roles, level-based hierarchy)
    - users: 직원 계정 (Employee accounts with role/department scoping)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, Integer, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Role(Base):
    """역할 모델 — 권한 수준을 정의.

    Role model — Defines permission levels.
    Lower level numbers indicate higher authority:
        1 = owner, 2 = general_manager, 3 = supervisor, 4 = staff

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        name: 역할 이름 (Role name, e.g. "owner", "staff")
        level: 권한 레벨 (Permission level, 1=highest)
        created_at: 생성 일시 UTC (Creation timestamp)

    Relationships:
        users: 이 역할을 가진 사용자 목록 (Users assigned to this role)
    """

    __tablename__ = "roles"

    # 역할 고유 식별자 — Role unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 역할 이름 — Role display name (e.g. "owner", "general_manager", "supervisor", "staff")
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    # 권한 레벨 — Permission level (1=owner 최고 권한, 4=staff 최저 권한)
    level: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships
    users = relationship("User", back_populates="role")


class User(Base):
    """직원 모델 — 업무 담당자, 검토자, 점수 대상.

    User model — An employee: task assignee, reviewer and score subject.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        role_id: 역할 FK (Assigned role foreign key)
        department_id: 부서 FK (Department foreign key, optional)
        full_name: 실명 (Full display name)
        job_title: 직함 (Job title, optional)
        email: 이메일 (Email address, optional)
        is_active: 재직 상태 (Active status; inactive employees are skipped by batch scoring)
        created_at: 생성 일시 UTC (Creation timestamp)

    Relationships:
        role: 사용자 역할 (Assigned role)
        department: 소속 부서 (Department)
    """

    __tablename__ = "users"

    # 사용자 고유 식별자 — User unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 역할 FK — Assigned role (역할 삭제 시 제한됨, role deletion is restricted)
    role_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("roles.id"), nullable=False)
    # 부서 FK — Department (SET NULL on department delete)
    department_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True, index=True)
    # 실명 — User's full display name
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # 직함 — Job title shown on leaderboard/profile
    job_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # 이메일 — Email address (optional)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # 재직 상태 — Whether the employee is active
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships
    role = relationship("Role", back_populates="users")
    department = relationship("Department", back_populates="users")
