"""조직 단위 관련 SQLAlchemy ORM 모델 정의.

Organization-unit SQLAlchemy ORM model definitions.
Departments are owned by the employee directory; this service only reads
them to scope reviewers and to filter the leaderboard.

Tables:
    - departments: 부서 (Departments / org units)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Department(Base):
    """부서 모델 — 직원이 소속된 조직 단위.

    Department model — Organization unit employees belong to.
    Supervisors review tasks only within their own department.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        name: 부서 이름 (Department name)
        created_at: 생성 일시 UTC (Creation timestamp in UTC)

    Relationships:
        users: 소속 직원 목록 (Employees in this department)
    """

    __tablename__ = "departments"

    # 부서 고유 식별자 — Department unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 부서 이름 — Department display name
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships
    users = relationship("User", back_populates="department")
