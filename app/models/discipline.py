"""징계 경고 SQLAlchemy ORM 모델 정의.

Disciplinary warning SQLAlchemy ORM model definitions.
Warnings feed the disciplinary component of the performance score.

Tables:
    - disciplinary_warnings: 징계 경고 (Disciplinary warnings)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, DateTime, Text, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class DisciplinaryWarning(Base):
    """징계 경고 모델.

    Disciplinary warning — Issued by a manager to an employee. Counts against
    the score while issued inside the scoring window and not yet expired.

    Attributes:
        id: 고유 식별자 UUID
        employee_id: 대상 직원 FK
        issued_by: 발행자 FK
        reason: 사유
        issued_at: 발행 일시
        severity: 심각도 minor/major (informational, not weighted in scoring)
        expires_at: 만료 일시 (NULL = never expires)
    """

    __tablename__ = "disciplinary_warnings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    employee_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    issued_by: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[str] = mapped_column(String(20), default="minor", nullable=False)  # minor, major
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
