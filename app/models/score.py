"""성과 점수 관련 SQLAlchemy ORM 모델 정의.

Performance score SQLAlchemy ORM model definitions.
Score rows are snapshots: every calculation inserts a new row and the
current score of an employee is the newest row by (calculated_at, id).

Tables:
    - employee_scores: 직원 점수 스냅샷 (Employee score snapshots)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import CheckConstraint, Float, Index, String, DateTime, Integer, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class EmployeeScore(Base):
    """직원 점수 스냅샷 모델 — 특정 기간의 0~100 성과 점수.

    Employee score snapshot — A 0..100 performance score for one period,
    decomposed into four bounded components and the metrics they came from.
    Never updated after insert.

    Attributes:
        id: 고유 식별자 UUID
        employee_id: 대상 직원 FK
        period_start / period_end: 계산 기간 (Scoring window, inclusive)
        task_rating_score: 평점 구성요소 (0~40)
        completion_score: 완료율 구성요소 (0~25)
        consistency_score: 마감 준수 구성요소 (0~20)
        disciplinary_score: 징계 구성요소 (0~15)
        total_score: 총점 (0~100)
        grade: 등급 A~F
        total_tasks / approved_tasks / rejected_tasks: 기간 내 검토된 업무 수
        avg_rating: 평균 평점 (0 when no reviewed tasks)
        on_time_rate: 마감 준수율 (0~1)
        warning_count: 유효 경고 수
        calculated_by: 계산 요청자 FK (NULL for system batch)
        calculated_at: 계산 일시 UTC
    """

    __tablename__ = "employee_scores"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 이력 보존 — 직원 삭제가 스냅샷을 지우지 않음 (deleting an employee never drops snapshots)
    employee_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    period_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    period_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # 구성 점수 — Component scores
    task_rating_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    completion_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    consistency_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    disciplinary_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    grade: Mapped[str] = mapped_column(String(2), nullable=False)

    # 원천 지표 — Raw metrics
    total_tasks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    approved_tasks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rejected_tasks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    avg_rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    on_time_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    warning_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    calculated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint("total_score >= 0 AND total_score <= 100", name="ck_employee_score_total_range"),
        # 최신 스냅샷 조회용 — newest-first lookup per employee
        Index("ix_employee_scores_employee_calculated", "employee_id", "calculated_at"),
    )
