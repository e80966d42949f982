"""업무 관련 SQLAlchemy ORM 모델 정의.

Task SQLAlchemy ORM model definitions.
Includes the task itself (lifecycle state machine), its append-only
evidence attachments, the append-only review log and the transition log.

Tables:
    - tasks: 업무 (Tasks with status, review fields)
    - task_proofs: 업무 증빙 (Immutable photo/document evidence)
    - task_reviews: 검토 이력 (Append-only review decisions)
    - task_status_changes: 상태 변경 이력 (Append-only transition log)
"""

import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import CheckConstraint, String, DateTime, Integer, Text, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class TaskStatus(str, enum.Enum):
    """업무 상태 — 닫힌 열거형 (Closed set of lifecycle states)."""

    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    WAITING_FOR_REVIEW = "WAITING_FOR_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class TaskPriority(str, enum.Enum):
    """업무 우선순위 (Task priority)."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class ReviewDecision(str, enum.Enum):
    """검토 결정 (Review decision)."""

    APPROVE = "APPROVE"
    REJECT = "REJECT"


class MediaKind(str, enum.Enum):
    """증빙 미디어 종류 (Evidence media kind)."""

    IMAGE = "image"
    DOCUMENT = "document"


class Task(Base):
    """업무 모델 — 직원 1명에게 배정되는 작업 단위.

    Task model — A unit of work assigned to exactly one employee.
    Moves through OPEN → IN_PROGRESS → WAITING_FOR_REVIEW → APPROVED,
    with REJECTED → IN_PROGRESS allowing rework cycles.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        title: 업무 제목 (Task title)
        description: 업무 설명 (Description, optional)
        priority: 우선순위 (LOW/MEDIUM/HIGH/URGENT)
        status: 진행 상태 (Lifecycle status, see TaskStatus)
        assignee_id: 담당자 FK (Assignee employee)
        created_by: 생성자 FK (Manager who created the task)
        due_date: 마감일시 (Due date, optional)
        submitted_at: 마지막 검토 요청 일시 (Last time the task entered WAITING_FOR_REVIEW)
        completed_at: 완료 일시 (Completion time, set on approval)
        review_rating: 검토 평점 1~5 (Latest review rating)
        review_comment: 검토 코멘트 (Latest review comment)
        reviewed_by: 검토자 FK (Latest reviewer)
        reviewed_at: 검토 일시 (Latest review timestamp)
        created_at: 생성 일시 UTC (Creation timestamp)
        updated_at: 수정 일시 UTC (Last update timestamp)

    Relationships:
        proofs: 증빙 목록 (Evidence, destroyed with the task)
        reviews: 검토 이력 (Review log, destroyed with the task)
    """

    __tablename__ = "tasks"

    # 업무 고유 식별자 — Task unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 업무 제목 — Task title
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    # 업무 설명 — Detailed task description (optional)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # 우선순위 — LOW, MEDIUM, HIGH, URGENT
    priority: Mapped[str] = mapped_column(String(20), default=TaskPriority.MEDIUM.value, nullable=False)
    # 진행 상태 — TaskStatus 값만 허용 (Only TaskStatus values)
    status: Mapped[str] = mapped_column(String(30), default=TaskStatus.OPEN.value, nullable=False, index=True)
    # 담당자 FK — Exactly one assignee
    assignee_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    # 생성자 FK — Manager who created the task
    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    # 마감일시 — Optional deadline with timezone
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    # 검토 요청 일시 — Stamped on every IN_PROGRESS → WAITING_FOR_REVIEW
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # 완료 일시 — Set once, on approval
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # 검토 필드 — 네 필드는 항상 함께 기록 (All four are written together by one review)
    review_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    review_comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id"), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    # 생성 일시 — Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    # 수정 일시 — Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint(
            "review_rating IS NULL OR (review_rating >= 1 AND review_rating <= 5)",
            name="ck_task_review_rating_range",
        ),
    )

    # 관계 — Composition: 업무와 함께 삭제 (destroyed with the task)
    proofs = relationship(
        "TaskProof",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskProof.created_at",
    )
    reviews = relationship(
        "TaskReview",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskReview.created_at",
    )


class TaskProof(Base):
    """업무 증빙 모델 — 생성 후 변경 불가한 사진/문서 첨부.

    Task proof model — Immutable photo/document evidence for a task.
    Rows are only ever appended; a bad proof is superseded, not deleted.

    Attributes:
        id: 고유 식별자 UUID
        task_id: 소속 업무 FK
        file_url: 파일 핸들 (Opaque file handle from the storage service)
        file_name: 원본 파일명
        mime_type: MIME 타입
        file_size: 파일 크기(바이트)
        media_kind: "image" 또는 "document"
        uploaded_by: 업로더 FK
        created_at: 생성 일시 UTC
    """

    __tablename__ = "task_proofs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    task_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    file_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    media_kind: Mapped[str] = mapped_column(String(20), default=MediaKind.IMAGE.value, nullable=False)
    uploaded_by: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    task = relationship("Task", back_populates="proofs")


class TaskReview(Base):
    """검토 이력 모델 — 승인/반려 결정 1건.

    Task review model — One accepted approve/reject decision.
    The task row carries only the latest review; this log keeps every cycle.

    Attributes:
        id: 고유 식별자 UUID
        task_id: 대상 업무 FK
        reviewer_id: 검토자 FK
        decision: "APPROVE" 또는 "REJECT"
        rating: 평점 1~5
        comment: 코멘트
        created_at: 검토 일시 UTC
    """

    __tablename__ = "task_reviews"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    task_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    reviewer_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    decision: Mapped[str] = mapped_column(String(10), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_task_reviews_rating_range"),
    )

    task = relationship("Task", back_populates="reviews")


class TaskStatusChange(Base):
    """상태 변경 이력 모델 — 성공한 상태 전이 1건.

    Task status change model. One row per successful transition, written in
    the same transaction as the conditional status update. Never updated.
    """

    __tablename__ = "task_status_changes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    task_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    # 전이를 수행한 사용자 — Actor who fired the edge
    actor_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    from_status: Mapped[str] = mapped_column(String(30), nullable=False)
    to_status: Mapped[str] = mapped_column(String(30), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
