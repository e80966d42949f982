"""업무 관련 Pydantic 요청/응답 스키마 정의.

Task Pydantic request/response schema definitions: task CRUD, status
changes, evidence attachments and reviews.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.task import ReviewDecision, TaskPriority, TaskStatus


class TaskCreate(BaseModel):
    """업무 생성 요청 스키마.

    Task creation request schema. One assignee per task.

    Attributes:
        title: 업무 제목 (Task title)
        description: 업무 설명 (Task description, optional)
        priority: 우선순위 (LOW/MEDIUM/HIGH/URGENT, default MEDIUM)
        assignee_id: 담당자 UUID (Assignee employee)
        due_date: 마감일시 (Due date with timezone, optional)
    """

    title: str = Field(min_length=1, max_length=500)  # 업무 제목 (Task title)
    description: str | None = None  # 업무 설명 (Description, optional)
    priority: TaskPriority = TaskPriority.MEDIUM  # 우선순위 (Priority level)
    assignee_id: UUID  # 담당자 UUID (Assignee)
    due_date: datetime | None = None  # 마감일시 (Deadline, optional)


class TaskUpdate(BaseModel):
    """업무 수정 요청 스키마 (부분 업데이트).

    Task update request schema (partial update). Status is changed only
    through the status endpoint.
    """

    title: str | None = Field(default=None, min_length=1, max_length=500)  # 변경할 제목 (New title)
    description: str | None = None  # 변경할 설명 (New description)
    priority: TaskPriority | None = None  # 변경할 우선순위 (New priority)
    due_date: datetime | None = None  # 변경할 마감일시 (New due date)


class TaskTransitionRequest(BaseModel):
    """업무 상태 변경 요청 스키마.

    Status change request. ``rating``/``comment`` apply only when the target
    is APPROVED or REJECTED.
    """

    status: TaskStatus  # 목표 상태 (Target status)
    rating: int | None = None  # 검토 평점 1~5 (Review rating, review targets only)
    comment: str | None = None  # 검토 코멘트 (Review comment, review targets only)


class ProofFile(BaseModel):
    """업로드된 증빙 파일 메타데이터.

    Descriptor of a file already stored by the storage service.
    """

    file_url: str = Field(min_length=1, max_length=1000)  # 파일 핸들 (Opaque file handle)
    file_name: str = Field(min_length=1, max_length=500)  # 원본 파일명 (Original file name)
    mime_type: str | None = None  # MIME 타입 (MIME type)
    file_size: int | None = Field(default=None, ge=0)  # 파일 크기 바이트 (Size in bytes)


class ProofAttach(BaseModel):
    """증빙 첨부 요청 스키마 — Attach request with one or more files."""

    files: list[ProofFile]


class ReviewRequest(BaseModel):
    """업무 검토 요청 스키마.

    Review request. The rating range is checked by the review service so
    that permission errors take precedence over rating errors.
    """

    decision: ReviewDecision  # APPROVE 또는 REJECT
    rating: int | None = None  # 평점 1~5 (Rating 1..5)
    comment: str | None = None  # 코멘트 (Comment; required on REJECT by default)


class ProofResponse(BaseModel):
    """증빙 응답 스키마 (Proof response)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    task_id: UUID
    file_url: str
    file_name: str
    mime_type: str | None
    file_size: int | None
    media_kind: str
    uploaded_by: UUID
    created_at: datetime


class TaskResponse(BaseModel):
    """업무 응답 스키마.

    Task response schema (list items).

    Attributes:
        id: 업무 UUID (Task unique identifier)
        status: 진행 상태 (Lifecycle status)
        review_*: 최근 검토 정보 (Latest review, null until first review)
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None
    priority: str
    status: str
    assignee_id: UUID
    created_by: UUID
    due_date: datetime | None
    submitted_at: datetime | None
    completed_at: datetime | None
    review_rating: int | None
    review_comment: str | None
    reviewed_by: UUID | None
    reviewed_at: datetime | None
    created_at: datetime
    updated_at: datetime


class TaskDetailResponse(TaskResponse):
    """업무 상세 응답 스키마 — Task with its proofs and proof count."""

    proofs: list[ProofResponse] = []
    proof_count: int = 0

    @classmethod
    def from_task(cls, task: object) -> "TaskDetailResponse":
        detail: TaskDetailResponse = cls.model_validate(task)
        detail.proof_count = len(detail.proofs)
        return detail


class TaskReviewResponse(BaseModel):
    """검토 이력 응답 스키마 (Review log entry)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    task_id: UUID
    reviewer_id: UUID
    decision: str
    rating: int
    comment: str | None
    created_at: datetime


class TaskStatusChangeResponse(BaseModel):
    """상태 변경 이력 응답 스키마 (Transition log entry)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    task_id: UUID
    actor_id: UUID
    from_status: str
    to_status: str
    created_at: datetime


class TaskStatsResponse(BaseModel):
    """상태별 업무 수 응답 스키마 (Task counts per status)."""

    open: int
    inProgress: int  # 응답 키는 camelCase, PageMeta.totalPages와 동일 (camelCase wire keys)
    waitingReview: int
    approved: int
    rejected: int
    total: int
