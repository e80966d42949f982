"""성과 점수 관련 Pydantic 요청/응답 스키마 정의.

Score Pydantic request/response schema definitions: snapshots, live
previews, batch recalculation and the leaderboard.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ScoreResponse(BaseModel):
    """점수 스냅샷 응답 스키마.

    Score snapshot response.

    Attributes:
        task_rating_score: 평점 구성요소 (0~40)
        completion_score: 완료율 구성요소 (0~25)
        consistency_score: 마감 준수 구성요소 (0~20)
        disciplinary_score: 징계 구성요소 (0~15)
        total_score: 총점 (0~100)
        grade: 등급 (A~F)
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_id: UUID
    period_start: datetime
    period_end: datetime
    task_rating_score: float
    completion_score: float
    consistency_score: float
    disciplinary_score: float
    total_score: float
    grade: str
    total_tasks: int
    approved_tasks: int
    rejected_tasks: int
    avg_rating: float
    on_time_rate: float
    warning_count: int
    calculated_by: UUID | None
    calculated_at: datetime


class ScorePreviewResponse(BaseModel):
    """실시간 점수 미리보기 응답 스키마 (Live score, not persisted)."""

    employee_id: UUID
    period_start: datetime
    period_end: datetime
    task_rating_score: float
    completion_score: float
    consistency_score: float
    disciplinary_score: float
    total_score: float
    grade: str
    total_tasks: int
    approved_tasks: int
    rejected_tasks: int
    avg_rating: float
    on_time_rate: float
    warning_count: int


class ScoreCalculateRequest(BaseModel):
    """점수 재계산 요청 스키마 — Optional explicit window; default is the last N months."""

    period_start: datetime | None = None
    period_end: datetime | None = None


class BatchCalculateRequest(ScoreCalculateRequest):
    """일괄 재계산 요청 스키마.

    Batch recalculation request. ``employee_ids`` defaults to every active
    employee; ``deadline_seconds`` overrides the configured soft deadline.
    """

    employee_ids: list[UUID] | None = None
    deadline_seconds: float | None = Field(default=None, gt=0)


class BatchErrorItem(BaseModel):
    """일괄 재계산 실패 항목 (Per-employee failure)."""

    error: str


class BatchCalculateResponse(BaseModel):
    """일괄 재계산 응답 스키마.

    Batch outcome: per-employee snapshot or error, and the employees skipped
    because the deadline passed.
    """

    results: dict[str, ScoreResponse | BatchErrorItem]
    skipped: list[UUID]
    succeeded: int
    failed: int


class LeaderboardEntryResponse(BaseModel):
    """리더보드 항목 응답 스키마 (Ranked entry)."""

    rank: int  # 1부터 시작하는 순위 (1-based rank)
    employee_id: UUID
    full_name: str | None
    job_title: str | None
    department_id: UUID | None
    department_name: str | None
    total_score: float
    grade: str
    avg_rating: float
    on_time_rate: float
    task_rating_score: float
    completion_score: float
    consistency_score: float
    disciplinary_score: float
    calculated_at: datetime
