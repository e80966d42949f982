"""성과 점수 라우터 — 점수 조회, 재계산, 리더보드 API.

Score Router — API endpoints for score snapshots, recalculation and the
leaderboard.

Permission Matrix (역할별 권한 설계):
    - 점수/이력/미리보기 조회: 본인 또는 관리자 (self or managers)
    - 직원 1명 재계산: 해당 직원의 검토 권한자 (reviewer of the employee)
    - 전체 재계산: Owner + GM (level <= 2)
    - 리더보드: 관리자 (managers)
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.deps import get_current_user, require_gm
from app.config import settings
from app.database import get_db, get_session_factory
from app.models.score import EmployeeScore
from app.models.user import User
from app.schemas.common import PaginatedResponse
from app.schemas.score import (
    BatchCalculateRequest,
    BatchCalculateResponse,
    LeaderboardEntryResponse,
    ScoreCalculateRequest,
    ScorePreviewResponse,
    ScoreResponse,
)
from app.services.leaderboard_service import LeaderboardEntry, leaderboard_service
from app.services.score_calculator import ScoreBreakdown
from app.services.score_service import BatchOutcome, score_service
from app.utils.pagination import build_envelope, clamp_limit

router: APIRouter = APIRouter()


def _preview_response(employee_id: UUID, breakdown: ScoreBreakdown, start: datetime, end: datetime) -> ScorePreviewResponse:
    metrics = breakdown.metrics
    return ScorePreviewResponse(
        employee_id=employee_id,
        period_start=start,
        period_end=end,
        task_rating_score=breakdown.task_rating_score,
        completion_score=breakdown.completion_score,
        consistency_score=breakdown.consistency_score,
        disciplinary_score=breakdown.disciplinary_score,
        total_score=breakdown.total_score,
        grade=breakdown.grade,
        total_tasks=metrics.total_tasks,
        approved_tasks=metrics.approved_tasks,
        rejected_tasks=metrics.rejected_tasks,
        avg_rating=round(metrics.avg_rating, 2),
        on_time_rate=round(metrics.on_time_rate, 4),
        warning_count=metrics.warning_count,
    )


def _leaderboard_item(entry: LeaderboardEntry) -> LeaderboardEntryResponse:
    score: EmployeeScore = entry.score
    profile = entry.profile
    return LeaderboardEntryResponse(
        rank=entry.rank,
        employee_id=score.employee_id,
        full_name=profile.full_name if profile else None,
        job_title=profile.job_title if profile else None,
        department_id=profile.department_id if profile else None,
        department_name=profile.department_name if profile else None,
        total_score=score.total_score,
        grade=score.grade,
        avg_rating=score.avg_rating,
        on_time_rate=score.on_time_rate,
        task_rating_score=score.task_rating_score,
        completion_score=score.completion_score,
        consistency_score=score.consistency_score,
        disciplinary_score=score.disciplinary_score,
        calculated_at=score.calculated_at,
    )


@router.get("/me", response_model=ScoreResponse)
async def get_my_score(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> EmployeeScore:
    """내 최신 점수를 조회합니다.

    Get the caller's newest score snapshot.
    """
    return await score_service.get_latest(db, current_user, current_user.id)


@router.get("/leaderboard", response_model=PaginatedResponse[LeaderboardEntryResponse])
async def get_leaderboard(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    department_id: Annotated[UUID | None, Query()] = None,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> dict:
    """리더보드를 조회합니다 (관리자 전용).

    Leaderboard of each employee's newest snapshot, best first.
    """
    size: int = clamp_limit(limit, maximum=settings.LEADERBOARD_MAX_LIMIT, default=10)
    entries, total = await leaderboard_service.rank(db, current_user, department_id, size)
    return build_envelope([_leaderboard_item(entry) for entry in entries], total, 1, size)


@router.post("/calculate-all", response_model=BatchCalculateResponse)
async def recalculate_all(
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    current_user: Annotated[User, Depends(require_gm)],
    data: Annotated[BatchCalculateRequest | None, Body()] = None,
) -> BatchCalculateResponse:
    """재직 중인 전체 직원의 점수를 재계산합니다. Owner + GM만 가능.

    Recalculate every active employee (or the listed ones). Each employee is
    committed independently; failures are reported per employee.
    """
    request: BatchCalculateRequest = data or BatchCalculateRequest()
    outcome: BatchOutcome = await score_service.calculate_all(
        session_factory,
        period_start=request.period_start,
        period_end=request.period_end,
        employee_ids=request.employee_ids,
        deadline_seconds=request.deadline_seconds,
        calculated_by=current_user.id,
    )
    results: dict = {}
    for employee_id, value in outcome.results.items():
        if isinstance(value, EmployeeScore):
            results[str(employee_id)] = ScoreResponse.model_validate(value)
        else:
            results[str(employee_id)] = {"error": value}
    return BatchCalculateResponse(
        results=results,
        skipped=outcome.skipped,
        succeeded=outcome.succeeded,
        failed=outcome.failed,
    )


@router.get("/employees/{employee_id}", response_model=ScoreResponse)
async def get_live_score(
    employee_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> EmployeeScore:
    """직원의 최신 점수를 조회합니다. 계산된 적이 없으면 404.

    Get an employee's newest snapshot; 404 when never calculated.
    """
    return await score_service.get_latest(db, current_user, employee_id)


@router.get("/employees/{employee_id}/history", response_model=PaginatedResponse[ScoreResponse])
async def get_score_history(
    employee_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> dict:
    """직원의 점수 이력을 최신순으로 조회합니다.

    Score snapshots newest first.
    """
    size: int = clamp_limit(limit, maximum=settings.SCORE_HISTORY_MAX_LIMIT)
    scores, total = await score_service.get_history(db, current_user, employee_id, page, size)
    return build_envelope([ScoreResponse.model_validate(score) for score in scores], total, page, size)


@router.get("/employees/{employee_id}/preview", response_model=ScorePreviewResponse)
async def preview_score(
    employee_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    period_start: Annotated[datetime | None, Query()] = None,
    period_end: Annotated[datetime | None, Query()] = None,
) -> ScorePreviewResponse:
    """저장하지 않고 현재 점수를 계산합니다.

    Compute the score for a window without storing a snapshot.
    """
    breakdown, start, end = await score_service.preview(db, current_user, employee_id, period_start, period_end)
    return _preview_response(employee_id, breakdown, start, end)


@router.post("/employees/{employee_id}/calculate", response_model=ScoreResponse, status_code=201)
async def recalculate_score(
    employee_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    data: Annotated[ScoreCalculateRequest | None, Body()] = None,
) -> EmployeeScore:
    """직원 1명의 점수를 재계산하고 새 스냅샷을 저장합니다.

    Recalculate one employee and insert a new snapshot.
    """
    request: ScoreCalculateRequest = data or ScoreCalculateRequest()
    score = await score_service.recalculate(
        db, current_user, employee_id, request.period_start, request.period_end
    )
    await db.commit()
    return score
