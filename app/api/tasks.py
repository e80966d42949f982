"""업무 라우터 — 업무 생명주기, 증빙, 검토 API.

Task Router — API endpoints for the task lifecycle, evidence and reviews.

Permission Matrix (역할별 권한 설계):
    - 업무 생성/수정: 담당자의 검토 권한자 (reviewer of the assignee)
    - 상태 변경/증빙 첨부: 담당자 본인 또는 검토 권한자 (assignee or reviewer)
    - 승인/반려: 담당자의 검토 권한자 (reviewer of the assignee)
    - 목록 review/team, 통계 team: 관리자 (managers)
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.task import TaskPriority, TaskStatus
from app.models.user import User
from app.schemas.common import PaginatedResponse
from app.schemas.task import (
    ProofAttach,
    ProofResponse,
    ReviewRequest,
    TaskCreate,
    TaskDetailResponse,
    TaskResponse,
    TaskReviewResponse,
    TaskStatsResponse,
    TaskStatusChangeResponse,
    TaskTransitionRequest,
    TaskUpdate,
)
from app.services.review_service import review_service
from app.services.task_proof_service import task_proof_service
from app.services.task_service import task_service
from app.utils.pagination import build_envelope, clamp_limit

router: APIRouter = APIRouter()


@router.post("", response_model=TaskDetailResponse, status_code=201)
async def create_task(
    data: TaskCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> TaskDetailResponse:
    """새 업무를 생성합니다. 담당자의 검토 권한자만 가능.

    Create a task in OPEN status. Reviewers of the assignee only.
    """
    task = await task_service.create_task(db, current_user, data)
    await db.commit()
    return TaskDetailResponse.from_task(task)


@router.get("", response_model=PaginatedResponse[TaskResponse])
async def list_tasks(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    view: Annotated[str, Query(pattern="^(mine|review|created|team)$")] = "mine",
    status: Annotated[TaskStatus | None, Query()] = None,
    priority: Annotated[TaskPriority | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> dict:
    """업무 목록을 보기별로 조회합니다.

    List tasks for a view (mine, review, created, team). Ordered by due date
    ascending with undated tasks last, then newest first.
    """
    page_size: int = clamp_limit(limit)
    tasks, total = await task_service.list_tasks(
        db,
        current_user,
        view=view,
        status=status,
        priority=priority.value if priority is not None else None,
        page=page,
        per_page=page_size,
    )
    items = [TaskResponse.model_validate(task) for task in tasks]
    return build_envelope(items, total, page, page_size)


@router.get("/stats", response_model=TaskStatsResponse)
async def task_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    scope: Annotated[str, Query(pattern="^(mine|team)$")] = "mine",
) -> dict:
    """상태별 업무 수를 조회합니다.

    Task counts per status for the caller (mine) or the caller's team.
    """
    return await task_service.task_stats(db, current_user, scope)


@router.get("/{task_id}", response_model=TaskDetailResponse)
async def get_task(
    task_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> TaskDetailResponse:
    """업무 상세를 증빙과 함께 조회합니다.

    Get a task with its proofs.
    """
    task = await task_service.get_task(db, current_user, task_id)
    return TaskDetailResponse.from_task(task)


@router.put("/{task_id}", response_model=TaskDetailResponse)
async def update_task(
    task_id: UUID,
    data: TaskUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> TaskDetailResponse:
    """업무 내용을 수정합니다. 승인된 업무는 수정 불가.

    Edit title, description, priority or due date. Approved tasks are frozen.
    """
    task = await task_service.update_task(db, current_user, task_id, data)
    await db.commit()
    return TaskDetailResponse.from_task(task)


@router.post("/{task_id}/status", response_model=TaskDetailResponse)
async def transition_task(
    task_id: UUID,
    data: TaskTransitionRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> TaskDetailResponse:
    """업무 상태를 변경합니다.

    Move a task along one edge of the lifecycle. APPROVED/REJECTED targets
    are reviews and need ``rating`` (and ``comment`` for rejections).
    """
    task = await task_service.transition_task(
        db,
        current_user,
        task_id,
        data.status,
        rating=data.rating,
        comment=data.comment,
    )
    await db.commit()
    return TaskDetailResponse.from_task(task)


@router.post("/{task_id}/proofs", response_model=TaskDetailResponse, status_code=201)
async def attach_proofs(
    task_id: UUID,
    data: ProofAttach,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> TaskDetailResponse:
    """업무에 증빙을 첨부합니다.

    Attach proofs and return the task with its refreshed proof list.
    """
    task = await task_proof_service.attach(db, current_user, task_id, data.files)
    await db.commit()
    return TaskDetailResponse.from_task(task)


@router.get("/{task_id}/proofs", response_model=list[ProofResponse])
async def list_proofs(
    task_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list:
    """업무의 증빙 목록을 업로드 순으로 조회합니다.

    List a task's proofs, oldest first.
    """
    return list(await task_proof_service.list_proofs(db, current_user, task_id))


@router.post("/{task_id}/review", response_model=TaskDetailResponse)
async def review_task(
    task_id: UUID,
    data: ReviewRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> TaskDetailResponse:
    """업무를 승인 또는 반려합니다.

    Approve or reject a task waiting for review.
    """
    task = await review_service.review(
        db,
        current_user,
        task_id,
        data.decision,
        data.rating,
        data.comment,
    )
    await db.commit()
    return TaskDetailResponse.from_task(task)


@router.get("/{task_id}/reviews", response_model=list[TaskReviewResponse])
async def list_reviews(
    task_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list:
    """업무의 검토 이력을 조회합니다.

    List every review decision made on a task, oldest first.
    """
    return list(await review_service.list_reviews(db, current_user, task_id))


@router.get("/{task_id}/status-changes", response_model=list[TaskStatusChangeResponse])
async def list_status_changes(
    task_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list:
    """업무의 상태 변경 이력을 조회합니다 (Transition log, oldest first)."""
    return list(await task_service.list_status_changes(db, current_user, task_id))
