"""징계 경고 라우터 — Disciplinary warning API.

Permission Matrix (역할별 권한 설계):
    - 발행: 대상 직원의 검토 권한자 (reviewer of the employee)
    - 조회: 본인 경고 또는 관리자의 검토 범위 (own warnings, or a manager's team)
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, require_supervisor
from app.database import get_db
from app.models.user import User
from app.schemas.common import PaginatedResponse
from app.schemas.warning import WarningCreate, WarningResponse
from app.services.warning_service import warning_service
from app.utils.pagination import build_envelope, clamp_limit

router: APIRouter = APIRouter()


@router.post("", response_model=WarningResponse, status_code=201)
async def issue_warning(
    data: WarningCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_supervisor)],
) -> WarningResponse:
    """징계 경고를 발행합니다.

    Issue a disciplinary warning to an employee in the caller's scope.
    """
    warning = await warning_service.issue(db, current_user, data)
    await db.commit()
    return WarningResponse.model_validate(warning)


@router.get("", response_model=PaginatedResponse[WarningResponse])
async def list_warnings(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    employee_id: Annotated[UUID | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> dict:
    """징계 경고 목록을 최신순으로 조회합니다.

    List warnings newest first.
    """
    size: int = clamp_limit(limit)
    warnings, total = await warning_service.list_warnings(db, current_user, employee_id, page, size)
    return build_envelope([WarningResponse.model_validate(w) for w in warnings], total, page, size)
