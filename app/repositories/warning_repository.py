"""징계 경고 레포지토리 — Disciplinary warning queries."""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.discipline import DisciplinaryWarning
from app.repositories.base import BaseRepository


class WarningRepository(BaseRepository[DisciplinaryWarning]):
    """징계 경고 레포지토리.

    Disciplinary warning repository.
    """

    def __init__(self) -> None:
        super().__init__(DisciplinaryWarning)

    async def count_active_in_period(
        self,
        db: AsyncSession,
        employee_id: UUID,
        period_start: datetime,
        period_end: datetime,
    ) -> int:
        """기간 내 발행되고 기간 종료 시점에 만료되지 않은 경고 수.

        Count warnings issued inside the window and still in force at its end.
        Every warning counts once whatever its ``severity``; severity is
        recorded for managers and does not weight the disciplinary score.
        """
        query: Select = select(func.count(DisciplinaryWarning.id)).where(
            DisciplinaryWarning.employee_id == employee_id,
            DisciplinaryWarning.issued_at >= period_start,
            DisciplinaryWarning.issued_at <= period_end,
            or_(
                DisciplinaryWarning.expires_at.is_(None),
                DisciplinaryWarning.expires_at > period_end,
            ),
        )
        return (await db.execute(query)).scalar() or 0

    async def get_filtered(
        self,
        db: AsyncSession,
        employee_id: UUID | None = None,
        employee_ids: list[UUID] | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[DisciplinaryWarning], int]:
        """경고 목록을 최신순으로 페이지네이션 조회합니다.

        Retrieve warnings newest first. ``employee_ids`` restricts the
        result to a set of employees (e.g. a supervisor's department).
        """
        query: Select = select(DisciplinaryWarning)
        if employee_id is not None:
            query = query.where(DisciplinaryWarning.employee_id == employee_id)
        if employee_ids is not None:
            query = query.where(DisciplinaryWarning.employee_id.in_(employee_ids))
        query = query.order_by(DisciplinaryWarning.issued_at.desc(), DisciplinaryWarning.id.desc())
        return await self.get_paginated(db, query, page, per_page)


# 싱글턴 인스턴스 — Singleton instance
warning_repository: WarningRepository = WarningRepository()
