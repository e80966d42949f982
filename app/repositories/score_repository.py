"""점수 스냅샷 레포지토리 — Employee score snapshot queries.

Snapshots are insert-only. "Latest" is always resolved by ordering on
(calculated_at DESC, id DESC); no row is ever flagged or updated.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.score import EmployeeScore
from app.models.user import User
from app.repositories.base import BaseRepository


class ScoreRepository(BaseRepository[EmployeeScore]):
    """점수 스냅샷 레포지토리.

    Employee score repository: latest snapshot, history and the
    newest-per-employee set used by the leaderboard.
    """

    def __init__(self) -> None:
        super().__init__(EmployeeScore)

    async def get_latest(
        self,
        db: AsyncSession,
        employee_id: UUID,
    ) -> EmployeeScore | None:
        """직원의 최신 스냅샷을 조회합니다.

        Retrieve the newest snapshot for an employee, or None.
        """
        query: Select = (
            select(EmployeeScore)
            .where(EmployeeScore.employee_id == employee_id)
            .order_by(EmployeeScore.calculated_at.desc(), EmployeeScore.id.desc())
            .limit(1)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_history(
        self,
        db: AsyncSession,
        employee_id: UUID,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[EmployeeScore], int]:
        """직원의 스냅샷 이력을 최신순으로 조회합니다.

        Retrieve an employee's snapshots newest first, paginated.
        """
        query: Select = (
            select(EmployeeScore)
            .where(EmployeeScore.employee_id == employee_id)
            .order_by(EmployeeScore.calculated_at.desc(), EmployeeScore.id.desc())
        )
        return await self.get_paginated(db, query, page, per_page)

    async def get_latest_per_employee(
        self,
        db: AsyncSession,
        department_id: UUID | None = None,
    ) -> Sequence[EmployeeScore]:
        """직원별 최신 스냅샷 집합을 조회합니다.

        Retrieve the newest snapshot of every employee that has one,
        optionally only employees of a department. Uses a ROW_NUMBER()
        window partitioned by employee.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            department_id: 부서 필터 (Department filter, optional)

        Returns:
            Sequence[EmployeeScore]: 직원당 한 건 (One snapshot per employee, unordered)
        """
        ranked = select(
            EmployeeScore.id.label("score_id"),
            func.row_number()
            .over(
                partition_by=EmployeeScore.employee_id,
                order_by=(EmployeeScore.calculated_at.desc(), EmployeeScore.id.desc()),
            )
            .label("rn"),
        ).subquery()

        query: Select = (
            select(EmployeeScore)
            .join(ranked, ranked.c.score_id == EmployeeScore.id)
            .where(ranked.c.rn == 1)
        )
        if department_id is not None:
            query = query.join(User, User.id == EmployeeScore.employee_id).where(
                User.department_id == department_id
            )
        result = await db.execute(query)
        return result.scalars().all()


# 싱글턴 인스턴스 — Singleton instance
score_repository: ScoreRepository = ScoreRepository()
