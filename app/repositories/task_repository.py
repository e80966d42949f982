"""업무 레포지토리 — 업무 관련 DB 쿼리 담당.

Task Repository — Handles all task-related database queries.
Extends BaseRepository with view filtering, status aggregation, the
compare-and-swap status write and the scoring window query.
"""

from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import Select, case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.task import Task, TaskStatus
from app.models.user import User
from app.repositories.base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """업무 레포지토리.

    Task repository with scoped filtering and optimistic status writes.

    Extends:
        BaseRepository[Task]
    """

    def __init__(self) -> None:
        super().__init__(Task)

    async def get_detail(
        self,
        db: AsyncSession,
        task_id: UUID,
    ) -> Task | None:
        """업무 상세를 증빙 목록과 함께 조회합니다.

        Retrieve a task with its proofs eagerly loaded.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            task_id: 업무 UUID (Task UUID)

        Returns:
            Task | None: 업무 또는 None (Task or None)
        """
        query: Select = (
            select(Task)
            .where(Task.id == task_id)
            .options(selectinload(Task.proofs))
            # 조건부 UPDATE 이후에도 최신 값을 읽도록 세션 캐시를 덮어씀
            # Overwrite identity-map state; status writes bypass the ORM unit of work
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_filtered(
        self,
        db: AsyncSession,
        filters: dict[str, Any],
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Task], int]:
        """필터 조건으로 업무를 페이지네이션 조회합니다.

        Retrieve paginated tasks. Ordering: due date ascending with
        undated tasks last, then newest first.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            filters: assignee_id, created_by, department_id, status, priority
                     (department_id는 담당자의 부서 기준 — matches the assignee's department)
            page: 페이지 번호, 1부터 시작 (Page number, 1-based)
            per_page: 페이지당 항목 수 (Items per page)

        Returns:
            tuple[Sequence[Task], int]: (업무 목록, 전체 개수)
        """
        query: Select = self._apply_filters(select(Task), filters)
        query = query.order_by(
            Task.due_date.asc().nulls_last(),
            Task.created_at.desc(),
            Task.id,
        )
        return await self.get_paginated(db, query, page, per_page)

    async def count_by_status(
        self,
        db: AsyncSession,
        filters: dict[str, Any],
    ) -> dict[str, int]:
        """상태별 업무 수를 집계합니다.

        Aggregate task counts per status in a single query.

        Returns:
            dict[str, int]: open, inProgress, waitingReview, approved, rejected, total
        """

        def _count(status: TaskStatus) -> Any:
            return func.coalesce(func.sum(case((Task.status == status.value, 1), else_=0)), 0)

        query: Select = self._apply_filters(
            select(
                _count(TaskStatus.OPEN).label("open"),
                _count(TaskStatus.IN_PROGRESS).label("inProgress"),
                _count(TaskStatus.WAITING_FOR_REVIEW).label("waitingReview"),
                _count(TaskStatus.APPROVED).label("approved"),
                _count(TaskStatus.REJECTED).label("rejected"),
                func.count(Task.id).label("total"),
            ).select_from(Task),
            filters,
        )
        row = (await db.execute(query)).one()
        return {key: int(value or 0) for key, value in row._mapping.items()}

    async def compare_and_set_status(
        self,
        db: AsyncSession,
        task_id: UUID,
        expected: TaskStatus,
        values: dict[str, Any],
    ) -> bool:
        """현재 상태가 expected일 때만 업무를 갱신합니다.

        Conditional write: ``UPDATE tasks SET ... WHERE id = :id AND status = :expected``.
        Two racing writers for the same edge cannot both succeed.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            task_id: 업무 UUID (Task UUID)
            expected: 읽었던 상태 (Status the caller read)
            values: 갱신할 컬럼 값 (Column values to write, must include status)

        Returns:
            bool: 정확히 한 행이 갱신되었는지 여부 (True when exactly one row changed)
        """
        stmt = (
            update(Task)
            .where(Task.id == task_id, Task.status == expected.value)
            .values(**values, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        return result.rowcount == 1

    async def get_reviewed_in_period(
        self,
        db: AsyncSession,
        assignee_id: UUID,
        period_start: datetime,
        period_end: datetime,
    ) -> Sequence[Task]:
        """기간 내 검토된 직원의 업무를 조회합니다.

        Retrieve an employee's tasks whose latest review falls inside the
        inclusive scoring window.
        """
        query: Select = select(Task).where(
            Task.assignee_id == assignee_id,
            Task.reviewed_at.is_not(None),
            Task.reviewed_at >= period_start,
            Task.reviewed_at <= period_end,
        )
        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    def _apply_filters(query: Select, filters: dict[str, Any]) -> Select:
        if filters.get("assignee_id") is not None:
            query = query.where(Task.assignee_id == filters["assignee_id"])
        if filters.get("created_by") is not None:
            query = query.where(Task.created_by == filters["created_by"])
        if filters.get("department_id") is not None:
            query = query.join(User, User.id == Task.assignee_id).where(
                User.department_id == filters["department_id"]
            )
        if filters.get("status") is not None:
            query = query.where(Task.status == filters["status"])
        if filters.get("priority") is not None:
            query = query.where(Task.priority == filters["priority"])
        return query


# 싱글턴 인스턴스 — Singleton instance
task_repository: TaskRepository = TaskRepository()
