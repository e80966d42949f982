"""상태 변경 이력 레포지토리 — Task transition log queries."""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.task import TaskStatus, TaskStatusChange
from app.repositories.base import BaseRepository


class TaskStatusChangeRepository(BaseRepository[TaskStatusChange]):
    """상태 변경 이력 레포지토리 (append-only)."""

    def __init__(self) -> None:
        super().__init__(TaskStatusChange)

    async def record(
        self,
        db: AsyncSession,
        task_id: UUID,
        actor_id: UUID,
        from_status: TaskStatus,
        to_status: TaskStatus,
    ) -> TaskStatusChange:
        """성공한 전이 1건을 기록합니다. 커밋은 호출자 몫 (caller commits)."""
        return await self.create(
            db,
            {
                "task_id": task_id,
                "actor_id": actor_id,
                "from_status": from_status.value,
                "to_status": to_status.value,
            },
        )

    async def get_by_task_id(
        self,
        db: AsyncSession,
        task_id: UUID,
    ) -> Sequence[TaskStatusChange]:
        """업무의 상태 변경 이력을 오래된 순으로 조회합니다."""
        query: Select = (
            select(TaskStatusChange)
            .where(TaskStatusChange.task_id == task_id)
            .order_by(TaskStatusChange.created_at.asc(), TaskStatusChange.id.asc())
        )
        result = await db.execute(query)
        return result.scalars().all()


# 싱글턴 인스턴스 — Singleton instance
task_status_change_repository: TaskStatusChangeRepository = TaskStatusChangeRepository()
