"""검토 이력 레포지토리 — Task review log queries."""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.task import TaskReview
from app.repositories.base import BaseRepository


class TaskReviewRepository(BaseRepository[TaskReview]):
    """검토 이력 레포지토리 (append-only)."""

    def __init__(self) -> None:
        super().__init__(TaskReview)

    async def get_by_task_id(
        self,
        db: AsyncSession,
        task_id: UUID,
    ) -> Sequence[TaskReview]:
        """업무의 검토 이력을 오래된 순으로 조회합니다.

        Retrieve a task's review log, oldest first.
        """
        query: Select = (
            select(TaskReview)
            .where(TaskReview.task_id == task_id)
            .order_by(TaskReview.created_at.asc(), TaskReview.id.asc())
        )
        result = await db.execute(query)
        return result.scalars().all()


# 싱글턴 인스턴스 — Singleton instance
task_review_repository: TaskReviewRepository = TaskReviewRepository()
