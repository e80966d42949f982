"""업무 증빙 레포지토리 — 업무 증빙 관련 DB 쿼리 담당.

Task Proof Repository — Handles all task-proof-related database queries.
Proofs are append-only: there is deliberately no update or delete here.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.task import TaskProof
from app.repositories.base import BaseRepository


class TaskProofRepository(BaseRepository[TaskProof]):
    """업무 증빙 레포지토리.

    Task proof repository: ordered listing and counting. Appends go through
    the inherited ``create_many``.
    """

    def __init__(self) -> None:
        super().__init__(TaskProof)

    async def get_by_task_id(
        self,
        db: AsyncSession,
        task_id: UUID,
    ) -> Sequence[TaskProof]:
        """특정 업무의 모든 증빙을 업로드 순으로 조회합니다.

        Retrieve all proofs for a task, oldest first (evidence trail order).

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            task_id: 업무 UUID (Task UUID)

        Returns:
            Sequence[TaskProof]: 증빙 목록 (List of proof records)
        """
        query: Select = (
            select(TaskProof)
            .where(TaskProof.task_id == task_id)
            .order_by(TaskProof.created_at.asc(), TaskProof.id.asc())
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def count_by_task_id(
        self,
        db: AsyncSession,
        task_id: UUID,
    ) -> int:
        """특정 업무의 증빙 수 — Number of proofs attached to a task."""
        query: Select = select(func.count(TaskProof.id)).where(TaskProof.task_id == task_id)
        return (await db.execute(query)).scalar() or 0


# 싱글턴 인스턴스 — Singleton instance
task_proof_repository: TaskProofRepository = TaskProofRepository()
