"""사용자 레포지토리 — 직원 디렉터리 조회 쿼리.

User Repository — Read-only employee directory queries.
Employee records are managed elsewhere; this service never writes them.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.user import User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """사용자 테이블에 대한 조회 쿼리를 담당하는 레포지토리.

    Repository handling read queries for the users table.
    """

    def __init__(self) -> None:
        super().__init__(User)

    async def get_detail(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> User | None:
        """사용자를 역할 및 부서와 함께 조회합니다.

        Retrieve a user with role and department eagerly loaded.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 사용자 ID (User UUID)

        Returns:
            User | None: 역할/부서가 로드된 사용자 또는 None
        """
        query: Select = (
            select(User)
            .options(selectinload(User.role), selectinload(User.department))
            .where(User.id == user_id)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_many(
        self,
        db: AsyncSession,
        user_ids: list[UUID],
    ) -> Sequence[User]:
        """여러 사용자를 부서와 함께 한 번에 조회합니다.

        Retrieve several users (with department) in one query.
        """
        if not user_ids:
            return []
        query: Select = (
            select(User)
            .options(selectinload(User.department))
            .where(User.id.in_(user_ids))
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def get_active_ids(
        self,
        db: AsyncSession,
        department_id: UUID | None = None,
    ) -> list[UUID]:
        """재직 중인 직원 ID 목록 — Active employee ids, oldest account first."""
        query: Select = select(User.id).where(User.is_active.is_(True))
        if department_id is not None:
            query = query.where(User.department_id == department_id)
        query = query.order_by(User.created_at, User.id)
        result = await db.execute(query)
        return list(result.scalars().all())


# 싱글턴 인스턴스 — Singleton instance
user_repository: UserRepository = UserRepository()
