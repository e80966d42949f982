"""공통 레포지토리 — 도메인 레포지토리의 부모 클래스.

Shared repository base. Lookups, paging and inserts are common to every
table; ``update`` exists only for the mutable task fields edited through
``PUT /tasks/{id}``. Append-only tables (proofs, reviews, score snapshots,
warnings) only ever call ``create``/``create_many``, and status changes
never go through ``update`` (see ``TaskRepository.compare_and_set_status``).

Usage:
    class TaskProofRepository(BaseRepository[TaskProof]):
        def __init__(self) -> None:
            super().__init__(TaskProof)
"""

from typing import Any, Generic, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import Select, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import Base

# 레포지토리가 다루는 ORM 모델 타입 (ORM model handled by a repository)
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """모델 하나에 묶인 공통 쿼리 모음.

    Attributes:
        model: 대상 ORM 모델 클래스 (Target ORM model class)
    """

    def __init__(self, model: type[ModelType]) -> None:
        self.model: type[ModelType] = model

    async def get_by_id(self, db: AsyncSession, record_id: UUID) -> ModelType | None:
        """기본 키 조회 — None when no row has this id."""
        result = await db.execute(select(self.model).where(self.model.id == record_id))
        return result.scalar_one_or_none()

    async def get_paginated(
        self,
        db: AsyncSession,
        query: Select,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[ModelType], int]:
        """정렬된 쿼리를 한 페이지만 실행합니다.

        Run an already filtered and ordered query for one page and count
        the full result set.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            query: 필터/정렬이 적용된 SELECT (Filtered, ordered SELECT)
            page: 1부터 시작하는 페이지 (1-based page)
            per_page: 페이지 크기 (Page size)

        Returns:
            tuple[Sequence[ModelType], int]: (현재 페이지 행, 전체 개수)
                                             (Rows of the page, total count)
        """
        # 정렬은 개수 계산에 불필요 (ordering is dropped for the count)
        counted: Select = select(func.count()).select_from(query.order_by(None).subquery())
        total: int = (await db.execute(counted)).scalar() or 0

        paged: Select = query.offset((page - 1) * per_page).limit(per_page)
        rows: Sequence[ModelType] = (await db.execute(paged)).scalars().all()
        return rows, total

    async def create(self, db: AsyncSession, obj_data: dict[str, Any]) -> ModelType:
        """행 하나를 추가하고 서버 기본값까지 읽어 옵니다.

        Insert one row, flush and refresh so server defaults
        (``created_at`` and friends) are populated. The caller commits.
        """
        db_obj: ModelType = self.model(**obj_data)
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def create_many(self, db: AsyncSession, rows: list[dict[str, Any]]) -> list[ModelType]:
        """여러 행을 한 번의 flush로 추가합니다 (Insert several rows in one flush)."""
        objs: list[ModelType] = [self.model(**row) for row in rows]
        db.add_all(objs)
        await db.flush()
        return objs

    async def update(
        self,
        db: AsyncSession,
        record_id: UUID,
        update_data: dict[str, Any],
    ) -> ModelType | None:
        """전달된 필드만 덮어씁니다.

        Overwrite only the given fields (``exclude_unset`` payloads, so an
        explicit None clears a column). Unknown keys are ignored.

        Returns:
            ModelType | None: 갱신된 행, 없으면 None (Updated row or None)
        """
        db_obj: ModelType | None = await self.get_by_id(db, record_id)
        if db_obj is None:
            return None

        for field, value in update_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def exists(self, db: AsyncSession, filters: dict[str, Any]) -> bool:
        """동등 조건에 맞는 행이 하나라도 있는지 확인합니다 (EXISTS query)."""
        conditions = [
            getattr(self.model, column) == value
            for column, value in filters.items()
            if hasattr(self.model, column)
        ]
        return bool((await db.execute(select(exists().where(*conditions)))).scalar())
