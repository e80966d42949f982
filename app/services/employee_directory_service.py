"""직원 디렉터리 서비스 — 직원 정보 조회 전용.

Employee Directory Service — Read-only lookups of employee attributes
(name, job title, department) used to enrich leaderboard entries,
plus the active-employee roster for batch scoring.
"""

from dataclasses import dataclass
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.user_repository import user_repository


@dataclass(frozen=True)
class EmployeeProfile:
    """직원 요약 정보 (Employee summary)."""

    id: UUID
    full_name: str
    job_title: str | None
    department_id: UUID | None
    department_name: str | None
    is_active: bool


def _to_profile(user: User) -> EmployeeProfile:
    return EmployeeProfile(
        id=user.id,
        full_name=user.full_name,
        job_title=user.job_title,
        department_id=user.department_id,
        department_name=user.department.name if user.department is not None else None,
        is_active=user.is_active,
    )


class EmployeeDirectoryService:
    """직원 디렉터리 서비스."""

    async def exists(self, db: AsyncSession, employee_id: UUID) -> bool:
        return await user_repository.exists(db, {"id": employee_id})

    async def get_profiles(
        self,
        db: AsyncSession,
        employee_ids: Sequence[UUID],
    ) -> dict[UUID, EmployeeProfile]:
        """여러 직원의 요약 정보를 조회합니다.

        Resolve many employee ids to profiles in one query. Unknown ids are
        simply absent from the result.
        """
        users: Sequence[User] = await user_repository.get_many(db, list(employee_ids))
        return {user.id: _to_profile(user) for user in users}

    async def list_active_ids(
        self,
        db: AsyncSession,
        department_id: UUID | None = None,
    ) -> list[UUID]:
        """재직 중인 직원 ID 목록 — Active employee ids (batch roster)."""
        return await user_repository.get_active_ids(db, department_id)


# 싱글턴 인스턴스 — Singleton instance
employee_directory_service: EmployeeDirectoryService = EmployeeDirectoryService()
