"""리더보드 서비스 — 직원별 최신 점수 순위.

Leaderboard Service — Ranks the newest snapshot of each employee.
Ties are broken by average rating, then on-time rate, then employee id,
so the order is total and stable across calls.
"""

from dataclasses import dataclass
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.score import EmployeeScore
from app.models.user import User
from app.repositories.score_repository import score_repository
from app.services.capability_service import capability_resolver
from app.services.employee_directory_service import EmployeeProfile, employee_directory_service
from app.utils.exceptions import ForbiddenError


@dataclass(frozen=True)
class LeaderboardEntry:
    """순위 항목 (Ranked snapshot with employee attributes)."""

    rank: int
    score: EmployeeScore
    profile: EmployeeProfile | None


def rank_key(score: EmployeeScore) -> tuple[float, float, float, str]:
    """정렬 키 — total desc, avg_rating desc, on_time_rate desc, employee_id asc."""
    return (-score.total_score, -score.avg_rating, -score.on_time_rate, str(score.employee_id))


def rank_snapshots(scores: Sequence[EmployeeScore]) -> list[EmployeeScore]:
    """스냅샷을 순위대로 정렬합니다 — Sort snapshots into leaderboard order."""
    return sorted(scores, key=rank_key)


class LeaderboardService:
    """리더보드 서비스."""

    async def rank(
        self,
        db: AsyncSession,
        actor: User,
        department_id: UUID | None = None,
        limit: int = 10,
    ) -> tuple[list[LeaderboardEntry], int]:
        """리더보드를 조회합니다 (관리자 전용).

        Build the leaderboard from each employee's newest snapshot.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            actor: 요청자 (Caller; managers only)
            department_id: 부서 필터 (Department filter, optional)
            limit: 최대 항목 수, 호출 측에서 상한 적용 (Entry count, already capped by the caller)

        Returns:
            tuple[list[LeaderboardEntry], int]: (순위 항목, 점수가 있는 직원 수)
        """
        if not capability_resolver.is_manager(actor):
            raise ForbiddenError("관리자만 리더보드를 볼 수 있습니다 (Managers only)")

        latest: Sequence[EmployeeScore] = await score_repository.get_latest_per_employee(db, department_id)
        ordered: list[EmployeeScore] = rank_snapshots(latest)[:limit]
        profiles: dict[UUID, EmployeeProfile] = await employee_directory_service.get_profiles(
            db, [score.employee_id for score in ordered]
        )
        entries: list[LeaderboardEntry] = [
            LeaderboardEntry(rank=index, score=score, profile=profiles.get(score.employee_id))
            for index, score in enumerate(ordered, start=1)
        ]
        return entries, len(latest)


# 싱글턴 인스턴스 — Singleton instance
leaderboard_service: LeaderboardService = LeaderboardService()
