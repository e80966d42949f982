"""성과 점수 서비스 — 점수 계산, 스냅샷 저장, 일괄 재계산.

Score Service — Gathers an employee's reviewed tasks and warnings for a
period, runs the pure calculator and stores the result as a new snapshot.
The batch job recalculates many employees with a fixed pool of workers,
each employee in its own session, so one failure never affects siblings.
"""

import asyncio
import calendar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Sequence
from uuid import UUID

import structlog
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.models.score import EmployeeScore
from app.models.task import Task, TaskStatus
from app.models.user import User
from app.repositories.score_repository import score_repository
from app.repositories.task_repository import task_repository
from app.repositories.warning_repository import warning_repository
from app.services.capability_service import capability_resolver
from app.services.employee_directory_service import employee_directory_service
from app.services.score_calculator import (
    ScoreBreakdown,
    ScoreMetrics,
    ScorePolicy,
    TaskSample,
    collect_metrics,
    compute_score,
)
from app.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError

logger = structlog.get_logger()


def shift_months(value: datetime, months: int) -> datetime:
    """날짜를 개월 단위로 이동 — Move a datetime by whole months, clamping the day."""
    month_index: int = value.month - 1 + months
    year: int = value.year + month_index // 12
    month: int = month_index % 12 + 1
    day: int = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def as_utc(value: datetime) -> datetime:
    """tz 정보가 없으면 UTC로 간주 — Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def default_period(now: datetime | None = None) -> tuple[datetime, datetime]:
    """기본 계산 기간 — The last SCORE_PERIOD_MONTHS months ending now."""
    end: datetime = now or datetime.now(timezone.utc)
    return shift_months(end, -settings.SCORE_PERIOD_MONTHS), end


@dataclass
class BatchOutcome:
    """일괄 재계산 결과.

    Batch recalculation outcome: per-employee snapshot or error message, and
    employees never started because the deadline passed.
    """

    results: dict[UUID, EmployeeScore | str] = field(default_factory=dict)
    skipped: list[UUID] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for value in self.results.values() if isinstance(value, EmployeeScore))

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded


def _error_message(exc: Exception) -> str:
    if isinstance(exc, HTTPException):
        return str(exc.detail)
    return f"{type(exc).__name__}: {exc}"


def _to_sample(task: Task) -> TaskSample:
    return TaskSample(
        approved=task.status == TaskStatus.APPROVED.value,
        rating=task.review_rating,
        due_date=task.due_date,
        completed_at=task.completed_at,
    )


class ScoreService:
    """성과 점수 서비스."""

    def _resolve_period(
        self,
        period_start: datetime | None,
        period_end: datetime | None,
    ) -> tuple[datetime, datetime]:
        default_start, default_end = default_period(period_end)
        start: datetime = as_utc(period_start or default_start)
        end: datetime = as_utc(period_end or default_end)
        if start > end:
            raise BadRequestError("기간 시작이 종료보다 늦습니다 (period_start must not be after period_end)")
        return start, end

    async def gather_metrics(
        self,
        db: AsyncSession,
        employee_id: UUID,
        period_start: datetime,
        period_end: datetime,
        policy: ScorePolicy,
    ) -> ScoreMetrics:
        """기간 내 업무와 경고로 원천 지표를 수집합니다.

        Collect raw metrics from tasks reviewed in the window and warnings in
        force at its end. Read-only.
        """
        tasks: Sequence[Task] = await task_repository.get_reviewed_in_period(
            db, employee_id, period_start, period_end
        )
        warnings: int = await warning_repository.count_active_in_period(
            db, employee_id, period_start, period_end
        )
        return collect_metrics((_to_sample(task) for task in tasks), warnings, policy)

    async def compute(
        self,
        db: AsyncSession,
        employee_id: UUID,
        period_start: datetime | None = None,
        period_end: datetime | None = None,
    ) -> tuple[ScoreBreakdown, datetime, datetime]:
        """저장 없이 점수를 계산합니다 — Compute without persisting.

        Raises:
            NotFoundError: 직원 없음 (Unknown employee)
            BadRequestError: 잘못된 기간 (Inverted period)
        """
        if not await employee_directory_service.exists(db, employee_id):
            raise NotFoundError("직원을 찾을 수 없습니다 (Employee not found)")
        start, end = self._resolve_period(period_start, period_end)
        policy: ScorePolicy = ScorePolicy.from_settings()
        metrics: ScoreMetrics = await self.gather_metrics(db, employee_id, start, end, policy)
        return compute_score(metrics, policy), start, end

    async def calculate(
        self,
        db: AsyncSession,
        employee_id: UUID,
        period_start: datetime | None = None,
        period_end: datetime | None = None,
        calculated_by: UUID | None = None,
    ) -> EmployeeScore:
        """직원 1명의 점수를 계산하고 새 스냅샷으로 저장합니다.

        Calculate one employee's score and insert a new snapshot. Identical
        inputs produce identical component and metric values.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            employee_id: 직원 UUID (Employee UUID)
            period_start: 기간 시작, None이면 기본 기간 (Window start; default window when None)
            period_end: 기간 종료, None이면 현재 (Window end; now when None)
            calculated_by: 요청자, None이면 시스템 (Requesting actor; None for system)

        Returns:
            EmployeeScore: 새로 저장된 스냅샷 (The inserted snapshot)
        """
        breakdown, start, end = await self.compute(db, employee_id, period_start, period_end)
        metrics: ScoreMetrics = breakdown.metrics

        score: EmployeeScore = await score_repository.create(
            db,
            {
                "employee_id": employee_id,
                "period_start": start,
                "period_end": end,
                "task_rating_score": breakdown.task_rating_score,
                "completion_score": breakdown.completion_score,
                "consistency_score": breakdown.consistency_score,
                "disciplinary_score": breakdown.disciplinary_score,
                "total_score": breakdown.total_score,
                "grade": breakdown.grade,
                "total_tasks": metrics.total_tasks,
                "approved_tasks": metrics.approved_tasks,
                "rejected_tasks": metrics.rejected_tasks,
                "avg_rating": round(metrics.avg_rating, 2),
                "on_time_rate": round(metrics.on_time_rate, 4),
                "warning_count": metrics.warning_count,
                "calculated_by": calculated_by,
            },
        )
        logger.info(
            "score_calculated",
            employee_id=str(employee_id),
            total_score=breakdown.total_score,
            grade=breakdown.grade,
            total_tasks=metrics.total_tasks,
        )
        return score

    async def calculate_all(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        period_start: datetime | None = None,
        period_end: datetime | None = None,
        employee_ids: list[UUID] | None = None,
        deadline_seconds: float | None = None,
        calculated_by: UUID | None = None,
        concurrency: int | None = None,
    ) -> BatchOutcome:
        """여러 직원의 점수를 제한된 동시성으로 재계산합니다.

        Recalculate many employees with a fixed pool of workers draining a
        queue. Each employee runs in its own session and transaction; any
        exception is logged and recorded as that employee's error. Once the
        deadline passes, workers take no new employees, in-flight work
        finishes and the untouched employees are reported as skipped.

        Args:
            session_factory: 직원별 세션을 여는 팩토리 (Factory for per-employee sessions)
            period_start / period_end: 계산 기간 (Window; default window when None)
            employee_ids: 대상 직원, None이면 재직자 전체 (Targets; all active employees when None)
            deadline_seconds: 마감 시간(초) (Soft deadline; SCORE_BATCH_DEADLINE_SECONDS when None)
            calculated_by: 요청자 (Requesting actor)
            concurrency: 워커 수 (Worker count; SCORE_BATCH_CONCURRENCY when None)

        Returns:
            BatchOutcome: 직원별 결과와 건너뛴 직원 (Per-employee results and skipped ids)
        """
        start, end = self._resolve_period(period_start, period_end)

        if employee_ids is None:
            async with session_factory() as session:
                employee_ids = await employee_directory_service.list_active_ids(session)
        targets: list[UUID] = list(dict.fromkeys(employee_ids))

        outcome: BatchOutcome = BatchOutcome()
        if not targets:
            return outcome

        queue: asyncio.Queue[UUID] = asyncio.Queue()
        for employee_id in targets:
            queue.put_nowait(employee_id)

        loop = asyncio.get_running_loop()
        deadline: float | None = (
            deadline_seconds if deadline_seconds is not None else settings.SCORE_BATCH_DEADLINE_SECONDS
        )
        deadline_at: float | None = loop.time() + deadline if deadline is not None else None
        started: set[UUID] = set()

        async def worker() -> None:
            while True:
                if deadline_at is not None and loop.time() >= deadline_at:
                    return
                try:
                    employee_id: UUID = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                started.add(employee_id)
                try:
                    async with session_factory() as session:
                        score: EmployeeScore = await self.calculate(
                            session, employee_id, start, end, calculated_by
                        )
                        await session.commit()
                    outcome.results[employee_id] = score
                except Exception as exc:
                    # 직원 단위 격리 — one employee's failure never cancels the others
                    logger.exception("score_calculation_failed", employee_id=str(employee_id))
                    outcome.results[employee_id] = _error_message(exc)

        pool_size: int = max(1, min(concurrency or settings.SCORE_BATCH_CONCURRENCY, len(targets)))
        await asyncio.gather(*(worker() for _ in range(pool_size)))

        outcome.skipped = [employee_id for employee_id in targets if employee_id not in started]
        logger.info(
            "score_batch_finished",
            requested=len(targets),
            succeeded=outcome.succeeded,
            failed=outcome.failed,
            skipped=len(outcome.skipped),
        )
        return outcome

    async def _check_read_access(self, db: AsyncSession, actor: User, employee_id: UUID) -> None:
        caps = await capability_resolver.resolve_for(db, actor, employee_id)
        if not caps.can_view_scores:
            raise ForbiddenError("다른 직원의 점수를 볼 권한이 없습니다 (You can only view your own score)")

    async def get_latest(
        self,
        db: AsyncSession,
        actor: User,
        employee_id: UUID,
    ) -> EmployeeScore:
        """직원의 최신 점수 — Newest snapshot; 404 when never calculated."""
        await self._check_read_access(db, actor, employee_id)
        score: EmployeeScore | None = await score_repository.get_latest(db, employee_id)
        if score is None:
            raise NotFoundError("계산된 점수가 없습니다 (No score calculated yet)")
        return score

    async def get_history(
        self,
        db: AsyncSession,
        actor: User,
        employee_id: UUID,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[EmployeeScore], int]:
        """직원의 점수 이력 — Snapshots newest first, paginated."""
        await self._check_read_access(db, actor, employee_id)
        return await score_repository.get_history(db, employee_id, page, per_page)

    async def preview(
        self,
        db: AsyncSession,
        actor: User,
        employee_id: UUID,
        period_start: datetime | None = None,
        period_end: datetime | None = None,
    ) -> tuple[ScoreBreakdown, datetime, datetime]:
        """저장하지 않는 실시간 점수 — Live score without inserting a snapshot."""
        await self._check_read_access(db, actor, employee_id)
        return await self.compute(db, employee_id, period_start, period_end)

    async def recalculate(
        self,
        db: AsyncSession,
        actor: User,
        employee_id: UUID,
        period_start: datetime | None = None,
        period_end: datetime | None = None,
    ) -> EmployeeScore:
        """관리자 요청 재계산 — Recalculate on behalf of a reviewer of the employee."""
        caps = await capability_resolver.resolve_for(db, actor, employee_id, must_exist=True)
        if not caps.is_reviewer:
            raise ForbiddenError("해당 직원의 점수를 계산할 권한이 없습니다 (Employee is outside your scope)")
        return await self.calculate(db, employee_id, period_start, period_end, calculated_by=actor.id)


# 싱글턴 인스턴스 — Singleton instance
score_service: ScoreService = ScoreService()
