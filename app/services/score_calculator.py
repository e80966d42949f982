"""성과 점수 계산기 — DB 없이 동작하는 순수 계산 모듈.

Performance score calculator — Pure functions, no database access.
Turns the metrics gathered for one employee and period into four bounded
components, a 0..100 total and a letter grade.

Components:
    task_rating   (max 40): 평균 평점 / 5 × 40
    completion    (max 25): 승인 업무 / 전체 업무 × 25
    consistency   (max 20): 마감 준수율 × 20
    disciplinary  (max 15): max(0, 15 − 경고 수 × 감점)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

from app.config import settings

TASK_RATING_MAX: float = 40.0
COMPLETION_MAX: float = 25.0
CONSISTENCY_MAX: float = 20.0
DISCIPLINARY_MAX: float = 15.0
TOTAL_MAX: float = 100.0


@dataclass(frozen=True)
class ScorePolicy:
    """점수 정책 파라미터 (Tunable scoring parameters)."""

    penalty_per_warning: float = 5.0
    neutral_on_time_rate: float = 0.5
    # 높은 등급부터 (best grade first); 미만은 "F"
    grade_thresholds: tuple[tuple[str, float], ...] = (("A", 90.0), ("B", 75.0), ("C", 60.0), ("D", 40.0))

    @classmethod
    def from_settings(cls) -> "ScorePolicy":
        thresholds = sorted(settings.GRADE_THRESHOLDS.items(), key=lambda item: item[1], reverse=True)
        return cls(
            penalty_per_warning=settings.PENALTY_PER_WARNING,
            neutral_on_time_rate=settings.CONSISTENCY_NEUTRAL_RATE,
            grade_thresholds=tuple((grade, float(floor)) for grade, floor in thresholds),
        )


@dataclass(frozen=True)
class TaskSample:
    """점수 계산에 쓰이는 업무 1건의 요약 (One reviewed task, reduced to what scoring needs)."""

    approved: bool
    rating: int | None
    due_date: datetime | None = None
    completed_at: datetime | None = None


@dataclass(frozen=True)
class ScoreMetrics:
    """원천 지표 (Raw metrics for one employee and period)."""

    total_tasks: int = 0
    approved_tasks: int = 0
    rejected_tasks: int = 0
    avg_rating: float = 0.0
    on_time_rate: float = 0.0
    warning_count: int = 0


@dataclass(frozen=True)
class ScoreBreakdown:
    """계산 결과 (Computed components, total and grade)."""

    task_rating_score: float
    completion_score: float
    consistency_score: float
    disciplinary_score: float
    total_score: float
    grade: str
    metrics: ScoreMetrics = field(default_factory=ScoreMetrics)


def _clamp(value: float, upper: float) -> float:
    return max(0.0, min(upper, value))


def _round(value: float) -> float:
    return round(value, 2)


def _naive_utc(value: datetime) -> datetime:
    # SQLite는 tz 정보를 저장하지 않음 (SQLite drops tzinfo; compare as naive UTC)
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _on_time(sample: TaskSample) -> bool:
    return _naive_utc(sample.completed_at) <= _naive_utc(sample.due_date)


def collect_metrics(
    samples: Iterable[TaskSample],
    warning_count: int,
    policy: ScorePolicy,
) -> ScoreMetrics:
    """업무 표본과 경고 수로 원천 지표를 계산합니다.

    Reduce reviewed tasks and the warning count to raw metrics.

    On-time rate is the share of tasks with a due date that were completed
    at or before it; a dated task without a completion time (rejected or
    still in rework) counts as late. When tasks exist but none has a due
    date, the neutral rate applies; with no tasks at all it is 0.
    """
    tasks: list[TaskSample] = list(samples)
    total: int = len(tasks)
    approved: int = sum(1 for task in tasks if task.approved)

    ratings: list[int] = [task.rating for task in tasks if task.rating is not None]
    avg_rating: float = sum(ratings) / len(ratings) if ratings else 0.0

    dated: list[TaskSample] = [task for task in tasks if task.due_date is not None]
    if dated:
        on_time: int = sum(1 for task in dated if task.completed_at is not None and _on_time(task))
        on_time_rate: float = on_time / len(dated)
    elif total > 0:
        on_time_rate = policy.neutral_on_time_rate
    else:
        on_time_rate = 0.0

    return ScoreMetrics(
        total_tasks=total,
        approved_tasks=approved,
        rejected_tasks=total - approved,
        avg_rating=avg_rating,
        on_time_rate=_clamp(on_time_rate, 1.0),
        warning_count=max(0, warning_count),
    )


def grade_for(total: float, policy: ScorePolicy) -> str:
    """총점에 해당하는 등급 — Letter grade for a total score."""
    for grade, floor in policy.grade_thresholds:
        if total >= floor:
            return grade
    return "F"


def compute_score(metrics: ScoreMetrics, policy: ScorePolicy) -> ScoreBreakdown:
    """원천 지표로 구성 점수, 총점, 등급을 계산합니다.

    Compute components, total and grade. Every component is rounded to two
    decimals and clamped to ``[0, max]``; the total is the rounded sum
    clamped to ``[0, 100]``. Degenerate inputs (no tasks, no ratings) give 0
    for the affected components rather than failing.

    Args:
        metrics: 원천 지표 (Raw metrics)
        policy: 점수 정책 (Scoring policy)

    Returns:
        ScoreBreakdown: 계산 결과 (Computed result)
    """
    task_rating: float = (metrics.avg_rating / 5.0) * TASK_RATING_MAX if metrics.avg_rating > 0 else 0.0
    completion: float = (
        (metrics.approved_tasks / metrics.total_tasks) * COMPLETION_MAX if metrics.total_tasks > 0 else 0.0
    )
    consistency: float = metrics.on_time_rate * CONSISTENCY_MAX
    disciplinary: float = DISCIPLINARY_MAX - metrics.warning_count * policy.penalty_per_warning

    task_rating = _clamp(_round(task_rating), TASK_RATING_MAX)
    completion = _clamp(_round(completion), COMPLETION_MAX)
    consistency = _clamp(_round(consistency), CONSISTENCY_MAX)
    disciplinary = _clamp(_round(disciplinary), DISCIPLINARY_MAX)

    total: float = _clamp(_round(task_rating + completion + consistency + disciplinary), TOTAL_MAX)

    return ScoreBreakdown(
        task_rating_score=task_rating,
        completion_score=completion,
        consistency_score=consistency,
        disciplinary_score=disciplinary,
        total_score=total,
        grade=grade_for(total, policy),
        metrics=metrics,
    )
