"""업무 검토 서비스 — 승인/반려 비즈니스 로직.

Review Service — Business logic for approving and rejecting tasks.
A review writes the task's four review fields and its new status in one
conditional UPDATE and appends a row to the review log and the
transition log in the same transaction. Reviews never trigger score
recalculation; scores are pulled.
"""

from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.task import ReviewDecision, Task, TaskReview, TaskStatus
from app.models.user import User
from app.repositories.task_repository import task_repository
from app.repositories.task_review_repository import task_review_repository
from app.repositories.task_status_change_repository import task_status_change_repository
from app.services.capability_service import capability_resolver
from app.utils.exceptions import (
    CommentRequiredError,
    ForbiddenError,
    InvalidRatingError,
    NotFoundError,
    StaleStateError,
)

logger = structlog.get_logger()

_DECISION_STATUS: dict[ReviewDecision, TaskStatus] = {
    ReviewDecision.APPROVE: TaskStatus.APPROVED,
    ReviewDecision.REJECT: TaskStatus.REJECTED,
}


def _valid_rating(rating: Any) -> bool:
    # bool은 int의 하위 타입이므로 제외 (bool is an int subtype)
    return isinstance(rating, int) and not isinstance(rating, bool) and 1 <= rating <= 5


class ReviewService:
    """업무 검토 서비스.

    Review processor: validates the reviewer, rating and comment, then
    applies the decision to a task waiting for review.
    """

    async def review(
        self,
        db: AsyncSession,
        actor: User,
        task_id: UUID,
        decision: ReviewDecision,
        rating: Any,
        comment: str | None = None,
    ) -> Task:
        """업무를 승인 또는 반려합니다.

        Approve or reject a task.

        Check order:
            1. 업무 존재 (NOT_FOUND 404)
            2. 담당자에 대한 검토 권한 (FORBIDDEN 403)
            3. 평점 1~5 정수 (INVALID_RATING 400)
            4. 반려 코멘트 정책 (COMMENT_REQUIRED 400)
            5. 현재 상태가 WAITING_FOR_REVIEW (STALE_STATE 409)

        APPROVE sets ``completed_at`` when unset, using the submission time
        and falling back to now. REJECT leaves ``completed_at`` untouched.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            actor: 검토자 (Reviewer)
            task_id: 업무 UUID (Task UUID)
            decision: 승인/반려 (APPROVE or REJECT)
            rating: 평점 (Rating, validated here)
            comment: 코멘트 (Comment, optional unless rejecting under policy)

        Returns:
            Task: 검토가 반영된 업무 (Reviewed task with proofs loaded)
        """
        task: Task | None = await task_repository.get_by_id(db, task_id)
        if task is None:
            raise NotFoundError("업무를 찾을 수 없습니다 (Task not found)")

        caps = await capability_resolver.resolve_for(db, actor, task.assignee_id)
        if not caps.is_reviewer:
            raise ForbiddenError("검토 권한이 없습니다 (Only a reviewer of the assignee can review this task)")

        if not _valid_rating(rating):
            raise InvalidRatingError()

        normalized_comment: str | None = comment.strip() if comment else None
        if not normalized_comment:
            normalized_comment = None
        if (
            decision == ReviewDecision.REJECT
            and settings.REQUIRE_REJECTION_COMMENT
            and normalized_comment is None
        ):
            raise CommentRequiredError()

        if task.status != TaskStatus.WAITING_FOR_REVIEW.value:
            raise StaleStateError(
                "업무가 검토 대기 상태가 아닙니다 (Task is no longer waiting for review, refetch and retry)"
            )

        now: datetime = datetime.now(timezone.utc)
        values: dict[str, Any] = {
            "status": _DECISION_STATUS[decision].value,
            "review_rating": rating,
            "review_comment": normalized_comment,
            "reviewed_by": actor.id,
            "reviewed_at": now,
        }
        if decision == ReviewDecision.APPROVE and task.completed_at is None:
            values["completed_at"] = task.submitted_at or now

        if not await task_repository.compare_and_set_status(
            db, task.id, TaskStatus.WAITING_FOR_REVIEW, values
        ):
            logger.warning(
                "task_review_stale_state",
                task_id=str(task.id),
                decision=decision.value,
                reviewer_id=str(actor.id),
            )
            raise StaleStateError()

        await task_status_change_repository.record(
            db, task.id, actor.id, TaskStatus.WAITING_FOR_REVIEW, _DECISION_STATUS[decision]
        )
        await task_review_repository.create(
            db,
            {
                "task_id": task.id,
                "reviewer_id": actor.id,
                "decision": decision.value,
                "rating": rating,
                "comment": normalized_comment,
                "created_at": now,
            },
        )
        logger.info(
            "task_reviewed",
            task_id=str(task.id),
            decision=decision.value,
            rating=rating,
            reviewer_id=str(actor.id),
        )
        return await task_repository.get_detail(db, task.id)

    async def list_reviews(
        self,
        db: AsyncSession,
        actor: User,
        task_id: UUID,
    ) -> Sequence[TaskReview]:
        """업무의 검토 이력을 조회합니다 — 담당자 또는 검토 권한자만.

        List a task's review log (assignee or reviewers of the assignee).
        """
        task: Task | None = await task_repository.get_by_id(db, task_id)
        if task is None:
            raise NotFoundError("업무를 찾을 수 없습니다 (Task not found)")
        caps = await capability_resolver.resolve_for(db, actor, task.assignee_id)
        if not caps.can_act:
            raise ForbiddenError("이 업무에 접근할 수 없습니다 (No access to this task)")
        return await task_review_repository.get_by_task_id(db, task.id)


# 싱글턴 인스턴스 — Singleton instance
review_service: ReviewService = ReviewService()
