"""업무 서비스 — 업무 생명주기(상태 머신) 비즈니스 로직.

Task Service — Business logic for the task lifecycle.
Owns the transition table, enforces the actor and evidence guards and
writes every status change as a compare-and-swap so concurrent writers
cannot both win.

State machine:
    OPEN → IN_PROGRESS → WAITING_FOR_REVIEW → APPROVED (terminal)
                                           ↘ REJECTED → IN_PROGRESS
"""

import enum
from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.task import ReviewDecision, Task, TaskStatus, TaskStatusChange
from app.models.user import User
from app.repositories.task_repository import task_repository
from app.repositories.task_status_change_repository import task_status_change_repository
from app.repositories.user_repository import user_repository
from app.schemas.task import TaskCreate, TaskUpdate
from app.services.capability_service import Capabilities, TeamScope, capability_resolver
from app.services.review_service import review_service
from app.services.task_proof_service import task_proof_service
from app.utils.exceptions import (
    BadRequestError,
    ForbiddenError,
    InsufficientEvidenceError,
    InvalidTransitionError,
    NotFoundError,
    StaleStateError,
)

logger = structlog.get_logger()


class EdgeActor(str, enum.Enum):
    """전이를 수행할 수 있는 주체 (Who may fire an edge)."""

    PARTICIPANT = "participant"  # 담당자 또는 담당자의 검토자 (assignee or reviewer-for-assignee)
    REVIEWER = "reviewer"  # 담당자의 검토자만 (reviewer-for-assignee only)


# 상태 전이 표 — 유일한 진실 공급원 (single source of truth for legal edges)
TRANSITIONS: dict[TaskStatus, dict[TaskStatus, EdgeActor]] = {
    TaskStatus.OPEN: {TaskStatus.IN_PROGRESS: EdgeActor.PARTICIPANT},
    TaskStatus.IN_PROGRESS: {TaskStatus.WAITING_FOR_REVIEW: EdgeActor.PARTICIPANT},
    TaskStatus.WAITING_FOR_REVIEW: {
        TaskStatus.APPROVED: EdgeActor.REVIEWER,
        TaskStatus.REJECTED: EdgeActor.REVIEWER,
    },
    TaskStatus.REJECTED: {TaskStatus.IN_PROGRESS: EdgeActor.PARTICIPANT},
    TaskStatus.APPROVED: {},
}

# 검토로 위임되는 목표 상태 — Targets handled by the review service
_REVIEW_TARGETS: dict[TaskStatus, ReviewDecision] = {
    TaskStatus.APPROVED: ReviewDecision.APPROVE,
    TaskStatus.REJECTED: ReviewDecision.REJECT,
}

TASK_VIEWS: tuple[str, ...] = ("mine", "review", "created", "team")


def allowed_targets(current: TaskStatus) -> list[str]:
    """현재 상태에서 갈 수 있는 상태 목록 — Reachable targets from ``current``."""
    return [target.value for target in TRANSITIONS.get(current, {})]


class TaskService:
    """업무 서비스.

    Task service: creation, scoped listing, statistics and state transitions.
    """

    async def _get_task_or_404(self, db: AsyncSession, task_id: UUID) -> Task:
        task: Task | None = await task_repository.get_by_id(db, task_id)
        if task is None:
            raise NotFoundError("업무를 찾을 수 없습니다 (Task not found)")
        return task

    async def _capabilities(self, db: AsyncSession, actor: User, task: Task) -> Capabilities:
        return await capability_resolver.resolve_for(db, actor, task.assignee_id)

    @staticmethod
    def _scope_filters(scope: TeamScope) -> dict[str, Any]:
        if scope.org_wide:
            return {}
        return {"department_id": scope.department_id}

    async def create_task(
        self,
        db: AsyncSession,
        actor: User,
        data: TaskCreate,
    ) -> Task:
        """새 업무를 생성합니다.

        Create a task in OPEN status assigned to one employee.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            actor: 요청자 (Calling manager)
            data: 업무 생성 데이터 (Task creation data)

        Returns:
            Task: 생성된 업무 (Created task with proofs loaded)

        Raises:
            ForbiddenError: 관리자가 아니거나 담당자에 대한 검토 권한 없음
                            (Caller is not a manager or does not review the assignee)
            NotFoundError: 담당자가 없거나 비활성 (Assignee unknown or inactive)
        """
        if not capability_resolver.is_manager(actor):
            raise ForbiddenError("관리자만 업무를 생성할 수 있습니다 (Only managers can create tasks)")

        assignee: User | None = await user_repository.get_by_id(db, data.assignee_id)
        if assignee is None or not assignee.is_active:
            raise NotFoundError("담당자를 찾을 수 없습니다 (Assignee not found)")

        if not capability_resolver.resolve(actor, assignee).is_reviewer:
            raise ForbiddenError("해당 직원에게 업무를 배정할 권한이 없습니다 (Assignee is outside your scope)")

        task: Task = await task_repository.create(
            db,
            {
                "title": data.title,
                "description": data.description,
                "priority": data.priority.value,
                "status": TaskStatus.OPEN.value,
                "assignee_id": assignee.id,
                "created_by": actor.id,
                "due_date": data.due_date,
            },
        )
        logger.info("task_created", task_id=str(task.id), assignee_id=str(assignee.id), created_by=str(actor.id))
        return await task_repository.get_detail(db, task.id)

    async def get_task(
        self,
        db: AsyncSession,
        actor: User,
        task_id: UUID,
    ) -> Task:
        """업무 상세 조회 — 담당자 또는 검토 권한자만.

        Get a task with proofs. Visible to the assignee and reviewers of the assignee.
        """
        task: Task = await self._get_task_or_404(db, task_id)
        if not (await self._capabilities(db, actor, task)).can_act:
            raise ForbiddenError("이 업무에 접근할 수 없습니다 (No access to this task)")
        return await task_repository.get_detail(db, task.id)

    async def list_status_changes(
        self,
        db: AsyncSession,
        actor: User,
        task_id: UUID,
    ) -> Sequence[TaskStatusChange]:
        """상태 변경 이력 — Transition log of a task, oldest first."""
        task: Task = await self._get_task_or_404(db, task_id)
        if not (await self._capabilities(db, actor, task)).can_act:
            raise ForbiddenError("이 업무에 접근할 수 없습니다 (No access to this task)")
        return await task_status_change_repository.get_by_task_id(db, task.id)

    async def update_task(
        self,
        db: AsyncSession,
        actor: User,
        task_id: UUID,
        data: TaskUpdate,
    ) -> Task:
        """업무 내용(제목, 설명, 우선순위, 마감일)을 수정합니다.

        Edit descriptive fields. Status never changes here; approved tasks are frozen.

        Raises:
            NotFoundError: 업무 없음 (Task not found)
            ForbiddenError: 검토 권한 없음 (Caller does not review the assignee)
            BadRequestError: 승인된 업무 (Task already approved)
        """
        task: Task = await self._get_task_or_404(db, task_id)
        if not (await self._capabilities(db, actor, task)).is_reviewer:
            raise ForbiddenError("업무를 수정할 권한이 없습니다 (Only reviewers of the assignee can edit this task)")
        if task.status == TaskStatus.APPROVED.value:
            raise BadRequestError(
                "승인된 업무는 수정할 수 없습니다 (Approved tasks cannot be edited)",
                code="TASK_LOCKED",
            )

        update_data: dict[str, Any] = data.model_dump(exclude_unset=True)
        if update_data.get("priority") is not None:
            update_data["priority"] = update_data["priority"].value
        if "title" in update_data and update_data["title"] is None:
            del update_data["title"]
        if "priority" in update_data and update_data["priority"] is None:
            del update_data["priority"]

        await task_repository.update(db, task.id, update_data)
        return await task_repository.get_detail(db, task.id)

    async def list_tasks(
        self,
        db: AsyncSession,
        actor: User,
        view: str = "mine",
        status: TaskStatus | None = None,
        priority: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Task], int]:
        """보기(view)별 업무 목록을 조회합니다.

        List tasks for one of the views:
            mine: 내게 배정된 업무 (assigned to the caller)
            review: 검토 대기열 (WAITING_FOR_REVIEW tasks the caller reviews)
            created: 내가 만든 업무 (created by the caller)
            team: 검토 범위 전체 업무 (every task the caller reviews; managers only)

        Returns:
            tuple[Sequence[Task], int]: (업무 목록, 전체 개수)
        """
        filters: dict[str, Any] = {
            "status": status.value if status is not None else None,
            "priority": priority,
        }

        if view == "mine":
            filters["assignee_id"] = actor.id
        elif view == "created":
            filters["created_by"] = actor.id
        elif view in ("review", "team"):
            if not capability_resolver.is_manager(actor):
                raise ForbiddenError("관리자만 접근할 수 있습니다 (Managers only)")
            scope: TeamScope = capability_resolver.team_scope(actor)
            if scope.is_empty:
                return [], 0
            filters.update(self._scope_filters(scope))
            if view == "review":
                filters["status"] = TaskStatus.WAITING_FOR_REVIEW.value
        else:
            raise BadRequestError(f"Unknown view '{view}'. Allowed: {', '.join(TASK_VIEWS)}")

        return await task_repository.get_filtered(db, filters, page, per_page)

    async def task_stats(
        self,
        db: AsyncSession,
        actor: User,
        scope: str = "mine",
    ) -> dict[str, int]:
        """상태별 업무 수 — Task counts per status for ``mine`` or ``team``."""
        if scope == "mine":
            return await task_repository.count_by_status(db, {"assignee_id": actor.id})
        if scope != "team":
            raise BadRequestError(f"Unknown scope '{scope}'. Allowed: mine, team")
        if not capability_resolver.is_manager(actor):
            raise ForbiddenError("관리자만 접근할 수 있습니다 (Managers only)")

        team: TeamScope = capability_resolver.team_scope(actor)
        if team.is_empty:
            return {key: 0 for key in ("open", "inProgress", "waitingReview", "approved", "rejected", "total")}
        return await task_repository.count_by_status(db, self._scope_filters(team))

    async def transition_task(
        self,
        db: AsyncSession,
        actor: User,
        task_id: UUID,
        target: TaskStatus,
        rating: int | None = None,
        comment: str | None = None,
    ) -> Task:
        """업무 상태를 전이합니다.

        Move a task along one edge of the transition table.

        Check order:
            1. 업무 존재 (404)
            2. 업무에 대한 행위 권한, 현재 상태 노출 없음 (403)
            3. 전이 표에 있는 간선인지 (INVALID_TRANSITION 400)
            4. 간선별 역할 조건 (403)
            5. 증빙 수 조건 (INSUFFICIENT_EVIDENCE 400)
            6. 조건부 쓰기 (STALE_STATE 409)

        APPROVED/REJECTED targets are handed to the review service together
        with ``rating`` and ``comment``.

        Returns:
            Task: 갱신된 업무 (Updated task with proofs loaded)
        """
        task: Task = await self._get_task_or_404(db, task_id)
        caps: Capabilities = await self._capabilities(db, actor, task)
        if not caps.can_act:
            raise ForbiddenError("이 업무에 접근할 수 없습니다 (No access to this task)")

        current: TaskStatus = TaskStatus(task.status)
        edges: dict[TaskStatus, EdgeActor] = TRANSITIONS.get(current, {})
        if target not in edges:
            raise InvalidTransitionError(current.value, target.value, allowed_targets(current))

        if edges[target] == EdgeActor.REVIEWER and not caps.is_reviewer:
            raise ForbiddenError("검토 권한이 없습니다 (Only a reviewer of the assignee can do this)")

        if target in _REVIEW_TARGETS:
            return await review_service.review(
                db, actor, task.id, _REVIEW_TARGETS[target], rating, comment
            )

        values: dict[str, Any] = {"status": target.value}
        if target == TaskStatus.WAITING_FOR_REVIEW:
            proof_count: int = await task_proof_service.count(db, task.id)
            if proof_count < settings.MIN_PROOFS_FOR_REVIEW:
                raise InsufficientEvidenceError(settings.MIN_PROOFS_FOR_REVIEW - proof_count)
            values["submitted_at"] = datetime.now(timezone.utc)

        if not await task_repository.compare_and_set_status(db, task.id, current, values):
            logger.warning(
                "task_stale_state",
                task_id=str(task.id),
                expected=current.value,
                target=target.value,
                actor_id=str(actor.id),
            )
            raise StaleStateError()

        await task_status_change_repository.record(db, task.id, actor.id, current, target)
        logger.info(
            "task_transitioned",
            task_id=str(task.id),
            from_status=current.value,
            to_status=target.value,
            actor_id=str(actor.id),
        )
        return await task_repository.get_detail(db, task.id)


# 싱글턴 인스턴스 — Singleton instance
task_service: TaskService = TaskService()
