"""권한 판정 서비스 — 행위자와 대상 직원 사이의 권한을 계산.

Capability Service — Resolves what an actor may do with respect to a
subject employee. Every task, review and score operation asks this
service instead of inspecting role levels itself.

Role levels (lower = more authority):
    1 = owner, 2 = general_manager, 3 = supervisor, 4 = staff

    is_self: 행위자 == 대상 (actor is the subject)
    is_manager: 레벨 3 이하 (level <= 3)
    is_reviewer: 관리자이면서 조직 전체 권한(레벨 2 이하)이거나 같은 부서
                 (manager with organisation-wide scope, or same department)
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.user_repository import user_repository
from app.utils.exceptions import NotFoundError

# 레벨 상수 — Role level thresholds
MANAGER_MAX_LEVEL: int = 3
ORG_WIDE_MAX_LEVEL: int = 2


@dataclass(frozen=True)
class Capabilities:
    """행위자-대상 쌍에 대한 권한 값 (Immutable capability set)."""

    is_self: bool
    is_manager: bool
    is_reviewer: bool

    @property
    def can_act(self) -> bool:
        """담당자 본인 또는 검토 권한자 — Assignee or reviewer of the assignee."""
        return self.is_self or self.is_reviewer

    @property
    def can_view_scores(self) -> bool:
        return self.is_self or self.is_manager


@dataclass(frozen=True)
class TeamScope:
    """관리자가 볼 수 있는 직원 범위.

    The set of employees a manager reviews: everyone (``org_wide``), one
    department, or nobody (non-managers and supervisors without a department).
    """

    org_wide: bool
    department_id: UUID | None

    @property
    def is_empty(self) -> bool:
        return not self.org_wide and self.department_id is None


def _level(user: User) -> int:
    # role은 get_current_user에서 selectinload로 이미 로드됨 (role is eager-loaded)
    return user.role.level if user.role is not None else 99


class CapabilityResolver:
    """권한 판정기.

    Capability resolver; stateless, one singleton instance.
    """

    def resolve(self, actor: User, subject: User | None) -> Capabilities:
        """행위자와 대상 직원으로 권한을 계산합니다.

        Compute capabilities from an actor (with role loaded) and a subject
        employee. A missing subject yields no self/reviewer rights except for
        organisation-wide managers.
        """
        level: int = _level(actor)
        is_manager: bool = level <= MANAGER_MAX_LEVEL
        is_self: bool = subject is not None and subject.id == actor.id

        is_reviewer: bool = False
        if is_manager:
            if level <= ORG_WIDE_MAX_LEVEL:
                is_reviewer = True
            elif subject is not None and actor.department_id is not None:
                is_reviewer = subject.department_id == actor.department_id

        return Capabilities(is_self=is_self, is_manager=is_manager, is_reviewer=is_reviewer)

    async def resolve_for(
        self,
        db: AsyncSession,
        actor: User,
        subject_id: UUID,
        must_exist: bool = False,
    ) -> Capabilities:
        """대상 직원 ID로 권한을 계산합니다.

        Load the subject employee and resolve capabilities.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            actor: 현재 사용자 (Current user with role loaded)
            subject_id: 대상 직원 UUID (Subject employee UUID)
            must_exist: True이면 대상이 없을 때 404 (Raise 404 for unknown subjects)

        Raises:
            NotFoundError: must_exist이고 직원이 없을 때 (Unknown employee)
        """
        if subject_id == actor.id:
            return self.resolve(actor, actor)
        subject: User | None = await user_repository.get_by_id(db, subject_id)
        if subject is None and must_exist:
            raise NotFoundError("직원을 찾을 수 없습니다 (Employee not found)")
        return self.resolve(actor, subject)

    def team_scope(self, actor: User) -> TeamScope:
        """관리자의 검토 범위 — The employees this actor reviews."""
        level: int = _level(actor)
        if level <= ORG_WIDE_MAX_LEVEL:
            return TeamScope(org_wide=True, department_id=None)
        if level <= MANAGER_MAX_LEVEL:
            return TeamScope(org_wide=False, department_id=actor.department_id)
        return TeamScope(org_wide=False, department_id=None)

    def is_manager(self, actor: User) -> bool:
        return _level(actor) <= MANAGER_MAX_LEVEL


# 싱글턴 인스턴스 — Singleton instance
capability_resolver: CapabilityResolver = CapabilityResolver()
