"""징계 경고 서비스 — 경고 발행 및 조회.

Warning Service — Issue and list disciplinary warnings. Warnings are the
data source of the disciplinary score component.
"""

from typing import Sequence
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.discipline import DisciplinaryWarning
from app.models.user import User
from app.repositories.warning_repository import warning_repository
from app.schemas.warning import WarningCreate
from app.services.capability_service import TeamScope, capability_resolver
from app.services.employee_directory_service import employee_directory_service
from app.utils.exceptions import BadRequestError, ForbiddenError

logger = structlog.get_logger()


class WarningService:
    """징계 경고 서비스."""

    async def issue(
        self,
        db: AsyncSession,
        actor: User,
        data: WarningCreate,
    ) -> DisciplinaryWarning:
        """경고를 발행합니다 — 대상 직원의 검토 권한자만.

        Issue a warning to an employee the actor reviews.

        Raises:
            NotFoundError: 직원 없음 (Unknown employee)
            ForbiddenError: 검토 권한 없음 (Employee outside the actor's scope)
            BadRequestError: 만료일이 발행일보다 이름 (expires_at before issued_at)
        """
        caps = await capability_resolver.resolve_for(db, actor, data.employee_id, must_exist=True)
        if not caps.is_reviewer or caps.is_self:
            raise ForbiddenError("경고를 발행할 권한이 없습니다 (You cannot warn this employee)")

        values: dict = {
            "employee_id": data.employee_id,
            "issued_by": actor.id,
            "reason": data.reason,
            "severity": data.severity.value,
            "expires_at": data.expires_at,
        }
        if data.issued_at is not None:
            values["issued_at"] = data.issued_at
        if data.expires_at is not None and data.issued_at is not None and data.expires_at <= data.issued_at:
            raise BadRequestError("만료일은 발행일 이후여야 합니다 (expires_at must be after issued_at)")

        warning: DisciplinaryWarning = await warning_repository.create(db, values)
        logger.info("warning_issued", warning_id=str(warning.id), employee_id=str(data.employee_id), issued_by=str(actor.id))
        return warning

    async def list_warnings(
        self,
        db: AsyncSession,
        actor: User,
        employee_id: UUID | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[DisciplinaryWarning], int]:
        """경고 목록 — 본인 경고 또는 관리자의 검토 범위.

        Staff see their own warnings; managers see warnings of the employees
        they review.
        """
        if employee_id is not None:
            caps = await capability_resolver.resolve_for(db, actor, employee_id)
            if not (caps.is_self or caps.is_reviewer):
                raise ForbiddenError("경고를 볼 권한이 없습니다 (No access to these warnings)")
            return await warning_repository.get_filtered(db, employee_id=employee_id, page=page, per_page=per_page)

        if not capability_resolver.is_manager(actor):
            return await warning_repository.get_filtered(db, employee_id=actor.id, page=page, per_page=per_page)

        scope: TeamScope = capability_resolver.team_scope(actor)
        if scope.org_wide:
            return await warning_repository.get_filtered(db, page=page, per_page=per_page)
        if scope.is_empty:
            return [], 0
        team_ids: list[UUID] = await employee_directory_service.list_active_ids(db, scope.department_id)
        return await warning_repository.get_filtered(db, employee_ids=team_ids, page=page, per_page=per_page)


# 싱글턴 인스턴스 — Singleton instance
warning_service: WarningService = WarningService()
