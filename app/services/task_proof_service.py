"""업무 증빙 서비스 — 증빙 첨부/조회 비즈니스 로직.

Task Proof Service — Business logic for task evidence.
Proofs are only ever appended; a wrong proof is superseded by a new one.
Physical storage is external: the service stores the opaque file handle
the storage service returned.
"""

from typing import Sequence
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.task import MediaKind, Task, TaskProof, TaskStatus
from app.models.user import User
from app.repositories.task_proof_repository import task_proof_repository
from app.repositories.task_repository import task_repository
from app.schemas.task import ProofFile
from app.services.capability_service import capability_resolver
from app.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError

logger = structlog.get_logger()


def media_kind_for(mime_type: str | None) -> MediaKind:
    """MIME 타입으로 미디어 종류 판정 — image/* is an image, the rest documents."""
    if mime_type and mime_type.lower().startswith("image/"):
        return MediaKind.IMAGE
    return MediaKind.DOCUMENT


class TaskProofService:
    """업무 증빙 서비스."""

    async def _get_accessible_task(self, db: AsyncSession, actor: User, task_id: UUID) -> Task:
        task: Task | None = await task_repository.get_by_id(db, task_id)
        if task is None:
            raise NotFoundError("업무를 찾을 수 없습니다 (Task not found)")
        caps = await capability_resolver.resolve_for(db, actor, task.assignee_id)
        if not caps.can_act:
            raise ForbiddenError("이 업무에 증빙을 첨부할 권한이 없습니다 (Only the assignee or a reviewer can access proofs)")
        return task

    async def attach(
        self,
        db: AsyncSession,
        actor: User,
        task_id: UUID,
        files: list[ProofFile],
    ) -> Task:
        """업무에 증빙 파일을 첨부합니다.

        Attach one or more proofs to a task.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            actor: 업로더 (Assignee or reviewer of the assignee)
            task_id: 업무 UUID (Task UUID)
            files: 업로드된 파일 메타데이터 목록 (Uploaded file descriptors)

        Returns:
            Task: 증빙 목록이 갱신된 업무 (Task with its refreshed proof list)

        Raises:
            NotFoundError: 업무 없음 (Task not found)
            ForbiddenError: 권한 없음 (Caller may not act on the task)
            BadRequestError: 승인된 업무, 파일 수 초과, 허용되지 않은 형식
                             (Approved task, too many files, unsupported type)
        """
        task: Task = await self._get_accessible_task(db, actor, task_id)

        if task.status == TaskStatus.APPROVED.value:
            raise BadRequestError("승인된 업무에는 증빙을 추가할 수 없습니다 (Cannot add proofs to an approved task)")
        if not files:
            raise BadRequestError("첨부할 파일이 없습니다 (At least one file is required)")
        if len(files) > settings.MAX_PROOFS_PER_UPLOAD:
            raise BadRequestError(
                f"한 번에 최대 {settings.MAX_PROOFS_PER_UPLOAD}개까지 첨부할 수 있습니다 "
                f"(At most {settings.MAX_PROOFS_PER_UPLOAD} files per upload)"
            )

        allowed: set[str] = {mime.lower() for mime in settings.ALLOWED_PROOF_MIME_TYPES}
        for file in files:
            if file.mime_type is None or file.mime_type.lower() not in allowed:
                raise BadRequestError(
                    f"허용되지 않은 파일 형식입니다: {file.file_name} "
                    f"(Unsupported file type. Allowed: {', '.join(settings.ALLOWED_PROOF_MIME_TYPES)})",
                    code="UNSUPPORTED_MEDIA_TYPE",
                )

        proofs: list[TaskProof] = await task_proof_repository.create_many(
            db,
            [
                {
                    "task_id": task.id,
                    "file_url": file.file_url,
                    "file_name": file.file_name,
                    "mime_type": file.mime_type,
                    "file_size": file.file_size,
                    "media_kind": media_kind_for(file.mime_type).value,
                    "uploaded_by": actor.id,
                }
                for file in files
            ],
        )
        logger.info("task_proofs_attached", task_id=str(task.id), count=len(proofs), uploaded_by=str(actor.id))
        return await task_repository.get_detail(db, task.id)

    async def list_proofs(
        self,
        db: AsyncSession,
        actor: User,
        task_id: UUID,
    ) -> Sequence[TaskProof]:
        """업무의 증빙 목록 — Proofs of a task, oldest first."""
        task: Task = await self._get_accessible_task(db, actor, task_id)
        return await task_proof_repository.get_by_task_id(db, task.id)

    async def count(self, db: AsyncSession, task_id: UUID) -> int:
        """업무의 증빙 수 — Side-effect free proof count."""
        return await task_proof_repository.count_by_task_id(db, task_id)


# 싱글턴 인스턴스 — Singleton instance
task_proof_service: TaskProofService = TaskProofService()
