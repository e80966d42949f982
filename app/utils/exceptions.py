"""커스텀 HTTP 예외 클래스 모듈.

Custom HTTP exception classes module.
Provides pre-configured HTTPException subclasses for common error patterns.
Each carries a machine-readable ``code`` and optional ``extra`` fields that
the application exception handler renders as ``{"error", "code", ...}``.

Usage:
    from app.utils.exceptions import NotFoundError, InsufficientEvidenceError
    raise NotFoundError("Task not found")
    raise InsufficientEvidenceError(remaining=2)
"""

from typing import Any

from fastapi import HTTPException, status


class AppError(HTTPException):
    """코드가 있는 HTTP 예외의 공통 부모.

    Base for coded HTTP errors.

    Args:
        status_code: HTTP 상태 코드 (HTTP status code)
        detail: 오류 메시지 (Human-readable message)
        code: 기계 판독용 오류 코드 (Machine-readable error code)
        extra: 응답 본문에 추가할 필드 (Extra fields merged into the response body)
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        code: str,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=detail)
        self.code: str = code
        self.extra: dict[str, Any] = extra or {}


class NotFoundError(AppError):
    """404 Not Found 예외 — 요청한 리소스를 찾을 수 없을 때 사용.

    Raised when a task, employee or score snapshot does not exist.
    """

    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(status.HTTP_404_NOT_FOUND, detail, "NOT_FOUND")


class ForbiddenError(AppError):
    """403 Forbidden 예외 — 권한 부족 시 사용.

    Raised when the caller lacks the capability for the operation.
    Never reveals the current state of the target resource.
    """

    def __init__(self, detail: str = "Insufficient permissions") -> None:
        super().__init__(status.HTTP_403_FORBIDDEN, detail, "FORBIDDEN")


class UnauthorizedError(AppError):
    """401 Unauthorized 예외 — 인증 실패 시 사용.

    Raised when the bearer token is missing, invalid, or expired.
    """

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(status.HTTP_401_UNAUTHORIZED, detail, "UNAUTHORIZED")


class BadRequestError(AppError):
    """400 Bad Request 예외 — 비즈니스 규칙 검증 실패 시 사용.

    Raised when the request data is invalid beyond what Pydantic validation catches.
    """

    def __init__(self, detail: str = "Bad request", code: str = "VALIDATION_ERROR") -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, detail, code)


class InvalidTransitionError(AppError):
    """400 — 상태 전이 표에 없는 전이 요청.

    Requested edge is not in the transition table. The message lists the
    targets that are reachable from the current status.
    """

    def __init__(self, current: str, target: str, allowed: list[str]) -> None:
        allowed_text: str = ", ".join(allowed) if allowed else "none"
        super().__init__(
            status.HTTP_400_BAD_REQUEST,
            f"Cannot move task from {current} to {target}. Allowed: {allowed_text}",
            "INVALID_TRANSITION",
            {"allowed": allowed},
        )


class InsufficientEvidenceError(AppError):
    """400 — 검토 요청에 필요한 증빙 부족.

    Not enough proofs to submit for review; ``remaining`` is how many more
    are needed.
    """

    def __init__(self, remaining: int) -> None:
        noun: str = "proof" if remaining == 1 else "proofs"
        super().__init__(
            status.HTTP_400_BAD_REQUEST,
            f"need {remaining} more {noun}",
            "INSUFFICIENT_EVIDENCE",
            {"remaining": remaining},
        )


class InvalidRatingError(AppError):
    """400 — 평점이 1~5 정수가 아님 (Rating outside 1..5)."""

    def __init__(self, detail: str = "Rating must be an integer between 1 and 5") -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, detail, "INVALID_RATING")


class CommentRequiredError(AppError):
    """400 — 반려 시 코멘트 필수 (Rejection needs a comment)."""

    def __init__(self, detail: str = "A comment is required when rejecting a task") -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, detail, "COMMENT_REQUIRED")


class StaleStateError(AppError):
    """409 Conflict — 읽은 뒤 상태가 바뀜.

    The task changed since it was read; the caller should refetch and retry.
    """

    def __init__(self, detail: str = "Task status changed, refetch and retry") -> None:
        super().__init__(status.HTTP_409_CONFLICT, detail, "STALE_STATE")
