"""징계 경고 Pydantic 요청/응답 스키마 정의.

Disciplinary warning request/response schemas.
"""

import enum
from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WarningSeverity(str, enum.Enum):
    """경고 심각도 (Warning severity)."""

    MINOR = "minor"
    MAJOR = "major"


class WarningCreate(BaseModel):
    """경고 발행 요청 스키마.

    Attributes:
        employee_id: 대상 직원 UUID
        reason: 사유
        severity: 심각도 (minor/major)
        issued_at: 발행 일시, 생략 시 현재 (defaults to now)
        expires_at: 만료 일시, 생략 시 만료 없음 (never expires when omitted)
    """

    employee_id: UUID
    reason: str = Field(min_length=1)
    severity: WarningSeverity = WarningSeverity.MINOR
    issued_at: datetime | None = None
    expires_at: datetime | None = None

    @field_validator("issued_at", "expires_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        # tz 정보가 없으면 UTC로 간주 (naive timestamps are UTC)
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class WarningResponse(BaseModel):
    """경고 응답 스키마 (Warning response)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_id: UUID
    issued_by: UUID
    reason: str
    severity: str
    issued_at: datetime
    expires_at: datetime | None
