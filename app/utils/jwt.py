"""JWT 검증 유틸리티.

Access tokens are issued by the external authentication service and only
verified here. ``create_access_token`` produces the same claim set and is
used by tests and local tooling.

Claims:
    sub   — 직원 UUID (employee id)
    role  — 역할 이름 (role name, informational)
    level — 역할 레벨 (role level, informational; the DB role is authoritative)
    exp   — 만료 시각 (expiry, required)
    type  — "access"
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from app.config import settings

ACCESS_TOKEN_TYPE: str = "access"


def create_access_token(claims: dict[str, Any], expires_in: timedelta | None = None) -> str:
    """액세스 토큰을 서명합니다 (Sign an access token carrying ``claims``)."""
    lifetime: timedelta = expires_in or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        **claims,
        "exp": datetime.now(timezone.utc) + lifetime,
        "type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """서명과 만료를 검증하고 클레임을 반환합니다.

    Verify signature and expiry and return the claims. ``exp`` and ``sub``
    must be present.

    Raises:
        jwt.ExpiredSignatureError: 만료된 토큰 (Expired token)
        jwt.InvalidTokenError: 서명 오류, 필수 클레임 누락 등 (Any other invalid token)
    """
    return jwt.decode(
        token,
        settings.JWT_SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["exp", "sub"]},
    )
