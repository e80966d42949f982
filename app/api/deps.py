"""FastAPI 의존성 주입 모듈 — 인증 및 권한 검사.

FastAPI dependency injection module — Authentication and authorization.
Provides reusable dependencies for extracting the current user from a JWT
issued by the external auth service and enforcing role levels on endpoints.
Per-employee scoping (self / same department) is decided by the
capability service, not here.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. decode_token()이 JWT를 검증하고 페이로드를 반환
       (decode_token verifies JWT and returns payload)
    3. 페이로드의 "sub" 필드로 DB에서 사용자를 조회
       (User is fetched from DB using payload "sub" field)
    4. 사용자 활성 상태를 확인 (User active status is verified)
"""

from typing import Annotated, Callable, Awaitable
from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User
from app.repositories.user_repository import user_repository
from app.utils.exceptions import ForbiddenError, UnauthorizedError
from app.utils.jwt import ACCESS_TOKEN_TYPE, decode_token

# HTTP Bearer 토큰 추출기 — 헤더 누락 시 401을 직접 반환하기 위해 auto_error=False
# (Extracts the bearer token; missing headers are turned into 401 below)
security: HTTPBearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """JWT 토큰에서 현재 인증된 사용자를 추출합니다.

    Decode JWT from the Authorization header and return the authenticated user
    with role and department loaded.

    Raises:
        UnauthorizedError(401): 토큰 누락/무효/만료, 사용자 없음/비활성
                                (Missing, invalid or expired token; unknown or inactive user)
    """
    if credentials is None:
        raise UnauthorizedError()
    try:
        payload: dict = decode_token(credentials.credentials)
        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise UnauthorizedError("Invalid token type")
        user_id = UUID(payload["sub"])
    except UnauthorizedError:
        raise
    except (jwt.ExpiredSignatureError, jwt.InvalidTokenError, KeyError, ValueError, TypeError):
        raise UnauthorizedError("Invalid or expired token")

    user: User | None = await user_repository.get_detail(db, user_id)
    if user is None or not user.is_active:
        raise UnauthorizedError("User not found or inactive")

    return user


def require_level(max_level: int) -> Callable[..., Awaitable[User]]:
    """역할 레벨 기반 권한 검사 의존성 팩토리.

    Dependency factory enforcing a maximum role level. Lower level = higher authority.

    Level hierarchy:
        1 = owner, 2 = general_manager, 3 = supervisor, 4 = staff

    Args:
        max_level: 허용되는 최대 역할 레벨 (Maximum allowed role level, inclusive)
    """
    async def _check(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        role = current_user.role
        if role is None or role.level > max_level:
            raise ForbiddenError()
        return current_user
    return _check


# 편의 의존성 — Pre-configured level dependencies
require_gm = require_level(2)          # Owner + GM 허용, 조직 전체 권한 (level <= 2)
require_supervisor = require_level(3)  # 관리자 전체 허용 (managers, level <= 3)
