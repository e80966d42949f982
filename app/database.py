"""비동기 DB 엔진과 세션.

Async engine, per-request session dependency and the session factory
used by the batch score job. PostgreSQL (asyncpg) in production; the
tests run the same models on aiosqlite.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from app.config import settings


def _engine_options(url: str) -> dict[str, Any]:
    """드라이버별 엔진 옵션 — Driver-specific engine options."""
    options: dict[str, Any] = {"echo": settings.DEBUG, "pool_pre_ping": True}
    if url.startswith("postgresql"):
        options.update(
            pool_size=5,
            max_overflow=10,
            # Supavisor(트랜잭션 모드 풀러)에서 prepared statement 비활성화
            # Disable prepared statement caches for Supavisor transaction-mode pooling
            connect_args={"statement_cache_size": 0},
        )
    return options


# 비동기 데이터베이스 엔진 — Async database engine
engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    **_engine_options(settings.DATABASE_URL),
)

# 비동기 세션 팩토리 — Async session factory
# expire_on_commit=False: 커밋 후에도 객체 속성 접근 가능 (Allows attribute access after commit without refresh)
async_session: async_sessionmaker[AsyncSession] = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """ORM 모델 공통 베이스 — every model registers on ``Base.metadata``."""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """요청 단위 세션 의존성.

    One session per request. Routers call ``commit()`` after the service
    call succeeds; anything left uncommitted, including the work of a
    request that raised, is rolled back when the session closes.
    """
    async with async_session() as session:
        yield session


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """세션 팩토리 의존성 — 일괄 작업이 직원별 독립 세션을 열 때 사용.

    FastAPI dependency returning the session factory. The batch score job
    opens one isolated session per employee from it.
    """
    return async_session
