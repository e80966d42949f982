"""테스트 인프라 — 임시 SQLite DB, 세션, httpx 클라이언트 픽스처.

Test infrastructure — Temporary SQLite (aiosqlite) database per test, session
factory, and an httpx client bound to the FastAPI app. Each request gets its
own session from the factory, the same way production requests do, so data
written by fixtures must be committed.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.database import Base, get_db, get_session_factory
from app.main import app
from app.models import *  # noqa: F401,F403 — register all models with metadata
from app.utils.jwt import create_access_token


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션 팩토리, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """테스트마다 새 SQLite 파일 DB를 만들고 스키마를 생성합니다."""
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    # WAL — 일괄 재계산 워커끼리 쓰기 잠금을 대기 (batch workers queue on the write lock)
    @event.listens_for(eng.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """픽스처/직접 검증용 세션 (Session for fixtures and direct assertions)."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 의존성을 테스트 DB로 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def departments(db: AsyncSession):
    """주방/홀 두 부서를 생성합니다."""
    from app.models.organization import Department
    result = {}
    for name in ("kitchen", "hall"):
        dept = Department(name=name)
        db.add(dept)
        result[name] = dept
    await db.commit()
    return result


@pytest_asyncio.fixture
async def roles(db: AsyncSession):
    """기본 4개 역할을 생성합니다."""
    from app.models.user import Role
    result = {}
    for name, level in [("owner", 1), ("general_manager", 2), ("supervisor", 3), ("staff", 4)]:
        role = Role(name=name, level=level)
        db.add(role)
        result[name] = role
    await db.commit()
    return result


async def _make_user(db: AsyncSession, role, full_name: str, department=None, **extra):
    from app.models.user import User
    user = User(
        role_id=role.id,
        department_id=department.id if department is not None else None,
        full_name=full_name,
        **extra,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def owner_user(db: AsyncSession, roles):
    """오너 (조직 전체 권한)."""
    return await _make_user(db, roles["owner"], "Test Owner")


@pytest_asyncio.fixture
async def gm_user(db: AsyncSession, roles):
    """총괄 매니저 (조직 전체 권한)."""
    return await _make_user(db, roles["general_manager"], "Test GM")


@pytest_asyncio.fixture
async def supervisor_user(db: AsyncSession, roles, departments):
    """주방 슈퍼바이저."""
    return await _make_user(db, roles["supervisor"], "Kitchen Supervisor", departments["kitchen"], job_title="Head Chef")


@pytest_asyncio.fixture
async def staff_user(db: AsyncSession, roles, departments):
    """주방 스태프."""
    return await _make_user(db, roles["staff"], "Kitchen Staff", departments["kitchen"], job_title="Line Cook")


@pytest_asyncio.fixture
async def other_staff_user(db: AsyncSession, roles, departments):
    """홀 스태프 — 주방 슈퍼바이저의 검토 범위 밖."""
    return await _make_user(db, roles["staff"], "Hall Staff", departments["hall"], job_title="Server")


def make_token(user, role_name: str, role_level: int) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    return create_access_token({
        "sub": str(user.id),
        "role": role_name,
        "level": role_level,
    })


@pytest.fixture
def owner_token(owner_user) -> str:
    return make_token(owner_user, "owner", 1)


@pytest.fixture
def gm_token(gm_user) -> str:
    return make_token(gm_user, "general_manager", 2)


@pytest.fixture
def supervisor_token(supervisor_user) -> str:
    return make_token(supervisor_user, "supervisor", 3)


@pytest.fixture
def staff_token(staff_user) -> str:
    return make_token(staff_user, "staff", 4)


@pytest.fixture
def other_staff_token(other_staff_user) -> str:
    return make_token(other_staff_user, "staff", 4)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def proof_files(count: int, mime_type: str = "image/jpeg") -> list[dict]:
    """증빙 첨부 요청 본문용 파일 목록 (Proof descriptors for attach requests)."""
    return [
        {
            "file_url": f"https://files.test/proof-{index}.jpg",
            "file_name": f"proof-{index}.jpg",
            "mime_type": mime_type,
            "file_size": 1024,
        }
        for index in range(count)
    ]
