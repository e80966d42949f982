"""성과 점수 API 테스트.

Score API tests — live preview, snapshot recalculation, history, batch
recalculation with per-employee isolation and the leaderboard ordering.
"""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.discipline import DisciplinaryWarning
from app.models.score import EmployeeScore
from app.models.task import Task, TaskStatus
from app.models.user import User
from app.services.leaderboard_service import rank_snapshots
from app.services.score_service import score_service
from tests.conftest import auth_header

SCORES = "/api/v1/scores"


async def seed_reviewed_task(
    db: AsyncSession,
    assignee,
    reviewer,
    status: TaskStatus,
    rating: int,
    due_date: datetime | None = None,
    completed_at: datetime | None = None,
    reviewed_at: datetime | None = None,
) -> Task:
    """검토 완료된 업무를 DB에 직접 생성."""
    task = Task(
        title=f"{status.value} task",
        assignee_id=assignee.id,
        created_by=reviewer.id,
        status=status.value,
        due_date=due_date,
        completed_at=completed_at,
        review_rating=rating,
        reviewed_by=reviewer.id,
        reviewed_at=reviewed_at or datetime.now(timezone.utc) - timedelta(days=1),
    )
    db.add(task)
    await db.commit()
    return task


def snapshot(employee, total: float, avg: float, on_time: float, calculated_at: datetime) -> EmployeeScore:
    return EmployeeScore(
        employee_id=employee.id,
        period_start=calculated_at - timedelta(days=180),
        period_end=calculated_at,
        task_rating_score=0.0,
        completion_score=0.0,
        consistency_score=0.0,
        disciplinary_score=0.0,
        total_score=total,
        grade="A" if total >= 90 else "B",
        avg_rating=avg,
        on_time_rate=on_time,
        calculated_at=calculated_at,
    )


class TestScorePreview:
    """실시간 점수 계산 테스트."""

    @pytest_asyncio.fixture
    async def history(self, db: AsyncSession, staff_user, supervisor_user):
        """승인 2건(정시 1, 지연 1), 반려 1건, 유효 경고 1건."""
        now = datetime.now(timezone.utc)
        due = now - timedelta(days=3)
        await seed_reviewed_task(db, staff_user, supervisor_user, TaskStatus.APPROVED, 5, due, due - timedelta(hours=2))
        await seed_reviewed_task(db, staff_user, supervisor_user, TaskStatus.APPROVED, 4, due, due + timedelta(hours=2))
        await seed_reviewed_task(db, staff_user, supervisor_user, TaskStatus.REJECTED, 2)
        # 기간 밖에서 검토된 업무는 제외 (reviewed outside the window)
        await seed_reviewed_task(
            db, staff_user, supervisor_user, TaskStatus.APPROVED, 1,
            reviewed_at=now - timedelta(days=400),
        )
        db.add(DisciplinaryWarning(
            employee_id=staff_user.id,
            issued_by=supervisor_user.id,
            reason="Late for shift",
            issued_at=now - timedelta(days=10),
        ))
        db.add(DisciplinaryWarning(
            employee_id=staff_user.id,
            issued_by=supervisor_user.id,
            reason="Expired warning",
            issued_at=now - timedelta(days=20),
            expires_at=now - timedelta(days=5),
        ))
        await db.commit()

    async def test_self_preview(self, client: AsyncClient, staff_token, staff_user, history):
        """본인 실시간 점수."""
        res = await client.get(f"{SCORES}/employees/{staff_user.id}/preview", headers=auth_header(staff_token))
        assert res.status_code == 200
        data = res.json()
        assert data["total_tasks"] == 3
        assert data["approved_tasks"] == 2
        assert data["rejected_tasks"] == 1
        assert data["avg_rating"] == 3.67
        assert data["on_time_rate"] == 0.5
        assert data["warning_count"] == 1
        assert data["task_rating_score"] == 29.33
        assert data["completion_score"] == 16.67
        assert data["consistency_score"] == 10.0
        assert data["disciplinary_score"] == 10.0
        assert data["total_score"] == 66.0
        assert data["grade"] == "C"

    async def test_preview_stores_nothing(self, client: AsyncClient, staff_token, staff_user, history):
        """미리보기는 스냅샷을 저장하지 않음."""
        await client.get(f"{SCORES}/employees/{staff_user.id}/preview", headers=auth_header(staff_token))
        res = await client.get(f"{SCORES}/employees/{staff_user.id}", headers=auth_header(staff_token))
        assert res.status_code == 404

    async def test_staff_cannot_view_others(self, client: AsyncClient, other_staff_token, staff_user):
        """다른 직원 점수 조회 불가."""
        res = await client.get(f"{SCORES}/employees/{staff_user.id}/preview", headers=auth_header(other_staff_token))
        assert res.status_code == 403

    async def test_inverted_period(self, client: AsyncClient, staff_token, staff_user):
        """시작이 종료보다 늦으면 400."""
        res = await client.get(
            f"{SCORES}/employees/{staff_user.id}/preview",
            params={"period_start": "2026-06-01T00:00:00Z", "period_end": "2026-01-01T00:00:00Z"},
            headers=auth_header(staff_token),
        )
        assert res.status_code == 400

    async def test_severity_is_not_weighted(self, client: AsyncClient, db: AsyncSession, staff_token, staff_user, supervisor_user):
        """경고는 심각도와 무관하게 1건씩 감점."""
        now = datetime.now(timezone.utc)
        for severity in ("minor", "major"):
            db.add(DisciplinaryWarning(
                employee_id=staff_user.id,
                issued_by=supervisor_user.id,
                reason=f"{severity} warning",
                severity=severity,
                issued_at=now - timedelta(days=2),
            ))
        await db.commit()

        res = await client.get(f"{SCORES}/employees/{staff_user.id}/preview", headers=auth_header(staff_token))
        assert res.status_code == 200
        data = res.json()
        assert data["warning_count"] == 2
        assert data["disciplinary_score"] == 5.0
        assert data["total_score"] == 5.0


class TestScoreCalculate:
    """스냅샷 재계산 테스트."""

    async def test_recalculate_is_idempotent(self, client: AsyncClient, db: AsyncSession, supervisor_token, supervisor_user, staff_user):
        """같은 데이터로 두 번 계산하면 같은 값, 이력 2건."""
        now = datetime.now(timezone.utc)
        await seed_reviewed_task(db, staff_user, supervisor_user, TaskStatus.APPROVED, 4, now - timedelta(days=2), now - timedelta(days=3))

        first = await client.post(f"{SCORES}/employees/{staff_user.id}/calculate", headers=auth_header(supervisor_token))
        second = await client.post(f"{SCORES}/employees/{staff_user.id}/calculate", json={}, headers=auth_header(supervisor_token))
        assert first.status_code == 201
        assert second.status_code == 201
        keys = ("task_rating_score", "completion_score", "consistency_score", "disciplinary_score", "total_score", "grade", "avg_rating", "on_time_rate")
        assert {k: first.json()[k] for k in keys} == {k: second.json()[k] for k in keys}
        assert first.json()["id"] != second.json()["id"]
        assert first.json()["calculated_by"] == str(supervisor_user.id)
        assert first.json()["total_score"] == 92.0

        history = (await client.get(f"{SCORES}/employees/{staff_user.id}/history", headers=auth_header(supervisor_token))).json()
        assert history["meta"]["total"] == 2
        assert history["data"][0]["id"] == second.json()["id"]

        latest = (await client.get(f"{SCORES}/employees/{staff_user.id}", headers=auth_header(supervisor_token))).json()
        assert latest["id"] == second.json()["id"]

    async def test_my_score(self, client: AsyncClient, supervisor_token, staff_token, staff_user):
        """내 최신 점수 조회."""
        assert (await client.get(f"{SCORES}/me", headers=auth_header(staff_token))).status_code == 404
        await client.post(f"{SCORES}/employees/{staff_user.id}/calculate", headers=auth_header(supervisor_token))
        res = await client.get(f"{SCORES}/me", headers=auth_header(staff_token))
        assert res.status_code == 200
        assert res.json()["employee_id"] == str(staff_user.id)

    async def test_staff_cannot_recalculate(self, client: AsyncClient, staff_token, staff_user):
        """스태프는 재계산 불가 (본인 포함)."""
        res = await client.post(f"{SCORES}/employees/{staff_user.id}/calculate", headers=auth_header(staff_token))
        assert res.status_code == 403

    async def test_supervisor_outside_department(self, client: AsyncClient, supervisor_token, other_staff_user):
        """다른 부서 직원 재계산 불가."""
        res = await client.post(f"{SCORES}/employees/{other_staff_user.id}/calculate", headers=auth_header(supervisor_token))
        assert res.status_code == 403

    async def test_unknown_employee(self, client: AsyncClient, gm_token):
        """없는 직원 — 404."""
        res = await client.post(f"{SCORES}/employees/{uuid.uuid4()}/calculate", headers=auth_header(gm_token))
        assert res.status_code == 404

    async def test_employee_delete_keeps_snapshots(self, db: AsyncSession, roles, departments):
        """스냅샷이 있는 직원은 삭제되지 않음 (RESTRICT)."""
        user = User(role_id=roles["staff"].id, department_id=departments["kitchen"].id, full_name="Leaver", job_title="Cook")
        db.add(user)
        await db.commit()
        db.add(snapshot(user, 70.0, 3.5, 0.5, datetime.now(timezone.utc)))
        await db.commit()
        user_id = user.id

        with pytest.raises(IntegrityError):
            await db.execute(delete(User).where(User.id == user_id))
        await db.rollback()

        remaining = await db.execute(select(EmployeeScore).where(EmployeeScore.employee_id == user_id))
        assert len(remaining.scalars().all()) == 1


class TestBatchCalculate:
    """일괄 재계산 테스트."""

    async def test_batch_isolates_failures(self, client: AsyncClient, gm_token, gm_user, staff_user, other_staff_user):
        """없는 직원은 오류 항목, 나머지는 성공."""
        missing = uuid.uuid4()
        res = await client.post(
            f"{SCORES}/calculate-all",
            json={"employee_ids": [str(staff_user.id), str(missing), str(other_staff_user.id)]},
            headers=auth_header(gm_token),
        )
        assert res.status_code == 200
        body = res.json()
        assert body["succeeded"] == 2
        assert body["failed"] == 1
        assert body["skipped"] == []
        assert "error" in body["results"][str(missing)]
        assert body["results"][str(staff_user.id)]["employee_id"] == str(staff_user.id)
        assert body["results"][str(staff_user.id)]["calculated_by"] == str(gm_user.id)

        latest = await client.get(f"{SCORES}/employees/{other_staff_user.id}", headers=auth_header(gm_token))
        assert latest.status_code == 200

    async def test_batch_defaults_to_active_employees(self, client: AsyncClient, db: AsyncSession, owner_token, staff_user, other_staff_user, supervisor_user):
        """대상 생략 시 재직 중인 직원 전체, 비활성 직원 제외."""
        other_staff_user.is_active = False
        db.add(other_staff_user)
        await db.commit()

        res = await client.post(f"{SCORES}/calculate-all", headers=auth_header(owner_token))
        assert res.status_code == 200
        results = res.json()["results"]
        assert str(staff_user.id) in results
        assert str(supervisor_user.id) in results
        assert str(other_staff_user.id) not in results

    async def test_supervisor_cannot_run_batch(self, client: AsyncClient, supervisor_token):
        """일괄 재계산은 Owner + GM만."""
        res = await client.post(f"{SCORES}/calculate-all", headers=auth_header(supervisor_token))
        assert res.status_code == 403

    async def test_deadline_skips_unstarted(self, session_factory, staff_user, other_staff_user):
        """마감이 지나면 시작하지 않은 직원은 skipped."""
        outcome = await score_service.calculate_all(
            session_factory,
            employee_ids=[staff_user.id, other_staff_user.id],
            deadline_seconds=0,
        )
        assert outcome.results == {}
        assert outcome.skipped == [staff_user.id, other_staff_user.id]

    async def test_parallel_workers(self, session_factory, staff_user, other_staff_user, supervisor_user):
        """여러 워커로 계산해도 직원마다 스냅샷 1건."""
        outcome = await score_service.calculate_all(
            session_factory,
            employee_ids=[staff_user.id, other_staff_user.id, supervisor_user.id, staff_user.id],
            concurrency=2,
        )
        assert outcome.succeeded == 3
        assert outcome.failed == 0
        assert set(outcome.results) == {staff_user.id, other_staff_user.id, supervisor_user.id}


class TestLeaderboard:
    """리더보드 순위 테스트."""

    @pytest_asyncio.fixture
    async def ranked(self, db: AsyncSession, roles, departments):
        """A:91(평균 4.5), B:91(평균 4.8), C:80 — A는 예전 99점 스냅샷도 있음."""
        people = {}
        for name, dept in (("A", "kitchen"), ("B", "kitchen"), ("C", "hall")):
            user = User(role_id=roles["staff"].id, department_id=departments[dept].id, full_name=name, job_title="Cook")
            db.add(user)
            people[name] = user
        await db.commit()

        now = datetime.now(timezone.utc)
        db.add(snapshot(people["A"], 99.0, 5.0, 1.0, now - timedelta(days=30)))
        db.add(snapshot(people["A"], 91.0, 4.5, 0.9, now - timedelta(hours=1)))
        db.add(snapshot(people["B"], 91.0, 4.8, 0.7, now - timedelta(hours=2)))
        db.add(snapshot(people["C"], 80.0, 4.0, 0.8, now - timedelta(hours=1)))
        await db.commit()
        return people

    async def test_order_and_tie_break(self, client: AsyncClient, gm_token, ranked):
        """총점 동률은 평균 평점으로 결정, 최신 스냅샷만 사용."""
        res = await client.get(f"{SCORES}/leaderboard", headers=auth_header(gm_token))
        assert res.status_code == 200
        body = res.json()
        assert [entry["full_name"] for entry in body["data"]] == ["B", "A", "C"]
        assert [entry["rank"] for entry in body["data"]] == [1, 2, 3]
        assert [entry["total_score"] for entry in body["data"]] == [91.0, 91.0, 80.0]
        assert body["data"][0]["department_name"] == "kitchen"
        assert body["meta"]["total"] == 3

    async def test_limit_and_department(self, client: AsyncClient, gm_token, ranked, departments):
        """limit과 부서 필터."""
        res = await client.get(f"{SCORES}/leaderboard", params={"limit": 1}, headers=auth_header(gm_token))
        assert [entry["full_name"] for entry in res.json()["data"]] == ["B"]

        res = await client.get(
            f"{SCORES}/leaderboard",
            params={"department_id": str(departments["hall"].id)},
            headers=auth_header(gm_token),
        )
        assert [entry["full_name"] for entry in res.json()["data"]] == ["C"]

    async def test_staff_forbidden(self, client: AsyncClient, staff_token):
        """스태프는 리더보드 조회 불가."""
        res = await client.get(f"{SCORES}/leaderboard", headers=auth_header(staff_token))
        assert res.status_code == 403


class TestRankSnapshots:
    """순위 정렬 키 단위 테스트 (DB 없음)."""

    NOW = datetime(2026, 6, 30, tzinfo=timezone.utc)

    def employee(self, value: int) -> SimpleNamespace:
        return SimpleNamespace(id=uuid.UUID(int=value))

    def test_on_time_rate_breaks_rating_tie(self):
        """총점과 평균 평점이 같으면 정시율이 높은 쪽이 앞."""
        late = snapshot(self.employee(1), 85.0, 4.2, 0.6, self.NOW)
        punctual = snapshot(self.employee(2), 85.0, 4.2, 0.9, self.NOW)
        assert rank_snapshots([late, punctual]) == [punctual, late]

    def test_employee_id_breaks_full_tie(self):
        """모든 값이 같으면 employee_id 오름차순."""
        people = [self.employee(value) for value in (30, 10, 20)]
        scores = [snapshot(person, 85.0, 4.2, 0.9, self.NOW) for person in people]
        ranked = rank_snapshots(scores)
        assert [score.employee_id for score in ranked] == sorted(person.id for person in people)
        assert rank_snapshots(list(reversed(scores))) == ranked

    def test_total_outranks_everything(self):
        """총점이 가장 우선."""
        strong = snapshot(self.employee(9), 90.0, 3.0, 0.1, self.NOW)
        weak = snapshot(self.employee(1), 89.0, 5.0, 1.0, self.NOW)
        assert rank_snapshots([weak, strong]) == [strong, weak]
