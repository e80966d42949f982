"""업무 생명주기 API 테스트.

Task lifecycle API tests — creation, scoped access, the transition table,
the evidence gate and the full reject/rework/approve cycle.
"""

from datetime import datetime, timedelta, timezone

import pytest_asyncio
from httpx import AsyncClient

from tests.conftest import auth_header, proof_files

TASKS = "/api/v1/tasks"


async def create_task(client: AsyncClient, token: str, assignee_id, **extra) -> dict:
    body = {"title": "Clean the grill", "assignee_id": str(assignee_id), **extra}
    res = await client.post(TASKS, json=body, headers=auth_header(token))
    assert res.status_code == 201, res.text
    return res.json()


async def move(client: AsyncClient, token: str, task_id: str, status: str, **extra):
    return await client.post(
        f"{TASKS}/{task_id}/status",
        json={"status": status, **extra},
        headers=auth_header(token),
    )


async def attach(client: AsyncClient, token: str, task_id: str, count: int, mime_type: str = "image/jpeg"):
    return await client.post(
        f"{TASKS}/{task_id}/proofs",
        json={"files": proof_files(count, mime_type)},
        headers=auth_header(token),
    )


async def submit_for_review(client: AsyncClient, staff_token: str, task_id: str) -> None:
    """OPEN 업무를 증빙 3개와 함께 검토 대기 상태로."""
    assert (await move(client, staff_token, task_id, "IN_PROGRESS")).status_code == 200
    assert (await attach(client, staff_token, task_id, 3)).status_code == 201
    assert (await move(client, staff_token, task_id, "WAITING_FOR_REVIEW")).status_code == 200


class TestTaskCreate:
    """업무 생성 테스트."""

    async def test_supervisor_creates_task_for_own_department(self, client: AsyncClient, supervisor_token, staff_user, supervisor_user):
        """같은 부서 직원에게 업무 생성 — OPEN 상태."""
        data = await create_task(client, supervisor_token, staff_user.id, priority="HIGH")
        assert data["status"] == "OPEN"
        assert data["priority"] == "HIGH"
        assert data["assignee_id"] == str(staff_user.id)
        assert data["created_by"] == str(supervisor_user.id)
        assert data["proofs"] == []
        assert data["proof_count"] == 0

    async def test_supervisor_cannot_assign_other_department(self, client: AsyncClient, supervisor_token, other_staff_user):
        """다른 부서 직원에게는 배정 불가."""
        res = await client.post(
            TASKS,
            json={"title": "Fold napkins", "assignee_id": str(other_staff_user.id)},
            headers=auth_header(supervisor_token),
        )
        assert res.status_code == 403
        assert res.json()["code"] == "FORBIDDEN"

    async def test_gm_assigns_anywhere(self, client: AsyncClient, gm_token, other_staff_user):
        """GM은 조직 전체에 배정 가능."""
        data = await create_task(client, gm_token, other_staff_user.id)
        assert data["assignee_id"] == str(other_staff_user.id)

    async def test_staff_cannot_create(self, client: AsyncClient, staff_token, staff_user):
        """스태프는 업무 생성 불가."""
        res = await client.post(
            TASKS,
            json={"title": "Self task", "assignee_id": str(staff_user.id)},
            headers=auth_header(staff_token),
        )
        assert res.status_code == 403

    async def test_unknown_assignee(self, client: AsyncClient, gm_token):
        """존재하지 않는 담당자 — 404."""
        res = await client.post(
            TASKS,
            json={"title": "Ghost", "assignee_id": "00000000-0000-0000-0000-000000000001"},
            headers=auth_header(gm_token),
        )
        assert res.status_code == 404
        assert res.json()["code"] == "NOT_FOUND"

    async def test_missing_token(self, client: AsyncClient, staff_user):
        """토큰 없음 — 401."""
        res = await client.post(TASKS, json={"title": "x", "assignee_id": str(staff_user.id)})
        assert res.status_code == 401
        assert res.json()["code"] == "UNAUTHORIZED"

    async def test_invalid_body_is_400(self, client: AsyncClient, supervisor_token):
        """요청 검증 실패는 400 VALIDATION_ERROR."""
        res = await client.post(TASKS, json={"title": ""}, headers=auth_header(supervisor_token))
        assert res.status_code == 400
        assert res.json()["code"] == "VALIDATION_ERROR"


class TestTaskAccess:
    """업무 조회/수정 권한 테스트."""

    @pytest_asyncio.fixture
    async def task(self, client: AsyncClient, supervisor_token, staff_user):
        return await create_task(client, supervisor_token, staff_user.id)

    async def test_assignee_reads_task(self, client: AsyncClient, staff_token, task):
        """담당자는 업무 조회 가능."""
        res = await client.get(f"{TASKS}/{task['id']}", headers=auth_header(staff_token))
        assert res.status_code == 200
        assert res.json()["id"] == task["id"]

    async def test_outsider_forbidden(self, client: AsyncClient, other_staff_token, task):
        """담당자도 검토자도 아니면 403."""
        res = await client.get(f"{TASKS}/{task['id']}", headers=auth_header(other_staff_token))
        assert res.status_code == 403

    async def test_unknown_task(self, client: AsyncClient, staff_token):
        """없는 업무 — 404."""
        res = await client.get(f"{TASKS}/00000000-0000-0000-0000-000000000002", headers=auth_header(staff_token))
        assert res.status_code == 404

    async def test_reviewer_edits_task(self, client: AsyncClient, supervisor_token, task):
        """검토자는 제목/우선순위 수정 가능."""
        res = await client.put(
            f"{TASKS}/{task['id']}",
            json={"title": "Deep clean the grill", "priority": "URGENT"},
            headers=auth_header(supervisor_token),
        )
        assert res.status_code == 200
        assert res.json()["title"] == "Deep clean the grill"
        assert res.json()["priority"] == "URGENT"
        assert res.json()["status"] == "OPEN"

    async def test_assignee_cannot_edit(self, client: AsyncClient, staff_token, task):
        """담당자는 업무 내용 수정 불가."""
        res = await client.put(f"{TASKS}/{task['id']}", json={"title": "Easier"}, headers=auth_header(staff_token))
        assert res.status_code == 403


class TestTransitions:
    """상태 전이 표 테스트."""

    @pytest_asyncio.fixture
    async def task(self, client: AsyncClient, supervisor_token, staff_user):
        return await create_task(client, supervisor_token, staff_user.id)

    async def test_skip_to_review_is_invalid(self, client: AsyncClient, staff_token, task):
        """OPEN → WAITING_FOR_REVIEW는 전이 표에 없음."""
        res = await move(client, staff_token, task["id"], "WAITING_FOR_REVIEW")
        assert res.status_code == 400
        body = res.json()
        assert body["code"] == "INVALID_TRANSITION"
        assert body["allowed"] == ["IN_PROGRESS"]

    async def test_outsider_gets_403_before_table_check(self, client: AsyncClient, other_staff_token, task):
        """권한 없는 사용자는 잘못된 전이여도 403 (상태 노출 없음)."""
        res = await move(client, other_staff_token, task["id"], "APPROVED")
        assert res.status_code == 403

    async def test_assignee_cannot_approve(self, client: AsyncClient, staff_token, task):
        """담당자는 승인 간선을 사용할 수 없음."""
        await submit_for_review(client, staff_token, task["id"])
        res = await move(client, staff_token, task["id"], "APPROVED", rating=5)
        assert res.status_code == 403

    async def test_reviewer_may_start_task(self, client: AsyncClient, supervisor_token, task):
        """검토자도 참여자 간선 사용 가능."""
        res = await move(client, supervisor_token, task["id"], "IN_PROGRESS")
        assert res.status_code == 200
        assert res.json()["status"] == "IN_PROGRESS"

    async def test_evidence_gate(self, client: AsyncClient, staff_token, task):
        """증빙 1개로 검토 요청 — 2개 더 필요."""
        await move(client, staff_token, task["id"], "IN_PROGRESS")
        await attach(client, staff_token, task["id"], 1)
        res = await move(client, staff_token, task["id"], "WAITING_FOR_REVIEW")
        assert res.status_code == 400
        body = res.json()
        assert body["code"] == "INSUFFICIENT_EVIDENCE"
        assert body["remaining"] == 2
        assert "need 2 more proofs" in body["error"]

        detail = (await client.get(f"{TASKS}/{task['id']}", headers=auth_header(staff_token))).json()
        assert detail["status"] == "IN_PROGRESS"
        assert detail["submitted_at"] is None

    async def test_status_endpoint_review_needs_rating(self, client: AsyncClient, staff_token, supervisor_token, task):
        """상태 엔드포인트로 승인 시 평점 검증."""
        await submit_for_review(client, staff_token, task["id"])
        res = await move(client, supervisor_token, task["id"], "APPROVED")
        assert res.status_code == 400
        assert res.json()["code"] == "INVALID_RATING"

        res = await move(client, supervisor_token, task["id"], "APPROVED", rating=4)
        assert res.status_code == 200
        assert res.json()["status"] == "APPROVED"
        assert res.json()["review_rating"] == 4


class TestReviewCycle:
    """반려 → 재작업 → 승인 전체 흐름."""

    async def test_reject_rework_approve(self, client: AsyncClient, supervisor_token, staff_token, staff_user, supervisor_user):
        """증빙 부족 → 반려 → 재작업 → 승인."""
        task = await create_task(client, supervisor_token, staff_user.id)
        task_id = task["id"]

        assert (await move(client, staff_token, task_id, "IN_PROGRESS")).status_code == 200
        assert (await attach(client, staff_token, task_id, 1)).status_code == 201
        res = await move(client, staff_token, task_id, "WAITING_FOR_REVIEW")
        assert res.status_code == 400
        assert res.json()["remaining"] == 2

        res = await attach(client, staff_token, task_id, 2)
        assert res.status_code == 201
        assert res.json()["proof_count"] == 3
        res = await move(client, staff_token, task_id, "WAITING_FOR_REVIEW")
        assert res.status_code == 200
        assert res.json()["submitted_at"] is not None

        res = await client.post(
            f"{TASKS}/{task_id}/review",
            json={"decision": "REJECT", "rating": 2, "comment": "redo lighting"},
            headers=auth_header(supervisor_token),
        )
        assert res.status_code == 200
        rejected = res.json()
        assert rejected["status"] == "REJECTED"
        assert rejected["review_rating"] == 2
        assert rejected["review_comment"] == "redo lighting"
        assert rejected["reviewed_by"] == str(supervisor_user.id)
        assert rejected["completed_at"] is None

        assert (await move(client, staff_token, task_id, "IN_PROGRESS")).status_code == 200
        assert (await move(client, staff_token, task_id, "WAITING_FOR_REVIEW")).status_code == 200

        res = await client.post(
            f"{TASKS}/{task_id}/review",
            json={"decision": "APPROVE", "rating": 5},
            headers=auth_header(supervisor_token),
        )
        assert res.status_code == 200
        approved = res.json()
        assert approved["status"] == "APPROVED"
        assert approved["review_rating"] == 5
        assert approved["completed_at"] is not None

        reviews = (await client.get(f"{TASKS}/{task_id}/reviews", headers=auth_header(staff_token))).json()
        assert [r["decision"] for r in reviews] == ["REJECT", "APPROVE"]
        assert [r["rating"] for r in reviews] == [2, 5]

        res = await move(client, staff_token, task_id, "IN_PROGRESS")
        assert res.status_code == 400
        assert res.json()["code"] == "INVALID_TRANSITION"
        assert res.json()["allowed"] == []

        res = await client.put(f"{TASKS}/{task_id}", json={"title": "Changed"}, headers=auth_header(supervisor_token))
        assert res.status_code == 400
        assert res.json()["code"] == "TASK_LOCKED"

    async def test_status_change_log(self, client: AsyncClient, supervisor_token, staff_token, other_staff_token, staff_user, supervisor_user):
        """상태 변경 이력 — 성공한 전이만, 순서대로, 수행자와 함께 기록."""
        task = await create_task(client, supervisor_token, staff_user.id)
        task_id = task["id"]
        await submit_for_review(client, staff_token, task_id)

        res = await move(client, supervisor_token, task_id, "REJECTED", rating=2, comment="blurry photos")
        assert res.status_code == 200
        # 실패한 전이는 기록되지 않음 (rejected attempts leave no entry)
        assert (await move(client, staff_token, task_id, "APPROVED", rating=5)).status_code == 400
        assert (await move(client, staff_token, task_id, "IN_PROGRESS")).status_code == 200
        assert (await move(client, staff_token, task_id, "WAITING_FOR_REVIEW")).status_code == 200
        res = await client.post(
            f"{TASKS}/{task_id}/review",
            json={"decision": "APPROVE", "rating": 4},
            headers=auth_header(supervisor_token),
        )
        assert res.status_code == 200

        res = await client.get(f"{TASKS}/{task_id}/status-changes", headers=auth_header(staff_token))
        assert res.status_code == 200
        changes = res.json()
        assert [(c["from_status"], c["to_status"]) for c in changes] == [
            ("OPEN", "IN_PROGRESS"),
            ("IN_PROGRESS", "WAITING_FOR_REVIEW"),
            ("WAITING_FOR_REVIEW", "REJECTED"),
            ("REJECTED", "IN_PROGRESS"),
            ("IN_PROGRESS", "WAITING_FOR_REVIEW"),
            ("WAITING_FOR_REVIEW", "APPROVED"),
        ]
        actors = [c["actor_id"] for c in changes]
        assert actors == [str(staff_user.id)] * 2 + [str(supervisor_user.id)] + [str(staff_user.id)] * 2 + [str(supervisor_user.id)]

        res = await client.get(f"{TASKS}/{task_id}/status-changes", headers=auth_header(other_staff_token))
        assert res.status_code == 403


class TestTaskLists:
    """업무 목록/통계 테스트."""

    async def test_mine_orders_by_due_date(self, client: AsyncClient, supervisor_token, staff_token, staff_user):
        """마감일 오름차순, 마감일 없는 업무는 마지막."""
        now = datetime.now(timezone.utc)
        await create_task(client, supervisor_token, staff_user.id, title="No due")
        await create_task(client, supervisor_token, staff_user.id, title="Later", due_date=(now + timedelta(days=5)).isoformat())
        await create_task(client, supervisor_token, staff_user.id, title="Sooner", due_date=(now + timedelta(days=1)).isoformat())

        res = await client.get(TASKS, params={"view": "mine"}, headers=auth_header(staff_token))
        assert res.status_code == 200
        body = res.json()
        assert [t["title"] for t in body["data"]] == ["Sooner", "Later", "No due"]
        assert body["meta"] == {"total": 3, "page": 1, "limit": 20, "totalPages": 1}

    async def test_pagination_meta(self, client: AsyncClient, supervisor_token, staff_token, staff_user):
        """limit/page 메타데이터."""
        for index in range(3):
            await create_task(client, supervisor_token, staff_user.id, title=f"Task {index}")
        res = await client.get(TASKS, params={"limit": 2, "page": 2}, headers=auth_header(staff_token))
        body = res.json()
        assert len(body["data"]) == 1
        assert body["meta"]["totalPages"] == 2

    async def test_review_queue(self, client: AsyncClient, supervisor_token, staff_token, staff_user, other_staff_user, gm_token):
        """검토 대기열 — 부서 범위 안의 WAITING_FOR_REVIEW만."""
        waiting = await create_task(client, supervisor_token, staff_user.id, title="Waiting")
        await create_task(client, supervisor_token, staff_user.id, title="Open")
        await create_task(client, gm_token, other_staff_user.id, title="Other dept")
        await submit_for_review(client, staff_token, waiting["id"])

        res = await client.get(TASKS, params={"view": "review"}, headers=auth_header(supervisor_token))
        assert res.status_code == 200
        assert [t["id"] for t in res.json()["data"]] == [waiting["id"]]

    async def test_team_view_scoped_to_department(self, client: AsyncClient, supervisor_token, gm_token, staff_user, other_staff_user):
        """슈퍼바이저 팀 보기는 자기 부서만, GM은 전체."""
        await create_task(client, supervisor_token, staff_user.id)
        await create_task(client, gm_token, other_staff_user.id)

        res = await client.get(TASKS, params={"view": "team"}, headers=auth_header(supervisor_token))
        assert res.json()["meta"]["total"] == 1
        res = await client.get(TASKS, params={"view": "team"}, headers=auth_header(gm_token))
        assert res.json()["meta"]["total"] == 2

    async def test_staff_cannot_use_team_view(self, client: AsyncClient, staff_token):
        """스태프는 team/review 보기 불가."""
        res = await client.get(TASKS, params={"view": "team"}, headers=auth_header(staff_token))
        assert res.status_code == 403

    async def test_stats(self, client: AsyncClient, supervisor_token, staff_token, staff_user):
        """상태별 업무 수."""
        first = await create_task(client, supervisor_token, staff_user.id)
        await create_task(client, supervisor_token, staff_user.id)
        await move(client, staff_token, first["id"], "IN_PROGRESS")

        res = await client.get(f"{TASKS}/stats", headers=auth_header(staff_token))
        assert res.status_code == 200
        assert res.json() == {
            "open": 1,
            "inProgress": 1,
            "waitingReview": 0,
            "approved": 0,
            "rejected": 0,
            "total": 2,
        }

        team = (await client.get(f"{TASKS}/stats", params={"scope": "team"}, headers=auth_header(supervisor_token))).json()
        assert team["total"] == 2
