"""API 라우터 패키지 — 모든 엔드포인트 통합.

API Router package — Aggregates every endpoint into a single router for
inclusion in the FastAPI application under ``/api/v1``.

Included routers:
    - tasks: 업무 생명주기, 증빙, 검토 (Task lifecycle, evidence, reviews)
    - scores: 성과 점수, 리더보드 (Performance scores, leaderboard)
    - warnings: 징계 경고 (Disciplinary warnings)
"""

from fastapi import APIRouter

from app.api.tasks import router as tasks_router
from app.api.scores import router as scores_router
from app.api.warnings import router as warnings_router

api_router: APIRouter = APIRouter()

api_router.include_router(tasks_router, prefix="/tasks", tags=["Tasks"])
api_router.include_router(scores_router, prefix="/scores", tags=["Scores"])
api_router.include_router(warnings_router, prefix="/warnings", tags=["Warnings"])
