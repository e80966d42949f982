"""Axiom API 로깅 미들웨어.

Axiom API logging middleware.
Ships one structured event per request to Axiom: method, path, params,
masked request body, status, duration and, for error responses, the
``error``/``code`` pair from the error envelope. Task and review routes
carry ratings and comments, so bodies are size-capped before shipping.
"""

import json
import re
import time
from typing import Any

import structlog
from axiom_py import Client as AxiomClient
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings

logger = structlog.get_logger()

# 마스킹 대상 필드 패턴 — Fields to mask in request bodies
_SENSITIVE_KEYS = re.compile(
    r"(password|secret|token|authorization|api_key|credential)",
    re.IGNORECASE,
)

# 로깅 제외 경로 — Paths excluded from logging
_SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

_MAX_ERROR_LEN = 500


def _mask(data: Any, depth: int = 0) -> Any:
    """민감 필드 마스킹 — Recursively mask sensitive keys, capping depth and list length."""
    if depth > 5:
        return "..."
    if isinstance(data, dict):
        return {
            key: "***" if _SENSITIVE_KEYS.search(key) else _mask(value, depth + 1)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [_mask(item, depth + 1) for item in data[:20]]
    if isinstance(data, str) and len(data) > 2000:
        return data[:2000] + "...(truncated)"
    return data


def _parse_error(body: bytes) -> tuple[str, str | None]:
    """오류 응답 본문에서 메시지와 코드 추출 — Pull (error, code) out of an error envelope."""
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return body.decode("utf-8", errors="replace")[:_MAX_ERROR_LEN], None
    if not isinstance(payload, dict):
        return str(payload)[:_MAX_ERROR_LEN], None
    message = payload.get("error", payload.get("detail", payload))
    return str(message)[:_MAX_ERROR_LEN], payload.get("code")


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """모든 API 요청/응답을 Axiom에 로깅하는 미들웨어.

    Passes requests straight through when no Axiom token or dataset is set.
    """

    def __init__(self, app: Any) -> None:
        super().__init__(app)
        self._client: AxiomClient | None = None
        self._dataset: str = settings.AXIOM_DATASET
        if settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self._client is None or request.url.path in _SKIP_PATHS:
            return await call_next(request)

        started: float = time.perf_counter()
        event: dict[str, Any] = {"method": request.method, "path": request.url.path}
        if request.query_params:
            event["query_params"] = _mask(dict(request.query_params))

        if request.method in ("POST", "PUT", "PATCH"):
            body_bytes: bytes = await request.body()
            if body_bytes:
                try:
                    event["request_body"] = _mask(json.loads(body_bytes))
                except (json.JSONDecodeError, UnicodeDecodeError):
                    event["request_body"] = "(non-json body)"

        status_code: int = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            if status_code >= 400:
                # 오류 본문은 한 번 읽은 뒤 다시 감싸서 반환 — re-wrap the consumed body
                chunks: list[bytes] = []
                async for chunk in response.body_iterator:
                    chunks.append(chunk if isinstance(chunk, bytes) else chunk.encode("utf-8"))
                raw: bytes = b"".join(chunks)
                event["error"], code = _parse_error(raw)
                if code:
                    event["code"] = code
                response = Response(
                    content=raw,
                    status_code=status_code,
                    headers=dict(response.headers),
                    media_type=response.media_type,
                )
        except Exception as exc:
            event["error"] = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            event["status_code"] = status_code
            event["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
            self._ship(event)

        return response

    def _ship(self, event: dict[str, Any]) -> None:
        """Axiom 전송 — 실패는 요청 처리에 영향을 주지 않고 경고로 남김."""
        try:
            self._client.ingest_events(self._dataset, [event])
        except Exception:
            logger.warning("axiom_ingest_failed", path=event.get("path"), exc_info=True)
