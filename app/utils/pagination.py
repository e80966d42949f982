"""페이지네이션 유틸리티 모듈.

Pagination utility module.
Builds the list envelope shared by every list endpoint:
``{"data": [...], "meta": {"total", "page", "limit", "totalPages"}}``.
"""

import math
from typing import Any, Sequence

from app.config import settings


def clamp_limit(limit: int | None, maximum: int | None = None, default: int | None = None) -> int:
    """요청 limit을 [1, maximum] 범위로 제한합니다.

    Clamp a requested page size into ``[1, maximum]``.

    Args:
        limit: 요청 값, None이면 기본값 (Requested limit, None for default)
        maximum: 상한, 기본은 MAX_PAGE_LIMIT (Upper bound)
        default: 기본값, 기본은 DEFAULT_PAGE_LIMIT (Default when limit is None)
    """
    upper: int = maximum if maximum is not None else settings.MAX_PAGE_LIMIT
    fallback: int = default if default is not None else settings.DEFAULT_PAGE_LIMIT
    value: int = fallback if limit is None else limit
    return max(1, min(value, upper))


def build_envelope(
    items: Sequence[Any],
    total: int,
    page: int,
    limit: int,
) -> dict[str, Any]:
    """목록 응답 봉투를 구성합니다.

    Build the list response envelope.

    Args:
        items: 현재 페이지 항목 (Items of the current page, already serialized)
        total: 전체 항목 수 (Total item count across pages)
        page: 현재 페이지, 1부터 시작 (Current page, 1-based)
        limit: 페이지 크기 (Page size)

    Returns:
        dict: {"data": [...], "meta": {...}}
    """
    # 전체 페이지 수 — ceil(total / limit), 항목이 없으면 0 (0 when empty)
    total_pages: int = math.ceil(total / limit) if limit > 0 else 0
    return {
        "data": list(items),
        "meta": {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": total_pages,
        },
    }
