"""공통 Pydantic 요청/응답 스키마 정의.

Common Pydantic response schema definitions shared by every API domain:
the ``{data, meta}`` list envelope.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PageMeta(BaseModel):
    """페이지네이션 메타데이터 스키마.

    Pagination metadata.

    Attributes:
        total: 전체 항목 수 (Total item count)
        page: 현재 페이지, 1부터 시작 (Current page, 1-based)
        limit: 페이지 크기 (Page size)
        totalPages: 전체 페이지 수 (Total pages)
    """

    total: int  # 전체 항목 수 (Total item count)
    page: int  # 현재 페이지 번호 (Current page, 1-indexed)
    limit: int  # 페이지당 항목 수 (Items per page)
    totalPages: int  # 전체 페이지 수 — ceil(total/limit) (Total pages)


class PaginatedResponse(BaseModel, Generic[T]):
    """목록 응답 봉투 — ``{data, meta}`` list envelope."""

    data: list[T]  # 현재 페이지 항목 (Items of the current page)
    meta: PageMeta  # 페이지네이션 메타데이터 (Pagination metadata)
