"""Bounds-safe pagination of fully computed result lists.

Callers compute the complete result first and slice afterwards, so
``total_count`` is always exact.
"""

from __future__ import annotations

from typing import Optional, Sequence, TypeVar, Union

from core.models import Page

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

PageParam = Union[int, str, None]


def _to_int(value: PageParam) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_page(value: PageParam) -> int:
    """1-based page number; absent, unparsable or non-positive becomes 1."""
    page = _to_int(value)
    if page is None or page <= 0:
        return 1
    return page


def normalize_page_size(value: PageParam) -> int:
    """Page size in ``(0, MAX_PAGE_SIZE]``.

    Absent, unparsable or non-positive values fall back to the default;
    oversized values clamp to ``MAX_PAGE_SIZE``.
    """
    size = _to_int(value)
    if size is None or size <= 0:
        return DEFAULT_PAGE_SIZE
    return min(size, MAX_PAGE_SIZE)


def paginate(items: Sequence[T], page: PageParam = None, page_size: PageParam = None) -> Page[T]:
    """Return one page of *items*.

    Examples:
        >>> p = paginate(list(range(25)), page=3, page_size=10)
        >>> p.items, p.has_more
        ([20, 21, 22, 23, 24], False)
    """
    page_number = normalize_page(page)
    size = normalize_page_size(page_size)
    total = len(items)

    start = min(max((page_number - 1) * size, 0), total)
    end = min(max(start + size, 0), total)
    sliced = list(items[start:end]) if start < end else []

    return Page(
        items=sliced,
        total_count=total,
        page=page_number,
        page_size=size,
        has_more=end < total,
    )
