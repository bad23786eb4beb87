from __future__ import annotations

from typing import Any, Dict, Sequence

PAGE_SIZE = 50
AUDIT_PAGE_SIZE = 10


def total_pages(total_items: int, page_size: int) -> int:
    """Never below 1, so an empty view still has a page 1."""
    if total_items <= 0:
        return 1
    return (total_items + page_size - 1) // page_size


def paginate(items: Sequence[Any], page: int, page_size: int = PAGE_SIZE) -> Dict[str, Any]:
    """
    Slice one page out of an already filtered and sorted sequence.

    `page` is 1-based and clamped into [1, total_pages]. first_item/last_item
    are the 1-based positions shown as "Showing 51-100 of 230"; both are 0
    when there is nothing to show.
    """
    if page_size <= 0:
        raise ValueError("page_size must be positive")

    total_items = len(items)
    pages = total_pages(total_items, page_size)
    current = min(max(int(page or 1), 1), pages)

    start = (current - 1) * page_size
    chunk = list(items[start:start + page_size])

    return {
        "items": chunk,
        "page": current,
        "page_size": page_size,
        "total_items": total_items,
        "total_pages": pages,
        "first_item": start + 1 if chunk else 0,
        "last_item": start + len(chunk),
    }
