"""Page arithmetic for listing views."""
import math
from typing import List, Tuple, Union

from app.schemas.post import PaginationInfo

ELLIPSIS = "..."

PageNumber = Union[int, str]


def calculate_total_pages(total_count: int, page_size: int) -> int:
    if page_size <= 0:
        return 0
    return math.ceil(total_count / page_size)


def get_range(page: int, page_size: int) -> Tuple[int, int]:
    """Inclusive, zero-based row window for a 1-based page."""
    start = (page - 1) * page_size
    return start, start + page_size - 1


def get_page_numbers(current_page: int, total_pages: int) -> List[PageNumber]:
    """
    Page buttons to show: first, last and current +/- 1, with each
    collapsed gap rendered as a single ELLIPSIS marker.

    Example: current_page=5, total_pages=10 -> [1, "...", 4, 5, 6, "...", 10]
    """
    pages: List[PageNumber] = []
    for number in range(1, total_pages + 1):
        if number == 1 or number == total_pages or abs(number - current_page) <= 1:
            pages.append(number)
        elif pages and pages[-1] != ELLIPSIS:
            pages.append(ELLIPSIS)
    return pages


def build_pagination(page: int, page_size: int, total_count: int) -> PaginationInfo:
    total_pages = calculate_total_pages(total_count, page_size)
    last_page = max(total_pages, 1)
    return PaginationInfo(
        page=page,
        page_size=page_size,
        total_count=total_count,
        total_pages=total_pages,
        show_pagination=total_pages > 1,
        page_numbers=get_page_numbers(page, total_pages),
        previous_page=min(max(page - 1, 1), last_page),
        next_page=max(min(page + 1, last_page), 1),
        has_previous=page > 1,
        has_next=page < total_pages,
    )
