"""Page-number window for listing pages."""

import math
from dataclasses import dataclass, field
from typing import List, Union

ELLIPSIS_TOKEN = "..."

# Up to this many pages are listed without collapsing.
MAX_PAGES_WITHOUT_ELLIPSIS = 5

PageToken = Union[int, str]


@dataclass(frozen=True)
class PageWindow:
    """Page tokens plus the state of the previous/next controls."""

    current: int
    total: int
    pages: List[PageToken] = field(default_factory=list)

    @property
    def has_previous(self) -> bool:
        return self.total > 1 and self.current > 1

    @property
    def has_next(self) -> bool:
        return self.current < self.total


def page_numbers(current: int, total: int) -> List[PageToken]:
    """Tokens to render for ``current`` out of ``total`` pages.

    One page or fewer renders nothing. Up to five pages are all listed.
    Beyond that the first and last page are always present, plus one
    neighbour on each side of ``current``; an ellipsis stands in wherever
    two listed numbers are not adjacent.

    >>> page_numbers(5, 10)
    [1, '...', 4, 5, 6, '...', 10]
    """
    if total <= 1:
        return []

    current = min(max(current, 1), total)

    if total <= MAX_PAGES_WITHOUT_ELLIPSIS:
        return list(range(1, total + 1))

    start = max(2, current - 1)
    end = min(total - 1, current + 1)

    pages: List[PageToken] = [1]
    if start > 2:
        pages.append(ELLIPSIS_TOKEN)
    pages.extend(range(start, end + 1))
    if end < total - 1:
        pages.append(ELLIPSIS_TOKEN)
    pages.append(total)
    return pages


def build_page_window(current: int, total: int) -> PageWindow:
    """Clamp ``current`` into range and compute its page tokens."""
    total = max(total, 0)
    clamped = min(max(current, 1), max(total, 1))
    return PageWindow(current=clamped, total=total, pages=page_numbers(clamped, total))


def total_pages(total_items: int, per_page: int) -> int:
    if per_page <= 0:
        raise ValueError("per_page must be positive")
    return math.ceil(total_items / per_page) if total_items > 0 else 0


def page_offset(page: int, per_page: int) -> int:
    return (max(page, 1) - 1) * per_page
