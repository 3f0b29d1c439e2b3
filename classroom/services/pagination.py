"""
Page arithmetic shared by list endpoints.

All functions are total: out-of-range pages and sizes are clamped or
ignored, never raised.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Sequence

from classroom.core.config import DEFAULT_PAGE_SIZE

ELLIPSIS = "..."
WINDOW_DELTA = 2


def count_pages(total_items: int, page_size: int) -> int:
    if total_items <= 0 or page_size <= 0:
        return 0
    return math.ceil(total_items / page_size)


def item_range(total_items: int, page_size: int, current_page: int) -> tuple[int, int]:
    """1-based (start_item, end_item) shown on the current page; (0, 0) when empty."""
    if total_items <= 0:
        return (0, 0)
    start = (current_page - 1) * page_size + 1
    end = min(current_page * page_size, total_items)
    return (start, end)


def visible_pages(current_page: int, total_pages: int, delta: int = WINDOW_DELTA) -> list[int | str]:
    """
    Page buttons to render:
    - always the first and the last page
    - a window of +/- delta around the current page
    - ELLIPSIS where pages are skipped between them
    """
    if total_pages <= 0:
        return []

    window = list(
        range(max(2, current_page - delta), min(total_pages - 1, current_page + delta) + 1)
    )

    pages: list[int | str] = [1]
    if current_page - delta > 2:
        pages.append(ELLIPSIS)

    pages.extend(window)

    if current_page + delta < total_pages - 1:
        pages.extend([ELLIPSIS, total_pages])
    elif total_pages > 1:
        pages.append(total_pages)

    return pages


class Paginator:
    """Navigation state over a collection of `total_items` items."""

    def __init__(self, total_items: int, page_size: int = DEFAULT_PAGE_SIZE, current_page: int = 1):
        self.total_items = max(0, total_items)
        self.page_size = max(1, page_size)
        self.current_page = 1
        self.go_to(current_page)

    @property
    def total_pages(self) -> int:
        return count_pages(self.total_items, self.page_size)

    @property
    def start_item(self) -> int:
        return item_range(self.total_items, self.page_size, self.current_page)[0]

    @property
    def end_item(self) -> int:
        return item_range(self.total_items, self.page_size, self.current_page)[1]

    @property
    def visible_pages(self) -> list[int | str]:
        return visible_pages(self.current_page, self.total_pages)

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    def go_to(self, page: int) -> bool:
        """Move to `page`; requests outside [1, total_pages] are ignored."""
        if 1 <= page <= self.total_pages:
            self.current_page = page
            return True
        return False

    def next(self) -> bool:
        return self.go_to(self.current_page + 1)

    def previous(self) -> bool:
        return self.go_to(self.current_page - 1)

    def first(self) -> bool:
        return self.go_to(1)

    def last(self) -> bool:
        return self.go_to(self.total_pages)

    def set_page_size(self, page_size: int) -> None:
        if page_size <= 0:
            return
        self.page_size = page_size
        self.current_page = 1

    def set_total_items(self, total_items: int) -> None:
        # the underlying collection changed (filter/search)
        self.total_items = max(0, total_items)
        self.reset()

    def reset(self) -> None:
        self.current_page = 1

    def page_items(self, items: Sequence[Any]) -> list[Any]:
        start = (self.current_page - 1) * self.page_size
        return list(items[start:start + self.page_size])


@dataclass
class Page:
    items: list[Any]
    total_items: int
    page_size: int
    current_page: int
    total_pages: int
    start_item: int
    end_item: int
    visible_pages: list[int | str] = field(default_factory=list)

    def to_dict(self) -> dict:
        # shallow: items may be ORM rows, validated later by the response model
        return {
            "items": self.items,
            "total_items": self.total_items,
            "page_size": self.page_size,
            "current_page": self.current_page,
            "total_pages": self.total_pages,
            "start_item": self.start_item,
            "end_item": self.end_item,
            "visible_pages": self.visible_pages,
        }


def paginate(items: Sequence[Any], page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Page:
    """Slice an in-memory collection; `page` is clamped to [1, max(total_pages, 1)]."""
    paginator = Paginator(len(items), page_size)
    paginator.go_to(min(max(1, page), max(paginator.total_pages, 1)))

    return Page(
        items=paginator.page_items(items),
        total_items=paginator.total_items,
        page_size=paginator.page_size,
        current_page=paginator.current_page,
        total_pages=paginator.total_pages,
        start_item=paginator.start_item,
        end_item=paginator.end_item,
        visible_pages=paginator.visible_pages,
    )
