"""
Filtering, sorting and pagination of the in-memory file list.

Everything here is a pure function of the items and a ``ListQuery``; nothing
touches the network. Pages are 1-based.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Sequence, Union

from sheetdesk import frontend_config as config
from sheetdesk.helpers.models import ViewModel


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


# Sortable columns and how to read them from a view-model.
SORT_FIELDS = {
    "name": lambda item: item.name.lower(),
    "upload_date": lambda item: item.upload_date,
    "status": lambda item: item.status.value,
    "category": lambda item: item.category,
    "rows": lambda item: item.rows,
    "columns": lambda item: item.columns,
    "score_1": lambda item: item.score_1,
    "score_2": lambda item: item.score_2,
    "final_score": lambda item: item.final_score,
}

ELLIPSIS = "..."

PageSlot = Union[int, str]


@dataclass(frozen=True)
class ListQuery:
    search: str = ""
    category: str = config.ALL_CATEGORIES
    sort_field: str = "upload_date"
    sort_direction: SortDirection = SortDirection.DESC
    page: int = 1
    page_size: int = config.PAGE_SIZE

    def toggle_sort(self, sort_field: str) -> "ListQuery":
        """Same field flips direction; a new field starts ascending."""
        if sort_field not in SORT_FIELDS:
            raise ValueError(f"Unknown sort field: {sort_field}")
        if sort_field == self.sort_field:
            return replace(self, sort_direction=self.sort_direction.flipped())
        return replace(self, sort_field=sort_field, sort_direction=SortDirection.ASC)

    def with_search(self, search: str) -> "ListQuery":
        return replace(self, search=search, page=1)

    def with_category(self, category: str) -> "ListQuery":
        return replace(self, category=category, page=1)

    def with_page(self, page: int) -> "ListQuery":
        return replace(self, page=page)


@dataclass
class ListPage:
    items: List[ViewModel]
    filtered_count: int
    total_pages: int
    page: int
    window: List[PageSlot] = field(default_factory=list)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def filter_items(items: Sequence[ViewModel], search: str = "",
                 category: str = config.ALL_CATEGORIES) -> List[ViewModel]:
    needle = search.lower()
    return [
        item for item in items
        if needle in item.name.lower()
        and (category == config.ALL_CATEGORIES or item.category == category)
    ]


def _sort_key(sort_field: str):
    getter = SORT_FIELDS[sort_field]

    def key(item):
        value = getter(item)
        # Missing values sort last when ascending.
        return (value is None, value if value is not None else 0)
    return key


def sort_items(items: Sequence[ViewModel], sort_field: str,
               direction: SortDirection = SortDirection.ASC) -> List[ViewModel]:
    """Stable sort; equal keys keep their input order in both directions."""
    if sort_field not in SORT_FIELDS:
        raise ValueError(f"Unknown sort field: {sort_field}")
    return sorted(items, key=_sort_key(sort_field), reverse=direction is SortDirection.DESC)


def total_pages_for(count: int, page_size: int = config.PAGE_SIZE) -> int:
    return math.ceil(count / page_size)


def clamp_page(page: int, total_pages: int) -> int:
    return max(1, min(page, max(total_pages, 1)))


def paginate(items: Sequence[ViewModel], page: int,
             page_size: int = config.PAGE_SIZE) -> List[ViewModel]:
    start = (page - 1) * page_size
    return list(items[start:start + page_size])


def page_window(current: int, total_pages: int, slots: int = 5) -> List[PageSlot]:
    """
    Page buttons to show, with ``ELLIPSIS`` for collapsed ranges.

    Up to ``slots`` pages are shown in full. Beyond that:
    near the start ``1 2 3 4 ...``, near the end ``... T-3 T-2 T-1 T``,
    otherwise ``1 ... current ... T``.
    """
    if total_pages <= slots:
        return list(range(1, total_pages + 1))
    if current <= 3:
        return [1, 2, 3, 4, ELLIPSIS]
    if current >= total_pages - 2:
        return [ELLIPSIS] + list(range(total_pages - 3, total_pages + 1))
    return [1, ELLIPSIS, current, ELLIPSIS, total_pages]


def build_page(items: Sequence[ViewModel], query: ListQuery) -> ListPage:
    filtered = filter_items(items, query.search, query.category)
    ordered = sort_items(filtered, query.sort_field, query.sort_direction)
    pages = total_pages_for(len(ordered), query.page_size)
    return ListPage(
        items=paginate(ordered, query.page, query.page_size),
        filtered_count=len(ordered),
        total_pages=pages,
        page=query.page,
        window=page_window(query.page, pages),
    )


def category_options(items: Sequence[ViewModel]) -> List[str]:
    seen: Dict[str, None] = {}
    for item in items:
        seen.setdefault(item.category, None)
    return [config.ALL_CATEGORIES] + list(seen)


def summarize(items: Sequence[ViewModel]) -> Dict[str, Any]:
    """Headline numbers for the listing page."""
    scored = [item.final_score for item in items if item.final_score > 0]
    return {
        "total": len(items),
        "total_rows": sum(item.rows for item in items),
        "mean_final_score": sum(scored) / len(scored) if scored else 0.0,
        "categories": len({item.category for item in items}),
    }
