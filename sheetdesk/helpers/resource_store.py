"""
Shared in-memory set of file view-models.

One store per listing; controllers are the only writers. Items are immutable
view-models replaced whole, so a reader sees either the old or the new item.
The whole collection is fetched at once, so the store is capped at
``MAX_RESOURCES`` items.
"""

import logging
from typing import Callable, Iterable, Iterator, List, Optional

from sheetdesk import frontend_config as config
from sheetdesk.helpers.models import ViewModel

logger = logging.getLogger(__name__)


class ResourceStore:
    def __init__(self, max_items: int = config.MAX_RESOURCES):
        self.max_items = max_items
        self._items: List[ViewModel] = []
        self._listeners: List[Callable[[], None]] = []
        self.version = 0

    def __len__(self):
        return len(self._items)

    def __iter__(self) -> Iterator[ViewModel]:
        return iter(list(self._items))

    @property
    def items(self) -> List[ViewModel]:
        return list(self._items)

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        self._listeners.append(callback)
        return lambda: self._listeners.remove(callback)

    def get(self, resource_id: str) -> Optional[ViewModel]:
        for item in self._items:
            if item.id == resource_id:
                return item
        return None

    def set_all(self, items: Iterable[ViewModel]):
        items = list(items)
        if len(items) > self.max_items:
            logger.warning("Service returned %d files; keeping the first %d",
                           len(items), self.max_items)
            items = items[:self.max_items]
        self._items = items
        self._changed()

    def replace(self, item: ViewModel) -> bool:
        """Swap in a new version of an existing item. Unknown ids are ignored."""
        for index, existing in enumerate(self._items):
            if existing.id == item.id:
                self._items[index] = item
                self._changed()
                return True
        return False

    def remove(self, resource_id: str) -> bool:
        remaining = [item for item in self._items if item.id != resource_id]
        if len(remaining) == len(self._items):
            return False
        self._items = remaining
        self._changed()
        return True

    def _changed(self):
        self.version += 1
        for callback in list(self._listeners):
            callback()
