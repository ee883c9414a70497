"""
Content Repository Contract
===========================
Interface the validator uses to look up content items, plus an in-memory
implementation used by the HTTP surface, the report runner and tests.

Lookups accept either an item id (any common GUID spelling) or a full item
path. Item paths compare case-insensitively.

The access-check bypass is a scoped acquisition: use
``with repository.access_checks_disabled():`` and the previous state is
restored on every exit path.
"""

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, List, Optional, Set

from .models import Item, normalize_item_id


class ContentRepository(ABC):
    """Read-only view of a content database."""

    name: str = "master"

    @abstractmethod
    def get_item_by_id(self, item_id: str) -> Optional[Item]:
        """Return the item with this id, or None."""
        pass

    @abstractmethod
    def get_item_by_path(self, path: str) -> Optional[Item]:
        """Return the item at this full path, or None."""
        pass

    @abstractmethod
    def access_checks_disabled(self):
        """Context manager under which item-level read restrictions are ignored."""
        pass

    def get_item(self, id_or_path: str) -> Optional[Item]:
        """Look up by id when the value is a GUID, otherwise by path."""
        if id_or_path is None:
            return None
        item_id = normalize_item_id(id_or_path)
        if item_id is not None:
            return self.get_item_by_id(item_id)
        return self.get_item_by_path(id_or_path)


class InMemoryRepository(ContentRepository):
    """
    Dict-backed repository.

    Items listed through ``deny_read`` are invisible to lookups unless the
    calling thread is inside ``access_checks_disabled()``.
    """

    def __init__(self, name: str = "master", items: Optional[List[Item]] = None):
        self.name = name
        self._by_id: Dict[str, Item] = {}
        self._by_path: Dict[str, Item] = {}
        self._restricted: Set[str] = set()
        self._lock = threading.RLock()
        self._local = threading.local()
        for item in items or []:
            self.add_item(item)

    @staticmethod
    def _path_key(path: str) -> str:
        return path.rstrip('/').lower() if path != '/' else path

    def add_item(self, item: Item) -> Item:
        with self._lock:
            self._by_id[item.id] = item
            self._by_path[self._path_key(item.path)] = item
        return item

    def deny_read(self, item_id: str):
        """Hide an item from lookups made with access checks enabled."""
        with self._lock:
            self._restricted.add(normalize_item_id(item_id))

    @property
    def checks_disabled(self) -> bool:
        return getattr(self._local, 'depth', 0) > 0

    @contextmanager
    def access_checks_disabled(self):
        self._local.depth = getattr(self._local, 'depth', 0) + 1
        try:
            yield self
        finally:
            self._local.depth -= 1

    def _visible(self, item: Optional[Item]) -> Optional[Item]:
        if item is None:
            return None
        if item.id in self._restricted and not self.checks_disabled:
            return None
        return item

    def get_item_by_id(self, item_id: str) -> Optional[Item]:
        item_id = normalize_item_id(item_id)
        if item_id is None:
            return None
        with self._lock:
            return self._visible(self._by_id.get(item_id))

    def get_item_by_path(self, path: str) -> Optional[Item]:
        if not path:
            return None
        with self._lock:
            return self._visible(self._by_path.get(self._path_key(path)))

    def __len__(self) -> int:
        return len(self._by_id)
