"""
Entity caches. Last-fetched records keyed by id, for the life of one application session.

Pull-based: get() never fetches, it only reports what is already known. Entries are whole
records; a hit returns exactly the object that was stored, never a field-level merge.
There is no TTL and no eviction: the cache grows by single inserts or is replaced wholesale.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Generic, Iterable, List, Optional, TypeVar

from schemas import Project, Student

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EntityCache(Generic[T]):
    """In-memory id → record map. Single-threaded access only."""

    def __init__(self, kind: str, key: Callable[[T], int]) -> None:
        self.kind = kind
        self._key = key
        self._entries: Dict[int, T] = {}

    def get(self, entity_id: int) -> Optional[T]:
        return self._entries.get(entity_id)

    def set_all(self, records: Iterable[T]) -> None:
        entries = {self._key(r): r for r in records}
        self._entries = entries
        logger.info("%s cache replaced with %d record(s)", self.kind, len(entries))

    def set_one(self, entity_id: int, record: T) -> None:
        self._entries[entity_id] = record
        logger.debug("%s cache stored id=%s", self.kind, entity_id)

    def add(self, record: T) -> None:
        self.set_one(self._key(record), record)

    def clear(self) -> None:
        self._entries = {}

    def ids(self) -> List[int]:
        return list(self._entries)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class StudentCache(EntityCache[Student]):
    def __init__(self) -> None:
        super().__init__("student", lambda s: s.id)


class ProjectCache(EntityCache[Project]):
    def __init__(self) -> None:
        super().__init__("project", lambda p: p.id)
