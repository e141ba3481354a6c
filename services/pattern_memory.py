"""
Pattern Memory - bounded log of human-confirmed matches.

Holds the most recent confirmed links, newest first. Hydrated once per
session from storage and then updated in memory on every confirmation;
the engine never re-reads storage mid-session.
"""

import threading
from typing import Iterable, Iterator, Optional

import structlog

from config import settings
from models.reconciliation import ConfirmedLink

logger = structlog.get_logger(__name__)


class PatternMemory:
    """
    Recency-ordered, capped store of ConfirmedLink entries.

    Writers are serialized with a lock. Readers iterate over a snapshot,
    so ranking calls never observe a half-applied append.
    """

    def __init__(
        self,
        links: Optional[Iterable[ConfirmedLink]] = None,
        capacity: Optional[int] = None,
    ):
        self.capacity = capacity or settings.pattern_memory_capacity
        self._links: list[ConfirmedLink] = []
        self._lock = threading.Lock()
        if links:
            self.hydrate(links)

    def hydrate(self, links: Iterable[ConfirmedLink]) -> None:
        """Replace contents with the newest `capacity` links by confirmation time."""
        ordered = sorted(links, key=lambda link: link.confirmed_at, reverse=True)
        with self._lock:
            self._links = ordered[:self.capacity]
        logger.info("pattern_memory_hydrated", patterns=len(self._links))

    def append(self, link: ConfirmedLink) -> None:
        """Insert a new link at the front, evicting the oldest past capacity."""
        with self._lock:
            self._links = [link] + self._links[:self.capacity - 1]

    def snapshot(self) -> list[ConfirmedLink]:
        """Current links, newest first."""
        return list(self._links)

    def clear(self) -> None:
        with self._lock:
            self._links = []

    def __iter__(self) -> Iterator[ConfirmedLink]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._links)
