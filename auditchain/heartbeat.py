"""Peer heartbeat tracking and election state."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, replace

log = logging.getLogger(__name__)


@dataclass
class HeartbeatEntry:
    """Freshest heartbeat received from one peer."""

    from_address: str
    leader_address: str
    latest_block_id: int
    mem_pool_size: int
    last_seen: float
    alive: bool = True


class HeartbeatTable:
    """Latest heartbeat per peer; peers silent past the timeout are marked dead."""

    def __init__(
        self, timeout_sec: float, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._timeout = timeout_sec
        self._clock = clock
        self._lock = threading.Lock()
        self._table: dict[str, HeartbeatEntry] = {}

    def update(
        self,
        from_address: str,
        leader_address: str,
        latest_block_id: int,
        mem_pool_size: int,
    ) -> None:
        """Record a heartbeat from ``from_address``, marking it alive."""
        with self._lock:
            self._table[from_address] = HeartbeatEntry(
                from_address=from_address,
                leader_address=leader_address,
                latest_block_id=latest_block_id,
                mem_pool_size=mem_pool_size,
                last_seen=self._clock(),
            )

    def sweep(self) -> list[str]:
        """Mark timed-out peers dead; return the addresses newly marked."""
        now = self._clock()
        newly_dead = []
        with self._lock:
            for address, entry in self._table.items():
                if entry.alive and now - entry.last_seen > self._timeout:
                    log.info("marking %s as dead (timeout)", address)
                    entry.alive = False
                    newly_dead.append(address)
        return newly_dead

    def entries(self) -> list[HeartbeatEntry]:
        """Snapshot copies of all entries."""
        with self._lock:
            return [replace(entry) for entry in self._table.values()]

    def get(self, address: str) -> HeartbeatEntry | None:
        """Snapshot of the entry for ``address``, or None if never heard from."""
        with self._lock:
            entry = self._table.get(address)
            return replace(entry) if entry is not None else None


@dataclass
class ElectionState:
    """Current term, the peer voted for, and the known leader."""

    current_term: int = 0
    voted_for: str = ""
    current_leader: str = ""