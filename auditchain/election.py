"""Leader election triggered when no live leader is known."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping

from auditchain.heartbeat import ElectionState, HeartbeatTable
from auditchain.service import BlockChainPeer

log = logging.getLogger(__name__)


class ElectionManager:
    """Checks heartbeats periodically and runs an election when the leader is gone."""

    def __init__(
        self,
        peers: Mapping[str, BlockChainPeer],
        self_addr: str,
        table: HeartbeatTable,
        state: ElectionState,
        interval: float = 2.0,
        initial_delay: float = 30.0,
    ) -> None:
        self.peers: dict[str, BlockChainPeer] = dict(peers)
        self.self_addr = self_addr
        self._table = table
        self._state = state
        self._interval = interval
        self._initial_delay = initial_delay
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        """Whether the background thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Launch the election thread unless it already runs."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="election", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop the election thread and wait for it."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def _run(self) -> None:
        if self._stop.wait(self._initial_delay):
            return
        while not self._stop.is_set():
            self._table.sweep()
            if self.needs_election():
                self.run_election()
            self._stop.wait(self._interval)

    def needs_election(self) -> bool:
        """True if no leader is known or the known leader is marked dead."""
        leader = self._state.current_leader
        if not leader:
            return True
        return any(
            entry.from_address == leader and not entry.alive
            for entry in self._table.entries()
        )

    def run_election(self) -> bool:
        """Ask peers for votes; on winning become leader and notify them."""
        log.info("triggering election")
        accept, reject = 1, 0
        for address, peer in self.peers.items():
            try:
                response = peer.trigger_election(self.self_addr)
            except Exception as exc:  # unreachable peers cast no vote
                log.warning("no answer from %s: %s", address, exc)
                continue
            if response.vote:
                accept += 1
                log.info("got vote from %s", address)
            else:
                reject += 1
                log.info("no vote from %s", address)

        log.info("votes: %d accept, %d reject", accept, reject)
        if accept < reject:
            log.info("lost election (%d/%d)", accept, len(self.peers))
            return False

        self._state.current_leader = self.self_addr
        log.info("I won election, leader=%s", self.self_addr)
        for address, peer in self.peers.items():
            try:
                peer.notify_leadership(self.self_addr)
            except Exception as exc:  # notification is best effort
                log.warning("notify %s failed: %s", address, exc)
        return True