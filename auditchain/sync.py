"""Periodic heartbeats to peers and catch-up of missing blocks."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping

from auditchain.blocks import Block, BlockStore
from auditchain.chain import ChainManager
from auditchain.heartbeat import ElectionState, HeartbeatTable
from auditchain.mempool import Mempool
from auditchain.service import SUCCESS, BlockChainPeer

log = logging.getLogger(__name__)


class HeartbeatManager:
    """Sends heartbeats to peers and pulls blocks from the peer furthest ahead."""

    def __init__(
        self,
        peers: Mapping[str, BlockChainPeer],
        self_addr: str,
        state: ElectionState,
        mempool: Mempool,
        chain: ChainManager,
        table: HeartbeatTable,
        store: BlockStore | None = None,
        interval: float = 10.0,
    ) -> None:
        self.peers: dict[str, BlockChainPeer] = dict(peers)
        self.self_addr = self_addr
        self._state = state
        self._mempool = mempool
        self._chain = chain
        self._table = table
        self.store = store if store is not None else BlockStore()
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        """Whether the background thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Launch the heartbeat thread unless it already runs."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="heartbeat", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop the heartbeat thread and wait for it."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def _run(self) -> None:
        while not self._stop.is_set():
            self.beat()
            self._stop.wait(self._interval)

    def beat(self) -> list[Block]:
        """Send one round of heartbeats, record our own, sweep and sync.

        Returns the blocks fetched while syncing.
        """
        leader = self._state.current_leader
        latest = self._chain.last_id
        pool_size = len(self._mempool.load_all())
        for address, peer in self.peers.items():
            try:
                peer.send_heartbeat(self.self_addr, leader, latest, pool_size)
            except Exception as exc:  # an unreachable peer is only reported
                log.warning("heartbeat to %s failed: %s", address, exc)

        self._table.update(
            self.self_addr,
            self._state.current_leader,
            self._chain.last_id,
            len(self._mempool.load_all()),
        )
        self._table.sweep()
        return self.sync_missing_blocks()

    def sync_missing_blocks(self) -> list[Block]:
        """Fetch blocks we lack from the live peer with the highest block id."""
        local = self._chain.last_id
        highest = local
        best = ""
        log.info("local block id: %d", local)
        for entry in self._table.entries():
            if (
                entry.alive
                and entry.from_address != self.self_addr
                and entry.latest_block_id > highest
            ):
                highest = entry.latest_block_id
                best = entry.from_address
        if not best:
            return []
        log.info("peer %s has the highest block id: %d", best, highest)
        return self.fetch_blocks_from_peer(best, local + 1, highest)

    def fetch_blocks_from_peer(
        self, peer: str, start_id: int, end_id: int
    ) -> list[Block]:
        """Pull blocks ``start_id``..``end_id`` from ``peer``, stopping at a failure."""
        stub = self.peers.get(peer)
        if stub is None:
            return []
        log.info("fetching blocks %d-%d from %s", start_id, end_id, peer)
        fetched: list[Block] = []
        for block_id in range(start_id, end_id + 1):
            try:
                response = stub.get_block(block_id)
            except Exception as exc:  # stop syncing on any peer failure
                log.error("failed to get block %d: %s", block_id, exc)
                return fetched
            if response.status != SUCCESS or response.block is None:
                log.error(
                    "failed to get block %d: %s", block_id, response.error_message
                )
                return fetched
            block = response.block
            self._chain.append(block.meta())
            fetched.append(block)
            try:
                self.store.write(block)
            except OSError as exc:
                log.error("error writing block file %d: %s", block_id, exc)
                return fetched
            log.info("committed block %d", block_id)
        return fetched