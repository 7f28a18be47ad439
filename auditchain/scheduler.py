"""Leader-side block proposal driven by mempool size and elapsed time."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from typing import Sequence

from auditchain.audit import FileAudit
from auditchain.blocks import Block, BlockStore, build_block
from auditchain.chain import ChainManager
from auditchain.config import LeaderConfig
from auditchain.mempool import Mempool
from auditchain.service import SUCCESS, BlockChainPeer

log = logging.getLogger(__name__)


class BlockScheduler:
    """Proposes a block whenever enough audits wait or the batch interval passes."""

    def __init__(
        self,
        mempool: Mempool,
        chain: ChainManager,
        peers: Iterable[BlockChainPeer],
        config: LeaderConfig,
        is_leader: Callable[[], bool],
        store: BlockStore | None = None,
        poll_interval: float = 0.1,
        cooldown: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._mempool = mempool
        self._chain = chain
        self.peers: list[BlockChainPeer] = list(peers)
        self._config = config
        self._is_leader = is_leader
        self.store = store if store is not None else BlockStore()
        self._poll_interval = poll_interval
        self._cooldown = cooldown
        self._clock = clock
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        """Whether the background thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Launch the background scheduling thread unless it already runs."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="block-scheduler", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop the scheduler and wait for its thread to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def __enter__(self) -> BlockScheduler:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _wait_for_batch(self) -> bool:
        deadline = self._clock() + self._config.batch_interval_s
        while not self._stop.is_set():
            if len(self._mempool.load_all()) >= self._config.batch_size:
                return True
            if self._clock() >= deadline:
                return True
            self._stop.wait(self._poll_interval)
        return False

    def _process(self, pending: list[FileAudit]) -> Block | None:
        if self._is_leader():
            log.info("I am leader, creating block")
            return self.create_and_broadcast_block(pending)
        log.info("not leader, skipping")
        return None

    def run_once(self) -> Block | None:
        """Wait for one batch and, as leader, commit it; return the committed block."""
        if not self._wait_for_batch():
            return None
        pending = self._mempool.load_all()
        log.info("woke up: %d audits pending", len(pending))
        if not pending:
            log.info("no audits pending, skipping block creation")
            return None
        return self._process(pending)

    def _run(self) -> None:
        while self._wait_for_batch():
            pending = self._mempool.load_all()
            log.info("woke up: %d audits pending", len(pending))
            if not pending:
                log.info("no audits pending, skipping block creation")
                continue
            self._process(pending)
            self._stop.wait(self._cooldown)

    def create_and_broadcast_block(
        self, pending: Sequence[FileAudit]
    ) -> Block | None:
        """Build a block, get every peer's vote, commit everywhere.

        Returns the committed block, or None if any peer rejected it.
        """
        block = build_block(self._chain.last_id + 1, self._chain.last_hash, pending)

        for index, peer in enumerate(self.peers):
            try:
                vote = peer.propose_block(block)
            except Exception as exc:  # an unreachable peer counts as a rejection
                log.error("proposal rejected: %s", exc)
                return None
            if not vote.vote:
                log.error("proposal rejected: %s", vote.error_message)
                return None
            log.info("proposal accepted by %d", index)

        for peer in self.peers:
            try:
                result = peer.commit_block(block)
            except Exception as exc:  # commit failures are reported, not fatal
                log.error("commit failed: %s", exc)
                continue
            if result.status != SUCCESS:
                log.error("commit failed: %s", result.error_message)

        self._chain.append(block.meta())
        self._mempool.remove_batch(audit.req_id for audit in block.audits)

        try:
            path = self.store.write(block)
        except OSError as exc:
            log.error("failed to write block file: %s", exc)
        else:
            log.info("wrote %s", path)

        log.info("committed block %d (%d audits)", block.id, len(block.audits))
        return block