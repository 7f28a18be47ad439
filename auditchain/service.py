"""Node services: client audit submission and peer-to-peer block handling."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from auditchain.audit import FileAudit
from auditchain.blocks import Block, BlockStore
from auditchain.chain import ChainManager
from auditchain.heartbeat import ElectionState, HeartbeatTable
from auditchain.mempool import Mempool
from auditchain.merkle import compute_merkle_root
from auditchain.signing import verify_signature

log = logging.getLogger(__name__)

SUCCESS = "success"
FAILURE = "failure"


class InvalidSignatureError(ValueError):
    """An audit's signature does not match its payload and public key."""


@dataclass(frozen=True)
class AuditResponse:
    req_id: str
    status: str


@dataclass(frozen=True)
class VoteResponse:
    vote: bool
    status: str
    error_message: str = ""


@dataclass(frozen=True)
class CommitResponse:
    status: str
    error_message: str = ""


@dataclass(frozen=True)
class BlockResponse:
    status: str
    error_message: str = ""
    block: Block | None = None


@dataclass(frozen=True)
class ElectionResponse:
    vote: bool
    term: int = 0
    status: str = SUCCESS


class BlockChainPeer(Protocol):
    """Operations one node invokes on another; failures surface as exceptions."""

    def whisper_audit(self, audit: FileAudit) -> str: ...

    def propose_block(self, block: Block) -> VoteResponse: ...

    def commit_block(self, block: Block) -> CommitResponse: ...

    def get_block(self, block_id: int) -> BlockResponse: ...

    def send_heartbeat(
        self,
        from_address: str,
        leader_address: str,
        latest_block_id: int,
        mem_pool_size: int,
    ) -> str: ...

    def trigger_election(self, address: str) -> ElectionResponse: ...

    def notify_leadership(self, address: str) -> str: ...


def _has_valid_signature(audit: FileAudit) -> bool:
    return verify_signature(audit.canonical_json(), audit.signature, audit.public_key)


class FileAuditService:
    """Accepts signed audits from clients and gossips them to peers."""

    def __init__(self, peers: Iterable[BlockChainPeer], mempool: Mempool) -> None:
        self.peers: list[BlockChainPeer] = list(peers)
        self._mempool = mempool

    def submit_audit(self, audit: FileAudit) -> AuditResponse:
        """Verify, store and gossip an audit; raises InvalidSignatureError."""
        if not _has_valid_signature(audit):
            raise InvalidSignatureError("Invalid client signature")
        self._mempool.append(audit)
        for peer in self.peers:
            try:
                status = peer.whisper_audit(audit)
            except Exception as exc:  # any peer failure is logged and skipped
                log.warning("gossip to peer failed: %s", exc)
            else:
                log.info("gossip to peer succeeded: %s", status)
        return AuditResponse(req_id=audit.req_id, status=SUCCESS)


class BlockChainService:
    """Handles gossip, block proposals, heartbeats and elections from peers."""

    def __init__(
        self,
        mempool: Mempool,
        chain: ChainManager,
        heartbeats: HeartbeatTable,
        state: ElectionState,
        self_addr: str,
        store: BlockStore | None = None,
    ) -> None:
        self._mempool = mempool
        self._chain = chain
        self._heartbeats = heartbeats
        self._state = state
        self.self_addr = self_addr
        self.store = store if store is not None else BlockStore()

    def whisper_audit(self, audit: FileAudit) -> str:
        """Store a gossiped audit; raises InvalidSignatureError."""
        if not _has_valid_signature(audit):
            log.warning("invalid signature for req_id=%s", audit.req_id)
            raise InvalidSignatureError("Invalid signature in gossiped audit")
        self._mempool.append(audit)
        log.info("audit %s added to mempool", audit.req_id)
        return SUCCESS

    def propose_block(self, block: Block) -> VoteResponse:
        """Vote on a block by checking its Merkle root and previous hash."""
        leaves = [audit.leaf_hash() for audit in block.audits]
        if compute_merkle_root(leaves) != block.merkle_root:
            return VoteResponse(False, FAILURE, "bad merkle_root")
        if block.previous_hash != self._chain.last_hash:
            return VoteResponse(False, FAILURE, "bad previous_hash")
        return VoteResponse(True, SUCCESS)

    def commit_block(self, block: Block) -> CommitResponse:
        """Append the block, prune its audits from the mempool and store it."""
        log.info("received block id=%s merkle_root=%s", block.id, block.merkle_root)
        self._chain.append(block.meta())
        self._mempool.remove_batch(audit.req_id for audit in block.audits)
        try:
            path = self.store.write(block)
        except OSError as exc:
            log.error("error writing block file %s: %s", block.id, exc)
            return CommitResponse(FAILURE, "could not write block file")
        log.info("wrote block file %s", path)
        return CommitResponse(SUCCESS)

    def get_block(self, block_id: int) -> BlockResponse:
        """Return a stored block by id."""
        if block_id > self._chain.last_id:
            return BlockResponse(FAILURE, "block id out of range")
        try:
            block = self.store.read(block_id)
        except OSError:
            return BlockResponse(FAILURE, "could not open block file")
        except ValueError as exc:
            return BlockResponse(FAILURE, f"JSON parse error: {exc}")
        return BlockResponse(SUCCESS, block=block)

    def send_heartbeat(
        self,
        from_address: str,
        leader_address: str,
        latest_block_id: int,
        mem_pool_size: int,
    ) -> str:
        """Record a peer's heartbeat and adopt its leader if none is known."""
        self._heartbeats.update(
            from_address, leader_address, latest_block_id, mem_pool_size
        )
        if not self._state.current_leader and leader_address:
            self._state.current_leader = leader_address
            log.info("learned new leader: %s", leader_address)
        return SUCCESS

    def trigger_election(self, address: str) -> ElectionResponse:
        """Vote for ``address`` if it is ahead of this node."""
        entry = self._heartbeats.get(address)
        cand_blocks = entry.latest_block_id if entry else 0
        cand_pool = entry.mem_pool_size if entry else 0
        my_blocks = self._chain.last_id
        my_pool = len(self._mempool.load_all())
        vote = (cand_blocks, cand_pool, address) > (my_blocks, my_pool, self.self_addr)
        if vote:
            self._state.voted_for = address
        return ElectionResponse(vote=vote)

    def notify_leadership(self, address: str) -> str:
        """Record ``address`` as the new leader."""
        self._state.current_leader = address
        log.info("new leader = %s", address)
        return SUCCESS