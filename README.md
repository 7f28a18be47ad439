# auditchain

`auditchain` records file-access audits on a small replicated chain.

A client signs each audit record. A node that accepts the record checks the
signature, keeps the record in its mempool and passes it on to its peers. The
leader batches pending audits into a block, asks every peer to vote on it, and
commits it once every peer votes yes. Nodes send heartbeats to each other; a node
that falls behind fetches the blocks it is missing, and when the leader's
heartbeats time out a new election runs.

## What is in the package

| Module | Purpose |
| --- | --- |
| `auditchain.merkle` | `sha256_hex` and `compute_merkle_root`. An odd node at the end of a level is paired with itself. |
| `auditchain.audit` | `FileAudit`, `FileInfo`, `UserInfo` and `AccessType` (`READ`, `WRITE`), with the canonical JSON used for hashing and signing and a storage JSON form. |
| `auditchain.chain` | `ChainManager` and `BlockMeta`. Block metadata is kept in memory and mirrored to a JSON file. |
| `auditchain.config` | `load_peers` reads the peer list; `LeaderConfig.load` reads the leader and batching settings. Both raise `ConfigError`. |
| `auditchain.mempool` | `Mempool`, a thread-safe store of pending audits, one JSON object per line. |
| `auditchain.heartbeat` | `HeartbeatTable`, `HeartbeatEntry` and `ElectionState`. |
| `auditchain.blocks` | `Block`, `build_block`, `compute_block_hash`, `sort_audits` and `BlockStore`, which keeps one JSON file per block. |
| `auditchain.signing` | `sign_data`, `verify_signature` and `sign_audit`: SHA-256 with RSA PKCS#1 v1.5 or ECDSA keys in PEM form, base64 signatures. |
| `auditchain.service` | `FileAuditService` and `BlockChainService`, the request handlers a node offers to clients and peers, the `BlockChainPeer` protocol, and the response classes. |
| `auditchain.scheduler` | `BlockScheduler` proposes and commits blocks while this node is the leader. |
| `auditchain.sync` | `HeartbeatManager` sends heartbeats and catches up on missing blocks. |
| `auditchain.election` | `ElectionManager` detects a dead or unknown leader and runs an election. |

## Merkle roots

```python
from auditchain.merkle import compute_merkle_root, sha256_hex

leaves = [sha256_hex(b"a"), sha256_hex(b"b"), sha256_hex(b"c")]
root = compute_merkle_root(leaves)
```

Each parent is the SHA-256 of its two children's hex strings joined together. An
empty list of leaves gives an empty root.

## The chain file

```python
from auditchain.chain import BlockMeta, ChainManager

chain = ChainManager("chain.json")
chain.append(BlockMeta(1, "h1", "", "mr1"))
chain.append(BlockMeta(2, "h2", "h1", "mr2"))

chain.last_id        # 2
chain.last_hash      # "h2"
chain.last_merkle_root  # "mr2"
[b.previous_hash for b in chain.blocks]  # ["", "h1"]
```

`last_id`, `last_hash`, `last_merkle_root` and `blocks` are properties. On an
empty chain they give `0`, `""`, `""` and `[]`. `append` rewrites the whole file
each time. A file that cannot be parsed is logged and the chain starts from what
was read before the error.

## Configuration

The peer list is a JSON-style array of `host:port` strings:

```json
["10.0.0.2:50051", "10.0.0.3:50051"]
```

The leader settings name the leader, the number of pending audits that forces a
block, and the number of seconds after which a block is forced anyway:

```json
{"leader_addr": "10.0.0.1:50051", "batch_size": 10, "batch_interval_s": 5}
```

```python
from auditchain.config import ConfigError, LeaderConfig, load_peers

peers = load_peers("peers.json")
try:
    cfg = LeaderConfig.load("leader.json")
except ConfigError as exc:
    print(f"bad leader config: {exc}")
```

`load_peers` raises `ConfigError` if the file cannot be opened. `LeaderConfig.load`
raises it if the file is missing, is not valid JSON, lacks any of the three fields,
or holds a value of the wrong type.

## Audits and signatures

An audit's canonical JSON is the compact JSON of `access_type`, `file_info`,
`req_id`, `timestamp` and `user_info`, keys sorted, without the signature or public
key. `FileAudit.leaf_hash()` is its SHA-256. `to_json` / `from_json` give the
storage form used by the mempool and block files (camelCase keys, defaults left
out); `from_dict` also accepts snake_case keys.

```python
from auditchain.audit import AccessType, FileAudit, FileInfo, UserInfo
from auditchain.signing import sign_audit, verify_signature

audit = FileAudit(
    req_id="r1",
    file_info=FileInfo("file123", "report.docx"),
    user_info=UserInfo("user42", "alice"),
    access_type=AccessType.READ,
    timestamp=1700000000000,
)
signed = sign_audit(audit, private_key_pem, public_key_pem)
verify_signature(signed.canonical_json(), signed.signature, signed.public_key)  # True
```

`sign_data` raises `ValueError` if the private key cannot be loaded or is neither
RSA nor EC. `verify_signature` returns `False` for any bad signature or key.

## Blocks

`build_block(block_id, previous_hash, audits)` sorts the audits by
`(timestamp, req_id)`, computes the Merkle root of their leaf hashes, and sets the
block hash: the SHA-256 of the id, the previous hash, the Merkle root and each
audit's canonical JSON, joined together. `Block.meta()` gives the `BlockMeta` for
the chain.

`BlockStore(directory)` writes each block to `block_<id>.json` in its directory
(default `../blocks`) and reads it back. `read` raises `OSError` for a missing file
and `ValueError` for a corrupt one.

## Services

`FileAuditService(peers, mempool).submit_audit(audit)` checks the signature, stores
the audit and gossips it to each peer; peer failures are logged and skipped.

`BlockChainService(mempool, chain, heartbeats, state, self_addr, store=None)`
handles peer calls:

- `whisper_audit` stores a gossiped audit.
- `propose_block` votes no with `"bad merkle_root"` or `"bad previous_hash"`,
  otherwise yes.
- `commit_block` appends the block to the chain, removes its audits from the
  mempool and writes the block file.
- `get_block` returns a stored block, or a failure for an id beyond the chain or a
  missing or unreadable file.
- `send_heartbeat` records the heartbeat and adopts the sender's leader if none is
  known.
- `trigger_election` votes for a candidate ahead of this node by block id, then
  mempool size, then address.
- `notify_leadership` records the new leader.

Both `submit_audit` and `whisper_audit` raise `InvalidSignatureError` when the
signature does not verify.

## Background workers

Each worker has `start()` and `stop()` and runs on a daemon thread.

- `BlockScheduler(mempool, chain, peers, config, is_leader, ...)` waits until the
  mempool holds `batch_size` audits or `batch_interval_s` seconds pass, then, if
  `is_leader()` is true, builds a block, collects every peer's vote and commits it
  everywhere. `run_once()` does one such round; `create_and_broadcast_block`
  returns `None` when any peer rejects or cannot be reached. It can also be used
  as a context manager.
- `HeartbeatManager(peers, self_addr, state, mempool, chain, table, ...)` takes a
  mapping of address to peer. Every `interval` seconds (default 10) `beat()` sends
  heartbeats, records its own entry, sweeps the table and fetches blocks from the
  live peer with the highest block id.
- `ElectionManager(peers, self_addr, table, state, ...)` also takes a mapping of
  address to peer. After `initial_delay` seconds (default 30) it checks every
  `interval` seconds (default 2). When `needs_election()` is true, `run_election()`
  asks each peer for a vote and takes leadership when accept votes (its own
  included) are at least the reject votes, then notifies its peers.

## What the package does not do

The package has no network transport, no server process and no command-line
program. Peers are any objects that follow the `BlockChainPeer` protocol; carrying
those calls between machines, and wiring the services and workers into a running
node, is left to the application.