"""Blocks of audits: hashing, JSON form and per-block files."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from auditchain.audit import FileAudit
from auditchain.chain import BlockMeta
from auditchain.merkle import compute_merkle_root, sha256_hex

DEFAULT_BLOCKS_DIR = Path("../blocks")


def _pick(data: Mapping[str, Any], snake: str, camel: str, default: Any) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def _text(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"field {name!r} must be a string, got {value!r}")
    return value


def _integer(value: Any, name: str) -> int:
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            raise ValueError(f"field {name!r} is not an integer: {value!r}") from None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise ValueError(f"field {name!r} must be an integer, got {value!r}")


@dataclass
class Block:
    """A proposed or committed block holding an ordered list of audits."""

    id: int = 0
    previous_hash: str = ""
    merkle_root: str = ""
    hash: str = ""
    audits: list[FileAudit] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Storage form: camelCase keys, default values left out, id as text."""
        out: dict[str, Any] = {}
        if self.id:
            out["id"] = str(self.id)
        if self.hash:
            out["hash"] = self.hash
        if self.previous_hash:
            out["previousHash"] = self.previous_hash
        if self.merkle_root:
            out["merkleRoot"] = self.merkle_root
        if self.audits:
            out["audits"] = [audit.to_dict() for audit in self.audits]
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Block:
        """Build a block from a mapping with camelCase or snake_case keys."""
        if not isinstance(data, Mapping):
            raise ValueError(f"block must be an object, got {data!r}")
        audits_raw = data.get("audits", [])
        if not isinstance(audits_raw, list):
            raise ValueError(f"field 'audits' must be a list, got {audits_raw!r}")
        return cls(
            id=_integer(data.get("id", 0), "id"),
            previous_hash=_text(
                _pick(data, "previous_hash", "previousHash", ""), "previous_hash"
            ),
            merkle_root=_text(
                _pick(data, "merkle_root", "merkleRoot", ""), "merkle_root"
            ),
            hash=_text(data.get("hash", ""), "hash"),
            audits=[FileAudit.from_dict(item) for item in audits_raw],
        )

    def to_json(self) -> str:
        """Compact JSON of the storage form."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> Block:
        """Parse the storage JSON form; raises ValueError on bad input."""
        return cls.from_dict(json.loads(text))

    def meta(self) -> BlockMeta:
        """The chain metadata of this block."""
        return BlockMeta(
            id=self.id,
            hash=self.hash,
            previous_hash=self.previous_hash,
            merkle_root=self.merkle_root,
        )


def sort_audits(audits: Iterable[FileAudit]) -> list[FileAudit]:
    """Audits ordered by timestamp, then by req_id."""
    return sorted(audits, key=lambda audit: (audit.timestamp, audit.req_id))


def compute_block_hash(
    block_id: int,
    previous_hash: str,
    merkle_root: str,
    audits: Sequence[FileAudit],
) -> str:
    """Hash of the id, previous hash, Merkle root and canonical audit JSON."""
    header = f"{block_id}{previous_hash}{merkle_root}" + "".join(
        audit.canonical_json() for audit in audits
    )
    return sha256_hex(header)


def build_block(
    block_id: int, previous_hash: str, audits: Iterable[FileAudit]
) -> Block:
    """Sort the audits and assemble a fully hashed block."""
    ordered = sort_audits(audits)
    merkle_root = compute_merkle_root([audit.leaf_hash() for audit in ordered])
    return Block(
        id=block_id,
        previous_hash=previous_hash,
        merkle_root=merkle_root,
        hash=compute_block_hash(block_id, previous_hash, merkle_root, ordered),
        audits=ordered,
    )


class BlockStore:
    """Directory holding one JSON file per block."""

    def __init__(self, directory: str | Path = DEFAULT_BLOCKS_DIR) -> None:
        self.directory = Path(directory)

    def path_for(self, block_id: int) -> Path:
        """File path used for the block with ``block_id``."""
        return self.directory / f"block_{block_id}.json"

    def write(self, block: Block) -> Path:
        """Write ``block`` to its file, creating the directory; raises OSError."""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(block.id)
        path.write_text(block.to_json(), encoding="utf-8")
        return path

    def read(self, block_id: int) -> Block:
        """Load a stored block; raises OSError if missing, ValueError if corrupt."""
        text = self.path_for(block_id).read_text(encoding="utf-8")
        return Block.from_json(text)