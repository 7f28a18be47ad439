"""Block metadata chain kept in memory and mirrored to a JSON file."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockMeta:
    """Minimal metadata for one block."""

    id: int
    hash: str
    previous_hash: str
    merkle_root: str


def _typed(entry: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = entry.get(key, default)
    if not isinstance(value, kind) or isinstance(value, bool):
        raise TypeError(f"{key!r} has wrong type: {value!r}")
    return value


class ChainManager:
    """Thread-safe list of blocks, rewritten to disk on every append."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._blocks: list[BlockMeta] = []
        self._load()

    def _load(self) -> None:
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError:
            return
        try:
            data = json.loads(text)
        except ValueError as exc:
            log.error("error parsing %s: %s", self._path, exc)
            return
        if not isinstance(data, list):
            log.error("%s is not an array", self._path)
            return
        for entry in data:
            try:
                if not isinstance(entry, dict):
                    raise TypeError(f"block entry is not an object: {entry!r}")
                meta = BlockMeta(
                    id=_typed(entry, "id", int, 0),
                    hash=_typed(entry, "hash", str, ""),
                    previous_hash=_typed(entry, "previous_hash", str, ""),
                    merkle_root=_typed(entry, "merkle_root", str, ""),
                )
            except TypeError as exc:
                log.error("error parsing %s: %s", self._path, exc)
                return
            self._blocks.append(meta)

    def _write(self) -> None:
        payload = json.dumps(
            [asdict(meta) for meta in self._blocks], indent=2, sort_keys=True
        )
        try:
            self._path.write_text(payload + "\n", encoding="utf-8")
        except OSError as exc:
            log.error("error writing %s: %s", self._path, exc)

    @property
    def last_id(self) -> int:
        """ID of the newest block, 0 when the chain is empty."""
        with self._lock:
            return self._blocks[-1].id if self._blocks else 0

    @property
    def last_hash(self) -> str:
        """Hash of the newest block, empty when the chain is empty."""
        with self._lock:
            return self._blocks[-1].hash if self._blocks else ""

    @property
    def last_merkle_root(self) -> str:
        """Merkle root of the newest block, empty when the chain is empty."""
        with self._lock:
            return self._blocks[-1].merkle_root if self._blocks else ""

    @property
    def blocks(self) -> list[BlockMeta]:
        """All blocks in chain order."""
        with self._lock:
            return list(self._blocks)

    def append(self, meta: BlockMeta) -> None:
        """Add a block and rewrite the chain file."""
        with self._lock:
            self._blocks.append(meta)
            self._write()