"""SHA-256 helpers and Merkle root computation."""

from __future__ import annotations

import hashlib
from collections.abc import Sequence


def sha256_hex(data: str | bytes) -> str:
    """Return the lowercase hex SHA-256 digest of ``data`` (text is UTF-8 encoded)."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def compute_merkle_root(leaf_hashes: Sequence[str]) -> str:
    """Build a Merkle tree over hex leaf hashes and return the root.

    Each parent is the hash of the concatenated hex strings of its children;
    an odd node at the end of a level is paired with itself. An empty input
    yields an empty string.
    """
    level = list(leaf_hashes)
    if not level:
        return ""
    while len(level) > 1:
        if len(level) % 2:
            level.append(level[-1])
        pairs = zip(level[::2], level[1::2])
        level = [sha256_hex(left + right) for left, right in pairs]
    return level[0]