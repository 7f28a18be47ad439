"""Loading of the peer list and the leader configuration."""

from __future__ import annotations

import json
import string
from dataclasses import dataclass
from pathlib import Path
from typing import Any


class ConfigError(RuntimeError):
    """A configuration file is missing, malformed or incomplete."""


_PEER_STRIP = string.whitespace + '"[]'


def load_peers(path: str | Path) -> list[str]:
    """Read a JSON-style array of ``host:port`` strings from ``path``."""
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to open peers file: {path}") from exc
    content = content.replace("\n", "")
    tokens = (token.strip(_PEER_STRIP) for token in content.split(","))
    return [token for token in tokens if token]


_REQUIRED = ("leader_addr", "batch_size", "batch_interval_s")


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, (int, float)):
        return int(value)
    raise ConfigError(f"{name} must be a number, got {value!r}")


@dataclass(frozen=True)
class LeaderConfig:
    """Leader address and block batching thresholds."""

    leader_addr: str
    batch_size: int
    batch_interval_s: int

    @classmethod
    def load(cls, path: str | Path) -> LeaderConfig:
        """Read leader settings from a JSON file; raises ConfigError on failure."""
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot open leader.json: {path}") from exc
        try:
            data = json.loads(text)
        except ValueError as exc:
            raise ConfigError(f"Error parsing leader.json: {exc}") from exc
        if not isinstance(data, dict) or any(key not in data for key in _REQUIRED):
            raise ConfigError(
                "leader.json missing one of [leader_addr,batch_size,batch_interval_s]"
            )
        leader_addr = data["leader_addr"]
        if not isinstance(leader_addr, str):
            raise ConfigError(f"leader_addr must be a string, got {leader_addr!r}")
        return cls(
            leader_addr=leader_addr,
            batch_size=_as_int(data["batch_size"], "batch_size"),
            batch_interval_s=_as_int(data["batch_interval_s"], "batch_interval_s"),
        )