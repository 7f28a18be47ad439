"""Pending audits stored one JSON object per line."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from pathlib import Path

from auditchain.audit import FileAudit

log = logging.getLogger(__name__)


class Mempool:
    """Thread-safe line-oriented store of audits awaiting a block."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    def _read_lines(self) -> list[str]:
        try:
            return self._path.read_text(encoding="utf-8").splitlines()
        except OSError:
            return []

    def append(self, audit: FileAudit) -> None:
        """Add one audit at the end of the file."""
        with self._lock:
            try:
                with self._path.open("a", encoding="utf-8") as out:
                    out.write(audit.to_json() + "\n")
            except OSError as exc:
                log.error("failed to open %s: %s", self._path, exc)

    def load_all(self) -> list[FileAudit]:
        """Every stored audit in file order; blank and malformed lines are skipped."""
        audits = []
        with self._lock:
            for line in self._read_lines():
                if not line.strip():
                    continue
                try:
                    audits.append(FileAudit.from_json(line))
                except ValueError as exc:
                    log.error("JSON parse error: %s", exc)
        return audits

    def remove_batch(self, ids: Iterable[str]) -> None:
        """Drop every audit whose req_id is in ``ids`` and rewrite the file."""
        to_remove = set(ids)
        with self._lock:
            keep = []
            for line in self._read_lines():
                try:
                    audit = FileAudit.from_json(line)
                except ValueError:
                    continue
                if audit.req_id not in to_remove:
                    keep.append(audit)
            try:
                self._path.write_text(
                    "".join(audit.to_json() + "\n" for audit in keep),
                    encoding="utf-8",
                )
            except OSError as exc:
                log.error("failed to reopen %s: %s", self._path, exc)