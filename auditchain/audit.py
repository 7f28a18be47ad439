"""File-audit records and their canonical and storage JSON forms."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from auditchain.merkle import sha256_hex


class AccessType(IntEnum):
    """Kind of file access being audited."""

    READ = 0
    WRITE = 1


@dataclass
class FileInfo:
    file_id: str = ""
    file_name: str = ""


@dataclass
class UserInfo:
    user_id: str = ""
    user_name: str = ""


def _pick(data: Mapping[str, Any], snake: str, camel: str, default: Any) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def _text(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"field {name!r} must be a string, got {value!r}")
    return value


def _mapping(value: Any, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"field {name!r} must be an object, got {value!r}")
    return value


def _access_type(value: Any) -> AccessType:
    if isinstance(value, str):
        try:
            return AccessType[value]
        except KeyError:
            raise ValueError(f"unknown access type {value!r}") from None
    if isinstance(value, int) and not isinstance(value, bool):
        return AccessType(value)
    raise ValueError(f"invalid access type {value!r}")


def _timestamp(value: Any) -> int:
    if isinstance(value, str):
        return int(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise ValueError(f"invalid timestamp {value!r}")


@dataclass
class FileAudit:
    """One audited access to a file, optionally signed by the client."""

    req_id: str = ""
    file_info: FileInfo = field(default_factory=FileInfo)
    user_info: UserInfo = field(default_factory=UserInfo)
    access_type: AccessType = AccessType.READ
    timestamp: int = 0
    signature: str = ""
    public_key: str = ""

    def canonical_json(self) -> str:
        """Compact, key-sorted JSON of the signed fields (no signature or key)."""
        payload = {
            "access_type": int(self.access_type),
            "file_info": {
                "file_id": self.file_info.file_id,
                "file_name": self.file_info.file_name,
            },
            "req_id": self.req_id,
            "timestamp": self.timestamp,
            "user_info": {
                "user_id": self.user_info.user_id,
                "user_name": self.user_info.user_name,
            },
        }
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)

    def leaf_hash(self) -> str:
        """SHA-256 hex of the canonical JSON, used as a Merkle leaf."""
        return sha256_hex(self.canonical_json())

    def to_dict(self) -> dict[str, Any]:
        """Storage form: camelCase keys, default values left out."""
        out: dict[str, Any] = {}
        if self.req_id:
            out["reqId"] = self.req_id
        file_info = {
            key: value
            for key, value in (
                ("fileId", self.file_info.file_id),
                ("fileName", self.file_info.file_name),
            )
            if value
        }
        if file_info:
            out["fileInfo"] = file_info
        user_info = {
            key: value
            for key, value in (
                ("userId", self.user_info.user_id),
                ("userName", self.user_info.user_name),
            )
            if value
        }
        if user_info:
            out["userInfo"] = user_info
        if self.access_type != AccessType.READ:
            out["accessType"] = AccessType(self.access_type).name
        if self.timestamp:
            out["timestamp"] = str(self.timestamp)
        if self.signature:
            out["signature"] = self.signature
        if self.public_key:
            out["publicKey"] = self.public_key
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FileAudit:
        """Build an audit from a mapping with camelCase or snake_case keys."""
        data = _mapping(data, "audit")
        file_raw = _mapping(_pick(data, "file_info", "fileInfo", {}), "file_info")
        user_raw = _mapping(_pick(data, "user_info", "userInfo", {}), "user_info")
        return cls(
            req_id=_text(_pick(data, "req_id", "reqId", ""), "req_id"),
            file_info=FileInfo(
                file_id=_text(_pick(file_raw, "file_id", "fileId", ""), "file_id"),
                file_name=_text(
                    _pick(file_raw, "file_name", "fileName", ""), "file_name"
                ),
            ),
            user_info=UserInfo(
                user_id=_text(_pick(user_raw, "user_id", "userId", ""), "user_id"),
                user_name=_text(
                    _pick(user_raw, "user_name", "userName", ""), "user_name"
                ),
            ),
            access_type=_access_type(
                _pick(data, "access_type", "accessType", AccessType.READ.value)
            ),
            timestamp=_timestamp(_pick(data, "timestamp", "timestamp", 0)),
            signature=_text(_pick(data, "signature", "signature", ""), "signature"),
            public_key=_text(
                _pick(data, "public_key", "publicKey", ""), "public_key"
            ),
        )

    def to_json(self) -> str:
        """Single-line JSON of the storage form."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> FileAudit:
        """Parse the storage JSON form; raises ValueError on bad input."""
        return cls.from_dict(json.loads(text))