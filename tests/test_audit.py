import json

import pytest

from auditchain.audit import AccessType, FileAudit, FileInfo, UserInfo
from auditchain.merkle import sha256_hex


@pytest.fixture
def audit():
    return FileAudit(
        req_id="smoke1",
        file_info=FileInfo(file_id="file123", file_name="important.docx"),
        user_info=UserInfo(user_id="user42", user_name="alice"),
        access_type=AccessType.READ,
        timestamp=1700000000000,
        signature="sig",
        public_key="pub",
    )


def test_canonical_json_exact_form(audit):
    assert audit.canonical_json() == (
        '{"access_type":0,"file_info":{"file_id":"file123",'
        '"file_name":"important.docx"},"req_id":"smoke1",'
        '"timestamp":1700000000000,"user_info":{"user_id":"user42",'
        '"user_name":"alice"}}'
    )


def test_canonical_json_excludes_signature_and_key(audit):
    parsed = json.loads(audit.canonical_json())
    assert "signature" not in parsed
    assert "public_key" not in parsed
    assert list(parsed) == sorted(parsed)


def test_canonical_json_keeps_unicode_raw():
    audit = FileAudit(req_id="é")
    assert '"req_id":"é"' in audit.canonical_json()


def test_leaf_hash_is_hash_of_canonical_json(audit):
    assert audit.leaf_hash() == sha256_hex(audit.canonical_json())


def test_signature_does_not_change_leaf_hash(audit):
    other = FileAudit.from_dict(audit.to_dict())
    other.signature = "different"
    assert other.leaf_hash() == audit.leaf_hash()


def test_json_round_trip(audit):
    assert FileAudit.from_json(audit.to_json()) == audit


def test_to_dict_uses_camel_case_and_string_timestamp(audit):
    data = audit.to_dict()
    assert data["reqId"] == "smoke1"
    assert data["fileInfo"] == {"fileId": "file123", "fileName": "important.docx"}
    assert data["timestamp"] == str(audit.timestamp)
    assert data["publicKey"] == "pub"


def test_to_dict_omits_defaults():
    assert FileAudit().to_dict() == {}


def test_write_access_serialised_by_name():
    audit = FileAudit(req_id="w", access_type=AccessType.WRITE)
    assert audit.to_dict()["accessType"] == "WRITE"
    assert FileAudit.from_json(audit.to_json()).access_type is AccessType.WRITE


def test_from_dict_accepts_snake_case():
    audit = FileAudit.from_dict(
        {
            "req_id": "r1",
            "file_info": {"file_id": "f", "file_name": "n"},
            "user_info": {"user_id": "u", "user_name": "alice"},
            "access_type": 1,
            "timestamp": 5,
        }
    )
    assert audit.req_id == "r1"
    assert audit.file_info == FileInfo("f", "n")
    assert audit.user_info == UserInfo("u", "alice")
    assert audit.access_type is AccessType.WRITE
    assert audit.timestamp == 5


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "[1, 2]",
        '{"accessType": "NOPE"}',
        '{"timestamp": "abc"}',
        '{"reqId": 7}',
        '{"fileInfo": "x"}',
    ],
)
def test_from_json_rejects_bad_input(text):
    with pytest.raises(ValueError):
        FileAudit.from_json(text)