import base64

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from auditchain.audit import AccessType, FileAudit, FileInfo, UserInfo
from auditchain.signing import sign_audit, sign_data, verify_signature


def _pems(private_key):
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")
    public_pem = (
        private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode("ascii")
    )
    return private_pem, public_pem


@pytest.fixture(scope="module")
def rsa_keys():
    return _pems(rsa.generate_private_key(public_exponent=65537, key_size=2048))


@pytest.fixture(scope="module")
def other_rsa_keys():
    return _pems(rsa.generate_private_key(public_exponent=65537, key_size=2048))


@pytest.fixture(scope="module")
def ec_keys():
    return _pems(ec.generate_private_key(ec.SECP256R1()))


def _b64(raw):
    return base64.b64encode(raw).decode("ascii")


def _audit():
    return FileAudit(
        req_id="smoke1",
        file_info=FileInfo(file_id="file123", file_name="important.docx"),
        user_info=UserInfo(user_id="user42", user_name="alice"),
        access_type=AccessType.READ,
        timestamp=1700000000000,
    )


def test_rsa_signature_round_trip(rsa_keys):
    private_pem, public_pem = rsa_keys
    signature = sign_data("payload", private_pem)
    assert len(signature) == 256
    assert verify_signature("payload", _b64(signature), public_pem) is True


def test_bytes_inputs_are_accepted(rsa_keys):
    private_pem, public_pem = rsa_keys
    signature = sign_data(b"payload", private_pem.encode())
    assert verify_signature(b"payload", _b64(signature).encode(), public_pem.encode())


def test_ec_signature_round_trip(ec_keys):
    private_pem, public_pem = ec_keys
    signature = sign_data("payload", private_pem)
    assert verify_signature("payload", _b64(signature), public_pem) is True
    assert verify_signature("payload!", _b64(signature), public_pem) is False


def test_tampered_data_fails(rsa_keys):
    private_pem, public_pem = rsa_keys
    signature = _b64(sign_data("payload", private_pem))
    assert verify_signature("payload2", signature, public_pem) is False


def test_wrong_key_fails(rsa_keys, other_rsa_keys):
    private_pem, _ = rsa_keys
    _, other_public = other_rsa_keys
    signature = _b64(sign_data("payload", private_pem))
    assert verify_signature("payload", signature, other_public) is False


@pytest.mark.parametrize("bad_signature", ["", "not base64!!", "AAAA"])
def test_bad_signature_fails(rsa_keys, bad_signature):
    _, public_pem = rsa_keys
    assert verify_signature("payload", bad_signature, public_pem) is False


@pytest.mark.parametrize("bad_key", ["", "-----BEGIN PUBLIC KEY-----\nxx\n"])
def test_bad_public_key_fails(rsa_keys, bad_key):
    private_pem, _ = rsa_keys
    signature = _b64(sign_data("payload", private_pem))
    assert verify_signature("payload", signature, bad_key) is False


def test_sign_data_rejects_bad_private_key():
    with pytest.raises(ValueError):
        sign_data("payload", "not a key")


def test_sign_audit_signs_canonical_json(rsa_keys):
    private_pem, public_pem = rsa_keys
    audit = _audit()
    signed = sign_audit(audit, private_pem, public_pem)
    assert signed.public_key == public_pem
    assert signed.req_id == audit.req_id
    assert audit.signature == ""
    assert verify_signature(signed.canonical_json(), signed.signature, public_pem)


def test_signed_audit_detects_changes(rsa_keys):
    private_pem, public_pem = rsa_keys
    signed = sign_audit(_audit(), private_pem, public_pem.encode())
    assert signed.public_key == public_pem
    signed.timestamp += 1
    assert not verify_signature(signed.canonical_json(), signed.signature, public_pem)