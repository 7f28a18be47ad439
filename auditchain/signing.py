"""Signing and verification of audit payloads with SHA-256."""

from __future__ import annotations

import base64
import binascii
import dataclasses

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa

from auditchain.audit import FileAudit


def _as_bytes(value: str | bytes) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def sign_data(data: str | bytes, private_key_pem: str | bytes) -> bytes:
    """Sign ``data`` with SHA-256 using a PEM private key (RSA or EC).

    Raises ValueError if the key cannot be loaded or is of another kind.
    """
    try:
        key = serialization.load_pem_private_key(
            _as_bytes(private_key_pem), password=None
        )
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise ValueError("error loading private key") from exc
    payload = _as_bytes(data)
    if isinstance(key, rsa.RSAPrivateKey):
        return key.sign(payload, padding.PKCS1v15(), hashes.SHA256())
    if isinstance(key, ec.EllipticCurvePrivateKey):
        return key.sign(payload, ec.ECDSA(hashes.SHA256()))
    raise ValueError(f"unsupported private key type: {type(key).__name__}")


def _decode_signature(signature_b64: str | bytes) -> bytes:
    try:
        return base64.b64decode(_as_bytes(signature_b64), validate=True)
    except (binascii.Error, ValueError):
        return b""


def verify_signature(
    data: str | bytes, signature_b64: str | bytes, public_key_pem: str | bytes
) -> bool:
    """True if the base64 signature over ``data`` matches the PEM public key."""
    signature = _decode_signature(signature_b64)
    try:
        key = serialization.load_pem_public_key(_as_bytes(public_key_pem))
    except (ValueError, TypeError, UnsupportedAlgorithm):
        return False
    payload = _as_bytes(data)
    try:
        if isinstance(key, rsa.RSAPublicKey):
            key.verify(signature, payload, padding.PKCS1v15(), hashes.SHA256())
        elif isinstance(key, ec.EllipticCurvePublicKey):
            key.verify(signature, payload, ec.ECDSA(hashes.SHA256()))
        else:
            return False
    except (InvalidSignature, ValueError):
        return False
    return True


def sign_audit(
    audit: FileAudit, private_key_pem: str | bytes, public_key_pem: str | bytes
) -> FileAudit:
    """A copy of ``audit`` signed over its canonical JSON, carrying the public key."""
    signature = sign_data(audit.canonical_json(), private_key_pem)
    public_key = (
        public_key_pem.decode("utf-8")
        if isinstance(public_key_pem, bytes)
        else public_key_pem
    )
    return dataclasses.replace(
        audit,
        signature=base64.b64encode(signature).decode("ascii"),
        public_key=public_key,
    )