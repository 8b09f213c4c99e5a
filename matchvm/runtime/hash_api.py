"""
matchvm.runtime.hash_api — deterministic hashing wrappers.

Strictly bytes-in, bytes-out. SHA3-256 comes from ``hashlib``; Keccak-256
(the pre-standard padding used for contract addresses) from PyCryptodome.
"""

from __future__ import annotations

import hashlib

from Crypto.Hash import keccak as _keccak

from matchvm.errors import ValidationError


def _ensure_bytes(buf: object, name: str) -> bytes:
    if isinstance(buf, (bytes, bytearray, memoryview)):
        return bytes(buf)
    raise ValidationError(f"{name} must be bytes-like (got {type(buf).__name__})", code="hash_invalid")


def sha3_256(data: bytes) -> bytes:
    return hashlib.sha3_256(_ensure_bytes(data, "data")).digest()


def keccak256(data: bytes) -> bytes:
    h = _keccak.new(digest_bits=256)
    h.update(_ensure_bytes(data, "data"))
    return h.digest()


def hash_concat_keccak256(*chunks: bytes) -> bytes:
    h = _keccak.new(digest_bits=256)
    for i, c in enumerate(chunks):
        h.update(_ensure_bytes(c, f"chunk[{i}]"))
    return h.digest()


__all__ = ["sha3_256", "keccak256", "hash_concat_keccak256"]
