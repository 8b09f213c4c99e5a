"""
matchvm.stdlib.codec — canonical CBOR for structured storage values.

Contracts that keep records (dicts, lists) in storage encode them here so the
stored bytes are identical for identical values:

    storage.set(key, codec.dumps({"id": 1, "state": 0}))
    rec = codec.loads(storage.get(key))

Canonical ordering
------------------
Maps are emitted with cbor2's canonical encoder (RFC 8949 §4.2.1 key order).
Only text keys are accepted so records stay portable across tools.
"""

from __future__ import annotations

from io import BytesIO
from typing import Any

import cbor2

from matchvm.errors import ValidationError


def _check(obj: Any) -> None:
    if isinstance(obj, dict):
        for k, v in obj.items():
            if not isinstance(k, str):
                raise ValidationError(
                    f"non-text map key encountered (type={type(k).__name__}); keys must be str",
                    code="codec_invalid",
                )
            _check(v)
    elif isinstance(obj, (list, tuple)):
        for x in obj:
            _check(x)
    elif isinstance(obj, float):
        raise ValidationError("floats are not allowed in contract storage", code="codec_invalid")


def dumps(obj: Any) -> bytes:
    """Canonical CBOR encoding (deterministic map ordering)."""
    _check(obj)
    bio = BytesIO()
    cbor2.CBOREncoder(bio, canonical=True).encode(obj)
    return bio.getvalue()


def loads(data: bytes) -> Any:
    if not isinstance(data, (bytes, bytearray)):
        raise ValidationError("codec.loads expects bytes", code="codec_invalid")
    try:
        return cbor2.loads(bytes(data))
    except cbor2.CBORDecodeError as e:
        raise ValidationError(f"malformed CBOR: {e}", code="codec_invalid") from e


__all__ = ["dumps", "loads"]
