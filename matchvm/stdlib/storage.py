from __future__ import annotations

from typing import Optional

from matchvm.runtime import storage_api as _rt

# Keys and values are always bytes; the namespace is the executing contract.


def get(key: bytes) -> Optional[bytes]:
    """Return the value stored at `key`, or None when absent."""
    return _rt.get(key)


def set(key: bytes, value: bytes) -> None:
    """Store `value` at `key` deterministically."""
    _rt.set(key, value)


def delete(key: bytes) -> None:
    """Delete `key` if present (no-op if absent)."""
    _rt.delete(key)


def exists(key: bytes) -> bool:
    return _rt.exists(key)


def get_int(key: bytes, default: int = 0) -> int:
    v = _rt.get_int(key)
    return default if v is None else v


def set_int(key: bytes, value: int) -> None:
    _rt.set_int(key, value)


__all__ = ["get", "set", "delete", "exists", "get_int", "set_int"]
