"""
matchvm.runtime.storage_api — deterministic per-contract key/value storage.

The host owns one ``StorageBackend``; every deployed contract sees its own
namespace inside it, selected by the address of the executing frame. The
contract-facing primitives below are what ``matchvm.stdlib.storage``
re-exports.

Design goals
------------
- Deterministic: pure functions over (address, key, value), no I/O.
- Simple default: in-process memory backend for local runs & tests.
- Transactional: writes are journaled. The host takes a checkpoint per call
  frame and rolls back to it on failure, so undo costs what the frame wrote,
  not the size of the store.
- Safe: byte-length caps from ``matchvm.config``; writes are rejected inside
  static (view) frames.

Public API (re-exported by matchvm.stdlib.storage)
--------------------------------------------------
- get(key: bytes) -> Optional[bytes]
- set(key: bytes, value: bytes) -> None
- delete(key: bytes) -> None
- exists(key: bytes) -> bool
- get_int(key: bytes) -> Optional[int]           # big-endian, unsigned
- set_int(key: bytes, value: int) -> None        # big-endian, unsigned
"""

from __future__ import annotations

import threading
from typing import Dict, List, Optional, Protocol, Tuple, runtime_checkable

from matchvm.errors import ValidationError, VmError
from matchvm.runtime import context as _ctx

# ---------------------------- Backend API ---------------------------- #


@runtime_checkable
class StorageBackend(Protocol):
    """Minimal backend interface for contract storage."""

    def get(self, address: bytes, key: bytes) -> Optional[bytes]: ...
    def set(self, address: bytes, key: bytes, value: bytes) -> None: ...
    def delete(self, address: bytes, key: bytes) -> None: ...
    def exists(self, address: bytes, key: bytes) -> bool: ...
    def checkpoint(self) -> int: ...
    def rollback(self, checkpoint: int) -> None: ...
    def commit(self, checkpoint: int) -> None: ...


class MemoryBackend:
    """
    Thread-safe in-memory backend for local runs and tests.

    Every `set`/`delete` appends the previous value of the slot to a journal.
    `checkpoint()` returns the journal position, `rollback(cp)` replays the
    journal backwards down to `cp`, and `commit(cp)` makes everything written
    since `cp` permanent by dropping those entries. The host commits only
    outermost frames; nested frames leave their entries for the caller.
    """

    def __init__(self) -> None:
        self._store: Dict[bytes, Dict[bytes, bytes]] = {}
        # (address, key, previous value or None when the slot was empty)
        self._journal: List[Tuple[bytes, bytes, Optional[bytes]]] = []
        self._lock = threading.RLock()

    def get(self, address: bytes, key: bytes) -> Optional[bytes]:
        with self._lock:
            return self._store.get(address, {}).get(key)

    def set(self, address: bytes, key: bytes, value: bytes) -> None:
        with self._lock:
            self._journal.append((address, key, self.get(address, key)))
            self._store.setdefault(address, {})[key] = value

    def delete(self, address: bytes, key: bytes) -> None:
        with self._lock:
            ns = self._store.get(address)
            if ns is None or key not in ns:
                return
            self._journal.append((address, key, ns[key]))
            ns.pop(key, None)
            if not ns:
                del self._store[address]

    def exists(self, address: bytes, key: bytes) -> bool:
        with self._lock:
            return key in self._store.get(address, {})

    def checkpoint(self) -> int:
        with self._lock:
            return len(self._journal)

    def rollback(self, checkpoint: int) -> None:
        with self._lock:
            while len(self._journal) > checkpoint:
                address, key, prev = self._journal.pop()
                if prev is None:
                    ns = self._store.get(address, {})
                    ns.pop(key, None)
                    if not ns:
                        self._store.pop(address, None)
                else:
                    self._store.setdefault(address, {})[key] = prev

    def commit(self, checkpoint: int) -> None:
        with self._lock:
            del self._journal[checkpoint:]

    def journal_size(self) -> int:
        with self._lock:
            return len(self._journal)

    def keys(self, address: bytes) -> list:
        """Sorted keys held by `address` (inspection helper)."""
        with self._lock:
            return sorted(self._store.get(address, {}))


# --------------------------- Validation helpers --------------------------- #


def _check_key(key: bytes, limit: int) -> bytes:
    if not isinstance(key, (bytes, bytearray)):
        raise ValidationError("storage key must be bytes", code="storage_invalid")
    if len(key) == 0:
        raise ValidationError("storage key must be non-empty", code="storage_invalid")
    if len(key) > limit:
        raise ValidationError(
            f"storage key too long (>{limit} bytes)",
            code="storage_invalid",
            context={"len": len(key)},
        )
    return bytes(key)


def _check_value(value: bytes, limit: int) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise ValidationError("storage value must be bytes", code="storage_invalid")
    if len(value) > limit:
        raise ValidationError(
            f"storage value too large (>{limit} bytes)",
            code="storage_invalid",
            context={"len": len(value)},
        )
    return bytes(value)


def _writable():
    host, frame = _ctx.current()
    if frame.static:
        raise VmError(
            "storage write in static call",
            code="static_violation",
            context=frame.to_dict(),
        )
    return host, frame


# --------------------------- Contract-facing API --------------------------- #


def get(key: bytes) -> Optional[bytes]:
    """Return the value for `key`, or None if not set."""
    host, frame = _ctx.current()
    k = _check_key(key, host.config.max_storage_key_bytes)
    return host.storage.get(frame.address, k)


def set(key: bytes, value: bytes) -> None:
    """Set `key` to `value` (overwrites existing)."""
    host, frame = _writable()
    k = _check_key(key, host.config.max_storage_key_bytes)
    v = _check_value(value, host.config.max_storage_value_bytes)
    host.storage.set(frame.address, k, v)


def delete(key: bytes) -> None:
    """Delete `key` if present (no-op otherwise)."""
    host, frame = _writable()
    k = _check_key(key, host.config.max_storage_key_bytes)
    host.storage.delete(frame.address, k)


def exists(key: bytes) -> bool:
    """Return True if `key` is present."""
    host, frame = _ctx.current()
    k = _check_key(key, host.config.max_storage_key_bytes)
    return host.storage.exists(frame.address, k)


# ------------------------------ Typed helpers ----------------------------- #

_U256_MAX = (1 << 256) - 1


def get_int(key: bytes) -> Optional[int]:
    """
    Read big-endian unsigned integer at `key`. Returns None if not set.
    """
    raw = get(key)
    if raw is None:
        return None
    if len(raw) == 0:
        return 0
    return int.from_bytes(raw, byteorder="big", signed=False)


def set_int(key: bytes, value: int) -> None:
    """
    Store `value` as big-endian unsigned integer. Enforces 0 <= value <= 2^256-1.
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError("set_int value must be int", code="storage_invalid")
    if value < 0 or value > _U256_MAX:
        raise ValidationError("set_int out of range (must fit in 256 bits)", code="storage_invalid")
    if value == 0:
        encoded = b"\x00"
    else:
        width = (value.bit_length() + 7) // 8
        encoded = value.to_bytes(width, "big")
    set(key, encoded)


__all__ = [
    "StorageBackend",
    "MemoryBackend",
    "get",
    "set",
    "delete",
    "exists",
    "get_int",
    "set_int",
]
