"""
matchvm.runtime.context — block environment and the active call-frame stack.

Contracts never see the host object directly. While an entrypoint runs, the
host pushes a ``CallFrame`` onto a thread-local stack; the contract-facing
stdlib (``storage``, ``events``, ``abi``) resolves "which contract am I and who
called me" from the top of that stack.

Design notes
------------
- Addresses are raw 32-byte values; ``NULL_ADDRESS`` (all zeroes) is the
  "no account" sentinel.
- Hex strings (with or without "0x") are accepted by helpers and normalized to
  bytes.
- There is no wall clock here: ``timestamp`` only moves when the host
  advances the block environment.
"""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Tuple, Union

from matchvm.errors import VmError

if TYPE_CHECKING:  # pragma: no cover
    from matchvm.runtime.host import Host

ADDRESS_LEN = 32
NULL_ADDRESS = bytes(ADDRESS_LEN)


# ----------------------------- helpers ----------------------------- #

class ContextError(VmError):
    """Validation or coercion failure for BlockEnv/CallFrame values."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="context_invalid")


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_bytes(value: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """
    Coerce `value` to bytes.
    - If str, interpret as hex (with or without '0x'); odd-length hex is rejected.
    - If a bytes-like object, copy to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise ContextError(f"hex string must have even length, got {len(h)}")
        try:
            return bytes.fromhex(h)
        except ValueError as e:
            raise ContextError(f"invalid hex string: {value!r}") from e
    raise ContextError(f"cannot convert type {type(value).__name__} to bytes")


def to_hex(b: Union[bytes, bytearray, memoryview]) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


def to_address(value: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """Coerce to a 32-byte address, rejecting any other width."""
    b = to_bytes(value)
    if len(b) != ADDRESS_LEN:
        raise ContextError(f"address must be {ADDRESS_LEN} bytes, got {len(b)}")
    return b


def _require_non_negative_int(name: str, v: Any) -> int:
    if not isinstance(v, int) or isinstance(v, bool):
        raise ContextError(f"{name} must be int, got {type(v).__name__}")
    if v < 0:
        raise ContextError(f"{name} must be non-negative, got {v}")
    return v


# ----------------------------- models ------------------------------ #

@dataclass(frozen=True)
class BlockEnv:
    """
    Deterministic block environment visible to contracts.

    Fields
    ------
    height:     Block height.
    timestamp:  Simulated consensus timestamp in seconds.
    chain_id:   Integer chain identifier.
    """
    height: int
    timestamp: int
    chain_id: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "height", _require_non_negative_int("height", self.height))
        object.__setattr__(self, "timestamp", _require_non_negative_int("timestamp", self.timestamp))
        object.__setattr__(self, "chain_id", _require_non_negative_int("chain_id", self.chain_id))

    def advanced(self, blocks: int, seconds: int) -> "BlockEnv":
        return BlockEnv(
            height=self.height + _require_non_negative_int("blocks", blocks),
            timestamp=self.timestamp + _require_non_negative_int("seconds", seconds),
            chain_id=self.chain_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CallFrame:
    """
    One executing entrypoint.

    address: the contract whose code and storage are active.
    sender:  the account (or calling contract) that invoked it.
    depth:   1 for a top-level call, +1 per nested ``abi.call``.
    static:  writes and event emission are rejected when True.
    """
    address: bytes
    sender: bytes
    depth: int
    static: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": to_hex(self.address),
            "sender": to_hex(self.sender),
            "depth": self.depth,
            "static": self.static,
        }


# --------------------------- frame stack --------------------------- #

class _FrameStack(threading.local):
    def __init__(self) -> None:
        self.entries: List[Tuple["Host", CallFrame]] = []


_stack = _FrameStack()


def push_frame(host: "Host", frame: CallFrame) -> None:
    _stack.entries.append((host, frame))


def pop_frame() -> CallFrame:
    if not _stack.entries:
        raise VmError("frame stack underflow", code="no_active_frame")
    return _stack.entries.pop()[1]


def current() -> Tuple["Host", CallFrame]:
    """Return (host, frame) for the executing entrypoint."""
    if not _stack.entries:
        raise VmError(
            "contract stdlib used outside of a host call",
            code="no_active_frame",
        )
    return _stack.entries[-1]


def current_frame() -> CallFrame:
    return current()[1]


def active_depth() -> int:
    return len(_stack.entries)


__all__ = [
    "ADDRESS_LEN",
    "NULL_ADDRESS",
    "ContextError",
    "to_bytes",
    "to_hex",
    "to_address",
    "BlockEnv",
    "CallFrame",
    "push_frame",
    "pop_frame",
    "current",
    "current_frame",
    "active_depth",
]
