"""
matchvm.stdlib.abi — reverts, caller context and cross-contract calls.

Usage in contracts:

    abi.require(amount > 0, b"MATCH:BAD_AMOUNT")
    me = abi.this_address()
    ok = abi.call(token, "transfer_from", abi.sender(), me, amount)
"""

from __future__ import annotations

from typing import Any, NoReturn

from matchvm.errors import Revert
from matchvm.runtime import context as _ctx


def _to_reason(msg: Any) -> bytes:
    if isinstance(msg, (bytes, bytearray)):
        return bytes(msg)
    return str(msg).encode("utf-8")


def revert(reason: Any = b"REVERT") -> NoReturn:
    """Abort the running call; the host rolls back every write it made."""
    raise Revert(_to_reason(reason))


def require(condition: Any, reason: Any = b"REQUIRE") -> None:
    if not condition:
        revert(reason)


def sender() -> bytes:
    """Account (or calling contract) that invoked the running entrypoint."""
    return _ctx.current_frame().sender


def this_address() -> bytes:
    return _ctx.current_frame().address


def block_height() -> int:
    return _ctx.current()[0].block.height


def block_timestamp() -> int:
    return _ctx.current()[0].block.timestamp


def chain_id() -> int:
    return _ctx.current()[0].block.chain_id


def call(address: bytes, fn: str, *args: Any) -> Any:
    """
    Invoke `fn` on another deployed contract. The callee sees this contract as
    its sender; a failure in the callee propagates and aborts this call too.
    """
    host, _ = _ctx.current()
    return host.nested_call(address, fn, args)


__all__ = [
    "revert",
    "require",
    "sender",
    "this_address",
    "block_height",
    "block_timestamp",
    "chain_id",
    "call",
]
