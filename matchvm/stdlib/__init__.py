"""
matchvm.stdlib
==============

Contract-facing standard library surface.

Contracts do:

    from matchvm.stdlib import abi, events, storage

Exports
-------
- storage : get/set/delete/exists over the executing contract's namespace
- events  : emit(name: bytes, args: dict) -> None
- abi     : revert/require, sender/this_address, block info, call
- hash    : sha3_256(b), keccak256(b)
- codec   : canonical CBOR dumps/loads for structured storage values

Everything here resolves the executing contract from the host's active call
frame; calling it outside a host call raises ``VmError(code="no_active_frame")``.
"""

from __future__ import annotations

from . import abi, codec, events, hash, storage

__all__ = ("storage", "events", "abi", "hash", "codec")
