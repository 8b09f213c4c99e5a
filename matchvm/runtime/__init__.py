"""
matchvm runtime package

The host and the host-facing APIs (storage/events/hash) that contracts reach
through ``matchvm.stdlib``.

Convenience re-exports live here so callers can do:

    from matchvm.runtime import Host, BlockEnv, Receipt
    from matchvm.runtime import storage, events, hashing  # module namespaces
"""

from __future__ import annotations

from . import events_api as events
from . import hash_api as hashing  # avoid shadowing builtin `hash`
from . import storage_api as storage
from .context import NULL_ADDRESS, BlockEnv, CallFrame, to_address, to_bytes, to_hex
from .events_api import Event, EventLog
from .host import ContractHandle, Host, Receipt
from .storage_api import MemoryBackend, StorageBackend

__all__ = [
    # core classes
    "Host",
    "Receipt",
    "ContractHandle",
    "BlockEnv",
    "CallFrame",
    "Event",
    "EventLog",
    "MemoryBackend",
    "StorageBackend",
    # helpers
    "NULL_ADDRESS",
    "to_address",
    "to_bytes",
    "to_hex",
    # namespaces (modules)
    "storage",
    "events",
    "hashing",
]
