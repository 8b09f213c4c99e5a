"""
matchvm — a deterministic, in-process host for Python contracts.

Contracts are plain modules whose ``__all__`` lists their entrypoints. They
keep state in byte-keyed storage, emit named events and abort by reverting
with a byte reason code, all through ``matchvm.stdlib``:

    from matchvm.stdlib import abi, events, storage

Tools and tests drive them through ``Host``:

    from matchvm import Host
    host = Host()
    handle = host.deploy("contracts.smashpros.contract", sender=owner, init_args=(owner,))
"""

from __future__ import annotations

from .errors import CallDepthError, Revert, ValidationError, VmError
from .runtime.context import NULL_ADDRESS
from .runtime.host import ContractHandle, Host, Receipt

__version__ = "0.3.0"


def version() -> str:
    """Return the matchvm version string."""
    return __version__


__all__ = [
    "__version__",
    "version",
    "Host",
    "Receipt",
    "ContractHandle",
    "NULL_ADDRESS",
    "VmError",
    "Revert",
    "ValidationError",
    "CallDepthError",
]
