"""Contract-facing hashing: bytes in, 32 bytes out."""

from __future__ import annotations

from matchvm.runtime.hash_api import keccak256, sha3_256

__all__ = ["sha3_256", "keccak256"]
