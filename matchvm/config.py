"""
matchvm.config — host limits and environment overrides.

This module centralizes configuration for the deterministic contract host. It
has NO third-party deps and is safe to import very early.

Configuration precedence:
  1) Environment variables (MONEYMATCHR_VM_*)
  2) Hardcoded safe defaults below

Key env vars:
  - MONEYMATCHR_VM_MAX_CALL_DEPTH        (int)    default: 16
  - MONEYMATCHR_VM_MAX_STORAGE_KEY_BYTES (int)    default: 128
  - MONEYMATCHR_VM_MAX_STORAGE_VAL_BYTES (int)    default: 131_072   (128 KiB)
  - MONEYMATCHR_VM_MAX_LOGS_PER_TX       (int)    default: 1024
  - MONEYMATCHR_VM_CHAIN_ID              (int)    default: 1337

Out-of-range integers are clamped to their bounds; unparsable values fall back
to the default.

Usage:
    from matchvm.config import load_config
    host = Host(config=load_config())
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict

ENV_PREFIX = "MONEYMATCHR_VM_"


# ----------------------------- helpers ---------------------------------------


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class VMConfig:
    max_call_depth: int
    max_storage_key_bytes: int
    max_storage_value_bytes: int
    max_logs_per_tx: int

    chain_id: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "max_call_depth": self.max_call_depth,
            "max_storage_key_bytes": self.max_storage_key_bytes,
            "max_storage_value_bytes": self.max_storage_value_bytes,
            "max_logs_per_tx": self.max_logs_per_tx,
            "chain_id": self.chain_id,
        }


@lru_cache(maxsize=1)
def load_config() -> VMConfig:
    """
    Build and cache a VMConfig from environment + safe defaults.
    """
    return VMConfig(
        max_call_depth=_env_int(ENV_PREFIX + "MAX_CALL_DEPTH", 16, min_v=2, max_v=256),
        max_storage_key_bytes=_env_int(ENV_PREFIX + "MAX_STORAGE_KEY_BYTES", 128, min_v=32, max_v=1024),
        max_storage_value_bytes=_env_int(ENV_PREFIX + "MAX_STORAGE_VAL_BYTES", 131_072, min_v=256, max_v=1_048_576),
        max_logs_per_tx=_env_int(ENV_PREFIX + "MAX_LOGS_PER_TX", 1024, min_v=1, max_v=10_000),
        chain_id=_env_int(ENV_PREFIX + "CHAIN_ID", 1337, min_v=0, max_v=2**63 - 1),
    )


__all__ = ["ENV_PREFIX", "VMConfig", "load_config"]
