# -*- coding: utf-8 -*-
"""
contracts.stdlib.math
=====================

Integer-only numeric envelopes for contracts. Contracts must avoid Python
floats; amounts are unsigned 256-bit integers.

Checked arithmetic lives in ``contracts.stdlib.math.safe_uint``.
"""

from __future__ import annotations

from typing import Final

from matchvm.stdlib import abi

U256_MAX: Final[int] = (1 << 256) - 1

ERR_OOB: Final[bytes] = b"UINT:OOB"  # input outside [0, U256_MAX]
ERR_DIV0: Final[bytes] = b"UINT:DIV0"


def is_u256(x: object) -> bool:
    return isinstance(x, int) and not isinstance(x, bool) and 0 <= x <= U256_MAX


def require_u256(*xs: int) -> None:
    """Revert unless every argument is an int in [0, U256_MAX]."""
    for x in xs:
        if not is_u256(x):
            abi.revert(ERR_OOB)


def require_divisor(d: int) -> None:
    require_u256(d)
    if d == 0:
        abi.revert(ERR_DIV0)


__all__ = ["U256_MAX", "ERR_OOB", "ERR_DIV0", "is_u256", "require_u256", "require_divisor"]
