# -*- coding: utf-8 -*-
"""
contracts.stdlib.math.safe_uint
===============================

Checked unsigned-integer helpers for contracts.

- Every operation validates its inputs are in [0, U256_MAX].
- Overflow, underflow and division by zero revert with stable error bytes
  instead of wrapping or raising a Python exception.
"""

from __future__ import annotations

from typing import Final

from matchvm.stdlib import abi

from . import U256_MAX, require_divisor, require_u256

ERR_OVER: Final[bytes] = b"UINT:OVERFLOW"
ERR_UNDER: Final[bytes] = b"UINT:UNDERFLOW"


def u256_add(x: int, y: int) -> int:
    """Checked add: revert on overflow."""
    require_u256(x, y)
    s = x + y
    if s > U256_MAX:
        abi.revert(ERR_OVER)
    return s


def u256_sub(x: int, y: int) -> int:
    """Checked sub: revert on underflow (y > x)."""
    require_u256(x, y)
    if y > x:
        abi.revert(ERR_UNDER)
    return x - y


def u256_mul(x: int, y: int) -> int:
    """Checked multiply: revert on overflow."""
    require_u256(x, y)
    p = x * y
    if p > U256_MAX:
        abi.revert(ERR_OVER)
    return p


def u256_div(x: int, y: int) -> int:
    """Checked divide (floor): revert on div-by-zero."""
    require_u256(x)
    require_divisor(y)
    return x // y


__all__ = ["ERR_OVER", "ERR_UNDER", "u256_add", "u256_sub", "u256_mul", "u256_div"]
