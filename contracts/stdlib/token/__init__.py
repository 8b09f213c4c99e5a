# -*- coding: utf-8 -*-
"""
contracts.stdlib.token
======================

Deterministic helpers and constants for fungible token contracts.
This package **does not** perform storage or event emission by itself; it
only provides conventions, prefixes and validation shared by token
implementations (see ``contracts.stdlib.token.fungible``).

Conventions
-----------
Storage keys (prefixed bytes):
  - balances:   BAL_PREFIX || <addr>
  - allowances: ALLOW_PREFIX || <owner> || b"|" || <spender>
Addresses are raw 32-byte values; the all-zero address is reserved as the
mint/burn counterparty and can never hold or approve tokens.

Events (names as bytes):
  - b"Transfer" with payload { "from": bytes, "to": bytes, "value": int }
  - b"Approval" with payload { "owner": bytes, "spender": bytes, "value": int }

Symbols/Names:
  - Symbols: 1..11 printable ASCII, stored uppercased (e.g. "SMSH").
  - Names:   1..64 printable ASCII, mixed case allowed.
"""

from __future__ import annotations

from typing import Final

from matchvm.stdlib import abi

from ..math import is_u256

# -----------------------------------------------------------------------------
# Public constants: storage prefixes, event names, limits, errors
# -----------------------------------------------------------------------------

BAL_PREFIX: Final[bytes] = b"tok:bal:"
ALLOW_PREFIX: Final[bytes] = b"tok:allow:"

EVT_TRANSFER: Final[bytes] = b"Transfer"
EVT_APPROVAL: Final[bytes] = b"Approval"

DEFAULT_DECIMALS: Final[int] = 18
ADDRESS_LEN: Final[int] = 32
ZERO_ADDR: Final[bytes] = bytes(ADDRESS_LEN)

# Stable error tags (short, comparable, log-friendly)
ERR_BAD_ADDR: Final[bytes] = b"TOKEN:BAD_ADDR"
ERR_BAD_AMOUNT: Final[bytes] = b"TOKEN:BAD_AMOUNT"
ERR_BAD_SYMBOL: Final[bytes] = b"TOKEN:BAD_SYMBOL"
ERR_BAD_NAME: Final[bytes] = b"TOKEN:BAD_NAME"


# -----------------------------------------------------------------------------
# Key derivation helpers (no storage I/O here)
# -----------------------------------------------------------------------------


def key_balance(addr: bytes) -> bytes:
    """
    Derive the canonical balance key for an address.
    """
    require_address(addr)
    return BAL_PREFIX + bytes(addr)


def key_allow(owner: bytes, spender: bytes) -> bytes:
    """
    Derive the canonical allowance key for (owner, spender).
    """
    require_address(owner)
    require_address(spender)
    return ALLOW_PREFIX + bytes(owner) + b"|" + bytes(spender)


# -----------------------------------------------------------------------------
# Validation helpers (deterministic, float-free)
# -----------------------------------------------------------------------------


def is_address(addr: object) -> bool:
    return isinstance(addr, (bytes, bytearray)) and len(addr) == ADDRESS_LEN


def require_address(addr: bytes) -> None:
    """Ensure `addr` is a 32-byte address (the zero address included)."""
    if not is_address(addr):
        abi.revert(ERR_BAD_ADDR)


def require_account(addr: bytes) -> None:
    """Like `require_address`, but the zero address is rejected."""
    require_address(addr)
    if bytes(addr) == ZERO_ADDR:
        abi.revert(ERR_BAD_ADDR)


def require_amount(n: int) -> None:
    """
    Ensure `n` is an integer amount in [0, 2**256-1].
    """
    if not is_u256(n):
        abi.revert(ERR_BAD_AMOUNT)


def is_printable_ascii(s: bytes) -> bool:
    """
    True iff every byte is printable ASCII (32..126).
    """
    if not isinstance(s, (bytes, bytearray)) or len(s) == 0:
        return False
    return all(32 <= b <= 126 for b in s)


def require_symbol(sym: bytes) -> None:
    if not is_printable_ascii(sym) or not (1 <= len(sym) <= 11):
        abi.revert(ERR_BAD_SYMBOL)


def require_name(name: bytes) -> None:
    if not is_printable_ascii(name) or not (1 <= len(name) <= 64):
        abi.revert(ERR_BAD_NAME)


# -----------------------------------------------------------------------------
# Normalizers (pure helpers; do not revert)
# -----------------------------------------------------------------------------


def normalize_symbol(sym: bytes) -> bytes:
    """Uppercase an ASCII symbol (locale-free)."""
    return bytes(sym).upper()


def clamp_decimals(n: int) -> int:
    """
    Clamp decimals to a sane range [0, 36].
    """
    if n < 0:
        return 0
    if n > 36:
        return 36
    return n


__all__ = [
    # prefixes
    "BAL_PREFIX",
    "ALLOW_PREFIX",
    # events
    "EVT_TRANSFER",
    "EVT_APPROVAL",
    # defaults/limits
    "DEFAULT_DECIMALS",
    "ADDRESS_LEN",
    "ZERO_ADDR",
    # errors
    "ERR_BAD_ADDR",
    "ERR_BAD_AMOUNT",
    "ERR_BAD_SYMBOL",
    "ERR_BAD_NAME",
    # key derivation
    "key_balance",
    "key_allow",
    # validators
    "is_address",
    "require_address",
    "require_account",
    "require_amount",
    "require_symbol",
    "require_name",
    "is_printable_ascii",
    # helpers
    "normalize_symbol",
    "clamp_decimals",
]
