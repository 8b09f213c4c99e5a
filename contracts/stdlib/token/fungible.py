# -*- coding: utf-8 -*-
"""
ERC-20–like fungible token library
==================================

Deterministic, float-free, storage-backed token ledger for matchvm contracts.
This module exposes an explicit-caller API so a contract can decide where
the caller comes from (normally ``abi.sender()``).

Highlights
----------
- Explicit `caller` parameters for mutating calls.
- Deterministic storage layout using prefixes from `contracts.stdlib.token`.
- Events emitted via `matchvm.stdlib.events`:
    - b"Transfer" { b"from": bytes, b"to": bytes, b"value": int }
    - b"Approval" { b"owner": bytes, b"spender": bytes, b"value": int }
- U256-checked math via `contracts.stdlib.math.safe_uint` (no silent wrap).
- Simple owner model (set at init) gating `mint`.

Interface sketch
----------------
# metadata (pure)
name() -> bytes
symbol() -> bytes
decimals() -> int
total_supply() -> int
balance_of(addr: bytes) -> int
allowance(owner: bytes, spender: bytes) -> int
owner() -> bytes

# state-changing (explicit caller)
init(name: bytes, symbol: bytes, decimals: int,
     initial_owner: bytes, initial_supply: int) -> None
transfer(caller: bytes, to: bytes, amount: int) -> bool
approve(caller: bytes, spender: bytes, amount: int) -> bool
transfer_from(caller: bytes, owner: bytes, to: bytes, amount: int) -> bool
increase_allowance(caller: bytes, spender: bytes, added: int) -> bool
decrease_allowance(caller: bytes, spender: bytes, subtracted: int) -> bool
mint(caller: bytes, to: bytes, amount: int) -> bool

Notes
-----
- `transfer_from` checks the allowance before the balance, so a spender
  without allowance always sees TOKEN:ALLOWANCE_LOW and a funded-but-short
  owner TOKEN:INSUFFICIENT_BALANCE.
- A revert anywhere undoes every write of the call (host rollback), so the
  allowance debit never survives a failed balance check.
"""

from __future__ import annotations

from typing import Final, Optional

from matchvm.stdlib import abi, events, storage

from ..math.safe_uint import u256_add, u256_sub
from . import (ERR_BAD_AMOUNT, EVT_APPROVAL, EVT_TRANSFER, ZERO_ADDR,
               clamp_decimals, key_allow, key_balance, normalize_symbol,
               require_account, require_address, require_amount, require_name,
               require_symbol)

# ------------------------------------------------------------------------------
# Storage keys (metadata & owner). Values are raw bytes unless noted.
# ------------------------------------------------------------------------------

K_NAME: Final[bytes] = b"tok:meta:name"  # bytes (ASCII)
K_SYMBOL: Final[bytes] = b"tok:meta:symbol"  # bytes (ASCII, uppercase)
K_DECIMALS: Final[bytes] = b"tok:meta:dec"  # u256 (32B big-endian)
K_TOTAL: Final[bytes] = b"tok:meta:total"  # u256 (32B big-endian)
K_OWNER: Final[bytes] = b"tok:meta:owner"  # bytes (address)
K_INIT: Final[bytes] = b"tok:meta:inited"  # presence flag (b"1")

ERR_NOT_OWNER: Final[bytes] = b"TOKEN:NOT_OWNER"
ERR_ALLOWANCE_LOW: Final[bytes] = b"TOKEN:ALLOWANCE_LOW"
ERR_INSUFFICIENT: Final[bytes] = b"TOKEN:INSUFFICIENT_BALANCE"

# ------------------------------------------------------------------------------
# Internal IO helpers (u256 <-> storage)
# ------------------------------------------------------------------------------


def _get_u256(k: bytes) -> int:
    v = storage.get(k)
    return int.from_bytes(v, "big") if v else 0


def _set_u256(k: bytes, n: int) -> None:
    require_amount(n)
    storage.set(k, int(n).to_bytes(32, "big"))


def _get_bytes(k: bytes) -> bytes:
    v = storage.get(k)
    return v if v else b""


def _owner() -> Optional[bytes]:
    v = storage.get(K_OWNER)
    return v if v else None


def _require_owner(caller: bytes) -> None:
    require_address(caller)
    v = _owner()
    if v is None or v != caller:
        abi.revert(ERR_NOT_OWNER)


# ------------------------------------------------------------------------------
# Metadata (pure)
# ------------------------------------------------------------------------------


def name() -> bytes:
    return _get_bytes(K_NAME)


def symbol() -> bytes:
    return _get_bytes(K_SYMBOL)


def decimals() -> int:
    return _get_u256(K_DECIMALS)


def total_supply() -> int:
    return _get_u256(K_TOTAL)


def owner() -> bytes:
    v = _owner()
    return v if v else b""


def is_initialized() -> bool:
    return bool(storage.get(K_INIT))


# ------------------------------------------------------------------------------
# Init (one-time)
# ------------------------------------------------------------------------------


def init(
    name: bytes, symbol: bytes, decimals: int, initial_owner: bytes, initial_supply: int
) -> None:
    """
    One-time initializer. Fails if already initialized.
    """
    if storage.get(K_INIT):
        abi.revert(b"TOKEN:ALREADY_INIT")

    require_name(name)
    require_symbol(symbol)
    require_account(initial_owner)
    require_amount(initial_supply)
    if not isinstance(decimals, int) or isinstance(decimals, bool):
        abi.revert(ERR_BAD_AMOUNT)

    storage.set(K_NAME, bytes(name))
    storage.set(K_SYMBOL, normalize_symbol(symbol))
    _set_u256(K_DECIMALS, clamp_decimals(decimals))
    storage.set(K_OWNER, bytes(initial_owner))
    storage.set(K_INIT, b"1")

    if initial_supply > 0:
        _mint_to(initial_owner, initial_supply)
        events.emit(
            EVT_TRANSFER,
            {
                b"from": ZERO_ADDR,
                b"to": initial_owner,
                b"value": initial_supply,
            },
        )


# ------------------------------------------------------------------------------
# Views
# ------------------------------------------------------------------------------


def balance_of(addr: bytes) -> int:
    require_address(addr)
    return _get_u256(key_balance(addr))


def allowance(owner: bytes, spender: bytes) -> int:
    require_address(owner)
    require_address(spender)
    return _get_u256(key_allow(owner, spender))


# ------------------------------------------------------------------------------
# Mutations (explicit caller)
# ------------------------------------------------------------------------------


def _move(src: bytes, dst: bytes, amount: int) -> None:
    src_key = key_balance(src)
    src_bal = _get_u256(src_key)
    if src_bal < amount:
        abi.revert(ERR_INSUFFICIENT)
    _set_u256(src_key, u256_sub(src_bal, amount))
    dst_key = key_balance(dst)
    _set_u256(dst_key, u256_add(_get_u256(dst_key), amount))


def transfer(caller: bytes, to: bytes, amount: int) -> bool:
    require_account(caller)
    require_account(to)
    require_amount(amount)

    if amount > 0:
        _move(caller, to, amount)

    # zero-value transfers still emit, per ERC-20 practice
    events.emit(EVT_TRANSFER, {b"from": caller, b"to": to, b"value": amount})
    return True


def approve(caller: bytes, spender: bytes, amount: int) -> bool:
    require_account(caller)
    require_account(spender)
    require_amount(amount)

    _set_u256(key_allow(caller, spender), amount)

    events.emit(
        EVT_APPROVAL,
        {
            b"owner": caller,
            b"spender": spender,
            b"value": amount,
        },
    )
    return True


def transfer_from(caller: bytes, owner: bytes, to: bytes, amount: int) -> bool:
    """
    Spender (`caller`) transfers `amount` from `owner` to `to` using allowance.
    """
    require_account(caller)
    require_account(owner)
    require_account(to)
    require_amount(amount)

    if amount > 0:
        allow_key = key_allow(owner, caller)
        current_allow = _get_u256(allow_key)
        if current_allow < amount:
            abi.revert(ERR_ALLOWANCE_LOW)
        _set_u256(allow_key, u256_sub(current_allow, amount))
        _move(owner, to, amount)

    events.emit(EVT_TRANSFER, {b"from": owner, b"to": to, b"value": amount})
    return True


def increase_allowance(caller: bytes, spender: bytes, added: int) -> bool:
    require_account(caller)
    require_account(spender)
    require_amount(added)

    allow_key = key_allow(caller, spender)
    new = u256_add(_get_u256(allow_key), added)
    _set_u256(allow_key, new)

    events.emit(EVT_APPROVAL, {b"owner": caller, b"spender": spender, b"value": new})
    return True


def decrease_allowance(caller: bytes, spender: bytes, subtracted: int) -> bool:
    require_account(caller)
    require_account(spender)
    require_amount(subtracted)

    allow_key = key_allow(caller, spender)
    cur = _get_u256(allow_key)
    if cur < subtracted:
        abi.revert(ERR_ALLOWANCE_LOW)
    new = u256_sub(cur, subtracted)
    _set_u256(allow_key, new)

    events.emit(EVT_APPROVAL, {b"owner": caller, b"spender": spender, b"value": new})
    return True


# ------------------------------------------------------------------------------
# Owner-gated supply control
# ------------------------------------------------------------------------------


def mint(caller: bytes, to: bytes, amount: int) -> bool:
    _require_owner(caller)
    require_account(to)
    require_amount(amount)
    if amount == 0:
        return True

    _mint_to(to, amount)
    events.emit(EVT_TRANSFER, {b"from": ZERO_ADDR, b"to": to, b"value": amount})
    return True


def _mint_to(to: bytes, amount: int) -> None:
    """
    Unchecked mint (no owner check). Updates total + balance.
    """
    _set_u256(K_TOTAL, u256_add(total_supply(), amount))
    to_key = key_balance(to)
    _set_u256(to_key, u256_add(_get_u256(to_key), amount))
