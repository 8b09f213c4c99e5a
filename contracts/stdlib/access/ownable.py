# -*- coding: utf-8 -*-
"""
contracts.stdlib.access.ownable
================================

Minimal **Ownable** helper for matchvm contracts:

- read the current owner (`get_owner`)
- initialize the owner once (`init_owner`)
- check that a caller is the owner (`require_owner`)
- transfer ownership to a new account (`transfer_ownership`)
- renounce ownership (clear owner) (`renounce_ownership`)

Safety notes
------------
- `init_owner` will not overwrite a previously set owner.
- `transfer_ownership` rejects an empty `new_owner`; use `renounce_ownership`
  explicitly to leave the contract without an owner.
"""
from __future__ import annotations

from typing import Optional

from matchvm.stdlib import abi, events, storage

OWNER_KEY: bytes = b"access:owner"

__all__ = [
    "OWNER_KEY",
    "get_owner",
    "init_owner",
    "require_owner",
    "transfer_ownership",
    "renounce_ownership",
]


def get_owner() -> Optional[bytes]:
    """
    Return the current owner address, or None if not set.
    """
    v = storage.get(OWNER_KEY)
    return v if v else None


def init_owner(owner: bytes) -> None:
    """
    Initialize the contract owner. Does not overwrite if already set.
    """
    if not owner:
        abi.revert(b"ACCESS:OWNER_EMPTY")
    if get_owner() is None:
        storage.set(OWNER_KEY, bytes(owner))


def require_owner(caller: bytes) -> None:
    """
    Revert unless `caller` equals the current owner.
    """
    owner = get_owner()
    if owner is None or owner != caller:
        abi.revert(b"ACCESS:NOT_OWNER")


def transfer_ownership(caller: bytes, new_owner: bytes) -> None:
    """
    Owner-only: transfer ownership to `new_owner` (must be non-empty).
    """
    require_owner(caller)

    if not new_owner:
        abi.revert(b"ACCESS:NEW_OWNER_EMPTY")

    previous = get_owner() or b""
    storage.set(OWNER_KEY, bytes(new_owner))
    events.emit(b"OwnershipTransferred", {"previous": previous, "new": bytes(new_owner)})


def renounce_ownership(caller: bytes) -> None:
    """
    Owner-only: renounce ownership. `require_owner` fails for everyone after.
    """
    require_owner(caller)

    previous = get_owner() or b""
    storage.delete(OWNER_KEY)
    events.emit(b"OwnershipTransferred", {"previous": previous, "new": b""})
