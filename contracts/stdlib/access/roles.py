# -*- coding: utf-8 -*-
"""
contracts.stdlib.access.roles
=============================

Deterministic, minimal **Role-Based Access Control** (RBAC) for matchvm
contracts.

Design
------
- **Bytes32 role identifiers**: each role is identified by 32 bytes, usually
  ``derive_role_id(b"NAME")`` (sha3-256 of the name).
- **Owner-as-superadmin**: the contract owner (see ``ownable``) is treated as
  an admin of every role, which is how a freshly deployed contract grants its
  first roles.
- **Idempotent operations**: granting an existing role or revoking a missing
  role is a no-op (no revert, no event).

Storage layout
--------------
- Member flag:   key = b"access:role:member:" + role + b":" + account  → b"1"
- Admin-of-role: key = b"access:role:admin:"  + role                  → bytes32 role-id
  If absent, falls back to `DEFAULT_ADMIN_ROLE`.
"""
from __future__ import annotations

from matchvm.stdlib import abi, events, hash, storage

from . import ownable

__all__ = [
    "DEFAULT_ADMIN_ROLE",
    "ROLE_MEMBER_PREFIX",
    "ROLE_ADMIN_PREFIX",
    "derive_role_id",
    "normalize_role",
    "has_role",
    "get_role_admin",
    "is_admin_for_role",
    "require_role",
    "grant_role",
    "revoke_role",
    "renounce_role",
    "set_role_admin",
]

# ---- Constants & prefixes ----------------------------------------------------

DEFAULT_ADMIN_ROLE: bytes = b"\x00" * 32

ROLE_MEMBER_PREFIX: bytes = b"access:role:member:"
ROLE_ADMIN_PREFIX: bytes = b"access:role:admin:"


# ---- Internal key helpers ----------------------------------------------------


def _key_member(role: bytes, account: bytes) -> bytes:
    return ROLE_MEMBER_PREFIX + role + b":" + account


def _key_admin(role: bytes) -> bytes:
    return ROLE_ADMIN_PREFIX + role


def _owner_is(caller: bytes) -> bool:
    owner = ownable.get_owner()
    return owner is not None and owner == caller


# ---- Role id helpers ---------------------------------------------------------


def normalize_role(role: bytes) -> bytes:
    """
    Ensure `role` is exactly 32 bytes; otherwise revert.
    """
    if not isinstance(role, (bytes, bytearray)) or len(role) != 32:
        abi.revert(b"ACCESS:ROLE_LEN")
    return bytes(role)


def derive_role_id(name: bytes) -> bytes:
    """sha3_256(name) → bytes32 role id."""
    return hash.sha3_256(name)


# ---- Queries ----------------------------------------------------------------


def has_role(role: bytes, account: bytes) -> bool:
    role = normalize_role(role)
    if not account:
        return False
    return storage.exists(_key_member(role, bytes(account)))


def get_role_admin(role: bytes) -> bytes:
    """
    Returns the admin role-id for `role`, or DEFAULT_ADMIN_ROLE if unset.
    """
    role = normalize_role(role)
    v = storage.get(_key_admin(role))
    if v is None or len(v) != 32:
        return DEFAULT_ADMIN_ROLE
    return v


def is_admin_for_role(role: bytes, caller: bytes) -> bool:
    """
    True if `caller` holds `get_role_admin(role)` or is the owner.
    """
    if has_role(get_role_admin(role), caller):
        return True
    return _owner_is(caller)


def require_role(role: bytes, caller: bytes) -> None:
    """
    Revert unless `caller` has `role`.
    """
    if not has_role(role, caller):
        abi.revert(b"ACCESS:MISSING_ROLE")


# ---- Mutations ---------------------------------------------------------------


def grant_role(caller: bytes, role: bytes, account: bytes) -> None:
    """
    Grant `role` to `account`. Only callable by an admin of `role`.

    Emits RoleGranted on first grant.
    """
    role = normalize_role(role)

    if not account:
        abi.revert(b"ACCESS:ACCOUNT_EMPTY")

    if not is_admin_for_role(role, caller):
        abi.revert(b"ACCESS:NOT_ROLE_ADMIN")

    if has_role(role, account):
        return
    storage.set(_key_member(role, bytes(account)), b"1")
    events.emit(b"RoleGranted", {"role": role, "account": bytes(account), "sender": caller})


def revoke_role(caller: bytes, role: bytes, account: bytes) -> None:
    """
    Revoke `role` from `account`. Only callable by an admin of `role`.

    Emits RoleRevoked on successful state change.
    """
    role = normalize_role(role)

    if not account:
        abi.revert(b"ACCESS:ACCOUNT_EMPTY")

    if not is_admin_for_role(role, caller):
        abi.revert(b"ACCESS:NOT_ROLE_ADMIN")

    if not has_role(role, account):
        return
    storage.delete(_key_member(role, bytes(account)))
    events.emit(b"RoleRevoked", {"role": role, "account": bytes(account), "sender": caller})


def renounce_role(caller: bytes, role: bytes) -> None:
    """
    Caller removes themself from `role`.
    """
    role = normalize_role(role)
    if not has_role(role, caller):
        return
    storage.delete(_key_member(role, caller))
    events.emit(b"RoleRevoked", {"role": role, "account": caller, "sender": caller})


def set_role_admin(caller: bytes, role: bytes, admin_role: bytes) -> None:
    """
    Set the admin role-id for `role` to `admin_role`.

    Only callable by the *current* admin of `role` (or the owner).
    """
    role = normalize_role(role)
    admin_role = normalize_role(admin_role)

    if not is_admin_for_role(role, caller):
        abi.revert(b"ACCESS:NOT_ROLE_ADMIN")

    prev = get_role_admin(role)
    if prev == admin_role:
        return

    storage.set(_key_admin(role), admin_role)
    events.emit(
        b"RoleAdminChanged",
        {"role": role, "previousAdminRole": prev, "newAdminRole": admin_role},
    )
