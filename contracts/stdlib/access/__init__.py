# -*- coding: utf-8 -*-
"""
contracts.stdlib.access
=======================

Deterministic access-control helpers for matchvm contracts: a single
**owner** (``ownable``) and **role-based access control** (``roles``).

Both use only the contract stdlib (`storage`, `events`, `abi`) and take an
explicit ``caller: bytes`` so contracts plumb ``abi.sender()`` through
themselves.

Storage layout (by convention)
------------------------------
- Owner:            key ``b"access:owner"`` → address bytes (absent when unset)
- Role membership:  key ``b"access:role:member:" + role + b":" + account`` → ``b"1"``
- Role admin:       key ``b"access:role:admin:" + role`` → 32-byte role id

Events
------
- "OwnershipTransferred" args: {"previous": bytes, "new": bytes}
- "RoleGranted"        args: {"role": bytes, "account": bytes, "sender": bytes}
- "RoleRevoked"        args: {"role": bytes, "account": bytes, "sender": bytes}
- "RoleAdminChanged"   args: {"role": bytes, "previousAdminRole": bytes, "newAdminRole": bytes}

Quick usage (inside a contract)
-------------------------------
    from matchvm.stdlib import abi
    from contracts.stdlib.access import DEFAULT_ADMIN_ROLE, grant_role, init_owner

    def init(owner: bytes) -> None:
        init_owner(owner)
        grant_role(owner, DEFAULT_ADMIN_ROLE, owner)
"""
from __future__ import annotations

from .ownable import (OWNER_KEY, get_owner, init_owner, renounce_ownership,
                      require_owner, transfer_ownership)
from .roles import (DEFAULT_ADMIN_ROLE, derive_role_id, get_role_admin,
                    grant_role, has_role, is_admin_for_role, renounce_role,
                    require_role, revoke_role, set_role_admin)

__all__ = [
    # constants
    "OWNER_KEY",
    "DEFAULT_ADMIN_ROLE",
    # owner API
    "get_owner",
    "init_owner",
    "require_owner",
    "transfer_ownership",
    "renounce_ownership",
    # roles API
    "derive_role_id",
    "has_role",
    "is_admin_for_role",
    "require_role",
    "grant_role",
    "revoke_role",
    "renounce_role",
    "get_role_admin",
    "set_role_admin",
]
