# -*- coding: utf-8 -*-
"""
contracts.stdlib
================

Reusable, deterministic building blocks for matchvm contracts:

- ``contracts.stdlib.math``   : U256 envelopes and checked arithmetic
- ``contracts.stdlib.token``  : fungible token ledger (ERC-20–like)
- ``contracts.stdlib.access`` : owner and role-based access control

These are libraries, not contracts: their functions take an explicit
``caller`` and are wired to entrypoints by the contract modules under
``contracts/`` (for example ``contracts.smashpros.contract``).
"""
from __future__ import annotations

# Bump when stdlib layout/conventions change (not ABI of individual contracts).
__version__ = "0.3.0"

__all__ = ["__version__"]
