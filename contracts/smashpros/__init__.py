"""Smashpros (SMSH): the fungible token wagered through Moneymatchr."""

from __future__ import annotations

NAME = b"Smashpros"
SYMBOL = b"SMSH"
DECIMALS = 18

CONTRACT_MODULE = "contracts.smashpros.contract"

__all__ = ["NAME", "SYMBOL", "DECIMALS", "CONTRACT_MODULE"]
