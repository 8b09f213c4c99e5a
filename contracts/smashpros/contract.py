# -*- coding: utf-8 -*-
"""
Smashpros (SMSH) token contract.

Entrypoints take the caller from ``abi.sender()`` and delegate to the
explicit-caller ledger in ``contracts.stdlib.token.fungible``. Supply starts
at zero; only the owner set at deployment can mint.

Deploy:
    host.deploy("contracts.smashpros.contract", sender=owner, init_args=(owner,))
"""

from __future__ import annotations

from matchvm.stdlib import abi

from contracts.smashpros import DECIMALS, NAME, SYMBOL
from contracts.stdlib.token import fungible


def init(owner: bytes) -> None:
    fungible.init(NAME, SYMBOL, DECIMALS, owner, 0)


# ---- views ----


def name() -> bytes:
    return fungible.name()


def symbol() -> bytes:
    return fungible.symbol()


def decimals() -> int:
    return fungible.decimals()


def total_supply() -> int:
    return fungible.total_supply()


def balance_of(account: bytes) -> int:
    return fungible.balance_of(account)


def allowance(owner: bytes, spender: bytes) -> int:
    return fungible.allowance(owner, spender)


def owner() -> bytes:
    return fungible.owner()


# ---- mutations ----


def mint(to: bytes, amount: int) -> bool:
    return fungible.mint(abi.sender(), to, amount)


def transfer(to: bytes, amount: int) -> bool:
    return fungible.transfer(abi.sender(), to, amount)


def approve(spender: bytes, amount: int) -> bool:
    return fungible.approve(abi.sender(), spender, amount)


def transfer_from(owner: bytes, to: bytes, amount: int) -> bool:
    return fungible.transfer_from(abi.sender(), owner, to, amount)


def increase_allowance(spender: bytes, added: int) -> bool:
    return fungible.increase_allowance(abi.sender(), spender, added)


def decrease_allowance(spender: bytes, subtracted: int) -> bool:
    return fungible.decrease_allowance(abi.sender(), spender, subtracted)


__all__ = [
    "init",
    "name",
    "symbol",
    "decimals",
    "total_supply",
    "balance_of",
    "allowance",
    "owner",
    "mint",
    "transfer",
    "approve",
    "transfer_from",
    "increase_allowance",
    "decrease_allowance",
]
