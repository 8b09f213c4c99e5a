# -*- coding: utf-8 -*-
"""
contracts.tests.conftest
========================

Pytest fixtures for the Smashpros ledger and the Moneymatchr registry.

Every test gets a fresh ``Host`` with both contracts deployed by ``owner``;
``alice``, ``bob`` and ``carol`` hold FUNDED tokens each and have approved the
registry for all of it. ``mod`` holds the moderator role.

Usage (inside a test file):
    def test_flow(mm, accounts):
        alice, bob = accounts["alice"], accounts["bob"]
        mid = mm.start(alice, bob, 1_000)
        mm.accept(bob, mid)
        assert mm.match(mid).state == MatchState.Started
"""
from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pytest

from contracts.moneymatchr import CONTRACT_MODULE as REGISTRY_MODULE
from contracts.moneymatchr import MATCH_MODERATOR, Match
from contracts.smashpros import CONTRACT_MODULE as TOKEN_MODULE
from matchvm.runtime import ContractHandle, Host, Receipt

os.environ.setdefault("PYTHONHASHSEED", "0")
os.environ.setdefault("TZ", "UTC")

try:  # pragma: no cover - profile selection only
    from hypothesis import settings

    settings.register_profile("local", settings(max_examples=40, deadline=None))
    settings.register_profile("ci", settings(max_examples=200, deadline=None))
    settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE") or ("ci" if os.environ.get("CI") else "local"))
except ImportError:
    pass

FUNDED = 1_000_000


# --- tiny deterministic helpers ----------------------------------------------


def _det_address(tag: str) -> bytes:
    """Stable 32-byte account address derived from a tag."""
    return hashlib.sha3_256(b"test-account:" + tag.encode("utf-8")).digest()


# --- harness --------------------------------------------------------------------


@dataclass
class Moneymatchr:
    """Thin driver over the deployed token + registry pair."""

    host: Host
    token: ContractHandle
    registry: ContractHandle
    owner: bytes

    # registry calls

    def start(self, initiator: bytes, opponent: bytes, amount: int, max_matches: int = 3) -> int:
        return self.registry.call("start", opponent, amount, max_matches, sender=initiator).value

    def accept(self, opponent: bytes, match_id: int, amount: Optional[int] = None) -> Receipt:
        if amount is None:
            amount = self.match(match_id).amount
        return self.registry.call("accept", match_id, amount, sender=opponent)

    def decline(self, opponent: bytes, match_id: int) -> Receipt:
        return self.registry.call("decline", match_id, sender=opponent)

    def agree(self, voter: bytes, match_id: int, claimed: bytes) -> Receipt:
        return self.registry.call("agree", match_id, claimed, sender=voter)

    def round(self, match_id: int, a: bytes, b: bytes, a_claims: bytes, b_claims: Optional[bytes] = None) -> Receipt:
        """Both sides vote once; returns the receipt of the second vote."""
        self.agree(a, match_id, a_claims)
        return self.agree(b, match_id, a_claims if b_claims is None else b_claims)

    def emergency_withdraw(self, moderator: bytes, match_id: int) -> Receipt:
        return self.registry.call("emergency_withdraw", match_id, sender=moderator)

    def started(self, initiator: bytes, opponent: bytes, amount: int, max_matches: int = 3) -> int:
        mid = self.start(initiator, opponent, amount, max_matches)
        self.accept(opponent, mid, amount)
        return mid

    # reads

    def match(self, match_id: int) -> Match:
        return Match.from_record(self.registry.view("get_match", match_id))

    def matches_of(self, account: bytes) -> List[Match]:
        return [Match.from_record(r) for r in self.registry.view("get_matches_for_caller", sender=account)]

    def balance(self, account: bytes) -> int:
        return self.token.view("balance_of", account)

    @property
    def escrow(self) -> int:
        return self.balance(self.registry.address)


# --- fixtures ----------------------------------------------------------------


@pytest.fixture(scope="session")
def accounts() -> Dict[str, bytes]:
    """Deterministic named accounts used across tests."""
    return {name: _det_address(name) for name in ("owner", "alice", "bob", "carol", "mod", "mallory")}


@pytest.fixture()
def host() -> Host:
    return Host()


@pytest.fixture()
def token(host: Host, accounts) -> ContractHandle:
    owner = accounts["owner"]
    return host.deploy(TOKEN_MODULE, sender=owner, init_args=(owner,), label="smashpros")


def make_moneymatchr(host: Host, token: ContractHandle, accounts: Dict[str, bytes], **kw: Any) -> Moneymatchr:
    """Deploy a registry against `token`, fund and approve the players, appoint `mod`."""
    owner = accounts["owner"]
    args = [owner, token.address]
    if "max_agreement_attempts" in kw:
        args.append(kw["max_agreement_attempts"])
    registry = host.deploy(REGISTRY_MODULE, sender=owner, init_args=tuple(args), label="moneymatchr")
    for name in ("alice", "bob", "carol"):
        token.call("mint", accounts[name], FUNDED, sender=owner)
        token.call("approve", registry.address, FUNDED, sender=accounts[name])
    registry.call("grant_role", MATCH_MODERATOR, accounts["mod"], sender=owner)
    return Moneymatchr(host, token, registry, owner)


def fresh_moneymatchr(accounts: Dict[str, bytes], **kw: Any) -> Moneymatchr:
    """New host, token and registry; for Hypothesis bodies that cannot take function-scoped fixtures."""
    host = Host()
    owner = accounts["owner"]
    token = host.deploy(TOKEN_MODULE, sender=owner, init_args=(owner,), label="smashpros")
    return make_moneymatchr(host, token, accounts, **kw)


@pytest.fixture()
def deploy_mm(host: Host, token: ContractHandle, accounts):
    """Factory: deploy a registry (optionally with a custom attempts bound)."""

    def _make(**kw: Any) -> Moneymatchr:
        return make_moneymatchr(host, token, accounts, **kw)

    return _make


@pytest.fixture()
def mm(deploy_mm) -> Moneymatchr:
    return deploy_mm()
