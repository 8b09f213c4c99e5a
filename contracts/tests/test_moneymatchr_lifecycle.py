# -*- coding: utf-8 -*-
"""
Moneymatchr registry: deployment, start / accept / decline, queries, roles.
"""
from __future__ import annotations

import pytest

from contracts.moneymatchr import CONTRACT_MODULE, MATCH_MODERATOR, Match, MatchState, zero_record
from contracts.stdlib.access import DEFAULT_ADMIN_ROLE
from matchvm.errors import Revert

from .conftest import FUNDED


# --- deployment ------------------------------------------------------------------


def test_deployment_state(mm, accounts):
    r = mm.registry
    assert r.view("token") == mm.token.address
    assert r.view("owner") == accounts["owner"]
    assert r.view("max_agreement_attempts") == 3
    assert r.view("next_id") == 1
    assert r.view("moderator_role") == MATCH_MODERATOR
    assert r.view("has_role", DEFAULT_ADMIN_ROLE, accounts["owner"])
    assert r.view("is_moderator", accounts["owner"])
    assert r.view("is_moderator", accounts["mod"])
    assert not r.view("is_moderator", accounts["alice"])


def test_custom_attempt_bound(deploy_mm):
    assert deploy_mm(max_agreement_attempts=5).registry.view("max_agreement_attempts") == 5


@pytest.mark.parametrize(
    "args,reason",
    [
        (("owner", None), b"MATCH:NEEDS_TOKEN"),
        ((None, "token"), b"MATCH:INVALID_OWNER"),
        (("owner", "token", 0), b"MATCH:BAD_ATTEMPTS"),
        (("owner", "token", 256), b"MATCH:BAD_ATTEMPTS"),
        (("owner", "token", True), b"MATCH:BAD_ATTEMPTS"),
    ],
)
def test_init_validation(host, token, accounts, args, reason):
    named = {"owner": accounts["owner"], "token": token.address, None: bytes(32)}
    init_args = tuple(named[a] if a in named else a for a in args)
    with pytest.raises(Revert) as ei:
        host.deploy(CONTRACT_MODULE, sender=accounts["owner"], init_args=init_args)
    assert ei.value.reason == reason


def test_init_only_once(mm, accounts):
    with pytest.raises(Revert) as ei:
        mm.registry.call("init", accounts["owner"], mm.token.address, sender=accounts["owner"])
    assert ei.value.reason == b"MATCH:ALREADY_INIT"


# --- start -----------------------------------------------------------------------


def test_start_records_sent_match(mm, accounts):
    alice, bob = accounts["alice"], accounts["bob"]
    r = mm.registry.call("start", bob, 1000, 3, sender=alice)
    assert r.value == 1

    (sent,) = r.events_named(b"Sent")
    assert sent.args == {"id": 1, "initiator": alice, "opponent": bob, "amount": 1000}

    m = mm.match(1)
    assert m.state == MatchState.Sent
    assert (m.initiator, m.opponent, m.amount, m.max_matches) == (alice, bob, 1000, 3)
    assert (m.initiator_score, m.opponent_score, m.attempts, m.frozen) == (0, 0, 0, False)
    assert m.initiator_agreement == m.opponent_agreement == m.winner == bytes(32)

    assert mm.balance(alice) == FUNDED - 1000
    assert mm.escrow == 1000
    assert mm.registry.view("next_id") == 2


def test_ids_are_sequential(mm, accounts):
    alice, bob, carol = accounts["alice"], accounts["bob"], accounts["carol"]
    assert [mm.start(alice, bob, 1), mm.start(bob, carol, 1), mm.start(carol, alice, 1)] == [1, 2, 3]


@pytest.mark.parametrize(
    "opponent,amount,max_matches,reason",
    [
        (None, 1000, 3, b"MATCH:NULL_OPPONENT"),
        ("short", 1000, 3, b"MATCH:NULL_OPPONENT"),
        ("alice", 1000, 3, b"MATCH:SELF_MATCH"),
        ("bob", 0, 3, b"MATCH:BAD_AMOUNT"),
        ("bob", -5, 3, b"MATCH:BAD_AMOUNT"),
        ("bob", 1000, 2, b"MATCH:EVEN_MAX_MATCHES"),
        ("bob", 1000, 0, b"MATCH:EVEN_MAX_MATCHES"),
        ("bob", FUNDED + 1, 3, b"MATCH:INSUFFICIENT_BALANCE"),
    ],
)
def test_start_validation(mm, accounts, opponent, amount, max_matches, reason):
    named = dict(accounts)
    named[None] = bytes(32)
    named["short"] = b"\x01" * 20
    r = mm.registry.call("start", named[opponent], amount, max_matches, sender=accounts["alice"], check=False)
    assert r.reason == reason
    assert mm.registry.view("next_id") == 1
    assert mm.escrow == 0


def test_start_checks_balance_before_allowance(mm, accounts):
    alice, bob, mallory = accounts["alice"], accounts["bob"], accounts["mallory"]
    # mallory has neither funds nor an allowance
    assert mm.registry.call("start", bob, 10, 1, sender=mallory, check=False).reason == b"MATCH:INSUFFICIENT_BALANCE"

    mm.token.call("approve", mm.registry.address, 10, sender=alice)
    r = mm.registry.call("start", bob, 11, 1, sender=alice, check=False)
    assert r.reason == b"MATCH:NOT_APPROVED"
    assert mm.balance(alice) == FUNDED


# --- accept ----------------------------------------------------------------------


def test_accept_pools_stakes(mm, accounts):
    alice, bob = accounts["alice"], accounts["bob"]
    mid = mm.start(alice, bob, 1000)

    r = mm.accept(bob, mid, 1000)
    assert r.events_named(b"Accepted")[0].args == {"id": mid, "opponent": bob}
    assert Match.from_record(r.value).state == MatchState.Started

    m = mm.match(mid)
    assert m.state == MatchState.Started
    assert m.amount == 2000
    assert m.stake == 1000
    assert mm.escrow == 2000
    assert mm.balance(bob) == FUNDED - 1000


@pytest.mark.parametrize(
    "who,match_id,amount,reason",
    [
        ("bob", 0, 1000, b"MATCH:NULL_ID"),
        ("bob", 99, 1000, b"MATCH:NOT_FOUND"),
        ("carol", 1, 1000, b"MATCH:NOT_OPPONENT"),
        ("alice", 1, 1000, b"MATCH:NOT_OPPONENT"),
        ("bob", 1, 999, b"MATCH:AMOUNT_MISMATCH"),
    ],
)
def test_accept_validation(mm, accounts, who, match_id, amount, reason):
    mm.start(accounts["alice"], accounts["bob"], 1000)
    r = mm.registry.call("accept", match_id, amount, sender=accounts[who], check=False)
    assert r.reason == reason
    assert mm.match(1).state == MatchState.Sent


def test_accept_twice_is_rejected(mm, accounts):
    alice, bob = accounts["alice"], accounts["bob"]
    mid = mm.started(alice, bob, 1000)
    r = mm.registry.call("accept", mid, 2000, sender=bob, check=False)
    assert r.reason == b"MATCH:NOT_PENDING"
    assert mm.escrow == 2000


def test_accept_without_allowance(mm, accounts):
    alice, bob = accounts["alice"], accounts["bob"]
    mid = mm.start(alice, bob, 1000)
    mm.token.call("approve", mm.registry.address, 0, sender=bob)
    assert mm.registry.call("accept", mid, 1000, sender=bob, check=False).reason == b"MATCH:NOT_APPROVED"
    assert mm.match(mid).state == MatchState.Sent


# --- decline ---------------------------------------------------------------------


def test_decline_refunds_initiator_and_deletes(mm, accounts):
    alice, bob = accounts["alice"], accounts["bob"]
    mid = mm.start(alice, bob, 1000)

    r = mm.decline(bob, mid)
    assert r.events_named(b"Declined")[0].args == {"id": mid, "opponent": bob}
    assert mm.balance(alice) == FUNDED
    assert mm.escrow == 0
    assert mm.match(mid).is_absent
    assert mm.registry.view("get_match", mid) == zero_record()
    assert mm.matches_of(alice) == []


def test_decline_guards(mm, accounts):
    alice, bob = accounts["alice"], accounts["bob"]
    mid = mm.start(alice, bob, 1000)
    assert mm.registry.call("decline", mid, sender=alice, check=False).reason == b"MATCH:NOT_OPPONENT"

    mm.accept(bob, mid, 1000)
    assert mm.registry.call("decline", mid, sender=bob, check=False).reason == b"MATCH:NOT_PENDING"
    assert mm.escrow == 2000

    mm.decline(bob, mm.start(alice, bob, 5))
    assert mm.registry.call("decline", 2, sender=bob, check=False).reason == b"MATCH:NOT_FOUND"


# --- queries ---------------------------------------------------------------------


def test_get_match_never_reverts(mm):
    for bad in (0, 42, -1, 1 << 300, "1", None):
        assert mm.registry.view("get_match", bad) == zero_record()


def test_matches_for_caller(mm, accounts):
    alice, bob, carol = accounts["alice"], accounts["bob"], accounts["carol"]
    m1 = mm.start(alice, bob, 10)
    m2 = mm.start(carol, alice, 20)
    m3 = mm.start(bob, carol, 30)

    # the opponent is only indexed once they accept
    assert [m.id for m in mm.matches_of(alice)] == [m1]
    mm.accept(alice, m2)
    assert [m.id for m in mm.matches_of(alice)] == [m1, m2]
    assert [m.id for m in mm.matches_of(carol)] == [m2]
    assert [m.id for m in mm.matches_of(bob)] == [m3]
    assert mm.matches_of(accounts["mallory"]) == []

    mm.decline(bob, m1)
    assert [m.id for m in mm.matches_of(alice)] == [m2]

    legacy = mm.registry.view("get_matchs_for_caller", sender=alice)
    assert legacy == mm.registry.view("get_matches_for_caller", sender=alice)


# --- roles & ownership -----------------------------------------------------------


def test_moderator_role_admin(mm, accounts):
    owner, alice, mod = accounts["owner"], accounts["alice"], accounts["mod"]

    with pytest.raises(Revert) as ei:
        mm.registry.call("grant_role", MATCH_MODERATOR, alice, sender=alice)
    assert ei.value.reason == b"ACCESS:NOT_ROLE_ADMIN"

    r = mm.registry.call("revoke_role", MATCH_MODERATOR, mod, sender=owner)
    assert r.events_named(b"RoleRevoked")
    assert not mm.registry.view("is_moderator", mod)

    mm.registry.call("grant_role", MATCH_MODERATOR, alice, sender=owner)
    mm.registry.call("renounce_role", MATCH_MODERATOR, sender=alice)
    assert not mm.registry.view("is_moderator", alice)


def test_role_admin_delegation(mm, accounts):
    owner, alice, carol = accounts["owner"], accounts["alice"], accounts["carol"]
    managers = b"\x11" * 32
    assert mm.registry.view("role_admin", MATCH_MODERATOR) == DEFAULT_ADMIN_ROLE

    mm.registry.call("set_role_admin", MATCH_MODERATOR, managers, sender=owner)
    mm.registry.call("grant_role", managers, alice, sender=owner)
    assert mm.registry.view("role_admin", MATCH_MODERATOR) == managers

    mm.registry.call("grant_role", MATCH_MODERATOR, carol, sender=alice)
    assert mm.registry.view("is_moderator", carol)

    with pytest.raises(Revert) as ei:
        mm.registry.view("has_role", b"short", carol)
    assert ei.value.reason == b"ACCESS:ROLE_LEN"


def test_ownership_transfer(mm, accounts):
    owner, alice, bob = accounts["owner"], accounts["alice"], accounts["bob"]

    with pytest.raises(Revert) as ei:
        mm.registry.call("transfer_ownership", alice, sender=bob)
    assert ei.value.reason == b"ACCESS:NOT_OWNER"
    with pytest.raises(Revert) as ei:
        mm.registry.call("transfer_ownership", bytes(32), sender=owner)
    assert ei.value.reason == b"MATCH:INVALID_OWNER"

    r = mm.registry.call("transfer_ownership", alice, sender=owner)
    assert r.events_named(b"OwnershipTransferred")[0].args == {"previous": owner, "new": alice}
    assert mm.registry.view("owner") == alice
    # the new owner administers every role
    mm.registry.call("grant_role", MATCH_MODERATOR, bob, sender=alice)

    mm.registry.call("renounce_ownership", sender=alice)
    assert mm.registry.view("owner") == bytes(32)
