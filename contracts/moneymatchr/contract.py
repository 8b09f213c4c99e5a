# -*- coding: utf-8 -*-
"""
Moneymatchr registry contract
=============================

Two players stake SMSH on a best-of-``max_matches`` series. The registry
holds the stake and pays the whole pool out only when both players name the
same winner for enough rounds. Repeated disagreement freezes the match; a
moderator can then unwind it by returning each player's own stake.

Lifecycle
---------
    start ──► Sent ──accept──► Started ◄──────┐
               │                  │ agree       │ round agreed, no majority yet
            decline               ▼             │
               │               Voting ──────────┘
               ▼                  │ agreed & majority      │ attempts hit the bound
           (deleted)              ▼                        ▼
                              Finished (deleted)         Frozen ──emergency_withdraw──► Disputed (deleted)

Terminal transitions delete the record and both index entries; reads of a
deleted or never-created id return the zero record.

State & storage layout
----------------------
    "mm:inited"          -> b"1"
    "mm:token"           -> ledger contract address
    "mm:max_attempts"    -> uint
    "mm:next_id"         -> uint, next id to assign (starts at 1; 0 is the null id)
    "mm:match:" + u256   -> canonical CBOR map (see RECORD_FIELDS)
    "mm:idx:"   + addr   -> canonical CBOR list of ids, insertion order

Escrow invariant
----------------
The registry's ledger balance equals the sum of ``amount`` over live records:
the per-side amount while Sent, the pooled amount (2x) afterwards.

Error codes (revert messages)
-----------------------------
- b"MATCH:ALREADY_INIT", b"MATCH:NEEDS_TOKEN", b"MATCH:INVALID_OWNER", b"MATCH:BAD_ATTEMPTS"
- b"MATCH:NULL_OPPONENT", b"MATCH:SELF_MATCH", b"MATCH:BAD_AMOUNT", b"MATCH:EVEN_MAX_MATCHES"
- b"MATCH:INSUFFICIENT_BALANCE", b"MATCH:NOT_APPROVED", b"MATCH:TRANSFER_FAILED", b"MATCH:ID_EXISTS"
- b"MATCH:NULL_ID", b"MATCH:NOT_FOUND", b"MATCH:NOT_OPPONENT", b"MATCH:NOT_PENDING"
- b"MATCH:AMOUNT_MISMATCH", b"MATCH:NOT_PARTICIPANT", b"MATCH:NOT_VOTING", b"MATCH:BAD_CLAIM"
- b"MATCH:NOT_MODERATOR", b"MATCH:CONSENSUS_POSSIBLE"

Events (names)
--------------
- b"Sent"      {id, initiator, opponent, amount}
- b"Accepted"  {id, opponent}
- b"Declined"  {id, opponent}
- b"Agree"     {id, voter, claimed}
- b"Win"       {id, winner, amount}
- b"Freeze"    {id, attempts}
- b"Disputed"  {id, moderator, refund}
"""
from __future__ import annotations

from typing import Any, Dict, Final, List, Optional

from matchvm.stdlib import abi, codec, events, storage

from contracts.moneymatchr import (DEFAULT_MAX_AGREEMENT_ATTEMPTS,
                                   MATCH_MODERATOR, MatchState, majority,
                                   zero_record)
from contracts.stdlib import access
from contracts.stdlib.math import is_u256
from contracts.stdlib.math.safe_uint import u256_add, u256_div, u256_mul

NULL: Final[bytes] = bytes(32)

SENT: Final[int] = int(MatchState.Sent)
STARTED: Final[int] = int(MatchState.Started)
VOTING: Final[int] = int(MatchState.Voting)
FINISHED: Final[int] = int(MatchState.Finished)
FROZEN: Final[int] = int(MatchState.Frozen)
DISPUTED: Final[int] = int(MatchState.Disputed)

# Storage keys
K_INIT: Final[bytes] = b"mm:inited"
K_TOKEN: Final[bytes] = b"mm:token"
K_MAX_ATTEMPTS: Final[bytes] = b"mm:max_attempts"
K_NEXT_ID: Final[bytes] = b"mm:next_id"
_P_MATCH: Final[bytes] = b"mm:match:"
_P_INDEX: Final[bytes] = b"mm:idx:"

# Events
EVT_SENT: Final[bytes] = b"Sent"
EVT_ACCEPTED: Final[bytes] = b"Accepted"
EVT_DECLINED: Final[bytes] = b"Declined"
EVT_AGREE: Final[bytes] = b"Agree"
EVT_WIN: Final[bytes] = b"Win"
EVT_FREEZE: Final[bytes] = b"Freeze"
EVT_DISPUTED: Final[bytes] = b"Disputed"


# ---------- Small helpers ----------


def _is_account(a: Any) -> bool:
    return isinstance(a, (bytes, bytearray)) and len(a) == 32 and bytes(a) != NULL


def _match_key(match_id: int) -> bytes:
    return _P_MATCH + match_id.to_bytes(32, "big")


def _index_key(account: bytes) -> bytes:
    return _P_INDEX + account


def _load(match_id: Any) -> Optional[Dict[str, Any]]:
    """Absent -> None; active -> the stored record."""
    if not is_u256(match_id) or match_id == 0:
        return None
    raw = storage.get(_match_key(match_id))
    if raw is None:
        return None
    return codec.loads(raw)


def _existing(match_id: Any) -> Dict[str, Any]:
    if not is_u256(match_id) or match_id == 0:
        abi.revert(b"MATCH:NULL_ID")
    rec = _load(match_id)
    if rec is None:
        abi.revert(b"MATCH:NOT_FOUND")
    return rec


def _save(rec: Dict[str, Any]) -> None:
    storage.set(_match_key(rec["id"]), codec.dumps(rec))


def _index(account: bytes) -> List[int]:
    raw = storage.get(_index_key(account))
    return list(codec.loads(raw)) if raw is not None else []


def _index_add(account: bytes, match_id: int) -> None:
    ids = _index(account)
    if match_id not in ids:
        ids.append(match_id)
        storage.set(_index_key(account), codec.dumps(ids))


def _index_remove(account: bytes, match_id: int) -> None:
    ids = _index(account)
    if match_id not in ids:
        return
    ids.remove(match_id)
    if ids:
        storage.set(_index_key(account), codec.dumps(ids))
    else:
        storage.delete(_index_key(account))


def _purge(rec: Dict[str, Any]) -> None:
    storage.delete(_match_key(rec["id"]))
    _index_remove(rec["initiator"], rec["id"])
    _index_remove(rec["opponent"], rec["id"])


# ---------- Ledger boundary ----------


def _token() -> bytes:
    return storage.get(K_TOKEN) or NULL


def _collect(payer: bytes, amount: int) -> None:
    """Pull `amount` from `payer` into escrow via the ledger's delegated transfer."""
    token = _token()
    me = abi.this_address()
    if abi.call(token, "balance_of", payer) < amount:
        abi.revert(b"MATCH:INSUFFICIENT_BALANCE")
    if abi.call(token, "allowance", payer, me) < amount:
        abi.revert(b"MATCH:NOT_APPROVED")
    if not abi.call(token, "transfer_from", payer, me, amount):
        abi.revert(b"MATCH:TRANSFER_FAILED")


def _pay(to: bytes, amount: int) -> None:
    if not abi.call(_token(), "transfer", to, amount):
        abi.revert(b"MATCH:TRANSFER_FAILED")


def _is_moderator(account: bytes) -> bool:
    return access.has_role(MATCH_MODERATOR, account)


# ---------- Deployment ----------


def init(owner: bytes, token: bytes, max_agreement_attempts: int = DEFAULT_MAX_AGREEMENT_ATTEMPTS) -> None:
    if storage.get(K_INIT):
        abi.revert(b"MATCH:ALREADY_INIT")
    if not _is_account(token):
        abi.revert(b"MATCH:NEEDS_TOKEN")
    if not _is_account(owner):
        abi.revert(b"MATCH:INVALID_OWNER")
    if not isinstance(max_agreement_attempts, int) or isinstance(max_agreement_attempts, bool) \
            or not 1 <= max_agreement_attempts <= 255:
        abi.revert(b"MATCH:BAD_ATTEMPTS")

    storage.set(K_TOKEN, bytes(token))
    storage.set_int(K_MAX_ATTEMPTS, max_agreement_attempts)
    storage.set_int(K_NEXT_ID, 1)
    storage.set(K_INIT, b"1")

    access.init_owner(owner)
    access.grant_role(owner, access.DEFAULT_ADMIN_ROLE, owner)
    access.grant_role(owner, MATCH_MODERATOR, owner)


# ---------- Creation & admission ----------


def start(opponent: bytes, amount: int, max_matches: int) -> int:
    """Open a challenge and escrow the initiator's stake. Returns the new id."""
    initiator = abi.sender()

    if not _is_account(opponent):
        abi.revert(b"MATCH:NULL_OPPONENT")
    opponent = bytes(opponent)
    if opponent == initiator:
        abi.revert(b"MATCH:SELF_MATCH")
    if not is_u256(amount) or amount == 0:
        abi.revert(b"MATCH:BAD_AMOUNT")
    if not is_u256(max_matches) or max_matches % 2 == 0:
        abi.revert(b"MATCH:EVEN_MAX_MATCHES")

    _collect(initiator, amount)

    match_id = storage.get_int(K_NEXT_ID, 1)
    if storage.exists(_match_key(match_id)):
        abi.revert(b"MATCH:ID_EXISTS")
    storage.set_int(K_NEXT_ID, u256_add(match_id, 1))

    rec = zero_record()
    rec.update(
        id=match_id,
        initiator=initiator,
        opponent=opponent,
        amount=amount,
        max_matches=max_matches,
        state=SENT,
    )
    _save(rec)
    _index_add(initiator, match_id)

    events.emit(EVT_SENT, {b"id": match_id, b"initiator": initiator, b"opponent": opponent, b"amount": amount})
    return match_id


def accept(match_id: int, amount: int) -> Dict[str, Any]:
    """Opponent matches the stake; the pool doubles and round one begins."""
    caller = abi.sender()
    rec = _existing(match_id)
    if caller != rec["opponent"]:
        abi.revert(b"MATCH:NOT_OPPONENT")
    if rec["state"] != SENT:
        abi.revert(b"MATCH:NOT_PENDING")
    if amount != rec["amount"]:
        abi.revert(b"MATCH:AMOUNT_MISMATCH")

    _collect(caller, amount)

    rec["amount"] = u256_mul(amount, 2)
    rec["state"] = STARTED
    _save(rec)
    _index_add(caller, rec["id"])

    events.emit(EVT_ACCEPTED, {b"id": rec["id"], b"opponent": caller})
    return rec


def decline(match_id: int) -> Dict[str, Any]:
    """Opponent refuses a pending challenge; the initiator gets the stake back."""
    caller = abi.sender()
    rec = _existing(match_id)
    if caller != rec["opponent"]:
        abi.revert(b"MATCH:NOT_OPPONENT")
    if rec["state"] != SENT:
        abi.revert(b"MATCH:NOT_PENDING")

    _pay(rec["initiator"], rec["amount"])
    _purge(rec)

    events.emit(EVT_DECLINED, {b"id": rec["id"], b"opponent": caller})
    return rec


# ---------- Agreement protocol ----------


def agree(match_id: int, claimed_winner: bytes) -> Dict[str, Any]:
    """
    Vote for who won the current round.

    The first vote of a round opens voting. Re-voting before the other side
    has voted overwrites the caller's own vote. Once both slots are filled the
    round resolves: matching votes score a point (and may settle the series);
    differing votes count one disagreement attempt, freezing the match when
    the bound is reached.

    Returns the record as it stands after this vote, terminal state included.
    """
    caller = abi.sender()
    rec = _existing(match_id)
    initiator, opponent = rec["initiator"], rec["opponent"]
    if caller != initiator and caller != opponent:
        abi.revert(b"MATCH:NOT_PARTICIPANT")
    if rec["state"] not in (STARTED, VOTING):
        abi.revert(b"MATCH:NOT_VOTING")
    if claimed_winner != initiator and claimed_winner != opponent:
        abi.revert(b"MATCH:BAD_CLAIM")
    claimed = bytes(claimed_winner)

    if caller == initiator:
        rec["initiator_agreement"] = claimed
    else:
        rec["opponent_agreement"] = claimed
    vote = {b"id": rec["id"], b"voter": caller, b"claimed": claimed}

    first, second = rec["initiator_agreement"], rec["opponent_agreement"]
    if first == NULL or second == NULL:
        rec["state"] = VOTING
        _save(rec)
        events.emit(EVT_AGREE, vote)
        return rec

    rec["initiator_agreement"] = NULL
    rec["opponent_agreement"] = NULL

    if first != second:
        rec["attempts"] += 1
        if rec["attempts"] >= storage.get_int(K_MAX_ATTEMPTS, DEFAULT_MAX_AGREEMENT_ATTEMPTS):
            rec["frozen"] = True
            rec["state"] = FROZEN
        else:
            rec["state"] = VOTING
        _save(rec)
        events.emit(EVT_AGREE, vote)
        if rec["frozen"]:
            events.emit(EVT_FREEZE, {b"id": rec["id"], b"attempts": rec["attempts"]})
        return rec

    score_field = "initiator_score" if first == initiator else "opponent_score"
    rec[score_field] += 1
    rec["attempts"] = 0
    rec["frozen"] = False

    if rec[score_field] < majority(rec["max_matches"]):
        rec["state"] = STARTED
        _save(rec)
        events.emit(EVT_AGREE, vote)
        return rec

    pool = rec["amount"]
    _pay(first, pool)
    rec["winner"] = first
    rec["state"] = FINISHED
    _purge(rec)
    events.emit(EVT_AGREE, vote)
    events.emit(EVT_WIN, {b"id": rec["id"], b"winner": first, b"amount": pool})
    return rec


# ---------- Emergency resolution ----------


def emergency_withdraw(match_id: int) -> Dict[str, Any]:
    """Moderator unwinds a frozen match: each side gets exactly its own stake back."""
    caller = abi.sender()
    if not _is_moderator(caller):
        abi.revert(b"MATCH:NOT_MODERATOR")
    rec = _existing(match_id)
    if rec["state"] != FROZEN:
        abi.revert(b"MATCH:CONSENSUS_POSSIBLE")

    stake = u256_div(rec["amount"], 2)
    _pay(rec["initiator"], stake)
    _pay(rec["opponent"], stake)

    rec["state"] = DISPUTED
    _purge(rec)

    events.emit(EVT_DISPUTED, {b"id": rec["id"], b"moderator": caller, b"refund": stake})
    return rec


# ---------- Queries ----------


def get_match(match_id: int) -> Dict[str, Any]:
    """The stored record, or the zero record. Never reverts."""
    rec = _load(match_id)
    return rec if rec is not None else zero_record()


def get_matches_for_caller() -> List[Dict[str, Any]]:
    """Live records of every match the caller is party to, in insertion order."""
    out = []
    for match_id in _index(abi.sender()):
        rec = _load(match_id)
        if rec is not None:
            out.append(rec)
    return out


get_matchs_for_caller = get_matches_for_caller


def token() -> bytes:
    return _token()


def owner() -> bytes:
    return access.get_owner() or NULL


def max_agreement_attempts() -> int:
    return storage.get_int(K_MAX_ATTEMPTS, DEFAULT_MAX_AGREEMENT_ATTEMPTS)


def next_id() -> int:
    return storage.get_int(K_NEXT_ID, 1)


def moderator_role() -> bytes:
    return MATCH_MODERATOR


def is_moderator(account: bytes) -> bool:
    return _is_moderator(account)


def has_role(role: bytes, account: bytes) -> bool:
    return access.has_role(role, account)


# ---------- Role administration ----------


def grant_role(role: bytes, account: bytes) -> None:
    access.grant_role(abi.sender(), role, account)


def revoke_role(role: bytes, account: bytes) -> None:
    access.revoke_role(abi.sender(), role, account)


def renounce_role(role: bytes) -> None:
    access.renounce_role(abi.sender(), role)


def set_role_admin(role: bytes, admin_role: bytes) -> None:
    access.set_role_admin(abi.sender(), role, admin_role)


def role_admin(role: bytes) -> bytes:
    return access.get_role_admin(role)


# ---------- Ownership ----------


def transfer_ownership(new_owner: bytes) -> None:
    if not _is_account(new_owner):
        abi.revert(b"MATCH:INVALID_OWNER")
    access.transfer_ownership(abi.sender(), bytes(new_owner))


def renounce_ownership() -> None:
    access.renounce_ownership(abi.sender())


__all__ = [
    "init",
    # lifecycle
    "start",
    "accept",
    "decline",
    "agree",
    "emergency_withdraw",
    # queries
    "get_match",
    "get_matches_for_caller",
    "get_matchs_for_caller",
    "token",
    "owner",
    "max_agreement_attempts",
    "next_id",
    "moderator_role",
    "is_moderator",
    "has_role",
    "role_admin",
    # roles
    "grant_role",
    "revoke_role",
    "renounce_role",
    "set_role_admin",
    # ownership
    "transfer_ownership",
    "renounce_ownership",
]
