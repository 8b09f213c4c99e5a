"""
Moneymatchr: best-of-N wager escrow with two-party consensus payout.

This package holds what both the contract and off-chain tools need: the
state enum, the moderator role id, and a typed ``Match`` view over the plain
dict records the contract returns from ``get_match`` / ``agree`` / etc.

    rec = registry.view("get_match", 1)
    m = Match.from_record(rec)
    if m.is_absent: ...
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Mapping

from matchvm.runtime.context import NULL_ADDRESS
from matchvm.runtime.hash_api import sha3_256

CONTRACT_MODULE = "contracts.moneymatchr.contract"

DEFAULT_MAX_AGREEMENT_ATTEMPTS = 3
MATCH_MODERATOR: bytes = sha3_256(b"MATCH_MODERATOR")


class MatchState(IntEnum):
    Sent = 0
    Started = 1
    Voting = 2
    Finished = 3
    Frozen = 4
    Disputed = 5


RECORD_FIELDS = (
    "id",
    "initiator",
    "opponent",
    "amount",
    "max_matches",
    "initiator_score",
    "opponent_score",
    "winner",
    "initiator_agreement",
    "opponent_agreement",
    "attempts",
    "frozen",
    "state",
)


def zero_record() -> Dict[str, Any]:
    """The record every missing or purged id reads as."""
    return {
        "id": 0,
        "initiator": NULL_ADDRESS,
        "opponent": NULL_ADDRESS,
        "amount": 0,
        "max_matches": 0,
        "initiator_score": 0,
        "opponent_score": 0,
        "winner": NULL_ADDRESS,
        "initiator_agreement": NULL_ADDRESS,
        "opponent_agreement": NULL_ADDRESS,
        "attempts": 0,
        "frozen": False,
        "state": int(MatchState.Sent),
    }


def majority(max_matches: int) -> int:
    """Rounds needed to win a best-of-`max_matches` series."""
    return max_matches // 2 + 1


@dataclass(frozen=True)
class Match:
    id: int
    initiator: bytes
    opponent: bytes
    amount: int
    max_matches: int
    initiator_score: int
    opponent_score: int
    winner: bytes
    initiator_agreement: bytes
    opponent_agreement: bytes
    attempts: int
    frozen: bool
    state: MatchState

    @classmethod
    def from_record(cls, rec: Mapping[str, Any]) -> "Match":
        missing = [f for f in RECORD_FIELDS if f not in rec]
        if missing:
            raise ValueError(f"match record missing fields: {', '.join(missing)}")
        kw = {f: rec[f] for f in RECORD_FIELDS}
        kw["state"] = MatchState(int(rec["state"]))
        kw["frozen"] = bool(rec["frozen"])
        for f in ("initiator", "opponent", "winner", "initiator_agreement", "opponent_agreement"):
            kw[f] = bytes(kw[f])
        return cls(**kw)

    @property
    def is_absent(self) -> bool:
        """True for the zero record (never created, or deleted)."""
        return self.id == 0

    @property
    def majority(self) -> int:
        return majority(self.max_matches)

    @property
    def stake(self) -> int:
        """What each side has put in."""
        return self.amount if self.state == MatchState.Sent else self.amount // 2

    def has_winner(self) -> bool:
        return self.winner != NULL_ADDRESS

    def to_record(self) -> Dict[str, Any]:
        rec = {f: getattr(self, f) for f in RECORD_FIELDS}
        rec["state"] = int(self.state)
        return rec


__all__ = [
    "CONTRACT_MODULE",
    "DEFAULT_MAX_AGREEMENT_ATTEMPTS",
    "MATCH_MODERATOR",
    "MatchState",
    "RECORD_FIELDS",
    "zero_record",
    "majority",
    "Match",
]
