from __future__ import annotations

import pytest

from matchvm.errors import ValidationError, VmError
from matchvm.runtime import context as ctx
from matchvm.runtime import events_api
from matchvm.runtime.events_api import Event, EventLog, events_for_receipt
from matchvm.runtime.hash_api import keccak256, sha3_256
from matchvm.runtime.host import Host
from matchvm.stdlib import codec

CONTRACT = sha3_256(b"contract")
SENDER = sha3_256(b"sender")


@pytest.fixture()
def frame():
    """Run the body inside a bare frame on a fresh host."""
    host = Host()
    ctx.push_frame(host, ctx.CallFrame(CONTRACT, SENDER, 1))
    try:
        yield host
    finally:
        ctx.pop_frame()


# --- events ---------------------------------------------------------------------


def test_emit_normalizes_keys(frame):
    events_api.emit(b"Sent", {b"id": 1, "ok": True, b"who": SENDER})
    (ev,) = frame.events.all()
    assert ev == Event(CONTRACT, b"Sent", {"id": 1, "ok": True, "who": SENDER})


@pytest.mark.parametrize(
    "name,args",
    [
        ("Sent", {"id": 1}),
        (b"", {"id": 1}),
        (b"x" * 65, {"id": 1}),
        (b"Sent", [("id", 1)]),
        (b"Sent", {"1bad": 1}),
        (b"Sent", {"has space": 1}),
        (b"Sent", {"": 1}),
        (b"Sent", {"f": 1.5}),
        (b"Sent", {"s": "text"}),
        (b"Sent", {"big": 1 << 256}),
        (b"Sent", {"blob": b"\x00" * 4097}),
    ],
)
def test_emit_rejects_malformed(frame, name, args):
    with pytest.raises(ValidationError) as ei:
        events_api.emit(name, args)
    assert ei.value.code == "event_invalid"
    assert len(frame.events) == 0


def test_emit_outside_a_call_fails():
    with pytest.raises(VmError) as ei:
        events_api.emit(b"Sent", {})
    assert ei.value.code == "no_active_frame"


def test_event_log_mark_and_rewind():
    log = EventLog()
    for i in range(3):
        log.append(Event(CONTRACT, b"E", {"i": i}), tx_mark=0, limit=10)
    m = log.mark()
    log.append(Event(CONTRACT, b"E", {"i": 3}), tx_mark=0, limit=10)
    assert [e.args["i"] for e in log.since(m)] == [3]
    log.rewind(m)
    assert len(log) == 3


def test_event_to_dict_and_receipt_form():
    ev = Event(CONTRACT, b"Win", {"winner": b"\xab", "amount": 10, "paid": True})
    assert ev.to_dict() == {
        "address": "0x" + CONTRACT.hex(),
        "name": "Win",
        "args": {"winner": "0xab", "amount": 10, "paid": True},
    }
    (canon,) = events_for_receipt([ev])
    assert canon.name == "0x" + b"Win".hex()
    assert list(canon.args) == [
        {"k": "winner", "t": "b", "v": "0xab"},
        {"k": "amount", "t": "i", "v": 10},
        {"k": "paid", "t": "z", "v": True},
    ]


# --- codec ---------------------------------------------------------------------


def test_codec_is_canonical_regardless_of_insertion_order():
    a = codec.dumps({"state": 1, "id": 7, "amount": 2000})
    b = codec.dumps({"amount": 2000, "id": 7, "state": 1})
    assert a == b
    assert codec.loads(a) == {"id": 7, "state": 1, "amount": 2000}


def test_codec_preserves_bytes_and_big_ints():
    rec = {"initiator": SENDER, "amount": (1 << 256) - 1, "frozen": False, "ids": [1, 2, 3]}
    assert codec.loads(codec.dumps(rec)) == rec


@pytest.mark.parametrize("bad", [{1: "int key"}, {"x": 0.5}, [1.0], {"nested": {b"k": 1}}])
def test_codec_rejects_non_portable_values(bad):
    with pytest.raises(ValidationError) as ei:
        codec.dumps(bad)
    assert ei.value.code == "codec_invalid"


def test_codec_rejects_garbage():
    with pytest.raises(ValidationError):
        codec.loads(b"\x82\x01")
    with pytest.raises(ValidationError):
        codec.loads("not bytes")


# --- hashing --------------------------------------------------------------------


def test_hash_vectors():
    assert sha3_256(b"").hex() == "a7ffc6f8bf1ed76651c14756a061d662f580ff4de43b49fa82d80a4b80f8434a"
    assert keccak256(b"").hex() == "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
    with pytest.raises(ValidationError):
        sha3_256("text")
