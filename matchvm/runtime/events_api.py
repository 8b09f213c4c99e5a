from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from matchvm.errors import ValidationError, VmError
from matchvm.runtime import context as _ctx

# Basic bounds.
MAX_EVENT_NAME_BYTES = 64
MAX_KEY_LEN = 64
MAX_BYTES_LEN = 4096
MAX_INT_BITS = 256

# Keys must be identifier-like: letters/underscore, then letters/digits/underscore.
_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

ArgValue = Any  # constrained at runtime


@dataclass(frozen=True)
class Event:
    """An event emitted by the contract at `address`."""

    address: bytes
    name: bytes
    args: Dict[str, ArgValue]

    def to_dict(self) -> Dict[str, Any]:
        """
        JSON-friendly view:

            {"address": "0x..", "name": "Sent", "args": {...}}

        bytes args become 0x-hex strings; ints and bools pass through.
        """
        out: Dict[str, Any] = {}
        for k, v in self.args.items():
            out[k] = _ctx.to_hex(v) if isinstance(v, bytes) else v
        return {
            "address": _ctx.to_hex(self.address),
            "name": self.name.decode("ascii", "replace"),
            "args": out,
        }


@dataclass(frozen=True)
class CanonicalEvent:
    """
    Canonical event representation for receipts:

        name: "0x" + hex-encoded event name bytes
        args: sequence of {"k", "t", "v"} dicts
              t="b" => bytes encoded as 0x-prefixed hex
              t="i" => integer
              t="z" => boolean
    """

    address: str
    name: str
    args: Sequence[Mapping[str, Any]]


# --- Validation helpers -----------------------------------------------------


def _check_name(name: Any) -> bytes:
    if not isinstance(name, (bytes, bytearray)):
        raise ValidationError(
            "event name must be bytes",
            code="event_invalid",
            context={"where": "name_type"},
        )
    b = bytes(name)
    if len(b) == 0:
        raise ValidationError(
            "event name must be non-empty",
            code="event_invalid",
            context={"where": "name_empty"},
        )
    if len(b) > MAX_EVENT_NAME_BYTES:
        raise ValidationError(
            "event name too long",
            code="event_invalid",
            context={"where": "name_length", "len": len(b)},
        )
    return b


def _check_key(key: Any) -> str:
    # contracts usually pass bytes keys; receipts carry str
    if isinstance(key, (bytes, bytearray)):
        try:
            key = bytes(key).decode("ascii")
        except UnicodeDecodeError:
            raise ValidationError(
                "event key must be ASCII",
                code="event_invalid",
                context={"where": "key_ascii"},
            ) from None
    if not isinstance(key, str):
        raise ValidationError(
            "event key must be str or bytes",
            code="event_invalid",
            context={"where": "key_type"},
        )
    if len(key) == 0 or len(key) > MAX_KEY_LEN:
        raise ValidationError(
            "event key length out of range",
            code="event_invalid",
            context={"where": "key_length", "len": len(key)},
        )
    if not _KEY_RE.match(key):
        raise ValidationError(
            "event key has invalid characters",
            code="event_invalid",
            context={"where": "key_grammar", "key": key},
        )
    return key


def _check_value(value: Any) -> ArgValue:
    if isinstance(value, (bytes, bytearray)):
        b = bytes(value)
        if len(b) > MAX_BYTES_LEN:
            raise ValidationError(
                "event bytes arg too long",
                code="event_invalid",
                context={"where": "value_bytes_length", "len": len(b)},
            )
        return b

    if isinstance(value, bool):
        # bool is a subclass of int, so check it before int.
        return value

    if isinstance(value, int):
        if value.bit_length() > MAX_INT_BITS:
            raise ValidationError(
                "event int arg out of range",
                code="event_invalid",
                context={"where": "value_int_bits", "bits": value.bit_length()},
            )
        return int(value)

    raise ValidationError(
        "unsupported event arg type",
        code="event_invalid",
        context={"where": "value_type", "py_type": type(value).__name__},
    )


# --- Event log ----------------------------------------------------------------


class EventLog:
    """
    Append-only log of every event committed on a host.

    The host takes a ``mark()`` before each call and ``rewind(mark)`` when the
    call fails, so events from reverted calls never survive.
    """

    def __init__(self) -> None:
        self._events: List[Event] = []

    def __len__(self) -> int:
        return len(self._events)

    def mark(self) -> int:
        return len(self._events)

    def rewind(self, mark: int) -> None:
        del self._events[mark:]

    def since(self, mark: int) -> Tuple[Event, ...]:
        return tuple(self._events[mark:])

    def append(self, event: Event, *, tx_mark: int, limit: int) -> None:
        if len(self._events) - tx_mark >= limit:
            raise VmError(
                "too many events in one transaction",
                code="event_limit",
                context={"limit": limit},
            )
        self._events.append(event)

    def all(self) -> Tuple[Event, ...]:
        return tuple(self._events)

    def clear(self) -> None:
        self._events.clear()


# --- Contract-facing API ------------------------------------------------------


def emit(name: bytes, args: Mapping[Any, Any]) -> None:
    """Validate and append an event for the executing contract."""
    host, frame = _ctx.current()
    if frame.static:
        raise VmError(
            "event emission in static call",
            code="static_violation",
            context=frame.to_dict(),
        )

    bname = _check_name(name)
    if not isinstance(args, Mapping):
        raise ValidationError(
            "event args must be a mapping",
            code="event_invalid",
            context={"where": "args_type"},
        )

    checked_args: Dict[str, ArgValue] = {}
    for raw_k, raw_v in args.items():
        checked_args[_check_key(raw_k)] = _check_value(raw_v)

    host.events.append(
        Event(frame.address, bname, checked_args),
        tx_mark=host.tx_event_mark,
        limit=host.config.max_logs_per_tx,
    )


def events_for_receipt(events: Sequence[Event]) -> List[CanonicalEvent]:
    """Convert events into canonical receipt events."""
    out: List[CanonicalEvent] = []
    for ev in events:
        enc_args: List[Dict[str, Any]] = []
        for k, v in ev.args.items():
            if isinstance(v, bytes):
                enc_args.append({"k": k, "t": "b", "v": _ctx.to_hex(v)})
            elif isinstance(v, bool):
                enc_args.append({"k": k, "t": "z", "v": v})
            else:
                enc_args.append({"k": k, "t": "i", "v": int(v)})
        out.append(
            CanonicalEvent(
                address=_ctx.to_hex(ev.address),
                name=_ctx.to_hex(ev.name),
                args=tuple(enc_args),
            )
        )
    return out


__all__ = [
    "Event",
    "CanonicalEvent",
    "EventLog",
    "emit",
    "events_for_receipt",
    "MAX_EVENT_NAME_BYTES",
    "MAX_KEY_LEN",
    "MAX_BYTES_LEN",
    "MAX_INT_BITS",
]
