from __future__ import annotations

from typing import Any, Mapping

from matchvm.runtime import events_api as _rt

# Re-export so tests and tools can import the type from stdlib.events
Event = _rt.Event


def emit(name: bytes, args: Mapping[Any, Any]) -> None:
    """
    Contract-facing emit:

        emit(b"Transfer", {b"from": a, b"to": b, b"value": 1})

    Keys may be bytes or str (normalized to str); values are bytes, bool or
    int. The event is tagged with the executing contract's address.
    """
    if not isinstance(name, (bytes, bytearray)):
        raise TypeError(f"event name must be bytes, got {type(name).__name__}")
    _rt.emit(bytes(name), args)


__all__ = ["Event", "emit"]
