"""
matchvm.errors — structured failures raised by the contract host.

Two families:

- ``VmError``: the host refused or could not complete an operation
  (unknown entrypoint, static-call write, malformed storage key, ...).
- ``Revert``: the contract itself aborted via ``abi.revert``/``abi.require``.
  The byte ``reason`` (for example ``b"MATCH:NOT_FOUND"``) is the stable,
  machine-readable identity of the failure.

Either way the host rolls back every write made by the failed call before the
exception reaches the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping


@dataclass(eq=False)
class VmError(Exception):
    """
    Structured error used by the host.

    Supported call patterns:

        VmError("simple message")
        VmError("message", code="some_code", context={...})

    Attributes:
        code: short machine-readable code string
        message: human-readable message
        context: optional extra fields for debugging
    """

    code: str
    message: str
    context: Dict[str, Any]

    def __init__(self, message: Any = "", *, code: str = "vm_error", context: Any = None) -> None:
        message = str(message)
        if context is None:
            ctx: Dict[str, Any] = {}
        elif isinstance(context, Mapping):
            ctx = dict(context)
        else:
            ctx = dict(context)  # type: ignore[arg-type]

        super().__init__(message)
        object.__setattr__(self, "code", str(code))
        object.__setattr__(self, "message", message)
        object.__setattr__(self, "context", ctx)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
        }


class Revert(VmError):
    """Contract-initiated abort carrying a byte reason code."""

    def __init__(self, reason: bytes = b"", *, context: Any = None) -> None:
        if isinstance(reason, str):
            reason = reason.encode("utf-8")
        if not isinstance(reason, (bytes, bytearray)):
            raise TypeError(f"revert reason must be bytes, got {type(reason).__name__}")
        self.reason = bytes(reason)
        super().__init__(self.reason.decode("utf-8", "replace"), code="revert", context=context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["reason"] = self.reason.decode("utf-8", "replace")
        return d


class ValidationError(VmError):
    """Malformed storage or event input."""

    def __init__(self, message: Any = "", *, code: str = "invalid", context: Any = None) -> None:
        super().__init__(message, code=code, context=context)


class CallDepthError(VmError):
    """Nested contract calls went deeper than the configured bound."""

    def __init__(self, depth: int, limit: int) -> None:
        super().__init__(
            f"call depth {depth} exceeds limit {limit}",
            code="call_depth",
            context={"depth": depth, "limit": limit},
        )


__all__ = ["VmError", "Revert", "ValidationError", "CallDepthError"]
