"""
matchvm.runtime.host — in-process contract host.

A ``Host`` deploys plain Python modules as contracts and runs their
entrypoints one transaction at a time:

    host = Host()
    token = host.deploy("contracts.smashpros.contract", sender=owner, init_args=(owner,))
    receipt = host.call(token.address, "mint", alice, 1_000, sender=owner)
    assert receipt.ok

Execution rules
---------------
- Only names listed in a contract module's ``__all__`` are callable.
- Every call runs under one re-entrant lock; calls never interleave.
- Every frame (top-level or nested) is atomic: storage and the event log are
  checkpointed on entry and rolled back if *anything* is raised, then the
  exception propagates unchanged. Storage undo replays the write journal, so
  it costs what the frame wrote.
- ``abi.call`` from inside a contract opens a nested frame whose sender is
  the calling contract. Nesting depth is bounded by ``max_call_depth``.
- ``view`` runs in a static frame: storage writes and events are rejected.
"""

from __future__ import annotations

import importlib
import logging
import threading
from dataclasses import dataclass, field
from types import ModuleType
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from matchvm.config import VMConfig, load_config
from matchvm.errors import CallDepthError, Revert, VmError
from matchvm.runtime import context as _ctx
from matchvm.runtime.context import BlockEnv, CallFrame, to_address, to_hex
from matchvm.runtime.events_api import Event, EventLog
from matchvm.runtime.hash_api import hash_concat_keccak256
from matchvm.runtime.storage_api import MemoryBackend, StorageBackend

log = logging.getLogger(__name__)

GENESIS_TIMESTAMP = 1_700_000_000
BLOCK_TIME_S = 12

AddressLike = Union[bytes, bytearray, str]


def _jsonable(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return to_hex(v)
    if isinstance(v, dict):
        return {str(k): _jsonable(x) for k, x in v.items()}
    if isinstance(v, (list, tuple)):
        return [_jsonable(x) for x in v]
    return v


@dataclass(frozen=True)
class Receipt:
    """
    Outcome of one top-level call.

    status: "ok" or "revert" (reverts only surface here with ``check=False``).
    value:  the entrypoint's return value.
    events: events emitted by this call (nested frames included).
    reason: the revert reason for failed calls.
    """

    status: str
    value: Any = None
    events: Tuple[Event, ...] = ()
    reason: Optional[bytes] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def events_named(self, name: bytes) -> Tuple[Event, ...]:
        return tuple(e for e in self.events if e.name == name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "value": _jsonable(self.value),
            "events": [e.to_dict() for e in self.events],
            "reason": self.reason.decode("utf-8", "replace") if self.reason is not None else None,
        }


@dataclass(frozen=True)
class ContractHandle:
    """Deployed contract: address plus call helpers bound to its host."""

    host: "Host" = field(repr=False)
    address: bytes
    label: str

    def call(self, fn: str, *args: Any, sender: AddressLike, check: bool = True) -> Receipt:
        return self.host.call(self.address, fn, *args, sender=sender, check=check)

    def view(self, fn: str, *args: Any, sender: Optional[AddressLike] = None) -> Any:
        return self.host.view(self.address, fn, *args, sender=sender)

    @property
    def hex(self) -> str:
        return to_hex(self.address)


class Host:
    def __init__(
        self,
        config: Optional[VMConfig] = None,
        *,
        block: Optional[BlockEnv] = None,
        backend: Optional[StorageBackend] = None,
    ) -> None:
        self.config = config or load_config()
        self.block = block or BlockEnv(height=0, timestamp=GENESIS_TIMESTAMP, chain_id=self.config.chain_id)
        self.storage: StorageBackend = backend if backend is not None else MemoryBackend()
        self.events = EventLog()
        # index of the first event belonging to the running top-level call
        self.tx_event_mark = 0

        self._contracts: Dict[bytes, ModuleType] = {}
        self._labels: Dict[bytes, str] = {}
        self._nonces: Dict[bytes, int] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------ #
    # Deployment
    # ------------------------------------------------------------------ #

    def deploy(
        self,
        module: Union[str, ModuleType],
        *,
        sender: AddressLike,
        init_args: Sequence[Any] = (),
        label: Optional[str] = None,
    ) -> ContractHandle:
        """
        Register `module` at a fresh address and run its ``init`` entrypoint.

        The address is keccak256(sender || nonce || label). If ``init``
        fails, the deployment is undone and the error re-raised.
        """
        mod = importlib.import_module(module) if isinstance(module, str) else module
        sender_b = to_address(sender)
        name = label or mod.__name__

        with self._lock:
            self._require_idle()
            nonce = self._nonces.get(sender_b, 0)
            address = hash_concat_keccak256(sender_b, nonce.to_bytes(8, "big"), name.encode("utf-8"))
            if address in self._contracts:
                raise VmError("address already in use", code="address_collision", context={"address": to_hex(address)})

            self._nonces[sender_b] = nonce + 1
            self._contracts[address] = mod
            self._labels[address] = name
            if "init" in getattr(mod, "__all__", ()):
                try:
                    self.call(address, "init", *init_args, sender=sender_b)
                except BaseException:
                    del self._contracts[address]
                    del self._labels[address]
                    self._nonces[sender_b] = nonce
                    raise

            log.info("host: deployed %s at %s (sender=%s)", name, to_hex(address), to_hex(sender_b))
            return ContractHandle(self, address, name)

    def contract_at(self, address: AddressLike) -> ContractHandle:
        a = to_address(address)
        if a not in self._contracts:
            raise VmError("no contract at address", code="no_such_contract", context={"address": to_hex(a)})
        return ContractHandle(self, a, self._labels[a])

    def label_of(self, address: bytes) -> Optional[str]:
        return self._labels.get(address)

    # ------------------------------------------------------------------ #
    # Calls
    # ------------------------------------------------------------------ #

    def call(
        self,
        address: AddressLike,
        fn: str,
        *args: Any,
        sender: AddressLike,
        check: bool = True,
    ) -> Receipt:
        """
        Run `fn` on the contract at `address` as one atomic transaction.

        With ``check=False`` a ``Revert`` is returned as a receipt with
        status "revert" instead of being raised; state is rolled back either
        way. Host errors (``VmError`` other than ``Revert``) always raise.
        """
        target = to_address(address)
        sender_b = to_address(sender)
        with self._lock:
            self._require_idle()
            self.tx_event_mark = self.events.mark()
            log.debug("host: call %s.%s sender=%s args=%d", self._name(target), fn, to_hex(sender_b), len(args))
            try:
                value = self._run_frame(CallFrame(target, sender_b, 1), fn, args)
            except Revert as e:
                log.info("host: revert %s.%s reason=%s", self._name(target), fn, e.message)
                if check:
                    raise
                return Receipt(status="revert", reason=e.reason)
            except VmError as e:
                log.warning("host: error %s.%s code=%s msg=%s", self._name(target), fn, e.code, e.message)
                raise

            events = self.events.since(self.tx_event_mark)
            log.info("host: commit %s.%s events=%d", self._name(target), fn, len(events))
            return Receipt(status="ok", value=value, events=events)

    def view(self, address: AddressLike, fn: str, *args: Any, sender: Optional[AddressLike] = None) -> Any:
        """Run `fn` in a static frame and return its value."""
        target = to_address(address)
        sender_b = to_address(sender) if sender is not None else _ctx.NULL_ADDRESS
        with self._lock:
            self._require_idle()
            return self._run_frame(CallFrame(target, sender_b, 1, static=True), fn, args)

    def nested_call(self, address: AddressLike, fn: str, args: Sequence[Any]) -> Any:
        """Entry point for ``abi.call``: invoke another contract from the running frame."""
        _, parent = _ctx.current()
        depth = parent.depth + 1
        if depth > self.config.max_call_depth:
            raise CallDepthError(depth, self.config.max_call_depth)
        target = to_address(address)
        log.debug("host: nested call %s.%s from %s depth=%d", self._name(target), fn, self._name(parent.address), depth)
        return self._run_frame(CallFrame(target, parent.address, depth, static=parent.static), fn, args)

    # ------------------------------------------------------------------ #
    # Block environment
    # ------------------------------------------------------------------ #

    def advance(self, blocks: int = 1, seconds: Optional[int] = None) -> BlockEnv:
        """Move the block environment forward (default 12s per block)."""
        with self._lock:
            self.block = self.block.advanced(blocks, blocks * BLOCK_TIME_S if seconds is None else seconds)
            log.debug("host: advanced to height=%d ts=%d", self.block.height, self.block.timestamp)
            return self.block

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _name(self, address: bytes) -> str:
        return self._labels.get(address) or to_hex(address)

    def _require_idle(self) -> None:
        if _ctx.active_depth() != 0:
            raise VmError("host entered from inside a running contract", code="reentrant_host_call")

    def _entrypoint(self, address: bytes, fn: str):
        module = self._contracts.get(address)
        if module is None:
            raise VmError("no contract at address", code="no_such_contract", context={"address": to_hex(address)})
        exported = getattr(module, "__all__", ())
        target = getattr(module, fn, None) if fn in exported else None
        if not callable(target):
            raise VmError(
                f"{fn!r} is not an entrypoint of {self._name(address)}",
                code="no_such_entrypoint",
                context={"address": to_hex(address), "fn": fn},
            )
        return target

    def _run_frame(self, frame: CallFrame, fn: str, args: Sequence[Any]) -> Any:
        target = self._entrypoint(frame.address, fn)
        cp = None if frame.static else self.storage.checkpoint()
        mark = self.events.mark()
        _ctx.push_frame(self, frame)
        try:
            value = target(*args)
        except BaseException:
            if cp is not None:
                self.storage.rollback(cp)
            self.events.rewind(mark)
            raise
        finally:
            _ctx.pop_frame()
        # nested frames stay journaled until the outermost frame commits
        if cp is not None and frame.depth == 1:
            self.storage.commit(cp)
        return value


__all__ = [
    "GENESIS_TIMESTAMP",
    "BLOCK_TIME_S",
    "Receipt",
    "ContractHandle",
    "Host",
]
