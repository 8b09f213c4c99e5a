"""
matchvm.cli.simulate — replay a JSON scenario against a fresh host.

Scenario file
-------------
    {
      "owner": "owner",                      # deploys both contracts (default "owner")
      "max_agreement_attempts": 3,           # optional
      "fund":    {"alice": 5000, "bob": 5000},
      "approve": {"alice": 5000, "bob": 5000},   # allowance granted to the registry
      "moderators": ["mod"],                 # granted MATCH_MODERATOR by the owner
      "calls": [
        {"as": "alice", "fn": "start",  "args": ["bob", 1000, 3]},
        {"as": "bob",   "fn": "accept", "args": [1, 1000]},
        {"as": "bob",   "fn": "decline", "args": [1], "expect": "revert"},
        {"as": "alice", "contract": "token", "fn": "balance_of", "args": ["alice"]}
      ]
    }

Accounts are the owner, the names under "fund", "approve" and "moderators",
and every call's "as". An argument string equal to one of them (or to
"token" / "registry") resolves to that address; "0x.." strings are decoded
to bytes; any other value passes through unchanged. Account addresses are
sha3_256(b"account:" + name).

A malformed document (wrong field types, negative amounts, non-list "args")
raises ``ScenarioError`` before anything is deployed.

A call with ``"expect": "ok"`` (the default) must succeed and one with
``"expect": "revert"`` must revert; otherwise the run fails.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import typer

from matchvm.errors import Revert, VmError
from matchvm.runtime.context import to_bytes, to_hex
from matchvm.runtime.hash_api import sha3_256
from matchvm.runtime.host import ContractHandle, Host, Receipt

log = logging.getLogger(__name__)

TOKEN_MODULE = "contracts.smashpros.contract"
REGISTRY_MODULE = "contracts.moneymatchr.contract"

_EXPECT = ("ok", "revert", "any")


class ScenarioError(ValueError):
    """Malformed scenario document."""


def account_address(name: str) -> bytes:
    """Deterministic 32-byte address for a named account."""
    return sha3_256(b"account:" + name.encode("utf-8"))


@dataclass
class CallOutcome:
    index: int
    actor: str
    contract: str
    fn: str
    expect: str
    receipt: Receipt

    @property
    def matched(self) -> bool:
        return self.expect == "any" or self.expect == self.receipt.status

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "index": self.index,
            "as": self.actor,
            "contract": self.contract,
            "fn": self.fn,
            "expect": self.expect,
            "matched": self.matched,
        }
        d.update(self.receipt.to_dict())
        return d


@dataclass
class SimulationReport:
    token: str
    registry: str
    outcomes: List[CallOutcome] = field(default_factory=list)
    balances: Dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return all(o.matched for o in self.outcomes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "token": self.token,
            "registry": self.registry,
            "calls": [o.to_dict() for o in self.outcomes],
            "balances": dict(self.balances),
        }


class Simulation:
    def __init__(self, scenario: Mapping[str, Any], host: Optional[Host] = None) -> None:
        if not isinstance(scenario, Mapping):
            raise ScenarioError("scenario must be a JSON object")
        self.scenario = scenario
        self.host = host or Host()
        owner = scenario.get("owner", "owner")
        if not isinstance(owner, str):
            raise ScenarioError("'owner' must be an account name")
        self.owner_name = owner
        self.fund = _amounts(scenario, "fund")
        self.approve = _amounts(scenario, "approve")
        self.moderators = _names(scenario, "moderators")
        self.max_attempts = _optional_int(scenario, "max_agreement_attempts")
        self.calls = scenario.get("calls", [])
        if not isinstance(self.calls, list):
            raise ScenarioError("'calls' must be a list")

        self.names: Dict[str, bytes] = {}
        self.token: Optional[ContractHandle] = None
        self.registry: Optional[ContractHandle] = None
        for name in [owner, *self.fund, *self.approve, *self.moderators]:
            self.address_of(name)
        for i, entry in enumerate(self.calls):
            self._check_call(i, entry)
            self.address_of(str(entry["as"]))

    # ---- naming ----

    def address_of(self, name: str) -> bytes:
        if name not in self.names:
            self.names[name] = account_address(name)
        return self.names[name]

    def resolve(self, value: Any) -> Any:
        if isinstance(value, str):
            if value in self.names:
                return self.names[value]
            if value.startswith(("0x", "0X")):
                return to_bytes(value)
        if isinstance(value, list):
            return [self.resolve(v) for v in value]
        return value

    def name_of(self, address: bytes) -> str:
        for n, a in self.names.items():
            if a == address:
                return n
        return to_hex(address)

    # ---- setup ----

    def setup(self) -> None:
        owner = self.address_of(self.owner_name)
        self.token = self.host.deploy(TOKEN_MODULE, sender=owner, init_args=(owner,), label="token")
        init_args = [owner, self.token.address]
        if self.max_attempts is not None:
            init_args.append(self.max_attempts)
        self.registry = self.host.deploy(REGISTRY_MODULE, sender=owner, init_args=tuple(init_args), label="registry")
        self.names["token"] = self.token.address
        self.names["registry"] = self.registry.address

        for name, amount in self.fund.items():
            self.token.call("mint", self.address_of(name), amount, sender=owner)
        for name, amount in self.approve.items():
            self.token.call("approve", self.registry.address, amount, sender=self.address_of(name))
        moderator_role = self.registry.view("moderator_role")
        for name in self.moderators:
            self.registry.call("grant_role", moderator_role, self.address_of(name), sender=owner)
        log.info("simulate: deployed token=%s registry=%s", self.token.hex, self.registry.hex)

    # ---- replay ----

    def run(self) -> SimulationReport:
        if self.token is None or self.registry is None:
            self.setup()
        report = SimulationReport(token=self.token.hex, registry=self.registry.hex)

        for i, entry in enumerate(self.calls):
            report.outcomes.append(self._replay(i, entry))

        for name, addr in self.names.items():
            report.balances[name] = self.token.view("balance_of", addr)
        return report

    @staticmethod
    def _check_call(index: int, entry: Any) -> None:
        if not isinstance(entry, Mapping) or "as" not in entry or "fn" not in entry:
            raise ScenarioError(f"call #{index}: needs 'as' and 'fn'")
        expect = str(entry.get("expect", "ok"))
        if expect not in _EXPECT:
            raise ScenarioError(f"call #{index}: expect must be one of {', '.join(_EXPECT)}")
        target_name = str(entry.get("contract", "registry"))
        if target_name not in ("token", "registry"):
            raise ScenarioError(f"call #{index}: unknown contract {target_name!r}")
        if not isinstance(entry.get("args", []), list):
            raise ScenarioError(f"call #{index}: 'args' must be a list")

    def _replay(self, index: int, entry: Mapping[str, Any]) -> CallOutcome:
        expect = str(entry.get("expect", "ok"))
        target_name = str(entry.get("contract", "registry"))
        target = self.token if target_name == "token" else self.registry
        args = self.resolve(entry.get("args", []))
        sender = self.address_of(str(entry["as"]))
        try:
            receipt = target.call(str(entry["fn"]), *args, sender=sender, check=False)
        except VmError as e:
            receipt = Receipt(status="error", reason=f"{e.code}: {e.message}".encode("utf-8"))
        except TypeError as e:
            # wrong argument count or types for the entrypoint
            receipt = Receipt(status="error", reason=str(e).encode("utf-8"))
        outcome = CallOutcome(index, str(entry["as"]), target_name, str(entry["fn"]), expect, receipt)
        if not outcome.matched:
            log.warning("simulate: call #%d %s expected %s, got %s", index, entry["fn"], expect, receipt.status)
        return outcome


def _amounts(scenario: Mapping[str, Any], key: str) -> Dict[str, int]:
    raw = scenario.get(key, {})
    if not isinstance(raw, Mapping):
        raise ScenarioError(f"'{key}' must map account names to amounts")
    out: Dict[str, int] = {}
    for name, amount in raw.items():
        if not isinstance(name, str):
            raise ScenarioError(f"'{key}': account names must be strings")
        # JSON true/false are not amounts
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise ScenarioError(f"'{key}': amount for {name!r} must be a non-negative integer")
        out[name] = amount
    return out


def _names(scenario: Mapping[str, Any], key: str) -> List[str]:
    raw = scenario.get(key, [])
    if not isinstance(raw, list) or not all(isinstance(n, str) for n in raw):
        raise ScenarioError(f"'{key}' must be a list of account names")
    return list(raw)


def _optional_int(scenario: Mapping[str, Any], key: str) -> Optional[int]:
    if key not in scenario:
        return None
    value = scenario[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ScenarioError(f"'{key}' must be an integer")
    return value


def load_scenario(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ScenarioError(f"{path}: invalid JSON ({e})") from e
    if not isinstance(data, dict):
        raise ScenarioError(f"{path}: scenario must be a JSON object")
    return data


def run_scenario(scenario: Mapping[str, Any], host: Optional[Host] = None) -> SimulationReport:
    return Simulation(scenario, host=host).run()


def _format_args(args: Mapping[str, Any]) -> str:
    return ", ".join(f"{k}={v}" for k, v in args.items())


def _print_report(report: SimulationReport) -> None:
    typer.echo(f"token     {report.token}")
    typer.echo(f"registry  {report.registry}")
    typer.echo("-" * 60)
    for o in report.outcomes:
        d = o.to_dict()
        mark = "ok " if o.matched else "!! "
        line = f"{mark}#{o.index} {o.actor} -> {o.contract}.{o.fn}: {d['status']}"
        if d["reason"]:
            line += f" ({d['reason']})"
        elif d["value"] is not None:
            line += f" = {json.dumps(d['value'])}"
        typer.echo(line)
        for ev in d["events"]:
            typer.echo(f"      {ev['name']}({_format_args(ev['args'])})")
    typer.echo("-" * 60)
    for name, bal in sorted(report.balances.items()):
        typer.echo(f"{name:<12} {bal}")


def simulate(
    scenario: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Scenario JSON file"),
    json_output: bool = typer.Option(False, "--json", help="Print the report as JSON"),
) -> None:
    """Deploy token + registry on a fresh host and replay SCENARIO's calls."""
    try:
        report = run_scenario(load_scenario(scenario))
    except ScenarioError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)
    except (Revert, VmError) as e:
        typer.echo(f"Error: setup failed: {e.code}: {e.message}", err=True)
        raise typer.Exit(2)

    if json_output:
        typer.echo(json.dumps(report.to_dict(), indent=2))
    else:
        _print_report(report)

    if not report.ok:
        raise typer.Exit(1)


__all__ = [
    "ScenarioError",
    "account_address",
    "CallOutcome",
    "SimulationReport",
    "Simulation",
    "load_scenario",
    "run_scenario",
    "simulate",
]
