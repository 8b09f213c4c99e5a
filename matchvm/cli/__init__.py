"""
matchvm — command-line tools for the contract host.

    matchvm simulate scenario.json [--json]
    matchvm config

Global options:
  --verbose / -v    Log host activity (deploys, commits, reverts) to stderr
"""

from __future__ import annotations

import json
import logging

import typer

from matchvm.config import load_config

from . import simulate as _simulate

app = typer.Typer(
    name="matchvm",
    help="Deterministic Python contract host (Moneymatchr tooling)",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main_callback(
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="-v for INFO, -vv for DEBUG"),
) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


app.command("simulate")(_simulate.simulate)


@app.command("config")
def show_config() -> None:
    """Print the effective host limits (after MONEYMATCHR_VM_* overrides)."""
    typer.echo(json.dumps(load_config().as_dict(), indent=2))


__all__ = ["app"]
