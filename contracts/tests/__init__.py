# -*- coding: utf-8 -*-
"""
contracts.tests
===============

Contract-focused tests for the Smashpros ledger and the Moneymatchr registry.
Sets a couple of reproducibility-friendly env defaults (override via real env
when needed) and carries the project test seed, which also seeds `random`
and the Hypothesis property tests. Override with MONEYMATCHR_TEST_SEED.
"""
from __future__ import annotations

import os
import random

PROJECT_TEST_SEED = int(os.environ.get("MONEYMATCHR_TEST_SEED", "1337"))
random.seed(PROJECT_TEST_SEED)


def _set_if_absent(key: str, value: str) -> None:
    """Set environment variable only if it's not already present."""
    if not os.environ.get(key):
        os.environ[key] = value


_set_if_absent("PYTHONHASHSEED", "0")
_set_if_absent("TZ", "UTC")
_set_if_absent("HYPOTHESIS_PROFILE", "local")
