from __future__ import annotations

import pytest

from matchvm.config import ENV_PREFIX, load_config
from matchvm.runtime import Host


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    for name in ("MAX_CALL_DEPTH", "MAX_STORAGE_KEY_BYTES", "MAX_STORAGE_VAL_BYTES", "MAX_LOGS_PER_TX", "CHAIN_ID"):
        monkeypatch.delenv(ENV_PREFIX + name, raising=False)
    load_config.cache_clear()
    yield
    load_config.cache_clear()


def test_defaults():
    assert load_config().as_dict() == {
        "max_call_depth": 16,
        "max_storage_key_bytes": 128,
        "max_storage_value_bytes": 131_072,
        "max_logs_per_tx": 1024,
        "chain_id": 1337,
    }


def test_env_overrides(monkeypatch):
    monkeypatch.setenv(ENV_PREFIX + "MAX_CALL_DEPTH", "8")
    monkeypatch.setenv(ENV_PREFIX + "CHAIN_ID", "0x10")
    cfg = load_config()
    assert cfg.max_call_depth == 8
    assert cfg.chain_id == 16


@pytest.mark.parametrize(
    "name,raw,expected",
    [
        ("MAX_CALL_DEPTH", "1", 2),
        ("MAX_CALL_DEPTH", "9999", 256),
        ("MAX_STORAGE_KEY_BYTES", "4", 32),
        ("MAX_STORAGE_VAL_BYTES", "99999999", 1_048_576),
        ("MAX_LOGS_PER_TX", "0", 1),
        ("MAX_LOGS_PER_TX", "lots", 1024),
    ],
)
def test_env_values_are_clamped_or_ignored(monkeypatch, name, raw, expected):
    monkeypatch.setenv(ENV_PREFIX + name, raw)
    assert load_config().as_dict()[name.lower().replace("_val_", "_value_")] == expected


def test_config_is_cached_until_cleared(monkeypatch):
    first = load_config()
    monkeypatch.setenv(ENV_PREFIX + "MAX_LOGS_PER_TX", "5")
    assert load_config() is first
    load_config.cache_clear()
    assert load_config().max_logs_per_tx == 5


def test_host_picks_up_chain_id(monkeypatch):
    monkeypatch.setenv(ENV_PREFIX + "CHAIN_ID", "42")
    assert Host().block.chain_id == 42
