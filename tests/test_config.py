"""Configuration loading from TOML and ETH_* environment variables."""

from __future__ import annotations

import os

import pytest

from staking_client.config import load_config, parse_amount, parse_duration, parse_timeout
from staking_client.errors import ConfigError

CONTRACT = "0x" + "5a" * 20
SLASHED_A = "0x" + "0a" * 20
SLASHED_B = "0x" + "0b" * 20


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("ETH_"):
            monkeypatch.delenv(name)


def test_defaults():
    cfg = load_config()
    assert cfg.rpc_url == "http://127.0.0.1:8545"
    assert cfg.contract_address == ""
    assert cfg.poll_interval == 1.0
    assert cfg.slashed == []
    assert not cfg.update_approval


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("ETH_URL", "http://node:8545")
    monkeypatch.setenv("ETH_CONTRACT", CONTRACT)
    monkeypatch.setenv("ETH_KEY", "/keys/operator.json")
    monkeypatch.setenv("ETH_PASSWORD", "hunter2")
    monkeypatch.setenv("ETH_UPDATE_APPROVAL", "true")
    monkeypatch.setenv("ETH_APPROVAL_PERIOD", "720h")
    monkeypatch.setenv("ETH_UPDATE_MIN_STAKE", "1")
    monkeypatch.setenv("ETH_MIN_STAKE", "0x3e8")
    monkeypatch.setenv("ETH_SLASHED", f"{SLASHED_A}, {SLASHED_B}")

    cfg = load_config()

    assert cfg.rpc_url == "http://node:8545"
    assert cfg.contract_address.lower() == CONTRACT
    assert cfg.key_file == "/keys/operator.json"
    assert cfg.password == "hunter2"
    assert cfg.update_approval
    assert cfg.approval_period == 720 * 3600
    assert cfg.update_min_stake
    assert cfg.min_stake == 1000
    assert [a.lower() for a in cfg.slashed] == [SLASHED_A, SLASHED_B]


def test_toml_file(tmp_path):
    path = tmp_path / "staking.toml"
    path.write_text(
        f"""
[ledger]
rpc_url = "http://toml:8545"
contract_address = "{CONTRACT}"
gas_limit = 500000

[wait]
poll_interval = 0.5
confirmation_timeout = 30
withdrawal_timeout = "90s"

[operator]
update_approval = true
approval_period = "1h30m"
slashed = ["{SLASHED_A}"]

[logging]
level = "debug"
"""
    )

    cfg = load_config(path)

    assert cfg.rpc_url == "http://toml:8545"
    assert cfg.gas_limit == 500_000
    assert cfg.poll_interval == 0.5
    assert cfg.confirmation_timeout == 30.0
    assert cfg.withdrawal_timeout == 90.0
    assert cfg.approval_period == 5400
    assert cfg.update_approval
    assert [a.lower() for a in cfg.slashed] == [SLASHED_A]
    assert cfg.log_level == "debug"


def test_env_beats_toml(tmp_path, monkeypatch):
    path = tmp_path / "staking.toml"
    path.write_text('[ledger]\nrpc_url = "http://toml:8545"\n')
    monkeypatch.setenv("ETH_URL", "http://env:8545")

    assert load_config(path).rpc_url == "http://env:8545"


def test_missing_file_uses_defaults(tmp_path):
    assert load_config(tmp_path / "absent.toml").rpc_url == "http://127.0.0.1:8545"


def test_invalid_toml(tmp_path):
    path = tmp_path / "bad.toml"
    path.write_text("[ledger\n")
    with pytest.raises(ConfigError):
        load_config(path)


def test_key_file_expands_home(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("ETH_KEY", "~/key.json")
    assert load_config().key_file == str(tmp_path / "key.json")


@pytest.mark.parametrize("name,value", [
    ("ETH_CONTRACT", "0x1234"),
    ("ETH_MIN_STAKE", "-5"),
    ("ETH_MIN_STAKE", "lots"),
    ("ETH_APPROVAL_PERIOD", "forever"),
    ("ETH_UPDATE_APPROVAL", "maybe"),
    ("ETH_POLL_INTERVAL", "0"),
    ("ETH_SLASHED", "0xnope"),
    ("ETH_LOG_LEVEL", "chatty"),
])
def test_invalid_values(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigError):
        load_config()


@pytest.mark.parametrize("text,seconds", [
    ("90", 90),
    ("45s", 45),
    ("10m", 600),
    ("1h30m", 5400),
    ("1.5h", 5400),
    ("500ms", 0),
])
def test_parse_duration(text, seconds):
    assert parse_duration(text) == seconds


@pytest.mark.parametrize("value,seconds", [
    ("500ms", 0.5),
    ("2m", 120.0),
    ("0.25", 0.25),
    (1.5, 1.5),
    (30, 30.0),
])
def test_parse_timeout(value, seconds):
    assert parse_timeout(value) == seconds


@pytest.mark.parametrize("value", ["-1", "nan", "inf", "soon"])
def test_parse_timeout_rejects(value):
    with pytest.raises(ConfigError):
        parse_timeout(value)


def test_withdrawal_timeout_from_env(monkeypatch):
    monkeypatch.setenv("ETH_WITHDRAWAL_TIMEOUT", "10m")
    assert load_config().withdrawal_timeout == 600.0


def test_subsecond_timeouts_kept(monkeypatch):
    monkeypatch.setenv("ETH_POLL_INTERVAL", "250ms")
    monkeypatch.setenv("ETH_CONFIRMATION_TIMEOUT", "1.5s")
    cfg = load_config()
    assert cfg.poll_interval == 0.25
    assert cfg.confirmation_timeout == 1.5


def test_parse_amount_bases():
    assert parse_amount("1_000") == 1000
    assert parse_amount("0x10") == 16
    assert parse_amount(7) == 7
