"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from eth_utils import is_address, to_checksum_address

from staking_client.errors import ConfigError
from staking_client.models.config import ClientConfig

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def parse_timeout(value: str | int | float) -> float:
    """Seconds as a float, from a number or a Go-style duration ("500ms", "1h30m")."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = float(value)
    else:
        text = str(value).strip()
        parts = _DURATION_PART.findall(text)
        if parts and "".join(n + u for n, u in parts) == text:
            seconds = sum(float(n) * _DURATION_UNITS[u] for n, u in parts)
        else:
            try:
                seconds = float(text)
            except ValueError as exc:
                raise ConfigError(f"invalid duration: {value!r}") from exc
    if not 0 <= seconds < float("inf"):
        raise ConfigError(f"invalid duration: {value!r}")
    return seconds


def parse_duration(value: str | int | float) -> int:
    """Whole seconds, as the contract stores periods. See parse_timeout."""
    return int(parse_timeout(value))


def parse_amount(value: str | int) -> int:
    """Non-negative integer; strings may carry a 0x/0o/0b prefix or underscores."""
    if isinstance(value, int) and not isinstance(value, bool):
        amount = value
    else:
        try:
            amount = int(str(value).strip(), 0)
        except ValueError as exc:
            raise ConfigError(f"can't use {value!r} as an integer amount") from exc
    if amount < 0:
        raise ConfigError(f"amount must not be negative: {value!r}")
    return amount


def parse_bool(value: str | bool) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"invalid boolean: {value!r}")


def parse_address(value: str) -> str:
    if not is_address(value):
        raise ConfigError(f"invalid address: {value!r}")
    return to_checksum_address(value)


def parse_addresses(value: str | list[str]) -> list[str]:
    items = value if isinstance(value, list) else str(value).split(",")
    return [parse_address(a.strip()) for a in items if a.strip()]


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "ETH_",
) -> ClientConfig:
    """Load client configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (ETH_URL, ETH_KEY, ETH_PASSWORD, etc.)
        2. TOML config file
        3. Defaults from ClientConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                try:
                    raw = tomllib.load(f)
                except tomllib.TOMLDecodeError as exc:
                    raise ConfigError(f"invalid config file {p}: {exc}") from exc

    cfg = ClientConfig()

    # ── Ledger section ─────────────────────────────────────
    ledger = raw.get("ledger", {})
    if v := ledger.get("rpc_url"):
        cfg.rpc_url = str(v)
    if v := ledger.get("contract_address"):
        cfg.contract_address = parse_address(str(v))
    if v := ledger.get("rpc_timeout"):
        cfg.rpc_timeout = parse_timeout(v)
    if v := ledger.get("gas_limit"):
        cfg.gas_limit = parse_amount(v)
    if v := ledger.get("key_file"):
        cfg.key_file = str(v)

    # ── Wait section ───────────────────────────────────────
    wait = raw.get("wait", {})
    if v := wait.get("poll_interval"):
        cfg.poll_interval = parse_timeout(v)
    if v := wait.get("confirmation_timeout"):
        cfg.confirmation_timeout = parse_timeout(v)
    if v := wait.get("withdrawal_timeout"):
        cfg.withdrawal_timeout = parse_timeout(v)

    # ── Operator section ───────────────────────────────────
    operator = raw.get("operator", {})
    if "update_approval" in operator:
        cfg.update_approval = parse_bool(operator["update_approval"])
    if v := operator.get("approval_period"):
        cfg.approval_period = parse_duration(v)
    if "update_min_stake" in operator:
        cfg.update_min_stake = parse_bool(operator["update_min_stake"])
    if v := operator.get("min_stake"):
        cfg.min_stake = parse_amount(v)
    if v := operator.get("slashed"):
        cfg.slashed = parse_addresses(v)

    # ── Logging section ────────────────────────────────────
    if v := raw.get("logging", {}).get("level"):
        cfg.log_level = str(v)

    # ── Environment variable overrides (highest priority) ──
    env = os.environ
    if v := env.get(f"{env_prefix}URL"):
        cfg.rpc_url = v
    if v := env.get(f"{env_prefix}CONTRACT"):
        cfg.contract_address = parse_address(v)
    if v := env.get(f"{env_prefix}KEY"):
        cfg.key_file = v
    if v := env.get(f"{env_prefix}PASSWORD"):
        cfg.password = v
    if v := env.get(f"{env_prefix}PRIVATE_KEY"):
        cfg.private_key = v
    if v := env.get(f"{env_prefix}RPC_TIMEOUT"):
        cfg.rpc_timeout = parse_timeout(v)
    if v := env.get(f"{env_prefix}POLL_INTERVAL"):
        cfg.poll_interval = parse_timeout(v)
    if v := env.get(f"{env_prefix}CONFIRMATION_TIMEOUT"):
        cfg.confirmation_timeout = parse_timeout(v)
    if v := env.get(f"{env_prefix}WITHDRAWAL_TIMEOUT"):
        cfg.withdrawal_timeout = parse_timeout(v)
    if (v := env.get(f"{env_prefix}UPDATE_APPROVAL")) is not None:
        cfg.update_approval = parse_bool(v)
    if v := env.get(f"{env_prefix}APPROVAL_PERIOD"):
        cfg.approval_period = parse_duration(v)
    if (v := env.get(f"{env_prefix}UPDATE_MIN_STAKE")) is not None:
        cfg.update_min_stake = parse_bool(v)
    if v := env.get(f"{env_prefix}MIN_STAKE"):
        cfg.min_stake = parse_amount(v)
    if (v := env.get(f"{env_prefix}SLASHED")) is not None:
        cfg.slashed = parse_addresses(v)
    if v := env.get(f"{env_prefix}LOG_LEVEL"):
        cfg.log_level = v

    if cfg.poll_interval <= 0:
        raise ConfigError("poll_interval must be positive")
    if not isinstance(logging.getLevelName(cfg.log_level.upper()), int):
        raise ConfigError(f"unknown log level: {cfg.log_level!r}")

    # Expand ~ in paths
    if cfg.key_file:
        cfg.key_file = str(Path(cfg.key_file).expanduser())

    return cfg
