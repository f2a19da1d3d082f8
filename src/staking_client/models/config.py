"""Configuration model for the staking client and operator CLI."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ClientConfig:
    """Complete client configuration."""

    # Ledger
    rpc_url: str = "http://127.0.0.1:8545"
    contract_address: str = ""
    rpc_timeout: float = 30.0  # seconds per HTTP request
    gas_limit: int | None = None  # None = estimate per transaction

    # Signing key: either an encrypted key file + password, or a raw key
    key_file: str = ""
    password: str = ""  # loaded from env var ETH_PASSWORD
    private_key: str = ""  # loaded from env var ETH_PRIVATE_KEY

    # Waits
    poll_interval: float = 1.0  # seconds between receipt / withdrawal checks
    confirmation_timeout: float = 60.0  # seconds
    withdrawal_timeout: float | None = None  # None = wait until cancelled

    # Operator actions
    update_approval: bool = False
    approval_period: int = 0  # seconds
    update_min_stake: bool = False
    min_stake: int = 0
    slashed: list[str] = field(default_factory=list)

    log_level: str = "info"
