"""Transaction handles and mined receipts."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TransactionHandle:
    """A broadcast transaction that has not yet been confirmed."""

    tx_hash: str  # 0x-prefixed hex
    sender: str
    nonce: int
    method: str  # contract method name, for logs and errors


@dataclass(frozen=True)
class LogEntry:
    """A single event log from a receipt."""

    address: str
    topics: tuple[bytes, ...]
    data: bytes
    log_index: int = 0


@dataclass(frozen=True)
class Receipt:
    """Receipt of a mined transaction.

    ``status`` is the execution flag: a mined transaction may still have
    reverted.
    """

    tx_hash: str
    block_number: int
    status: bool
    gas_used: int = 0
    logs: tuple[LogEntry, ...] = field(default_factory=tuple)
