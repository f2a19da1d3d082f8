"""Error taxonomy for ledger reads, submissions and bounded waits."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from staking_client.models.records import Receipt


class StakingError(Exception):
    """Base class for every error raised by staking_client."""


class ConfigError(StakingError):
    """Missing or malformed configuration value."""


class TransientNetworkError(StakingError):
    """The ledger could not be reached. Safe for the caller to retry."""


class RpcError(StakingError):
    """The ledger answered with a JSON-RPC error object."""

    def __init__(self, message: str, code: int | None = None, data: object = None) -> None:
        super().__init__(message)
        self.code = code
        self.data = data


class RemoteRevert(RpcError):
    """A call or transaction was rejected by contract logic."""

    def __init__(
        self,
        message: str,
        code: int | None = None,
        data: object = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(message, code, data)
        self.reason = reason


class SubmissionError(StakingError):
    """A transaction could not be built, signed or broadcast."""


class ExecutionReverted(StakingError):
    """A transaction was mined but its receipt reports failure."""

    def __init__(self, message: str, receipt: Receipt) -> None:
        super().__init__(message)
        self.receipt = receipt


class UnexpectedReceipt(StakingError):
    """A successful receipt did not carry the events the call must emit."""


class NoPendingWithdrawals(StakingError):
    """No withdrawal is pending for the party."""


class DeadlineExceeded(StakingError):
    """A bounded wait ran past its deadline."""


class Cancelled(StakingError):
    """A bounded wait was cancelled by its caller."""
