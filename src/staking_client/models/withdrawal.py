"""Withdrawal results and the raw pending-withdrawal record."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WithdrawalInfo:
    """Outcome of a withdrawal request or completion.

    Exactly one shape holds:
      - pending:   ``amount is None`` and ``readiness_timestamp > 0``
      - completed: ``amount is not None`` and ``readiness_timestamp == 0``
    """

    amount: int | None = None
    readiness_timestamp: int = 0

    def __post_init__(self) -> None:
        if self.amount is None and self.readiness_timestamp <= 0:
            raise ValueError("pending withdrawal requires a non-zero readiness timestamp")
        if self.amount is not None and self.readiness_timestamp:
            raise ValueError("completed withdrawal cannot carry a readiness timestamp")

    @classmethod
    def pending(cls, readiness_timestamp: int) -> WithdrawalInfo:
        return cls(amount=None, readiness_timestamp=readiness_timestamp)

    @classmethod
    def completed(cls, amount: int) -> WithdrawalInfo:
        return cls(amount=amount, readiness_timestamp=0)

    @property
    def is_completed(self) -> bool:
        return self.amount is not None


@dataclass(frozen=True)
class PendingWithdrawal:
    """Raw ``getPendingWithdrawal`` result for one party.

    ``amount == 0`` means no withdrawal is pending.
    """

    account: str
    amount: int
    readiness_timestamp: int

    @property
    def exists(self) -> bool:
        return self.amount > 0

    def is_ready(self, now: int) -> bool:
        return self.exists and self.readiness_timestamp <= now
