"""Data models for the staking client."""

from staking_client.models.config import ClientConfig
from staking_client.models.records import LogEntry, Receipt, TransactionHandle
from staking_client.models.transcoder import BondingState, Transcoder, TranscoderRange
from staking_client.models.withdrawal import PendingWithdrawal, WithdrawalInfo

__all__ = [
    "ClientConfig",
    "LogEntry", "Receipt", "TransactionHandle",
    "BondingState", "Transcoder", "TranscoderRange",
    "PendingWithdrawal", "WithdrawalInfo",
]
