"""Ethereum ledger integration components."""

from staking_client.ethereum.enumeration import TranscoderEnumerator
from staking_client.ethereum.polling import PollLoop, WaitState
from staking_client.ethereum.rpc import JsonRpcLedger
from staking_client.ethereum.signer import KeySigner
from staking_client.ethereum.submitter import TransactionSubmitter
from staking_client.ethereum.withdrawals import WithdrawalWaiter, withdrawal_from_receipt

__all__ = [
    "TranscoderEnumerator",
    "PollLoop",
    "WaitState",
    "JsonRpcLedger",
    "KeySigner",
    "TransactionSubmitter",
    "WithdrawalWaiter",
    "withdrawal_from_receipt",
]
