"""staking_client - read/write client for the transcoder staking contract."""

from staking_client.client import StakingClient
from staking_client.ethereum.signer import KeySigner
from staking_client.models import BondingState, Transcoder, WithdrawalInfo

__version__ = "0.1.0"

__all__ = ["StakingClient", "KeySigner", "BondingState", "Transcoder", "WithdrawalInfo"]
