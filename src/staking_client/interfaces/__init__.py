"""Protocol interfaces for the staking client's external collaborators."""

from staking_client.interfaces.ledger import BlockTag, Ledger
from staking_client.interfaces.signer import TransactionSigner

__all__ = ["BlockTag", "Ledger", "TransactionSigner"]
