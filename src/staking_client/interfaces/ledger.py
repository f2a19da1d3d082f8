"""Ledger protocol - the remote chain node the client talks to."""

from __future__ import annotations

from typing import Any, Protocol, Union

from staking_client.models.records import Receipt

BlockTag = Union[int, str]  # block number or "latest" / "pending"


class Ledger(Protocol):
    """Read and broadcast operations of an Ethereum-compatible node.

    Implementations must be safe for concurrent use by several outstanding
    calls.
    """

    async def call(self, to: str, data: bytes, block: BlockTag = "latest") -> bytes:
        """Execute a read-only contract call and return the raw output."""
        ...

    async def estimate_gas(self, tx: dict[str, Any]) -> int:
        """Estimate gas for a transaction. Raises RemoteRevert if it would revert."""
        ...

    async def send_raw_transaction(self, raw: bytes) -> str:
        """Broadcast a signed transaction and return its hash."""
        ...

    async def get_transaction_receipt(self, tx_hash: str) -> Receipt | None:
        """Return the receipt once mined, None while pending."""
        ...

    async def get_transaction_count(self, address: str, block: BlockTag = "pending") -> int:
        ...

    async def gas_price(self) -> int:
        ...

    async def chain_id(self) -> int:
        ...

    async def block_number(self) -> int:
        ...

    async def block_timestamp(self, block: BlockTag = "latest") -> int:
        """Unix timestamp of a block."""
        ...

    async def close(self) -> None:
        ...
