"""StakingClient - read/write facade over the StakingManager contract."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

from eth_utils import to_checksum_address

from staking_client.bindings.staking_manager import StakingManager
from staking_client.errors import NoPendingWithdrawals
from staking_client.ethereum.enumeration import TranscoderEnumerator
from staking_client.ethereum.rpc import JsonRpcLedger
from staking_client.ethereum.submitter import TransactionSubmitter
from staking_client.ethereum.withdrawals import (
    WithdrawalWaiter,
    read_pending,
    withdrawal_from_receipt,
)
from staking_client.interfaces.ledger import BlockTag, Ledger
from staking_client.interfaces.signer import TransactionSigner
from staking_client.models.config import ClientConfig
from staking_client.models.records import Receipt
from staking_client.models.transcoder import BondingState, Transcoder, TranscoderRange
from staking_client.models.withdrawal import PendingWithdrawal, WithdrawalInfo

log = logging.getLogger(__name__)


class StakingClient:
    """Queries and transactions against one deployed staking contract.

    Holds no state of its own beyond its collaborators: every read goes to
    the ledger, and every write waits for its receipt before returning.
    Safe to share between concurrent tasks.
    """

    def __init__(
        self,
        ledger: Ledger,
        contract_address: str,
        poll_interval: float = 1.0,
        confirmation_timeout: float | None = 60.0,
        gas_limit: int | None = None,
    ) -> None:
        self._ledger = ledger
        self.contract = StakingManager(ledger, contract_address)
        self.enumerator = TranscoderEnumerator(self.contract)
        self.submitter = TransactionSubmitter(
            ledger,
            poll_interval=poll_interval,
            confirmation_timeout=confirmation_timeout,
            gas_limit=gas_limit,
        )
        self.waiter = WithdrawalWaiter(
            self.contract, ledger, self.complete_withdrawals, poll_interval,
        )

    @classmethod
    def dial(cls, rpc_url: str, contract_address: str, **kwargs) -> StakingClient:
        """Connect to a node over HTTP JSON-RPC."""
        rpc_timeout = kwargs.pop("rpc_timeout", 30.0)
        return cls(JsonRpcLedger(rpc_url, timeout=rpc_timeout), contract_address, **kwargs)

    @classmethod
    def from_config(cls, cfg: ClientConfig) -> StakingClient:
        return cls.dial(
            cfg.rpc_url,
            cfg.contract_address,
            rpc_timeout=cfg.rpc_timeout,
            poll_interval=cfg.poll_interval,
            confirmation_timeout=cfg.confirmation_timeout,
            gas_limit=cfg.gas_limit,
        )

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    async def close(self) -> None:
        await self._ledger.close()

    async def __aenter__(self) -> StakingClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ── Transcoder reads ───────────────────────────────────

    async def block_number(self) -> int:
        return await self._ledger.block_number()

    async def get_transcoder_state(self, address: str, block: BlockTag = "latest") -> BondingState:
        return await self.enumerator.state(to_checksum_address(address), block)

    async def get_transcoder_stake(self, address: str, block: BlockTag = "latest") -> int:
        return await self.contract.get_total_stake(to_checksum_address(address), block)

    async def get_transcoder_capacity(self, address: str, block: BlockTag = "latest") -> int:
        info = await self.contract.transcoders(to_checksum_address(address), block)
        return info["capacity"]

    async def get_transcoder(self, address: str, block: BlockTag = "latest") -> Transcoder:
        return await self.enumerator.snapshot(to_checksum_address(address), block)

    async def transcoders_count(self, block: BlockTag = "latest") -> int:
        return await self.enumerator.count(block)

    async def get_transcoder_at(self, index: int, block: BlockTag = "latest") -> Transcoder:
        return await self.enumerator.snapshot_at(index, block)

    def iter_transcoders(
        self, start: int, end: int, block: BlockTag = "latest",
    ) -> AsyncIterator[Transcoder]:
        return self.enumerator.iterate(TranscoderRange(start, end), block)

    async def get_all_transcoders(self, block: BlockTag = "latest") -> list[Transcoder]:
        return await self.enumerator.all_transcoders(block)

    async def get_bonded_transcoders(self, block: BlockTag = "latest") -> list[Transcoder]:
        return await self.enumerator.bonded_transcoders(block)

    # ── Transcoder writes ──────────────────────────────────

    async def register_transcoder(self, signer: TransactionSigner, capacity: int) -> Receipt:
        return await self.submitter.transact(signer, self.contract.register_transcoder(capacity))

    async def delegate(self, signer: TransactionSigner, to: str, amount: int) -> Receipt:
        call = self.contract.delegate(to, amount)
        return await self.submitter.transact(signer, call)

    # ── Withdrawals ────────────────────────────────────────

    async def get_pending_withdrawal(
        self, address: str, block: BlockTag = "latest",
    ) -> PendingWithdrawal:
        return await read_pending(self.contract, to_checksum_address(address), block)

    async def request_withdrawal(
        self, signer: TransactionSigner, transcoder: str, amount: int,
    ) -> WithdrawalInfo:
        """Withdraw ``amount`` of the signer's stake in ``transcoder``.

        Funds that are not bonded come back immediately (completed info);
        bonded funds are queued until the returned readiness timestamp.
        """
        call = self.contract.request_withdrawal(transcoder, amount)
        receipt = await self.submitter.transact(signer, call)
        info = withdrawal_from_receipt(receipt, self.contract.address, signer.address)
        log.info(
            "Withdrawal of %d from %s %s",
            amount, transcoder, "completed" if info.is_completed else "pending",
        )
        return info

    async def complete_withdrawals(
        self, signer: TransactionSigner, cancel: asyncio.Event | None = None,
    ) -> WithdrawalInfo:
        """Complete every ready withdrawal of the signer.

        Raises NoPendingWithdrawals straight away when nothing is pending;
        a withdrawal that is pending but not ready yet is rejected by the
        contract. Setting ``cancel`` abandons the wait for the receipt.
        """
        pending = await read_pending(self.contract, signer.address)
        if not pending.exists:
            raise NoPendingWithdrawals(f"no pending withdrawals for {signer.address}")
        call = self.contract.complete_withdrawals()
        receipt = await self.submitter.transact(signer, call, cancel=cancel)
        return withdrawal_from_receipt(receipt, self.contract.address, signer.address)

    async def wait_withdrawals_completed(
        self,
        signer: TransactionSigner,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> WithdrawalInfo:
        """Block until a withdrawal of the signer is pending, ready and completed."""
        return await self.waiter.wait(signer, timeout, cancel)

    # ── Operator ───────────────────────────────────────────

    async def set_approval_period(self, signer: TransactionSigner, seconds: int) -> Receipt:
        return await self.submitter.transact(signer, self.contract.set_approval_period(seconds))

    async def set_self_min_stake(self, signer: TransactionSigner, amount: int) -> Receipt:
        return await self.submitter.transact(signer, self.contract.set_self_min_stake(amount))

    async def slash(self, signer: TransactionSigner, address: str) -> Receipt:
        call = self.contract.slash(address)
        return await self.submitter.transact(signer, call)
