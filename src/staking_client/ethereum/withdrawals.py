"""Withdrawal receipt decoding and the withdrawal-readiness waiter."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from staking_client.bindings.staking_manager import StakingManager, decode_event
from staking_client.errors import NoPendingWithdrawals, UnexpectedReceipt
from staking_client.ethereum.polling import PollLoop
from staking_client.interfaces.ledger import Ledger
from staking_client.interfaces.signer import TransactionSigner
from staking_client.models.records import Receipt
from staking_client.models.withdrawal import PendingWithdrawal, WithdrawalInfo

log = logging.getLogger(__name__)

CompleteFn = Callable[[TransactionSigner, Optional[asyncio.Event]], Awaitable[WithdrawalInfo]]


def withdrawal_from_receipt(receipt: Receipt, contract: str, account: str) -> WithdrawalInfo:
    """Build a WithdrawalInfo from the contract events in a mined receipt.

    WithdrawalCompleted events win: their amounts are summed into a
    completed info. Otherwise the latest WithdrawalProposed readiness gives
    a pending info.
    """
    completed = 0
    seen_completed = False
    readiness = 0

    for entry in receipt.logs:
        if entry.address != contract:
            continue
        decoded = decode_event(entry)
        if decoded is None:
            continue
        name, fields = decoded
        if fields.get("account") != account:
            continue
        if name == "WithdrawalCompleted":
            completed += fields["amount"]
            seen_completed = True
        elif name == "WithdrawalProposed":
            readiness = max(readiness, fields["readiness"])

    if seen_completed:
        return WithdrawalInfo.completed(completed)
    if readiness:
        return WithdrawalInfo.pending(readiness)
    raise UnexpectedReceipt(f"no withdrawal events for {account} in tx {receipt.tx_hash}")


async def read_pending(
    contract: StakingManager, account: str, block: int | str = "latest",
) -> PendingWithdrawal:
    amount, readiness = await contract.get_pending_withdrawal(account, block)
    return PendingWithdrawal(account=account, amount=amount, readiness_timestamp=readiness)


class WithdrawalWaiter:
    """Waits until a party's pending withdrawal can be, and is, completed.

    Unlike ``complete_withdrawals``, having nothing pending is not an
    error here: the waiter keeps polling until a withdrawal shows up,
    becomes ready, and its completion is mined.
    """

    def __init__(
        self,
        contract: StakingManager,
        ledger: Ledger,
        complete: CompleteFn,
        poll_interval: float = 1.0,
    ) -> None:
        self._contract = contract
        self._ledger = ledger
        self._complete = complete
        self._poll_interval = poll_interval

    async def _check(
        self, signer: TransactionSigner, cancel: asyncio.Event | None,
    ) -> WithdrawalInfo | None:
        pending = await read_pending(self._contract, signer.address)
        if not pending.exists:
            log.debug("No pending withdrawal for %s", signer.address)
            return None

        now = await self._ledger.block_timestamp("latest")
        if not pending.is_ready(now):
            log.debug(
                "Withdrawal of %d for %s ready at %d (now %d)",
                pending.amount, signer.address, pending.readiness_timestamp, now,
            )
            return None

        try:
            return await self._complete(signer, cancel)
        except NoPendingWithdrawals:
            # Completed by someone else between the read and our transaction.
            return None

    async def wait(
        self,
        signer: TransactionSigner,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> WithdrawalInfo:
        loop: PollLoop[WithdrawalInfo] = PollLoop(
            f"withdrawal {signer.address}", self._poll_interval, timeout, cancel,
        )
        info = await loop.run(lambda: self._check(signer, cancel))
        log.info("Withdrawal completed for %s: %d", signer.address, info.amount)
        return info
