"""Transaction submitter - signs, broadcasts and confirms contract calls."""

from __future__ import annotations

import asyncio
import logging

from staking_client.bindings.staking_manager import ContractCall
from staking_client.errors import ExecutionReverted, RemoteRevert, RpcError, SubmissionError
from staking_client.ethereum.polling import PollLoop
from staking_client.interfaces.ledger import Ledger
from staking_client.interfaces.signer import TransactionSigner
from staking_client.models.records import Receipt, TransactionHandle

log = logging.getLogger(__name__)


class TransactionSubmitter:
    """Submits state-mutating contract calls and waits for them to be mined.

    Nothing is retried: a rejected broadcast raises SubmissionError and the
    caller decides whether to resubmit.
    """

    def __init__(
        self,
        ledger: Ledger,
        poll_interval: float = 1.0,
        confirmation_timeout: float | None = 60.0,
        gas_limit: int | None = None,
        chain_id: int | None = None,
    ) -> None:
        self._ledger = ledger
        self._poll_interval = poll_interval
        self._confirmation_timeout = confirmation_timeout
        self._gas_limit = gas_limit
        self._chain_id = chain_id

    async def submit(self, signer: TransactionSigner, call: ContractCall) -> TransactionHandle:
        """Build, sign and broadcast ``call`` from the signer's account.

        Gas estimation runs the call against pending state, so a call the
        contract would reject raises RemoteRevert before anything is
        broadcast.
        """
        sender = signer.address
        log.info("Submitting %s from %s", call.method, sender)

        async with signer.lock:
            try:
                nonce = await self._ledger.get_transaction_count(sender, "pending")
                chain_id = self._chain_id or await self._ledger.chain_id()
                gas_price = await self._ledger.gas_price()
            except RpcError as exc:
                log.error("cannot prepare %s: %s", call.method, exc)
                raise SubmissionError(f"cannot prepare {call.method}: {exc}") from exc
            tx = {
                "from": sender,
                "to": call.to,
                "value": 0,
                "data": call.data,
                "nonce": nonce,
                "gasPrice": gas_price,
                "chainId": chain_id,
            }
            if self._gas_limit is not None:
                tx["gas"] = self._gas_limit
            else:
                try:
                    tx["gas"] = await self._ledger.estimate_gas(tx)
                except RemoteRevert as exc:
                    log.warning("%s would revert: %s", call.method, exc.reason or exc)
                    raise
                except RpcError as exc:
                    # e.g. insufficient funds for gas * price + value
                    log.error("cannot estimate gas for %s: %s", call.method, exc)
                    raise SubmissionError(f"cannot estimate gas for {call.method}: {exc}") from exc

            unsigned = {k: v for k, v in tx.items() if k != "from"}
            try:
                raw = signer.sign_transaction(unsigned)
            except (ValueError, TypeError) as exc:
                raise SubmissionError(f"cannot sign {call.method}: {exc}") from exc

            try:
                tx_hash = await self._ledger.send_raw_transaction(raw)
            except RemoteRevert:
                raise
            except RpcError as exc:
                log.error("%s broadcast rejected: %s", call.method, exc)
                raise SubmissionError(f"{call.method} rejected: {exc}") from exc

        log.info("%s broadcast (nonce=%d, tx=%s)", call.method, nonce, tx_hash[:18])
        return TransactionHandle(tx_hash=tx_hash, sender=sender, nonce=nonce, method=call.method)

    async def await_confirmation(
        self,
        handle: TransactionHandle,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Receipt:
        """Poll until the transaction is mined.

        Raises ExecutionReverted if it was mined with a failed status, and
        DeadlineExceeded / Cancelled if the wait ends first.
        ``timeout`` defaults to the submitter's confirmation timeout.
        """
        if timeout is None:
            timeout = self._confirmation_timeout

        async def _check() -> Receipt | None:
            return await self._ledger.get_transaction_receipt(handle.tx_hash)

        loop: PollLoop[Receipt] = PollLoop(
            f"confirm {handle.method} {handle.tx_hash[:18]}",
            self._poll_interval,
            timeout,
            cancel,
        )
        receipt = await loop.run(_check)

        if not receipt.status:
            log.error(
                "%s reverted in block %d (tx=%s)",
                handle.method, receipt.block_number, handle.tx_hash[:18],
            )
            raise ExecutionReverted(f"{handle.method} reverted (tx={handle.tx_hash})", receipt)

        log.info(
            "%s mined in block %d (tx=%s)",
            handle.method, receipt.block_number, handle.tx_hash[:18],
        )
        return receipt

    async def transact(
        self,
        signer: TransactionSigner,
        call: ContractCall,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Receipt:
        """Submit ``call`` and wait for a successful receipt."""
        handle = await self.submit(signer, call)
        return await self.await_confirmation(handle, timeout, cancel)
