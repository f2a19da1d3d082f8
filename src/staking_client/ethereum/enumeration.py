"""Transcoder enumeration over the contract's index-addressed registry."""

from __future__ import annotations

import logging
from typing import AsyncIterator

from staking_client.bindings.staking_manager import StakingManager
from staking_client.interfaces.ledger import BlockTag
from staking_client.models.transcoder import BondingState, Transcoder, TranscoderRange

log = logging.getLogger(__name__)


class TranscoderEnumerator:
    """Reads the transcoder registry one index at a time.

    The registry is live remote state: unless a block number is pinned via
    ``block``, entries registered or removed during a traversal may be
    missed or make a read fail. A failed read ends the traversal; callers
    must discard whatever was produced before it.
    """

    def __init__(self, contract: StakingManager) -> None:
        self._contract = contract

    async def count(self, block: BlockTag = "latest") -> int:
        return await self._contract.transcoders_count(block)

    async def entry_at(self, index: int, block: BlockTag = "latest") -> str:
        """Address stored at ``index``. Reverts remotely when out of range."""
        return await self._contract.transcoders_array(index, block)

    async def state(self, address: str, block: BlockTag = "latest") -> BondingState:
        return BondingState(await self._contract.get_transcoder_state(address, block))

    async def snapshot(self, address: str, block: BlockTag = "latest") -> Transcoder:
        """Compose the stake record and bonding state of one transcoder.

        Two reads; they only observe the same state when ``block`` is pinned.
        """
        info = await self._contract.transcoders(address, block)
        state = await self.state(address, block)
        return Transcoder(
            address=address,
            state=state,
            total_stake=info["total"],
            self_stake=info["self_stake"],
            delegated_stake=info["delegated_stake"],
            capacity=info["capacity"],
            effective_min_self_stake=info["effective_min_self_stake"],
        )

    async def snapshot_at(self, index: int, block: BlockTag = "latest") -> Transcoder:
        return await self.snapshot(await self.entry_at(index, block), block)

    async def iterate(
        self, indexes: TranscoderRange, block: BlockTag = "latest",
    ) -> AsyncIterator[Transcoder]:
        """Yield snapshots for ``indexes`` in order, one index per step.

        Forward-only and single-use. The first failed read propagates out of
        the iteration and nothing further is produced.
        """
        index = indexes.start
        while index < indexes.end:
            try:
                transcoder = await self.snapshot_at(index, block)
            except Exception as exc:
                log.warning("Enumeration stopped at index %d of %d: %s", index, indexes.end, exc)
                raise
            yield transcoder
            index += 1

    async def all_transcoders(self, block: BlockTag = "latest") -> list[Transcoder]:
        """Every registry entry, in index order, as of one count read."""
        total = await self.count(block)
        if total == 0:
            return []
        transcoders = [t async for t in self.iterate(TranscoderRange(0, total), block)]
        log.debug("Enumerated %d transcoders", len(transcoders))
        return transcoders

    async def bonded_transcoders(self, block: BlockTag = "latest") -> list[Transcoder]:
        """Registry entries whose state is Bonded, in index order."""
        return [t for t in await self.all_transcoders(block) if t.is_bonded]
