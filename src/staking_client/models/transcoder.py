"""Transcoder registry snapshots read from the staking contract."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class BondingState(IntEnum):
    """Lifecycle phase of a transcoder's stake, as reported by the contract.

    Values match the contract's ``getTranscoderState`` enum ordinal.
    """

    BONDING = 0
    BONDED = 1
    UNBONDED = 2
    UNBONDING = 3
    UNREGISTERED = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class Transcoder:
    """A point-in-time view of one registry entry.

    Produced fresh on every read. Stakes are integer base units of the
    staking token.
    """

    address: str  # checksummed 0x address
    state: BondingState
    total_stake: int
    self_stake: int
    delegated_stake: int
    capacity: int
    effective_min_self_stake: int

    @property
    def is_bonded(self) -> bool:
        return self.state is BondingState.BONDED


@dataclass(frozen=True)
class TranscoderRange:
    """Half-open index range ``[start, end)`` over the registry array."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < 0:
            raise ValueError(f"negative registry index in range [{self.start}, {self.end})")

    def __len__(self) -> int:
        return max(self.end - self.start, 0)

    def __iter__(self):
        return iter(range(self.start, self.end))
