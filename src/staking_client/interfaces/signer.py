"""TransactionSigner protocol - owns a key and its nonce sequence."""

from __future__ import annotations

import asyncio
from typing import Any, Protocol


class TransactionSigner(Protocol):
    """Signs transactions for one account.

    ``lock`` serializes "fetch nonce, sign, broadcast" for the account;
    holders must not sign two transactions for the same key concurrently
    without it.
    """

    @property
    def address(self) -> str:
        ...

    @property
    def lock(self) -> asyncio.Lock:
        ...

    def sign_transaction(self, tx: dict[str, Any]) -> bytes:
        """Return the raw signed transaction bytes."""
        ...
