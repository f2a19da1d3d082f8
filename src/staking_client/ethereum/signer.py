"""Key-backed transaction signer built on eth-account."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount

from staking_client.errors import ConfigError

log = logging.getLogger(__name__)


class KeySigner:
    """Signs transactions with a local private key.

    Each signer owns an ``asyncio.Lock``; the submitter holds it across
    nonce lookup, signing and broadcast so concurrent submissions from one
    key are serialized.
    """

    def __init__(self, account: LocalAccount) -> None:
        self._account = account
        self._lock = asyncio.Lock()

    @classmethod
    def from_key(cls, private_key: str | bytes) -> KeySigner:
        try:
            return cls(Account.from_key(private_key))
        except (ValueError, TypeError) as exc:
            raise ConfigError(f"invalid private key: {exc}") from exc

    @classmethod
    def from_keyfile(cls, path: str | Path, password: str) -> KeySigner:
        """Decrypt a keystore (v3) JSON file."""
        p = Path(path).expanduser()
        try:
            keyfile = json.loads(p.read_text())
        except (OSError, ValueError) as exc:
            raise ConfigError(f"cannot read key file {p}: {exc}") from exc
        try:
            key = Account.decrypt(keyfile, password)
        except ValueError as exc:
            raise ConfigError(f"cannot decrypt key file {p}: {exc}") from exc
        signer = cls(Account.from_key(key))
        log.info("Loaded key %s from %s", signer.address, p)
        return signer

    @classmethod
    def generate(cls) -> KeySigner:
        return cls(Account.create())

    @property
    def address(self) -> str:
        return self._account.address

    @property
    def key(self) -> bytes:
        return bytes(self._account.key)

    @property
    def lock(self) -> asyncio.Lock:
        return self._lock

    def sign_transaction(self, tx: dict[str, Any]) -> bytes:
        signed = self._account.sign_transaction(tx)
        return bytes(signed.raw_transaction)

    def __repr__(self) -> str:
        return f"KeySigner({self.address})"
