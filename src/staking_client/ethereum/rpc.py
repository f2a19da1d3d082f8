"""JSON-RPC ledger - talks to an Ethereum-compatible node over HTTP."""

from __future__ import annotations

import itertools
import logging
from typing import Any

import httpx
from eth_utils import to_checksum_address

from staking_client.bindings.staking_manager import decode_revert_reason
from staking_client.errors import RemoteRevert, RpcError, TransientNetworkError
from staking_client.interfaces.ledger import BlockTag
from staking_client.models.records import LogEntry, Receipt

log = logging.getLogger(__name__)

# geth reports reverted calls with code 3; other nodes use -32000/-32015
# with an "execution reverted" / "revert" message.
_REVERT_CODES = {3, -32015}


def _hex(value: int) -> str:
    return hex(value)


def _int(value: str | None) -> int:
    if value is None:
        return 0
    return int(value, 16)


def _bytes(value: str | None) -> bytes:
    if not value:
        return b""
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)


def _block_param(block: BlockTag) -> str:
    return _hex(block) if isinstance(block, int) else block


def _is_revert(code: int | None, message: str) -> bool:
    return code in _REVERT_CODES or "revert" in message.lower()


def _parse_receipt(raw: dict[str, Any]) -> Receipt:
    logs = tuple(
        LogEntry(
            address=to_checksum_address(entry["address"]),
            topics=tuple(_bytes(t) for t in entry.get("topics", [])),
            data=_bytes(entry.get("data")),
            log_index=_int(entry.get("logIndex")),
        )
        for entry in raw.get("logs", [])
    )
    return Receipt(
        tx_hash=raw["transactionHash"],
        block_number=_int(raw.get("blockNumber")),
        status=_int(raw.get("status")) == 1,
        gas_used=_int(raw.get("gasUsed")),
        logs=logs,
    )


class JsonRpcLedger:
    """Ledger implementation over JSON-RPC 2.0 / HTTP.

    One ``httpx.AsyncClient`` is shared by all calls and is safe for
    concurrent use. Transport failures raise TransientNetworkError and are
    never retried here; retry policy belongs to the caller.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._ids = itertools.count(1)
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=10),
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    @property
    def url(self) -> str:
        return self._url

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def request(self, method: str, params: list[Any]) -> Any:
        """Send one JSON-RPC request and return its ``result``."""
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = await self._client.post(self._url, json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.TransportError, httpx.HTTPStatusError) as exc:
            log.warning("%s failed: %s", method, exc)
            raise TransientNetworkError(f"{method}: {exc}") from exc
        except ValueError as exc:
            raise RpcError(f"{method}: invalid JSON-RPC response") from exc

        error = body.get("error")
        if error is not None:
            code = error.get("code")
            message = error.get("message", "")
            data = error.get("data")
            if _is_revert(code, message):
                reason = decode_revert_reason(_bytes(data)) if isinstance(data, str) else None
                log.debug("%s reverted: %s (%s)", method, message, reason)
                raise RemoteRevert(f"{method}: {message}", code, data, reason=reason)
            raise RpcError(f"{method}: {message}", code, data)

        log.debug("%s ok", method)
        return body.get("result")

    # ── Ledger protocol ────────────────────────────────────

    async def call(self, to: str, data: bytes, block: BlockTag = "latest") -> bytes:
        result = await self.request(
            "eth_call", [{"to": to, "data": "0x" + data.hex()}, _block_param(block)],
        )
        return _bytes(result)

    async def estimate_gas(self, tx: dict[str, Any]) -> int:
        params: dict[str, Any] = {"from": tx["from"], "to": tx["to"], "data": "0x" + tx["data"].hex()}
        if tx.get("value"):
            params["value"] = _hex(tx["value"])
        return _int(await self.request("eth_estimateGas", [params]))

    async def send_raw_transaction(self, raw: bytes) -> str:
        return await self.request("eth_sendRawTransaction", ["0x" + raw.hex()])

    async def get_transaction_receipt(self, tx_hash: str) -> Receipt | None:
        raw = await self.request("eth_getTransactionReceipt", [tx_hash])
        if raw is None:
            return None
        return _parse_receipt(raw)

    async def get_transaction_count(self, address: str, block: BlockTag = "pending") -> int:
        return _int(await self.request("eth_getTransactionCount", [address, _block_param(block)]))

    async def gas_price(self) -> int:
        return _int(await self.request("eth_gasPrice", []))

    async def chain_id(self) -> int:
        return _int(await self.request("eth_chainId", []))

    async def block_number(self) -> int:
        return _int(await self.request("eth_blockNumber", []))

    async def block_timestamp(self, block: BlockTag = "latest") -> int:
        raw = await self.request("eth_getBlockByNumber", [_block_param(block), False])
        if raw is None:
            raise RpcError(f"block {block} not found")
        return _int(raw["timestamp"])
