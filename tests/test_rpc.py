"""JsonRpcLedger against a mocked HTTP transport."""

from __future__ import annotations

import json

import httpx
import pytest
from eth_abi import encode
from eth_utils import to_checksum_address

from staking_client.errors import RemoteRevert, RpcError, TransientNetworkError
from staking_client.ethereum.rpc import JsonRpcLedger

URL = "http://node.test:8545"
CONTRACT = "0x" + "5a" * 20


class RecordingNode:
    """Answers JSON-RPC requests from a method -> result/error table."""

    def __init__(self, answers: dict):
        self.answers = answers
        self.requests: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        answer = self.answers[body["method"]]
        if isinstance(answer, httpx.Response):
            return answer
        if isinstance(answer, Exception):
            raise answer
        payload = {"jsonrpc": "2.0", "id": body["id"]}
        if isinstance(answer, dict) and "error" in answer:
            payload["error"] = answer["error"]
        else:
            payload["result"] = answer
        return httpx.Response(200, json=payload)


def make_ledger(answers: dict) -> tuple[JsonRpcLedger, RecordingNode]:
    node = RecordingNode(answers)
    return JsonRpcLedger(URL, transport=httpx.MockTransport(node)), node


class TestCall:
    async def test_encodes_data_and_block(self):
        ledger, node = make_ledger({"eth_call": "0x" + "00" * 31 + "07"})

        result = await ledger.call(CONTRACT, b"\x12\x34", block=255)

        assert result == b"\x00" * 31 + b"\x07"
        params = node.requests[0]["params"]
        assert params[0] == {"to": CONTRACT, "data": "0x1234"}
        assert params[1] == "0xff"
        await ledger.close()

    async def test_named_block_passed_through(self):
        ledger, node = make_ledger({"eth_call": "0x"})
        await ledger.call(CONTRACT, b"", block="latest")
        assert node.requests[0]["params"][1] == "latest"

    async def test_request_ids_increase(self):
        ledger, node = make_ledger({"eth_blockNumber": "0x10", "eth_chainId": "0x539"})
        assert await ledger.block_number() == 16
        assert await ledger.chain_id() == 1337
        assert [r["id"] for r in node.requests] == [1, 2]


class TestErrors:
    async def test_revert_with_reason(self):
        data = "0x08c379a0" + encode(["string"], ["only owner"]).hex()
        ledger, _ = make_ledger({
            "eth_estimateGas": {"error": {"code": 3, "message": "execution reverted", "data": data}},
        })

        with pytest.raises(RemoteRevert) as excinfo:
            await ledger.estimate_gas({"from": CONTRACT, "to": CONTRACT, "data": b""})
        assert excinfo.value.reason == "only owner"
        assert excinfo.value.code == 3

    async def test_revert_without_data(self):
        ledger, _ = make_ledger({
            "eth_call": {"error": {"code": -32000, "message": "execution reverted"}},
        })
        with pytest.raises(RemoteRevert) as excinfo:
            await ledger.call(CONTRACT, b"")
        assert excinfo.value.reason is None

    async def test_other_errors(self):
        ledger, _ = make_ledger({
            "eth_sendRawTransaction": {"error": {"code": -32000, "message": "nonce too low"}},
        })
        with pytest.raises(RpcError) as excinfo:
            await ledger.send_raw_transaction(b"\x01")
        assert not isinstance(excinfo.value, RemoteRevert)
        assert excinfo.value.code == -32000

    async def test_connection_refused(self):
        ledger, _ = make_ledger({"eth_blockNumber": httpx.ConnectError("connection refused")})
        with pytest.raises(TransientNetworkError):
            await ledger.block_number()

    async def test_http_error_status(self):
        ledger, _ = make_ledger({"eth_gasPrice": httpx.Response(503, text="busy")})
        with pytest.raises(TransientNetworkError):
            await ledger.gas_price()

    async def test_invalid_json(self):
        ledger, _ = make_ledger({"eth_gasPrice": httpx.Response(200, text="<html>")})
        with pytest.raises(RpcError):
            await ledger.gas_price()


class TestReceipts:
    async def test_pending_receipt(self):
        ledger, _ = make_ledger({"eth_getTransactionReceipt": None})
        assert await ledger.get_transaction_receipt("0x" + "11" * 32) is None

    async def test_receipt_parsing(self):
        topic = "0x" + "aa" * 32
        ledger, _ = make_ledger({
            "eth_getTransactionReceipt": {
                "transactionHash": "0x" + "11" * 32,
                "blockNumber": "0x2a",
                "status": "0x1",
                "gasUsed": "0x5208",
                "logs": [{
                    "address": CONTRACT,
                    "topics": [topic],
                    "data": "0x0102",
                    "logIndex": "0x3",
                }],
            },
        })

        receipt = await ledger.get_transaction_receipt("0x" + "11" * 32)

        assert receipt.block_number == 42
        assert receipt.status is True
        assert receipt.gas_used == 21_000
        (entry,) = receipt.logs
        assert entry.address == to_checksum_address(CONTRACT)
        assert entry.topics == (bytes.fromhex("aa" * 32),)
        assert entry.data == b"\x01\x02"
        assert entry.log_index == 3

    async def test_failed_status(self):
        ledger, _ = make_ledger({
            "eth_getTransactionReceipt": {
                "transactionHash": "0x" + "11" * 32, "blockNumber": "0x1", "status": "0x0",
            },
        })
        receipt = await ledger.get_transaction_receipt("0x" + "11" * 32)
        assert receipt.status is False
        assert receipt.logs == ()


class TestBlocks:
    async def test_block_timestamp(self):
        ledger, node = make_ledger({"eth_getBlockByNumber": {"timestamp": "0x6553f100"}})
        assert await ledger.block_timestamp() == 0x6553F100
        assert node.requests[0]["params"] == ["latest", False]

    async def test_missing_block(self):
        ledger, _ = make_ledger({"eth_getBlockByNumber": None})
        with pytest.raises(RpcError):
            await ledger.block_timestamp(10**9)

    async def test_transaction_count_uses_pending(self):
        ledger, node = make_ledger({"eth_getTransactionCount": "0x5"})
        assert await ledger.get_transaction_count(CONTRACT) == 5
        assert node.requests[0]["params"] == [CONTRACT, "pending"]
