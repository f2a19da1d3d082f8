"""StakingManager ABI codecs."""

from __future__ import annotations

import pytest
from eth_abi import encode
from eth_utils import keccak, to_checksum_address

from staking_client.bindings.staking_manager import (
    EVENTS,
    FUNCTIONS,
    StakingManager,
    decode_event,
    decode_output,
    decode_revert_reason,
    encode_call,
)
from staking_client.errors import RpcError, SubmissionError
from staking_client.models.records import LogEntry

from tests.factories import ACCOUNT, make_log
from tests.mocks import CONTRACT_ADDRESS


def test_selectors_are_keccak_prefixes():
    for fn in FUNCTIONS.values():
        assert fn.selector == keccak(text=fn.signature)[:4]
    assert FUNCTIONS["requestWithdrawal"].signature == "requestWithdrawal(address,uint256)"
    assert FUNCTIONS["completeWithdrawals"].signature == "completeWithdrawals()"


def test_event_topics():
    assert EVENTS["WithdrawalProposed"].signature == "WithdrawalProposed(address,uint256,uint256)"
    assert EVENTS["WithdrawalCompleted"].topic == keccak(text="WithdrawalCompleted(address,uint256)")


def test_encode_call():
    data = encode_call("delegate", ACCOUNT, 5)
    assert data[:4] == FUNCTIONS["delegate"].selector
    assert data[4:] == encode(["address", "uint256"], [ACCOUNT, 5])


def test_encode_call_argument_count():
    with pytest.raises(ValueError):
        encode_call("delegate", ACCOUNT)


def test_decode_output_malformed():
    with pytest.raises(RpcError):
        decode_output("transcoders", b"\x00" * 10)


def test_decode_event():
    name, fields = decode_event(
        make_log("WithdrawalProposed", account=ACCOUNT, amount=9, readiness=1234)
    )
    assert name == "WithdrawalProposed"
    assert fields == {"account": to_checksum_address(ACCOUNT), "amount": 9, "readiness": 1234}


def test_decode_event_unknown_topic():
    entry = LogEntry(address=CONTRACT_ADDRESS, topics=(b"\x01" * 32,), data=b"")
    assert decode_event(entry) is None
    assert decode_event(LogEntry(address=CONTRACT_ADDRESS, topics=(), data=b"")) is None


def test_revert_reason():
    data = bytes.fromhex("08c379a0") + encode(["string"], ["index out of range"])
    assert decode_revert_reason(data) == "index out of range"
    assert decode_revert_reason(b"") is None
    assert decode_revert_reason(b"\xde\xad\xbe\xef") is None


def test_write_builder_rejects_bad_arguments():
    contract = StakingManager(ledger=None, address=CONTRACT_ADDRESS)
    with pytest.raises(SubmissionError):
        contract.slash("not an address")

    call = contract.set_approval_period(60)
    assert call.to == CONTRACT_ADDRESS
    assert call.method == "setApprovalPeriod"
    assert call.args == (60,)
