"""StakingManager contract bindings.

ABI table plus calldata/event codecs for the deployed staking contract,
and a thin async client exposing one method per contract function.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import (
    event_signature_to_log_topic,
    function_signature_to_4byte_selector,
    to_checksum_address,
)

from staking_client.errors import RpcError, SubmissionError
from staking_client.interfaces.ledger import BlockTag, Ledger
from staking_client.models.records import LogEntry


@dataclass(frozen=True)
class FunctionABI:
    name: str
    inputs: tuple[str, ...]
    outputs: tuple[str, ...] = ()
    mutates: bool = False

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)


@dataclass(frozen=True)
class EventABI:
    name: str
    indexed: tuple[tuple[str, str], ...]  # (field, type) stored in topics[1:]
    data: tuple[tuple[str, str], ...]  # (field, type) ABI-encoded in data

    @property
    def signature(self) -> str:
        types = [t for _, t in self.indexed] + [t for _, t in self.data]
        return f"{self.name}({','.join(types)})"

    @property
    def topic(self) -> bytes:
        return event_signature_to_log_topic(self.signature)


FUNCTIONS: dict[str, FunctionABI] = {
    f.name: f
    for f in (
        # Reads
        FunctionABI("transcodersCount", (), ("uint256",)),
        FunctionABI("transcodersArray", ("uint256",), ("address",)),
        FunctionABI("getTranscoderState", ("address",), ("uint8",)),
        FunctionABI("getTotalStake", ("address",), ("uint256",)),
        # total, capacity, selfStake, delegatedStake, effectiveMinSelfStake
        FunctionABI(
            "transcoders",
            ("address",),
            ("uint256", "uint256", "uint256", "uint256", "uint256"),
        ),
        # amount, readiness timestamp
        FunctionABI("getPendingWithdrawal", ("address",), ("uint256", "uint256")),
        # Writes
        FunctionABI("registerTranscoder", ("uint256",), mutates=True),
        FunctionABI("delegate", ("address", "uint256"), mutates=True),
        FunctionABI("requestWithdrawal", ("address", "uint256"), mutates=True),
        FunctionABI("completeWithdrawals", (), mutates=True),
        FunctionABI("setApprovalPeriod", ("uint256",), mutates=True),
        FunctionABI("setSelfMinStake", ("uint256",), mutates=True),
        FunctionABI("slash", ("address",), mutates=True),
    )
}

EVENTS: dict[str, EventABI] = {
    e.name: e
    for e in (
        EventABI(
            "WithdrawalProposed",
            (("account", "address"),),
            (("amount", "uint256"), ("readiness", "uint256")),
        ),
        EventABI(
            "WithdrawalCompleted",
            (("account", "address"),),
            (("amount", "uint256"),),
        ),
    )
}

_EVENTS_BY_TOPIC = {e.topic: e for e in EVENTS.values()}

# Error(string) as produced by Solidity require/revert
_REVERT_SELECTOR = bytes.fromhex("08c379a0")


def encode_call(name: str, *args: Any) -> bytes:
    """ABI-encode calldata for a contract function."""
    fn = FUNCTIONS[name]
    if len(args) != len(fn.inputs):
        raise ValueError(f"{fn.signature} takes {len(fn.inputs)} arguments, got {len(args)}")
    try:
        return fn.selector + encode(list(fn.inputs), list(args))
    except (EncodingError, TypeError) as exc:
        raise ValueError(f"bad arguments for {fn.signature}: {exc}") from exc


def decode_output(name: str, data: bytes) -> tuple:
    """Decode the return data of a read call."""
    fn = FUNCTIONS[name]
    try:
        return tuple(decode(list(fn.outputs), data))
    except DecodingError as exc:
        raise RpcError(f"malformed output for {fn.signature}: {exc}") from exc


def decode_event(entry: LogEntry) -> tuple[str, dict[str, Any]] | None:
    """Decode a receipt log into (event name, fields).

    Returns None for logs this contract's ABI does not describe.
    """
    if not entry.topics:
        return None
    event = _EVENTS_BY_TOPIC.get(entry.topics[0])
    if event is None or len(entry.topics) != len(event.indexed) + 1:
        return None

    fields: dict[str, Any] = {}
    for (field_name, field_type), topic in zip(event.indexed, entry.topics[1:]):
        (value,) = decode([field_type], topic)
        fields[field_name] = value
    values = decode([t for _, t in event.data], entry.data)
    for (field_name, _), value in zip(event.data, values):
        fields[field_name] = value

    for field_name, field_type in event.indexed + event.data:
        if field_type == "address":
            fields[field_name] = to_checksum_address(fields[field_name])
    return event.name, fields


def encode_event(name: str, **fields: Any) -> tuple[tuple[bytes, ...], bytes]:
    """Encode (topics, data) for an event - the inverse of decode_event."""
    event = EVENTS[name]
    topics = [event.topic]
    for field_name, field_type in event.indexed:
        topics.append(encode([field_type], [fields[field_name]]))
    data = encode([t for _, t in event.data], [fields[n] for n, _ in event.data])
    return tuple(topics), data


def decode_revert_reason(data: bytes | None) -> str | None:
    """Extract the message from Error(string) revert data."""
    if not data or not data.startswith(_REVERT_SELECTOR):
        return None
    try:
        (reason,) = decode(["string"], data[4:])
    except DecodingError:
        return None
    return reason


@dataclass(frozen=True)
class ContractCall:
    """A state-mutating call, ready to be signed and submitted."""

    to: str
    method: str
    args: tuple
    data: bytes


class StakingManager:
    """Async client for the StakingManager contract.

    Read methods issue exactly one ``eth_call`` each. Write methods only
    build a ContractCall; signing and broadcasting belong to the submitter.
    """

    def __init__(self, ledger: Ledger, address: str) -> None:
        self._ledger = ledger
        self.address = to_checksum_address(address)

    async def _read(self, name: str, *args: Any, block: BlockTag = "latest") -> tuple:
        raw = await self._ledger.call(self.address, encode_call(name, *args), block)
        return decode_output(name, raw)

    def _write(self, name: str, *args: Any) -> ContractCall:
        try:
            data = encode_call(name, *args)
        except ValueError as exc:
            raise SubmissionError(str(exc)) from exc
        return ContractCall(to=self.address, method=name, args=args, data=data)

    # ── Reads ──────────────────────────────────────────────

    async def transcoders_count(self, block: BlockTag = "latest") -> int:
        (count,) = await self._read("transcodersCount", block=block)
        return count

    async def transcoders_array(self, index: int, block: BlockTag = "latest") -> str:
        (address,) = await self._read("transcodersArray", index, block=block)
        return to_checksum_address(address)

    async def get_transcoder_state(self, address: str, block: BlockTag = "latest") -> int:
        (state,) = await self._read("getTranscoderState", address, block=block)
        return state

    async def get_total_stake(self, address: str, block: BlockTag = "latest") -> int:
        (stake,) = await self._read("getTotalStake", address, block=block)
        return stake

    async def transcoders(self, address: str, block: BlockTag = "latest") -> dict[str, int]:
        total, capacity, self_stake, delegated, effective_min = await self._read(
            "transcoders", address, block=block,
        )
        return {
            "total": total,
            "capacity": capacity,
            "self_stake": self_stake,
            "delegated_stake": delegated,
            "effective_min_self_stake": effective_min,
        }

    async def get_pending_withdrawal(
        self, address: str, block: BlockTag = "latest",
    ) -> tuple[int, int]:
        amount, readiness = await self._read("getPendingWithdrawal", address, block=block)
        return amount, readiness

    # ── Writes ─────────────────────────────────────────────

    def register_transcoder(self, capacity: int) -> ContractCall:
        return self._write("registerTranscoder", capacity)

    def delegate(self, to: str, amount: int) -> ContractCall:
        return self._write("delegate", to, amount)

    def request_withdrawal(self, transcoder: str, amount: int) -> ContractCall:
        return self._write("requestWithdrawal", transcoder, amount)

    def complete_withdrawals(self) -> ContractCall:
        return self._write("completeWithdrawals")

    def set_approval_period(self, seconds: int) -> ContractCall:
        return self._write("setApprovalPeriod", seconds)

    def set_self_min_stake(self, amount: int) -> ContractCall:
        return self._write("setSelfMinStake", amount)

    def slash(self, address: str) -> ContractCall:
        return self._write("slash", address)
