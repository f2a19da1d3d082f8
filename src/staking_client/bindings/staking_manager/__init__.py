"""StakingManager contract bindings."""

from staking_client.bindings.staking_manager.bindings import (
    EVENTS,
    FUNCTIONS,
    ContractCall,
    StakingManager,
    decode_event,
    decode_output,
    decode_revert_reason,
    encode_call,
    encode_event,
)

__all__ = [
    "EVENTS",
    "FUNCTIONS",
    "ContractCall",
    "StakingManager",
    "decode_event",
    "decode_output",
    "decode_revert_reason",
    "encode_call",
    "encode_event",
]
