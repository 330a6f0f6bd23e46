"""
Event Envelope
==============

Normalized representation of a single chain log plus the parameter decoding
that every handler relies on. Logs can be supplied either with snake_case keys
or with the camelCase keys produced by web3 log decoding.

Decoding is strict: a missing field, a value of the wrong kind or an
out-of-range number raises EventDecodeError, which halts indexing.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from web3 import Web3

from utils.indexing_errors import EventDecodeError

logger = logging.getLogger(__name__)

UINT256_MAX = 2 ** 256 - 1
ZERO_ADDRESS = "0x" + "0" * 40

# Parameter kinds understood by the decoder
ADDRESS = "address"
UINT256 = "uint256"
BYTES = "bytes"
BYTES32 = "bytes32"
STRING = "string"
EVIDENCE = "evidence"
EVIDENCE_LIST = "evidence[]"

_EVIDENCE_BATCH = (("sender", ADDRESS), ("evidences", EVIDENCE_LIST))

# Event name -> ordered (param, kind) schema
EVENT_SCHEMAS: Dict[str, Tuple[Tuple[str, str], ...]] = {
    # Verify registry
    "RequestApprove": (("sender", ADDRESS), ("evidence", EVIDENCE)),
    "Approve": _EVIDENCE_BATCH,
    "RequestRemove": _EVIDENCE_BATCH,
    "Remove": _EVIDENCE_BATCH,
    "RequestBan": _EVIDENCE_BATCH,
    "Ban": _EVIDENCE_BATCH,
    "RoleGranted": (("role", BYTES32), ("account", ADDRESS), ("sender", ADDRESS)),
    "RoleRevoked": (("role", BYTES32), ("account", ADDRESS), ("sender", ADDRESS)),
    # Factories
    "NewChild": (("sender", ADDRESS), ("child", ADDRESS)),
    "Implementation": (("sender", ADDRESS), ("implementation", ADDRESS)),
    # Notice board
    "NewNotice": (("sender", ADDRESS), ("subject", ADDRESS), ("data", BYTES)),
    # Claim escrow
    "PendingDeposit": (
        ("sender", ADDRESS), ("sale", ADDRESS), ("redeemable", ADDRESS),
        ("token", ADDRESS), ("amount", UINT256),
    ),
    "Deposit": (
        ("depositor", ADDRESS), ("sale", ADDRESS), ("redeemable", ADDRESS),
        ("token", ADDRESS), ("supply", UINT256), ("amount", UINT256),
    ),
    "Sweep": (
        ("sender", ADDRESS), ("depositor", ADDRESS), ("sale", ADDRESS), ("redeemable", ADDRESS),
        ("token", ADDRESS), ("supply", UINT256), ("amount", UINT256),
    ),
    "Withdraw": (
        ("withdrawer", ADDRESS), ("sale", ADDRESS), ("redeemable", ADDRESS),
        ("token", ADDRESS), ("supply", UINT256), ("amount", UINT256),
    ),
    "Undeposit": (
        ("sender", ADDRESS), ("sale", ADDRESS), ("redeemable", ADDRESS),
        ("token", ADDRESS), ("supply", UINT256), ("amount", UINT256),
    ),
    # Stake pools and tokens
    "Initialize": (("sender", ADDRESS), ("token", ADDRESS), ("name", STRING), ("symbol", STRING)),
    "Transfer": (("from", ADDRESS), ("to", ADDRESS), ("value", UINT256)),
}


@dataclass(frozen=True)
class Evidence:
    """An account plus the opaque evidence bytes submitted about it"""
    account: str
    data: str = "0x"


@dataclass(frozen=True)
class EventEnvelope:
    """A single decoded chain log"""
    contract_address: str
    event_name: str
    block_number: int
    block_timestamp: int
    transaction_hash: str
    transaction_index: int
    log_index: int
    params: Dict[str, Any] = field(default_factory=dict)

    @property
    def position(self) -> Tuple[int, int, int]:
        """Total-order key of this log on the chain"""
        return (self.block_number, self.transaction_index, self.log_index)

    def param(self, name: str):
        try:
            return self.params[name]
        except KeyError:
            raise EventDecodeError("missing decoded parameter", self.event_name, name)

    @classmethod
    def from_log(cls, log: Mapping[str, Any]) -> "EventEnvelope":
        """Build and decode an envelope from a raw log mapping"""
        event_name = _first(log, "event_name", "event")
        if not isinstance(event_name, str) or not event_name:
            raise EventDecodeError("missing event name")

        contract_address = decode_address(_first(log, "contract_address", "address"), event_name, "contract_address")
        block_number = _decode_position(_first(log, "block_number", "blockNumber"), event_name, "block_number")
        block_timestamp = _decode_position(
            _first(log, "block_timestamp", "timestamp", "blockTimestamp"), event_name, "block_timestamp")
        transaction_hash = decode_hash(_first(log, "transaction_hash", "transactionHash"), event_name)
        transaction_index = _decode_position(
            _first(log, "transaction_index", "transactionIndex"), event_name, "transaction_index")
        log_index = _decode_position(_first(log, "log_index", "logIndex"), event_name, "log_index")

        raw_params = _first(log, "params", "args")
        if raw_params is None:
            raw_params = {}
        if not isinstance(raw_params, Mapping):
            raise EventDecodeError("params must be a mapping", event_name)

        return cls(
            contract_address=contract_address,
            event_name=event_name,
            block_number=block_number,
            block_timestamp=block_timestamp,
            transaction_hash=transaction_hash,
            transaction_index=transaction_index,
            log_index=log_index,
            params=decode_params(event_name, raw_params),
        )


def _first(log: Mapping[str, Any], *keys: str):
    for key in keys:
        if key in log and log[key] is not None:
            return log[key]
    return None


def _hex(value) -> str:
    # HexBytes subclasses bytes
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "0x" + bytes(value).hex()
    return value


def _is_hex_body(text: str) -> bool:
    try:
        int(text, 16)
    except ValueError:
        return False
    return True


def _decode_position(value, event_name: str, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EventDecodeError(f"expected a non-negative integer, got {value!r}", event_name, name)
    if value < 0:
        raise EventDecodeError(f"expected a non-negative integer, got {value}", event_name, name)
    return value


def decode_address(value, event_name: Optional[str] = None, name: Optional[str] = None) -> str:
    """Validate a 20-byte address and return it as lowercase hex"""
    value = _hex(value)
    if not isinstance(value, str) or not Web3.is_address(value):
        raise EventDecodeError(f"malformed address {value!r}", event_name, name)
    if not value.startswith("0x"):
        value = "0x" + value
    return value.lower()


def decode_hash(value, event_name: Optional[str] = None) -> str:
    """Validate a 32-byte transaction hash"""
    value = _hex(value)
    if (
        not isinstance(value, str)
        or not value.startswith("0x")
        or len(value) != 66
        or not _is_hex_body(value[2:])
    ):
        raise EventDecodeError(f"malformed transaction hash {value!r}", event_name, "transaction_hash")
    return value.lower()


def decode_uint256(value, event_name: Optional[str] = None, name: Optional[str] = None) -> int:
    """Accept ints, decimal strings and 0x hex strings within [0, 2**256)"""
    if isinstance(value, bool):
        raise EventDecodeError("boolean is not a uint256", event_name, name)
    if isinstance(value, str):
        text = value.strip()
        try:
            value = int(text, 16) if text.lower().startswith("0x") else int(text, 10)
        except ValueError:
            raise EventDecodeError(f"malformed uint256 {text!r}", event_name, name)
    if not isinstance(value, int):
        raise EventDecodeError(f"expected uint256, got {type(value).__name__}", event_name, name)
    if value < 0 or value > UINT256_MAX:
        raise EventDecodeError(f"uint256 out of range: {value}", event_name, name)
    return value


def decode_bytes(value, event_name: Optional[str] = None, name: Optional[str] = None,
                 length: Optional[int] = None) -> str:
    """Validate a byte string and return it as lowercase 0x hex"""
    value = _hex(value)
    if not isinstance(value, str) or not value.startswith("0x"):
        raise EventDecodeError(f"expected 0x-prefixed bytes, got {value!r}", event_name, name)
    body = value[2:]
    if len(body) % 2 != 0 or (body and not _is_hex_body(body)):
        raise EventDecodeError(f"malformed bytes {value!r}", event_name, name)
    if length is not None and len(body) != length * 2:
        raise EventDecodeError(f"expected {length} bytes, got {len(body) // 2}", event_name, name)
    return value.lower()


def decode_evidence(value, event_name: Optional[str] = None, name: Optional[str] = None) -> Evidence:
    if isinstance(value, Evidence):
        return value
    if isinstance(value, Mapping):
        account, data = value.get("account"), value.get("data", "0x")
    elif isinstance(value, (list, tuple)) and len(value) == 2:
        account, data = value
    else:
        raise EventDecodeError(f"malformed evidence {value!r}", event_name, name)
    return Evidence(
        account=decode_address(account, event_name, f"{name}.account"),
        data=decode_bytes(data, event_name, f"{name}.data"),
    )


def decode_param(kind: str, value, event_name: Optional[str] = None, name: Optional[str] = None):
    if kind == ADDRESS:
        return decode_address(value, event_name, name)
    if kind == UINT256:
        return decode_uint256(value, event_name, name)
    if kind == BYTES:
        return decode_bytes(value, event_name, name)
    if kind == BYTES32:
        return decode_bytes(value, event_name, name, length=32)
    if kind == STRING:
        if not isinstance(value, str):
            raise EventDecodeError(f"expected string, got {type(value).__name__}", event_name, name)
        return value
    if kind == EVIDENCE:
        return decode_evidence(value, event_name, name)
    if kind == EVIDENCE_LIST:
        if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Sequence):
            raise EventDecodeError("expected a list of evidences", event_name, name)
        return [decode_evidence(item, event_name, f"{name}[{i}]") for i, item in enumerate(value)]
    raise EventDecodeError(f"unknown parameter kind {kind!r}", event_name, name)


def decode_params(event_name: str, raw_params: Mapping[str, Any]) -> Dict[str, Any]:
    """Decode raw parameters against the schema registered for the event.

    Events without a schema are passed through untouched; they can only be
    reached by a handler if someone binds one, and they are otherwise ignored.
    A batch evidence parameter may also be supplied in its singular form.
    """
    schema = EVENT_SCHEMAS.get(event_name)
    if schema is None:
        logger.debug(f"🔍 ENVELOPE: No schema for {event_name}, passing params through")
        return dict(raw_params)

    decoded: Dict[str, Any] = {}
    for name, kind in schema:
        if name in raw_params:
            value = raw_params[name]
        elif kind == EVIDENCE_LIST and name[:-1] in raw_params:
            value = [raw_params[name[:-1]]]
        else:
            raise EventDecodeError("missing parameter", event_name, name)
        decoded[name] = decode_param(kind, value, event_name, name)
    return decoded


def evidences_of(envelope: EventEnvelope) -> List[Evidence]:
    """Evidence batch of an event, whether it carried one evidence or many"""
    if "evidences" in envelope.params:
        return list(envelope.params["evidences"])
    return [envelope.param("evidence")]
