"""
zkattest Canonical Encoder/Decoder

Fixed-layout binary encoding of attestation records. This is the byte
contract a verifier decodes, so layouts never change within a schema
version. All integers are big-endian.

    collateral_metrics  ratio u32 | collateral_usd u32                      8 bytes
    liquidation         threshold u32                                        4 bytes
    loan_to_value       ltv_percent u32                                      4 bytes
    loan_health         ratio u32 | collateral_usd u32 | threshold u32
                        | ltv_percent u32                                   16 bytes
    btc_holdings        total_btc u64 | put u64 | call u64 | org_hash[32]   56 bytes
    *_transaction       total u64 | sender_hash[32] | owner_field[32]
                        | tx_hash[32]                                      104 bytes
    xrp_balance         total u64 | address_len u16 | address utf-8       10+n bytes

Plaintext owner addresses are right-padded with zero bytes to 32 bytes.

encode() is a pure layout transform and never validates; validation belongs
to the validator and assembler. decode() is strict: wrong lengths, dirty
padding and invalid text are all DecodeError.
"""

import struct
from dataclasses import fields
from typing import Any, Callable, Dict, Tuple

from .canonicalization import to_hex
from .errors import DecodeError
from .records import (
    AttestationKind,
    AttestationRecord,
    BalanceRecord,
    CollateralMetricsRecord,
    HoldingsRecord,
    LiquidationRecord,
    LoanHealthRecord,
    LoanToValueRecord,
    TransactionRecord,
    transaction_profile,
)

SCHEMA_VERSION = 1

OWNER_FIELD_LENGTH = 32
MAX_BALANCE_ADDRESS_LENGTH = 0xFFFF

_COLLATERAL = struct.Struct(">II")
_U32 = struct.Struct(">I")
_LOAN_HEALTH = struct.Struct(">IIII")
_HOLDINGS = struct.Struct(">QQQ32s")
_TRANSACTION = struct.Struct(">Q32s32s32s")
_BALANCE_HEAD = struct.Struct(">QH")
_ENVELOPE_HEAD = struct.Struct(">BB")

# Envelope tags. Append only; never renumber.
KIND_TAGS: Dict[AttestationKind, int] = {
    AttestationKind.COLLATERAL_METRICS: 0x01,
    AttestationKind.LIQUIDATION: 0x02,
    AttestationKind.LOAN_TO_VALUE: 0x03,
    AttestationKind.LOAN_HEALTH: 0x04,
    AttestationKind.BTC_HOLDINGS: 0x05,
    AttestationKind.BTC_TRANSACTION: 0x06,
    AttestationKind.DOGE_TRANSACTION: 0x07,
    AttestationKind.XRP_TRANSACTION: 0x08,
    AttestationKind.XRP_BALANCE: 0x09,
}
TAG_KINDS: Dict[int, AttestationKind] = {tag: kind for kind, tag in KIND_TAGS.items()}


def pad_owner_address(address: str) -> bytes:
    """UTF-8 encode an address and right-pad it with zeros to 32 bytes."""
    return address.encode('utf-8').ljust(OWNER_FIELD_LENGTH, b"\x00")


def unpad_owner_address(raw: bytes) -> str:
    """Inverse of pad_owner_address; rejects dirty padding and empty addresses."""
    text, sep, padding = raw.partition(b"\x00")
    if padding.strip(b"\x00"):
        raise DecodeError(
            "Non-zero byte in owner address padding",
            field="owner_field",
            required="zero padding",
            observed=to_hex(raw)
        )
    if not text:
        raise DecodeError("Empty owner address", field="owner_field")
    try:
        return text.decode('utf-8')
    except UnicodeDecodeError as exc:
        raise DecodeError("Owner address is not valid UTF-8", field="owner_field") from exc


# =============================================================================
# ENCODING
# =============================================================================

def _encode_collateral(record: CollateralMetricsRecord) -> bytes:
    return _COLLATERAL.pack(record.icr, record.collateral_usd)


def _encode_liquidation(record: LiquidationRecord) -> bytes:
    return _U32.pack(record.liquidation_threshold)


def _encode_ltv(record: LoanToValueRecord) -> bytes:
    return _U32.pack(record.real_time_ltv)


def _encode_loan_health(record: LoanHealthRecord) -> bytes:
    return _LOAN_HEALTH.pack(
        record.icr,
        record.collateral_usd,
        record.liquidation_threshold,
        record.real_time_ltv
    )


def _encode_holdings(record: HoldingsRecord) -> bytes:
    return _HOLDINGS.pack(
        record.total_btc,
        record.total_put_value,
        record.total_call_value,
        record.org_hash
    )


def _encode_transaction(record: TransactionRecord) -> bytes:
    if record.profile.hash_owner:
        owner = record.owner_field
    else:
        owner = pad_owner_address(record.owner_field)
    return _TRANSACTION.pack(record.total_amount, record.sender_hash, owner, record.tx_hash)


def _encode_balance(record: BalanceRecord) -> bytes:
    address = record.address.encode('utf-8')
    return _BALANCE_HEAD.pack(record.total_amount, len(address)) + address


_ENCODERS: Dict[type, Callable[[Any], bytes]] = {
    CollateralMetricsRecord: _encode_collateral,
    LiquidationRecord: _encode_liquidation,
    LoanToValueRecord: _encode_ltv,
    LoanHealthRecord: _encode_loan_health,
    HoldingsRecord: _encode_holdings,
    TransactionRecord: _encode_transaction,
    BalanceRecord: _encode_balance,
}


def encode(record: AttestationRecord) -> bytes:
    """
    Encode a record into its committed byte layout.

    Returns:
        The exact bytes handed to the proving collaborator
    """
    encoder = _ENCODERS.get(type(record))
    if encoder is None:
        raise TypeError(f"Not an attestation record: {type(record).__name__}")
    return encoder(record)


# =============================================================================
# DECODING
# =============================================================================

def _expect_length(kind: AttestationKind, data: bytes, size: int) -> None:
    if len(data) != size:
        reason = "Truncated" if len(data) < size else "Over-length"
        raise DecodeError(
            f"{reason} {kind.value} record",
            required=f"{size} bytes",
            observed=f"{len(data)} bytes"
        )


def _decode_collateral(kind: AttestationKind, data: bytes) -> CollateralMetricsRecord:
    _expect_length(kind, data, _COLLATERAL.size)
    icr, collateral_usd = _COLLATERAL.unpack(data)
    return CollateralMetricsRecord(icr=icr, collateral_usd=collateral_usd)


def _decode_liquidation(kind: AttestationKind, data: bytes) -> LiquidationRecord:
    _expect_length(kind, data, _U32.size)
    (threshold,) = _U32.unpack(data)
    return LiquidationRecord(liquidation_threshold=threshold)


def _decode_ltv(kind: AttestationKind, data: bytes) -> LoanToValueRecord:
    _expect_length(kind, data, _U32.size)
    (ltv,) = _U32.unpack(data)
    return LoanToValueRecord(real_time_ltv=ltv)


def _decode_loan_health(kind: AttestationKind, data: bytes) -> LoanHealthRecord:
    _expect_length(kind, data, _LOAN_HEALTH.size)
    icr, collateral_usd, threshold, ltv = _LOAN_HEALTH.unpack(data)
    return LoanHealthRecord(
        icr=icr,
        collateral_usd=collateral_usd,
        liquidation_threshold=threshold,
        real_time_ltv=ltv
    )


def _decode_holdings(kind: AttestationKind, data: bytes) -> HoldingsRecord:
    _expect_length(kind, data, _HOLDINGS.size)
    total, put, call, org_hash = _HOLDINGS.unpack(data)
    return HoldingsRecord(
        total_btc=total,
        total_put_value=put,
        total_call_value=call,
        org_hash=org_hash
    )


def _decode_transaction(kind: AttestationKind, data: bytes) -> TransactionRecord:
    _expect_length(kind, data, _TRANSACTION.size)
    total, sender_hash, owner, tx_hash = _TRANSACTION.unpack(data)
    if not transaction_profile(kind).hash_owner:
        owner = unpad_owner_address(owner)
    return TransactionRecord(
        kind=kind,
        total_amount=total,
        sender_hash=sender_hash,
        owner_field=owner,
        tx_hash=tx_hash
    )


def _decode_balance(kind: AttestationKind, data: bytes) -> BalanceRecord:
    if len(data) < _BALANCE_HEAD.size:
        raise DecodeError(
            f"Truncated {kind.value} record",
            required=f">= {_BALANCE_HEAD.size} bytes",
            observed=f"{len(data)} bytes"
        )
    total, address_length = _BALANCE_HEAD.unpack_from(data)
    _expect_length(kind, data, _BALANCE_HEAD.size + address_length)
    try:
        address = data[_BALANCE_HEAD.size:].decode('utf-8')
    except UnicodeDecodeError as exc:
        raise DecodeError("Balance address is not valid UTF-8", field="address") from exc
    return BalanceRecord(total_amount=total, address=address)


_DECODERS: Dict[AttestationKind, Callable[[AttestationKind, bytes], Any]] = {
    AttestationKind.COLLATERAL_METRICS: _decode_collateral,
    AttestationKind.LIQUIDATION: _decode_liquidation,
    AttestationKind.LOAN_TO_VALUE: _decode_ltv,
    AttestationKind.LOAN_HEALTH: _decode_loan_health,
    AttestationKind.BTC_HOLDINGS: _decode_holdings,
    AttestationKind.BTC_TRANSACTION: _decode_transaction,
    AttestationKind.DOGE_TRANSACTION: _decode_transaction,
    AttestationKind.XRP_TRANSACTION: _decode_transaction,
    AttestationKind.XRP_BALANCE: _decode_balance,
}


def decode(kind: AttestationKind, data: bytes) -> AttestationRecord:
    """
    Decode committed bytes back into a record of the given kind.

    Raises:
        DecodeError: if the bytes do not match the kind's layout exactly
    """
    try:
        kind = AttestationKind(kind)
    except ValueError as exc:
        raise DecodeError(f"Unknown attestation kind: {kind}") from exc
    return _DECODERS[kind](kind, bytes(data))


# =============================================================================
# SELF-DESCRIBING ENVELOPE
# =============================================================================

def encode_envelope(record: AttestationRecord) -> bytes:
    """Prefix the committed layout with a kind tag and the schema version."""
    return _ENVELOPE_HEAD.pack(KIND_TAGS[record.kind], SCHEMA_VERSION) + encode(record)


def decode_envelope(data: bytes) -> AttestationRecord:
    if len(data) < _ENVELOPE_HEAD.size:
        raise DecodeError("Truncated envelope", required=f">= {_ENVELOPE_HEAD.size} bytes")
    tag, version = _ENVELOPE_HEAD.unpack_from(data)
    if tag not in TAG_KINDS:
        raise DecodeError("Unknown kind tag", field="tag", observed=f"0x{tag:02x}")
    if version != SCHEMA_VERSION:
        raise DecodeError(
            "Unsupported schema version",
            field="version",
            required=str(SCHEMA_VERSION),
            observed=str(version)
        )
    return decode(TAG_KINDS[tag], data[_ENVELOPE_HEAD.size:])


# =============================================================================
# CALLER-FACING RENDERING
# =============================================================================

def record_to_dict(record: AttestationRecord) -> Dict[str, Any]:
    """Render a record as JSON-safe values (bytes as 0x hex)."""
    d: Dict[str, Any] = {"kind": record.kind.value}
    for f in fields(record):
        value = getattr(record, f.name)
        if f.name == "kind":
            continue
        d[f.name] = to_hex(value) if isinstance(value, bytes) else value
    return d


def layout_size(kind: AttestationKind) -> Tuple[int, bool]:
    """
    Size of a kind's committed layout.

    Returns:
        Tuple of (size in bytes, whether the size is fixed). For the balance
        kind the size is the header size and the layout is variable.
    """
    kind = AttestationKind(kind)
    sizes = {
        AttestationKind.COLLATERAL_METRICS: _COLLATERAL.size,
        AttestationKind.LIQUIDATION: _U32.size,
        AttestationKind.LOAN_TO_VALUE: _U32.size,
        AttestationKind.LOAN_HEALTH: _LOAN_HEALTH.size,
        AttestationKind.BTC_HOLDINGS: _HOLDINGS.size,
    }
    if kind in sizes:
        return sizes[kind], True
    if kind == AttestationKind.XRP_BALANCE:
        return _BALANCE_HEAD.size, False
    return _TRANSACTION.size, True
