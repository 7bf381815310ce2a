"""
zkattest Validated Inputs

Typed inputs produced by the validator. Instances of these classes have
already passed every structural check; the assembler trusts them.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from .records import AttestationKind

TXID_LENGTH = 32
COMPRESSED_PUBKEY_LENGTH = 33
SIGNATURE_LENGTH = 64

U32_MAX = 0xFFFFFFFF
U64_MAX = 0xFFFFFFFFFFFFFFFF


@dataclass(frozen=True)
class Utxo:
    """
    One unspent output.

    owner_pubkey is always a 33-byte compressed key. signature is carried
    for completeness but is only length-checked.
    """
    transaction_id: bytes
    output_index: int
    amount: int
    owner_pubkey: bytes
    signature: Optional[bytes] = None


@dataclass(frozen=True)
class TransactionAttestationInput:
    kind: AttestationKind
    transaction_id: bytes
    claimed_recipient: str
    sender_identity: str
    owner_identity: str
    amount: int


@dataclass(frozen=True)
class HoldingsAttestationInput:
    utxos: Tuple[Utxo, ...]
    declared_total: int
    organization_id: str
    auxiliary_values: Tuple[str, str] = field(default=("", ""))


@dataclass(frozen=True)
class CollateralMetricsInput:
    collateral_units: int
    debt_units: int
    price_units: int
    minimum_ratio: int = 0


@dataclass(frozen=True)
class BalanceAttestationInput:
    address: str
    amount: int
