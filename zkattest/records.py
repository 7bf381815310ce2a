"""
zkattest Attestation Records

The canonical outputs of the attestation core. Each variant has a fixed
field order and width (see encoding.py); records hold only fixed-size
integers and digests, with two exceptions: the plaintext owner address of
transaction kinds that do not hash the owner, and the balance address.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Union


class AttestationKind(str, Enum):
    """Attestation kinds, one per committed record shape."""
    COLLATERAL_METRICS = "collateral_metrics"
    LIQUIDATION = "liquidation"
    LOAN_TO_VALUE = "loan_to_value"
    LOAN_HEALTH = "loan_health"
    BTC_HOLDINGS = "btc_holdings"
    BTC_TRANSACTION = "btc_transaction"
    DOGE_TRANSACTION = "doge_transaction"
    XRP_TRANSACTION = "xrp_transaction"
    XRP_BALANCE = "xrp_balance"


@dataclass(frozen=True)
class TransactionProfile:
    """
    How a transaction kind binds its identities.

    Every transaction kind hashes the sender. hash_owner decides whether the
    owner identity is committed as a digest or kept as a plaintext address
    padded to 32 bytes.
    """
    kind: AttestationKind
    asset: str
    hash_owner: bool


TRANSACTION_PROFILES: Dict[AttestationKind, TransactionProfile] = {
    AttestationKind.BTC_TRANSACTION: TransactionProfile(AttestationKind.BTC_TRANSACTION, "BTC", True),
    AttestationKind.DOGE_TRANSACTION: TransactionProfile(AttestationKind.DOGE_TRANSACTION, "DOGE", True),
    AttestationKind.XRP_TRANSACTION: TransactionProfile(AttestationKind.XRP_TRANSACTION, "XRP", False),
}

METRIC_KINDS = frozenset([
    AttestationKind.COLLATERAL_METRICS,
    AttestationKind.LIQUIDATION,
    AttestationKind.LOAN_TO_VALUE,
    AttestationKind.LOAN_HEALTH,
])


def transaction_profile(kind: AttestationKind) -> TransactionProfile:
    try:
        return TRANSACTION_PROFILES[AttestationKind(kind)]
    except KeyError:
        raise ValueError(f"Not a transaction attestation kind: {kind}")


@dataclass(frozen=True)
class CollateralMetricsRecord:
    icr: int
    collateral_usd: int

    kind = AttestationKind.COLLATERAL_METRICS


@dataclass(frozen=True)
class LiquidationRecord:
    liquidation_threshold: int

    kind = AttestationKind.LIQUIDATION


@dataclass(frozen=True)
class LoanToValueRecord:
    real_time_ltv: int

    kind = AttestationKind.LOAN_TO_VALUE


@dataclass(frozen=True)
class LoanHealthRecord:
    """All collateral metrics of one loan in a single commitment."""
    icr: int
    collateral_usd: int
    liquidation_threshold: int
    real_time_ltv: int

    kind = AttestationKind.LOAN_HEALTH


@dataclass(frozen=True)
class HoldingsRecord:
    total_btc: int
    total_put_value: int
    total_call_value: int
    org_hash: bytes

    kind = AttestationKind.BTC_HOLDINGS


@dataclass(frozen=True)
class TransactionRecord:
    """
    Unified record for every transaction kind.

    owner_field is a 32-byte digest when the kind's profile hashes the owner,
    and the plaintext owner address (str) otherwise.
    """
    kind: AttestationKind
    total_amount: int
    sender_hash: bytes
    owner_field: Union[bytes, str]
    tx_hash: bytes

    @property
    def profile(self) -> TransactionProfile:
        return transaction_profile(self.kind)


@dataclass(frozen=True)
class BalanceRecord:
    total_amount: int
    address: str

    kind = AttestationKind.XRP_BALANCE


AttestationRecord = Union[
    CollateralMetricsRecord,
    LiquidationRecord,
    LoanToValueRecord,
    LoanHealthRecord,
    HoldingsRecord,
    TransactionRecord,
    BalanceRecord,
]
