"""
zkattest Attestation Assembler

Composes validated inputs, metric outputs and identity commitments into
attestation records, then encodes them for the proving collaborator.

Each assembly is a single-shot transformation:

    raw input -> validated input -> record -> committed bytes

A failure at any step aborts the attestation; no partial record is ever
returned.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .commitments import hash_identity, sha256_hash
from .encoding import encode, record_to_dict
from .errors import AttestationError, TotalMismatch
from .logging_config import audit_log
from .metrics import collateral_ratio, liquidation_threshold, loan_to_value, utxo_total
from .models import (
    BalanceAttestationInput,
    CollateralMetricsInput,
    HoldingsAttestationInput,
    TransactionAttestationInput,
)
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
from .validation import InputValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attestation:
    """A finished attestation: the record and the exact bytes to commit."""
    kind: AttestationKind
    record: AttestationRecord
    committed_bytes: bytes
    fingerprint: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "record": record_to_dict(self.record),
            "committed_bytes": "0x" + self.committed_bytes.hex(),
            "fingerprint": self.fingerprint,
        }


class AttestationAssembler:
    """
    Builds attestation records from validated inputs.

    Holds no per-request state, so one instance may serve concurrent
    requests.
    """

    def __init__(self, validator: Optional[InputValidator] = None):
        self.validator = validator or InputValidator()

    # -------------------------------------------------------------------------
    # Metric kinds
    # -------------------------------------------------------------------------

    def assemble_collateral(self, data: CollateralMetricsInput) -> CollateralMetricsRecord:
        icr, collateral_usd = collateral_ratio(data.collateral_units, data.debt_units, data.price_units)
        return CollateralMetricsRecord(icr=icr, collateral_usd=collateral_usd)

    def assemble_liquidation(self, data: CollateralMetricsInput) -> LiquidationRecord:
        return LiquidationRecord(
            liquidation_threshold=liquidation_threshold(
                data.collateral_units, data.price_units, data.minimum_ratio
            )
        )

    def assemble_ltv(self, data: CollateralMetricsInput) -> LoanToValueRecord:
        return LoanToValueRecord(
            real_time_ltv=loan_to_value(data.debt_units, data.collateral_units, data.price_units)
        )

    def assemble_loan_health(self, data: CollateralMetricsInput) -> LoanHealthRecord:
        icr, collateral_usd = collateral_ratio(data.collateral_units, data.debt_units, data.price_units)
        return LoanHealthRecord(
            icr=icr,
            collateral_usd=collateral_usd,
            liquidation_threshold=liquidation_threshold(
                data.collateral_units, data.price_units, data.minimum_ratio
            ),
            real_time_ltv=loan_to_value(data.debt_units, data.collateral_units, data.price_units)
        )

    # -------------------------------------------------------------------------
    # Holdings
    # -------------------------------------------------------------------------

    def assemble_holdings(self, data: HoldingsAttestationInput) -> HoldingsRecord:
        """
        Recompute the UTXO total and require it to equal the declared total.

        Raises:
            ArithmeticOverflow: if the sum leaves the u64 range
            TotalMismatch: if the sum differs from declared_total
        """
        total = utxo_total(u.amount for u in data.utxos)
        if total != data.declared_total:
            raise TotalMismatch(
                "Total BTC mismatch",
                field="declared_total",
                required=str(total),
                observed=str(data.declared_total)
            )

        put_value, call_value = data.auxiliary_values
        return HoldingsRecord(
            total_btc=total,
            total_put_value=int(put_value) if put_value else total,
            total_call_value=int(call_value) if call_value else total,
            org_hash=hash_identity(data.organization_id)
        )

    # -------------------------------------------------------------------------
    # Transactions and balances
    # -------------------------------------------------------------------------

    def assemble_transaction(self, data: TransactionAttestationInput) -> TransactionRecord:
        """
        Wire commitments and the transaction id into the unified record.

        The recipient was checked by the validator; it is not re-checked here.
        """
        profile = transaction_profile(data.kind)
        if profile.hash_owner:
            owner_field = hash_identity(data.owner_identity)
        else:
            owner_field = data.owner_identity

        return TransactionRecord(
            kind=data.kind,
            total_amount=data.amount,
            sender_hash=hash_identity(data.sender_identity),
            owner_field=owner_field,
            tx_hash=data.transaction_id
        )

    def assemble_balance(self, data: BalanceAttestationInput) -> BalanceRecord:
        return BalanceRecord(total_amount=data.amount, address=data.address)

    def assemble(self, kind: AttestationKind, data: Any) -> AttestationRecord:
        """Dispatch a validated input to the assembler for kind."""
        kind = AttestationKind(kind)
        if kind == AttestationKind.COLLATERAL_METRICS:
            return self.assemble_collateral(data)
        if kind == AttestationKind.LIQUIDATION:
            return self.assemble_liquidation(data)
        if kind == AttestationKind.LOAN_TO_VALUE:
            return self.assemble_ltv(data)
        if kind == AttestationKind.LOAN_HEALTH:
            return self.assemble_loan_health(data)
        if kind == AttestationKind.BTC_HOLDINGS:
            return self.assemble_holdings(data)
        if kind == AttestationKind.XRP_BALANCE:
            return self.assemble_balance(data)
        return self.assemble_transaction(data)

    # -------------------------------------------------------------------------
    # Full pipeline
    # -------------------------------------------------------------------------

    def attest(self, kind: AttestationKind, raw: Mapping[str, Any]) -> Attestation:
        """
        Validate, assemble and encode one attestation.

        Args:
            kind: The attestation kind
            raw: Untrusted input mapping for that kind

        Returns:
            Attestation with the record and its committed bytes

        Raises:
            AttestationError: on any validation or assembly failure
        """
        kind = AttestationKind(kind)
        try:
            validated = self.validator.validate(kind, raw)
            record = self.assemble(kind, validated)
        except AttestationError as exc:
            audit_log.attestation_rejected(kind.value, exc.code.value, exc.field)
            raise

        committed = encode(record)
        fingerprint = sha256_hash(committed)
        logger.debug("Encoded %s record (%d bytes)", kind.value, len(committed))
        audit_log.attestation_assembled(kind.value, fingerprint, len(committed))

        return Attestation(
            kind=kind,
            record=record,
            committed_bytes=committed,
            fingerprint=fingerprint
        )
