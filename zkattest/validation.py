"""
zkattest Input Validator

Turns raw, untrusted request data (JSON-like mappings) into typed inputs.

Design principles:
- Fail-closed (the first violated invariant raises; nothing is defaulted)
- Exact (fixed-length fields must match their length exactly)
- Trust boundary (expected recipients are compared byte for byte)
- No side effects
"""

import hmac
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from .errors import MalformedField, RecipientMismatch
from .models import (
    COMPRESSED_PUBKEY_LENGTH,
    SIGNATURE_LENGTH,
    TXID_LENGTH,
    U32_MAX,
    U64_MAX,
    BalanceAttestationInput,
    CollateralMetricsInput,
    HoldingsAttestationInput,
    TransactionAttestationInput,
    Utxo,
)
from .records import METRIC_KINDS, TRANSACTION_PROFILES, AttestationKind

HEX_PATTERN = re.compile(r'[0-9a-fA-F]*')
DECIMAL_PATTERN = re.compile(r'[0-9]+')

OWNER_ADDRESS_MAX_BYTES = 32
BALANCE_ADDRESS_MAX_BYTES = 0xFFFF

ValidatedInput = Union[
    TransactionAttestationInput,
    HoldingsAttestationInput,
    CollateralMetricsInput,
    BalanceAttestationInput,
]


@dataclass(frozen=True)
class RecipientConfig:
    """
    Expected recipient per transaction kind.

    A transaction kind with no configured recipient cannot be attested.
    """
    recipients: Dict[AttestationKind, str] = field(default_factory=dict)

    def expected_for(self, kind: AttestationKind) -> Optional[str]:
        return self.recipients.get(AttestationKind(kind))

    def with_recipient(self, kind: AttestationKind, address: str) -> 'RecipientConfig':
        updated = dict(self.recipients)
        updated[AttestationKind(kind)] = address
        return RecipientConfig(recipients=updated)

    @classmethod
    def from_dict(cls, data: Mapping[str, str]) -> 'RecipientConfig':
        """Build from {"doge_transaction": "D...", ...}; unknown kinds are rejected."""
        recipients = {}
        for key, address in data.items():
            kind = AttestationKind(key)
            if kind not in TRANSACTION_PROFILES:
                raise ValueError(f"Recipients apply to transaction kinds only, got: {key}")
            if address:
                recipients[kind] = address
        return cls(recipients=recipients)


# =============================================================================
# FIELD CHECKS
# =============================================================================

def require_field(raw: Mapping[str, Any], name: str, prefix: str = "") -> Any:
    if not isinstance(raw, Mapping):
        raise MalformedField("Input must be an object", field=prefix.rstrip(".") or None)
    if name not in raw or raw[name] is None:
        raise MalformedField(f"Missing required field: {prefix}{name}", field=f"{prefix}{name}")
    return raw[name]


def parse_fixed_bytes(name: str, value: Any, length: int) -> bytes:
    """
    Parse a fixed-length byte field from raw bytes or a hex string.

    Hex strings may carry a 0x prefix.
    """
    if isinstance(value, (bytes, bytearray)):
        data = bytes(value)
    elif isinstance(value, str):
        text = value[2:] if value.startswith(("0x", "0X")) else value
        if len(text) % 2 or not HEX_PATTERN.fullmatch(text):
            raise MalformedField(
                f"Invalid hex in {name}",
                field=name,
                required="even-length hex string",
                observed=value[:80]
            )
        data = bytes.fromhex(text)
    else:
        raise MalformedField(
            f"{name} must be bytes or hex string",
            field=name,
            observed=type(value).__name__
        )

    if len(data) != length:
        raise MalformedField(
            f"{name} has wrong length",
            field=name,
            required=f"{length} bytes",
            observed=f"{len(data)} bytes"
        )
    return data


def parse_unsigned(name: str, value: Any, bits: int) -> int:
    """Accept only integers inside the declared unsigned width."""
    limit = U32_MAX if bits == 32 else U64_MAX
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedField(
            f"{name} must be an unsigned integer",
            field=name,
            required=f"u{bits}",
            observed=type(value).__name__
        )
    if value < 0 or value > limit:
        raise MalformedField(
            f"{name} is outside the u{bits} range",
            field=name,
            required=f"0..{limit}",
            observed=str(value)
        )
    return value


def parse_string(name: str, value: Any, allow_empty: bool = False) -> str:
    if not isinstance(value, str):
        raise MalformedField(f"{name} must be a string", field=name, observed=type(value).__name__)
    if not value and not allow_empty:
        raise MalformedField(f"{name} must not be empty", field=name)
    return value


def require_recipient(kind: AttestationKind, claimed: str, expected: Optional[str]) -> None:
    """
    Trust-boundary check: the claimed recipient must equal the configured one.

    Comparison is exact (case-sensitive, byte for byte).
    """
    if not expected:
        raise RecipientMismatch(
            f"No expected recipient configured for {kind.value}",
            field="claimed_recipient",
            required="configured recipient",
            observed=claimed
        )
    if not hmac.compare_digest(claimed.encode('utf-8'), expected.encode('utf-8')):
        raise RecipientMismatch(
            "Recipient address mismatch",
            field="claimed_recipient",
            required=expected,
            observed=claimed
        )


# =============================================================================
# VALIDATOR
# =============================================================================

class InputValidator:
    """
    Per-kind validation of untrusted attestation inputs.

    Usage:
        validator = InputValidator(RecipientConfig({AttestationKind.DOGE_TRANSACTION: "D..."}))
        tx = validator.validate(AttestationKind.DOGE_TRANSACTION, raw)
    """

    def __init__(self, recipients: Optional[RecipientConfig] = None):
        self.recipients = recipients or RecipientConfig()

    def validate(self, kind: AttestationKind, raw: Mapping[str, Any]) -> ValidatedInput:
        """Dispatch to the validator for kind."""
        kind = AttestationKind(kind)
        if kind in TRANSACTION_PROFILES:
            return self.validate_transaction(kind, raw)
        if kind == AttestationKind.BTC_HOLDINGS:
            return self.validate_holdings(raw)
        if kind == AttestationKind.XRP_BALANCE:
            return self.validate_balance(raw)
        if kind in METRIC_KINDS:
            return self.validate_collateral(raw)
        raise ValueError(f"Unsupported attestation kind: {kind}")

    def validate_transaction(
        self,
        kind: AttestationKind,
        raw: Mapping[str, Any]
    ) -> TransactionAttestationInput:
        kind = AttestationKind(kind)
        profile = TRANSACTION_PROFILES[kind]

        transaction_id = parse_fixed_bytes(
            "transaction_id", require_field(raw, "transaction_id"), TXID_LENGTH
        )
        claimed = parse_string("claimed_recipient", require_field(raw, "claimed_recipient"))
        sender = parse_string("sender_identity", require_field(raw, "sender_identity"))
        owner = parse_string("owner_identity", require_field(raw, "owner_identity"))
        amount = parse_unsigned("amount", require_field(raw, "amount"), 64)

        if not profile.hash_owner:
            encoded_owner = owner.encode('utf-8')
            if len(encoded_owner) > OWNER_ADDRESS_MAX_BYTES or b"\x00" in encoded_owner:
                raise MalformedField(
                    "owner_identity does not fit the fixed owner field",
                    field="owner_identity",
                    required=f"<= {OWNER_ADDRESS_MAX_BYTES} UTF-8 bytes, no NUL",
                    observed=f"{len(encoded_owner)} bytes"
                )

        require_recipient(kind, claimed, self.recipients.expected_for(kind))

        return TransactionAttestationInput(
            kind=kind,
            transaction_id=transaction_id,
            claimed_recipient=claimed,
            sender_identity=sender,
            owner_identity=owner,
            amount=amount
        )

    def validate_utxo(self, raw: Mapping[str, Any], index: int) -> Utxo:
        prefix = f"utxos[{index}]."
        signature = None
        if isinstance(raw, Mapping) and raw.get("signature") is not None:
            signature = parse_fixed_bytes(prefix + "signature", raw["signature"], SIGNATURE_LENGTH)

        return Utxo(
            transaction_id=parse_fixed_bytes(
                prefix + "transaction_id", require_field(raw, "transaction_id", prefix), TXID_LENGTH
            ),
            output_index=parse_unsigned(
                prefix + "output_index", require_field(raw, "output_index", prefix), 32
            ),
            amount=parse_unsigned(prefix + "amount", require_field(raw, "amount", prefix), 64),
            owner_pubkey=parse_fixed_bytes(
                prefix + "owner_pubkey",
                require_field(raw, "owner_pubkey", prefix),
                COMPRESSED_PUBKEY_LENGTH
            ),
            signature=signature
        )

    def validate_holdings(self, raw: Mapping[str, Any]) -> HoldingsAttestationInput:
        utxos_raw = require_field(raw, "utxos")
        if isinstance(utxos_raw, (str, bytes)) or not isinstance(utxos_raw, Sequence):
            raise MalformedField("utxos must be a list", field="utxos")

        utxos = tuple(self.validate_utxo(u, i) for i, u in enumerate(utxos_raw))
        declared_total = parse_unsigned("declared_total", require_field(raw, "declared_total"), 64)
        organization_id = parse_string("organization_id", require_field(raw, "organization_id"))
        auxiliary = self._parse_auxiliary(raw.get("auxiliary_values"))

        return HoldingsAttestationInput(
            utxos=utxos,
            declared_total=declared_total,
            organization_id=organization_id,
            auxiliary_values=auxiliary
        )

    def validate_collateral(self, raw: Mapping[str, Any]) -> CollateralMetricsInput:
        minimum_ratio = 0
        if isinstance(raw, Mapping) and raw.get("minimum_ratio") is not None:
            minimum_ratio = parse_unsigned("minimum_ratio", raw["minimum_ratio"], 32)

        return CollateralMetricsInput(
            collateral_units=parse_unsigned(
                "collateral_units", require_field(raw, "collateral_units"), 32
            ),
            debt_units=parse_unsigned("debt_units", require_field(raw, "debt_units"), 32),
            price_units=parse_unsigned("price_units", require_field(raw, "price_units"), 32),
            minimum_ratio=minimum_ratio
        )

    def validate_balance(self, raw: Mapping[str, Any]) -> BalanceAttestationInput:
        address = parse_string("address", require_field(raw, "address"))
        if len(address.encode('utf-8')) > BALANCE_ADDRESS_MAX_BYTES:
            raise MalformedField(
                "address too long",
                field="address",
                required=f"<= {BALANCE_ADDRESS_MAX_BYTES} UTF-8 bytes"
            )
        return BalanceAttestationInput(
            address=address,
            amount=parse_unsigned("amount", require_field(raw, "amount"), 64)
        )

    def _parse_auxiliary(self, value: Any) -> Tuple[str, str]:
        if value is None:
            return ("", "")
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence) or len(value) != 2:
            raise MalformedField(
                "auxiliary_values must be a pair of strings",
                field="auxiliary_values",
                required="[put_value, call_value]"
            )
        parsed = []
        for i, item in enumerate(value):
            name = f"auxiliary_values[{i}]"
            text = parse_string(name, item, allow_empty=True)
            if text:
                if not DECIMAL_PATTERN.fullmatch(text) or int(text) > U64_MAX:
                    raise MalformedField(
                        f"{name} must be a decimal u64",
                        field=name,
                        required=f"0..{U64_MAX}",
                        observed=text[:80]
                    )
            parsed.append(text)
        return parsed[0], parsed[1]
