"""
zkattest Error Taxonomy

Every failure the attestation core can produce is an AttestationError
carrying a FailureCode. Errors are terminal for the request: nothing in the
core retries or corrects an input.
"""

from enum import Enum
from typing import Any, Dict, Optional


class FailureCode(str, Enum):
    """Stable failure codes surfaced to callers."""
    MALFORMED_FIELD = "MALFORMED_FIELD"
    RECIPIENT_MISMATCH = "RECIPIENT_MISMATCH"
    IDENTITY_MISMATCH = "IDENTITY_MISMATCH"
    TOTAL_MISMATCH = "TOTAL_MISMATCH"
    ARITHMETIC_OVERFLOW = "ARITHMETIC_OVERFLOW"
    DECODE_ERROR = "DECODE_ERROR"
    PROOF_GENERATION_FAILED = "PROOF_GENERATION_FAILED"
    PRICE_FEED_ERROR = "PRICE_FEED_ERROR"


class AttestationError(Exception):
    """Base class for all attestation failures."""

    code: FailureCode = FailureCode.MALFORMED_FIELD

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        required: Optional[str] = None,
        observed: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.field = field
        self.required = required
        self.observed = observed

    def to_dict(self) -> Dict[str, Any]:
        d = {"failure_code": self.code.value, "message": self.message}
        if self.field:
            d["field"] = self.field
        if self.required:
            d["required"] = self.required
        if self.observed:
            d["observed"] = self.observed
        return d


class ValidationError(AttestationError):
    """An untrusted input violated a structural or semantic invariant."""


class MalformedField(ValidationError):
    """Wrong length, wrong type, or out-of-width value."""
    code = FailureCode.MALFORMED_FIELD


class RecipientMismatch(ValidationError):
    """Claimed recipient differs from the configured expected recipient."""
    code = FailureCode.RECIPIENT_MISMATCH


class IdentityMismatch(ValidationError):
    """A plaintext identity does not match its committed digest."""
    code = FailureCode.IDENTITY_MISMATCH


class TotalMismatch(AttestationError):
    """Declared total and recomputed UTXO sum disagree."""
    code = FailureCode.TOTAL_MISMATCH


class ArithmeticOverflow(AttestationError):
    """Checked addition overflowed where saturation is not the policy."""
    code = FailureCode.ARITHMETIC_OVERFLOW


class DecodeError(AttestationError):
    """Bytes do not match the canonical layout for the requested kind."""
    code = FailureCode.DECODE_ERROR


class ProofGenerationFailed(AttestationError):
    """The proving backend could not produce a proof."""
    code = FailureCode.PROOF_GENERATION_FAILED


class PriceFeedError(AttestationError):
    """The external price feed was unreachable or returned unusable data."""
    code = FailureCode.PRICE_FEED_ERROR
