"""
zkattest: Canonical Financial Attestations

Version: 1.0.0

Turns untrusted financial claims (loan collateral, BTC holdings, on-chain
transactions, account balances) into fixed-layout attestation records whose
bytes a proving collaborator commits to and a verifier decodes.

Every attestation is all-or-nothing:
    raw input -> validated input -> record -> committed bytes

Identities (senders, owners, organizations) are committed as SHA-256
digests; metrics saturate at the u32 boundary; UTXO totals are checked and
never corrected.

Usage:
    from zkattest import (
        AttestationAssembler,
        AttestationKind,
        InputValidator,
        RecipientConfig,
        SignedCommitmentBackend,
        decode,
    )

    recipients = RecipientConfig({AttestationKind.DOGE_TRANSACTION: "DHGr..."})
    assembler = AttestationAssembler(InputValidator(recipients))

    attestation = assembler.attest(AttestationKind.BTC_HOLDINGS, {
        "utxos": [...],
        "declared_total": 1000000,
        "organization_id": "org-42",
    })

    backend = SignedCommitmentBackend()
    proving_key, verifying_key = backend.setup(b"zkattest-program-v1")
    proof = backend.prove(proving_key, attestation.committed_bytes)

    assert backend.verify(proof, verifying_key)
    record = decode(attestation.kind, proof.committed_bytes)
"""

__version__ = "1.0.0"

# Records and inputs
from .records import (
    AttestationKind,
    AttestationRecord,
    BalanceRecord,
    CollateralMetricsRecord,
    HoldingsRecord,
    LiquidationRecord,
    LoanHealthRecord,
    LoanToValueRecord,
    TransactionProfile,
    TransactionRecord,
    TRANSACTION_PROFILES,
    METRIC_KINDS,
    transaction_profile,
)
from .models import (
    Utxo,
    TransactionAttestationInput,
    HoldingsAttestationInput,
    CollateralMetricsInput,
    BalanceAttestationInput,
    U32_MAX,
    U64_MAX,
)

# Errors
from .errors import (
    FailureCode,
    AttestationError,
    ValidationError,
    MalformedField,
    RecipientMismatch,
    IdentityMismatch,
    TotalMismatch,
    ArithmeticOverflow,
    DecodeError,
    ProofGenerationFailed,
    PriceFeedError,
)

# Core
from .metrics import (
    saturate_u32,
    collateral_ratio,
    liquidation_threshold,
    loan_to_value,
    utxo_total,
)
from .commitments import hash_identity, identity_matches, require_identity, sha256_hash, verify_hash
from .canonicalization import canonicalize, canonicalize_str
from .validation import InputValidator, RecipientConfig
from .encoding import (
    encode,
    decode,
    encode_envelope,
    decode_envelope,
    record_to_dict,
    layout_size,
    SCHEMA_VERSION,
)
from .assembler import Attestation, AttestationAssembler

# Proving boundary
from .prover import (
    ProvingBackend,
    SignedCommitmentBackend,
    ProvingKey,
    VerifyingKey,
    Proof,
    ProofJob,
    ProofJobRunner,
    ProofJobStatus,
    ensure_committed,
    read_public_values,
)
from .fixtures import create_proof_fixture, write_proof_fixture

__all__ = [
    # Version
    "__version__",

    # Records and inputs
    "AttestationKind",
    "AttestationRecord",
    "BalanceRecord",
    "CollateralMetricsRecord",
    "HoldingsRecord",
    "LiquidationRecord",
    "LoanHealthRecord",
    "LoanToValueRecord",
    "TransactionProfile",
    "TransactionRecord",
    "TRANSACTION_PROFILES",
    "METRIC_KINDS",
    "transaction_profile",
    "Utxo",
    "TransactionAttestationInput",
    "HoldingsAttestationInput",
    "CollateralMetricsInput",
    "BalanceAttestationInput",
    "U32_MAX",
    "U64_MAX",

    # Errors
    "FailureCode",
    "AttestationError",
    "ValidationError",
    "MalformedField",
    "RecipientMismatch",
    "IdentityMismatch",
    "TotalMismatch",
    "ArithmeticOverflow",
    "DecodeError",
    "ProofGenerationFailed",
    "PriceFeedError",

    # Metrics
    "saturate_u32",
    "collateral_ratio",
    "liquidation_threshold",
    "loan_to_value",
    "utxo_total",

    # Commitments and canonical JSON
    "hash_identity",
    "identity_matches",
    "require_identity",
    "sha256_hash",
    "verify_hash",
    "canonicalize",
    "canonicalize_str",

    # Validation
    "InputValidator",
    "RecipientConfig",

    # Encoding
    "encode",
    "decode",
    "encode_envelope",
    "decode_envelope",
    "record_to_dict",
    "layout_size",
    "SCHEMA_VERSION",

    # Assembly
    "Attestation",
    "AttestationAssembler",

    # Proving
    "ProvingBackend",
    "SignedCommitmentBackend",
    "ProvingKey",
    "VerifyingKey",
    "Proof",
    "ProofJob",
    "ProofJobRunner",
    "ProofJobStatus",
    "ensure_committed",
    "read_public_values",
    "create_proof_fixture",
    "write_proof_fixture",
]
