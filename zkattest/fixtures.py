"""
Proof fixtures for verifier tests.

A fixture captures everything an on-chain or off-chain verifier test needs:
the decoded public values, the verifying key identifier, and the committed
bytes and proof as hex.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .canonicalization import canonicalize, to_hex
from .commitments import sha256_hash
from .encoding import decode, record_to_dict
from .prover import Proof, VerifyingKey
from .records import AttestationKind

logger = logging.getLogger(__name__)


def create_proof_fixture(
    kind: AttestationKind,
    proof: Proof,
    verifying_key: VerifyingKey,
    inputs: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Build a fixture from a proof.

    The public values are decoded from the proof's committed bytes, so a
    fixture can only be produced for bytes that satisfy the canonical layout.
    The "digest" entry is the sha256 fingerprint of the canonical JSON of
    every other entry.

    Args:
        kind: Attestation kind of the committed bytes
        proof: Proof returned by the proving backend
        verifying_key: Key the proof verifies under
        inputs: Optional non-identifying inputs to record (e.g. the price used)
    """
    record = decode(kind, proof.committed_bytes)
    fixture = {
        "kind": AttestationKind(kind).value,
        "decoded": record_to_dict(record),
        "vkey": verifying_key.bytes32(),
        "public_values": to_hex(proof.committed_bytes),
        "proof": to_hex(proof.proof_bytes),
    }
    if inputs:
        fixture["inputs"] = inputs
    fixture["digest"] = sha256_hash(canonicalize(fixture))
    return fixture


def write_proof_fixture(fixture: Dict[str, Any], directory: Path, system: str = "signed") -> Path:
    """Write <system>-<kind>-fixture.json under directory and return its path."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{system}-{fixture['kind']}-fixture.json".lower()
    with open(path, "w", encoding="utf-8") as f:
        json.dump(fixture, f, indent=2, sort_keys=True)
    logger.info("Wrote proof fixture to %s", path)
    return path
