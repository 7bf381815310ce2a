"""
zkattest Proving Boundary

The proving engine is an external collaborator. This module fixes the
interface callers use to reach it and ships one reference backend:

    setup(program)              -> (ProvingKey, VerifyingKey)
    prove(proving_key, encoded) -> Proof   (may raise ProofGenerationFailed)
    verify(proof, verifying_key) -> bool

Proof.committed_bytes must equal exactly what encode() produced.

SignedCommitmentBackend signs program_digest || committed_bytes with
Ed25519. It gives callers an auditable, reproducible stand-in for local runs
and tests; it is not a zero-knowledge proof system.

Proving blocks, so ProofJobRunner executes it on a worker pool owned by the
caller layer, never on a request thread.
"""

import hashlib
import hmac
import logging
import secrets
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import SigningKey, VerifyKey

from .assembler import Attestation
from .encoding import decode
from .errors import DecodeError, ProofGenerationFailed
from .logging_config import audit_log
from .records import AttestationKind, AttestationRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvingKey:
    program_digest: bytes
    signing_key: bytes


@dataclass(frozen=True)
class VerifyingKey:
    program_digest: bytes
    verify_key: bytes

    def bytes32(self) -> str:
        """0x-prefixed 32-byte identifier of this key, used in fixtures."""
        return "0x" + hashlib.sha256(self.program_digest + self.verify_key).hexdigest()


@dataclass(frozen=True)
class Proof:
    proof_bytes: bytes
    committed_bytes: bytes
    program_digest: bytes


class ProvingBackend(ABC):
    """Interface of the external proving collaborator."""

    @abstractmethod
    def setup(self, program: bytes) -> Tuple[ProvingKey, VerifyingKey]:
        pass

    @abstractmethod
    def prove(self, proving_key: ProvingKey, committed_bytes: bytes) -> Proof:
        """Produce a proof over committed_bytes. Raises ProofGenerationFailed."""
        pass

    @abstractmethod
    def verify(self, proof: Proof, verifying_key: VerifyingKey) -> bool:
        pass


class SignedCommitmentBackend(ProvingBackend):
    """
    Ed25519-signed commitments over the encoded attestation.

    setup() accepts an optional 32-byte seed so fixtures can be reproduced.
    """

    def setup(self, program: bytes, seed: Optional[bytes] = None) -> Tuple[ProvingKey, VerifyingKey]:
        program_digest = hashlib.sha256(program).digest()
        try:
            signing_key = SigningKey(seed) if seed is not None else SigningKey.generate()
        except (CryptoError, TypeError) as exc:
            raise ProofGenerationFailed("Invalid proving key seed", observed=str(exc)) from exc

        return (
            ProvingKey(program_digest=program_digest, signing_key=bytes(signing_key)),
            VerifyingKey(program_digest=program_digest, verify_key=bytes(signing_key.verify_key))
        )

    def prove(self, proving_key: ProvingKey, committed_bytes: bytes) -> Proof:
        committed_bytes = bytes(committed_bytes)
        try:
            signing_key = SigningKey(proving_key.signing_key)
            signature = signing_key.sign(proving_key.program_digest + committed_bytes).signature
        except (CryptoError, TypeError) as exc:
            raise ProofGenerationFailed("Signing backend rejected the proving key") from exc

        return Proof(
            proof_bytes=bytes(signature),
            committed_bytes=committed_bytes,
            program_digest=proving_key.program_digest
        )

    def verify(self, proof: Proof, verifying_key: VerifyingKey) -> bool:
        if not hmac.compare_digest(proof.program_digest, verifying_key.program_digest):
            return False
        try:
            VerifyKey(verifying_key.verify_key).verify(
                proof.program_digest + proof.committed_bytes,
                proof.proof_bytes
            )
            return True
        except BadSignatureError:
            return False
        except (CryptoError, TypeError):
            logger.warning("Malformed verifying key or proof bytes")
            return False


def ensure_committed(proof: Proof, expected: bytes) -> None:
    """
    Require the proof to commit to exactly the bytes the caller encoded.

    Raises:
        DecodeError: on any difference
    """
    if not hmac.compare_digest(proof.committed_bytes, bytes(expected)):
        raise DecodeError(
            "Committed bytes differ from the encoded attestation",
            field="committed_bytes",
            required=f"{len(expected)} bytes as encoded",
            observed=f"{len(proof.committed_bytes)} bytes"
        )


def read_public_values(
    kind: AttestationKind,
    proof: Proof,
    verifying_key: VerifyingKey,
    backend: ProvingBackend
) -> AttestationRecord:
    """
    Verify a proof and decode the record it commits to.

    Raises:
        DecodeError: if the proof does not verify or the bytes do not decode
    """
    if not backend.verify(proof, verifying_key):
        raise DecodeError("Proof failed verification", field="proof_bytes")
    return decode(kind, proof.committed_bytes)


# =============================================================================
# PROOF JOBS
# =============================================================================

class ProofJobStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class ProofJob:
    job_id: str
    kind: AttestationKind
    fingerprint: str
    committed_bytes: bytes
    status: ProofJobStatus = ProofJobStatus.PENDING
    proof: Optional[Proof] = None
    error: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "job_id": self.job_id,
            "kind": self.kind.value,
            "fingerprint": self.fingerprint,
            "status": self.status.value,
            "created_at": self.created_at.isoformat().replace("+00:00", "Z"),
        }
        if self.completed_at:
            d["completed_at"] = self.completed_at.isoformat().replace("+00:00", "Z")
        if self.proof:
            d["proof"] = "0x" + self.proof.proof_bytes.hex()
            d["public_values"] = "0x" + self.proof.committed_bytes.hex()
        if self.error:
            d["error"] = self.error
        return d


class ProofJobRunner:
    """
    Runs blocking prove() calls off the request path.

    create() registers a job; run() executes it synchronously (for callers
    that already own a worker, such as a web framework's background tasks);
    submit() does both on the runner's own thread pool.

    At most max_jobs jobs are retained. Creating a job past that cap evicts
    the oldest finished jobs; pending and running jobs are never evicted.
    """

    def __init__(
        self,
        backend: ProvingBackend,
        proving_key: ProvingKey,
        max_workers: int = 2,
        max_jobs: int = 1000
    ):
        if max_jobs < 1:
            raise ValueError("max_jobs must be at least 1")
        self.backend = backend
        self.proving_key = proving_key
        self.max_jobs = max_jobs
        self._jobs: Dict[str, ProofJob] = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="zkattest-prover")

    def create(self, attestation: Attestation) -> ProofJob:
        job = ProofJob(
            job_id=f"job-{secrets.token_hex(8)}",
            kind=attestation.kind,
            fingerprint=attestation.fingerprint,
            committed_bytes=attestation.committed_bytes
        )
        with self._lock:
            self._jobs[job.job_id] = job
            self._evict_finished()
        audit_log.proof_requested(job.job_id, job.kind.value, job.fingerprint)
        return job

    def _evict_finished(self) -> None:
        # Caller holds self._lock; dict order is creation order.
        excess = len(self._jobs) - self.max_jobs
        if excess <= 0:
            return
        finished = [
            job_id for job_id, job in self._jobs.items()
            if job.status in (ProofJobStatus.SUCCEEDED, ProofJobStatus.FAILED)
        ]
        for job_id in finished[:excess]:
            del self._jobs[job_id]
        logger.debug("Evicted %d finished proof jobs", min(excess, len(finished)))

    def get(self, job_id: str) -> Optional[ProofJob]:
        with self._lock:
            return self._jobs.get(job_id)

    def _update(self, job_id: str, **changes) -> ProofJob:
        with self._lock:
            job = replace(self._jobs[job_id], **changes)
            self._jobs[job_id] = job
            return job

    def run(self, job_id: str) -> ProofJob:
        job = self._update(job_id, status=ProofJobStatus.RUNNING)
        started = time.monotonic()
        try:
            proof = self.backend.prove(self.proving_key, job.committed_bytes)
            ensure_committed(proof, job.committed_bytes)
        except (ProofGenerationFailed, DecodeError) as exc:
            return self._fail(job, exc.message)
        except Exception as exc:
            logger.exception("Proving backend raised for %s", job_id)
            return self._fail(job, f"Backend error: {type(exc).__name__}")

        duration_ms = int((time.monotonic() - started) * 1000)
        audit_log.proof_completed(job_id, job.kind.value, duration_ms)
        return self._update(
            job_id,
            status=ProofJobStatus.SUCCEEDED,
            proof=proof,
            completed_at=datetime.now(timezone.utc)
        )

    def _fail(self, job: ProofJob, reason: str) -> ProofJob:
        audit_log.proof_failed(job.job_id, job.kind.value, reason)
        return self._update(
            job.job_id,
            status=ProofJobStatus.FAILED,
            error=reason,
            completed_at=datetime.now(timezone.utc)
        )

    def submit(self, attestation: Attestation) -> "Future[ProofJob]":
        job = self.create(attestation)
        return self._executor.submit(self.run, job.job_id)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
