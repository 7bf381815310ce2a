"""
HTTP service for zkattest.

Thin FastAPI layer over the attestation core. Proving runs as a background
task after the response is sent; clients poll the job.
"""

from typing import Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from . import config
from .assembler import AttestationAssembler
from .encoding import decode, layout_size, record_to_dict
from .errors import AttestationError, DecodeError, FailureCode, MalformedField
from .feeds import fetch_btc_price
from .logging_config import set_request_id
from .prover import (
    Proof,
    ProofJobRunner,
    ProvingBackend,
    SignedCommitmentBackend,
    VerifyingKey,
)
from .records import METRIC_KINDS, AttestationKind
from .schemas import AttestRequest, DecodeRequest, VerifyRequest
from .validation import InputValidator

ERROR_STATUS = {
    FailureCode.DECODE_ERROR: 400,
    FailureCode.PRICE_FEED_ERROR: 502,
    FailureCode.PROOF_GENERATION_FAILED: 500,
}


def _parse_hex(name: str, value: str) -> bytes:
    text = value[2:] if value.startswith(("0x", "0X")) else value
    try:
        return bytes.fromhex(text)
    except ValueError as exc:
        raise DecodeError(f"{name} is not valid hex", field=name) from exc


def create_app(
    assembler: Optional[AttestationAssembler] = None,
    backend: Optional[ProvingBackend] = None,
    runner: Optional[ProofJobRunner] = None,
    verifying_key: Optional[VerifyingKey] = None
) -> FastAPI:
    """
    Build the service.

    Without arguments, recipients come from configuration and a fresh
    signed-commitment backend is set up for the configured program id.
    """
    assembler = assembler or AttestationAssembler(InputValidator(config.load_recipient_config()))
    backend = backend or SignedCommitmentBackend()
    if runner is None or verifying_key is None:
        proving_key, verifying_key = backend.setup(config.PROGRAM_ID.encode('utf-8'))
        runner = ProofJobRunner(
            backend,
            proving_key,
            max_workers=config.PROVER_WORKERS,
            max_jobs=config.PROOF_JOB_RETENTION
        )

    app = FastAPI(
        title="zkattest",
        docs_url=None if config.is_production() else "/docs"
    )

    @app.middleware("http")
    async def _request_id(request: Request, call_next):
        request_id = set_request_id(request.headers.get("x-request-id"))
        response = await call_next(request)
        response.headers["x-request-id"] = request_id
        return response

    @app.exception_handler(AttestationError)
    async def _attestation_error(request: Request, exc: AttestationError):
        status = ERROR_STATUS.get(exc.code, 422)
        return JSONResponse(status_code=status, content=exc.to_dict())

    @app.get("/health")
    def health():
        return {"status": "ok", "env": config.ENV}

    @app.get("/kinds")
    def kinds():
        out = []
        for kind in AttestationKind:
            size, fixed = layout_size(kind)
            out.append({"kind": kind.value, "size": size, "fixed_size": fixed})
        return out

    @app.get("/verifying_key")
    def get_verifying_key():
        return {
            "vkey": verifying_key.bytes32(),
            "program_digest": "0x" + verifying_key.program_digest.hex(),
            "verify_key": "0x" + verifying_key.verify_key.hex(),
        }

    def _attest(kind: AttestationKind, req: AttestRequest):
        raw = dict(req.input)
        if kind in METRIC_KINDS and "price_units" not in raw:
            if not req.fetch_price:
                raise MalformedField("Missing required field: price_units", field="price_units")
            raw["price_units"] = fetch_btc_price()
        return assembler.attest(kind, raw)

    @app.post("/attest/{kind}")
    def attest(kind: AttestationKind, req: AttestRequest):
        return _attest(kind, req).to_dict()

    @app.post("/decode/{kind}")
    def decode_committed(kind: AttestationKind, req: DecodeRequest):
        record = decode(kind, _parse_hex("committed_bytes", req.committed_bytes))
        return record_to_dict(record)

    @app.post("/prove/{kind}", status_code=202)
    def prove(kind: AttestationKind, req: AttestRequest, background_tasks: BackgroundTasks):
        attestation = _attest(kind, req)
        job = runner.create(attestation)
        background_tasks.add_task(runner.run, job.job_id)
        return job.to_dict()

    @app.get("/proofs/{job_id}")
    def get_proof(job_id: str):
        job = runner.get(job_id)
        if not job:
            raise HTTPException(404, "NOT_FOUND")
        return job.to_dict()

    @app.post("/verify/{kind}")
    def verify(kind: AttestationKind, req: VerifyRequest):
        proof = Proof(
            proof_bytes=_parse_hex("proof", req.proof),
            committed_bytes=_parse_hex("public_values", req.public_values),
            program_digest=verifying_key.program_digest
        )
        if not backend.verify(proof, verifying_key):
            return {"valid": False}
        record = decode(kind, proof.committed_bytes)
        return {"valid": True, "record": record_to_dict(record)}

    return app


app = create_app()
