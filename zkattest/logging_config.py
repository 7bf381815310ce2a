"""
Logging setup for zkattest.

Two pieces:
- StructuredFormatter renders every record as a single JSON line, tagged
  with the request id of the current context when there is one.
- AttestationAuditLogger emits one event per attestation or proof outcome.
  Events carry kinds, fingerprints and failure codes, never plaintext
  identities.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

request_id_var: ContextVar[str] = ContextVar('zkattest_request_id', default='')

TEXT_FORMAT = '%(asctime)s %(levelname)-8s %(name)s: %(message)s'


class StructuredFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: Dict[str, Any] = {
            "ts": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        current = request_id_var.get()
        if current:
            entry["request_id"] = current

        entry.update(getattr(record, "event", {}))

        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class AttestationAuditLogger:
    """Audit events for attestations and proving jobs."""

    def __init__(self, name: str = "zkattest.audit"):
        self.logger = logging.getLogger(name)

    def _emit(self, level: int, event_type: str, summary: str, **details) -> None:
        if not self.logger.isEnabledFor(level):
            return
        event = {"event_type": event_type}
        event.update({k: v for k, v in details.items() if v is not None})
        self.logger.log(level, "%s %s", event_type, summary, extra={"event": event})

    def attestation_assembled(self, kind: str, fingerprint: str, size: int) -> None:
        self._emit(
            logging.INFO, "ATTESTATION_ASSEMBLED", kind,
            kind=kind, fingerprint=fingerprint, size=size
        )

    def attestation_rejected(self, kind: str, failure_code: str, field: Optional[str] = None) -> None:
        self._emit(
            logging.WARNING, "ATTESTATION_REJECTED", f"{kind} {failure_code}",
            kind=kind, failure_code=failure_code, field=field
        )

    def proof_requested(self, job_id: str, kind: str, fingerprint: str) -> None:
        self._emit(
            logging.INFO, "PROOF_REQUESTED", job_id,
            job_id=job_id, kind=kind, fingerprint=fingerprint
        )

    def proof_completed(self, job_id: str, kind: str, duration_ms: int) -> None:
        self._emit(
            logging.INFO, "PROOF_COMPLETED", job_id,
            job_id=job_id, kind=kind, duration_ms=duration_ms
        )

    def proof_failed(self, job_id: str, kind: str, reason: str) -> None:
        self._emit(
            logging.ERROR, "PROOF_FAILED", f"{job_id}: {reason}",
            job_id=job_id, kind=kind, reason=reason
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Replace the root logger's handlers.

    Args:
        level: Name of the root log level, e.g. "DEBUG" or "WARNING"
        json_format: Emit StructuredFormatter JSON lines instead of plain text
        log_file: Also write to this file when set
    """
    formatter = StructuredFormatter() if json_format else logging.Formatter(TEXT_FORMAT)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level.upper())


def set_request_id(request_id: Optional[str] = None) -> str:
    """Bind a request id to the current context, generating one if absent."""
    request_id = request_id or uuid.uuid4().hex
    request_id_var.set(request_id)
    return request_id


audit_log = AttestationAuditLogger()
