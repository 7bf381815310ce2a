"""
Structured logging and audit event tests.
"""

import json
import logging
import unittest

from zkattest.logging_config import (
    AttestationAuditLogger,
    StructuredFormatter,
    request_id_var,
    set_request_id,
)


class TestStructuredFormatter(unittest.TestCase):

    def _record(self, **event):
        record = logging.LogRecord("zkattest.test", logging.INFO, __file__, 10, "hello %s", ("world",), None)
        if event:
            record.event = event
        return record

    def test_json_line(self):
        entry = json.loads(StructuredFormatter().format(self._record()))
        self.assertEqual(entry["msg"], "hello world")
        self.assertEqual(entry["level"], "INFO")
        self.assertEqual(entry["logger"], "zkattest.test")
        self.assertTrue(entry["ts"].endswith("Z"))

    def test_event_fields_and_request_id(self):
        token = request_id_var.set("req-9")
        try:
            entry = json.loads(StructuredFormatter().format(self._record(event_type="X", size=8)))
        finally:
            request_id_var.reset(token)
        self.assertEqual(entry["request_id"], "req-9")
        self.assertEqual(entry["event_type"], "X")
        self.assertEqual(entry["size"], 8)

    def test_set_request_id_generates(self):
        token = request_id_var.set("")
        try:
            generated = set_request_id()
            self.assertEqual(len(generated), 32)
            self.assertEqual(set_request_id("given"), "given")
        finally:
            request_id_var.reset(token)


class TestAuditLogger(unittest.TestCase):

    def setUp(self):
        self.audit = AttestationAuditLogger("zkattest.audit.test")

    def test_rejection_event(self):
        with self.assertLogs("zkattest.audit.test", level="WARNING") as cm:
            self.audit.attestation_rejected("btc_holdings", "TOTAL_MISMATCH", "declared_total")
        record = cm.records[0]
        self.assertEqual(record.event["failure_code"], "TOTAL_MISMATCH")
        self.assertEqual(record.event["field"], "declared_total")

    def test_none_details_dropped(self):
        with self.assertLogs("zkattest.audit.test", level="WARNING") as cm:
            self.audit.attestation_rejected("liquidation", "MALFORMED_FIELD")
        self.assertNotIn("field", cm.records[0].event)

    def test_proof_failed_is_error(self):
        with self.assertLogs("zkattest.audit.test", level="ERROR") as cm:
            self.audit.proof_failed("job-1", "btc_holdings", "backend down")
        self.assertEqual(cm.records[0].levelno, logging.ERROR)
        self.assertEqual(cm.records[0].event["reason"], "backend down")


if __name__ == "__main__":
    unittest.main(verbosity=2)
