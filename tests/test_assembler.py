"""
Attestation assembler tests.

Conservation of holdings, identity wiring for transactions, metric records
and the full attest() pipeline.
"""

import unittest

from zkattest import (
    U64_MAX,
    ArithmeticOverflow,
    AttestationAssembler,
    AttestationKind,
    InputValidator,
    RecipientConfig,
    RecipientMismatch,
    TotalMismatch,
    decode,
    encode,
    hash_identity,
    sha256_hash,
)

DOGE_RECIPIENT = "DHGrS3MYGyKzRVdMNxziTPF7QXvaYoEndA"
XRP_RECIPIENT = "rLAc6d8QtzMMhp1ziGvBGzLk81gDfM25du"


def make_utxo(amount, index=0):
    return {
        "transaction_id": "11" * 32,
        "output_index": index,
        "amount": amount,
        "owner_pubkey": "02" + "33" * 32,
    }


def make_holdings(amounts, declared_total, **extra):
    raw = {
        "utxos": [make_utxo(a, i) for i, a in enumerate(amounts)],
        "declared_total": declared_total,
        "organization_id": "org-42",
    }
    raw.update(extra)
    return raw


class TestHoldingsConservation(unittest.TestCase):

    def setUp(self):
        self.assembler = AttestationAssembler()

    def test_matching_total_accepted(self):
        attestation = self.assembler.attest(
            AttestationKind.BTC_HOLDINGS, make_holdings([150000, 850000], 1000000)
        )
        record = attestation.record
        self.assertEqual(record.total_btc, 1000000)
        self.assertEqual(record.org_hash, hash_identity("org-42"))

    def test_put_and_call_fall_back_to_total(self):
        record = self.assembler.attest(
            AttestationKind.BTC_HOLDINGS, make_holdings([150000, 850000], 1000000)
        ).record
        self.assertEqual(record.total_put_value, 1000000)
        self.assertEqual(record.total_call_value, 1000000)

    def test_auxiliary_values_drive_put_and_call(self):
        record = self.assembler.attest(
            AttestationKind.BTC_HOLDINGS,
            make_holdings([150000, 850000], 1000000, auxiliary_values=["250000", ""])
        ).record
        self.assertEqual(record.total_put_value, 250000)
        self.assertEqual(record.total_call_value, 1000000)

    def test_declared_total_mismatch(self):
        with self.assertRaises(TotalMismatch) as ctx:
            self.assembler.attest(
                AttestationKind.BTC_HOLDINGS, make_holdings([150000, 850000], 999999)
            )
        self.assertEqual(ctx.exception.required, "1000000")
        self.assertEqual(ctx.exception.observed, "999999")

    def test_altered_amount_rejected(self):
        """Changing any single UTXO amount breaks conservation."""
        for index in range(2):
            amounts = [150000, 850000]
            amounts[index] += 1
            with self.subTest(index=index):
                with self.assertRaises(TotalMismatch):
                    self.assembler.attest(
                        AttestationKind.BTC_HOLDINGS, make_holdings(amounts, 1000000)
                    )

    def test_overflow_is_not_clamped(self):
        with self.assertRaises(ArithmeticOverflow):
            self.assembler.attest(
                AttestationKind.BTC_HOLDINGS, make_holdings([U64_MAX, 1], U64_MAX)
            )

    def test_rejection_is_audited(self):
        with self.assertLogs("zkattest.audit", level="WARNING") as cm:
            with self.assertRaises(TotalMismatch):
                self.assembler.attest(
                    AttestationKind.BTC_HOLDINGS, make_holdings([1], 2)
                )
        self.assertTrue(any("ATTESTATION_REJECTED" in line for line in cm.output))


class TestTransactions(unittest.TestCase):

    def setUp(self):
        self.assembler = AttestationAssembler(InputValidator(RecipientConfig({
            AttestationKind.DOGE_TRANSACTION: DOGE_RECIPIENT,
            AttestationKind.XRP_TRANSACTION: XRP_RECIPIENT,
        })))

    def _raw(self, recipient, owner):
        return {
            "transaction_id": "ab" * 32,
            "claimed_recipient": recipient,
            "sender_identity": "alice",
            "owner_identity": owner,
            "amount": 5000,
        }

    def test_doge_hashes_both_identities(self):
        record = self.assembler.attest(
            AttestationKind.DOGE_TRANSACTION, self._raw(DOGE_RECIPIENT, "bob")
        ).record
        self.assertEqual(record.sender_hash, hash_identity("alice"))
        self.assertEqual(record.owner_field, hash_identity("bob"))
        self.assertEqual(record.tx_hash, b"\xab" * 32)
        self.assertEqual(record.total_amount, 5000)

    def test_xrp_keeps_plaintext_owner(self):
        attestation = self.assembler.attest(
            AttestationKind.XRP_TRANSACTION, self._raw(XRP_RECIPIENT, "rOwnerAddress")
        )
        self.assertEqual(attestation.record.owner_field, "rOwnerAddress")
        self.assertEqual(attestation.record.sender_hash, hash_identity("alice"))
        self.assertEqual(len(attestation.committed_bytes), 104)
        self.assertIn(b"rOwnerAddress", attestation.committed_bytes)
        self.assertNotIn(b"alice", attestation.committed_bytes)

    def test_recipient_mismatch_aborts(self):
        with self.assertRaises(RecipientMismatch):
            self.assembler.attest(
                AttestationKind.DOGE_TRANSACTION, self._raw(XRP_RECIPIENT, "bob")
            )


class TestMetricsAndPipeline(unittest.TestCase):

    def setUp(self):
        self.assembler = AttestationAssembler()
        self.raw = {
            "collateral_units": 2,
            "debt_units": 50000,
            "price_units": 50000,
            "minimum_ratio": 150,
        }

    def test_loan_health(self):
        record = self.assembler.attest(AttestationKind.LOAN_HEALTH, self.raw).record
        self.assertEqual(
            (record.icr, record.collateral_usd, record.liquidation_threshold, record.real_time_ltv),
            (200, 100000, 66666, 50)
        )

    def test_single_metric_kinds(self):
        self.assertEqual(
            self.assembler.attest(AttestationKind.LIQUIDATION, self.raw).record.liquidation_threshold,
            66666
        )
        self.assertEqual(
            self.assembler.attest(AttestationKind.LOAN_TO_VALUE, self.raw).record.real_time_ltv,
            50
        )
        record = self.assembler.attest(AttestationKind.COLLATERAL_METRICS, self.raw).record
        self.assertEqual((record.icr, record.collateral_usd), (200, 100000))

    def test_balance(self):
        attestation = self.assembler.attest(
            AttestationKind.XRP_BALANCE, {"address": XRP_RECIPIENT, "amount": 42}
        )
        self.assertEqual(attestation.record.address, XRP_RECIPIENT)
        self.assertEqual(len(attestation.committed_bytes), 10 + len(XRP_RECIPIENT))

    def test_attestation_is_consistent(self):
        attestation = self.assembler.attest(AttestationKind.LOAN_HEALTH, self.raw)
        self.assertEqual(attestation.committed_bytes, encode(attestation.record))
        self.assertEqual(attestation.fingerprint, sha256_hash(attestation.committed_bytes))
        self.assertEqual(decode(attestation.kind, attestation.committed_bytes), attestation.record)

    def test_deterministic(self):
        a = self.assembler.attest(AttestationKind.LOAN_HEALTH, self.raw)
        b = self.assembler.attest(AttestationKind.LOAN_HEALTH, dict(self.raw))
        self.assertEqual(a, b)

    def test_to_dict(self):
        d = self.assembler.attest(AttestationKind.LIQUIDATION, self.raw).to_dict()
        self.assertEqual(d["kind"], "liquidation")
        self.assertEqual(d["committed_bytes"], "0x" + (66666).to_bytes(4, "big").hex())
        self.assertEqual(d["record"]["liquidation_threshold"], 66666)
        self.assertTrue(d["fingerprint"].startswith("sha256:"))


if __name__ == "__main__":
    unittest.main(verbosity=2)
