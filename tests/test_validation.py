"""
Input validator tests.

Fail-closed behaviour: every malformed field, width violation and recipient
mismatch is rejected with the matching failure code.
"""

import unittest

from zkattest import (
    AttestationKind,
    FailureCode,
    InputValidator,
    MalformedField,
    RecipientConfig,
    RecipientMismatch,
    U32_MAX,
    U64_MAX,
)

DOGE_RECIPIENT = "DHGrS3MYGyKzRVdMNxziTPF7QXvaYoEndA"
XRP_RECIPIENT = "rLAc6d8QtzMMhp1ziGvBGzLk81gDfM25du"


def make_transaction(**overrides):
    raw = {
        "transaction_id": "ab" * 32,
        "claimed_recipient": DOGE_RECIPIENT,
        "sender_identity": "alice",
        "owner_identity": "bob",
        "amount": 5000,
    }
    raw.update(overrides)
    return raw


def make_utxo(**overrides):
    raw = {
        "transaction_id": "11" * 32,
        "output_index": 0,
        "amount": 150000,
        "owner_pubkey": "02" + "33" * 32,
    }
    raw.update(overrides)
    return raw


class TestTransactionValidation(unittest.TestCase):

    def setUp(self):
        self.validator = InputValidator(RecipientConfig({
            AttestationKind.DOGE_TRANSACTION: DOGE_RECIPIENT,
            AttestationKind.XRP_TRANSACTION: XRP_RECIPIENT,
        }))

    def test_valid_transaction(self):
        tx = self.validator.validate(AttestationKind.DOGE_TRANSACTION, make_transaction())
        self.assertEqual(tx.transaction_id, b"\xab" * 32)
        self.assertEqual(tx.amount, 5000)
        self.assertEqual(tx.kind, AttestationKind.DOGE_TRANSACTION)

    def test_hex_prefix_and_raw_bytes_accepted(self):
        tx = self.validator.validate_transaction(
            AttestationKind.DOGE_TRANSACTION, make_transaction(transaction_id="0x" + "ab" * 32)
        )
        self.assertEqual(tx.transaction_id, b"\xab" * 32)
        tx = self.validator.validate_transaction(
            AttestationKind.DOGE_TRANSACTION, make_transaction(transaction_id=b"\xab" * 32)
        )
        self.assertEqual(tx.transaction_id, b"\xab" * 32)

    def test_short_transaction_id(self):
        with self.assertRaises(MalformedField) as ctx:
            self.validator.validate(AttestationKind.DOGE_TRANSACTION, make_transaction(transaction_id="ab" * 31))
        self.assertEqual(ctx.exception.field, "transaction_id")
        self.assertEqual(ctx.exception.required, "32 bytes")
        self.assertEqual(ctx.exception.observed, "31 bytes")

    def test_invalid_hex(self):
        with self.assertRaises(MalformedField):
            self.validator.validate(AttestationKind.DOGE_TRANSACTION, make_transaction(transaction_id="zz" * 32))

    def test_trailing_newline_in_hex(self):
        """Whitespace after the hex digits is rejected, not silently matched."""
        for value in ("a" * 63 + "\n", "ab" * 31 + "a\n", "ab" * 32 + "\n"):
            with self.subTest(transaction_id=value):
                with self.assertRaises(MalformedField) as ctx:
                    self.validator.validate(
                        AttestationKind.DOGE_TRANSACTION, make_transaction(transaction_id=value)
                    )
                self.assertEqual(ctx.exception.field, "transaction_id")

    def test_one_character_recipient_mismatch(self):
        """A recipient differing in a single character is rejected."""
        claimed = DOGE_RECIPIENT[:-1] + "B"
        with self.assertRaises(RecipientMismatch) as ctx:
            self.validator.validate(AttestationKind.DOGE_TRANSACTION, make_transaction(claimed_recipient=claimed))
        self.assertEqual(ctx.exception.code, FailureCode.RECIPIENT_MISMATCH)
        self.assertEqual(ctx.exception.observed, claimed)

    def test_recipient_is_case_sensitive(self):
        with self.assertRaises(RecipientMismatch):
            self.validator.validate(
                AttestationKind.DOGE_TRANSACTION,
                make_transaction(claimed_recipient=DOGE_RECIPIENT.lower())
            )

    def test_missing_recipient_config(self):
        """A kind with no configured recipient cannot be attested."""
        with self.assertRaises(RecipientMismatch):
            self.validator.validate(AttestationKind.BTC_TRANSACTION, make_transaction())

    def test_structural_checks_precede_recipient_check(self):
        raw = make_transaction(transaction_id="ab", claimed_recipient="wrong")
        with self.assertRaises(MalformedField):
            self.validator.validate(AttestationKind.DOGE_TRANSACTION, raw)

    def test_missing_field(self):
        raw = make_transaction()
        del raw["amount"]
        with self.assertRaises(MalformedField) as ctx:
            self.validator.validate(AttestationKind.DOGE_TRANSACTION, raw)
        self.assertEqual(ctx.exception.field, "amount")

    def test_amount_width(self):
        ok = self.validator.validate(AttestationKind.DOGE_TRANSACTION, make_transaction(amount=U64_MAX))
        self.assertEqual(ok.amount, U64_MAX)
        for bad in (-1, U64_MAX + 1, 1.5, "100", True):
            with self.subTest(amount=bad):
                with self.assertRaises(MalformedField):
                    self.validator.validate(AttestationKind.DOGE_TRANSACTION, make_transaction(amount=bad))

    def test_xrp_owner_must_fit_owner_field(self):
        raw = make_transaction(claimed_recipient=XRP_RECIPIENT, owner_identity="r" * 33)
        with self.assertRaises(MalformedField) as ctx:
            self.validator.validate(AttestationKind.XRP_TRANSACTION, raw)
        self.assertEqual(ctx.exception.field, "owner_identity")

    def test_xrp_owner_of_32_bytes_accepted(self):
        raw = make_transaction(claimed_recipient=XRP_RECIPIENT, owner_identity="r" * 32)
        tx = self.validator.validate(AttestationKind.XRP_TRANSACTION, raw)
        self.assertEqual(tx.owner_identity, "r" * 32)

    def test_non_mapping_input(self):
        with self.assertRaises(MalformedField):
            self.validator.validate(AttestationKind.DOGE_TRANSACTION, ["not", "a", "mapping"])


class TestHoldingsValidation(unittest.TestCase):

    def setUp(self):
        self.validator = InputValidator()

    def _holdings(self, **overrides):
        raw = {
            "utxos": [make_utxo(amount=150000), make_utxo(amount=850000, output_index=1)],
            "declared_total": 1000000,
            "organization_id": "org-42",
        }
        raw.update(overrides)
        return raw

    def test_valid_holdings(self):
        holdings = self.validator.validate(AttestationKind.BTC_HOLDINGS, self._holdings())
        self.assertEqual(len(holdings.utxos), 2)
        self.assertEqual(holdings.utxos[0].owner_pubkey, b"\x02" + b"\x33" * 32)
        self.assertIsNone(holdings.utxos[0].signature)
        self.assertEqual(holdings.auxiliary_values, ("", ""))

    def test_empty_utxo_list(self):
        holdings = self.validator.validate(
            AttestationKind.BTC_HOLDINGS, self._holdings(utxos=[], declared_total=0)
        )
        self.assertEqual(holdings.utxos, ())

    def test_utxos_must_be_list(self):
        with self.assertRaises(MalformedField) as ctx:
            self.validator.validate(AttestationKind.BTC_HOLDINGS, self._holdings(utxos="abc"))
        self.assertEqual(ctx.exception.field, "utxos")

    def test_uncompressed_pubkey_rejected(self):
        raw = self._holdings(utxos=[make_utxo(owner_pubkey="04" + "33" * 64)])
        with self.assertRaises(MalformedField) as ctx:
            self.validator.validate(AttestationKind.BTC_HOLDINGS, raw)
        self.assertEqual(ctx.exception.field, "utxos[0].owner_pubkey")

    def test_signature_length(self):
        good = self._holdings(utxos=[make_utxo(signature="cd" * 64)], declared_total=150000)
        holdings = self.validator.validate(AttestationKind.BTC_HOLDINGS, good)
        self.assertEqual(holdings.utxos[0].signature, b"\xcd" * 64)

        bad = self._holdings(utxos=[make_utxo(signature="cd" * 63)])
        with self.assertRaises(MalformedField) as ctx:
            self.validator.validate(AttestationKind.BTC_HOLDINGS, bad)
        self.assertEqual(ctx.exception.field, "utxos[0].signature")

    def test_output_index_is_u32(self):
        raw = self._holdings(utxos=[make_utxo(output_index=U32_MAX + 1)])
        with self.assertRaises(MalformedField) as ctx:
            self.validator.validate(AttestationKind.BTC_HOLDINGS, raw)
        self.assertEqual(ctx.exception.field, "utxos[0].output_index")

    def test_missing_utxo_field_is_prefixed(self):
        utxo = make_utxo()
        del utxo["amount"]
        with self.assertRaises(MalformedField) as ctx:
            self.validator.validate(AttestationKind.BTC_HOLDINGS, self._holdings(utxos=[utxo]))
        self.assertEqual(ctx.exception.field, "utxos[0].amount")

    def test_empty_organization(self):
        with self.assertRaises(MalformedField):
            self.validator.validate(AttestationKind.BTC_HOLDINGS, self._holdings(organization_id=""))

    def test_auxiliary_values(self):
        holdings = self.validator.validate(
            AttestationKind.BTC_HOLDINGS, self._holdings(auxiliary_values=["250000", ""])
        )
        self.assertEqual(holdings.auxiliary_values, ("250000", ""))

        for bad in (["1", "x"], ["1"], "12", [str(U64_MAX + 1), ""], [1, 2], ["5\n", ""], ["", "7\n"]):
            with self.subTest(auxiliary_values=bad):
                with self.assertRaises(MalformedField):
                    self.validator.validate(
                        AttestationKind.BTC_HOLDINGS, self._holdings(auxiliary_values=bad)
                    )


class TestCollateralAndBalanceValidation(unittest.TestCase):

    def setUp(self):
        self.validator = InputValidator()

    def test_collateral_defaults(self):
        data = self.validator.validate(
            AttestationKind.COLLATERAL_METRICS,
            {"collateral_units": 2, "debt_units": 50000, "price_units": 50000}
        )
        self.assertEqual(data.minimum_ratio, 0)

    def test_price_is_u32(self):
        with self.assertRaises(MalformedField) as ctx:
            self.validator.validate(
                AttestationKind.LOAN_HEALTH,
                {"collateral_units": 2, "debt_units": 1, "price_units": U32_MAX + 1}
            )
        self.assertEqual(ctx.exception.field, "price_units")

    def test_balance(self):
        data = self.validator.validate(AttestationKind.XRP_BALANCE, {"address": "rAddr", "amount": 7})
        self.assertEqual((data.address, data.amount), ("rAddr", 7))

    def test_balance_empty_address(self):
        with self.assertRaises(MalformedField):
            self.validator.validate(AttestationKind.XRP_BALANCE, {"address": "", "amount": 7})


class TestRecipientConfig(unittest.TestCase):

    def test_from_dict(self):
        config = RecipientConfig.from_dict({
            "doge_transaction": DOGE_RECIPIENT,
            "btc_transaction": "",
        })
        self.assertEqual(config.expected_for(AttestationKind.DOGE_TRANSACTION), DOGE_RECIPIENT)
        self.assertIsNone(config.expected_for(AttestationKind.BTC_TRANSACTION))

    def test_rejects_non_transaction_kind(self):
        with self.assertRaises(ValueError):
            RecipientConfig.from_dict({"btc_holdings": "x"})

    def test_with_recipient_is_a_copy(self):
        base = RecipientConfig()
        updated = base.with_recipient(AttestationKind.XRP_TRANSACTION, XRP_RECIPIENT)
        self.assertIsNone(base.expected_for(AttestationKind.XRP_TRANSACTION))
        self.assertEqual(updated.expected_for("xrp_transaction"), XRP_RECIPIENT)


if __name__ == "__main__":
    unittest.main(verbosity=2)
