"""
Validator Tests — required fields and the ₹1 .. ₹2,00,000 bounds in both units.
"""
import unittest
from decimal import Decimal

from topup.errors import TopUpValidationError, AMOUNT_TOO_HIGH, AMOUNT_TOO_LOW, MISSING_FIELDS
from topup.models.payment import normalize_method
from topup.utils.validators import validate_order_request, validate_topup


class TestOrderRequestBounds(unittest.TestCase):
    """Paise bounds at the order-creation boundary"""

    def assertRejected(self, code, *args, **kwargs):
        with self.assertRaises(TopUpValidationError) as ctx:
            validate_order_request(*args, **kwargs)
        self.assertEqual(ctx.exception.code, code)
        return ctx.exception

    def test_lower_boundary(self):
        self.assertRejected(AMOUNT_TOO_LOW, 99, "INR", "topup_u1_1", "u1")
        order = validate_order_request(100, "INR", "topup_u1_1", "u1")
        self.assertEqual(order.amount.value, 100)

    def test_upper_boundary(self):
        order = validate_order_request(20000000, "INR", "topup_u1_1", "u1")
        self.assertEqual(order.amount.value, 20000000)
        err = self.assertRejected(AMOUNT_TOO_HIGH, 20000001, "INR", "topup_u1_1", "u1")
        self.assertEqual(err.message, "Maximum amount is ₹2,00,000")

    def test_minimum_message(self):
        err = self.assertRejected(AMOUNT_TOO_LOW, 0, "INR", "topup_u1_1", "u1")
        self.assertEqual(err.message, "Minimum amount is ₹1")

    def test_each_missing_field(self):
        full = dict(amount=500000, currency="INR", receipt="topup_u1_1", user_id="u1")
        for name in full:
            for blank in (None, ""):
                if name == "amount" and blank == "":
                    continue
                args = dict(full, **{name: blank})
                with self.subTest(field=name, value=blank):
                    self.assertRejected(MISSING_FIELDS, **args)

    def test_non_numeric_amount(self):
        self.assertRejected(MISSING_FIELDS, "500", "INR", "r", "u1")
        self.assertRejected(MISSING_FIELDS, float("nan"), "INR", "r", "u1")
        self.assertRejected(MISSING_FIELDS, True, "INR", "r", "u1")

    def test_infinite_amount_is_out_of_bounds(self):
        self.assertRejected(AMOUNT_TOO_HIGH, float("inf"), "INR", "r", "u1")
        self.assertRejected(AMOUNT_TOO_LOW, float("-inf"), "INR", "r", "u1")

    def test_fractional_paise_rejected(self):
        self.assertRejected(MISSING_FIELDS, 150.5, "INR", "r", "u1")
        self.assertEqual(validate_order_request(150.0, "INR", "r", "u1").amount.value, 150)

    def test_defaults_method_and_normalises(self):
        order = validate_order_request(100, " inr ", " r ", " u1 ")
        self.assertEqual(order.currency, "INR")
        self.assertEqual(order.receipt, "r")
        self.assertEqual(order.user_id, "u1")
        self.assertEqual(order.method, "UPI")
        self.assertEqual(validate_order_request(100, "INR", "r", "u1", "net_banking").method, "NETBANKING")


class TestTopUpRequest(unittest.TestCase):
    """Rupee bounds for the dashboard form"""

    def test_one_rupee_accepted(self):
        request = validate_topup(1, "INR", "u1", "UPI")
        self.assertEqual(request.amount.value, Decimal("1.00"))

    def test_max_accepted_and_one_more_rejected(self):
        self.assertEqual(validate_topup(200000, "INR", "u1", "UPI").amount.value, Decimal("200000.00"))
        with self.assertRaises(TopUpValidationError) as ctx:
            validate_topup(200001, "INR", "u1", "UPI")
        self.assertEqual(ctx.exception.code, AMOUNT_TOO_HIGH)

    def test_zero_and_negative_rejected(self):
        for amount in (0, -1, -5000, 0.5):
            with self.subTest(amount=amount):
                with self.assertRaises(TopUpValidationError) as ctx:
                    validate_topup(amount, "INR", "u1", "UPI")
                self.assertEqual(ctx.exception.code, AMOUNT_TOO_LOW)

    def test_missing_fields(self):
        for args in ((None, "INR", "u1", "UPI"), (10, "", "u1", "UPI"),
                     (10, "INR", "  ", "UPI"), (10, "INR", "u1", None)):
            with self.subTest(args=args):
                with self.assertRaises(TopUpValidationError) as ctx:
                    validate_topup(*args)
                self.assertEqual(ctx.exception.code, MISSING_FIELDS)

    def test_custom_limits(self):
        with self.assertRaises(TopUpValidationError):
            validate_topup(50, "INR", "u1", "UPI", min_rupees=100, max_rupees=1000)
        self.assertEqual(validate_topup(100, "INR", "u1", "UPI", min_rupees=100).amount.value, Decimal("100.00"))


class TestPaymentMethods(unittest.TestCase):
    def test_aliases(self):
        self.assertEqual(normalize_method("upi"), "UPI")
        self.assertEqual(normalize_method("NET_BANKING"), "NETBANKING")
        self.assertEqual(normalize_method("Debit Card"), "CARD")
        self.assertEqual(normalize_method("CREDIT_CARD"), "CARD")
        self.assertEqual(normalize_method("wallet"), "WALLET")

    def test_unknown_method_passes_through(self):
        self.assertEqual(normalize_method("emi"), "EMI")


if __name__ == "__main__":
    unittest.main()
