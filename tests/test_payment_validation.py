"""Tests for payment validation helpers."""
import pytest

from app.utils.payment_validation import (
    CommitFailedError,
    ConcurrentModificationError,
    PaymentValidationError,
    is_settled,
    round_money,
    validate_payment_amount,
    validate_receipt_id,
)


class TestValidatePaymentAmount:

    @pytest.mark.parametrize("amount", [0.01, 1, 14000, 99.999])
    def test_positive_amounts_pass(self, amount):
        assert validate_payment_amount(amount) == float(amount)

    @pytest.mark.parametrize("amount", [0, -0.01, -100])
    def test_non_positive_amounts_fail(self, amount):
        with pytest.raises(PaymentValidationError, match="greater than zero"):
            validate_payment_amount(amount)

    @pytest.mark.parametrize("amount", [float("nan"), float("inf"), "100", None, True])
    def test_non_numbers_fail(self, amount):
        with pytest.raises(PaymentValidationError, match="Invalid payment amount"):
            validate_payment_amount(amount)


class TestValidateReceiptId:

    def test_strips_whitespace(self):
        assert validate_receipt_id("  abc ") == "abc"

    @pytest.mark.parametrize("receipt_id", [None, "", "   "])
    def test_blank_ids_fail(self, receipt_id):
        with pytest.raises(PaymentValidationError):
            validate_receipt_id(receipt_id)


def test_round_money():
    assert round_money(10.005) in (10.0, 10.01)
    assert round_money(33.333333) == 33.33
    assert str(round_money(-0.001)) == "0.0"


def test_is_settled_uses_tolerance():
    assert is_settled(100, 99.995, tolerance=0.01) is True
    assert is_settled(100, 99.98, tolerance=0.01) is False
    assert is_settled(100, 100.5, tolerance=0.01) is True


def test_error_codes():
    assert PaymentValidationError("x").code == "validation_error"
    assert ConcurrentModificationError("x").code == "concurrent_modification"
    assert isinstance(ConcurrentModificationError("x"), CommitFailedError)


def test_is_settled_ignores_float_noise():
    # 100 - 99.99 is 0.010000000000005116 in binary floating point
    assert is_settled(100, 99.99, tolerance=0.01) is True
    assert is_settled(0.3, 0.1 + 0.2, tolerance=0.0) is True
