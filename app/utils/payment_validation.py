"""Payment validation utilities and the payment error taxonomy."""
import math
from typing import Optional

from app.core.config import settings


class PaymentError(Exception):
    """Base class for errors raised while recording or reading payments."""
    code = "payment_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PaymentValidationError(PaymentError):
    """Bad input: non-positive amount, blank receipt id, rejected overpayment."""
    code = "validation_error"


class ReceiptNotFoundError(PaymentError):
    code = "not_found"


class StoreUnavailableError(PaymentError):
    """Record store unreachable or not initialised."""
    code = "store_unavailable"


class IndexUnsupportedError(PaymentError):
    """Store cannot serve an ordered query. Recovered by sorting client-side."""
    code = "index_unsupported"


class CommitFailedError(PaymentError):
    """Atomic write rejected by the store. Nothing was applied."""
    code = "commit_failed"


class ConcurrentModificationError(CommitFailedError):
    """A receipt changed between read and commit."""
    code = "concurrent_modification"


def round_money(value: float) -> float:
    """Round to 2 decimals (currency minor units). Normalises -0.0 to 0.0."""
    return round(value, 2) + 0.0


def validate_receipt_id(receipt_id: Optional[str]) -> str:
    """Return the stripped receipt id or raise PaymentValidationError."""
    if receipt_id is None or not str(receipt_id).strip():
        raise PaymentValidationError("Receipt ID is required")
    return str(receipt_id).strip()


def validate_payment_amount(amount) -> float:
    """
    Validate a payment amount.

    Rules:
    - must be a real number (bool is rejected)
    - must be finite
    - must be greater than zero
    """
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise PaymentValidationError("Invalid payment amount")
    if math.isnan(amount) or math.isinf(amount):
        raise PaymentValidationError("Invalid payment amount")
    if amount <= 0:
        raise PaymentValidationError("Payment amount must be greater than zero")
    return float(amount)


def is_settled(total: float, amount_paid: float, tolerance: Optional[float] = None) -> bool:
    """A receipt is paid once its remaining balance is within tolerance of zero."""
    if tolerance is None:
        tolerance = settings.BALANCE_TOLERANCE
    return round_money(total - amount_paid) <= tolerance
