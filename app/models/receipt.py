from typing import Any, Optional

from pydantic import field_validator

from app.models.base import MongoModel
from app.utils.payment_validation import round_money


class Receipt(MongoModel):
    """
    One sale to a customer, as stored in the `receipts` collection.

    Invariants (maintained by the payment engine):
    - amount_paid only grows
    - total - amount_paid >= -tolerance
    - once is_paid is true the engine never writes the receipt again

    old_balance/new_balance are point-in-time display snapshots. The
    customer's outstanding balance is always recomputed from
    total - amount_paid across receipts.
    """
    receipt_number: Optional[str] = None
    customer_name: str = ""

    # Money, rounded to 2 decimals
    total: float = 0.0
    amount_paid: float = 0.0
    old_balance: float = 0.0   # Customer balance before this receipt existed
    new_balance: float = 0.0   # Snapshot, rewritten on every payment

    is_paid: bool = False
    version: int = 0  # Optimistic concurrency counter

    @field_validator("total", "amount_paid", "old_balance", "new_balance", mode="before")
    @classmethod
    def _missing_money_is_zero(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("customer_name", mode="before")
    @classmethod
    def _strip_customer(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    def remaining_balance(self) -> float:
        """What is still owed on this receipt's own items (may be <= 0)."""
        return round_money(self.total - self.amount_paid)

    def outstanding(self) -> float:
        """Remaining balance clamped at zero."""
        return max(0.0, self.remaining_balance())
