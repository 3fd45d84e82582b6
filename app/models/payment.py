"""
Payment models - the append-only payment ledger.

Design principles:
- One PaymentTransaction per recorded payment, written atomically with the
  receipt updates it causes
- Immutable once written (never updated or deleted)
- amount == sum(allocations) + unapplied_amount
- previous_balance/new_balance are customer aggregates, not single-receipt
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models.base import DocumentModel, _utcnow, as_utc
from app.utils.payment_validation import round_money


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    BANK_TRANSFER = "bank_transfer"
    OTHER = "other"


class ReceiptAllocation(BaseModel):
    """The share of one payment applied to one receipt."""
    receipt_id: str
    amount: float
    balance_before: float
    balance_after: float

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class PaymentTransaction(DocumentModel):
    receipt_id: str              # The receipt the payment was recorded against
    receipt_number: Optional[str] = None
    customer_name: str

    amount: float
    payment_method: PaymentMethod
    notes: Optional[str] = None

    # Customer aggregates over unpaid receipts
    previous_balance: float
    new_balance: float

    affected_receipts: List[str] = []   # In allocation order
    cascaded_receipts: List[str] = []   # affected_receipts minus the targeted receipt
    allocations: List[ReceiptAllocation] = []
    unapplied_amount: float = 0.0       # Left over once every unpaid receipt was cleared

    timestamp: datetime = Field(default_factory=_utcnow)

    @field_validator("timestamp", mode="after")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    def allocated_amount(self) -> float:
        return round_money(sum(a.amount for a in self.allocations))


class PaymentResult(BaseModel):
    """Outcome of record_payment. Errors are returned, never raised."""
    success: bool
    payment_transaction: Optional[PaymentTransaction] = None
    error: Optional[Dict[str, str]] = None  # {"code": ..., "message": ...}

    @classmethod
    def ok(cls, transaction: PaymentTransaction) -> "PaymentResult":
        return cls(success=True, payment_transaction=transaction)

    @classmethod
    def failed(cls, exc) -> "PaymentResult":
        return cls(success=False, error={"code": exc.code, "message": exc.message})
