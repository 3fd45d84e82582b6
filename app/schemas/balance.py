from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class ReceiptBalanceView(BaseModel):
    """A receipt with display balances reconstructed from the customer's history."""
    receipt_id: Optional[str] = None
    receipt_number: Optional[str] = None
    customer_name: str
    created_at: datetime
    total: float
    amount_paid: float
    is_paid: bool
    old_balance: float   # Previous balance shown on the receipt
    new_balance: float   # Balance due after this receipt

    model_config = ConfigDict(frozen=True)


class CustomerBalanceSummary(BaseModel):
    customer_name: str
    total_balance: float
    receipt_count: int
    last_receipt_date: datetime


class CustomerBalanceResponse(BaseModel):
    customer_name: str
    balance: float


class SnapshotCheckResponse(BaseModel):
    customer_name: str
    mismatched_receipts: List[str]
