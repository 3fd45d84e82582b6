from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.payment import PaymentMethod


class PaymentCreate(BaseModel):
    """Request body to record a payment against a receipt."""
    receipt_id: str
    amount: float
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = None


class PaymentPreviewRequest(BaseModel):
    receipt_id: str
    amount: float


class AllocationResponse(BaseModel):
    receipt_id: str
    amount: float
    balance_before: float
    balance_after: float

    model_config = ConfigDict(from_attributes=True)


class PaymentTransactionResponse(BaseModel):
    id: Optional[str] = None
    receipt_id: str
    receipt_number: Optional[str] = None
    customer_name: str
    amount: float
    payment_method: PaymentMethod
    notes: Optional[str] = None
    previous_balance: float
    new_balance: float
    affected_receipts: List[str] = []
    cascaded_receipts: List[str] = []
    allocations: List[AllocationResponse] = []
    unapplied_amount: float = 0.0
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentError(BaseModel):
    code: str
    message: str


class PaymentResultResponse(BaseModel):
    success: bool
    payment_transaction: Optional[PaymentTransactionResponse] = None
    error: Optional[PaymentError] = None

    model_config = ConfigDict(from_attributes=True)


class PlannedAllocationResponse(BaseModel):
    receipt_id: str
    amount: float
    balance_before: float
    balance_after: float
    will_be_fully_paid: bool


class PaymentPreviewResponse(BaseModel):
    requested_amount: float
    allocated_amount: float
    unapplied_amount: float
    previous_balance: float
    new_balance: float
    allocations: List[PlannedAllocationResponse]


class ReceiptResponse(BaseModel):
    id: str
    receipt_number: Optional[str] = None
    customer_name: str
    total: float
    amount_paid: float
    old_balance: float
    new_balance: float
    is_paid: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MethodTotals(BaseModel):
    count: int = 0
    amount: float = 0.0


class PaymentStatistics(BaseModel):
    total_payments: int
    total_amount: float
    payments_by_method: Dict[str, MethodTotals] = Field(default_factory=dict)
    average_payment: float
