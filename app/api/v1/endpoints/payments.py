from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Response

from app.api.deps import get_payment_service
from app.api.errors import status_for
from app.schemas.payment import (
    PaymentCreate,
    PaymentPreviewRequest,
    PaymentPreviewResponse,
    PaymentResultResponse,
    PaymentStatistics,
    PaymentTransactionResponse,
    PlannedAllocationResponse,
)
from app.services.payment_service import PaymentService

router = APIRouter()

@router.post("/", response_model=PaymentResultResponse)
async def record_payment(
    payment_in: PaymentCreate,
    response: Response,
    service: PaymentService = Depends(get_payment_service)
):
    """Record a payment; any excess cascades to the customer's older receipts"""
    result = await service.record_payment(
        payment_in.receipt_id,
        payment_in.amount,
        payment_in.payment_method,
        payment_in.notes
    )
    if not result.success:
        response.status_code = status_for(result.error["code"])
    return PaymentResultResponse.model_validate(result)

@router.post("/preview", response_model=PaymentPreviewResponse)
async def preview_payment(
    preview_in: PaymentPreviewRequest,
    service: PaymentService = Depends(get_payment_service)
):
    """Show how a payment would be distributed without recording it"""
    plan = await service.preview_payment(preview_in.receipt_id, preview_in.amount)
    return PaymentPreviewResponse(
        requested_amount=plan.requested_amount,
        allocated_amount=plan.allocated_amount,
        unapplied_amount=plan.unapplied_amount,
        previous_balance=plan.previous_balance,
        new_balance=plan.new_balance,
        allocations=[
            PlannedAllocationResponse(
                receipt_id=a.receipt.id,
                amount=a.amount,
                balance_before=a.balance_before,
                balance_after=a.balance_after,
                will_be_fully_paid=a.is_paid
            )
            for a in plan.allocations
        ]
    )

@router.get("/statistics", response_model=PaymentStatistics)
async def payment_statistics(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    service: PaymentService = Depends(get_payment_service)
):
    return await service.get_payment_statistics(start, end)

@router.get("/receipt/{receipt_id}", response_model=List[PaymentTransactionResponse])
async def receipt_payment_history(
    receipt_id: str,
    service: PaymentService = Depends(get_payment_service)
):
    """Payments recorded against a receipt, newest first"""
    payments = await service.get_receipt_payment_history(receipt_id)
    return [PaymentTransactionResponse.model_validate(p) for p in payments]

@router.get("/customer/{customer_name}", response_model=List[PaymentTransactionResponse])
async def customer_payment_history(
    customer_name: str,
    service: PaymentService = Depends(get_payment_service)
):
    payments = await service.get_customer_payment_history(customer_name)
    return [PaymentTransactionResponse.model_validate(p) for p in payments]
