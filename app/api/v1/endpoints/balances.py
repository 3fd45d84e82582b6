from typing import List

from fastapi import APIRouter, Depends, status

from app.api.deps import get_balance_service, get_payment_service
from app.schemas.balance import (
    CustomerBalanceResponse,
    CustomerBalanceSummary,
    ReceiptBalanceView,
    SnapshotCheckResponse,
)
from app.schemas.payment import ReceiptResponse
from app.services.balance_service import BalanceService
from app.services.payment_service import PaymentService

router = APIRouter()

@router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cache(service: BalanceService = Depends(get_balance_service)):
    """Drop every cached balance"""
    service.clear_cache()

@router.delete("/cache/{customer_name}", status_code=status.HTTP_204_NO_CONTENT)
async def invalidate_cache(
    customer_name: str,
    service: BalanceService = Depends(get_balance_service)
):
    service.invalidate_cache(customer_name)

@router.get("/", response_model=List[CustomerBalanceSummary])
async def get_customers_with_balance(
    minimum_balance: float = 0.0,
    service: BalanceService = Depends(get_balance_service)
):
    """Customers owing at least minimum_balance, highest balance first"""
    return await service.get_customers_with_balance(minimum_balance)

@router.get("/{customer_name}", response_model=CustomerBalanceResponse)
async def get_customer_balance(
    customer_name: str,
    service: BalanceService = Depends(get_balance_service)
):
    """Outstanding balance for a customer"""
    balance = await service.get_customer_balance(customer_name)
    return CustomerBalanceResponse(customer_name=customer_name.strip(), balance=balance)

@router.get("/{customer_name}/receipts", response_model=List[ReceiptBalanceView])
async def get_receipts_with_running_balance(
    customer_name: str,
    service: BalanceService = Depends(get_balance_service)
):
    """Customer receipts, oldest first, with previous balance/balance due for display"""
    return await service.get_receipts_with_running_balance(customer_name)

@router.get("/{customer_name}/unpaid", response_model=List[ReceiptResponse])
async def get_unpaid_receipts(
    customer_name: str,
    service: PaymentService = Depends(get_payment_service)
):
    receipts = await service.get_customer_unpaid_receipts(customer_name)
    return [ReceiptResponse.model_validate(r) for r in receipts]

@router.get("/{customer_name}/snapshot-check", response_model=SnapshotCheckResponse)
async def check_balance_snapshots(
    customer_name: str,
    service: BalanceService = Depends(get_balance_service)
):
    """Receipts whose stored newBalance disagrees with their totals"""
    mismatched = await service.find_snapshot_mismatches(customer_name)
    return SnapshotCheckResponse(customer_name=customer_name.strip(), mismatched_receipts=mismatched)
