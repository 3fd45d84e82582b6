from fastapi import Request

from app.services.balance_service import BalanceService
from app.services.payment_service import PaymentService


def get_payment_service(request: Request) -> PaymentService:
    """PaymentService built at startup (see app.main.lifespan)."""
    return request.app.state.payment_service


def get_balance_service(request: Request) -> BalanceService:
    return request.app.state.balance_service
