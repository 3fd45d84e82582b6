"""
PaymentService - records payments and cascades them across receipts.

record_payment(receipt_id, amount, method, notes):
1. Validate input (no store access on failure)
2. Load the targeted receipt, derive the customer
3. Load the customer's unpaid receipts, oldest first
4. Allocate FIFO (payment_allocation.allocate_payment)
5. Build the PaymentTransaction
6. Commit receipt updates + transaction atomically
7. Invalidate the customer's cached balance

Errors never cross record_payment: they come back in PaymentResult.error.
Nothing is retried; retrying a payment write blindly risks paying twice.
"""

import logging
from datetime import datetime
from typing import List, Optional, Union

from app.core.config import settings
from app.models.payment import PaymentMethod, PaymentResult, PaymentTransaction, ReceiptAllocation
from app.models.receipt import Receipt
from app.repositories.payment_repo import newest_first
from app.repositories.record_store import ReceiptMutation, RecordStore
from app.schemas.payment import MethodTotals, PaymentStatistics
from app.services.balance_cache import BalanceCache
from app.services.balance_reconciler import WALK_IN_CUSTOMER, sort_oldest_first
from app.services.payment_allocation import AllocationPlan, allocate_payment
from app.utils.payment_validation import (
    IndexUnsupportedError,
    PaymentError,
    PaymentValidationError,
    ReceiptNotFoundError,
    round_money,
    validate_payment_amount,
    validate_receipt_id,
)

logger = logging.getLogger(__name__)


def parse_payment_method(method: Union[PaymentMethod, str]) -> PaymentMethod:
    try:
        return PaymentMethod(method)
    except ValueError:
        raise PaymentValidationError(f"Unknown payment method: {method!r}")


class PaymentService:

    def __init__(
        self,
        store: RecordStore,
        cache: BalanceCache,
        tolerance: Optional[float] = None,
        allow_overpayment: Optional[bool] = None
    ):
        self.store = store
        self.cache = cache
        self.tolerance = settings.BALANCE_TOLERANCE if tolerance is None else tolerance
        self.allow_overpayment = (
            settings.ALLOW_OVERPAYMENT if allow_overpayment is None else allow_overpayment
        )

    async def record_payment(
        self,
        receipt_id: str,
        amount: float,
        method: Union[PaymentMethod, str],
        notes: Optional[str] = None
    ) -> PaymentResult:
        """Record a payment against a receipt, cascading any excess oldest first."""
        try:
            transaction = await self._record_payment(receipt_id, amount, method, notes)
        except PaymentError as exc:
            logger.warning("Payment on receipt %r rejected (%s): %s", receipt_id, exc.code, exc.message)
            return PaymentResult.failed(exc)

        self._invalidate_quietly(transaction.customer_name)
        return PaymentResult.ok(transaction)

    async def _record_payment(
        self,
        receipt_id: str,
        amount: float,
        method: Union[PaymentMethod, str],
        notes: Optional[str]
    ) -> PaymentTransaction:
        receipt_id = validate_receipt_id(receipt_id)
        amount = round_money(validate_payment_amount(amount))
        if amount <= 0:
            raise PaymentValidationError("Payment amount must be greater than zero")
        method = parse_payment_method(method)

        receipt, plan = await self._plan(receipt_id, amount)

        if plan.unapplied_amount >= self.tolerance:
            if not self.allow_overpayment:
                raise PaymentValidationError(
                    f"Payment exceeds outstanding balance of {plan.previous_balance:.2f}"
                )
            # TODO: carry unapplied_amount as a customer credit once a credit balance exists
            logger.warning(
                "Payment of %.2f for %r leaves %.2f unapplied: no unpaid receipts left",
                amount, receipt.customer_name, plan.unapplied_amount
            )

        transaction = self._build_transaction(receipt, plan, method, notes)
        mutations = [
            ReceiptMutation(
                receipt_id=allocation.receipt.id,
                expected_version=allocation.receipt.version,
                fields=allocation.receipt_fields()
            )
            for allocation in plan.allocations
        ]

        for allocation in plan.allocations:
            logger.debug(
                "Applying %.2f to receipt %s (%.2f -> %.2f)",
                allocation.amount, allocation.receipt.id,
                allocation.balance_before, allocation.balance_after
            )

        try:
            transaction = await self.store.commit_atomic(mutations, transaction)
        except PaymentError:
            logger.exception("Atomic commit failed for payment on receipt %s", receipt_id)
            raise

        logger.info(
            "Payment of %.2f recorded for %r across %d receipt(s); balance %.2f -> %.2f",
            amount, transaction.customer_name, len(plan.allocations),
            plan.previous_balance, plan.new_balance
        )
        return transaction

    async def preview_payment(self, receipt_id: str, amount: float) -> AllocationPlan:
        """How a payment would cascade, without writing anything. Raises PaymentError."""
        receipt_id = validate_receipt_id(receipt_id)
        amount = round_money(validate_payment_amount(amount))
        if amount <= 0:
            raise PaymentValidationError("Payment amount must be greater than zero")
        _, plan = await self._plan(receipt_id, amount)
        return plan

    async def _plan(self, receipt_id: str, amount: float):
        receipt = await self.store.get_receipt(receipt_id)
        if receipt is None:
            raise ReceiptNotFoundError("Receipt not found")

        unpaid = await self._unpaid_receipts_for(receipt)
        return receipt, allocate_payment(unpaid, amount, self.tolerance)

    async def _unpaid_receipts_for(self, receipt: Receipt) -> List[Receipt]:
        """The receipts a payment on `receipt` may touch, oldest first."""
        if not receipt.customer_name:
            # No customer to cascade across: only the receipt itself
            return [] if receipt.is_paid else [receipt]

        unpaid = await self._query_unpaid(receipt.customer_name)
        if not receipt.is_paid and all(r.id != receipt.id for r in unpaid):
            unpaid.append(receipt)
        return sort_oldest_first(unpaid)

    async def _query_unpaid(self, customer_name: str) -> List[Receipt]:
        if not self.store.supports_ordered_queries:
            return await self.store.query_unpaid_receipts(customer_name, ordered=False)
        try:
            return await self.store.query_unpaid_receipts(customer_name, ordered=True)
        except IndexUnsupportedError as exc:
            logger.warning("Ordered unpaid query unavailable, sorting client-side: %s", exc.message)
            return await self.store.query_unpaid_receipts(customer_name, ordered=False)

    def _build_transaction(
        self,
        receipt: Receipt,
        plan: AllocationPlan,
        method: PaymentMethod,
        notes: Optional[str]
    ) -> PaymentTransaction:
        affected = plan.affected_receipt_ids
        return PaymentTransaction(
            receipt_id=receipt.id,
            receipt_number=receipt.receipt_number,
            customer_name=receipt.customer_name or WALK_IN_CUSTOMER,
            amount=plan.requested_amount,
            payment_method=method,
            notes=notes.strip() if notes and notes.strip() else None,
            previous_balance=plan.previous_balance,
            new_balance=plan.new_balance,
            affected_receipts=affected,
            cascaded_receipts=[rid for rid in affected if rid != receipt.id],
            allocations=[
                ReceiptAllocation(
                    receipt_id=a.receipt.id,
                    amount=a.amount,
                    balance_before=a.balance_before,
                    balance_after=a.balance_after
                )
                for a in plan.allocations
            ],
            unapplied_amount=plan.unapplied_amount,
        )

    def _invalidate_quietly(self, customer_name: str) -> None:
        # A stale entry expires with the TTL; never fail a committed payment over it
        try:
            self.cache.invalidate(customer_name)
        except Exception:
            logger.exception("Balance cache invalidation failed for %r", customer_name)

    async def get_receipt_payment_history(self, receipt_id: str) -> List[PaymentTransaction]:
        """Payments recorded against a receipt, newest first."""
        if not receipt_id or not receipt_id.strip():
            return []
        return newest_first(await self.store.list_receipt_payments(receipt_id.strip()))

    async def get_customer_payment_history(self, customer_name: str) -> List[PaymentTransaction]:
        if not customer_name or not customer_name.strip():
            return []
        return newest_first(await self.store.list_customer_payments(customer_name.strip()))

    async def get_customer_unpaid_receipts(self, customer_name: str) -> List[Receipt]:
        """Unpaid receipts that still owe more than the tolerance, oldest first."""
        if not customer_name or not customer_name.strip():
            return []
        unpaid = await self._query_unpaid(customer_name.strip())
        return [r for r in sort_oldest_first(unpaid) if r.remaining_balance() > self.tolerance]

    async def get_payment_statistics(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> PaymentStatistics:
        payments = await self.store.list_payments(start, end)

        by_method = {}
        total_amount = 0.0
        for payment in payments:
            total_amount += payment.amount
            totals = by_method.setdefault(payment.payment_method.value, MethodTotals())
            totals.count += 1
            totals.amount = round_money(totals.amount + payment.amount)

        count = len(payments)
        return PaymentStatistics(
            total_payments=count,
            total_amount=round_money(total_amount),
            payments_by_method=by_method,
            average_payment=round_money(total_amount / count) if count else 0.0
        )
