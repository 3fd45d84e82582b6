"""
BalanceReconciler - derives balances from a customer's receipts.

Nothing here touches the store or mutates its input. Two views exist:

- customer_balance: the authoritative amount owed, sum of max(0, total - paid)
  over the receipts. Stored oldBalance/newBalance snapshots are ignored.
- with_running_balance: per-receipt "previous balance" for display. The
  oldest receipt's stored oldBalance is the historical debt (owed before the
  receipt history starts). Later receipts show historical debt plus the unpaid
  remainder of strictly earlier receipts, so the historical debt is counted
  exactly once.
"""

import logging
from typing import Dict, Iterable, List, Optional

from app.core.config import settings
from app.models.receipt import Receipt
from app.schemas.balance import CustomerBalanceSummary, ReceiptBalanceView
from app.utils.payment_validation import round_money

logger = logging.getLogger(__name__)

WALK_IN_CUSTOMER = "Walk-in Customer"


def sort_oldest_first(receipts: Iterable[Receipt]) -> List[Receipt]:
    """Stable sort on createdAt: receipts created at the same instant keep store order."""
    return sorted(receipts, key=lambda r: r.created_at)


class BalanceReconciler:

    def __init__(self, tolerance: Optional[float] = None):
        self.tolerance = settings.BALANCE_TOLERANCE if tolerance is None else tolerance

    def customer_balance(self, receipts: Iterable[Receipt]) -> float:
        """Authoritative outstanding balance: sum of max(0, total - amount_paid)."""
        return round_money(sum(r.outstanding() for r in receipts))

    def with_running_balance(self, receipts: Iterable[Receipt]) -> List[ReceiptBalanceView]:
        """Display balances for one customer's receipts, oldest first."""
        ordered = sort_oldest_first(receipts)
        if not ordered:
            return []

        historical_debt = ordered[0].old_balance
        running_unpaid = 0.0
        views: List[ReceiptBalanceView] = []

        for index, receipt in enumerate(ordered):
            if index == 0:
                old_balance = receipt.old_balance
            else:
                old_balance = historical_debt + running_unpaid

            remaining = receipt.remaining_balance()
            views.append(ReceiptBalanceView(
                receipt_id=receipt.id,
                receipt_number=receipt.receipt_number,
                customer_name=receipt.customer_name,
                created_at=receipt.created_at,
                total=receipt.total,
                amount_paid=receipt.amount_paid,
                is_paid=receipt.is_paid,
                old_balance=round_money(old_balance),
                new_balance=round_money(old_balance + remaining),
            ))
            running_unpaid += remaining

        return views

    def summarize_customers(self, receipts: Iterable[Receipt]) -> List[CustomerBalanceSummary]:
        """Per-customer totals across a mixed receipt set, highest balance first."""
        summaries: Dict[str, CustomerBalanceSummary] = {}

        for receipt in receipts:
            name = receipt.customer_name or WALK_IN_CUSTOMER
            summary = summaries.get(name)
            if summary is None:
                summary = CustomerBalanceSummary(
                    customer_name=name,
                    total_balance=0.0,
                    receipt_count=0,
                    last_receipt_date=receipt.created_at
                )
                summaries[name] = summary

            summary.total_balance = round_money(summary.total_balance + receipt.outstanding())
            summary.receipt_count += 1
            if receipt.created_at > summary.last_receipt_date:
                summary.last_receipt_date = receipt.created_at

        return sorted(summaries.values(), key=lambda s: s.total_balance, reverse=True)

    def validate_snapshot(self, receipt: Receipt) -> bool:
        """
        Check a receipt's stored newBalance.

        Accepts either the creation formula (oldBalance + total - amountPaid) or
        the value the payment engine writes (max(0, total - amountPaid)).
        """
        at_creation = receipt.old_balance + receipt.total - receipt.amount_paid
        after_payment = receipt.outstanding()

        if (abs(receipt.new_balance - at_creation) <= self.tolerance
                or abs(receipt.new_balance - after_payment) <= self.tolerance):
            return True

        logger.warning(
            "Balance snapshot mismatch on receipt %s: stored %.2f, expected %.2f or %.2f",
            receipt.id, receipt.new_balance, at_creation, after_payment
        )
        return False
