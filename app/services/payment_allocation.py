"""Pure FIFO allocation of one payment across a customer's unpaid receipts."""
from dataclasses import dataclass, field
from typing import Iterable, List

from app.models.receipt import Receipt
from app.services.balance_reconciler import sort_oldest_first
from app.utils.payment_validation import is_settled, round_money


@dataclass(frozen=True)
class PlannedAllocation:
    receipt: Receipt
    amount: float
    balance_before: float
    balance_after: float
    new_amount_paid: float
    is_paid: bool

    def receipt_fields(self) -> dict:
        """Stored field values to $set on the receipt."""
        return {
            "amountPaid": self.new_amount_paid,
            "newBalance": max(0.0, self.balance_after),
            "isPaid": self.is_paid,
        }


@dataclass
class AllocationPlan:
    requested_amount: float
    previous_balance: float   # Customer aggregate over unpaid receipts, before
    allocations: List[PlannedAllocation] = field(default_factory=list)
    unapplied_amount: float = 0.0

    @property
    def allocated_amount(self) -> float:
        return round_money(sum(a.amount for a in self.allocations))

    @property
    def new_balance(self) -> float:
        return round_money(max(0.0, self.previous_balance - self.allocated_amount))

    @property
    def affected_receipt_ids(self) -> List[str]:
        return [a.receipt.id for a in self.allocations]


def allocate_payment(
    unpaid_receipts: Iterable[Receipt],
    amount: float,
    tolerance: float
) -> AllocationPlan:
    """
    Spread `amount` over the receipts oldest first.

    Each receipt gets min(what is left of the payment, what it still owes) and
    never more than its own total. Receipts that owe nothing are skipped even if
    still flagged unpaid. Only a leftover below the tolerance (sub-cent dust) stops
    the walk early; a leftover cent is still placed. Whatever cannot be placed is
    returned as unapplied_amount.
    """
    ordered = sort_oldest_first(unpaid_receipts)
    plan = AllocationPlan(
        requested_amount=round_money(amount),
        previous_balance=round_money(sum(r.outstanding() for r in ordered))
    )

    remaining_payment = round_money(amount)
    for receipt in ordered:
        if remaining_payment < tolerance:
            break

        remaining = receipt.remaining_balance()
        if remaining <= 0:
            continue

        share = round_money(min(remaining_payment, remaining))
        if share <= 0:
            continue

        new_amount_paid = round_money(receipt.amount_paid + share)
        plan.allocations.append(PlannedAllocation(
            receipt=receipt,
            amount=share,
            balance_before=remaining,
            balance_after=round_money(receipt.total - new_amount_paid),
            new_amount_paid=new_amount_paid,
            is_paid=is_settled(receipt.total, new_amount_paid, tolerance)
        ))
        remaining_payment = round_money(remaining_payment - share)

    plan.unapplied_amount = max(0.0, remaining_payment)
    return plan
