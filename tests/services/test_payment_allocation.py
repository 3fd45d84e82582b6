"""
Tests for FIFO payment allocation.

Covers:
- Oldest debt first, regardless of which receipt was targeted
- Partial and full allocations
- Skipping receipts that owe nothing
- Leftover (unapplied) amounts
- Ties on createdAt keep store order
"""

from app.models.receipt import Receipt
from app.services.payment_allocation import allocate_payment
from tests.fakes import day


def receipt(rid, total, paid=0.0, created=1, customer="Navi"):
    return Receipt(
        _id=rid,
        customer_name=customer,
        total=total,
        amount_paid=paid,
        created_at=day(created)
    )


def test_fifo_pays_oldest_receipt_first():
    """R1 (day 1, owes 100), R2 (day 2, owes 50): 120 -> 100 to R1, 20 to R2."""
    r1 = receipt("r1", 100, created=1)
    r2 = receipt("r2", 50, created=2)

    plan = allocate_payment([r2, r1], 120, tolerance=0.01)

    assert plan.affected_receipt_ids == ["r1", "r2"]
    first, second = plan.allocations
    assert first.amount == 100
    assert first.is_paid is True
    assert first.new_amount_paid == 100
    assert second.amount == 20
    assert second.is_paid is False
    assert second.balance_after == 30
    assert plan.unapplied_amount == 0
    assert plan.previous_balance == 150
    assert plan.new_balance == 30


def test_partial_payment_stays_on_oldest_receipt():
    plan = allocate_payment([receipt("r1", 1000), receipt("r2", 500, created=2)], 400, tolerance=0.01)

    assert plan.affected_receipt_ids == ["r1"]
    assert plan.allocations[0].balance_before == 1000
    assert plan.allocations[0].balance_after == 600
    assert plan.allocations[0].is_paid is False


def test_receipt_is_never_paid_past_its_total():
    plan = allocate_payment([receipt("r1", 100, paid=60)], 500, tolerance=0.01)

    allocation = plan.allocations[0]
    assert allocation.amount == 40
    assert allocation.new_amount_paid == 100
    assert allocation.receipt_fields() == {"amountPaid": 100, "newBalance": 0.0, "isPaid": True}
    assert plan.unapplied_amount == 460


def test_receipts_owing_nothing_are_skipped():
    """Flagged unpaid but already settled: no zero allocation is recorded."""
    stale = receipt("stale", 100, paid=100, created=1)
    owing = receipt("owing", 80, created=2)

    plan = allocate_payment([stale, owing], 50, tolerance=0.01)

    assert plan.affected_receipt_ids == ["owing"]


def test_single_cent_payment_is_applied():
    plan = allocate_payment([receipt("r1", 5)], 0.01, tolerance=0.01)

    assert plan.affected_receipt_ids == ["r1"]
    assert plan.allocations[0].amount == 0.01
    assert plan.allocations[0].new_amount_paid == 0.01
    assert plan.unapplied_amount == 0


def test_leftover_cent_cascades_to_next_receipt():
    plan = allocate_payment(
        [receipt("r1", 100), receipt("r2", 50, created=2)],
        100.01,
        tolerance=0.01
    )

    assert plan.affected_receipt_ids == ["r1", "r2"]
    assert [a.amount for a in plan.allocations] == [100, 0.01]
    assert plan.allocations[1].balance_after == 49.99
    assert plan.unapplied_amount == 0
    assert plan.allocated_amount == 100.01


def test_last_cent_settles_receipt():
    plan = allocate_payment([receipt("r1", 100, paid=99.99)], 0.01, tolerance=0.01)

    assert plan.allocations[0].is_paid is True
    assert plan.allocations[0].receipt_fields()["amountPaid"] == 100


def test_receipt_within_tolerance_of_total_counts_as_paid():
    plan = allocate_payment([receipt("r1", 100)], 99.99, tolerance=0.01)

    assert plan.allocations[0].balance_after == 0.01
    assert plan.allocations[0].is_paid is True


def test_equal_created_at_keeps_store_order():
    a = receipt("a", 10, created=3)
    b = receipt("b", 10, created=3)
    c = receipt("c", 10, created=3)

    plan = allocate_payment([b, c, a], 15, tolerance=0.01)

    assert plan.affected_receipt_ids == ["b", "c"]


def test_amount_equals_allocations_plus_unapplied():
    receipts = [receipt(f"r{i}", 33.33, created=i) for i in range(1, 4)]

    plan = allocate_payment(receipts, 120.5, tolerance=0.01)

    assert round(plan.allocated_amount + plan.unapplied_amount, 2) == 120.5
    assert plan.unapplied_amount == 20.51
    assert all(a.is_paid for a in plan.allocations)


def test_no_unpaid_receipts_leaves_everything_unapplied():
    plan = allocate_payment([], 75, tolerance=0.01)

    assert plan.allocations == []
    assert plan.unapplied_amount == 75
    assert plan.previous_balance == 0
    assert plan.new_balance == 0
