from app.core.config import settings
from tests.fakes import day

BALANCES = f"{settings.API_V1_STR}/balances"


def test_customer_balance(client, store):
    store.add_receipt(total=100, amount_paid=30)
    store.add_receipt(total=50)

    response = client.get(f"{BALANCES}/Navi")

    assert response.status_code == 200
    assert response.json() == {"customer_name": "Navi", "balance": 120}


def test_customer_balance_is_cached(client, store, cache):
    store.add_receipt(total=100)

    client.get(f"{BALANCES}/Navi")
    client.get(f"{BALANCES}/Navi")

    assert store.receipt_list_calls == 1
    assert cache.get("Navi") == 100


def test_unknown_customer_has_zero_balance(client):
    response = client.get(f"{BALANCES}/Nobody")

    assert response.json()["balance"] == 0


def test_receipts_with_running_balance(client, store):
    store.add_receipt(total=100, old_balance=20, created_at=day(1), receipt_id="r1")
    store.add_receipt(total=60, amount_paid=60, created_at=day(2), receipt_id="r2")

    response = client.get(f"{BALANCES}/Navi/receipts")

    assert response.status_code == 200
    data = response.json()
    assert [(r["receipt_id"], r["old_balance"], r["new_balance"]) for r in data] == [
        ("r1", 20, 120),
        ("r2", 120, 120),
    ]


def test_unpaid_receipts_oldest_first(client, store):
    newer = store.add_receipt(total=100, created_at=day(2))
    older = store.add_receipt(total=100, created_at=day(1))
    store.add_receipt(total=100, amount_paid=100, created_at=day(3))

    response = client.get(f"{BALANCES}/Navi/unpaid")

    assert [r["id"] for r in response.json()] == [older.id, newer.id]


def test_invalidate_customer_cache(client, cache):
    cache.set("Navi", 10)
    cache.set("Ravi", 20)

    response = client.delete(f"{BALANCES}/cache/Navi")

    assert response.status_code == 204
    assert cache.get("Navi") is None
    assert cache.get("Ravi") == 20


def test_clear_cache(client, cache):
    cache.set("Navi", 10)

    response = client.delete(f"{BALANCES}/cache")

    assert response.status_code == 204
    assert len(cache) == 0


def test_root(client):
    response = client.get("/")

    assert response.json() == {"message": f"Welcome to {settings.PROJECT_NAME}"}


def test_customers_with_balance(client, store):
    store.add_receipt(total=100, customer_name="Navi", created_at=day(1))
    store.add_receipt(total=500, customer_name="Ravi", created_at=day(2))
    store.add_receipt(total=30, amount_paid=30, customer_name="Anu", created_at=day(3))

    response = client.get(f"{BALANCES}/", params={"minimum_balance": 50})

    assert response.status_code == 200
    data = response.json()
    assert [(c["customer_name"], c["total_balance"]) for c in data] == [("Ravi", 500), ("Navi", 100)]
    assert data[0]["receipt_count"] == 1


def test_snapshot_check(client, store):
    store.add_receipt(total=100, amount_paid=40)
    bad = store.add_receipt(total=50)
    store.receipts[bad.id] = bad.model_copy(update={"new_balance": 1})

    response = client.get(f"{BALANCES}/Navi/snapshot-check")

    assert response.status_code == 200
    assert response.json() == {"customer_name": "Navi", "mismatched_receipts": [bad.id]}
