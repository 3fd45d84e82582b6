from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from app.api.deps import get_balance_service, get_payment_service
from app.main import app
from app.services.balance_cache import BalanceCache
from app.services.balance_service import BalanceService
from app.services.payment_service import PaymentService
from tests.fakes import FakeClock, InMemoryRecordStore, async_context, mongo_cursor


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return BalanceCache(ttl_seconds=300, clock=clock)


@pytest.fixture
def payment_service(store, cache):
    return PaymentService(store, cache, tolerance=0.01, allow_overpayment=True)


@pytest.fixture
def balance_service(store, cache):
    return BalanceService(store, cache)


@pytest.fixture
def mock_db():
    """Motor database double with separate receipts/payment_transactions collections."""
    collections = {
        "receipts": MagicMock(),
        "payment_transactions": MagicMock(),
    }
    for collection in collections.values():
        collection.find_one = AsyncMock(return_value=None)
        collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1))
        collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=ObjectId()))
        collection.find.return_value = mongo_cursor([])

    db = MagicMock()
    db.__getitem__.side_effect = lambda name: collections[name]
    db.receipts = collections["receipts"]
    db.payment_transactions = collections["payment_transactions"]

    session = MagicMock()
    session.start_transaction.return_value = async_context()
    db.client.start_session = AsyncMock(return_value=async_context(session))
    db.session = session
    return db


@pytest.fixture
def client(payment_service, balance_service):
    """FastAPI test client wired to the in-memory store (no MongoDB, no lifespan)."""
    app.dependency_overrides[get_payment_service] = lambda: payment_service
    app.dependency_overrides[get_balance_service] = lambda: balance_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
