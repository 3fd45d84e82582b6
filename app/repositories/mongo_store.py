from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import settings
from app.models.payment import PaymentTransaction
from app.models.receipt import Receipt
from app.repositories.ledger_repo import LedgerWriter
from app.repositories.payment_repo import PaymentRepository
from app.repositories.receipt_repo import ReceiptRepository
from app.repositories.record_store import ReceiptMutation, RecordStore


class MongoRecordStore(RecordStore):
    """RecordStore backed by MongoDB (Motor). Needs a replica set for transactions."""

    def __init__(self, db: AsyncIOMotorDatabase, supports_ordered_queries: Optional[bool] = None):
        self.receipts = ReceiptRepository(db)
        self.payments = PaymentRepository(db)
        self.ledger = LedgerWriter(db)
        if supports_ordered_queries is None:
            supports_ordered_queries = settings.SUPPORTS_ORDERED_QUERIES
        self._ordered = supports_ordered_queries

    @property
    def supports_ordered_queries(self) -> bool:
        return self._ordered

    async def get_receipt(self, receipt_id: str) -> Optional[Receipt]:
        return await self.receipts.get_receipt(receipt_id)

    async def query_unpaid_receipts(self, customer_name: str, ordered: bool = True) -> List[Receipt]:
        return await self.receipts.query_unpaid_receipts(customer_name, ordered=ordered)

    async def list_customer_receipts(self, customer_name: str) -> List[Receipt]:
        return await self.receipts.list_customer_receipts(customer_name)

    async def list_receipts(self) -> List[Receipt]:
        return await self.receipts.list_receipts()

    async def list_receipt_payments(self, receipt_id: str) -> List[PaymentTransaction]:
        return await self.payments.list_for_receipt(receipt_id)

    async def list_customer_payments(self, customer_name: str) -> List[PaymentTransaction]:
        return await self.payments.list_for_customer(customer_name)

    async def list_payments(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> List[PaymentTransaction]:
        return await self.payments.list_in_range(start, end)

    async def commit_atomic(
        self,
        mutations: List[ReceiptMutation],
        transaction: PaymentTransaction
    ) -> PaymentTransaction:
        return await self.ledger.commit_atomic(mutations, transaction)
