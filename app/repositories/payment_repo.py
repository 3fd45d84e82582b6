import logging
from datetime import datetime
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING
from pymongo.errors import OperationFailure

from app.core.config import settings
from app.db.mongo import driver_errors
from app.models.payment import PaymentTransaction

logger = logging.getLogger(__name__)


def newest_first(transactions: List[PaymentTransaction]) -> List[PaymentTransaction]:
    return sorted(transactions, key=lambda t: t.timestamp, reverse=True)


class PaymentRepository:
    """Read side of the payment_transactions collection (append-only)."""

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: Optional[str] = None):
        self.db = db
        self.collection = db[collection_name or settings.PAYMENTS_COLLECTION]

    async def list_for_receipt(self, receipt_id: str) -> List[PaymentTransaction]:
        """Payments recorded against a receipt, newest first."""
        return await self._find_newest_first({"receiptId": receipt_id}, "list_for_receipt")

    async def list_for_customer(self, customer_name: str) -> List[PaymentTransaction]:
        """Payments made by a customer, newest first."""
        return await self._find_newest_first({"customerName": customer_name}, "list_for_customer")

    async def list_in_range(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> List[PaymentTransaction]:
        """Payments with start <= timestamp <= end (either bound optional)."""
        query: dict = {}
        if start or end:
            query["timestamp"] = {}
            if start:
                query["timestamp"]["$gte"] = start
            if end:
                query["timestamp"]["$lte"] = end
        return await self._find_newest_first(query, "list_in_range")

    async def _find_newest_first(self, query: dict, action: str) -> List[PaymentTransaction]:
        with driver_errors(action):
            try:
                docs = await self.collection.find(query).sort("timestamp", DESCENDING).to_list(None)
                return [PaymentTransaction(**doc) for doc in docs]
            except OperationFailure as exc:
                logger.warning("Ordered %s unavailable (%s); sorting in memory", action, exc)

            docs = await self.collection.find(query).to_list(None)
        return newest_first([PaymentTransaction(**doc) for doc in docs])
