from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING
from pymongo.errors import OperationFailure

from app.core.config import settings
from app.db.mongo import driver_errors
from app.models.base import to_object_id
from app.models.receipt import Receipt
from app.utils.payment_validation import IndexUnsupportedError


class ReceiptRepository:
    """Receipt reads used by the payment engine. Receipts are created elsewhere."""

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: Optional[str] = None):
        self.db = db
        self.collection = db[collection_name or settings.RECEIPTS_COLLECTION]

    async def get_receipt(self, receipt_id: str) -> Optional[Receipt]:
        """Get a receipt by id."""
        with driver_errors("get_receipt"):
            doc = await self.collection.find_one({"_id": to_object_id(receipt_id)})
        if doc:
            return Receipt(**doc)
        return None

    async def query_unpaid_receipts(self, customer_name: str, ordered: bool = True) -> List[Receipt]:
        """
        Unpaid receipts for a customer.

        ordered=True sorts by createdAt ascending in the database. A sort the
        server refuses (e.g. no usable index within memory limits) surfaces as
        IndexUnsupportedError so the caller can fall back.
        """
        cursor = self.collection.find({
            "customerName": customer_name,
            "isPaid": False
        })
        if ordered:
            cursor = cursor.sort("createdAt", ASCENDING)

        with driver_errors("query_unpaid_receipts"):
            try:
                docs = await cursor.to_list(None)
            except OperationFailure as exc:
                if not ordered:
                    raise
                raise IndexUnsupportedError(
                    f"Ordered unpaid-receipt query unavailable: {exc}"
                ) from exc

        return [Receipt(**doc) for doc in docs]

    async def list_customer_receipts(self, customer_name: str) -> List[Receipt]:
        """All receipts for a customer, paid or not."""
        with driver_errors("list_customer_receipts"):
            docs = await self.collection.find({"customerName": customer_name}).to_list(None)
        return [Receipt(**doc) for doc in docs]

    async def list_receipts(self) -> List[Receipt]:
        """All receipts, for cross-customer balance summaries."""
        with driver_errors("list_receipts"):
            docs = await self.collection.find({}).to_list(None)
        return [Receipt(**doc) for doc in docs]
