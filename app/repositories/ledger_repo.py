"""
LedgerWriter - the atomic commit boundary for payments.

Core algorithm:
1. Open a session and a multi-document transaction
2. For each receipt mutation, update the receipt only if it is still unpaid
   and still at the version the distributor read (optimistic check)
3. Append the payment transaction document
4. Commit; any exception aborts the transaction so nothing is applied
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import settings
from app.db.mongo import driver_errors
from app.models.base import to_object_id
from app.models.payment import PaymentTransaction
from app.repositories.record_store import ReceiptMutation
from app.utils.payment_validation import CommitFailedError, ConcurrentModificationError

logger = logging.getLogger(__name__)


def version_filter(expected_version: int) -> dict:
    """Receipts written before versioning have no `version` field: treat as 0."""
    if expected_version == 0:
        return {"$or": [{"version": 0}, {"version": {"$exists": False}}]}
    return {"version": expected_version}


class LedgerWriter:
    """Writes receipt mutations and the payment ledger entry in one transaction."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        receipts_collection: Optional[str] = None,
        payments_collection: Optional[str] = None
    ):
        self.db = db
        self.receipts = db[receipts_collection or settings.RECEIPTS_COLLECTION]
        self.payments = db[payments_collection or settings.PAYMENTS_COLLECTION]

    async def commit_atomic(
        self,
        mutations: List[ReceiptMutation],
        transaction: PaymentTransaction
    ) -> PaymentTransaction:
        """
        Apply all mutations and insert the transaction, all or nothing.

        Raises ConcurrentModificationError when a receipt moved on since it was
        read, CommitFailedError for any other rejected write and
        StoreUnavailableError when the server cannot be reached.
        """
        now = datetime.now(timezone.utc)
        transaction_doc = transaction.to_document()

        with driver_errors("commit_atomic", CommitFailedError):
            async with await self.db.client.start_session() as session:
                async with session.start_transaction():
                    for mutation in mutations:
                        query = {
                            "_id": to_object_id(mutation.receipt_id),
                            "isPaid": False,
                            **version_filter(mutation.expected_version)
                        }
                        result = await self.receipts.update_one(
                            query,
                            {
                                "$set": {**mutation.fields, "updatedAt": now},
                                "$inc": {"version": 1}
                            },
                            session=session
                        )
                        if result.matched_count == 0:
                            raise ConcurrentModificationError(
                                f"Receipt {mutation.receipt_id} changed since it was read"
                            )

                    inserted = await self.payments.insert_one(transaction_doc, session=session)

        logger.debug(
            "Committed %d receipt update(s) with transaction %s",
            len(mutations), inserted.inserted_id
        )
        return transaction.model_copy(update={"id": str(inserted.inserted_id)})
