"""
RecordStore - what the payment engine needs from the document store.

Implementations advertise `supports_ordered_queries`; callers branch on that
capability instead of inspecting driver error text. A store that finds out at
query time that it cannot order results raises IndexUnsupportedError.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.models.payment import PaymentTransaction
from app.models.receipt import Receipt


@dataclass(frozen=True)
class ReceiptMutation:
    """`$set` payload for one receipt plus the version it was read at."""
    receipt_id: str
    expected_version: int
    fields: Dict[str, Any] = field(default_factory=dict)


class RecordStore(ABC):

    @property
    @abstractmethod
    def supports_ordered_queries(self) -> bool:
        ...

    @abstractmethod
    async def get_receipt(self, receipt_id: str) -> Optional[Receipt]:
        """Point read. None when the receipt does not exist."""

    @abstractmethod
    async def query_unpaid_receipts(self, customer_name: str, ordered: bool = True) -> List[Receipt]:
        """
        Receipts of the customer with isPaid == false.

        ordered=True asks for createdAt ascending. Callers must still sort:
        only the store decides what ordered means for ties.
        """

    @abstractmethod
    async def list_customer_receipts(self, customer_name: str) -> List[Receipt]:
        ...

    @abstractmethod
    async def list_receipts(self) -> List[Receipt]:
        """Every receipt of every customer."""

    @abstractmethod
    async def list_receipt_payments(self, receipt_id: str) -> List[PaymentTransaction]:
        ...

    @abstractmethod
    async def list_customer_payments(self, customer_name: str) -> List[PaymentTransaction]:
        ...

    @abstractmethod
    async def list_payments(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> List[PaymentTransaction]:
        ...

    @abstractmethod
    async def commit_atomic(
        self,
        mutations: List[ReceiptMutation],
        transaction: PaymentTransaction
    ) -> PaymentTransaction:
        """
        Apply every receipt mutation and append the transaction, all or nothing.

        Returns the transaction with its store-assigned id.
        Raises CommitFailedError / ConcurrentModificationError / StoreUnavailableError.
        """
