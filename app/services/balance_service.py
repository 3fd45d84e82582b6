import logging
from typing import List, Optional

from app.repositories.record_store import RecordStore
from app.schemas.balance import CustomerBalanceSummary, ReceiptBalanceView
from app.services.balance_cache import BalanceCache
from app.services.balance_reconciler import BalanceReconciler

logger = logging.getLogger(__name__)


class BalanceService:
    """Cache-through read path for customer balances."""

    def __init__(
        self,
        store: RecordStore,
        cache: BalanceCache,
        reconciler: Optional[BalanceReconciler] = None
    ):
        self.store = store
        self.cache = cache
        self.reconciler = reconciler or BalanceReconciler()

    async def get_customer_balance(self, customer_name: str) -> float:
        """
        Outstanding balance for a customer.

        Served from the cache while fresh; otherwise recomputed from every
        receipt of the customer and cached, unless a payment invalidated the
        customer while the receipts were being read.
        """
        if not customer_name or not customer_name.strip():
            logger.debug("Empty customer name provided to get_customer_balance")
            return 0.0

        name = customer_name.strip()
        cached = self.cache.get(name)
        if cached is not None:
            return cached

        generation = self.cache.generation(name)
        receipts = await self.store.list_customer_receipts(name)
        balance = self.reconciler.customer_balance(receipts)
        self.cache.set(name, balance, generation=generation)

        logger.info("Total balance for %r: %.2f (from %d receipts)", name, balance, len(receipts))
        return balance

    async def get_receipts_with_running_balance(self, customer_name: str) -> List[ReceiptBalanceView]:
        if not customer_name or not customer_name.strip():
            return []
        receipts = await self.store.list_customer_receipts(customer_name.strip())
        return self.reconciler.with_running_balance(receipts)

    async def get_customers_with_balance(self, minimum_balance: float = 0.0) -> List[CustomerBalanceSummary]:
        """Every customer owing at least `minimum_balance`, highest balance first."""
        receipts = await self.store.list_receipts()
        summaries = self.reconciler.summarize_customers(receipts)
        return [s for s in summaries if s.total_balance >= minimum_balance]

    async def find_snapshot_mismatches(self, customer_name: str) -> List[str]:
        """Ids of the customer's receipts whose stored newBalance does not add up."""
        if not customer_name or not customer_name.strip():
            return []
        receipts = await self.store.list_customer_receipts(customer_name.strip())
        return [r.id for r in receipts if not self.reconciler.validate_snapshot(r)]

    def invalidate_cache(self, customer_name: str) -> None:
        self.cache.invalidate(customer_name)

    def clear_cache(self) -> None:
        self.cache.clear()
