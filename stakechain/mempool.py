"""
Pending pool: submitted transactions awaiting the next block.

Order of submission is preserved since it determines settlement order.
Balances are not checked here; affordability is decided at block production.
"""
import logging
import threading
from typing import Optional

from stakechain.core import Transaction

logger = logging.getLogger(__name__)

MAX_POOL_SIZE = 10000

REJECT_UNAUTHORIZED = "Transaction is not authorized"
REJECT_DUPLICATE = "Duplicate transaction"
REJECT_FULL = "Pending pool full"


class PendingPool:
    def __init__(self, max_size: int = MAX_POOL_SIZE):
        self.max_size = max_size
        self.transactions: list[Transaction] = []
        # Fingerprints of pending transactions, for lookups only
        self.tx_ids = set()
        # Object ids of pending transactions. Fingerprints can collide, so a
        # duplicate is the same transaction object submitted twice
        self.queued = set()
        self.lock = threading.Lock()
        self.stats = {
            'total_added': 0,
            'total_rejected': 0,
            'total_removed': 0,
        }

    def add_transaction(self, tx: Transaction) -> tuple[bool, str]:
        """
        Adds a transaction to the pool.
        Returns (success, error_message)
        """
        with self.lock:
            if not tx.is_authorized():
                self.stats['total_rejected'] += 1
                return False, REJECT_UNAUTHORIZED

            if id(tx) in self.queued:
                self.stats['total_rejected'] += 1
                return False, REJECT_DUPLICATE

            if self.size() >= self.max_size:
                self.stats['total_rejected'] += 1
                return False, REJECT_FULL

            self.transactions.append(tx)
            self.tx_ids.add(tx.fingerprint)
            self.queued.add(id(tx))
            self.stats['total_added'] += 1
            logger.debug(f"Added transaction {tx.fingerprint} to pending pool")
            return True, ""

    def get_pending_transactions(self) -> list[Transaction]:
        """Snapshot of pending transactions in submission order."""
        with self.lock:
            return list(self.transactions)

    def has_transaction(self, tx_id: str) -> bool:
        return tx_id in self.tx_ids

    def get_transaction(self, tx_id: str) -> Optional[Transaction]:
        with self.lock:
            for tx in self.transactions:
                if tx.fingerprint == tx_id:
                    return tx
        return None

    def size(self) -> int:
        return len(self.transactions)

    def clear(self) -> int:
        """Clears all transactions; returns how many were removed."""
        with self.lock:
            count = self.size()
            self.transactions = []
            self.tx_ids.clear()
            self.queued.clear()
            self.stats['total_removed'] += count
            if count:
                logger.debug(f"Cleared {count} transactions from pending pool")
            return count

    def get_stats(self) -> dict:
        return {
            **self.stats,
            'current_size': self.size(),
        }

    def __len__(self):
        return self.size()
