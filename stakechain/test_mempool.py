"""
Tests for the pending pool.
"""
import threading
import unittest

from stakechain.core import Transaction
from stakechain.mempool import (
    PendingPool,
    REJECT_DUPLICATE,
    REJECT_FULL,
    REJECT_UNAUTHORIZED,
)


def signed_transfer(origin='alice', destination='bob', amount=10, fee=1):
    tx = Transaction(origin, destination, amount, fee)
    tx.authorize(f'{origin}-secret')
    return tx


class TestPendingPool(unittest.TestCase):
    def setUp(self):
        self.pool = PendingPool()

    def test_add_valid_transaction(self):
        """Test adding an authorized transaction."""
        tx = signed_transfer()
        success, error = self.pool.add_transaction(tx)

        self.assertTrue(success, error)
        self.assertEqual(len(self.pool), 1)
        self.assertTrue(self.pool.has_transaction(tx.fingerprint))
        self.assertIs(self.pool.get_transaction(tx.fingerprint), tx)

    def test_reject_unsigned_transaction(self):
        """Test that unsigned transfers are rejected."""
        tx = Transaction('alice', 'bob', 10, 1)
        success, error = self.pool.add_transaction(tx)

        self.assertFalse(success)
        self.assertEqual(error, REJECT_UNAUTHORIZED)
        self.assertEqual(len(self.pool), 0)

    def test_accept_reward(self):
        """Test that rewards need no signature."""
        success, _ = self.pool.add_transaction(Transaction.reward('validator1', 100))
        self.assertTrue(success)

    def test_reject_duplicate(self):
        """Test that the same transaction cannot be queued twice."""
        tx = signed_transfer()
        self.pool.add_transaction(tx)
        success, error = self.pool.add_transaction(tx)

        self.assertFalse(success)
        self.assertEqual(error, REJECT_DUPLICATE)
        self.assertEqual(len(self.pool), 1)

    def test_colliding_fingerprints_accepted(self):
        """Test that distinct transactions sharing a fingerprint are both queued."""
        # 'Aa' and 'BB' hash alike under the 32-bit rolling hash
        first = Transaction('alice', 'Aa', 1, 0, created_at=1.0)
        second = Transaction('alice', 'BB', 1, 0, created_at=1.0)
        first.authorize('alice-secret')
        second.authorize('alice-secret')
        self.assertEqual(first.fingerprint, second.fingerprint)

        self.assertEqual(self.pool.add_transaction(first), (True, ""))
        self.assertEqual(self.pool.add_transaction(second), (True, ""))
        self.assertEqual(self.pool.get_pending_transactions(), [first, second])

    def test_reject_when_full(self):
        """Test the size limit."""
        pool = PendingPool(max_size=2)
        pool.add_transaction(signed_transfer(amount=1))
        pool.add_transaction(signed_transfer(amount=2))
        success, error = pool.add_transaction(signed_transfer(amount=3))

        self.assertFalse(success)
        self.assertEqual(error, REJECT_FULL)

    def test_no_balance_check(self):
        """Test that affordability is not checked on submission."""
        success, _ = self.pool.add_transaction(signed_transfer(origin='pauper', amount=10**9))
        self.assertTrue(success)

    def test_order_preserved(self):
        """Test that pending transactions keep submission order."""
        txs = [signed_transfer(amount=i) for i in range(1, 6)]
        for tx in txs:
            self.pool.add_transaction(tx)
        self.assertEqual(self.pool.get_pending_transactions(), txs)

    def test_snapshot_is_a_copy(self):
        """Test that the returned list is detached from the pool."""
        self.pool.add_transaction(signed_transfer())
        snapshot = self.pool.get_pending_transactions()
        snapshot.clear()
        self.assertEqual(len(self.pool), 1)

    def test_clear(self):
        """Test clearing the pool."""
        tx = signed_transfer()
        self.pool.add_transaction(tx)
        self.assertEqual(self.pool.clear(), 1)
        self.assertEqual(len(self.pool), 0)
        self.assertFalse(self.pool.has_transaction(tx.fingerprint))

        # A cleared transaction may be queued again
        success, _ = self.pool.add_transaction(tx)
        self.assertTrue(success)

    def test_stats(self):
        """Test the pool counters."""
        self.pool.add_transaction(signed_transfer())
        self.pool.add_transaction(Transaction('alice', 'bob', 1))
        self.pool.clear()
        stats = self.pool.get_stats()

        self.assertEqual(stats['total_added'], 1)
        self.assertEqual(stats['total_rejected'], 1)
        self.assertEqual(stats['total_removed'], 1)
        self.assertEqual(stats['current_size'], 0)

    def test_concurrent_adds(self):
        """Test that concurrent submissions are all recorded."""
        txs = [signed_transfer(origin=f'user{i}', amount=i + 1) for i in range(200)]

        def worker(chunk):
            for tx in chunk:
                self.pool.add_transaction(tx)

        threads = [threading.Thread(target=worker, args=(txs[i::4],)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len(self.pool), 200)


if __name__ == '__main__':
    unittest.main()
