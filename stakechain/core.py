"""
Core data structures for the ledger: transactions and blocks.
"""
import math
import time
from typing import Iterable, Optional

from stakechain.crypto import Hasher, default_hasher
from stakechain.errors import InvalidAmount

GENESIS_PRODUCER = "genesis"
GENESIS_PREVIOUS_FINGERPRINT = "0"


def validate_amount(value, field: str = "amount"):
    """Rejects anything that is not a finite, non-negative number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidAmount(f"{field} must be a number, got {value!r}")
    if math.isnan(value) or math.isinf(value):
        raise InvalidAmount(f"{field} must be finite, got {value!r}")
    if value < 0:
        raise InvalidAmount(f"{field} cannot be negative: {value}")
    return value


class Transaction:
    """
    A transfer between two addresses, or a protocol-issued reward when
    ``origin`` is None.

    The fingerprint is computed once at construction. User transfers must be
    authorized before the chain accepts them; rewards are always authorized.
    """

    def __init__(self,
                 origin: Optional[str],
                 destination: str,
                 amount,
                 fee=0,
                 created_at: Optional[float] = None,
                 hasher: Optional[Hasher] = None):
        if not destination:
            raise ValueError("Transaction requires a destination address")
        validate_amount(amount, "amount")
        validate_amount(fee, "fee")
        if origin is None and fee != 0:
            raise InvalidAmount("Reward transactions cannot carry a fee")

        self._origin = origin
        self._destination = destination
        self._amount = amount
        self._fee = fee
        self._created_at = created_at if created_at is not None else time.time()
        self._hasher = hasher or default_hasher
        self._fingerprint = self._hasher(self.get_fingerprint_data())
        self.authorization: Optional[str] = None

    @classmethod
    def create(cls, origin: Optional[str], destination: str, amount, fee=0,
               hasher: Optional[Hasher] = None) -> 'Transaction':
        return cls(origin, destination, amount, fee, hasher=hasher)

    @classmethod
    def reward(cls, destination: str, amount, hasher: Optional[Hasher] = None) -> 'Transaction':
        """Protocol-issued mint to ``destination``."""
        return cls(None, destination, amount, 0, hasher=hasher)

    @property
    def origin(self) -> Optional[str]:
        return self._origin

    @property
    def destination(self) -> str:
        return self._destination

    @property
    def amount(self):
        return self._amount

    @property
    def fee(self):
        return self._fee

    @property
    def created_at(self) -> float:
        return self._created_at

    @property
    def fingerprint(self) -> str:
        return self._fingerprint

    @property
    def is_reward(self) -> bool:
        return self._origin is None

    @property
    def cost(self):
        """Total debited from the origin on settlement."""
        return self._amount + self._fee

    def get_fingerprint_data(self) -> list:
        """Fixed-order payload the fingerprint is computed over."""
        return [self._origin, self._destination, self._amount, self._fee, self._created_at]

    def authorize(self, secret: str):
        """Marks the transaction as signed by the holder of ``secret``."""
        if self.is_reward:
            return
        self.authorization = self._hasher(self._fingerprint + secret)

    def is_authorized(self) -> bool:
        if self.is_reward:
            return True
        return self.authorization is not None

    def to_dict(self) -> dict:
        return {
            "origin": self._origin,
            "destination": self._destination,
            "amount": self._amount,
            "fee": self._fee,
            "created_at": self._created_at,
            "fingerprint": self._fingerprint,
            "authorization": self.authorization,
        }

    def __repr__(self) -> str:
        return (
            f"Transaction(origin={self._origin!r}, destination={self._destination!r}, "
            f"amount={self._amount}, fee={self._fee}, fingerprint={self._fingerprint!r})"
        )


class Block:
    """
    Ordered, immutable container of transactions chained to its predecessor
    by fingerprint.
    """

    def __init__(self,
                 height: int,
                 transactions: Iterable[Transaction],
                 previous_fingerprint: str,
                 producer: str,
                 created_at: Optional[float] = None,
                 hasher: Optional[Hasher] = None):
        self._height = height
        self._created_at = created_at if created_at is not None else time.time()
        self._transactions = tuple(transactions)
        self._previous_fingerprint = previous_fingerprint
        self._producer = producer
        self._hasher = hasher or default_hasher
        self._fingerprint = self.calculate_fingerprint()

    @classmethod
    def genesis(cls, created_at: Optional[float] = None,
                hasher: Optional[Hasher] = None) -> 'Block':
        return cls(0, [], GENESIS_PREVIOUS_FINGERPRINT, GENESIS_PRODUCER,
                   created_at=created_at, hasher=hasher)

    @property
    def height(self) -> int:
        return self._height

    @property
    def created_at(self) -> float:
        return self._created_at

    @property
    def transactions(self) -> tuple:
        return self._transactions

    @property
    def previous_fingerprint(self) -> str:
        return self._previous_fingerprint

    @property
    def producer(self) -> str:
        return self._producer

    @property
    def fingerprint(self) -> str:
        return self._fingerprint

    def get_fingerprint_data(self) -> list:
        return [
            self._height,
            self._previous_fingerprint,
            self._created_at,
            [tx.to_dict() for tx in self._transactions],
            self._producer,
        ]

    def calculate_fingerprint(self) -> str:
        """Recomputes the fingerprint from the block contents."""
        return self._hasher(self.get_fingerprint_data())

    def to_dict(self) -> dict:
        return {
            "height": self._height,
            "created_at": self._created_at,
            "transactions": [tx.to_dict() for tx in self._transactions],
            "previous_fingerprint": self._previous_fingerprint,
            "producer": self._producer,
            "fingerprint": self._fingerprint,
        }

    def __repr__(self) -> str:
        return (
            f"Block(height={self._height}, txs={len(self._transactions)}, "
            f"producer={self._producer!r}, fingerprint={self._fingerprint!r})"
        )
