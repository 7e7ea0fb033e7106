"""
Simulation wallets: an address derived from a secret.

The secret only feeds the transaction authorization marker; it is not a
signing key in any cryptographic sense.
"""
from typing import Optional

from stakechain.core import Transaction
from stakechain.crypto import Hasher, default_hasher, generate_secret

ADDRESS_LENGTH = 12


class Wallet:
    def __init__(self, secret: str, hasher: Optional[Hasher] = None):
        self.secret = secret
        self.address = (hasher or default_hasher)(secret)[:ADDRESS_LENGTH]

    @classmethod
    def generate(cls, hasher: Optional[Hasher] = None) -> 'Wallet':
        return cls(generate_secret(), hasher)

    def sign(self, tx: Transaction):
        tx.authorize(self.secret)

    def __repr__(self) -> str:
        return f"Wallet(address={self.address!r})"
