"""
Account ledger: balances per address plus the total supply counter.
"""


class Ledger:
    """
    Balances keyed by address and the amount of currency ever minted.

    Settlement works on a ``copy()`` of the ledger and adopts it with
    ``commit()`` once every transaction of a block has been applied.
    """

    def __init__(self, balances: dict = None, total_supply=0):
        self._balances = dict(balances or {})
        self.total_supply = total_supply

    def balance_of(self, address: str):
        """Stored balance, or 0 for an address never seen."""
        return self._balances.get(address, 0)

    def can_afford(self, address: str, amount) -> bool:
        return self.balance_of(address) >= amount

    def credit(self, address: str, amount):
        self._balances[address] = self.balance_of(address) + amount

    def debit(self, address: str, amount):
        # Callers check can_afford first; the snapshot settlement mode may
        # still overdraw on an intra-block double spend.
        self._balances[address] = self.balance_of(address) - amount

    def mint(self, address: str, amount):
        """Credits newly issued currency and grows the supply."""
        self.credit(address, amount)
        self.total_supply += amount

    def balances(self) -> dict:
        return dict(self._balances)

    def copy(self) -> 'Ledger':
        return Ledger(self._balances, self.total_supply)

    def commit(self, other: 'Ledger'):
        """Adopts the state of a settled working copy."""
        self._balances = dict(other._balances)
        self.total_supply = other.total_supply

    def __contains__(self, address: str) -> bool:
        return address in self._balances

    def account_count(self) -> int:
        return len(self._balances)

    def __repr__(self) -> str:
        return f"Ledger(accounts={len(self._balances)}, total_supply={self.total_supply})"
