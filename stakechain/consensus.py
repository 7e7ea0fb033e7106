# stakechain/consensus.py
"""
Validator set management and stake-weighted block producer selection.
"""
import logging
import random
from collections import defaultdict
from typing import Dict, Iterable, Optional

from stakechain.errors import NoActiveValidators

logger = logging.getLogger(__name__)


class Validator:
    def __init__(self, address: str, stake, active: bool = True,
                 missed_blocks: int = 0, produced_blocks: int = 0):
        self.address = address
        self.stake = stake
        self.active = active
        # Reported only; nothing in the simulation increments it.
        self.missed_blocks = missed_blocks
        self.produced_blocks = produced_blocks

    @property
    def is_eligible(self) -> bool:
        return self.active and self.stake > 0

    def increase_stake(self, amount):
        self.stake += amount

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "stake": self.stake,
            "active": self.active,
            "missed_blocks": self.missed_blocks,
            "produced_blocks": self.produced_blocks,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Validator':
        return cls(
            address=data["address"],
            stake=data["stake"],
            active=data.get("active", True),
            missed_blocks=data.get("missed_blocks", 0),
            produced_blocks=data.get("produced_blocks", 0),
        )

    def __repr__(self) -> str:
        return f"Validator({self.address!r}, stake={self.stake}, active={self.active})"


class ValidatorSet:
    """
    Validators in registration order.

    The enumeration order is fixed at genesis and drives the cumulative walk
    in ``select_validator``.
    """

    def __init__(self, validators: Iterable[Validator] = (), rng: Optional[random.Random] = None):
        self._validators: Dict[str, Validator] = {}
        self.rng = rng or random.Random()
        for validator in validators:
            self.add(validator)

    def add(self, validator: Validator):
        if validator.address in self._validators:
            raise ValueError(f"Validator already registered: {validator.address}")
        self._validators[validator.address] = validator

    def get(self, address: str) -> Optional[Validator]:
        return self._validators.get(address)

    def active_validators(self) -> list:
        """Validators eligible for selection: active with positive stake."""
        return [v for v in self._validators.values() if v.is_eligible]

    def active_count(self) -> int:
        return sum(1 for v in self._validators.values() if v.active)

    def total_active_stake(self):
        return sum(v.stake for v in self.active_validators())

    def select_validator(self) -> Validator:
        """
        Stake-weighted lottery.
        Draws uniformly in [0, total active stake) and returns the first
        validator whose cumulative stake reaches the draw.
        """
        candidates = self.active_validators()
        if not candidates:
            raise NoActiveValidators("No active validator with positive stake")

        total_stake = sum(v.stake for v in candidates)
        draw = self.rng.random() * total_stake

        cumulative = 0
        for validator in candidates:
            cumulative += validator.stake
            if draw <= cumulative:
                return validator

        # Float accumulation can fall short of the draw.
        logger.debug(f"Draw {draw} not reached by cumulative stake {cumulative}, using first validator")
        return candidates[0]

    def __contains__(self, address: str) -> bool:
        return address in self._validators

    def __iter__(self):
        return iter(list(self._validators.values()))

    def __len__(self):
        return len(self._validators)


class StakingPool:
    """Delegated amounts: {delegator: {validator_address: amount}}."""

    def __init__(self):
        self._delegations = defaultdict(dict)

    def add(self, delegator: str, validator_address: str, amount):
        entries = self._delegations[delegator]
        entries[validator_address] = entries.get(validator_address, 0) + amount

    def delegated(self, delegator: str) -> dict:
        """Copy of the delegator's entries; empty if it never delegated."""
        if delegator not in self._delegations:
            return {}
        return dict(self._delegations[delegator])

    def total_delegated(self, validator_address: str):
        return sum(entries.get(validator_address, 0) for entries in self._delegations.values())

    def __contains__(self, delegator: str) -> bool:
        return delegator in self._delegations
