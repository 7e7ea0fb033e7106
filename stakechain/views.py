"""
Read-only views handed to collaborators (UI, tooling).

They are snapshots: mutating the chain afterwards does not change a view.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ChainInfo:
    height: int
    total_supply: float
    active_validator_count: int
    pending_count: int


@dataclass(frozen=True)
class TransactionView:
    origin: Optional[str]
    destination: str
    amount: float
    fee: float
    created_at: float
    fingerprint: str
    authorization: Optional[str]

    @classmethod
    def from_transaction(cls, tx) -> 'TransactionView':
        return cls(
            origin=tx.origin,
            destination=tx.destination,
            amount=tx.amount,
            fee=tx.fee,
            created_at=tx.created_at,
            fingerprint=tx.fingerprint,
            authorization=tx.authorization,
        )


@dataclass(frozen=True)
class BlockView:
    height: int
    created_at: float
    transactions: tuple
    previous_fingerprint: str
    producer: str
    fingerprint: str

    @classmethod
    def from_block(cls, block) -> 'BlockView':
        return cls(
            height=block.height,
            created_at=block.created_at,
            transactions=tuple(TransactionView.from_transaction(tx) for tx in block.transactions),
            previous_fingerprint=block.previous_fingerprint,
            producer=block.producer,
            fingerprint=block.fingerprint,
        )


@dataclass(frozen=True)
class ValidatorView:
    address: str
    stake: float
    active: bool
    missed_blocks: int
    produced_blocks: int

    @classmethod
    def from_validator(cls, validator) -> 'ValidatorView':
        return cls(
            address=validator.address,
            stake=validator.stake,
            active=validator.active,
            missed_blocks=validator.missed_blocks,
            produced_blocks=validator.produced_blocks,
        )
