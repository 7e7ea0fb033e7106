"""
In-memory proof-of-stake chain engine.

The engine owns the chain, the pending pool, the ledger, the validator set
and the staking pool. Every public operation runs under a single re-entrant
lock, so readers never observe a partially settled block.
"""
import logging
import random
import threading
import time
from typing import Optional

from stakechain import mempool
from stakechain.config import Config, SETTLEMENT_INCREMENTAL
from stakechain.consensus import StakingPool, Validator, ValidatorSet
from stakechain.core import Block, Transaction, validate_amount
from stakechain.crypto import get_hasher
from stakechain.errors import (
    DuplicateTransaction,
    InsufficientBalance,
    PendingPoolFull,
    UnauthorizedTransaction,
    UnknownValidator,
    ValidationError,
)
from stakechain.ledger import Ledger
from stakechain.mempool import PendingPool
from stakechain.monitoring import Monitor
from stakechain.views import BlockView, ChainInfo, TransactionView, ValidatorView
from stakechain.wallet import Wallet

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

_POOL_REJECTIONS = {
    mempool.REJECT_UNAUTHORIZED: UnauthorizedTransaction,
    mempool.REJECT_DUPLICATE: DuplicateTransaction,
    mempool.REJECT_FULL: PendingPoolFull,
}


class ChainEngine:
    def __init__(self, config: Config = None, rng: random.Random = None,
                 monitor: Monitor = None):
        self.config = config or Config.default()
        chain_config = self.config.chain

        self.hasher = get_hasher(chain_config.fingerprint_scheme)
        self.mining_reward = chain_config.mining_reward
        self.settlement_mode = chain_config.settlement_mode
        self.lock = threading.RLock()

        self.chain: list[Block] = [Block.genesis(hasher=self.hasher)]
        self.pending = PendingPool(max_size=self.config.mempool.max_size)
        self.ledger = Ledger()
        self.validators = ValidatorSet(rng=rng or random.Random(chain_config.random_seed))
        self.staking_pool = StakingPool()

        self._initialize_genesis_validators(chain_config.genesis_validators)

        self.monitor = monitor
        if self.monitor is None and self.config.monitoring.enabled:
            logger.info(f"Initializing Monitor with host={self.config.monitoring.host}, "
                        f"port={self.config.monitoring.port}")
            self.monitor = Monitor(self, host=self.config.monitoring.host,
                                   port=self.config.monitoring.port)
            self.monitor.start_server()
        if self.monitor:
            self.monitor.update()

    def _initialize_genesis_validators(self, genesis_validators: list):
        """Registers genesis validators and seeds their balances with their stake."""
        for entry in genesis_validators:
            stake = validate_amount(entry["stake"], "stake")
            self.validators.add(Validator(entry["address"], stake))
            self.ledger.mint(entry["address"], stake)
        logger.info(f"Genesis: {len(self.validators)} validators, "
                    f"total supply {self.ledger.total_supply}")

    # ==========================================================================
    # TRANSACTIONS
    # ==========================================================================

    def create_transaction(self, origin: Optional[str], destination: str, amount, fee=0) -> Transaction:
        """Builds a transaction fingerprinted with this engine's scheme."""
        return Transaction(origin, destination, amount, fee, hasher=self.hasher)

    def submit(self, tx: Transaction):
        """Queues an authorized transaction. Balances are checked at block production."""
        with self.lock:
            success, error = self.pending.add_transaction(tx)
            if self.monitor:
                self.monitor.record_submission(success)
                self.monitor.update()
            if not success:
                logger.warning(f"Rejected transaction {tx.fingerprint}: {error}")
                raise _POOL_REJECTIONS.get(error, ValidationError)(error)
            logger.debug(f"Queued transaction {tx.fingerprint} "
                         f"({tx.origin} -> {tx.destination}, {tx.amount})")

    def submit_transaction(self, origin: str, destination: str, amount, fee, secret: str) -> TransactionView:
        """Creates, authorizes and queues a transfer in one call."""
        tx = self.create_transaction(origin, destination, amount, fee)
        tx.authorize(secret)
        self.submit(tx)
        return TransactionView.from_transaction(tx)

    def is_transaction_settleable(self, tx: Transaction, ledger: Ledger = None) -> bool:
        if tx.is_reward:
            return True
        ledger = ledger if ledger is not None else self.ledger
        return ledger.can_afford(tx.origin, tx.cost)

    # ==========================================================================
    # BLOCK PRODUCTION
    # ==========================================================================

    def latest_block(self) -> BlockView:
        with self.lock:
            return BlockView.from_block(self.chain[-1])

    def produce_block(self) -> Block:
        """
        Selects a producer, settles the pending pool and appends a new block.

        Nothing changes if no validator can be selected. Settlement happens on
        a working copy of the ledger that is committed together with the block.
        """
        with self.lock:
            started = time.perf_counter()
            validator = self.validators.select_validator()

            reward = Transaction.reward(validator.address, self.mining_reward, hasher=self.hasher)
            batch = self.pending.get_pending_transactions() + [reward]

            working = self.ledger.copy()
            if self.settlement_mode == SETTLEMENT_INCREMENTAL:
                included = []
                for tx in batch:
                    if self.is_transaction_settleable(tx, working):
                        self._settle(tx, validator.address, working)
                        included.append(tx)
            else:
                # Affordability is judged against pre-block balances only
                included = [tx for tx in batch if self.is_transaction_settleable(tx)]
                for tx in included:
                    self._settle(tx, validator.address, working)

            block = Block(
                height=len(self.chain),
                transactions=included,
                previous_fingerprint=self.chain[-1].fingerprint,
                producer=validator.address,
                hasher=self.hasher,
            )

            self.ledger.commit(working)
            self.chain.append(block)
            validator.produced_blocks += 1
            self.pending.clear()

            dropped = len(batch) - len(included)
            if dropped:
                logger.warning(f"Dropped {dropped} unaffordable transactions from block {block.height}")
            logger.info(f"Block {block.height} produced by {validator.address}: "
                        f"{len(included)} transactions, fingerprint {block.fingerprint}")

            if self.monitor:
                self.monitor.record_block(block, dropped, time.perf_counter() - started)
                self.monitor.update()
            return block

    def _settle(self, tx: Transaction, producer: str, ledger: Ledger):
        if tx.is_reward:
            ledger.mint(tx.destination, tx.amount)
            return
        ledger.debit(tx.origin, tx.cost)
        ledger.credit(tx.destination, tx.amount)
        ledger.credit(producer, tx.fee)

    def validate_chain(self) -> bool:
        """Checks every block's fingerprint and its link to the previous block."""
        with self.lock:
            for i, block in enumerate(self.chain):
                if block.height != i:
                    logger.error(f"Block at index {i} has height {block.height}")
                    return False
                if block.calculate_fingerprint() != block.fingerprint:
                    logger.error(f"Block {i} fingerprint mismatch")
                    return False
                if i > 0 and block.previous_fingerprint != self.chain[i - 1].fingerprint:
                    logger.error(f"Block {i} does not link to block {i - 1}")
                    return False
            return True

    # ==========================================================================
    # STAKING
    # ==========================================================================

    def delegate(self, delegator: str, validator_address: str, amount):
        """
        Moves ``amount`` of the delegator's balance into the staking pool and
        adds it to the validator's stake.

        All checks run before the first mutation.
        """
        validate_amount(amount, "amount")
        with self.lock:
            validator = self.validators.get(validator_address)
            if validator is None:
                raise UnknownValidator(f"Unknown validator: {validator_address}")
            if not self.ledger.can_afford(delegator, amount):
                raise InsufficientBalance(
                    f"Balance {self.ledger.balance_of(delegator)} of {delegator} "
                    f"is lower than {amount}"
                )

            self.ledger.debit(delegator, amount)
            self.staking_pool.add(delegator, validator_address, amount)
            validator.increase_stake(amount)

            logger.info(f"{delegator} delegated {amount} to {validator_address}")
            if self.monitor:
                self.monitor.record_delegation()
                self.monitor.update()

    def staking_info_of(self, address: str) -> dict:
        with self.lock:
            return self.staking_pool.delegated(address)

    # ==========================================================================
    # WALLETS
    # ==========================================================================

    def create_wallet(self) -> Wallet:
        """Generates a wallet and funds it with the configured initial balance."""
        wallet = Wallet.generate(self.hasher)
        self.faucet(wallet.address, self.config.chain.wallet_initial_balance)
        logger.info(f"Created wallet {wallet.address}")
        return wallet

    def faucet(self, address: str, amount):
        """Mints ``amount`` to an arbitrary address."""
        validate_amount(amount, "amount")
        with self.lock:
            self.ledger.mint(address, amount)
            if self.monitor:
                self.monitor.update()

    # ==========================================================================
    # QUERIES
    # ==========================================================================

    def balance_of(self, address: str):
        with self.lock:
            return self.ledger.balance_of(address)

    @property
    def total_supply(self):
        with self.lock:
            return self.ledger.total_supply

    def chain_info(self) -> ChainInfo:
        with self.lock:
            return ChainInfo(
                height=len(self.chain) - 1,
                total_supply=self.ledger.total_supply,
                active_validator_count=self.validators.active_count(),
                pending_count=len(self.pending),
            )

    def list_validators(self) -> tuple:
        with self.lock:
            return tuple(ValidatorView.from_validator(v) for v in self.validators)

    def list_blocks(self, newest_first: bool = False) -> tuple:
        with self.lock:
            blocks = reversed(self.chain) if newest_first else self.chain
            return tuple(BlockView.from_block(b) for b in blocks)

    def get_block(self, height: int) -> Optional[BlockView]:
        with self.lock:
            if 0 <= height < len(self.chain):
                return BlockView.from_block(self.chain[height])
            return None

    def pending_transactions(self) -> tuple:
        with self.lock:
            return tuple(TransactionView.from_transaction(tx)
                         for tx in self.pending.get_pending_transactions())
