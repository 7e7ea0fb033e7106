"""
Configuration management for the ledger.
"""
import json
import os
from dataclasses import dataclass, asdict, field

SETTLEMENT_SNAPSHOT = "snapshot"
SETTLEMENT_INCREMENTAL = "incremental"
SETTLEMENT_MODES = (SETTLEMENT_SNAPSHOT, SETTLEMENT_INCREMENTAL)


def default_genesis_validators() -> list:
    return [
        {"address": "validator1", "stake": 1_000_000},
        {"address": "validator2", "stake": 800_000},
        {"address": "validator3", "stake": 600_000},
    ]


@dataclass
class ChainConfig:
    """Chain configuration."""
    mining_reward: int = 100
    wallet_initial_balance: int = 1000
    genesis_validators: list = field(default_factory=default_genesis_validators)
    fingerprint_scheme: str = "simple"
    # "snapshot" checks affordability once per block, "incremental" per transaction
    settlement_mode: str = SETTLEMENT_SNAPSHOT
    random_seed: int = None

    def __post_init__(self):
        if self.settlement_mode not in SETTLEMENT_MODES:
            raise ValueError(f"Unknown settlement mode: {self.settlement_mode}")
        if self.mining_reward < 0:
            raise ValueError("mining_reward cannot be negative")


@dataclass
class MempoolConfig:
    """Pending pool configuration."""
    max_size: int = 10000


@dataclass
class MonitoringConfig:
    """Monitoring configuration."""
    enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 9090


@dataclass
class Config:
    """Main configuration."""
    chain: ChainConfig
    mempool: MempoolConfig
    monitoring: MonitoringConfig

    @classmethod
    def default(cls) -> 'Config':
        """Create default configuration."""
        return cls(
            chain=ChainConfig(),
            mempool=MempoolConfig(),
            monitoring=MonitoringConfig()
        )

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        return cls(
            chain=ChainConfig(**data.get('chain', {})),
            mempool=MempoolConfig(**data.get('mempool', {})),
            monitoring=MonitoringConfig(**data.get('monitoring', {}))
        )

    @classmethod
    def from_file(cls, path: str) -> 'Config':
        """Load configuration from JSON file."""
        with open(path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)

    def to_file(self, path: str):
        """Save configuration to JSON file."""
        os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'chain': asdict(self.chain),
            'mempool': asdict(self.mempool),
            'monitoring': asdict(self.monitoring)
        }
