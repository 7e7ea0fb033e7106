# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="stakechain",
    version="0.1.0",
    description="In-memory proof-of-stake ledger simulation",
    packages=find_namespace_packages(include=["stakechain", "stakechain.*"]),
    python_requires=">=3.9",
    install_requires=[
        "msgpack",             # canonical payload packing for fingerprints
        "PyNaCl",              # ed25519 seeds for wallet secrets
        "pycryptodome",        # keccak fingerprint scheme
        "psutil",              # monitoring
        "prometheus-client",   # monitoring
    ],
    extras_require={
        "test": ["pytest"],
    },
)
