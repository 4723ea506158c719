"""
Blockchain services for the faucet.

- provider_pool.py - AsyncWeb3 connections shared per endpoint
- gas_operations.py - Gas price oracle
- sequencer/ - Nonce tracking, request building, broadcast and confirmation
"""

from .gas_operations import GasPriceOracle
from .provider_pool import Web3Pool, web3_pool
from .sequencer import TransactionSequencer, TransferOutcome

__all__ = [
    "GasPriceOracle",
    "TransactionSequencer",
    "TransferOutcome",
    "Web3Pool",
    "web3_pool",
]
