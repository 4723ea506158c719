"""
Gas operations for faucet transactions.

This module handles:
- Gas price lookup from the RPC node
- Clamping between configured bounds
- Fallback to a fixed price when the node cannot answer
"""

import asyncio

from loguru import logger
from web3 import AsyncWeb3
from web3.exceptions import Web3Exception

from faucet.config.constants import (
    BLOCKCHAIN_TIMEOUT,
    DEFAULT_GAS_PRICE_WEI,
    MAX_GAS_PRICE_WEI,
    MIN_GAS_PRICE_WEI,
)


class GasPriceOracle:
    """
    Supplies gas prices for transfer requests.
    """

    def __init__(
        self,
        web3: AsyncWeb3,
        fixed_gas_price: int | None = None,
        min_gas_price: int = MIN_GAS_PRICE_WEI,
        max_gas_price: int = MAX_GAS_PRICE_WEI,
        fallback_gas_price: int = DEFAULT_GAS_PRICE_WEI,
    ) -> None:
        """
        Initialize gas price oracle.

        Args:
            web3: AsyncWeb3 instance
            fixed_gas_price: Configured price in wei; skips the RPC when set
            min_gas_price: Lower clamp in wei
            max_gas_price: Upper clamp in wei
            fallback_gas_price: Price used when the RPC call fails
        """
        if min_gas_price > max_gas_price:
            raise ValueError("min_gas_price must not exceed max_gas_price")
        self.web3 = web3
        self.fixed_gas_price = fixed_gas_price
        self.min_gas_price = min_gas_price
        self.max_gas_price = max_gas_price
        self.fallback_gas_price = fallback_gas_price

    async def get_gas_price(self) -> int:
        """
        Get gas price in wei.

        Logic:
        1. Configured fixed price wins.
        2. Otherwise ask the node and clamp between MIN and MAX.
        3. On RPC failure use the fallback price.
        """
        if self.fixed_gas_price is not None:
            return self.fixed_gas_price

        try:
            rpc_gas = await asyncio.wait_for(
                self.web3.eth.gas_price,
                timeout=BLOCKCHAIN_TIMEOUT,
            )
        except (Web3Exception, OSError, TimeoutError) as e:
            logger.warning(f"Failed to get gas price from RPC, using fallback: {e}")
            return self.fallback_gas_price

        final_gas = max(self.min_gas_price, min(self.max_gas_price, int(rpc_gas)))
        if rpc_gas > self.max_gas_price:
            logger.warning(
                f"Gas price capped! RPC: {rpc_gas / 1e9:.2f} Gwei, "
                f"Used: {final_gas / 1e9:.2f} Gwei"
            )
        return final_gas
