"""
Nonce tracking for the faucet holder account.

The network's transaction count lags behind when several transactions go
into the same pending block, so the tracker is advanced locally after
each submission and only synced from the network when it is at the zero
sentinel or when the caller asks for it.
"""

import asyncio

from loguru import logger
from web3 import AsyncWeb3
from web3.exceptions import Web3Exception

from faucet.config.constants import BLOCKCHAIN_TIMEOUT
from faucet.utils.security import mask_address


class NonceTracker:
    """
    Single owner of the holder's next nonce.
    """

    def __init__(self, web3: AsyncWeb3, address: str, block_identifier: str = "pending"):
        """
        Initialize nonce tracker.

        Args:
            web3: AsyncWeb3 instance
            address: Holder address
            block_identifier: Block tag passed to get_transaction_count
        """
        self.web3 = web3
        self.address = address
        self.block_identifier = block_identifier
        self._nonce = 0

    @property
    def value(self) -> int:
        return self._nonce

    async def sync(self) -> int:
        """
        Adopt the network's transaction count if it is ahead.

        Raises:
            Web3Exception: If the RPC call fails
            TimeoutError: If the RPC call times out
        """
        try:
            chain_nonce = await asyncio.wait_for(
                self.web3.eth.get_transaction_count(self.address, self.block_identifier),
                timeout=BLOCKCHAIN_TIMEOUT,
            )
        except Web3Exception as e:
            logger.error(f"Web3 error getting nonce for {mask_address(self.address)}: {e}")
            raise

        if chain_nonce > self._nonce:
            logger.debug(
                f"Nonce for {mask_address(self.address)} synced: {self._nonce} -> {chain_nonce}"
            )
            self._nonce = chain_nonce
        elif chain_nonce < self._nonce:
            logger.debug(
                f"Chain nonce {chain_nonce} behind local {self._nonce}, keeping local"
            )
        return self._nonce

    async def current_nonce(self) -> int:
        # Zero sentinel: a fresh tracker that was never synced
        if self._nonce == 0:
            await self.sync()
        return self._nonce

    def increment_locally(self) -> int:
        self._nonce += 1
        return self._nonce
