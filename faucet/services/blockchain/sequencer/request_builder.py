"""
Transfer request building.

Assembles native Ether transfers and ERC-20 transfer() calls with
nonce and gas parameters, ready for signing.
"""

import asyncio

from eth_utils import is_address, to_checksum_address
from loguru import logger
from web3 import AsyncWeb3

from faucet.config.constants import (
    BLOCKCHAIN_TIMEOUT,
    DEFAULT_ERC20_GAS_LIMIT,
    DEFAULT_GAS_PRICE_WEI,
    ERC20_TRANSFER_ABI,
    GAS_LIMIT_NATIVE_TRANSFER,
)
from faucet.utils.exceptions import InsufficientFunds, InvalidAddress
from faucet.utils.security import mask_address

from ..gas_operations import GasPriceOracle
from .models import TransferKind, TransferRequest
from .nonce_tracker import NonceTracker


def checksum(address: str) -> str:
    """Checksum an address or raise InvalidAddress."""
    if not isinstance(address, str) or not is_address(address):
        raise InvalidAddress(f"Invalid address: {address!r}")
    return to_checksum_address(address)


class RequestBuilder:
    """
    Builds TransferRequest objects for the holder account.

    Features:
    - Balance pre-flight check for native transfers
    - ERC-20 call data encoding
    - Nonce from the tracker unless given explicitly
    - Gas price from the oracle, else the fixed fallback
    """

    def __init__(
        self,
        web3: AsyncWeb3,
        sender: str,
        chain_id: int,
        nonce_tracker: NonceTracker,
        gas_oracle: GasPriceOracle | None = None,
    ):
        """
        Initialize request builder.

        Args:
            web3: AsyncWeb3 instance
            sender: Holder address
            chain_id: Chain id used for replay protection
            nonce_tracker: Nonce tracker for the holder
            gas_oracle: Gas price source (optional)
        """
        self.web3 = web3
        self.sender = checksum(sender)
        self.chain_id = chain_id
        self.nonce_tracker = nonce_tracker
        self.gas_oracle = gas_oracle

    async def _resolve_gas_price(self, gas_price: int | None) -> int:
        if gas_price is not None:
            return int(gas_price)
        if self.gas_oracle is not None:
            return await self.gas_oracle.get_gas_price()
        return DEFAULT_GAS_PRICE_WEI

    async def _resolve_nonce(self, nonce: int | None) -> int:
        if nonce is not None:
            logger.debug(f"Using explicit nonce {nonce}")
            return nonce
        return await self.nonce_tracker.current_nonce()

    async def build_native_transfer(
        self,
        recipient: str,
        amount: int,
        gas_price: int | None = None,
        nonce: int | None = None,
    ) -> TransferRequest:
        """
        Build a plain Ether transfer.

        Args:
            recipient: Destination address
            amount: Amount in wei
            gas_price: Gas price in wei (optional)
            nonce: Explicit nonce (optional)

        Returns:
            TransferRequest

        Raises:
            InvalidAddress: If recipient is malformed
            InsufficientFunds: If balance < amount + gas cost
        """
        to_address = checksum(recipient)
        amount = int(amount)
        gas_price = await self._resolve_gas_price(gas_price)
        nonce = await self._resolve_nonce(nonce)

        gas_cost = GAS_LIMIT_NATIVE_TRANSFER * gas_price
        balance = await asyncio.wait_for(
            self.web3.eth.get_balance(self.sender),
            timeout=BLOCKCHAIN_TIMEOUT,
        )
        if balance < amount + gas_cost:
            logger.error(
                f"Insufficient funds on {mask_address(self.sender)}: "
                f"balance={balance}, amount={amount}, gas_cost={gas_cost}"
            )
            raise InsufficientFunds(balance=balance, required=amount + gas_cost)

        return TransferRequest(
            kind=TransferKind.NATIVE,
            to=to_address,
            value=amount,
            nonce=nonce,
            gas_limit=GAS_LIMIT_NATIVE_TRANSFER,
            gas_price=gas_price,
            chain_id=self.chain_id,
            recipient=to_address,
            amount=amount,
        )

    async def build_token_transfer(
        self,
        contract: str,
        recipient: str,
        amount: int,
        gas_limit: int | None = None,
        gas_price: int | None = None,
        nonce: int | None = None,
    ) -> TransferRequest:
        """
        Build an ERC-20 transfer() call.

        Args:
            contract: Token contract address
            recipient: Destination address
            amount: Amount in the token's smallest unit
            gas_limit: Gas limit (defaults to DEFAULT_ERC20_GAS_LIMIT)
            gas_price: Gas price in wei (optional)
            nonce: Explicit nonce (optional)

        Returns:
            TransferRequest

        Raises:
            InvalidAddress: If contract or recipient is malformed
        """
        contract_address = checksum(contract)
        to_address = checksum(recipient)
        amount = int(amount)

        token = self.web3.eth.contract(address=contract_address, abi=ERC20_TRANSFER_ABI)
        call_data = token.encode_abi("transfer", args=[to_address, amount])

        gas_price = await self._resolve_gas_price(gas_price)
        nonce = await self._resolve_nonce(nonce)

        return TransferRequest(
            kind=TransferKind.TOKEN,
            to=contract_address,
            value=0,
            data=call_data,
            nonce=nonce,
            gas_limit=int(gas_limit) if gas_limit else DEFAULT_ERC20_GAS_LIMIT,
            gas_price=gas_price,
            chain_id=self.chain_id,
            recipient=to_address,
            amount=amount,
        )
