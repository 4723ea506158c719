"""
Shared fixtures for unit tests.

This module provides fakes for the blockchain side:
- FakeEth / FakeWeb3 standing in for AsyncWeb3
- AutoConfirmDriver emitting hash, receipt and confirmations on its own
- Settings factory
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from hexbytes import HexBytes
from web3 import AsyncHTTPProvider, AsyncWeb3

from faucet.config.settings import Settings
from faucet.services.blockchain.sequencer.event_stream import TransactionEventStream
from faucet.services.blockchain.sequencer.models import TxEvent

# Never connects: only used for ABI encoding
_OFFLINE_WEB3 = AsyncWeb3(AsyncHTTPProvider("http://127.0.0.1:8545"))

DEFAULT_BALANCE = 10**20
DEFAULT_GAS_PRICE = 3_500_000_000


class ProviderHTTPError(Exception):
    """Stand-in for an HTTP status error from the provider session (not an OSError)."""

    def __init__(self, status=429, message="Too Many Requests"):
        self.status = status
        super().__init__(f"{status}, message='{message}'")


class FakeEth:
    """AsyncEth stand-in with AsyncMock methods and awaitable properties."""

    def __init__(self, nonce=0, balance=DEFAULT_BALANCE, gas_price=DEFAULT_GAS_PRICE, heads=(0,)):
        self.get_transaction_count = AsyncMock(return_value=nonce)
        self.get_balance = AsyncMock(return_value=balance)
        self.send_raw_transaction = AsyncMock(return_value=HexBytes(b"\x11" * 32))
        self.get_transaction_receipt = AsyncMock(return_value=None)
        self.gas_price_value = gas_price
        self.gas_price_error = None
        self.heads = list(heads)

    @property
    async def gas_price(self):
        if self.gas_price_error is not None:
            raise self.gas_price_error
        return self.gas_price_value

    @property
    async def block_number(self):
        if len(self.heads) > 1:
            return self.heads.pop(0)
        return self.heads[0]

    def contract(self, address, abi):
        return _OFFLINE_WEB3.eth.contract(address=address, abi=abi)


class FakeWeb3:
    def __init__(self, eth=None):
        self.eth = eth or FakeEth()
        self.provider = MagicMock()
        self.provider.disconnect = AsyncMock()


class AutoConfirmDriver:
    """
    Driver whose streams confirm by themselves.

    Each submitted transaction gets hash 0x000..<index>, a receipt in block
    100 and `confirmations` confirmation events, or a single error event.
    """

    def __init__(self, confirmations=1, status=1, error=None):
        self.confirmations = confirmations
        self.status = status
        self.error = error
        self.submitted = []
        self.streams = []

    def submit(self, raw_transaction):
        self.submitted.append(raw_transaction)
        index = len(self.submitted)
        tx_hash = "0x" + f"{index:064x}"

        async def produce(stream):
            if self.error is not None:
                stream.emit(TxEvent.ERROR, self.error)
                return
            stream.emit(TxEvent.HASH, tx_hash)
            receipt = {"transactionHash": tx_hash, "status": self.status, "blockNumber": 100}
            stream.emit(TxEvent.RECEIPT, receipt)
            for number in range(1, self.confirmations + 1):
                await asyncio.sleep(0)
                stream.emit(TxEvent.CONFIRMATION, number, receipt)

        stream = TransactionEventStream(producer=produce)
        self.streams.append(stream)
        return stream


@pytest.fixture
def fake_eth():
    return FakeEth(nonce=7)


@pytest.fixture
def fake_web3(fake_eth):
    return FakeWeb3(fake_eth)


@pytest.fixture
def auto_driver():
    return AutoConfirmDriver()


@pytest.fixture
def make_settings(holder_address, holder_key, token_contract_address):
    """Build Settings without depending on the process environment."""

    def _make(**overrides):
        values = {
            "infura_project_id": "test-project",
            "net_name": "goerli",
            "holder": {"address": holder_address, "key": holder_key},
            "erc20": {"contract": token_contract_address, "gas_limit": 60000},
            "confirmation_threshold": 1,
            "gas_price": DEFAULT_GAS_PRICE,
        }
        values.update(overrides)
        return Settings(**values)

    return _make
