"""Unit tests for transaction event streams and the AsyncWeb3 driver."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from hexbytes import HexBytes
from web3.exceptions import TransactionNotFound, Web3Exception

from faucet.services.blockchain.sequencer.broadcaster import BroadcastEngine
from faucet.services.blockchain.sequencer.event_stream import (
    TransactionEventStream,
    Web3TransactionDriver,
)
from faucet.services.blockchain.sequencer.models import TxEvent
from faucet.utils.exceptions import ConfirmationTimeout, SubmissionError

from .conftest import FakeEth, FakeWeb3, ProviderHTTPError


class TestTransactionEventStream:
    """Tests for the listener registry."""

    def test_once_fires_a_single_time(self):
        stream = TransactionEventStream()
        calls = []
        stream.once(TxEvent.HASH, calls.append)

        stream.emit(TxEvent.HASH, "0x1")
        stream.emit(TxEvent.HASH, "0x2")

        assert calls == ["0x1"]
        assert stream.listener_count(TxEvent.HASH) == 0

    def test_off_removes_once_listener(self):
        """off() accepts the original callable of a once() registration."""
        stream = TransactionEventStream()
        calls = []
        stream.once(TxEvent.RECEIPT, calls.append)
        stream.off(TxEvent.RECEIPT, calls.append)

        assert stream.emit(TxEvent.RECEIPT, {}) is False
        assert calls == []

    def test_remove_all_listeners(self):
        stream = TransactionEventStream()
        stream.on(TxEvent.CONFIRMATION, lambda *args: None)
        stream.on(TxEvent.ERROR, lambda *args: None)
        assert stream.listener_count() == 2

        stream.remove_all_listeners()

        assert stream.listener_count() == 0

    def test_event_names_accepted(self):
        """Plain event names work like the enum members."""
        stream = TransactionEventStream()
        calls = []
        stream.on("confirmation", lambda number, receipt: calls.append(number))

        stream.emit(TxEvent.CONFIRMATION, 3, {})

        assert calls == [3]

    @pytest.mark.asyncio
    async def test_producer_starts_lazily(self):
        """Nothing is produced before start()."""
        started = asyncio.Event()

        async def produce(stream):
            started.set()

        stream = TransactionEventStream(producer=produce)
        await asyncio.sleep(0)
        assert not started.is_set()
        assert not stream.started

        stream.start()
        await asyncio.wait_for(started.wait(), timeout=1)

    @pytest.mark.asyncio
    async def test_close_cancels_producer(self):
        blocker = asyncio.Event()

        async def produce(stream):
            await blocker.wait()

        stream = TransactionEventStream(producer=produce)
        stream.start()
        await asyncio.sleep(0)

        stream.close()
        stream.close()
        await asyncio.sleep(0)

        assert stream.closed
        assert stream._task.cancelled()

    @pytest.mark.asyncio
    async def test_start_after_close_is_noop(self):
        async def produce(stream):
            raise AssertionError("must not run")

        stream = TransactionEventStream(producer=produce)
        stream.close()
        stream.start()

        assert not stream.started

    @pytest.mark.asyncio
    async def test_crashed_producer_emits_error(self):
        async def produce(stream):
            raise RuntimeError("producer bug")

        engine = BroadcastEngine(
            TransactionEventStream(producer=produce), confirmation_threshold=1, net_name="goerli"
        )
        outcome = await asyncio.wait_for(engine.wait(), timeout=5)

        assert outcome.success is False
        assert isinstance(outcome.error, SubmissionError)
        assert isinstance(outcome.error.cause, RuntimeError)


def _receipt(block_number=100, status=1):
    return {
        "transactionHash": HexBytes(b"\x11" * 32),
        "blockNumber": block_number,
        "status": status,
    }


class TestWeb3TransactionDriver:
    """Tests for Web3TransactionDriver through a BroadcastEngine."""

    @pytest.mark.asyncio
    async def test_full_lifecycle(self):
        """Hash, receipt after one miss, then one confirmation per new head."""
        eth = FakeEth(heads=[100, 101, 101, 102, 103])
        eth.get_transaction_receipt = AsyncMock(
            side_effect=[TransactionNotFound("pending"), _receipt()]
        )
        driver = Web3TransactionDriver(FakeWeb3(eth), max_confirmations=2, poll_interval=0)
        messages = []

        stream = driver.submit(b"\x01\x02")
        engine = BroadcastEngine(stream, confirmation_threshold=2, net_name="goerli", observer=messages.append)
        outcome = await asyncio.wait_for(engine.wait(), timeout=5)

        eth.send_raw_transaction.assert_awaited_once_with(b"\x01\x02")
        assert outcome.success is True
        assert outcome.confirmation_number == 2
        assert outcome.transaction_hash == "0x" + "11" * 32
        assert messages[0] == "https://goerli.etherscan.io/tx/0x" + "11" * 32
        assert messages[1].startswith("receipt = ")
        assert messages[2:] == ["confirmation number: 1", "confirmation number: 2"]

    @pytest.mark.asyncio
    async def test_rejected_submission_emits_error(self):
        eth = FakeEth()
        eth.send_raw_transaction = AsyncMock(side_effect=Web3Exception("nonce too low"))
        driver = Web3TransactionDriver(FakeWeb3(eth), max_confirmations=1, poll_interval=0)

        engine = BroadcastEngine(driver.submit(b"\x00"), confirmation_threshold=1, net_name="goerli")
        outcome = await asyncio.wait_for(engine.wait(), timeout=5)

        assert outcome.success is False
        assert isinstance(outcome.error, SubmissionError)
        assert isinstance(outcome.error.cause, Web3Exception)
        assert outcome.transaction_hash is None
        eth.get_transaction_receipt.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_http_status_error_emits_error(self):
        eth = FakeEth()
        eth.send_raw_transaction = AsyncMock(side_effect=ProviderHTTPError(429))
        driver = Web3TransactionDriver(FakeWeb3(eth), max_confirmations=1, poll_interval=0)

        engine = BroadcastEngine(driver.submit(b"\x00"), confirmation_threshold=1, net_name="goerli")
        outcome = await asyncio.wait_for(engine.wait(), timeout=5)

        assert outcome.success is False
        assert isinstance(outcome.error, SubmissionError)
        assert isinstance(outcome.error.cause, ProviderHTTPError)
        assert "429" in str(outcome.error)

    @pytest.mark.asyncio
    async def test_receipt_timeout(self):
        eth = FakeEth()
        eth.get_transaction_receipt = AsyncMock(side_effect=TransactionNotFound("pending"))
        driver = Web3TransactionDriver(
            FakeWeb3(eth), max_confirmations=1, poll_interval=0, receipt_timeout=0
        )

        engine = BroadcastEngine(driver.submit(b"\x00"), confirmation_threshold=1, net_name="goerli")
        outcome = await asyncio.wait_for(engine.wait(), timeout=5)

        assert outcome.success is False
        assert isinstance(outcome.error, ConfirmationTimeout)
        assert outcome.transaction_hash == "0x" + "11" * 32
