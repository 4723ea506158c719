"""
Transaction event streams.

A TransactionEventStream is a small listener registry for one submitted
transaction. It emits, in order: zero or one ``transactionHash`` event,
zero or one ``receipt`` event, zero or more ``confirmation`` events and at
most one terminal ``error`` event.

Web3TransactionDriver produces such a stream from a signed raw
transaction by submitting it through AsyncWeb3 and polling for the
receipt and new block heads.
"""

import asyncio
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger
from web3 import AsyncWeb3
from web3.exceptions import TransactionNotFound, Web3Exception

from faucet.config.constants import RECEIPT_POLL_INTERVAL, RECEIPT_TIMEOUT
from faucet.utils.exceptions import ConfirmationTimeout, SubmissionError
from faucet.utils.formatters import to_hex_str
from faucet.utils.security import mask_tx_hash

from .models import TxEvent

Listener = Callable[..., None]
Producer = Callable[["TransactionEventStream"], Awaitable[None]]


class TransactionEventStream:
    """
    Listener registry for one transaction's lifecycle events.

    The optional producer coroutine is not started until start() is
    called, so listeners can be attached before the first event.
    """

    def __init__(self, producer: Producer | None = None) -> None:
        self._listeners: dict[TxEvent, list[Listener]] = defaultdict(list)
        self._producer = producer
        self._task: asyncio.Task | None = None
        self._closed = False

    def on(self, event: TxEvent, listener: Listener) -> None:
        self._listeners[TxEvent(event)].append(listener)

    def once(self, event: TxEvent, listener: Listener) -> None:
        event = TxEvent(event)

        def _once(*args: Any) -> None:
            self.off(event, _once)
            listener(*args)

        _once.__wrapped__ = listener  # type: ignore[attr-defined]
        self.on(event, _once)

    def off(self, event: TxEvent, listener: Listener) -> None:
        listeners = self._listeners.get(TxEvent(event), [])
        for registered in list(listeners):
            if registered is listener or getattr(registered, "__wrapped__", None) is listener:
                listeners.remove(registered)

    def remove_all_listeners(self) -> None:
        self._listeners.clear()

    def listener_count(self, event: TxEvent | None = None) -> int:
        if event is not None:
            return len(self._listeners.get(TxEvent(event), []))
        return sum(len(listeners) for listeners in self._listeners.values())

    def emit(self, event: TxEvent, *args: Any) -> bool:
        """Call every listener of event. Returns False if nobody listened."""
        listeners = list(self._listeners.get(TxEvent(event), []))
        for listener in listeners:
            listener(*args)
        return bool(listeners)

    @property
    def started(self) -> bool:
        return self._task is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        if self._producer is None or self._task is not None or self._closed:
            return
        self._task = asyncio.ensure_future(self._producer(self))
        self._task.add_done_callback(self._on_producer_done)

    def _on_producer_done(self, task: asyncio.Task) -> None:
        # A crashed producer still ends the stream with an error event
        if task.cancelled():
            return
        error = task.exception()
        if error is not None and not self._closed:
            logger.error(f"Transaction event producer crashed: {error!r}")
            self.emit(TxEvent.ERROR, error)

    def close(self) -> None:
        """Stop the producer. Safe to call more than once."""
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()


class Web3TransactionDriver:
    """
    Submits signed transactions and turns their progress into events.

    Features:
    - Raw transaction submission
    - Receipt polling with timeout
    - One confirmation event per new block head
    """

    def __init__(
        self,
        web3: AsyncWeb3,
        max_confirmations: int,
        poll_interval: float = RECEIPT_POLL_INTERVAL,
        receipt_timeout: float = RECEIPT_TIMEOUT,
    ):
        """
        Initialize transaction driver.

        Args:
            web3: AsyncWeb3 instance
            max_confirmations: Stop emitting confirmations after this many
            poll_interval: Seconds between polls
            receipt_timeout: Seconds to wait for the receipt
        """
        self.web3 = web3
        self.max_confirmations = max_confirmations
        self.poll_interval = poll_interval
        self.receipt_timeout = receipt_timeout

    def submit(self, raw_transaction: bytes | str) -> TransactionEventStream:
        """Return a not-yet-started stream that will submit raw_transaction."""

        async def produce(stream: TransactionEventStream) -> None:
            await self._drive(stream, raw_transaction)

        return TransactionEventStream(producer=produce)

    async def _wait_for_receipt(self, tx_hash: str) -> Any:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.receipt_timeout
        while True:
            try:
                receipt = await self.web3.eth.get_transaction_receipt(tx_hash)
            except TransactionNotFound:
                receipt = None
            if receipt is not None:
                return receipt
            if loop.time() >= deadline:
                raise ConfirmationTimeout(
                    f"No receipt for {tx_hash} after {self.receipt_timeout}s"
                )
            await asyncio.sleep(self.poll_interval)

    async def _drive(self, stream: TransactionEventStream, raw_transaction: bytes | str) -> None:
        try:
            tx_hash = to_hex_str(await self.web3.eth.send_raw_transaction(raw_transaction))
            logger.info(f"Transaction submitted: {mask_tx_hash(tx_hash)}")
            stream.emit(TxEvent.HASH, tx_hash)

            receipt = await self._wait_for_receipt(tx_hash)
            stream.emit(TxEvent.RECEIPT, receipt)

            mined_block = receipt["blockNumber"]
            last_seen = mined_block
            while True:
                head = await self.web3.eth.block_number
                while last_seen < head:
                    last_seen += 1
                    confirmation_number = last_seen - mined_block
                    stream.emit(TxEvent.CONFIRMATION, confirmation_number, receipt)
                    if confirmation_number >= self.max_confirmations:
                        return
                await asyncio.sleep(self.poll_interval)

        except SubmissionError as e:
            stream.emit(TxEvent.ERROR, e)
        except (Web3Exception, ValueError, OSError, TimeoutError) as e:
            logger.error(f"Transaction submission failed: {e}")
            stream.emit(TxEvent.ERROR, SubmissionError(str(e), cause=e))
        except Exception as e:
            # HTTP errors from the provider session (e.g. 429 / 5xx)
            logger.error(f"Transaction submission failed, unexpected error: {e!r}")
            stream.emit(TxEvent.ERROR, SubmissionError(str(e) or repr(e), cause=e))
