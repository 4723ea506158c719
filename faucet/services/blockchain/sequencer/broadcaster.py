"""
Broadcast-and-confirm engine.

Drives one submitted transaction through
SUBMITTED -> HASH_KNOWN -> RECEIPT_KNOWN -> CONFIRMING -> SETTLED
from the events of its TransactionEventStream and settles a future with
a TransferOutcome.
"""

import asyncio
from collections.abc import Callable
from typing import Any

from loguru import logger

from faucet.utils.exceptions import FaucetError, ReceiptStatusFailure, SubmissionError
from faucet.utils.formatters import format_receipt, get_tx_explorer_url, to_hex_str
from faucet.utils.security import mask_tx_hash

from .event_stream import TransactionEventStream
from .models import BroadcastState, TransferKind, TransferOutcome, TxEvent

Observer = Callable[[str], None]


def _noop_observer(message: str) -> None:
    return None


def _receipt_field(receipt: Any, name: str) -> Any:
    try:
        return receipt[name]
    except (KeyError, TypeError):
        return getattr(receipt, name, None)


class BroadcastEngine:
    """
    Waits for one transaction to reach the confirmation threshold.

    Listeners are attached by start() and removed on every exit path of
    wait(), and also as soon as the outcome is settled.
    """

    def __init__(
        self,
        stream: TransactionEventStream,
        confirmation_threshold: int,
        net_name: str,
        observer: Observer | None = None,
        abort_on_reverted_receipt: bool = False,
        kind: TransferKind | None = None,
    ) -> None:
        """
        Initialize broadcast engine.

        Args:
            stream: Event stream of the submitted transaction
            confirmation_threshold: Confirmations required to settle as success
            net_name: Network name, for explorer links
            observer: Callback for progress messages (optional)
            abort_on_reverted_receipt: Fail on the first reverted receipt
            kind: Transfer kind, copied into the outcome
        """
        if confirmation_threshold < 1:
            raise ValueError("confirmation_threshold must be >= 1")
        self.stream = stream
        self.confirmation_threshold = confirmation_threshold
        self.net_name = net_name
        self.observer = observer or _noop_observer
        self.abort_on_reverted_receipt = abort_on_reverted_receipt
        self.kind = kind

        self.state = BroadcastState.SUBMITTED
        self.transaction_hash: str | None = None
        self.receipt: Any = None
        self.rejection_receipt: Any = None
        self.confirmations = 0

        self._future: asyncio.Future[TransferOutcome] | None = None

    @property
    def settled(self) -> bool:
        return self.state is BroadcastState.SETTLED

    def start(self) -> "asyncio.Future[TransferOutcome]":
        """Attach listeners, start the stream's producer and return the settlement future."""
        if self._future is not None:
            return self._future
        self._future = asyncio.get_running_loop().create_future()
        self.stream.once(TxEvent.HASH, self._on_hash)
        self.stream.once(TxEvent.RECEIPT, self._on_receipt)
        self.stream.on(TxEvent.CONFIRMATION, self._on_confirmation)
        self.stream.once(TxEvent.ERROR, self._on_error)
        self.stream.start()
        return self._future

    async def wait(self) -> TransferOutcome:
        """Await settlement. Starts the engine if start() was not called."""
        future = self.start()
        try:
            return await future
        finally:
            self._release()

    def _release(self) -> None:
        self.stream.remove_all_listeners()
        self.stream.close()

    def _settle(self, outcome: TransferOutcome) -> None:
        self.state = BroadcastState.SETTLED
        self._release()
        if self._future is not None and not self._future.done():
            self._future.set_result(outcome)

    def _on_hash(self, transaction_hash: str) -> None:
        self.state = BroadcastState.HASH_KNOWN
        self.transaction_hash = transaction_hash
        self.observer(get_tx_explorer_url(self.net_name, transaction_hash))

    def _on_receipt(self, receipt: Any) -> None:
        self.state = BroadcastState.RECEIPT_KNOWN
        self.receipt = receipt
        self.observer(f"receipt = {format_receipt(receipt)}")

    def _on_confirmation(self, confirmation_number: int, receipt: Any) -> None:
        self.state = BroadcastState.CONFIRMING
        self.confirmations = int(confirmation_number)
        self.receipt = receipt
        self.observer(f"confirmation number: {confirmation_number}")

        if not _receipt_field(receipt, "status"):
            self.rejection_receipt = receipt
            logger.warning(
                f"Receipt for {mask_tx_hash(self.transaction_hash)} reports failure status "
                f"at confirmation {confirmation_number}"
            )
            if self.abort_on_reverted_receipt:
                self._settle(
                    TransferOutcome.failed(
                        ReceiptStatusFailure(receipt),
                        rejection_receipt=receipt,
                        transaction_hash=self.transaction_hash,
                        kind=self.kind,
                    )
                )
                return

        if self.confirmations >= self.confirmation_threshold:
            transaction_hash = _receipt_field(receipt, "transactionHash")
            if transaction_hash is not None:
                transaction_hash = to_hex_str(transaction_hash)
            transaction_hash = transaction_hash or self.transaction_hash
            logger.success(
                f"Transaction {mask_tx_hash(transaction_hash)} reached "
                f"{self.confirmations} confirmation(s)"
            )
            self._settle(
                TransferOutcome.succeeded(
                    confirmation_number=self.confirmations,
                    transaction_hash=transaction_hash,
                    transaction_status=_receipt_field(receipt, "status"),
                    transaction_receipt=receipt,
                    kind=self.kind,
                )
            )

    def _on_error(self, error: BaseException) -> None:
        if not isinstance(error, FaucetError):
            error = SubmissionError(str(error), cause=error)
        logger.error(f"Transaction {mask_tx_hash(self.transaction_hash)} failed: {error}")
        self._settle(
            TransferOutcome.failed(
                error,
                rejection_receipt=self.rejection_receipt,
                transaction_hash=self.transaction_hash,
                kind=self.kind,
            )
        )
