"""
Transaction Sequencer Module.

Module structure:
- models.py - TransferRequest / TransferOutcome value objects and enums
- nonce_tracker.py - Holder nonce, synced from the chain and advanced locally
- request_builder.py - Native and ERC-20 transfer requests
- event_stream.py - Per-transaction event stream and the AsyncWeb3 driver
- broadcaster.py - Broadcast-and-confirm state machine
- This file (__init__.py) - TransactionSequencer orchestrating all components

Funds test wallets with Ether and ERC-20 tokens from a single holder
account, keeping nonces in submission order across concurrent transfers.
"""

import asyncio
from collections.abc import Awaitable, Callable

from eth_account import Account
from loguru import logger
from web3 import AsyncWeb3
from web3.exceptions import Web3Exception

from faucet.config.settings import Settings
from faucet.utils.exceptions import FaucetError, SequencerClosed, SubmissionError
from faucet.utils.security import mask_address

from ..gas_operations import GasPriceOracle
from ..provider_pool import Web3Pool, web3_pool
from .broadcaster import BroadcastEngine, Observer
from .event_stream import TransactionEventStream, Web3TransactionDriver
from .models import BroadcastState, TransferKind, TransferOutcome, TransferRequest, TxEvent
from .nonce_tracker import NonceTracker
from .request_builder import RequestBuilder, checksum

# Transport-level failures that are reported as failed outcomes
TRANSPORT_ERRORS = (Web3Exception, OSError, TimeoutError)


def _noop_observer(message: str) -> None:
    return None


class TransactionSequencer:
    """
    Ether and ERC-20 faucet for one holder account.

    Features:
    - Nonce tracking across back-to-back submissions
    - Balance pre-flight check
    - Confirmation-threshold waiting with progress callbacks
    - Concurrent native + token funding in one call

    This is the main orchestrator class that delegates to specialized components.
    """

    def __init__(
        self,
        settings: Settings,
        web3: AsyncWeb3 | None = None,
        pool: Web3Pool | None = None,
        driver: Web3TransactionDriver | None = None,
        gas_oracle: GasPriceOracle | None = None,
    ) -> None:
        """
        Initialize transaction sequencer.

        Args:
            settings: Faucet settings
            web3: AsyncWeb3 instance (taken from the pool when omitted)
            pool: Connection pool (process-wide pool when omitted)
            driver: Submission driver (Web3TransactionDriver when omitted)
            gas_oracle: Gas price source (GasPriceOracle when omitted)
        """
        self.settings = settings
        self._pool = pool or web3_pool
        self._owns_connection = web3 is None
        self.web3 = web3 if web3 is not None else self._pool.get_web3(settings.rpc_url)

        self.holder_address = checksum(settings.holder.address)
        self._private_key = settings.holder.key

        # Serializes "read nonce -> build -> sign -> submit -> advance nonce"
        self._nonce_lock = asyncio.Lock()
        self._closed = False

        self.nonce_tracker = NonceTracker(web3=self.web3, address=self.holder_address)
        self.gas_oracle = gas_oracle or GasPriceOracle(
            web3=self.web3,
            fixed_gas_price=settings.gas_price,
        )
        self.request_builder = RequestBuilder(
            web3=self.web3,
            sender=self.holder_address,
            chain_id=settings.chain_id,
            nonce_tracker=self.nonce_tracker,
            gas_oracle=self.gas_oracle,
        )
        self.driver = driver or Web3TransactionDriver(
            web3=self.web3,
            max_confirmations=settings.confirmation_threshold,
            poll_interval=settings.poll_interval,
            receipt_timeout=settings.receipt_timeout,
        )

        logger.info(
            f"TransactionSequencer initialized for holder {mask_address(self.holder_address)} "
            f"on {settings.net_name} (threshold={settings.confirmation_threshold})"
        )

    async def __aenter__(self) -> "TransactionSequencer":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.disconnect()

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise SequencerClosed("Sequencer is disconnected")

    def _sign(self, request: TransferRequest) -> bytes:
        # Account lives only for the duration of signing
        account = None
        try:
            account = Account.from_key(self._private_key.get_secret_value())
            signed_tx = account.sign_transaction(request.to_tx_params())
        finally:
            if account:
                del account
        return signed_tx.raw_transaction

    async def _submit(
        self,
        kind: TransferKind,
        build: Callable[[int], Awaitable[TransferRequest]],
        observer: Observer,
    ) -> BroadcastEngine:
        async with self._nonce_lock:
            nonce = await self.nonce_tracker.current_nonce()
            request = await build(nonce)
            raw_transaction = self._sign(request)

            engine = BroadcastEngine(
                stream=self.driver.submit(raw_transaction),
                confirmation_threshold=self.settings.confirmation_threshold,
                net_name=self.settings.net_name,
                observer=observer,
                abort_on_reverted_receipt=self.settings.abort_on_reverted_receipt,
                kind=kind,
            )
            engine.start()

            # The chain will not count this transaction until it is mined
            self.nonce_tracker.increment_locally()

        logger.info(
            f"Submitted {kind.value} transfer of {request.amount} to "
            f"{mask_address(request.recipient)} with nonce {request.nonce}"
        )
        return engine

    async def _transfer(
        self,
        kind: TransferKind,
        build: Callable[[int], Awaitable[TransferRequest]],
        observer: Observer | None,
    ) -> TransferOutcome:
        try:
            engine = await self._submit(kind, build, observer or _noop_observer)
        except FaucetError as e:
            logger.error(f"{kind.value} transfer not submitted: {e}")
            return TransferOutcome.failed(e, kind=kind)
        except TRANSPORT_ERRORS as e:
            logger.error(f"{kind.value} transfer not submitted, network error: {e}")
            return TransferOutcome.failed(SubmissionError(str(e), cause=e), kind=kind)
        except Exception as e:
            # Provider HTTP errors (429 / 5xx) are not Web3Exception subclasses
            logger.exception(f"{kind.value} transfer not submitted, unexpected error: {e!r}")
            return TransferOutcome.failed(SubmissionError(str(e) or repr(e), cause=e), kind=kind)

        return await engine.wait()

    async def faucet_native(
        self,
        recipient: str,
        amount: int,
        observer: Observer | None = None,
    ) -> TransferOutcome:
        """
        Send Ether from the holder to recipient.

        Args:
            recipient: Destination address
            amount: Amount in wei
            observer: Progress callback (optional)

        Returns:
            TransferOutcome (failures are returned, not raised)
        """
        self._check_open()

        async def build(nonce: int) -> TransferRequest:
            return await self.request_builder.build_native_transfer(
                recipient, amount, nonce=nonce
            )

        return await self._transfer(TransferKind.NATIVE, build, observer)

    async def faucet_token(
        self,
        recipient: str,
        amount: int,
        observer: Observer | None = None,
    ) -> TransferOutcome:
        """
        Send ERC-20 tokens from the holder to recipient.

        Args:
            recipient: Destination address
            amount: Amount in the token's smallest unit
            observer: Progress callback (optional)

        Returns:
            TransferOutcome (failures are returned, not raised)
        """
        self._check_open()

        erc20 = self.settings.erc20
        if erc20 is None:
            error = FaucetError("ERC20 faucet is not configured")
            logger.error(str(error))
            return TransferOutcome.failed(error, kind=TransferKind.TOKEN)

        async def build(nonce: int) -> TransferRequest:
            return await self.request_builder.build_token_transfer(
                erc20.contract,
                recipient,
                amount,
                gas_limit=erc20.gas_limit,
                nonce=nonce,
            )

        return await self._transfer(TransferKind.TOKEN, build, observer)

    async def run(
        self,
        recipient: str,
        native_amount: int,
        token_amount: int,
        observer: Observer | None = None,
    ) -> list[TransferOutcome]:
        """
        Fund recipient with Ether and tokens concurrently.

        Args:
            recipient: Destination address
            native_amount: Ether amount in wei (0 to skip)
            token_amount: Token amount (0 to skip)
            observer: Progress callback (optional)

        Returns:
            Outcomes in order native, token; empty when both amounts are 0
        """
        self._check_open()
        native_amount = int(native_amount)
        token_amount = int(token_amount)
        if native_amount <= 0 and token_amount <= 0:
            return []

        observer = observer or _noop_observer

        try:
            await self.nonce_tracker.sync()
        except Exception as e:
            logger.error(f"Nonce sync failed, no transfers submitted: {e!r}")
            error = SubmissionError(f"Nonce sync failed: {e!r}", cause=e)
            kinds = [
                kind
                for kind, amount in ((TransferKind.NATIVE, native_amount), (TransferKind.TOKEN, token_amount))
                if amount > 0
            ]
            return [TransferOutcome.failed(error, kind=kind) for kind in kinds]

        faucets = []
        if native_amount > 0:
            faucets.append(
                self.faucet_native(recipient, native_amount, lambda msg: observer(f"ETH faucet: {msg}"))
            )
        if token_amount > 0:
            faucets.append(
                self.faucet_token(recipient, token_amount, lambda msg: observer(f"ERC20 faucet: {msg}"))
            )

        outcomes = list(await asyncio.gather(*faucets))
        succeeded = sum(1 for outcome in outcomes if outcome.success)
        logger.info(f"Faucet run finished: {succeeded}/{len(outcomes)} transfer(s) succeeded")
        return outcomes

    async def disconnect(self) -> None:
        """Release the pooled Web3 session. Later calls are no-ops."""
        if self._closed:
            logger.warning("TransactionSequencer.disconnect() called more than once")
            return
        self._closed = True
        if self._owns_connection:
            await self._pool.disconnect(self.settings.rpc_url)
        logger.debug("TransactionSequencer disconnected")


__all__ = [
    "BroadcastEngine",
    "BroadcastState",
    "NonceTracker",
    "RequestBuilder",
    "TransactionEventStream",
    "TransactionSequencer",
    "TransferKind",
    "TransferOutcome",
    "TransferRequest",
    "TxEvent",
    "Web3TransactionDriver",
]
