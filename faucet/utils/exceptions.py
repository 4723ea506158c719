"""
Faucet exceptions.

Defines categorized exception types for transfer building and broadcasting.
"""

from typing import Any


class FaucetError(Exception):
    """Base class for faucet errors."""
    pass


class InsufficientFunds(FaucetError):
    """Raised when the holder cannot cover amount plus gas."""

    def __init__(self, balance: int, required: int) -> None:
        self.balance = balance
        self.required = required
        super().__init__(
            f"Insufficient funds: balance={balance}, required={required}"
        )


class InvalidAddress(FaucetError, ValueError):
    """Raised when a recipient or contract address is malformed."""
    pass


class SubmissionError(FaucetError):
    """Raised when the network rejects a transaction or the wait breaks down."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class ConfirmationTimeout(SubmissionError):
    """Raised when no receipt shows up within the receipt timeout."""
    pass


class ReceiptStatusFailure(FaucetError):
    """Raised when a receipt reports a reverted transaction."""

    def __init__(self, receipt: Any) -> None:
        self.receipt = receipt
        super().__init__("Transaction receipt reports failure status")


class WalletActivationTimeout(FaucetError):
    """Raised when wallets are still inactive after the bounded polling."""
    pass


class SequencerClosed(FaucetError):
    """Raised when a disconnected sequencer is used."""
    pass
