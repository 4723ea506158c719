"""
Value objects for the transaction sequencer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TransferKind(str, Enum):
    NATIVE = "native"
    TOKEN = "token"


class TxEvent(str, Enum):
    """Events emitted by a submitted transaction's event stream."""

    HASH = "transactionHash"
    RECEIPT = "receipt"
    CONFIRMATION = "confirmation"
    ERROR = "error"


class BroadcastState(str, Enum):
    SUBMITTED = "submitted"
    HASH_KNOWN = "hash_known"
    RECEIPT_KNOWN = "receipt_known"
    CONFIRMING = "confirming"
    SETTLED = "settled"


@dataclass(frozen=True)
class TransferRequest:
    """
    One outgoing transaction, ready to be signed.

    For native transfers ``data`` is empty and ``to`` is the recipient.
    For token transfers ``to`` is the token contract, ``value`` is zero
    and ``data`` carries the encoded transfer() call.
    """

    kind: TransferKind
    to: str
    nonce: int
    gas_limit: int
    gas_price: int
    chain_id: int
    value: int = 0
    data: str | None = None
    recipient: str | None = None
    amount: int = 0

    def to_tx_params(self) -> dict[str, Any]:
        """Legacy (type 0) transaction dict for eth_account signing."""
        params: dict[str, Any] = {
            "to": self.to,
            "value": self.value,
            "nonce": self.nonce,
            "gas": self.gas_limit,
            "gasPrice": self.gas_price,
            "chainId": self.chain_id,
        }
        if self.data:
            params["data"] = self.data
        return params


@dataclass(frozen=True)
class TransferOutcome:
    """
    Terminal result of one broadcast.

    Success records carry confirmation count, hash, final status and the
    receipt. Failure records carry the error and the last failing receipt
    seen before the failure, if any.
    """

    success: bool
    transaction_hash: str | None = None
    confirmation_number: int | None = None
    transaction_status: int | None = None
    transaction_receipt: Any = None
    error: BaseException | None = None
    rejection_receipt: Any = None
    kind: TransferKind | None = field(default=None, compare=False)

    @classmethod
    def succeeded(
        cls,
        confirmation_number: int,
        transaction_hash: str,
        transaction_status: int | None,
        transaction_receipt: Any,
        kind: TransferKind | None = None,
    ) -> "TransferOutcome":
        return cls(
            success=True,
            confirmation_number=confirmation_number,
            transaction_hash=transaction_hash,
            transaction_status=transaction_status,
            transaction_receipt=transaction_receipt,
            kind=kind,
        )

    @classmethod
    def failed(
        cls,
        error: BaseException,
        rejection_receipt: Any = None,
        transaction_hash: str | None = None,
        kind: TransferKind | None = None,
    ) -> "TransferOutcome":
        return cls(
            success=False,
            error=error,
            rejection_receipt=rejection_receipt,
            transaction_hash=transaction_hash,
            kind=kind,
        )

    @property
    def reverted(self) -> bool:
        """Settled but the final receipt reports a failed execution."""
        return self.success and not self.transaction_status

    def as_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "success": self.success,
            "kind": self.kind.value if self.kind else None,
            "tx_hash": self.transaction_hash,
        }
        if self.success:
            result["confirmation_number"] = self.confirmation_number
            result["status"] = self.transaction_status
        else:
            result["error"] = str(self.error)
            result["has_rejection_receipt"] = self.rejection_receipt is not None
        return result
