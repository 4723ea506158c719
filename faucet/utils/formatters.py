"""
Formatting helpers for hex strings and block explorer links.
"""

import json
from collections.abc import Mapping
from typing import Any

from hexbytes import HexBytes

from faucet.config.constants import MAINNET


def ensure_hex_prefix(hex_string: str) -> str:
    """Add a 0x prefix unless one is present."""
    return hex_string if hex_string[:2] in ("0x", "0X") else "0x" + hex_string


def un0x(hex_string: str) -> str:
    """Strip a leading 0x/0X."""
    return hex_string[2:] if hex_string[:2] in ("0x", "0X") else hex_string


def to_hex_str(value: bytes | str) -> str:
    """Normalize bytes/HexBytes/str into a 0x-prefixed hex string."""
    if isinstance(value, str):
        return ensure_hex_prefix(value)
    return ensure_hex_prefix(HexBytes(value).hex())


def get_tx_explorer_url(net_name: str, tx_hash: str) -> str:
    """
    Build an Etherscan link for a transaction.

    Examples:
        >>> get_tx_explorer_url("mainnet", "0xabc")
        'https://etherscan.io/tx/0xabc'
        >>> get_tx_explorer_url("goerli", "0xabc")
        'https://goerli.etherscan.io/tx/0xabc'
    """
    tx_hash = ensure_hex_prefix(tx_hash)
    if net_name == MAINNET:
        return f"https://etherscan.io/tx/{tx_hash}"
    return f"https://{net_name}.etherscan.io/tx/{tx_hash}"


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return to_hex_str(bytes(value))
    if isinstance(value, Mapping):
        return dict(value)
    return str(value)


def format_receipt(receipt: Any) -> str:
    """Pretty-print a receipt (AttributeDict or plain dict) as JSON."""
    if isinstance(receipt, Mapping):
        receipt = dict(receipt)
    return json.dumps(receipt, indent=2, default=_json_default)
