"""
Log masking for holder addresses and transaction hashes.
"""

PLACEHOLDER = "***"


def _mask(value: str | None, head: int, tail: int) -> str:
    # Anything too short to leave a hidden middle is fully masked
    if not value or len(value) < head + tail + 2:
        return PLACEHOLDER
    return f"{value[:head]}...{value[-tail:]}"


def mask_address(address: str | None) -> str:
    """
    Examples:
        >>> mask_address("0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266")
        '0xf39F...2266'
    """
    return _mask(address, 6, 4)


def mask_tx_hash(tx_hash: str | None) -> str:
    """Keep the 0x prefix plus 8 hex digits, and the last 6."""
    return _mask(tx_hash, 10, 6)
