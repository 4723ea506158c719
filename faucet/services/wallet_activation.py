"""
Wallet activation polling.

Newly created custodial wallets only get an address once seed
generation has finished. Tests that want to fund them poll the wallet
listing until every wallet is ACTIVE and has an address.
"""

import asyncio
from collections.abc import AsyncIterable, Callable
from typing import Any

from loguru import logger

from faucet.config.constants import (
    ACTIVATION_POLL_INTERVAL,
    MAX_ACTIVATION_GRACE_PERIOD,
    MAX_ACTIVATION_RETRIES,
)
from faucet.utils.exceptions import WalletActivationTimeout

ACTIVE_STATUS = "ACTIVE"

WalletLister = Callable[[], AsyncIterable[Any]]


def _wallet_field(wallet: Any, name: str) -> Any:
    if isinstance(wallet, dict):
        return wallet.get(name)
    return getattr(wallet, name, None)


def is_wallet_active(wallet: Any) -> bool:
    return (
        _wallet_field(wallet, "status") == ACTIVE_STATUS
        and _wallet_field(wallet, "address") is not None
    )


async def _all_wallets_active(list_wallets: WalletLister) -> bool:
    async for wallet in list_wallets():
        if not is_wallet_active(wallet):
            return False
    return True


async def wait_for_wallet_activation(
    list_wallets: WalletLister,
    max_retries: int = MAX_ACTIVATION_RETRIES,
    poll_interval: float = ACTIVATION_POLL_INTERVAL,
    grace_period: int = MAX_ACTIVATION_GRACE_PERIOD,
) -> int:
    """
    Poll until all listed wallets are active.

    Args:
        list_wallets: Callable returning an async iterable of wallets
        max_retries: Maximum number of polls
        poll_interval: Seconds between polls
        grace_period: Upper bound for the extra wait after activation

    Returns:
        Number of polls it took

    Raises:
        WalletActivationTimeout: If wallets are still inactive after max_retries polls
    """
    retries = 0
    while retries < max_retries:
        try:
            finished = await _all_wallets_active(list_wallets)
        except Exception as e:
            logger.warning(f"Wallet listing failed (poll {retries + 1}/{max_retries}): {e!r}")
            finished = False

        retries += 1
        if finished:
            break
        logger.debug(f"Waited {retries} poll(s) for wallet activation")
        await asyncio.sleep(poll_interval)
    else:
        raise WalletActivationTimeout(
            f"Wallets not active after {max_retries} polls"
        )

    grace = max(0, min(grace_period, retries - 1))
    if grace:
        logger.info(f"Waiting for an additional grace period of {grace} seconds")
        await asyncio.sleep(grace)
    return retries
