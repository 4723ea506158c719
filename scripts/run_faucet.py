#!/usr/bin/env python3
"""
Fund a test wallet with Ether and ERC-20 tokens from the faucet holder.

Reads FAUCET_* settings from the environment (or .env), submits the
requested transfers and waits for the configured confirmation depth.

Usage:
    python scripts/run_faucet.py 0xRecipient --eth-amount 1000000000000000
    python scripts/run_faucet.py 0xRecipient --erc20-amount 5000 --confirmations 3
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger
from pydantic import ValidationError

from faucet.config.logging import setup_logging
from faucet.config.settings import Settings
from faucet.services.blockchain import TransactionSequencer, TransferOutcome


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Send Ether and/or ERC-20 tokens from the faucet holder"
    )
    parser.add_argument("recipient", help="Recipient address (0x...)")
    parser.add_argument(
        "--eth-amount",
        type=int,
        default=None,
        help="Ether amount in wei (defaults to FAUCET_ETH__AMOUNT)",
    )
    parser.add_argument(
        "--erc20-amount",
        type=int,
        default=None,
        help="Token amount in smallest units (defaults to FAUCET_ERC20__AMOUNT)",
    )
    parser.add_argument(
        "--confirmations",
        type=int,
        default=None,
        help="Confirmations to wait for (defaults to FAUCET_CONFIRMATION_THRESHOLD)",
    )
    parser.add_argument("--net", default=None, help="Network name, e.g. goerli")
    parser.add_argument("--log-level", default=None, help="Log level")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.confirmations is not None:
        overrides["confirmation_threshold"] = args.confirmations
    if args.net is not None:
        overrides["net_name"] = args.net
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    return Settings(**overrides)


def print_outcome(outcome: TransferOutcome) -> None:
    info = outcome.as_dict()
    kind = info["kind"] or "transfer"
    if info["success"]:
        logger.success(
            f"{kind}: {info['tx_hash']} confirmed "
            f"({info['confirmation_number']} confirmations, status={info['status']})"
        )
    else:
        logger.error(f"{kind}: failed - {info['error']}")
        if info["has_rejection_receipt"]:
            logger.error(f"{kind}: last receipt before the failure reported a revert")


async def run_faucet(settings: Settings, args: argparse.Namespace) -> int:
    eth_amount = args.eth_amount if args.eth_amount is not None else settings.eth.amount
    erc20_amount = args.erc20_amount
    if erc20_amount is None:
        erc20_amount = settings.erc20.amount if settings.erc20 else 0

    async with TransactionSequencer(settings) as sequencer:
        outcomes = await sequencer.run(
            args.recipient,
            eth_amount,
            erc20_amount,
            observer=logger.info,
        )

    if not outcomes:
        logger.warning("Nothing to send: both amounts are zero")
        return 0

    for outcome in outcomes:
        print_outcome(outcome)
    return 0 if all(outcome.success for outcome in outcomes) else 1


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        settings = build_settings(args)
    except ValidationError as e:
        setup_logging("ERROR")
        logger.error(f"Invalid faucet configuration:\n{e}")
        return 2

    setup_logging(settings.log_level, settings.log_file)
    return asyncio.run(run_faucet(settings, args))


if __name__ == "__main__":
    sys.exit(main())
