"""Ethereum and ERC-20 faucet for integration test fixtures."""

__version__ = "0.1.0"
