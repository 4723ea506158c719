"""Faucet configuration."""

from faucet.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
