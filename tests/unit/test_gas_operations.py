"""Unit tests for the gas price oracle."""

import pytest
from web3.exceptions import Web3Exception

from faucet.config.constants import DEFAULT_GAS_PRICE_WEI
from faucet.services.blockchain.gas_operations import GasPriceOracle


class TestGasPriceOracle:
    """Tests for GasPriceOracle."""

    @pytest.mark.asyncio
    async def test_fixed_price_skips_rpc(self, fake_web3):
        fake_web3.eth.gas_price_error = Web3Exception("must not be called")
        oracle = GasPriceOracle(fake_web3, fixed_gas_price=42)

        assert await oracle.get_gas_price() == 42

    @pytest.mark.asyncio
    async def test_rpc_price_within_bounds(self, fake_web3):
        fake_web3.eth.gas_price_value = 5_000_000_000
        oracle = GasPriceOracle(fake_web3)

        assert await oracle.get_gas_price() == 5_000_000_000

    @pytest.mark.parametrize(
        "rpc_price, expected",
        [
            (1, 1_000_000_000),
            (10**15, 200_000_000_000),
        ],
    )
    @pytest.mark.asyncio
    async def test_rpc_price_is_clamped(self, fake_web3, rpc_price, expected):
        fake_web3.eth.gas_price_value = rpc_price
        oracle = GasPriceOracle(fake_web3)

        assert await oracle.get_gas_price() == expected

    @pytest.mark.asyncio
    async def test_rpc_failure_uses_fallback(self, fake_web3):
        fake_web3.eth.gas_price_error = Web3Exception("rpc down")
        oracle = GasPriceOracle(fake_web3)

        assert await oracle.get_gas_price() == DEFAULT_GAS_PRICE_WEI

    def test_invalid_bounds(self, fake_web3):
        with pytest.raises(ValueError):
            GasPriceOracle(fake_web3, min_gas_price=10, max_gas_price=1)
