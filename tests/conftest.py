"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal faucet environment for tests (Hardhat dev account #0, never funded on a real chain)
os.environ.setdefault("FAUCET_INFURA_PROJECT_ID", "test-project")
os.environ.setdefault("FAUCET_NET_NAME", "goerli")
os.environ.setdefault("FAUCET_HOLDER__ADDRESS", "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266")
os.environ.setdefault(
    "FAUCET_HOLDER__KEY", "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
)
os.environ.setdefault("FAUCET_ERC20__CONTRACT", "0x5FbDB2315678afecb367f032d93F642f64180aa3")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest


@pytest.fixture
def holder_address():
    """Faucet holder address (Hardhat account #0)."""
    return "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


@pytest.fixture
def holder_key():
    return "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"


@pytest.fixture
def recipient_address():
    """Sample recipient address (Hardhat account #1)."""
    return "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


@pytest.fixture
def token_contract_address():
    return "0x5FbDB2315678afecb367f032d93F642f64180aa3"


@pytest.fixture
def sample_transaction_hash():
    """Sample transaction hash for testing."""
    return "0x1234567890abcdef1234567890abcdef1234567890abcdef1234567890abcdef"
