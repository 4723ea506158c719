"""
Faucet constants.

Centralized blockchain constants for the faucet:
- Gas limits and the fallback gas price
- ERC-20 transfer ABI fragment
- Network names and chain ids
- Polling and timeout defaults
"""

# ========================================================================
# GAS
# ========================================================================

# Protocol minimum for a plain value transfer
GAS_LIMIT_NATIVE_TRANSFER = 21000

# Default gas limit for an ERC-20 transfer() call
DEFAULT_ERC20_GAS_LIMIT = 51241

# 3.5 Gwei, used when no oracle and no configured gas price is available
DEFAULT_GAS_PRICE_WEI = 3_500_000_000

# Oracle clamp (Gwei -> Wei)
MIN_GAS_PRICE_WEI = 1_000_000_000
MAX_GAS_PRICE_WEI = 200_000_000_000

# ========================================================================
# ERC-20
# ========================================================================

# Minimal ERC-20 ABI: only what the faucet calls
ERC20_TRANSFER_ABI = [
    {
        "constant": False,
        "inputs": [
            {"name": "_to", "type": "address"},
            {"name": "_value", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "type": "function",
    },
]

ERC20_TRANSFER_SELECTOR = "0xa9059cbb"

# ========================================================================
# NETWORKS
# ========================================================================

MAINNET = "mainnet"

CHAIN_IDS = {
    "mainnet": 1,
    "ropsten": 3,
    "rinkeby": 4,
    "goerli": 5,
    "kovan": 42,
    "holesky": 17000,
    "sepolia": 11155111,
}

INFURA_HTTP_URL_TEMPLATE = "https://{net_name}.infura.io/v3/{project_id}"

# ========================================================================
# TIMING
# ========================================================================

BLOCKCHAIN_TIMEOUT = 30.0  # Single RPC call (balance, nonce, gas price)
RECEIPT_POLL_INTERVAL = 1.0  # Seconds between receipt/head polls
RECEIPT_TIMEOUT = 300.0  # Give up waiting for a receipt after this

# Wallet activation polling (seed generation on the custody side)
MAX_ACTIVATION_RETRIES = 3 * 60
ACTIVATION_POLL_INTERVAL = 1.0
MAX_ACTIVATION_GRACE_PERIOD = 10
