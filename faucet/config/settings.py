"""
Faucet settings.

Loads configuration from environment variables using pydantic-settings.
Nested sections use a double underscore, e.g. ``FAUCET_HOLDER__ADDRESS``.
"""

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from faucet.config.constants import (
    CHAIN_IDS,
    DEFAULT_ERC20_GAS_LIMIT,
    INFURA_HTTP_URL_TEMPLATE,
    RECEIPT_POLL_INTERVAL,
    RECEIPT_TIMEOUT,
)


def _validate_hex_address(v: str) -> str:
    if not v.startswith("0x") or len(v) != 42:
        raise ValueError("Invalid address format")
    try:
        int(v[2:], 16)
    except ValueError as e:
        raise ValueError("Address contains non-hex characters") from e
    return v


class HolderConfig(BaseModel):
    """Account that funds the test wallets."""

    address: str
    key: SecretStr

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        return _validate_hex_address(v)


class Erc20Config(BaseModel):
    """ERC-20 token handed out by the faucet."""

    contract: str
    gas_limit: int = Field(default=DEFAULT_ERC20_GAS_LIMIT, gt=0)
    asset_id: str | None = None
    amount: int = Field(default=0, ge=0)

    @field_validator("contract")
    @classmethod
    def validate_contract(cls, v: str) -> str:
        return _validate_hex_address(v)


class EthConfig(BaseModel):
    """Native Ether handed out by the faucet."""

    amount: int = Field(default=0, ge=0)
    asset_id: str | None = None


class Settings(BaseSettings):
    """Faucet settings loaded from environment variables."""

    # Network
    infura_project_id: str | None = None
    endpoint: str | None = None
    net_name: str = "goerli"

    # Accounts and assets
    holder: HolderConfig
    erc20: Erc20Config | None = None
    eth: EthConfig = Field(default_factory=EthConfig)

    # Confirmation policy
    confirmation_threshold: int = Field(
        default=1, ge=1, description="Block confirmations before a transfer is final"
    )
    abort_on_reverted_receipt: bool = Field(
        default=False,
        description="Settle as failed on the first reverted receipt instead of waiting on",
    )

    # Gas
    gas_price: int | None = Field(
        default=None, gt=0, description="Fixed gas price in wei (skips the oracle)"
    )

    # Timing
    poll_interval: float = Field(default=RECEIPT_POLL_INTERVAL, gt=0)
    receipt_timeout: float = Field(default=RECEIPT_TIMEOUT, gt=0)

    # Application
    log_level: str = "INFO"
    log_file: str | None = None

    model_config = SettingsConfigDict(
        env_prefix="FAUCET_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("net_name")
    @classmethod
    def validate_net_name(cls, v: str) -> str:
        v = v.lower()
        if v not in CHAIN_IDS:
            raise ValueError(f"Unknown network: {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v

    @model_validator(mode="after")
    def validate_endpoint(self) -> "Settings":
        """Either an explicit endpoint or an Infura project id is required."""
        if not self.endpoint and not self.infura_project_id:
            raise ValueError("Either ENDPOINT or INFURA_PROJECT_ID must be set")
        return self

    @property
    def chain_id(self) -> int:
        return CHAIN_IDS[self.net_name]

    @property
    def rpc_url(self) -> str:
        if self.endpoint:
            return self.endpoint
        return INFURA_HTTP_URL_TEMPLATE.format(
            net_name=self.net_name, project_id=self.infura_project_id
        )


def get_settings() -> Settings:
    """Load settings from the environment."""
    return Settings()
