"""
Market Maker Configuration

Loads MM_ prefixed environment variables using pydantic-settings.
Defaults to testnet; requires explicit MM_ENVIRONMENT=mainnet for production.
"""
from __future__ import annotations

from decimal import Decimal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .config_env import ENV_FILE, MMEnvironment, PriceSource


class MarketMakerSettings(BaseSettings):
    """Configuration for the market making strategy."""

    model_config = SettingsConfigDict(
        env_prefix="MM_",
        env_file=ENV_FILE,
        extra="ignore",
    )

    # --- Credentials ---
    private_key: str = Field(default="", description="API wallet private key (hex)")
    account_address: str = Field(
        default="",
        description="Main account address. Empty uses the address of the private key.",
    )
    vault_address: str = Field(
        default="",
        description="Vault or subaccount address to trade on behalf of (optional)",
    )

    # --- Environment ---
    environment: MMEnvironment = Field(
        default=MMEnvironment.TESTNET,
        description="Network environment (testnet or mainnet)",
    )

    # --- Strategy Parameters ---
    symbol: str = Field(
        ...,
        min_length=1,
        description="Coin to make markets on (e.g. ETH, or ETH/USDC:USDC)",
    )
    spread_bps: Decimal = Field(
        ...,
        gt=0,
        description="Distance of each quote from the fair price in basis points",
    )
    take_profit_bps: Decimal = Field(
        ...,
        gt=0,
        description=(
            "Spread used in close mode, when the position notional exceeds "
            "close_threshold_usd. Usually tighter than spread_bps."
        ),
    )
    close_threshold_usd: Decimal = Field(
        ...,
        ge=0,
        description=(
            "Absolute position notional (USD) above which only the reducing "
            "side is quoted, reduce-only."
        ),
    )
    order_size_usd: Decimal = Field(
        ...,
        gt=0,
        description="Notional (USD) of each quote; sizes round up to meet it",
    )
    max_deviation_bps: Decimal = Field(
        default=Decimal("50"),
        gt=0,
        description=(
            "Resting orders further than this from the fair price are "
            "cancelled and replaced."
        ),
    )

    # --- Price Feed ---
    price_source: PriceSource = Field(
        default=PriceSource.ORACLE,
        description="Fair price source: 'oracle' (oraclePx) or 'mid' (midPx)",
    )
    price_poll_interval_s: float = Field(
        default=5.0,
        gt=0,
        description="Seconds between fair price polls",
    )

    # --- Safety ---
    enabled: bool = Field(
        default=True,
        description="Kill switch: set to false to disable the market maker",
    )
    cancel_on_start: bool = Field(
        default=True,
        description="Cancel leftover open orders for the symbol before quoting",
    )

    # --- Logging ---
    log_level: str = Field(default="INFO", description="Log level")

    # --- Helpers ---

    @property
    def is_configured(self) -> bool:
        return bool(self.private_key)

    @property
    def coin(self) -> str:
        return self.symbol.split("/")[0]

    @property
    def api_url(self) -> str:
        from hyperliquid.utils import constants

        if self.environment == MMEnvironment.MAINNET:
            return constants.MAINNET_API_URL
        return constants.TESTNET_API_URL

    @field_validator("environment", "price_source", mode="before")
    @classmethod
    def _normalise_enum(cls, v):
        if isinstance(v, str):
            return v.lower()
        return v

    @field_validator("symbol", mode="before")
    @classmethod
    def _normalise_symbol(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v
