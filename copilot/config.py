import os

from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Pick up the legacy 1inch key variable names."""

        super().model_post_init(__context)

        if not self.oneinch_api_key:
            fallback = os.getenv("INCH_API_KEY") or os.getenv("ONE_INCH_API_KEY")
            if fallback:
                object.__setattr__(self, "oneinch_api_key", fallback)

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="auto",
        description="Log renderer: json, console, or auto (console at DEBUG, json otherwise)",
    )

    # Trading defaults
    default_chain_id: int = Field(default=8453, description="Network used when a command names none (Base)")
    default_slippage_percent: float = Field(
        default=1.0,
        ge=0,
        le=50,
        description="Slippage applied when a draft does not specify one",
    )

    # Quote / swap routing service
    oneinch_api_key: str = Field(
        default="",
        description="1inch developer portal API key",
        validation_alias=AliasChoices("oneinch_api_key", "ONEINCH_API_KEY"),
    )
    oneinch_base_url: str = Field(default="https://api.1inch.dev", description="1inch API base URL")
    quote_timeout_seconds: float = Field(default=15.0, gt=0, description="Timeout for quote and swap requests")

    # Gas estimation
    gas_price_gwei: Decimal = Field(default=Decimal("0.1"), gt=0, description="Gas price used for cost estimates")
    fallback_gas_cost_native: Decimal = Field(
        default=Decimal("0.003"),
        description="Conservative native-currency gas cost used when estimation fails",
    )

    # Reverse (exact output) solving
    reverse_probe_amount: Decimal = Field(
        default=Decimal("1"),
        gt=0,
        description="Provisional input amount used to sample the exchange rate",
    )
    reverse_probe_max_ratio: Decimal = Field(
        default=Decimal("50"),
        gt=1,
        description="Solved/probe size ratio above which a price-impact warning is attached",
    )

    # Wallet collaborator
    wallet_timeout_seconds: float = Field(default=120.0, gt=0, description="How long to wait on wallet approval")

    # LLM Provider Settings
    llm_provider: str = Field(default="anthropic", description="Default LLM provider")
    anthropic_api_key: str = Field(default="", description="Anthropic API key")
    llm_model: str = Field(default="claude-sonnet-4-20250514", description="Default LLM model")
    llm_max_tokens: int = Field(default=1024, description="Maximum tokens for the intent completion")
    llm_temperature: float = Field(default=0.1, description="Sampling temperature for intent parsing")
    llm_timeout_seconds: float = Field(default=12.0, gt=0, description="Timeout for the intent completion call")

    @property
    def has_oneinch_key(self) -> bool:
        return bool(self.oneinch_api_key)

    @property
    def has_llm_key(self) -> bool:
        """Check if we have an API key for the configured LLM provider"""
        if self.llm_provider.lower() == "anthropic":
            return bool(self.anthropic_api_key)
        return False


# Global settings instance
settings = Settings()
