"""Configuration management for the staking ledger."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from liquid_staking.core.constants import DEFAULT_ACCOUNT_HRP, DEFAULT_STATE_FILE


class StakingConfig(BaseSettings):
    """Ledger configuration.

    Uses Pydantic v2 settings with environment variable support.
    """

    model_config = SettingsConfigDict(
        env_prefix="LIQUID_STAKING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Address settings
    account_hrp: str = Field(
        default=DEFAULT_ACCOUNT_HRP,
        description="Human readable prefix of local depositor accounts",
    )

    # Submission settings
    default_memo: str = Field(default="", description="Memo attached to submitted batches")

    # Data paths
    data_dir: Path = Field(default=Path("data"), description="Directory for storing data")
    log_dir: Path = Field(default=Path("logs"), description="Directory for logs")
    state_file: Path = Field(
        default=DEFAULT_STATE_FILE,
        description="JSON state file read by the command line tools",
    )

    @field_validator("account_hrp")
    @classmethod
    def validate_account_hrp(cls, value: str) -> str:
        """Ensure the prefix is non-empty and lowercase."""
        value = value.strip()
        if not value:
            raise ValueError("account_hrp cannot be empty")
        return value.lower()

    def model_post_init(self, __context: object) -> None:
        """Create directories after initialization."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)


def load_config() -> StakingConfig:
    """Load configuration from environment and .env file."""
    return StakingConfig()
