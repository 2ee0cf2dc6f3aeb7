"""Application configuration via pydantic-settings.

Reads from .env file or environment variables. All settings are validated
at startup — if a setting is malformed, the manager fails fast with a
clear error message.

Usage:
    from agreement_clearinghouse.config import get_settings
    settings = get_settings()
    print(settings.domain_parameters)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from agreement_clearinghouse.schemas.offer import to_address
from agreement_clearinghouse.signing.typed_data import DomainParameters


class Settings(BaseSettings):
    """Central configuration for the Agreement Clearinghouse."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: Literal["development", "staging", "production"] = "development"
    app_log_level: str = "DEBUG"
    app_json_logs: bool = False

    # --- Storage ---
    store_backend: Literal["memory", "sql"] = "memory"
    database_url: str = (
        "postgresql+asyncpg://clearinghouse:clearinghouse_dev"
        "@localhost:5432/agreement_clearinghouse"
    )
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_echo_sql: bool = False

    # --- EIP-712 Domain ---
    # Changing any of these invalidates every signature produced so far.
    eip712_name: str = "AgreementManager"
    eip712_version: str = "1"
    chain_id: int = 1
    verifying_contract: str = "0x0000000000000000000000000000000000000001"

    # --- Access Control ---
    # Receives ADMIN, GUARDIAN and PAUSER at startup.
    admin_address: str | None = None

    @field_validator("verifying_contract", "admin_address")
    @classmethod
    def _checksum(cls, value: str | None) -> str | None:
        return to_address(value) if value is not None else None

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def domain_parameters(self) -> DomainParameters:
        return DomainParameters(
            chain_id=self.chain_id,
            verifying_contract=self.verifying_contract,
            name=self.eip712_name,
            version=self.eip712_version,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the application settings."""
    return Settings()
