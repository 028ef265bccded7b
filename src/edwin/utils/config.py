"""
Configuration management for Edwin.

This module provides centralized configuration using Pydantic settings
with support for environment variables and .env files. It is the only place
that reads the process environment; everything else receives an
``EdwinSettings`` instance.
"""

import json
import re
from pathlib import Path
from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

HEDERA_NETWORKS = ("mainnet", "testnet", "previewnet")

DEFAULT_EVM_RPC_URLS = {
    "mainnet": "https://eth.llamarpc.com",
    "base": "https://mainnet.base.org",
    "arbitrum": "https://arb1.arbitrum.io/rpc",
    "optimism": "https://mainnet.optimism.io",
    "polygon": "https://polygon-rpc.com",
    "sepolia": "https://rpc.sepolia.org",
}

_EVM_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")
_EVM_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def _env(name: str) -> AliasChoices:
    """Accept both the prefixed and the bare variable name."""
    return AliasChoices(f"EDWIN_{name}", name)


class ValidationResult(BaseModel):
    valid: bool = True
    errors: list[str] = []
    warnings: list[str] = []


class EdwinSettings(BaseSettings):
    """Edwin configuration settings."""

    # MCP server
    mcp_server_name: str = Field(default="edwin-mcp", validation_alias=_env("MCP_SERVER_NAME"))
    mcp_server_version: str = Field(default="0.1.0", validation_alias=_env("MCP_SERVER_VERSION"))
    mcp_port: int = Field(default=3333, validation_alias=_env("MCP_PORT"))
    mcp_host: str = Field(default="127.0.0.1", validation_alias=_env("MCP_HOST"))
    mcp_auto_approve_all: bool = Field(default=False, validation_alias=_env("MCP_AUTO_APPROVE_ALL"))
    mcp_auto_approve_tools: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        validation_alias=_env("MCP_AUTO_APPROVE_TOOLS"),
        description="Comma separated tool names that need no confirmation",
    )

    # Wallets
    evm_private_key: str | None = Field(default=None, validation_alias=_env("EVM_PRIVATE_KEY"))
    evm_public_key: str | None = Field(default=None, validation_alias=_env("EVM_PUBLIC_KEY"))
    evm_default_chain: str = Field(default="base", validation_alias=_env("EVM_DEFAULT_CHAIN"))
    evm_rpc_urls: Annotated[dict[str, str], NoDecode] = Field(
        default_factory=lambda: dict(DEFAULT_EVM_RPC_URLS),
        validation_alias=_env("EVM_RPC_URLS"),
        description="JSON object mapping chain name to RPC url; merged over the defaults",
    )
    solana_private_key: str | None = Field(default=None, validation_alias=_env("SOLANA_PRIVATE_KEY"))
    solana_public_key: str | None = Field(default=None, validation_alias=_env("SOLANA_PUBLIC_KEY"))
    solana_rpc_url: str = Field(
        default="https://api.mainnet-beta.solana.com", validation_alias=_env("SOLANA_RPC_URL")
    )
    hedera_account_id: str | None = Field(default=None, validation_alias=_env("HEDERA_ACCOUNT_ID"))
    hedera_network: str = Field(default="mainnet", validation_alias=_env("HEDERA_NETWORK"))

    # API credentials
    cookie_api_key: str | None = Field(default=None, validation_alias=_env("COOKIE_API_KEY"))
    eoracle_api_key: str | None = Field(default=None, validation_alias=_env("EORACLE_API_KEY"))
    eoracle_api_url: str | None = Field(default=None, validation_alias=_env("EORACLE_API_URL"))
    jupiter_api_key: str | None = Field(default=None, validation_alias=_env("JUPITER_API_KEY"))

    # Plugin selection; empty means every plugin the configured wallets allow
    plugins: Annotated[list[str], NoDecode] = Field(default_factory=list, validation_alias=_env("PLUGINS"))

    # Logging
    log_level: str = Field(default="DEBUG", validation_alias=_env("LOG_LEVEL"))
    log_file: str = Field(default="~/.edwin/logs/edwin.log", validation_alias=_env("LOG_FILE"))
    log_structured: bool = Field(default=False, validation_alias=_env("LOG_STRUCTURED"))

    # Timeouts
    http_timeout_seconds: float = Field(default=30.0, validation_alias=_env("HTTP_TIMEOUT_SECONDS"))
    tool_timeout_seconds: float | None = Field(
        default=None,
        validation_alias=_env("TOOL_TIMEOUT_SECONDS"),
        description="Upper bound for a single tool call; unset means no bound",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("mcp_auto_approve_tools", mode="before")
    @classmethod
    def _split_tool_names(cls, value: Any) -> list[str]:
        if value is None or value == "":
            return []
        if isinstance(value, str):
            value = value.split(",")
        return [name.strip().upper() for name in value if name and name.strip()]

    @field_validator("plugins", mode="before")
    @classmethod
    def _split_plugins(cls, value: Any) -> list[str]:
        if value is None or value == "":
            return []
        if isinstance(value, str):
            value = value.split(",")
        return [name.strip().lower() for name in value if name and name.strip()]

    @field_validator("evm_rpc_urls", mode="before")
    @classmethod
    def _merge_rpc_urls(cls, value: Any) -> dict[str, str]:
        if value is None or value == "":
            return dict(DEFAULT_EVM_RPC_URLS)
        if isinstance(value, str):
            value = json.loads(value)
        return {**DEFAULT_EVM_RPC_URLS, **{k.lower(): v for k, v in value.items()}}

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> str:
        return str(value).upper()

    def get_log_file_path(self) -> Path:
        """Get log file path as Path object."""
        path = Path(self.log_file).expanduser().resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def validate_settings(self) -> ValidationResult:
        """Validate settings and return status information."""
        status = ValidationResult()

        if self.mcp_port <= 0 or self.mcp_port > 65535:
            status.errors.append(f"MCP port out of range: {self.mcp_port}")
            status.valid = False

        if self.evm_private_key and not _EVM_KEY_RE.match(self.evm_private_key):
            status.errors.append("EVM private key must be 32 bytes of hex, optionally 0x prefixed")
            status.valid = False

        if self.evm_public_key and not _EVM_ADDRESS_RE.match(self.evm_public_key):
            status.errors.append(f"EVM public key is not a 0x address: {self.evm_public_key}")
            status.valid = False

        if self.evm_private_key and self.evm_public_key:
            status.warnings.append("Both EVM private and public keys set; the private key wins")

        if self.solana_private_key and self.solana_public_key:
            status.warnings.append("Both Solana private and public keys set; the private key wins")

        if self.evm_default_chain not in self.evm_rpc_urls:
            status.errors.append(f"No RPC url configured for default EVM chain: {self.evm_default_chain}")
            status.valid = False

        if self.hedera_network not in HEDERA_NETWORKS:
            status.errors.append(
                f"Unknown Hedera network: {self.hedera_network} (expected one of {', '.join(HEDERA_NETWORKS)})"
            )
            status.valid = False

        if self.eoracle_api_key and not self.eoracle_api_url:
            status.warnings.append("EORACLE_API_KEY set without EORACLE_API_URL; eoracle stays disabled")

        if self.tool_timeout_seconds is not None and self.tool_timeout_seconds <= 0:
            status.errors.append("Tool timeout must be positive when set")
            status.valid = False

        if not any((self.evm_private_key, self.evm_public_key, self.solana_private_key,
                    self.solana_public_key, self.hedera_account_id)):
            status.warnings.append("No wallet configured; only chain-agnostic tools will be available")

        return status


# Global settings instance
settings = EdwinSettings()


def get_settings() -> EdwinSettings:
    """Get the global settings instance."""
    return settings


def reload_settings() -> EdwinSettings:
    """Reload settings from environment and return new instance."""
    global settings
    settings = EdwinSettings()
    return settings
