"""
EVM wallet balance lookups.
"""

import logging
from typing import Any

from pydantic import Field

from edwin.core.chain import EVM_CHAINS, ChainFamily
from edwin.core.plugin import Plugin, tool_map
from edwin.core.provider import CapabilityProvider
from edwin.core.schema import ParameterSchema, ToolParameters
from edwin.core.tool import Tool
from edwin.core.wallets.evm import NATIVE_TOKEN_ADDRESS, EvmPublicKeyWallet

logger = logging.getLogger(__name__)


class EvmWalletBalanceParameters(ToolParameters):
    wallet_address: str = Field(min_length=1, description="The EVM wallet address to check the balance of")
    chain_name: str = Field(min_length=1, description="The chain to check the balance on, e.g. base")
    token_address: str | None = Field(
        default=None,
        description=f"ERC-20 token address; omit (or use {NATIVE_TOKEN_ADDRESS}) for the native token",
    )


class CurrentEvmWalletBalanceParameters(ToolParameters):
    chain_name: str | None = Field(default=None, description="The chain to check; defaults to the wallet's current chain")
    token_address: str | None = Field(default=None, description="ERC-20 token address; omit for the native token")


EvmWalletBalanceParametersSchema = ParameterSchema(EvmWalletBalanceParameters)
CurrentEvmWalletBalanceParametersSchema = ParameterSchema(CurrentEvmWalletBalanceParameters)


class EvmWalletService(CapabilityProvider):
    """Reads native and ERC-20 balances through the session EVM wallet."""

    protocol_name = "EVM wallet"
    supported_chains = frozenset(EVM_CHAINS)

    def __init__(self, wallet: EvmPublicKeyWallet):
        super().__init__()
        self.wallet = wallet

    async def get_wallet_balance(self, params: EvmWalletBalanceParameters) -> dict[str, Any]:
        chain = self.check_chain(params.chain_name)
        balance = await self.wallet.get_balance_of(params.wallet_address, chain, params.token_address)
        return {
            "address": params.wallet_address,
            "chain": chain,
            "token": params.token_address or "native",
            "balance": balance,
        }

    async def get_current_wallet_balance(self, params: CurrentEvmWalletBalanceParameters) -> dict[str, Any]:
        chain = self.check_chain(params.chain_name or self.wallet.chain)
        balance = await self.wallet.get_balance(chain, params.token_address)
        return {
            "address": self.wallet.address,
            "chain": chain,
            "token": params.token_address or "native",
            "balance": balance,
        }


class EvmWalletPlugin(Plugin):
    """Balance tools for EVM wallets. Works with read-only wallets."""

    chain_family = ChainFamily.EVM
    tags = ["wallet", "evm"]

    def __init__(self, wallet: EvmPublicKeyWallet, service: EvmWalletService | None = None):
        self.service = service or EvmWalletService(wallet)
        super().__init__([self.service], wallet)

    @property
    def name(self) -> str:
        return "evm_wallet"

    @property
    def description(self) -> str:
        return "Check native and ERC-20 balances of EVM wallets"

    def _public_tools(self) -> dict[str, Tool]:
        return tool_map(
            Tool(
                name="check_evm_wallet_balance",
                description="Check the balance of any EVM wallet",
                schema=EvmWalletBalanceParametersSchema,
                execute=self.service.get_wallet_balance,
            ),
            Tool(
                name="check_current_evm_wallet_balance",
                description="Check the balance of your current EVM wallet",
                schema=CurrentEvmWalletBalanceParametersSchema,
                execute=self.service.get_current_wallet_balance,
            ),
        )
