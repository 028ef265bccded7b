"""
Solana wallet balance lookups.
"""

from typing import Any

from pydantic import Field

from edwin.core.chain import ChainFamily
from edwin.core.plugin import Plugin, tool_map
from edwin.core.provider import CapabilityProvider
from edwin.core.schema import ParameterSchema, ToolParameters
from edwin.core.tool import Tool
from edwin.core.wallets.solana import SolanaPublicKeyWallet


class SolanaBalanceParameters(ToolParameters):
    wallet_address: str = Field(min_length=1, description="The Solana wallet address to check the balance of")
    mint_address: str | None = Field(
        default=None, description="The optional SPL token mint address (or empty for SOL balance)"
    )


class CurrentSolanaBalanceParameters(ToolParameters):
    mint_address: str | None = Field(
        default=None, description="Optional SPL token mint address (or empty for SOL balance)"
    )


class SolanaTokenBalancesParameters(ToolParameters):
    wallet_address: str | None = Field(
        default=None, description="The Solana wallet address; defaults to your current wallet"
    )


SolanaBalanceParametersSchema = ParameterSchema(SolanaBalanceParameters)
CurrentSolanaBalanceParametersSchema = ParameterSchema(CurrentSolanaBalanceParameters)
SolanaTokenBalancesParametersSchema = ParameterSchema(SolanaTokenBalancesParameters)


class SolanaWalletService(CapabilityProvider):
    protocol_name = "Solana wallet"
    supported_chains = frozenset({"solana"})

    def __init__(self, wallet: SolanaPublicKeyWallet):
        super().__init__()
        self.wallet = wallet

    async def get_wallet_balance(self, params: SolanaBalanceParameters) -> dict[str, Any]:
        balance = await self.wallet.get_balance_of(params.wallet_address, params.mint_address or None)
        return {
            "address": params.wallet_address,
            "token": params.mint_address or "SOL",
            "balance": balance,
        }

    async def get_current_wallet_balance(self, params: CurrentSolanaBalanceParameters) -> dict[str, Any]:
        balance = await self.wallet.get_balance(params.mint_address or None)
        return {
            "address": self.wallet.address,
            "token": params.mint_address or "SOL",
            "balance": balance,
        }

    async def get_token_balances(self, params: SolanaTokenBalancesParameters) -> dict[str, Any]:
        address = params.wallet_address or self.wallet.address
        sol = await self.wallet.get_balance_of(address)
        tokens = await self.wallet.get_token_balances(address)
        return {"address": address, "sol": sol, "tokens": tokens}


class SolanaWalletPlugin(Plugin):
    chain_family = ChainFamily.SOLANA
    tags = ["wallet", "solana"]

    def __init__(self, wallet: SolanaPublicKeyWallet, service: SolanaWalletService | None = None):
        self.service = service or SolanaWalletService(wallet)
        super().__init__([self.service], wallet)

    @property
    def name(self) -> str:
        return "solana_wallet"

    @property
    def description(self) -> str:
        return "Check SOL and SPL token balances of Solana wallets"

    def _public_tools(self) -> dict[str, Tool]:
        return tool_map(
            Tool(
                name="check_solana_wallet_balance",
                description="Check the balance of any Solana wallet",
                schema=SolanaBalanceParametersSchema,
                execute=self.service.get_wallet_balance,
            ),
            Tool(
                name="check_current_solana_wallet_balance",
                description="Check the balance of your current Solana wallet",
                schema=CurrentSolanaBalanceParametersSchema,
                execute=self.service.get_current_wallet_balance,
            ),
            Tool(
                name="get_solana_wallet_token_balances",
                description="Get SOL and all SPL token balances for a Solana wallet",
                schema=SolanaTokenBalancesParametersSchema,
                execute=self.service.get_token_balances,
            ),
        )
