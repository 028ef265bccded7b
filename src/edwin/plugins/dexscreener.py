"""
DexScreener market data. Read-only and chain-agnostic.
"""

import logging
from typing import Any

from pydantic import Field, field_validator

from edwin.core.plugin import Plugin, tool_map
from edwin.core.provider import CapabilityProvider
from edwin.core.schema import ParameterSchema, ToolParameters
from edwin.core.tool import Tool
from edwin.utils.errors import UpstreamError

logger = logging.getLogger(__name__)

DEXSCREENER_API_URL = "https://api.dexscreener.com"
MAX_TOKEN_ADDRESSES = 30


class SearchParameters(ToolParameters):
    query: str = Field(min_length=1, description="Search query for pairs matching the query")


class PairParameters(ToolParameters):
    chain_id: str = Field(min_length=1, description='Chain ID (e.g., "ethereum", "solana")')
    pair_id: str = Field(min_length=1, description="Pair address")


class TokenPairsParameters(ToolParameters):
    chain_id: str = Field(min_length=1, description='Chain ID (e.g., "ethereum", "solana")')
    token_address: str = Field(min_length=1, description="Token address")


class TokensParameters(ToolParameters):
    chain_id: str = Field(min_length=1, description='Chain ID (e.g., "ethereum", "solana")')
    token_addresses: str = Field(
        min_length=1, description=f"Comma-separated token addresses (up to {MAX_TOKEN_ADDRESSES})"
    )

    @field_validator("token_addresses")
    @classmethod
    def _at_most_thirty(cls, value: str) -> str:
        addresses = [a.strip() for a in value.split(",") if a.strip()]
        if not addresses:
            raise ValueError("at least one token address is required")
        if len(addresses) > MAX_TOKEN_ADDRESSES:
            raise ValueError(f"at most {MAX_TOKEN_ADDRESSES} token addresses are allowed")
        return ",".join(addresses)


class NoParameters(ToolParameters):
    pass


SearchParametersSchema = ParameterSchema(SearchParameters)
PairParametersSchema = ParameterSchema(PairParameters)
TokenPairsParametersSchema = ParameterSchema(TokenPairsParameters)
TokensParametersSchema = ParameterSchema(TokensParameters)
NoParametersSchema = ParameterSchema(NoParameters)


class DexScreenerService(CapabilityProvider):
    protocol_name = "DexScreener"

    def __init__(self, timeout_seconds: float = 30.0):
        super().__init__()
        self.client = self.http_client(DEXSCREENER_API_URL, timeout_seconds=timeout_seconds)

    async def _get(self, operation: str, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            return await self.client.get(path, params=params)
        except UpstreamError as e:
            raise UpstreamError(
                f"DexScreener {operation} failed: {e.message}",
                operation=operation,
                target=e.target,
                status=e.status,
            ) from e

    async def search_pairs(self, params: SearchParameters) -> Any:
        return await self._get("search", "/latest/dex/search", {"q": params.query})

    async def get_pair(self, params: PairParameters) -> Any:
        return await self._get("getPair", f"/latest/dex/pairs/{params.chain_id}/{params.pair_id}")

    async def get_token_pairs(self, params: TokenPairsParameters) -> Any:
        return await self._get("getTokenPairs", f"/token-pairs/v1/{params.chain_id}/{params.token_address}")

    async def get_tokens(self, params: TokensParameters) -> Any:
        return await self._get("getTokens", f"/tokens/v1/{params.chain_id}/{params.token_addresses}")

    async def get_latest_token_profiles(self, params: NoParameters) -> Any:
        return await self._get("getLatestTokenProfiles", "/token-profiles/latest/v1")

    async def get_latest_boosted_tokens(self, params: NoParameters) -> Any:
        return await self._get("getLatestBoostedTokens", "/token-boosts/latest/v1")

    async def get_top_boosted_tokens(self, params: NoParameters) -> Any:
        return await self._get("getTopBoostedTokens", "/token-boosts/top/v1")

    async def get_token_orders(self, params: TokenPairsParameters) -> Any:
        return await self._get("getTokenOrders", f"/orders/v1/{params.chain_id}/{params.token_address}")


class DexScreenerPlugin(Plugin):
    tags = ["market-data"]

    def __init__(self, service: DexScreenerService | None = None):
        self.service = service or DexScreenerService()
        super().__init__([self.service])

    @property
    def name(self) -> str:
        return "dexscreener"

    @property
    def description(self) -> str:
        return "Search DEX pairs, token pools, profiles and boosts on DexScreener"

    def _public_tools(self) -> dict[str, Tool]:
        return tool_map(
            Tool(
                name="dexscreener_search_pairs",
                description="Search for DEX pairs matching a query",
                schema=SearchParametersSchema,
                execute=self.service.search_pairs,
            ),
            Tool(
                name="dexscreener_get_pair",
                description="Get a DEX pair by chain and pair address",
                schema=PairParametersSchema,
                execute=self.service.get_pair,
            ),
            Tool(
                name="dexscreener_get_token_pairs",
                description="Get the pools of a given token address",
                schema=TokenPairsParametersSchema,
                execute=self.service.get_token_pairs,
            ),
            Tool(
                name="dexscreener_get_tokens",
                description="Get pairs for up to 30 token addresses on one chain",
                schema=TokensParametersSchema,
                execute=self.service.get_tokens,
            ),
            Tool(
                name="dexscreener_get_latest_token_profiles",
                description="Get the latest token profiles",
                schema=NoParametersSchema,
                execute=self.service.get_latest_token_profiles,
            ),
            Tool(
                name="dexscreener_get_latest_boosted_tokens",
                description="Get the latest boosted tokens",
                schema=NoParametersSchema,
                execute=self.service.get_latest_boosted_tokens,
            ),
            Tool(
                name="dexscreener_get_top_boosted_tokens",
                description="Get the tokens with most active boosts",
                schema=NoParametersSchema,
                execute=self.service.get_top_boosted_tokens,
            ),
            Tool(
                name="dexscreener_get_token_orders",
                description="Check orders paid for a token",
                schema=TokenPairsParametersSchema,
                execute=self.service.get_token_orders,
            ),
        )
