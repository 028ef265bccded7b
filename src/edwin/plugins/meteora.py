"""
Meteora DLMM pools on Solana: pool search and liquidity quotes.
"""

import logging
from typing import Any

from pydantic import Field, model_validator

from edwin.core.chain import ChainFamily
from edwin.core.plugin import Plugin, tool_map
from edwin.core.provider import CapabilityProvider
from edwin.core.schema import AmountInput, Auto, Exact, ParameterSchema, ToolParameters, parse_amount
from edwin.core.tool import Tool
from edwin.core.wallets.solana import SolanaPublicKeyWallet
from edwin.utils.errors import UpstreamError

logger = logging.getLogger(__name__)

METEORA_API_URL = "https://dlmm-api.meteora.ag"
POOL_SEARCH_LIMIT = 10

POOL_FIELDS = (
    "address",
    "name",
    "bin_step",
    "base_fee_percentage",
    "max_fee_percentage",
    "protocol_fee_percentage",
    "liquidity",
    "fees_24h",
    "trade_volume_24h",
    "current_price",
)


class GetPoolsParameters(ToolParameters):
    asset: str = Field(min_length=1, description="The first asset in the pool")
    asset_b: str = Field(min_length=1, description="The second asset in the pool")


class QuoteLiquidityParameters(ToolParameters):
    pool_address: str = Field(min_length=1, description="The address of the Meteora pool")
    amount: AmountInput = Field(
        description='The amount of token A to add, or "auto" to derive it from amountB'
    )
    amount_b: AmountInput = Field(
        description='The amount of token B to add, or "auto" to derive it from amount'
    )

    @model_validator(mode="after")
    def _one_side_given(self):
        if isinstance(parse_amount(self.amount), Auto) and isinstance(parse_amount(self.amount_b), Auto):
            raise ValueError('amount and amountB cannot both be "auto"')
        return self


GetPoolsParametersSchema = ParameterSchema(GetPoolsParameters)
QuoteLiquidityParametersSchema = ParameterSchema(QuoteLiquidityParameters)


def format_pool(pool: dict[str, Any]) -> dict[str, Any]:
    """Project an API pool onto the fields agents see."""
    formatted = {key: pool.get(key) for key in POOL_FIELDS}
    formatted["apr_percentage"] = pool.get("apr")
    return formatted


class MeteoraService(CapabilityProvider):
    protocol_name = "Meteora"
    supported_chains = frozenset({"solana"})

    def __init__(self, wallet: SolanaPublicKeyWallet, timeout_seconds: float = 30.0):
        super().__init__()
        self.wallet = wallet
        self.client = self.http_client(METEORA_API_URL, timeout_seconds=timeout_seconds)

    async def get_pools(self, params: GetPoolsParameters) -> list[dict[str, Any]]:
        result = await self.client.get(
            "/pair/all_with_pagination",
            params={"search_term": f"{params.asset}-{params.asset_b}", "limit": POOL_SEARCH_LIMIT},
        )
        pairs = (result or {}).get("pairs") if isinstance(result, dict) else None
        if not pairs:
            raise UpstreamError(
                f"No pool found for {params.asset}-{params.asset_b}",
                operation="get_pools",
                target=METEORA_API_URL,
            )
        return [format_pool(pool) for pool in pairs]

    async def get_pool(self, pool_address: str) -> dict[str, Any]:
        return await self.client.get(f"/pair/{pool_address}")

    async def quote_liquidity(self, params: QuoteLiquidityParameters) -> dict[str, Any]:
        """Resolve an ``auto`` side of a deposit from the pool's current price.

        ``current_price`` is the price of token A in units of token B.
        """
        pool = await self.get_pool(params.pool_address)
        price = float(pool.get("current_price") or 0)
        if price <= 0:
            raise UpstreamError(
                f"Pool {params.pool_address} has no current price",
                operation="quote_liquidity",
                target=METEORA_API_URL,
            )

        amount = parse_amount(params.amount)
        amount_b = parse_amount(params.amount_b)
        if isinstance(amount, Auto):
            amount = Exact(amount_b.value / price)
        elif isinstance(amount_b, Auto):
            amount_b = Exact(amount.value * price)

        return {
            "poolAddress": params.pool_address,
            "name": pool.get("name"),
            "currentPrice": price,
            "amount": amount.value,
            "amountB": amount_b.value,
        }


class MeteoraPlugin(Plugin):
    chain_family = ChainFamily.SOLANA
    tags = ["dex", "liquidity", "solana"]

    def __init__(self, wallet: SolanaPublicKeyWallet, service: MeteoraService | None = None):
        self.service = service or MeteoraService(wallet)
        super().__init__([self.service], wallet)

    @property
    def name(self) -> str:
        return "meteora"

    @property
    def description(self) -> str:
        return "Find Meteora DLMM pools and quote liquidity deposits"

    def _public_tools(self) -> dict[str, Tool]:
        return tool_map(
            Tool(
                name="meteora_get_pools",
                description="Get pools from Meteora for a pair of assets",
                schema=GetPoolsParametersSchema,
                execute=self.service.get_pools,
            ),
            Tool(
                name="meteora_quote_liquidity",
                description=(
                    "Quote a two-sided Meteora deposit; pass \"auto\" for one side to derive it "
                    "from the pool price"
                ),
                schema=QuoteLiquidityParametersSchema,
                execute=self.service.quote_liquidity,
            ),
        )
