"""
Jupiter aggregator: token lookup and swaps on Solana.
"""

import logging
from decimal import Decimal
from typing import Any

from pydantic import Field

from edwin.core.chain import ChainFamily
from edwin.core.plugin import Plugin, tool_map
from edwin.core.provider import CapabilityProvider
from edwin.core.schema import ParameterSchema, ToolParameters
from edwin.core.tool import Tool
from edwin.core.wallets.solana import SolanaPublicKeyWallet, SolanaWallet
from edwin.utils.errors import InsufficientBalanceError, UnsupportedAssetError, WalletError

logger = logging.getLogger(__name__)

JUPITER_API_URL = "https://api.jup.ag/swap/v1/"
DEXSCREENER_API_URL = "https://api.dexscreener.com"
WRAPPED_SOL_MINT = "So11111111111111111111111111111111111111112"
DEFAULT_SLIPPAGE_BPS = 50
MAX_PRIORITY_FEE_LAMPORTS = 1_000_000


class SwapParameters(ToolParameters):
    input_mint: str = Field(min_length=1, description="The input token mint address")
    output_mint: str = Field(min_length=1, description="The output token mint address")
    amount: float = Field(gt=0, description="The amount to swap, in whole input tokens")


class GetTokenAddressParameters(ToolParameters):
    ticker: str = Field(
        min_length=1, description="The token ticker to lookup (case-sensitive, should be in UPPERCASE)"
    )


SwapParametersSchema = ParameterSchema(SwapParameters)
GetTokenAddressParametersSchema = ParameterSchema(GetTokenAddressParameters)


class JupiterService(CapabilityProvider):
    """Quotes and executes swaps through the Jupiter swap API."""

    protocol_name = "Jupiter"
    supported_chains = frozenset({"solana"})

    def __init__(self, wallet: SolanaPublicKeyWallet, api_key: str | None = None, timeout_seconds: float = 30.0):
        super().__init__()
        self.wallet = wallet
        headers = {"x-api-key": api_key} if api_key else None
        self.client = self.http_client(JUPITER_API_URL, headers=headers, timeout_seconds=timeout_seconds)
        self.search_client = self.http_client(
            DEXSCREENER_API_URL, timeout_seconds=timeout_seconds, service_name="DexScreener"
        )

    async def get_token_address(self, params: GetTokenAddressParameters) -> str:
        """Mint address of the most valuable Solana pair whose base token matches ``ticker``."""
        data = await self.search_client.get("/latest/dex/search", params={"q": params.ticker})
        pairs = [
            pair for pair in (data or {}).get("pairs") or []
            if pair.get("chainId") == "solana"
            and (pair.get("baseToken") or {}).get("symbol", "").lower() == params.ticker.lower()
        ]
        if not pairs:
            raise UnsupportedAssetError(
                f"No Solana token found for ticker {params.ticker}",
                suggestions=["Check the ticker spelling or pass the mint address directly"],
                context={"ticker": params.ticker},
            )
        pairs.sort(key=lambda pair: pair.get("fdv") or 0, reverse=True)
        return pairs[0]["baseToken"]["address"]

    async def get_quote(self, input_mint: str, output_mint: str, amount: int, slippage_bps: int = DEFAULT_SLIPPAGE_BPS) -> dict[str, Any]:
        return await self.client.get(
            "quote",
            params={
                "inputMint": input_mint,
                "outputMint": output_mint,
                "amount": amount,
                "slippageBps": slippage_bps,
            },
        )

    async def get_serialized_transaction(self, quote: dict[str, Any], wallet_address: str) -> dict[str, Any]:
        body = {
            "quoteResponse": quote,
            "userPublicKey": wallet_address,
            "dynamicComputeUnitLimit": True,
            "dynamicSlippage": True,
            "prioritizationFeeLamports": {
                "priorityLevelWithMaxLamports": {
                    "maxLamports": MAX_PRIORITY_FEE_LAMPORTS,
                    "priorityLevel": "veryHigh",
                },
            },
        }
        return await self.client.post("swap", json_body=body)

    async def swap(self, params: SwapParameters) -> dict[str, Any]:
        if not self.wallet.can_sign or not isinstance(self.wallet, SolanaWallet):
            raise WalletError("Jupiter swaps require a Solana wallet with a private key")

        if params.input_mint == WRAPPED_SOL_MINT:
            balance = await self.wallet.get_balance()
        else:
            balance = await self.wallet.get_balance(params.input_mint)
        if balance < params.amount:
            raise InsufficientBalanceError(params.amount, balance, params.input_mint)

        rpc = self.wallet.rpc
        input_decimals = await rpc.get_mint_decimals(params.input_mint)
        output_decimals = await rpc.get_mint_decimals(params.output_mint)
        raw_amount = int(Decimal(str(params.amount)) * 10 ** input_decimals)

        quote = await self.get_quote(params.input_mint, params.output_mint, raw_amount)
        swap_response = await self.get_serialized_transaction(quote, self.wallet.address)
        signature = await self.wallet.send_serialized_transaction(swap_response["swapTransaction"])

        output_amount = int(quote.get("outAmount", 0)) / 10 ** output_decimals
        logger.info(f"Swapped {params.amount} {params.input_mint} for ~{output_amount} {params.output_mint}")
        return {
            "signature": signature,
            "inputMint": params.input_mint,
            "outputMint": params.output_mint,
            "inputAmount": params.amount,
            "outputAmount": output_amount,
        }


class JupiterPlugin(Plugin):
    chain_family = ChainFamily.SOLANA
    tags = ["dex", "solana"]

    def __init__(self, wallet: SolanaPublicKeyWallet, service: JupiterService | None = None, api_key: str | None = None):
        self.service = service or JupiterService(wallet, api_key=api_key)
        super().__init__([self.service], wallet)

    @property
    def name(self) -> str:
        return "jupiter"

    @property
    def description(self) -> str:
        return "Look up Solana token addresses and swap tokens through Jupiter"

    def _public_tools(self) -> dict[str, Tool]:
        return tool_map(
            Tool(
                name="jupiter_get_token_address",
                description="Get a token's mint address / contract address (CA) from a ticker name",
                schema=GetTokenAddressParametersSchema,
                execute=self.service.get_token_address,
            ),
        )

    def _private_tools(self) -> dict[str, Tool]:
        return tool_map(
            Tool(
                name="jupiter_swap",
                description="Swap tokens on Solana using Jupiter",
                schema=SwapParametersSchema,
                execute=self.service.swap,
            ),
        )
