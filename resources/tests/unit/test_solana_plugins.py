"""
Unit tests for the Solana plugins: wallet balances, Jupiter and Meteora.
"""

import pytest
from unittest.mock import AsyncMock, Mock, patch

from edwin.core.chain import ChainFamily, SigningCapability
from edwin.core.wallets import SolanaPublicKeyWallet, SolanaWallet
from edwin.mcp.adapter import McpToolAdapter
from edwin.plugins.jupiter import (
    WRAPPED_SOL_MINT,
    GetTokenAddressParameters,
    JupiterPlugin,
    JupiterService,
    SwapParameters,
)
from edwin.plugins.meteora import MeteoraPlugin, QuoteLiquidityParameters
from edwin.plugins.solana_wallet import SolanaWalletPlugin
from edwin.utils.errors import InsufficientBalanceError, UnsupportedAssetError, UpstreamError, WalletError
from resources.tests.helpers.fakes import FakeWallet

USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
WALLET_ADDRESS = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"


def signing_solana_wallet(balance: float = 5.0):
    wallet = Mock(spec=SolanaWallet)
    wallet.can_sign = True
    wallet.address = WALLET_ADDRESS
    wallet.get_balance = AsyncMock(return_value=balance)
    wallet.rpc = Mock()
    wallet.rpc.get_mint_decimals = AsyncMock(side_effect=[9, 6])
    wallet.send_serialized_transaction = AsyncMock(return_value="5ignature")
    return wallet


class TestSolanaWalletPlugin:
    """Test Solana balance tools."""

    def setup_method(self):
        self.wallet = Mock(spec=SolanaPublicKeyWallet)
        self.wallet.address = WALLET_ADDRESS
        self.plugin = SolanaWalletPlugin(self.wallet)
        self.adapter = McpToolAdapter(self.plugin.get_tools())

    def test_tool_set(self):
        assert sorted(self.adapter.tools) == [
            "CHECK_CURRENT_SOLANA_WALLET_BALANCE",
            "CHECK_SOLANA_WALLET_BALANCE",
            "GET_SOLANA_WALLET_TOKEN_BALANCES",
        ]

    @pytest.mark.asyncio
    async def test_balance_of_any_wallet(self):
        self.wallet.get_balance_of = AsyncMock(return_value=3.25)

        result = await self.plugin.service.get_wallet_balance(
            self.plugin.get_tools()["check_solana_wallet_balance"].schema.validate(
                {"walletAddress": "Other111", "mintAddress": USDC_MINT}
            )
        )

        assert result == {"address": "Other111", "token": USDC_MINT, "balance": 3.25}
        self.wallet.get_balance_of.assert_awaited_once_with("Other111", USDC_MINT)

    @pytest.mark.asyncio
    async def test_current_wallet_sol_balance(self):
        self.wallet.get_balance = AsyncMock(return_value=1.5)

        envelope = await self.adapter.execute("CHECK_CURRENT_SOLANA_WALLET_BALANCE", {})

        assert '"token": "SOL"' in envelope["content"][0]["text"]
        self.wallet.get_balance.assert_awaited_once_with(None)

    @pytest.mark.asyncio
    async def test_token_balances(self):
        self.wallet.get_balance_of = AsyncMock(return_value=0.5)
        self.wallet.get_token_balances = AsyncMock(return_value=[{"mint": USDC_MINT, "balance": 10.0, "decimals": 6}])

        envelope = await self.adapter.execute("GET_SOLANA_WALLET_TOKEN_BALANCES", {})

        assert USDC_MINT in envelope["content"][0]["text"]
        self.wallet.get_token_balances.assert_awaited_once_with(WALLET_ADDRESS)


class TestJupiterPlugin:
    """Test Jupiter token lookup and swaps."""

    def test_read_only_wallet_has_only_lookup(self):
        plugin = JupiterPlugin(FakeWallet(ChainFamily.SOLANA))

        assert set(plugin.get_tools()) == {"jupiter_get_token_address"}

    def test_signing_wallet_adds_swap(self):
        plugin = JupiterPlugin(FakeWallet(ChainFamily.SOLANA, SigningCapability.FULL_SIGNING))

        assert set(plugin.get_private_tools()) == {"jupiter_swap"}

    def test_api_key_header(self):
        service = JupiterService(FakeWallet(ChainFamily.SOLANA), api_key="jup-key")
        assert service.client.headers["x-api-key"] == "jup-key"

    @pytest.mark.asyncio
    async def test_get_token_address_prefers_highest_fdv(self):
        service = JupiterService(FakeWallet(ChainFamily.SOLANA))
        search = {"pairs": [
            {"chainId": "solana", "fdv": 1_000, "baseToken": {"symbol": "BONK", "address": "FakeBonk"}},
            {"chainId": "ethereum", "fdv": 10 ** 12, "baseToken": {"symbol": "BONK", "address": "0xbonk"}},
            {"chainId": "solana", "fdv": 10 ** 9, "baseToken": {"symbol": "Bonk", "address": "RealBonk"}},
            {"chainId": "solana", "fdv": 10 ** 10, "baseToken": {"symbol": "SOL", "address": "Sol"}},
        ]}

        with patch.object(service.search_client, "get", AsyncMock(return_value=search)) as get:
            address = await service.get_token_address(GetTokenAddressParameters(ticker="BONK"))

        assert address == "RealBonk"
        get.assert_awaited_once_with("/latest/dex/search", params={"q": "BONK"})

    @pytest.mark.asyncio
    async def test_get_token_address_not_found(self):
        service = JupiterService(FakeWallet(ChainFamily.SOLANA))

        with patch.object(service.search_client, "get", AsyncMock(return_value={"pairs": None})):
            with pytest.raises(UnsupportedAssetError, match="No Solana token found for ticker NOPE"):
                await service.get_token_address(GetTokenAddressParameters(ticker="NOPE"))

    @pytest.mark.asyncio
    async def test_swap(self):
        wallet = signing_solana_wallet(balance=5.0)
        service = JupiterService(wallet)
        quote = {"inAmount": "1000000000", "outAmount": "150000000"}

        with patch.object(service.client, "get", AsyncMock(return_value=quote)) as get, \
                patch.object(service.client, "post", AsyncMock(return_value={"swapTransaction": "dHg="})) as post:
            result = await service.swap(SwapParameters(input_mint=WRAPPED_SOL_MINT, output_mint=USDC_MINT, amount=1))

        assert result == {
            "signature": "5ignature",
            "inputMint": WRAPPED_SOL_MINT,
            "outputMint": USDC_MINT,
            "inputAmount": 1.0,
            "outputAmount": 150.0,
        }
        wallet.get_balance.assert_awaited_once_with()
        assert get.await_args.kwargs["params"]["amount"] == 1_000_000_000
        body = post.await_args.kwargs["json_body"]
        assert body["quoteResponse"] == quote
        assert body["userPublicKey"] == WALLET_ADDRESS
        wallet.send_serialized_transaction.assert_awaited_once_with("dHg=")

    @pytest.mark.asyncio
    async def test_swap_checks_token_balance(self):
        wallet = signing_solana_wallet(balance=0.5)
        service = JupiterService(wallet)

        with patch.object(service.client, "get", AsyncMock()) as get:
            with pytest.raises(InsufficientBalanceError):
                await service.swap(SwapParameters(input_mint=USDC_MINT, output_mint=WRAPPED_SOL_MINT, amount=1))

        wallet.get_balance.assert_awaited_once_with(USDC_MINT)
        get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_swap_requires_signing_wallet(self):
        service = JupiterService(FakeWallet(ChainFamily.SOLANA, SigningCapability.FULL_SIGNING))

        with pytest.raises(WalletError, match="private key"):
            await service.swap(SwapParameters(input_mint=USDC_MINT, output_mint=WRAPPED_SOL_MINT, amount=1))


class TestMeteoraPlugin:
    """Test Meteora pool search and quotes."""

    def setup_method(self):
        self.plugin = MeteoraPlugin(FakeWallet(ChainFamily.SOLANA))
        self.service = self.plugin.service
        self.adapter = McpToolAdapter(self.plugin.get_tools())

    def test_tools_are_public(self):
        assert sorted(self.adapter.tools) == ["METEORA_GET_POOLS", "METEORA_QUOTE_LIQUIDITY"]

    @pytest.mark.asyncio
    async def test_get_pools(self):
        pairs = {"pairs": [{"address": "Pool1", "name": "SOL-USDC", "apr": 12.5, "current_price": 150.0, "hidden": 1}]}

        with patch.object(self.service.client, "get", AsyncMock(return_value=pairs)) as get:
            envelope = await self.adapter.execute("METEORA_GET_POOLS", {"asset": "sol", "assetB": "usdc"})

        text = envelope["content"][0]["text"]
        assert '"apr_percentage": 12.5' in text
        assert "hidden" not in text
        get.assert_awaited_once_with(
            "/pair/all_with_pagination", params={"search_term": "sol-usdc", "limit": 10}
        )

    @pytest.mark.asyncio
    async def test_get_pools_none_found(self):
        with patch.object(self.service.client, "get", AsyncMock(return_value={"pairs": []})):
            envelope = await self.adapter.execute("METEORA_GET_POOLS", {"asset": "sol", "assetB": "nope"})

        assert envelope["isError"] is True
        assert "No pool found for sol-nope" in envelope["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_quote_infers_auto_side(self):
        pool = {"name": "SOL-USDC", "current_price": 150.0}

        with patch.object(self.service.client, "get", AsyncMock(return_value=pool)):
            derived_b = await self.service.quote_liquidity(
                QuoteLiquidityParameters(pool_address="Pool1", amount=2, amount_b="auto")
            )
            derived_a = await self.service.quote_liquidity(
                QuoteLiquidityParameters(pool_address="Pool1", amount="auto", amount_b=300)
            )

        assert derived_b["amountB"] == 300.0
        assert derived_a["amount"] == 2.0
        assert derived_a["currentPrice"] == 150.0

    @pytest.mark.asyncio
    async def test_quote_without_price(self):
        with patch.object(self.service.client, "get", AsyncMock(return_value={"name": "X"})):
            with pytest.raises(UpstreamError, match="no current price"):
                await self.service.quote_liquidity(
                    QuoteLiquidityParameters(pool_address="Pool1", amount=1, amount_b="auto")
                )
