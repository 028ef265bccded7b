"""
Hedera account balances and token lookup through the public mirror node.
"""

import logging
from typing import Any, Literal

from pydantic import Field

from edwin.core.chain import ChainFamily
from edwin.core.http import JsonHttpClient
from edwin.core.plugin import Plugin, tool_map
from edwin.core.provider import CapabilityProvider
from edwin.core.schema import ParameterSchema, ToolParameters
from edwin.core.tool import Tool
from edwin.core.wallets.hedera import MIRROR_NODE_URLS, HederaWallet
from edwin.utils.errors import UnsupportedAssetError, UpstreamError

logger = logging.getLogger(__name__)

TINYBARS_PER_HBAR = 100_000_000
TOKEN_PAGE_SIZE = 100
MAX_TOKEN_PAGES = 50

HederaNetwork = Literal["mainnet", "testnet", "previewnet"]


class HederaBalanceParameters(ToolParameters):
    account_id: str = Field(min_length=1, description="The Hedera account ID to check the balance of")


class HederaTokenBalanceParameters(ToolParameters):
    account_id: str = Field(min_length=1, description="The Hedera account ID to check the token balance of")
    token_id: str = Field(min_length=1, description="The token ID to check balance for")


class HederaAccountInfoParameters(ToolParameters):
    account_id: str = Field(min_length=1, description="The Hedera account ID to get information for")


class HederaTokenLookupParameters(ToolParameters):
    token_name: str = Field(
        min_length=1, description='The token name or symbol to lookup (e.g., "USDC", "HBAR", "ETH")'
    )
    network: HederaNetwork | None = Field(default=None, description="The Hedera network to search")


class NoParameters(ToolParameters):
    pass


HederaBalanceParametersSchema = ParameterSchema(HederaBalanceParameters)
HederaTokenBalanceParametersSchema = ParameterSchema(HederaTokenBalanceParameters)
HederaAccountInfoParametersSchema = ParameterSchema(HederaAccountInfoParameters)
HederaTokenLookupParametersSchema = ParameterSchema(HederaTokenLookupParameters)
NoParametersSchema = ParameterSchema(NoParameters)


def match_token(tokens: list[dict[str, Any]], search_term: str) -> tuple[str, dict[str, Any]] | None:
    """Best match of ``search_term`` in one page of tokens.

    Returns ``(kind, token)`` where kind is ``symbol``, ``name`` or ``partial``.
    """
    term = search_term.lower()
    for token in tokens:
        if (token.get("symbol") or "").lower() == term:
            return "symbol", token
    for token in tokens:
        if (token.get("name") or "").lower() == term:
            return "name", token
    for token in tokens:
        if term in (token.get("name") or "").lower() or term in (token.get("symbol") or "").lower():
            return "partial", token
    return None


class HederaWalletService(CapabilityProvider):
    """Reads account data from the Hedera mirror node REST API."""

    protocol_name = "Hedera mirror node"
    supported_chains = frozenset(MIRROR_NODE_URLS)

    def __init__(self, wallet: HederaWallet, timeout_seconds: float = 30.0):
        super().__init__()
        self.wallet = wallet
        self.timeout_seconds = timeout_seconds
        self._mirrors: dict[str, JsonHttpClient] = {}

    def mirror(self, network: str | None = None) -> JsonHttpClient:
        network = self.check_chain(network or self.wallet.network)
        if network not in self._mirrors:
            self._mirrors[network] = self.http_client(
                MIRROR_NODE_URLS[network], timeout_seconds=self.timeout_seconds
            )
        return self._mirrors[network]

    async def _account(self, account_id: str) -> dict[str, Any]:
        return await self.mirror().get(f"/api/v1/accounts/{account_id}")

    async def get_hbar_balance(self, params: HederaBalanceParameters) -> float:
        logger.info(f"Getting HBAR balance for Hedera account: {params.account_id}")
        account = await self._account(params.account_id)
        return int(account["balance"]["balance"]) / TINYBARS_PER_HBAR

    async def get_current_hbar_balance(self, params: NoParameters) -> float:
        return await self.get_hbar_balance(HederaBalanceParameters(account_id=self.wallet.address))

    async def get_token_balance(self, params: HederaTokenBalanceParameters) -> float:
        logger.info(f"Getting token balance for account: {params.account_id}, token: {params.token_id}")
        data = await self.mirror().get(
            f"/api/v1/accounts/{params.account_id}/tokens", params={"token.id": params.token_id}
        )
        holdings = (data or {}).get("tokens") or []
        if not holdings:
            return 0.0
        holding = holdings[0]
        decimals = holding.get("decimals")
        if decimals is None:
            token = await self.mirror().get(f"/api/v1/tokens/{params.token_id}")
            decimals = token.get("decimals", 0)
        return int(holding.get("balance", 0)) / 10 ** int(decimals)

    async def get_account_info(self, params: HederaAccountInfoParameters) -> dict[str, Any]:
        account = await self._account(params.account_id)
        balance = account.get("balance") or {}
        return {
            "accountId": account.get("account"),
            "evmAddress": account.get("evm_address"),
            "balance": int(balance.get("balance", 0)) / TINYBARS_PER_HBAR,
            "tokens": balance.get("tokens", []),
            "memo": account.get("memo"),
            "createdTimestamp": account.get("created_timestamp"),
            "deleted": account.get("deleted"),
        }

    async def get_current_account_info(self, params: NoParameters) -> dict[str, Any]:
        return await self.get_account_info(HederaAccountInfoParameters(account_id=self.wallet.address))

    async def lookup_token(self, params: HederaTokenLookupParameters) -> str:
        """Token id for a name or symbol.

        An exact symbol match returns at once. Otherwise the first exact name
        match wins over the first partial match, across all pages searched.
        """
        mirror = self.mirror(params.network)
        next_path: str | None = f"/api/v1/tokens?limit={TOKEN_PAGE_SIZE}"
        name_match: dict[str, Any] | None = None
        partial_match: dict[str, Any] | None = None
        pages = 0

        while next_path and pages < MAX_TOKEN_PAGES:
            data = await mirror.get(next_path)
            tokens = (data or {}).get("tokens")
            if not isinstance(tokens, list):
                raise UpstreamError(
                    "Invalid response format from Mirror Node API",
                    operation="lookup_token",
                    target=mirror.base_url,
                )

            found = match_token(tokens, params.token_name)
            if found:
                kind, token = found
                if kind == "symbol":
                    logger.info(f"Found exact symbol match: {token.get('name')} ({token.get('symbol')})")
                    return token["token_id"]
                if kind == "name" and name_match is None:
                    name_match = token
                elif kind == "partial" and partial_match is None and name_match is None:
                    partial_match = token

            next_path = ((data.get("links") or {}).get("next")) or None
            pages += 1

        if name_match:
            return name_match["token_id"]
        if partial_match:
            return partial_match["token_id"]
        raise UnsupportedAssetError(
            f"No token found with name or symbol: {params.token_name}. Searched {pages} pages of tokens.",
            context={"token_name": params.token_name},
        )


class HederaWalletPlugin(Plugin):
    chain_family = ChainFamily.HEDERA
    tags = ["wallet", "hedera"]

    def __init__(self, wallet: HederaWallet, service: HederaWalletService | None = None):
        self.service = service or HederaWalletService(wallet)
        super().__init__([self.service], wallet)

    @property
    def name(self) -> str:
        return "hedera_wallet"

    @property
    def description(self) -> str:
        return "Hedera HBAR and HTS token balances, account info and token lookup"

    def _public_tools(self) -> dict[str, Tool]:
        return tool_map(
            Tool(
                name="get_hedera_hbar_balance",
                description="Get the HBAR balance of any Hedera account",
                schema=HederaBalanceParametersSchema,
                execute=self.service.get_hbar_balance,
            ),
            Tool(
                name="get_current_hedera_hbar_balance",
                description="Get the HBAR balance of your current Hedera account",
                schema=NoParametersSchema,
                execute=self.service.get_current_hbar_balance,
            ),
            Tool(
                name="get_hedera_hts_token_balance",
                description="Get the balance of an HTS token for any Hedera account",
                schema=HederaTokenBalanceParametersSchema,
                execute=self.service.get_token_balance,
            ),
            Tool(
                name="get_hedera_account_info",
                description="Get information about any Hedera account",
                schema=HederaAccountInfoParametersSchema,
                execute=self.service.get_account_info,
            ),
            Tool(
                name="get_current_hedera_account_info",
                description="Get information about your current Hedera account",
                schema=NoParametersSchema,
                execute=self.service.get_current_account_info,
            ),
            Tool(
                name="lookup_hedera_hts_token_by_name",
                description="Find the token ID of an HTS token by its name or symbol",
                schema=HederaTokenLookupParametersSchema,
                execute=self.service.lookup_token,
            ),
        )
