"""
Aave V3 lending: supply and withdraw on Base.
"""

import logging
from decimal import Decimal
from typing import Awaitable, TypeVar

from pydantic import Field
from web3 import Web3

from edwin.core.chain import ChainFamily
from edwin.core.plugin import Plugin, tool_map
from edwin.core.provider import CapabilityProvider
from edwin.core.schema import ParameterSchema, ToolParameters
from edwin.core.tool import Tool
from edwin.core.wallets.evm import ERC20_ABI, EvmPublicKeyWallet, EvmWallet
from edwin.utils.errors import (
    EdwinError,
    InsufficientBalanceError,
    UnsupportedAssetError,
    UpstreamError,
    WalletError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

AAVE_V3_POOLS = {
    "base": "0xA238Dd80C259a72e81d7e4664a9801593F98d1c5",
}

# symbol -> (address, decimals)
AAVE_V3_ASSETS = {
    "base": {
        "usdc": ("0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913", 6),
        "weth": ("0x4200000000000000000000000000000000000006", 18),
        "cbeth": ("0x2Ae3F1Ec7F1F5012CFEab0185bfc7aa3cf0DEc22", 18),
    },
}

AAVE_V3_POOL_ABI = [
    {
        "inputs": [
            {"name": "asset", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "onBehalfOf", "type": "address"},
            {"name": "referralCode", "type": "uint16"},
        ],
        "name": "supply",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "asset", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "to", "type": "address"},
        ],
        "name": "withdraw",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


class SupplyParameters(ToolParameters):
    chain: str = Field(min_length=1, description="The chain to supply assets on")
    asset: str = Field(min_length=1, description="The asset to supply")
    amount: float = Field(gt=0, description="The amount to supply")


class WithdrawParameters(ToolParameters):
    chain: str = Field(min_length=1, description="The chain to withdraw assets from")
    asset: str = Field(min_length=1, description="The asset to withdraw")
    amount: float = Field(gt=0, description="The amount to withdraw")


SupplyParametersSchema = ParameterSchema(SupplyParameters)
WithdrawParametersSchema = ParameterSchema(WithdrawParameters)


class AaveService(CapabilityProvider):
    """Supplies to and withdraws from Aave V3 pools."""

    protocol_name = "Aave protocol"
    supported_chains = frozenset(AAVE_V3_POOLS)

    def __init__(self, wallet: EvmPublicKeyWallet):
        super().__init__()
        self.wallet = wallet

    def _signer(self) -> EvmWallet:
        if not self.wallet.can_sign:
            raise WalletError("Aave transactions require an EVM wallet with a private key")
        return self.wallet

    def _resolve_asset(self, chain: str, asset: str) -> tuple[str, int]:
        assets = AAVE_V3_ASSETS.get(chain, {})
        key = asset.lower()
        if key in assets:
            return assets[key]
        if Web3.is_address(asset):
            for address, decimals in assets.values():
                if address.lower() == key:
                    return address, decimals
        raise UnsupportedAssetError(
            f"Asset {asset} is not supported by Aave on {chain}",
            suggestions=[f"Supported assets: {', '.join(s.upper() for s in assets)}"],
            context={"asset": asset, "chain": chain},
        )

    async def _contract_call(self, operation: str, chain: str, target: str, call: Awaitable[T]) -> T:
        """Await a contract read or transaction build, wrapping failures."""
        try:
            return await call
        except EdwinError:
            raise
        except Exception as e:
            raise UpstreamError(
                f"Aave {operation} failed on {chain}: {e}",
                operation=f"aave_{operation}",
                target=target,
            ) from e

    async def supply(self, params: SupplyParameters) -> str:
        chain = self.check_chain(params.chain)
        asset_address, decimals = self._resolve_asset(chain, params.asset)
        wallet = self._signer()
        amount = int(Decimal(str(params.amount)) * 10 ** decimals)
        logger.info(f"Supplying {params.amount} {params.asset} to Aave on {chain}")

        async with wallet.on_chain(chain) as w3:
            token = w3.eth.contract(address=Web3.to_checksum_address(asset_address), abi=ERC20_ABI)
            pool_address = Web3.to_checksum_address(AAVE_V3_POOLS[chain])

            balance = await self._contract_call(
                "balance_of", chain, asset_address, token.functions.balanceOf(wallet.address).call()
            )
            if balance < amount:
                raise InsufficientBalanceError(params.amount, balance / 10 ** decimals, params.asset)

            allowance = await self._contract_call(
                "allowance", chain, asset_address, token.functions.allowance(wallet.address, pool_address).call()
            )
            if allowance < amount:
                approve_tx = await self._contract_call(
                    "approve", chain, asset_address,
                    token.functions.approve(pool_address, amount).build_transaction({"from": wallet.address}),
                )
                approve_hash = await wallet.send_transaction(w3, approve_tx)
                logger.debug(f"Approved {params.asset} for Aave pool: {approve_hash}")

            pool = w3.eth.contract(address=pool_address, abi=AAVE_V3_POOL_ABI)
            supply_tx = await self._contract_call(
                "supply", chain, pool_address,
                pool.functions.supply(
                    Web3.to_checksum_address(asset_address), amount, wallet.address, 0
                ).build_transaction({"from": wallet.address}),
            )
            tx_hash = await wallet.send_transaction(w3, supply_tx)

        return (
            f"Successfully supplied {params.amount} {params.asset} to Aave, "
            f"transaction signature: {tx_hash}"
        )

    async def withdraw(self, params: WithdrawParameters) -> str:
        chain = self.check_chain(params.chain)
        asset_address, decimals = self._resolve_asset(chain, params.asset)
        wallet = self._signer()
        amount = int(Decimal(str(params.amount)) * 10 ** decimals)
        logger.info(f"Withdrawing {params.amount} {params.asset} from Aave on {chain}")

        async with wallet.on_chain(chain) as w3:
            pool_address = Web3.to_checksum_address(AAVE_V3_POOLS[chain])
            pool = w3.eth.contract(address=pool_address, abi=AAVE_V3_POOL_ABI)
            withdraw_tx = await self._contract_call(
                "withdraw", chain, pool_address,
                pool.functions.withdraw(
                    Web3.to_checksum_address(asset_address), amount, wallet.address
                ).build_transaction({"from": wallet.address}),
            )
            tx_hash = await wallet.send_transaction(w3, withdraw_tx)

        return (
            f"Successfully withdrew {params.amount} {params.asset} from Aave, "
            f"transaction signature: {tx_hash}"
        )


class AavePlugin(Plugin):
    """Aave lending tools. All of them sign transactions."""

    chain_family = ChainFamily.EVM
    tags = ["lending", "evm"]

    def __init__(self, wallet: EvmPublicKeyWallet, service: AaveService | None = None):
        self.service = service or AaveService(wallet)
        super().__init__([self.service], wallet)

    @property
    def name(self) -> str:
        return "aave"

    @property
    def description(self) -> str:
        return "Supply and withdraw assets on Aave V3"

    def _private_tools(self) -> dict[str, Tool]:
        return tool_map(
            Tool(
                name="aave_supply",
                description="Supply assets to Aave protocol",
                schema=SupplyParametersSchema,
                execute=self.service.supply,
            ),
            Tool(
                name="aave_withdraw",
                description="Withdraw assets from Aave protocol",
                schema=WithdrawParametersSchema,
                execute=self.service.withdraw,
            ),
        )
