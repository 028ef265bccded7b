"""
EVM wallets backed by web3.py and eth-account.

``EvmPublicKeyWallet`` reads balances for a bare address. ``EvmWallet`` adds
a private key and can sign. Both keep a current chain that is only changed
inside ``on_chain``, which holds the wallet lock for the whole
"switch chain, then act" sequence.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from edwin.core.chain import EVM_CHAINS, Chain, ChainFamily, SigningCapability
from edwin.core.wallets.base import Wallet
from edwin.utils.errors import UnsupportedChainError, UpstreamError, WalletError

logger = logging.getLogger(__name__)

NATIVE_TOKEN_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

ERC20_ABI = [
    {
        "inputs": [{"name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"name": "spender", "type": "address"}, {"name": "amount", "type": "uint256"}],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [{"name": "owner", "type": "address"}, {"name": "spender", "type": "address"}],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]


class EvmPublicKeyWallet(Wallet):
    """Read-only EVM wallet for a public address."""

    chain_family = ChainFamily.EVM

    def __init__(
        self,
        address: str,
        rpc_urls: dict[str, str],
        default_chain: str = "base",
        capability: SigningCapability = SigningCapability.READ_ONLY,
    ):
        super().__init__(capability)
        if not Web3.is_address(address):
            raise WalletError(f"Invalid EVM address: {address}")
        self._address = Web3.to_checksum_address(address)
        self.rpc_urls = {name.lower(): url for name, url in rpc_urls.items()}
        self._chain = default_chain.lower()
        self._clients: dict[str, AsyncWeb3] = {}
        self._require_chain(self._chain)

    @property
    def address(self) -> str:
        return self._address

    @property
    def chain(self) -> str:
        """Currently selected chain."""
        return self._chain

    @property
    def current_chain(self) -> Chain:
        return EVM_CHAINS.get(self._chain) or Chain(self._chain, ChainFamily.EVM)

    def _require_chain(self, chain: str) -> str:
        name = chain.lower()
        if name not in self.rpc_urls:
            raise UnsupportedChainError(name, "evm wallet", sorted(self.rpc_urls))
        return name

    def get_web3(self, chain: str | None = None) -> AsyncWeb3:
        """Get (and cache) an async web3 client for ``chain`` or the current chain."""
        name = self._require_chain(chain or self._chain)
        if name not in self._clients:
            self._clients[name] = AsyncWeb3(AsyncHTTPProvider(self.rpc_urls[name]))
        return self._clients[name]

    def switch_chain(self, chain: str) -> None:
        """Select a new current chain.

        Mutates shared wallet state; callers in flight on another chain must
        hold ``self.lock`` (use ``on_chain``).
        """
        name = self._require_chain(chain)
        if name != self._chain:
            logger.debug(f"Switching EVM wallet {self._address} from {self._chain} to {name}")
        self._chain = name

    @asynccontextmanager
    async def on_chain(self, chain: str) -> AsyncIterator[AsyncWeb3]:
        """Hold the wallet lock, switch to ``chain`` and yield its web3 client."""
        async with self.lock:
            self.switch_chain(chain)
            yield self.get_web3(chain)

    async def get_balance_of(
        self,
        address: str,
        chain: str | None = None,
        token_address: str | None = None,
    ) -> float:
        """Balance of ``address`` in whole units of the native token or an ERC-20.

        Raises:
            UpstreamError: If the RPC call fails
        """
        w3 = self.get_web3(chain)
        owner = Web3.to_checksum_address(address)
        target = chain or self._chain
        try:
            if not token_address or token_address.lower() == NATIVE_TOKEN_ADDRESS.lower():
                wei = await w3.eth.get_balance(owner)
                return float(Web3.from_wei(wei, "ether"))

            token = w3.eth.contract(address=Web3.to_checksum_address(token_address), abi=ERC20_ABI)
            raw = await token.functions.balanceOf(owner).call()
            try:
                decimals = await token.functions.decimals().call()
            except Exception:
                logger.debug(f"decimals() failed for {token_address} on {target}, assuming 18")
                decimals = 18
            return raw / 10 ** decimals
        except (UnsupportedChainError, WalletError):
            raise
        except Exception as e:
            raise UpstreamError(
                f"Failed to get balance for {address} on {target}: {e}",
                operation="get_balance",
                target=target,
            ) from e

    async def get_balance(self, chain: str | None = None, token_address: str | None = None) -> float:
        """Balance of this wallet."""
        return await self.get_balance_of(self._address, chain, token_address)

    async def close(self) -> None:
        for w3 in self._clients.values():
            await w3.provider.disconnect()
        self._clients.clear()


class EvmWallet(EvmPublicKeyWallet):
    """EVM wallet holding a private key."""

    def __init__(self, private_key: str, rpc_urls: dict[str, str], default_chain: str = "base"):
        try:
            account = Account.from_key(private_key)
        except Exception as e:
            raise WalletError("Invalid EVM private key") from e
        super().__init__(account.address, rpc_urls, default_chain, SigningCapability.FULL_SIGNING)
        self._account = account

    async def send_transaction(self, w3: AsyncWeb3, tx: dict[str, Any], wait: bool = True) -> str:
        """Sign and broadcast ``tx`` on the chain ``w3`` points at.

        Must be called inside ``on_chain`` so nonces are allocated in order.

        Returns:
            The transaction hash as 0x-prefixed hex

        Raises:
            UpstreamError: If broadcasting fails or the transaction reverts
        """
        if not self.lock.locked():
            raise WalletError("send_transaction must run inside on_chain()")

        tx = dict(tx)
        tx["from"] = self.address
        try:
            tx["nonce"] = await w3.eth.get_transaction_count(self.address, "pending")
            if "chainId" not in tx:
                tx["chainId"] = chain_id_for(self.chain) or await w3.eth.chain_id
            if "gas" not in tx:
                tx["gas"] = await w3.eth.estimate_gas(tx)
            if "gasPrice" not in tx and "maxFeePerGas" not in tx:
                tx["gasPrice"] = await w3.eth.gas_price

            signed = self._account.sign_transaction(tx)
            tx_hash = Web3.to_hex(await w3.eth.send_raw_transaction(signed.raw_transaction))
            logger.info(f"Broadcast transaction {tx_hash} on {self.chain}")

            if wait:
                receipt = await w3.eth.wait_for_transaction_receipt(tx_hash)
                if receipt["status"] != 1:
                    raise UpstreamError(
                        f"Transaction {tx_hash} reverted",
                        operation="send_transaction",
                        target=self.chain,
                    )
            return tx_hash
        except UpstreamError:
            raise
        except Exception as e:
            raise UpstreamError(
                f"Transaction failed on {self.chain}: {e}",
                operation="send_transaction",
                target=self.chain,
            ) from e


def chain_id_for(chain: str) -> int | None:
    known = EVM_CHAINS.get(chain.lower())
    return known.chain_id if known else None
