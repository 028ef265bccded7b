"""
Solana wallets backed by solders, talking JSON-RPC over aiohttp.
"""

import asyncio
import base64
import itertools
import logging
from typing import Any

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from edwin.core.chain import SOLANA, Chain, ChainFamily, SigningCapability
from edwin.core.http import JsonHttpClient
from edwin.core.wallets.base import Wallet
from edwin.utils.errors import UpstreamError, WalletError

logger = logging.getLogger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


class SolanaRpcClient:
    """Minimal Solana JSON-RPC client."""

    def __init__(self, rpc_url: str, timeout_seconds: float = 30.0):
        self.rpc_url = rpc_url
        self._http = JsonHttpClient(rpc_url, timeout_seconds=timeout_seconds, service_name="solana rpc")
        self._ids = itertools.count(1)

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Invoke one RPC method and return its ``result``.

        Raises:
            UpstreamError: If the node returns an error object
        """
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params or []}
        response = await self._http.post("", json_body=payload)
        if not isinstance(response, dict):
            raise UpstreamError(f"Unexpected RPC response for {method}", operation=method, target=self.rpc_url)
        if response.get("error"):
            error = response["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise UpstreamError(f"Solana RPC {method} failed: {message}", operation=method, target=self.rpc_url)
        return response.get("result")

    async def get_balance(self, address: str) -> int:
        result = await self.call("getBalance", [address, {"commitment": "confirmed"}])
        return int(result["value"])

    async def get_token_accounts(self, owner: str, mint: str | None = None) -> list[dict[str, Any]]:
        """Parsed SPL token accounts of ``owner``, optionally for one mint."""
        selector = {"mint": mint} if mint else {"programId": TOKEN_PROGRAM_ID}
        result = await self.call("getTokenAccountsByOwner", [owner, selector, {"encoding": "jsonParsed"}])
        return result.get("value", [])

    async def get_mint_decimals(self, mint: str) -> int:
        result = await self.call("getAccountInfo", [mint, {"encoding": "jsonParsed"}])
        value = (result or {}).get("value")
        try:
            return int(value["data"]["parsed"]["info"]["decimals"])
        except (TypeError, KeyError) as e:
            raise UpstreamError(
                f"Could not fetch mint info for {mint}", operation="getAccountInfo", target=self.rpc_url
            ) from e

    async def send_transaction(self, raw: bytes) -> str:
        encoded = base64.b64encode(raw).decode("ascii")
        return await self.call(
            "sendTransaction",
            [encoded, {"encoding": "base64", "skipPreflight": False, "maxRetries": 3}],
        )

    async def confirm_transaction(self, signature: str, timeout_seconds: float = 60.0, poll_seconds: float = 2.0) -> None:
        """Poll until ``signature`` is confirmed.

        Raises:
            UpstreamError: If the transaction failed or was not confirmed in time
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_seconds
        while loop.time() < deadline:
            result = await self.call("getSignatureStatuses", [[signature], {"searchTransactionHistory": False}])
            status = (result.get("value") or [None])[0]
            if status:
                if status.get("err"):
                    raise UpstreamError(
                        f"Transaction {signature} failed: {status['err']}",
                        operation="confirm_transaction",
                        target=self.rpc_url,
                    )
                if status.get("confirmationStatus") in ("confirmed", "finalized"):
                    return
            await asyncio.sleep(poll_seconds)
        raise UpstreamError(
            f"Transaction {signature} not confirmed after {timeout_seconds}s",
            operation="confirm_transaction",
            target=self.rpc_url,
        )

    async def close(self) -> None:
        await self._http.close()


class SolanaPublicKeyWallet(Wallet):
    """Read-only Solana wallet for a public key."""

    chain_family = ChainFamily.SOLANA

    def __init__(
        self,
        public_key: str,
        rpc: SolanaRpcClient,
        capability: SigningCapability = SigningCapability.READ_ONLY,
    ):
        super().__init__(capability)
        try:
            self._pubkey = Pubkey.from_string(public_key)
        except Exception as e:
            raise WalletError(f"Invalid Solana public key: {public_key}") from e
        self.rpc = rpc

    @property
    def address(self) -> str:
        return str(self._pubkey)

    @property
    def current_chain(self) -> Chain:
        return SOLANA

    @property
    def public_key(self) -> Pubkey:
        return self._pubkey

    async def get_balance_of(self, address: str, mint: str | None = None) -> float:
        """SOL balance, or the summed balance of one SPL token, for ``address``."""
        if not mint:
            lamports = await self.rpc.get_balance(address)
            return lamports / LAMPORTS_PER_SOL

        total = 0.0
        for account in await self.rpc.get_token_accounts(address, mint):
            info = account["account"]["data"]["parsed"]["info"]
            total += float(info["tokenAmount"].get("uiAmount") or 0)
        return total

    async def get_balance(self, mint: str | None = None) -> float:
        return await self.get_balance_of(self.address, mint)

    async def get_token_balances(self, address: str | None = None) -> list[dict[str, Any]]:
        """Every non-empty SPL token holding of ``address`` (this wallet by default)."""
        owner = address or self.address
        balances = []
        for account in await self.rpc.get_token_accounts(owner):
            info = account["account"]["data"]["parsed"]["info"]
            amount = info["tokenAmount"]
            if float(amount.get("uiAmount") or 0) == 0:
                continue
            balances.append({
                "mint": info["mint"],
                "balance": float(amount.get("uiAmount") or 0),
                "decimals": amount.get("decimals"),
            })
        return balances

    async def close(self) -> None:
        await self.rpc.close()


class SolanaWallet(SolanaPublicKeyWallet):
    """Solana wallet holding a keypair."""

    def __init__(self, private_key: str, rpc: SolanaRpcClient):
        try:
            keypair = Keypair.from_base58_string(private_key)
        except Exception as e:
            raise WalletError("Invalid Solana private key") from e
        super().__init__(str(keypair.pubkey()), rpc, SigningCapability.FULL_SIGNING)
        self._keypair = keypair

    def sign_transaction(self, transaction: VersionedTransaction) -> VersionedTransaction:
        return VersionedTransaction(transaction.message, [self._keypair])

    async def send_serialized_transaction(self, serialized: str, confirm: bool = True) -> str:
        """Sign a base64 versioned transaction built by a third party and broadcast it.

        Returns:
            The transaction signature
        """
        try:
            transaction = VersionedTransaction.from_bytes(base64.b64decode(serialized))
        except Exception as e:
            raise UpstreamError("Received an undecodable transaction", operation="send_transaction") from e

        async with self.lock:
            signed = self.sign_transaction(transaction)
            signature = await self.rpc.send_transaction(bytes(signed))
            logger.info(f"Broadcast Solana transaction {signature}")
            if confirm:
                await self.rpc.confirm_transaction(signature)
        return signature
