"""
Wallets for each chain family, tagged with their signing capability.
"""

from edwin.core.wallets.base import Wallet
from edwin.core.wallets.evm import EvmPublicKeyWallet, EvmWallet
from edwin.core.wallets.hedera import HederaWallet
from edwin.core.wallets.solana import SolanaPublicKeyWallet, SolanaRpcClient, SolanaWallet

__all__ = [
    "Wallet",
    "EvmPublicKeyWallet",
    "EvmWallet",
    "HederaWallet",
    "SolanaPublicKeyWallet",
    "SolanaRpcClient",
    "SolanaWallet",
]
