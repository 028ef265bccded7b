"""
Hedera account handle.

Hedera is reached through the public mirror-node REST API only, so the wallet
is always read-only.
"""

import re

from edwin.core.chain import HEDERA_CHAINS, Chain, ChainFamily, SigningCapability
from edwin.core.wallets.base import Wallet
from edwin.utils.errors import WalletError

ACCOUNT_ID_RE = re.compile(r"^\d+\.\d+\.\d+$")

MIRROR_NODE_URLS = {
    "mainnet": "https://mainnet-public.mirrornode.hedera.com",
    "testnet": "https://testnet.mirrornode.hedera.com",
    "previewnet": "https://previewnet.mirrornode.hedera.com",
}


class HederaWallet(Wallet):
    """Read-only Hedera account."""

    chain_family = ChainFamily.HEDERA

    def __init__(self, account_id: str, network: str = "mainnet"):
        super().__init__(SigningCapability.READ_ONLY)
        if not ACCOUNT_ID_RE.match(account_id):
            raise WalletError(f"Invalid Hedera account id: {account_id}")
        if network not in HEDERA_CHAINS:
            raise WalletError(f"Unknown Hedera network: {network}")
        self._account_id = account_id
        self.network = network

    @property
    def address(self) -> str:
        return self._account_id

    @property
    def current_chain(self) -> Chain:
        return HEDERA_CHAINS[self.network]

    @property
    def mirror_node_url(self) -> str:
        return MIRROR_NODE_URLS[self.network]
