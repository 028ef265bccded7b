"""
Chain families, chains and wallet signing capability tags.
"""

from dataclasses import dataclass
from enum import Enum


class ChainFamily(str, Enum):
    """Category of ledger a wallet or plugin targets."""

    EVM = "evm"
    SOLANA = "solana"
    HEDERA = "hedera"
    ANY = "any"


class SigningCapability(str, Enum):
    """Whether a wallet can authorize transactions."""

    READ_ONLY = "read_only"
    FULL_SIGNING = "full_signing"


@dataclass(frozen=True)
class Chain:
    """A concrete network inside a chain family."""

    name: str
    family: ChainFamily
    chain_id: int | None = None

    def __str__(self) -> str:
        return self.name


EVM_CHAINS: dict[str, Chain] = {
    chain.name: chain
    for chain in (
        Chain("mainnet", ChainFamily.EVM, 1),
        Chain("base", ChainFamily.EVM, 8453),
        Chain("arbitrum", ChainFamily.EVM, 42161),
        Chain("optimism", ChainFamily.EVM, 10),
        Chain("polygon", ChainFamily.EVM, 137),
        Chain("sepolia", ChainFamily.EVM, 11155111),
    )
}

SOLANA = Chain("solana", ChainFamily.SOLANA)

HEDERA_CHAINS: dict[str, Chain] = {
    name: Chain(name, ChainFamily.HEDERA) for name in ("mainnet", "testnet", "previewnet")
}


def get_evm_chain(name: str) -> Chain:
    """Look up an EVM chain by name (case-insensitive).

    Raises:
        KeyError: If the chain is unknown
    """
    return EVM_CHAINS[name.lower()]
