"""
Wallet base class.

Signing capability and chain family are fixed when a wallet is built; the
registry reads the tag instead of inspecting wallet classes.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import ClassVar

from edwin.core.chain import Chain, ChainFamily, SigningCapability


class Wallet(ABC):
    """A handle on one account in one chain family."""

    chain_family: ClassVar[ChainFamily]

    def __init__(self, capability: SigningCapability):
        self._capability = capability
        # Serializes "select chain, then act" and transaction sequencing
        self.lock = asyncio.Lock()

    @property
    def capability(self) -> SigningCapability:
        return self._capability

    @property
    def can_sign(self) -> bool:
        return self._capability is SigningCapability.FULL_SIGNING

    @property
    def current_chain(self) -> Chain:
        """Concrete network this wallet acts on."""
        return Chain(self.chain_family.value, self.chain_family)

    @property
    @abstractmethod
    def address(self) -> str:
        """Public address or account id of this wallet."""
        pass

    async def close(self) -> None:
        """Release network resources."""
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.chain_family.value} {self.address} ({self._capability.value})>"
