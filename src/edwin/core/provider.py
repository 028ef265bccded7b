"""
Base class for capability providers.

A provider is bound to one resource (a wallet or an API credential) for the
lifetime of a session and implements domain operations as coroutines that
take a validated parameter model.
"""

import logging
from typing import ClassVar

from edwin.core.chain import Chain
from edwin.core.http import JsonHttpClient
from edwin.utils.errors import UnsupportedChainError

logger = logging.getLogger(__name__)


class CapabilityProvider:
    """Performs domain operations against one external system.

    Subclasses set ``protocol_name`` and ``supported_chains``; an empty
    ``supported_chains`` means the provider is chain-agnostic.
    """

    protocol_name: ClassVar[str] = "provider"
    supported_chains: ClassVar[frozenset[str]] = frozenset()

    def __init__(self) -> None:
        self._clients: list[JsonHttpClient] = []

    def supports(self, chain: str | Chain) -> bool:
        if not self.supported_chains:
            return True
        return str(chain).lower() in self.supported_chains

    def check_chain(self, chain: str | Chain) -> str:
        """Reject chains outside ``supported_chains``; call before any network I/O.

        Returns:
            The normalized chain name

        Raises:
            UnsupportedChainError: If the chain is not supported
        """
        name = str(chain).lower()
        if not self.supports(name):
            raise UnsupportedChainError(name, self.protocol_name, sorted(self.supported_chains))
        return name

    def http_client(self, base_url: str, **kwargs) -> JsonHttpClient:
        """Create an HTTP client closed together with this provider."""
        kwargs.setdefault("service_name", self.protocol_name)
        client = JsonHttpClient(base_url, **kwargs)
        self._clients.append(client)
        return client

    async def close(self) -> None:
        """Release network resources held by this provider."""
        for client in self._clients:
            await client.close()
        logger.debug(f"Closed provider {self.protocol_name}")

    def __repr__(self) -> str:
        chains = ",".join(sorted(self.supported_chains)) or "*"
        return f"<{self.__class__.__name__}: {self.protocol_name} [{chains}]>"
