"""
Base classes for plugins.

A plugin owns one or more capability providers and exposes their operations
as two disjoint tool maps: public tools that need no signing key and private
tools that do.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar

from edwin.core.chain import Chain, ChainFamily, SigningCapability
from edwin.core.provider import CapabilityProvider
from edwin.core.tool import Tool
from edwin.core.wallets.base import Wallet
from edwin.utils.errors import PluginError

logger = logging.getLogger(__name__)


@dataclass
class PluginMetadata:
    """Metadata for plugins."""

    name: str
    version: str
    description: str
    chain_family: str
    providers: list[str]
    tags: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert metadata to dictionary."""
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "chain_family": self.chain_family,
            "providers": self.providers,
            "tags": self.tags or [],
        }


def tool_map(*tools: Tool) -> dict[str, Tool]:
    """Key tools by name, rejecting duplicates."""
    tools_by_name: dict[str, Tool] = {}
    for tool in tools:
        if tool.name in tools_by_name:
            raise PluginError(f"Duplicate tool name in one tool set: {tool.name}")
        tools_by_name[tool.name] = tool
    return tools_by_name


class Plugin(ABC):
    """Abstract base class for all plugins.

    Subclasses implement ``_public_tools`` and/or ``_private_tools``. The base
    class enforces that private tools only appear for a signing wallet and
    that the two sets never share a name.
    """

    chain_family: ClassVar[ChainFamily] = ChainFamily.ANY
    tags: ClassVar[list[str]] = []

    def __init__(self, providers: list[CapabilityProvider] | None = None, wallet: Wallet | None = None):
        """Initialize the plugin.

        Args:
            providers: Capability providers owned by this plugin
            wallet: Wallet the providers are bound to, if any
        """
        self._providers = tuple(providers or ())
        self.wallet = wallet
        self._metadata: PluginMetadata | None = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the unique name of this plugin."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Get a human-readable description of this plugin."""
        pass

    @property
    def version(self) -> str:
        """Get the version of this plugin."""
        return "1.0.0"

    @property
    def providers(self) -> tuple[CapabilityProvider, ...]:
        return self._providers

    @property
    def signing_capability(self) -> SigningCapability:
        """Capability of the bound wallet; no wallet means read-only."""
        if self.wallet is None:
            return SigningCapability.READ_ONLY
        return self.wallet.capability

    @property
    def metadata(self) -> PluginMetadata:
        """Get plugin metadata."""
        if self._metadata is None:
            self._metadata = PluginMetadata(
                name=self.name,
                version=self.version,
                description=self.description,
                chain_family=self.chain_family.value,
                providers=[p.protocol_name for p in self._providers],
                tags=list(self.tags) or None,
            )
        return self._metadata

    def _public_tools(self) -> dict[str, Tool]:
        return {}

    def _private_tools(self) -> dict[str, Tool]:
        return {}

    def get_public_tools(self) -> dict[str, Tool]:
        """Tools that are safe to list and run with a read-only wallet or none."""
        if not self._providers:
            return {}
        return self._public_tools()

    def get_private_tools(self) -> dict[str, Tool]:
        """Tools that need a signing wallet; empty when the wallet cannot sign."""
        if not self._providers or self.signing_capability is not SigningCapability.FULL_SIGNING:
            return {}
        return self._private_tools()

    def get_tools(self) -> dict[str, Tool]:
        """Disjoint union of public and private tools.

        Raises:
            PluginError: If a name appears in both sets
        """
        public = self.get_public_tools()
        private = self.get_private_tools()
        overlap = public.keys() & private.keys()
        if overlap:
            raise PluginError(
                f"Plugin {self.name} declares tools as both public and private: {', '.join(sorted(overlap))}",
                context={"plugin": self.name, "tools": sorted(overlap)},
            )
        return {**public, **private}

    @classmethod
    def supports_chain(cls, chain: Chain) -> bool:
        """Whether this plugin can be used with ``chain``. Pure predicate."""
        return cls.chain_family is ChainFamily.ANY or chain.family is cls.chain_family

    def validate(self) -> bool:
        """Validate that the plugin is properly configured.

        Returns:
            True if plugin is valid, False otherwise
        """
        if not self.name or not isinstance(self.name, str):
            logger.error(f"Plugin {self.__class__.__name__} has invalid name")
            return False

        if not self.description or not isinstance(self.description, str):
            logger.error(f"Plugin {self.name} has invalid description")
            return False

        try:
            tools = self.get_tools()
        except PluginError as e:
            logger.error(f"Plugin {self.name} failed tool enumeration: {e}")
            return False

        for tool_name, tool in tools.items():
            if tool_name != tool.name or not tool.description:
                logger.error(f"Plugin {self.name} has invalid tool entry: {tool_name}")
                return False

        return True

    async def close(self) -> None:
        """Release resources of every owned provider."""
        for provider in self._providers:
            await provider.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.name} v{self.version}>"
