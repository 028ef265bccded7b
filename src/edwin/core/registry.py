"""
Tool Registry.

Aggregates the tools of every active plugin into one flat map, merging a
plugin's private tools only when the session wallet for its chain family can
sign. Name collisions are configuration errors and abort aggregation.
"""

import logging
import re
from typing import Any, Mapping

from edwin.core.chain import ChainFamily, SigningCapability
from edwin.core.plugin import Plugin
from edwin.core.tool import Tool
from edwin.core.wallets.base import Wallet
from edwin.utils.errors import PluginError, ToolCollisionError

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_SEPARATORS = re.compile(r"[^0-9A-Za-z]+")


def canonical_tool_name(name: str) -> str:
    """External name of a tool: upper case with underscore separators.

    ``aave_supply``, ``aaveSupply`` and ``aave-supply`` all become ``AAVE_SUPPLY``.
    """
    snake = _CAMEL_BOUNDARY.sub("_", name)
    return _SEPARATORS.sub("_", snake).strip("_").upper()


class ToolRegistry:
    """Registry of the plugins active in one session."""

    def __init__(self, wallets: Mapping[ChainFamily, Wallet] | None = None):
        """Initialize the registry.

        Args:
            wallets: Session wallets keyed by chain family
        """
        self._wallets: dict[ChainFamily, Wallet] = dict(wallets or {})
        self._plugins: dict[str, Plugin] = {}

        logger.debug("Tool registry initialized")

    def register_plugin(self, plugin: Plugin) -> None:
        """Register a plugin instance.

        Raises:
            PluginError: If a plugin with the same name is already registered
        """
        if plugin.name in self._plugins:
            raise PluginError(
                f"Plugin {plugin.name} is already registered",
                context={"plugin": plugin.name},
            )
        self._plugins[plugin.name] = plugin
        logger.info(f"Registered plugin: {plugin.name}")

    def unregister_plugin(self, plugin_name: str) -> bool:
        """Remove a plugin; returns False when it was not registered."""
        if self._plugins.pop(plugin_name, None) is None:
            return False
        logger.info(f"Unregistered plugin: {plugin_name}")
        return True

    def get_plugin(self, plugin_name: str) -> Plugin | None:
        return self._plugins.get(plugin_name)

    def list_plugins(self) -> list[str]:
        return list(self._plugins)

    @property
    def plugins(self) -> list[Plugin]:
        return list(self._plugins.values())

    def signing_capability_for(self, plugin: Plugin) -> SigningCapability:
        """Signing capability available to ``plugin`` in this session.

        Chain-specific plugins use the session wallet of their family;
        chain-agnostic plugins use whatever wallet they were built with.
        """
        if plugin.chain_family is ChainFamily.ANY:
            return plugin.signing_capability
        wallet = self._wallets.get(plugin.chain_family)
        if wallet is None:
            return SigningCapability.READ_ONLY
        return wallet.capability

    def build_tool_map(self) -> dict[str, Tool]:
        """Aggregate the tools of all registered plugins.

        Returns:
            Tools keyed by their plugin-declared name

        Raises:
            ToolCollisionError: If two tools share a canonical name
            PluginError: If a plugin fails while enumerating its tools
        """
        tools: dict[str, Tool] = {}
        owners: dict[str, tuple[str, str]] = {}

        for plugin in self._plugins.values():
            capability = self.signing_capability_for(plugin)
            try:
                public = plugin.get_public_tools()
                private = plugin.get_private_tools() if capability is SigningCapability.FULL_SIGNING else {}
            except Exception as e:
                raise PluginError(
                    f"Plugin {plugin.name} failed to enumerate its tools: {e}",
                    context={"plugin": plugin.name},
                ) from e

            for tool in [*public.values(), *private.values()]:
                canonical = canonical_tool_name(tool.name)
                if canonical in owners:
                    raise ToolCollisionError(canonical, owners[canonical], (plugin.name, tool.name))
                owners[canonical] = (plugin.name, tool.name)
                tools[tool.name] = tool

            logger.debug(
                f"Plugin {plugin.name}: {len(public)} public, {len(private)} private tools "
                f"(capability={capability.value})"
            )

        logger.info(f"Aggregated {len(tools)} tools from {len(self._plugins)} plugins")
        return tools

    def get_registry_info(self) -> dict[str, Any]:
        """Summary of registered plugins and wallets."""
        return {
            "plugins": [plugin.metadata.to_dict() for plugin in self._plugins.values()],
            "wallets": {
                family.value: {"address": wallet.address, "capability": wallet.capability.value}
                for family, wallet in self._wallets.items()
            },
        }
