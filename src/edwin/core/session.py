"""
Session wiring.

Builds the wallets and plugins a configuration allows, registers them and
aggregates the tool map once at startup so configuration errors surface
before any tool is served.
"""

import logging
from typing import Any, Callable, Mapping

from edwin.core.chain import ChainFamily
from edwin.core.plugin import Plugin
from edwin.core.registry import ToolRegistry
from edwin.core.tool import Tool
from edwin.core.wallets import (
    EvmPublicKeyWallet,
    EvmWallet,
    HederaWallet,
    SolanaPublicKeyWallet,
    SolanaRpcClient,
    SolanaWallet,
    Wallet,
)
from edwin.plugins import BUILTIN_PLUGINS
from edwin.plugins.aave import AavePlugin
from edwin.plugins.cookie import CookiePlugin, CookieSwarmClient
from edwin.plugins.dexscreener import DexScreenerPlugin, DexScreenerService
from edwin.plugins.eoracle import EOraclePlugin, EOracleService
from edwin.plugins.evm_wallet import EvmWalletPlugin
from edwin.plugins.hedera_wallet import HederaWalletPlugin, HederaWalletService
from edwin.plugins.jupiter import JupiterPlugin, JupiterService
from edwin.plugins.meteora import MeteoraPlugin, MeteoraService
from edwin.plugins.solana_wallet import SolanaWalletPlugin
from edwin.utils.config import EdwinSettings, get_settings
from edwin.utils.errors import ConfigurationError, EdwinError, PluginError

logger = logging.getLogger(__name__)


def build_wallets(settings: EdwinSettings) -> dict[ChainFamily, Wallet]:
    """Create one wallet per configured chain family.

    A private key takes precedence over a public key for the same family.
    """
    wallets: dict[ChainFamily, Wallet] = {}

    if settings.evm_private_key:
        wallets[ChainFamily.EVM] = EvmWallet(
            settings.evm_private_key, settings.evm_rpc_urls, settings.evm_default_chain
        )
    elif settings.evm_public_key:
        wallets[ChainFamily.EVM] = EvmPublicKeyWallet(
            settings.evm_public_key, settings.evm_rpc_urls, settings.evm_default_chain
        )

    if settings.solana_private_key or settings.solana_public_key:
        rpc = SolanaRpcClient(settings.solana_rpc_url, timeout_seconds=settings.http_timeout_seconds)
        if settings.solana_private_key:
            wallets[ChainFamily.SOLANA] = SolanaWallet(settings.solana_private_key, rpc)
        else:
            wallets[ChainFamily.SOLANA] = SolanaPublicKeyWallet(settings.solana_public_key, rpc)

    if settings.hedera_account_id:
        wallets[ChainFamily.HEDERA] = HederaWallet(settings.hedera_account_id, settings.hedera_network)

    for family, wallet in wallets.items():
        logger.info(f"Wallet ready: {family.value} {wallet.address} ({wallet.capability.value})")
    return wallets


def build_plugins(settings: EdwinSettings, wallets: Mapping[ChainFamily, Wallet]) -> list[Plugin]:
    """Instantiate the plugins the configured wallets and credentials enable.

    Raises:
        ConfigurationError: If the allow-list names an unknown plugin
        PluginError: If a plugin fails to construct
    """
    allowed = set(settings.plugins)
    unknown = allowed - set(BUILTIN_PLUGINS)
    if unknown:
        raise ConfigurationError(
            f"Unknown plugins in allow-list: {', '.join(sorted(unknown))}",
            suggestions=[f"Known plugins: {', '.join(sorted(BUILTIN_PLUGINS))}"],
        )

    timeout = settings.http_timeout_seconds
    factories: list[tuple[str, Wallet | None, Callable[[], Plugin]]] = []

    evm = wallets.get(ChainFamily.EVM)
    if evm is not None:
        factories.append(("evm_wallet", evm, lambda evm=evm: EvmWalletPlugin(evm)))
        factories.append(("aave", evm, lambda evm=evm: AavePlugin(evm)))

    solana = wallets.get(ChainFamily.SOLANA)
    if solana is not None:
        factories.append(("solana_wallet", solana, lambda solana=solana: SolanaWalletPlugin(solana)))
        factories.append((
            "jupiter",
            solana,
            lambda solana=solana: JupiterPlugin(
                solana,
                service=JupiterService(solana, api_key=settings.jupiter_api_key, timeout_seconds=timeout),
            ),
        ))
        factories.append((
            "meteora",
            solana,
            lambda solana=solana: MeteoraPlugin(solana, service=MeteoraService(solana, timeout_seconds=timeout)),
        ))

    hedera = wallets.get(ChainFamily.HEDERA)
    if hedera is not None:
        factories.append((
            "hedera_wallet",
            hedera,
            lambda hedera=hedera: HederaWalletPlugin(
                hedera, service=HederaWalletService(hedera, timeout_seconds=timeout)
            ),
        ))

    # Factories run after this function has built the list; bind credentials now
    if settings.cookie_api_key:
        factories.append((
            "cookie",
            None,
            lambda key=settings.cookie_api_key: CookiePlugin(
                key, service=CookieSwarmClient(key, timeout_seconds=timeout)
            ),
        ))

    if settings.eoracle_api_key and settings.eoracle_api_url:
        factories.append((
            "eoracle",
            None,
            lambda key=settings.eoracle_api_key, url=settings.eoracle_api_url: EOraclePlugin(
                key, url, service=EOracleService(key, url, timeout_seconds=timeout)
            ),
        ))

    factories.append((
        "dexscreener",
        None,
        lambda: DexScreenerPlugin(service=DexScreenerService(timeout_seconds=timeout)),
    ))

    plugins: list[Plugin] = []
    for name, wallet, factory in factories:
        if allowed and name not in allowed:
            logger.debug(f"Plugin {name} not in allow-list, skipping")
            continue

        if wallet is not None and not BUILTIN_PLUGINS[name].supports_chain(wallet.current_chain):
            logger.warning(f"Plugin {name} does not support chain {wallet.current_chain}, skipping")
            continue

        try:
            plugins.append(factory())
        except EdwinError:
            raise
        except Exception as e:
            raise PluginError(
                f"Failed to construct plugin {name}: {e}",
                context={"plugin": name},
            ) from e

    logger.info(f"Enabled plugins: {', '.join(p.name for p in plugins)}")
    return plugins


class Edwin:
    """One configured session: wallets, plugins and the aggregated tool map."""

    def __init__(
        self,
        settings: EdwinSettings | None = None,
        wallets: Mapping[ChainFamily, Wallet] | None = None,
        plugins: list[Plugin] | None = None,
    ):
        """Wire a session.

        Args:
            settings: Configuration; the global settings when omitted
            wallets: Prebuilt wallets; built from settings when omitted
            plugins: Prebuilt plugins; built from settings when omitted

        Raises:
            ToolCollisionError: If two tools share a canonical name
            PluginError: If a plugin fails to construct or enumerate
        """
        self.settings = settings or get_settings()
        self.wallets = dict(wallets) if wallets is not None else build_wallets(self.settings)
        self.registry = ToolRegistry(self.wallets)

        for plugin in plugins if plugins is not None else build_plugins(self.settings, self.wallets):
            self.registry.register_plugin(plugin)

        self._tools: dict[str, Tool] | None = None
        self.get_tools()

    @property
    def plugins(self) -> list[Plugin]:
        return self.registry.plugins

    def get_tools(self, refresh: bool = False) -> dict[str, Tool]:
        """Tool map for this session, keyed by declared tool name."""
        if self._tools is None or refresh:
            self._tools = self.registry.build_tool_map()
        return dict(self._tools)

    def get_info(self) -> dict[str, Any]:
        info = self.registry.get_registry_info()
        info["tools"] = sorted(self.get_tools())
        return info

    async def close(self) -> None:
        """Close plugin providers, then wallets."""
        for plugin in self.registry.plugins:
            await plugin.close()
        for wallet in self.wallets.values():
            await wallet.close()
        logger.debug("Session closed")

    async def __aenter__(self) -> "Edwin":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
